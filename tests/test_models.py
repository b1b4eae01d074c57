"""Tests for request/response models and envelope normalization."""

import base64
from email.message import EmailMessage

import pytest
from pydantic import ValidationError

from postal_client import (
    Attachment,
    DeliveryRecord,
    Envelope,
    ErrorDetail,
    Expansion,
    MessageDeliveryResponse,
    MessageDetailsRequest,
    RawMessageRequest,
    SendMessageData,
    SendMessageRequest,
    SendMessageResponse,
    normalize_envelope,
)


def dump(model):
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


class TestNormalizeEnvelope:
    """Tests for the client-side success flag."""

    def test_success_status(self):
        assert normalize_envelope({"status": "success"})["success"] is True

    def test_error_status(self):
        assert normalize_envelope({"status": "error"})["success"] is False

    def test_other_status(self):
        assert normalize_envelope({"status": "parameter-error"})["success"] is False

    def test_overrides_supplied_flag(self):
        """A payload claiming success cannot contradict its status."""
        assert normalize_envelope({"status": "error", "success": True})["success"] is False
        assert normalize_envelope({"status": "success", "success": False})["success"] is True

    def test_does_not_mutate_input(self):
        payload = {"status": "success", "data": {}}
        normalize_envelope(payload)
        assert "success" not in payload

    def test_null_flags_become_empty_mapping(self):
        assert normalize_envelope({"status": "success", "flags": None})["flags"] == {}


class TestEnvelope:
    """Tests for building typed responses from payloads."""

    def test_success_payload(self):
        result = SendMessageResponse.from_payload({
            "status": "success",
            "time": 0.1,
            "flags": {"rate_limited": False},
            "data": {"message_id": "m@x", "messages": {"a@b.com": {"id": 1, "token": "t"}}},
        })
        assert result.success is True
        assert isinstance(result.data, SendMessageData)
        assert result.flags == {"rate_limited": False}
        assert result.error_code is None

    def test_error_payload(self):
        result = SendMessageResponse.from_payload({
            "status": "error",
            "time": 0.1,
            "flags": {},
            "data": {"code": "UnauthenticatedFromAddress", "message": "The From address is not authorised"},
        })
        assert result.success is False
        assert isinstance(result.data, ErrorDetail)
        assert result.error_code == "UnauthenticatedFromAddress"

    def test_missing_flags_default(self):
        result = Envelope.from_payload({"status": "success", "data": {"x": 1}})
        assert result.flags == {}
        assert result.data == {"x": 1}

    def test_unknown_fields_kept(self):
        result = Envelope.from_payload({"status": "success", "request_id": "r-1"})
        assert result.model_extra["request_id"] == "r-1"

    def test_delivery_list(self):
        result = MessageDeliveryResponse.from_payload({
            "status": "success",
            "data": [{"id": 2, "status": "Sent"}, {"id": 1, "status": "HardFail"}],
        })
        assert all(isinstance(d, DeliveryRecord) for d in result.data)
        assert [d.id for d in result.data] == [2, 1]

    def test_delivery_error(self):
        result = MessageDeliveryResponse.from_payload({
            "status": "error",
            "data": {"code": "MessageNotFound", "message": "No message found"},
        })
        assert result.success is False
        assert result.data.code == "MessageNotFound"

    def test_delivery_record_with_unexpected_shape_kept(self):
        result = MessageDeliveryResponse.from_payload({
            "status": "success",
            "data": [{"id": 1, "status": "Sent"}, {"id": "not-a-number"}],
        })
        assert result.success is True
        assert result.data == [{"id": 1, "status": "Sent"}, {"id": "not-a-number"}]

    def test_error_data_with_unexpected_shape_kept(self):
        result = SendMessageResponse.from_payload({"status": "error", "data": {"code": 42}})
        assert result.success is False
        assert result.data == {"code": 42}
        assert result.error_code == "42"

    def test_from_payload_returns_subclass(self):
        assert type(SendMessageResponse.from_payload({"status": "success"})) is SendMessageResponse


class TestSendMessageRequest:
    """Tests for structured send serialization."""

    def test_empty_request_serializes_empty(self):
        assert dump(SendMessageRequest()) == {}

    def test_omitted_fields_absent(self):
        body = dump(SendMessageRequest(to=["a@b.com"], plain_body="Hi"))
        assert body == {"to": ["a@b.com"], "plain_body": "Hi"}

    def test_from_alias(self):
        assert dump(SendMessageRequest(from_="me@x.com")) == {"from": "me@x.com"}
        assert SendMessageRequest(**{"from": "me@x.com"}).from_ == "me@x.com"

    def test_single_address_wrapped(self):
        req = SendMessageRequest(to="a@b.com", cc="c@d.com", bcc=["e@f.com", "g@h.com"])
        assert req.to == ["a@b.com"]
        assert req.cc == ["c@d.com"]
        assert req.bcc == ["e@f.com", "g@h.com"]

    def test_recipient_order_preserved(self):
        assert dump(SendMessageRequest(to=["z@x.com", "a@x.com"]))["to"] == ["z@x.com", "a@x.com"]

    def test_full_request(self):
        req = SendMessageRequest(
            to=["a@b.com"],
            cc=["c@b.com"],
            bcc=["d@b.com"],
            from_="me@x.com",
            sender="bounces@x.com",
            subject="Hi",
            tag="welcome",
            reply_to="reply@x.com",
            plain_body="Hello",
            html_body="<p>Hello</p>",
            bounce=False,
            attachments=[Attachment(name="a.txt", content_type="text/plain", data="aGk=")],
            headers={"X-Campaign": "spring"},
        )
        body = dump(req)
        assert set(body) == {
            "to", "cc", "bcc", "from", "sender", "subject", "tag", "reply_to",
            "plain_body", "html_body", "bounce", "attachments", "headers",
        }
        assert body["bounce"] is False
        assert body["attachments"] == [{"name": "a.txt", "content_type": "text/plain", "data": "aGk="}]

    def test_string_attachments_kept(self):
        assert dump(SendMessageRequest(attachments=["aGVsbG8="]))["attachments"] == ["aGVsbG8="]

    def test_attachment_extra_keys_kept(self):
        attachment = Attachment(name="a", data="eA==", disposition="inline")
        assert dump(attachment) == {"name": "a", "data": "eA==", "disposition": "inline"}

    def test_mapping_attachment_kept(self):
        body = dump(SendMessageRequest(attachments=[{"name": "a", "data": "eA==", "disposition": "inline"}]))
        assert body["attachments"] == [{"name": "a", "data": "eA==", "disposition": "inline"}]

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            SendMessageRequest(recipients=["a@b.com"])


class TestAttachment:
    """Tests for attachment helpers."""

    def test_from_bytes_encodes(self):
        attachment = Attachment.from_bytes("report.pdf", b"%PDF-1.4")
        assert attachment.name == "report.pdf"
        assert attachment.content_type == "application/pdf"
        assert base64.b64decode(attachment.data) == b"%PDF-1.4"

    def test_unknown_type_fallback(self):
        attachment = Attachment.from_bytes("blob.unknownext", b"\x00\x01")
        assert attachment.content_type == "application/octet-stream"

    def test_explicit_type(self):
        attachment = Attachment.from_bytes("notes", b"hi", content_type="text/plain")
        assert attachment.content_type == "text/plain"


class TestRawMessageRequest:
    """Tests for raw message requests."""

    def test_from_email_message(self):
        msg = EmailMessage()
        msg["Subject"] = "Hello"
        msg["From"] = "me@x.com"
        msg["To"] = "you@y.com"
        msg.set_content("Hi there")

        req = RawMessageRequest.from_message(msg, "me@x.com", ["you@y.com"])
        raw = base64.b64decode(req.data)
        assert b"Subject: Hello" in raw
        assert b"Hi there" in raw
        assert dump(req) == {"data": req.data, "mail_from": "me@x.com", "rcpt_to": ["you@y.com"]}

    def test_from_text(self):
        req = RawMessageRequest.from_message("Subject: Hi\r\n\r\nBody", "me@x.com", "you@y.com", bounce=True)
        assert base64.b64decode(req.data) == b"Subject: Hi\r\n\r\nBody"
        assert req.rcpt_to == ["you@y.com"]
        assert req.bounce is True

    def test_from_bytes(self):
        req = RawMessageRequest.from_message(b"Subject: Hi\r\n\r\n", "me@x.com", ["a@y.com", "b@y.com"])
        assert req.rcpt_to == ["a@y.com", "b@y.com"]

    def test_empty_recipients_rejected(self):
        with pytest.raises(ValidationError):
            RawMessageRequest(data="eA==", mail_from="me@x.com", rcpt_to=[])

    def test_required_fields(self):
        with pytest.raises(ValidationError):
            RawMessageRequest(data="eA==")


class TestMessageDetailsRequest:
    """Tests for the expansions wire name."""

    def test_default_expansions(self):
        assert dump(MessageDetailsRequest(id=5)) == {"id": 5, "_expansions": []}

    def test_named_expansions(self):
        req = MessageDetailsRequest(id=5, expansions=["headers", "status"])
        assert req.expansions == [Expansion.HEADERS, Expansion.STATUS]
        assert dump(req) == {"id": 5, "_expansions": ["headers", "status"]}

    def test_all_expansions(self):
        assert dump(MessageDetailsRequest(id=5, expansions=True)) == {"id": 5, "_expansions": True}

    def test_wire_name_accepted(self):
        assert MessageDetailsRequest(**{"id": 5, "_expansions": ["headers"]}).expansions == [Expansion.HEADERS]

    def test_unknown_expansion_rejected(self):
        with pytest.raises(ValidationError):
            MessageDetailsRequest(id=5, expansions=["everything"])
