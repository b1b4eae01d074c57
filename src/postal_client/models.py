# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pydantic models for the Postal HTTP API.

Requests are serialized with ``model_dump(by_alias=True, exclude_none=True)``
so fields the caller did not supply never reach the wire. Responses share
a common envelope::

    {"status": "success", "time": 0.02, "flags": {}, "data": {...}}

``success`` is not sent by the server: :func:`normalize_envelope` derives it
from ``status`` before the payload is validated into a response model.

Models:
    - SendMessageRequest / SendMessageResponse: structured send
    - RawMessageRequest / RawMessageResponse: pre-encoded RFC2822 send
    - MessageDetailsRequest / MessageDetailsResponse: message lookup
    - MessageDeliveryRequest / MessageDeliveryResponse: delivery attempts
"""

from __future__ import annotations

import base64
import mimetypes
from collections.abc import Mapping
from email.message import Message
from enum import Enum
from typing import Annotated, Any, ClassVar, TypeVar

from pydantic import BaseModel, ConfigDict, Field, SkipValidation, ValidationError, field_validator


class Expansion(str, Enum):
    """Detail categories that can be requested for a message lookup."""

    STATUS = "status"
    DETAILS = "details"
    INSPECTION = "inspection"
    PLAIN_BODY = "plain_body"
    HTML_BODY = "html_body"
    ATTACHMENTS = "attachments"
    HEADERS = "headers"
    RAW_MESSAGE = "raw_message"
    ACTIVITY_ENTRIES = "activity_entries"


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class Attachment(BaseModel):
    """File attached to a structured send.

    Attributes:
        name: Filename shown to the recipient.
        content_type: MIME type of the content.
        data: Base64-encoded file content.

    Additional keys are passed through to the server unchanged.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    content_type: str | None = None
    data: str

    @classmethod
    def from_bytes(cls, name: str, content: bytes, content_type: str | None = None) -> Attachment:
        """Build an attachment from raw bytes, guessing the type from ``name``."""
        if content_type is None:
            content_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        return cls(
            name=name,
            content_type=content_type,
            data=base64.b64encode(content).decode("ascii"),
        )


class SendMessageRequest(BaseModel):
    """Parameters for ``POST /api/v1/send/message``.

    Every field is optional; the server decides what is missing. Recipient
    fields accept a single address or a list of addresses.

    Attachments may be :class:`Attachment` objects, plain mappings or
    pre-encoded strings; they are sent as given.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    to: list[str] | None = None
    cc: list[str] | None = None
    bcc: list[str] | None = None
    from_: Annotated[
        str | None,
        Field(default=None, alias="from", description="From header address")
    ]
    sender: Annotated[
        str | None,
        Field(default=None, description="Sender header address")
    ]
    subject: str | None = None
    tag: str | None = None
    reply_to: str | None = None
    plain_body: str | None = None
    html_body: str | None = None
    bounce: bool | None = None
    attachments: list[Attachment | dict[str, Any] | str] | None = None
    headers: dict[str, str] | None = None

    @field_validator("to", "cc", "bcc", mode="before")
    @classmethod
    def wrap_single_address(cls, v: Any) -> Any:
        """Accept ``"a@b.com"`` as shorthand for ``["a@b.com"]``."""
        if isinstance(v, str):
            return [v]
        return v


class RawMessageRequest(BaseModel):
    """Parameters for sending a pre-built RFC2822 message.

    Attributes:
        data: Base64-encoded RFC2822 message.
        mail_from: Envelope sender (MAIL FROM).
        rcpt_to: Envelope recipients (RCPT TO), at least one.
        bounce: Whether the message is a bounce.
    """

    model_config = ConfigDict(extra="forbid")

    data: str
    mail_from: str
    rcpt_to: Annotated[list[str], Field(min_length=1)]
    bounce: bool | None = None

    @field_validator("rcpt_to", mode="before")
    @classmethod
    def wrap_single_recipient(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v

    @classmethod
    def from_message(
        cls,
        message: Message | bytes | str,
        mail_from: str,
        rcpt_to: str | list[str],
        bounce: bool | None = None,
    ) -> RawMessageRequest:
        """Encode an email message (object, bytes or text) into a raw request.

        Example::

            msg = EmailMessage()
            msg["Subject"] = "Hello"
            msg.set_content("Hi there")
            req = RawMessageRequest.from_message(msg, "me@x.com", ["you@y.com"])
        """
        if isinstance(message, Message):
            raw = message.as_bytes()
        elif isinstance(message, str):
            raw = message.encode("utf-8")
        else:
            raw = message
        return cls(
            data=base64.b64encode(raw).decode("ascii"),
            mail_from=mail_from,
            rcpt_to=rcpt_to,
            bounce=bounce,
        )


class MessageDetailsRequest(BaseModel):
    """Parameters for ``POST /api/v1/messages/message``.

    ``expansions`` is either a list of :class:`Expansion` names or ``True``
    for every category. It goes on the wire as ``_expansions``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    id: int
    expansions: Annotated[
        list[Expansion] | bool,
        Field(default_factory=list, alias="_expansions")
    ]


class MessageDeliveryRequest(BaseModel):
    """Parameters for ``POST /api/v1/messages/delivery``."""

    model_config = ConfigDict(extra="forbid")

    id: int


# ---------------------------------------------------------------------------
# Response payloads
# ---------------------------------------------------------------------------


class ServerModel(BaseModel):
    """Base for server-provided shapes; unknown fields are kept."""

    model_config = ConfigDict(extra="allow")


class ErrorDetail(ServerModel):
    """``data`` of a response whose status is not ``success``."""

    code: str | None = None
    message: str | None = None


class MessageToken(ServerModel):
    id: int
    token: str


class SendMessageData(ServerModel):
    """Result of a send: the Message-ID and one entry per recipient."""

    message_id: str | None = None
    messages: dict[str, MessageToken] = Field(default_factory=dict)


class MessageStatus(ServerModel):
    status: str | None = None
    last_delivery_attempt: float | None = None
    held: bool | None = None
    hold_expiry: float | None = None


class MessageDetails(ServerModel):
    rcpt_to: str | None = None
    mail_from: str | None = None
    subject: str | None = None
    message_id: str | None = None
    timestamp: float | None = None
    direction: str | None = None
    size: str | int | None = None
    bounce: bool | None = None
    bounce_for_id: int | None = None
    tag: str | None = None
    received_with_ssl: bool | None = None


class MessageInspection(ServerModel):
    inspected: bool | None = None
    spam: bool | None = None
    spam_score: float | None = None
    threat: bool | None = None
    threat_details: str | None = None


class AttachmentInfo(ServerModel):
    filename: str | None = None
    content_type: str | None = None
    data: str | None = None
    size: int | None = None
    hash: str | None = None


class ActivityEntries(ServerModel):
    loads: list[dict[str, Any]] = Field(default_factory=list)
    clicks: list[dict[str, Any]] = Field(default_factory=list)


class MessageDetailsData(ServerModel):
    """Message lookup result.

    Only the requested expansions are set; check ``model_fields_set`` to
    tell an absent category from an empty one.
    """

    id: int | None = None
    token: str | None = None
    status: MessageStatus | None = None
    details: MessageDetails | None = None
    inspection: MessageInspection | None = None
    plain_body: str | None = None
    html_body: str | None = None
    attachments: list[AttachmentInfo] | None = None
    headers: dict[str, list[str] | str] | None = None
    raw_message: str | None = None
    activity_entries: ActivityEntries | None = None


class DeliveryRecord(ServerModel):
    """One delivery attempt for a message."""

    id: int | None = None
    status: str | None = None
    details: str | None = None
    output: str | None = None
    sent_with_ssl: bool | None = None
    log_id: str | None = None
    time: float | None = None
    timestamp: float | None = None


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


def normalize_envelope(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Add the client-side ``success`` flag to a decoded server payload.

    ``success`` is exactly ``status == "success"``; any value the payload
    already carries under that key is overwritten.
    """
    envelope = dict(payload)
    envelope["success"] = envelope.get("status") == "success"
    if envelope.get("flags") is None:
        envelope["flags"] = {}
    return envelope


class Envelope(ServerModel):
    """Common response shape of every operation.

    Attributes:
        success: ``status == "success"``, computed client-side.
        status: Server status string (``success``, ``error``, ...).
        time: Server-side processing time in seconds.
        flags: Server metadata, kept as an open mapping.
        data: Operation payload, or :class:`ErrorDetail` on failure.
        error: Optional error string.
    """

    data_model: ClassVar[type[BaseModel] | None] = None

    success: bool
    status: str
    time: float | None = None
    flags: dict[str, Any] = Field(default_factory=dict)
    data: Any = None
    error: str | None = None

    @classmethod
    def validate_data(cls, data: Any, success: bool) -> Any:
        """Validate ``data`` into the operation payload or an ErrorDetail."""
        if not success:
            return ErrorDetail.model_validate(data)
        if cls.data_model is None:
            return data
        return cls.data_model.model_validate(data)

    @classmethod
    def parse_data(cls, data: Any, success: bool) -> Any:
        """Type ``data`` where it fits the known shape, else keep it as sent."""
        if data is None:
            return None
        try:
            return cls.validate_data(data, success)
        except (ValidationError, TypeError):
            return data

    @classmethod
    def from_payload(cls: type[EnvelopeT], payload: Mapping[str, Any]) -> EnvelopeT:
        """Build a response from a decoded JSON payload."""
        envelope = normalize_envelope(payload)
        envelope["data"] = cls.parse_data(envelope.get("data"), envelope["success"])
        return cls.model_validate(envelope)

    @property
    def error_code(self) -> str | None:
        """Error code when the response is a rejection."""
        if isinstance(self.data, ErrorDetail):
            return self.data.code
        if not self.success and isinstance(self.data, Mapping) and self.data.get("code") is not None:
            return str(self.data["code"])
        return None


EnvelopeT = TypeVar("EnvelopeT", bound=Envelope)


class SendMessageResponse(Envelope):
    data_model = SendMessageData

    data: SkipValidation[SendMessageData | ErrorDetail | dict[str, Any] | None] = None


class RawMessageResponse(SendMessageResponse):
    pass


class MessageDetailsResponse(Envelope):
    data_model = MessageDetailsData

    data: SkipValidation[MessageDetailsData | ErrorDetail | dict[str, Any] | None] = None


class MessageDeliveryResponse(Envelope):
    """Delivery attempts in the order the server reported them."""

    data: SkipValidation[list[DeliveryRecord] | ErrorDetail | list[Any] | dict[str, Any] | None] = None

    @classmethod
    def validate_data(cls, data: Any, success: bool) -> Any:
        if not success:
            return ErrorDetail.model_validate(data)
        return [DeliveryRecord.model_validate(item) for item in data]
