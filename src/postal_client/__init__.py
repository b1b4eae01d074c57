# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Async client for the Postal mail server HTTP API.

Features:
    - Structured and raw RFC2822 message sending
    - Message detail lookup with selectable expansions
    - Delivery attempt lookup
    - Typed pydantic request/response models
    - Uniform response envelope with a client-computed ``success`` flag

Example::

    from postal_client import PostalClient

    client = PostalClient(key="secret", url="postal.example.com")
    result = await client.send_message(to=["you@example.com"], subject="Hi", plain_body="Hello")
"""

from .client import Credentials, PostalClient
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    PostalError,
    ResponseFormatError,
    TransportError,
)
from .models import (
    ActivityEntries,
    Attachment,
    AttachmentInfo,
    DeliveryRecord,
    Envelope,
    ErrorDetail,
    Expansion,
    MessageDeliveryRequest,
    MessageDeliveryResponse,
    MessageDetails,
    MessageDetailsData,
    MessageDetailsRequest,
    MessageDetailsResponse,
    MessageInspection,
    MessageStatus,
    MessageToken,
    RawMessageRequest,
    RawMessageResponse,
    SendMessageData,
    SendMessageRequest,
    SendMessageResponse,
    normalize_envelope,
)

__version__ = "0.1.0"

__all__ = [
    "ActivityEntries",
    "Attachment",
    "AttachmentInfo",
    "AuthenticationError",
    "ConfigurationError",
    "Credentials",
    "DeliveryRecord",
    "Envelope",
    "ErrorDetail",
    "Expansion",
    "MessageDeliveryRequest",
    "MessageDeliveryResponse",
    "MessageDetails",
    "MessageDetailsData",
    "MessageDetailsRequest",
    "MessageDetailsResponse",
    "MessageInspection",
    "MessageStatus",
    "MessageToken",
    "PostalClient",
    "PostalError",
    "RawMessageRequest",
    "RawMessageResponse",
    "ResponseFormatError",
    "SendMessageData",
    "SendMessageRequest",
    "SendMessageResponse",
    "TransportError",
    "normalize_envelope",
]
