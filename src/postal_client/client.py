# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Async client for the Postal mail server HTTP API.

Each operation is a single POST: the request model is serialized to JSON,
the server API key is attached as ``X-Server-API-Key`` and the response
envelope is normalized into a typed response model.

Example::

    from postal_client import PostalClient, SendMessageRequest

    client = PostalClient(key=os.environ["POSTAL_API_KEY"], url="postal.example.com")
    result = await client.send_message(
        SendMessageRequest(to=["you@example.com"], subject="Hi", plain_body="Hello")
    )
    if result.success:
        print(result.data.message_id)
    else:
        print(result.data.code, result.data.message)

Transport failures raise :class:`TransportError`, a rejected API key raises
:class:`AuthenticationError`, a 2xx body that is not an envelope raises
:class:`ResponseFormatError`; every other server-side rejection comes back
as a response with ``success == False``. Payloads that do not match the
typed models are kept as the decoded JSON.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError

from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    ResponseFormatError,
    TransportError,
)
from .logger import get_logger
from .models import (
    Envelope,
    MessageDeliveryRequest,
    MessageDeliveryResponse,
    MessageDetailsRequest,
    MessageDetailsResponse,
    RawMessageRequest,
    RawMessageResponse,
    SendMessageRequest,
    SendMessageResponse,
)

API_KEY_HEADER = "X-Server-API-Key"
INVALID_API_KEY_CODE = "InvalidServerAPIKey"

SEND_MESSAGE_PATH = "/api/v1/send/message"
MESSAGE_DETAILS_PATH = "/api/v1/messages/message"
MESSAGE_DELIVERY_PATH = "/api/v1/messages/delivery"

logger = get_logger("client")

RequestT = TypeVar("RequestT", bound=BaseModel)
ResponseT = TypeVar("ResponseT", bound=Envelope)


@dataclass(frozen=True)
class Credentials:
    """Server API key and base URL, fixed for the lifetime of a client.

    Attributes:
        key: Postal server API key. Excluded from ``repr``.
        url: Bare host (``postal.example.com``) or full URL
            (``http://localhost:5000``).
    """

    key: str = field(repr=False)
    url: str

    def __post_init__(self) -> None:
        if not isinstance(self.key, str) or not self.key.strip():
            raise ConfigurationError("Postal API key must be a non-empty string")
        if not isinstance(self.url, str) or not self.url.strip():
            raise ConfigurationError("Postal server URL must be a non-empty string")

    @property
    def base_url(self) -> str:
        """URL with ``https://`` prepended unless it already starts with
        ``http://`` or ``https://``."""
        url = self.url.strip().rstrip("/")
        if url.lower().startswith(("http://", "https://")):
            return url
        return f"https://{url}"


class PostalClient:
    """Client for a single Postal mail server.

    Holds no per-call state, so concurrent calls on the same instance are
    independent. No retries are performed and no timeout is applied unless
    ``timeout`` is given.

    Attributes:
        credentials: Immutable API key and server URL.
    """

    def __init__(
        self,
        key: str | None = None,
        url: str | None = None,
        *,
        credentials: Credentials | None = None,
        session: aiohttp.ClientSession | None = None,
        timeout: float | None = None,
    ):
        """Initialize the client. No network activity happens here.

        Args:
            key: Server API key (ignored when ``credentials`` is given).
            url: Server host or URL (ignored when ``credentials`` is given).
            credentials: Prebuilt credentials.
            session: Caller-owned aiohttp session to issue requests on. When
                omitted each call opens and closes its own session.
            timeout: Total timeout in seconds per request; None disables it.

        Raises:
            ConfigurationError: If the key or URL is missing or empty.
        """
        if credentials is None:
            credentials = Credentials(key=key or "", url=url or "")
        self.credentials = credentials
        self._session = session
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self.credentials.base_url

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _headers(self) -> dict[str, str]:
        """Build request headers."""
        return {
            "Content-Type": "application/json",
            API_KEY_HEADER: self.credentials.key,
        }

    async def _post(self, path: str, body: dict[str, Any]) -> tuple[int, dict[str, Any]]:
        """POST ``body`` as JSON and return the HTTP status and decoded object.

        Raises:
            TransportError: On network errors or non-2xx statuses.
            ResponseFormatError: On a 2xx body that is not a JSON object.
        """
        url = self._url(path)
        logger.debug("POST %s", url)
        try:
            if self._session is not None:
                return await self._send(self._session, url, body)
            timeout = aiohttp.ClientTimeout(total=self._timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                return await self._send(session, url, body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportError(url, reason=str(exc) or type(exc).__name__) from exc

    async def _send(
        self, session: aiohttp.ClientSession, url: str, body: dict[str, Any]
    ) -> tuple[int, dict[str, Any]]:
        options: dict[str, Any] = {}
        if self._timeout is not None:
            options["timeout"] = aiohttp.ClientTimeout(total=self._timeout)
        async with session.post(url, json=body, headers=self._headers(), **options) as response:
            logger.debug("POST %s -> %s", url, response.status)
            if not 200 <= response.status < 300:
                raise TransportError(url, response.status, response.reason)
            try:
                payload = await response.json(content_type=None)
            except ValueError as exc:
                text = await response.text()
                raise ResponseFormatError(
                    url, response.status, text, "Response body is not valid JSON"
                ) from exc
        if not isinstance(payload, dict):
            raise ResponseFormatError(url, response.status, payload, "Response body is not a JSON object")
        return response.status, payload

    def _build_response(
        self,
        response_cls: type[ResponseT],
        path: str,
        status: int,
        payload: Mapping[str, Any],
        check_api_key: bool = True,
    ) -> ResponseT:
        """Turn a decoded payload into a response, raising on a bad API key."""
        url = self._url(path)
        data = payload.get("data")
        if (
            check_api_key
            and payload.get("status") == "error"
            and isinstance(data, Mapping)
            and data.get("code") == INVALID_API_KEY_CODE
        ):
            raise AuthenticationError(url, data.get("message"))
        try:
            return response_cls.from_payload(payload)
        except ValidationError as exc:
            raise ResponseFormatError(url, status, dict(payload), f"Unexpected envelope: {exc}") from exc

    @staticmethod
    def _coerce(request_cls: type[RequestT], request: Any, kwargs: dict[str, Any]) -> RequestT:
        """Accept a request model, a mapping or keyword arguments."""
        if request is None:
            return request_cls.model_validate(kwargs)
        if kwargs:
            raise TypeError("Pass either a request object or keyword arguments, not both")
        if isinstance(request, request_cls):
            return request
        return request_cls.model_validate(request)

    @staticmethod
    def _body(request: BaseModel) -> dict[str, Any]:
        return request.model_dump(mode="json", by_alias=True, exclude_none=True)

    async def send_message(
        self, request: SendMessageRequest | Mapping[str, Any] | None = None, **kwargs: Any
    ) -> SendMessageResponse:
        """Send a structured message.

        Args:
            request: Message parameters, as a model or a mapping. Keyword
                arguments may be used instead (``to=[...], subject=...``).

        Returns:
            SendMessageResponse with ``message_id`` and per-recipient tokens
            on success, or the server's ErrorDetail on rejection.

        Raises:
            TransportError: Network failure or non-2xx status.
            ResponseFormatError: A 2xx body that is not a response envelope.
            AuthenticationError: The API key was rejected.
        """
        req = self._coerce(SendMessageRequest, request, kwargs)
        status, payload = await self._post(SEND_MESSAGE_PATH, self._body(req))
        return self._build_response(SendMessageResponse, SEND_MESSAGE_PATH, status, payload)

    async def send_raw_message(
        self, request: RawMessageRequest | Mapping[str, Any] | None = None, **kwargs: Any
    ) -> RawMessageResponse:
        """Send a base64-encoded RFC2822 message.

        Uses the same route as :meth:`send_message`; the server tells the
        two apart by body shape.

        Raises:
            TransportError: Network failure or non-2xx status.
            ResponseFormatError: A 2xx body that is not a response envelope.
            AuthenticationError: The API key was rejected.
        """
        req = self._coerce(RawMessageRequest, request, kwargs)
        status, payload = await self._post(SEND_MESSAGE_PATH, self._body(req))
        return self._build_response(RawMessageResponse, SEND_MESSAGE_PATH, status, payload)

    async def message_details(
        self, request: MessageDetailsRequest | Mapping[str, Any] | None = None, **kwargs: Any
    ) -> MessageDetailsResponse:
        """Look up a message, including the requested expansions.

        Raises:
            TransportError: Network failure or non-2xx status.
            ResponseFormatError: A 2xx body that is not a response envelope.
            AuthenticationError: The API key was rejected.
        """
        req = self._coerce(MessageDetailsRequest, request, kwargs)
        status, payload = await self._post(MESSAGE_DETAILS_PATH, self._body(req))
        return self._build_response(MessageDetailsResponse, MESSAGE_DETAILS_PATH, status, payload)

    async def message_delivery(
        self, request: MessageDeliveryRequest | Mapping[str, Any] | None = None, **kwargs: Any
    ) -> MessageDeliveryResponse:
        """List delivery attempts for a message, in server order.

        An ``InvalidServerAPIKey`` rejection is returned as an ordinary
        response here rather than raised.

        Raises:
            TransportError: Network failure or non-2xx status.
            ResponseFormatError: A 2xx body that is not a response envelope.
        """
        req = self._coerce(MessageDeliveryRequest, request, kwargs)
        status, payload = await self._post(MESSAGE_DELIVERY_PATH, self._body(req))
        return self._build_response(
            MessageDeliveryResponse, MESSAGE_DELIVERY_PATH, status, payload, check_api_key=False
        )

    def __repr__(self) -> str:
        return f"<PostalClient {self.base_url}>"
