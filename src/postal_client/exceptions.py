# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exceptions raised by the Postal client.

Only configuration, transport, response format and authentication
failures are raised.
Ordinary rejections from the server (``status == "error"`` with any other
code) are returned as responses with ``success == False``.
"""

from __future__ import annotations

from typing import Any


class PostalError(Exception):
    """Base class for all errors raised by postal_client."""

    code = "postal_error"


class ConfigurationError(PostalError, ValueError):
    """Raised when credentials or the server URL are missing or empty."""

    code = "configuration_error"

    def __init__(self, message: str = "Missing Postal API key or server URL"):
        super().__init__(message)


class TransportError(PostalError):
    """Raised on network failures and non-2xx HTTP responses.

    Attributes:
        url: Target URL of the failed request.
        status: HTTP status code, or None when no response was received.
        reason: HTTP reason phrase or the underlying network error text.
    """

    code = "transport_error"

    def __init__(self, url: str, status: int | None = None, reason: str | None = None):
        self.url = url
        self.status = status
        self.reason = reason
        if status is None:
            detail = reason or "no response"
        else:
            detail = f"HTTP {status} {reason or ''}".rstrip()
        super().__init__(f"Request to {url} failed: {detail}")


class AuthenticationError(PostalError):
    """Raised when the server rejects the API key (``InvalidServerAPIKey``).

    Retrying will not help; the caller has to fix its configuration.
    """

    code = "InvalidServerAPIKey"

    def __init__(self, url: str, message: str | None = None):
        self.url = url
        self.message = message or "The API key provided was not valid"
        super().__init__(f"{self.message} ({url})")


class ResponseFormatError(PostalError):
    """Raised when a 2xx response body cannot be read as a response envelope.

    The server did answer, so a send may already have been accepted.

    Attributes:
        url: Target URL of the request.
        status: HTTP status code of the response (2xx).
        payload: Decoded body, or the raw text when it is not JSON.
    """

    code = "response_format_error"

    def __init__(self, url: str, status: int, payload: Any, reason: str):
        self.url = url
        self.status = status
        self.payload = payload
        self.reason = reason
        super().__init__(f"Unreadable response from {url} (HTTP {status}): {reason}")
