"""
Custom exception types for the OpsInsights API client.

These exceptions allow callers to distinguish between failures
occurring during authentication, structured errors reported by the
service, transport failures and responses that cannot be decoded.
"""

from __future__ import annotations

from typing import Any, Optional


class OpsInsightsError(Exception):
    """Base exception for all OpsInsights client errors."""


class AuthenticationError(OpsInsightsError):
    """Raised when exchanging the key/secret pair for a token fails."""


class ApiError(OpsInsightsError):
    """Raised when the service reports a structured error record.

    The ``code``, ``name``, ``message`` and ``resolution`` attributes are
    copied verbatim from the first item of the envelope's ``data`` list.
    """

    def __init__(
        self,
        message: Optional[str],
        *,
        code: Any = None,
        name: Optional[str] = None,
        resolution: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.code = code
        self.name = name
        self.message = message
        self.resolution = resolution
        self.status_code = status_code
        super().__init__(self._format())

    def _format(self) -> str:
        parts = []
        if self.code is not None or self.name:
            label = " ".join(str(p) for p in (self.code, self.name) if p not in (None, ""))
            parts.append(f"[{label}]")
        parts.append(self.message or "Unknown API error")
        if self.resolution:
            parts.append(f"Resolution: {self.resolution}")
        return " ".join(parts)


class TransportError(OpsInsightsError):
    """Raised on network failures or unparseable responses.

    ``body`` holds the raw response text when a response was received.
    """

    def __init__(self, message: str, *, body: Optional[str] = None) -> None:
        self.message = message
        self.body = body
        super().__init__(message)


class DecodeError(OpsInsightsError):
    """Raised when a response lacks fields required to build a record."""
