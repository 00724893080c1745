"""Error taxonomy shared by the proxy pipeline and the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fastapi import status


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INTERNAL = "INTERNAL"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True)
class ProxyError:
    """A caller-visible failure.

    ``detail`` holds server-side diagnostics (upstream status, body, exception
    text). It is logged but never serialized into a response.
    """

    kind: ErrorKind
    message: str
    detail: Optional[str] = None

    @classmethod
    def unauthenticated(cls) -> "ProxyError":
        return cls(ErrorKind.UNAUTHENTICATED, "Authentication required. Please sign in.")

    @classmethod
    def invalid_argument(cls, message: str) -> "ProxyError":
        return cls(ErrorKind.INVALID_ARGUMENT, message)

    @classmethod
    def configuration(cls) -> "ProxyError":
        return cls(
            ErrorKind.INTERNAL,
            "AI service configuration error. Please contact support.",
            detail="GEMINI_API_KEY is not configured",
        )

    @classmethod
    def upstream(cls, detail: str) -> "ProxyError":
        return cls(
            ErrorKind.INTERNAL,
            "Failed to generate AI response. Please try again.",
            detail=detail,
        )

    @classmethod
    def empty_response(cls) -> "ProxyError":
        return cls(ErrorKind.INTERNAL, "Empty response from AI service")

    def to_payload(self) -> dict[str, dict[str, str]]:
        return {"error": {"status": self.kind.value, "message": self.message}}
