"""Client utilities for talking to the AI proxy backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import requests

from novachat.core.config import get_settings

_TIMEOUT = (10, 300)

UNAUTHORIZED = "unauthorized"
VALIDATION = "validation"
NOT_FOUND = "not_found"
SERVICE_UNAVAILABLE = "service_unavailable"
NETWORK = "network"
UNKNOWN = "unknown"

_STATUS_CATEGORIES = {
    "UNAUTHENTICATED": (UNAUTHORIZED, "Authentication required. Please sign in and retry."),
    "PERMISSION_DENIED": (UNAUTHORIZED, "Permission denied. Please check your account access."),
    "INVALID_ARGUMENT": (VALIDATION, "Invalid request. Please check your input and try again."),
    "FAILED_PRECONDITION": (SERVICE_UNAVAILABLE, "Service configuration error. Please contact support."),
    "NOT_FOUND": (NOT_FOUND, "AI service endpoint was not found. Please try again later."),
}
_UNAVAILABLE_STATUSES = {
    "UNAVAILABLE",
    "DEADLINE_EXCEEDED",
    "RESOURCE_EXHAUSTED",
    "INTERNAL",
    "ABORTED",
    "CANCELLED",
    "UNKNOWN",
}


class ProxyClientError(Exception):
    """A failed proxy call, categorised for display and retry decisions."""

    def __init__(self, category: str, message: str, *, status: Optional[str] = None) -> None:
        super().__init__(message)
        self.category = category
        self.message = message
        self.status = status


@dataclass(frozen=True)
class AiProxyReply:
    response: str
    model: Optional[str]


def map_error_status(status: Optional[str], fallback_message: str) -> ProxyClientError:
    """Map a server error ``status`` to a client-side error category."""

    if status in _STATUS_CATEGORIES:
        category, message = _STATUS_CATEGORIES[status]
        return ProxyClientError(category, message, status=status)
    if status in _UNAVAILABLE_STATUSES:
        return ProxyClientError(
            SERVICE_UNAVAILABLE,
            "AI service is temporarily unavailable. Please try again shortly.",
            status=status,
        )
    return ProxyClientError(UNKNOWN, fallback_message or "Unexpected error", status=status)


def is_recoverable(error: ProxyClientError) -> bool:
    return error.status != "PERMISSION_DENIED"


def _get_api_url() -> str:
    return str(get_settings().BACKEND_API_URL)


def _get_base_url() -> str:
    return _get_api_url().rsplit("/", 1)[0]


def _auth_headers(token: str) -> Dict[str, str]:
    headers = {}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _error_from_response(response: requests.Response) -> ProxyClientError:
    try:
        error = response.json().get("error") or {}
    except (ValueError, AttributeError):
        error = {}
    if not isinstance(error, dict):
        error = {}
    return map_error_status(error.get("status"), error.get("message") or response.reason or "")


def generate_response(
    message: str,
    *,
    token: str,
    temperature: float = 0.7,
    top_k: int = 40,
    top_p: float = 0.95,
    max_output_tokens: int = 2048,
) -> AiProxyReply:
    """Send one message through the proxy and return the generated text."""

    payload = {
        "message": message,
        "modelParameters": {
            "temperature": temperature,
            "topK": top_k,
            "topP": top_p,
            "maxOutputTokens": max_output_tokens,
        },
    }

    try:
        response = requests.post(
            _get_api_url(),
            json=payload,
            headers=_auth_headers(token),
            timeout=_TIMEOUT,
        )
    except requests.RequestException as exc:
        raise ProxyClientError(NETWORK, f"Could not reach the AI proxy: {exc}") from exc

    if not response.ok:
        raise _error_from_response(response)

    try:
        data = response.json()
    except ValueError as exc:
        raise ProxyClientError(UNKNOWN, "AI returned empty response") from exc
    if not isinstance(data, dict):
        raise ProxyClientError(UNKNOWN, "AI returned empty response")
    text = data.get("response")
    if not isinstance(text, str) or not text.strip():
        raise ProxyClientError(UNKNOWN, "AI returned empty response")
    model = data.get("model")
    return AiProxyReply(response=text, model=model if isinstance(model, str) else None)


def signup(username: str, password: str) -> Dict[str, str]:
    response = requests.post(
        f"{_get_base_url()}/auth/signup",
        json={"username": username, "password": password},
        timeout=_TIMEOUT,
    )
    response.raise_for_status()
    return response.json()


def login(username: str, password: str) -> Dict[str, str]:
    response = requests.post(
        f"{_get_base_url()}/auth/login",
        json={"username": username, "password": password},
        timeout=_TIMEOUT,
    )
    response.raise_for_status()
    return response.json()


def logout(token: str) -> None:
    requests.post(
        f"{_get_base_url()}/auth/logout",
        headers=_auth_headers(token),
        timeout=_TIMEOUT,
    ).raise_for_status()
