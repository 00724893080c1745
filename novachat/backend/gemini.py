"""Gemini ``generateContent`` client used by the proxy service."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from novachat.core.errors import ProxyError
from novachat.core.result import Err, Ok, Result

from .models import GenerationRequest

logger = logging.getLogger(__name__)

_MAX_DETAIL_CHARS = 500


def build_payload(request: GenerationRequest) -> Dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": request.message}]}],
        "generationConfig": request.parameters.to_generation_config(),
    }


def extract_text(data: Any) -> Optional[str]:
    """Return ``candidates[0].content.parts[0].text`` or ``None``."""

    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text else None


class GeminiClient:
    """Issues exactly one upstream call per ``generate``; never retries."""

    def __init__(self, url: str, *, timeout: float, http_client: Optional[httpx.AsyncClient] = None) -> None:
        self.url = url
        self.timeout = timeout
        self._http_client = http_client

    async def generate(self, api_key: str, request: GenerationRequest) -> Result[str]:
        headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}
        payload = build_payload(request)

        try:
            if self._http_client is not None:
                response = await self._http_client.post(
                    self.url, json=payload, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            detail = (
                f"Gemini API error: {exc.response.status_code} {exc.response.reason_phrase}. "
                f"{exc.response.text[:_MAX_DETAIL_CHARS]}"
            )
            logger.error(detail)
            return Err(ProxyError.upstream(detail))
        except httpx.TimeoutException as exc:
            detail = f"Gemini API timed out after {self.timeout}s: {exc!r}"
            logger.error(detail)
            return Err(ProxyError.upstream(detail))
        except httpx.RequestError as exc:  # network-level error
            detail = f"Failed to reach Gemini API: {exc!r}"
            logger.exception(detail)
            return Err(ProxyError.upstream(detail))
        except ValueError as exc:  # body is not JSON
            detail = f"Malformed Gemini response: {exc}"
            logger.error(detail)
            return Err(ProxyError.upstream(detail))

        text = extract_text(data)
        if text is None:
            logger.error("Gemini returned no candidate text: %s", str(data)[:_MAX_DETAIL_CHARS])
            return Err(ProxyError.empty_response())
        return Ok(text)
