"""The AI proxy pipeline: authenticate, validate, call Gemini, shape, log usage."""

from __future__ import annotations

import logging
from typing import Any, Optional

from novachat.core.config import Settings
from novachat.core.errors import ProxyError
from novachat.core.result import Err, Ok, Result

from .gemini import GeminiClient
from .models import GenerationResult, Principal, UsageRecord
from .usage import UsageLogger
from .validation import validate_request

logger = logging.getLogger(__name__)


class ProxyService:
    """Stateless request handler; ``settings`` is read-only after startup."""

    def __init__(self, settings: Settings, upstream: GeminiClient, usage_logger: UsageLogger) -> None:
        self._settings = settings
        self._upstream = upstream
        self._usage_logger = usage_logger

    async def generate(self, principal: Optional[Principal], raw_body: Any) -> Result[GenerationResult]:
        if principal is None:
            return Err(ProxyError.unauthenticated())

        validated = validate_request(raw_body)
        if isinstance(validated, Err):
            return validated
        request = validated.value

        api_key = self._settings.gemini_api_key
        if not api_key:
            logger.error("GEMINI_API_KEY not set; refusing to call the AI service")
            return Err(ProxyError.configuration())

        try:
            generated = await self._upstream.generate(api_key, request)
        except Exception as exc:
            logger.exception("AI Proxy error for user %s", principal.user_id)
            return Err(ProxyError.upstream(f"{type(exc).__name__}: {exc}"))
        if isinstance(generated, Err):
            return generated
        text = generated.value

        self._usage_logger.schedule(
            UsageRecord(
                user_id=principal.user_id,
                message_length=len(request.message),
                response_length=len(text),
            )
        )

        return Ok(GenerationResult(text=text, model_id=self._settings.GEMINI_MODEL))
