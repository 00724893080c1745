"""Turn a raw request body into a validated ``GenerationRequest``."""

from __future__ import annotations

import math
from typing import Any, Mapping

from novachat.core.errors import ProxyError
from novachat.core.result import Err, Ok, Result

from .models import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_K,
    DEFAULT_TOP_P,
    GenerationParameters,
    GenerationRequest,
)


def _finite_number(value: Any, fallback: float) -> float:
    # bool is a subclass of int and is never a valid sampling value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    try:
        number = float(value)
    except OverflowError:  # ints beyond float range
        return fallback
    if not math.isfinite(number):
        return fallback
    return number


def _integral_number(value: Any, fallback: int) -> int:
    number = _finite_number(value, float("nan"))
    if math.isnan(number) or not number.is_integer():
        return fallback
    return int(number)


def resolve_parameters(raw: Any) -> GenerationParameters:
    """Default each missing or malformed field on its own; never rejects."""

    params: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    return GenerationParameters(
        temperature=_finite_number(params.get("temperature"), DEFAULT_TEMPERATURE),
        top_k=_integral_number(params.get("topK"), DEFAULT_TOP_K),
        top_p=_finite_number(params.get("topP"), DEFAULT_TOP_P),
        max_output_tokens=_integral_number(
            params.get("maxOutputTokens"), DEFAULT_MAX_OUTPUT_TOKENS
        ),
    )


def validate_request(data: Any) -> Result[GenerationRequest]:
    if not isinstance(data, Mapping):
        return Err(ProxyError.invalid_argument("Request payload must be an object"))

    message = data.get("message")
    if not isinstance(message, str) or not message.strip():
        return Err(
            ProxyError.invalid_argument("Message is required and must be a non-empty string")
        )

    return Ok(
        GenerationRequest(
            message=message.strip(),
            parameters=resolve_parameters(data.get("modelParameters")),
        )
    )
