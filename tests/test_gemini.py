"""Tests for the Gemini upstream client."""

import json

import httpx
import pytest
import respx

from novachat.backend.gemini import GeminiClient, build_payload, extract_text
from novachat.backend.models import GenerationParameters, GenerationRequest
from novachat.core.errors import ErrorKind
from novachat.core.result import Err, Ok

from conftest import GEMINI_URL, gemini_reply


def _request(**params):
    return GenerationRequest(message="Hello", parameters=GenerationParameters(**params))


@pytest.mark.asyncio
async def test_generate_sends_key_in_header_not_query():
    client = GeminiClient(GEMINI_URL, timeout=5)

    with respx.mock(assert_all_called=True) as respx_mock:
        route = respx_mock.post(GEMINI_URL).mock(
            return_value=httpx.Response(200, json=gemini_reply("ok"))
        )
        outcome = await client.generate("AIzaSecretForTest", _request(max_output_tokens=128))

    assert outcome == Ok("ok")
    upstream_request = route.calls.last.request
    assert "key=" not in str(upstream_request.url)
    assert upstream_request.headers["x-goog-api-key"] == "AIzaSecretForTest"
    payload = json.loads(upstream_request.content.decode("utf-8"))
    assert payload == {
        "contents": [{"parts": [{"text": "Hello"}]}],
        "generationConfig": {
            "temperature": 0.7,
            "topK": 40,
            "topP": 0.95,
            "maxOutputTokens": 128,
        },
    }


@pytest.mark.asyncio
async def test_generate_returns_text_unmodified():
    client = GeminiClient(GEMINI_URL, timeout=5)
    text = "  Line one\nLine two  "

    with respx.mock() as respx_mock:
        respx_mock.post(GEMINI_URL).mock(return_value=httpx.Response(200, json=gemini_reply(text)))
        outcome = await client.generate("key", _request())

    assert outcome == Ok(text)


@pytest.mark.asyncio
async def test_generate_uses_injected_http_client():
    with respx.mock() as respx_mock:
        route = respx_mock.post(GEMINI_URL).mock(
            return_value=httpx.Response(200, json=gemini_reply("shared"))
        )
        async with httpx.AsyncClient() as http_client:
            client = GeminiClient(GEMINI_URL, timeout=5, http_client=http_client)
            outcome = await client.generate("key", _request())

    assert outcome == Ok("shared")
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_non_2xx_maps_to_internal_with_diagnostic_detail():
    client = GeminiClient(GEMINI_URL, timeout=5)

    with respx.mock() as respx_mock:
        route = respx_mock.post(GEMINI_URL).mock(
            return_value=httpx.Response(500, json={"error": {"message": "backend exploded"}})
        )
        outcome = await client.generate("key", _request())

    assert isinstance(outcome, Err)
    assert outcome.error.kind is ErrorKind.INTERNAL
    assert outcome.error.message == "Failed to generate AI response. Please try again."
    assert "500" in outcome.error.detail
    assert "backend exploded" in outcome.error.detail
    assert route.call_count == 1  # no retries


@pytest.mark.asyncio
async def test_transport_error_maps_to_internal():
    client = GeminiClient(GEMINI_URL, timeout=5)

    with respx.mock() as respx_mock:
        respx_mock.post(GEMINI_URL).mock(side_effect=httpx.ConnectError("Connection failed"))
        outcome = await client.generate("key", _request())

    assert isinstance(outcome, Err)
    assert outcome.error.kind is ErrorKind.INTERNAL
    assert "Connection failed" in outcome.error.detail


@pytest.mark.asyncio
async def test_timeout_maps_to_internal():
    client = GeminiClient(GEMINI_URL, timeout=5)

    with respx.mock() as respx_mock:
        respx_mock.post(GEMINI_URL).mock(side_effect=httpx.ReadTimeout("too slow"))
        outcome = await client.generate("key", _request())

    assert isinstance(outcome, Err)
    assert outcome.error.kind is ErrorKind.INTERNAL
    assert "timed out" in outcome.error.detail


@pytest.mark.asyncio
async def test_non_json_body_maps_to_internal():
    client = GeminiClient(GEMINI_URL, timeout=5)

    with respx.mock() as respx_mock:
        respx_mock.post(GEMINI_URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))
        outcome = await client.generate("key", _request())

    assert isinstance(outcome, Err)
    assert outcome.error.kind is ErrorKind.INTERNAL
    assert "Malformed" in outcome.error.detail


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"candidates": []},
        {},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"text": ""}]}}]},
        {"candidates": [{"finishReason": "SAFETY"}]},
    ],
)
async def test_empty_generation_is_internal(body):
    client = GeminiClient(GEMINI_URL, timeout=5)

    with respx.mock() as respx_mock:
        respx_mock.post(GEMINI_URL).mock(return_value=httpx.Response(200, json=body))
        outcome = await client.generate("key", _request())

    assert isinstance(outcome, Err)
    assert outcome.error.kind is ErrorKind.INTERNAL
    assert outcome.error.message == "Empty response from AI service"


def test_extract_text_handles_odd_shapes():
    assert extract_text(gemini_reply("x")) == "x"
    assert extract_text(None) is None
    assert extract_text({"candidates": "nope"}) is None
    assert extract_text({"candidates": [{"content": {"parts": [{"text": 3}]}}]}) is None


def test_build_payload_uses_resolved_parameters():
    payload = build_payload(_request(temperature=0.1, top_k=5))
    assert payload["generationConfig"] == {
        "temperature": 0.1,
        "topK": 5,
        "topP": 0.95,
        "maxOutputTokens": 2048,
    }
