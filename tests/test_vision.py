"""TDD: VisionClient backend tests written FIRST"""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import openai
import pytest

from alttext.constants import MSG_EMPTY_OUTPUT
from alttext.models import (
    DetailLevel,
    ErrorKind,
    GenerationError,
    GenerationRequest,
    GenerationText,
    InlineImage,
    RemoteImage,
)
from alttext.vision.claude import ClaudeVisionClient, image_block
from alttext.vision.openai import OpenAIVisionClient, build_input, parse_response

OPENAI_URL = "https://api.openai.com/v1/responses"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
SUNSET = "A vivid orange sunset over calm water."


def make_request(image=None, detail=DetailLevel.LOW) -> GenerationRequest:
    return GenerationRequest(
        model="gpt-4.1-nano",
        prompt="Describe this image",
        image=image or RemoteImage("https://cdn.example.com/sunset.jpg"),
        detail=detail,
    )


def raw_response(payload) -> MagicMock:
    return MagicMock(text=payload if isinstance(payload, str) else json.dumps(payload))


async def run_openai(side_effect=None, return_value=None, request=None):
    client = OpenAIVisionClient(api_key="test-key", timeout=12.0)
    with patch("alttext.vision.openai.AsyncOpenAI") as mock_cls:
        mock_openai = AsyncMock()
        mock_openai.responses.with_raw_response.create = AsyncMock(
            side_effect=side_effect, return_value=return_value
        )
        mock_cls.return_value = mock_openai

        result = await client.generate(request or make_request())
    return result, mock_cls, mock_openai


# ── request shape ─────────────────────────────────────────────────────────────


def test_build_input_remote_image():
    content = build_input(make_request(detail=DetailLevel.HIGH))[0]["content"]

    assert content[0] == {"type": "input_text", "text": "Describe this image"}
    assert content[1] == {
        "type": "input_image",
        "image_url": "https://cdn.example.com/sunset.jpg",
        "detail": "high",
    }


def test_build_input_inline_image_uses_data_uri():
    request = make_request(image=InlineImage(b"\xff\xd8\xff", "image/jpeg"))

    content = build_input(request)[0]["content"]

    assert content[1]["image_url"] == "data:image/jpeg;base64,/9j/"


# ── response parsing ──────────────────────────────────────────────────────────


def test_parse_response_structured_output_blocks():
    payload = {"output": [{"content": [{"type": "output_text", "text": f"  {SUNSET} "}]}]}

    assert parse_response(json.dumps(payload)) == GenerationText(SUNSET)


def test_parse_response_flat_output_text_matches_blocks():
    blocks = {"output": [{"content": [{"type": "output_text", "text": SUNSET}]}]}
    flat = {"output_text": SUNSET}

    assert parse_response(json.dumps(blocks)) == parse_response(json.dumps(flat))


def test_parse_response_skips_non_text_blocks():
    payload = {
        "output": [
            {"type": "reasoning", "content": []},
            {"content": [{"type": "refusal", "refusal": "no"}, {"type": "output_text", "text": SUNSET}]},
        ]
    }

    assert parse_response(json.dumps(payload)) == GenerationText(SUNSET)


def test_parse_response_legacy_chat_choices():
    payload = {"choices": [{"message": {"content": SUNSET}}]}

    assert parse_response(json.dumps(payload)) == GenerationText(SUNSET)


def test_parse_response_empty_output_text():
    assert parse_response('{"output_text": ""}') == GenerationError(ErrorKind.EMPTY_OUTPUT, MSG_EMPTY_OUTPUT)


def test_parse_response_whitespace_only_is_empty():
    result = parse_response(json.dumps({"output": [{"content": [{"type": "output_text", "text": "   "}]}]}))

    assert result.kind == ErrorKind.EMPTY_OUTPUT


def test_parse_response_invalid_json():
    result = parse_response("<html>Bad gateway</html>")

    assert isinstance(result, GenerationError)
    assert result.kind == ErrorKind.MALFORMED_RESPONSE


def test_parse_response_non_object_json():
    assert parse_response("[1, 2, 3]").kind == ErrorKind.MALFORMED_RESPONSE


def test_parse_response_error_object_is_vendor_rejection():
    result = parse_response('{"error": {"message": "Invalid image URL"}}')

    assert result.kind == ErrorKind.VENDOR_REJECTED
    assert "Invalid image URL" in result.message


# ── OpenAIVisionClient ────────────────────────────────────────────────────────


async def test_openai_generate_returns_text():
    result, mock_cls, mock_openai = await run_openai(return_value=raw_response({"output_text": SUNSET}))

    assert result == GenerationText(SUNSET)
    mock_cls.assert_called_once_with(api_key="test-key", timeout=12.0, max_retries=0)
    call_kwargs = mock_openai.responses.with_raw_response.create.call_args.kwargs
    assert call_kwargs["model"] == "gpt-4.1-nano"
    assert call_kwargs["input"] == build_input(make_request())


async def test_openai_generate_empty_output():
    result, _, _ = await run_openai(return_value=raw_response('{"output_text": ""}'))

    assert result == GenerationError(ErrorKind.EMPTY_OUTPUT, MSG_EMPTY_OUTPUT)


async def test_openai_generate_malformed_body():
    result, _, _ = await run_openai(return_value=raw_response("not json"))

    assert result.kind == ErrorKind.MALFORMED_RESPONSE


async def test_openai_generate_connection_error_is_transport():
    error = openai.APIConnectionError(request=httpx.Request("POST", OPENAI_URL))

    result, _, _ = await run_openai(side_effect=error)

    assert result.kind == ErrorKind.TRANSPORT


async def test_openai_generate_status_error_is_vendor_rejected():
    request = httpx.Request("POST", OPENAI_URL)
    error = openai.BadRequestError(
        "Error code: 400",
        response=httpx.Response(400, request=request),
        body={"message": "Invalid image URL", "type": "invalid_request_error"},
    )

    result, _, _ = await run_openai(side_effect=error)

    assert result.kind == ErrorKind.VENDOR_REJECTED
    assert "Invalid image URL" in result.message


async def test_openai_generate_status_error_with_nested_body():
    request = httpx.Request("POST", OPENAI_URL)
    error = openai.RateLimitError(
        "Error code: 429",
        response=httpx.Response(429, request=request),
        body={"error": {"message": "Rate limit reached"}},
    )

    result, _, _ = await run_openai(side_effect=error)

    assert result.kind == ErrorKind.VENDOR_REJECTED
    assert "Rate limit reached" in result.message


# ── ClaudeVisionClient ────────────────────────────────────────────────────────


async def run_claude(side_effect=None, return_value=None, request=None):
    client = ClaudeVisionClient(api_key="test-key", timeout=12.0)
    with patch("alttext.vision.claude.AsyncAnthropic") as mock_cls:
        mock_anthropic = AsyncMock()
        mock_anthropic.messages.create = AsyncMock(side_effect=side_effect, return_value=return_value)
        mock_cls.return_value = mock_anthropic

        result = await client.generate(request or make_request())
    return result, mock_cls, mock_anthropic


def text_message(*texts: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=t) for t in texts])


def test_claude_image_block_remote_url():
    assert image_block(make_request()) == {
        "type": "image",
        "source": {"type": "url", "url": "https://cdn.example.com/sunset.jpg"},
    }


def test_claude_image_block_inline_base64():
    block = image_block(make_request(image=InlineImage(b"\xff\xd8\xff", "image/jpeg")))

    assert block["source"] == {"type": "base64", "media_type": "image/jpeg", "data": "/9j/"}


async def test_claude_generate_sends_image_and_prompt():
    result, mock_cls, mock_anthropic = await run_claude(return_value=text_message(f"  {SUNSET} "))

    assert result == GenerationText(SUNSET)
    mock_cls.assert_called_once_with(api_key="test-key", timeout=12.0, max_retries=0)
    content = mock_anthropic.messages.create.call_args.kwargs["messages"][0]["content"]
    assert content[0]["type"] == "image"
    assert content[1] == {"type": "text", "text": "Describe this image"}


async def test_claude_generate_joins_text_blocks():
    result, _, _ = await run_claude(return_value=text_message("A vivid orange sunset", " over calm water."))

    assert result == GenerationText(SUNSET)


async def test_claude_generate_empty_output():
    result, _, _ = await run_claude(return_value=text_message("  "))

    assert result == GenerationError(ErrorKind.EMPTY_OUTPUT, MSG_EMPTY_OUTPUT)


async def test_claude_generate_missing_content_is_malformed():
    result, _, _ = await run_claude(return_value=SimpleNamespace(content=None))

    assert result.kind == ErrorKind.MALFORMED_RESPONSE


async def test_claude_generate_connection_error_is_transport():
    error = anthropic.APIConnectionError(request=httpx.Request("POST", ANTHROPIC_URL))

    result, _, _ = await run_claude(side_effect=error)

    assert result.kind == ErrorKind.TRANSPORT


async def test_claude_generate_status_error_is_vendor_rejected():
    request = httpx.Request("POST", ANTHROPIC_URL)
    error = anthropic.BadRequestError(
        "Error code: 400",
        response=httpx.Response(400, request=request),
        body={"type": "error", "error": {"type": "invalid_request_error", "message": "Image too large"}},
    )

    result, _, _ = await run_claude(side_effect=error)

    assert result.kind == ErrorKind.VENDOR_REJECTED
    assert "Image too large" in result.message


@pytest.mark.parametrize("body", [b"<html>oops</html>", b"[1, 2, 3]"])
async def test_claude_generate_undecodable_body_is_malformed(monkeypatch, body):
    real_client = anthropic.AsyncAnthropic

    def handler(request):
        return httpx.Response(200, content=body, headers={"content-type": "application/json"})

    monkeypatch.setattr(
        "alttext.vision.claude.AsyncAnthropic",
        lambda **kwargs: real_client(
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)), **kwargs
        ),
    )

    result = await ClaudeVisionClient(api_key="test-key").generate(make_request())

    assert isinstance(result, GenerationError)
    assert result.kind == ErrorKind.MALFORMED_RESPONSE
