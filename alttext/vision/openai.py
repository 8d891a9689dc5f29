"""OpenAIVisionClient - OpenAI Responses API vision backend."""
import json
import logging
from itertools import chain
from typing import Any, Iterable

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from alttext.constants import MSG_EMPTY_OUTPUT
from alttext.models import (
    ErrorKind,
    GenerationError,
    GenerationRequest,
    GenerationResult,
    GenerationText,
)
from alttext.vision.client import VisionClient

logger = logging.getLogger(__name__)


# ── pure helpers (module-level so tests can import them directly) ──────────────


def build_input(request: GenerationRequest) -> list[dict]:
    return [
        {
            "role": "user",
            "content": [
                {"type": "input_text", "text": request.prompt},
                {
                    "type": "input_image",
                    "image_url": request.image.as_url(),
                    "detail": request.detail.value,
                },
            ],
        }
    ]


def _output_blocks(payload: dict) -> Iterable[Any]:
    return (
        part.get("text")
        for item in payload.get("output") or []
        if isinstance(item, dict)
        for part in item.get("content") or []
        if isinstance(part, dict) and part.get("type") == "output_text"
    )


def _legacy_choice(payload: dict) -> Iterable[Any]:
    match payload.get("choices"):
        case [{"message": {"content": content}}, *_]:
            return [content]
        case _:
            return []


def extract_output_text(payload: dict) -> str:
    """First non-empty text: output blocks, then flat output_text, then chat choices."""
    candidates = chain(_output_blocks(payload), [payload.get("output_text")], _legacy_choice(payload))
    return next(
        (text.strip() for text in candidates if isinstance(text, str) and text.strip()),
        "",
    )


def vendor_message(exc: APIStatusError) -> str:
    body = exc.body
    match body:
        case {"error": {"message": str() as message}} if message:
            return message
        case {"message": str() as message} if message:
            return message
        case _:
            return exc.message or f"HTTP {exc.status_code}"


def parse_response(raw_text: str) -> GenerationResult:
    try:
        payload = json.loads(raw_text)
    except (json.JSONDecodeError, TypeError) as exc:
        return GenerationError(ErrorKind.MALFORMED_RESPONSE, f"Invalid JSON in response: {exc}")

    match payload:
        case {"error": {"message": str() as message}} if message:
            return GenerationError(ErrorKind.VENDOR_REJECTED, f"OpenAI API error: {message}")
        case dict():
            pass
        case _:
            return GenerationError(ErrorKind.MALFORMED_RESPONSE, "Response body is not a JSON object")

    match extract_output_text(payload):
        case "":
            return GenerationError(ErrorKind.EMPTY_OUTPUT, MSG_EMPTY_OUTPUT)
        case text:
            return GenerationText(text)


# ── client ────────────────────────────────────────────────────────────────────


class OpenAIVisionClient(VisionClient):

    def __init__(self, api_key: str, timeout: float = 60.0) -> None:
        self._api_key = api_key
        self._timeout = timeout

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout, max_retries=0)
        logger.debug("OpenAI request: model=%s detail=%s", request.model, request.detail.value)
        try:
            raw = await client.responses.with_raw_response.create(
                model=request.model,
                input=build_input(request),
            )
        except APIConnectionError as exc:
            logger.warning("OpenAI API request failed: %s", exc)
            return GenerationError(ErrorKind.TRANSPORT, f"OpenAI API request failed: {exc}")
        except APIStatusError as exc:
            message = vendor_message(exc)
            logger.error("OpenAI API error (%s): %s", exc.status_code, message)
            return GenerationError(ErrorKind.VENDOR_REJECTED, f"OpenAI API error: {message}")

        result = parse_response(raw.text)
        match result:
            case GenerationError(kind=kind, message=message):
                logger.warning("OpenAI response rejected (%s): %s", kind.value, message)
            case _:
                pass
        return result
