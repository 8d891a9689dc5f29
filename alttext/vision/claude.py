"""ClaudeVisionClient - Anthropic Claude vision backend."""
import json
import logging

from anthropic import APIConnectionError, APIError, APIStatusError, AsyncAnthropic

from alttext.constants import CLAUDE_MAX_TOKENS, MSG_EMPTY_OUTPUT
from alttext.models import (
    ErrorKind,
    GenerationError,
    GenerationRequest,
    GenerationResult,
    GenerationText,
    InlineImage,
    RemoteImage,
)
from alttext.vision.client import VisionClient

logger = logging.getLogger(__name__)


def image_block(request: GenerationRequest) -> dict:
    match request.image:
        case RemoteImage(url=url):
            return {"type": "image", "source": {"type": "url", "url": url}}
        case InlineImage() as inline:
            return {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": inline.mime_type,
                    "data": inline.as_base64(),
                },
            }


def _error_message(exc: APIStatusError) -> str:
    match exc.body:
        case {"error": {"message": str() as message}} if message:
            return message
        case {"message": str() as message} if message:
            return message
        case _:
            return exc.message or f"HTTP {exc.status_code}"


class ClaudeVisionClient(VisionClient):

    def __init__(self, api_key: str, timeout: float = 60.0) -> None:
        self._api_key = api_key
        self._timeout = timeout

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        client = AsyncAnthropic(api_key=self._api_key, timeout=self._timeout, max_retries=0)
        try:
            message = await client.messages.create(
                model=request.model,
                max_tokens=CLAUDE_MAX_TOKENS,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            image_block(request),
                            {"type": "text", "text": request.prompt},
                        ],
                    }
                ],
            )
        except APIConnectionError as exc:
            logger.warning("Claude API request failed: %s", exc)
            return GenerationError(ErrorKind.TRANSPORT, f"Claude API request failed: {exc}")
        except APIStatusError as exc:
            text = _error_message(exc)
            logger.error("Claude API error (%s): %s", exc.status_code, text)
            return GenerationError(ErrorKind.VENDOR_REJECTED, f"Claude API error: {text}")
        except (APIError, json.JSONDecodeError) as exc:
            logger.warning("Claude response could not be decoded: %s", exc)
            return GenerationError(ErrorKind.MALFORMED_RESPONSE, f"Invalid Claude response: {exc}")

        blocks = getattr(message, "content", None)
        if not isinstance(blocks, list):
            return GenerationError(ErrorKind.MALFORMED_RESPONSE, "Claude response has no content")
        text = "".join(
            b.text for b in blocks if getattr(b, "type", None) == "text" and isinstance(b.text, str)
        ).strip()
        match text:
            case "":
                return GenerationError(ErrorKind.EMPTY_OUTPUT, MSG_EMPTY_OUTPUT)
            case _:
                return GenerationText(text)
