import base64
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional

from alttext.constants import KIND_IMAGE


@dataclass(frozen=True)
class Site:
    id: int
    name: str
    handle: str
    language: str
    primary: bool = False


@dataclass
class ImageAsset:
    """An asset as seen from one site. `alt` is that site's alt text."""

    id: int
    site_id: int
    filename: str
    kind: str
    mime_type: str
    width: int = 0
    height: int = 0
    size: int = 0
    title: str = ""
    alt: str = ""
    path: str = ""

    @property
    def is_image(self) -> bool:
        return self.kind == KIND_IMAGE

    @property
    def extension(self) -> str:
        return PurePosixPath(self.filename).suffix.lstrip(".")


class DetailLevel(str, Enum):
    LOW = "low"
    HIGH = "high"
    AUTO = "auto"


# ── image references ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RemoteImage:
    url: str

    def as_url(self) -> str:
        return self.url


@dataclass(frozen=True)
class InlineImage:
    data: bytes
    mime_type: str

    def as_base64(self) -> str:
        return base64.standard_b64encode(self.data).decode()

    def as_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.as_base64()}"


ImageReference = RemoteImage | InlineImage


@dataclass(frozen=True)
class GenerationRequest:
    model: str
    prompt: str
    image: ImageReference
    detail: DetailLevel = DetailLevel.LOW


# ── generation results ────────────────────────────────────────────────────────


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    VENDOR_REJECTED = "vendor_rejected"
    MALFORMED_RESPONSE = "malformed_response"
    EMPTY_OUTPUT = "empty_output"


@dataclass(frozen=True)
class GenerationText:
    text: str


@dataclass(frozen=True)
class GenerationError:
    kind: ErrorKind
    message: str


GenerationResult = GenerationText | GenerationError


@dataclass(frozen=True)
class TransformParams:
    """Transform the host should apply before the image is sent to the model."""

    format: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    mode: Optional[str] = None
    quality: Optional[int] = None

    def as_query(self) -> dict[str, str]:
        fields = {
            "format": self.format,
            "width": self.width,
            "height": self.height,
            "mode": self.mode,
            "quality": self.quality,
        }
        return {k: str(v) for k, v in fields.items() if v is not None}

    def __bool__(self) -> bool:
        return bool(self.as_query())
