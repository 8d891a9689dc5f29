"""Image normalization - which transform the host should apply, and animation checks."""
import logging
import re
from pathlib import PurePosixPath

import httpx

from alttext.constants import (
    ACCEPTED_MIME_TYPES,
    FALLBACK_FORMAT,
    GIF_FRAME_MARKER,
    GIF_MIME_TYPE,
    LARGE_FILE_BYTES,
    LARGE_FILE_QUALITY,
    MAX_LONG_EDGE,
    MAX_SHORT_EDGE,
    TRANSFORM_MODE_FIT,
)
from alttext.models import ImageAsset, TransformParams

logger = logging.getLogger(__name__)


def needs_format_conversion(mime_type: str) -> bool:
    return mime_type.lower() not in ACCEPTED_MIME_TYPES


def is_animated_gif(contents: bytes) -> bool:
    return contents.count(GIF_FRAME_MARKER) > 1


def plan_transform(asset: ImageAsset) -> TransformParams:
    """Format conversion, dimension clamp, or quality reduction for very large files."""
    fmt = FALLBACK_FORMAT if needs_format_conversion(asset.mime_type) else None
    w, h = asset.width, asset.height
    match (w, h):
        case (w, h) if w > h and (w > MAX_LONG_EDGE or h > MAX_SHORT_EDGE):
            box = (MAX_LONG_EDGE, MAX_SHORT_EDGE)
        case (w, h) if h > w and (h > MAX_LONG_EDGE or w > MAX_SHORT_EDGE):
            box = (MAX_SHORT_EDGE, MAX_LONG_EDGE)
        case _:
            box = None

    match (fmt, box):
        case (None, None) if asset.size > LARGE_FILE_BYTES:
            logger.info("%s is larger than 20MB, setting transform quality to %d",
                        asset.filename, LARGE_FILE_QUALITY)
            return TransformParams(quality=LARGE_FILE_QUALITY)
        case (_, None):
            return TransformParams(format=fmt)
        case (_, (width, height)):
            return TransformParams(format=fmt, width=width, height=height, mode=TRANSFORM_MODE_FIT)


def is_gif(asset: ImageAsset) -> bool:
    return asset.mime_type.lower() == GIF_MIME_TYPE


async def is_url_reachable(url: str, timeout: float) -> bool:
    """HEAD the URL; only a 200 counts as reachable."""
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.head(url)
        return response.status_code == 200
    except httpx.HTTPError as exc:
        logger.warning("URL accessibility check failed: %s", exc)
        return False


# ── filenames ─────────────────────────────────────────────────────────────────


def clean_filename(raw: str) -> str:
    """Lowercase, hyphen-separated stem with no extension."""
    stem = PurePosixPath(raw.strip().strip("\"'`")).stem.lower()
    stem = re.sub(r"[\s_]+", "-", stem)
    stem = re.sub(r"[^a-z0-9-]", "", stem)
    stem = re.sub(r"-+", "-", stem)
    return stem.strip("-")
