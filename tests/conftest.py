import json
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock

import pytest

from alttext.config import Config
from alttext.constants import DEFAULT_FILENAME_PROMPT, DEFAULT_PROMPT_TEMPLATE, GIF_FRAME_MARKER
from alttext.models import GenerationText
from alttext.store import JsonAssetCatalog

SITES = [
    {"id": 1, "name": "English", "handle": "en", "language": "en-US", "primary": True},
    {"id": 2, "name": "Deutsch", "handle": "de", "language": "de-DE", "primary": False},
    {"id": 3, "name": "Français", "handle": "fr", "language": "fr-FR", "primary": False},
]

ASSETS = [
    {
        "id": 42, "filename": "sunset.jpg", "kind": "image", "mime_type": "image/jpeg",
        "width": 1200, "height": 800, "size": 2048, "title": "Sunset",
        "path": "images/sunset.jpg", "alt": {},
    },
    {
        "id": 7, "filename": "clip.mp4", "kind": "video", "mime_type": "video/mp4",
        "path": "video/clip.mp4", "alt": {},
    },
    {
        "id": 8, "filename": "spinner.gif", "kind": "image", "mime_type": "image/gif",
        "width": 64, "height": 64, "size": 512, "path": "images/spinner.gif", "alt": {},
    },
    {
        "id": 9, "filename": "logo.png", "kind": "image", "mime_type": "image/png",
        "width": 300, "height": 300, "size": 900, "path": "images/logo.png",
        "alt": {"1": "Company logo"},
    },
]

FILES = {
    "images/sunset.jpg": b"\xff\xd8\xff\xe0fake-jpeg",
    "video/clip.mp4": b"fake-mp4",
    "images/spinner.gif": b"GIF89a" + GIF_FRAME_MARKER + b"frame1" + GIF_FRAME_MARKER + b"frame2",
    "images/logo.png": b"\x89PNGfake-png",
}


def build_config(**overrides) -> Config:
    values = dict(
        provider="openai",
        api_key="sk-test",
        model="gpt-4.1-nano",
        prompt_template=DEFAULT_PROMPT_TEMPLATE,
        filename_prompt=DEFAULT_FILENAME_PROMPT,
        image_detail_level="low",
        pre_save_empty_first=False,
        propagate_to_all_sites=False,
        save_translated_per_site=False,
        generate_on_asset_create=False,
        request_timeout=60.0,
        url_check_timeout=5.0,
        catalog_path="assets.json",
        queue_path=".alt_text_jobs.json",
        public_base_url=None,
        log_level="INFO",
    )
    values.update(overrides)
    return Config(**values)


def write_catalog(root: Path, sites: list[dict] = SITES, assets: list[dict] = ASSETS) -> Path:
    path = root / "assets.json"
    path.write_text(json.dumps({"sites": sites, "assets": assets}))
    for rel, data in FILES.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    return path


@pytest.fixture
def make_config() -> Callable[..., Config]:
    return build_config


@pytest.fixture
def catalog_path(tmp_path) -> Path:
    return write_catalog(tmp_path)


@pytest.fixture
def catalog(catalog_path) -> JsonAssetCatalog:
    return JsonAssetCatalog(catalog_path)


@pytest.fixture
def single_site_catalog(tmp_path) -> JsonAssetCatalog:
    root = tmp_path / "single"
    root.mkdir()
    return JsonAssetCatalog(write_catalog(root, sites=SITES[:1]))


@pytest.fixture
def vision_client() -> AsyncMock:
    client = AsyncMock()
    client.generate = AsyncMock(return_value=GenerationText("A vivid orange sunset over calm water."))
    return client
