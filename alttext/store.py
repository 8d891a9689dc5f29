import json
import logging
import uuid
from dataclasses import asdict
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import quote, urlencode

from alttext.constants import DEFAULT_CATALOG_PATH, DEFAULT_QUEUE_PATH
from alttext.host import AssetStore, CompletionRecord, JobPayload, JobQueue, QueuedJob
from alttext.models import ImageAsset, Site, TransformParams

logger = logging.getLogger(__name__)


def _read_json(path: Path, default: dict) -> dict:
    match path.exists():
        case True:
            try:
                with open(path) as f:
                    return json.load(f)
            except Exception as e:
                logger.warning(f"Load of {path.name} failed: {e}, starting fresh")
                return default
        case False:
            return default


def _write_json(path: Path, data: dict) -> bool:
    try:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
        return True
    except OSError as e:
        logger.warning(f"Save of {path.name} failed: {e}")
        return False


class JsonAssetCatalog(AssetStore):
    """Assets and sites kept in one JSON file; alt text is stored per site id."""

    def __init__(self, path: Path = Path(DEFAULT_CATALOG_PATH), base_url: Optional[str] = None):
        self._path = path
        self._base_url = base_url
        self._sites: list[Site] = []
        self._assets: dict[str, dict] = {}
        self._load()

    def _load(self) -> None:
        raw = _read_json(self._path, {})
        self._sites = list(map(lambda s: Site(**s), raw.get("sites", [])))
        self._assets = dict(map(lambda a: (str(a["id"]), a), raw.get("assets", [])))

    def _save(self) -> bool:
        return _write_json(self._path, {
            "sites": [asdict(s) for s in self._sites],
            "assets": list(self._assets.values()),
        })

    def _to_asset(self, record: dict, site_id: int) -> ImageAsset:
        return ImageAsset(
            id=int(record["id"]),
            site_id=site_id,
            filename=record["filename"],
            kind=record.get("kind", ""),
            mime_type=record.get("mime_type", ""),
            width=record.get("width", 0),
            height=record.get("height", 0),
            size=record.get("size", 0),
            title=record.get("title", ""),
            alt=(record.get("alt") or {}).get(str(site_id)) or "",
            path=record.get("path", ""),
        )

    # ── AssetStore interface ──────────────────────────────────────────────────

    def sites(self) -> list[Site]:
        return list(self._sites)

    def get(self, asset_id: int, site_id: Optional[int] = None) -> Optional[ImageAsset]:
        if not self._sites:
            return None
        target = site_id if site_id is not None else self.primary_site().id
        match (self._assets.get(str(asset_id)), any(s.id == target for s in self._sites)):
            case (None, _) | (_, False):
                return None
            case (record, True):
                return self._to_asset(record, target)

    def save(self, asset: ImageAsset, propagate: bool = False) -> bool:
        record = self._assets.get(str(asset.id))
        match record:
            case None:
                logger.warning("Cannot save unknown asset %s", asset.id)
                return False
            case _:
                pass
        alt = dict(record.get("alt") or {})
        targets = [s.id for s in self._sites] if propagate else [asset.site_id]
        alt.update({str(site_id): asset.alt for site_id in targets})
        record.update(filename=asset.filename, title=asset.title, alt=alt)
        return self._save()

    def url(self, asset: ImageAsset, transform: TransformParams) -> Optional[str]:
        match (self._base_url, asset.path):
            case (None, _) | (_, ""):
                return None
            case (base, path):
                url = f"{base}/{quote(path)}"
                return f"{url}?{urlencode(transform.as_query())}" if transform else url

    def contents(self, asset: ImageAsset) -> bytes:
        match asset.path:
            case "":
                raise FileNotFoundError(f"Asset {asset.id} has no file path")
            case path:
                return (self._path.parent / path).read_bytes()

    def images(self, site_id: int) -> Iterator[ImageAsset]:
        return (
            asset
            for asset in map(lambda r: self._to_asset(r, site_id), self._assets.values())
            if asset.is_image
        )


class JsonJobQueue(JobQueue):
    """Pending jobs and completion records persisted to a JSON file."""

    def __init__(self, path: Path = Path(DEFAULT_QUEUE_PATH)):
        self._path = path
        raw = _read_json(path, {})
        self._jobs: list[dict] = raw.get("jobs", [])
        self._completed: list[dict] = raw.get("completed", [])

    def _save(self) -> None:
        _write_json(self._path, {"jobs": self._jobs, "completed": self._completed})

    def push(self, description: str, payload: JobPayload) -> str:
        job_id = uuid.uuid4().hex
        self._jobs.append({"id": job_id, "description": description, "payload": asdict(payload)})
        self._save()
        logger.debug("Queued job %s: %s", job_id, description)
        return job_id

    def pending(self) -> list[QueuedJob]:
        return list(map(
            lambda j: QueuedJob(id=j["id"], description=j["description"], payload=JobPayload(**j["payload"])),
            self._jobs,
        ))

    def complete(self, record: CompletionRecord) -> None:
        self._jobs = [j for j in self._jobs if j["id"] != record.job_id]
        self._completed.append(asdict(record))
        self._save()

    def completed(self) -> list[CompletionRecord]:
        return list(map(lambda r: CompletionRecord(**r), self._completed))
