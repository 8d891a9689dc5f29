"""Abstract interfaces for the host CMS - asset storage and background jobs."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional

from alttext.models import ImageAsset, Site, TransformParams


@dataclass(frozen=True)
class JobPayload:
    asset_id: int
    site_id: int
    force_regeneration: bool = False
    propagate: bool = False


@dataclass(frozen=True)
class QueuedJob:
    id: str
    description: str
    payload: JobPayload


@dataclass(frozen=True)
class CompletionRecord:
    job_id: str
    asset_id: int
    site_id: int
    success: bool
    detail: str


class AssetStore(ABC):
    @abstractmethod
    def sites(self) -> list[Site]:
        """All sites in the host's stable order."""

    @abstractmethod
    def get(self, asset_id: int, site_id: Optional[int] = None) -> Optional[ImageAsset]: ...

    @abstractmethod
    def save(self, asset: ImageAsset, propagate: bool = False) -> bool:
        """Persist the asset. `propagate` copies its alt text to every site."""

    @abstractmethod
    def url(self, asset: ImageAsset, transform: TransformParams) -> Optional[str]:
        """Public URL of the (transformed) asset, or None when it has none."""

    @abstractmethod
    def contents(self, asset: ImageAsset) -> bytes:
        """Raw bytes of the source file. Raises OSError when unreadable."""

    @abstractmethod
    def images(self, site_id: int) -> Iterator[ImageAsset]: ...

    def primary_site(self) -> Site:
        sites = self.sites()
        return next((s for s in sites if s.primary), sites[0])


class JobQueue(ABC):
    @abstractmethod
    def push(self, description: str, payload: JobPayload) -> str: ...

    @abstractmethod
    def pending(self) -> list[QueuedJob]: ...

    @abstractmethod
    def complete(self, record: CompletionRecord) -> None: ...

    def pending_descriptions(self) -> list[str]:
        return [job.description for job in self.pending()]
