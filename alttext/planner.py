"""WorkPlanner - decides which (asset, site) pairs to describe, and how.

The duplicate check reads a snapshot of the queue's pending job descriptions and
then acts on it. Nothing locks the queue in between, so two callers planning the
same asset at the same moment can both enqueue work. Last write wins on the alt
text, so the race costs an extra API call, not correctness.
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Callable, Iterable, Optional

from alttext.config import Config
from alttext.constants import (
    JOB_DESCRIPTION,
    JOB_DESCRIPTION_PATTERN,
    JOB_DESCRIPTION_SITE,
    MSG_DUPLICATE_WORK,
    MSG_NOT_AN_IMAGE,
)
from alttext.models import ImageAsset, Site

logger = logging.getLogger(__name__)

DESCRIPTION_KEY = re.compile(JOB_DESCRIPTION_PATTERN)


class WorkMode(str, Enum):
    INLINE = "inline"
    DEFERRED = "deferred"


class PlanNotice(str, Enum):
    DUPLICATE_IN_PROGRESS = "duplicate_in_progress"
    NOT_AN_IMAGE = "not_an_image"


@dataclass(frozen=True)
class WorkItem:
    asset_id: int
    site_id: int
    mode: WorkMode
    force_regeneration: bool
    description: str
    propagate: bool = False


@dataclass(frozen=True)
class Plan:
    items: tuple[WorkItem, ...] = ()
    notice: Optional[PlanNotice] = None
    message: Optional[str] = None


def describe_work(filename: str, asset_id: int, site_id: int, multi_site: bool) -> str:
    match multi_site:
        case True:
            return JOB_DESCRIPTION_SITE.format(filename=filename, asset_id=asset_id, site_id=site_id)
        case False:
            return JOB_DESCRIPTION.format(filename=filename, asset_id=asset_id)


class ExistingWorkIndex:
    """Point-in-time view of pending work, parsed from queue job descriptions.

    `load` is called at most once, on the first lookup. A description without a
    site id (single-site installs) counts as pending for every site of the asset.
    """

    def __init__(self, load: Callable[[], Iterable[str]]) -> None:
        self._load = load

    @classmethod
    def from_descriptions(cls, descriptions: Iterable[str]) -> "ExistingWorkIndex":
        snapshot = list(descriptions)
        return cls(lambda: snapshot)

    @cached_property
    def _keys(self) -> frozenset[tuple[int, Optional[int]]]:
        matches = filter(None, map(DESCRIPTION_KEY.search, self._load()))
        return frozenset(
            (int(m["asset_id"]), int(m["site_id"]) if m["site_id"] else None)
            for m in matches
        )

    def is_pending(self, asset_id: int, site_id: int) -> bool:
        return (asset_id, site_id) in self._keys or (asset_id, None) in self._keys


class WorkPlanner:

    def __init__(self, config: Config) -> None:
        self._propagate = config.propagate_to_all_sites
        self._translate = config.save_translated_per_site

    def plan(
        self,
        asset: ImageAsset,
        existing_work: ExistingWorkIndex,
        all_sites: list[Site],
        *,
        force_regeneration: bool = False,
        run_current_site_inline: bool = False,
        fan_out: bool = True,
    ) -> Plan:
        if not asset.is_image:
            message = MSG_NOT_AN_IMAGE % (asset.filename, asset.id)
            logger.info(message)
            return Plan(notice=PlanNotice.NOT_AN_IMAGE, message=message)

        primary = asset.site_id
        if not force_regeneration and existing_work.is_pending(asset.id, primary):
            message = MSG_DUPLICATE_WORK % (asset.filename, asset.id)
            logger.info(message)
            return Plan(notice=PlanNotice.DUPLICATE_IN_PROGRESS, message=message)

        translate = self._translate and fan_out
        multi_site = len(all_sites) > 1

        def _item(site_id: int, mode: WorkMode, propagate: bool) -> WorkItem:
            return WorkItem(
                asset_id=asset.id,
                site_id=site_id,
                mode=mode,
                force_regeneration=force_regeneration,
                description=describe_work(asset.filename, asset.id, site_id, multi_site),
                propagate=propagate,
            )

        head = _item(
            primary,
            WorkMode.INLINE if run_current_site_inline else WorkMode.DEFERRED,
            self._propagate and not self._translate,
        )
        rest = (
            [_item(s.id, WorkMode.DEFERRED, False) for s in all_sites if s.id != primary]
            if translate
            else []
        )
        return Plan(items=(head, *rest))
