"""AltTextService - entry points for host hooks, UI actions, the CLI and the worker."""
import logging
from dataclasses import dataclass
from typing import Optional

from alttext.config import Config
from alttext.constants import MSG_JOB_FAILED, MSG_QUEUED, MSG_RENAME_FAILED
from alttext.describer import AssetDescriber
from alttext.errors import AssetNotFound, DescribeError, PersistFailed
from alttext.host import AssetStore, CompletionRecord, JobPayload, JobQueue, QueuedJob
from alttext.models import ImageAsset, Site
from alttext.planner import ExistingWorkIndex, Plan, WorkItem, WorkMode, WorkPlanner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationOutcome:
    plan: Plan
    queued: tuple[str, ...] = ()
    text: Optional[str] = None

    @property
    def message(self) -> str:
        match (self.plan.message, self.text, self.queued):
            case (str() as notice, _, _):
                return notice
            case (None, str() as text, _):
                return text
            case _:
                return MSG_QUEUED


@dataclass(frozen=True)
class SiteCoverage:
    site: Site
    total: int
    with_alt: int

    @property
    def without_alt(self) -> int:
        return self.total - self.with_alt

    @property
    def percent(self) -> float:
        return self.with_alt / self.total * 100 if self.total else 0.0


class AltTextService:

    def __init__(
        self,
        config: Config,
        store: AssetStore,
        queue: JobQueue,
        describer: AssetDescriber,
        planner: Optional[WorkPlanner] = None,
    ) -> None:
        self._config = config
        self._store = store
        self._queue = queue
        self._describer = describer
        self._planner = planner or WorkPlanner(config)

    def _site(self, site_id: int) -> Optional[Site]:
        return next((s for s in self._store.sites() if s.id == site_id), None)

    def _load(self, asset_id: int, site_id: Optional[int]) -> ImageAsset:
        match self._store.get(asset_id, site_id):
            case None:
                raise AssetNotFound(asset_id, site_id)
            case asset:
                return asset

    def _work_index(self) -> ExistingWorkIndex:
        return ExistingWorkIndex(self._queue.pending_descriptions)

    def _enqueue(self, items: list[WorkItem]) -> tuple[str, ...]:
        return tuple(
            self._queue.push(
                item.description,
                JobPayload(
                    asset_id=item.asset_id,
                    site_id=item.site_id,
                    force_regeneration=item.force_regeneration,
                    propagate=item.propagate,
                ),
            )
            for item in items
        )

    # ── generation ────────────────────────────────────────────────────────────

    async def generate(
        self,
        asset_id: int,
        site_id: Optional[int] = None,
        *,
        force_regeneration: bool = False,
        run_inline: bool = False,
    ) -> GenerationOutcome:
        asset = self._load(asset_id, site_id)
        return await self.generate_for(
            asset, force_regeneration=force_regeneration, run_inline=run_inline
        )

    async def generate_for(
        self,
        asset: ImageAsset,
        *,
        force_regeneration: bool = False,
        run_inline: bool = False,
        fan_out: bool = True,
        existing_work: Optional[ExistingWorkIndex] = None,
    ) -> GenerationOutcome:
        """Plan, queue the deferred items, then run the inline one.

        Deferred items are queued first so an inline failure never loses them;
        the inline DescribeError propagates to the caller.
        """
        plan = self._planner.plan(
            asset,
            existing_work or self._work_index(),
            self._store.sites(),
            force_regeneration=force_regeneration,
            run_current_site_inline=run_inline,
            fan_out=fan_out,
        )
        inline = [i for i in plan.items if i.mode == WorkMode.INLINE]
        queued = self._enqueue([i for i in plan.items if i.mode == WorkMode.DEFERRED])
        match inline:
            case []:
                return GenerationOutcome(plan=plan, queued=queued)
            case [item, *_]:
                text = await self._describer.describe(
                    asset, self._site(item.site_id), propagate=item.propagate
                )
                return GenerationOutcome(plan=plan, queued=queued, text=text)

    async def on_asset_created(self, asset: ImageAsset) -> Optional[GenerationOutcome]:
        if not self._config.generate_on_asset_create:
            return None
        return await self.generate_for(asset, force_regeneration=False, run_inline=False)

    async def queue_bulk(self, *, include_with_alt: bool, site_id: Optional[int] = None) -> int:
        """Queue every image (or every image missing alt text) on one or all sites."""
        sites = [s for s in self._store.sites() if site_id is None or s.id == site_id]
        index = self._work_index()
        queued = 0
        for site in sites:
            for asset in self._store.images(site.id):
                if asset.alt and not include_with_alt:
                    continue
                outcome = await self.generate_for(
                    asset,
                    force_regeneration=include_with_alt,
                    fan_out=False,
                    existing_work=index,
                )
                queued += len(outcome.queued)
        logger.info("Queued %d assets for alt text generation", queued)
        return queued

    async def rename(self, asset_id: int, site_id: Optional[int] = None) -> str:
        asset = self._load(asset_id, site_id)
        stem = await self._describer.suggest_filename(asset, self._site(asset.site_id))
        asset.filename = f"{stem}.{asset.extension}" if asset.extension else stem
        if not self._store.save(asset):
            raise PersistFailed(MSG_RENAME_FAILED % asset.filename)
        return asset.filename

    # ── worker ────────────────────────────────────────────────────────────────

    async def run_job(self, job: QueuedJob) -> CompletionRecord:
        payload = job.payload

        def _record(success: bool, detail: str) -> CompletionRecord:
            return CompletionRecord(job.id, payload.asset_id, payload.site_id, success, detail)

        try:
            asset = self._load(payload.asset_id, payload.site_id)
            text = await self._describer.describe(
                asset, self._site(payload.site_id), propagate=payload.propagate
            )
            record = _record(True, text)
            logger.info("Successfully generated alt text for asset %s: %s", payload.asset_id, text)
        except (AssetNotFound, DescribeError) as exc:
            logger.error("Error in alt text job %s: %s", job.id, exc)
            record = _record(False, MSG_JOB_FAILED % exc)
        except Exception as exc:
            logger.exception("Unexpected error in alt text job %s", job.id)
            record = _record(False, MSG_JOB_FAILED % exc)
        self._queue.complete(record)
        return record

    async def run_pending(self) -> list[CompletionRecord]:
        return [await self.run_job(job) for job in self._queue.pending()]

    # ── statistics ────────────────────────────────────────────────────────────

    def coverage(self, site_id: Optional[int] = None) -> list[SiteCoverage]:
        def _count(site: Site) -> SiteCoverage:
            alts = [a.alt for a in self._store.images(site.id)]
            return SiteCoverage(site, len(alts), sum(1 for alt in alts if alt.strip()))

        return list(map(_count, (s for s in self._store.sites() if site_id is None or s.id == site_id)))
