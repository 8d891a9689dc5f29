"""AssetDescriber - one attempt at describing one asset for one site."""
import logging
from typing import Awaitable, Callable, Optional

from alttext.config import Config
from alttext.constants import (
    MSG_ANIMATED,
    MSG_NOT_AN_IMAGE,
    MSG_PRESAVE_FAILED,
    MSG_SAVE_FAILED,
    MSG_UNREADABLE,
)
from alttext.errors import (
    GenerationFailed,
    NotAnImage,
    PersistFailed,
    UnreadableSource,
    UnsupportedAnimated,
)
from alttext.host import AssetStore
from alttext.images import (
    clean_filename,
    is_animated_gif,
    is_gif,
    is_url_reachable,
    plan_transform,
)
from alttext.models import (
    DetailLevel,
    ErrorKind,
    GenerationError,
    GenerationRequest,
    GenerationText,
    ImageAsset,
    ImageReference,
    InlineImage,
    RemoteImage,
    Site,
    TransformParams,
)
from alttext.prompt import build_prompt
from alttext.vision.client import VisionClient

logger = logging.getLogger(__name__)

UrlCheck = Callable[[str, float], Awaitable[bool]]


class AssetDescriber:

    def __init__(
        self,
        config: Config,
        client: VisionClient,
        store: AssetStore,
        url_check: UrlCheck = is_url_reachable,
    ) -> None:
        self._config = config
        self._client = client
        self._store = store
        self._url_check = url_check

    async def describe(
        self,
        asset: ImageAsset,
        site: Optional[Site],
        *,
        propagate: bool = False,
        pre_save_empty_first: Optional[bool] = None,
    ) -> str:
        """Generate and save alt text for `asset` on its site. Always regenerates.

        Raises a DescribeError subclass on failure; nothing is saved unless the
        pre-save step ran.
        """
        image = await self._prepare_image(asset)

        pre_save = self._config.pre_save_empty_first if pre_save_empty_first is None else pre_save_empty_first
        if pre_save and not asset.alt:
            asset.alt = ""
            if not self._store.save(asset):
                raise PersistFailed(MSG_PRESAVE_FAILED % asset.filename)

        prompt = build_prompt(self._config.prompt_template, asset, site)
        logger.info("Generating alt text for asset: %s (site %s)", asset.filename, asset.site_id)
        text = await self._generate(prompt, image)

        asset.alt = text
        if not self._store.save(asset, propagate=propagate):
            raise PersistFailed(MSG_SAVE_FAILED % asset.filename)
        logger.info("Successfully saved alt text for asset: %s", asset.filename)
        return text

    async def suggest_filename(self, asset: ImageAsset, site: Optional[Site]) -> str:
        """Cleaned filename stem proposed by the model. Does not save anything."""
        image = await self._prepare_image(asset)
        prompt = build_prompt(self._config.filename_prompt, asset, site)
        match clean_filename(await self._generate(prompt, image)):
            case "":
                raise GenerationFailed(ErrorKind.EMPTY_OUTPUT, "Model returned no usable filename")
            case stem:
                return stem

    # ── steps ─────────────────────────────────────────────────────────────────

    async def _prepare_image(self, asset: ImageAsset) -> ImageReference:
        if not asset.is_image:
            raise NotAnImage(MSG_NOT_AN_IMAGE % (asset.filename, asset.id))

        if is_gif(asset) and is_animated_gif(self._read(asset)):
            raise UnsupportedAnimated(MSG_ANIMATED % asset.filename)

        transform = plan_transform(asset)
        return await self._resolve_image(asset, transform)

    async def _resolve_image(self, asset: ImageAsset, transform: TransformParams) -> ImageReference:
        url = self._store.url(asset, transform)
        match url:
            case str() if url and await self._url_check(url, self._config.url_check_timeout):
                return RemoteImage(url)
            case str() if url:
                logger.warning("Asset URL is not accessible remotely: %s", url)
            case _:
                pass

        if transform:
            logger.warning(
                "Asset %s needs a transform but has no reachable URL, sending the source file",
                asset.filename,
            )
        return InlineImage(self._read(asset), asset.mime_type.lower())

    def _read(self, asset: ImageAsset) -> bytes:
        try:
            contents = self._store.contents(asset)
        except OSError as exc:
            raise UnreadableSource(f"{MSG_UNREADABLE % asset.filename}: {exc}") from exc
        match contents:
            case b"" | None:
                raise UnreadableSource(MSG_UNREADABLE % asset.filename)
            case _:
                return contents

    async def _generate(self, prompt: str, image: ImageReference) -> str:
        request = GenerationRequest(
            model=self._config.model,
            prompt=prompt,
            image=image,
            detail=DetailLevel(self._config.image_detail_level),
        )
        match await self._client.generate(request):
            case GenerationText(text=text):
                return text
            case GenerationError(kind=kind, message=message):
                raise GenerationFailed(kind, message)
