from dataclasses import dataclass
from typing import Optional
import os
from dotenv import load_dotenv

from alttext.constants import (
    CLAUDE_VISION_MODEL,
    DEFAULT_CATALOG_PATH,
    DEFAULT_FILENAME_PROMPT,
    DEFAULT_PROMPT_TEMPLATE,
    DEFAULT_QUEUE_PATH,
    DETAIL_LEVELS,
    OPENAI_VISION_MODEL,
    PROVIDER_ANTHROPIC,
    PROVIDER_OPENAI,
)


def _parse_bool(raw: str) -> bool:
    match raw.strip().lower():
        case "1" | "true" | "yes" | "on":
            return True
        case _:
            return False


@dataclass(frozen=True)
class Config:
    provider: str
    api_key: str
    model: str
    prompt_template: str
    filename_prompt: str
    image_detail_level: str
    pre_save_empty_first: bool
    propagate_to_all_sites: bool
    save_translated_per_site: bool
    generate_on_asset_create: bool
    request_timeout: float
    url_check_timeout: float
    catalog_path: str
    queue_path: str
    public_base_url: Optional[str]
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        provider = os.getenv("VISION_PROVIDER", PROVIDER_OPENAI).strip().lower()
        match provider:
            case "anthropic":
                api_key = os.getenv("ANTHROPIC_API_KEY")
                default_model = CLAUDE_VISION_MODEL
            case _:
                api_key = os.getenv("OPENAI_API_KEY")
                default_model = OPENAI_VISION_MODEL

        return cls._validate(
            provider=provider,
            api_key=api_key,
            model=os.getenv("VISION_MODEL") or default_model,
            prompt_template=os.getenv("ALT_TEXT_PROMPT", DEFAULT_PROMPT_TEMPLATE),
            filename_prompt=os.getenv("FILENAME_PROMPT") or DEFAULT_FILENAME_PROMPT,
            image_detail_level=os.getenv("IMAGE_DETAIL_LEVEL", "low").strip().lower(),
            pre_save_empty_first=_parse_bool(os.getenv("PRE_SAVE_EMPTY_FIRST", "")),
            propagate_to_all_sites=_parse_bool(os.getenv("PROPAGATE_TO_ALL_SITES", "")),
            save_translated_per_site=_parse_bool(os.getenv("SAVE_TRANSLATED_PER_SITE", "")),
            generate_on_asset_create=_parse_bool(os.getenv("GENERATE_ON_ASSET_CREATE", "")),
            request_timeout=os.getenv("REQUEST_TIMEOUT", "60"),
            url_check_timeout=os.getenv("URL_CHECK_TIMEOUT", "5"),
            catalog_path=os.getenv("ASSET_CATALOG_PATH", DEFAULT_CATALOG_PATH),
            queue_path=os.getenv("JOB_QUEUE_PATH", DEFAULT_QUEUE_PATH),
            public_base_url=(os.getenv("PUBLIC_BASE_URL") or "").rstrip("/") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @staticmethod
    def _validate(
        provider: str,
        api_key: Optional[str],
        model: str,
        prompt_template: str,
        filename_prompt: str,
        image_detail_level: str,
        pre_save_empty_first: bool,
        propagate_to_all_sites: bool,
        save_translated_per_site: bool,
        generate_on_asset_create: bool,
        request_timeout: str,
        url_check_timeout: str,
        catalog_path: str,
        queue_path: str,
        public_base_url: Optional[str],
        log_level: str,
    ) -> "Config":
        match provider:
            case "openai" | "anthropic":
                pass
            case _:
                raise ValueError(
                    f"VISION_PROVIDER must be {PROVIDER_OPENAI} or {PROVIDER_ANTHROPIC}"
                )

        match api_key:
            case None | "":
                name = "ANTHROPIC_API_KEY" if provider == PROVIDER_ANTHROPIC else "OPENAI_API_KEY"
                raise ValueError(f"{name} must be set in .env")
            case _:
                pass

        if image_detail_level not in DETAIL_LEVELS:
            raise ValueError(f"IMAGE_DETAIL_LEVEL must be one of: {', '.join(DETAIL_LEVELS)}")

        try:
            timeouts = (float(request_timeout), float(url_check_timeout))
        except ValueError:
            raise ValueError("REQUEST_TIMEOUT and URL_CHECK_TIMEOUT must be numbers") from None

        return Config(
            provider=provider,
            api_key=api_key,
            model=model,
            prompt_template=prompt_template,
            filename_prompt=filename_prompt,
            image_detail_level=image_detail_level,
            pre_save_empty_first=pre_save_empty_first,
            propagate_to_all_sites=propagate_to_all_sites,
            save_translated_per_site=save_translated_per_site,
            generate_on_asset_create=generate_on_asset_create,
            request_timeout=timeouts[0],
            url_check_timeout=timeouts[1],
            catalog_path=catalog_path,
            queue_path=queue_path,
            public_base_url=public_base_url,
            log_level=log_level,
        )
