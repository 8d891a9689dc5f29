"""Entry point - wires Config → vision client → AssetDescriber → AltTextService."""
import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from alttext.config import Config
from alttext.constants import MSG_NOTHING_QUEUED
from alttext.describer import AssetDescriber
from alttext.errors import AltTextError
from alttext.planner import PlanNotice
from alttext.service import AltTextService, SiteCoverage
from alttext.store import JsonAssetCatalog, JsonJobQueue
from alttext.vision.claude import ClaudeVisionClient
from alttext.vision.client import VisionClient
from alttext.vision.openai import OpenAIVisionClient

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_DATA_ERROR = 65


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))


def build_vision_client(config: Config) -> VisionClient:
    match config.provider:
        case "anthropic":
            return ClaudeVisionClient(config.api_key, timeout=config.request_timeout)
        case _:
            return OpenAIVisionClient(config.api_key, timeout=config.request_timeout)


def build_service(config: Config) -> AltTextService:
    store = JsonAssetCatalog(Path(config.catalog_path), base_url=config.public_base_url)
    queue = JsonJobQueue(Path(config.queue_path))
    describer = AssetDescriber(config, build_vision_client(config), store)
    return AltTextService(config, store, queue, describer)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ai-alt-text",
        description="Generate AI alt text for image assets.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    single = commands.add_parser("single", help="generate alt text for one asset")
    single.add_argument("asset_id", type=int)
    single.add_argument("--site-id", type=int)
    single.add_argument("--inline", action="store_true", help="run the current site now instead of queueing")
    single.add_argument("--force", action="store_true", help="ignore already queued work")

    missing = commands.add_parser("missing", help="queue every image without alt text")
    missing.add_argument("--site-id", type=int)

    everything = commands.add_parser("all", help="queue every image, regenerating existing alt text")
    everything.add_argument("--site-id", type=int)
    everything.add_argument("--yes", action="store_true", help="skip the confirmation prompt")

    stats = commands.add_parser("stats", help="show alt text coverage per site")
    stats.add_argument("--site-id", type=int)

    commands.add_parser("work", help="run queued jobs")

    filename = commands.add_parser("filename", help="rename an asset with an AI-suggested filename")
    filename.add_argument("asset_id", type=int)
    filename.add_argument("--site-id", type=int)

    return parser.parse_args(argv)


def render_coverage(rows: list[SiteCoverage], console: Console) -> None:
    table = Table(title="Asset Alt Text Coverage")
    table.add_column("Site", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("With Alt", justify="right", style="green")
    table.add_column("Missing", justify="right", style="red")
    table.add_column("Coverage", justify="right")
    for row in rows:
        table.add_row(row.site.name, str(row.total), str(row.with_alt), str(row.without_alt), f"{row.percent:.1f}%")
    if len(rows) > 1:
        total = sum(r.total for r in rows)
        with_alt = sum(r.with_alt for r in rows)
        percent = with_alt / total * 100 if total else 0.0
        table.add_row("All Sites", str(total), str(with_alt), str(total - with_alt), f"{percent:.1f}%", style="bold")
    console.print(table)


async def run(args: argparse.Namespace, service: AltTextService, console: Console) -> int:
    match args.command:
        case "single":
            outcome = await service.generate(
                args.asset_id, args.site_id, force_regeneration=args.force, run_inline=args.inline
            )
            console.print(outcome.message)
            match outcome.plan.notice:
                case PlanNotice.NOT_AN_IMAGE:
                    return EXIT_DATA_ERROR
                case _:
                    return EXIT_OK
        case "missing" | "all":
            if args.command == "all" and not args.yes:
                console.print("This will regenerate alt text for ALL image assets.")
                if console.input("Are you sure you want to continue? [y/N] ").strip().lower() != "y":
                    console.print("Operation cancelled.")
                    return EXIT_OK
            queued = await service.queue_bulk(include_with_alt=args.command == "all", site_id=args.site_id)
            console.print(f"Queued {queued} assets for alt text generation." if queued else MSG_NOTHING_QUEUED)
            return EXIT_OK
        case "stats":
            render_coverage(service.coverage(args.site_id), console)
            return EXIT_OK
        case "work":
            records = await service.run_pending()
            failed = [r for r in records if not r.success]
            console.print(f"Processed {len(records)} jobs, {len(failed)} failed.")
            return EXIT_FAILURE if failed else EXIT_OK
        case "filename":
            console.print(await service.rename(args.asset_id, args.site_id))
            return EXIT_OK
        case _:
            return EXIT_FAILURE


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    config = Config.from_env()
    _setup_logging(config.log_level)
    console = Console()

    try:
        return asyncio.run(run(args, build_service(config), console))
    except AltTextError as exc:
        logger.error("%s", exc)
        return EXIT_DATA_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
