"""Command line entrypoint for build-time query extraction."""

from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict
from pathlib import Path

from groq_extract.cache import CacheWriteError
from groq_extract.config import BUILD_MODES, CliOverrides, load_effective_config
from groq_extract.controller import EVENTS_FILE_NAME, create_controller
from groq_extract.engine import Dataset, load_dataset, load_engine
from groq_extract.logging import JsonlEventLog, configure_logging
from groq_extract.pages import InMemoryPageRegistry, load_pages


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for extraction commands."""
    parser = argparse.ArgumentParser(prog="groq-extract")
    parser.add_argument("command", choices=("build", "watch", "events"))
    parser.add_argument("--root", required=False, default=".")
    parser.add_argument("--mode", choices=BUILD_MODES, required=False, default=None)
    parser.add_argument("--cache-dir", required=False, default=None)
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--fragments-dir", required=False, default=None)
    parser.add_argument("--poll-interval", type=float, required=False, default=None)
    parser.add_argument(
        "--engine", required=False, default=None, help="Query engine as module:attribute."
    )
    parser.add_argument("--dataset", required=False, default=None)
    parser.add_argument("--pages", required=False, default=None)
    parser.add_argument("--since", required=False, default=None)
    parser.add_argument("--limit", type=int, required=False, default=50)
    parser.add_argument("--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run a full extraction, optionally followed by watching for changes."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)

    root = Path(args.root).resolve()
    overrides = CliOverrides(
        mode=args.mode,
        cache_dir=Path(args.cache_dir).resolve() if args.cache_dir is not None else None,
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        fragments_dir=Path(args.fragments_dir) if args.fragments_dir is not None else None,
        poll_interval=args.poll_interval,
    )
    if args.command == "events":
        config = load_effective_config(root, overrides=overrides)
        events = JsonlEventLog(config.data_dir / EVENTS_FILE_NAME)
        for entry in events.read(since=args.since, limit=args.limit):
            print(json.dumps(entry, sort_keys=True))
        return 0
    if args.engine is None:
        parser.error(f"--engine is required for '{args.command}'")

    engine = load_engine(args.engine)
    dataset_path = Path(args.dataset).resolve() if args.dataset is not None else None

    def current_dataset() -> Dataset:
        if dataset_path is None:
            return []
        return load_dataset(dataset_path)

    pages = load_pages(Path(args.pages), root) if args.pages is not None else []
    registry = InMemoryPageRegistry(pages)
    controller = create_controller(
        root=root,
        engine=engine,
        dataset=current_dataset,
        registry=registry,
        overrides=overrides,
    )

    async def run() -> None:
        summary = await controller.extract_all()
        payload = {
            "command": "build",
            "config": controller.config.to_public_dict(),
            **asdict(summary),
        }
        print(json.dumps(payload, sort_keys=True))
        for page in pages:
            await controller.on_create_page(page)
        if args.command == "watch":
            await controller.watch()

    try:
        asyncio.run(run())
    except CacheWriteError as exc:
        parser.exit(status=1, message=f"{exc}\n")
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
