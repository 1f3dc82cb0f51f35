"""CLI entrypoint for a full corpus unification run."""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

from unicorpus.config import UnifySettings
from unicorpus.unification.manifest import load_manifest
from unicorpus.unification.pipeline import UnificationError, UnificationRun

LOGGER = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Combine per-source authors, works and passages")
    parser.add_argument("--data-dir", help="Root directory of per-source input files")
    parser.add_argument("--output-dir", help="Directory receiving authors/works/chunks/stats output")
    parser.add_argument("--manifest", help="JSON manifest listing input files (defaults to the built-in layout)")
    parser.add_argument("--min-text-length", type=int, help="Drop passages shorter than this many characters")
    parser.add_argument("--queue-size", type=int, help="Bounded queue capacity between parser and writer")
    parser.add_argument("--verbose", action="store_true", help="Log dropped records at DEBUG level")
    return parser


def _apply_overrides(settings: UnifySettings, args: argparse.Namespace) -> UnifySettings:
    overrides: dict[str, object] = {}
    if args.data_dir:
        overrides["data_dir"] = Path(args.data_dir)
    if args.output_dir:
        overrides["output_dir"] = Path(args.output_dir)
    if args.min_text_length is not None:
        if args.min_text_length < 0:
            raise ValueError("--min-text-length must be >= 0")
        overrides["min_text_length"] = args.min_text_length
    if args.queue_size is not None:
        if args.queue_size < 1:
            raise ValueError("--queue-size must be >= 1")
        overrides["queue_size"] = args.queue_size
    return replace(settings, **overrides) if overrides else settings


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )
    load_dotenv()

    try:
        settings = _apply_overrides(UnifySettings.from_env(), args)
        manifest = load_manifest(args.manifest) if args.manifest else None
    except (ValueError, OSError) as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 1

    LOGGER.info("Combining data from %s into %s", settings.data_dir, settings.output_dir)
    try:
        summary = UnificationRun.from_settings(settings, manifest).run()
    except UnificationError:
        LOGGER.exception("Unification run aborted")
        return 1

    print(json.dumps(summary.to_dict(), ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
