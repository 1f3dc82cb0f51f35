"""CLI entrypoint checking a combined output directory for orphan references."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

import ijson

from unicorpus.unification.verify import DEFAULT_SAMPLE_LIMIT, verify_output

LOGGER = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Verify chunk references in combined output")
    parser.add_argument("--output-dir", default="data/combined", help="Directory holding authors/works/chunks JSON")
    parser.add_argument("--samples", type=int, default=DEFAULT_SAMPLE_LIMIT, help="Max offending chunk ids to list")
    args = parser.parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    try:
        report = asyncio.run(verify_output(args.output_dir, sample_limit=args.samples))
    except (OSError, ValueError, ijson.JSONError) as exc:
        LOGGER.error("Cannot verify %s: %s", args.output_dir, exc)
        return 1

    print(json.dumps(report.to_dict(), ensure_ascii=True, indent=2))
    return 0 if report.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
