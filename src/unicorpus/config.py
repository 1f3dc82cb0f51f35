"""Runtime configuration for unification runs."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping

DEFAULT_DATA_DIR = "data"
DEFAULT_OUTPUT_DIR = "data/combined"
DEFAULT_MIN_TEXT_LENGTH = 10
DEFAULT_QUEUE_SIZE = 256
DEFAULT_PROGRESS_INTERVAL = 100_000
DEFAULT_TOP_AUTHORS = 20


def _parse_int(*, name: str, raw_value: str, minimum: int) -> int:
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw_value!r}") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


@dataclass(frozen=True, slots=True)
class UnifySettings:
    """Validated settings for one batch unification run."""

    data_dir: Path = Path(DEFAULT_DATA_DIR)
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    min_text_length: int = DEFAULT_MIN_TEXT_LENGTH
    queue_size: int = DEFAULT_QUEUE_SIZE
    progress_interval: int = DEFAULT_PROGRESS_INTERVAL
    top_authors: int = DEFAULT_TOP_AUTHORS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "UnifySettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        data_dir_raw = source.get("UNICORPUS_DATA_DIR", DEFAULT_DATA_DIR).strip()
        if not data_dir_raw:
            raise ValueError("UNICORPUS_DATA_DIR cannot be empty")

        output_dir_raw = source.get("UNICORPUS_OUTPUT_DIR", DEFAULT_OUTPUT_DIR).strip()
        if not output_dir_raw:
            raise ValueError("UNICORPUS_OUTPUT_DIR cannot be empty")

        min_text_length = _parse_int(
            name="UNICORPUS_MIN_TEXT_LENGTH",
            raw_value=source.get("UNICORPUS_MIN_TEXT_LENGTH", str(DEFAULT_MIN_TEXT_LENGTH)).strip(),
            minimum=0,
        )
        queue_size = _parse_int(
            name="UNICORPUS_QUEUE_SIZE",
            raw_value=source.get("UNICORPUS_QUEUE_SIZE", str(DEFAULT_QUEUE_SIZE)).strip(),
            minimum=1,
        )
        progress_interval = _parse_int(
            name="UNICORPUS_PROGRESS_INTERVAL",
            raw_value=source.get("UNICORPUS_PROGRESS_INTERVAL", str(DEFAULT_PROGRESS_INTERVAL)).strip(),
            minimum=1,
        )
        top_authors = _parse_int(
            name="UNICORPUS_TOP_AUTHORS",
            raw_value=source.get("UNICORPUS_TOP_AUTHORS", str(DEFAULT_TOP_AUTHORS)).strip(),
            minimum=1,
        )

        return cls(
            data_dir=Path(data_dir_raw),
            output_dir=Path(output_dir_raw),
            min_text_length=min_text_length,
            queue_size=queue_size,
            progress_interval=progress_interval,
            top_authors=top_authors,
        )

