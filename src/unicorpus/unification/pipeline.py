"""Batch orchestration: authors, works, streamed passages, reconciliation."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from pathlib import Path
import time
from typing import Any

from unicorpus.config import (
    DEFAULT_MIN_TEXT_LENGTH,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_QUEUE_SIZE,
    DEFAULT_TOP_AUTHORS,
    UnifySettings,
)
from unicorpus.unification.authors import AuthorResolver
from unicorpus.unification.combiner import CombineReport, PassageCombiner
from unicorpus.unification.context import ResolutionContext
from unicorpus.unification.manifest import DEFAULT_MANIFEST, SourceManifest
from unicorpus.unification.models import SourceFile
from unicorpus.unification.reconcile import build_stats, reconcile_counts, render_done_marker
from unicorpus.unification.streaming import JsonArrayWriter, load_json_array, write_json
from unicorpus.unification.works import WorkAssembler

LOGGER = logging.getLogger(__name__)

AUTHORS_FILE = "authors.json"
WORKS_FILE = "works.json"
CHUNKS_FILE = "chunks.json"
STATS_FILE = "stats.json"
DONE_FILE = "DONE.txt"


@dataclass(slots=True)
class UnificationError(Exception):
    """Fatal resource fault that aborts the whole run."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path})"


@dataclass(slots=True)
class RunSummary:
    output_dir: Path
    stats: dict[str, Any]
    duration_seconds: float
    works_without_author: int = 0
    malformed_authors: int = 0
    malformed_works: int = 0
    chunk_files: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "output_dir": str(self.output_dir),
            "total_authors": self.stats["total_authors"],
            "total_works": self.stats["total_works"],
            "total_chunks": self.stats["total_chunks"],
            "records_read": self.stats["records_read"],
            "dropped": self.stats["dropped"],
            "works_without_author": self.works_without_author,
            "malformed_authors": self.malformed_authors,
            "malformed_works": self.malformed_works,
            "error_files": self.stats["error_files"],
            "duration_seconds": round(self.duration_seconds, 3),
            "chunk_files": self.chunk_files,
        }


class UnificationRun:
    """One full batch rebuild of the combined dataset.

    Every call to :meth:`run` starts from a fresh :class:`ResolutionContext`
    and fully replaces the previous output files.
    """

    def __init__(
        self,
        manifest: SourceManifest,
        output_dir: str | Path,
        *,
        min_text_length: int = DEFAULT_MIN_TEXT_LENGTH,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
        top_authors: int = DEFAULT_TOP_AUTHORS,
    ) -> None:
        self._manifest = manifest
        self._output_dir = Path(output_dir)
        self._min_text_length = min_text_length
        self._queue_size = queue_size
        self._progress_interval = progress_interval
        self._top_authors = top_authors

    @classmethod
    def from_settings(cls, settings: UnifySettings, manifest: SourceManifest | None = None) -> "UnificationRun":
        resolved = (manifest or DEFAULT_MANIFEST).resolve(settings.data_dir)
        return cls(
            resolved,
            settings.output_dir,
            min_text_length=settings.min_text_length,
            queue_size=settings.queue_size,
            progress_interval=settings.progress_interval,
            top_authors=settings.top_authors,
        )

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def run(self) -> RunSummary:
        return asyncio.run(self.run_async())

    async def run_async(self) -> RunSummary:
        started = time.perf_counter()
        context = ResolutionContext()
        resolver = AuthorResolver(context)
        assembler = WorkAssembler(context, resolver)
        error_files: list[str] = []

        self._prepare_output_dir()

        LOGGER.info("Phase 1: combining authors")
        malformed_authors = 0
        for entry in self._manifest.authors:
            records = self._load_records(entry, error_files)
            context.source_counts(entry.source)
            malformed_authors += resolver.ingest_author_file(records, entry.source)
        LOGGER.info("Unique authors after phase 1: %d", len(context.authors_by_slug))

        LOGGER.info("Phase 2: combining works")
        works_without_author = 0
        malformed_works = 0
        for entry in self._manifest.works:
            records = self._load_records(entry, error_files)
            context.source_counts(entry.source)
            skipped, malformed = assembler.ingest_work_file(records, entry.source, entry.phase, entry.schema)
            works_without_author += skipped
            malformed_works += malformed
        LOGGER.info("Works assembled: %d (%d without author)", len(context.works_by_id), works_without_author)

        LOGGER.info("Phase 3: streaming passages")
        report = await self._stream_chunks(context, resolver)
        error_files.extend(report.error_files)

        LOGGER.info("Phase 4: reconciling counts")
        reconcile_counts(context)
        authors_path = self._output_path(AUTHORS_FILE)
        works_path = self._output_path(WORKS_FILE)
        self._write(authors_path, [author.to_dict() for author in context.authors_by_slug.values()])
        self._write(works_path, [work.to_dict() for work in context.works_by_id.values()])

        LOGGER.info("Phase 5: writing stats")
        finished_at = datetime.now(timezone.utc)
        stats = build_stats(
            context,
            report,
            authors_path=authors_path,
            works_path=works_path,
            chunks_path=self._output_path(CHUNKS_FILE),
            generated_at=finished_at,
            top_n=self._top_authors,
            error_files=error_files,
        )
        self._write(self._output_path(STATS_FILE), stats)

        duration = time.perf_counter() - started
        marker = render_done_marker(stats, finished_at=finished_at, duration_seconds=duration)
        done_path = self._output_path(DONE_FILE)
        try:
            done_path.write_text(marker, encoding="utf-8")
        except OSError as exc:
            raise UnificationError(done_path, f"Failed to write completion marker: {exc}") from exc

        LOGGER.info(
            "Combination complete: %d authors, %d works, %d chunks in %.1f min",
            stats["total_authors"],
            stats["total_works"],
            stats["total_chunks"],
            duration / 60,
        )
        return RunSummary(
            output_dir=self._output_dir,
            stats=stats,
            duration_seconds=duration,
            works_without_author=works_without_author,
            malformed_authors=malformed_authors,
            malformed_works=malformed_works,
            chunk_files=[file_report.to_dict() for file_report in report.files],
        )

    def _output_path(self, name: str) -> Path:
        return self._output_dir / name

    def _prepare_output_dir(self) -> None:
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            # A marker left by an earlier run must not vouch for this one.
            self._output_path(DONE_FILE).unlink(missing_ok=True)
        except OSError as exc:
            raise UnificationError(self._output_dir, f"Cannot prepare output directory: {exc}") from exc

    def _write(self, path: Path, payload: Any) -> None:
        try:
            write_json(path, payload)
        except OSError as exc:
            raise UnificationError(path, f"Failed to write output: {exc}") from exc
        LOGGER.info("Written %s", path)

    def _load_records(self, entry: SourceFile, error_files: list[str]) -> list[Any]:
        if not entry.path.is_file():
            LOGGER.warning("File not found, skipping: %s", entry.path)
            return []
        try:
            records = load_json_array(entry.path)
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError is a ValueError
            LOGGER.warning("Error loading %s: %s", entry.path, exc)
            error_files.append(str(entry.path))
            return []
        LOGGER.info("Loaded %s: %d records", entry.path, len(records))
        return records

    async def _stream_chunks(self, context: ResolutionContext, resolver: AuthorResolver) -> CombineReport:
        chunks_path = self._output_path(CHUNKS_FILE)
        try:
            with JsonArrayWriter(chunks_path) as writer:
                combiner = PassageCombiner(
                    context,
                    resolver,
                    writer,
                    min_text_length=self._min_text_length,
                    queue_size=self._queue_size,
                    progress_interval=self._progress_interval,
                )
                return await combiner.combine(self._manifest.chunks)
        except OSError as exc:
            raise UnificationError(chunks_path, f"Passage stream failed: {exc}") from exc

