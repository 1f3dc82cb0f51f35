"""Streaming passage combiner.

Each passage file is parsed incrementally by a producer task and handed
to the consumer through a bounded :class:`asyncio.Queue`. The consumer
resolves attribution against the :class:`ResolutionContext`, builds the
unified record and writes it straight to the output array, so memory
stays proportional to the queue size rather than to the corpus.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
import logging
from pathlib import Path
import time
from typing import Any, Iterable, Mapping
import uuid

import ijson

from unicorpus.config import DEFAULT_MIN_TEXT_LENGTH, DEFAULT_PROGRESS_INTERVAL, DEFAULT_QUEUE_SIZE
from unicorpus.unification.authors import AuthorResolver
from unicorpus.unification.context import ResolutionContext
from unicorpus.unification.models import RawChunk, SchemaKind, SourceFile, UnifiedChunk
from unicorpus.unification.records import RecordDecodeError, coerce_int, decode_chunk
from unicorpus.unification.streaming import JsonArrayWriter, iter_json_array
from unicorpus.unification.works import SCRIPTURE_SOURCES

LOGGER = logging.getLogger(__name__)

_END_OF_FILE = object()

# Faults confined to one input file: unreadable, undecodable or not a JSON array.
_INPUT_ERRORS = (ijson.JSONError, OSError, ValueError)


@dataclass(frozen=True, slots=True)
class _StreamFault:
    """Carries a read or parse failure from the producer to the consumer."""

    error: Exception


@dataclass(slots=True)
class FileReport:
    path: str
    source: str
    status: str = "ok"
    read: int = 0
    emitted: int = 0
    too_short: int = 0
    unresolved: int = 0
    malformed: int = 0
    error: str | None = None

    @property
    def dropped(self) -> int:
        return self.too_short + self.unresolved + self.malformed

    def to_dict(self) -> dict[str, str | int | None]:
        return {
            "path": self.path,
            "source": self.source,
            "status": self.status,
            "read": self.read,
            "emitted": self.emitted,
            "too_short": self.too_short,
            "unresolved": self.unresolved,
            "malformed": self.malformed,
            "error": self.error,
        }


@dataclass(slots=True)
class CombineReport:
    files: list[FileReport] = field(default_factory=list)

    @property
    def records_read(self) -> int:
        return sum(report.read for report in self.files)

    @property
    def emitted(self) -> int:
        return sum(report.emitted for report in self.files)

    @property
    def too_short(self) -> int:
        return sum(report.too_short for report in self.files)

    @property
    def unresolved(self) -> int:
        return sum(report.unresolved for report in self.files)

    @property
    def malformed(self) -> int:
        return sum(report.malformed for report in self.files)

    @property
    def error_files(self) -> list[str]:
        return [report.path for report in self.files if report.status != "ok"]


def _as_text(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _apply_source_metadata(chunk: UnifiedChunk, metadata: Mapping[str, Any], source: str) -> None:
    if metadata.get("chapter"):
        chunk.position_chapter = _as_text(metadata["chapter"])
    if metadata.get("section"):
        chunk.position_section = _as_text(metadata["section"])
    if metadata.get("book"):
        chunk.position_book = _as_text(metadata["book"])
    if metadata.get("verse"):
        chunk.position_verse = _as_text(metadata["verse"])
    if metadata.get("paragraph"):
        chunk.position_paragraph = coerce_int(metadata["paragraph"])

    if source in SCRIPTURE_SOURCES:
        if metadata.get("translation"):
            chunk.bible_translation = _as_text(metadata["translation"])
        if metadata.get("book"):
            chunk.bible_book = _as_text(metadata["book"])
        if metadata.get("chapter"):
            chunk.bible_chapter = coerce_int(metadata["chapter"])
        if metadata.get("verse"):
            chunk.bible_verse = coerce_int(metadata["verse"])


class PassageCombiner:
    """Stream every passage file into one unified ``chunks.json`` array."""

    def __init__(
        self,
        context: ResolutionContext,
        resolver: AuthorResolver,
        writer: JsonArrayWriter,
        *,
        min_text_length: int = DEFAULT_MIN_TEXT_LENGTH,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
    ) -> None:
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        if progress_interval < 1:
            raise ValueError("progress_interval must be >= 1")
        self._context = context
        self._resolver = resolver
        self._writer = writer
        self._min_text_length = min_text_length
        self._queue_size = queue_size
        self._progress_interval = progress_interval
        self._started = time.perf_counter()

    async def combine(self, files: Iterable[SourceFile]) -> CombineReport:
        """Process passage files strictly in the given order."""

        self._started = time.perf_counter()
        report = CombineReport()
        for source_file in files:
            report.files.append(await self._combine_file(source_file))

        LOGGER.info(
            "Passages written: %d (read %d, too short %d, unresolved %d, malformed %d)",
            report.emitted,
            report.records_read,
            report.too_short,
            report.unresolved,
            report.malformed,
        )
        if report.error_files:
            LOGGER.warning("Passage files with errors: %s", ", ".join(report.error_files))
        return report

    async def _combine_file(self, source_file: SourceFile) -> FileReport:
        path = Path(source_file.path)
        report = FileReport(path=str(path), source=source_file.source)
        self._context.source_counts(source_file.source)

        if not path.is_file():
            LOGGER.warning("Skipping missing passage file: %s", path)
            report.status = "missing"
            return report

        try:
            size_mb = path.stat().st_size / 1024 / 1024
        except OSError as exc:
            self._abandon_file(report, exc)
            return report
        LOGGER.info("Processing %s (%.1f MB, %s schema)", path, size_mb, source_file.schema.value)

        queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=self._queue_size)
        producer = asyncio.create_task(self._produce(path, queue))
        try:
            while True:
                item = await queue.get()
                if item is _END_OF_FILE:
                    break
                if isinstance(item, _StreamFault):
                    if not isinstance(item.error, _INPUT_ERRORS):
                        raise item.error
                    self._abandon_file(report, item.error)
                    break
                report.read += 1
                self._consume(item, source_file, report)
            await producer
        finally:
            if not producer.done():
                producer.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await producer

        LOGGER.info("Completed %s: %d passages (%d dropped)", path, report.emitted, report.dropped)
        return report

    def _abandon_file(self, report: FileReport, error: Exception) -> None:
        report.status = "error"
        report.error = str(error)
        LOGGER.warning(
            "Cannot read %s after %d records, abandoning rest of file: %s",
            report.path,
            report.read,
            error,
        )

    async def _produce(self, path: Path, queue: asyncio.Queue[Any]) -> None:
        try:
            async for item in iter_json_array(path):
                await queue.put(item)
        except Exception as exc:
            await queue.put(_StreamFault(exc))
            return
        await queue.put(_END_OF_FILE)

    def _consume(self, item: Any, source_file: SourceFile, report: FileReport) -> None:
        try:
            raw = decode_chunk(item, source_file.schema)
        except RecordDecodeError as exc:
            report.malformed += 1
            LOGGER.warning("Skipping malformed passage #%d in %s: %s", report.read - 1, report.path, exc)
            return

        if len(raw.text) < self._min_text_length:
            report.too_short += 1
            return

        author_id, work_id = self._resolve(raw, source_file)
        if author_id is None:
            report.unresolved += 1
            LOGGER.debug("Dropping passage %r from %s: author unresolved", raw.id, source_file.source)
            return

        chunk = UnifiedChunk(
            id=str(uuid.uuid4()),
            text=raw.text,
            author_id=author_id,
            work_id=work_id,
            type=raw.chunk_type,
            position_index=raw.position_index,
            source=source_file.source,
            source_chunk_id=raw.id or f"{source_file.source}-{report.emitted}",
            char_count=len(raw.text),
            word_count=len(raw.text.split()),
        )
        _apply_source_metadata(chunk, raw.metadata, source_file.source)

        self._writer.write(chunk.to_dict())
        report.emitted += 1
        self._context.record_chunk(
            source=source_file.source,
            author_id=author_id,
            work_id=work_id,
            chunk_type=chunk.type,
        )

        if self._writer.count % self._progress_interval == 0:
            elapsed_minutes = (time.perf_counter() - self._started) / 60
            LOGGER.info("Processed %d passages (%.1f min elapsed)", self._writer.count, elapsed_minutes)

    def _resolve(self, raw: RawChunk, source_file: SourceFile) -> tuple[str | None, str | None]:
        source = source_file.source
        if source_file.schema is SchemaKind.INLINE:
            author_id = None
            if raw.author_names:
                # Inline sources ship no author file, so new authors can appear here.
                author_id = self._resolver.resolve_or_create(raw.author_names[0], source)
            work_id = self._context.lookup_work_by_source_id(source, raw.source_id)
            return author_id, work_id

        work_id = self._context.lookup_work(source, raw.work_id)
        author_id = self._context.lookup_source_author(source, raw.author_id)
        if author_id is None and work_id is not None:
            author_id = self._context.work_authors.get(work_id)
        return author_id, work_id
