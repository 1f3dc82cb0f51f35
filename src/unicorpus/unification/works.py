"""Work assembly: attach every source work to a unified author."""

from __future__ import annotations

import logging
from typing import Any, Iterable
from urllib.parse import quote

from unicorpus.unification.authors import AuthorResolver
from unicorpus.unification.context import ResolutionContext
from unicorpus.unification.models import RawWork, SchemaKind, UnifiedWork
from unicorpus.unification.normalization import create_slug
from unicorpus.unification.records import RecordDecodeError, decode_work

LOGGER = logging.getLogger(__name__)

SCRIPTURE_SOURCES = frozenset({"bible", "bibletranslations"})


def full_text_url(source: str, source_id: str, slug: str | None = None) -> str | None:
    """Derive the canonical reading URL for a work, if its source has one."""

    if source == "gutenberg":
        return f"https://www.gutenberg.org/ebooks/{source_id}"
    if source == "standardebooks":
        return f"https://standardebooks.org/ebooks/{slug or source_id}"
    if source in SCRIPTURE_SOURCES:
        return f"https://www.biblegateway.com/passage/?search={quote(source_id, safe='')}"
    if source == "perseus":
        return f"https://www.perseus.tufts.edu/hopper/text?doc={source_id}"
    if source == "ccel":
        return f"https://www.ccel.org/{source_id}"
    if source == "sacredtexts":
        return f"https://www.sacred-texts.com/{source_id}"
    return None


class WorkAssembler:
    """Builds :class:`UnifiedWork` entries and the work lookup indices."""

    def __init__(self, context: ResolutionContext, resolver: AuthorResolver) -> None:
        self._context = context
        self._resolver = resolver

    def _resolve_author(self, work: RawWork, source: str, schema: SchemaKind) -> str | None:
        if schema is SchemaKind.INLINE:
            if not work.author_names:
                return None
            return self._resolver.resolve_or_create(work.author_names[0], source)
        return self._context.lookup_source_author(source, work.author_id)

    def assemble(
        self,
        work: RawWork,
        source: str,
        *,
        phase: str | None = None,
        schema: SchemaKind = SchemaKind.STANDARD,
    ) -> UnifiedWork | None:
        """Assemble one decoded work, or return ``None`` when it has no author."""

        author_id = self._resolve_author(work, source, schema)
        if author_id is None:
            return None

        # decode guarantees at least one of the two identifiers
        source_id = work.source_id or work.id or ""
        slug = work.slug or create_slug(work.title)
        unified = UnifiedWork(
            id=f"work-{slug}-{source}-{source_id}",
            title=work.title,
            slug=slug,
            author_id=author_id,
            source=source,
            source_id=source_id,
            language=work.original_language or "en",
            type=work.form or "prose",
            year=work.publication_year,
            original_language=work.original_language,
            translator=work.translator,
            genre=work.genre,
            tradition=work.tradition,
            ingestion_phase=phase,
            full_text_url=full_text_url(source, source_id, slug),
        )
        kept = self._context.add_work(unified, raw_id=work.id)
        if kept is unified:
            self._context.source_counts(source).works += 1
        return kept

    def ingest_work_file(
        self,
        records: Iterable[Any],
        source: str,
        phase: str | None = None,
        schema: SchemaKind = SchemaKind.STANDARD,
    ) -> tuple[int, int]:
        """Assemble one work file; returns ``(skipped_without_author, malformed)``."""

        skipped = 0
        malformed = 0
        for position, record in enumerate(records):
            try:
                raw = decode_work(record, schema)
            except RecordDecodeError as exc:
                malformed += 1
                LOGGER.warning("Skipping malformed work #%d from %s: %s", position, source, exc)
                continue

            if self.assemble(raw, source, phase=phase, schema=schema) is None:
                skipped += 1
                LOGGER.debug("Dropping work %r from %s: author unresolved", raw.title, source)
        return skipped, malformed
