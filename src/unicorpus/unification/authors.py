"""Author resolution: merge per-source authors into slug-keyed entities."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from unicorpus.unification.context import ResolutionContext
from unicorpus.unification.models import RawAuthor, UnifiedAuthor
from unicorpus.unification.normalization import create_slug, normalize_author_name
from unicorpus.unification.records import RecordDecodeError, decode_author

LOGGER = logging.getLogger(__name__)


class AuthorResolver:
    """Merges author records into one :class:`UnifiedAuthor` per slug."""

    def __init__(self, context: ResolutionContext) -> None:
        self._context = context

    def _create(self, raw_name: str, canonical: str, slug: str, source: str) -> UnifiedAuthor:
        author = UnifiedAuthor(
            id=f"author-{slug}",
            name=canonical,
            slug=slug,
            name_variants=[raw_name] if raw_name and raw_name != canonical else [],
            sources=[source],
        )
        self._context.authors_by_slug[slug] = author
        self._context.author_ids_by_name.setdefault(canonical.lower(), author.id)
        if raw_name:
            self._context.author_ids_by_name.setdefault(raw_name.lower(), author.id)
        return author

    def _merge(self, raw_name: str, source: str) -> tuple[UnifiedAuthor, bool]:
        existing = None
        known_id = self._context.lookup_author_name(raw_name) if raw_name else None
        if known_id is not None:
            existing = self._context.author_by_id(known_id)

        if existing is None:
            canonical = normalize_author_name(raw_name)
            slug = create_slug(canonical)
            existing = self._context.authors_by_slug.get(slug)
            if existing is None:
                return self._create(raw_name, canonical, slug, source), True

        existing.add_source(source)
        existing.add_variant(raw_name)
        return existing, False

    def resolve_or_create(self, raw_name: str, source: str) -> str:
        """Return the unified id for a raw name, creating the author if needed."""

        author, _ = self._merge(raw_name, source)
        return author.id

    def ingest_author(self, record: RawAuthor, source: str) -> UnifiedAuthor:
        author, created = self._merge(record.name, source)
        if created:
            self._context.source_counts(source).authors += 1

        # First non-null value wins across sources.
        if author.birth_year is None:
            author.birth_year = record.birth_year
        if author.death_year is None:
            author.death_year = record.death_year
        if author.nationality is None:
            author.nationality = record.nationality
        if author.era is None:
            author.era = record.era

        if record.id is not None:
            author.source_ids[source] = record.id
            self._context.map_source_author(source, record.id, author.id)
        return author

    def ingest_author_file(self, records: Iterable[Any], source: str) -> int:
        """Fold every decodable record of one author file into the context.

        Returns the number of records skipped as malformed.
        """

        malformed = 0
        for position, record in enumerate(records):
            try:
                raw = decode_author(record)
            except RecordDecodeError as exc:
                malformed += 1
                LOGGER.warning("Skipping malformed author #%d from %s: %s", position, source, exc)
                continue
            self.ingest_author(raw, source)
        return malformed
