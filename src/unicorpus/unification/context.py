"""Per-run resolution state threaded through every unification phase."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from unicorpus.unification.models import UnifiedAuthor, UnifiedWork


@dataclass(slots=True)
class SourceCounts:
    authors: int = 0
    works: int = 0
    chunks: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"authors": self.authors, "works": self.works, "chunks": self.chunks}


def _source_key(source: str, raw_id: str) -> tuple[str, str]:
    return (source, raw_id)


@dataclass(slots=True)
class ResolutionContext:
    """Author/work indices and passage counters for a single batch run.

    Built once per run and discarded afterwards. Phases mutate it in a
    fixed order from a single task, so it carries no locking.
    """

    authors_by_slug: dict[str, UnifiedAuthor] = field(default_factory=dict)
    author_ids_by_source: dict[tuple[str, str], str] = field(default_factory=dict)
    author_ids_by_name: dict[str, str] = field(default_factory=dict)

    works_by_id: dict[str, UnifiedWork] = field(default_factory=dict)
    work_ids_by_source: dict[tuple[str, str], str] = field(default_factory=dict)
    work_ids_by_source_id: dict[tuple[str, str], str] = field(default_factory=dict)
    work_authors: dict[str, str] = field(default_factory=dict)

    work_chunk_counts: Counter[str] = field(default_factory=Counter)
    author_chunk_counts: Counter[str] = field(default_factory=Counter)
    type_counts: Counter[str] = field(default_factory=Counter)
    by_source: dict[str, SourceCounts] = field(default_factory=dict)

    @property
    def authors(self) -> list[UnifiedAuthor]:
        return list(self.authors_by_slug.values())

    @property
    def works(self) -> list[UnifiedWork]:
        return list(self.works_by_id.values())

    def source_counts(self, source: str) -> SourceCounts:
        counts = self.by_source.get(source)
        if counts is None:
            counts = SourceCounts()
            self.by_source[source] = counts
        return counts

    def author_by_id(self, author_id: str) -> UnifiedAuthor | None:
        if not author_id.startswith("author-"):
            return None
        return self.authors_by_slug.get(author_id[len("author-") :])

    def map_source_author(self, source: str, raw_id: str, author_id: str) -> None:
        self.author_ids_by_source[_source_key(source, raw_id)] = author_id

    def lookup_source_author(self, source: str, raw_id: str | None) -> str | None:
        if raw_id is None:
            return None
        return self.author_ids_by_source.get(_source_key(source, raw_id))

    def lookup_author_name(self, name: str) -> str | None:
        return self.author_ids_by_name.get(name.lower())

    def add_work(self, work: UnifiedWork, *, raw_id: str | None) -> UnifiedWork:
        """Register a work; a repeated unified id keeps the first entry."""

        kept = self.works_by_id.setdefault(work.id, work)
        if raw_id is not None:
            self.work_ids_by_source[_source_key(work.source, raw_id)] = kept.id
        self.work_ids_by_source_id[_source_key(work.source, work.source_id)] = kept.id
        self.work_authors[kept.id] = kept.author_id
        return kept

    def lookup_work(self, source: str, raw_id: str | None) -> str | None:
        if raw_id is None:
            return None
        return self.work_ids_by_source.get(_source_key(source, raw_id))

    def lookup_work_by_source_id(self, source: str, source_id: str | None) -> str | None:
        if source_id is None:
            return None
        return self.work_ids_by_source_id.get(_source_key(source, source_id))

    def record_chunk(self, *, source: str, author_id: str, work_id: str | None, chunk_type: str) -> None:
        if work_id is not None:
            self.work_chunk_counts[work_id] += 1
        self.author_chunk_counts[author_id] += 1
        self.type_counts[chunk_type] += 1
        self.source_counts(source).chunks += 1
