"""Raw and unified record types exchanged between unification phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class SchemaKind(str, Enum):
    """How a source file attributes works and passages to authors."""

    STANDARD = "standard"
    INLINE = "inline"


@dataclass(frozen=True, slots=True)
class SourceFile:
    """One per-source input file and how to read it."""

    path: Path
    source: str
    phase: str | None = None
    schema: SchemaKind = SchemaKind.STANDARD


@dataclass(slots=True)
class RawAuthor:
    """Author entry decoded from a source's author file."""

    id: str | None
    name: str
    birth_year: int | None = None
    death_year: int | None = None
    nationality: str | None = None
    era: str | None = None


@dataclass(slots=True)
class RawWork:
    """Work entry decoded from either work schema."""

    id: str | None
    source_id: str | None
    title: str
    slug: str | None = None
    author_id: str | None = None
    author_names: tuple[str, ...] = ()
    publication_year: int | None = None
    original_language: str | None = None
    translator: str | None = None
    form: str | None = None
    genre: str | None = None
    tradition: str | None = None


@dataclass(slots=True)
class RawChunk:
    """Passage entry decoded from either passage schema."""

    text: str
    id: str | None = None
    work_id: str | None = None
    author_id: str | None = None
    author_names: tuple[str, ...] = ()
    source_id: str | None = None
    chunk_type: str = "passage"
    position_index: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)


def _without_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(slots=True)
class UnifiedAuthor:
    """One deduplicated author, merged across every source that names it."""

    id: str
    name: str
    slug: str
    name_variants: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    source_ids: dict[str, str] = field(default_factory=dict)
    birth_year: int | None = None
    death_year: int | None = None
    nationality: str | None = None
    era: str | None = None
    work_count: int = 0
    chunk_count: int = 0

    def add_source(self, source: str) -> None:
        if source not in self.sources:
            self.sources.append(source)

    def add_variant(self, raw_name: str) -> None:
        if raw_name and raw_name != self.name and raw_name not in self.name_variants:
            self.name_variants.append(raw_name)

    def to_dict(self) -> dict[str, Any]:
        return _without_none(
            {
                "id": self.id,
                "name": self.name,
                "slug": self.slug,
                "name_variants": list(self.name_variants),
                "birth_year": self.birth_year,
                "death_year": self.death_year,
                "nationality": self.nationality,
                "era": self.era,
                "sources": list(self.sources),
                "source_ids": dict(self.source_ids),
                "work_count": self.work_count,
                "chunk_count": self.chunk_count,
            }
        )


@dataclass(slots=True)
class UnifiedWork:
    """One source work attributed to a unified author."""

    id: str
    title: str
    slug: str
    author_id: str
    source: str
    source_id: str
    language: str = "en"
    type: str = "prose"
    year: int | None = None
    original_language: str | None = None
    translator: str | None = None
    genre: str | None = None
    tradition: str | None = None
    ingestion_phase: str | None = None
    full_text_url: str | None = None
    chunk_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return _without_none(
            {
                "id": self.id,
                "title": self.title,
                "slug": self.slug,
                "author_id": self.author_id,
                "year": self.year,
                "language": self.language,
                "original_language": self.original_language,
                "translator": self.translator,
                "type": self.type,
                "genre": self.genre,
                "tradition": self.tradition,
                "source": self.source,
                "source_id": self.source_id,
                "ingestion_phase": self.ingestion_phase,
                "chunk_count": self.chunk_count,
                "full_text_url": self.full_text_url,
            }
        )


@dataclass(slots=True)
class UnifiedChunk:
    """A passage in the combined output; serialized as soon as it is built."""

    id: str
    text: str
    author_id: str
    source: str
    source_chunk_id: str
    work_id: str | None = None
    type: str = "passage"
    position_index: int = 0
    position_chapter: str | None = None
    position_section: str | None = None
    position_paragraph: int | None = None
    position_verse: str | None = None
    position_book: str | None = None
    bible_translation: str | None = None
    bible_book: str | None = None
    bible_chapter: int | None = None
    bible_verse: int | None = None
    char_count: int = 0
    word_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return _without_none(
            {
                "id": self.id,
                "text": self.text,
                "author_id": self.author_id,
                "work_id": self.work_id,
                "type": self.type,
                "position_index": self.position_index,
                "position_chapter": self.position_chapter,
                "position_section": self.position_section,
                "position_paragraph": self.position_paragraph,
                "position_verse": self.position_verse,
                "position_book": self.position_book,
                "source": self.source,
                "source_chunk_id": self.source_chunk_id,
                "bible_translation": self.bible_translation,
                "bible_book": self.bible_book,
                "bible_chapter": self.bible_chapter,
                "bible_verse": self.bible_verse,
                "char_count": self.char_count,
                "word_count": self.word_count,
            }
        )
