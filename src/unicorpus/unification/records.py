"""Boundary decoding of per-source JSON records into strict raw types.

Sources written by different scraper generations disagree on field names
(``content`` vs ``text``, ``sequence`` vs ``chunk_index`` vs ``index``...).
All of that aliasing is resolved here so the phases only ever see
:class:`RawAuthor`, :class:`RawWork` and :class:`RawChunk`.
"""

from __future__ import annotations

from typing import Any, Mapping

from unicorpus.unification.models import RawAuthor, RawChunk, RawWork, SchemaKind

_TEXT_FIELDS = ("content", "text")
_POSITION_FIELDS = ("sequence", "chunk_index", "index", "position")
_TYPE_FIELDS = ("chunk_type", "type")


class RecordDecodeError(ValueError):
    """A single source record could not be decoded."""


def _require_mapping(record: Any) -> Mapping[str, Any]:
    if not isinstance(record, Mapping):
        raise RecordDecodeError(f"Expected JSON object, got {type(record).__name__}")
    return record


def _optional_str(record: Mapping[str, Any], key: str) -> str | None:
    value = record.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise RecordDecodeError(f"Field {key!r} must be a string, got bool")
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    raise RecordDecodeError(f"Field {key!r} must be a string, got {type(value).__name__}")


def coerce_int(value: Any) -> int | None:
    """Best-effort integer conversion for loosely typed numeric fields."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    return None


def _optional_year(record: Mapping[str, Any], key: str) -> int | None:
    value = record.get(key)
    if isinstance(value, (list, dict)):
        raise RecordDecodeError(f"Field {key!r} must be a number, got {type(value).__name__}")
    return coerce_int(value)


def _author_names(record: Mapping[str, Any]) -> tuple[str, ...]:
    value = record.get("authors")
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise RecordDecodeError(f"Field 'authors' must be a list, got {type(value).__name__}")
    return tuple(name for name in value if isinstance(name, str) and name.strip())


def _first_present(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def decode_author(record: Any) -> RawAuthor:
    """Decode one entry of an author file; a missing name stays empty."""

    data = _require_mapping(record)
    name = data.get("name")
    if name is not None and not isinstance(name, str):
        raise RecordDecodeError(f"Field 'name' must be a string, got {type(name).__name__}")

    return RawAuthor(
        id=_optional_str(data, "id"),
        name=name or "",
        birth_year=_optional_year(data, "birth_year"),
        death_year=_optional_year(data, "death_year"),
        nationality=_optional_str(data, "nationality"),
        era=_optional_str(data, "era"),
    )


def _decode_work_common(data: Mapping[str, Any]) -> RawWork:
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        raise RecordDecodeError("Work record has no title")

    raw_id = _optional_str(data, "id")
    source_id = _optional_str(data, "source_id")
    if raw_id is None and source_id is None:
        raise RecordDecodeError("Work record has neither 'id' nor 'source_id'")

    return RawWork(
        id=raw_id or source_id,
        source_id=source_id or raw_id,
        title=title,
        slug=_optional_str(data, "slug"),
        publication_year=_optional_year(data, "publication_year"),
        original_language=_optional_str(data, "original_language"),
        translator=_optional_str(data, "translator"),
        form=_optional_str(data, "form"),
        genre=_optional_str(data, "genre"),
        tradition=_optional_str(data, "tradition"),
    )


def decode_standard_work(record: Any) -> RawWork:
    work = _decode_work_common(_require_mapping(record))
    work.author_id = _optional_str(record, "author_id")
    return work


def decode_inline_work(record: Any) -> RawWork:
    work = _decode_work_common(_require_mapping(record))
    work.author_names = _author_names(record)
    return work


def _decode_chunk_common(data: Mapping[str, Any]) -> RawChunk:
    text = ""
    for key in _TEXT_FIELDS:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise RecordDecodeError(f"Field {key!r} must be a string, got {type(value).__name__}")
        if value:
            text = value
            break

    raw_position = _first_present(data, _POSITION_FIELDS)
    position = coerce_int(raw_position)
    if raw_position is not None and position is None:
        raise RecordDecodeError(f"Position {raw_position!r} is not an integer")

    chunk_type = None
    for key in _TYPE_FIELDS:
        chunk_type = _optional_str(data, key)
        if chunk_type:
            break

    metadata = data.get("source_metadata")
    if metadata is not None and not isinstance(metadata, Mapping):
        raise RecordDecodeError("Field 'source_metadata' must be an object")

    return RawChunk(
        text=text,
        id=_optional_str(data, "id"),
        chunk_type=chunk_type or "passage",
        position_index=position or 0,
        metadata=dict(metadata or {}),
    )


def decode_standard_chunk(record: Any) -> RawChunk:
    chunk = _decode_chunk_common(_require_mapping(record))
    chunk.work_id = _optional_str(record, "work_id")
    chunk.author_id = _optional_str(record, "author_id")
    return chunk


def decode_inline_chunk(record: Any) -> RawChunk:
    chunk = _decode_chunk_common(_require_mapping(record))
    chunk.author_names = _author_names(record)
    chunk.source_id = _optional_str(record, "source_id")
    return chunk


def decode_work(record: Any, schema: SchemaKind) -> RawWork:
    if schema is SchemaKind.INLINE:
        return decode_inline_work(record)
    return decode_standard_work(record)


def decode_chunk(record: Any, schema: SchemaKind) -> RawChunk:
    if schema is SchemaKind.INLINE:
        return decode_inline_chunk(record)
    return decode_standard_chunk(record)
