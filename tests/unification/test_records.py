from __future__ import annotations

import pytest

from unicorpus.unification.models import SchemaKind
from unicorpus.unification.records import (
    RecordDecodeError,
    coerce_int,
    decode_author,
    decode_chunk,
    decode_inline_chunk,
    decode_inline_work,
    decode_standard_chunk,
    decode_standard_work,
)


def test_standard_chunk_resolves_legacy_aliases() -> None:
    chunk = decode_standard_chunk(
        {"id": 5, "content": "", "text": "Hello there, world.", "work_id": 7, "chunk_index": 3}
    )

    assert chunk.id == "5"
    assert chunk.text == "Hello there, world."
    assert chunk.work_id == "7"
    assert chunk.author_id is None
    assert chunk.position_index == 3
    assert chunk.chunk_type == "passage"
    assert chunk.metadata == {}


def test_content_field_wins_over_text_when_both_present() -> None:
    chunk = decode_standard_chunk({"content": "From content.", "text": "From text."})

    assert chunk.text == "From content."


def test_position_uses_first_present_alias_even_when_zero() -> None:
    chunk = decode_standard_chunk({"text": "Some passage text", "sequence": 0, "index": 4})

    assert chunk.position_index == 0


def test_chunk_type_accepts_either_field_name() -> None:
    assert decode_standard_chunk({"text": "x" * 12, "chunk_type": "verse"}).chunk_type == "verse"
    assert decode_standard_chunk({"text": "x" * 12, "type": "quote"}).chunk_type == "quote"


def test_inline_chunk_reads_author_names_and_source_id() -> None:
    chunk = decode_inline_chunk({"text": "Know thyself.", "authors": ["Socrates", "", 3], "source_id": 9})

    assert chunk.author_names == ("Socrates",)
    assert chunk.source_id == "9"
    assert chunk.work_id is None


def test_inline_chunk_accepts_single_author_string() -> None:
    chunk = decode_chunk({"text": "Know thyself.", "authors": "Socrates"}, SchemaKind.INLINE)

    assert chunk.author_names == ("Socrates",)


@pytest.mark.parametrize(
    "record",
    [
        "not an object",
        ["list"],
        {"text": 42},
        {"text": "Valid text here", "source_metadata": ["chapter"]},
        {"text": "Valid text here", "sequence": "first"},
        {"text": "Valid text here", "work_id": {"nested": True}},
    ],
)
def test_malformed_chunks_raise_decode_error(record: object) -> None:
    with pytest.raises(RecordDecodeError):
        decode_standard_chunk(record)


def test_author_without_name_keeps_empty_name() -> None:
    author = decode_author({"id": 12, "birth_year": "1828", "death_year": 1910.0})

    assert author.id == "12"
    assert author.name == ""
    assert author.birth_year == 1828
    assert author.death_year == 1910


def test_author_with_non_string_name_is_malformed() -> None:
    with pytest.raises(RecordDecodeError):
        decode_author({"id": "a1", "name": ["Twain"]})


def test_standard_work_falls_back_between_id_and_source_id() -> None:
    only_source = decode_standard_work({"title": "Tom Sawyer", "source_id": 74, "author_id": "a1"})
    only_id = decode_standard_work({"title": "Tom Sawyer", "id": "w1", "author_id": "a1"})

    assert (only_source.id, only_source.source_id) == ("74", "74")
    assert (only_id.id, only_id.source_id) == ("w1", "w1")
    assert only_source.author_id == "a1"


def test_work_without_title_or_identifiers_is_malformed() -> None:
    with pytest.raises(RecordDecodeError, match="title"):
        decode_standard_work({"id": "w1", "author_id": "a1"})
    with pytest.raises(RecordDecodeError, match="source_id"):
        decode_standard_work({"title": "Untracked"})


def test_inline_work_reads_author_names() -> None:
    work = decode_inline_work({"title": "Meditations", "authors": ["Aurelius, Marcus"], "source_id": "2680"})

    assert work.author_names == ("Aurelius, Marcus",)
    assert work.author_id is None


def test_coerce_int_is_lenient() -> None:
    assert coerce_int("12") == 12
    assert coerce_int(3.0) == 3
    assert coerce_int(3.5) is None
    assert coerce_int("3a") is None
    assert coerce_int(True) is None
    assert coerce_int(None) is None
