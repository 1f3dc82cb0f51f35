from __future__ import annotations

import json
from pathlib import Path

import ijson
import pytest

from unicorpus.unification.streaming import JsonArrayWriter, iter_json_array, load_json_array


async def _collect(path: Path, **kwargs: int) -> list[object]:
    return [item async for item in iter_json_array(path, **kwargs)]


@pytest.mark.asyncio
async def test_iter_json_array_streams_items_across_small_reads(tmp_path: Path) -> None:
    path = tmp_path / "items.json"
    path.write_text("\n  " + json.dumps([{"n": index, "w": 1.5} for index in range(50)]), encoding="utf-8")

    items = await _collect(path, read_size=16)

    assert len(items) == 50
    assert items[0] == {"n": 0, "w": 1.5}
    assert items[-1]["n"] == 49


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ['{"chunks": [{"text": "x"}]}', '"just a string"', "", "   \n"])
async def test_iter_json_array_rejects_non_array_documents(tmp_path: Path, payload: str) -> None:
    path = tmp_path / "bad.json"
    path.write_text(payload, encoding="utf-8")

    with pytest.raises(ijson.JSONError):
        await _collect(path)


def test_json_array_writer_output_is_a_valid_array(tmp_path: Path) -> None:
    empty_path = tmp_path / "empty.json"
    with JsonArrayWriter(empty_path):
        pass

    filled_path = tmp_path / "filled.json"
    with JsonArrayWriter(filled_path) as writer:
        writer.write({"id": "a", "text": "Ærøskøbing"})
        writer.write({"id": "b"})

    assert load_json_array(empty_path) == []
    assert load_json_array(filled_path) == [{"id": "a", "text": "Ærøskøbing"}, {"id": "b"}]
    assert writer.count == 2


def test_load_json_array_rejects_objects(tmp_path: Path) -> None:
    path = tmp_path / "object.json"
    path.write_text('{"authors": []}', encoding="utf-8")

    with pytest.raises(ValueError, match="JSON array"):
        load_json_array(path)
