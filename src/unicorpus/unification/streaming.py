"""JSON array I/O: streamed reads for passage files, incremental writes."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, AsyncIterator, BinaryIO, TextIO

import ijson

DEFAULT_READ_SIZE = 64 * 1024


class _AsyncFileReader:
    """Expose a blocking binary file through the async ``read`` ijson expects."""

    def __init__(self, handle: BinaryIO) -> None:
        self._handle = handle

    async def read(self, size: int = -1) -> bytes:
        return await asyncio.to_thread(self._handle.read, size)


def _first_token(handle: BinaryIO, read_size: int) -> bytes:
    """Return the first non-whitespace byte of ``handle`` and rewind it."""

    try:
        while True:
            block = handle.read(read_size)
            if not block:
                return b""
            stripped = block.lstrip()
            if stripped:
                return stripped[:1]
    finally:
        handle.seek(0)


async def iter_json_array(path: str | Path, *, read_size: int = DEFAULT_READ_SIZE) -> AsyncIterator[Any]:
    """Yield the elements of a top-level JSON array one at a time.

    Raises ``ijson.JSONError`` when the file does not hold an array or stops
    being valid JSON; items already yielded stay yielded.
    """

    with Path(path).open("rb") as handle:
        token = await asyncio.to_thread(_first_token, handle, read_size)
        if token != b"[":
            raise ijson.JSONError(f"Expected a JSON array at top level of {path}")
        reader = _AsyncFileReader(handle)
        async for item in ijson.items(reader, "item", use_float=True, buf_size=read_size):
            yield item


def load_json_array(path: str | Path) -> list[Any]:
    """Read a whole JSON array file (author and work files are small)."""

    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError(f"Expected a JSON array at top level of {path}")
    return payload


def write_json(path: str | Path, payload: Any) -> None:
    Path(path).write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


class JsonArrayWriter:
    """Write a JSON array element by element without holding it in memory."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._handle: TextIO | None = None
        self._count = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def count(self) -> int:
        return self._count

    def open(self) -> None:
        self._handle = self._path.open("w", encoding="utf-8")
        self._handle.write("[\n")

    def write(self, record: dict[str, Any]) -> None:
        if self._handle is None:
            raise RuntimeError("JsonArrayWriter is not open")
        if self._count:
            self._handle.write(",\n")
        self._handle.write(json.dumps(record, ensure_ascii=False))
        self._count += 1

    def close(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.write("\n]")
        finally:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "JsonArrayWriter":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
