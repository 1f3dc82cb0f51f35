"""Source manifest: which author, work and passage files make up a corpus."""

from __future__ import annotations

from dataclasses import dataclass, replace
import json
from pathlib import Path
from typing import Any, Mapping

from unicorpus.unification.models import SchemaKind, SourceFile


@dataclass(frozen=True, slots=True)
class SourceManifest:
    """Ordered author, work and passage files making up one corpus."""

    authors: tuple[SourceFile, ...]
    works: tuple[SourceFile, ...]
    chunks: tuple[SourceFile, ...]

    def resolve(self, data_dir: str | Path) -> "SourceManifest":
        """Anchor relative file paths at ``data_dir``."""

        root = Path(data_dir)

        def _anchor(files: tuple[SourceFile, ...]) -> tuple[SourceFile, ...]:
            return tuple(
                entry if entry.path.is_absolute() else replace(entry, path=root / entry.path)
                for entry in files
            )

        return SourceManifest(
            authors=_anchor(self.authors),
            works=_anchor(self.works),
            chunks=_anchor(self.chunks),
        )


def _entry(path: str, source: str, phase: str | None = None, schema: SchemaKind = SchemaKind.STANDARD) -> SourceFile:
    return SourceFile(path=Path(path), source=source, phase=phase, schema=schema)


_PLAIN_SOURCES = (
    "standardebooks",
    "wikiquote",
    "ccel",
    "newadvent",
    "bibletranslations",
    "bible",
    "perseus",
    "sacredtexts",
    "poetrydb",
)

DEFAULT_MANIFEST = SourceManifest(
    authors=(
        _entry("gutenberg/authors.json", "gutenberg"),
        _entry("gutenberg/phase5b-authors.json", "gutenberg"),
        *(_entry(f"{name}/authors.json", name) for name in _PLAIN_SOURCES),
    ),
    works=(
        _entry("gutenberg/works.json", "gutenberg", "phase1-4"),
        _entry("gutenberg/phase5b-works.json", "gutenberg", "phase5b", SchemaKind.INLINE),
        *(_entry(f"{name}/works.json", name) for name in _PLAIN_SOURCES),
    ),
    chunks=(
        _entry("gutenberg/chunks.json", "gutenberg", "phase1-4"),
        _entry("gutenberg/phase5-chunks.json", "gutenberg", "phase5"),
        _entry("gutenberg/phase5b-chunks.json", "gutenberg", "phase5b", SchemaKind.INLINE),
        *(_entry(f"{name}/chunks.json", name) for name in _PLAIN_SOURCES),
    ),
)


def _parse_manifest_entries(payload: Mapping[str, Any], key: str) -> tuple[SourceFile, ...]:
    raw_entries = payload.get(key, [])
    if not isinstance(raw_entries, list):
        raise ValueError(f"Manifest field {key!r} must be a list")

    entries: list[SourceFile] = []
    for index, raw in enumerate(raw_entries):
        if not isinstance(raw, Mapping):
            raise ValueError(f"Manifest {key}[{index}] must be an object")
        path = raw.get("path")
        source = raw.get("source")
        if not isinstance(path, str) or not path.strip():
            raise ValueError(f"Manifest {key}[{index}] is missing 'path'")
        if not isinstance(source, str) or not source.strip():
            raise ValueError(f"Manifest {key}[{index}] is missing 'source'")
        phase = raw.get("phase")
        if phase is not None and not isinstance(phase, str):
            raise ValueError(f"Manifest {key}[{index}] has a non-string 'phase'")
        try:
            schema = SchemaKind(raw.get("format", SchemaKind.STANDARD.value))
        except ValueError as exc:
            raise ValueError(f"Manifest {key}[{index}] has unknown format {raw.get('format')!r}") from exc
        entries.append(_entry(path, source.strip(), phase or None, schema))
    return tuple(entries)


def load_manifest(path: str | Path) -> SourceManifest:
    """Load a manifest JSON file with ``authors``/``works``/``chunks`` lists."""

    manifest_path = Path(path)
    try:
        payload = json.loads(manifest_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Manifest {manifest_path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ValueError(f"Manifest {manifest_path} must be a JSON object")

    return SourceManifest(
        authors=_parse_manifest_entries(payload, "authors"),
        works=_parse_manifest_entries(payload, "works"),
        chunks=_parse_manifest_entries(payload, "chunks"),
    )
