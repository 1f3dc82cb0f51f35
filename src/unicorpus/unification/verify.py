"""Referential integrity check over a combined output directory.

Mirrors what the relational loader relies on: every chunk's ``author_id``
names an emitted author and every ``work_id`` names an emitted work.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

from unicorpus.unification.streaming import iter_json_array, load_json_array

LOGGER = logging.getLogger(__name__)

DEFAULT_SAMPLE_LIMIT = 10


@dataclass(slots=True)
class VerificationReport:
    authors: int = 0
    works: int = 0
    chunks: int = 0
    orphan_authors: int = 0
    orphan_works: int = 0
    samples: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.orphan_authors == 0 and self.orphan_works == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "authors": self.authors,
            "works": self.works,
            "chunks": self.chunks,
            "orphan_authors": self.orphan_authors,
            "orphan_works": self.orphan_works,
            "samples": list(self.samples),
        }


def _ids(records: list[Any]) -> set[str]:
    return {record["id"] for record in records if isinstance(record, dict) and isinstance(record.get("id"), str)}


async def verify_output(output_dir: str | Path, *, sample_limit: int = DEFAULT_SAMPLE_LIMIT) -> VerificationReport:
    """Stream ``chunks.json`` and count references missing from authors/works."""

    root = Path(output_dir)
    author_ids = _ids(load_json_array(root / "authors.json"))
    work_ids = _ids(load_json_array(root / "works.json"))
    report = VerificationReport(authors=len(author_ids), works=len(work_ids))

    async for chunk in iter_json_array(root / "chunks.json"):
        report.chunks += 1
        if not isinstance(chunk, dict):
            continue
        orphaned = False
        if chunk.get("author_id") not in author_ids:
            report.orphan_authors += 1
            orphaned = True
        work_id = chunk.get("work_id")
        if work_id is not None and work_id not in work_ids:
            report.orphan_works += 1
            orphaned = True
        if orphaned and len(report.samples) < sample_limit:
            report.samples.append(str(chunk.get("id")))

    if not report.ok:
        LOGGER.warning(
            "Found %d chunks with unknown authors and %d with unknown works",
            report.orphan_authors,
            report.orphan_works,
        )
    return report
