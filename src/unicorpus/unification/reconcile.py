"""Post-stream count reconciliation, aggregate stats and the DONE marker."""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from unicorpus.config import DEFAULT_TOP_AUTHORS
from unicorpus.unification.combiner import CombineReport
from unicorpus.unification.context import ResolutionContext


def reconcile_counts(context: ResolutionContext) -> None:
    """Backfill chunk/work counts that are only known after streaming."""

    works_per_author: Counter[str] = Counter()
    for work in context.works_by_id.values():
        work.chunk_count = context.work_chunk_counts.get(work.id, 0)
        works_per_author[work.author_id] += 1

    for author in context.authors_by_slug.values():
        author.chunk_count = context.author_chunk_counts.get(author.id, 0)
        author.work_count = works_per_author.get(author.id, 0)


def _size_mb(path: Path) -> float:
    return round(path.stat().st_size / 1024 / 1024, 1)


def top_authors(context: ResolutionContext, limit: int = DEFAULT_TOP_AUTHORS) -> list[dict[str, Any]]:
    # most_common keeps first-seen order among equal counts
    rows: list[dict[str, Any]] = []
    for author_id, count in context.author_chunk_counts.most_common(limit):
        author = context.author_by_id(author_id)
        rows.append({"name": author.name if author is not None else author_id, "chunk_count": count})
    return rows


def build_stats(
    context: ResolutionContext,
    report: CombineReport,
    *,
    authors_path: Path,
    works_path: Path,
    chunks_path: Path,
    generated_at: datetime,
    top_n: int = DEFAULT_TOP_AUTHORS,
    error_files: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "total_authors": len(context.authors_by_slug),
        "total_works": len(context.works_by_id),
        "total_chunks": report.emitted,
        "records_read": report.records_read,
        "dropped": {
            "too_short": report.too_short,
            "unresolved": report.unresolved,
            "malformed": report.malformed,
        },
        "by_source": {source: counts.to_dict() for source, counts in context.by_source.items()},
        "by_type": dict(context.type_counts),
        "top_authors": top_authors(context, top_n),
        "error_files": list(error_files) if error_files is not None else report.error_files,
        "generated_at": generated_at.isoformat(),
        "files": {
            "authors_json_mb": _size_mb(authors_path),
            "works_json_mb": _size_mb(works_path),
            "chunks_json_mb": _size_mb(chunks_path),
        },
    }


def render_done_marker(stats: Mapping[str, Any], *, finished_at: datetime, duration_seconds: float) -> str:
    """Render the operator-facing completion marker for a finished run."""

    by_source = sorted(stats["by_source"].items(), key=lambda item: item[1]["chunks"], reverse=True)
    by_type = sorted(stats["by_type"].items(), key=lambda item: item[1], reverse=True)
    files = stats["files"]

    lines = [
        "Combine complete",
        f"Finished: {finished_at.isoformat()}",
        f"Duration: {duration_seconds / 60:.1f} minutes",
        "",
        f"Authors: {stats['total_authors']:,}",
        f"Works: {stats['total_works']:,}",
        f"Chunks: {stats['total_chunks']:,}",
        f"Dropped: {sum(stats['dropped'].values()):,} "
        f"(too short {stats['dropped']['too_short']:,}, "
        f"unresolved {stats['dropped']['unresolved']:,}, "
        f"malformed {stats['dropped']['malformed']:,})",
        "",
        "By Source:",
    ]
    lines.extend(
        f"- {source}: {counts['chunks']:,} chunks, {counts['works']:,} works, {counts['authors']:,} authors"
        for source, counts in by_source
    )
    lines.extend(["", "By Type:"])
    lines.extend(f"- {chunk_type}: {count:,}" for chunk_type, count in by_type)
    lines.extend(
        [
            "",
            "Files:",
            f"- authors.json: {files['authors_json_mb']} MB",
            f"- works.json: {files['works_json_mb']} MB",
            f"- chunks.json: {files['chunks_json_mb'] / 1024:.2f} GB",
            "",
            "Top 10 Authors by Chunk Count:",
        ]
    )
    lines.extend(
        f"{rank}. {row['name']}: {row['chunk_count']:,}"
        for rank, row in enumerate(stats["top_authors"][:10], start=1)
    )
    return "\n".join(lines) + "\n"
