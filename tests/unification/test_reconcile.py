from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from unicorpus.unification.authors import AuthorResolver
from unicorpus.unification.combiner import CombineReport, FileReport
from unicorpus.unification.context import ResolutionContext
from unicorpus.unification.reconcile import build_stats, reconcile_counts, render_done_marker, top_authors
from unicorpus.unification.works import WorkAssembler


def _context() -> ResolutionContext:
    context = ResolutionContext()
    resolver = AuthorResolver(context)
    resolver.ingest_author_file(
        [{"id": "a1", "name": "Twain, Mark"}, {"id": "a2", "name": "Austen, Jane"}, {"id": "a3", "name": "Homer"}],
        "gutenberg",
    )
    WorkAssembler(context, resolver).ingest_work_file(
        [
            {"id": "w1", "author_id": "a1", "title": "Tom Sawyer", "source_id": "74"},
            {"id": "w2", "author_id": "a1", "title": "Huckleberry Finn", "source_id": "76"},
            {"id": "w3", "author_id": "a2", "title": "Emma", "source_id": "158"},
        ],
        "gutenberg",
    )
    for _ in range(3):
        context.record_chunk(
            source="gutenberg", author_id="author-mark-twain", work_id="work-tom-sawyer-gutenberg-74", chunk_type="passage"
        )
    context.record_chunk(source="gutenberg", author_id="author-jane-austen", work_id=None, chunk_type="quote")
    return context


def test_reconcile_counts_backfills_works_and_authors() -> None:
    context = _context()

    reconcile_counts(context)

    works = {work.id: work for work in context.works}
    assert works["work-tom-sawyer-gutenberg-74"].chunk_count == 3
    assert works["work-huckleberry-finn-gutenberg-76"].chunk_count == 0
    assert works["work-emma-gutenberg-158"].chunk_count == 0

    authors = context.authors_by_slug
    assert (authors["mark-twain"].chunk_count, authors["mark-twain"].work_count) == (3, 2)
    assert (authors["jane-austen"].chunk_count, authors["jane-austen"].work_count) == (1, 1)
    assert (authors["homer"].chunk_count, authors["homer"].work_count) == (0, 0)


def test_top_authors_orders_by_chunk_count() -> None:
    context = _context()

    assert top_authors(context, 5) == [
        {"name": "Mark Twain", "chunk_count": 3},
        {"name": "Jane Austen", "chunk_count": 1},
    ]
    assert top_authors(context, 1) == [{"name": "Mark Twain", "chunk_count": 3}]


def test_build_stats_and_done_marker(tmp_path: Path) -> None:
    context = _context()
    reconcile_counts(context)
    for name in ("authors.json", "works.json", "chunks.json"):
        (tmp_path / name).write_text("[]", encoding="utf-8")
    report = CombineReport(
        files=[
            FileReport(path="a.json", source="gutenberg", read=7, emitted=4, too_short=2, malformed=1),
            FileReport(path="b.json", source="gutenberg", status="missing"),
        ]
    )
    finished = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    stats = build_stats(
        context,
        report,
        authors_path=tmp_path / "authors.json",
        works_path=tmp_path / "works.json",
        chunks_path=tmp_path / "chunks.json",
        generated_at=finished,
        top_n=10,
    )

    assert stats["total_authors"] == 3
    assert stats["total_works"] == 3
    assert stats["total_chunks"] == 4
    assert stats["records_read"] == 7
    assert stats["dropped"] == {"too_short": 2, "unresolved": 0, "malformed": 1}
    assert stats["by_source"] == {"gutenberg": {"authors": 3, "works": 3, "chunks": 4}}
    assert stats["by_type"] == {"passage": 3, "quote": 1}
    assert stats["error_files"] == ["b.json"]
    assert stats["generated_at"] == "2026-01-02T03:04:05+00:00"
    assert stats["files"] == {"authors_json_mb": 0.0, "works_json_mb": 0.0, "chunks_json_mb": 0.0}

    marker = render_done_marker(stats, finished_at=finished, duration_seconds=90)

    assert marker.startswith("Combine complete\n")
    assert "Duration: 1.5 minutes" in marker
    assert "Chunks: 4" in marker
    assert "- gutenberg: 4 chunks, 3 works, 3 authors" in marker
    assert "1. Mark Twain: 3" in marker
    assert "2. Jane Austen: 1" in marker


def test_done_marker_uses_thousands_separators() -> None:
    stats = {
        "total_authors": 1200,
        "total_works": 3,
        "total_chunks": 1234567,
        "dropped": {"too_short": 1000, "unresolved": 0, "malformed": 0},
        "by_source": {},
        "by_type": {},
        "files": {"authors_json_mb": 1.0, "works_json_mb": 1.0, "chunks_json_mb": 2048.0},
        "top_authors": [{"name": "Shakespeare, William", "chunk_count": 45000}],
    }

    marker = render_done_marker(stats, finished_at=datetime(2026, 1, 1, tzinfo=timezone.utc), duration_seconds=0)

    assert "Chunks: 1,234,567" in marker
    assert "Authors: 1,200" in marker
    assert "- chunks.json: 2.00 GB" in marker
    assert "1. Shakespeare, William: 45,000" in marker
