from __future__ import annotations

from unicorpus.unification.authors import AuthorResolver
from unicorpus.unification.context import ResolutionContext


def _resolver() -> tuple[ResolutionContext, AuthorResolver]:
    context = ResolutionContext()
    return context, AuthorResolver(context)


def test_resolve_or_create_builds_canonical_author() -> None:
    context, resolver = _resolver()

    author_id = resolver.resolve_or_create("Twain, Mark", "gutenberg")

    assert author_id == "author-mark-twain"
    author = context.authors_by_slug["mark-twain"]
    assert author.name == "Mark Twain"
    assert author.name_variants == ["Twain, Mark"]
    assert author.sources == ["gutenberg"]
    assert author.source_ids == {}


def test_resolve_or_create_reuses_existing_slug_and_tracks_provenance() -> None:
    context, resolver = _resolver()

    first = resolver.resolve_or_create("Mark Twain", "wikiquote")
    second = resolver.resolve_or_create("Twain, Mark", "gutenberg")
    third = resolver.resolve_or_create("twain, mark", "gutenberg")

    assert first == second == third
    author = context.authors_by_slug["mark-twain"]
    assert author.name_variants == ["Twain, Mark", "twain, mark"]
    assert author.sources == ["wikiquote", "gutenberg"]
    assert len(context.authors_by_slug) == 1


def test_ingesting_same_author_from_two_sources_merges_once() -> None:
    context, resolver = _resolver()

    resolver.ingest_author_file(
        [{"id": "a1", "name": "Twain, Mark", "birth_year": 1835, "nationality": "American"}],
        "gutenberg",
    )
    resolver.ingest_author_file(
        [
            {"id": "q9", "name": "Mark Twain", "birth_year": 1900, "death_year": 1910},
            {"id": "q10", "name": "Twain, Mark"},
        ],
        "wikiquote",
    )

    assert len(context.authors_by_slug) == 1
    author = context.authors_by_slug["mark-twain"]
    assert author.sources == ["gutenberg", "wikiquote"]
    assert author.name_variants == ["Twain, Mark"]
    assert author.birth_year == 1835
    assert author.death_year == 1910
    assert author.nationality == "American"
    assert author.source_ids == {"gutenberg": "a1", "wikiquote": "q10"}
    assert context.lookup_source_author("gutenberg", "a1") == "author-mark-twain"
    assert context.lookup_source_author("wikiquote", "q9") == "author-mark-twain"
    assert context.lookup_source_author("gutenberg", "q9") is None


def test_source_counts_only_count_newly_created_authors() -> None:
    context, resolver = _resolver()

    resolver.ingest_author_file([{"id": "1", "name": "Plato"}, {"id": "2", "name": "Homer"}], "perseus")
    resolver.ingest_author_file([{"id": "p", "name": "Plato"}], "sacredtexts")

    assert context.by_source["perseus"].authors == 2
    assert context.by_source["sacredtexts"].authors == 0


def test_nameless_and_malformed_author_records() -> None:
    context, resolver = _resolver()

    malformed = resolver.ingest_author_file(
        [{"id": "x1"}, "oops", 42, {"id": "x2", "name": {"first": "A"}}],
        "poetrydb",
    )

    assert malformed == 3
    assert list(context.authors_by_slug) == ["unknown"]
    unknown = context.authors_by_slug["unknown"]
    assert unknown.id == "author-unknown"
    assert unknown.name == "Unknown"
    assert unknown.name_variants == []
    assert context.lookup_source_author("poetrydb", "x1") == "author-unknown"


def test_name_index_maps_raw_and_canonical_spellings() -> None:
    context, resolver = _resolver()

    resolver.resolve_or_create("Tolstoy, Leo", "gutenberg")

    assert context.lookup_author_name("Leo Tolstoy") == "author-leo-tolstoy"
    assert context.lookup_author_name("TOLSTOY, LEO") == "author-leo-tolstoy"
    assert context.lookup_author_name("Lev Tolstoy") is None
