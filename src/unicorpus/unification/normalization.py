"""Author name and slug normalization shared by every unification phase."""

from __future__ import annotations

import re
import unicodedata

UNKNOWN_AUTHOR = "Unknown"

_PARENTHETICAL_RE = re.compile(r"\s*\([^)]*\)\s*")
_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def normalize_author_name(name: str | None) -> str:
    """Turn a catalogue-style author name into its display form.

    ``"Last, First"`` becomes ``"First Last"`` with any parenthetical
    expansion of the first name removed. Names with more than one comma
    (``"Ward, Humphry, Mrs."``) and names without a comma are returned
    trimmed but otherwise verbatim.
    """

    if not name:
        return UNKNOWN_AUTHOR

    if "," in name:
        parts = [part.strip() for part in name.split(",")]
        if len(parts) == 2:
            last, first = parts
            clean_first = _PARENTHETICAL_RE.sub("", first).strip()
            return f"{clean_first} {last}".strip()

    return name.strip()


def create_slug(text: str) -> str:
    """Build a lower-case, hyphenated, ASCII identifier from display text."""

    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return _NON_SLUG_RE.sub("-", stripped).strip("-")
