"""Corpus unification package interfaces."""

from .pipeline import RunSummary, UnificationError, UnificationRun

__all__ = ["RunSummary", "UnificationError", "UnificationRun"]
