"""Bibliographic corpus unification toolkit."""
