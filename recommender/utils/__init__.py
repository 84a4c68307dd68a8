"""Shared utilities for the exploration strategies."""

from .random_source import RandomSource, make_random_source

__all__ = [
    "RandomSource",
    "make_random_source",
]
