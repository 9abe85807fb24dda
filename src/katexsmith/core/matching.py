"""Literal, non-greedy delimiter matching over plain text."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import re

from .config import Delimiter


@dataclass(frozen=True, slots=True)
class MathMatch:
    """Delimited span located in a text node."""

    start: int
    end: int
    expression: str


@lru_cache(maxsize=64)
def compile_delimiter(delimiter: Delimiter) -> re.Pattern[str]:
    """Compile the pattern matching the shortest span enclosed by ``delimiter``."""
    pattern = f"{re.escape(delimiter.left)}(.*?){re.escape(delimiter.right)}"
    return re.compile(pattern, re.DOTALL)


def find_matches(text: str, delimiter: Delimiter) -> list[MathMatch]:
    """Return the non-overlapping matches of ``delimiter`` from left to right.

    A left marker without a closing marker after it produces no match.
    """
    pattern = compile_delimiter(delimiter)
    matches: list[MathMatch] = []
    for found in pattern.finditer(text):
        expression = found.group(0) if delimiter.keep_delimiters else found.group(1)
        matches.append(MathMatch(start=found.start(), end=found.end(), expression=expression))
    return matches


__all__ = ["MathMatch", "compile_delimiter", "find_matches"]
