"""Decomposition matching.

A pattern must align with the whole token sequence. Literals match one token
exactly, synonym classes match one token from the class, and wildcards bind a
contiguous span that may be empty. When several alignments exist the leftmost
wildcard takes the shortest span that still lets the rest of the pattern
match.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Mapping, Optional, Sequence, Tuple

from script import DecompRule, KeywordRule, PatternElement

logger = logging.getLogger(__name__)

Bindings = Dict[int, Tuple[str, ...]]


@dataclass
class Match:
    """A decomposition that aligned with the input."""

    keyword: KeywordRule
    index: int
    decomposition: DecompRule
    bindings: Bindings


def _accepts(element: PatternElement, token: str, synonyms: Mapping[str, frozenset]) -> bool:
    if element.kind == "synonym":
        return token == element.word or token in synonyms.get(element.word, ())
    return token == element.word


def align(
    pattern: Sequence[PatternElement],
    tokens: Sequence[str],
    synonyms: Optional[Mapping[str, frozenset]] = None,
) -> Optional[Bindings]:
    """Align *pattern* with *tokens* start to end.

    Wildcards absorb zero or more tokens. When several alignments exist the
    leftmost wildcard takes the shortest span that still lets the rest of
    the pattern match.

    Args:
        pattern: Pattern elements of one decomposition.
        tokens: Normalized input words.
        synonyms: Synonym classes used by ``@class`` elements.

    Returns:
        Mapping from each wildcard's 1-based ordinal to its bound span, or
        ``None`` when no alignment exists.
    """
    synonyms = synonyms or {}
    pattern = tuple(pattern)
    tokens = tuple(tokens)

    @lru_cache(maxsize=None)
    def walk(p: int, t: int) -> Optional[Tuple[Tuple[str, ...], ...]]:
        if p == len(pattern):
            return () if t == len(tokens) else None
        element = pattern[p]
        if element.is_wildcard:
            for end in range(t, len(tokens) + 1):
                rest = walk(p + 1, end)
                if rest is not None:
                    return (tokens[t:end],) + rest
            return None
        if t < len(tokens) and _accepts(element, tokens[t], synonyms):
            return walk(p + 1, t + 1)
        return None

    spans = walk(0, 0)
    if spans is None:
        return None
    return {i: span for i, span in enumerate(spans, start=1)}


def match(
    rule: KeywordRule,
    tokens: Sequence[str],
    synonyms: Optional[Mapping[str, frozenset]] = None,
) -> Optional[Match]:
    """Try *rule*'s decompositions in order and return the first that aligns."""
    for index, decomposition in enumerate(rule.decompositions):
        bindings = align(decomposition.pattern, tokens, synonyms)
        if bindings is not None:
            logger.debug(f"Keyword '{rule.word}' decomposition {index} matched: {bindings}")
            return Match(rule, index, decomposition, bindings)
    logger.debug(f"No decomposition of '{rule.word}' matched")
    return None
