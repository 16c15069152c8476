"""Keyword selection.

Every token is checked against the script's keyword words, first directly and
then through the synonym classes whose canonical form is itself a keyword.
The winner is the highest rank, then the earliest token, then the earliest
declared rule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from script import KeywordRule, Script

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    rule: KeywordRule
    position: int

    @property
    def sort_key(self):
        return (-self.rule.rank, self.position, self.rule.order)


def candidates(script: Script, tokens: Sequence[str]) -> List[Candidate]:
    """Return every keyword hit in *tokens* with the token position."""
    found: List[Candidate] = []
    for position, token in enumerate(tokens):
        rule = script.keyword(token)
        if rule is not None:
            found.append(Candidate(rule, position))
        for canonical in script.classes_of(token):
            rule = script.keyword(canonical)
            if rule is not None:
                found.append(Candidate(rule, position))
    return found


def select(script: Script, tokens: Sequence[str]) -> Optional[KeywordRule]:
    """Pick the keyword rule that drives the reply.

    Args:
        script: Loaded script whose keywords and synonyms are searched.
        tokens: Normalized input words.

    Returns:
        The rule with the highest rank, ties going to the earliest position
        in *tokens* and then to declaration order. ``None`` when no keyword
        occurs.
    """
    found = candidates(script, tokens)
    logger.debug(f"Keyword candidates: {[(c.rule.word, c.position) for c in found]}")
    if not found:
        return None
    best = min(found, key=lambda c: c.sort_key)
    logger.debug(f"Selected keyword '{best.rule.word}' (rank {best.rule.rank})")
    return best.rule
