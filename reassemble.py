"""Reply reassembly.

The reassemblies of a decomposition are used round-robin, one cursor per
(keyword, decomposition) pair. Templates are filled with the reflected text
of the bound spans; a goto re-runs the matcher with the target keyword's
rules against the same tokens.
"""

from __future__ import annotations

import logging
from typing import Dict, Hashable, Mapping, Optional, Sequence

import constraints
import decompose
from decompose import Bindings, Match
from memory import MemoryQueue
from script import Script, ScriptIntegrityError, Template

logger = logging.getLogger(__name__)


class Cursors:
    """Round-robin positions keyed by an arbitrary slot."""

    def __init__(self) -> None:
        self._positions: Dict[Hashable, int] = {}

    def next(self, slot: Hashable, size: int) -> int:
        """Return the current index for *slot* and advance it, wrapping at *size*."""
        index = self._positions.get(slot, 0) % size
        self._positions[slot] = (index + 1) % size
        return index

    def peek(self, slot: Hashable) -> int:
        return self._positions.get(slot, 0)


def reflect(words: Sequence[str], reflections: Mapping[str, str]) -> str:
    """Swap each word for its reflection. Each word is reflected once."""
    return " ".join(reflections.get(w, w) for w in words)


def render(
    template: Template,
    bindings: Bindings,
    reflections: Optional[Mapping[str, str]] = None,
) -> str:
    """Fill *template* with the bound spans and tidy the result."""
    reflections = reflections or {}
    pieces = []
    for part in template.parts:
        if isinstance(part, int):
            pieces.append(reflect(bindings.get(part, ()), reflections))
        else:
            pieces.append(part)
    return constraints.finalize_reply("".join(pieces))


def reassemble(
    script: Script,
    found: Match,
    tokens: Sequence[str],
    cursors: Cursors,
    memory: MemoryQueue,
    redirected: bool = False,
) -> Optional[str]:
    """Produce the reply for *found*, following at most one goto.

    Returns ``None`` when a goto target has no decomposition matching
    *tokens*.
    """
    decomposition = found.decomposition
    slot = (found.keyword.word, found.index)
    choice = decomposition.reassemblies[cursors.next(slot, len(decomposition.reassemblies))]

    # Recorded on match, even when the reply comes from a goto target.
    if decomposition.memorable:
        memory.push(render(decomposition.memory, found.bindings, script.reflections))

    if choice.is_goto:
        if redirected:
            raise ScriptIntegrityError(
                f"goto target redirects again to {choice.goto!r}",
                found.keyword.word,
                found.index,
            )
        target = script.keyword(choice.goto)
        logger.debug(f"Goto from '{found.keyword.word}' to '{choice.goto}'")
        redirect = decompose.match(target, tokens, script.synonyms)
        if redirect is None:
            logger.debug(f"Goto target '{choice.goto}' did not match")
            return None
        return reassemble(script, redirect, tokens, cursors, memory, redirected=True)

    return render(choice.template, found.bindings, script.reflections)
