"""Conversation session.

A :class:`Session` owns the only mutable state of a conversation: the
round-robin cursors, the memory queue and the lifecycle state. The script it
reads is shared and never modified, so any number of sessions may run
against one script.

The first call to :meth:`Session.respond` returns a greeting without looking
at the input. Later calls run keyword selection, decomposition, reassembly
and finally the memory/fallback path. A farewell trigger ends the session and
any further call raises :class:`SessionEnded`.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Set, Tuple

import decompose
import keywords
from memory import MemoryQueue
from normalize import normalize
from reassemble import Cursors, reassemble
from script import Script

logger = logging.getLogger(__name__)

GREETING_SLOT = "greeting"
FAREWELL_SLOT = "farewell"
FALLBACK_SLOT = "fallback"


class SessionState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    ENDED = "ended"


class SessionEnded(RuntimeError):
    """Raised when :meth:`Session.respond` is called after the farewell."""


class Session:
    def __init__(self, script: Script, memory_limit: Optional[int] = None) -> None:
        self.script = script
        self.state = SessionState.IDLE
        self.cursors = Cursors()
        self.memory = MemoryQueue(script.memory_limit if memory_limit is None else memory_limit)
        self._quits: Set[Tuple[str, ...]] = {
            tuple(normalize(q, script.pretransforms)) for q in script.quits
        }
        self._quits.discard(())

    def _rotate(self, slot: str, lines: Tuple[str, ...]) -> str:
        return lines[self.cursors.next(slot, len(lines))]

    def greet(self) -> str:
        return self._rotate(GREETING_SLOT, self.script.greetings)

    def farewell(self) -> str:
        return self._rotate(FAREWELL_SLOT, self.script.farewells)

    def fallback(self) -> str:
        return self._rotate(FALLBACK_SLOT, self.script.fallbacks)

    def is_quit(self, message: str) -> bool:
        return tuple(normalize(message, self.script.pretransforms)) in self._quits

    def respond(self, message: str) -> str:
        """Return the reply to *message*, advancing the session.

        The first call greets. Later calls end the session with a farewell
        on a quit phrase and otherwise reply through keyword selection,
        falling back to memory and then the fallback list.

        Args:
            message: Raw user text.

        Returns:
            The reply to show the user.

        Raises:
            SessionEnded: The session already said farewell.
        """
        if self.state is SessionState.ENDED:
            raise SessionEnded("session has ended; start a new one")

        logger.debug(f"Input text: '{message}'")
        if self.state is SessionState.IDLE:
            self.state = SessionState.ACTIVE
            greeting = self.greet()
            logger.debug(f"Session started with greeting: '{greeting}'")
            return greeting

        if self.is_quit(message):
            self.state = SessionState.ENDED
            farewell = self.farewell()
            logger.debug(f"Session ended with farewell: '{farewell}'")
            return farewell

        tokens = normalize(message, self.script.pretransforms)
        logger.debug(f"Tokenized input: {tokens}")
        reply = self._compose(tokens)
        logger.debug(f"Final response: '{reply}'")
        return reply

    def _compose(self, tokens) -> str:
        rule = keywords.select(self.script, tokens)
        if rule is not None:
            found = decompose.match(rule, tokens, self.script.synonyms)
            if found is not None:
                reply = reassemble(self.script, found, tokens, self.cursors, self.memory)
                if reply is not None:
                    return reply

        remembered = self.memory.pop()
        if remembered is not None:
            logger.debug("FALLBACK TRIGGERED: NO_MATCH - replaying memory")
            return remembered

        logger.debug("FALLBACK TRIGGERED: NO_MATCH - using fallback")
        return self.fallback()
