"""Bounded memory of deferred replies.

Memorable matches leave a line here; when a later input gives the responder
nothing to work with, the oldest line is replayed once.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterator, Optional

logger = logging.getLogger(__name__)

# Default number of lines kept before the oldest is dropped.
MEMORY_LIMIT = 4


class MemoryQueue:
    """FIFO of reply strings that drops its oldest entry when full."""

    def __init__(self, limit: Optional[int] = None) -> None:
        limit = MEMORY_LIMIT if limit is None else limit
        if limit < 1:
            raise ValueError(f"memory limit must be positive, got {limit}")
        self._lines: Deque[str] = deque(maxlen=limit)

    @property
    def limit(self) -> int:
        return self._lines.maxlen

    def push(self, line: str) -> None:
        if len(self._lines) == self._lines.maxlen:
            logger.debug(f"Memory full, dropping '{self._lines[0]}'")
        self._lines.append(line)
        logger.debug(f"Remembered '{line}' ({len(self._lines)}/{self.limit})")

    def pop(self) -> Optional[str]:
        """Remove and return the oldest line, or ``None`` when empty."""
        if not self._lines:
            return None
        return self._lines.popleft()

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)
