"""Input normalization for the responder.

Raw user text is lowercased, apostrophes are dropped so contractions fold
into single words ("I'm" becomes ``im``), any other punctuation splits words,
and the script's pre-transforms are applied word by word.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Mapping, Optional, Sequence

# Characters removed outright instead of splitting words.
APOSTROPHES = "'’`"

_APOSTROPHE_RE = re.compile(f"[{re.escape(APOSTROPHES)}]")
_PUNCT_RE = re.compile(r"[^\w\s]|_", re.UNICODE)


def tokenize(raw: str) -> List[str]:
    """Split *raw* into lowercase word tokens with punctuation stripped."""
    if not raw:
        return []
    text = _APOSTROPHE_RE.sub("", raw.lower())
    text = _PUNCT_RE.sub(" ", text)
    return text.split()


def apply_pretransforms(
    tokens: Iterable[str], pretransforms: Mapping[str, Sequence[str]]
) -> List[str]:
    """Replace each token found in *pretransforms* by its expansion.

    A word mapped to a multi-word phrase expands in place. Expansions are not
    transformed again.
    """
    result: List[str] = []
    for token in tokens:
        replacement = pretransforms.get(token)
        if replacement is None:
            result.append(token)
        else:
            result.extend(replacement)
    return result


def normalize(
    raw: str, pretransforms: Optional[Mapping[str, Sequence[str]]] = None
) -> List[str]:
    """Tokenize *raw* and apply *pretransforms*. Never fails."""
    tokens = tokenize(raw)
    if pretransforms:
        tokens = apply_pretransforms(tokens, pretransforms)
    return tokens
