"""Reply presentation utilities.

Rendered templates are stitched from literal segments and reflected input
fragments, so they may carry doubled spaces, spaces before punctuation where
a fragment came out empty, or a lowercase first letter when a template opens
with a fragment. These helpers clean that up. All functions are pure stdlib.
"""

import re


def normalize_whitespace(text: str) -> str:
    """Collapse consecutive whitespace characters into single spaces.

    Args:
        text: Input text that may contain multiple spaces, tabs, newlines, etc.

    Returns:
        Text with all whitespace sequences collapsed to single spaces and trimmed.
    """
    return re.sub(r"\s+", " ", text).strip()


def tighten_punctuation(text: str) -> str:
    """Remove spaces left in front of punctuation marks.

    ``"Why do you say you are ?"`` becomes ``"Why do you say you are?"``.
    """
    return re.sub(r"\s+([.,;:!?])", r"\1", text)


def capitalize_first_alpha(text: str) -> str:
    """Capitalize the first alphabetic character in the text.

    This is unicode-aware and will capitalize letters in any language.
    Non-alphabetic characters at the beginning are preserved.

    Args:
        text: Input text to capitalize.

    Returns:
        Text with the first alphabetic character capitalized.
    """
    if not text:
        return text

    result = list(text)
    for i, char in enumerate(result):
        if char.isalpha():
            result[i] = char.upper()
            break

    return "".join(result)


def finalize_reply(text: str) -> str:
    """Apply all presentation constraints in order.

    1. Normalize whitespace
    2. Tighten punctuation
    3. Capitalize first alphabetic character
    """
    text = normalize_whitespace(text)
    text = tighten_punctuation(text)
    return capitalize_first_alpha(text)
