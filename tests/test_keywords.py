"""Tests for keyword selection."""

from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parent.parent))

import keywords  # noqa: E402
from script import script_from_dict  # noqa: E402


def _script(entries, synonyms=()):
    return script_from_dict(
        {
            "greetings": ["Hi."],
            "farewells": ["Bye."],
            "fallbacks": ["Go on."],
            "synonyms": list(synonyms),
            "keywords": [
                {"word": word, "rank": rank, "decompositions": [{"pattern": "*", "reassemblies": [word]}]}
                for word, rank in entries
            ],
        }
    )


def test_highest_rank_wins(script):
    """'always' (rank 5) beats 'sad' (rank 3)."""
    rule = keywords.select(script, ["you", "always", "say", "im", "sad"])
    assert rule.word == "always"


def test_no_keyword_returns_none(script):
    assert keywords.select(script, ["nothing", "here"]) is None
    assert keywords.select(script, []) is None


def test_rank_tie_earliest_token_wins():
    script = _script([("how", 0), ("hello", 0)])
    assert keywords.select(script, ["hello", "how", "are", "you"]).word == "hello"
    assert keywords.select(script, ["how", "hello"]).word == "how"


def test_same_token_tie_uses_declaration_order():
    """A token hitting two rules at one position picks the earlier rule."""
    script = _script(
        [("relative", 1), ("mother", 1)],
        synonyms=[{"canonical": "relative", "words": ["mother"]}],
    )
    assert keywords.select(script, ["my", "mother"]).word == "relative"


def test_synonym_reaches_keyword(script):
    """'unhappy' belongs to the 'sad' class and 'sad' is a keyword."""
    rule = keywords.select(script, ["i", "feel", "unhappy"])
    assert rule.word == "feel"
    rule = keywords.select(script, ["so", "unhappy"])
    assert rule.word == "sad"


def test_candidates_record_positions(script):
    found = keywords.candidates(script, ["i", "am", "depressed"])
    assert [(c.rule.word, c.position) for c in found] == [("i", 0), ("sad", 2)]


def test_order_of_ranks():
    script = _script([("i", 1), ("my", 2), ("are", 0), ("alike", 3)])
    tokens = "i love my dog people think we are alike".split()
    found = sorted(keywords.candidates(script, tokens), key=lambda c: c.sort_key)
    assert [c.rule.word for c in found] == ["alike", "my", "i", "are"]
