from __future__ import annotations

import copy
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from script import script_from_dict
from session import Session

SAMPLE_SCRIPT = {
    "greetings": ["Hello.", "Hi there."],
    "farewells": ["Goodbye.", "Take care."],
    "fallbacks": ["Please go on.", "Tell me more.", "I see."],
    "synonyms": [
        {"canonical": "sad", "words": ["unhappy", "depressed"]},
        {"canonical": "family", "words": ["mother", "father"]},
    ],
    "pretransforms": [
        {"from": "dont", "to": ["do", "not"]},
        {"from": "im", "to": ["i", "am"]},
    ],
    "reflections": [
        {"word": "my", "inverse": "your", "twoway": True},
        {"word": "me", "inverse": "you", "twoway": False},
    ],
    "keywords": [
        {
            "word": "always",
            "rank": 5,
            "decompositions": [
                {"pattern": ["*"], "reassemblies": ["Can you think of a specific example?", "When?"]}
            ],
        },
        {
            "word": "sad",
            "rank": 3,
            "decompositions": [
                {
                    "pattern": ["*", "@sad", "*"],
                    "reassemblies": ["Why do you feel that way?", "I am sorry to hear that."],
                }
            ],
        },
        {
            "word": "feel",
            "rank": 10,
            "decompositions": [
                {"pattern": ["*", "feel", "*"], "reassemblies": [{"goto": "sad"}]}
            ],
        },
        {
            "word": "i",
            "rank": 0,
            "decompositions": [
                {
                    "pattern": ["I", "am", "*"],
                    "reassemblies": [
                        ["Why", "do", "you", "say", "you", "are", 1],
                        "How long have you been $1?",
                    ],
                },
                {"pattern": "* i do not *", "reassemblies": ["Why don't you $2?"]},
            ],
        },
        {
            "word": "my",
            "rank": 2,
            "decompositions": [
                {"pattern": "* my @family *", "reassemblies": ["Tell me more about your family."]},
                {
                    "pattern": "* my *",
                    "memorable": True,
                    "memory": "Earlier you said your $2.",
                    "reassemblies": ["Your $2?", "Why do you say your $2?"],
                },
            ],
        },
        {
            "word": "computer",
            "rank": 1,
            "decompositions": [
                {"pattern": "* computer is *", "reassemblies": ["Why is the computer $2?"]}
            ],
        },
    ],
}


@pytest.fixture
def script_data():
    """A deep copy of the sample script source, safe to mutate."""
    return copy.deepcopy(SAMPLE_SCRIPT)


@pytest.fixture
def script(script_data):
    return script_from_dict(script_data)


@pytest.fixture
def session(script):
    """A session that has already greeted."""
    s = Session(script)
    s.respond("")
    return s
