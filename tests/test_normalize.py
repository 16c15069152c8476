"""Tests for normalize module."""

from pathlib import Path
import sys

sys.path.append(str(Path(__file__).resolve().parent.parent))

from normalize import apply_pretransforms, normalize, tokenize  # noqa: E402


class TestTokenize:
    """Tests for tokenize function."""

    def test_lowercases_and_splits(self):
        """Words should be lowercased and split on whitespace."""
        assert tokenize("I am Sad today") == ["i", "am", "sad", "today"]

    def test_strips_terminal_punctuation(self):
        """Sentence punctuation should not stick to words."""
        assert tokenize("I am sad today.") == ["i", "am", "sad", "today"]
        assert tokenize("Why?!") == ["why"]

    def test_stray_punctuation_splits_words(self):
        """Punctuation between words should act as a separator."""
        assert tokenize("well,i think-so") == ["well", "i", "think", "so"]

    def test_apostrophes_fold_contractions(self):
        """Contractions should become single words."""
        assert tokenize("I'm sure I don't know") == ["im", "sure", "i", "dont", "know"]
        assert tokenize("I’m here") == ["im", "here"]

    def test_empty_and_symbol_only(self):
        """Input without words should give no tokens."""
        assert tokenize("") == []
        assert tokenize("   ") == []
        assert tokenize("?!... --") == []


class TestPretransforms:
    """Tests for apply_pretransforms function."""

    def test_word_expands_in_place(self):
        """A word mapped to a phrase should expand where it stood."""
        table = {"dont": ("do", "not")}
        assert apply_pretransforms(["i", "dont", "know"], table) == ["i", "do", "not", "know"]

    def test_expansion_is_not_transformed_again(self):
        """Replacement words are emitted as they are."""
        table = {"a": ("b",), "b": ("c",)}
        assert apply_pretransforms(["a", "b"], table) == ["b", "c"]

    def test_normalize_applies_table(self):
        """normalize should tokenize and then transform."""
        assert normalize("I'm fine.", {"im": ("i", "am")}) == ["i", "am", "fine"]

    def test_normalize_without_table(self):
        """normalize should work with no pre-transforms."""
        assert normalize("Hello there") == ["hello", "there"]
