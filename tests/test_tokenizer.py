"""Tests for search.tokenizer."""

from swift_patterns.search.tokenizer import is_preserved, stem_term, tokenize


class TestTokenize:
    def test_empty_text(self) -> None:
        assert tokenize("") == []
        assert tokenize(None) == []

    def test_lowercases_and_drops_stopwords(self) -> None:
        assert tokenize("The Swift and the Compiler") == ["swift", stem_term("compiler")]

    def test_drops_single_characters(self) -> None:
        assert tokenize("a b c swift") == ["swift"]

    def test_punctuation_splits_tokens(self) -> None:
        assert tokenize("SwiftUI's @State, binding!") == ["swiftui", "state", "binding"]

    def test_hyphenated_terms_stay_together(self) -> None:
        assert tokenize("async-await") == ["async-await"]

    def test_non_ascii_letters_split_tokens(self) -> None:
        assert tokenize("café swiftui") == [stem_term("caf"), "swiftui"]

    def test_preserved_terms_not_stemmed(self) -> None:
        assert tokenize("published observable codable") == ["published", "observable", "codable"]

    def test_other_terms_are_stemmed(self) -> None:
        assert tokenize("patterns") == ["pattern"]
        assert tokenize("testing") == ["test"]

    def test_deterministic(self) -> None:
        text = "Structured concurrency with async let and task groups"
        assert tokenize(text) == tokenize(text)


class TestIsPreserved:
    def test_known_terms(self) -> None:
        assert is_preserved("urlsession")
        assert is_preserved("swiftui")

    def test_unknown_terms(self) -> None:
        assert not is_preserved("pattern")
