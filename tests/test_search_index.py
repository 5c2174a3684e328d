"""Tests for search.search_index."""

from swift_patterns.search.search_index import SearchIndex, fuzzy_search, suggest_similar
from swift_patterns.search.tokenizer import stem_term

from conftest import make_doc


def _corpus():
    return [
        make_doc("s-1", title="Async Await Patterns", content="Using async functions and await."),
        make_doc("s-2", title="Networking with URLSession", content="Fetching data with urlsession."),
        make_doc("s-3", title="SwiftUI Lists", content="Lists and navigation in swiftui.",
                 topics=("swiftui",)),
        make_doc("s-4", title="Stat Tracking", content="Keeping a stat counter."),
    ]


class TestSearchIndex:
    def setup_method(self) -> None:
        self.index = SearchIndex()
        self.index.add_documents(_corpus())

    def test_exact_match(self) -> None:
        results = self.index.search("urlsession")
        assert [r.document.id for r in results] == ["s-2"]
        assert results[0].matched_terms == ["urlsession"]

    def test_search_is_deterministic(self) -> None:
        first = [(r.document.id, r.score) for r in self.index.search("async swiftui lists")]
        second = [(r.document.id, r.score) for r in self.index.search("async swiftui lists")]
        assert first == second

    def test_typo_matches_within_fuzzy_distance(self) -> None:
        results = self.index.search("asyc", fuzzy=0.2)
        assert "s-1" in [r.document.id for r in results]

    def test_single_substitution_in_long_term(self) -> None:
        results = self.index.search("urlsessian", fuzzy=0.2)
        assert [r.document.id for r in results] == ["s-2"]

    def test_fuzzy_disabled(self) -> None:
        assert self.index.search("asyc", fuzzy=0, prefix=False) == []

    def test_prefix_match(self) -> None:
        results = self.index.search("navig", fuzzy=0)
        assert [r.document.id for r in results] == ["s-3"]

    def test_preserved_term_only_matches_itself(self) -> None:
        # "state" is one edit from the indexed term "stat" but must not expand
        assert self.index.search("state") == []
        assert [r.document.id for r in self.index.search("stat")] == ["s-4"]

    def test_stopword_only_query(self) -> None:
        assert self.index.search("the and of") == []
        assert self.index.search("") == []

    def test_min_score_filters(self) -> None:
        assert self.index.search("swiftui", min_score=10_000) == []

    def test_title_boost_ranks_title_match_first(self) -> None:
        index = SearchIndex()
        index.add_documents([
            make_doc("s-1", title="Unrelated", content="combine operators"),
            make_doc("s-2", title="Combine", content="operators"),
        ])
        results = index.search("combine")
        assert results[0].document.id == "s-2"

    def test_more_matched_terms_rank_higher(self) -> None:
        results = self.index.search("swiftui navigation")
        assert results[0].document.id == "s-3"
        assert results[0].matched_terms == ["swiftui", stem_term("navigation")]

    def test_ties_keep_insertion_order(self) -> None:
        index = SearchIndex()
        index.add_documents([
            make_doc("x-2", title="Actors", content="actor"),
            make_doc("x-1", title="Actors", content="actor"),
        ])
        results = index.search("actor")
        assert [r.document.id for r in results] == ["x-2", "x-1"]
        assert results[0].score == results[1].score

    def test_add_documents_replaces_contents(self) -> None:
        self.index.add_documents([make_doc("n-1", title="Macros")])
        assert len(self.index) == 1
        assert self.index.search("urlsession") == []
        assert [r.document.id for r in self.index.search("macros")] == ["n-1"]

    def test_duplicate_ids_keep_first(self) -> None:
        index = SearchIndex()
        index.add_documents([
            make_doc("d-1", title="Actors"),
            make_doc("d-1", title="Macros"),
        ])
        assert len(index) == 1
        assert [r.document.title for r in index.search("actors")] == ["Actors"]
        assert index.search("macros") == []

    def test_clear(self) -> None:
        self.index.clear()
        assert len(self.index) == 0
        assert self.index.search("swiftui") == []

    def test_vocabulary_sorted(self) -> None:
        vocabulary = self.index.vocabulary
        assert vocabulary == sorted(vocabulary)
        assert "urlsession" in vocabulary


class TestFuzzySearch:
    def test_builds_throwaway_index(self) -> None:
        results = fuzzy_search(_corpus(), "swiftui")
        assert results[0].document.id == "s-3"


class TestSuggestSimilar:
    def test_suggests_close_terms(self) -> None:
        assert suggest_similar("asyc", ["async", "swiftui", "combine"]) == ["async"]

    def test_excludes_exact_match(self) -> None:
        assert suggest_similar("async", ["async"]) == []

    def test_nearest_first_then_input_order(self) -> None:
        terms = ["stater", "stats", "start"]
        assert suggest_similar("stat", terms) == ["stats", "start", "stater"]

    def test_limits_suggestions(self) -> None:
        terms = ["cat", "bat", "hat", "mat"]
        assert suggest_similar("rat", terms, max_suggestions=2) == ["cat", "bat"]

    def test_case_insensitive(self) -> None:
        assert suggest_similar("SWIFTU", ["SwiftUI"]) == ["SwiftUI"]
