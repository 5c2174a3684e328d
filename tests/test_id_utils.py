"""Tests for common.id_utils."""

from swift_patterns.common.id_utils import collection_hash, make_document_id

from conftest import make_doc


class TestDocumentIds:
    def test_prefers_guid(self) -> None:
        assert make_document_id("sundell", "guid-1", "https://x") == "sundell-guid-1"

    def test_falls_back_to_link(self) -> None:
        assert make_document_id("sundell", "", "https://x") == "sundell-https://x"
        assert make_document_id("sundell", None, "https://x") == "sundell-https://x"


class TestCollectionHash:
    def test_order_independent(self) -> None:
        docs = [make_doc("a-1"), make_doc("a-2")]
        assert collection_hash(docs) == collection_hash(list(reversed(docs)))

    def test_changes_with_membership(self) -> None:
        assert collection_hash([make_doc("a-1")]) != collection_hash([make_doc("a-1"), make_doc("a-2")])

    def test_empty_collection(self) -> None:
        assert collection_hash([]) == collection_hash([])
