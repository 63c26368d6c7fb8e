"""Tests for score combination, thresholding and ordering."""

import pytest

from chat_search.search import combine_score, rank_messages, score_message
from chat_search.search.ranker import ScoredMessage

from conftest import make_message


def _scored(message_id: str, similarity: float) -> ScoredMessage:
    return ScoredMessage(
        message=make_message(message_id, f"text {message_id}"),
        semantic_score=similarity,
        has_keyword_match=False,
        similarity=similarity,
    )


def test_combine_score_adds_boost_only_on_match() -> None:
    assert combine_score(0.3, True, 0.25) == pytest.approx(0.55)
    assert combine_score(0.3, False, 0.25) == pytest.approx(0.3)


def test_combine_score_is_capped_at_one() -> None:
    assert combine_score(0.9, True, 0.25) == 1.0
    assert combine_score(1.0, True, 0.25) == 1.0


def test_combine_score_never_negative() -> None:
    assert combine_score(-0.8, False, 0.25) == 0.0
    assert combine_score(-0.1, True, 0.25) == pytest.approx(0.15)


def test_exact_substring_gets_full_boost() -> None:
    message = make_message("1", "Quick reminder: STANDUP TOMORROW is moved")
    scored = score_message(
        message, query="standup tomorrow", semantic_score=0.42, keyword_boost=0.25
    )
    assert scored.has_keyword_match is True
    assert scored.similarity == pytest.approx(min(0.42 + 0.25, 1.0))
    assert scored.matched_by == "semantic+keyword"
    assert scored.to_dict()["matchedBy"] == "semantic+keyword"


def test_to_dict_reports_which_signal_matched() -> None:
    message = make_message("1", "lunch plans")
    scored = score_message(message, query="standup", semantic_score=0.7, keyword_boost=0.25)

    payload = scored.to_dict()

    assert payload["matchedBy"] == "semantic"
    assert payload["hasKeywordMatch"] is False
    assert payload["id"] == "1"


def test_threshold_is_exclusive() -> None:
    ranked = rank_messages(
        [_scored("a", 0.4), _scored("b", 0.41), _scored("c", 0.1)],
        threshold=0.4,
        limit=5,
    )
    assert [item.message.id for item in ranked] == ["b"]


def test_results_sorted_descending_and_truncated() -> None:
    scores = [0.5, 0.9, 0.7, 0.95, 0.6, 0.8, 0.65]
    ranked = rank_messages(
        [_scored(str(i), s) for i, s in enumerate(scores)], threshold=0.4, limit=5
    )
    similarities = [item.similarity for item in ranked]
    assert len(ranked) == 5
    assert similarities == sorted(similarities, reverse=True)
    assert similarities[0] == 0.95


def test_ties_keep_candidate_order() -> None:
    ranked = rank_messages(
        [_scored("first", 0.6), _scored("second", 0.6), _scored("third", 0.6)],
        threshold=0.4,
        limit=5,
    )
    assert [item.message.id for item in ranked] == ["first", "second", "third"]


def test_to_dict_passes_metadata_through() -> None:
    message = make_message("7", "ship it", status="read", imageURL=None)
    scored = score_message(message, query="ship", semantic_score=0.5, keyword_boost=0.25)
    payload = scored.to_dict()
    assert payload["id"] == "7"
    assert payload["status"] == "read"
    assert "imageURL" in payload
    assert payload["senderUsername"] == "user7"
    assert payload["hasKeywordMatch"] is True
    assert payload["semanticScore"] == 0.5
    assert payload["similarity"] == pytest.approx(0.75)
