"""
Tests for the viewer overlay and the search / saved filters.
"""
import pytest

from inspiration_feed.ranking.overlay import annotate, saved_filter, search_filter
from inspiration_feed.ranking.types import ClothingItemPayload, OutfitPayload, ViewerContext

pytestmark = pytest.mark.unit


def ids(posts):
    return [p.id for p in posts]


@pytest.fixture
def viewer() -> ViewerContext:
    return ViewerContext(user_id="viewer", liked_ids={"b"}, saved_ids={"a", "c"})


def test_annotate_stamps_like_and_save_flags(make_scored, viewer):
    posts = [make_scored("a"), make_scored("b"), make_scored("c"), make_scored("d")]
    annotated = annotate(posts, viewer)
    assert [(p.id, p.has_liked, p.has_saved) for p in annotated] == [
        ("a", False, True),
        ("b", True, False),
        ("c", False, True),
        ("d", False, False),
    ]


def test_annotate_overrides_stale_flags(make_scored, viewer):
    stale = make_scored("d").model_copy(update={"has_liked": True, "has_saved": True})
    [fresh] = annotate([stale], viewer)
    assert not fresh.has_liked and not fresh.has_saved
    assert stale.has_liked  # input untouched


def test_search_matches_captions_case_insensitively(make_scored):
    posts = [
        make_scored("1", caption="Blue jacket day"),
        make_scored("2", caption="Red shoes"),
        make_scored("3", caption="feeling BLUE today"),
    ]
    assert ids(search_filter(posts, "blue")) == ["1", "3"]


def test_search_matches_author_handle_and_linked_names(make_scored):
    posts = [
        make_scored("handle", username="BlueSteps"),
        make_scored(
            "outfit",
            outfit=OutfitPayload(id="o", name="Navy and blue layers"),
            outfit_id="o",
        ),
        make_scored(
            "item",
            clothing_item=ClothingItemPayload(id="i", name="Light Blue Oxford"),
            clothing_item_id="i",
        ),
        make_scored("none", caption="monochrome", username="noir"),
    ]
    assert ids(search_filter(posts, "BLUE")) == ["handle", "outfit", "item"]


@pytest.mark.parametrize("query", ["", "   ", None])
def test_blank_query_keeps_everything(make_scored, query):
    posts = [make_scored("a"), make_scored("b", caption="x")]
    assert ids(search_filter(posts, query)) == ["a", "b"]


def test_search_tolerates_missing_fields(make_scored):
    posts = [make_scored("bare")]
    assert search_filter(posts, "anything") == []


def test_saved_filter_is_subset_with_flag_set(make_scored, viewer):
    annotated = annotate([make_scored(x) for x in "abcd"], viewer)
    saved = saved_filter(annotated)
    assert ids(saved) == ["a", "c"]
    assert set(ids(saved)) <= set(ids(annotated))
    assert all(p.has_saved for p in saved)
