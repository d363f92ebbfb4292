"""Tests for ordering, truncation and result shaping."""
import random

from hypothesis import given, strategies as st

from livesearch.catalog import InMemoryCatalogReader
from livesearch.models import CatalogEntry, ScoredItem
from livesearch.ranking import RankingService, assemble, clamp_limit, make_snippet, rank
from livesearch.scoring import PREFIX_SCORE

from conftest import CountingReader, make_entry


def test_clamp_limit():
    """Limits are clamped into 1..20."""

    assert clamp_limit(0) == 1
    assert clamp_limit(500) == 20
    assert clamp_limit(8) == 8
    assert clamp_limit("-3") == 1
    assert clamp_limit(" 5 ") == 5


def test_clamp_limit_defaults_for_missing_or_garbage():
    """Missing or unparseable limits fall back to the default."""

    assert clamp_limit(None) == 8
    assert clamp_limit("abc") == 8
    assert clamp_limit("") == 8


def test_in_stock_wins_a_score_tie(blue_catalog):
    """Equal scores put the in-stock product first."""

    service = RankingService(InMemoryCatalogReader(blue_catalog))

    results = service.search("blue", 8)

    assert [item.title for item in results] == ["Blue Widget", "Blue Widgets Pro"]
    assert [item.outOfStock for item in results] == [False, True]


def test_rank_orders_stock_then_score_then_title(blue_catalog):
    """Stock outranks score, score outranks title."""

    ranked = rank(blue_catalog, "blue")

    assert [item.title for item in ranked] == ["Blue Widget", "Red Gadget", "Blue Widgets Pro"]
    assert ranked[0].score == PREFIX_SCORE
    assert ranked[2].score == PREFIX_SCORE


def test_title_breaks_remaining_ties():
    """Case-insensitive title order settles equal stock and score."""

    entries = [make_entry("beta lamp"), make_entry("Alpha lamp"), make_entry("gamma lamp")]

    ranked = rank(entries, "lamp")

    assert [item.title for item in ranked] == ["Alpha lamp", "beta lamp", "gamma lamp"]


items = st.builds(
    lambda stock, value, title: ScoredItem(
        title=title,
        normalized_title=title.lower(),
        score=value,
        in_stock=stock,
        entry=CatalogEntry(id=title, title=title),
    ),
    st.booleans(),
    st.integers(min_value=0, max_value=10000),
    st.text(max_size=10),
)


@given(st.lists(items, max_size=30))
def test_sorting_is_idempotent(scored):
    """Sorting an already sorted list changes nothing."""

    once = sorted(scored, key=ScoredItem.sort_key)
    twice = sorted(once, key=ScoredItem.sort_key)
    assert once == twice


@given(st.lists(items, max_size=30), st.randoms())
def test_order_does_not_depend_on_input_order(scored, rnd):
    """Shuffled input sorts to the same key sequence."""

    shuffled = list(scored)
    rnd.shuffle(shuffled)
    keys = [item.sort_key() for item in sorted(scored, key=ScoredItem.sort_key)]
    assert keys == [item.sort_key() for item in sorted(shuffled, key=ScoredItem.sort_key)]


def test_truncation_happens_after_ranking():
    """A strong late candidate survives the limit."""

    weak = [make_entry(f"Lamp {n}") for n in range(10)]
    reader = CountingReader(weak + [make_entry("Blue Widget")])

    results = RankingService(reader).search("blue", 3)

    assert len(results) == 3
    assert results[0].title == "Blue Widget"


def test_empty_query_skips_catalog(service, counting_reader):
    """Blank terms return nothing without reading the catalog."""

    assert service.search("", 8) == []
    assert service.search("   \t", 8) == []
    assert service.search(None) == []
    assert counting_reader.calls == []


def test_search_trims_term_and_oversamples(service, counting_reader):
    """The catalog sees the trimmed term and the oversampled pool size."""

    service.search("  blue  ", 8)
    assert counting_reader.calls == [("blue", 64)]

    service.search("blue", 1)
    assert counting_reader.calls[-1] == ("blue", 50)


def test_result_items_carry_display_fields_only(service):
    """Results expose display fields and no score."""

    first = service.search("blue", 8)[0]

    assert first.model_dump() == {
        "id": "blue-widget",
        "title": "Blue Widget",
        "url": "https://shop.test/product/blue-widget/",
        "category": "Widgets",
        "price": "19.50 USD",
        "availability": "In stock",
        "outOfStock": False,
        "snippet": "",
    }


def test_missing_fields_fall_back():
    """Empty catalog fields get display fallbacks."""

    entry = CatalogEntry(id="7", title="Bare product")
    ranked = rank([entry], "bare")

    [item] = assemble(ranked, 8)

    assert item.category == "Uncategorised"
    assert item.price == "N/A"
    assert item.availability == "Unknown"
    assert item.outOfStock is True
    assert item.url == ""


def test_backorder_is_not_in_stock():
    """Backordered products are labelled but sort as out of stock."""

    entry = make_entry("Blue Lamp", stockStatus="onbackorder", price=1234.5)

    [item] = assemble(rank([entry], "blue"), 8)

    assert item.availability == "On backorder"
    assert item.outOfStock is True
    assert item.price == "1,234.50"


def test_snippet_strips_markup_and_truncates():
    """Snippets drop markup and cut long text with an ellipsis."""

    short = make_entry("Lamp", shortDescription="<p>Warm&nbsp; <b>light</b></p>\n\n")
    long = make_entry("Lamp", description="x" * 200)

    assert make_snippet(short) == "Warm light"
    assert make_snippet(long) == "x" * 140 + "…"


def test_ranking_ignores_retrieval_order(blue_catalog):
    """Ranking output does not depend on retrieval order."""

    shuffled = list(blue_catalog)
    random.Random(4).shuffle(shuffled)

    assert [i.title for i in rank(shuffled, "blue")] == [i.title for i in rank(blue_catalog, "blue")]
