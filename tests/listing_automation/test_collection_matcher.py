"""Tests for collection matching."""

import pytest
from hypothesis import given, strategies as st

from listing_automation.collection_matcher import (
    CollectionMatcher,
    build_searchable_terms,
    extract_folder_hints,
    round_half_up,
)
from listing_automation.models import Collection
from listing_automation.store_config import ConfigurationError, load_store_config


@pytest.fixture
def catalog():
    """The default EMT/Sports catalog."""
    return [
        Collection(
            id="emt-dtf-designs",
            name="EMT - DTF Designs",
            tags_required=["channel:dtf", "theme:emt"],
            keywords=["emt", "emergency", "medical", "paramedic", "ambulance", "first responder", "healthcare"],
        ),
        Collection(
            id="emt-pod-apparel",
            name="EMT - POD Apparel",
            tags_required=["channel:pod", "theme:emt"],
            keywords=["emt", "emergency", "medical", "paramedic", "shirt", "hoodie", "apparel", "clothing"],
        ),
        Collection(
            id="sports-dtf-designs",
            name="Sports - DTF Designs",
            tags_required=["channel:dtf", "theme:sports"],
            keywords=["sports", "baseball", "football", "basketball", "soccer", "athletic", "team"],
        ),
    ]


class TestRoundHalfUp:
    """Tests for rounding."""

    def test_rounds_half_up(self):
        assert round_half_up(96.5) == 97
        assert round_half_up(42.5) == 43

    def test_rounds_down_below_half(self):
        assert round_half_up(66.49) == 66


class TestFolderHints:
    """Tests for folder path hint extraction."""

    def test_splits_on_separators(self):
        """Test that path segments are split on slash, hyphen, underscore and spaces."""
        hints = extract_folder_hints("DTF Designs/Baseball-Team_Logo")
        assert hints == ["dtf", "designs", "baseball", "team", "logo"]

    def test_drops_short_tokens(self):
        """Test that tokens of two characters or fewer are dropped."""
        assert extract_folder_hints("a/of-EMT/xy") == ["emt"]

    def test_empty_path(self):
        assert extract_folder_hints("") == []


class TestSearchableTerms:
    """Tests for combining match signals."""

    def test_combines_all_sources(self):
        terms = build_searchable_terms("DTF/Hero", ["Ambulance"], ["Save Lives"], "DTF")
        assert terms == ["ambulance", "dtf", "hero", "save lives", "dtf"]

    def test_drops_empty_terms(self):
        """Test that blank text and an empty product type never become terms."""
        terms = build_searchable_terms("", ["", "truck"], ["  "], "")
        assert terms == ["truck"]


class TestCollectionMatcher:
    """Tests for picking the best collection."""

    def test_empty_catalog_raises(self):
        with pytest.raises(ConfigurationError):
            CollectionMatcher([])

    def test_keyword_and_channel_match(self):
        """Test the single-collection baseball example: channel bonus caps confidence at 100."""
        matcher = CollectionMatcher(
            [Collection(id="baseball", name="Baseball", tags_required=["channel:dtf"], keywords=["baseball", "dtf"])]
        )

        result = matcher.match("DTF Designs/Baseball-Team", ["baseball", "jersey"], product_type="DTF")

        assert result.collection_id == "baseball"
        assert result.confidence == 100
        assert result.matched_keywords == ["baseball", "dtf", "DTF (channel match)"]
        assert result.reasoning == "Matched 3 keywords: baseball, dtf, DTF (channel match). Score: 4/2 possible"

    def test_picks_highest_scoring_collection(self, catalog):
        """Test that sports signals beat EMT collections."""
        matcher = CollectionMatcher(catalog)

        result = matcher.match("Sports/Football-Team", ["football", "athletic"], product_type="")

        assert result.collection_id == "sports-dtf-designs"
        assert result.matched_keywords == ["sports", "football", "athletic", "team"]
        # 4 of 7 keywords
        assert result.confidence == 57
        assert result.tags_required == ["channel:dtf", "theme:sports"]

    def test_ties_keep_catalog_order(self, catalog):
        """Test that EMT signals shared by both EMT collections pick the first one."""
        matcher = CollectionMatcher(catalog)

        result = matcher.match("misc/x", ["paramedic"], product_type="")

        assert result.collection_id == "emt-dtf-designs"

    def test_channel_bonus_breaks_tie(self, catalog):
        """Test that a POD folder routes shared EMT signals to the POD collection."""
        matcher = CollectionMatcher(catalog)

        result = matcher.match("POD Apparel/Medic", ["paramedic"], product_type="POD")

        assert result.collection_id == "emt-pod-apparel"
        assert "POD (channel match)" in result.matched_keywords

    def test_channel_bonus_checks_every_channel_tag(self):
        """Test that a collection sold on several channels gets the bonus from a later channel tag."""
        matcher = CollectionMatcher(
            [Collection(id="multi", name="Multi Channel", tags_required=["channel:pod", "channel:dtf"], keywords=["emt"])]
        )

        result = matcher.match("DTF Designs/Thing", [], product_type="DTF")

        assert result.collection_id == "multi"
        assert result.matched_keywords == ["DTF (channel match)"]
        assert result.confidence == 100

    def test_channel_bonus_applies_once(self):
        matcher = CollectionMatcher(
            [Collection(id="dtf", name="DTF", tags_required=["channel:dtf", "channel:dtf-gang"], keywords=["emt"])]
        )

        result = matcher.match("DTF Designs/Thing", [], product_type="DTF")

        assert result.matched_keywords == ["DTF (channel match)"]

    def test_keyword_counts_once(self, catalog):
        """Test that a keyword matched by several terms only scores once."""
        matcher = CollectionMatcher(catalog)

        result = matcher.match("soccer/soccer-soccer", ["soccer", "soccer ball"], product_type="")

        assert result.matched_keywords == ["soccer"]
        assert result.confidence == round_half_up(1 / 7 * 100)

    def test_partial_term_matches_keyword(self, catalog):
        """Test containment in both directions."""
        matcher = CollectionMatcher(catalog)

        # "medic" is inside "medical", "paramedics" contains "paramedic"
        result = matcher.match("misc", ["medic", "paramedics"], product_type="")

        assert "medical" in result.matched_keywords
        assert "paramedic" in result.matched_keywords

    def test_reasoning_truncates_keywords(self, catalog):
        matcher = CollectionMatcher(catalog)

        result = matcher.match("misc", ["sports", "baseball", "football", "soccer"], product_type="")

        assert result.reasoning == "Matched 4 keywords: sports, baseball, football.... Score: 4/7 possible"

    def test_boost_score_weights_matches(self):
        matcher = CollectionMatcher(
            [Collection(id="c", name="C", keywords=["eagle", "flag"], boost_score=1.5)]
        )

        result = matcher.match("misc", ["eagle"], product_type="")

        assert result.confidence == 75
        assert "Score: 1.5/2 possible" in result.reasoning

    def test_fallback_prefers_product_type_collection(self, catalog):
        """Test that with no matches the first collection tagged with the product type wins."""
        matcher = CollectionMatcher(catalog)

        result = matcher.match("misc/zzz", ["cat"], product_type="POD")

        assert result.collection_id == "emt-pod-apparel"
        assert result.confidence == 30
        assert result.matched_keywords == []
        assert result.reasoning == (
            "No strong keyword matches found. Defaulted to EMT - POD Apparel based on product type."
        )

    def test_fallback_to_first_collection(self, catalog):
        matcher = CollectionMatcher(catalog)

        result = matcher.match("", [], product_type="")

        assert result.collection_id == "emt-dtf-designs"
        assert result.confidence == 30

    def test_always_returns_catalog_collection(self, catalog):
        matcher = CollectionMatcher(catalog)
        ids = {c.id for c in catalog}

        for labels in ([], ["ambulance"], ["hoodie", "emt"], ["unknown thing"]):
            assert matcher.match("anything", labels, product_type="DTF").collection_id in ids

    def test_deterministic(self, catalog):
        matcher = CollectionMatcher(catalog)

        first = matcher.match("DTF/EMT-Hero", ["ambulance", "medical"], ["Save Lives"], "DTF")
        second = matcher.match("DTF/EMT-Hero", ["ambulance", "medical"], ["Save Lives"], "DTF")

        assert first == second


@given(
    st.text(max_size=60),
    st.lists(st.text(max_size=15), max_size=8),
    st.one_of(st.none(), st.lists(st.text(max_size=20), max_size=4)),
    st.sampled_from(["DTF", "POD", ""]),
)
def test_confidence_stays_in_range(folder_path, labels, detected_text, product_type):
    collections = load_store_config().collections
    result = CollectionMatcher(collections).match(folder_path, labels, detected_text, product_type)

    assert 0 <= result.confidence <= 100
    assert result.collection_id in {c.id for c in collections}
