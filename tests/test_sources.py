"""
Tests for the source registry and the priority policy.
"""

import dataclasses

import pytest
from companycheck.sources import (
    SOURCES,
    SourceDescriptor,
    Tier,
    demotion_floor,
    effective_priority,
    get_source,
    highest_precedence,
    lowest_precedence,
    tier_order,
)


class TestRegistry:
    """Test the static registry."""

    def test_ordered_by_priority(self):
        priorities = [s.priority for s in SOURCES]
        assert priorities == sorted(priorities)

    def test_tiers_grouped_in_precedence_order(self):
        ranks = [tier_order(s.tier) for s in SOURCES]
        assert ranks == sorted(ranks)
        assert SOURCES[0].tier is Tier.DELISTED
        assert SOURCES[-1].tier is Tier.GOOD_STANDING

    def test_good_list_uses_employer_name(self):
        assert get_source("good_listed").column == "employer_name"
        assert get_source("eib_approved").column == "company_name"

    def test_descriptors_are_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            SOURCES[0].priority = 42

    def test_unknown_source(self):
        with pytest.raises(KeyError):
            get_source("nope")


class TestTier:
    def test_total_order(self):
        assert tier_order(Tier.DELISTED) < tier_order(Tier.TARGET_MARKET) < tier_order(Tier.GOOD_STANDING)

    def test_values_and_themes(self):
        assert Tier("TML") is Tier.TARGET_MARKET
        assert Tier.DELISTED.theme == "red"
        assert Tier.GOOD_STANDING.label == "Good Standing"


class TestEffectivePriority:
    """Test the dynamic promotion/demotion policy."""

    def test_exact_delisted_promoted(self):
        second_list = get_source("delisted_company_2")
        assert effective_priority(second_list, 100) == highest_precedence() == 1

    def test_fuzzy_delisted_demoted(self):
        src = get_source("delisted_company_1")
        assert effective_priority(src, 85) == lowest_precedence() == 7

    def test_fuzzy_delisted_demoted_to_floor(self):
        src = get_source("delisted_company_1")
        assert effective_priority(src, 85, floor=3) == 3
        assert effective_priority(src, 100, floor=3) == 1

    @pytest.mark.parametrize("source_id", ["eib_approved", "credit_card_approved", "good_listed"])
    def test_other_tiers_keep_static_priority(self, source_id):
        src = get_source(source_id)
        assert effective_priority(src, 100) == src.priority
        assert effective_priority(src, 50, floor=1) == src.priority

    def test_promotion_uses_registry_in_use(self):
        custom = (
            SourceDescriptor("a", "name", Tier.TARGET_MARKET, 5, "A"),
            SourceDescriptor("b", "name", Tier.DELISTED, 8, "B"),
        )
        assert effective_priority(custom[1], 100, custom) == 5
        assert effective_priority(custom[1], 60, custom) == 8


class TestDemotionFloor:
    def test_weakest_present_priority(self):
        assert demotion_floor([3, 5, 4]) == 5

    def test_empty_result_set_falls_back_to_registry(self):
        assert demotion_floor([]) == lowest_precedence()
