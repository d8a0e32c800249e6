"""
Tests for analysis/recommendations.py - Rule-based recommendations.
"""

import pytest

from prepilot.allocation.results import AllocationResult
from prepilot.analysis.recommendations import (
    DEFAULT_RULES,
    RecommendationContext,
    RecommendationEngine,
    RecommendationRule,
)
from prepilot.config.schema import CampaignInput


# =============================================================================
# Helpers
# =============================================================================

def _allocation(amounts: dict) -> AllocationResult:
    total = sum(amounts.values())
    return AllocationResult(
        amounts=dict(amounts),
        shares={p: a / total for p, a in amounts.items()},
        raw_amounts=dict(amounts),
        total_budget=total,
        budget_tier="high",
    )


def _campaign(**overrides) -> CampaignInput:
    values = {"industry": "widgets", "budget": 25000, "goals": ["Sales"]}
    values.update(overrides)
    return CampaignInput(**values)


@pytest.fixture
def recommender(synthetic_registries):
    return RecommendationEngine(synthetic_registries)


def _fired(engine: RecommendationEngine, campaign, allocation) -> list[str]:
    """Names of the rules whose messages were returned."""
    messages = engine.recommend(campaign, allocation)
    ctx = RecommendationContext(campaign=campaign, allocation=allocation, registries=engine.registries)
    names = [rule.name for rule in engine.rules if rule.predicate(ctx)]
    assert len(names) == len(messages)
    return names


# =============================================================================
# Rule Tests
# =============================================================================

class TestRules:
    """Each rule in isolation."""

    def test_balanced_campaign_quiet(self, recommender):
        """A balanced campaign on the recommended platforms gets no advice."""
        allocation = _allocation({"alpha": 12500, "beta": 12500})
        assert recommender.recommend(_campaign(), allocation) == []

    def test_awareness_without_tiktok(self, recommender):
        allocation = _allocation({"alpha": 12500, "beta": 12500})
        names = _fired(recommender, _campaign(goals=["Awareness"]), allocation)
        assert names == ["awareness_tiktok"]

    def test_awareness_with_tiktok(self, recommender):
        """Having TikTok silences the awareness rule."""
        allocation = _allocation({"alpha": 10000, "beta": 10000, "tiktok": 5000})
        names = _fired(recommender, _campaign(goals=["Awareness"]), allocation)
        assert "awareness_tiktok" not in names

    def test_small_budget(self, recommender):
        """Budgets under 10,000 are told to focus."""
        allocation = _allocation({"alpha": 4500, "beta": 4500})
        names = _fired(recommender, _campaign(budget=9000), allocation)
        assert names == ["small_budget_focus"]

    def test_leads_with_google(self, recommender):
        """Lead campaigns running Google Ads are told to keep it."""
        allocation = _allocation({"alpha": 10000, "beta": 10000, "google_ads": 5000})
        names = _fired(recommender, _campaign(goals=["Leads"]), allocation)
        assert names == ["leads_google_search"]

    def test_missing_recommended(self, recommender):
        """Recommended platforms absent from the allocation are named."""
        allocation = _allocation({"alpha": 20000, "gamma": 5000})
        messages = recommender.recommend(_campaign(), allocation)
        assert any("Beta" in m for m in messages)

    def test_low_and_high_share(self, recommender):
        """Shares under 5% and over 70% are both reported, low first."""
        allocation = _allocation({"alpha": 24000, "beta": 1000})
        names = _fired(recommender, _campaign(), allocation)
        assert names == ["low_platform_share", "high_platform_share"]

    def test_share_thresholds_exclusive(self, recommender):
        """Exactly 70% is not over-concentrated."""
        allocation = _allocation({"alpha": 17500, "beta": 7500})
        assert "high_platform_share" not in _fired(recommender, _campaign(), allocation)

    def test_below_optimal_budget(self, recommender):
        """Platforms under their optimal minimum are listed with it."""
        allocation = _allocation({"alpha": 10000, "beta": 10000, "gamma": 5000})
        messages = recommender.recommend(_campaign(), allocation)
        assert any("Gamma" in m and "50,000" in m for m in messages)

    def test_season_opportunity(self, recommender):
        """A season that favours the industry is pointed out."""
        allocation = _allocation({"alpha": 12500, "beta": 12500})
        names = _fired(recommender, _campaign(season="peak"), allocation)
        assert names == ["season_opportunity"]

    def test_b2b_linkedin(self, registries):
        """B2B industries with a real budget and no LinkedIn are told to add it."""
        engine = RecommendationEngine(registries)
        allocation = _allocation({"google_ads": 15000, "meta": 10000})
        campaign = CampaignInput(industry="خدمات مالية", budget=25000, goals=["Sales"])

        assert "b2b_linkedin" in _fired(engine, campaign, allocation)

    def test_b2b_threshold(self, registries):
        """At exactly 20,000 the LinkedIn rule stays quiet."""
        engine = RecommendationEngine(registries)
        allocation = _allocation({"google_ads": 12000, "meta": 8000})
        campaign = CampaignInput(industry="خدمات مالية", budget=20000, goals=["Sales"])

        assert "b2b_linkedin" not in _fired(engine, campaign, allocation)


# =============================================================================
# RecommendationEngine Tests
# =============================================================================

class TestRecommendationEngine:
    """Tests for rule evaluation."""

    def test_rule_order_preserved(self, recommender):
        """Messages come out in rule order without short-circuiting."""
        allocation = _allocation({"alpha": 8500, "beta": 400})
        names = _fired(recommender, _campaign(budget=8900, goals=["Awareness"], season="peak"), allocation)

        order = [rule.name for rule in DEFAULT_RULES]
        assert names == sorted(names, key=order.index)
        assert {"awareness_tiktok", "small_budget_focus", "season_opportunity"} <= set(names)

    def test_custom_rules(self, synthetic_registries):
        """Rules can be replaced."""
        rule = RecommendationRule(
            name="always",
            predicate=lambda ctx: True,
            message=lambda ctx: f"{len(ctx.platforms)} platforms",
        )
        engine = RecommendationEngine(synthetic_registries, rules=[rule])
        allocation = _allocation({"alpha": 1000, "beta": 1000})

        assert engine.recommend(_campaign(), allocation) == ["2 platforms"]

    def test_zero_amount_platform_ignored(self, recommender):
        """Platforms with no money are not considered present."""
        allocation = _allocation({"alpha": 25000, "beta": 0})
        messages = recommender.recommend(_campaign(), allocation)
        assert any("Beta" in m for m in messages)
