"""
Tests for forecasting/trace.py and analysis/explainability.py.
"""

import pytest

from prepilot.allocation.engine import AllocationEngine
from prepilot.analysis.explainability import (
    EXPLAINED_FIELDS,
    ExplainabilityGenerator,
    ExplanationFormatter,
    describe_source,
)
from prepilot.config.schema import CampaignInput
from prepilot.forecasting.kpi_estimator import KpiEstimator
from prepilot.forecasting.trace import Adjustment, AdjustmentTrace, TraceBuilder


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def campaign() -> CampaignInput:
    return CampaignInput(industry="widgets", budget=10000, goals=["Sales"], season="peak")


@pytest.fixture
def forecast_parts(synthetic_registries, campaign):
    """Allocation and estimate for the peak-season widgets campaign."""
    allocation = AllocationEngine(synthetic_registries).allocate(campaign)
    estimate = KpiEstimator(synthetic_registries).estimate(campaign, allocation.amounts)
    return allocation, estimate


# =============================================================================
# AdjustmentTrace Tests
# =============================================================================

class TestAdjustmentTrace:
    """Tests for the adjustment trace."""

    def test_builder(self):
        """TraceBuilder stamps its stage on every entry."""
        builder = TraceBuilder("kpi")
        builder.add("season:peak", 2.0, platform="alpha", field="cpm")
        trace = builder.build()

        assert len(trace) == 1
        assert list(trace)[0] == Adjustment("kpi", "season:peak", 2.0, "alpha", "cpm")

    def test_concatenation(self):
        """Adding traces keeps order."""
        first = AdjustmentTrace((Adjustment("allocation", "a"),))
        second = AdjustmentTrace((Adjustment("kpi", "b"),))
        assert [e.source for e in first + second] == ["a", "b"]

    def test_select_and_sources(self):
        """select filters on every given criterion; sources dedupes in order."""
        trace = AdjustmentTrace((
            Adjustment("kpi", "benchmark", 10.0, "alpha", "cpm"),
            Adjustment("kpi", "season:peak", 2.0, "alpha", "cpm"),
            Adjustment("kpi", "season:peak", 2.0, "beta", "cpm"),
            Adjustment("kpi", "season:peak", 1.5, "alpha", "ctr"),
        ))

        assert len(trace.select(field_name="cpm")) == 3
        assert len(trace.select(platform="alpha", field_name="cpm")) == 2
        assert trace.sources("cpm") == ["benchmark", "season:peak"]

    def test_records(self):
        """to_records gives plain dicts."""
        trace = AdjustmentTrace((Adjustment("kpi", "x", 1.1, "alpha", "ctr", "n"),))
        assert trace.to_records() == [{
            "stage": "kpi", "source": "x", "factor": 1.1,
            "platform": "alpha", "field": "ctr", "note": "n", "amount": None,
        }]


# =============================================================================
# Formatter Tests
# =============================================================================

class TestExplanationFormatter:
    """Tests for source rendering and templates."""

    def test_describe_source(self):
        """Prefixes become labels and non-unit factors are shown."""
        assert describe_source("season:peak", 2.0) == "الموسم peak (×2.00)"
        assert describe_source("device:all", 1.0) == "متوسط الأجهزة"
        assert describe_source("custom") == "custom"

    def test_describe_amount_as_currency(self):
        """Entries that move money show a signed currency amount, not a multiplier."""
        assert describe_source("rounding_residual", 1.0, amount=1.0) == "تسوية التقريب (+1.00 ريال)"
        assert describe_source("rounding_residual", amount=-1.0) == "تسوية التقريب (-1.00 ريال)"
        assert describe_source("reallocation", amount=667.0) == "إعادة توزيع تكتيكية (+667.00 ريال)"

    def test_sources_skip_base_values(self):
        """Benchmark base values are not listed as adjustments."""
        trace = AdjustmentTrace((
            Adjustment("kpi", "benchmark", 10.0, "alpha", "cpm"),
            Adjustment("kpi", "season:peak", 2.0, "alpha", "cpm"),
        ))
        assert ExplanationFormatter.sources(trace, "cpm") == "الموسم peak (×2.00)"

    def test_varying_factor_hidden(self):
        """A source whose factor differs per platform is listed without a factor."""
        trace = AdjustmentTrace((
            Adjustment("sanity", "sanity:clamp", 0.75, "alpha", "ctr"),
            Adjustment("sanity", "sanity:clamp", 1.6, "beta", "ctr"),
        ))
        assert ExplanationFormatter.sources(trace, "ctr") == "تصحيح للنطاق المتوقع"

    def test_no_sources(self):
        assert ExplanationFormatter.sources(AdjustmentTrace(), "cpm") == "لا توجد تعديلات"

    def test_custom_templates(self, synthetic_registries, campaign, forecast_parts):
        """Templates can be swapped; unspecified fields keep the defaults."""
        allocation, estimate = forecast_parts
        formatter = ExplanationFormatter({"impressions": "Impressions: {impressions}"})
        explanations = ExplainabilityGenerator(synthetic_registries, formatter).explain(
            campaign, allocation, estimate
        )

        assert explanations["impressions"].startswith("Impressions: ")
        assert "CPM" in explanations["cpm"]


# =============================================================================
# ExplainabilityGenerator Tests
# =============================================================================

class TestExplainabilityGenerator:
    """Tests for ExplainabilityGenerator."""

    def test_every_field_explained(self, synthetic_registries, campaign, forecast_parts):
        """One non-empty explanation per field, in fixed order."""
        allocation, estimate = forecast_parts
        explanations = ExplainabilityGenerator(synthetic_registries).explain(campaign, allocation, estimate)

        assert tuple(explanations) == EXPLAINED_FIELDS
        assert all(text for text in explanations.values())

    def test_season_mentioned(self, synthetic_registries, campaign, forecast_parts):
        """Seasonal adjustments appear in the affected fields and the notes."""
        allocation, estimate = forecast_parts
        explanations = ExplainabilityGenerator(synthetic_registries).explain(campaign, allocation, estimate)

        assert "peak" in explanations["cpm"]
        assert "peak" in explanations["ctr"]
        assert "+100%" in explanations["general_notes"]

    def test_allocation_explains_goal(self, synthetic_registries, campaign, forecast_parts):
        """The allocation explanation names the goals and the top platform."""
        allocation, estimate = forecast_parts
        text = ExplainabilityGenerator(synthetic_registries).explain(campaign, allocation, estimate)[
            "budget_allocation"
        ]
        assert "Sales" in text
        assert "Alpha" in text
        assert "10,000.00" in text

    def test_undefined_cac_explained(self, synthetic_registries, campaign):
        """An undefined CAC gets its own explanation."""
        allocation = AllocationEngine(synthetic_registries).allocate(campaign)
        estimate = KpiEstimator(synthetic_registries).estimate(campaign, {"gamma": 4})
        explanations = ExplainabilityGenerator(synthetic_registries).explain(campaign, allocation, estimate)

        assert explanations["cac"] == ExplanationFormatter().render("cac_undefined")

    def test_fallback_noted(self, synthetic_registries):
        """Platforms on the default benchmark are called out."""
        campaign = CampaignInput(industry="widgets", budget=10000, goals=["Sales"],
                                 selected_platforms=["alpha", "delta"])
        allocation = AllocationEngine(synthetic_registries).allocate(campaign)
        estimate = KpiEstimator(synthetic_registries).estimate(campaign, allocation.amounts)
        explanations = ExplainabilityGenerator(synthetic_registries).explain(campaign, allocation, estimate)

        assert "Delta" in explanations["general_notes"]

    def test_deterministic(self, synthetic_registries, campaign, forecast_parts):
        """Explanations are a pure function of their inputs."""
        allocation, estimate = forecast_parts
        generator = ExplainabilityGenerator(synthetic_registries)
        assert generator.explain(campaign, allocation, estimate) == generator.explain(
            campaign, allocation, estimate
        )

    def test_rounding_residual_in_currency(self, synthetic_registries):
        """The allocation explanation shows the residual as money added to the top platform."""
        campaign = CampaignInput(industry="widgets", budget=10001, goals=["Sales"])
        allocation = AllocationEngine(synthetic_registries).allocate(campaign)
        estimate = KpiEstimator(synthetic_registries).estimate(campaign, allocation.amounts)
        text = ExplainabilityGenerator(synthetic_registries).explain(campaign, allocation, estimate)[
            "budget_allocation"
        ]

        assert "تسوية التقريب (+1.00 ريال)" in text
        assert "تسوية التقريب (×" not in text

    def test_break_even_noted(self, synthetic_registries):
        """A profit margin adds the break-even ROAS to the notes."""
        campaign = CampaignInput(industry="widgets", budget=10000, goals=["Sales"], profit_margin=25)
        allocation = AllocationEngine(synthetic_registries).allocate(campaign)
        estimate = KpiEstimator(synthetic_registries).estimate(campaign, allocation.amounts)
        notes = ExplainabilityGenerator(synthetic_registries).explain(campaign, allocation, estimate)[
            "general_notes"
        ]

        assert "4.00x" in notes
