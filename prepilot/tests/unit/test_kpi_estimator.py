"""
Tests for forecasting/kpi_estimator.py - KPI estimation.
"""

import pytest

from prepilot.config.schema import CampaignInput, EngineConfig
from prepilot.forecasting.kpi_estimator import (
    KpiEstimator,
    cap_modifier,
    compute_break_even_roas,
    compute_platform_kpis,
    compute_totals,
)
from prepilot.registries.loader import RegistryLoader


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def estimator(synthetic_registries):
    """KPI estimator over the synthetic registries."""
    return KpiEstimator(synthetic_registries)


def _campaign(**overrides) -> CampaignInput:
    values = {"industry": "widgets", "budget": 10000, "goals": ["Sales"]}
    values.update(overrides)
    return CampaignInput(**values)


# =============================================================================
# Pure formulas
# =============================================================================

class TestComputePlatformKpis:
    """Tests for the funnel formulas."""

    def test_funnel(self):
        """impressions -> clicks -> conversions with rounding at each step."""
        kpis = compute_platform_kpis("alpha", 10000, cpm=10, ctr=0.01, cvr=0.02, value_per_conversion=50)

        assert kpis.impressions == 1_000_000
        assert kpis.clicks == 10_000
        assert kpis.conversions == 200
        assert kpis.cpc == pytest.approx(1.0)
        assert kpis.revenue == pytest.approx(10000)
        assert kpis.roas == pytest.approx(1.0)
        assert kpis.cac == pytest.approx(50)
        assert kpis.cac_defined

    def test_no_conversions_leaves_cac_undefined(self):
        """CAC is undefined rather than infinite when nothing converts."""
        kpis = compute_platform_kpis("x", 10, cpm=20, ctr=0.001, cvr=0.01, value_per_conversion=50)

        assert kpis.conversions == 0
        assert kpis.cac is None
        assert not kpis.cac_defined
        assert kpis.roas == 0.0

    def test_no_clicks_leaves_cpc_undefined(self):
        """CPC is undefined without clicks."""
        kpis = compute_platform_kpis("x", 1, cpm=100, ctr=0.01, cvr=0.01, value_per_conversion=50)
        assert kpis.clicks == 0
        assert kpis.cpc is None

    def test_totals_are_flow_through(self):
        """Total ratios come from summed counts, not averaged ratios."""
        a = compute_platform_kpis("a", 10000, cpm=10, ctr=0.01, cvr=0.02, value_per_conversion=50)
        b = compute_platform_kpis("b", 10000, cpm=5, ctr=0.02, cvr=0.01, value_per_conversion=50)
        totals = compute_totals([a, b])

        assert totals.impressions == a.impressions + b.impressions
        assert totals.ctr == pytest.approx((a.clicks + b.clicks) / (a.impressions + b.impressions))
        assert totals.cpm == pytest.approx(20000 / totals.impressions * 1000)
        assert totals.cac == pytest.approx(20000 / totals.conversions)


# =============================================================================
# KpiEstimator Tests
# =============================================================================

class TestKpiEstimator:
    """Tests for KpiEstimator."""

    def test_benchmark_only(self, estimator):
        """Without season or device mix the benchmark drives the funnel."""
        estimate = estimator.estimate(_campaign(), {"alpha": 10000})
        kpis = estimate.by_platform["alpha"]

        assert kpis.impressions == 1_000_000
        assert kpis.clicks == 10_000
        assert kpis.conversions == 200
        assert kpis.revenue == pytest.approx(10000)
        assert kpis.roas == pytest.approx(1.0)
        assert kpis.cac == pytest.approx(50)

    def test_season_multipliers(self, estimator):
        """Season multipliers scale cpm, ctr and cvr."""
        estimate = estimator.estimate(_campaign(season="peak"), {"alpha": 10000})
        kpis = estimate.by_platform["alpha"]

        assert kpis.cpm == pytest.approx(20)
        assert kpis.impressions == 500_000
        assert kpis.clicks == 7_500
        assert kpis.conversions == 75

    def test_mobile_only(self, estimator):
        """A mobile-only mix applies the mobile modifiers."""
        estimate = estimator.estimate(_campaign(device_mix={"mobile": 1.0}), {"alpha": 10000})
        kpis = estimate.by_platform["alpha"]

        assert kpis.clicks == 20_000
        assert kpis.conversions == 200

    def test_device_mix_weighted(self, estimator):
        """A 50/50 mix averages the device modifiers."""
        estimate = estimator.estimate(
            _campaign(device_mix={"mobile": 1, "desktop": 1}), {"alpha": 10000}
        )
        kpis = estimate.by_platform["alpha"]

        assert kpis.ctr == pytest.approx(0.015)
        assert kpis.cvr == pytest.approx(0.015)
        assert "device:mix" in estimate.trace.sources("ctr", platform="alpha")

    def test_industry_modifiers(self, synthetic_tables):
        """Industry cpm/ctr/cvr modifiers are applied."""
        from prepilot.registries.loader import RegistryLoader

        synthetic_tables["industries"]["widgets"]["cpm_modifier"] = 2.0
        estimator = KpiEstimator(RegistryLoader.from_dict(synthetic_tables))
        kpis = estimator.estimate(_campaign(), {"alpha": 10000}).by_platform["alpha"]

        assert kpis.cpm == pytest.approx(20)
        assert kpis.impressions == 500_000

    def test_cac_undefined(self, estimator):
        """A tiny budget with no conversions warns and leaves CAC undefined."""
        estimate = estimator.estimate(_campaign(), {"gamma": 4})
        kpis = estimate.by_platform["gamma"]

        assert kpis.impressions == 200
        assert kpis.clicks == 1
        assert kpis.conversions == 0
        assert kpis.cac is None
        assert len(estimate.warnings) == 1
        assert "cac_undefined" in estimate.trace.sources("cac", platform="gamma")

    def test_fallback_benchmark(self, estimator):
        """A platform without a benchmark uses the default one and is marked."""
        estimate = estimator.estimate(_campaign(), {"delta": 8000})
        kpis = estimate.by_platform["delta"]

        assert kpis.used_fallback_benchmark
        assert kpis.impressions == 1_000_000
        assert estimate.fallback_platforms == {"delta"}
        assert any("Delta" in w for w in estimate.warnings)
        assert "benchmark:default" in estimate.trace.sources("benchmark", platform="delta")

    def test_allocation_order_kept(self, estimator):
        """Platforms are estimated in allocation order."""
        estimate = estimator.estimate(_campaign(), {"beta": 3000, "alpha": 5000, "gamma": 2000})
        assert [p.platform for p in estimate.platforms] == ["beta", "alpha", "gamma"]

    def test_parallel_matches_serial(self, synthetic_registries):
        """The thread pool gives the same estimate as the serial path."""
        amounts = {"alpha": 6667, "beta": 2000, "gamma": 1333}
        campaign = _campaign(season="peak", device_mix={"mobile": 3, "desktop": 1})

        serial = KpiEstimator(synthetic_registries).estimate(campaign, amounts)
        parallel = KpiEstimator(synthetic_registries, EngineConfig(parallel=True)).estimate(campaign, amounts)
        assert parallel == serial

    def test_dataframe_percent_columns(self, estimator):
        """to_dataframe adds percentage columns next to the fractions."""
        df = estimator.estimate(_campaign(), {"alpha": 10000}).to_dataframe()
        assert df.loc[0, "ctr_pct"] == pytest.approx(1.0)
        assert df.loc[0, "cvr_pct"] == pytest.approx(2.0)

    def test_summary_dict(self, estimator):
        """Summary includes platform rows and totals."""
        summary = estimator.estimate(_campaign(), {"alpha": 10000}).get_summary_dict()
        assert summary["totals"]["impressions"] == 1_000_000
        assert "alpha" in summary["platforms"]

    def test_summary_totals_extras(self, estimator):
        """ARPU and CPA are always present; break-even needs a margin."""
        totals = estimator.estimate(_campaign(), {"alpha": 10000}).get_summary_dict()["totals"]
        assert totals["arpu"] == pytest.approx(50)
        assert totals["cpa"] == pytest.approx(50)
        assert totals["break_even_roas"] is None


# =============================================================================
# Creative and audience modifiers
# =============================================================================

def _estimator_with(synthetic_tables, **tables) -> KpiEstimator:
    synthetic_tables.update(tables)
    return KpiEstimator(RegistryLoader.from_dict(synthetic_tables))


class TestAudienceModifiers:
    """Alpha starts at CPM 10, CTR 1% and CVR 2%."""

    def test_creative_type(self, synthetic_tables):
        estimator = _estimator_with(synthetic_tables, creative_types={"video": {"cpm": 1.2, "ctr": 1.5, "cvr": 1.1}})
        estimate = estimator.estimate(_campaign(creative_type="video"), {"alpha": 10000})
        kpis = estimate.by_platform["alpha"]

        assert kpis.cpm == pytest.approx(12)
        assert kpis.ctr == pytest.approx(0.015)
        assert kpis.cvr == pytest.approx(0.022)
        for field_name in ("cpm", "ctr", "cvr"):
            assert "creative:video" in estimate.trace.sources(field_name, platform="alpha")

    def test_competition_level(self, synthetic_tables):
        estimator = _estimator_with(synthetic_tables, competition_levels={"high": {"cpm": 1.25, "ctr": 0.9}})
        estimate = estimator.estimate(_campaign(competition_level="high"), {"alpha": 10000})

        assert estimate.by_platform["alpha"].cpm == pytest.approx(12.5)
        assert estimate.by_platform["alpha"].ctr == pytest.approx(0.009)
        assert "competition:high" in estimate.trace.sources("cpm")

    def test_demographics_per_platform(self, synthetic_tables):
        """Age and gender modifiers apply only where the platform has data."""
        estimator = _estimator_with(synthetic_tables, demographics={
            "alpha": {"age_groups": {"25-34": {"ctr": 1.2}}, "genders": {"female": {"cvr": 1.5}}},
        })
        campaign = _campaign(age_groups=["25-34"], gender="female")
        estimate = estimator.estimate(campaign, {"alpha": 5000, "beta": 5000})

        alpha = estimate.by_platform["alpha"]
        assert alpha.ctr == pytest.approx(0.012)
        assert alpha.cvr == pytest.approx(0.03)
        assert estimate.by_platform["beta"].ctr == pytest.approx(0.02)
        assert estimate.trace.sources("ctr", platform="alpha")[-2:] == ["age:25-34", "gender:female"]
        assert "age:25-34" not in estimate.trace.sources("ctr", platform="beta")

    def test_location_mean(self, synthetic_tables):
        """Several cities contribute their mean modifier as one adjustment."""
        estimator = _estimator_with(synthetic_tables, locations={
            "riyadh": {"cpm": 1.2, "cvr": 1.2},
            "jeddah": {"cpm": 1.0, "cvr": 1.0},
        })
        estimate = estimator.estimate(_campaign(locations=["riyadh", "jeddah"]), {"alpha": 10000})

        assert estimate.by_platform["alpha"].cpm == pytest.approx(11)
        assert estimate.by_platform["alpha"].cvr == pytest.approx(0.022)
        assert "location:riyadh، jeddah" in estimate.trace.sources("cpm")

    def test_interests_and_behaviors_multiply(self, synthetic_tables):
        estimator = _estimator_with(
            synthetic_tables,
            interests={"tech": {"cvr": 1.2}},
            behaviors={"shoppers": {"cvr": 1.5}},
        )
        estimate = estimator.estimate(_campaign(interests=["tech"], behaviors=["shoppers"]), {"alpha": 10000})

        assert estimate.by_platform["alpha"].cvr == pytest.approx(0.036)
        assert "modifier_cap" not in estimate.trace.sources("cvr")

    def test_combined_product_capped(self, synthetic_tables):
        """A CPM product of 4 is damped to 2 + (4 - 2) / 2 = 3."""
        estimator = _estimator_with(
            synthetic_tables,
            creative_types={"celebrity": {"cpm": 2.0}},
            competition_levels={"extreme": {"cpm": 2.0}},
        )
        estimate = estimator.estimate(
            _campaign(creative_type="celebrity", competition_level="extreme"), {"alpha": 10000}
        )

        assert estimate.by_platform["alpha"].cpm == pytest.approx(30)
        caps = [e for e in estimate.trace if e.source == "modifier_cap"]
        assert [(e.field, e.factor) for e in caps] == [("cpm", pytest.approx(0.75))]

    def test_no_modifiers_without_tables(self, estimator):
        """Keys the registries don't know leave the rates untouched."""
        estimate = estimator.estimate(_campaign(creative_type="video"), {"alpha": 10000})
        assert estimate.by_platform["alpha"].cpm == pytest.approx(10)

    @pytest.mark.parametrize("product,expected", [(1.5, 1.5), (2.0, 2.0), (3.0, 2.5), (5.0, 3.0)])
    def test_cap_modifier(self, product, expected):
        assert cap_modifier(product, 2.0, 3.0) == pytest.approx(expected)


# =============================================================================
# Profitability totals
# =============================================================================

class TestProfitability:
    """Tests for ARPU, CPA and the break-even ROAS."""

    def test_break_even_from_margin(self):
        assert compute_break_even_roas(25) == pytest.approx(4.0)
        assert compute_break_even_roas(100) == pytest.approx(1.0)
        assert compute_break_even_roas(None) is None

    def test_estimate_carries_break_even(self, estimator):
        totals = estimator.estimate(_campaign(profit_margin=25), {"alpha": 10000}).totals
        assert totals.break_even_roas == pytest.approx(4.0)

    def test_arpu_and_cpa(self, estimator):
        totals = estimator.estimate(_campaign(), {"alpha": 10000}).totals

        assert totals.arpu == pytest.approx(totals.revenue / totals.conversions)
        assert totals.cpa == pytest.approx(10000 / 200)

    def test_undefined_without_conversions(self, estimator):
        totals = estimator.estimate(_campaign(), {"gamma": 4}).totals
        assert totals.arpu is None
        assert totals.cpa is None
