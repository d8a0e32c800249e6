"""
Global pytest fixtures for PrePilot tests.
"""
import pytest

from prepilot.config.schema import CampaignInput, EngineConfig, SanityConfig
from prepilot.registries.data import build_default_registries
from prepilot.registries.loader import RegistryLoader
from prepilot.registries.registry import Registries
from prepilot.report.assembler import ForecastEngine


ECOMMERCE = "تجارة إلكترونية"
REAL_ESTATE = "عقارات"


# =============================================================================
# Registries
# =============================================================================

@pytest.fixture(scope="session")
def registries() -> Registries:
    """Production registries."""
    return build_default_registries()


def _metric(value, confidence="high", low=None, high=None):
    return {
        "value": value,
        "confidence": confidence,
        "range_min": value * 0.5 if low is None else low,
        "range_max": value * 2 if high is None else high,
    }


def _benchmark(cpm, cpc, ctr_pct, cvr_pct, roas, cac, confidence="high"):
    return {
        "cpm": _metric(cpm, confidence),
        "cpc": _metric(cpc, confidence),
        "ctr_pct": _metric(ctr_pct, confidence),
        "cvr_pct": _metric(cvr_pct, confidence),
        "roas": _metric(roas, confidence),
        "cac": _metric(cac, confidence),
    }


@pytest.fixture
def synthetic_tables() -> dict:
    """Small, round-number tables for deterministic tests.

    Platforms alpha/beta/gamma have benchmarks; delta has none (fallback).
    Industry "widgets" splits 0.5/0.3/0.2 across alpha/beta/gamma and
    discourages delta; "gadgets" has no split of its own.
    """
    return {
        "industries": {
            "default": {
                "default_split": {"alpha": 0.6, "beta": 0.4},
                "min_platforms": 1,
                "max_platforms": 4,
                "recommended_platforms": ["alpha"],
                "value_per_conversion": 100,
            },
            "widgets": {
                "aliases": ["Widgets"],
                "default_split": {"alpha": 0.5, "beta": 0.3, "gamma": 0.2},
                "min_platforms": 2,
                "max_platforms": 4,
                "recommended_platforms": ["alpha", "beta"],
                "value_per_conversion": 50,
                "min_recommended_budget": 20000,
            },
            "gadgets": {},
        },
        "platforms": {
            "alpha": {
                "display_name": "Alpha",
                "aliases": ["Alpha Ads"],
                "benchmark": _benchmark(10.0, 1.0, 1.0, 2.0, 3.0, 50.0, "high"),
                "optimal_budget_min": 1000,
            },
            "beta": {
                "display_name": "Beta",
                "benchmark": _benchmark(5.0, 0.5, 2.0, 1.0, 2.0, 25.0, "medium"),
                "optimal_budget_min": 1000,
            },
            "gamma": {
                "display_name": "Gamma",
                "benchmark": _benchmark(20.0, 2.0, 0.5, 5.0, 4.0, 80.0, "low"),
                "optimal_budget_min": 50000,
            },
            "delta": {
                "display_name": "Delta",
            },
        },
        "default_benchmark": _benchmark(8.0, 1.0, 1.0, 1.0, 1.0, 100.0, "low"),
        "goals": {
            "Sales": {"weights": {"alpha": 2.0}, "aliases": ["Conversions"]},
            "Awareness": {"weights": {"beta": 2.0}},
            "Leads": {},
        },
        "seasons": {
            "peak": {
                "cpm_multiplier": 2.0,
                "ctr_multiplier": 1.5,
                "cvr_multiplier": 0.5,
                "goal_multipliers": {"Sales": 2.0},
                "best_industries": ["widgets"],
                "aliases": ["Peak Season"],
            },
            "slow": {"worst_industries": ["widgets"]},
        },
        "budget_tiers": [
            {"key": "low", "lower_bound": 0, "upper_bound": 10000, "max_platforms": 2},
            {"key": "high", "lower_bound": 10000, "upper_bound": None, "max_platforms": 4},
        ],
        "devices": {
            "all": {"ctr_mod": 1.0, "cvr_mod": 1.0},
            "mobile": {"ctr_mod": 2.0, "cvr_mod": 0.5},
            "desktop": {"ctr_mod": 1.0, "cvr_mod": 1.0},
        },
        "compatibility": {
            "widgets": {"allow": ["alpha", "beta", "gamma"], "discourage": ["delta"]},
            "default": {"allow": ["alpha", "beta", "gamma", "delta"]},
        },
        "industry_goal_adjustments": {},
        "sanity_ranges": [
            {
                "name": "Widgets - Sales",
                "industry": "widgets",
                "goal": "Sales",
                "ranges": {"ctr": [0.8, 1.5], "cpm": [6, 12]},
            },
        ],
    }


@pytest.fixture
def synthetic_registries(synthetic_tables) -> Registries:
    """Registries built from the synthetic tables."""
    return RegistryLoader.from_dict(synthetic_tables)


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture
def default_config() -> EngineConfig:
    """Default engine configuration."""
    return EngineConfig()


@pytest.fixture
def strict_config() -> EngineConfig:
    """Flags any deviation from the expected ranges."""
    return EngineConfig(sanity=SanityConfig(flag_threshold_percentage=0))


@pytest.fixture
def engine(registries, default_config) -> ForecastEngine:
    """Forecast engine over the production registries."""
    return ForecastEngine(registries, default_config)


# =============================================================================
# Campaign inputs
# =============================================================================

@pytest.fixture
def ecommerce_input() -> CampaignInput:
    """Documented e-commerce example."""
    return CampaignInput(
        industry=ECOMMERCE,
        budget=100000,
        goals=["Sales", "Traffic"],
        selected_platforms=["Meta", "Google Search", "TikTok"],
    )


@pytest.fixture
def invalid_input() -> CampaignInput:
    """Low budget, no goals and an unknown platform."""
    return CampaignInput(
        industry=ECOMMERCE,
        budget=500,
        goals=[],
        selected_platforms=["UnknownPlatform"],
    )


@pytest.fixture
def real_estate_input() -> CampaignInput:
    """Real estate awareness campaign on Meta and Snapchat."""
    return CampaignInput(
        industry=REAL_ESTATE,
        budget=30000,
        goals=["Awareness"],
        selected_platforms=["Meta", "Snapchat"],
    )


@pytest.fixture
def widgets_input() -> CampaignInput:
    """Campaign over the synthetic registries."""
    return CampaignInput(industry="widgets", budget=10000, goals=["Sales"])
