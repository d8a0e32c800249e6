"""
Pydantic schemas for the immutable reference registries.

The registries hold every static table the engine reads: industry splits,
platform benchmarks, goal weights, seasonal / budget-tier / device modifiers,
audience and creative modifiers, platform compatibility and sanity ranges. They are frozen after construction
and injected into each component.
"""

from typing import Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from enum import Enum


DEFAULT_KEY = "default"

SPLIT_TOLERANCE = 1e-6


# =============================================================================
# Enums
# =============================================================================

class ConfidenceTier(str, Enum):
    """Qualitative reliability label attached to a benchmark value."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CompatibilityTier(str, Enum):
    """How a platform fits an industry."""
    ALLOWED = "allowed"
    DISCOURAGED = "discouraged"
    DISALLOWED = "disallowed"


class FrozenModel(BaseModel):
    """Base for registry records: immutable once built."""
    model_config = ConfigDict(frozen=True, extra="forbid")


# =============================================================================
# Platforms
# =============================================================================

class BenchmarkMetric(FrozenModel):
    """A single benchmark rate with its confidence tier and plausible range."""
    value: float = Field(..., ge=0, description="Reference value")
    confidence: ConfidenceTier = Field(ConfidenceTier.MEDIUM, description="Confidence tier")
    range_min: float = Field(..., ge=0, description="Lower plausible bound")
    range_max: float = Field(..., ge=0, description="Upper plausible bound")

    @field_validator("range_max")
    @classmethod
    def max_not_below_min(cls, v, info):
        if "range_min" in info.data and v < info.data["range_min"]:
            raise ValueError("range_max must be >= range_min")
        return v


class BenchmarkEntry(FrozenModel):
    """Authoritative reference rates for a platform."""
    cpm: BenchmarkMetric = Field(..., description="Cost per 1000 impressions")
    cpc: BenchmarkMetric = Field(..., description="Cost per click")
    ctr_pct: BenchmarkMetric = Field(..., description="Click-through rate in percent")
    cvr_pct: BenchmarkMetric = Field(..., description="Conversion rate in percent")
    roas: BenchmarkMetric = Field(..., description="Return on ad spend")
    cac: BenchmarkMetric = Field(..., description="Customer acquisition cost")

    def metric(self, name: str) -> BenchmarkMetric:
        """Return a metric by its short name (cpm, cpc, ctr, cvr, roas, cac)."""
        lookup = {
            "cpm": self.cpm,
            "cpc": self.cpc,
            "ctr": self.ctr_pct,
            "cvr": self.cvr_pct,
            "roas": self.roas,
            "cac": self.cac,
        }
        return lookup[name]


class PlatformProfile(FrozenModel):
    """An advertising platform with its benchmark and operational metadata."""
    key: str
    display_name: str
    aliases: tuple[str, ...] = Field(default_factory=tuple)
    benchmark: Optional[BenchmarkEntry] = Field(
        None, description="None means the benchmark is missing and the default entry is used"
    )
    min_effective_budget: float = Field(
        1000.0, ge=0, description="Below this the platform is under-funded (tactical reallocation)"
    )
    # Informational only
    optimal_budget_min: Optional[float] = Field(None, ge=0)
    optimal_budget_max: Optional[float] = Field(None, ge=0)
    peak_hours: tuple[str, ...] = Field(default_factory=tuple)
    notes: Optional[str] = None


# =============================================================================
# Industries
# =============================================================================

class IndustryProfile(FrozenModel):
    """An industry with its default platform split and KPI modifiers."""
    key: str
    aliases: tuple[str, ...] = Field(default_factory=tuple)
    default_split: Optional[dict[str, float]] = Field(
        None, description="platform -> share; None falls back to the default industry split"
    )
    min_platforms: Optional[int] = Field(None, ge=1)
    max_platforms: Optional[int] = Field(None, ge=1)
    recommended_platforms: tuple[str, ...] = Field(default_factory=tuple)
    value_per_conversion: Optional[float] = Field(None, gt=0, description="Average order value")
    cpm_modifier: float = Field(1.0, gt=0)
    ctr_modifier: float = Field(1.0, gt=0)
    cvr_modifier: float = Field(1.0, gt=0)
    min_recommended_budget: Optional[float] = Field(None, ge=0)
    peak_seasons: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("default_split")
    @classmethod
    def split_sums_to_one(cls, v):
        if v is None:
            return v
        if any(share < 0 for share in v.values()):
            raise ValueError("split shares must be non-negative")
        total = sum(v.values())
        if abs(total - 1.0) > SPLIT_TOLERANCE:
            raise ValueError(f"split shares must sum to 1.0 (got {total:.6f})")
        return v

    @model_validator(mode="after")
    def min_not_above_max(self) -> "IndustryProfile":
        if (
            self.min_platforms is not None
            and self.max_platforms is not None
            and self.min_platforms > self.max_platforms
        ):
            raise ValueError("min_platforms must be <= max_platforms")
        return self


class PlatformCompatibility(FrozenModel):
    """Per-industry platform classification."""
    allow: tuple[str, ...] = Field(default_factory=tuple)
    discourage: tuple[str, ...] = Field(default_factory=tuple)
    optimal: tuple[str, ...] = Field(default_factory=tuple)

    def tier(self, platform: str) -> CompatibilityTier:
        """Classify a platform for this industry."""
        if platform in self.discourage:
            return CompatibilityTier.DISCOURAGED
        if platform in self.allow:
            return CompatibilityTier.ALLOWED
        return CompatibilityTier.DISALLOWED


# =============================================================================
# Goals, seasons, tiers, devices
# =============================================================================

class GoalProfile(FrozenModel):
    """A campaign goal with per-platform weight multipliers."""
    key: str
    weights: dict[str, float] = Field(default_factory=dict)
    funnel_focus: str = ""
    best_platforms: tuple[str, ...] = Field(default_factory=tuple)
    aliases: tuple[str, ...] = Field(default_factory=tuple)

    def weight_for(self, platform: str) -> float:
        return self.weights.get(platform, 1.0)


class SeasonProfile(FrozenModel):
    """Seasonal demand/cost multipliers."""
    key: str
    cpm_multiplier: float = Field(1.0, gt=0)
    ctr_multiplier: float = Field(1.0, gt=0)
    cvr_multiplier: float = Field(1.0, gt=0)
    cpc_multiplier: float = Field(1.0, gt=0)
    goal_multipliers: dict[str, float] = Field(default_factory=dict)
    impact_level: str = "none"
    best_industries: tuple[str, ...] = Field(default_factory=tuple)
    worst_industries: tuple[str, ...] = Field(default_factory=tuple)
    aliases: tuple[str, ...] = Field(default_factory=tuple)


class BudgetTier(FrozenModel):
    """Budget bucket with tier-specific goal multipliers."""
    key: Literal["low", "medium", "high", "enterprise"]
    lower_bound: float = Field(..., ge=0)
    upper_bound: Optional[float] = Field(None, description="Exclusive; None means unbounded")
    max_platforms: int = Field(..., ge=1)
    goal_multipliers: dict[str, float] = Field(default_factory=dict)

    def contains(self, budget: float) -> bool:
        if budget < self.lower_bound:
            return False
        return self.upper_bound is None or budget < self.upper_bound


class DeviceModifier(FrozenModel):
    """CTR/CVR modifiers for a device class."""
    ctr_mod: float = Field(1.0, gt=0)
    cvr_mod: float = Field(1.0, gt=0)


# =============================================================================
# Audience and creative modifiers
# =============================================================================

class RateModifier(FrozenModel):
    """CPM/CTR/CVR multipliers attached to one creative or audience attribute."""
    cpm: float = Field(1.0, gt=0)
    ctr: float = Field(1.0, gt=0)
    cvr: float = Field(1.0, gt=0)
    aliases: tuple[str, ...] = Field(default_factory=tuple)
    notes: Optional[str] = None

    def factor(self, field_name: str) -> float:
        return getattr(self, field_name)


class DemographicProfile(FrozenModel):
    """A platform's performance by age group and gender."""
    age_groups: dict[str, RateModifier] = Field(default_factory=dict)
    genders: dict[str, RateModifier] = Field(default_factory=dict)


class SanityRangeEntry(FrozenModel):
    """Expected KPI ranges for an (industry, goal) pair.

    ``ctr`` and ``cvr`` ranges are expressed in percent, ``cpm``/``cpc`` in
    currency and ``roas`` as a ratio.
    """
    name: str
    industry: str
    goal: str
    platforms: tuple[str, ...] = Field(default_factory=tuple)
    ranges: dict[Literal["ctr", "cpm", "cpc", "cvr", "roas"], tuple[float, float]]

    @field_validator("ranges")
    @classmethod
    def ranges_ordered(cls, v):
        for field_name, (low, high) in v.items():
            if low > high:
                raise ValueError(f"range for '{field_name}' has min > max")
        return v
