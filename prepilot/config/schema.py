"""
Pydantic schemas for engine configuration and campaign input.

These schemas define the structure and validation rules for every tunable
constant of the forecasting engine and for the per-request campaign input.
"""

import math
from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from enum import Enum


# =============================================================================
# Enums
# =============================================================================

class SanityPolicy(str, Enum):
    """What the sanity checker does with an out-of-range estimate."""
    WARN = "warn"    # Report only
    CLAMP = "clamp"  # Report and pull the estimate to the nearest bound


class GoalRankDecay(str, Enum):
    """How goal position affects its weight when several goals are combined."""
    HARMONIC = "harmonic"  # 1, 1/2, 1/3, ... (primary goal dominates)
    UNIFORM = "uniform"    # all goals equal


# =============================================================================
# Engine configuration
# =============================================================================

class SanityConfig(BaseModel):
    """Configuration for the sanity checker."""
    flag_threshold_percentage: float = Field(
        30.0, ge=0, description="Deviation outside the expected range (percent of the bound) that raises a warning"
    )
    policy: SanityPolicy = Field(SanityPolicy.WARN, description="warn or clamp")


class ConfidenceConfig(BaseModel):
    """Configuration for confidence scoring."""
    high: float = Field(0.9, ge=0, le=1, description="Score for a high-confidence benchmark")
    medium: float = Field(0.7, ge=0, le=1, description="Score for a medium-confidence benchmark")
    low: float = Field(0.5, ge=0, le=1, description="Score for a low-confidence benchmark")
    sanity_penalty: float = Field(0.6, ge=0, le=1, description="Multiplier when a sanity check flagged the field")
    fallback_penalty: float = Field(0.8, ge=0, le=1, description="Multiplier when the default benchmark was used")

    @model_validator(mode="after")
    def tiers_ordered(self) -> "ConfidenceConfig":
        if not (self.high >= self.medium >= self.low):
            raise ValueError("confidence scores must satisfy high >= medium >= low")
        return self

    def score_for(self, tier: str) -> float:
        """Return the base score for a confidence tier."""
        return {"high": self.high, "medium": self.medium, "low": self.low}[tier]


class EngineConfig(BaseModel):
    """Complete forecasting engine configuration."""
    name: str = Field("default", description="Name for this configuration")
    description: Optional[str] = Field(None, description="Description of this configuration")

    # Validation
    min_budget: float = Field(5000.0, ge=0, description="Minimum campaign budget accepted by the validator")

    # Allocation
    currency_unit: float = Field(1.0, gt=0, description="Minimal currency unit amounts are rounded to")
    discourage_penalty: float = Field(0.5, gt=0, lt=1, description="Weight multiplier for discouraged platforms")
    unlisted_platform_share: float = Field(
        0.05, gt=0, le=1, description="Base share for a platform missing from the industry split"
    )
    goal_rank_decay: GoalRankDecay = Field(GoalRankDecay.HARMONIC, description="Goal combination weighting")
    tactical_reallocation: bool = Field(
        False, description="Top up platforms below their minimum budget from well-funded ones"
    )

    # Downstream stages
    sanity: SanityConfig = Field(default_factory=SanityConfig)
    confidence: ConfidenceConfig = Field(default_factory=ConfidenceConfig)

    # Execution
    parallel: bool = Field(False, description="Run independent stages on a thread pool")
    max_workers: int = Field(4, ge=1, le=32, description="Thread pool size when parallel=True")

    model_config = ConfigDict(use_enum_values=True)


# =============================================================================
# Campaign input
# =============================================================================

class CampaignInput(BaseModel):
    """A single forecast request.

    Immutable value object. Registry membership is not checked here; the
    validator reports unknown keys as data so one request can surface every
    problem at once.
    """
    industry: str = Field(..., description="Industry key")
    budget: float = Field(..., description="Total budget in currency units")
    goals: tuple[str, ...] = Field(default_factory=tuple, description="Selected goals, primary first")
    selected_platforms: Optional[tuple[str, ...]] = Field(None, description="Optional platform subset")
    season: Optional[str] = Field(None, description="Optional season key")
    device_mix: Optional[dict[str, float]] = Field(None, description="Optional device -> share mapping")

    # Optional audience and creative context; each known key adjusts the KPI rates
    creative_type: Optional[str] = Field(None, description="Creative format, e.g. video")
    competition_level: Optional[str] = Field(None, description="low, medium, high or extreme")
    age_groups: tuple[str, ...] = Field(default_factory=tuple, description="Targeted age groups, e.g. 25-34")
    gender: Optional[str] = Field(None, description="Targeted gender (male or female)")
    locations: tuple[str, ...] = Field(default_factory=tuple, description="Targeted cities")
    interests: tuple[str, ...] = Field(default_factory=tuple, description="Interest targeting keys")
    behaviors: tuple[str, ...] = Field(default_factory=tuple, description="Behaviour targeting keys")
    profit_margin: Optional[float] = Field(
        None, gt=0, le=100, description="Profit margin in percent, for the break-even ROAS"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("industry", mode="before")
    @classmethod
    def strip_industry(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("season", "creative_type", "competition_level", "gender", mode="before")
    @classmethod
    def blank_is_none(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("budget")
    @classmethod
    def budget_is_finite(cls, v):
        if not math.isfinite(v):
            raise ValueError("budget must be a finite number")
        return v

    @field_validator("goals", "age_groups", "locations", "interests", "behaviors", mode="before")
    @classmethod
    def dedupe_names(cls, v: Any):
        """Strip and de-duplicate names, keeping the first occurrence."""
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        seen = dict.fromkeys(g.strip() for g in v if g and g.strip())
        return tuple(seen.keys())

    @field_validator("selected_platforms", mode="before")
    @classmethod
    def normalize_platforms(cls, v: Any):
        """An empty selection means 'no selection'."""
        if v is None:
            return None
        if isinstance(v, str):
            v = [v]
        seen = dict.fromkeys(p.strip() for p in v if p and p.strip())
        return tuple(seen.keys()) or None

    @property
    def device_shares(self) -> dict[str, float]:
        """Device mix with shares normalized to sum to 1.0 (empty if none given)."""
        if not self.device_mix:
            return {}
        total = sum(self.device_mix.values())
        if total <= 0:
            return {}
        return {device: share / total for device, share in self.device_mix.items()}

    def with_keys(self, **keys: Any) -> "CampaignInput":
        """Return a copy with the given (canonical) keys, e.g. ``industry=...``."""
        unknown = set(keys) - set(type(self).model_fields)
        if unknown:
            raise TypeError(f"Unknown campaign fields: {sorted(unknown)}")
        return self.model_copy(update=keys)
