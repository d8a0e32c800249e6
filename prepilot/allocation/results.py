"""
Result dataclasses for budget allocation.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping
import pandas as pd

from ..forecasting.trace import AdjustmentTrace


class EngineErrorKind(str, Enum):
    """Why the pipeline stopped without a report."""
    VALIDATION = "validation"
    NO_ELIGIBLE_PLATFORMS = "no_eligible_platforms"


@dataclass(frozen=True)
class AllocationFailure:
    """Allocation could not produce a split."""
    kind: EngineErrorKind
    message: str


@dataclass(frozen=True)
class AllocationResult:
    """
    Budget split across platforms.

    ``amounts`` are rounded to the currency unit and ``sum(amounts.values())``
    equals ``total_budget``; ``shares`` are the normalized pre-rounding
    weights. Platforms appear in descending share order. The mappings are
    read-only views.
    """

    amounts: Mapping[str, float]  # {platform: amount}
    shares: Mapping[str, float]  # {platform: weight}, sums to 1
    raw_amounts: Mapping[str, float]  # weight x budget, before rounding
    total_budget: float
    budget_tier: str
    exact_amounts: Mapping[str, Decimal] = field(default_factory=dict, repr=False)
    warnings: tuple[str, ...] = field(default_factory=tuple)
    trace: AdjustmentTrace = field(default_factory=AdjustmentTrace)
    used_default_split: bool = False

    def __post_init__(self):
        for name in ("amounts", "shares", "raw_amounts", "exact_amounts"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @property
    def platforms(self) -> list[str]:
        return list(self.amounts)

    @property
    def num_platforms(self) -> int:
        return len(self.amounts)

    def share_of_budget(self, platform: str) -> float:
        """Allocated amount as a fraction of the total budget."""
        if self.total_budget == 0:
            return 0.0
        return self.amounts.get(platform, 0.0) / self.total_budget

    def to_dataframe(self) -> pd.DataFrame:
        """
        Convert the allocation to a DataFrame.

        Returns:
            DataFrame with columns: platform, amount, raw_amount, share,
            pct_of_total
        """
        df = pd.DataFrame({
            "platform": list(self.amounts.keys()),
            "amount": list(self.amounts.values()),
            "raw_amount": [self.raw_amounts[p] for p in self.amounts],
            "share": [self.shares[p] for p in self.amounts],
        })
        df["pct_of_total"] = df["amount"] / self.total_budget * 100 if self.total_budget else 0.0
        return df

    def get_summary_dict(self) -> dict[str, Any]:
        """Get a JSON-serializable summary of the allocation."""
        return {
            "total_budget": self.total_budget,
            "budget_tier": self.budget_tier,
            "amounts": dict(self.amounts),
            "shares": {p: round(s, 6) for p, s in self.shares.items()},
            "num_platforms": self.num_platforms,
            "used_default_split": self.used_default_split,
            "warnings": list(self.warnings),
        }
