"""
Structured record of every adjustment applied while forecasting.

Computation stages append ``Adjustment`` entries; the explainability
formatter reads them back. Nothing here knows about presentation.
"""

from typing import Iterator, Optional
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Adjustment:
    """A single factor applied to a value.

    Parameters
    ----------
    stage : str
        Pipeline stage ("allocation", "kpi", "sanity").
    source : str
        What the factor came from, e.g. "season:رمضان" or "goal:Sales".
    factor : float
        The multiplier (or resulting value, for non-multiplicative entries).
        Entries that move money keep 1.0 here and carry ``amount``.
    platform : str, optional
        Platform the entry applies to, None for campaign-wide entries.
    field : str, optional
        KPI or allocation field the entry applies to.
    note : str
        Free-form detail.
    amount : float, optional
        Currency added to (negative: taken from) the platform's budget.
    """
    stage: str
    source: str
    factor: float = 1.0
    platform: Optional[str] = None
    field: Optional[str] = None
    note: str = ""
    amount: Optional[float] = None


@dataclass(frozen=True)
class AdjustmentTrace:
    """Ordered, immutable sequence of adjustments."""
    entries: tuple[Adjustment, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Adjustment]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __add__(self, other: "AdjustmentTrace") -> "AdjustmentTrace":
        return AdjustmentTrace(self.entries + other.entries)

    def select(
        self,
        stage: Optional[str] = None,
        platform: Optional[str] = None,
        field_name: Optional[str] = None,
    ) -> list[Adjustment]:
        """Entries matching every given filter."""
        return [
            e for e in self.entries
            if (stage is None or e.stage == stage)
            and (platform is None or e.platform == platform)
            and (field_name is None or e.field == field_name)
        ]

    def sources(self, field_name: str, platform: Optional[str] = None) -> list[str]:
        """Distinct sources that touched a field, in first-seen order."""
        seen = dict.fromkeys(
            e.source for e in self.select(platform=platform, field_name=field_name)
        )
        return list(seen)

    def to_records(self) -> list[dict]:
        return [
            {
                "stage": e.stage,
                "source": e.source,
                "factor": e.factor,
                "platform": e.platform,
                "field": e.field,
                "note": e.note,
                "amount": e.amount,
            }
            for e in self.entries
        ]


class TraceBuilder:
    """Mutable collector used while a stage runs; ``build()`` freezes it."""

    def __init__(self, stage: str):
        self.stage = stage
        self._entries: list[Adjustment] = []

    def add(
        self,
        source: str,
        factor: float = 1.0,
        platform: Optional[str] = None,
        field: Optional[str] = None,
        note: str = "",
        amount: Optional[float] = None,
    ) -> None:
        self._entries.append(
            Adjustment(stage=self.stage, source=source, factor=factor,
                       platform=platform, field=field, note=note, amount=amount)
        )

    def build(self) -> AdjustmentTrace:
        return AdjustmentTrace(tuple(self._entries))
