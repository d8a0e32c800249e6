"""
Sanity checks of KPI estimates against expected market ranges.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from prepilot.config.schema import CampaignInput, EngineConfig, SanityPolicy
from prepilot.forecasting.kpi_estimator import KpiEstimate, PlatformKpis, compute_platform_kpis
from prepilot.forecasting.trace import TraceBuilder
from prepilot.registries.registry import Registries
from prepilot.registries.schema import SanityRangeEntry

logger = logging.getLogger(__name__)

# Sanity ranges express ctr and cvr in percent
PERCENT_FIELDS = ("ctr", "cvr")


def observed_value(kpis: PlatformKpis, field_name: str) -> Optional[float]:
    """KPI value in the unit the sanity ranges use; None when undefined."""
    value = getattr(kpis, field_name)
    if value is None:
        return None
    return value * 100 if field_name in PERCENT_FIELDS else value


def deviation_pct(value: float, low: float, high: float) -> float:
    """Distance outside [low, high] as a percentage of the violated bound."""
    if value < low:
        return (low - value) / low * 100 if low > 0 else float("inf")
    if value > high:
        return (value - high) / high * 100 if high > 0 else float("inf")
    return 0.0


@dataclass(frozen=True)
class SanityWarning:
    """An estimate outside its expected range by more than the threshold."""
    field: str
    platform: str
    value: float
    range: tuple[float, float]
    deviation_pct: float
    entry: str

    @property
    def message(self) -> str:
        unit = "%" if self.field in PERCENT_FIELDS else ""
        low, high = self.range
        return (
            f"قيمة {self.field.upper()} المتوقعة لمنصة {self.platform} ({self.value:.2f}{unit}) "
            f"خارج النطاق المتوقع [{low:g}{unit} - {high:g}{unit}] "
            f"بنسبة {self.deviation_pct:.1f}% ({self.entry})."
        )

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class SanityReport:
    """Sanity warnings, the flagged (platform, field) pairs and the post-policy estimate."""
    warnings: tuple[SanityWarning, ...]
    flagged: frozenset[tuple[str, str]]
    estimate: KpiEstimate
    clamped: bool = False

    @property
    def messages(self) -> list[str]:
        return [w.message for w in self.warnings]


class SanityChecker:
    """
    Compare per-platform estimates with the expected ranges for the campaign's
    industry and goals.

    With the ``clamp`` policy, flagged values are pulled to the nearest bound
    and counts are recomputed from the clamped rates.
    """

    def __init__(self, registries: Registries, config: Optional[EngineConfig] = None):
        self.registries = registries
        self.config = config or EngineConfig()

    def check(self, campaign: CampaignInput, estimate: KpiEstimate) -> SanityReport:
        """
        Check an estimate.

        Parameters
        ----------
        campaign : CampaignInput
            The campaign the estimate belongs to.
        estimate : KpiEstimate
            Estimate produced by the KpiEstimator.

        Returns
        -------
        SanityReport
            Warnings, flags and the estimate after applying the policy.
        """
        threshold = self.config.sanity.flag_threshold_percentage
        entries = self.registries.sanity_entries_for(campaign.industry, campaign.goals)

        warnings: list[SanityWarning] = []
        # (platform, field) -> (range, entry) of the first entry that flagged it
        flagged: dict[tuple[str, str], tuple[tuple[float, float], SanityRangeEntry]] = {}

        for entry in entries:
            for kpis in estimate.platforms:
                for field_name, (low, high) in entry.ranges.items():
                    value = observed_value(kpis, field_name)
                    if value is None:
                        continue
                    deviation = deviation_pct(value, low, high)
                    if deviation <= threshold:
                        continue
                    warnings.append(SanityWarning(
                        field=field_name,
                        platform=kpis.platform,
                        value=value,
                        range=(low, high),
                        deviation_pct=deviation,
                        entry=entry.name,
                    ))
                    flagged.setdefault((kpis.platform, field_name), ((low, high), entry))
                    logger.warning(
                        f"Sanity: {kpis.platform}.{field_name}={value:.4g} outside "
                        f"[{low}, {high}] by {deviation:.1f}% ({entry.name})"
                    )

        result_estimate = estimate
        clamped = False
        if flagged and self.config.sanity.policy == SanityPolicy.CLAMP:
            result_estimate = self._clamp(estimate, flagged)
            clamped = True

        return SanityReport(
            warnings=tuple(warnings),
            flagged=frozenset(flagged),
            estimate=result_estimate,
            clamped=clamped,
        )

    def _clamp(self, estimate: KpiEstimate, flagged: dict) -> KpiEstimate:
        """
        Pull flagged values to their nearest bound.

        cpm, ctr and cvr are clamped directly. cpc and roas are derived, so
        they are clamped through the rate that drives them (ctr for cpc, cvr
        for roas) and everything is recomputed.
        """
        trace = TraceBuilder("sanity")
        rows = []
        for kpis in estimate.platforms:
            ranges = {f: r for (p, f), (r, _) in flagged.items() if p == kpis.platform}
            if not ranges:
                rows.append(kpis)
                continue

            cpm, ctr, cvr = kpis.cpm, kpis.ctr, kpis.cvr
            if "cpm" in ranges:
                cpm = _clip(cpm, *ranges["cpm"])
            if "ctr" in ranges:
                ctr = _clip(ctr * 100, *ranges["ctr"]) / 100
            if "cvr" in ranges:
                cvr = _clip(cvr * 100, *ranges["cvr"]) / 100
            if "cpc" in ranges and kpis.cpc is not None:
                target_cpc = _clip(kpis.cpc, *ranges["cpc"])
                ctr = cpm / (1000 * target_cpc)
            if "roas" in ranges and ctr > 0 and kpis.value_per_conversion > 0:
                target_roas = _clip(kpis.roas, *ranges["roas"])
                cvr = target_roas * cpm / (1000 * ctr * kpis.value_per_conversion)

            for name, old, new in (("cpm", kpis.cpm, cpm), ("ctr", kpis.ctr, ctr), ("cvr", kpis.cvr, cvr)):
                if new != old:
                    trace.add("sanity:clamp", new / old if old else 0.0, platform=kpis.platform,
                              field=name, note=f"{old:.6g} -> {new:.6g}")

            rows.append(compute_platform_kpis(
                kpis.platform, kpis.budget, cpm, ctr, cvr,
                kpis.value_per_conversion, kpis.used_fallback_benchmark,
            ))
            logger.info(f"Clamped {sorted(ranges)} for {kpis.platform}")

        return estimate.with_platforms(rows, trace.build())


def _clip(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)
