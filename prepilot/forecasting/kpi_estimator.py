"""
Benchmark-driven KPI estimation.

Estimates the funnel (impressions, clicks, conversions) and efficiency
metrics (CPM, CTR, CVR, CPC, ROAS, CAC) per platform from the platform
benchmark, seasonal multipliers, industry modifiers, the device mix and the
optional creative, competition and audience modifiers.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, asdict, replace
from typing import Any, Optional
import pandas as pd
import logging

from prepilot.config.schema import CampaignInput, EngineConfig
from prepilot.registries.registry import Registries
from prepilot.registries.schema import RateModifier
from prepilot.forecasting.trace import Adjustment, AdjustmentTrace

logger = logging.getLogger(__name__)

# (soft cap, hard cap) on the combined creative and audience modifiers;
# half of any excess over the soft cap is kept
MODIFIER_CAPS: dict[str, tuple[float, float]] = {
    "cpm": (2.0, 3.0),
    "ctr": (1.8, 2.5),
    "cvr": (2.0, 3.0),
}

RATE_FIELDS = ("cpm", "ctr", "cvr")


@dataclass(frozen=True)
class PlatformKpis:
    """Estimated KPIs for one platform. ``ctr`` and ``cvr`` are fractions."""

    platform: str
    budget: float
    cpm: float
    ctr: float
    cvr: float
    impressions: int
    clicks: int
    conversions: int
    cpc: Optional[float]
    revenue: float
    roas: float
    cac: Optional[float]
    cac_defined: bool
    value_per_conversion: float
    used_fallback_benchmark: bool = False


@dataclass(frozen=True)
class KpiTotals:
    """Campaign totals; ratios are flow-through (e.g. ctr = clicks / impressions).

    ``arpu`` is revenue per conversion and ``cpa`` spend per conversion, both
    None without conversions. ``break_even_roas`` is the ROAS at which the
    campaign pays for itself given the profit margin, None without one.
    """

    budget: float
    impressions: int
    clicks: int
    conversions: int
    revenue: float
    cpm: float
    ctr: float
    cvr: float
    cpc: Optional[float]
    roas: float
    cac: Optional[float]
    cac_defined: bool
    arpu: Optional[float] = None
    cpa: Optional[float] = None
    break_even_roas: Optional[float] = None


def compute_platform_kpis(
    platform: str,
    budget: float,
    cpm: float,
    ctr: float,
    cvr: float,
    value_per_conversion: float,
    used_fallback_benchmark: bool = False,
) -> PlatformKpis:
    """
    Derive counts and efficiency metrics from rates.

    Parameters
    ----------
    platform : str
        Platform key.
    budget : float
        Amount allocated to the platform.
    cpm : float
        Cost per 1000 impressions.
    ctr, cvr : float
        Click-through and conversion rates as fractions.
    value_per_conversion : float
        Revenue attributed to one conversion.

    Returns
    -------
    PlatformKpis
    """
    impressions = round(budget / cpm * 1000) if cpm > 0 else 0
    clicks = round(impressions * ctr)
    conversions = round(clicks * cvr)
    revenue = conversions * value_per_conversion
    return PlatformKpis(
        platform=platform,
        budget=budget,
        cpm=cpm,
        ctr=ctr,
        cvr=cvr,
        impressions=impressions,
        clicks=clicks,
        conversions=conversions,
        cpc=budget / clicks if clicks else None,
        revenue=revenue,
        roas=revenue / budget if budget else 0.0,
        cac=budget / conversions if conversions else None,
        cac_defined=conversions > 0,
        value_per_conversion=value_per_conversion,
        used_fallback_benchmark=used_fallback_benchmark,
    )


def compute_totals(platforms: list[PlatformKpis], break_even_roas: Optional[float] = None) -> KpiTotals:
    """Aggregate per-platform KPIs; ratios are recomputed from the sums."""
    budget = sum(p.budget for p in platforms)
    impressions = sum(p.impressions for p in platforms)
    clicks = sum(p.clicks for p in platforms)
    conversions = sum(p.conversions for p in platforms)
    revenue = sum(p.revenue for p in platforms)
    return KpiTotals(
        budget=budget,
        impressions=impressions,
        clicks=clicks,
        conversions=conversions,
        revenue=revenue,
        cpm=budget / impressions * 1000 if impressions else 0.0,
        ctr=clicks / impressions if impressions else 0.0,
        cvr=conversions / clicks if clicks else 0.0,
        cpc=budget / clicks if clicks else None,
        roas=revenue / budget if budget else 0.0,
        cac=budget / conversions if conversions else None,
        cac_defined=conversions > 0,
        arpu=revenue / conversions if conversions else None,
        cpa=budget / conversions if conversions else None,
        break_even_roas=break_even_roas,
    )


def compute_break_even_roas(profit_margin: Optional[float]) -> Optional[float]:
    """ROAS needed to cover the spend at a profit margin given in percent."""
    if not profit_margin:
        return None
    return 100.0 / profit_margin


def cap_modifier(product: float, soft: float, hard: float) -> float:
    """Damp a combined multiplier: half the excess over ``soft``, never above ``hard``."""
    if product > soft:
        product = soft + 0.5 * (product - soft)
    return min(product, hard)


@dataclass(frozen=True)
class KpiEstimate:
    """KPI estimates for every allocated platform plus campaign totals."""

    platforms: tuple[PlatformKpis, ...]
    totals: KpiTotals
    warnings: tuple[str, ...] = field(default_factory=tuple)
    trace: AdjustmentTrace = field(default_factory=AdjustmentTrace)

    @property
    def by_platform(self) -> dict[str, PlatformKpis]:
        return {p.platform: p for p in self.platforms}

    @property
    def fallback_platforms(self) -> set[str]:
        return {p.platform for p in self.platforms if p.used_fallback_benchmark}

    def with_platforms(self, platforms: list[PlatformKpis], trace: AdjustmentTrace) -> "KpiEstimate":
        """Copy with replaced platform rows; totals are recomputed."""
        return replace(
            self,
            platforms=tuple(platforms),
            totals=compute_totals(platforms, self.totals.break_even_roas),
            trace=self.trace + trace,
        )

    def to_dataframe(self) -> pd.DataFrame:
        """
        Convert per-platform estimates to a DataFrame.

        Returns:
            One row per platform with the raw values plus ``ctr_pct`` and
            ``cvr_pct`` columns.
        """
        df = pd.DataFrame([asdict(p) for p in self.platforms])
        if not df.empty:
            df["ctr_pct"] = df["ctr"] * 100
            df["cvr_pct"] = df["cvr"] * 100
        return df

    def get_summary_dict(self) -> dict[str, Any]:
        """Get a JSON-serializable summary."""
        return {
            "platforms": {p.platform: asdict(p) for p in self.platforms},
            "totals": asdict(self.totals),
            "warnings": list(self.warnings),
        }


class KpiEstimator:
    """
    Estimate KPIs for an allocation.

    The estimator holds no state between calls: the same campaign and
    allocation always produce the same estimate.

    Parameters
    ----------
    registries : Registries
        Reference tables.
    config : EngineConfig, optional
        Engine configuration; ``parallel`` estimates platforms on a thread pool.
    """

    def __init__(self, registries: Registries, config: Optional[EngineConfig] = None):
        self.registries = registries
        self.config = config or EngineConfig()

    def estimate(self, campaign: CampaignInput, amounts: dict[str, float]) -> KpiEstimate:
        """
        Estimate KPIs for each allocated platform.

        Parameters
        ----------
        campaign : CampaignInput
            Validated campaign with canonical keys.
        amounts : dict[str, float]
            Platform -> allocated amount (``AllocationResult.amounts``).

        Returns
        -------
        KpiEstimate
            Per-platform estimates in allocation order, plus totals.
        """
        items = list(amounts.items())

        if self.config.parallel and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                results = list(pool.map(lambda item: self._estimate_platform(campaign, *item), items))
        else:
            results = [self._estimate_platform(campaign, platform, budget) for platform, budget in items]

        platforms = [r[0] for r in results]
        trace = tuple(adj for r in results for adj in r[1])
        warnings = tuple(w for r in results for w in r[2])

        estimate = KpiEstimate(
            platforms=tuple(platforms),
            totals=compute_totals(platforms, compute_break_even_roas(campaign.profit_margin)),
            warnings=warnings,
            trace=AdjustmentTrace(trace),
        )
        logger.info(
            f"Estimated KPIs for {len(platforms)} platforms: "
            f"{estimate.totals.impressions:,} impressions, "
            f"{estimate.totals.conversions:,} conversions"
        )
        return estimate

    def _estimate_platform(
        self, campaign: CampaignInput, platform: str, budget: float
    ) -> tuple[PlatformKpis, list[Adjustment], list[str]]:
        regs = self.registries
        adjustments: list[Adjustment] = []
        warnings: list[str] = []

        def note(source: str, factor: float, field_name: str) -> None:
            adjustments.append(
                Adjustment(stage="kpi", source=source, factor=factor, platform=platform, field=field_name)
            )

        benchmark, fallback = regs.benchmark_for(platform)
        if fallback:
            warnings.append(
                f"لا توجد بيانات مرجعية لمنصة {regs.display_name(platform)}، تم استخدام القيم الافتراضية."
            )
            logger.warning(f"BenchmarkMissing: using the default benchmark for '{platform}'")
            note("benchmark:default", 1.0, "benchmark")

        industry = regs.industry_profile(campaign.industry)
        season = regs.season_profile(campaign.season)
        device = regs.device_modifier(campaign.device_shares)

        cpm = benchmark.cpm.value
        ctr = benchmark.ctr_pct.value / 100
        cvr = benchmark.cvr_pct.value / 100
        note("benchmark", cpm, "cpm")
        note("benchmark", ctr, "ctr")
        note("benchmark", cvr, "cvr")

        if season is not None:
            cpm *= season.cpm_multiplier
            ctr *= season.ctr_multiplier
            cvr *= season.cvr_multiplier
            note(f"season:{season.key}", season.cpm_multiplier, "cpm")
            note(f"season:{season.key}", season.ctr_multiplier, "ctr")
            note(f"season:{season.key}", season.cvr_multiplier, "cvr")

        cpm *= industry.cpm_modifier
        ctr *= industry.ctr_modifier
        cvr *= industry.cvr_modifier
        note(f"industry:{campaign.industry}", industry.cpm_modifier, "cpm")
        note(f"industry:{campaign.industry}", industry.ctr_modifier, "ctr")
        note(f"industry:{campaign.industry}", industry.cvr_modifier, "cvr")

        ctr *= device.ctr_mod
        cvr *= device.cvr_mod
        device_source = "device:mix" if campaign.device_shares else "device:all"
        note(device_source, device.ctr_mod, "ctr")
        note(device_source, device.cvr_mod, "cvr")

        modifiers = self._audience_modifiers(campaign, platform)
        if modifiers:
            rates = {"cpm": cpm, "ctr": ctr, "cvr": cvr}
            for field_name in RATE_FIELDS:
                product = 1.0
                for source, modifier in modifiers:
                    product *= modifier.factor(field_name)
                    note(source, modifier.factor(field_name), field_name)
                capped = cap_modifier(product, *MODIFIER_CAPS[field_name])
                if capped != product:
                    note("modifier_cap", capped / product, field_name)
                rates[field_name] *= capped
            cpm, ctr, cvr = rates["cpm"], rates["ctr"], rates["cvr"]

        value_per_conversion = (
            industry.value_per_conversion
            or regs.industry_profile("default").value_per_conversion
            or 0.0
        )
        kpis = compute_platform_kpis(platform, budget, cpm, ctr, cvr, value_per_conversion, fallback)

        if not kpis.cac_defined:
            warnings.append(
                f"تكلفة الاستحواذ غير محددة لمنصة {regs.display_name(platform)} لعدم وجود تحويلات متوقعة."
            )
            note("cac_undefined", 0.0, "cac")

        logger.debug(
            f"  {platform}: cpm={cpm:.3f} ctr={ctr:.5f} cvr={cvr:.5f} "
            f"impressions={kpis.impressions} clicks={kpis.clicks} conversions={kpis.conversions}"
        )
        return kpis, adjustments, warnings

    def _audience_modifiers(self, campaign: CampaignInput, platform: str) -> list[tuple[str, RateModifier]]:
        """Creative, competition, demographic, location and targeting modifiers, in that order."""
        regs = self.registries
        found: list[tuple[str, RateModifier]] = []

        if campaign.creative_type in regs.creative_types:
            found.append((f"creative:{campaign.creative_type}", regs.creative_types[campaign.creative_type]))
        if campaign.competition_level in regs.competition_levels:
            found.append(
                (f"competition:{campaign.competition_level}", regs.competition_levels[campaign.competition_level])
            )

        found.extend(regs.demographic_modifiers(platform, campaign.age_groups, campaign.gender))

        location = regs.location_modifier(campaign.locations)
        if location is not None:
            names = "، ".join(loc for loc in campaign.locations if loc in regs.locations)
            found.append((f"location:{names}", location))

        found.extend((f"interest:{key}", regs.interests[key]) for key in campaign.interests if key in regs.interests)
        found.extend((f"behavior:{key}", regs.behaviors[key]) for key in campaign.behaviors if key in regs.behaviors)
        return found
