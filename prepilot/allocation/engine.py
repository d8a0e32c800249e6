"""
Multi-factor weighted budget allocation.

This module provides the AllocationEngine class that turns an industry's
default platform split into a budget split for a campaign by layering goal,
budget-tier, season and compatibility adjustments, then rounding amounts to
the currency unit without losing or creating money.
"""

from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_EVEN
from typing import Optional
import math
import numpy as np
import logging

from ..config.schema import CampaignInput, EngineConfig, GoalRankDecay
from ..forecasting.trace import TraceBuilder
from ..registries.registry import Registries
from ..registries.schema import CompatibilityTier
from .results import AllocationFailure, AllocationResult, EngineErrorKind

logger = logging.getLogger(__name__)

# nextafter steps tried when reconciling the float amounts with the budget
_MAX_ULP_STEPS = 256


def _to_unit(value: Decimal, unit: Decimal, rounding: str) -> Decimal:
    return (value / unit).quantize(Decimal(1), rounding=rounding) * unit


class AllocationEngine:
    """
    Allocate a campaign budget across advertising platforms.

    Parameters
    ----------
    registries : Registries
        Reference tables (splits, goal weights, tiers, seasons, compatibility).
    config : EngineConfig, optional
        Engine configuration.

    Examples
    --------
    >>> engine = AllocationEngine(build_default_registries())
    >>> result = engine.allocate(campaign)
    >>> print(result.amounts)
    """

    def __init__(self, registries: Registries, config: Optional[EngineConfig] = None):
        self.registries = registries
        self.config = config or EngineConfig()

    def allocate(self, campaign: CampaignInput) -> AllocationResult | AllocationFailure:
        """
        Split the campaign budget across platforms.

        Parameters
        ----------
        campaign : CampaignInput
            A validated campaign with canonical keys.

        Returns
        -------
        AllocationResult | AllocationFailure
            The split, or a failure when no platform is eligible.
        """
        regs = self.registries
        trace = TraceBuilder("allocation")
        warnings: list[str] = []

        split, used_default = regs.industry_split(campaign.industry)
        if used_default:
            warnings.append(
                f"لا يوجد توزيع افتراضي لصناعة '{campaign.industry}'، تم استخدام التوزيع العام."
            )
            trace.add("split:default", field="budget_allocation", note=campaign.industry)

        tier = regs.tier_for_budget(campaign.budget)
        trace.add(f"tier:{tier.key}", field="budget_allocation")

        # Weights for every known platform; selection happens afterwards so
        # platforms added to satisfy min_platforms are ranked the same way
        universe = list(regs.platforms)
        base = np.array([split.get(p, self.config.unlisted_platform_share) for p in universe])
        weights = self._combine_goals(campaign, universe, base, tier, trace)

        compatibility = regs.compatibility_for(campaign.industry)
        for i, platform in enumerate(universe):
            if compatibility.tier(platform) == CompatibilityTier.DISCOURAGED:
                weights[i] *= self.config.discourage_penalty

        candidates = self._candidates(campaign, split, warnings)
        candidates = self._enforce_platform_count(
            campaign, candidates, dict(zip(universe, weights)), tier.max_platforms, warnings
        )

        if not candidates:
            logger.warning(f"No eligible platforms for industry '{campaign.industry}'")
            return AllocationFailure(
                kind=EngineErrorKind.NO_ELIGIBLE_PLATFORMS,
                message="لا توجد منصات مؤهلة لتوزيع الميزانية عليها.",
            )

        index = {p: i for i, p in enumerate(universe)}
        selected = np.array([weights[index[p]] for p in candidates])
        total = selected.sum()
        if total <= 0:
            logger.warning("All platform weights are zero")
            return AllocationFailure(
                kind=EngineErrorKind.NO_ELIGIBLE_PLATFORMS,
                message="مجموع أوزان المنصات يساوي صفراً.",
            )

        for platform in candidates:
            i = index[platform]
            if platform not in split:
                trace.add("unlisted_platform", self.config.unlisted_platform_share,
                          platform=platform, field="budget_allocation")
            else:
                trace.add(f"industry:{campaign.industry}", float(base[i]),
                          platform=platform, field="budget_allocation")
            if compatibility.tier(platform) == CompatibilityTier.DISCOURAGED:
                trace.add("compatibility:discouraged", self.config.discourage_penalty,
                          platform=platform, field="budget_allocation")

        # Descending share; ties keep candidate order
        shares_arr = selected / total
        order = np.argsort(-shares_arr, kind="stable")
        platforms = [candidates[i] for i in order]
        shares = {candidates[i]: float(shares_arr[i]) for i in order}

        exact, raw = self._round_amounts(platforms, shares, campaign.budget, trace)
        if self.config.tactical_reallocation:
            exact = self._reallocate(platforms, exact, trace, warnings)

        result = AllocationResult(
            amounts=self._float_amounts(platforms, exact, campaign.budget),
            shares=shares,
            raw_amounts=raw,
            total_budget=campaign.budget,
            budget_tier=tier.key,
            exact_amounts=exact,
            warnings=tuple(warnings),
            trace=trace.build(),
            used_default_split=used_default,
        )

        for platform in platforms:
            logger.debug(f"  {platform}: share={shares[platform]:.4f} amount={exact[platform]}")
        logger.info(
            f"Allocated {campaign.budget:,.2f} across {len(platforms)} platforms "
            f"(tier={tier.key})"
        )
        return result

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _combine_goals(self, campaign, universe, base, tier, trace) -> np.ndarray:
        """
        Weighted average of goal-adjusted shares.

        Each goal g contributes ``base * goal_weights`` scaled by
        ``alpha_g = rank_weight * tier[g] * season[g] * industry_goal[g]``.
        """
        regs = self.registries
        goals = [g for g in campaign.goals if g in regs.goals]
        if not goals:
            return base.copy()

        season = regs.season_profile(campaign.season)
        harmonic = self.config.goal_rank_decay == GoalRankDecay.HARMONIC

        alphas = []
        vectors = []
        for rank, key in enumerate(goals):
            goal = regs.goals[key]
            rank_weight = 1.0 / (rank + 1) if harmonic else 1.0
            alpha = (
                rank_weight
                * tier.goal_multipliers.get(key, 1.0)
                * (season.goal_multipliers.get(key, 1.0) if season else 1.0)
                * regs.industry_goal_multiplier(campaign.industry, key)
            )
            alphas.append(alpha)
            vectors.append(base * np.array([goal.weight_for(p) for p in universe]))
            trace.add(f"goal:{key}", alpha, field="budget_allocation", note=f"rank={rank + 1}")

        alphas = np.array(alphas)
        return (alphas[:, None] * np.vstack(vectors)).sum(axis=0) / alphas.sum()

    def _candidates(self, campaign: CampaignInput, split: dict, warnings: list[str]) -> list[str]:
        """Platforms the allocation starts from, before count constraints."""
        regs = self.registries
        if campaign.selected_platforms is None:
            return [p for p in split if p in regs.platforms]

        compatibility = regs.compatibility_for(campaign.industry)
        candidates = []
        for platform in campaign.selected_platforms:
            if platform not in regs.platforms:
                warnings.append(f"تم تجاهل منصة غير معروفة: {platform}")
                logger.warning(f"Dropping unknown platform '{platform}'")
                continue
            if compatibility.tier(platform) == CompatibilityTier.DISALLOWED:
                warnings.append(
                    f"منصة {regs.display_name(platform)} ليست ضمن المنصات المناسبة لهذه الصناعة، "
                    f"تم إبقاؤها بناءً على اختيارك."
                )
            candidates.append(platform)
        return candidates

    def _enforce_platform_count(
        self,
        campaign: CampaignInput,
        candidates: list[str],
        weights: dict[str, float],
        tier_max: int,
        warnings: list[str],
    ) -> list[str]:
        """Add or drop platforms until min_platforms <= n <= effective max."""
        regs = self.registries
        min_platforms, industry_max = regs.platform_limits(campaign.industry)
        effective_max = min(industry_max, tier_max) if industry_max is not None else tier_max
        effective_max = max(min_platforms, effective_max)

        candidates = list(candidates)
        if not candidates:
            return candidates

        if len(candidates) < min_platforms:
            compatibility = regs.compatibility_for(campaign.industry)
            extras = sorted(
                (p for p in compatibility.allow if p in regs.platforms and p not in candidates
                 and weights.get(p, 0.0) > 0),
                key=lambda p: -weights[p],
            )
            added = extras[: min_platforms - len(candidates)]
            if added:
                names = ", ".join(regs.display_name(p) for p in added)
                warnings.append(f"تمت إضافة منصات للوصول للحد الأدنى ({min_platforms}): {names}")
                logger.warning(f"Added platforms {added} to reach min_platforms={min_platforms}")
            candidates.extend(added)

        if len(candidates) > effective_max:
            ranked = sorted(candidates, key=lambda p: -weights[p])
            dropped = ranked[effective_max:]
            candidates = [p for p in candidates if p not in dropped]
            names = ", ".join(regs.display_name(p) for p in dropped)
            warnings.append(f"تم استبعاد منصات للالتزام بالحد الأقصى ({effective_max}): {names}")
            logger.warning(f"Dropped platforms {dropped} to respect max_platforms={effective_max}")

        return candidates

    def _round_amounts(
        self,
        platforms: list[str],
        shares: dict[str, float],
        budget: float,
        trace: TraceBuilder,
    ) -> tuple[dict[str, Decimal], dict[str, float]]:
        """
        Round each amount to the currency unit and give the residual to the
        platform with the largest raw share, so the amounts sum to the budget.
        """
        unit = Decimal(str(self.config.currency_unit))
        total = Decimal(str(budget))

        raw = {p: shares[p] * budget for p in platforms}
        exact = {p: _to_unit(Decimal(repr(raw[p])), unit, ROUND_HALF_EVEN) for p in platforms}

        residual = total - sum(exact.values())
        if residual != 0:
            largest = platforms[int(np.argmax([shares[p] for p in platforms]))]
            exact[largest] += residual
            trace.add("rounding_residual", platform=largest, field="budget_allocation",
                      note=str(residual), amount=float(residual))
            logger.debug(f"Rounding residual {residual} assigned to {largest}")

        return exact, raw

    def _reallocate(
        self,
        platforms: list[str],
        exact: dict[str, Decimal],
        trace: TraceBuilder,
        warnings: list[str],
    ) -> dict[str, Decimal]:
        """
        Top up platforms funded below their minimum from well-funded ones.

        A platform is under-funded when ``0 < amount < min_effective_budget``
        and can give when its amount exceeds twice its own minimum; it never
        gives more than that excess. Transfers are whole currency units, so
        the amounts still sum to the budget.
        """
        regs = self.registries
        unit = Decimal(str(self.config.currency_unit))
        minimum = {p: Decimal(str(regs.platforms[p].min_effective_budget)) for p in platforms}
        amounts = dict(exact)

        under = [p for p in platforms if 0 < amounts[p] < minimum[p]]
        excess = {
            p: _to_unit(amounts[p] - 2 * minimum[p], unit, ROUND_FLOOR)
            for p in platforms
            if amounts[p] > 2 * minimum[p]
        }
        donors = sorted(excess, key=lambda p: -excess[p])
        if not under or not donors:
            return amounts

        for platform in under:
            needed = _to_unit(minimum[platform] - amounts[platform], unit, ROUND_CEILING)
            for donor in donors:
                if needed <= 0:
                    break
                moved = min(excess[donor], needed)
                if moved <= 0:
                    continue
                amounts[donor] -= moved
                amounts[platform] += moved
                excess[donor] -= moved
                needed -= moved

                trace.add("reallocation", platform=platform, field="budget_allocation",
                          note=donor, amount=float(moved))
                trace.add("reallocation", platform=donor, field="budget_allocation",
                          note=platform, amount=-float(moved))
                warnings.append(
                    f"تم نقل {float(moved):,.2f} ريال من {regs.display_name(donor)} "
                    f"إلى {regs.display_name(platform)} لتلبية الحد الأدنى."
                )
                logger.info(f"Reallocated {moved} from {donor} to {platform}")

            if needed > 0:
                logger.warning(f"Could not bring '{platform}' up to its minimum ({needed} short)")

        return amounts

    @staticmethod
    def _float_amounts(platforms: list[str], exact: dict[str, Decimal], budget: float) -> dict[str, float]:
        """
        Float view of the exact amounts that ``sum()`` adds up to ``budget``.

        Converting each Decimal on its own can leave the float sum an ulp
        off for fractional budgets, so the first platform (the largest
        share) absorbs the difference.
        """
        amounts = {p: float(exact[p]) for p in platforms}
        head = platforms[0]
        candidate = budget - math.fsum(amounts[p] for p in platforms[1:])

        amounts[head] = candidate
        drift = sum(amounts.values()) - budget
        if drift:
            candidate -= drift

        for _ in range(_MAX_ULP_STEPS):
            amounts[head] = candidate
            drift = sum(amounts.values()) - budget
            if drift == 0:
                return amounts
            candidate = math.nextafter(candidate, -math.inf if drift > 0 else math.inf)

        logger.warning(f"Float amounts differ from the budget by {sum(amounts.values()) - budget}")
        return amounts
