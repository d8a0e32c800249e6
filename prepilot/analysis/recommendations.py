"""
Rule-based campaign recommendations.

Each rule is a typed predicate over the campaign context plus a message
builder. Every rule whose predicate holds contributes its message, in rule
order; there is no short-circuiting.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence
import logging

from prepilot.allocation.results import AllocationResult
from prepilot.analysis.formatting import format_currency
from prepilot.config.schema import CampaignInput
from prepilot.registries.registry import Registries

logger = logging.getLogger(__name__)

B2B_INDUSTRIES = frozenset({
    "خدمات مالية",
    "تقنية/ساس",
    "فعاليات ومؤتمرات ومعارض",
    "إدارة الفعاليات والمؤتمرات",
})

B2B_BUDGET_THRESHOLD = 20000
FOCUS_BUDGET_THRESHOLD = 10000
LOW_SHARE = 0.05
HIGH_SHARE = 0.70


@dataclass(frozen=True)
class RecommendationContext:
    """Everything a rule may look at."""
    campaign: CampaignInput
    allocation: AllocationResult
    registries: Registries

    @property
    def platforms(self) -> list[str]:
        return [p for p, amount in self.allocation.amounts.items() if amount > 0]

    def has_platform(self, platform: str) -> bool:
        return platform in self.platforms

    def has_goal(self, goal: str) -> bool:
        return goal in self.campaign.goals

    def names(self, platforms: Sequence[str]) -> str:
        return ", ".join(self.registries.display_name(p) for p in platforms)


@dataclass(frozen=True)
class RecommendationRule:
    """A named predicate and the message it produces when it holds."""
    name: str
    predicate: Callable[[RecommendationContext], bool]
    message: Callable[[RecommendationContext], str]


# -----------------------------------------------------------------------------
# Helpers for rules that depend on the allocation
# -----------------------------------------------------------------------------

def _missing_recommended(ctx: RecommendationContext) -> list[str]:
    profile = ctx.registries.industry_profile(ctx.campaign.industry)
    return [p for p in profile.recommended_platforms if not ctx.has_platform(p)]


def _low_share(ctx: RecommendationContext) -> list[str]:
    return [p for p in ctx.platforms if ctx.allocation.share_of_budget(p) < LOW_SHARE]


def _high_share(ctx: RecommendationContext) -> list[str]:
    return [p for p in ctx.platforms if ctx.allocation.share_of_budget(p) > HIGH_SHARE]


def _below_optimal(ctx: RecommendationContext) -> list[str]:
    below = []
    for platform in ctx.platforms:
        profile = ctx.registries.platforms.get(platform)
        minimum = profile.optimal_budget_min if profile else None
        if minimum is not None and ctx.allocation.amounts[platform] < minimum:
            below.append(platform)
    return below


def _season_favours_industry(ctx: RecommendationContext) -> bool:
    season = ctx.registries.season_profile(ctx.campaign.season)
    return season is not None and ctx.campaign.industry in season.best_industries


def _below_optimal_message(ctx: RecommendationContext) -> str:
    parts = []
    for platform in _below_optimal(ctx):
        minimum = ctx.registries.platforms[platform].optimal_budget_min
        parts.append(f"{ctx.registries.display_name(platform)} ({format_currency(minimum, decimals=0)})")
    return f"ميزانية بعض المنصات أقل من الحد الأمثل لأدائها: {', '.join(parts)}."


DEFAULT_RULES: tuple[RecommendationRule, ...] = (
    RecommendationRule(
        name="b2b_linkedin",
        predicate=lambda ctx: (
            ctx.campaign.industry in B2B_INDUSTRIES
            and ctx.campaign.budget > B2B_BUDGET_THRESHOLD
            and not ctx.has_platform("linkedin")
        ),
        message=lambda ctx: "فكر تستخدم LinkedIn لأنه فعال جدًا مع الـ B2B.",
    ),
    RecommendationRule(
        name="awareness_tiktok",
        predicate=lambda ctx: ctx.has_goal("Awareness") and not ctx.has_platform("tiktok"),
        message=lambda ctx: "أضف TikTok لزيادة الوصول في حملات الوعي.",
    ),
    RecommendationRule(
        name="small_budget_focus",
        predicate=lambda ctx: ctx.campaign.budget < FOCUS_BUDGET_THRESHOLD,
        message=lambda ctx: "الميزانية محدودة، ركّز على منصة أو منصتين فقط لتحقيق أفضل نتيجة.",
    ),
    RecommendationRule(
        name="leads_google_search",
        predicate=lambda ctx: ctx.has_goal("Leads") and ctx.has_platform("google_ads"),
        message=lambda ctx: "حافظ على وجودك في Google Search لأنه مباشر لجلب العملاء المحتملين.",
    ),
    RecommendationRule(
        name="missing_recommended_platforms",
        predicate=lambda ctx: bool(_missing_recommended(ctx)),
        message=lambda ctx: (
            f"توصية: إضافة {ctx.names(_missing_recommended(ctx))} للحصول على أفضل النتائج "
            f"في صناعة {ctx.campaign.industry}."
        ),
    ),
    RecommendationRule(
        name="low_platform_share",
        predicate=lambda ctx: bool(_low_share(ctx)),
        message=lambda ctx: (
            f"حصة ميزانية منخفضة جداً (أقل من {LOW_SHARE:.0%}) لـ {ctx.names(_low_share(ctx))}، "
            f"قد تكون غير فعالة."
        ),
    ),
    RecommendationRule(
        name="high_platform_share",
        predicate=lambda ctx: bool(_high_share(ctx)),
        message=lambda ctx: (
            f"تركيز مفرط على منصة واحدة (أكثر من {HIGH_SHARE:.0%}): {ctx.names(_high_share(ctx))}."
        ),
    ),
    RecommendationRule(
        name="below_optimal_budget",
        predicate=lambda ctx: bool(_below_optimal(ctx)),
        message=_below_optimal_message,
    ),
    RecommendationRule(
        name="season_opportunity",
        predicate=_season_favours_industry,
        message=lambda ctx: (
            f"موسم {ctx.campaign.season} من أفضل المواسم لصناعتك، استفد منه بزيادة الميزانية."
        ),
    ),
)


class RecommendationEngine:
    """Evaluate recommendation rules in order."""

    def __init__(self, registries: Registries, rules: Optional[Sequence[RecommendationRule]] = None):
        self.registries = registries
        self.rules = tuple(rules) if rules is not None else DEFAULT_RULES

    def recommend(self, campaign: CampaignInput, allocation: AllocationResult) -> list[str]:
        """
        Return the message of every rule whose predicate holds.

        Parameters
        ----------
        campaign : CampaignInput
            The campaign being forecast.
        allocation : AllocationResult
            Its budget split.

        Returns
        -------
        list[str]
            Messages in rule order.
        """
        ctx = RecommendationContext(campaign=campaign, allocation=allocation, registries=self.registries)
        fired = [rule for rule in self.rules if rule.predicate(ctx)]
        logger.debug(f"Recommendation rules fired: {[r.name for r in fired]}")
        return [rule.message(ctx) for rule in fired]
