"""
Human-readable justification of the forecast.

The generator reads the adjustment trace recorded by the allocation,
estimation and sanity stages and renders one explanation per field through
a template table. Templates are plain ``str.format`` strings, so another
language only needs another table.
"""

from typing import Mapping, Optional
import logging

from prepilot.allocation.results import AllocationResult
from prepilot.config.schema import CampaignInput
from prepilot.forecasting.kpi_estimator import KpiEstimate
from prepilot.forecasting.trace import AdjustmentTrace
from prepilot.registries.registry import Registries
from prepilot.analysis.formatting import (
    DEFAULT_CURRENCY,
    format_count,
    format_currency,
    format_percentage,
    format_ratio,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES: dict[str, str] = {
    "budget_allocation": (
        "تم توزيع الميزانية ({budget}) على {num_platforms} منصات بناءً على التوزيع المرجعي "
        "لصناعة {industry} وأهدافك المختارة ({goals}). أعلى حصة لمنصة {top_platform} "
        "بنسبة {top_share}. العوامل المؤثرة: {sources}."
    ),
    "impressions": (
        "عدد مرات الظهور المتوقع {impressions} محسوب من الميزانية ÷ تكلفة الألف ظهور × 1000."
    ),
    "cpm": (
        "تكلفة الألف ظهور (CPM) تقدر بـ {cpm} بناءً على متوسط السوق السعودي للمنصات المختارة، "
        "بعد التعديل حسب: {sources}."
    ),
    "ctr": (
        "معدل النقر (CTR) {ctr} مبني على متوسط المنصة مع تعديلات: {sources}."
    ),
    "clicks": (
        "عدد النقرات {clicks} محسوب من {impressions} ظهور × معدل النقر {ctr}."
    ),
    "cpc": (
        "تكلفة النقرة (CPC) = الإنفاق ÷ عدد النقرات = {cpc}."
    ),
    "cvr": (
        "معدل التحويل (CVR) {cvr} حسب الصناعة والمنصة مع تعديلات: {sources}."
    ),
    "conversions": (
        "{conversions} تحويل محسوبة من {clicks} نقرة × معدل تحويل {cvr}."
    ),
    "roas": (
        "العائد على الإنفاق (ROAS) متوقع {roas} = الإيراد المتوقع ({revenue}) ÷ الإنفاق، "
        "بمتوسط قيمة تحويل {value_per_conversion}."
    ),
    "cac": (
        "تكلفة الاستحواذ (CAC) = الإنفاق ÷ عدد التحويلات = {cac}."
    ),
    "cac_undefined": (
        "تكلفة الاستحواذ (CAC) غير محددة لأن عدد التحويلات المتوقع صفر."
    ),
    "general_notes": (
        "هذه التقديرات مبنية على متوسطات السوق السعودي وليست ضماناً للنتائج.{season_note}{notes}"
    ),
}

EXPLAINED_FIELDS = (
    "budget_allocation",
    "impressions",
    "cpm",
    "ctr",
    "clicks",
    "cpc",
    "cvr",
    "conversions",
    "roas",
    "cac",
    "general_notes",
)

# Trace source prefix -> readable label
_SOURCE_LABELS = {
    "season": "الموسم",
    "industry": "الصناعة",
    "goal": "الهدف",
    "tier": "شريحة الميزانية",
    "device:all": "متوسط الأجهزة",
    "device:mix": "توزيع الأجهزة",
    "split:default": "التوزيع العام",
    "compatibility:discouraged": "منصة غير مفضلة للصناعة",
    "unlisted_platform": "منصة خارج التوزيع المرجعي",
    "rounding_residual": "تسوية التقريب",
    "reallocation": "إعادة توزيع تكتيكية",
    "creative": "نوع المحتوى",
    "competition": "مستوى المنافسة",
    "age": "الفئة العمرية",
    "gender": "الجنس",
    "location": "الموقع",
    "interest": "الاهتمام",
    "behavior": "السلوك",
    "modifier_cap": "سقف التعديلات المجمعة",
    "sanity:clamp": "تصحيح للنطاق المتوقع",
    "benchmark:default": "قيم مرجعية افتراضية",
}

# Per-platform base values; the numbers themselves are in the explanation
_SKIPPED_SOURCES = {"benchmark", "cac_undefined"}


def describe_source(source: str, factor: Optional[float] = None, amount: Optional[float] = None) -> str:
    """Render a trace source such as ``season:رمضان`` for display.

    Multipliers show as ``(×1.20)``; entries that move money show the signed
    amount, e.g. ``(+1.00 ريال)``.
    """
    if source in _SOURCE_LABELS:
        label = _SOURCE_LABELS[source]
    else:
        prefix, _, value = source.partition(":")
        label = f"{_SOURCE_LABELS.get(prefix, prefix)} {value}".strip()
    if amount is not None:
        sign = "-" if amount < 0 else "+"
        return f"{label} ({sign}{format_currency(abs(amount), DEFAULT_CURRENCY)})"
    if factor is not None and factor != 1.0:
        return f"{label} (×{factor:.2f})"
    return label


class ExplanationFormatter:
    """
    Render explanations from a template table.

    Parameters
    ----------
    templates : Mapping[str, str], optional
        Field -> ``str.format`` template. Missing fields fall back to the
        default (Arabic) templates.
    """

    def __init__(self, templates: Optional[Mapping[str, str]] = None):
        self.templates = {**DEFAULT_TEMPLATES, **(templates or {})}

    def render(self, field_name: str, **values) -> str:
        return self.templates[field_name].format(**values)

    @staticmethod
    def sources(trace: AdjustmentTrace, field_name: str) -> str:
        """Distinct adjustment sources for a field, in first-seen order."""
        rendered: dict[str, str] = {}
        for entry in trace.select(field_name=field_name):
            if entry.source in _SKIPPED_SOURCES or entry.source in rendered:
                continue
            # Values that vary per platform are not shown
            if entry.platform is None or _is_shared(trace, entry):
                rendered[entry.source] = describe_source(entry.source, entry.factor, entry.amount)
            else:
                rendered[entry.source] = describe_source(entry.source)
        if not rendered:
            return "لا توجد تعديلات"
        return "، ".join(rendered.values())


def _is_shared(trace: AdjustmentTrace, entry) -> bool:
    """True if every entry with this source and field carries the same factor and amount."""
    values = {(e.factor, e.amount) for e in trace.select(field_name=entry.field) if e.source == entry.source}
    return len(values) == 1


class ExplainabilityGenerator:
    """Produce one explanation string per field from the adjustment trace."""

    def __init__(self, registries: Registries, formatter: Optional[ExplanationFormatter] = None):
        self.registries = registries
        self.formatter = formatter or ExplanationFormatter()

    def explain(
        self,
        campaign: CampaignInput,
        allocation: AllocationResult,
        estimate: KpiEstimate,
    ) -> dict[str, str]:
        """
        Explain the allocation and every estimated KPI.

        Parameters
        ----------
        campaign : CampaignInput
            The campaign being forecast.
        allocation : AllocationResult
            Budget split, with its trace.
        estimate : KpiEstimate
            KPI estimate, with its trace (post-policy).

        Returns
        -------
        dict[str, str]
            Field -> explanation, in a fixed field order.
        """
        regs = self.registries
        trace = allocation.trace + estimate.trace
        totals = estimate.totals
        fmt = self.formatter

        top_platform = next(iter(allocation.amounts), None)
        industry = regs.industry_profile(campaign.industry)
        value_per_conversion = industry.value_per_conversion or regs.industry_profile("default").value_per_conversion

        explanations = {
            "budget_allocation": fmt.render(
                "budget_allocation",
                budget=format_currency(allocation.total_budget),
                num_platforms=allocation.num_platforms,
                industry=campaign.industry,
                goals="، ".join(campaign.goals),
                top_platform=regs.display_name(top_platform) if top_platform else "-",
                top_share=format_percentage(allocation.shares.get(top_platform, 0.0), 1),
                sources=fmt.sources(trace, "budget_allocation"),
            ),
            "impressions": fmt.render("impressions", impressions=format_count(totals.impressions)),
            "cpm": fmt.render("cpm", cpm=format_currency(totals.cpm), sources=fmt.sources(trace, "cpm")),
            "ctr": fmt.render("ctr", ctr=format_percentage(totals.ctr), sources=fmt.sources(trace, "ctr")),
            "clicks": fmt.render(
                "clicks",
                clicks=format_count(totals.clicks),
                impressions=format_count(totals.impressions),
                ctr=format_percentage(totals.ctr),
            ),
            "cpc": fmt.render("cpc", cpc=format_currency(totals.cpc)),
            "cvr": fmt.render("cvr", cvr=format_percentage(totals.cvr), sources=fmt.sources(trace, "cvr")),
            "conversions": fmt.render(
                "conversions",
                conversions=format_count(totals.conversions),
                clicks=format_count(totals.clicks),
                cvr=format_percentage(totals.cvr),
            ),
            "roas": fmt.render(
                "roas",
                roas=format_ratio(totals.roas),
                revenue=format_currency(totals.revenue),
                value_per_conversion=format_currency(value_per_conversion),
            ),
            "cac": (
                fmt.render("cac", cac=format_currency(totals.cac))
                if totals.cac_defined
                else fmt.render("cac_undefined")
            ),
            "general_notes": fmt.render(
                "general_notes",
                season_note=self._season_note(campaign),
                notes=self._notes(allocation, estimate),
            ),
        }
        logger.debug(f"Generated {len(explanations)} explanations")
        return explanations

    def _season_note(self, campaign: CampaignInput) -> str:
        season = self.registries.season_profile(campaign.season)
        if season is None or season.cpm_multiplier == 1.0:
            return ""
        change = (season.cpm_multiplier - 1) * 100
        return f" تم تعديل التكاليف بنسبة {change:+.0f}% بسبب موسم {season.key}."

    def _notes(self, allocation: AllocationResult, estimate: KpiEstimate) -> str:
        notes = []
        if allocation.used_default_split:
            notes.append(" تم استخدام التوزيع العام لعدم توفر توزيع خاص بالصناعة.")
        fallback = sorted(estimate.fallback_platforms)
        if fallback:
            names = ", ".join(self.registries.display_name(p) for p in fallback)
            notes.append(f" تم استخدام قيم مرجعية افتراضية للمنصات: {names}.")
        if estimate.trace.select(stage="sanity"):
            notes.append(" تم تصحيح بعض القيم لتبقى ضمن النطاقات المتوقعة للسوق.")
        if estimate.totals.break_even_roas is not None:
            notes.append(
                f" للوصول لنقطة التعادل يلزم عائد على الإنفاق لا يقل عن {format_ratio(estimate.totals.break_even_roas)}."
            )
        return "".join(notes)
