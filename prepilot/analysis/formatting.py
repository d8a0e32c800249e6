"""
Display formatting for report consumers.

Formatting only changes how values look; it never alters them.
- Currency in riyals with thousands separators (e.g. "40,286.00 ريال")
- Rates as percentages (e.g. "1.40%")
- Industry-aware labels: a real-estate conversion is a lead, an
  e-commerce conversion is an order
"""

from typing import Optional

UNDEFINED = "غير محدد"

DEFAULT_CURRENCY = "ريال"


def format_currency(value: Optional[float], currency: str = DEFAULT_CURRENCY, decimals: int = 2) -> str:
    """Format an amount, e.g. ``format_currency(40286)`` -> ``"40,286.00 ريال"``."""
    if value is None:
        return UNDEFINED
    return f"{value:,.{decimals}f} {currency}"


def format_percentage(ratio: Optional[float], decimals: int = 2) -> str:
    """Format a fraction as a percentage, e.g. ``0.014`` -> ``"1.40%"``."""
    if ratio is None:
        return UNDEFINED
    return f"{ratio * 100:.{decimals}f}%"


def format_count(value: Optional[float]) -> str:
    """Format a count with thousands separators."""
    if value is None:
        return UNDEFINED
    return f"{int(round(value)):,}"


def format_ratio(value: Optional[float], decimals: int = 2) -> str:
    """Format a multiple such as ROAS, e.g. ``3.8`` -> ``"3.80x"``."""
    if value is None:
        return UNDEFINED
    return f"{value:.{decimals}f}x"


# What a conversion means per industry
_CONVERSION_LABELS = {
    "تجارة إلكترونية": "طلب شراء",
    "تجزئة": "عملية شراء",
    "أزياء وموضة": "طلب شراء",
    "عقارات": "عميل محتمل",
    "سيارات": "عميل محتمل",
    "خدمات مالية": "عميل محتمل",
    "تقنية/ساس": "تسجيل تجريبي",
    "تعليم": "طلب تسجيل",
    "رعاية صحية": "حجز موعد",
    "مطاعم وكافيهات": "طلب",
    "سياحة وضيافة": "حجز",
    "تطبيقات وتقنية": "تثبيت",
    "فعاليات ومؤتمرات ومعارض": "تسجيل حضور",
    "رياضة ولياقة": "اشتراك",
}

# Industries that sell online and judge campaigns by revenue
_REVENUE_INDUSTRIES = {"تجارة إلكترونية", "تجزئة", "أزياء وموضة", "مطاعم وكافيهات", "تطبيقات وتقنية"}


class ReportLabels:
    """Industry-specific labels for export collaborators.

    Usage:
        labels = ReportLabels("عقارات")
        labels.conversion_label          # "عميل محتمل"
        labels.format("cac", 1450.0)     # "1,450.00 ريال"
    """

    FIELD_LABELS = {
        "budget": "الميزانية",
        "impressions": "مرات الظهور",
        "clicks": "النقرات",
        "cpm": "تكلفة الألف ظهور (CPM)",
        "ctr": "معدل النقر (CTR)",
        "cpc": "تكلفة النقرة (CPC)",
        "cvr": "معدل التحويل (CVR)",
        "revenue": "الإيراد المتوقع",
        "roas": "العائد على الإنفاق (ROAS)",
        "arpu": "متوسط الإيراد لكل تحويل (ARPU)",
        "cpa": "تكلفة الإجراء (CPA)",
        "break_even_roas": "عائد التعادل (Break-even ROAS)",
    }

    def __init__(self, industry: str, currency: str = DEFAULT_CURRENCY):
        self.industry = industry
        self.currency = currency

    @property
    def conversion_label(self) -> str:
        return _CONVERSION_LABELS.get(self.industry, "تحويل")

    @property
    def is_revenue_focused(self) -> bool:
        """Check if the industry is judged by revenue (ROAS) rather than cost per result."""
        return self.industry in _REVENUE_INDUSTRIES

    @property
    def efficiency_label(self) -> str:
        """Headline efficiency metric: ROAS for revenue industries, cost per result otherwise."""
        if self.is_revenue_focused:
            return self.FIELD_LABELS["roas"]
        return f"تكلفة {self.conversion_label}"

    def label_for(self, field_name: str) -> str:
        if field_name == "conversions":
            return f"عدد {self.conversion_label}"
        if field_name == "cac":
            return f"تكلفة {self.conversion_label} (CAC)"
        return self.FIELD_LABELS.get(field_name, field_name)

    def format(self, field_name: str, value: Optional[float]) -> str:
        """Format a KPI value for display according to its field."""
        if field_name in ("budget", "cpm", "cpc", "revenue", "cac", "arpu", "cpa"):
            return format_currency(value, self.currency)
        if field_name in ("ctr", "cvr"):
            return format_percentage(value)
        if field_name in ("roas", "break_even_roas"):
            return format_ratio(value)
        return format_count(value)
