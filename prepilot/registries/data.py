"""
Production reference tables for the Saudi advertising market.

Plain dictionaries so they can be diffed and overridden from YAML; the
typed, frozen view is built by ``build_default_registries``.
"""

from functools import lru_cache

from .registry import Registries


# =============================================================================
# Industries
# =============================================================================

INDUSTRIES = {
    "default": {
        "default_split": {"meta": 0.40, "google_ads": 0.30, "tiktok": 0.10, "snapchat": 0.10, "youtube": 0.10},
        "min_platforms": 2,
        "max_platforms": 5,
        "recommended_platforms": ["meta", "google_ads"],
        "value_per_conversion": 200,
        "min_recommended_budget": 5000,
    },
    "تجارة إلكترونية": {
        "aliases": ["E-commerce", "Ecommerce"],
        "default_split": {"meta": 0.32, "google_ads": 0.28, "tiktok": 0.22, "snapchat": 0.12, "youtube": 0.06},
        "min_platforms": 3,
        "max_platforms": 6,
        "recommended_platforms": ["meta", "google_ads", "tiktok"],
        "value_per_conversion": 380,
        "cpm_modifier": 1.05,
        "ctr_modifier": 1.15,
        "cvr_modifier": 1.25,
        "min_recommended_budget": 8000,
        "peak_seasons": ["الجمعة البيضاء", "رمضان", "العودة للمدارس"],
    },
    "عقارات": {
        "aliases": ["Real Estate"],
        "default_split": {"google_ads": 0.45, "meta": 0.30, "snapchat": 0.15, "x": 0.10},
        "min_platforms": 2,
        "max_platforms": 4,
        "recommended_platforms": ["google_ads", "meta"],
        "value_per_conversion": 12000,
        "cpm_modifier": 1.35,
        "ctr_modifier": 0.95,
        "cvr_modifier": 0.85,
        "min_recommended_budget": 15000,
        "peak_seasons": ["بدون موسم معين"],
    },
    "خدمات مالية": {
        "aliases": ["Financial Services", "Finance"],
        "default_split": {"linkedin": 0.42, "google_ads": 0.35, "x": 0.15, "meta": 0.08},
        "min_platforms": 2,
        "max_platforms": 4,
        "recommended_platforms": ["linkedin", "google_ads"],
        "value_per_conversion": 1800,
        "cpm_modifier": 1.45,
        "ctr_modifier": 0.85,
        "cvr_modifier": 0.9,
        "min_recommended_budget": 20000,
        "peak_seasons": ["بدون موسم معين"],
    },
    "تقنية/ساس": {
        "aliases": ["SaaS", "Technology/SaaS", "B2B"],
        "default_split": {"linkedin": 0.38, "google_ads": 0.32, "x": 0.15, "meta": 0.10, "youtube": 0.05},
        "min_platforms": 2,
        "max_platforms": 5,
        "recommended_platforms": ["linkedin", "google_ads"],
        "value_per_conversion": 2200,
        "cpm_modifier": 1.25,
        "ctr_modifier": 0.95,
        "cvr_modifier": 1.15,
    },
    "تعليم": {
        "aliases": ["Education"],
        "default_split": {"google_ads": 0.35, "meta": 0.30, "linkedin": 0.25, "youtube": 0.10},
        "min_platforms": 2,
        "max_platforms": 4,
        "recommended_platforms": ["google_ads", "meta", "linkedin"],
        "value_per_conversion": 3500,
        "cpm_modifier": 1.15,
        "ctr_modifier": 1.05,
        "cvr_modifier": 1.25,
    },
    "سياحة وضيافة": {
        "aliases": ["Tourism & Hospitality", "Tourism"],
        "default_split": {"meta": 0.32, "google_ads": 0.28, "youtube": 0.20, "tiktok": 0.12, "snapchat": 0.08},
        "min_platforms": 3,
        "max_platforms": 5,
        "recommended_platforms": ["meta", "google_ads", "youtube"],
        "value_per_conversion": 950,
        "cpm_modifier": 1.05,
        "ctr_modifier": 1.2,
        "cvr_modifier": 1.15,
    },
    "سيارات": {
        "aliases": ["Automotive", "Cars"],
        "default_split": {"youtube": 0.35, "google_ads": 0.32, "meta": 0.28, "snapchat": 0.05},
        "min_platforms": 2,
        "max_platforms": 4,
        "recommended_platforms": ["youtube", "google_ads", "meta"],
        "value_per_conversion": 5500,
        "cpm_modifier": 1.25,
        "ctr_modifier": 1.0,
        "cvr_modifier": 0.95,
    },
    "مطاعم وكافيهات": {
        "aliases": ["Restaurants & Cafes", "Restaurants"],
        "default_split": {"tiktok": 0.30, "snapchat": 0.25, "meta": 0.30, "google_ads": 0.15},
        "min_platforms": 3,
        "max_platforms": 4,
        "recommended_platforms": ["tiktok", "snapchat", "meta"],
        "value_per_conversion": 140,
        "cpm_modifier": 0.95,
        "ctr_modifier": 1.35,
        "cvr_modifier": 1.35,
    },
    "رعاية صحية": {
        "aliases": ["Healthcare"],
        "default_split": {"google_ads": 0.45, "meta": 0.35, "snapchat": 0.10, "youtube": 0.10},
        "min_platforms": 2,
        "max_platforms": 4,
        "recommended_platforms": ["google_ads", "meta"],
        "value_per_conversion": 520,
        "cpm_modifier": 1.35,
        "ctr_modifier": 1.0,
        "cvr_modifier": 1.05,
    },
    "تجزئة": {
        "aliases": ["Retail"],
        "default_split": {"meta": 0.38, "snapchat": 0.22, "tiktok": 0.18, "google_ads": 0.15, "programmatic": 0.07},
        "min_platforms": 3,
        "max_platforms": 5,
        "recommended_platforms": ["meta", "snapchat", "tiktok"],
        "value_per_conversion": 320,
        "cpm_modifier": 1.05,
        "ctr_modifier": 1.2,
        "cvr_modifier": 1.3,
    },
    "فعاليات ومؤتمرات ومعارض": {
        "aliases": ["Events & Conferences", "Events"],
        "default_split": {"linkedin": 0.38, "meta": 0.28, "google_ads": 0.20, "x": 0.10, "youtube": 0.04},
        "min_platforms": 2,
        "max_platforms": 5,
        "recommended_platforms": ["linkedin", "meta", "google_ads"],
        "value_per_conversion": 650,
        "cpm_modifier": 1.4,
        "ctr_modifier": 0.9,
        "cvr_modifier": 1.15,
    },
    "تطبيقات وتقنية": {
        "aliases": ["Apps & Technology", "Apps"],
        "default_split": {"meta": 0.35, "google_ads": 0.30, "tiktok": 0.20, "linkedin": 0.10, "youtube": 0.05},
        "min_platforms": 3,
        "max_platforms": 5,
        "recommended_platforms": ["meta", "google_ads", "tiktok"],
        "value_per_conversion": 450,
        "cpm_modifier": 1.3,
        "ctr_modifier": 1.1,
        "cvr_modifier": 1.4,
    },
    "أزياء وموضة": {
        "aliases": ["Fashion"],
        "default_split": {"tiktok": 0.35, "meta": 0.30, "snapchat": 0.20, "google_ads": 0.15},
        "min_platforms": 3,
        "max_platforms": 4,
        "recommended_platforms": ["tiktok", "meta", "snapchat"],
        "value_per_conversion": 280,
        "cpm_modifier": 1.1,
        "ctr_modifier": 1.25,
        "cvr_modifier": 1.2,
    },
    "رياضة ولياقة": {
        "aliases": ["Sports & Fitness", "Fitness"],
        "default_split": {"tiktok": 0.40, "meta": 0.30, "google_ads": 0.20, "youtube": 0.10},
        "min_platforms": 3,
        "max_platforms": 4,
        "recommended_platforms": ["tiktok", "meta"],
        "value_per_conversion": 180,
        "cpm_modifier": 1.05,
        "ctr_modifier": 1.15,
        "cvr_modifier": 1.1,
    },
    # Selectable industries without their own split table
    "وكالات إبداعية وتسويق": {
        "aliases": ["Creative & Marketing Agencies"],
    },
    "إدارة الفعاليات والمؤتمرات": {
        "aliases": ["Event Management"],
    },
}


# =============================================================================
# Platforms
# =============================================================================

def _metric(value, confidence, low, high):
    return {"value": value, "confidence": confidence, "range_min": low, "range_max": high}


PLATFORMS = {
    "meta": {
        "display_name": "Meta",
        "aliases": ["Meta (Facebook, Instagram)", "Facebook", "Instagram"],
        "benchmark": {
            "cpm": _metric(4.2, "high", 3.5, 5.5),
            "cpc": _metric(0.65, "high", 0.45, 0.95),
            "ctr_pct": _metric(1.4, "high", 1.0, 2.0),
            "cvr_pct": _metric(3.2, "medium", 2.5, 4.5),
            "roas": _metric(3.8, "medium", 3.0, 5.5),
            "cac": _metric(20.3, "high", 15.0, 30.0),
        },
        "min_effective_budget": 2000,
        "optimal_budget_min": 5000,
        "optimal_budget_max": 100000,
        "peak_hours": ["18:00", "19:00", "20:00", "21:00"],
        "notes": "أقوى منصة للبيع المباشر والـ remarketing في السعودية",
    },
    "google_ads": {
        "display_name": "Google Ads",
        "aliases": ["Google Ads (Search, Display)", "Google Search", "Google"],
        "benchmark": {
            "cpm": _metric(5.8, "high", 4.5, 7.5),
            "cpc": _metric(1.15, "high", 0.8, 1.8),
            "ctr_pct": _metric(2.2, "high", 1.8, 3.0),
            "cvr_pct": _metric(4.0, "medium", 3.0, 5.5),
            "roas": _metric(4.2, "medium", 3.5, 6.0),
            "cac": _metric(28.7, "high", 20.0, 40.0),
        },
        "min_effective_budget": 3000,
        "optimal_budget_min": 3000,
        "optimal_budget_max": 150000,
        "peak_hours": ["09:00", "10:00", "11:00", "14:00", "15:00", "16:00"],
        "notes": "أفضل قناة للـ intent المباشر (عقارات، سيارات، عيادات) والوصول الواسع",
    },
    "youtube": {
        "display_name": "YouTube",
        "aliases": ["YouTube Ads"],
        "benchmark": {
            "cpm": _metric(5.5, "medium", 4.0, 7.5),
            "cpc": _metric(1.1, "medium", 0.8, 1.8),
            "ctr_pct": _metric(0.9, "high", 0.6, 1.4),
            "cvr_pct": _metric(1.9, "medium", 1.2, 2.8),
            "roas": _metric(2.8, "medium", 2.0, 4.0),
            "cac": _metric(57.9, "medium", 35.0, 90.0),
        },
        "min_effective_budget": 5000,
        "optimal_budget_min": 8000,
        "optimal_budget_max": 80000,
        "peak_hours": ["19:00", "20:00", "21:00", "22:00"],
        "notes": "مناسب لحملات الوعي والفيديو الطويل",
    },
    "tiktok": {
        "display_name": "TikTok",
        "benchmark": {
            "cpm": _metric(4.2, "medium", 3.0, 6.0),
            "cpc": _metric(0.55, "medium", 0.35, 0.85),
            "ctr_pct": _metric(1.6, "high", 1.2, 2.2),
            "cvr_pct": _metric(2.2, "medium", 1.5, 3.2),
            "roas": _metric(3.2, "medium", 2.5, 4.5),
            "cac": _metric(25.0, "medium", 18.0, 35.0),
        },
        "min_effective_budget": 1500,
        "optimal_budget_min": 3000,
        "optimal_budget_max": 50000,
        "peak_hours": ["18:00", "19:00", "20:00", "21:00", "22:00"],
        "notes": "فعّال جدًا للمنتجات الـ lifestyle والـ e-commerce",
    },
    "snapchat": {
        "display_name": "Snapchat",
        "benchmark": {
            "cpm": _metric(3.5, "medium", 2.5, 5.0),
            "cpc": _metric(0.65, "medium", 0.45, 0.95),
            "ctr_pct": _metric(1.1, "high", 0.8, 1.5),
            "cvr_pct": _metric(1.7, "medium", 1.2, 2.5),
            "roas": _metric(2.9, "medium", 2.2, 4.0),
            "cac": _metric(38.2, "medium", 25.0, 55.0),
        },
        "min_effective_budget": 1500,
        "optimal_budget_min": 2000,
        "optimal_budget_max": 40000,
        "peak_hours": ["17:00", "18:00", "19:00", "20:00"],
        "notes": "قوي مع الشباب في السعودية، خصوصًا للـ fast moving products",
    },
    "linkedin": {
        "display_name": "LinkedIn",
        "benchmark": {
            "cpm": _metric(22.5, "high", 18.0, 30.0),
            "cpc": _metric(5.5, "high", 4.0, 8.0),
            "ctr_pct": _metric(0.6, "high", 0.4, 0.9),
            "cvr_pct": _metric(3.8, "medium", 2.8, 5.2),
            "roas": _metric(2.5, "medium", 1.8, 3.5),
            "cac": _metric(144.7, "high", 100.0, 200.0),
        },
        "min_effective_budget": 8000,
        "optimal_budget_min": 8000,
        "optimal_budget_max": 120000,
        "peak_hours": ["08:00", "09:00", "10:00", "11:00", "14:00", "15:00"],
        "notes": "أفضل قناة للـ B2B، لكن تكلفتها أعلى بكثير",
    },
    "x": {
        "display_name": "X",
        "aliases": ["X (Twitter)", "Twitter"],
        "benchmark": {
            "cpm": _metric(7.5, "medium", 5.0, 12.0),
            "cpc": _metric(1.7, "medium", 1.2, 2.5),
            "ctr_pct": _metric(0.9, "medium", 0.6, 1.3),
            "cvr_pct": _metric(1.4, "low", 0.8, 2.2),
            "roas": _metric(2.0, "low", 1.5, 2.8),
            "cac": _metric(121.4, "medium", 80.0, 180.0),
        },
        "min_effective_budget": 3000,
        "optimal_budget_min": 4000,
        "optimal_budget_max": 60000,
        "peak_hours": ["12:00", "13:00", "18:00", "19:00", "20:00"],
        "notes": "قوي للأخبار والـ trending topics، لكنه أضعف في المبيعات المباشرة",
    },
    "programmatic": {
        "display_name": "Programmatic",
        "aliases": ["Programmatic Ads"],
        "benchmark": {
            "cpm": _metric(3.8, "medium", 2.5, 5.5),
            "cpc": _metric(0.85, "medium", 0.55, 1.3),
            "ctr_pct": _metric(0.6, "medium", 0.3, 0.9),
            "cvr_pct": _metric(1.0, "low", 0.6, 1.5),
            "roas": _metric(1.8, "low", 1.2, 2.5),
            "cac": _metric(85.0, "medium", 60.0, 120.0),
        },
        "min_effective_budget": 5000,
        "optimal_budget_min": 10000,
        "optimal_budget_max": 200000,
        "peak_hours": ["09:00", "10:00", "11:00", "14:00", "15:00", "16:00"],
        "notes": "مناسب للوصول الواسع وإعادة الاستهداف عبر شبكات متعددة",
    },
}

# Used for any platform whose benchmark entry is missing
DEFAULT_BENCHMARK = {
    "cpm": _metric(5.0, "low", 3.0, 8.0),
    "cpc": _metric(1.0, "low", 0.5, 2.0),
    "ctr_pct": _metric(1.2, "low", 0.6, 2.0),
    "cvr_pct": _metric(2.0, "low", 1.0, 3.5),
    "roas": _metric(2.5, "low", 1.5, 4.0),
    "cac": _metric(50.0, "low", 20.0, 120.0),
}


# =============================================================================
# Goals
# =============================================================================

GOALS = {
    "Awareness": {
        "weights": {"meta": 1.15, "tiktok": 1.25, "youtube": 1.20, "snapchat": 1.10,
                    "google_ads": 0.85, "linkedin": 0.70, "x": 0.80, "programmatic": 0.90},
        "funnel_focus": "reach_and_impressions",
        "best_platforms": ["tiktok", "youtube", "meta"],
        "aliases": ["Awareness / Brand Recognition", "Reach"],
    },
    "Traffic": {
        "weights": {"google_ads": 1.25, "meta": 1.10, "linkedin": 1.05, "tiktok": 0.95,
                    "youtube": 0.90, "snapchat": 0.85, "x": 0.80, "programmatic": 1.00},
        "funnel_focus": "clicks_and_website_visits",
        "best_platforms": ["google_ads", "meta"],
    },
    "Leads": {
        "weights": {"google_ads": 1.30, "linkedin": 1.25, "meta": 1.15, "x": 1.05,
                    "youtube": 0.95, "tiktok": 0.85, "snapchat": 0.80, "programmatic": 0.90},
        "funnel_focus": "lead_generation_and_forms",
        "best_platforms": ["google_ads", "linkedin", "meta"],
        "aliases": ["Leads Generation", "Lead Generation"],
    },
    "Sales": {
        "weights": {"meta": 1.20, "google_ads": 1.15, "tiktok": 1.05, "snapchat": 1.00,
                    "youtube": 0.95, "linkedin": 0.90, "x": 0.85, "programmatic": 1.10},
        "funnel_focus": "conversions_and_revenue",
        "best_platforms": ["meta", "google_ads"],
        "aliases": ["Sales / Conversions", "Conversions"],
    },
    "Engagement": {
        "weights": {"tiktok": 1.30, "snapchat": 1.20, "meta": 1.15, "youtube": 1.10,
                    "x": 1.05, "google_ads": 0.80, "linkedin": 0.85, "programmatic": 0.90},
        "funnel_focus": "interactions_and_social_engagement",
        "best_platforms": ["tiktok", "snapchat", "meta"],
    },
    "Brand_Recognition": {
        "weights": {"youtube": 1.25, "meta": 1.15, "tiktok": 1.20, "google_ads": 0.90,
                    "linkedin": 1.00, "snapchat": 1.05, "x": 0.95, "programmatic": 0.85},
        "funnel_focus": "brand_awareness_and_recognition",
        "best_platforms": ["youtube", "tiktok", "meta"],
        "aliases": ["Brand Recognition"],
    },
    "Retargeting": {
        "weights": {"meta": 1.35, "google_ads": 1.25, "programmatic": 1.20, "linkedin": 1.10,
                    "tiktok": 0.90, "snapchat": 0.85, "youtube": 0.95, "x": 0.80},
        "funnel_focus": "re_engagement_and_conversion",
        "best_platforms": ["meta", "google_ads", "programmatic"],
        "aliases": ["Remarketing"],
    },
}

INDUSTRY_GOAL_ADJUSTMENTS = {
    "تجارة إلكترونية": {"Sales": 1.15, "Leads": 0.90, "Awareness": 1.05},
    "عقارات": {"Leads": 1.25, "Awareness": 0.85, "Sales": 0.95},
    "خدمات مالية": {"Leads": 1.20, "Brand_Recognition": 1.10, "Sales": 0.90},
    "تعليم": {"Leads": 1.30, "Traffic": 1.10, "Sales": 0.85},
    "مطاعم وكافيهات": {"Engagement": 1.20, "Awareness": 1.15, "Sales": 1.05},
}


# =============================================================================
# Seasons, budget tiers, devices
# =============================================================================

SEASONS = {
    "بدون موسم معين": {
        "aliases": ["No Season", "none"],
        "goal_multipliers": {"Sales": 1.00, "Leads": 1.00, "Awareness": 1.00},
        "impact_level": "none",
        "best_industries": ["عقارات", "خدمات مالية"],
    },
    "رمضان": {
        "aliases": ["Ramadan"],
        "cpm_multiplier": 1.35, "ctr_multiplier": 1.15, "cvr_multiplier": 1.25, "cpc_multiplier": 1.17,
        "goal_multipliers": {"Sales": 1.20, "Engagement": 1.15, "Awareness": 1.10},
        "impact_level": "high",
        "best_industries": ["مطاعم وكافيهات", "تجارة إلكترونية", "أزياء وموضة"],
        "worst_industries": ["فعاليات ومؤتمرات ومعارض"],
    },
    "موسم الحج": {
        "aliases": ["Hajj"],
        "cpm_multiplier": 1.12, "ctr_multiplier": 1.02, "cvr_multiplier": 1.15, "cpc_multiplier": 1.10,
        "impact_level": "medium",
        "best_industries": ["سياحة وضيافة", "مطاعم وكافيهات"],
        "worst_industries": ["تعليم", "تقنية/ساس"],
    },
    "موسم العمرة": {
        "aliases": ["Umrah"],
        "cpm_multiplier": 1.15, "ctr_multiplier": 1.08, "cvr_multiplier": 1.22, "cpc_multiplier": 1.06,
        "impact_level": "medium",
        "best_industries": ["سياحة وضيافة", "مطاعم وكافيهات", "تجارة إلكترونية"],
        "worst_industries": ["تعليم"],
    },
    "العودة للمدارس": {
        "aliases": ["Back to School"],
        "cpm_multiplier": 1.25, "ctr_multiplier": 1.12, "cvr_multiplier": 1.35, "cpc_multiplier": 1.12,
        "goal_multipliers": {"Leads": 1.25, "Traffic": 1.15, "Sales": 1.10},
        "impact_level": "high",
        "best_industries": ["تعليم", "تجارة إلكترونية", "تقنية/ساس"],
        "worst_industries": ["سياحة وضيافة"],
    },
    "الجمعة البيضاء": {
        "aliases": ["White Friday"],
        "cpm_multiplier": 1.45, "ctr_multiplier": 1.35, "cvr_multiplier": 1.55, "cpc_multiplier": 1.07,
        "goal_multipliers": {"Sales": 1.40, "Traffic": 1.25, "Awareness": 1.15},
        "impact_level": "extreme",
        "best_industries": ["تجارة إلكترونية", "تجزئة", "أزياء وموضة", "تطبيقات وتقنية"],
        "worst_industries": ["عقارات", "خدمات مالية"],
    },
    "الصيف / عطلة المدارس": {
        "aliases": ["Summer"],
        "cpm_multiplier": 0.88, "ctr_multiplier": 0.95, "cvr_multiplier": 0.82, "cpc_multiplier": 0.93,
        "impact_level": "negative",
        "best_industries": ["سياحة وضيافة", "مطاعم وكافيهات"],
        "worst_industries": ["تعليم", "تقنية/ساس", "فعاليات ومؤتمرات ومعارض"],
    },
    "اليوم الوطني": {
        "aliases": ["National Day"],
        "cpm_multiplier": 1.28, "ctr_multiplier": 1.22, "cvr_multiplier": 1.18, "cpc_multiplier": 1.05,
        "impact_level": "medium",
        "best_industries": ["تجزئة", "مطاعم وكافيهات", "سيارات"],
        "worst_industries": ["تعليم"],
    },
    "يوم التأسيس": {
        "aliases": ["Founding Day"],
        "cpm_multiplier": 1.22, "ctr_multiplier": 1.18, "cvr_multiplier": 1.12, "cpc_multiplier": 1.03,
        "impact_level": "medium",
        "best_industries": ["تجزئة", "مطاعم وكافيهات"],
    },
    "عيد الفطر": {
        "aliases": ["Eid al-Fitr"],
        "cpm_multiplier": 1.30, "ctr_multiplier": 1.20, "cvr_multiplier": 1.25, "cpc_multiplier": 1.08,
        "impact_level": "high",
        "best_industries": ["تجارة إلكترونية", "أزياء وموضة", "مطاعم وكافيهات"],
        "worst_industries": ["تعليم"],
    },
    "عيد الأضحى": {
        "aliases": ["Eid al-Adha"],
        "cpm_multiplier": 1.25, "ctr_multiplier": 1.15, "cvr_multiplier": 1.20, "cpc_multiplier": 1.09,
        "impact_level": "medium",
        "best_industries": ["مطاعم وكافيهات", "تجزئة"],
        "worst_industries": ["سياحة وضيافة"],
    },
}

BUDGET_TIERS = [
    {"key": "low", "lower_bound": 0, "upper_bound": 15000, "max_platforms": 3,
     "goal_multipliers": {"Awareness": 0.90, "Sales": 1.10, "Leads": 1.15}},
    {"key": "medium", "lower_bound": 15000, "upper_bound": 50000, "max_platforms": 4,
     "goal_multipliers": {"Awareness": 1.00, "Sales": 1.05, "Leads": 1.00}},
    {"key": "high", "lower_bound": 50000, "upper_bound": 150000, "max_platforms": 6,
     "goal_multipliers": {"Awareness": 1.10, "Sales": 1.00, "Leads": 0.95}},
    {"key": "enterprise", "lower_bound": 150000, "upper_bound": None, "max_platforms": 8,
     "goal_multipliers": {"Awareness": 1.20, "Sales": 0.95, "Leads": 0.90}},
]

DEVICES = {
    "mobile": {"ctr_mod": 1.2, "cvr_mod": 0.9},
    "desktop": {"ctr_mod": 0.8, "cvr_mod": 1.2},
    "tablet": {"ctr_mod": 1.0, "cvr_mod": 1.0},
    "all": {"ctr_mod": 1.05, "cvr_mod": 1.05},
}


# =============================================================================
# Compatibility and sanity ranges
# =============================================================================

COMPATIBILITY = {
    "تجارة إلكترونية": {"allow": ["meta", "google_ads", "tiktok", "snapchat", "youtube"],
                        "discourage": ["linkedin"], "optimal": ["meta", "google_ads", "tiktok"]},
    "عقارات": {"allow": ["google_ads", "meta", "snapchat", "x"],
               "discourage": ["tiktok"], "optimal": ["google_ads", "meta"]},
    "سيارات": {"allow": ["youtube", "google_ads", "meta", "snapchat"],
               "discourage": ["linkedin", "x", "programmatic"], "optimal": ["youtube", "google_ads", "meta"]},
    "مطاعم وكافيهات": {"allow": ["tiktok", "snapchat", "meta", "google_ads", "youtube"],
                       "discourage": ["linkedin", "x", "programmatic"], "optimal": ["tiktok", "snapchat", "meta"]},
    "رعاية صحية": {"allow": ["google_ads", "meta", "snapchat", "youtube"],
                   "discourage": ["tiktok", "x", "programmatic"], "optimal": ["google_ads", "meta"]},
    "تعليم": {"allow": ["google_ads", "meta", "linkedin", "youtube"],
              "discourage": ["tiktok", "snapchat", "x"], "optimal": ["google_ads", "meta", "linkedin"]},
    "سياحة وضيافة": {"allow": ["youtube", "meta", "google_ads", "tiktok", "snapchat"],
                     "discourage": ["linkedin", "x", "programmatic"], "optimal": ["meta", "google_ads", "youtube"]},
    "خدمات مالية": {"allow": ["linkedin", "google_ads", "x", "meta"],
                    "discourage": ["tiktok", "snapchat"], "optimal": ["linkedin", "google_ads"]},
    "تقنية/ساس": {"allow": ["linkedin", "google_ads", "x", "meta", "youtube"],
                  "discourage": ["snapchat"], "optimal": ["linkedin", "google_ads"]},
    "تجزئة": {"allow": ["meta", "snapchat", "tiktok", "google_ads", "programmatic", "youtube"],
              "discourage": ["linkedin", "x"], "optimal": ["meta", "snapchat", "tiktok"]},
    "فعاليات ومؤتمرات ومعارض": {"allow": ["linkedin", "meta", "google_ads", "x", "youtube"],
                                "discourage": ["snapchat", "tiktok"], "optimal": ["linkedin", "meta", "google_ads"]},
    "default": {"allow": ["meta", "google_ads", "tiktok", "snapchat", "youtube", "x", "linkedin", "programmatic"],
                "discourage": [], "optimal": ["meta", "google_ads"]},
}

SANITY_RANGES = [
    {
        "name": "Real Estate - Awareness Campaign",
        "industry": "عقارات",
        "goal": "Awareness",
        "platforms": ["meta", "snapchat"],
        "ranges": {"ctr": (0.8, 1.5), "cpm": (6, 12), "cpc": (1, 5), "cvr": (0.5, 2.0), "roas": (1, 3)},
    },
    {
        "name": "E-commerce - Sales Campaign",
        "industry": "تجارة إلكترونية",
        "goal": "Sales",
        "platforms": ["meta", "google_ads", "tiktok"],
        "ranges": {"ctr": (1.0, 2.5), "cpm": (4, 9), "cpc": (0.5, 1.5), "cvr": (1.5, 4.0), "roas": (3, 7)},
    },
    {
        "name": "Healthcare - Lead Gen",
        "industry": "رعاية صحية",
        "goal": "Leads",
        "platforms": ["google_ads", "linkedin"],
        "ranges": {"ctr": (1.2, 3.0), "cpm": (7, 15), "cpc": (1.5, 4), "cvr": (2.5, 6.0), "roas": (2, 5)},
    },
]

# =============================================================================
# Creative and audience modifiers
# =============================================================================

def _mod(cpm=1.0, ctr=1.0, cvr=1.0, aliases=(), notes=None):
    entry = {"cpm": cpm, "ctr": ctr, "cvr": cvr}
    if aliases:
        entry["aliases"] = list(aliases)
    if notes:
        entry["notes"] = notes
    return entry


CREATIVE_TYPES = {
    "video": _mod(1.15, 1.35, 1.25, ["فيديو"], "أعلى معدل تفاعل لكن تكلفة إنتاج أعلى"),
    "static": _mod(1.00, 1.00, 1.00, ["صورة", "صورة ثابتة"], "المعيار الأساسي لجميع أنواع المحتوى"),
    "carousel": _mod(1.05, 1.15, 1.10, ["كاروسيل", "دائري"], "مناسب لعرض منتجات متعددة أو قصص متتالية"),
    "stories": _mod(1.08, 1.25, 1.15, ["ستوري", "قصص"], "محتوى قصير ومتفاعل، مناسب للعروض السريعة"),
    "high_quality": _mod(1.10, 1.20, 1.15, notes="إنتاج احترافي عالي الجودة"),
    "medium_quality": _mod(1.00, 1.00, 1.00, notes="جودة متوسطة معقولة"),
    "low_quality": _mod(0.90, 0.85, 0.90, notes="جودة منخفضة قد تؤثر على الأداء"),
    "ugc": _mod(0.95, 1.30, 1.20, ["محتوى المستخدمين"], "محتوى من المستخدمين، أعلى ثقة وتفاعل"),
    "influencer_content": _mod(1.20, 1.40, 1.30, ["مؤثرين"], "محتوى من المؤثرين، تكلفة أعلى لكن تأثير أقوى"),
    "brand_content": _mod(1.05, 1.05, 1.10, notes="محتوى العلامة التجارية الرسمي"),
    "with_celebrities": _mod(1.40, 1.50, 1.35, notes="ظهور المشاهير يزيد التفاعل والتكلفة"),
    "with_music": _mod(1.02, 1.15, 1.08, notes="الموسيقى تزيد التفاعل قليلاً"),
    "with_text_overlay": _mod(1.00, 1.10, 1.05, notes="النص المكتوب يوضح الرسالة"),
    "ramadan_themed": _mod(1.10, 1.20, 1.15, notes="محتوى مناسب لرمضان"),
    "national_day_themed": _mod(1.08, 1.15, 1.10, notes="محتوى مناسب للأعياد الوطنية"),
    "arabic_content": _mod(1.00, 1.05, 1.03, notes="محتوى باللغة العربية"),
    "english_content": _mod(1.02, 0.98, 1.00, notes="محتوى باللغة الإنجليزية"),
    "mixed_language": _mod(1.01, 1.02, 1.01, notes="محتوى مختلط اللغات"),
}

COMPETITION_LEVELS = {
    "low": _mod(0.85, 1.15, 1.10, ["منخفضة"], "منافسة منخفضة، فرصة لزيادة الحصة السوقية"),
    "medium": _mod(1.00, 1.00, 1.00, ["متوسطة"], "منافسة متوسطة، التركيز على التميز في المحتوى"),
    "high": _mod(1.25, 0.90, 0.95, ["عالية"], "منافسة عالية، ضرورة التميز في المحتوى والاستهداف"),
    "extreme": _mod(1.50, 0.80, 0.85, ["شديدة"], "منافسة شديدة، قد تحتاج لتجنب هذه المنصات أو زيادة الميزانية"),
}


def _demographics(ages, female, male):
    """``ages`` maps age group -> (cpm, ctr, cvr); genders are (ctr, cvr)."""
    return {
        "age_groups": {age: _mod(*values) for age, values in ages.items()},
        "genders": {"female": _mod(1.0, *female), "male": _mod(1.0, *male)},
    }


DEMOGRAPHICS = {
    "meta": _demographics(
        {"18-24": (0.9, 1.3, 0.8), "25-34": (0.95, 1.2, 1.0), "35-44": (1.05, 1.0, 1.1),
         "45-54": (1.15, 0.9, 1.15), "45+": (1.2, 0.8, 1.2)},
        female=(1.15, 1.2), male=(0.9, 0.95),
    ),
    "google_ads": _demographics(
        {"18-24": (0.85, 1.1, 0.7), "25-34": (0.9, 1.05, 0.95), "35-44": (1.0, 1.0, 1.0),
         "45-54": (1.1, 0.95, 1.05), "45+": (1.25, 0.85, 1.1)},
        female=(1.1, 1.15), male=(0.95, 0.9),
    ),
    "youtube": _demographics(
        {"18-24": (0.8, 1.4, 0.6), "25-34": (0.85, 1.2, 0.8), "35-44": (0.95, 1.0, 1.0),
         "45-54": (1.1, 0.9, 1.1), "45+": (1.3, 0.7, 1.2)},
        female=(1.2, 1.1), male=(0.9, 0.95),
    ),
    "tiktok": _demographics(
        {"18-24": (0.8, 1.4, 0.9), "25-34": (0.9, 1.2, 1.0), "35-44": (1.1, 0.9, 0.95),
         "45-54": (1.3, 0.7, 0.8), "45+": (1.4, 0.7, 0.7)},
        female=(1.3, 1.1), male=(0.8, 0.9),
    ),
    "snapchat": _demographics(
        {"18-24": (0.85, 1.3, 0.8), "25-34": (0.95, 1.1, 0.95), "35-44": (1.1, 0.9, 1.0),
         "45-54": (1.25, 0.8, 0.9), "45+": (1.35, 0.7, 0.8)},
        female=(1.25, 1.15), male=(0.85, 0.9),
    ),
    "linkedin": _demographics(
        {"18-24": (1.3, 0.7, 0.6), "25-34": (1.1, 0.9, 0.9), "35-44": (1.0, 1.0, 1.0),
         "45-54": (0.95, 1.1, 1.1), "45+": (0.9, 1.2, 1.15)},
        female=(1.05, 1.1), male=(0.98, 0.95),
    ),
    "x": _demographics(
        {"18-24": (0.9, 1.1, 0.8), "25-34": (0.95, 1.05, 0.95), "35-44": (1.0, 1.0, 1.0),
         "45-54": (1.1, 0.95, 1.05), "45+": (1.2, 0.9, 1.1)},
        female=(1.1, 1.05), male=(0.95, 0.98),
    ),
    "programmatic": _demographics(
        {"18-24": (0.85, 1.1, 0.8), "25-34": (0.9, 1.05, 0.95), "35-44": (1.0, 1.0, 1.0),
         "45-54": (1.1, 0.95, 1.05), "45+": (1.2, 0.9, 1.1)},
        female=(1.05, 1.1), male=(0.98, 0.95),
    ),
}

# Locations only move CPM and CVR
LOCATIONS = {
    "الرياض": _mod(1.25, cvr=1.2, aliases=["Riyadh"]),
    "جدة": _mod(1.1, cvr=1.1, aliases=["Jeddah"]),
    "الدمام/الخبر": _mod(1.1, cvr=1.05),
    "الدمام": _mod(1.1, cvr=1.05, aliases=["Dammam"]),
    "الخبر": _mod(1.1, cvr=1.05, aliases=["Khobar"]),
    "مكة": _mod(1.0, cvr=1.0, aliases=["Makkah", "Mecca", "مكة المكرمة"]),
    "المدينة": _mod(0.95, cvr=0.98, aliases=["Madinah", "Medina", "المدينة المنورة"]),
    "الطائف": _mod(0.9, cvr=0.95, aliases=["Taif"]),
    "بريدة": _mod(0.85, cvr=0.9),
    "تبوك": _mod(0.85, cvr=0.9),
    "خميس مشيط": _mod(0.8, cvr=0.85),
    "الهفوف": _mod(0.8, cvr=0.85),
    "حائل": _mod(0.8, cvr=0.85),
    "نجران": _mod(0.75, cvr=0.8),
    "الجبيل": _mod(0.9, cvr=0.95),
    "ينبع": _mod(0.85, cvr=0.9),
    "أبها": _mod(0.8, cvr=0.85, aliases=["Abha"]),
    "القطيف": _mod(0.85, cvr=0.9),
    "الأحساء": _mod(0.85, cvr=0.9),
    "باقي المدن": _mod(0.85, cvr=0.9),
    "كل المدن الرئيسية": _mod(1.05, cvr=1.02),
}

INTERESTS = {
    "fashion_shopping": _mod(1.05, 1.15, 1.10),
    "electronics": _mod(1.10, 1.05, 1.08),
    "luxury_goods": _mod(1.30, 1.15, 1.25),
    "discounts_offers": _mod(0.90, 1.25, 1.15),
    "health_fitness": _mod(1.05, 1.10, 1.08),
    "beauty_cosmetics": _mod(1.10, 1.20, 1.15),
    "finance_investment": _mod(1.25, 0.95, 1.20),
    "real_estate_investment": _mod(1.35, 1.05, 1.30),
    "travel_tourism": _mod(1.15, 1.10, 1.12),
    "education_learning": _mod(1.05, 1.05, 1.10),
}

BEHAVIORS = {
    "online_shoppers": _mod(1.10, 1.08, 1.20, notes="متسوقون نشطون أونلاين"),
    "engaged_shoppers": _mod(1.15, 1.15, 1.25, notes="متسوقون متفاعلون جداً"),
    "luxury_brand_buyers": _mod(1.40, 1.10, 1.35, notes="مشترون للعلامات الفاخرة"),
    "coupon_users": _mod(0.95, 1.20, 1.15, notes="مستخدمون للكوبونات والعروض"),
    "seasonal_shoppers": _mod(1.00, 1.10, 1.12, notes="متسوقون موسميون"),
    "ad_engagers": _mod(1.00, 1.20, 1.05, notes="متفاعلون مع الإعلانات"),
    "mobile_gamers": _mod(0.95, 1.15, 0.90, notes="لاعبو ألعاب موبايل"),
    "tech_early_adopters": _mod(1.25, 1.15, 1.20, notes="متبنون مبكرون للتكنولوجيا"),
    "frequent_travelers": _mod(1.20, 1.08, 1.15, notes="مسافرون متكررون"),
    "property_seekers": _mod(1.40, 1.20, 1.40, notes="باحثون عن عقارات"),
}


def registries_from_tables(tables: dict) -> Registries:
    """Build a ``Registries`` from plain tables shaped like this module's."""
    return Registries(
        industries={k: {"key": k, **v} for k, v in tables["industries"].items()},
        platforms={k: {"key": k, **v} for k, v in tables["platforms"].items()},
        default_benchmark=tables["default_benchmark"],
        goals={k: {"key": k, **v} for k, v in tables["goals"].items()},
        seasons={k: {"key": k, **v} for k, v in tables.get("seasons", {}).items()},
        budget_tiers=tables["budget_tiers"],
        devices=tables["devices"],
        compatibility=tables["compatibility"],
        industry_goal_adjustments=tables.get("industry_goal_adjustments", {}),
        sanity_ranges=tables.get("sanity_ranges", []),
        creative_types=tables.get("creative_types", {}),
        competition_levels=tables.get("competition_levels", {}),
        demographics=tables.get("demographics", {}),
        locations=tables.get("locations", {}),
        interests=tables.get("interests", {}),
        behaviors=tables.get("behaviors", {}),
    )


def default_tables() -> dict:
    """Return the production tables keyed the way ``registries_from_tables`` expects."""
    return {
        "industries": INDUSTRIES,
        "platforms": PLATFORMS,
        "default_benchmark": DEFAULT_BENCHMARK,
        "goals": GOALS,
        "seasons": SEASONS,
        "budget_tiers": BUDGET_TIERS,
        "devices": DEVICES,
        "compatibility": COMPATIBILITY,
        "industry_goal_adjustments": INDUSTRY_GOAL_ADJUSTMENTS,
        "sanity_ranges": SANITY_RANGES,
        "creative_types": CREATIVE_TYPES,
        "competition_levels": COMPETITION_LEVELS,
        "demographics": DEMOGRAPHICS,
        "locations": LOCATIONS,
        "interests": INTERESTS,
        "behaviors": BEHAVIORS,
    }


@lru_cache(maxsize=1)
def build_default_registries() -> Registries:
    """Build (once) the production registries."""
    return registries_from_tables(default_tables())
