#!/usr/bin/env python
"""
Run PrePilot Demo

Forecasts the documented example campaigns with the production registries
and prints allocations, KPI totals, warnings and recommendations.

Usage:
    python run_demo.py                     # Run every scenario
    python run_demo.py --scenario invalid  # Run one scenario
    python run_demo.py --policy clamp      # Clamp out-of-range estimates

Examples:
    python run_demo.py
    python run_demo.py --scenario real_estate --threshold 0
    python run_demo.py --scenario riyadh_video --reallocate
"""

import argparse
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from prepilot.config.schema import CampaignInput, EngineConfig, SanityConfig
from prepilot.report.assembler import ForecastEngine


SCENARIOS = {
    "ecommerce": CampaignInput(
        industry="تجارة إلكترونية",
        budget=100000,
        goals=["Sales", "Traffic"],
        selected_platforms=["Meta", "Google Search", "TikTok"],
    ),
    "invalid": CampaignInput(
        industry="تجارة إلكترونية",
        budget=500,
        goals=[],
        selected_platforms=["UnknownPlatform"],
    ),
    "real_estate": CampaignInput(
        industry="عقارات",
        budget=30000,
        goals=["Awareness"],
        selected_platforms=["Meta", "Snapchat"],
    ),
    "ramadan_restaurants": CampaignInput(
        industry="مطاعم وكافيهات",
        budget=25000,
        goals=["Engagement", "Awareness"],
        season="رمضان",
        device_mix={"mobile": 0.8, "desktop": 0.2},
    ),
    "riyadh_video": CampaignInput(
        industry="Apps",
        budget=40000,
        goals=["Sales"],
        selected_platforms=["Meta", "Google Ads", "LinkedIn"],
        creative_type="video",
        competition_level="high",
        age_groups=["25-34"],
        locations=["Riyadh", "Jeddah"],
        profit_margin=30,
    ),
}


def print_outcome(name: str, outcome) -> None:
    print("\n" + "=" * 80)
    print(f"SCENARIO: {name}")
    print("=" * 80)

    if not outcome.success:
        print(f"\nFailed ({outcome.error_kind.value}):")
        if outcome.failure is None:
            print(str(outcome.validation))
        else:
            for error in outcome.errors:
                print(f"  - {error}")
        return

    report = outcome.report
    print("\nAllocation:")
    print(report.allocation.to_dataframe().to_string(index=False))

    totals = report.kpis.totals
    print(
        f"\nTotals: impressions={totals.impressions:,} clicks={totals.clicks:,} "
        f"conversions={totals.conversions:,} ROAS={totals.roas:.2f}"
    )
    if totals.break_even_roas is not None:
        print(f"Break-even ROAS: {totals.break_even_roas:.2f}")
    print(f"Overall confidence: {report.confidence.overall:.0%}")

    if report.warnings:
        print(f"\nWarnings ({len(report.warnings)}):")
        for warning in report.warnings:
            print(f"  - {warning}")

    if report.recommendations:
        print("\nRecommendations:")
        for recommendation in report.recommendations:
            print(f"  - {recommendation}")


def main():
    parser = argparse.ArgumentParser(
        description="Run PrePilot Demo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        "--scenario",
        choices=sorted(SCENARIOS),
        help="Run a specific scenario only"
    )
    parser.add_argument(
        "--policy",
        choices=["warn", "clamp"],
        default="warn",
        help="Sanity policy (default: warn)"
    )
    parser.add_argument(
        "--reallocate",
        action="store_true",
        help="Top up platforms below their effective minimum budget"
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=30.0,
        help="Sanity flag threshold in percent (default: 30)"
    )

    args = parser.parse_args()

    config = EngineConfig(
        name="demo",
        tactical_reallocation=args.reallocate,
        sanity=SanityConfig(flag_threshold_percentage=args.threshold, policy=args.policy),
    )
    engine = ForecastEngine(config=config)

    print("=" * 80)
    print("PREPILOT DEMO")
    print("=" * 80)

    names = [args.scenario] if args.scenario else list(SCENARIOS)
    for name in names:
        print_outcome(name, engine.forecast(SCENARIOS[name]))

    print("\n" + "=" * 80)
    print("DEMO COMPLETE")
    print("=" * 80)


if __name__ == "__main__":
    main()
