#!/usr/bin/env python
"""
Command-line interface for PrePilot.

Usage:
    python cli.py forecast --industry "تجارة إلكترونية" --budget 100000 --goals Sales Traffic
    python cli.py forecast --industry عقارات --budget 30000 --goals Awareness --platforms Meta Snapchat --json
    python cli.py forecast -i ecommerce -b 50000 -g Sales --creative video --locations Riyadh --set tactical_reallocation=true
    python cli.py validate --industry عقارات --budget 500 --goals
    python cli.py template > engine.yaml
"""

import argparse
import json
import sys
import logging
from pathlib import Path

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _add_campaign_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--industry", "-i", type=str, required=True, help="Industry key or alias")
    parser.add_argument("--budget", "-b", type=float, required=True, help="Total budget")
    parser.add_argument("--goals", "-g", nargs="*", default=[], help="Goals, primary first")
    parser.add_argument("--platforms", "-p", nargs="*", default=None, help="Optional platform subset")
    parser.add_argument("--season", "-s", type=str, default=None, help="Optional season")
    parser.add_argument(
        "--device",
        nargs="*",
        default=None,
        metavar="DEVICE=SHARE",
        help="Device mix, e.g. --device mobile=0.7 desktop=0.3",
    )
    parser.add_argument("--creative", type=str, default=None, help="Creative format, e.g. video")
    parser.add_argument("--competition", type=str, default=None, help="Competition level: low, medium, high, extreme")
    parser.add_argument("--age", nargs="*", default=[], help="Targeted age groups, e.g. 18-24 25-34")
    parser.add_argument("--gender", type=str, default=None, help="Targeted gender")
    parser.add_argument("--locations", nargs="*", default=[], help="Targeted cities")
    parser.add_argument("--interests", nargs="*", default=[], help="Interest targeting keys")
    parser.add_argument("--behaviors", nargs="*", default=[], help="Behaviour targeting keys")
    parser.add_argument("--profit-margin", type=float, default=None, help="Profit margin in percent")
    parser.add_argument("--config", "-c", type=str, help="Optional: Path to YAML engine configuration")
    parser.add_argument(
        "--set",
        dest="overrides",
        nargs="*",
        default=[],
        metavar="KEY=VALUE",
        help="Configuration overrides, e.g. --set sanity.policy=clamp tactical_reallocation=true",
    )
    parser.add_argument("--registries", "-r", type=str, help="Optional: Path to YAML registry tables")


def build_parser() -> argparse.ArgumentParser:
    """Argument parser with the forecast, validate and template commands."""
    parser = argparse.ArgumentParser(
        description="PrePilot - Campaign Forecasting CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Forecast command
    forecast_parser = subparsers.add_parser("forecast", help="Forecast a campaign")
    _add_campaign_arguments(forecast_parser)
    forecast_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON"
    )
    forecast_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Optional: write the JSON report to this path"
    )

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a campaign")
    _add_campaign_arguments(validate_parser)

    # Template command
    subparsers.add_parser("template", help="Print a configuration template")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    # Route to command handlers
    if args.command == "forecast":
        cmd_forecast(args)
    elif args.command == "validate":
        cmd_validate(args)
    elif args.command == "template":
        cmd_template(args)


def parse_device_mix(items):
    """Parse ``["mobile=0.7", "desktop=0.3"]`` into a mapping."""
    if not items:
        return None
    mix = {}
    for item in items:
        device, sep, share = item.partition("=")
        if not sep:
            raise ValueError(f"Device share must look like DEVICE=SHARE, got '{item}'")
        mix[device.strip()] = float(share)
    return mix


def _build(args):
    """Build the engine and campaign from arguments; exit on bad arguments."""
    from pydantic import ValidationError
    from prepilot.config.loader import ConfigLoader
    from prepilot.config.schema import CampaignInput
    from prepilot.report.assembler import ForecastEngine

    try:
        config = ConfigLoader.load(args.config, args.overrides or ())
        registries = ConfigLoader.load_registries(args.registries) if args.registries else None
        campaign = CampaignInput(
            industry=args.industry,
            budget=args.budget,
            goals=args.goals,
            selected_platforms=args.platforms,
            season=args.season,
            device_mix=parse_device_mix(args.device),
            creative_type=args.creative,
            competition_level=args.competition,
            age_groups=args.age or (),
            gender=args.gender,
            locations=args.locations or (),
            interests=args.interests or (),
            behaviors=args.behaviors or (),
            profit_margin=args.profit_margin,
        )
    except (FileNotFoundError, ValueError, ValidationError) as e:
        logger.error(str(e))
        sys.exit(1)

    return ForecastEngine(registries, config), campaign


def cmd_forecast(args):
    """Forecast a campaign from command line."""
    from prepilot.analysis.formatting import ReportLabels, format_currency

    logger.info("=" * 60)
    logger.info("PrePilot - Campaign Forecast")
    logger.info("=" * 60)

    engine, campaign = _build(args)
    outcome = engine.forecast(campaign)

    if not outcome.success:
        logger.error(f"Forecast failed ({outcome.error_kind.value}):")
        for error in outcome.errors:
            logger.error(f"  - {error}")
        sys.exit(1)

    report = outcome.report
    summary = report.get_summary_dict()

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as f:
            json.dump(summary, f, ensure_ascii=False, indent=2)
        logger.info(f"Report saved to: {output}")

    if args.json:
        print(json.dumps(summary, ensure_ascii=False, indent=2))
        return

    labels = ReportLabels(report.input.industry)
    totals = report.kpis.totals

    print("\nBudget Allocation:")
    for platform, amount in report.allocation.amounts.items():
        share = report.allocation.share_of_budget(platform)
        print(f"  {engine.registries.display_name(platform):<14} {format_currency(amount):>20}  ({share:.1%})")

    print("\nForecast Totals:")
    for field_name in ("impressions", "clicks", "conversions", "cpm", "ctr", "cpc", "cvr", "roas", "cac", "cpa", "arpu"):
        print(f"  {labels.label_for(field_name)}: {labels.format(field_name, getattr(totals, field_name))}")
    if totals.break_even_roas is not None:
        print(f"  {labels.label_for('break_even_roas')}: {labels.format('break_even_roas', totals.break_even_roas)}")
    print(f"  Overall confidence: {report.confidence.overall:.0%}")

    if report.warnings:
        print(f"\nWarnings ({len(report.warnings)}):")
        for warning in report.warnings:
            print(f"  - {warning}")

    print("\nExplanations:")
    for field_name, text in report.explanations.items():
        print(f"  [{field_name}] {text}")

    if report.recommendations:
        print("\nRecommendations:")
        for recommendation in report.recommendations:
            print(f"  - {recommendation}")

    logger.info("=" * 60)
    logger.info("Complete!")


def cmd_validate(args):
    """Validate a campaign from command line."""
    logger.info("=" * 60)
    logger.info("PrePilot - Campaign Validation")
    logger.info("=" * 60)

    engine, campaign = _build(args)
    result = engine.validate(campaign)

    print("\n" + str(result))

    if not result.valid:
        sys.exit(1)


def cmd_template(args):
    """Print the configuration template as YAML."""
    import yaml
    from prepilot.config.loader import ConfigLoader

    print(yaml.dump(ConfigLoader.get_template(), default_flow_style=False, sort_keys=False))


if __name__ == "__main__":
    main()
