"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the currency signal pipeline.

- Provides argparse-based CLI
- Loads configuration from YAML or environment, then CLI overrides
- Runs one collection/scoring cycle and prints the results

============================================================
USAGE
============================================================
python -m orchestrator.cli
python -m orchestrator.cli --sources forexfactory fred --json
python -m orchestrator.cli --include-simulated --report

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from core.clock import get_clock
from event_sources.config import CollectionConfig, SIMULATED
from event_sources.orchestrator import create_default_orchestrator
from event_sources.providers import PROVIDERS
from normalization.models import SUPPORTED_CURRENCIES
from scoring_engine.history import InMemoryStrengthHistory, StrengthHistory
from scoring_engine.power_score import PowerRankingEngine
from scoring_engine.repository import SqlStrengthHistory
from scoring_engine.strength_score import TieredStrengthAggregator

from .models import PipelineReport
from .pipeline import CurrencySignalPipeline


VERSION = "1.0.0"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="currency-signals",
        description="Collect economic events and score currency strength",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Sources:
  forexfactory, forexfactory_feed, investing, fxstreet  - calendars
  tradingeconomics, fred                               - APIs (key required)
  yahoo_finance, marketwatch, newsapi                  - news
  alpha_vantage                                        - scored news (key required)
  simulated                                            - seeded test data

Examples:
  %(prog)s                                  # All enabled sources
  %(prog)s --sources forexfactory fred      # Selected sources only
  %(prog)s --include-simulated --report     # Offline run with text report
  %(prog)s --json > cycle.json              # Machine-readable output
        """
    )

    # --------------------------------------------------------
    # Collection Options
    # --------------------------------------------------------
    collection_group = parser.add_argument_group("Collection Options")

    collection_group.add_argument(
        "--config", "-c",
        type=str,
        metavar="PATH",
        help="YAML configuration file (default: environment / .env)",
    )

    collection_group.add_argument(
        "--sources", "-s",
        nargs="+",
        metavar="NAME",
        help="Only collect from these sources (default: all enabled)",
    )

    collection_group.add_argument(
        "--currencies",
        nargs="+",
        metavar="CODE",
        help="Currencies to score (default: EUR USD JPY GBP CAD)",
    )

    collection_group.add_argument(
        "--include-simulated",
        action="store_true",
        help="Enable the simulated source and merge its events",
    )

    # --------------------------------------------------------
    # Output Options
    # --------------------------------------------------------
    output_group = parser.add_argument_group("Output Options")

    output_group.add_argument(
        "--json",
        action="store_true",
        help="Print the full cycle report as JSON",
    )

    output_group.add_argument(
        "--report",
        action="store_true",
        help="Print the currency power text report",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level (default: from configuration, INFO)",
    )

    # --------------------------------------------------------
    # Storage Options
    # --------------------------------------------------------
    storage_group = parser.add_argument_group("Storage Options")

    storage_group.add_argument(
        "--database-url",
        type=str,
        metavar="URL",
        help="SQLAlchemy URL for strength history (default: in-memory)",
    )

    # --------------------------------------------------------
    # Version/Info
    # --------------------------------------------------------
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {VERSION}",
    )

    parser.add_argument(
        "--list-sources",
        action="store_true",
        help="Show available sources and exit",
    )

    return parser


# ============================================================
# CLI VALIDATION
# ============================================================

def validate_args(args: argparse.Namespace) -> List[str]:
    """
    Validate CLI arguments.

    Returns:
        List of validation errors
    """
    errors = []

    for name in args.sources or []:
        if name not in PROVIDERS:
            errors.append(f"Unknown source: {name}")
        elif name == SIMULATED and not args.include_simulated:
            errors.append("--sources simulated requires --include-simulated")

    for code in args.currencies or []:
        if code.upper() not in SUPPORTED_CURRENCIES:
            errors.append(f"Unsupported currency: {code}")

    if args.config and not Path(args.config).is_file():
        errors.append(f"Config file not found: {args.config}")

    return errors


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace) -> CollectionConfig:
    """Load base configuration, then apply CLI overrides."""
    if args.config:
        config = CollectionConfig.from_yaml(Path(args.config))
    else:
        config = CollectionConfig.from_env()

    if args.currencies:
        config.currencies = [code.upper() for code in args.currencies]
    if args.include_simulated:
        config.include_simulated = True
    if args.log_level:
        config.log_level = args.log_level
    if args.database_url:
        config.strength_database_url = args.database_url

    return config


def build_history(config: CollectionConfig) -> StrengthHistory:
    if config.strength_database_url:
        return SqlStrengthHistory(config.strength_database_url)
    return InMemoryStrengthHistory()


def setup_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


# ============================================================
# OUTPUT
# ============================================================

def show_sources() -> None:
    """Print the available sources in fallback order."""
    print("\nAvailable sources:")
    print("=" * 60)
    for i, (name, source_class) in enumerate(PROVIDERS.items(), 1):
        metadata = source_class().metadata
        key = " (API key)" if metadata.requires_api_key else ""
        print(f"  {i:2d}. {name:20s} {metadata.display_name}{key}")
    print()


def print_summary(report: PipelineReport) -> None:
    """Human-readable cycle summary."""
    batch = report.batch
    print(f"Cycle {report.cycle_id[:8]}: {report.event_count} events")
    if batch is not None:
        print(f"  Sources OK:     {', '.join(batch.succeeded_sources) or '-'}")
        print(f"  Sources failed: {', '.join(batch.failed_sources) or '-'}")
        if batch.simulated_events:
            print(f"  Simulated:      {len(batch.simulated_events)} events")
    print()

    print("CURRENCY STRENGTH")
    print(f"  {'CCY':<5}{'SCORE':>8}  {'SENTIMENT':<10}{'CONF':>6}  {'TREND':<9}{'EVENTS':>7}")
    for result in report.strength:
        print(
            f"  {result.currency:<5}{result.strength_score:>8.2f}  "
            f"{result.sentiment.value:<10}{result.confidence_level:>6}  "
            f"{result.trend.value:<9}{result.indicators_count:>7}"
        )
    print()

    print("POWER RANKING")
    for score in report.power:
        print(
            f"  {score.rank:>2}. {score.currency:<5}{score.total_score:>4}/100  "
            f"{score.strength.value:<9}{score.trend.value}"
        )
    print()

    failed_stages = [r for r in report.stage_results if not r.success]
    for result in failed_stages:
        print(f"  Stage {result.stage.stage_id} failed: {result.error_type}: {result.error}")


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def async_main(args: argparse.Namespace, config: CollectionConfig) -> int:
    """
    Run one cycle.

    Returns 0 even when every source failed: an empty batch is a
    valid outcome and still yields neutral scores.
    """
    clock = get_clock()
    history = build_history(config)
    pipeline = CurrencySignalPipeline(
        orchestrator=create_default_orchestrator(config, clock=clock),
        strength_aggregator=TieredStrengthAggregator(history=history, clock=clock),
        power_engine=PowerRankingEngine(universe=config.currencies, clock=clock),
        currencies=config.currencies,
        clock=clock,
    )

    try:
        report = await pipeline.run_cycle(args.sources)

        if args.json:
            print(json.dumps(report.to_dict(), indent=2, default=str))
        else:
            print_summary(report)
        if args.report:
            print(pipeline.power_engine.generate_report(report.power))

        return 0

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
    finally:
        await pipeline.close()
        if isinstance(history, SqlStrengthHistory):
            history.close()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.list_sources:
        show_sources()
        return 0

    errors = validate_args(args)
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    config = build_config(args)
    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Config error: {error}", file=sys.stderr)
        return 1

    setup_logging(config.log_level)

    if not args.json:
        print_banner(args, config)

    try:
        return asyncio.run(async_main(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


def print_banner(args: argparse.Namespace, config: CollectionConfig) -> None:
    """Print startup banner."""
    print()
    print("=" * 60)
    print("  CURRENCY SIGNALS")
    print("  Economic Event Aggregation")
    print("=" * 60)
    print(f"  Sources:    {', '.join(args.sources) if args.sources else 'all enabled'}")
    print(f"  Currencies: {', '.join(config.currencies)}")
    print(f"  Simulated:  {config.include_simulated}")
    print(f"  Log Level:  {config.log_level}")
    print("=" * 60)
    print()


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
