"""
CLI entrypoint for validating and exporting scenario tables.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ViewerConfig, apply_cli_overrides, apply_env_overrides, load_config
from .io.export import export_model
from .io.tables import discover_variants
from .registry import load_dataset
from .scenarios import enumerate_scenarios
from .schema import ScenarioModel, SchemaValidationError
from .serialize import model_fingerprint

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Setup logging configuration"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def print_summary(model: ScenarioModel, scenario_count: Optional[int] = None):
    """Print dataset summary to console"""
    print("\n" + "=" * 70)
    print(f"DATASET {model.name}")
    print("=" * 70)
    print(f"Fingerprint: {model_fingerprint(model)}")
    print(f"Input Factors: {len(model.factors)} ({', '.join(model.factor_codes())})")
    print(f"Categories: {len(model.categories)}")
    for category in model.categories:
        print(f"  - {category.name}: levels {', '.join(category.level_names())}")
    print(f"Output Metrics: {len(model.outputs)} ({', '.join(model.output_columns())})")
    if scenario_count is not None:
        print(f"Scenario Combinations: {scenario_count}")
    print("=" * 70 + "\n")


def print_errors(variant: str, error: SchemaValidationError):
    """Print every schema error verbatim to stderr"""
    print(f"ERROR: dataset {variant} is unusable, {len(error.errors)} schema error(s):", file=sys.stderr)
    for item in error.errors:
        print(f"  {item}", file=sys.stderr)


def cmd_list_variants(config: ViewerConfig):
    """List dataset variants found under the data root"""
    variants = discover_variants(data_config=config.data)

    print("\n" + "=" * 70)
    print(f"DATASET VARIANTS ({config.data.root_path()})")
    print("=" * 70)
    if variants:
        for variant in variants:
            print(f"  - {variant}")
    else:
        print("  (No variants found)")
    print("=" * 70 + "\n")


def cmd_validate(config: ViewerConfig) -> bool:
    """
    Load and validate every configured variant, exporting when requested.

    Returns:
        True if every variant loaded cleanly
    """
    variants = config.data.variants or discover_variants(data_config=config.data)
    if not variants:
        print(f"ERROR: no dataset variants found under {config.data.root_path()}", file=sys.stderr)
        return False

    ok = True
    for variant in variants:
        try:
            model = load_dataset(variant, config)
        except SchemaValidationError as e:
            print_errors(variant, e)
            ok = False
            continue
        except (FileNotFoundError, ValueError) as e:
            print(f"ERROR: dataset {variant}: {e}", file=sys.stderr)
            logger.debug("Dataset load failed", exc_info=True)
            ok = False
            continue

        prefix = config.export.factor_prefix
        try:
            scenario_count = len(enumerate_scenarios(model, factor_prefix=prefix)) if config.export.scenarios else None
        except ValueError as e:
            print(f"ERROR: dataset {variant}: {e}", file=sys.stderr)
            ok = False
            continue
        print_summary(model, scenario_count)

        if config.export.out_dir:
            out_dir = Path(config.export.out_dir) / variant
            written = export_model(model, out_dir, include_scenarios=config.export.scenarios, factor_prefix=prefix)
            print(f"Exported {len(written)} file(s) to {out_dir}")

    return ok


def build_config(args: argparse.Namespace) -> ViewerConfig:
    """Resolve config file, environment and command line overrides"""
    config = load_config(args.config) if args.config else ViewerConfig()
    config = apply_env_overrides(config)
    if args.sets:
        config = apply_cli_overrides(config, args.sets)

    if args.data_dir:
        config.data.root = args.data_dir
    if args.variants:
        config.data.variants = args.variants
    if args.export:
        config.export.out_dir = args.export
    if args.scenarios:
        config.export.scenarios = True
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint"""
    parser = argparse.ArgumentParser(
        description="VE Scenario Viewer tables - validate and export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate every bundled variant
  python -m vescenario

  # Validate one variant from a custom data directory
  python -m vescenario --data-dir ./data --variant VERSPM

  # Export flat CSV tables and the scenario grid
  python -m vescenario --variant VERPAT --export exports --scenarios

  # Override config values
  python -m vescenario --config viewer.yaml --set loader.default_metric=Median
        """,
    )

    parser.add_argument("--config", type=str, help="Path to config file (YAML or JSON)")
    parser.add_argument("--data-dir", type=str, help="Override the data root directory")
    parser.add_argument(
        "--variant",
        action="append",
        dest="variants",
        metavar="NAME",
        help="Dataset variant to load (can be used multiple times, default: all found)",
    )
    parser.add_argument(
        "--set",
        action="append",
        dest="sets",
        metavar="KEY=VALUE",
        help="Override config value (can be used multiple times). Use nested keys: loader.default_metric=Average",
    )
    parser.add_argument("--list-variants", action="store_true", help="List dataset variants and exit")
    parser.add_argument("--export", type=str, metavar="DIR", help="Write CSV exports under DIR/<variant>")
    parser.add_argument("--scenarios", action="store_true", help="Enumerate scenario combinations (and export them)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )

    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        config = build_config(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.list_variants:
        cmd_list_variants(config)
        return 0

    return 0 if cmd_validate(config) else 1


if __name__ == "__main__":
    sys.exit(main())
