# main.py
"""Command-line front end: generate a cave or forest map and print it as text."""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
import yaml

from mapgen.cave import CaveGenerator
from mapgen.config import CaveConfig, ForestConfig
from mapgen.errors import ConfigurationError
from mapgen.forest import ForestGenerator
from mapgen.lattice import get_contour
from mapgen.render import render_cave, render_forest, render_overlay
from utils.config_loader import ConfigFormatError, config_section, load_yaml_config
from utils.logging_utils import level_from_args, setup_logging

# --- Paths relative to this script's location ---
SCRIPT_DIR = Path(__file__).parent.resolve()
CONFIG_DIR = SCRIPT_DIR / "config"
CONFIG_FILE = CONFIG_DIR / "config.yaml"
# --- End Paths ---

EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2

log = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate deterministic cave or forest maps and print them as text."
    )
    parser.add_argument("kind", choices=["cave", "forest"], help="Kind of map to generate")
    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_FILE,
        help=f"YAML file with cave/forest sections (default: {CONFIG_FILE})",
    )
    parser.add_argument("--seed", type=int, default=None, help="Override the configured seed")
    parser.add_argument("--width", type=int, default=None, help="Override the configured width")
    parser.add_argument("--height", type=int, default=None, help="Override the configured height")
    parser.add_argument(
        "--contour",
        action="store_true",
        help="Cave only: number the open rooms and mark contour cells with '*'",
    )
    parser.add_argument(
        "--output", type=Path, default=None, help="Write the map here instead of stdout"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Logging level",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--no-color", action="store_true", help="Disable coloured log output"
    )
    return parser


def apply_overrides(section: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Merge command-line overrides into a config section."""
    merged = dict(section)
    for name in ("seed", "width", "height"):
        value = getattr(args, name)
        if value is not None:
            merged[name] = value
    return merged


def run_cave(section: Dict[str, Any], contour: bool = False) -> str:
    generator = CaveGenerator(CaveConfig.from_mapping(section))
    cave = generator.generate()
    if not contour:
        return render_cave(cave)
    return render_overlay(cave, contour=get_contour(cave), rooms=generator.rooms())


def run_forest(section: Dict[str, Any]) -> str:
    generator = ForestGenerator(ForestConfig.from_mapping(section))
    return render_forest(generator.generate())


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level_from_args(args.log_level, args.verbose), colors=not args.no_color)
    log.info("Map generation starting", kind=args.kind, config=str(args.config))

    try:
        config = load_yaml_config(args.config, "Main")
        section = apply_overrides(config_section(config, args.kind), args)
        if args.kind == "cave":
            text = run_cave(section, contour=args.contour)
        else:
            if args.contour:
                log.warning("--contour only applies to cave maps; ignoring")
            text = run_forest(section)
    except ConfigurationError as e:
        log.critical("Invalid generator configuration", error=str(e))
        return EXIT_CONFIG_ERROR
    except FileNotFoundError as e:
        log.critical("Required file not found", error=str(e))
        return EXIT_FAILURE
    except (yaml.YAMLError, ConfigFormatError) as e:
        log.critical("Could not read configuration", error=str(e))
        return EXIT_CONFIG_ERROR

    if args.output is not None:
        args.output.write_text(text + "\n")
        log.info("Map written", path=str(args.output))
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
