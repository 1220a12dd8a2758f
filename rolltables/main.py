"""
rolltables - Main Entry Point

Command line front end for the random table engine. Loads table files,
evaluates a table name, dice expression or template, and reports the
result.
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rolltables.data_models import DiceRoller
from rolltables.observability.run_log import get_run_log
from rolltables.tables import (
    RollCache,
    RollContext,
    TableLoadError,
    TableRegistry,
    evaluate,
)
from rolltables.tables.template_engine import Reporter


# Configure logging
def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class EngineConfig:
    """Configuration for a table engine session."""

    tables_paths: list[Path] = field(default_factory=list)
    seed: Optional[int] = None

    # Output options
    list_tables: bool = False
    show_log: bool = False
    save_log: Optional[Path] = None

    # Runtime options
    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects."""
        self.tables_paths = [Path(p) for p in self.tables_paths]
        if isinstance(self.save_log, str):
            self.save_log = Path(self.save_log)


# =============================================================================
# TABLE ENGINE
# =============================================================================

def print_reporter(text: str, result: str) -> None:
    """Default reporter: print the resolved text."""
    print(result)


class TableEngine:
    """
    A table engine session.

    Owns the registry and roll cache for one process and wires them into
    every evaluation.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        registry: Optional[TableRegistry] = None,
        reporter: Optional[Reporter] = None,
    ):
        self.config = config or EngineConfig()
        self.registry = registry or TableRegistry()
        self.cache = RollCache()
        self.reporter = reporter

        if self.config.seed is not None:
            DiceRoller.set_seed(self.config.seed)
            get_run_log().set_seed(self.config.seed)

        for path in self.config.tables_paths:
            self.load_tables(path)

    @property
    def context(self) -> RollContext:
        return RollContext(registry=self.registry, cache=self.cache)

    def load_tables(self, path: Path) -> int:
        """Load a table file, or every table file in a directory."""
        if path.is_dir():
            return self.registry.load_tables_from_directory(path)
        return self.registry.load_tables_from_json(path)

    def evaluate(self, text: str) -> str:
        """Resolve ``text`` and forward it to the reporter."""
        return evaluate(text, self.context, self.reporter)

    def list_tables(self) -> list[str]:
        return self.registry.list_public()


# =============================================================================
# ARGUMENT PARSING
# =============================================================================

def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="rolltables - resolve random tables, dice and templates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rolltables 3d6                                   # Roll dice
  rolltables --tables tables/ "Oracle Question"    # Roll on a table
  rolltables --tables tables/ '${Weather} with ${1d4} crows'
  rolltables --tables tables/ --list               # List public tables
        """
    )

    parser.add_argument(
        "text",
        nargs="?",
        help="Table name, dice expression or template text to resolve",
    )
    parser.add_argument(
        "-t", "--tables",
        type=Path,
        action="append",
        default=None,
        help="JSON table file or directory of table files (repeatable)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed the dice for a reproducible result",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List public table names and exit",
    )
    parser.add_argument(
        "--show-log",
        action="store_true",
        help="Print the run log of rolls and table lookups after resolving",
    )
    parser.add_argument(
        "--save-log",
        type=Path,
        metavar="PATH",
        help="Write the run log to PATH as JSON after resolving",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> EngineConfig:
    """Create EngineConfig from parsed arguments."""
    return EngineConfig(
        tables_paths=args.tables or [],
        seed=args.seed,
        list_tables=args.list,
        show_log=args.show_log,
        save_log=args.save_log,
        verbose=args.verbose,
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)
    config = create_config_from_args(args)

    try:
        engine = TableEngine(config, reporter=print_reporter)
    except (OSError, TableLoadError) as e:
        logger.error(f"Could not load tables: {e}")
        return 1

    if config.list_tables:
        for name in engine.list_tables():
            print(name)
        return 0

    if not args.text:
        logger.error("Nothing to resolve: give a table name, dice expression or template")
        return 2

    try:
        engine.evaluate(args.text)
    except LookupError as e:
        logger.error(f"Table lookup failed: {e}")
        return 1
    except RecursionError:
        logger.error(f"Table resolution of {args.text!r} did not terminate")
        return 1

    if config.show_log:
        print(get_run_log().format_log())
    if config.save_log:
        get_run_log().save(str(config.save_log))
    return 0


if __name__ == "__main__":
    sys.exit(main())
