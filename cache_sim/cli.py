import argparse
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, List, Optional

from cache_sim.config import DEFAULT_TRACE, build_config, load_sim_config
from cache_sim.entity.model import CacheSimError, ConfigurationError
from cache_sim.entity.report import format_statistics
from cache_sim.simulator import LOG_FORMAT, SimulationPipeline, file_logging

logger = logging.getLogger(__name__)

EXIT_RUN_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cache-sim",
        description="Replay an I/D memory trace against a direct-mapped or "
                    "fully-associative cache with 64-byte blocks.",
    )
    parser.add_argument("size", nargs="?", help="cache size in bytes (typically 128-4096)")
    parser.add_argument("mapping", nargs="?", help="cache mapping: dm|fa")
    parser.add_argument("organization", nargs="?", help="cache organization: uc|sc")
    parser.add_argument("--trace", default=None,
                        help=f"trace file (default: config value or {DEFAULT_TRACE})")
    parser.add_argument("--config", default=None,
                        help="yaml config file; positional arguments override it")
    parser.add_argument("--report", default=None, help="write a yaml report to this path")
    parser.add_argument("--log-file", default=None, help="also write INFO logs to this file")
    parser.add_argument("--verbose-stats", action="store_true",
                        help="print a per access-type breakdown after the statistics")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


@contextmanager
def console_logging(level: str) -> Iterator[logging.Handler]:
    """Print records at ``level`` and above on stderr while the block runs."""
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    previous_level = root.level
    root.addHandler(handler)
    root.setLevel(level)
    try:
        yield handler
    finally:
        root.removeHandler(handler)
        root.setLevel(previous_level)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    with console_logging(args.log_level):
        if not args.log_file:
            return _run(args)
        with file_logging(args.log_file):
            return _run(args)


def _run(args: argparse.Namespace) -> int:
    try:
        if args.config:
            sim_config = load_sim_config(args.config)
            cache = sim_config.cache
            config = build_config(
                args.size if args.size is not None else cache.total_size,
                args.mapping if args.mapping is not None else cache.mapping,
                args.organization if args.organization is not None else cache.organization,
            )
            trace = args.trace or sim_config.trace
        else:
            config = build_config(args.size, args.mapping, args.organization)
            trace = args.trace or DEFAULT_TRACE
    except ConfigurationError as e:
        logger.error("%s", e)
        return EXIT_CONFIG_ERROR

    try:
        result = SimulationPipeline(config).run(trace, report_path=args.report)
    except CacheSimError as e:
        logger.error("%s", e)
        return EXIT_RUN_ERROR

    kind_statistics = None
    if args.verbose_stats:
        kind_statistics = {kind.name.lower(): stat
                           for kind, stat in result.controller.context.kind_statistics.items()}
    print(format_statistics(result.statistics, kind_statistics))
    return 0


if __name__ == "__main__":
    sys.exit(main())
