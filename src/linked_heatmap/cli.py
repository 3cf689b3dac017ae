"""Command-line interface: table in, clickable heatmap HTML out."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from .api import LinkedHeatmap
from .config import load_config
from .core.errors import HeatmapPipelineError
from .core.table import read_observation_table
from .utils.logging_utils import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linked-heatmap",
        description="Cluster a delimited table and render a heatmap whose rows link out.",
    )
    parser.add_argument("input", nargs="?", help="Delimited input table (tab-separated by default)")
    parser.add_argument("-o", "--output", help="Output HTML path")
    parser.add_argument("-c", "--config", help="YAML configuration file")
    parser.add_argument("--id-column", help="Identifier column (default: first column)")
    parser.add_argument("--sep", help="Field delimiter (default: tab)")
    parser.add_argument("--descriptor-column", help="Composite descriptor column to split")
    parser.add_argument("--link-template", help="Jinja2 template for the per-row link")
    parser.add_argument("--metric", help="Distance metric (default: euclidean)")
    parser.add_argument("--method", help="Linkage method (default: ward)")
    parser.add_argument(
        "--category-order",
        help="Comma-separated measurement column order (default: table order)",
    )
    parser.add_argument("--no-cluster", action="store_true", help="Keep the input row order")
    parser.add_argument("--title", help="Figure and page title")
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as exc:
        logger.error("Could not load configuration: %s", exc)
        return 2

    # Command-line flags override the config file
    if args.input:
        config.input.path = args.input
    if args.id_column:
        config.input.id_column = args.id_column
    if args.sep:
        config.input.sep = args.sep
    if args.descriptor_column:
        config.annotate.descriptor_column = args.descriptor_column
    if args.link_template:
        config.annotate.link_template = args.link_template
    if args.metric:
        config.cluster.metric = args.metric
    if args.method:
        config.cluster.method = args.method
    if args.category_order:
        config.reshape.category_order = [c.strip() for c in args.category_order.split(",") if c.strip()]
    if args.no_cluster:
        config.cluster.enabled = False
    if args.output:
        config.output.path = args.output
    if args.title:
        config.output.title = args.title

    if not config.input.path:
        parser.error("an input table is required (argument or input.path in the config)")

    try:
        table = read_observation_table(
            config.input.path,
            id_column=config.input.id_column,
            sep=config.input.sep,
            quotechar=config.input.quotechar,
            numeric_columns=config.cluster.numeric_columns,
        )
        out = LinkedHeatmap(table, config=config).save_html()
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1
    except (HeatmapPipelineError, KeyError, ValueError) as exc:
        logger.error("Pipeline failed: %s", exc)
        return 1

    logger.info("Done: %s", out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
