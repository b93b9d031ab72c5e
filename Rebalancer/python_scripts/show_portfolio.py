#!/usr/bin/env python3
"""Print the allocation report for a rebalanced portfolio.

The portfolio is read from a JSON document produced by the rebalancing step
(see ``portfolio_loader.PORTFOLIO_SCHEMA``) and printed as an indented tree of
current, target and expected weights.
"""
# python_scripts/show_portfolio.py
# MARK: - Version 1.2
# MARK: - History
# - 1.0: Initial command line wrapper around the allocation report.
# - 1.0 -> 1.1: Added --no-color and --log-file options.
# - 1.1 -> 1.2: Switch log files when --log-file changes between runs.

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List

import colorama

from Rebalancer.python_scripts.formatting import (
    AnsiStyler,
    PlainStyler,
    ShareCountError,
    print_portfolio,
)
from Rebalancer.python_scripts.portfolio_loader import PortfolioFormatError, load_portfolio

LOG_FILE = Path(__file__).resolve().parents[2] / "rebalance.log"


def _setup_logger(log_file: Path = LOG_FILE) -> logging.Logger:
    """Attach a single file handler to the ``rebalancer`` logger.

    A handler writing to a different file is replaced, so a later ``--log-file``
    in the same process takes effect.
    """
    logger = logging.getLogger("rebalancer")
    log_path = os.path.abspath(log_file)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == log_path:
            return logger
        logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_file, encoding="utf-8")
    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s", "%Y-%m-%dT%H:%M:%S"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return logger


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Show portfolio allocation report")
    parser.add_argument("portfolio", help="Path to the rebalanced portfolio JSON file")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--log-file", default=str(LOG_FILE), help="Path to log file")
    args = parser.parse_args(argv)

    logger = _setup_logger(Path(args.log_file))

    try:
        portfolio = load_portfolio(args.portfolio)
    except FileNotFoundError:
        logger.error(f"Portfolio file not found: {args.portfolio}")
        print(f"Portfolio file not found: {args.portfolio}", file=sys.stderr)
        return 1
    except PortfolioFormatError as e:
        logger.error(str(e))
        print(f"Failed to load portfolio: {e}", file=sys.stderr)
        return 1

    if args.no_color:
        styler = PlainStyler()
    else:
        colorama.just_fix_windows_console()
        styler = AnsiStyler()

    try:
        print_portfolio(portfolio, styler=styler)
    except ShareCountError as e:
        logger.error(f"Unexpected error: {e}")
        raise

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
