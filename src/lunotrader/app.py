"""
Application entry point.

This module defines a simple command-line interface for running the
paper trader in its two modes: `backtest` replays a CSV of candles and
writes a report, `paper` runs the periodic loop on a synthetic price
feed.  No mode ever places a real order.
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import List, Optional

from .config.schema import Config, load_config
from .execution.backtest_exec import BacktestEngine
from .execution.paper_loop import PaperLoop
from .reporting.report import generate_backtest_report


def _setup_logging(verbose: bool) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def main(argv: Optional[List[str]] = None) -> None:
    """Parse command-line arguments and dispatch to the appropriate mode."""
    parser = argparse.ArgumentParser(description="Luno paper trader")
    parser.add_argument('mode', choices=['backtest', 'paper'], help="Operating mode")
    parser.add_argument('--config', default='config.yaml', help="Path to configuration YAML file")
    parser.add_argument('--csv', default=None, help="Candle CSV for backtest mode (overrides config)")
    parser.add_argument('--out', default='results', help="Report directory for backtest mode")
    parser.add_argument('--ticks', type=int, default=None, help="Stop the paper loop after N ticks")
    parser.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if os.path.exists(args.config):
        config = load_config(args.config)
    else:
        logging.warning("Config file %s not found, using defaults", args.config)
        config = Config()
    config.mode = args.mode
    if args.csv:
        config.data.csv_path = args.csv

    if args.mode == 'backtest':
        logging.info("Running backtest on %s...", config.data.csv_path)
        result = BacktestEngine(config).run()
        generate_backtest_report(result.closed_trades, result.equity_curve, out_dir=args.out)
        logging.info("Backtest complete. Results saved to the '%s' directory.", args.out)
    else:
        logging.info("Starting paper trading on %s with a synthetic price feed...", config.pair)
        PaperLoop(config).run(max_ticks=args.ticks)


if __name__ == '__main__':
    main()
