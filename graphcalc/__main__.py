"""Command-line entry point: ``python -m graphcalc``."""
import argparse
import logging

from graphcalc.logging_config import setup_logging


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="graphcalc", description="Interactive 2D graphing calculator.")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="logging level (default: INFO)")
    parser.add_argument("--log-file", default=None, help="also write the log to this file")
    args = parser.parse_args(argv)

    setup_logging(level=getattr(logging, args.log_level), log_file=args.log_file)

    # imported late so --help works without a display
    from graphcalc.app import main as run_app
    run_app()


if __name__ == "__main__":
    main()
