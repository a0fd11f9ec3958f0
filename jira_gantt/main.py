# Entry point: convert a Jira CSV export into a Gantt schedule document.
from __future__ import annotations

import argparse
import sys
from datetime import date
from typing import List, Optional

import yaml

from .config import load_config_from_yaml, load_default_config
from .errors import FormatError, SerializationError
from .io_utils import read_input, resolve_path, write_output
from .logging_utils import get_logger, set_verbosity
from .pipeline import OUTPUT_FORMATS, convert, render

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not a YYYY-MM-DD date")


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="jira-to-gantt",
        description="Convert a Jira CSV export into a Gantt chart schedule document.",
    )
    parser.add_argument(
        "input_file",
        nargs="?",
        help="Jira CSV export. Reads stdin when omitted or '-'.",
    )
    parser.add_argument(
        "output_file",
        nargs="?",
        help="Destination file. Writes stdout when omitted or '-'.",
    )
    parser.add_argument(
        "-s",
        "--start-date",
        type=_iso_date,
        help="Project start date (YYYY-MM-DD); anchors the first task of every assignee.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=OUTPUT_FORMATS,
        default="schedule",
        help="Output format (default: schedule).",
    )
    parser.add_argument(
        "-t",
        "--title",
        help="Schedule title. Overrides the config file.",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="YAML config file. Defaults to jira_gantt.yaml in the working directory, if any.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug details for every stage.",
    )
    return parser.parse_args(argv)


def run(argv: List[str]) -> int:
    """Complete processing pipeline. Returns the process exit status."""
    args = parse_args(argv)
    set_verbosity(args.verbose)

    if args.format == "xlsx" and resolve_path(args.output_file) is None:
        logger.error("The xlsx format needs an OUTPUT_FILE.")
        return EXIT_FAILURE

    try:
        cfg = load_config_from_yaml(args.config) if args.config else load_default_config()
    except (OSError, TypeError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Unable to load config: {e}")
        return EXIT_FAILURE
    if args.title is not None:
        cfg.title = args.title

    in_path = resolve_path(args.input_file)
    try:
        data = read_input(in_path)
    except OSError as e:
        logger.error(f"Unable to open file '{in_path}': {e}")
        return EXIT_FAILURE
    logger.info(f"Read {len(data)} bytes from {in_path or '<stdin>'}")

    try:
        report = convert(data, start_date=args.start_date, config=cfg)
    except FormatError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    out_path = resolve_path(args.output_file)
    try:
        write_output(render(report, args.format), out_path)
    except SerializationError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    report.log_summary(logger)
    if out_path is not None:
        logger.info(f"Wrote {report.document.task_count} task(s) to: {out_path}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> None:
    sys.exit(run(sys.argv[1:] if argv is None else argv))


if __name__ == "__main__":
    main()
