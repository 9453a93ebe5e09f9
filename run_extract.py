#!/usr/bin/env python3
"""
Command-line runner for tap extraction jobs.

Loads a job document (YAML or JSON) describing a block-diagram expression
and the taps to pull out of it, runs extract or persist, prints the rewritten
expression and writes a JSON run report.

Usage:
    python run_extract.py --job jobs/feedback.yml
    python run_extract.py --job jobs/feedback.yml --strict
    python run_extract.py --job jobs/feedback.json --report-dir out/reports --persist
"""

import argparse
import logging
import sys
from typing import List, Optional

from blocks.render import render
from core.run_artifacts import build_run_report, write_run_report
from core.settings import ConfigValidationError, load_settings
from core.structured_logging import configure_structured_logging, set_job_id
from extraction.diagnostics import ExtractionError, find_diagnostics
from extraction.engine import extract
from extraction.jobs import load_job
from extraction.persist import persist

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Tap extraction for block-diagram expressions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python run_extract.py --job jobs/feedback.yml\n"
            "  python run_extract.py --job jobs/feedback.yml --persist --strict\n"
        ),
    )

    parser.add_argument(
        "--job",
        required=True,
        help="Path to the YAML/JSON job document.",
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="Optional YAML settings file (strict, log_level, report_dir).",
    )
    parser.add_argument(
        "--report-dir",
        default=None,
        help="Directory for the JSON run report. Overrides settings.",
    )
    parser.add_argument(
        "--persist",
        action="store_true",
        default=False,
        help="Attach the taps instead of exposing them as outputs.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Fail on the first extraction error instead of rendering a diagnostic.",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    args = parse_args(argv)

    try:
        settings = load_settings(args.settings, strict=args.strict)
    except ConfigValidationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Settings error: {e}")
        return 1

    configure_structured_logging(settings.log_level)
    job_id = set_job_id()

    try:
        job = load_job(args.job)
    except FileNotFoundError as e:
        logger.error(f"File error: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid job document {args.job}: {e}")
        return 1

    operation = "persist" if (args.persist or job.persist) else "extract"
    logger.info(f"Job {job.name}: {operation} {job.target_names}")
    logger.info(f"Source arity     : {job.expression.arity}")

    runner = persist if operation == "persist" else extract
    try:
        result = runner(job.expression, job.targets, strict=settings.strict)
    except ExtractionError as e:
        logger.error(f"Extraction failed ({e.kind.value}): {e}")
        return 1

    logger.info(f"Result arity     : {result.arity}")
    print(render(result))

    report = build_run_report(operation, job.expression, result, job.target_names)
    report["job"] = job.name
    report_dir = args.report_dir or settings.report_dir
    path = write_run_report(report, run_id=job_id, output_dir=report_dir)
    logger.info(f"Wrote run report to {path}")

    if find_diagnostics(result):
        logger.warning("Result contains diagnostics")
        return 1 if settings.strict else 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
