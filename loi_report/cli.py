"""Command-line interface for LOI Report."""

import argparse
import logging
import sys
from pathlib import Path

from loi_report import __version__


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _add_common_options(parser: argparse.ArgumentParser, default=None) -> None:
    parser.add_argument(
        "--input",
        type=Path,
        default=default,
        help="CSV file with one row per school (default: LOI_DATA_PATH)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=default,
        help="Logging level (default: LOI_LOG_LEVEL or INFO)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    ``--input`` and ``--log-level`` are accepted before or after the command.
    """
    parser = argparse.ArgumentParser(
        prog="loi-report",
        description="Year-over-year analysis of school Learning Opportunities Index scores",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    _add_common_options(parser)

    # Suppressed defaults keep a value given before the command
    common = argparse.ArgumentParser(add_help=False)
    _add_common_options(common, default=argparse.SUPPRESS)

    subparsers = parser.add_subparsers(dest="command")

    run = subparsers.add_parser("run", parents=[common], help="Build and write the full report (default)")
    run.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for the snapshot, charts and report (default: LOI_OUTPUT_DIR)",
    )
    run.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Score change above which a school is an outlier (default: 0.2)",
    )
    run.add_argument(
        "--no-charts",
        action="store_true",
        help="Skip building chart HTML files",
    )

    subparsers.add_parser("summary", parents=[common], help="Print the dataset overview and data quality notes")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    from loi_report.config import get_settings
    from loi_report.core.dataset import DatasetError

    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    updates = {}
    if args.input is not None:
        updates["data_path"] = args.input
    if args.log_level is not None:
        updates["log_level"] = args.log_level
    if getattr(args, "output_dir", None) is not None:
        updates["output_dir"] = args.output_dir
    if getattr(args, "threshold", None) is not None:
        updates["outlier_threshold"] = args.threshold
    if getattr(args, "no_charts", False):
        updates["write_charts"] = False
    if updates:
        settings = settings.model_copy(update=updates)

    _configure_logging(settings.log_level)

    try:
        if args.command == "summary":
            return _summary(settings)
        return _run(settings)
    except DatasetError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _summary(settings) -> int:
    from loi_report.core.dataset import SchoolDataset
    from loi_report.core.validation import RecordValidator

    dataset = SchoolDataset(
        settings.data_path,
        year_a_label=settings.year_a_label,
        year_b_label=settings.year_b_label,
    )
    validation = RecordValidator(
        missingness_threshold=settings.missingness_threshold,
        critical_threshold=settings.critical_missingness,
        schema=dataset.schema,
    ).validate(dataset.dataframe)

    info = dataset.metadata
    print(f"{info.total_schools} schools from {info.source}")
    for name, count in sorted(info.type_counts.items()):
        print(f"  {name}: {count}")
    print()
    print(validation.format_for_display())
    return 0 if validation.is_safe else 2


def _run(settings) -> int:
    from loi_report.report import build_report, write_report

    result = build_report(settings)
    written = write_report(
        result,
        settings.output_dir,
        snapshot_name=settings.snapshot_name,
        report_name=settings.report_name,
    )

    for name, path in written.items():
        print(f"{name}: {path}")
    if result.outliers.count:
        print(f"Outliers ({result.outliers.criterion}): {', '.join(result.outliers.names)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
