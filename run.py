#!/usr/bin/env python3
"""
Incident Analytics - Main CLI Entry Point
=========================================

Reads one or more incident exports, builds every dashboard view and prints
(or writes) them as JSON.

STAGE 1 -- Read exports  (read_export_rows)
    Each --file is read as CSV text or, for .xlsx/.xlsm, as the "raw" (or
    first) worksheet via openpyxl.  Rows from all files are merged in the
    order the files were given.

STAGE 2 -- Load dataset  (DashboardPipeline.load)
    Rows are normalised into records.  When nothing usable survives (no
    files, unreadable files, header-only exports) the deterministic sample
    dataset is substituted, unless --no-fallback is given.  The output's
    "is_sample" flag tells the two apart.

STAGE 3 -- Build views  (DashboardPipeline.build_views)
    Applies the --category / --start / --end filter and computes the
    summary, distributions, time series, severity breakdowns, SLA,
    root-cause, MTBF, team and source views.

Usage:
    python run.py                                  # Sample data, all views
    python run.py --file incidents.csv             # Real export
    python run.py --file a.csv --file b.xlsx --category Network --start 2025-01-01
    python run.py --file incidents.csv --granularity week --output views.json
"""

import logging
import sys
import os
import re
import json
import time
import argparse
from pathlib import Path
from tqdm import tqdm

from incident_analytics.core.config import (
    AnalyticsConfig,
    DEFAULT_TOP_N,
    DEFAULT_GRANULARITY,
    PERIOD_FREQUENCIES,
)
from incident_analytics.models.data_models import DateRange, RecordFilter
from incident_analytics.pipeline import DashboardPipeline, read_export_rows

logger = logging.getLogger(__name__)


# ==========================================
# PATH UTILITIES
# ==========================================

def validate_file_path(path: str, must_exist: bool = False) -> Path:
    """
    Resolve a user-supplied path and keep it inside allowed directories.

    Paths from --file / --output are resolved (symlinks and ".." included)
    and must live under the project directory or the user's home directory.

    Args:
        path: Raw file path string from a CLI argument.
        must_exist: When True, raise ValueError if the file is missing.

    Returns:
        The fully-resolved Path.

    Raises:
        ValueError: If the path is malformed, outside allowed directories,
                    or does not exist when must_exist is True.
    """
    try:
        resolved = Path(path).resolve()
    except (OSError, RuntimeError, TypeError) as e:
        raise ValueError(f"Invalid file path '{path}': {e}")

    if must_exist and not resolved.exists():
        raise ValueError(f"File not found: {path}")

    project_root = Path(__file__).parent.resolve()
    home_dir = Path.home().resolve()
    allowed = (
        resolved == project_root or project_root in resolved.parents or
        resolved == home_dir or home_dir in resolved.parents
    )
    if not allowed:
        raise ValueError(f"Path outside allowed directories: {path}")

    return resolved


def sanitize_filename(filename: str) -> str:
    """
    Strip directory components and unsafe characters from a filename.

    Returns:
        Only word characters, spaces, hyphens and dots, at most 255 chars.
    """
    filename = os.path.basename(filename)
    filename = re.sub(r'[^\w\s\-\.]', '', filename)
    return filename[:255]


# ==========================================
# LOGGING
# ==========================================

def setup_logging(verbose: bool = False, log_dir=None):
    """
    Configure the root logger with file and console handlers.

    Every run writes a timestamped log file under logs/ at DEBUG level; the
    console shows warnings only, or info with --verbose.

    Args:
        verbose: Lower the console handler to INFO.
        log_dir: Directory for the log file (default: logs/ next to run.py).

    Returns:
        Path of the new log file.
    """
    log_dir = Path(log_dir) if log_dir is not None else Path(__file__).parent / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = time.strftime('%Y%m%d_%H%M%S')
    log_file = log_dir / f"incident_analytics_{timestamp}.log"

    file_formatter = logging.Formatter(
        '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S'
    )

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)

    # stderr, so JSON on stdout stays clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logger.debug(f"Logging to: {log_file}")
    return log_file


# ==========================================
# ARGUMENTS
# ==========================================

def parse_args(argv=None):
    """Parse and return command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Incident Analytics - dashboard views from incident exports',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py                                   Views over sample data
  python run.py --file incidents.csv              Views over a real export
  python run.py -f a.csv -f b.xlsx --category Network
  python run.py -f incidents.csv --start 2025-01-01 --end 2025-03-31
  python run.py -f incidents.csv --output views.json
        """
    )

    parser.add_argument(
        '--file', '-f',
        action='append',
        default=[],
        help='Input CSV/Excel export (repeatable)'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Write JSON views to this file instead of stdout'
    )

    # Filter
    parser.add_argument(
        '--category', '-c',
        type=str,
        default=None,
        help="Only include this category ('all' for every category)"
    )

    parser.add_argument(
        '--start',
        type=str,
        default=None,
        help='Earliest opened date to include (YYYY-MM-DD)'
    )

    parser.add_argument(
        '--end',
        type=str,
        default=None,
        help='Latest opened date to include, whole day (YYYY-MM-DD)'
    )

    # View settings
    parser.add_argument(
        '--granularity', '-g',
        choices=sorted(PERIOD_FREQUENCIES),
        default=DEFAULT_GRANULARITY,
        help=f'Time-series bucket (default: {DEFAULT_GRANULARITY})'
    )

    parser.add_argument(
        '--top',
        type=int,
        default=DEFAULT_TOP_N,
        help=f'Entries in ranked views (default: {DEFAULT_TOP_N})'
    )

    parser.add_argument(
        '--no-fallback',
        action='store_true',
        help='Do not substitute sample data when no records are ingested'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Show detailed logging output'
    )

    return parser.parse_args(argv)


# ==========================================
# EXECUTION
# ==========================================

def collect_rows(paths):
    """Read every export and merge their rows in argument order."""
    rows = []
    for path in tqdm(paths, desc="Reading exports", unit="file", disable=len(paths) < 2):
        file_rows = read_export_rows(path)
        logger.info(f"{path.name}: {len(file_rows):,} row(s)")
        rows.extend(file_rows)
    return rows


def build_filter(category=None, start=None, end=None):
    """Turn CLI filter flags into a RecordFilter."""
    date_range = DateRange(start=start, end=end) if (start or end) else None
    if date_range is not None and not date_range.is_active:
        logger.warning(f"Ignoring unparsable date range start={start!r} end={end!r}")
        date_range = None
    return RecordFilter(category_id=category, date_range=date_range)


def run_views(args):
    """
    Execute stages 1-3 and return the JSON-ready views dict.

    Raises:
        ValueError: For missing or disallowed input paths and invalid
                    settings such as --top 0.
    """
    paths = [validate_file_path(p, must_exist=True) for p in args.file]
    config = AnalyticsConfig(
        top_n=args.top,
        granularity=args.granularity,
        use_fallback=not args.no_fallback,
    )

    source = collect_rows(paths) if paths else None
    pipeline = DashboardPipeline(source=source, config=config)
    dataset = pipeline.load()
    if dataset.is_sample:
        logger.warning("No usable records found; views are built from sample data")
    elif dataset.is_empty:
        logger.warning("No usable records found and fallback disabled; views are empty")

    views = pipeline.build_views(build_filter(args.category, args.start, args.end))
    return views.to_dict()


def write_output(payload, output=None):
    """Print the payload as JSON, or write it to ``output``."""
    text = json.dumps(payload, indent=2, default=str)
    if not output:
        print(text)
        return None

    target = validate_file_path(output)
    target = target.with_name(sanitize_filename(target.name))
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text + "\n", encoding='utf-8')
    print(f"Views written to: {target}")
    return target


def main(argv=None):
    """
    Top-level entry point: parse CLI args, build views and emit JSON.

    Returns:
        Process exit status (0 on success, 1 on invalid input).
    """
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        payload = run_views(args)
        write_output(payload, args.output)
    except ValueError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nCancelled by user.", file=sys.stderr)
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
