"""
Ingestion module for Incident Analytics.

Parses export text and normalises heterogeneous rows into records.
"""

from .normalizer import (
    parse_csv_text,
    normalize_row,
    normalize_rows,
    ingest,
)

__all__ = [
    'parse_csv_text',
    'normalize_row',
    'normalize_rows',
    'ingest',
]
