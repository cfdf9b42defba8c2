"""
Filter Engine - category and date-range views over normalised records.

Every function returns a *new* list holding the same record objects in their
original order; the input sequence is never modified.  Records are immutable
dataclasses, so sharing them between views is safe.

Filter Mechanics
~~~~~~~~~~~~~~~~
- **Category filter**: exact match on ``record.category``.  ``None``, ``""``
  and ``"all"`` (any case) mean "no category filter".
- **Date range filter**: inclusive ``[start, end]`` on ``opened_date``.
  While a date filter is active, records without an opened date are
  excluded because they cannot be placed in the window.

Both filters are applied sequentially (category first), each narrowing the
result further.  Applying the same filter twice gives the same result as
applying it once, and the empty filter returns the input unchanged.
"""

import logging
from datetime import datetime, timedelta

from ..core.config import DATE_RANGE_PRESETS
from ..models.data_models import DateRange, RecordFilter

logger = logging.getLogger(__name__)


def apply_filter(records, record_filter=None):
    """Apply a ``RecordFilter`` and return the matching records.

    Args:
        records: Sequence of ``NormalizedRecord``.
        record_filter: ``RecordFilter`` or ``None`` for no filtering.

    Returns:
        New list of matching records, input order preserved.
    """
    filtered = list(records or ())
    if record_filter is None:
        return filtered

    if record_filter.category_active:
        wanted = record_filter.category_id
        filtered = [r for r in filtered if r.category == wanted]
        logger.debug(f"[Filter] {len(filtered)} record(s) match category {wanted!r}")

    if record_filter.date_active:
        window = record_filter.date_range
        undated = sum(1 for r in filtered if r.opened_date is None)
        filtered = [r for r in filtered if window.contains(r.opened_date)]
        if undated:
            logger.debug(f"[Filter] Excluded {undated} undated record(s) from date filter")
        logger.debug(f"[Filter] {len(filtered)} record(s) inside {window.to_dict()}")

    return filtered


def _latest_opened(records):
    dates = [r.opened_date for r in records if r.opened_date is not None]
    return max(dates) if dates else None


def filter_by_days(records, days, as_of=None):
    """Keep records opened within the last ``days`` days up to ``as_of``.

    ``as_of`` defaults to the newest opened date in ``records`` so the result
    depends only on the input, never on the wall clock.  A non-positive
    ``days`` or a set with no dated records yields ``[]``.
    """
    records = list(records or ())
    try:
        days = int(days)
    except (TypeError, ValueError):
        logger.warning(f"[Filter] Invalid day window {days!r}")
        return []
    if days <= 0:
        return []

    anchor = _as_datetime(as_of) if as_of is not None else _latest_opened(records)
    if anchor is None:
        return []
    window = DateRange(start=anchor - timedelta(days=days), end=anchor)
    return apply_filter(records, RecordFilter(date_range=window))


def _as_datetime(value):
    # Same coercion as a DateRange start bound (dates become midnight)
    if isinstance(value, datetime):
        return value
    return DateRange(start=value).start


def date_range_options(as_of):
    """Preset windows for the date picker, keyed by label.

    Example::

        date_range_options(datetime(2025, 3, 31))['Last 7 days']
        # DateRange(start=2025-03-24 00:00, end=2025-03-31 00:00)
    """
    anchor = _as_datetime(as_of)
    if anchor is None:
        return {}
    return {
        label: DateRange(start=anchor - timedelta(days=days), end=anchor)
        for label, days in DATE_RANGE_PRESETS.items()
    }


def available_categories(records):
    """Distinct non-blank categories in first-seen order."""
    seen = {}
    for record in records or ():
        if record.category and record.category not in seen:
            seen[record.category] = None
    return list(seen)
