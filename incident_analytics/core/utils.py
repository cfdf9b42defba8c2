"""
Utility functions for text cleaning and tolerant value coercion.

Every helper here is total: malformed input turns into a default value
instead of an exception, which is what lets the ingestion layer promise it
never fails on a bad export.
"""

import re
import math
import logging
from datetime import date, datetime

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r'[^0-9a-z]+')
_FIRST_INT = re.compile(r'-?\d+')


def is_blank(value):
    """True for None, NaN/NaT, and strings that are empty after stripping."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # pd.isna on list-likes returns an array; those are not blank scalars
        return False


def clean_text(text):
    """Clean and normalize text for processing"""
    if is_blank(text):
        return ""
    text = str(text).replace("_x000D_", " ").replace("\xa0", " ").replace("\t", " ")
    return re.sub(r'\s+', ' ', text).strip()


def canonical_key(name):
    """Canonicalise a column or field name for alias matching.

    ``"Opened Date"``, ``"opened_date"`` and ``"openedDate"`` all become
    ``"openeddate"``.
    """
    if name is None:
        return ''
    return _NON_ALNUM.sub('', str(name).lower())


def coerce_float(value, default=0.0):
    """Convert ``value`` to a finite float, returning ``default`` on failure."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float, np.integer, np.floating)):
        result = float(value)
    else:
        text = clean_text(value).replace(',', '')
        if not text:
            return default
        try:
            result = float(text)
        except ValueError:
            return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def coerce_int(value, default=0):
    """Convert ``value`` to an int.

    Plain numbers are truncated; text falls back to the first integer it
    contains (``"P2"`` -> 2, ``"3 - Moderate"`` -> 3).
    """
    number = coerce_float(value, default=None)
    if number is not None:
        return int(number)
    match = _FIRST_INT.search(clean_text(value))
    if match:
        return int(match.group())
    return default


def parse_timestamp(value):
    """Parse a date/time cell into a naive UTC ``datetime``.

    Accepts ``datetime``/``date``/``pd.Timestamp`` objects and strings in any
    format pandas understands.  Timezone-aware inputs are converted to UTC
    and the tzinfo dropped so that all records compare on one clock.

    Returns:
        ``datetime`` or ``None`` when the value is blank or unparsable.
    """
    if is_blank(value):
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    elif not isinstance(value, (str, datetime, np.datetime64)):
        # Bare numbers would be read as epoch nanoseconds, which is never
        # what an export means by a date cell.
        return None
    try:
        stamp = pd.to_datetime(value, errors='coerce', utc=True)
    except (TypeError, ValueError, OverflowError) as e:
        logger.debug(f"[Utils] Unparsable timestamp {value!r}: {e}")
        return None
    if stamp is None or pd.isna(stamp):
        return None
    return stamp.tz_convert(None).to_pydatetime()
