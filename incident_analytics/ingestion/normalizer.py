"""
Record Ingestion & Normalisation.

Turns raw export text (or already-parsed row objects) into an ordered list
of ``NormalizedRecord`` instances.  This is the only place in the package
that knows about source-system column names.

Data Flow
---------
1. Raw CSV text  -->  repair known header artefacts (``CSV_REPAIRS``) and
   remove a stray unbalanced quote
2. ``pd.read_csv`` with every cell read as a string; over-long rows are
   trimmed to the header width, never dropped
3. Each row  -->  ``_FieldResolver`` maps canonicalised headers to logical
   fields using the ordered alias table in ``core.config.COLUMN_ALIASES``
4. Per-field coercion (dates, enums, numbers, SLA flag) with defaults
5. Row invariants enforced (resolved date only on resolved/closed records,
   non-negative resolution hours)

Handles:
- Heterogeneous column naming across ServiceNow / Jira / Rally exports
- Quoted fields, embedded commas and line breaks
- Unparsable dates (become ``None``), non-numeric numbers (become 0)
- Rows without any identifier (skipped and counted)

Nothing in this module raises on bad data.  A parse failure of the whole
text is logged and treated as "no rows", which the pipeline turns into
fallback sample data.
"""

import io
import csv
import logging
from collections.abc import Mapping

import pandas as pd

from ..core.config import (
    COLUMN_ALIASES,
    CSV_REPAIRS,
    STATUS_ALIASES,
    STATUS_KEYWORDS,
    SEVERITY_ALIASES,
    SEVERITY_BY_ORDINAL,
    PRIORITY_WORDS,
    PRIORITY_LEVELS,
    SLA_TRUE_VALUES,
    SLA_FALSE_VALUES,
    DEFAULT_TEXT,
    DEFAULT_SOURCE,
    DEFAULT_STATUS,
    DEFAULT_SEVERITY,
    DEFAULT_PRIORITY,
    DEFAULT_REOPEN_COUNT,
)
from ..core.utils import (
    is_blank,
    clean_text,
    canonical_key,
    coerce_float,
    coerce_int,
    parse_timestamp,
)
from ..models.data_models import NormalizedRecord, Status, Severity, Dataset, Provenance

logger = logging.getLogger(__name__)

_SECONDS_PER_HOUR = 3600.0


# ============================================================================
# CSV PARSING
# ============================================================================

def _header_width(text):
    for row in csv.reader(io.StringIO(text)):
        if any(cell.strip() for cell in row):
            return len(row)
    return 0


def _drop_unbalanced_quote(text):
    """Remove the quote that leaves a field open until end of input.

    Physical lines with an odd number of quotes pair up as the start and end
    of a quoted multi-line field.  A line left unpaired at the end holds a
    stray quote; its last quote is removed so the row and every row after it
    survive parsing.
    """
    lines = text.split('\n')
    open_line = None
    for i, line in enumerate(lines):
        if line.count('"') % 2:
            open_line = i if open_line is None else None
    if open_line is None:
        return text

    line = lines[open_line]
    cut = line.rfind('"')
    lines[open_line] = line[:cut] + line[cut + 1:]
    logger.warning(f"[Ingestion] Removed unbalanced quote on line {open_line + 1}")
    return '\n'.join(lines)


def parse_csv_text(text):
    """Parse header + comma-delimited rows into a list of row dicts.

    Every cell is read as a string (``dtype=str``) so that coercion happens
    in one place, ``_normalize_*`` below, instead of being split between
    pandas type inference and this module.  Empty cells become ``""``.

    Malformed lines are kept: an unbalanced quote is removed before parsing,
    cells beyond the header width are discarded and short rows are padded
    with ``""``.

    Args:
        text: Export text.  ``bytes`` are decoded as UTF-8 (BOM tolerated,
            undecodable bytes replaced).

    Returns:
        List of ``{header: value}`` dicts in file order.  Empty or
        unparsable input returns ``[]``.
    """
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode('utf-8-sig', errors='replace')
    if not isinstance(text, str) or not text.strip():
        logger.warning("[Ingestion] Empty or non-text export received")
        return []

    text = text.lstrip('\ufeff')
    for broken, fixed in CSV_REPAIRS:
        text = text.replace(broken, fixed)
    text = _drop_unbalanced_quote(text)

    width = _header_width(text)

    def keep_bad_line(cells):
        logger.warning(
            f"[Ingestion] Row {cells[0]!r} has {len(cells)} fields; "
            f"keeping the first {width}"
        )
        return cells[:width]

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
            index_col=False,
            on_bad_lines=keep_bad_line,
            engine='python',
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, csv.Error, ValueError) as e:
        logger.warning(f"[Ingestion] Could not parse export text: {e}")
        return []

    df.columns = [clean_text(c) for c in df.columns]
    df = df.fillna('')
    rows = df.to_dict(orient='records')
    logger.info(f"[Ingestion] Parsed {len(rows):,} rows with {len(df.columns)} columns")
    return rows


# ============================================================================
# FIELD RESOLUTION
# ============================================================================

class _FieldResolver:
    """Resolve logical fields from one row via the alias table.

    The row's keys are canonicalised once; each lookup then walks the
    field's aliases in priority order and returns the first non-blank value.
    """

    def __init__(self, row):
        self._values = {}
        for key, value in row.items():
            canon = canonical_key(key)
            # Keep the first occurrence when two headers canonicalise alike
            if canon and canon not in self._values:
                self._values[canon] = value

    def get(self, field_name):
        for alias in COLUMN_ALIASES.get(field_name, ()):
            value = self._values.get(canonical_key(alias))
            if not is_blank(value):
                return value
        return None


def _normalize_status(value):
    if is_blank(value):
        return Status(DEFAULT_STATUS)
    key = canonical_key(value)
    label = STATUS_ALIASES.get(key)
    if label is None:
        # Compound workflow states ("Closed - Resolved", "Awaiting Fix")
        label = next((lbl for frag, lbl in STATUS_KEYWORDS if frag in key), DEFAULT_STATUS)
    return Status(label)


def _normalize_severity(value):
    """Map labels, aliases and 1-4 ordinals onto ``Severity``."""
    if is_blank(value):
        return Severity(DEFAULT_SEVERITY)
    label = SEVERITY_ALIASES.get(canonical_key(value))
    if label is None:
        ordinal = coerce_int(value, default=0)
        label = SEVERITY_BY_ORDINAL.get(ordinal, DEFAULT_SEVERITY)
    return Severity(label)


def _normalize_priority(value):
    """Priority 1-4; 0 when missing or not a number."""
    if is_blank(value):
        return DEFAULT_PRIORITY
    word = PRIORITY_WORDS.get(canonical_key(value))
    if word is not None:
        return word
    number = coerce_int(value, default=DEFAULT_PRIORITY)
    if number < PRIORITY_LEVELS[0]:
        return DEFAULT_PRIORITY
    return min(number, PRIORITY_LEVELS[-1])


def _normalize_sla(value):
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return value
    key = canonical_key(value)
    if key in SLA_TRUE_VALUES:
        return True
    if key in SLA_FALSE_VALUES:
        return False
    return None


def _normalize_hours(value):
    # Blank stays unknown; present-but-garbage becomes 0 per the numeric rule
    if is_blank(value):
        return None
    return max(0.0, coerce_float(value, default=0.0))


def _normalize_text(value, default=DEFAULT_TEXT):
    cleaned = clean_text(value)
    return cleaned if cleaned else default


def _normalize_id(value):
    # Spreadsheet readers turn numeric ticket ids into floats (1001.0)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return _normalize_text(value)


# ============================================================================
# ROW NORMALISATION
# ============================================================================

def normalize_row(row):
    """Normalise one loosely-typed row into a ``NormalizedRecord``.

    Args:
        row: Any mapping (dict, ``pd.Series``) keyed by source column names.

    Returns:
        A ``NormalizedRecord``, or ``None`` when no identifier alias carries
        a value (the row cannot be told apart from padding).
    """
    fields = _FieldResolver(row)

    record_id = _normalize_id(fields.get('id'))
    if not record_id:
        return None

    title = _normalize_text(fields.get('title'))
    description = _normalize_text(fields.get('description'), default=title)
    status = _normalize_status(fields.get('status'))
    opened = parse_timestamp(fields.get('opened_date'))
    resolved = parse_timestamp(fields.get('resolved_date'))
    hours = _normalize_hours(fields.get('resolution_time_hours'))

    if resolved is not None and not status.is_terminal:
        # The workflow state is authoritative; a stale resolved date on an
        # open ticket is export noise.
        logger.debug(f"[Ingestion] {record_id}: dropping resolved date on {status.value} record")
        resolved = None

    if hours is None and resolved is not None and opened is not None:
        hours = max(0.0, (resolved - opened).total_seconds() / _SECONDS_PER_HOUR)

    return NormalizedRecord(
        id=record_id,
        title=title,
        description=description,
        opened_date=opened,
        resolved_date=resolved,
        status=status,
        severity=_normalize_severity(fields.get('severity')),
        priority=_normalize_priority(fields.get('priority')),
        category=_normalize_text(fields.get('category')),
        subcategory=_normalize_text(fields.get('subcategory')),
        source=_normalize_text(fields.get('source'), default=DEFAULT_SOURCE),
        root_cause=_normalize_text(fields.get('root_cause')),
        sla_met=_normalize_sla(fields.get('sla_met')),
        reopen_count=max(0, coerce_int(fields.get('reopen_count'), default=DEFAULT_REOPEN_COUNT)),
        resolution_time_hours=hours,
        assigned_group=_normalize_text(fields.get('assigned_group')),
        lob=_normalize_text(fields.get('lob')),
    )


def normalize_rows(rows):
    """Normalise an iterable of rows, returning ``(records, skipped)``.

    Non-mapping items (``None``, strings, numbers) count as skipped rows.
    """
    records = []
    skipped = 0
    for row in rows or ():
        if isinstance(row, pd.Series):
            row = row.to_dict()
        if not isinstance(row, Mapping):
            skipped += 1
            continue
        record = normalize_row(row)
        if record is None:
            skipped += 1
            continue
        records.append(record)

    if skipped:
        logger.warning(f"[Ingestion] Skipped {skipped} row(s) without an identifier")
    undated = sum(1 for r in records if r.opened_date is None)
    if undated:
        logger.info(
            f"[Ingestion] {undated} record(s) have no valid opened date; "
            "they are excluded from date-bucketed views only"
        )
    return records, skipped


def ingest(source):
    """Ingest an export into a ``Dataset``.

    Args:
        source: Raw CSV text or bytes, a ``pandas.DataFrame``, an iterable of
            row mappings, or ``None`` (upstream fetch failure).

    Returns:
        ``Dataset`` with ``Provenance.REAL``; it may be empty.  Substituting
        sample data for an empty dataset is the caller's decision (see
        ``pipeline.load_dataset``).
    """
    if source is None:
        rows = []
    elif isinstance(source, (str, bytes, bytearray)):
        rows = parse_csv_text(source)
    elif isinstance(source, pd.DataFrame):
        rows = source.to_dict(orient='records')
    else:
        try:
            rows = list(source)
        except TypeError:
            logger.warning(f"[Ingestion] Unsupported input type {type(source).__name__}")
            rows = []

    records, skipped = normalize_rows(rows)
    logger.info(f"[Ingestion] Normalised {len(records):,} record(s)")
    return Dataset(records=tuple(records), provenance=Provenance.REAL, skipped_rows=skipped)
