"""
Aggregation Library - chart-ready views over normalised incident records.

Every public function here is pure and total:

- it never mutates its input and never raises on data problems;
- empty input, an unknown field name or an unknown granularity produce a
  well-typed empty result (with a logged warning for bad parameters);
- categorical and time-series outputs are ``AggregationResult`` objects
  whose ``labels`` and ``values`` always have the same length.

Field selectors
---------------
Functions that group by a field accept either an attribute name of
``NormalizedRecord`` (``"root_cause"`` and ``"rootCause"`` are the same
field) or a callable ``record -> value``.  ``None`` and an unknown priority
(0) are null values and are never counted; blank text is counted under
``"Unknown"``.

Labels
------
Enums are labelled by their display value, priorities as ``"P1"``..``"P4"``
and the SLA flag as ``"Met"`` / ``"Breached"``.

Multi-series views (``severity_trend``, ``severity_by_field``) return a
``SeriesBreakdown``: one label axis shared by a zero-filled series per
severity.

Ordering
--------
Ranked views sort by value descending.  Python's sort is stable and
``Counter`` preserves insertion order, so ties keep first-seen order.
"""

import math
import logging
from collections import Counter, OrderedDict
from dataclasses import fields as dataclass_fields
from datetime import datetime, timedelta
from enum import Enum

import pandas as pd

from ..core.config import (
    DEFAULT_TOP_N,
    DEFAULT_GRANULARITY,
    PERIOD_FREQUENCIES,
    STATUS_ORDER,
    SEVERITY_ORDER,
    PRIORITY_LEVELS,
    SLA_MET_LABEL,
    SLA_BREACHED_LABEL,
    UNKNOWN_LABEL,
    MTBF_WINDOW_DAYS,
    TEAM_EFFICIENCY_MIN_INCIDENTS,
    TEAM_EFFICIENCY_HOURS_CAP,
    RECENT_RECORDS_LIMIT,
)
from ..core.utils import canonical_key
from ..models.data_models import (
    NormalizedRecord,
    AggregationResult,
    SLAComplianceResult,
    ReopenStatistics,
    SourceStatistics,
    SeriesBreakdown,
    Status,
)

logger = logging.getLogger(__name__)

_HOURS_PER_DAY = 24.0

# canonical name -> attribute ("rootcause" -> "root_cause")
_RECORD_FIELDS = {canonical_key(f.name): f.name for f in dataclass_fields(NormalizedRecord)}


# ============================================================================
# FIELD SELECTION & LABELLING
# ============================================================================

def _resolve_selector(field):
    """Return ``(getter, attribute_name)`` for a selector, or ``(None, None)``."""
    if callable(field):
        return field, None
    if not isinstance(field, str):
        return None, None
    name = _RECORD_FIELDS.get(canonical_key(field))
    if name is None:
        return None, None
    return (lambda record: getattr(record, name, None)), name


def _label(value, attribute=None):
    """Display label for a field value, or ``None`` for a null value."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return SLA_MET_LABEL if value else SLA_BREACHED_LABEL
    if attribute == 'priority':
        if value not in PRIORITY_LEVELS:
            return None
        return f"P{value}"
    if isinstance(value, datetime):
        return value.date().isoformat()
    text = str(value).strip()
    return text or UNKNOWN_LABEL


def _safe_get(getter, record):
    try:
        return getter(record)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.debug(f"[Aggregation] Field selector failed on a record: {e}")
        return None


def _valid_top_n(top_n):
    if top_n is None:
        return True
    return isinstance(top_n, int) and not isinstance(top_n, bool) and top_n >= 1


# ============================================================================
# CATEGORICAL DISTRIBUTIONS
# ============================================================================

def distribution_by_field(records, field, top_n=None):
    """Count records per distinct non-null value of ``field``.

    Args:
        records: Sequence of ``NormalizedRecord``.
        field: Attribute name (snake_case or camelCase) or callable.
        top_n: Keep only the ``top_n`` most frequent values (None = all).

    Returns:
        ``AggregationResult`` sorted by count descending; ties keep the
        order in which the values were first seen.
    """
    getter, attribute = _resolve_selector(field)
    if getter is None:
        logger.warning(f"[Aggregation] Unknown field {field!r}; returning empty distribution")
        return AggregationResult.empty()
    if not _valid_top_n(top_n):
        logger.warning(f"[Aggregation] Invalid top_n {top_n!r}; returning empty distribution")
        return AggregationResult.empty()

    counts = Counter()
    for record in records or ():
        label = _label(_safe_get(getter, record), attribute)
        if label is not None:
            counts[label] += 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    if top_n is not None:
        ranked = ranked[:top_n]
    return AggregationResult.from_pairs(ranked)


def _fixed_order_distribution(records, attribute, order):
    counts = Counter(_label(getattr(r, attribute), attribute) for r in records or ())
    return AggregationResult(tuple(order), tuple(counts.get(label, 0) for label in order))


def status_distribution(records):
    """Counts per status in workflow order, zero-filled."""
    return _fixed_order_distribution(records, 'status', STATUS_ORDER)


def severity_distribution(records):
    """Counts per severity, most severe first, zero-filled."""
    return _fixed_order_distribution(records, 'severity', SEVERITY_ORDER)


def priority_distribution(records):
    """Counts for P1..P4, zero-filled; unknown priority is not counted."""
    return _fixed_order_distribution(
        records, 'priority', tuple(f"P{level}" for level in PRIORITY_LEVELS)
    )


def root_cause_ranking(records, top_n=DEFAULT_TOP_N):
    """The ``top_n`` most frequent root causes."""
    return distribution_by_field(records, 'root_cause', top_n=top_n)


# ============================================================================
# TIME SERIES
# ============================================================================

def _period_label(period, granularity):
    if granularity == 'week':
        year, week, _ = period.start_time.isocalendar()
        return f"{year}-W{week:02d}"
    if granularity == 'month':
        return period.strftime('%b %Y')
    if granularity == 'quarter':
        return f"{period.year}-Q{period.quarter}"
    if granularity == 'year':
        return str(period.year)
    return period.strftime('%Y-%m-%d')


def _frequency(granularity):
    frequency = PERIOD_FREQUENCIES.get(granularity) if isinstance(granularity, str) else None
    if frequency is None:
        logger.warning(f"[Aggregation] Unknown granularity {granularity!r}; returning empty series")
    return frequency


def _dated_records(records, date_field):
    """``(record, date)`` pairs for records whose date is set, or ``None``."""
    getter, _ = _resolve_selector(date_field)
    if getter is None:
        logger.warning(f"[Aggregation] Unknown date field {date_field!r}; returning empty series")
        return None
    pairs = ((r, _safe_get(getter, r)) for r in records or ())
    return [(r, d) for r, d in pairs if isinstance(d, datetime)]


def time_series_by_period(records, granularity=DEFAULT_GRANULARITY, date_field='opened_date'):
    """Record counts per calendar period.

    Every period between the earliest and latest dated record is present,
    zero-filled, in chronological order.  Records whose date is ``None`` are
    left out.

    Args:
        records: Sequence of ``NormalizedRecord``.
        granularity: 'day', 'week' (ISO, Monday start), 'month', 'quarter'
            or 'year'.
        date_field: Date attribute name or callable.

    Returns:
        ``AggregationResult`` with labels such as ``"Jan 2025"`` or
        ``"2025-W03"``; empty for unknown granularity or no dated records.
    """
    frequency = _frequency(granularity)
    if frequency is None:
        return AggregationResult.empty()
    dated = _dated_records(records, date_field)
    if not dated:
        return AggregationResult.empty()

    dates = [d for _, d in dated]
    counts = pd.Series(1, index=pd.DatetimeIndex(dates).to_period(frequency)).groupby(level=0).sum()
    periods = pd.period_range(start=counts.index.min(), end=counts.index.max(), freq=frequency)
    counts = counts.reindex(periods, fill_value=0)

    labels = [_period_label(p, granularity) for p in counts.index]
    return AggregationResult(labels, [int(v) for v in counts.values])


def severity_trend(records, granularity=DEFAULT_GRANULARITY, date_field='opened_date'):
    """Record counts per period, split by severity.

    Uses the same period axis as ``time_series_by_period``; each severity
    gets a zero-filled series over it, so the series always sum to the
    plain time series.
    """
    empty = SeriesBreakdown.empty(SEVERITY_ORDER)
    frequency = _frequency(granularity)
    if frequency is None:
        return empty
    dated = _dated_records(records, date_field)
    if not dated:
        return empty

    periods = pd.Series(pd.DatetimeIndex([d for _, d in dated]).to_period(frequency), name='period')
    severities = pd.Series([r.severity.value for r, _ in dated], name='severity')
    table = pd.crosstab(periods, severities)
    axis = pd.period_range(start=periods.min(), end=periods.max(), freq=frequency)
    table = table.reindex(index=axis, columns=list(SEVERITY_ORDER), fill_value=0)

    labels = [_period_label(p, granularity) for p in table.index]
    return SeriesBreakdown(labels, {
        severity: [int(v) for v in table[severity]] for severity in SEVERITY_ORDER
    })


def severity_by_field(records, field='category', top_n=DEFAULT_TOP_N):
    """Severity counts for the ``top_n`` most frequent values of ``field``.

    Labels are the ranking of ``distribution_by_field``; each severity gets
    a zero-filled series over them.
    """
    top = distribution_by_field(records, field, top_n=top_n)
    if not len(top):
        return SeriesBreakdown.empty(SEVERITY_ORDER)

    getter, attribute = _resolve_selector(field)
    wanted = set(top.labels)
    keys, severities = [], []
    for record in records or ():
        label = _label(_safe_get(getter, record), attribute)
        if label in wanted:
            keys.append(label)
            severities.append(record.severity.value)

    table = pd.crosstab(pd.Series(keys, name='group'), pd.Series(severities, name='severity'))
    table = table.reindex(index=list(top.labels), columns=list(SEVERITY_ORDER), fill_value=0)
    return SeriesBreakdown(top.labels, {
        severity: [int(v) for v in table[severity]] for severity in SEVERITY_ORDER
    })


# ============================================================================
# RESOLUTION TIME & SLA
# ============================================================================

def _group_hours(records, getter, attribute):
    groups = OrderedDict()
    for record in records or ():
        hours = record.resolution_time_hours
        if hours is None or hours <= 0:
            continue
        label = _label(_safe_get(getter, record), attribute)
        if label is None:
            continue
        groups.setdefault(label, []).append(record)
    return groups


def resolution_time_stats(records, group_field='category'):
    """Average resolution hours per group.

    Only records with ``resolution_time_hours > 0`` and a non-null group are
    used; groups without such records are omitted.  Ordered by average
    descending, ties first-seen.
    """
    getter, attribute = _resolve_selector(group_field)
    if getter is None:
        logger.warning(f"[Aggregation] Unknown group field {group_field!r}")
        return AggregationResult.empty()

    averages = [
        (label, sum(r.resolution_time_hours for r in group) / len(group))
        for label, group in _group_hours(records, getter, attribute).items()
    ]
    averages.sort(key=lambda item: item[1], reverse=True)
    return AggregationResult.from_pairs(averages)


def sla_compliance_ratio(records):
    """Met / breached counts and the compliance ratio (0.0 when undefined)."""
    met = breached = unknown = 0
    for record in records or ():
        if record.sla_met is True:
            met += 1
        elif record.sla_met is False:
            breached += 1
        else:
            unknown += 1
    denominator = met + breached
    ratio = met / denominator if denominator else 0.0
    return SLAComplianceResult(met=met, breached=breached, ratio=ratio, unknown=unknown)


def reopen_statistics(records):
    records = list(records or ())
    reopened = sum(1 for r in records if r.reopen_count > 0)
    ratio = reopened / len(records) if records else 0.0
    return ReopenStatistics(reopened=reopened, total=len(records), ratio=ratio)


def mean_time_between_incidents(records, window_days=MTBF_WINDOW_DAYS, as_of=None):
    """Mean hours between incidents.

    Uses the last ``window_days`` before ``as_of`` when that window holds any
    incidents (``window_days * 24 / count``); otherwise spreads the whole
    history span over ``n - 1`` gaps.  ``as_of`` defaults to the latest
    opened date.

    Returns:
        Hours rounded to one decimal, or ``None`` with fewer than two dated
        records.
    """
    dates = sorted(r.opened_date for r in records or () if r.opened_date is not None)
    if len(dates) < 2:
        return None
    if not isinstance(window_days, (int, float)) or isinstance(window_days, bool) or window_days <= 0:
        logger.warning(f"[Aggregation] Invalid MTBF window {window_days!r}")
        return None

    anchor = as_of if isinstance(as_of, datetime) else dates[-1]
    window_start = anchor - timedelta(days=window_days)
    in_window = sum(1 for d in dates if window_start <= d <= anchor)
    if in_window:
        return round(window_days * _HOURS_PER_DAY / in_window, 1)

    span_days = max(1, math.ceil((dates[-1] - dates[0]).total_seconds() / 86400.0))
    return round(span_days * _HOURS_PER_DAY / (len(dates) - 1), 1)


def team_efficiency(records, top_n=DEFAULT_TOP_N, min_incidents=TEAM_EFFICIENCY_MIN_INCIDENTS):
    """Rank assignment groups by SLA share weighted by resolution speed.

    score = round(sla_share * (10 / min(avg_hours, 10)) * 100), computed over
    each group's records with resolution hours > 0.  Groups with fewer than
    ``min_incidents`` such records are not ranked.
    """
    if not _valid_top_n(top_n):
        logger.warning(f"[Aggregation] Invalid top_n {top_n!r} for team efficiency")
        return AggregationResult.empty()

    getter, attribute = _resolve_selector('assigned_group')
    scores = []
    for team, group in _group_hours(records, getter, attribute).items():
        if len(group) < min_incidents:
            continue
        avg_hours = sum(r.resolution_time_hours for r in group) / len(group)
        sla_share = sum(1 for r in group if r.sla_met is True) / len(group)
        speed = TEAM_EFFICIENCY_HOURS_CAP / min(avg_hours, TEAM_EFFICIENCY_HOURS_CAP)
        scores.append((team, int(round(sla_share * speed * 100))))

    scores.sort(key=lambda item: item[1], reverse=True)
    if top_n is not None:
        scores = scores[:top_n]
    return AggregationResult.from_pairs(scores)


# ============================================================================
# SOURCES & RECENT ACTIVITY
# ============================================================================

def source_breakdown(records):
    """Per-source statistics in first-seen order.

    Each entry carries the state counts (open, in progress, resolved,
    pending), the critical count and per-severity, per-priority, per-category
    and per-LOB counts for that source.
    """
    groups = OrderedDict()
    for record in records or ():
        groups.setdefault(record.source, []).append(record)

    breakdown = []
    for name, group in groups.items():
        resolved = sum(1 for r in group if r.is_resolved)
        breakdown.append(SourceStatistics(
            name=name,
            total=len(group),
            critical=sum(1 for r in group if r.is_critical),
            resolved=resolved,
            pending=len(group) - resolved,
            open=sum(1 for r in group if r.status is Status.OPEN),
            in_progress=sum(1 for r in group if r.status is Status.IN_PROGRESS),
            by_severity=dict(severity_distribution(group).as_pairs()),
            by_priority=dict(priority_distribution(group).as_pairs()),
            by_category=dict(distribution_by_field(group, 'category').as_pairs()),
            by_lob=dict(distribution_by_field(group, 'lob').as_pairs()),
        ))
    return breakdown


def recent_records(records, limit=RECENT_RECORDS_LIMIT):
    """Newest records first; undated records sort last."""
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
        logger.warning(f"[Aggregation] Invalid limit {limit!r} for recent records")
        return []
    records = list(records or ())
    dated = [r for r in records if r.opened_date is not None]
    undated = [r for r in records if r.opened_date is None]
    dated.sort(key=lambda r: r.opened_date, reverse=True)
    return (dated + undated)[:limit]
