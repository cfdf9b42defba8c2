"""
Data models for incident analytics.

This module defines the **schema layer** of the package.  It provides typed,
immutable dataclasses for every entity that crosses a module boundary:

Role in the pipeline
--------------------
1. ``NormalizedRecord`` -- one incident/defect with canonical typed fields,
   produced once by the ingestion normaliser and never mutated afterwards.

2. ``RecordFilter`` / ``DateRange`` -- the query parameters of the filter
   engine.

3. ``AggregationResult`` -- the chart-ready ``{labels, values}`` pair
   returned by categorical and time-series aggregations.  The two sequences
   always have the same length.  ``SeriesBreakdown`` extends it to several
   named series over one label axis.

4. ``SLAComplianceResult``, ``SummaryStatistics``, ``ReopenStatistics``,
   ``SourceStatistics`` -- plain summary objects for the top-line views.

5. ``Dataset`` -- the output of ingestion: the records plus their
   provenance (real export vs. placeholder sample data).

Every model offers ``to_dict()`` so the presentation layer can serialise it
straight to JSON.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..core.config import (
    STATUS_OPEN, STATUS_IN_PROGRESS, STATUS_RESOLVED, STATUS_CLOSED,
    SEVERITY_CRITICAL, SEVERITY_HIGH, SEVERITY_MEDIUM, SEVERITY_LOW,
    DEFAULT_TEXT, DEFAULT_SOURCE, DEFAULT_PRIORITY, DEFAULT_REOPEN_COUNT,
    SLA_MET_LABEL, SLA_BREACHED_LABEL,
)
from ..core.utils import parse_timestamp


# ============================================================================
# ENUMERATIONS
# ============================================================================

class Status(Enum):
    """Incident lifecycle status."""
    OPEN = STATUS_OPEN
    IN_PROGRESS = STATUS_IN_PROGRESS
    RESOLVED = STATUS_RESOLVED
    CLOSED = STATUS_CLOSED

    @property
    def is_terminal(self) -> bool:
        """Resolved and Closed both count as done work."""
        return self in (Status.RESOLVED, Status.CLOSED)


class Severity(Enum):
    """Four-level canonical severity."""
    CRITICAL = SEVERITY_CRITICAL
    HIGH = SEVERITY_HIGH
    MEDIUM = SEVERITY_MEDIUM
    LOW = SEVERITY_LOW


class Provenance(Enum):
    """Where a dataset came from."""
    REAL = "real"
    SAMPLE = "sample"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ============================================================================
# INCIDENT RECORD
# ============================================================================

@dataclass(frozen=True)
class NormalizedRecord:
    """A single incident/defect entry with canonical typed fields.

    The record is independent of the naming used by the source system; the
    ingestion layer has already reconciled column aliases and coerced every
    value.

    Invariants (enforced by the ingestion normaliser and the sample-data
    generator):

    - ``resolved_date`` is set only when ``status`` is Resolved or Closed.
    - ``resolution_time_hours`` is ``None`` or >= 0.
    - ``priority`` is 1-4, or 0 when the export did not provide one.
    - ``reopen_count`` is >= 0.
    """
    id: str
    title: str = DEFAULT_TEXT
    description: str = DEFAULT_TEXT
    opened_date: Optional[datetime] = None
    resolved_date: Optional[datetime] = None
    status: Status = Status.OPEN
    severity: Severity = Severity.MEDIUM
    priority: int = DEFAULT_PRIORITY
    category: str = DEFAULT_TEXT
    subcategory: str = DEFAULT_TEXT
    source: str = DEFAULT_SOURCE
    root_cause: str = DEFAULT_TEXT
    sla_met: Optional[bool] = None
    reopen_count: int = DEFAULT_REOPEN_COUNT
    resolution_time_hours: Optional[float] = None
    assigned_group: str = DEFAULT_TEXT       # Team that owns the incident
    lob: str = DEFAULT_TEXT                  # Line of Business

    @property
    def is_resolved(self) -> bool:
        return self.status.is_terminal

    @property
    def is_critical(self) -> bool:
        """Canonical critical rule: severity Critical OR priority 1."""
        return self.severity is Severity.CRITICAL or self.priority == 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a flat, JSON-friendly dictionary."""
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'opened_date': _iso(self.opened_date),
            'resolved_date': _iso(self.resolved_date),
            'status': self.status.value,
            'severity': self.severity.value,
            'priority': self.priority,
            'category': self.category,
            'subcategory': self.subcategory,
            'source': self.source,
            'root_cause': self.root_cause,
            'sla_met': self.sla_met,
            'reopen_count': self.reopen_count,
            'resolution_time_hours': self.resolution_time_hours,
            'assigned_group': self.assigned_group,
            'lob': self.lob,
        }


# ============================================================================
# FILTER PARAMETERS
# ============================================================================

def _coerce_bound(value, end_of_day=False):
    # A bare date as the upper bound means "through the end of that day".
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.max if end_of_day else time.min)
    if isinstance(value, str):
        parsed = parse_timestamp(value)
        stripped = value.strip()
        if parsed is not None and end_of_day and len(stripped) == 10:
            # "YYYY-MM-DD" strings behave like date objects
            return datetime.combine(parsed.date(), time.max)
        return parsed
    return parse_timestamp(value)


@dataclass(frozen=True)
class DateRange:
    """Inclusive ``[start, end]`` window on ``opened_date``.

    Either bound may be ``None`` for an open-ended range.  Bounds accept
    ``datetime``, ``date`` or parseable strings; a ``date`` (or
    ``"YYYY-MM-DD"``) upper bound covers that whole day.  Unparsable bounds
    become ``None``.
    """
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, 'start', _coerce_bound(self.start))
        object.__setattr__(self, 'end', _coerce_bound(self.end, end_of_day=True))

    @property
    def is_active(self) -> bool:
        return self.start is not None or self.end is not None

    def contains(self, moment: Optional[datetime]) -> bool:
        """True when ``moment`` falls inside the window; never for ``None``."""
        if moment is None:
            return False
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {'start': _iso(self.start), 'end': _iso(self.end)}


@dataclass(frozen=True)
class RecordFilter:
    """Category and date-range filter.

    ``category_id`` of ``None`` or ``"all"`` disables the category filter;
    ``date_range`` of ``None`` (or a range with no bounds) disables the date
    filter.
    """
    category_id: Optional[str] = None
    date_range: Optional[DateRange] = None

    def __post_init__(self):
        # Pickers may hand over numeric ids
        if self.category_id is not None and not isinstance(self.category_id, str):
            object.__setattr__(self, 'category_id', str(self.category_id))

    @property
    def category_active(self) -> bool:
        if self.category_id is None:
            return False
        return self.category_id.strip().lower() not in ('', 'all')

    @property
    def date_active(self) -> bool:
        return self.date_range is not None and self.date_range.is_active


# ============================================================================
# AGGREGATION OUTPUTS
# ============================================================================

@dataclass(frozen=True)
class AggregationResult:
    """Chart-ready ``{labels, values}`` pair.

    ``labels`` and ``values`` are parallel tuples; constructing a result with
    different lengths is a programming error and raises ``ValueError``.
    """
    labels: Tuple[str, ...] = ()
    values: Tuple[float, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'labels', tuple(str(label) for label in self.labels))
        object.__setattr__(self, 'values', tuple(self.values))
        if len(self.labels) != len(self.values):
            raise ValueError(
                f"labels ({len(self.labels)}) and values ({len(self.values)}) "
                "must have the same length"
            )

    @classmethod
    def empty(cls) -> 'AggregationResult':
        return cls((), ())

    @classmethod
    def from_pairs(cls, pairs) -> 'AggregationResult':
        pairs = list(pairs)
        return cls(tuple(p[0] for p in pairs), tuple(p[1] for p in pairs))

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def total(self) -> float:
        return sum(self.values)

    def as_pairs(self) -> List[Tuple[str, float]]:
        return list(zip(self.labels, self.values))

    def to_dict(self) -> Dict[str, list]:
        return {'labels': list(self.labels), 'values': list(self.values)}


@dataclass(frozen=True)
class SLAComplianceResult:
    """SLA met/breached counts.

    ``ratio`` is ``met / (met + breached)`` and 0.0 when no record carries an
    SLA flag.  ``unknown`` counts records whose flag is missing.
    """
    met: int = 0
    breached: int = 0
    ratio: float = 0.0
    unknown: int = 0

    def as_aggregation(self) -> AggregationResult:
        return AggregationResult((SLA_MET_LABEL, SLA_BREACHED_LABEL), (self.met, self.breached))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'met': self.met,
            'breached': self.breached,
            'ratio': self.ratio,
            'unknown': self.unknown,
        }


@dataclass(frozen=True)
class SummaryStatistics:
    """Top-line counts shared by the trend, root-cause and SLA views."""
    total: int = 0
    critical_count: int = 0
    resolved_count: int = 0
    average_resolution_time_hours: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'critical_count': self.critical_count,
            'resolved_count': self.resolved_count,
            'average_resolution_time_hours': self.average_resolution_time_hours,
        }


@dataclass(frozen=True)
class ReopenStatistics:
    """How many incidents were reopened at least once."""
    reopened: int = 0
    total: int = 0
    ratio: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {'reopened': self.reopened, 'total': self.total, 'ratio': self.ratio}


@dataclass(frozen=True)
class SourceStatistics:
    """Per-source breakdown of incident volume and state.

    ``by_severity`` and ``by_priority`` are zero-filled in their fixed
    order; ``by_category`` and ``by_lob`` are ranked, with blank values
    under ``"Unknown"``.
    """
    name: str
    total: int = 0
    critical: int = 0
    resolved: int = 0
    pending: int = 0
    open: int = 0
    in_progress: int = 0
    by_severity: Dict[str, int] = field(default_factory=dict)
    by_priority: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[str, int] = field(default_factory=dict)
    by_lob: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'total': self.total,
            'critical': self.critical,
            'resolved': self.resolved,
            'pending': self.pending,
            'open': self.open,
            'in_progress': self.in_progress,
            'by_severity': dict(self.by_severity),
            'by_priority': dict(self.by_priority),
            'by_category': dict(self.by_category),
            'by_lob': dict(self.by_lob),
        }


@dataclass(frozen=True)
class SeriesBreakdown:
    """One label axis shared by several named value series.

    Feeds stacked and multi-line charts (severity per month, severity per
    category).  Every series has exactly one value per label; a mismatch
    raises ``ValueError``.
    """
    labels: Tuple[str, ...] = ()
    series: Dict[str, Tuple[int, ...]] = field(default_factory=dict)

    def __post_init__(self):
        labels = tuple(str(label) for label in self.labels)
        series = {str(name): tuple(values) for name, values in self.series.items()}
        for name, values in series.items():
            if len(values) != len(labels):
                raise ValueError(
                    f"series {name!r} has {len(values)} values for {len(labels)} labels"
                )
        object.__setattr__(self, 'labels', labels)
        object.__setattr__(self, 'series', series)

    @classmethod
    def empty(cls, names=()) -> 'SeriesBreakdown':
        return cls((), {name: () for name in names})

    def __len__(self) -> int:
        return len(self.labels)

    def totals(self) -> Tuple[int, ...]:
        """Sum across series for each label."""
        return tuple(sum(column) for column in zip(*self.series.values())) if self.series else ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'labels': list(self.labels),
            'series': {name: list(values) for name, values in self.series.items()},
        }


# ============================================================================
# DATASET CONTAINER
# ============================================================================

@dataclass(frozen=True)
class Dataset:
    """Normalised records plus their provenance.

    Attributes:
        records: The ingested (or placeholder) records, in input order.
        provenance: ``Provenance.REAL`` for export data,
            ``Provenance.SAMPLE`` when the fallback provider substituted.
        skipped_rows: Rows dropped because they had no identifier.
    """
    records: Tuple[NormalizedRecord, ...] = field(default_factory=tuple)
    provenance: Provenance = Provenance.REAL
    skipped_rows: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'records', tuple(self.records))

    def __len__(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return len(self.records) == 0

    @property
    def is_sample(self) -> bool:
        return self.provenance is Provenance.SAMPLE
