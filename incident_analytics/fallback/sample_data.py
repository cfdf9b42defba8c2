"""
Fallback / Sample-Data Provider.

Generates the placeholder incident set shown when no real export could be
ingested.  This is the only place in the package that produces sample
values; aggregation functions never invent data of their own.

The output is deterministic: a seeded ``numpy.random.default_rng`` and a
fixed anchor date are used instead of the wall clock, so two calls with the
same arguments return equal records.

Distribution (see ``core.config.SAMPLE_*``):
- six categories with five subcategories each
- twelve root causes, skewed towards the first entries
- status ~20% Open / 20% In Progress / 50% Resolved / 10% Closed
- priority P1 10% / P2 30% / P3 40% / P4 20%
- severity Critical 20% / High 40% / Medium 40%
- SLA met ~70% of resolved records; reopen counts 0/1/2
- the first five records fall in January 2025, the rest in the six months
  before the anchor date
"""

import logging
from datetime import datetime, timedelta

import numpy as np
import pandas as pd

from ..core.config import (
    SAMPLE_RECORD_COUNT,
    SAMPLE_SEED,
    SAMPLE_JANUARY_RECORDS,
    SAMPLE_ANCHOR_DATE,
    SAMPLE_HISTORY_MONTHS,
    SAMPLE_CATEGORIES,
    SAMPLE_ROOT_CAUSES,
    SAMPLE_SOURCES,
    SAMPLE_ASSIGNED_GROUPS,
    SAMPLE_LOBS,
    SAMPLE_STATUS_WEIGHTS,
    SAMPLE_PRIORITY_WEIGHTS,
    SAMPLE_SEVERITY_WEIGHTS,
    SAMPLE_MAX_RESOLUTION_HOURS,
    SAMPLE_SLA_MET_RATE,
    SAMPLE_ROOT_CAUSE_SKEW,
)
from ..core.utils import parse_timestamp
from ..models.data_models import NormalizedRecord, Status, Severity, Dataset, Provenance

logger = logging.getLogger(__name__)

_JANUARY_START = datetime(2025, 1, 1)
_JANUARY_DAYS = 31
_MIN_RESOLUTION_HOURS = 0.5
_REOPEN_NONE_RATE = 0.8
_REOPEN_ONCE_RATE = 0.8


def _pick_weighted(draw, weights):
    """Map a uniform draw onto cumulative ``(bound, label)`` thresholds."""
    for bound, label in weights:
        if draw < bound:
            return label
    return weights[-1][1]


def _pick(rng, options):
    return options[int(rng.integers(len(options)))]


def _resolve_anchor(anchor):
    if anchor is None:
        anchor = SAMPLE_ANCHOR_DATE
    resolved = parse_timestamp(anchor)
    if resolved is None:
        logger.warning(f"[Fallback] Invalid anchor {anchor!r}; using {SAMPLE_ANCHOR_DATE}")
        resolved = parse_timestamp(SAMPLE_ANCHOR_DATE)
    return resolved


def _opened_date(rng, index, window_start, window_seconds):
    if index < SAMPLE_JANUARY_RECORDS:
        # Pinned so January 2025 always has data; roughly one per week
        day = (index * 7 + int(rng.integers(7))) % _JANUARY_DAYS
        return _JANUARY_START + timedelta(days=day, hours=int(rng.integers(8, 18)))
    offset = int(rng.random() * window_seconds)
    return window_start + timedelta(seconds=offset - offset % 60)


def _reopen_count(rng):
    if rng.random() < _REOPEN_NONE_RATE:
        return 0
    return 1 if rng.random() < _REOPEN_ONCE_RATE else 2


def _make_record(rng, index, window_start, window_seconds):
    categories = list(SAMPLE_CATEGORIES)
    category = _pick(rng, categories)
    subcategory = _pick(rng, SAMPLE_CATEGORIES[category])
    status = Status(_pick_weighted(rng.random(), SAMPLE_STATUS_WEIGHTS))
    priority = _pick_weighted(rng.random(), SAMPLE_PRIORITY_WEIGHTS)
    severity = Severity(_pick_weighted(rng.random(), SAMPLE_SEVERITY_WEIGHTS))
    cause_index = int(rng.random() ** SAMPLE_ROOT_CAUSE_SKEW * len(SAMPLE_ROOT_CAUSES))
    root_cause = SAMPLE_ROOT_CAUSES[min(cause_index, len(SAMPLE_ROOT_CAUSES) - 1)]
    opened = _opened_date(rng, index, window_start, window_seconds)

    resolved_date = hours = sla_met = None
    if status.is_terminal:
        max_hours = SAMPLE_MAX_RESOLUTION_HOURS.get(priority, max(SAMPLE_MAX_RESOLUTION_HOURS.values()))
        hours = round(float(rng.uniform(_MIN_RESOLUTION_HOURS, max_hours)), 1)
        resolved_date = opened + timedelta(hours=hours)
        sla_met = bool(rng.random() < SAMPLE_SLA_MET_RATE)

    return NormalizedRecord(
        id=f"INC{1001 + index}",
        title=f"{category} {subcategory} Issue",
        description=f"Sample incident for {category} related to {subcategory}",
        opened_date=opened,
        resolved_date=resolved_date,
        status=status,
        severity=severity,
        priority=priority,
        category=category,
        subcategory=subcategory,
        source=_pick(rng, SAMPLE_SOURCES),
        root_cause=root_cause,
        sla_met=sla_met,
        reopen_count=_reopen_count(rng),
        resolution_time_hours=hours,
        assigned_group=_pick(rng, SAMPLE_ASSIGNED_GROUPS),
        lob=_pick(rng, SAMPLE_LOBS),
    )


def generate_sample_records(count=SAMPLE_RECORD_COUNT, seed=SAMPLE_SEED, anchor=None):
    """Generate a deterministic list of sample ``NormalizedRecord``.

    Args:
        count: Number of records (negative values give ``[]``).
        seed: Seed for ``numpy.random.default_rng``.
        anchor: Latest possible opened date (datetime, date or string);
            defaults to ``SAMPLE_ANCHOR_DATE``.

    Returns:
        List of records with ids ``INC1001``, ``INC1002``, ...
    """
    count = max(0, int(count))
    rng = np.random.default_rng(seed)
    anchor = _resolve_anchor(anchor)
    window_start = (pd.Timestamp(anchor) - pd.DateOffset(months=SAMPLE_HISTORY_MONTHS)).to_pydatetime()
    window_seconds = max(1, int((anchor - window_start).total_seconds()))

    records = [_make_record(rng, i, window_start, window_seconds) for i in range(count)]
    logger.debug(f"[Fallback] Generated {len(records)} sample record(s) (seed={seed})")
    return records


def sample_dataset(count=SAMPLE_RECORD_COUNT, seed=SAMPLE_SEED, anchor=None):
    """Sample records wrapped as a ``Dataset`` marked ``Provenance.SAMPLE``."""
    records = generate_sample_records(count=count, seed=seed, anchor=anchor)
    return Dataset(records=tuple(records), provenance=Provenance.SAMPLE)
