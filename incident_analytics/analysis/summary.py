"""
Summary Statistics Calculator.

Top-line numbers shown above the trend, root-cause and SLA views.  The
"critical" rule lives on ``NormalizedRecord.is_critical`` so that this
module and ``aggregations.source_breakdown`` can never disagree.
"""

import logging

from ..models.data_models import SummaryStatistics

logger = logging.getLogger(__name__)


def summary_statistics(records):
    """Compute total, critical, resolved and average resolution hours.

    Args:
        records: Sequence of ``NormalizedRecord`` (may be empty).

    Returns:
        ``SummaryStatistics``.  The average covers resolved/closed records
        with ``resolution_time_hours > 0`` and is 0.0 when none qualify.
    """
    records = list(records or ())
    if not records:
        return SummaryStatistics()

    resolved = [r for r in records if r.is_resolved]
    hours = [
        r.resolution_time_hours for r in resolved
        if r.resolution_time_hours is not None and r.resolution_time_hours > 0
    ]
    average = sum(hours) / len(hours) if hours else 0.0

    stats = SummaryStatistics(
        total=len(records),
        critical_count=sum(1 for r in records if r.is_critical),
        resolved_count=len(resolved),
        average_resolution_time_hours=average,
    )
    logger.debug(f"[Summary] {stats.to_dict()}")
    return stats
