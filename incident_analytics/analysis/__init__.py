"""
Analysis modules for Incident Analytics.

Includes:
- Aggregation Library (distributions, time series, severity breakdowns,
  resolution time, SLA, root causes, reopens, MTBF, team efficiency,
  sources)
- Summary Statistics
"""

from .aggregations import (
    distribution_by_field,
    status_distribution,
    severity_distribution,
    priority_distribution,
    root_cause_ranking,
    time_series_by_period,
    severity_trend,
    severity_by_field,
    resolution_time_stats,
    sla_compliance_ratio,
    reopen_statistics,
    mean_time_between_incidents,
    team_efficiency,
    source_breakdown,
    recent_records,
)

from .summary import summary_statistics

__all__ = [
    # Aggregations
    'distribution_by_field',
    'status_distribution',
    'severity_distribution',
    'priority_distribution',
    'root_cause_ranking',
    'time_series_by_period',
    'severity_trend',
    'severity_by_field',
    'resolution_time_stats',
    'sla_compliance_ratio',
    'reopen_statistics',
    'mean_time_between_incidents',
    'team_efficiency',
    'source_breakdown',
    'recent_records',
    # Summary
    'summary_statistics',
]
