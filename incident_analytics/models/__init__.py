"""
Models module for Incident Analytics.

Contains the immutable record, filter and result types.
"""

from .data_models import (
    Status,
    Severity,
    Provenance,
    NormalizedRecord,
    DateRange,
    RecordFilter,
    AggregationResult,
    SLAComplianceResult,
    SummaryStatistics,
    ReopenStatistics,
    SourceStatistics,
    SeriesBreakdown,
    Dataset,
)

__all__ = [
    'Status',
    'Severity',
    'Provenance',
    'NormalizedRecord',
    'DateRange',
    'RecordFilter',
    'AggregationResult',
    'SLAComplianceResult',
    'SummaryStatistics',
    'ReopenStatistics',
    'SourceStatistics',
    'SeriesBreakdown',
    'Dataset',
]
