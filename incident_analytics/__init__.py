"""
Incident Analytics - normalisation and dashboard aggregations for incident exports.

This package turns ServiceNow / Jira / Rally exports into chart-ready views:
- Tolerant ingestion with an explicit column alias table
- Category and date-range filtering
- Distributions, zero-filled time series, resolution-time and SLA views
- Root-cause ranking, reopen statistics, MTBF and team efficiency
- Deterministic sample data when no usable export is available
"""

__version__ = "1.0.0"
__author__ = "Incident Analytics Team"

# Core imports
from .core.config import AnalyticsConfig
from .core.utils import clean_text, parse_timestamp

# Models
from .models import (
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

# Ingestion and filtering
from .ingestion import parse_csv_text, normalize_row, normalize_rows, ingest
from .filtering import apply_filter, filter_by_days, date_range_options, available_categories

# Analysis
from .analysis import (
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
    summary_statistics,
)

# Fallback and pipeline
from .fallback import generate_sample_records, sample_dataset
from .pipeline import DashboardPipeline, DashboardViews, load_dataset, read_export_rows
