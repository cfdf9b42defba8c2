"""
Pipeline Orchestrator - wires ingestion, fallback, filtering and aggregation.

Data flow
---------
::

    [CSV text / rows / DataFrame / None]
         |
         v
    load_dataset() --> ingest() --> Dataset (REAL)
         |                 |
         |                 +-- zero records --> sample_dataset() (SAMPLE)
         v
    DashboardPipeline.apply_filter(RecordFilter) --> filtered list
         |
         v
    DashboardPipeline.build_views() --> DashboardViews
         |
         v
    DashboardViews.to_dict() --> JSON for the presentation layer

The pipeline holds only the loaded ``Dataset`` and an immutable
``AnalyticsConfig``.  Every call to ``build_views`` recomputes all views
from the records; nothing is cached between calls.
"""

import os
import zipfile
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from ..core.config import AnalyticsConfig
from ..ingestion import ingest, parse_csv_text
from ..fallback import sample_dataset
from ..filtering import apply_filter, available_categories
from ..analysis import (
    distribution_by_field,
    status_distribution,
    severity_distribution,
    priority_distribution,
    time_series_by_period,
    severity_trend,
    severity_by_field,
    resolution_time_stats,
    sla_compliance_ratio,
    root_cause_ranking,
    reopen_statistics,
    mean_time_between_incidents,
    team_efficiency,
    source_breakdown,
    recent_records,
    summary_statistics,
)
from ..models.data_models import (
    AggregationResult,
    ReopenStatistics,
    SLAComplianceResult,
    SourceStatistics,
    SeriesBreakdown,
    SummaryStatistics,
)

logger = logging.getLogger(__name__)

EXCEL_EXTENSIONS = ('.xlsx', '.xlsm')


# ============================================================================
# LOADING
# ============================================================================

def read_export_rows(file_path):
    """Read one export file into a list of row dicts.

    Excel workbooks are read with openpyxl, preferring a sheet whose name
    contains "raw" and otherwise the first sheet.  Any other file is treated
    as CSV text.  Unreadable files give ``[]`` and a warning.
    """
    if str(file_path).lower().endswith(EXCEL_EXTENSIONS):
        try:
            xls = pd.ExcelFile(file_path, engine='openpyxl')
            sheet = next((s for s in xls.sheet_names if 'raw' in str(s).lower()), xls.sheet_names[0])
            df = pd.read_excel(xls, sheet_name=sheet)
        except (OSError, ValueError, KeyError, zipfile.BadZipFile, InvalidFileException) as e:
            logger.warning(f"[Pipeline] Could not read workbook {os.path.basename(file_path)}: {e}")
            return []
        logger.info(f"[Pipeline] {os.path.basename(file_path)}: sheet '{sheet}', {len(df):,} rows")
        return df.to_dict(orient='records')

    try:
        with open(file_path, 'rb') as f:
            raw = f.read()
    except OSError as e:
        logger.warning(f"[Pipeline] Could not read {file_path}: {e}")
        return []
    return parse_csv_text(raw)


def load_dataset(source, use_fallback=True):
    """Ingest ``source`` and substitute sample data when nothing survives.

    Args:
        source: Anything ``ingest`` accepts.  ``None`` stands for a failed
            upstream fetch.
        use_fallback: When False an empty ``Dataset`` is returned instead of
            sample data.

    Returns:
        ``Dataset`` whose ``provenance`` tells real data from sample data.
    """
    dataset = ingest(source)
    if dataset.is_empty and use_fallback:
        logger.warning(
            f"[Pipeline] No usable records ingested (skipped {dataset.skipped_rows}); "
            "substituting sample data"
        )
        return sample_dataset()
    return dataset


# ============================================================================
# VIEW BUNDLE
# ============================================================================

@dataclass
class DashboardViews:
    """Every view the dashboard renders for one filter selection."""
    is_sample: bool
    record_count: int
    categories: List[str] = field(default_factory=list)
    summary: SummaryStatistics = field(default_factory=SummaryStatistics)
    category_distribution: AggregationResult = field(default_factory=AggregationResult.empty)
    priority_distribution: AggregationResult = field(default_factory=AggregationResult.empty)
    status_distribution: AggregationResult = field(default_factory=AggregationResult.empty)
    severity_distribution: AggregationResult = field(default_factory=AggregationResult.empty)
    lob_distribution: AggregationResult = field(default_factory=AggregationResult.empty)
    time_series: AggregationResult = field(default_factory=AggregationResult.empty)
    severity_trend: SeriesBreakdown = field(default_factory=SeriesBreakdown.empty)
    severity_by_category: SeriesBreakdown = field(default_factory=SeriesBreakdown.empty)
    resolution_by_category: AggregationResult = field(default_factory=AggregationResult.empty)
    sla_compliance: SLAComplianceResult = field(default_factory=SLAComplianceResult)
    root_causes: AggregationResult = field(default_factory=AggregationResult.empty)
    reopens: ReopenStatistics = field(default_factory=ReopenStatistics)
    mtbf_hours: Optional[float] = None
    team_efficiency: AggregationResult = field(default_factory=AggregationResult.empty)
    sources: List[SourceStatistics] = field(default_factory=list)
    recent: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_sample': self.is_sample,
            'record_count': self.record_count,
            'categories': list(self.categories),
            'summary': self.summary.to_dict(),
            'category_distribution': self.category_distribution.to_dict(),
            'priority_distribution': self.priority_distribution.to_dict(),
            'status_distribution': self.status_distribution.to_dict(),
            'severity_distribution': self.severity_distribution.to_dict(),
            'lob_distribution': self.lob_distribution.to_dict(),
            'time_series': self.time_series.to_dict(),
            'severity_trend': self.severity_trend.to_dict(),
            'severity_by_category': self.severity_by_category.to_dict(),
            'resolution_by_category': self.resolution_by_category.to_dict(),
            'sla_compliance': self.sla_compliance.to_dict(),
            'root_causes': self.root_causes.to_dict(),
            'reopens': self.reopens.to_dict(),
            'mtbf_hours': self.mtbf_hours,
            'team_efficiency': self.team_efficiency.to_dict(),
            'sources': [s.to_dict() for s in self.sources],
            'recent': [r.to_dict() for r in self.recent],
        }


# ============================================================================
# PIPELINE
# ============================================================================

class DashboardPipeline:
    """
    Coordinates loading and view building for one dashboard session.

    Typical usage
    -------------
    ::

        pipe = DashboardPipeline(csv_text, AnalyticsConfig(top_n=3))
        views = pipe.build_views(RecordFilter(category_id='Network'))
        payload = views.to_dict()
    """

    def __init__(self, source=None, config=None):
        self.source = source                        # Raw input handed to ingest()
        self.config = config or AnalyticsConfig()   # Per-run settings
        self.dataset = None                         # Loaded lazily by load()

    def load(self):
        """Ingest the source (or fall back to sample data) and return the Dataset."""
        self.dataset = load_dataset(self.source, use_fallback=self.config.use_fallback)
        label = "sample" if self.dataset.is_sample else "real"
        logger.info(f"[Pipeline] Loaded {len(self.dataset):,} {label} record(s)")
        return self.dataset

    @property
    def records(self):
        if self.dataset is None:
            self.load()
        return self.dataset.records

    def apply_filter(self, record_filter=None):
        return apply_filter(self.records, record_filter)

    def build_views(self, record_filter=None, granularity=None):
        """Compute every dashboard view for ``record_filter``.

        Args:
            record_filter: ``RecordFilter`` or ``None`` for all records.
            granularity: Time-series bucket; defaults to the config value.

        Returns:
            ``DashboardViews``.
        """
        config = self.config
        records = self.apply_filter(record_filter)
        granularity = granularity or config.granularity
        logger.debug(
            f"[Pipeline] Building views over {len(records):,} record(s), "
            f"granularity={granularity}"
        )

        return DashboardViews(
            is_sample=self.dataset.is_sample,
            record_count=len(records),
            categories=available_categories(self.records),
            summary=summary_statistics(records),
            category_distribution=distribution_by_field(records, 'category', top_n=config.category_top_n),
            priority_distribution=priority_distribution(records),
            status_distribution=status_distribution(records),
            severity_distribution=severity_distribution(records),
            lob_distribution=distribution_by_field(records, 'lob'),
            time_series=time_series_by_period(records, granularity),
            severity_trend=severity_trend(records, granularity),
            severity_by_category=severity_by_field(records, 'category', top_n=config.top_n),
            resolution_by_category=resolution_time_stats(records, 'category'),
            sla_compliance=sla_compliance_ratio(records),
            root_causes=root_cause_ranking(records, top_n=config.top_n),
            reopens=reopen_statistics(records),
            mtbf_hours=mean_time_between_incidents(records, window_days=config.mtbf_window_days),
            team_efficiency=team_efficiency(records, top_n=config.top_n),
            sources=source_breakdown(records),
            recent=recent_records(records, limit=config.recent_limit),
        )
