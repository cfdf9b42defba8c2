"""
Pipeline module for Incident Analytics.

Contains the loading and view-building orchestration.
"""

from .orchestrator import (
    DashboardPipeline,
    DashboardViews,
    load_dataset,
    read_export_rows,
)

__all__ = [
    'DashboardPipeline',
    'DashboardViews',
    'load_dataset',
    'read_export_rows',
]
