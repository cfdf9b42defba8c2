"""Category and date-range filtering."""

from .filter_engine import (
    apply_filter,
    filter_by_days,
    date_range_options,
    available_categories,
)

__all__ = [
    'apply_filter',
    'filter_by_days',
    'date_range_options',
    'available_categories',
]
