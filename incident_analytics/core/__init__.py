"""
Core module for Incident Analytics.

Contains configuration constants, the per-run config object and the
tolerant coercion helpers shared by every other module.
"""

from .config import *
from .config import AnalyticsConfig
from .utils import (
    is_blank,
    clean_text,
    canonical_key,
    coerce_float,
    coerce_int,
    parse_timestamp,
)

__all__ = [
    # Config
    'AnalyticsConfig',
    # Utils
    'is_blank',
    'clean_text',
    'canonical_key',
    'coerce_float',
    'coerce_int',
    'parse_timestamp',
]
