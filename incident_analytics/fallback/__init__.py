"""Deterministic sample data used when no real export is available."""

from .sample_data import generate_sample_records, sample_dataset

__all__ = ['generate_sample_records', 'sample_dataset']
