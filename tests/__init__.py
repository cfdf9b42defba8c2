"""
Incident Analytics Test Suite

This package contains unit tests, integration tests, and fixtures
for the Incident Analytics package and CLI.

Run tests with:
    pytest tests/
    pytest tests/test_aggregations.py -v
    pytest tests/test_run.py::TestPathValidation -v
"""

__version__ = "1.0.0"
