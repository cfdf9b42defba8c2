"""
Unit tests for incident_analytics.filtering.filter_engine

Tests:
- Identity and idempotence of apply_filter
- Category filter (exact match, 'all')
- Date range filter (inclusive bounds, open ends, undated records)
- Day-window helpers and category listing
"""

import unittest
from datetime import date, datetime
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from incident_analytics.filtering import (
    apply_filter,
    filter_by_days,
    date_range_options,
    available_categories,
)
from incident_analytics.models.data_models import DateRange, RecordFilter
from tests.fixtures.sample_data import create_mixed_records, make_record


def _ids(records):
    return [r.id for r in records]


class TestApplyFilter(unittest.TestCase):
    """Test suite for apply_filter."""

    def setUp(self):
        self.records = create_mixed_records()

    def test_empty_filter_is_identity(self):
        result = apply_filter(self.records, RecordFilter())
        self.assertEqual(result, self.records)
        self.assertIsNot(result, self.records)

    def test_none_filter_is_identity(self):
        self.assertEqual(apply_filter(self.records), self.records)

    def test_all_category_is_identity(self):
        for value in ('all', 'ALL', ''):
            with self.subTest(value=value):
                self.assertEqual(apply_filter(self.records, RecordFilter(category_id=value)), self.records)

    def test_category_filter_exact_match(self):
        result = apply_filter(self.records, RecordFilter(category_id='Network'))
        self.assertEqual(_ids(result), ['INC1001', 'INC1003', 'INC1006'])
        self.assertEqual(apply_filter(self.records, RecordFilter(category_id='network')), [])

    def test_numeric_category_id(self):
        records = [make_record('N1', category='7'), make_record('N2', category='8')]
        record_filter = RecordFilter(category_id=7)
        self.assertTrue(record_filter.category_active)
        self.assertEqual(_ids(apply_filter(records, record_filter)), ['N1'])

    def test_date_range_is_inclusive(self):
        window = DateRange(start=datetime(2025, 1, 10, 10, 0), end=datetime(2025, 2, 2, 8, 0))
        result = apply_filter(self.records, RecordFilter(date_range=window))
        self.assertEqual(_ids(result), ['INC1002', 'INC1003'])

    def test_date_end_bound_covers_whole_day(self):
        window = DateRange(start=date(2025, 2, 1), end=date(2025, 2, 14))
        result = apply_filter(self.records, RecordFilter(date_range=window))
        self.assertEqual(_ids(result), ['INC1003', 'INC1004'])

    def test_string_bounds(self):
        window = DateRange(start='2025-03-01', end=None)
        result = apply_filter(self.records, RecordFilter(date_range=window))
        self.assertEqual(_ids(result), ['INC1005'])

    def test_undated_records_excluded_when_date_filter_active(self):
        window = DateRange(start=datetime(2000, 1, 1))
        result = apply_filter(self.records, RecordFilter(date_range=window))
        self.assertNotIn('INC1006', _ids(result))
        self.assertEqual(len(result), 5)

    def test_unbounded_date_range_is_inactive(self):
        result = apply_filter(self.records, RecordFilter(date_range=DateRange()))
        self.assertEqual(result, self.records)

    def test_inverted_range_matches_nothing(self):
        window = DateRange(start='2025-03-01', end='2025-01-01')
        self.assertEqual(apply_filter(self.records, RecordFilter(date_range=window)), [])

    def test_category_and_date_combined(self):
        record_filter = RecordFilter(category_id='Network', date_range=DateRange(end='2025-01-31'))
        self.assertEqual(_ids(apply_filter(self.records, record_filter)), ['INC1001'])

    def test_idempotent(self):
        record_filter = RecordFilter(category_id='Network', date_range=DateRange(start='2025-01-01'))
        once = apply_filter(self.records, record_filter)
        twice = apply_filter(once, record_filter)
        self.assertEqual(once, twice)

    def test_input_not_mutated(self):
        before = list(self.records)
        apply_filter(self.records, RecordFilter(category_id='Security'))
        self.assertEqual(self.records, before)

    def test_empty_input(self):
        self.assertEqual(apply_filter([], RecordFilter(category_id='Network')), [])


class TestDayWindows(unittest.TestCase):
    """Test suite for filter_by_days and date_range_options."""

    def setUp(self):
        self.records = create_mixed_records()

    def test_defaults_to_latest_opened_date(self):
        # Latest record opened 2025-03-01 12:00; 30 days back is 2025-01-30 12:00
        result = filter_by_days(self.records, 30)
        self.assertEqual(_ids(result), ['INC1003', 'INC1004', 'INC1005'])

    def test_explicit_as_of(self):
        result = filter_by_days(self.records, 8, as_of=datetime(2025, 1, 10, 12, 0))
        self.assertEqual(_ids(result), ['INC1001', 'INC1002'])

    def test_invalid_days(self):
        self.assertEqual(filter_by_days(self.records, 0), [])
        self.assertEqual(filter_by_days(self.records, 'week'), [])

    def test_no_dated_records(self):
        self.assertEqual(filter_by_days([make_record('X')], 30), [])

    def test_preset_windows(self):
        options = date_range_options(datetime(2025, 3, 31))
        self.assertEqual(list(options), ['Last 7 days', 'Last 30 days', 'Last 90 days', 'Last 365 days'])
        self.assertEqual(options['Last 7 days'].start, datetime(2025, 3, 24))
        self.assertEqual(options['Last 7 days'].end, datetime(2025, 3, 31))


class TestAvailableCategories(unittest.TestCase):

    def test_first_seen_order_without_blanks(self):
        records = create_mixed_records() + [make_record('Z', category='')]
        self.assertEqual(
            available_categories(records),
            ['Network', 'Application', 'Hardware', 'Security'],
        )


if __name__ == '__main__':
    unittest.main()
