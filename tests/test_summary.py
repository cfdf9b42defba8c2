"""
Unit tests for incident_analytics.analysis.summary
"""

import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from incident_analytics.analysis import summary_statistics
from incident_analytics.models.data_models import SummaryStatistics
from tests.fixtures.sample_data import (
    create_scenario_a_records,
    create_mixed_records,
    make_record,
)


class TestSummaryStatistics(unittest.TestCase):
    """Test suite for summary_statistics."""

    def test_union_rule_for_critical(self):
        stats = summary_statistics(create_scenario_a_records())
        self.assertEqual(stats.total, 3)
        self.assertEqual(stats.critical_count, 3)
        self.assertEqual(stats.resolved_count, 2)
        self.assertAlmostEqual(stats.average_resolution_time_hours, 6.0)

    def test_empty_input_is_all_zeros(self):
        stats = summary_statistics([])
        self.assertEqual(stats, SummaryStatistics())
        self.assertEqual(stats.to_dict(), {
            'total': 0,
            'critical_count': 0,
            'resolved_count': 0,
            'average_resolution_time_hours': 0.0,
        })

    def test_closed_counts_as_resolved(self):
        stats = summary_statistics(create_mixed_records())
        self.assertEqual(stats.total, 6)
        self.assertEqual(stats.resolved_count, 3)
        self.assertEqual(stats.critical_count, 1)
        self.assertAlmostEqual(stats.average_resolution_time_hours, 10.0)

    def test_average_ignores_zero_and_open_hours(self):
        records = [
            make_record('H1', status='Resolved', resolution_time_hours=0.0),
            make_record('H2', status='Closed', resolution_time_hours=12.0),
            make_record('H3', status='In Progress', resolution_time_hours=100.0),
        ]
        self.assertEqual(summary_statistics(records).average_resolution_time_hours, 12.0)

    def test_no_qualifying_hours_gives_zero_average(self):
        records = [make_record('H1', status='Resolved')]
        stats = summary_statistics(records)
        self.assertEqual(stats.resolved_count, 1)
        self.assertEqual(stats.average_resolution_time_hours, 0.0)


if __name__ == '__main__':
    unittest.main()
