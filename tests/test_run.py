"""
Unit tests for run.py

Tests all major functions in the run.py entry point script including:
- Path validation and security
- Filename sanitisation
- Argument parsing
- Logging setup
- End-to-end view generation
"""

import unittest
from unittest.mock import patch
from pathlib import Path
import io
import json
import logging
import sys
import tempfile
import shutil

# Add parent directory to path to import run module
sys.path.insert(0, str(Path(__file__).parent.parent))

import run
from tests.fixtures.sample_data import create_servicenow_csv, create_sample_excel_file

PROJECT_ROOT = Path(run.__file__).parent.resolve()


class TestPathValidation(unittest.TestCase):
    """Test suite for path validation and security functions."""

    def setUp(self):
        """Create a scratch directory inside the project (an allowed location)."""
        self.test_dir = Path(tempfile.mkdtemp(dir=PROJECT_ROOT))
        self.test_file = self.test_dir / "test.csv"
        self.test_file.write_text("Incident ID\nINC1\n")

    def tearDown(self):
        if self.test_dir.exists():
            shutil.rmtree(self.test_dir)

    def test_validate_existing_file(self):
        result = run.validate_file_path(str(self.test_file), must_exist=True)
        self.assertIsInstance(result, Path)
        self.assertTrue(result.exists())

    def test_validate_nonexistent_file_without_requirement(self):
        nonexistent = self.test_dir / "nonexistent.csv"
        result = run.validate_file_path(str(nonexistent), must_exist=False)
        self.assertIsInstance(result, Path)

    def test_validate_nonexistent_file_with_requirement(self):
        nonexistent = self.test_dir / "nonexistent.csv"
        with self.assertRaises(ValueError) as context:
            run.validate_file_path(str(nonexistent), must_exist=True)
        self.assertIn("File not found", str(context.exception))

    @patch('run.Path.home', return_value=PROJECT_ROOT)
    def test_prevent_path_traversal(self, mock_home):
        with self.assertRaises(ValueError) as context:
            run.validate_file_path('/etc/passwd', must_exist=False)
        self.assertIn("outside allowed directories", str(context.exception))

    @patch('run.Path.home', return_value=PROJECT_ROOT)
    def test_prefix_sibling_is_not_allowed(self, mock_home):
        sibling = str(PROJECT_ROOT) + "_evil/data.csv"
        with self.assertRaises(ValueError):
            run.validate_file_path(sibling, must_exist=False)


class TestSanitization(unittest.TestCase):
    """Test suite for filename sanitisation."""

    def test_sanitize_filename_removes_dangerous_chars(self):
        sanitized = run.sanitize_filename("../../bad;file|name*.json")
        self.assertNotIn('/', sanitized)
        self.assertNotIn(';', sanitized)
        self.assertNotIn('|', sanitized)
        self.assertNotIn('*', sanitized)
        self.assertEqual(sanitized, "badfilename.json")

    def test_sanitize_filename_keeps_valid_chars(self):
        self.assertEqual(run.sanitize_filename("views_2025-01 v2.json"), "views_2025-01 v2.json")

    def test_sanitize_filename_limits_length(self):
        self.assertEqual(len(run.sanitize_filename("a" * 300 + ".json")), 255)


class TestArgumentParsing(unittest.TestCase):
    """Test suite for command-line argument parsing."""

    def test_parse_args_defaults(self):
        args = run.parse_args([])
        self.assertEqual(args.file, [])
        self.assertIsNone(args.output)
        self.assertIsNone(args.category)
        self.assertEqual(args.granularity, 'month')
        self.assertEqual(args.top, 5)
        self.assertFalse(args.no_fallback)
        self.assertFalse(args.verbose)

    def test_parse_args_repeated_files(self):
        args = run.parse_args(['-f', 'a.csv', '--file', 'b.xlsx'])
        self.assertEqual(args.file, ['a.csv', 'b.xlsx'])

    def test_parse_args_filter_and_views(self):
        args = run.parse_args([
            '--category', 'Network', '--start', '2025-01-01', '--end', '2025-03-31',
            '--granularity', 'week', '--top', '3', '--no-fallback', '-v',
        ])
        self.assertEqual(args.category, 'Network')
        self.assertEqual(args.start, '2025-01-01')
        self.assertEqual(args.end, '2025-03-31')
        self.assertEqual(args.granularity, 'week')
        self.assertEqual(args.top, 3)
        self.assertTrue(args.no_fallback)
        self.assertTrue(args.verbose)

    def test_parse_args_rejects_unknown_granularity(self):
        with patch('sys.stderr', new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                run.parse_args(['--granularity', 'fortnight'])


class TestBuildFilter(unittest.TestCase):

    def test_category_and_dates(self):
        record_filter = run.build_filter('Network', '2025-01-01', '2025-01-31')
        self.assertTrue(record_filter.category_active)
        self.assertTrue(record_filter.date_active)

    def test_unparsable_dates_are_ignored(self):
        record_filter = run.build_filter(None, 'someday', None)
        self.assertIsNone(record_filter.date_range)
        self.assertFalse(record_filter.category_active)


class TestLogging(unittest.TestCase):
    """Test suite for logging configuration."""

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        self.root_logger = logging.getLogger()
        self.saved_handlers = self.root_logger.handlers[:]
        self.saved_level = self.root_logger.level

    def tearDown(self):
        for handler in self.root_logger.handlers[:]:
            self.root_logger.removeHandler(handler)
            handler.close()
        for handler in self.saved_handlers:
            self.root_logger.addHandler(handler)
        self.root_logger.setLevel(self.saved_level)
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_setup_logging_creates_directory_and_file(self):
        log_dir = self.test_dir / "logs"
        log_file = run.setup_logging(verbose=False, log_dir=log_dir)
        self.assertTrue(log_dir.is_dir())
        self.assertTrue(log_file.exists())
        self.assertTrue(log_file.name.startswith("incident_analytics_"))

    def test_setup_logging_verbose_mode(self):
        run.setup_logging(verbose=True, log_dir=self.test_dir)
        levels = sorted(h.level for h in self.root_logger.handlers)
        self.assertEqual(levels, [logging.DEBUG, logging.INFO])

    def test_setup_logging_quiet_console(self):
        run.setup_logging(verbose=False, log_dir=self.test_dir)
        levels = sorted(h.level for h in self.root_logger.handlers)
        self.assertEqual(levels, [logging.DEBUG, logging.WARNING])


@patch('run.setup_logging')
class TestMain(unittest.TestCase):
    """End-to-end runs of main() with logging setup stubbed out."""

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp(dir=PROJECT_ROOT))
        self.csv_file = self.test_dir / "incidents.csv"
        self.csv_file.write_text(create_servicenow_csv(), encoding='utf-8')

    def tearDown(self):
        if self.test_dir.exists():
            shutil.rmtree(self.test_dir)

    def _run_and_capture(self, argv):
        with patch('sys.stdout', new_callable=io.StringIO) as stdout:
            status = run.main(argv)
        return status, stdout.getvalue()

    def test_views_for_real_export(self, mock_logging):
        status, output = self._run_and_capture(['--file', str(self.csv_file)])
        self.assertEqual(status, 0)
        payload = json.loads(output)
        self.assertFalse(payload['is_sample'])
        self.assertEqual(payload['summary']['total'], 3)

    def test_category_filter(self, mock_logging):
        status, output = self._run_and_capture([
            '--file', str(self.csv_file), '--category', 'Application',
        ])
        self.assertEqual(status, 0)
        self.assertEqual(json.loads(output)['record_count'], 1)

    def test_no_files_uses_sample_data(self, mock_logging):
        status, output = self._run_and_capture([])
        self.assertEqual(status, 0)
        payload = json.loads(output)
        self.assertTrue(payload['is_sample'])
        self.assertEqual(payload['record_count'], 75)

    def test_no_fallback_gives_empty_views(self, mock_logging):
        empty = self.test_dir / "empty.csv"
        empty.write_text("")
        status, output = self._run_and_capture(['--file', str(empty), '--no-fallback'])
        self.assertEqual(status, 0)
        payload = json.loads(output)
        self.assertFalse(payload['is_sample'])
        self.assertEqual(payload['record_count'], 0)

    def test_merges_multiple_files(self, mock_logging):
        workbook = create_sample_excel_file(self.test_dir / "more.xlsx")
        with patch('sys.stderr', new_callable=io.StringIO):
            status, output = self._run_and_capture([
                '--file', str(self.csv_file), '--file', str(workbook),
            ])
        self.assertEqual(status, 0)
        self.assertEqual(json.loads(output)['record_count'], 6)

    def test_writes_output_file(self, mock_logging):
        target = self.test_dir / "views.json"
        status, output = self._run_and_capture([
            '--file', str(self.csv_file), '--output', str(target),
        ])
        self.assertEqual(status, 0)
        self.assertIn("Views written to", output)
        payload = json.loads(target.read_text(encoding='utf-8'))
        self.assertEqual(payload['summary']['total'], 3)

    def test_missing_file_fails(self, mock_logging):
        with patch('sys.stderr', new_callable=io.StringIO) as stderr:
            status = run.main(['--file', str(self.test_dir / "missing.csv")])
        self.assertEqual(status, 1)
        self.assertIn("File not found", stderr.getvalue())

    def test_invalid_top_fails(self, mock_logging):
        with patch('sys.stderr', new_callable=io.StringIO):
            status = run.main(['--top', '0'])
        self.assertEqual(status, 1)


if __name__ == '__main__':
    unittest.main()
