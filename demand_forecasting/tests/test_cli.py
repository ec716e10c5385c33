"""
Tests for the command line entry point.
"""
import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout, redirect_stderr
from datetime import date
from unittest.mock import patch

from demand_forecasting.main import main
from demand_forecasting.tests.fixtures import (
    CannedForecastModel, in_memory_services, make_forecast, fenced, seed_history
)


class TestCli(unittest.TestCase):

    def setUp(self):
        model = CannedForecastModel(fenced(make_forecast(date(2024, 1, 11), 7)))
        self.services = in_memory_services(model=model)
        patcher = patch('demand_forecasting.bootstrap.build_services', return_value=self.services)
        self.build_services = patcher.start()
        self.addCleanup(patcher.stop)

    def _run(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_upload_prints_rejected_rows(self):
        handle, path = tempfile.mkstemp(suffix='.csv')
        self.addCleanup(os.remove, path)
        with os.fdopen(handle, 'w') as csv_file:
            csv_file.write("product_id,date,quantity_sold,price\nP1,2024-01-01,2,1.5\nP1,,2,1.5\n")

        code, out, _ = self._run('upload', path)

        self.assertEqual(code, 0)
        self.assertIn("Processed: 1", out)
        self.assertIn("Missing required data", out)
        self.build_services.assert_called_once_with(None)

    def test_unreadable_upload_exits_non_zero(self):
        handle, path = tempfile.mkstemp(suffix='.csv')
        self.addCleanup(os.remove, path)
        with os.fdopen(handle, 'wb') as csv_file:
            csv_file.write(b"product_id,date,quantity_sold,price\nP\xff,2024-01-01,2,1.5\n")

        for target in (path, path + '.missing'):
            with self.subTest(target=target):
                code, _, err = self._run('upload', target)
                self.assertEqual(code, 1)
                self.assertIn("Cannot read CSV file", err)

        self.assertEqual(self.services.ledger.summary()['totalRecords'], 0)

    def test_forecast_then_latest(self):
        seed_history(self.services.ledger, 'P1', 10)

        code, out, _ = self._run('--database-url', 'sqlite://', 'forecast', 'P1', '--days', '7')
        self.assertEqual(code, 0)
        self.assertIn("2024-01-17", out)
        self.build_services.assert_called_with('sqlite://')

        code, out, _ = self._run('latest', 'P1')
        self.assertEqual(code, 0)
        self.assertIn("Forecast for P1", out)

    def test_service_error_exits_non_zero(self):
        code, _, err = self._run('latest', 'P404')

        self.assertEqual(code, 1)
        self.assertIn("No forecast found for this product", err)


if __name__ == '__main__':
    unittest.main()
