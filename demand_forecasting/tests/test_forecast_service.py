"""
Tests for the forecast pipeline. The model is always a canned fake.
"""
import unittest
from datetime import date, datetime

from demand_forecasting.db import SqlSalesLedgerStore, SqlProductCatalog, SqlForecastStore
from demand_forecasting.exceptions import (
    InsufficientDataError, ResponseFormatError, DependencyError, NotFoundError
)
from demand_forecasting.services.forecast_service import ForecastService
from demand_forecasting.services.request_builder import ForecastRequestBuilder
from demand_forecasting.tests.fixtures import (
    CannedForecastModel, in_memory_database, make_forecast, fenced, seed_history
)

FIRST_RUN = datetime(2024, 3, 1, 9, 0, 0)
SECOND_RUN = datetime(2024, 3, 2, 9, 0, 0)


class TestForecastService(unittest.TestCase):

    def setUp(self):
        database = in_memory_database()
        self.ledger = SqlSalesLedgerStore(database)
        self.forecasts = SqlForecastStore(database)
        self.builder = ForecastRequestBuilder(self.ledger, SqlProductCatalog(database))
        self.times = iter([FIRST_RUN, SECOND_RUN])

    def _service(self, *replies):
        self.model = CannedForecastModel(*replies)
        return ForecastService(self.builder, self.model, self.forecasts, clock=lambda: next(self.times))

    def test_generate_persists_version_with_metadata(self):
        last_day = seed_history(self.ledger, 'P1', 10)
        forecast = make_forecast(date(2024, 1, 11), 7)
        service = self._service(fenced(forecast))

        record = service.generate('P1', 7)

        self.assertEqual(last_day, date(2024, 1, 10))
        self.assertEqual(record.generated_at, FIRST_RUN)
        self.assertEqual(record.data_points_used, 10)
        self.assertEqual(record.forecast_days, 7)
        self.assertEqual(record.forecast, forecast)
        self.assertEqual(len(self.model.prompts), 1)
        self.assertIn("Please provide a 7-day demand forecast", self.model.prompts[0])

        stored = service.latest('P1')
        self.assertEqual(stored.to_dict(), record.to_dict())

    def test_insufficient_data_skips_model(self):
        seed_history(self.ledger, 'P1', 5)
        service = self._service(fenced(make_forecast(date(2024, 1, 6), 30)))

        with self.assertRaises(InsufficientDataError) as context:
            service.generate('P1', 30)

        self.assertEqual(context.exception.current_data_points, 5)
        self.assertEqual(self.model.prompts, [])
        self.assertEqual(self.forecasts.list_versions('P1'), [])

    def test_invalid_reply_is_not_retried_or_stored(self):
        seed_history(self.ledger, 'P1', 10)
        short = make_forecast(date(2024, 1, 11), 6)
        service = self._service(fenced(short), fenced(make_forecast(date(2024, 1, 11), 7)))

        with self.assertRaises(ResponseFormatError):
            service.generate('P1', 7)

        self.assertEqual(len(self.model.prompts), 1)
        self.assertIsNone(self.forecasts.latest('P1'))

    def test_reply_must_start_after_last_history_day(self):
        seed_history(self.ledger, 'P1', 10)
        service = self._service(fenced(make_forecast(date(2024, 1, 10), 7)))

        with self.assertRaises(ResponseFormatError) as context:
            service.generate('P1', 7)

        self.assertEqual(context.exception.field, 'daily_forecasts[0].date')

    def test_model_failure_propagates(self):
        seed_history(self.ledger, 'P1', 10)
        service = self._service(DependencyError("model endpoint unreachable"))

        with self.assertRaises(DependencyError):
            service.generate('P1', 7)

        self.assertIsNone(self.forecasts.latest('P1'))

    def test_versions_are_appended_and_latest_is_newest(self):
        seed_history(self.ledger, 'P1', 10)
        first = make_forecast(date(2024, 1, 11), 7, predicted=5.0)
        second = make_forecast(date(2024, 1, 11), 7, predicted=9.0)
        service = self._service(fenced(first), fenced(second))

        service.generate('P1', 7)
        service.generate('P1', 7)

        versions = service.list_forecasts('P1')
        self.assertEqual([v.generated_at for v in versions], [SECOND_RUN, FIRST_RUN])
        self.assertEqual(versions[1].forecast, first)
        self.assertEqual(service.latest('P1').forecast, second)

    def test_latest_is_idempotent(self):
        seed_history(self.ledger, 'P1', 10)
        service = self._service(fenced(make_forecast(date(2024, 1, 11), 7)))
        service.generate('P1', 7)

        self.assertEqual(service.latest('P1').to_dict(), service.latest('P1').to_dict())

    def test_latest_without_forecast(self):
        service = self._service('{}')

        with self.assertRaises(NotFoundError):
            service.latest('P404')


if __name__ == '__main__':
    unittest.main()
