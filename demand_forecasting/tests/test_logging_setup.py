"""
Tests for the service logging setup.
"""
import logging
import logging.handlers
import unittest
from pathlib import Path

from demand_forecasting.logging_setup import logger, LOG_FILES, PACKAGE_LOGGER, PIPELINE_LOGGER


def _file_names(named_logger):
    return [Path(handler.baseFilename).name for handler in named_logger.handlers
            if isinstance(handler, logging.handlers.RotatingFileHandler)]


class TestLogger(unittest.TestCase):

    def test_named_loggers_write_to_their_own_file(self):
        for name in ('api', 'cli', PIPELINE_LOGGER, PACKAGE_LOGGER):
            with self.subTest(name=name):
                self.assertEqual(_file_names(logger.get_logger(name)), [LOG_FILES[name]])

    def test_repeated_lookup_adds_no_handlers(self):
        first = logger.get_logger('cli')
        count = len(first.handlers)

        self.assertIs(logger.get_logger('cli'), first)
        self.assertEqual(len(first.handlers), count)

    def test_module_loggers_reach_service_log(self):
        module_logger = logging.getLogger('demand_forecasting.services.forecast_service')

        with self.assertLogs(PACKAGE_LOGGER, level='INFO') as captured:
            module_logger.info("stage finished")

        self.assertIn("stage finished", captured.output[0])

    def test_failed_request_logged_as_error(self):
        log_info = logger.request_start_log('forecast generation', {'product_id': 'P1'})

        with self.assertLogs(PIPELINE_LOGGER, level='INFO') as captured:
            logger.request_end_log(log_info, success=False, result_info={'error': 'ResponseFormatError'})

        self.assertTrue(captured.output[0].startswith('ERROR:pipeline:Failed forecast generation in'))
        self.assertIn('ResponseFormatError', captured.output[1])

    def test_log_exception_includes_traceback(self):
        try:
            raise ValueError("bad row")
        except ValueError as e:
            with self.assertLogs('api', level='ERROR') as captured:
                logger.log_exception('api', e, "Unhandled error")

        self.assertIn("Unhandled error: bad row", captured.output[0])
        self.assertIn("Traceback", captured.output[0])


if __name__ == '__main__':
    unittest.main()
