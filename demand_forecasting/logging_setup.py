"""
Logging for the Demand Forecasting service.

Module loggers under ``demand_forecasting.*`` write to ``service.log``; the
HTTP layer, the CLI and the forecast pipeline get their own files. Console
output, when enabled, comes only from the root handler.
"""
import logging
import logging.handlers
import time
from pathlib import Path

from demand_forecasting.config import config

PACKAGE_LOGGER = 'demand_forecasting'
PIPELINE_LOGGER = 'pipeline'

# Named loggers and the file each one writes to
LOG_FILES = {
    PACKAGE_LOGGER: 'service.log',
    'api': 'api.log',
    'cli': 'cli.log',
    PIPELINE_LOGGER: 'pipeline.log',
}


class Logger:
    """Logging manager for the Demand Forecasting service."""

    _instance = None
    _loggers = {}

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        settings = config.log_config
        self._log_dir = Path(settings['directory'])
        self._log_dir.mkdir(parents=True, exist_ok=True)
        self._level = getattr(logging, settings['level'].upper(), logging.INFO)
        self._formatter = logging.Formatter(settings['format'])
        self._max_bytes = settings['max_size_mb'] * 1024 * 1024
        self._backup_count = settings['backup_count']

        root_logger = logging.getLogger()
        root_logger.setLevel(self._level)
        if settings['console_output'] and not root_logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(self._formatter)
            root_logger.addHandler(console_handler)

        self._initialized = True
        self.get_logger(PACKAGE_LOGGER)

    def get_logger(self, name):
        """Get a named logger with a rotating file of its own.

        Names not listed in LOG_FILES log to ``<name>.log``.
        """
        if name in self._loggers:
            return self._loggers[name]

        named_logger = logging.getLogger(name)
        named_logger.setLevel(self._level)

        log_file = self._log_dir / LOG_FILES.get(name, f"{name}.log")
        if not any(getattr(handler, 'baseFilename', None) == str(log_file.resolve())
                   for handler in named_logger.handlers):
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=self._max_bytes,
                backupCount=self._backup_count
            )
            file_handler.setFormatter(self._formatter)
            named_logger.addHandler(file_handler)

        self._loggers[name] = named_logger
        return named_logger

    def log_exception(self, logger_name, exception, message=None):
        """Log an exception with its traceback.

        Args:
            logger_name: Logger name
            exception: Exception object
            message: Optional message to include
        """
        text = f"{message}: {exception}" if message else str(exception)
        self.get_logger(logger_name).error(text, exc_info=exception)

    def request_start_log(self, operation, additional_info=None):
        """Log the start of a forecast pipeline request.

        Returns:
            Dictionary to hand back to request_end_log
        """
        self.get_logger(PIPELINE_LOGGER).info(
            f"Starting {operation}" + (f" {additional_info}" if additional_info else "")
        )
        return {'operation': operation, 'started': time.monotonic()}

    def request_end_log(self, log_info, success=True, result_info=None):
        """Log the outcome and duration of a forecast pipeline request."""
        pipeline_logger = self.get_logger(PIPELINE_LOGGER)
        elapsed_ms = (time.monotonic() - log_info['started']) * 1000
        outcome = "Completed" if success else "Failed"
        level = logging.INFO if success else logging.ERROR

        pipeline_logger.log(level, f"{outcome} {log_info['operation']} in {elapsed_ms:.0f} ms")
        if result_info:
            pipeline_logger.log(level, f"Result: {result_info}")


# Global logger instance
logger = Logger()


def get_logger(name):
    """Get a logger with the specified name."""
    return logger.get_logger(name)


def log_exception(logger_name, exception, message=None):
    """Log an exception with its traceback."""
    logger.log_exception(logger_name, exception, message)
