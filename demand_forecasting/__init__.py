from .config import config
from .logging_setup import logger, get_logger
from .exceptions import (
    ForecastingError, SchemaError, ValidationError, InsufficientDataError,
    NotFoundError, ResponseFormatError, DependencyError
)

__version__ = '1.0.0'

__all__ = [
    'config',
    'logger',
    'get_logger',
    'ForecastingError',
    'SchemaError',
    'ValidationError',
    'InsufficientDataError',
    'NotFoundError',
    'ResponseFormatError',
    'DependencyError'
]
