from .archive_service import ArchiveStore, LocalArchiveStore
from .ingestion_service import SalesIngestionService, IngestionResult, RowError, parse_sales_csv
from .request_builder import ForecastRequest, ForecastRequestBuilder, MIN_HISTORY_RECORDS
from .response_parser import parse_forecast_response, extract_payload
from .model_client import ForecastModel, OpenAIForecastModel
from .forecast_service import ForecastService
from .product_service import ProductService

__all__ = [
    'ArchiveStore',
    'LocalArchiveStore',
    'SalesIngestionService',
    'IngestionResult',
    'RowError',
    'parse_sales_csv',
    'ForecastRequest',
    'ForecastRequestBuilder',
    'MIN_HISTORY_RECORDS',
    'parse_forecast_response',
    'extract_payload',
    'ForecastModel',
    'OpenAIForecastModel',
    'ForecastService',
    'ProductService'
]
