# demand_forecasting/services/forecast_service.py
import logging
from typing import Callable, List, Optional

from demand_forecasting import logging_setup
from demand_forecasting.db.interface import ForecastStore
from demand_forecasting.exceptions import ForecastingError, NotFoundError
from demand_forecasting.models import ForecastRecord, FORECAST_RECORD_SCHEMA_VERSION
from demand_forecasting.services.model_client import ForecastModel
from demand_forecasting.services.request_builder import ForecastRequestBuilder
from demand_forecasting.services.response_parser import parse_forecast_response
from demand_forecasting.utils.date_utils import utc_now

logger = logging.getLogger(__name__)


class ForecastService:
    """Runs the forecast pipeline: build request, call model, validate, persist."""

    def __init__(self, builder: ForecastRequestBuilder, model: ForecastModel,
                 forecasts: ForecastStore, clock: Callable = utc_now):
        """Initialize the forecast service.

        Args:
            builder: Request builder
            model: Forecasting model handle
            forecasts: Forecast history store
            clock: Source of generation timestamps
        """
        self.builder = builder
        self.model = model
        self.forecasts = forecasts
        self.clock = clock

    def generate(self, product_id: str, horizon_days: int) -> ForecastRecord:
        """Generate and store a new forecast version.

        No stage is retried; the first failure propagates unchanged.
        """
        invoked_at = self.clock()
        log_info = logging_setup.logger.request_start_log(
            'forecast generation', {'product_id': product_id, 'forecast_days': horizon_days}
        )

        try:
            request = self.builder.build(product_id, horizon_days)
            raw_response = self.model.complete(request.prompt)
            forecast = parse_forecast_response(raw_response, request.horizon_days, request.forecast_start)

            record = ForecastRecord(
                product_id=product_id,
                generated_at=invoked_at,
                forecast_days=request.horizon_days,
                data_points_used=len(request.historical_records),
                forecast=forecast,
                schema_version=FORECAST_RECORD_SCHEMA_VERSION
            )
            self.forecasts.append(record)
        except ForecastingError as e:
            logger.error(f"Forecast generation for {product_id} failed with {e.__class__.__name__}: {e.message}")
            logging_setup.logger.request_end_log(log_info, success=False, result_info=e.to_dict())
            raise

        logging_setup.logger.request_end_log(log_info, result_info=record.metadata_dict())
        return record

    def latest(self, product_id: str) -> ForecastRecord:
        """Get the most recent forecast version for a product.

        Raises:
            NotFoundError if the product has never been forecast
        """
        record = self.forecasts.latest(product_id)
        if record is None:
            raise NotFoundError("No forecast found for this product", details={'product_id': product_id})
        return record

    def list_forecasts(self, product_id: Optional[str] = None) -> List[ForecastRecord]:
        return self.forecasts.list_versions(product_id)
