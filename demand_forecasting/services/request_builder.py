# demand_forecasting/services/request_builder.py
"""
Builds the analytical brief sent to the forecasting model.

The brief is rendered deterministically from the product's sales history:
identical history and horizon always yield identical prompt text.
"""
import logging
from datetime import date
from typing import Dict, List, Optional

from demand_forecasting.db.interface import SalesLedgerStore, ProductCatalog
from demand_forecasting.exceptions import InsufficientDataError, ValidationError
from demand_forecasting.models import SalesRecord
from demand_forecasting.utils.date_utils import following_days

logger = logging.getLogger(__name__)

# Hard floor; not configurable
MIN_HISTORY_RECORDS = 7

UNKNOWN = 'Unknown'

RESPONSE_SHAPE = """{
  "forecast_summary": {
    "total_predicted_demand": number,
    "average_daily_demand": number,
    "confidence_level": number (0-100),
    "trend": "increasing|decreasing|stable",
    "seasonality_detected": boolean
  },
  "daily_forecasts": [
    {
      "date": "YYYY-MM-DD",
      "predicted_demand": number,
      "confidence_interval": {
        "lower": number,
        "upper": number
      }
    }
  ],
  "recommendations": {
    "reorder_point": number,
    "safety_stock": number,
    "recommended_order_quantity": number,
    "justification": "string explaining the recommendations"
  },
  "model_insights": {
    "key_patterns": ["pattern1", "pattern2"],
    "risk_factors": ["risk1", "risk2"],
    "accuracy_estimate": number (0-100)
  }
}"""


class ForecastRequest:
    """Everything needed for one model invocation. Never persisted."""

    def __init__(self, product_id: str, horizon_days: int, historical_records: List[SalesRecord],
                 product_info: Dict[str, str], total_records: Optional[int] = None):
        self.product_id = product_id
        self.horizon_days = horizon_days
        self.historical_records = historical_records
        self.product_info = product_info
        self.total_records = total_records if total_records is not None else len(historical_records)
        self.prompt = render_forecast_prompt(self)

    @property
    def last_history_date(self) -> date:
        return self.historical_records[-1].sale_date

    @property
    def forecast_dates(self) -> List[date]:
        return following_days(self.last_history_date, self.horizon_days)

    @property
    def forecast_start(self) -> date:
        return self.forecast_dates[0]


def _format_price(price) -> str:
    if price is None:
        return UNKNOWN
    return f"${float(price):.2f}"


def render_forecast_prompt(request: ForecastRequest) -> str:
    """Render the textual brief for a forecast request."""
    info = request.product_info
    history_lines = '\n'.join(
        f"Date: {record.sale_date.isoformat()}, Quantity Sold: {record.quantity_sold}, "
        f"Revenue: ${record.revenue:.2f}"
        for record in request.historical_records
    )
    dates = request.forecast_dates

    return f"""Analyze the following sales data and generate a demand forecast:

Product Information:
- Product ID: {request.product_id}
- Product Name: {info['name']}
- Category: {info['category']}
- Current Price: {info['price']}

Historical Sales Data ({len(request.historical_records)} data points):
{history_lines}

Please provide a {request.horizon_days}-day demand forecast in the following JSON format:
{RESPONSE_SHAPE}

The "daily_forecasts" list must contain exactly {request.horizon_days} entries, one per consecutive day from {dates[0].isoformat()} to {dates[-1].isoformat()}.
Every confidence interval must satisfy lower <= predicted_demand <= upper, and all demand and stock figures must be non-negative.

Base the forecast on historical trends, seasonal patterns, and statistical analysis. Ensure all numbers are realistic and based on the provided data. Return only the JSON object."""


class ForecastRequestBuilder:
    """Assembles bounded forecast requests from persisted history."""

    def __init__(self, ledger: SalesLedgerStore, catalog: ProductCatalog,
                 min_forecast_days: int = 7, max_forecast_days: int = 365,
                 max_prompt_records: int = 0):
        """Initialize the request builder.

        Args:
            ledger: Sales ledger store
            catalog: Product catalog
            min_forecast_days: Shortest accepted horizon
            max_forecast_days: Longest accepted horizon
            max_prompt_records: Render only the most recent N records (0 renders all)
        """
        self.ledger = ledger
        self.catalog = catalog
        self.min_forecast_days = min_forecast_days
        self.max_forecast_days = max_forecast_days
        self.max_prompt_records = max_prompt_records

    def _validate_horizon(self, horizon_days):
        if isinstance(horizon_days, bool) or not isinstance(horizon_days, int):
            raise ValidationError(f"forecast_days must be an integer, got {horizon_days!r}")
        if not self.min_forecast_days <= horizon_days <= self.max_forecast_days:
            raise ValidationError(
                f"forecast_days must be between {self.min_forecast_days} and {self.max_forecast_days}",
                details={'forecast_days': horizon_days}
            )

    def _product_info(self, product_id: str) -> Dict[str, str]:
        product = self.catalog.get(product_id)
        if product is None:
            logger.info(f"Product {product_id} not in catalog, forecasting from sales history alone")
            return {'name': UNKNOWN, 'category': UNKNOWN, 'price': UNKNOWN}

        return {
            'name': product.name or UNKNOWN,
            'category': product.category or UNKNOWN,
            'price': _format_price(product.current_price)
        }

    def build(self, product_id: str, horizon_days: int) -> ForecastRequest:
        """Build the request for one forecast.

        Raises:
            InsufficientDataError if fewer than 7 records exist for the product
            ValidationError if the horizon is outside the accepted range
        """
        records = self.ledger.list_for_product(product_id)
        if len(records) < MIN_HISTORY_RECORDS:
            raise InsufficientDataError(len(records), MIN_HISTORY_RECORDS)

        self._validate_horizon(horizon_days)

        ordered = sorted(records, key=lambda record: record.sale_date)
        if self.max_prompt_records and len(ordered) > self.max_prompt_records:
            ordered = ordered[-self.max_prompt_records:]

        request = ForecastRequest(
            product_id=product_id,
            horizon_days=horizon_days,
            historical_records=ordered,
            product_info=self._product_info(product_id),
            total_records=len(records)
        )
        logger.debug(
            f"Built forecast request for {product_id}: {len(ordered)} of {len(records)} records, "
            f"{horizon_days} days"
        )
        return request
