"""
Shared builders for tests: in-memory database, canned model replies, seeded history.
"""
import json
from datetime import date, timedelta

from demand_forecasting.bootstrap import Services
from demand_forecasting.db import DatabaseConnection
from demand_forecasting.services.model_client import ForecastModel
from demand_forecasting.services.ingestion_service import build_sales_record

TEST_RULES = {
    'default_forecast_days': 30,
    'min_forecast_days': 7,
    'max_forecast_days': 365,
    'max_prompt_records': 0,
    'csv_delimiter': ','
}


class CannedForecastModel(ForecastModel):
    """Returns fixed replies and remembers every prompt it was sent."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


def make_forecast(start, days, predicted=12.0):
    """A valid forecast object for `days` days starting at `start`."""
    return {
        'forecast_summary': {
            'total_predicted_demand': predicted * days,
            'average_daily_demand': predicted,
            'confidence_level': 80,
            'trend': 'stable',
            'seasonality_detected': False
        },
        'daily_forecasts': [
            {
                'date': (start + timedelta(days=offset)).isoformat(),
                'predicted_demand': predicted,
                'confidence_interval': {'lower': predicted - 2, 'upper': predicted + 2}
            }
            for offset in range(days)
        ],
        'recommendations': {
            'reorder_point': 40,
            'safety_stock': 15,
            'recommended_order_quantity': 120,
            'justification': 'Demand is flat; cover two weeks plus safety stock.'
        },
        'model_insights': {
            'key_patterns': ['Flat weekday demand'],
            'risk_factors': ['Short history'],
            'accuracy_estimate': 75
        }
    }


def fenced(forecast):
    """Wrap a forecast the way chat models usually answer."""
    return f"Here is the forecast:\n```json\n{json.dumps(forecast, indent=2)}\n```"


def in_memory_database():
    database = DatabaseConnection('sqlite://')
    database.create_all()
    return database


def in_memory_services(model=None, archive=None, rules=None):
    return Services(in_memory_database(), model or CannedForecastModel('{}'), archive, rules or TEST_RULES)


def seed_history(ledger, product_id, days, first_day=date(2024, 1, 1), quantity=10, price=5.0):
    """Store `days` consecutive daily records and return the last day."""
    for offset in range(days):
        ledger.put(build_sales_record({
            'product_id': product_id,
            'date': (first_day + timedelta(days=offset)).isoformat(),
            'quantity_sold': quantity + offset,
            'price': price
        }))
    return first_day + timedelta(days=days - 1)
