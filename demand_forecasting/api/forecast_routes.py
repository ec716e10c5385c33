"""
Routes for forecast generation and retrieval.
"""
from flask import Blueprint, jsonify

from demand_forecasting.exceptions import ValidationError

from ._helpers import get_services, json_body

forecast_bp = Blueprint('forecasts', __name__, url_prefix='/forecasts')


def _forecast_days(value, default):
    if value is None:
        return default
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    raise ValidationError("forecast_days must be an integer", details={'forecast_days': value})


@forecast_bp.route('', methods=['POST'])
def generate_forecast():
    services = get_services()
    body = json_body()
    product_id = body.get('product_id')
    if not product_id:
        raise ValidationError("product_id is required")

    forecast_days = _forecast_days(body.get('forecast_days'), services.default_forecast_days)
    record = services.forecasting.generate(str(product_id), forecast_days)
    return jsonify({
        'message': 'Forecast generated successfully',
        'forecast': record.forecast,
        'metadata': record.metadata_dict()
    })


@forecast_bp.route('/<product_id>', methods=['GET'])
def get_forecast(product_id):
    record = get_services().forecasting.latest(product_id)
    return jsonify({'forecast': record.to_dict()})


@forecast_bp.route('', methods=['GET'])
def list_forecasts():
    records = get_services().forecasting.list_forecasts()
    return jsonify({'forecasts': [record.to_dict() for record in records]})
