"""
Routes for sales history ingestion and lookup.
"""
from flask import Blueprint, jsonify, request

from demand_forecasting.exceptions import ValidationError

from ._helpers import get_services, json_body

sales_data_bp = Blueprint('sales_data', __name__, url_prefix='/sales-data')


@sales_data_bp.route('/upload', methods=['POST'])
def upload_sales_data():
    """Ingest a CSV upload of daily sales records."""
    body = json_body()
    csv_data = body.get('csvData')
    if not isinstance(csv_data, str) or not csv_data.strip():
        raise ValidationError("CSV data is required")

    result = get_services().ingestion.ingest(csv_data, body.get('filename'))
    response = {'message': 'Sales data uploaded successfully'}
    response.update(result.to_dict())
    return jsonify(response)


@sales_data_bp.route('', methods=['POST'])
def add_sales_record():
    """Store a single day of sales for one product."""
    record = get_services().ingestion.add_record(json_body())
    return jsonify({'message': 'Sales record created successfully', 'record': record.to_dict()}), 201


@sales_data_bp.route('', methods=['GET'])
def get_sales_data():
    """Sales history for one product, or a ledger summary when no product is given."""
    ingestion = get_services().ingestion
    product_id = request.args.get('product_id')
    if product_id:
        return jsonify({'salesData': [record.to_dict() for record in ingestion.history(product_id)]})
    return jsonify({'summary': ingestion.summary()})
