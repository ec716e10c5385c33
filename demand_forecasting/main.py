"""
Command line interface for the Demand Forecasting service.

Provides database setup, CSV ingestion, forecast generation and lookup, and
the HTTP server.
"""
import argparse
import sys
from pathlib import Path

from tabulate import tabulate

from demand_forecasting.exceptions import ForecastingError, ValidationError
from demand_forecasting.logging_setup import logger, get_logger


def init_db(services, args):
    """Create the database tables."""
    services.database.create_all()
    print(f"Database ready at {services.database.engine.url.render_as_string(hide_password=True)}")
    return 0


def upload(services, args):
    """Ingest a CSV file of daily sales."""
    path = Path(args.csv_file)
    try:
        csv_text = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(f"Cannot read CSV file {path}: {e}")
    result = services.ingestion.ingest(csv_text, path.name)

    print(f"Processed: {result.processed}")
    print(f"Errors: {result.errors}")
    if result.rejected:
        print(tabulate(
            [[row_error.row_number, row_error.reason] for row_error in result.rejected],
            headers=['Row', 'Reason']
        ))
    if result.archived_as:
        print(f"Archived as: {result.archived_as}")
    return 0


def print_forecast(record):
    """Print a stored forecast version as tables."""
    forecast = record.forecast
    summary = forecast['forecast_summary']
    recommendations = forecast['recommendations']

    print(f"\nForecast for {record.product_id} generated at {record.generated_at.isoformat()}")
    print(f"Forecast days: {record.forecast_days}, data points used: {record.data_points_used}\n")
    print(tabulate([
        ['Total predicted demand', summary['total_predicted_demand']],
        ['Average daily demand', summary['average_daily_demand']],
        ['Confidence level', summary['confidence_level']],
        ['Trend', summary['trend']],
        ['Seasonality detected', summary['seasonality_detected']],
        ['Reorder point', recommendations['reorder_point']],
        ['Safety stock', recommendations['safety_stock']],
        ['Recommended order quantity', recommendations['recommended_order_quantity']],
    ], headers=['Metric', 'Value']))
    print()
    print(tabulate(
        [
            [day['date'], day['predicted_demand'],
             day['confidence_interval']['lower'], day['confidence_interval']['upper']]
            for day in forecast['daily_forecasts']
        ],
        headers=['Date', 'Predicted', 'Lower', 'Upper']
    ))
    print(f"\nJustification: {recommendations['justification']}")


def forecast(services, args):
    """Generate a new forecast version."""
    days = args.days or services.default_forecast_days
    record = services.forecasting.generate(args.product_id, days)
    print_forecast(record)
    return 0


def latest(services, args):
    """Show the latest forecast version."""
    print_forecast(services.forecasting.latest(args.product_id))
    return 0


def serve(services, args):
    """Run the HTTP server."""
    from demand_forecasting.api import create_app

    app = create_app(services)
    app.run(host=args.host, port=args.port)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description='Demand Forecasting service')
    parser.add_argument('--database-url', help='Override the configured database URL')
    subparsers = parser.add_subparsers(dest='command', required=True)

    init_parser = subparsers.add_parser('init-db', help='Create database tables')
    init_parser.set_defaults(func=init_db)

    upload_parser = subparsers.add_parser('upload', help='Ingest a sales CSV file')
    upload_parser.add_argument('csv_file', help='Path to CSV with product_id,date,quantity_sold,price')
    upload_parser.set_defaults(func=upload)

    forecast_parser = subparsers.add_parser('forecast', help='Generate a demand forecast')
    forecast_parser.add_argument('product_id', help='Product ID')
    forecast_parser.add_argument('--days', type=int, help='Forecast horizon in days')
    forecast_parser.set_defaults(func=forecast)

    latest_parser = subparsers.add_parser('latest', help='Show the latest forecast for a product')
    latest_parser.add_argument('product_id', help='Product ID')
    latest_parser.set_defaults(func=latest)

    serve_parser = subparsers.add_parser('serve', help='Run the HTTP API')
    serve_parser.add_argument('--host', default='127.0.0.1', help='Bind address')
    serve_parser.add_argument('--port', type=int, default=5000, help='Port')
    serve_parser.set_defaults(func=serve)

    return parser


def main(argv=None):
    from demand_forecasting.bootstrap import build_services

    args = build_parser().parse_args(argv)
    log = get_logger('cli')

    try:
        services = build_services(args.database_url)
        log.info(f"Running command {args.command}")
        return args.func(services, args)
    except ForecastingError as e:
        logger.log_exception('cli', e, f"Command {args.command} failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
