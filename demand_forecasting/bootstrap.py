# demand_forecasting/bootstrap.py
"""
Process-start wiring.

Every collaborator (database, stores, archive, model client) is built once
here and passed explicitly into the services that use it.
"""
import logging
from typing import Optional

from demand_forecasting.config import config
from demand_forecasting.db import (
    DatabaseConnection, SqlSalesLedgerStore, SqlForecastStore, SqlProductCatalog
)
from demand_forecasting.services import (
    ArchiveStore, LocalArchiveStore, ForecastModel, OpenAIForecastModel,
    SalesIngestionService, ForecastRequestBuilder, ForecastService, ProductService
)

logger = logging.getLogger(__name__)


class Services:
    """Long-lived service handles shared by the HTTP and CLI entry points."""

    def __init__(self, database: DatabaseConnection, model: ForecastModel,
                 archive: Optional[ArchiveStore] = None, rules: Optional[dict] = None):
        rules = rules or config.business_rules
        self.database = database
        self.model = model
        self.archive = archive
        self.default_forecast_days = rules['default_forecast_days']

        self.ledger = SqlSalesLedgerStore(database)
        self.forecasts = SqlForecastStore(database)
        self.catalog = SqlProductCatalog(database)

        self.ingestion = SalesIngestionService(self.ledger, archive, delimiter=rules['csv_delimiter'])
        self.builder = ForecastRequestBuilder(
            self.ledger,
            self.catalog,
            min_forecast_days=rules['min_forecast_days'],
            max_forecast_days=rules['max_forecast_days'],
            max_prompt_records=rules['max_prompt_records']
        )
        self.forecasting = ForecastService(self.builder, model, self.forecasts)
        self.products = ProductService(self.catalog)


def build_services(database_url: Optional[str] = None, model: Optional[ForecastModel] = None,
                   archive: Optional[ArchiveStore] = None, create_tables: bool = True) -> Services:
    """Build the service graph from configuration.

    Args:
        database_url: Overrides the configured database URL
        model: Overrides the configured OpenAI-backed model
        archive: Overrides the configured local upload archive
        create_tables: Create missing tables on startup

    Returns:
        Services instance
    """
    database = DatabaseConnection(database_url)
    if create_tables:
        database.create_all()

    services = Services(
        database,
        model or OpenAIForecastModel(),
        archive or LocalArchiveStore()
    )
    logger.info(f"Services initialized against {database.engine.url.render_as_string(hide_password=True)}")
    return services
