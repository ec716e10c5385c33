# demand_forecasting/db/__init__.py
from .connection import DatabaseConnection
from .interface import SalesLedgerStore, ForecastStore, ProductCatalog
from .stores import SqlSalesLedgerStore, SqlForecastStore, SqlProductCatalog

__all__ = [
    'DatabaseConnection',
    'SalesLedgerStore',
    'ForecastStore',
    'ProductCatalog',
    'SqlSalesLedgerStore',
    'SqlForecastStore',
    'SqlProductCatalog'
]
