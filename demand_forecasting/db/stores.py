# demand_forecasting/db/stores.py
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from demand_forecasting.db.connection import DatabaseConnection
from demand_forecasting.db.interface import SalesLedgerStore, ForecastStore, ProductCatalog
from demand_forecasting.exceptions import DependencyError
from demand_forecasting.models import SalesRecord, ForecastRecord, Product

logger = logging.getLogger(__name__)

# sqlite3 raises OverflowError for integers outside the 64-bit range
STORE_ERRORS = (SQLAlchemyError, OverflowError)

PRODUCT_FIELDS = ('name', 'category', 'current_price')


class SqlSalesLedgerStore(SalesLedgerStore):
    """Sales ledger backed by the sales_record table."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def _write(self, session, record: SalesRecord) -> SalesRecord:
        stored = session.query(SalesRecord).filter(
            SalesRecord.product_id == record.product_id,
            SalesRecord.sale_date == record.sale_date
        ).one_or_none()

        if stored is None:
            stored = SalesRecord(product_id=record.product_id, sale_date=record.sale_date)
            session.add(stored)

        stored.quantity_sold = record.quantity_sold
        stored.price = record.price
        stored.revenue = record.revenue
        stored.ingested_at = record.ingested_at
        stored.schema_version = record.schema_version
        return stored

    def put(self, record: SalesRecord) -> SalesRecord:
        try:
            try:
                with self.db.session_scope() as session:
                    return self._write(session, record)
            except IntegrityError:
                # Another writer inserted the same key between our read and insert
                logger.debug(f"Retrying sales record write for {record.key} as overwrite")
                with self.db.session_scope() as session:
                    return self._write(session, record)
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to store sales record: {str(e)}")

    def get(self, product_id: str, sale_date: date) -> Optional[SalesRecord]:
        try:
            with self.db.session_scope() as session:
                return session.query(SalesRecord).filter(
                    SalesRecord.product_id == product_id,
                    SalesRecord.sale_date == sale_date
                ).one_or_none()
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to read sales record: {str(e)}")

    def list_for_product(self, product_id: str) -> List[SalesRecord]:
        try:
            with self.db.session_scope() as session:
                return session.query(SalesRecord).filter(
                    SalesRecord.product_id == product_id
                ).all()
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to read sales history: {str(e)}")

    def summary(self) -> Dict[str, Any]:
        try:
            with self.db.session_scope() as session:
                total, revenue, products, earliest, latest = session.query(
                    func.count(SalesRecord.id),
                    func.sum(SalesRecord.revenue),
                    func.count(func.distinct(SalesRecord.product_id)),
                    func.min(SalesRecord.sale_date),
                    func.max(SalesRecord.sale_date)
                ).one()
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to summarize sales data: {str(e)}")

        return {
            'totalRecords': total or 0,
            'totalRevenue': float(revenue or 0.0),
            'uniqueProducts': products or 0,
            'dateRange': {
                'earliest': earliest.isoformat() if earliest else None,
                'latest': latest.isoformat() if latest else None
            }
        }


class SqlForecastStore(ForecastStore):
    """Forecast history backed by the forecast_record table."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def append(self, record: ForecastRecord) -> ForecastRecord:
        try:
            with self.db.session_scope() as session:
                session.add(record)
            return record
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to store forecast: {str(e)}")

    def latest(self, product_id: str) -> Optional[ForecastRecord]:
        try:
            with self.db.session_scope() as session:
                return session.query(ForecastRecord).filter(
                    ForecastRecord.product_id == product_id
                ).order_by(
                    ForecastRecord.generated_at.desc(),
                    ForecastRecord.id.desc()
                ).first()
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to read forecast: {str(e)}")

    def list_versions(self, product_id: Optional[str] = None) -> List[ForecastRecord]:
        try:
            with self.db.session_scope() as session:
                query = session.query(ForecastRecord)
                if product_id:
                    query = query.filter(ForecastRecord.product_id == product_id)
                return query.order_by(
                    ForecastRecord.generated_at.desc(),
                    ForecastRecord.id.desc()
                ).all()
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to list forecasts: {str(e)}")


class SqlProductCatalog(ProductCatalog):
    """Product metadata backed by the product table."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def get(self, product_id: str) -> Optional[Product]:
        try:
            with self.db.session_scope() as session:
                return session.get(Product, product_id)
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to read product: {str(e)}")

    def list_all(self) -> List[Product]:
        try:
            with self.db.session_scope() as session:
                return session.query(Product).order_by(Product.product_id).all()
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to list products: {str(e)}")

    def put(self, product: Product) -> Product:
        try:
            with self.db.session_scope() as session:
                return session.merge(product)
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to store product: {str(e)}")

    def update(self, product_id: str, changes: Dict[str, Any]) -> Optional[Product]:
        try:
            with self.db.session_scope() as session:
                product = session.get(Product, product_id)
                if product is None:
                    return None
                for field, value in changes.items():
                    if field in PRODUCT_FIELDS or field == 'updated_at':
                        setattr(product, field, value)
                return product
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to update product: {str(e)}")

    def delete(self, product_id: str) -> None:
        try:
            with self.db.session_scope() as session:
                session.query(Product).filter(Product.product_id == product_id).delete()
        except STORE_ERRORS as e:
            raise DependencyError(f"Failed to delete product: {str(e)}")
