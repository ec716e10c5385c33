# demand_forecasting/models.py
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, JSON, Index, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Bumped whenever the stored shape of a record changes
SALES_RECORD_SCHEMA_VERSION = 1
FORECAST_RECORD_SCHEMA_VERSION = 1


class Product(Base):
    """Catalog entry for a product that can be forecast."""
    __tablename__ = 'product'

    product_id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    current_price = Column(Float, nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'name': self.name,
            'category': self.category,
            'current_price': self.current_price,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Product(product_id={self.product_id}, name={self.name})>"


class SalesRecord(Base):
    """One day of sales for one product.

    At most one row exists per (product_id, sale_date); re-ingesting a day
    overwrites it.
    """
    __tablename__ = 'sales_record'

    id = Column(Integer, primary_key=True)
    product_id = Column(String(100), nullable=False)
    sale_date = Column(Date, nullable=False)
    quantity_sold = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    revenue = Column(Float, nullable=False)
    ingested_at = Column(DateTime, nullable=False)
    schema_version = Column(Integer, nullable=False, default=SALES_RECORD_SCHEMA_VERSION)

    __table_args__ = (
        UniqueConstraint('product_id', 'sale_date', name='uq_sales_record_product_date'),
        Index('idx_sales_record_product', 'product_id'),
    )

    @property
    def key(self):
        return (self.product_id, self.sale_date)

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'date': self.sale_date.isoformat(),
            'quantity_sold': self.quantity_sold,
            'price': self.price,
            'revenue': self.revenue,
            'ingested_at': self.ingested_at.isoformat() if self.ingested_at else None,
            'schema_version': self.schema_version,
        }

    def __repr__(self):
        return f"<SalesRecord(product_id={self.product_id}, date={self.sale_date}, qty={self.quantity_sold})>"


class ForecastRecord(Base):
    """One generated forecast version for a product. Rows are never updated."""
    __tablename__ = 'forecast_record'

    id = Column(Integer, primary_key=True)
    product_id = Column(String(100), nullable=False)
    generated_at = Column(DateTime, nullable=False)
    forecast_days = Column(Integer, nullable=False)
    data_points_used = Column(Integer, nullable=False)
    forecast = Column(JSON, nullable=False)
    schema_version = Column(Integer, nullable=False, default=FORECAST_RECORD_SCHEMA_VERSION)

    __table_args__ = (
        Index('idx_forecast_record_product_generated', 'product_id', 'generated_at'),
    )

    def metadata_dict(self):
        """Generation metadata without the forecast payload."""
        return {
            'product_id': self.product_id,
            'generated_at': self.generated_at.isoformat(),
            'forecast_days': self.forecast_days,
            'data_points_used': self.data_points_used,
        }

    def to_dict(self):
        result = self.metadata_dict()
        result['forecast_data'] = self.forecast
        result['schema_version'] = self.schema_version
        return result

    def __repr__(self):
        return f"<ForecastRecord(product_id={self.product_id}, generated_at={self.generated_at})>"
