# demand_forecasting/db/interface.py
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional

from demand_forecasting.models import SalesRecord, ForecastRecord, Product


class SalesLedgerStore(ABC):
    """Per-product, per-day sales history keyed by (product_id, date)."""

    @abstractmethod
    def put(self, record: SalesRecord) -> SalesRecord:
        """Insert a record, overwriting any existing record for the same key."""
        pass

    @abstractmethod
    def get(self, product_id: str, sale_date: date) -> Optional[SalesRecord]:
        """Get the record for one product and day."""
        pass

    @abstractmethod
    def list_for_product(self, product_id: str) -> List[SalesRecord]:
        """Get every record for a product, in no particular order."""
        pass

    @abstractmethod
    def summary(self) -> Dict[str, Any]:
        """Aggregate counts over the whole ledger."""
        pass


class ForecastStore(ABC):
    """Append-only history of generated forecasts."""

    @abstractmethod
    def append(self, record: ForecastRecord) -> ForecastRecord:
        """Store a new forecast version."""
        pass

    @abstractmethod
    def latest(self, product_id: str) -> Optional[ForecastRecord]:
        """Get the version with the greatest generated_at for a product."""
        pass

    @abstractmethod
    def list_versions(self, product_id: Optional[str] = None) -> List[ForecastRecord]:
        """Get stored versions, newest first."""
        pass


class ProductCatalog(ABC):
    """Keyed storage of product metadata."""

    @abstractmethod
    def get(self, product_id: str) -> Optional[Product]:
        pass

    @abstractmethod
    def list_all(self) -> List[Product]:
        pass

    @abstractmethod
    def put(self, product: Product) -> Product:
        pass

    @abstractmethod
    def update(self, product_id: str, changes: Dict[str, Any]) -> Optional[Product]:
        """Apply field changes; returns None when the product does not exist."""
        pass

    @abstractmethod
    def delete(self, product_id: str) -> None:
        pass
