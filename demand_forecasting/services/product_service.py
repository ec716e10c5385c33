# demand_forecasting/services/product_service.py
import logging
import math
from typing import Any, Dict, List

from demand_forecasting.db.interface import ProductCatalog
from demand_forecasting.exceptions import NotFoundError, ValidationError
from demand_forecasting.models import Product
from demand_forecasting.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

REQUIRED_PRODUCT_FIELDS = ('product_id', 'name', 'category', 'current_price')


def _parse_price(value) -> float:
    try:
        price = float(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError("current_price must be a number")
    if isinstance(value, bool) or not math.isfinite(price) or price < 0:
        raise ValidationError("current_price must be a non-negative number")
    return price


class ProductService:
    """Service for the product catalog."""

    def __init__(self, catalog: ProductCatalog, clock=utc_now):
        self.catalog = catalog
        self.clock = clock

    def list_products(self) -> List[Product]:
        return self.catalog.list_all()

    def get_product(self, product_id: str) -> Product:
        product = self.catalog.get(product_id)
        if product is None:
            raise NotFoundError("Product not found", details={'product_id': product_id})
        return product

    def create_product(self, data: Dict[str, Any]) -> Product:
        """Create or replace a product.

        Raises:
            ValidationError if a required field is missing or the price is invalid
        """
        missing = [field for field in REQUIRED_PRODUCT_FIELDS if data.get(field) in (None, '')]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(REQUIRED_PRODUCT_FIELDS)}",
                                  details={'missing': missing})

        timestamp = self.clock()
        product = Product(
            product_id=str(data['product_id']),
            name=str(data['name']),
            category=str(data['category']),
            current_price=_parse_price(data['current_price']),
            created_at=timestamp,
            updated_at=timestamp
        )
        stored = self.catalog.put(product)
        logger.info(f"Created product {stored.product_id}")
        return stored

    def update_product(self, product_id: str, data: Dict[str, Any]) -> Product:
        """Update name, category and/or current_price of a product."""
        changes = {}
        for field in ('name', 'category'):
            if data.get(field):
                changes[field] = str(data[field])
        if data.get('current_price') is not None:
            changes['current_price'] = _parse_price(data['current_price'])
        changes['updated_at'] = self.clock()

        product = self.catalog.update(product_id, changes)
        if product is None:
            raise NotFoundError("Product not found", details={'product_id': product_id})
        logger.info(f"Updated product {product_id}: {sorted(changes)}")
        return product

    def delete_product(self, product_id: str) -> None:
        self.catalog.delete(product_id)
        logger.info(f"Deleted product {product_id}")
