# demand_forecasting/services/ingestion_service.py
"""
Bulk sales-history ingestion.

Uploaded CSV text is split into lines, blank lines are dropped, the header is
checked, and every data row is either turned into a SalesRecord or rejected
with a reason. Rejected rows never abort the batch; a bad header does.
"""
import logging
import math
from typing import Any, Dict, List, Optional

from demand_forecasting.db.interface import SalesLedgerStore
from demand_forecasting.exceptions import SchemaError, ValidationError, DependencyError
from demand_forecasting.models import SalesRecord, SALES_RECORD_SCHEMA_VERSION
from demand_forecasting.services.archive_service import ArchiveStore
from demand_forecasting.utils.date_utils import parse_calendar_date, utc_now

logger = logging.getLogger(__name__)

REQUIRED_HEADERS = ('product_id', 'date', 'quantity_sold', 'price')

COLUMN_COUNT_MISMATCH = 'Column count mismatch'
MISSING_REQUIRED_DATA = 'Missing required data'
INVALID_NUMERIC_VALUES = 'Invalid numeric values'
INVALID_DATE_VALUE = 'Invalid date value'

# Upper bound of the 32-bit quantity_sold column
MAX_QUANTITY_SOLD = 2 ** 31 - 1


class RowError:
    """A rejected upload row. Row 1 is the header line."""

    def __init__(self, row_number: int, reason: str):
        self.row_number = row_number
        self.reason = reason

    def __str__(self):
        return f"Row {self.row_number}: {self.reason}"

    def __repr__(self):
        return f"<RowError(row_number={self.row_number}, reason={self.reason!r})>"

    def __eq__(self, other):
        if not isinstance(other, RowError):
            return NotImplemented
        return (self.row_number, self.reason) == (other.row_number, other.reason)

    def to_dict(self):
        return {'row_number': self.row_number, 'reason': self.reason}


class IngestionResult:
    """Outcome of one upload."""

    def __init__(self, accepted: List[SalesRecord], rejected: List[RowError]):
        self.accepted = accepted
        self.rejected = rejected
        self.archived_as = None

    @property
    def processed(self) -> int:
        return len(self.accepted)

    @property
    def errors(self) -> int:
        return len(self.rejected)

    @property
    def error_details(self) -> List[str]:
        return [str(row_error) for row_error in self.rejected]

    def to_dict(self):
        return {
            'processed': self.processed,
            'errors': self.errors,
            'errorDetails': self.error_details
        }


def _parse_number(value: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Non-finite number: {value}")
    return number


def build_sales_record(fields: Dict[str, Any], ingested_at=None) -> SalesRecord:
    """Validate one row's fields and build a SalesRecord.

    Args:
        fields: Mapping with at least the required headers
        ingested_at: Ingestion timestamp (defaults to now)

    Returns:
        Unsaved SalesRecord with revenue derived from quantity and price

    Raises:
        ValidationError with the rejection reason as its message
    """
    values = {}
    for header in REQUIRED_HEADERS:
        value = fields.get(header)
        value = '' if value is None else str(value).strip()
        if not value:
            raise ValidationError(MISSING_REQUIRED_DATA)
        values[header] = value

    try:
        quantity = _parse_number(values['quantity_sold'])
        price = _parse_number(values['price'])
    except ValueError:
        raise ValidationError(INVALID_NUMERIC_VALUES)

    if quantity < 0 or price < 0 or not quantity.is_integer() or quantity > MAX_QUANTITY_SOLD:
        raise ValidationError(INVALID_NUMERIC_VALUES)
    if not math.isfinite(quantity * price):
        raise ValidationError(INVALID_NUMERIC_VALUES)

    try:
        sale_date = parse_calendar_date(values['date'])
    except ValueError:
        raise ValidationError(INVALID_DATE_VALUE)

    quantity_sold = int(quantity)
    return SalesRecord(
        product_id=values['product_id'],
        sale_date=sale_date,
        quantity_sold=quantity_sold,
        price=price,
        revenue=quantity_sold * price,
        ingested_at=ingested_at or utc_now(),
        schema_version=SALES_RECORD_SCHEMA_VERSION
    )


def parse_sales_csv(csv_text: str, delimiter: str = ',', ingested_at=None) -> IngestionResult:
    """Split CSV text into accepted records and rejected rows.

    Args:
        csv_text: Raw uploaded text
        delimiter: Column delimiter
        ingested_at: Timestamp stamped on every accepted record

    Returns:
        IngestionResult; accepted records keep file order

    Raises:
        SchemaError if the header lacks a required column or there are no data rows
    """
    lines = [line for line in (csv_text or '').splitlines() if line.strip()]
    if len(lines) < 2:
        raise SchemaError("Invalid CSV format", details={'reason': 'header and at least one data row required'})

    headers = [header.strip().lower() for header in lines[0].split(delimiter)]
    missing = [header for header in REQUIRED_HEADERS if header not in headers]
    if missing:
        raise SchemaError(
            f"Missing required headers: {', '.join(missing)}",
            details={'expected': list(REQUIRED_HEADERS), 'found': headers}
        )

    ingested_at = ingested_at or utc_now()
    accepted = []
    rejected = []

    for row_number, line in enumerate(lines[1:], start=2):
        values = [value.strip() for value in line.split(delimiter)]
        if len(values) != len(headers):
            rejected.append(RowError(row_number, COLUMN_COUNT_MISMATCH))
            continue

        try:
            accepted.append(build_sales_record(dict(zip(headers, values)), ingested_at))
        except ValidationError as e:
            rejected.append(RowError(row_number, e.message))

    return IngestionResult(accepted, rejected)


class SalesIngestionService:
    """Service for loading sales history into the ledger."""

    def __init__(self, ledger: SalesLedgerStore, archive: Optional[ArchiveStore] = None, delimiter: str = ','):
        """Initialize the ingestion service.

        Args:
            ledger: Sales ledger store
            archive: Sink for raw uploads; archival is skipped when None
            delimiter: CSV column delimiter
        """
        self.ledger = ledger
        self.archive = archive
        self.delimiter = delimiter

    def ingest(self, csv_text: str, filename: Optional[str] = None) -> IngestionResult:
        """Validate an upload, upsert its accepted rows and archive the raw text."""
        result = parse_sales_csv(csv_text, self.delimiter)

        # Later rows for the same (product_id, date) overwrite earlier ones
        for record in result.accepted:
            self.ledger.put(record)

        logger.info(
            f"Ingested upload {filename or '<unnamed>'}: "
            f"{result.processed} accepted, {result.errors} rejected"
        )
        if result.rejected:
            logger.debug(f"Rejected rows: {result.error_details}")

        result.archived_as = self._archive(filename, csv_text)
        return result

    def _archive(self, filename: Optional[str], csv_text: str) -> Optional[str]:
        if self.archive is None:
            return None
        try:
            return self.archive.archive(filename, csv_text)
        except DependencyError as e:
            logger.warning(f"Upload archival failed, ingestion result kept: {str(e)}")
            return None

    def add_record(self, fields: Dict[str, Any]) -> SalesRecord:
        """Validate and upsert a single sales record.

        Raises:
            ValidationError if the fields fail the row rules
        """
        record = build_sales_record(fields)
        stored = self.ledger.put(record)
        logger.info(f"Stored sales record for {stored.product_id} on {stored.sale_date}")
        return stored

    def history(self, product_id: str) -> List[SalesRecord]:
        """Get a product's sales history in date order."""
        return sorted(self.ledger.list_for_product(product_id), key=lambda record: record.sale_date)

    def summary(self) -> Dict[str, Any]:
        return self.ledger.summary()
