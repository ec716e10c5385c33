"""
Tests for the SQLAlchemy store adapters and the local upload archive.
"""
import shutil
import tempfile
import unittest
from datetime import date, datetime
from pathlib import Path
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from demand_forecasting.db import DatabaseConnection, SqlSalesLedgerStore, SqlForecastStore, SqlProductCatalog
from demand_forecasting.exceptions import DependencyError
from demand_forecasting.models import ForecastRecord, Product, SALES_RECORD_SCHEMA_VERSION
from demand_forecasting.services.archive_service import LocalArchiveStore
from demand_forecasting.services.ingestion_service import build_sales_record
from demand_forecasting.tests.fixtures import in_memory_database


class TestSqlSalesLedgerStore(unittest.TestCase):

    def setUp(self):
        self.database = in_memory_database()
        self.ledger = SqlSalesLedgerStore(self.database)

    def test_put_then_get(self):
        self.ledger.put(build_sales_record({'product_id': 'P1', 'date': '2024-01-01', 'quantity_sold': 3, 'price': 2}))

        stored = self.ledger.get('P1', date(2024, 1, 1))
        self.assertEqual(stored.revenue, 6.0)
        self.assertEqual(stored.schema_version, SALES_RECORD_SCHEMA_VERSION)
        self.assertIsNone(self.ledger.get('P1', date(2024, 1, 2)))

    def test_overwrite_keeps_single_row(self):
        for quantity in (3, 8):
            self.ledger.put(build_sales_record({
                'product_id': 'P1', 'date': '2024-01-01', 'quantity_sold': quantity, 'price': 2
            }))

        records = self.ledger.list_for_product('P1')
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].quantity_sold, 8)

    def test_products_are_isolated(self):
        for product_id in ('P1', 'P2'):
            self.ledger.put(build_sales_record({
                'product_id': product_id, 'date': '2024-01-01', 'quantity_sold': 1, 'price': 1
            }))

        self.assertEqual([r.product_id for r in self.ledger.list_for_product('P2')], ['P2'])

    def test_empty_summary(self):
        self.assertEqual(self.ledger.summary(), {
            'totalRecords': 0,
            'totalRevenue': 0.0,
            'uniqueProducts': 0,
            'dateRange': {'earliest': None, 'latest': None}
        })

    def test_oversized_integer_becomes_dependency_error(self):
        record = build_sales_record({'product_id': 'P1', 'date': '2024-01-01', 'quantity_sold': 1, 'price': 1})
        record.quantity_sold = 10 ** 20

        with self.assertRaises(DependencyError):
            self.ledger.put(record)

    def test_database_failure_becomes_dependency_error(self):
        with patch.object(self.database, 'session_scope', side_effect=OperationalError('SELECT', {}, Exception('down'))):
            with self.assertRaises(DependencyError):
                self.ledger.list_for_product('P1')


class TestLedgerWriteRace(unittest.TestCase):
    """A second writer inserts the same key between our read and our insert."""

    def setUp(self):
        directory = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, directory, True)
        self.database = DatabaseConnection(f"sqlite:///{Path(directory) / 'ledger.db'}")
        self.database.create_all()
        self.addCleanup(self.database.dispose)
        self.ledger = SqlSalesLedgerStore(self.database)

    def _row(self, quantity):
        return build_sales_record({'product_id': 'P1', 'date': '2024-01-01', 'quantity_sold': quantity, 'price': 2})

    def test_conflicting_insert_is_retried_as_overwrite(self):
        write = self.ledger._write
        raced = []

        def write_after_competing_insert(session, record):
            stored = write(session, record)
            if not raced:
                raced.append(True)
                with self.database.session_scope() as other:
                    other.add(self._row(99))
            return stored

        with patch.object(self.ledger, '_write', side_effect=write_after_competing_insert) as patched:
            self.ledger.put(self._row(5))

        self.assertEqual(patched.call_count, 2)
        rows = self.ledger.list_for_product('P1')
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].quantity_sold, 5)
        self.assertEqual(rows[0].revenue, 10.0)


class TestSqlForecastStore(unittest.TestCase):

    def setUp(self):
        self.store = SqlForecastStore(in_memory_database())

    def _record(self, product_id, generated_at, days=7):
        return ForecastRecord(product_id=product_id, generated_at=generated_at, forecast_days=days,
                              data_points_used=10, forecast={'days': days})

    def test_latest_is_max_generated_at(self):
        self.store.append(self._record('P1', datetime(2024, 1, 2), days=14))
        self.store.append(self._record('P1', datetime(2024, 1, 1)))
        self.store.append(self._record('P2', datetime(2024, 1, 3)))

        latest = self.store.latest('P1')
        self.assertEqual(latest.generated_at, datetime(2024, 1, 2))
        self.assertEqual(latest.forecast, {'days': 14})
        self.assertEqual(len(self.store.list_versions('P1')), 2)
        self.assertEqual(len(self.store.list_versions()), 3)

    def test_latest_missing(self):
        self.assertIsNone(self.store.latest('P1'))


class TestSqlProductCatalog(unittest.TestCase):

    def setUp(self):
        self.catalog = SqlProductCatalog(in_memory_database())
        now = datetime(2024, 1, 1)
        self.catalog.put(Product(product_id='P1', name='Tea', category='Drinks',
                                 current_price=4.0, created_at=now, updated_at=now))

    def test_update_and_delete(self):
        updated = self.catalog.update('P1', {'current_price': 4.5, 'product_id': 'ignored'})

        self.assertEqual(updated.current_price, 4.5)
        self.assertEqual(updated.product_id, 'P1')
        self.assertIsNone(self.catalog.update('P9', {'name': 'x'}))

        self.catalog.delete('P1')
        self.assertIsNone(self.catalog.get('P1'))
        self.assertEqual(self.catalog.list_all(), [])


class TestLocalArchiveStore(unittest.TestCase):

    def setUp(self):
        self.directory = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.directory, ignore_errors=True)

    def test_archives_verbatim_under_timestamped_key(self):
        archive = LocalArchiveStore(self.directory, 'uploads', clock=lambda: 1704067200.5)
        content = "product_id,date,quantity_sold,price\r\nP1,2024-01-01,1,1\r\n"

        key = archive.archive('../../etc/sales.csv', content)

        self.assertEqual(key, 'uploads/1704067200500-sales.csv')
        with open(Path(self.directory) / key, encoding='utf-8', newline='') as archived:
            self.assertEqual(archived.read(), content)

    def test_default_name(self):
        archive = LocalArchiveStore(self.directory, '', clock=lambda: 1.0)

        self.assertEqual(archive.build_key(None), '1000-sales-data.csv')

    def test_write_failure_is_dependency_error(self):
        blocker = Path(self.directory) / 'blocked'
        blocker.write_text('not a directory')
        archive = LocalArchiveStore(blocker, 'uploads')

        with self.assertRaises(DependencyError):
            archive.archive('sales.csv', 'x')


if __name__ == '__main__':
    unittest.main()
