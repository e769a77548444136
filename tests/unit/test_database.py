"""Unit tests for transaction scopes on SQLite."""

import threading

import pytest
from decimal import Decimal
from sqlalchemy import event, text

from config import TestingConfig
from kala_pos import create_app, database
from kala_pos.database import get_session, transaction
from kala_pos.models import Category, Manufacturer, Product
from kala_pos.services.sales_service import create_sale


@pytest.fixture
def statements(app):
    """SQL sent to the driver while the test runs."""
    seen = []

    def record(conn, cursor, statement, parameters, context, executemany):
        seen.append(statement)

    event.listen(database.engine, 'before_cursor_execute', record)
    yield seen
    event.remove(database.engine, 'before_cursor_execute', record)


class TestBegin:

    def test_write_scope_begins_immediate(self, session, statements):
        session.close()

        with transaction(session):
            session.execute(text('SELECT 1'))

        assert statements[:2] == ['BEGIN IMMEDIATE', 'SELECT 1']

    def test_plain_read_begins_deferred(self, session, statements):
        session.close()

        session.execute(text('SELECT 1'))
        session.rollback()

        assert statements[0] == 'BEGIN'

    def test_scope_inside_open_transaction_reuses_it(self, session, statements):
        session.close()
        session.execute(text('SELECT 1'))

        with transaction(session):
            session.execute(text('SELECT 2'))

        assert statements[:3] == ['BEGIN', 'SELECT 1', 'SELECT 2']


@pytest.fixture
def file_app(tmp_path):
    """App on a SQLite file, so separate threads use separate connections."""
    class FileConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'pos.db'}"

    app = create_app(FileConfig)
    session = get_session()
    category = Category(name='Sarees')
    manufacturer = Manufacturer(name='XYZ Clothing')
    session.add_all([category, manufacturer])
    session.flush()
    product = Product(barcode='12345678', category_id=category.id, manufacturer_id=manufacturer.id,
                      quantity=2, cost_price=Decimal('1000'), sale_price=Decimal('2000'))
    session.add(product)
    session.commit()
    app.config['TEST_PRODUCT_ID'] = product.id
    database.db_session.remove()
    return app


def test_concurrent_sales_are_serialized(file_app):
    product_id = file_app.config['TEST_PRODUCT_ID']
    start = threading.Barrier(2)
    numbers, failures = [], []

    def sell():
        session = get_session()
        try:
            start.wait()
            sale = create_sale({'type': 'bill', 'items': [{'product_id': product_id, 'quantity': 1}]}, session)
            numbers.append(sale.number)
        except Exception as e:
            failures.append(e)
        finally:
            database.db_session.remove()

    threads = [threading.Thread(target=sell) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert failures == []
    assert sorted(numbers) == ['BILL-0001', 'BILL-0002']

    session = get_session()
    assert session.get(Product, product_id).quantity == 0
    database.db_session.remove()
