import pytest
from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook
from sqlalchemy.exc import OperationalError

from kala_pos import create_app
from kala_pos.database import get_session
from kala_pos.models import Category, Manufacturer, Product
from kala_pos.services import product_service


@pytest.fixture(scope='function')
def app():
    """Application bound to a fresh in-memory database."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()
    session.close()


def _make_product(session, barcode, category, manufacturer, quantity, cost_price, sale_price):
    product = Product(
        barcode=barcode,
        category_id=category.id,
        manufacturer_id=manufacturer.id,
        quantity=quantity,
        cost_price=Decimal(cost_price),
        sale_price=Decimal(sale_price)
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@pytest.fixture(scope='function')
def category(session):
    category = Category(name='Sarees')
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@pytest.fixture(scope='function')
def manufacturer(session):
    manufacturer = Manufacturer(name='XYZ Clothing')
    session.add(manufacturer)
    session.commit()
    session.refresh(manufacturer)
    return manufacturer


@pytest.fixture(scope='function')
def saree(session, category, manufacturer):
    """Sample saree: 31 in stock at 2000."""
    return _make_product(session, '12345678', category, manufacturer, 31, '1000', '2000')


@pytest.fixture(scope='function')
def shirt(session, manufacturer):
    """Sample shirt: 24 in stock at 300."""
    shirts = Category(name='Shirts')
    session.add(shirts)
    session.commit()
    return _make_product(session, '10101010', shirts, manufacturer, 24, '150', '300')


def stock_of(session, product_id):
    """Current stock straight from the database."""
    session.expire_all()
    return session.get(Product, product_id).quantity


@pytest.fixture
def stock():
    return stock_of


@pytest.fixture
def xlsx_file():
    """Build an .xlsx upload in memory from a header and rows."""
    def build(header, rows):
        workbook = Workbook()
        sheet = workbook.active
        sheet.append(header)
        for row in rows:
            sheet.append(row)
        buffer = BytesIO()
        workbook.save(buffer)
        buffer.seek(0)
        return buffer
    return build


@pytest.fixture
def fail_stock_update(monkeypatch):
    """
    Make the n-th ``adjust_stock`` call of the test raise a storage error.

    Returns the list of product ids the patched function was called with.
    """
    def arm(on_call=2):
        real_adjust = product_service.adjust_stock
        calls = []

        def failing_adjust(session, product_id, delta):
            calls.append(product_id)
            if len(calls) == on_call:
                raise OperationalError('UPDATE products', {}, Exception('disk I/O error'))
            return real_adjust(session, product_id, delta)

        monkeypatch.setattr(product_service, 'adjust_stock', failing_adjust)
        return calls
    return arm
