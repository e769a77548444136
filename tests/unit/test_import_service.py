"""Unit tests for the spreadsheet product import."""

import pytest
from decimal import Decimal

from kala_pos.exceptions import ImportFailedError, ValidationError
from kala_pos.models import Category, Manufacturer, Product
from kala_pos.services.import_service import (
    import_products, normalize_barcode, read_product_rows
)

HEADER = ['barcode', 'category', 'manufacturer', 'quantity', 'cost_price', 'sale_price']


def _row(barcode, category='Sarees', manufacturer='XYZ Clothing', quantity=10, cost=100, sale=200):
    return {
        'barcode': barcode, 'category': category, 'manufacturer': manufacturer,
        'quantity': quantity, 'cost_price': cost, 'sale_price': sale,
    }


class TestReadRows:

    def test_reads_rows_with_numbers(self, xlsx_file):
        buffer = xlsx_file(
            ['Barcode', 'Category', 'Manufacturer', 'Quantity', 'Cost_Price', 'Sale_Price'],
            [[12345678, 'Sarees', 'XYZ Clothing', 5, 1000, 2000],
             [None, None, None, None, None, None],
             ['ABC-1', 'Shirts', 'JKL Textiles', 3, 150, 300]]
        )
        rows = read_product_rows(buffer)

        assert [number for number, _ in rows] == [2, 4]
        assert rows[0][1]['barcode'] == 12345678
        assert rows[1][1]['category'] == 'Shirts'

    def test_missing_columns(self, xlsx_file):
        buffer = xlsx_file(['barcode', 'category'], [['1', 'Sarees']])
        with pytest.raises(ValidationError) as exc_info:
            read_product_rows(buffer)
        assert 'manufacturer' in exc_info.value.message

    def test_header_only(self, xlsx_file):
        with pytest.raises(ValidationError):
            read_product_rows(xlsx_file(HEADER, []))

    def test_not_a_workbook(self):
        from io import BytesIO
        with pytest.raises(ValidationError):
            read_product_rows(BytesIO(b'barcode,category\n1,2\n'))


def test_normalize_barcode():
    assert normalize_barcode(12345678.0) == '12345678'
    assert normalize_barcode(12345678) == '12345678'
    assert normalize_barcode(' 0042 ') == '0042'
    with pytest.raises(ValidationError):
        normalize_barcode(None)


class TestImportProducts:

    def test_creates_and_updates(self, session, saree):
        product_id = saree.id
        result = import_products(session, [
            (2, _row('12345678', quantity=40, cost=1100, sale=2100)),
            (3, _row('99990000', category='Kurtis', manufacturer='New Mills', quantity=7)),
        ])

        assert result['imported'] == 2
        assert result['created'] == 1
        assert result['updated'] == 1
        assert result['errors'] == []
        assert result['message'] == 'Successfully imported 2 products'

        updated = session.get(Product, product_id)
        assert updated.quantity == 40
        assert updated.sale_price == Decimal('2100.00')

        created = session.query(Product).filter_by(barcode='99990000').one()
        assert created.category.name == 'Kurtis'
        assert session.query(Manufacturer).filter_by(name='New Mills').count() == 1

    def test_reuses_existing_category(self, session, category):
        import_products(session, [(2, _row('1')), (3, _row('2'))])
        assert session.query(Category).filter_by(name='Sarees').count() == 1

    def test_reimport_does_not_duplicate_names(self, session):
        rows = [
            (2, _row('1', category='Kurtis', manufacturer='New Mills')),
            (3, _row('2', category='Kurtis', manufacturer='New Mills', quantity=4)),
        ]
        import_products(session, rows)
        result = import_products(session, rows)

        assert result['created'] == 0
        assert result['updated'] == 2
        assert session.query(Category).filter_by(name='Kurtis').count() == 1
        assert session.query(Manufacturer).count() == 1
        assert session.query(Product).count() == 2

    def test_bad_rows_are_reported_and_skipped(self, session):
        result = import_products(session, [
            (2, _row('1')),
            (3, _row('2', quantity=-1)),
            (4, _row('3', sale='abc')),
            (5, _row(None)),
        ])

        assert result['imported'] == 1
        assert [e['row'] for e in result['errors']] == [3, 4, 5]
        assert result['errors'][0]['barcode'] == '2'
        assert session.query(Product).count() == 1

    def test_nothing_imported_raises(self, session):
        with pytest.raises(ImportFailedError) as exc_info:
            import_products(session, [(2, _row('1', category=' '))])

        assert exc_info.value.status_code == 422
        assert exc_info.value.payload['errors'][0]['row'] == 2
        assert session.query(Product).count() == 0
