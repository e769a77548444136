"""Unit tests for editing a sale by replacing its items."""

import pytest
from decimal import Decimal

from kala_pos.exceptions import (
    InsufficientStockError, NotFoundError, TransactionError, ValidationError
)
from kala_pos.models import Product, Sale, SaleItem
from kala_pos.services.sale_adjustment_service import compute_stock_deltas, replace_sale
from kala_pos.services.sale_delete_service import delete_sale_with_reversal
from kala_pos.services.sales_service import create_sale


@pytest.fixture
def bill(session, saree):
    """BILL-0001: 2 sarees at 2000 (stock 31 -> 29)."""
    return create_sale({
        'type': 'bill',
        'customer_name': 'John',
        'items': [{'product_id': saree.id, 'quantity': 2, 'sale_price': 2000}],
    }, session)


class TestComputeStockDeltas:

    def test_cases(self):
        old = {1: 2, 2: 5, 3: 1}
        new = {1: 3, 2: 5, 4: 2}
        assert compute_stock_deltas(old, new) == {1: -1, 3: 1, 4: -2}

    def test_no_change(self):
        assert compute_stock_deltas({1: 2}, {1: 2}) == {}


class TestReplaceSale:

    def test_increase_quantity(self, session, saree, bill, stock):
        product_id, sale_id = saree.id, bill.id

        sale = replace_sale(sale_id, {
            'total_amount': 6000, 'total_discount': 0, 'final_amount': 6000,
            'items': [{'product_id': product_id, 'quantity': 3, 'sale_price': 2000}],
        }, session)

        assert sale.number == 'BILL-0001'
        assert sale.final_amount == Decimal('6000.00')
        assert stock(session, product_id) == 28
        items = session.query(SaleItem).filter_by(sale_id=sale_id).all()
        assert [(i.quantity, i.item_final_price) for i in items] == [(3, Decimal('6000.00'))]

    def test_swap_product_restores_old_stock(self, session, saree, shirt, bill, stock):
        saree_id, shirt_id, sale_id = saree.id, shirt.id, bill.id

        replace_sale(sale_id, {'items': [{'product_id': shirt_id, 'quantity': 4}]}, session)

        assert stock(session, saree_id) == 31
        assert stock(session, shirt_id) == 20
        item = session.query(SaleItem).filter_by(sale_id=sale_id).one()
        assert item.category_name == 'Shirts'
        assert item.sale_price == Decimal('300.00')

    def test_keeps_original_price_snapshot(self, session, saree, bill):
        product_id, sale_id = saree.id, bill.id
        product = session.get(Product, product_id)
        product.sale_price = Decimal('2500')
        session.commit()

        replace_sale(sale_id, {'items': [{'product_id': product_id, 'quantity': 1}]}, session)

        item = session.query(SaleItem).filter_by(sale_id=sale_id).one()
        assert item.sale_price == Decimal('2000.00')

    def test_increase_beyond_stock_fails_without_changes(self, session, saree, bill, stock):
        product_id, sale_id = saree.id, bill.id

        # 2 already sold + 29 on hand = 31 max
        with pytest.raises(InsufficientStockError):
            replace_sale(sale_id, {'items': [{'product_id': product_id, 'quantity': 32}]}, session)

        assert stock(session, product_id) == 29
        assert session.query(SaleItem).filter_by(sale_id=sale_id).one().quantity == 2

        replace_sale(sale_id, {'items': [{'product_id': product_id, 'quantity': 31}]}, session)
        assert stock(session, product_id) == 0

    def test_empty_items_rejected(self, session, bill):
        with pytest.raises(ValidationError):
            replace_sale(bill.id, {'items': []}, session)

    def test_missing_sale(self, session, saree):
        with pytest.raises(NotFoundError):
            replace_sale(999, {'items': [{'product_id': saree.id, 'quantity': 1}]}, session)

    def test_storage_failure_leaves_sale_untouched(self, session, saree, shirt, bill, stock, fail_stock_update):
        saree_id, shirt_id, sale_id = saree.id, shirt.id, bill.id
        calls = fail_stock_update(on_call=2)

        # Two stock changes: saree +2 back, shirt -3 out
        with pytest.raises(TransactionError):
            replace_sale(sale_id, {
                'total_amount': 900, 'total_discount': 0, 'final_amount': 900,
                'items': [{'product_id': shirt_id, 'quantity': 3}],
            }, session)

        assert len(calls) == 2
        assert stock(session, saree_id) == 29
        assert stock(session, shirt_id) == 24

        items = session.query(SaleItem).filter_by(sale_id=sale_id).all()
        assert [(i.product_id, i.quantity) for i in items] == [(saree_id, 2)]
        assert session.get(Sale, sale_id).final_amount == Decimal('4000.00')

    def test_duplicate_lines_are_reconciled_per_product(self, session, saree, stock):
        product_id = saree.id
        sale = create_sale({
            'type': 'bill',
            'items': [
                {'product_id': product_id, 'quantity': 2},
                {'product_id': product_id, 'quantity': 1},
            ],
        }, session)
        sale_id = sale.id
        assert stock(session, product_id) == 28

        replace_sale(sale_id, {
            'items': [
                {'product_id': product_id, 'quantity': 1},
                {'product_id': product_id, 'quantity': 4},
            ],
        }, session)

        assert stock(session, product_id) == 26
        items = session.query(SaleItem).filter_by(sale_id=sale_id).order_by(SaleItem.id).all()
        assert [i.quantity for i in items] == [1, 4]

        delete_sale_with_reversal(sale_id, session)
        assert stock(session, product_id) == 31
