"""
Sales service with transactional logic.
Handles sale creation: document numbering, line snapshots and stock decrements.
"""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from config import Config
from kala_pos.database import transaction
from kala_pos.exceptions import (
    PosError, ValidationError, InsufficientStockError, TransactionError
)
from kala_pos.models import Product, Sale, SaleItem, SaleType, PaymentMode
from kala_pos.services import product_service
from kala_pos.services.sequence_service import next_document_number
from kala_pos.utils.formatters import store_now
from kala_pos.utils.number_format import (
    CENTS, is_blank, parse_id, parse_money, parse_quantity
)

logger = logging.getLogger(__name__)

OPTIONAL_TEXT_FIELDS = ('mobile', 'remarks', 'customer_address', 'customer_gstin')


# =====================================================
# INPUT PARSING (no database access)
# =====================================================

def _clean_text(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_sale_type(value) -> SaleType:
    if is_blank(value):
        raise ValidationError('Type and items are required')
    try:
        return SaleType(str(value).strip().lower())
    except ValueError:
        raise ValidationError("type must be 'bill' or 'estimate'")


def parse_payment_mode(value) -> Optional[str]:
    if is_blank(value):
        return None
    try:
        return PaymentMode(str(value).strip().lower()).value
    except ValueError:
        raise ValidationError("payment_mode must be 'cash' or 'upi'")


def parse_items(items) -> List[dict]:
    """
    Validate the requested lines.

    Each line needs ``product_id`` and a positive ``quantity``; ``sale_price``
    and ``category_name`` are optional overrides of the product snapshot.
    The same product may appear on several lines.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError('Items are required')

    lines = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f'Item {index} is malformed')
        sale_price = item.get('sale_price')
        lines.append({
            'product_id': parse_id(item.get('product_id'), f'items[{index}].product_id'),
            'quantity': parse_quantity(item.get('quantity'), f'items[{index}].quantity'),
            'sale_price': None if is_blank(sale_price) else parse_money(sale_price, f'items[{index}].sale_price'),
            'category_name': _clean_text(item.get('category_name')),
        })
    return lines


def parse_totals(data: dict) -> Dict[str, Optional[Decimal]]:
    """Caller-supplied totals; None where the field was left out."""
    totals = {}
    for field in ('total_amount', 'total_discount', 'final_amount'):
        value = data.get(field)
        totals[field] = None if is_blank(value) else parse_money(value, field)
    return totals


def resolve_totals(totals: Dict[str, Optional[Decimal]], items: Iterable[SaleItem]) -> Dict[str, Decimal]:
    """
    Fill in missing totals.

    ``final_amount`` is stored as given even when it differs from
    ``total_amount - total_discount``; only a missing value is derived.
    """
    total_amount = totals.get('total_amount')
    if total_amount is None:
        total_amount = sum((item.item_final_price for item in items), Decimal('0.00'))

    total_discount = totals.get('total_discount')
    if total_discount is None:
        total_discount = Decimal('0.00')

    final_amount = totals.get('final_amount')
    if final_amount is None:
        final_amount = total_amount - total_discount
        if final_amount < 0:
            raise ValidationError('total_discount cannot exceed total_amount')

    return {
        'total_amount': total_amount.quantize(CENTS),
        'total_discount': total_discount.quantize(CENTS),
        'final_amount': final_amount.quantize(CENTS),
    }


def aggregate_quantities(lines: Iterable) -> Dict[int, int]:
    """Sum quantities per product id (dicts or SaleItem rows)."""
    totals = defaultdict(int)
    for line in lines:
        product_id = line['product_id'] if isinstance(line, dict) else line.product_id
        quantity = line['quantity'] if isinstance(line, dict) else line.quantity
        if product_id is None:
            continue
        totals[product_id] += quantity
    return dict(totals)


# =====================================================
# TRANSACTION STEPS
# =====================================================

def check_stock(products: Dict[int, Product], demand: Dict[int, int]) -> None:
    """Fail if any product has less stock than the extra quantity asked of it."""
    for product_id, quantity in demand.items():
        if quantity <= 0:
            continue
        product = products[product_id]
        if product.quantity < quantity:
            raise InsufficientStockError(product.barcode, quantity, product.quantity)


def build_sale_items(lines: List[dict], products: Dict[int, Product],
                     previous: Optional[Dict[int, SaleItem]] = None) -> List[SaleItem]:
    """
    Turn parsed lines into SaleItem rows with their price/category snapshot.

    Snapshot precedence: value sent by the caller, then the line being
    replaced (edits keep the original rate), then the current product.
    """
    previous = previous or {}
    items = []
    for line in lines:
        product = products[line['product_id']]
        prior = previous.get(product.id)

        sale_price = line['sale_price']
        if sale_price is None:
            sale_price = prior.sale_price if prior else product.sale_price
        sale_price = Decimal(str(sale_price)).quantize(CENTS)

        category_name = line['category_name']
        if category_name is None:
            if prior and prior.category_name:
                category_name = prior.category_name
            elif product.category:
                category_name = product.category.name

        items.append(SaleItem(
            product_id=product.id,
            category_name=category_name,
            sale_price=sale_price,
            quantity=line['quantity'],
            item_final_price=(sale_price * line['quantity']).quantize(CENTS)
        ))
    return items


def create_sale(
    data: dict,
    session,
    default_customer_name: str = Config.DEFAULT_CUSTOMER_NAME,
    timezone_name: str = Config.STORE_TIMEZONE,
    allow_negative_stock: bool = False
) -> Sale:
    """
    Create a bill or estimate and take its items out of stock, atomically.

    Steps (one transaction):
    1. Lock the referenced products and check stock
    2. Reserve the next document number for the type
    3. Insert the sale header
    4. Insert the items and decrement stock per product

    Raises:
        ValidationError: malformed payload (nothing opened yet)
        NotFoundError: unknown product
        InsufficientStockError: not enough stock (unless allowed)
        TransactionError: storage failure, everything rolled back
    """
    sale_type = parse_sale_type(data.get('type'))
    lines = parse_items(data.get('items'))
    payment_mode = parse_payment_mode(data.get('payment_mode'))
    totals = parse_totals(data)
    customer_name = _clean_text(data.get('customer_name')) or default_customer_name
    extra_fields = {field: _clean_text(data.get(field)) for field in OPTIONAL_TEXT_FIELDS}

    demand = aggregate_quantities(lines)

    try:
        with transaction(session):
            # 1. Lock products and validate stock
            products = product_service.lock_products(session, demand.keys())
            if not allow_negative_stock:
                check_stock(products, demand)

            # 2. Document number
            number = next_document_number(session, sale_type)

            # 3. Header
            items = build_sale_items(lines, products)
            sale = Sale(
                type=sale_type.value,
                number=number,
                customer_name=customer_name,
                payment_mode=payment_mode,
                date=store_now(timezone_name),
                **extra_fields,
                **resolve_totals(totals, items)
            )
            session.add(sale)
            session.flush()

            # 4. Items and stock
            for item in items:
                item.sale_id = sale.id
                session.add(item)
            session.flush()

            for product_id, quantity in demand.items():
                product_service.adjust_stock(session, product_id, -quantity)

    except PosError:
        raise
    except SQLAlchemyError as e:
        logger.exception(f"Error creating {sale_type.value}; transaction rolled back")
        raise TransactionError('Failed to create sale') from e

    logger.info(
        f"Created {sale_type.value} {number} (id={sale.id}, items={len(lines)}, "
        f"final_amount={sale.final_amount})"
    )
    return sale
