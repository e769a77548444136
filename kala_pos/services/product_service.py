"""
Product store: lookups, admin edits and the stock mutation primitive.

Stock only moves through ``adjust_stock`` (sales) or the explicit admin
operations below (``update_product``, ``set_quantity``) and the import upsert.
"""
import logging
from typing import Dict, Iterable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from kala_pos.database import transaction
from kala_pos.exceptions import ConflictError, NotFoundError, ValidationError
from kala_pos.models import Category, Manufacturer, Product
from kala_pos.utils.number_format import is_blank, parse_id, parse_money, parse_stock

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('category_id', 'manufacturer_id', 'quantity', 'cost_price', 'sale_price')


def _parse_product_fields(data: dict) -> dict:
    """Validate the full set of editable product fields."""
    if any(is_blank(data.get(field)) for field in EDITABLE_FIELDS):
        raise ValidationError('All fields are required')

    return {
        'category_id': parse_id(data['category_id'], 'category_id'),
        'manufacturer_id': parse_id(data['manufacturer_id'], 'manufacturer_id'),
        'quantity': parse_stock(data['quantity']),
        'cost_price': parse_money(data['cost_price'], 'cost_price'),
        'sale_price': parse_money(data['sale_price'], 'sale_price'),
    }


def _check_references(session, category_id: int, manufacturer_id: int) -> None:
    if not session.get(Category, category_id):
        raise NotFoundError(f'Category {category_id} not found')
    if not session.get(Manufacturer, manufacturer_id):
        raise NotFoundError(f'Manufacturer {manufacturer_id} not found')


def _query(session):
    return session.query(Product).options(
        joinedload(Product.category),
        joinedload(Product.manufacturer)
    )


def list_products(session) -> List[Product]:
    """All products with their category and manufacturer loaded."""
    return _query(session).order_by(Product.id).all()


def get_product(session, product_id: int) -> Product:
    product = _query(session).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError('Product not found')
    return product


def get_product_by_barcode(session, barcode: str) -> Product:
    product = _query(session).filter(Product.barcode == barcode.strip()).first()
    if not product:
        raise NotFoundError('Product not found')
    return product


def create_product(session, data: dict) -> Product:
    """
    Insert a product.

    Raises:
        ValidationError: any field missing or malformed
        NotFoundError: category or manufacturer does not exist
        ConflictError: barcode already exists
    """
    barcode = data.get('barcode')
    if is_blank(barcode):
        raise ValidationError('All fields are required')
    barcode = str(barcode).strip()
    fields = _parse_product_fields(data)

    _check_references(session, fields['category_id'], fields['manufacturer_id'])

    if session.query(Product.id).filter(Product.barcode == barcode).first():
        raise ConflictError('Barcode already exists')

    try:
        with transaction(session):
            product = Product(barcode=barcode, **fields)
            session.add(product)
    except IntegrityError:
        raise ConflictError('Barcode already exists')

    logger.info(f"Created product {barcode} (id={product.id}, quantity={fields['quantity']})")
    return get_product(session, product.id)


def update_product(session, product_id: int, data: dict) -> Product:
    """Replace category, manufacturer, stock and prices of a product."""
    fields = _parse_product_fields(data)

    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError('Product not found')
    _check_references(session, fields['category_id'], fields['manufacturer_id'])

    with transaction(session):
        for key, value in fields.items():
            setattr(product, key, value)

    logger.info(f"Updated product {product.barcode} (id={product_id})")
    return get_product(session, product_id)


def set_quantity(session, product_id: int, quantity) -> Product:
    """Admin stock correction; bypasses sale semantics."""
    quantity = parse_stock(quantity)

    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError('Product not found')

    with transaction(session):
        old_quantity = product.quantity
        product.quantity = quantity

    logger.info(f"Stock of product {product.barcode} set {old_quantity} -> {quantity}")
    return product


def lock_products(session, product_ids: Iterable[int]) -> Dict[int, Product]:
    """
    Load products FOR UPDATE (ignored by SQLite, whose write lock covers it).

    Raises:
        NotFoundError: naming the first missing id
    """
    ids = sorted(set(product_ids))
    if not ids:
        return {}

    products = session.query(Product).filter(Product.id.in_(ids)).with_for_update().all()
    by_id = {p.id: p for p in products}

    missing = [pid for pid in ids if pid not in by_id]
    if missing:
        raise NotFoundError(f'Product {missing[0]} not found')
    return by_id


def adjust_stock(session, product_id: int, delta: int) -> None:
    """
    Add ``delta`` (negative to decrement) to a product's stock.

    A relative UPDATE, so it never overwrites a concurrent change with a
    stale read. Must run inside the caller's transaction.
    """
    if delta == 0:
        return

    updated = session.query(Product).filter(Product.id == product_id).update(
        {Product.quantity: Product.quantity + delta},
        synchronize_session=False
    )
    if updated == 0:
        raise NotFoundError(f'Product {product_id} not found')
