"""
Sale Adjustment Service

Edits a sale by full replacement of its item list:
- computes per-product stock deltas between the old and new items
- applies them to product stock
- rewrites the totals and the item rows
all inside one transaction.
"""

import logging
from typing import Dict

from sqlalchemy.exc import SQLAlchemyError

from kala_pos.database import transaction
from kala_pos.exceptions import PosError, NotFoundError, TransactionError
from kala_pos.models import Sale
from kala_pos.services import product_service
from kala_pos.services.sales_service import (
    aggregate_quantities, build_sale_items, check_stock,
    parse_items, parse_totals, resolve_totals
)

logger = logging.getLogger(__name__)


def compute_stock_deltas(old_quantities: Dict[int, int], new_quantities: Dict[int, int]) -> Dict[int, int]:
    """
    Stock change per product when a sale goes from the old to the new items.

    Both sides must already be aggregated per product. A positive value goes
    back to stock, a negative one is taken out:
    - only in old: +old (full restore)
    - in both: old - new
    - only in new: -new
    Products whose quantity did not change are omitted.
    """
    deltas = {}
    for product_id in set(old_quantities) | set(new_quantities):
        change = old_quantities.get(product_id, 0) - new_quantities.get(product_id, 0)
        if change != 0:
            deltas[product_id] = change
    return deltas


def replace_sale(sale_id: int, data: dict, session, allow_negative_stock: bool = False) -> Sale:
    """
    Replace the totals and items of a sale and reconcile stock (atomic).

    Args:
        sale_id: ID of the sale to edit
        data: {'total_amount', 'total_discount', 'final_amount', 'items': [...]}
        session: SQLAlchemy session
        allow_negative_stock: skip the availability check for extra quantities

    Raises:
        ValidationError: malformed payload
        NotFoundError: sale or product missing
        InsufficientStockError: an increased quantity is not available
        TransactionError: storage failure, sale left exactly as before

    Process:
        1. Load the sale and its current items
        2. Diff old vs new quantities per product
        3. Validate stock for increases
        4. Update totals, swap the item rows
        5. Apply the stock deltas
    """
    lines = parse_items(data.get('items'))
    totals = parse_totals(data)

    try:
        with transaction(session):
            # Step 1: Lock sale
            sale = session.query(Sale).filter(Sale.id == sale_id).with_for_update().first()
            if not sale:
                raise NotFoundError('Sale not found')

            old_items = list(sale.items)
            previous = {item.product_id: item for item in old_items if item.product_id is not None}

            # Step 2: Deltas from per-product totals on both sides
            new_quantities = aggregate_quantities(lines)
            deltas = compute_stock_deltas(aggregate_quantities(old_items), new_quantities)

            # Step 3: Products for the new lines and for every stock change
            products = product_service.lock_products(session, set(new_quantities) | set(deltas))
            if not allow_negative_stock:
                # Only the extra quantity has to be available
                check_stock(products, {pid: -change for pid, change in deltas.items() if change < 0})

            # Step 4: Header totals and item rows
            new_items = build_sale_items(lines, products, previous)
            for field, value in resolve_totals(totals, new_items).items():
                setattr(sale, field, value)

            sale.items = new_items  # delete-orphan removes the old rows
            session.flush()

            # Step 5: Stock
            for product_id, change in deltas.items():
                product_service.adjust_stock(session, product_id, change)

    except PosError:
        raise
    except SQLAlchemyError as e:
        logger.exception(f"Error updating sale {sale_id}; transaction rolled back")
        raise TransactionError('Failed to update sale') from e

    logger.info(
        f"Updated sale {sale.number} (id={sale_id}, items={len(lines)}, "
        f"stock_changes={deltas})"
    )
    return sale
