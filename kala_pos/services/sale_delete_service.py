"""Service for deleting sales with stock reversal."""
import logging

from sqlalchemy.exc import SQLAlchemyError

from kala_pos.database import transaction
from kala_pos.exceptions import PosError, NotFoundError, TransactionError
from kala_pos.models import Sale
from kala_pos.services import product_service
from kala_pos.services.sales_service import aggregate_quantities

logger = logging.getLogger(__name__)


def delete_sale_with_reversal(sale_id: int, session) -> dict:
    """
    Delete a sale and put every sold unit back into stock.

    Steps:
    1. Validate sale exists
    2. Restore stock per product (full quantity, discounts are irrelevant)
    3. Delete the items, then the header
    4. Commit

    Args:
        sale_id: Sale ID to delete
        session: SQLAlchemy session

    Returns:
        dict with success message and the restored quantities

    Raises:
        NotFoundError: sale (or a referenced product) does not exist
        TransactionError: storage failure, nothing deleted or restored
    """
    try:
        with transaction(session):
            # Step 1: Get sale
            sale = session.query(Sale).filter(Sale.id == sale_id).with_for_update().first()
            if not sale:
                raise NotFoundError('Sale not found')

            number = sale.number

            # Step 2: Reverse stock
            restored = aggregate_quantities(sale.items)
            for product_id, quantity in restored.items():
                product_service.adjust_stock(session, product_id, quantity)

            # Step 3: Items go with the header (delete-orphan cascade)
            session.delete(sale)
            session.flush()

    except PosError:
        raise
    except SQLAlchemyError as e:
        logger.exception(f"Error deleting sale {sale_id}; transaction rolled back")
        raise TransactionError('Failed to delete sale') from e

    logger.info(f"Deleted sale {number} (id={sale_id}), restored stock {restored}")

    return {
        'message': 'Sale deleted successfully',
        'id': sale_id,
        'number': number,
        'restored': [
            {'product_id': product_id, 'quantity': quantity}
            for product_id, quantity in sorted(restored.items())
        ]
    }
