"""
Document numbering for bills and estimates (BILL-0001, EST-0001, ...).

Each sale type owns a counter row in ``document_sequences``. The counter is
incremented inside the sale's own transaction, so a rolled-back sale also
rolls back its number, and deleting the newest sale never frees its number.
"""
import logging
from typing import Optional

from kala_pos.models import DocumentSequence, Sale, SaleType

logger = logging.getLogger(__name__)

NUMBER_WIDTH = 4


def format_document_number(prefix: str, value: int) -> str:
    """format_document_number('BILL', 7) -> 'BILL-0007'"""
    return f"{prefix}-{value:0{NUMBER_WIDTH}d}"


def parse_document_number(number: Optional[str], prefix: str) -> Optional[int]:
    """
    Numeric suffix of a document number, or None when it does not belong
    to ``prefix`` or is malformed.
    """
    if not number:
        return None
    head, sep, tail = number.partition('-')
    if not sep or head != prefix or not tail.isdigit():
        return None
    return int(tail)


def _highest_existing(session, sale_type: SaleType) -> int:
    """Largest suffix already used by sales of this type (0 if none)."""
    numbers = session.query(Sale.number).filter(Sale.type == sale_type.value).all()
    parsed = [parse_document_number(row.number, sale_type.prefix) for row in numbers]
    return max((value for value in parsed if value is not None), default=0)


def next_document_number(session, sale_type: SaleType) -> str:
    """
    Reserve the next number for ``sale_type`` inside the current transaction.

    The first call for a type seeds its counter from the sales already on
    file, so databases created before the counter table keep their sequence.
    """
    sequence = session.query(DocumentSequence).filter(
        DocumentSequence.doc_type == sale_type.value
    ).with_for_update().first()

    if sequence is None:
        sequence = DocumentSequence(
            doc_type=sale_type.value,
            last_value=_highest_existing(session, sale_type)
        )
        session.add(sequence)
        logger.info(f"Seeded {sale_type.value} sequence at {sequence.last_value}")

    sequence.last_value += 1
    session.flush()

    return format_document_number(sale_type.prefix, sequence.last_value)


def peek_next_document_number(session, sale_type: SaleType) -> str:
    """Number the next sale of this type would get, without reserving it."""
    sequence = session.get(DocumentSequence, sale_type.value)
    last_value = sequence.last_value if sequence else _highest_existing(session, sale_type)
    return format_document_number(sale_type.prefix, last_value + 1)
