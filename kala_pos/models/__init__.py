"""Models package - exports all SQLAlchemy models."""
from kala_pos.models.category import Category
from kala_pos.models.manufacturer import Manufacturer
from kala_pos.models.product import Product
from kala_pos.models.sale import Sale, SaleType, PaymentMode, DOCUMENT_PREFIXES
from kala_pos.models.sale_item import SaleItem
from kala_pos.models.document_sequence import DocumentSequence

__all__ = [
    'Category', 'Manufacturer', 'Product',
    'Sale', 'SaleType', 'PaymentMode', 'DOCUMENT_PREFIXES', 'SaleItem',
    'DocumentSequence',
]
