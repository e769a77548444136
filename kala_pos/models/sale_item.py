"""Sale Item model."""
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from kala_pos.database import Base
from kala_pos.utils.formatters import money


class SaleItem(Base):
    """
    Sale line. ``category_name`` and ``sale_price`` are snapshots taken when
    the row was written, so later product edits do not rewrite history.
    """

    __tablename__ = 'sale_items'

    id = Column(Integer, primary_key=True, autoincrement=True)
    sale_id = Column(Integer, ForeignKey('sales.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='SET NULL'), nullable=True, index=True)
    category_name = Column(String, nullable=True)
    sale_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    item_final_price = Column(Numeric(10, 2), nullable=False)

    # Relationships
    sale = relationship('Sale', back_populates='items')
    product = relationship('Product')

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'category_name': self.category_name,
            'sale_price': money(self.sale_price),
            'quantity': self.quantity,
            'item_final_price': money(self.item_final_price),
            # Best effort: the product may have been removed since
            'barcode': self.product.barcode if self.product else None,
        }

    def __repr__(self):
        return f"<SaleItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
