"""Product model."""
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from kala_pos.database import Base
from kala_pos.utils.formatters import money


class Product(Base):
    """Product model. ``quantity`` is the on-hand stock count."""

    __tablename__ = 'products'

    id = Column(Integer, primary_key=True, autoincrement=True)
    barcode = Column(String, nullable=False, unique=True)
    category_id = Column(Integer, ForeignKey('categories.id'), nullable=False)
    manufacturer_id = Column(Integer, ForeignKey('manufacturers.id'), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    cost_price = Column(Numeric(10, 2), nullable=False, default=0)
    sale_price = Column(Numeric(10, 2), nullable=False, default=0)

    # Relationships
    category = relationship('Category', foreign_keys=[category_id])
    manufacturer = relationship('Manufacturer', foreign_keys=[manufacturer_id])

    def to_dict(self):
        return {
            'id': self.id,
            'barcode': self.barcode,
            'quantity': self.quantity,
            'cost_price': money(self.cost_price),
            'sale_price': money(self.sale_price),
            'category': self.category.name if self.category else None,
            'manufacturer': self.manufacturer.name if self.manufacturer else None,
            'category_id': self.category_id,
            'manufacturer_id': self.manufacturer_id,
        }

    def __repr__(self):
        return f"<Product(id={self.id}, barcode='{self.barcode}', quantity={self.quantity})>"
