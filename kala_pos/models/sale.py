"""Sale model."""
from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.orm import relationship
from kala_pos.database import Base
from kala_pos.utils.formatters import money, datetime_str
import enum


class SaleType(str, enum.Enum):
    """Document type of a sale."""
    BILL = 'bill'
    ESTIMATE = 'estimate'

    @property
    def prefix(self) -> str:
        """Prefix of the human-readable document number."""
        return DOCUMENT_PREFIXES[self]


DOCUMENT_PREFIXES = {
    SaleType.BILL: 'BILL',
    SaleType.ESTIMATE: 'EST',
}


class PaymentMode(str, enum.Enum):
    """How the customer paid."""
    CASH = 'cash'
    UPI = 'upi'


class Sale(Base):
    """Sale header (bill or estimate)."""

    __tablename__ = 'sales'

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(20), nullable=False, index=True)
    number = Column(String(32), nullable=False, unique=True)
    customer_name = Column(String, nullable=False)
    mobile = Column(String, nullable=True)
    payment_mode = Column(String(20), nullable=True)
    remarks = Column(String, nullable=True)
    # Server-assigned wall-clock time in STORE_TIMEZONE; never edited
    date = Column(DateTime, nullable=False, index=True)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total_discount = Column(Numeric(10, 2), nullable=False, default=0)
    final_amount = Column(Numeric(10, 2), nullable=False, default=0)
    customer_address = Column(String, nullable=True)
    customer_gstin = Column(String, nullable=True)

    # Relationships
    items = relationship(
        'SaleItem',
        back_populates='sale',
        cascade='all, delete-orphan',
        order_by='SaleItem.id'
    )

    def to_dict(self):
        """Header fields only (list/report view)."""
        return {
            'id': self.id,
            'type': self.type,
            'number': self.number,
            'customer_name': self.customer_name,
            'mobile': self.mobile,
            'payment_mode': self.payment_mode,
            'remarks': self.remarks,
            'date': datetime_str(self.date),
            'total_amount': money(self.total_amount),
            'total_discount': money(self.total_discount),
            'final_amount': money(self.final_amount),
            'customer_address': self.customer_address,
            'customer_gstin': self.customer_gstin,
        }

    def __repr__(self):
        return f"<Sale(id={self.id}, number='{self.number}', final_amount={self.final_amount})>"
