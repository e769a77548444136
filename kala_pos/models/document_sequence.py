"""Document sequence model."""
from sqlalchemy import Column, Integer, String
from kala_pos.database import Base


class DocumentSequence(Base):
    """Last issued document number per sale type (bill, estimate)."""

    __tablename__ = 'document_sequences'

    doc_type = Column(String(20), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<DocumentSequence(doc_type='{self.doc_type}', last_value={self.last_value})>"
