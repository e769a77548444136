"""Category model."""
from sqlalchemy import Column, Integer, String
from kala_pos.database import Base


class Category(Base):
    """Product Category (Sarees, Shirts, ...)."""

    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)

    def to_dict(self):
        return {'id': self.id, 'name': self.name}

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"
