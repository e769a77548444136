"""Manufacturer model."""
from sqlalchemy import Column, Integer, String
from kala_pos.database import Base


class Manufacturer(Base):
    """Manufacturer / supplier of a product."""

    __tablename__ = 'manufacturers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)

    def to_dict(self):
        return {'id': self.id, 'name': self.name}

    def __repr__(self):
        return f"<Manufacturer(id={self.id}, name='{self.name}')>"
