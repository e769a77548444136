"""Category and manufacturer management."""
import logging
from typing import List, Type, Union

from sqlalchemy.exc import IntegrityError

from kala_pos.database import transaction
from kala_pos.exceptions import ConflictError, ValidationError
from kala_pos.models import Category, Manufacturer

logger = logging.getLogger(__name__)

CatalogModel = Union[Type[Category], Type[Manufacturer]]


def _clean_name(name, label: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f'{label} name is required')
    return name.strip()


def _list(session, model: CatalogModel) -> list:
    return session.query(model).order_by(model.name).all()


def _create(session, model: CatalogModel, name, label: str):
    name = _clean_name(name, label)

    if session.query(model).filter(model.name == name).first():
        raise ConflictError(f'{label} already exists')

    try:
        with transaction(session):
            row = model(name=name)
            session.add(row)
    except IntegrityError:
        raise ConflictError(f'{label} already exists')

    logger.info(f"Created {label.lower()} '{name}' (id={row.id})")
    return row


def _get_or_create(session, model: CatalogModel, name, label: str):
    """
    Return the row with this exact name, inserting it if absent.

    Runs inside the caller's transaction; the insert is flushed so later
    lookups in the same unit of work find it.
    """
    name = _clean_name(name, label)
    row = session.query(model).filter(model.name == name).first()
    if row:
        return row

    row = model(name=name)
    session.add(row)
    session.flush()
    logger.info(f"Created {label.lower()} '{name}' on demand (id={row.id})")
    return row


def list_categories(session) -> List[Category]:
    return _list(session, Category)


def list_manufacturers(session) -> List[Manufacturer]:
    return _list(session, Manufacturer)


def create_category(session, name) -> Category:
    return _create(session, Category, name, 'Category')


def create_manufacturer(session, name) -> Manufacturer:
    return _create(session, Manufacturer, name, 'Manufacturer')


def get_or_create_category(session, name) -> Category:
    return _get_or_create(session, Category, name, 'Category')


def get_or_create_manufacturer(session, name) -> Manufacturer:
    return _get_or_create(session, Manufacturer, name, 'Manufacturer')
