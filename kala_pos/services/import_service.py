"""
Product import from an Excel workbook.

Rows are upserted by barcode: an existing product is overwritten with the
row's category, manufacturer, quantity and prices; a new barcode is inserted.
Every row runs in its own savepoint, so a bad row is reported and skipped
without affecting the others. If no row succeeds the whole import is undone.
"""
import logging
from typing import Iterable, List, Tuple
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError

from kala_pos.database import transaction
from kala_pos.exceptions import ImportFailedError, PosError, ValidationError
from kala_pos.models import Product
from kala_pos.services.catalog_service import get_or_create_category, get_or_create_manufacturer
from kala_pos.utils.number_format import is_blank, parse_money, parse_stock

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ('barcode', 'category', 'manufacturer', 'quantity', 'cost_price', 'sale_price')

# (spreadsheet row number, {column: value})
SheetRow = Tuple[int, dict]


def _header_name(value) -> str:
    return str(value).strip().lower() if value is not None else ''


def read_product_rows(stream) -> List[SheetRow]:
    """
    Read the first worksheet; the first row holds the column names.

    Raises:
        ValidationError: unreadable file, missing columns or no data rows
    """
    try:
        workbook = load_workbook(stream, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError) as e:
        raise ValidationError(f'Could not read spreadsheet: {e}')

    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            raise ValidationError('Excel file is empty')

        columns = [_header_name(value) for value in header]
        missing = [column for column in REQUIRED_COLUMNS if column not in columns]
        if missing:
            raise ValidationError(f"Missing required columns: {', '.join(missing)}")

        data = []
        for row_number, values in enumerate(rows, start=2):
            if all(is_blank(value) for value in values):
                continue
            data.append((row_number, {
                column: value for column, value in zip(columns, values) if column
            }))
    finally:
        workbook.close()

    if not data:
        raise ValidationError('Excel file is empty')
    return data


def normalize_barcode(value) -> str:
    """Barcodes typed into Excel arrive as numbers: 12345678.0 -> '12345678'."""
    if is_blank(value):
        raise ValidationError('barcode is required')
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_import_row(values: dict) -> dict:
    category = values.get('category')
    manufacturer = values.get('manufacturer')
    if is_blank(category):
        raise ValidationError('category is required')
    if is_blank(manufacturer):
        raise ValidationError('manufacturer is required')

    return {
        'barcode': normalize_barcode(values.get('barcode')),
        'category': str(category).strip(),
        'manufacturer': str(manufacturer).strip(),
        'quantity': parse_stock(values.get('quantity')),
        'cost_price': parse_money(values.get('cost_price'), 'cost_price'),
        'sale_price': parse_money(values.get('sale_price'), 'sale_price'),
    }


def upsert_product(session, row: dict) -> bool:
    """
    Insert or overwrite the product for ``row['barcode']``.

    Returns True when a new product was created.
    """
    category = get_or_create_category(session, row['category'])
    manufacturer = get_or_create_manufacturer(session, row['manufacturer'])

    fields = {
        'category_id': category.id,
        'manufacturer_id': manufacturer.id,
        'quantity': row['quantity'],
        'cost_price': row['cost_price'],
        'sale_price': row['sale_price'],
    }

    product = session.query(Product).filter(Product.barcode == row['barcode']).first()
    created = product is None
    if created:
        product = Product(barcode=row['barcode'], **fields)
        session.add(product)
    else:
        for key, value in fields.items():
            setattr(product, key, value)

    session.flush()
    return created


def import_products(session, rows: Iterable[SheetRow]) -> dict:
    """
    Upsert every row, best effort.

    Returns:
        {'message', 'imported', 'created', 'updated', 'errors': [{'row', 'barcode', 'error'}]}

    Raises:
        ImportFailedError: no row could be imported (nothing is kept)
    """
    imported = created = 0
    errors = []

    with transaction(session):
        for row_number, values in rows:
            barcode = values.get('barcode')
            try:
                row = parse_import_row(values)
                barcode = row['barcode']
                with session.begin_nested():
                    if upsert_product(session, row):
                        created += 1
                imported += 1
            except PosError as e:
                errors.append({'row': row_number, 'barcode': barcode, 'error': e.message})
            except SQLAlchemyError as e:
                logger.warning(f"Import row {row_number} ({barcode}) failed: {e}")
                errors.append({'row': row_number, 'barcode': barcode, 'error': str(getattr(e, 'orig', None) or e)})

        if imported == 0 and errors:
            raise ImportFailedError('Failed to import products', errors)

    logger.info(f"Imported {imported} products ({created} new), {len(errors)} rows rejected")

    return {
        'message': f'Successfully imported {imported} products',
        'imported': imported,
        'created': created,
        'updated': imported - created,
        'errors': errors,
    }
