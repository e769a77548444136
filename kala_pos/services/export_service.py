"""Excel exports of the product list and the (filtered) sales report."""
from io import BytesIO
from typing import List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font

from kala_pos.exceptions import NotFoundError
from kala_pos.services.product_service import list_products
from kala_pos.services.sale_query_service import build_sales_query, count_items
from kala_pos.utils.formatters import datetime_str, money

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

PRODUCT_COLUMNS = ['barcode', 'category', 'manufacturer', 'quantity', 'cost_price', 'sale_price']
SALE_COLUMNS = [
    'date', 'number', 'type', 'customer_name', 'mobile',
    'customer_address', 'customer_gstin', 'items',
    'total_amount', 'total_discount', 'final_amount', 'payment_mode'
]


def _render_workbook(title: str, columns: List[str], rows: List[list]) -> BytesIO:
    """Single-sheet workbook with a bold header row."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = title

    sheet.append(columns)
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    for row in rows:
        sheet.append(row)

    buffer = BytesIO()
    workbook.save(buffer)
    buffer.seek(0)
    return buffer


def build_products_workbook(session) -> BytesIO:
    """
    Products sheet in the same column layout the importer reads, so an
    export can be edited and imported back.
    """
    products = list_products(session)
    if not products:
        raise NotFoundError('No products found to export')

    rows = [
        [
            p.barcode,
            p.category.name if p.category else None,
            p.manufacturer.name if p.manufacturer else None,
            p.quantity,
            money(p.cost_price),
            money(p.sale_price),
        ]
        for p in products
    ]
    return _render_workbook('Products', PRODUCT_COLUMNS, rows)


def build_sales_workbook(session, filters: Optional[dict] = None) -> BytesIO:
    """Sales report sheet; an empty result still produces a workbook."""
    sales = build_sales_query(session, **(filters or {})).all()
    item_counts = count_items(session, [sale.id for sale in sales])

    rows = [
        [
            datetime_str(sale.date),
            sale.number,
            sale.type,
            sale.customer_name,
            sale.mobile,
            sale.customer_address,
            sale.customer_gstin,
            item_counts.get(sale.id, 0),
            money(sale.total_amount),
            money(sale.total_discount),
            money(sale.final_amount),
            sale.payment_mode,
        ]
        for sale in sales
    ]
    if not rows:
        rows = [['No sales found to export']]

    return _render_workbook('Sales', SALE_COLUMNS, rows)
