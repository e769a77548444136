"""Spreadsheet import/export blueprint."""
from flask import Blueprint, jsonify, request, send_file, current_app
from kala_pos.database import get_session
from kala_pos.exceptions import ImportFailedError, ValidationError
from kala_pos.services.export_service import (
    XLSX_MIMETYPE, build_products_workbook, build_sales_workbook
)
from kala_pos.services.import_service import import_products, read_product_rows
from kala_pos.services.sale_query_service import parse_sale_filters
from kala_pos.blueprints.metrics import import_rows_total

transfer_bp = Blueprint('transfer', __name__, url_prefix='/api')


def _allowed_file(filename: str) -> bool:
    extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
    return extension in current_app.config['ALLOWED_IMPORT_EXTENSIONS']


@transfer_bp.route('/import/products', methods=['POST'])
def import_products_file():
    """
    Upsert products from an uploaded .xlsx (multipart field ``file``).

    Returns {message, imported, created, updated, errors[]}; 422 with the
    error list when no row could be imported.
    """
    upload = request.files.get('file')
    if not upload or not upload.filename:
        raise ValidationError('No file uploaded')
    if not _allowed_file(upload.filename):
        raise ValidationError('Only .xlsx files can be imported')

    rows = read_product_rows(upload.stream)
    current_app.logger.info(f"Importing {len(rows)} rows from {upload.filename}")

    try:
        result = import_products(get_session(), rows)
    except ImportFailedError:
        import_rows_total.labels(outcome='rejected').inc(len(rows))
        raise

    import_rows_total.labels(outcome='imported').inc(result['imported'])
    import_rows_total.labels(outcome='rejected').inc(len(result['errors']))

    return jsonify(result)


@transfer_bp.route('/export/products', methods=['GET'])
def export_products():
    buffer = build_products_workbook(get_session())
    return send_file(
        buffer,
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name='products.xlsx'
    )


@transfer_bp.route('/export/sales', methods=['GET'])
def export_sales():
    """Sales report with the same filters as GET /api/sales."""
    filters = parse_sale_filters(request.args)
    buffer = build_sales_workbook(get_session(), filters)
    return send_file(
        buffer,
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name='sales.xlsx'
    )
