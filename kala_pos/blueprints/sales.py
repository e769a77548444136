"""Sales blueprint: create, list, detail, edit and delete bills/estimates."""
from flask import Blueprint, jsonify, request, current_app
from kala_pos.database import get_session
from kala_pos.utils.request_body import json_body
from kala_pos.services.sales_service import create_sale, parse_sale_type
from kala_pos.services.sale_adjustment_service import replace_sale
from kala_pos.services.sale_delete_service import delete_sale_with_reversal
from kala_pos.services.sale_query_service import (
    get_sale_detail, list_sales, parse_sale_filters
)
from kala_pos.services.sequence_service import peek_next_document_number
from kala_pos.blueprints.metrics import sales_created_total, sales_updated_total, sales_deleted_total

sales_bp = Blueprint('sales', __name__, url_prefix='/api/sales')


@sales_bp.route('', methods=['POST'])
def create():
    """
    Create a sale and decrement stock.

    Body: type, customer_name, mobile, payment_mode, remarks,
    customer_address, customer_gstin, total_amount, total_discount,
    final_amount, items[{product_id, quantity, sale_price?, category_name?}]

    Returns 201 with the full sale including items.
    """
    db_session = get_session()
    data = json_body()

    sale = create_sale(
        data,
        db_session,
        default_customer_name=current_app.config['DEFAULT_CUSTOMER_NAME'],
        timezone_name=current_app.config['STORE_TIMEZONE'],
        allow_negative_stock=current_app.config['ALLOW_NEGATIVE_STOCK']
    )
    sales_created_total.labels(type=sale.type).inc()

    return jsonify(get_sale_detail(db_session, sale.id)), 201


@sales_bp.route('', methods=['GET'])
def list_all():
    """Sale headers filtered by date|startDate&endDate, type and search, newest first."""
    db_session = get_session()
    filters = parse_sale_filters(request.args)
    return jsonify([sale.to_dict() for sale in list_sales(db_session, filters)])


@sales_bp.route('/next-number', methods=['GET'])
def next_number():
    """Number the next sale of ?type= would receive (not reserved)."""
    sale_type = parse_sale_type(request.args.get('type'))
    number = peek_next_document_number(get_session(), sale_type)
    return jsonify({'type': sale_type.value, 'number': number})


@sales_bp.route('/<int:sale_id>', methods=['GET'])
def detail(sale_id: int):
    """Sale header with its items."""
    return jsonify(get_sale_detail(get_session(), sale_id))


@sales_bp.route('/<int:sale_id>', methods=['PUT'])
def update(sale_id: int):
    """Replace totals and items; stock is reconciled per product."""
    data = json_body()

    sale = replace_sale(
        sale_id,
        data,
        get_session(),
        allow_negative_stock=current_app.config['ALLOW_NEGATIVE_STOCK']
    )
    sales_updated_total.inc()

    return jsonify({
        'id': sale_id,
        'number': sale.number,
        'message': 'Sale updated successfully'
    })


@sales_bp.route('/<int:sale_id>', methods=['DELETE'])
def delete(sale_id: int):
    """Delete a sale and restore its stock."""
    result = delete_sale_with_reversal(sale_id, get_session())
    sales_deleted_total.inc()
    return jsonify(result)
