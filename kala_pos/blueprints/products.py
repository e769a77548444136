"""Products blueprint: inventory lookups and admin edits."""
from flask import Blueprint, jsonify
from kala_pos.database import get_session
from kala_pos.utils.request_body import json_body
from kala_pos.services import product_service

products_bp = Blueprint('products', __name__, url_prefix='/api/products')


@products_bp.route('', methods=['GET'])
def list_products():
    """All products with category and manufacturer names."""
    products = product_service.list_products(get_session())
    return jsonify([p.to_dict() for p in products])


@products_bp.route('/barcode/<path:barcode>', methods=['GET'])
def get_by_barcode(barcode: str):
    """Scanner lookup."""
    product = product_service.get_product_by_barcode(get_session(), barcode)
    return jsonify(product.to_dict())


@products_bp.route('/<int:product_id>', methods=['GET'])
def get_product(product_id: int):
    product = product_service.get_product(get_session(), product_id)
    return jsonify(product.to_dict())


@products_bp.route('', methods=['POST'])
def create_product():
    """Create a product (400 missing fields, 409 duplicate barcode)."""
    data = json_body()
    product = product_service.create_product(get_session(), data)
    return jsonify(product.to_dict()), 201


@products_bp.route('/<int:product_id>', methods=['PATCH'])
def update_product(product_id: int):
    """Replace category, manufacturer, quantity and prices together."""
    data = json_body()
    product = product_service.update_product(get_session(), product_id, data)
    return jsonify(product.to_dict())


@products_bp.route('/<int:product_id>/quantity', methods=['PATCH'])
def update_quantity(product_id: int):
    """Set the stock count directly (admin correction)."""
    data = json_body()
    product = product_service.set_quantity(get_session(), product_id, data.get('quantity'))
    return jsonify({'id': product.id, 'quantity': product.quantity})
