"""Catalog blueprint: categories and manufacturers."""
from flask import Blueprint, jsonify
from kala_pos.database import get_session
from kala_pos.utils.request_body import json_body
from kala_pos.services import catalog_service

catalog_bp = Blueprint('catalog', __name__, url_prefix='/api')


@catalog_bp.route('/categories', methods=['GET'])
def list_categories():
    """All categories, alphabetical."""
    categories = catalog_service.list_categories(get_session())
    return jsonify([c.to_dict() for c in categories])


@catalog_bp.route('/categories', methods=['POST'])
def create_category():
    """Add a category (409 if the name exists)."""
    data = json_body()
    category = catalog_service.create_category(get_session(), data.get('name'))
    return jsonify(category.to_dict()), 201


@catalog_bp.route('/manufacturers', methods=['GET'])
def list_manufacturers():
    """All manufacturers, alphabetical."""
    manufacturers = catalog_service.list_manufacturers(get_session())
    return jsonify([m.to_dict() for m in manufacturers])


@catalog_bp.route('/manufacturers', methods=['POST'])
def create_manufacturer():
    """Add a manufacturer (409 if the name exists)."""
    data = json_body()
    manufacturer = catalog_service.create_manufacturer(get_session(), data.get('name'))
    return jsonify(manufacturer.to_dict()), 201
