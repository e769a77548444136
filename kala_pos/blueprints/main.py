"""Liveness check for the load balancer and the till's startup screen."""
from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from kala_pos.database import get_session

main_bp = Blueprint('main', __name__)


@main_bp.route('/api/health')
def health():
    """200 with ``status=healthy`` when the store answers ``SELECT 1``, else 500."""
    try:
        value = get_session().execute(text('SELECT 1')).scalar()
    except SQLAlchemyError as e:
        current_app.logger.error(f"Health check failed: {e}")
        return jsonify({'status': 'unhealthy', 'database': 'unreachable', 'error': str(e)}), 500

    if value != 1:
        return jsonify({'status': 'unhealthy', 'database': 'unexpected reply'}), 500
    return jsonify({'status': 'healthy', 'database': 'ok'})
