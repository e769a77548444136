"""Flask application factory."""
from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException
from kala_pos.database import init_db, create_all
import logging
import os


def _configure_logging(app):
    """Root logger level from LOG_LEVEL; Flask's handler stays in place."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    logging.getLogger().setLevel(level)
    app.logger.setLevel(level)


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    _configure_logging(app)

    # Initialize Sentry for error tracking in production
    if os.getenv('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Setup Prometheus metrics instrumentation
    from kala_pos.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Initialize database
    init_db(app)
    if app.config.get('TESTING') or app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite'):
        # SQLite has no migrations; tables are created on start
        create_all()

    # Error Handlers
    from kala_pos.exceptions import PosError

    @app.errorhandler(PosError)
    def handle_pos_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"PosError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"PosError [{error.status_code}] {request.method} {request.path}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            'status': 'error',
            'error': error.name,
            'message': error.description
        }), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({
            'status': 'error',
            'error': 'Internal Server Error',
            'message': 'Internal Server Error'
        }), 500

    # Register blueprints
    from kala_pos.blueprints.main import main_bp
    from kala_pos.blueprints.catalog import catalog_bp
    from kala_pos.blueprints.products import products_bp
    from kala_pos.blueprints.sales import sales_bp
    from kala_pos.blueprints.transfer import transfer_bp
    from kala_pos.blueprints.metrics import metrics_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(transfer_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from kala_pos.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
