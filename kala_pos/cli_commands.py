"""
Flask CLI commands for database management.

Commands:
- flask init-db [--seed]: create tables, optionally load the sample catalog
- flask seed-db: load the sample catalog into an empty database
"""

import click
from decimal import Decimal
from flask import current_app
from kala_pos.database import create_all, get_session, transaction
from kala_pos.models import Product
from kala_pos.services.catalog_service import get_or_create_category, get_or_create_manufacturer

SAMPLE_CATEGORIES = ['Sarees', 'Shirts', 'Pants', 'Coord Set']
SAMPLE_MANUFACTURERS = ['XYZ Clothing', 'ABC Manufacturer', 'JKL Textiles', 'Geeta tailers']
SAMPLE_PRODUCTS = [
    # barcode, category, manufacturer, quantity, cost_price, sale_price
    ('12345678', 'Sarees', 'XYZ Clothing', 31, '1000', '2000'),
    ('87654321', 'Coord Set', 'ABC Manufacturer', 20, '3500', '5000'),
    ('10101010', 'Shirts', 'JKL Textiles', 24, '150', '300'),
    ('10000000', 'Pants', 'Geeta tailers', 32, '500', '860'),
]


def seed_sample_data(session) -> int:
    """
    Insert the sample catalog when there are no products yet.

    Returns the number of products created (0 if the catalog was not empty).
    """
    if session.query(Product.id).first():
        return 0

    with transaction(session):
        categories = {name: get_or_create_category(session, name) for name in SAMPLE_CATEGORIES}
        manufacturers = {name: get_or_create_manufacturer(session, name) for name in SAMPLE_MANUFACTURERS}

        for barcode, category, manufacturer, quantity, cost_price, sale_price in SAMPLE_PRODUCTS:
            session.add(Product(
                barcode=barcode,
                category_id=categories[category].id,
                manufacturer_id=manufacturers[manufacturer].id,
                quantity=quantity,
                cost_price=Decimal(cost_price),
                sale_price=Decimal(sale_price)
            ))

    return len(SAMPLE_PRODUCTS)


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    @click.option('--seed/--no-seed', default=None, help='Load the sample catalog into an empty database')
    def init_db_command(seed):
        """Create all tables."""
        create_all()
        click.echo(click.style('Database tables created', fg='green'))

        if seed is None:
            seed = current_app.config.get('SEED_SAMPLE_DATA', False)
        if seed:
            created = seed_sample_data(get_session())
            click.echo(f'Sample products created: {created}')

    @app.cli.command('seed-db')
    def seed_db_command():
        """Load the sample catalog (only if there are no products)."""
        create_all()
        created = seed_sample_data(get_session())
        if created:
            click.echo(click.style(f'Sample products created: {created}', fg='green'))
        else:
            click.echo(click.style('Catalog not empty, nothing seeded', fg='yellow'))
