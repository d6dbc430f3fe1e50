# Overview: Flask CLI command group for schema bootstrap and sample data.

# backend/cashier/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# - python -m flask catalog init-db
#   Create all tables (no-op for existing ones).
# - python -m flask catalog reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask catalog seed
#   Insert sample categories and products; safe to run twice.
#
# Schema migrations go through Flask-Migrate: python -m flask db upgrade

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .storage import get_storage

SAMPLE_CATEGORIES = [
    {"name": "Makanan", "description": "Instant and packaged food"},
    {"name": "Minuman", "description": "Bottled and canned drinks"},
]

# (name, price, stock, category name)
SAMPLE_PRODUCTS = [
    ("Indomie Goreng", 3500, 100, "Makanan"),
    ("Roti Tawar", 15000, 20, "Makanan"),
    ("Teh Botol", 5000, 50, "Minuman"),
    ("Air Mineral 600ml", 4000, 80, "Minuman"),
]


@click.group('catalog')
def catalog_group():
    """Schema bootstrap and sample data commands."""


@catalog_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    if current_app.config.get("STORAGE_BACKEND") != "sql":
        click.echo("SKIP  In-memory storage has no schema.")
        return
    db.create_all()
    click.echo("OK  Tables created.")


@catalog_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("OK  Database reset complete.")


@catalog_group.command('seed')
@with_appcontext
def seed():
    """Insert sample categories and products that are not there yet."""
    catalog = get_storage().catalog

    categories = {c.name: c for c in catalog.list_categories()}
    for fields in SAMPLE_CATEGORIES:
        if fields["name"] in categories:
            continue
        categories[fields["name"]] = catalog.create_category(dict(fields))
        click.echo(f"CREATE  Category {fields['name']}")

    existing = {p.name for p in catalog.list_products()}
    created = 0
    for name, price, stock, category_name in SAMPLE_PRODUCTS:
        if name in existing:
            continue
        catalog.create_product({
            "name": name,
            "price": price,
            "stock": stock,
            "active": True,
            "category_id": categories[category_name].id,
        })
        created += 1
        click.echo(f"CREATE  Product {name} ({price}, stock {stock})")

    click.echo(f"OK  Seed complete: {created} new product(s).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(catalog_group)
