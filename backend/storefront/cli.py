# Overview: Flask CLI command groups for bootstrap, search maintenance, and trade-in inspection.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, phone conditions, repair statuses and pricing parameters.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Search maintenance:
# - python -m flask search update-embeddings [--all] [--limit 50]
#   Embed products that have no vector yet (or every product with --all).
#
# Trade-in inspection:
# - python -m flask tradeins list [--status pending]
#   Print the trade-in queue, newest first.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import appointment_service, pricing_service, products_service, trade_in_service
from .services.ai_service import AIServiceError
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and seed reference data.

    Creates (when missing):
    - Phone conditions: Like New, Excellent, Good, Fair, Poor
    - Repair statuses: Pending, In Progress, Waiting for Parts, Completed, Cancelled
    - Pricing parameters: market_adjustment_factor, minimum_offer_cents
    """
    click.echo("START Initializing storefront...")

    db.create_all()
    click.echo("PASS Tables ready")

    created = pricing_service.ensure_defaults()
    click.echo(f"PASS Conditions created: {created['conditions']}")
    click.echo(f"PASS Pricing parameters created: {created['parameters']}")

    statuses = appointment_service.ensure_default_statuses()
    click.echo(f"PASS Repair statuses created: {statuses}")

    click.echo("DONE Storefront initialized.")


@system_group.command('reset-db')
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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to seed reference data.")


@click.group('search')
def search_group():
    """Product search maintenance commands."""


@search_group.command('update-embeddings')
@click.option('--all', 'refresh_all', is_flag=True, help='Re-embed every product')
@click.option('--limit', type=int, help='Maximum number of products to embed')
@with_appcontext
def update_embeddings_cli(refresh_all, limit):
    """Store embedding vectors for product name + description."""
    try:
        result = products_service.update_embeddings(refresh_all=refresh_all, limit=limit)
    except AIServiceError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Embedded {result['updated']} product(s)")
    if result["failed"]:
        click.echo(f"WARN Failed: {', '.join(str(i) for i in result['failed'])}")


@click.group('tradeins')
def tradeins_group():
    """Trade-in inspection commands."""


@tradeins_group.command('list')
@click.option('--status', default='all', show_default=True, help='Lifecycle status or "all"')
@with_appcontext
def list_tradeins_cli(status):
    """List trade-ins, newest first."""
    try:
        result = trade_in_service.list_trade_ins(status=status)
    except ValidationError as e:
        raise click.ClickException(str(e))

    items = result["items"]
    if not items:
        click.echo("No trade-ins found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<6} {'Status':<11} {'Model':<28} {'Condition':<12} {'Estimate':<10} {'Offered'}")
    click.echo("="*90)

    for item in items:
        model_name = (item.get("device_model") or {}).get("name") or "-"
        condition_name = (item.get("condition") or {}).get("name") or "-"
        estimate = f"{item['estimated_value_cents'] / 100:.2f}"
        offered = "-" if item["offered_value_cents"] is None else f"{item['offered_value_cents'] / 100:.2f}"
        click.echo(
            f"{item['id']:<6} {item['status']:<11} {model_name:<28} {condition_name:<12} {estimate:<10} {offered}"
        )

    click.echo("="*90 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(search_group)
    app.cli.add_command(tradeins_group)
