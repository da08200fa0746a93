# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/billing/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, default settings and default categories.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Settings:
# - python -m flask settings show
#   Print every setting (mail password masked).
# - python -m flask settings set invoice_prefix INV
#   Update one setting (invoice_counter must be a positive integer).
#
# Invoices:
# - python -m flask invoices list --status unpaid --from 2026-01-01 --to 2026-01-31
#   List invoices with the same filters as GET /api/invoices.
# - python -m flask invoices delete 42 --yes
#   Reverse and delete one invoice (restores stock and customer balance).

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import invoice_service, products_service
from .services.settings_service import SettingsRepository, update_settings
from .validation import ValidationError

MASKED_KEYS = {"gmail_app_password"}


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the store database.

    Creates:
    - All tables (if missing)
    - Default settings (store profile, invoice_prefix=GKS, invoice_counter=1)
    - Default product categories
    """
    click.echo("START Initializing billing database...")

    db.create_all()
    click.echo("PASS Tables ready")

    added_settings = SettingsRepository().seed_defaults()
    added_categories = products_service.seed_default_categories()
    db.session.commit()

    click.echo(f"PASS Seeded {added_settings} settings, {added_categories} categories")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to seed defaults.")


@click.group('settings')
def settings_group():
    """Inspect and change store settings."""


@settings_group.command('show')
@with_appcontext
def show_settings():
    settings = SettingsRepository().all()
    db.session.commit()
    for key, value in settings.items():
        if key in MASKED_KEYS and value:
            value = "********"
        click.echo(f"{key:<22} {value}")


@settings_group.command('set')
@click.argument('key')
@click.argument('value')
@with_appcontext
def set_setting(key, value):
    try:
        update_settings({key: value})
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS {key} = {value}")


@click.group('invoices')
def invoices_group():
    """Invoice inspection and reversal."""


@invoices_group.command('list')
@click.option('--search', default=None, help='Invoice number or customer name substring')
@click.option('--status', default=None, type=click.Choice(['paid', 'unpaid', 'partial']))
@click.option('--from', 'date_from', default=None, help='YYYY-MM-DD (inclusive)')
@click.option('--to', 'date_to', default=None, help='YYYY-MM-DD (inclusive)')
@with_appcontext
def list_invoices_cmd(search, status, date_from, date_to):
    try:
        invoices = invoice_service.list_invoices(
            search=search, status=status, date_from=date_from, date_to=date_to,
        )
    except ValidationError as e:
        raise click.ClickException(str(e))

    if not invoices:
        click.echo("No invoices found.")
        return

    for inv in invoices:
        click.echo(
            f"{inv['invoice_number']:<12} {inv['created_at'] or '':<21} "
            f"{inv['customer_name'][:24]:<24} {inv['total_amount']:>10} "
            f"{inv['payment_status']:<8} due={inv['balance_due']}"
        )


@invoices_group.command('delete')
@click.argument('invoice_id', type=int)
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def delete_invoice_cmd(invoice_id, yes):
    if not yes:
        click.confirm(f"Reverse and delete invoice {invoice_id}?", abort=True)
    result = invoice_service.delete_invoice(invoice_id)
    if result.get("reversed"):
        click.echo(f"PASS Invoice {invoice_id} reversed and deleted")
    else:
        click.echo(f"WARN Invoice {invoice_id} not found; nothing to do")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(settings_group)
    app.cli.add_command(invoices_group)
