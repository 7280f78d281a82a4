# Overview: Flask CLI command groups for bootstrap, provisioning and reporting.

# backend/freshguard/cli.py
# Commands Legend (run from the repository root):
# Prereqs:
# - Activate your virtualenv and `pip install -e .`
# - Set FLASK_APP=freshguard
# - Use: flask <group> <command> [options]
#
# System bootstrap:
# - flask system init
#   Create tables and seed the admin user from ADMIN_EMAIL / ADMIN_PASSWORD.
# - flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Terminal provisioning:
# - flask codes issue --store-id 1 [--hours 24] [--code ABCD1234]
#   Issue a one-time binding code for a store.
# - flask codes list
#   List binding codes, newest first.
#
# Reporting:
# - flask reports expired
#   Print the expired handling report.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import auth_service, binding_service, reporting_service
from .services.auth_service import PasswordValidationError
from .time_utils import to_utc_z
from .validation import ServiceError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create tables and seed the admin account. Idempotent."""
    click.echo("START Initializing FreshGuard...")
    db.create_all()
    click.echo("PASS Tables ready")

    email = current_app.config["ADMIN_EMAIL"]
    try:
        user = auth_service.ensure_admin_user(email, current_app.config["ADMIN_PASSWORD"])
    except PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed for '{email}': {e}")
    click.echo(f"PASS Admin user: {user.email} (ID: {user.id})")
    click.echo("DONE")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        raise click.ClickException("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('codes')
def codes_group():
    """Binding code provisioning."""


@codes_group.command('issue')
@click.option('--store-id', type=int, required=True, help='Store the terminal will act as')
@click.option('--hours', type=float, default=None, help='Validity in hours (default from config)')
@click.option('--code', default=None, help='Explicit code; generated when omitted')
@with_appcontext
def issue_code(store_id, hours, code):
    """Issue a one-time binding code."""
    try:
        binding = binding_service.issue_binding_code(store_id, hours, code)
    except ServiceError as e:
        raise click.ClickException(e.message)
    click.echo(f"{binding.code}  store={binding.store_id}  expires={to_utc_z(binding.expires_at)}")


@codes_group.command('list')
@with_appcontext
def list_codes():
    """List binding codes, newest first."""
    for binding in binding_service.list_binding_codes():
        state = f"used by {binding.bound_device_id or '-'} at {to_utc_z(binding.used_at)}" if binding.used_at else "unused"
        click.echo(f"{binding.code:<12} store={binding.store_id:<4} expires={to_utc_z(binding.expires_at)}  {state}")


@click.group('reports')
def reports_group():
    """Reporting commands."""


@reports_group.command('expired')
@with_appcontext
def expired_report():
    """Expired reminders per store and product."""
    rows = reporting_service.expired_handling_report()
    if not rows:
        click.echo("No expired reminders.")
        return
    click.echo(f"{'STORE':<24} {'PRODUCT':<24} {'TOTAL':>6} {'HANDLED':>8} {'OPEN':>6}")
    for row in rows:
        click.echo(
            f"{row['store_name'][:24]:<24} {row['product_name'][:24]:<24} "
            f"{row['expired_total_count']:>6} {row['expired_handled_count']:>8} "
            f"{row['expired_unhandled_count']:>6}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(codes_group)
    app.cli.add_command(reports_group)
