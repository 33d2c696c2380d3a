# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/posx/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent). Prefer `flask db upgrade` for real deployments.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Client accounts:
# - python -m flask clients create --name "Corner Shop" --phone 5550100 --password "Password123!"
#   Create an active client account (prompts if options are omitted).
# - python -m flask clients list
#   List all clients with their status.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired and revoked sessions older than 30 days.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Client
from .services import client_service, maintenance_service
from .services.auth_service import PasswordValidationError
from .validation import ConflictError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask clients create' to add a client.")


@click.group('clients')
def clients_group():
    """Client account commands."""


@clients_group.command('create')
@click.option('--name', 'client_name', prompt=True, help='Client (shop) name')
@click.option('--phone', 'phone_number', prompt=True, help='Login phone number')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--email', default=None, help='Contact email')
@click.option('--company', 'company_name', default=None, help='Company name')
@with_appcontext
def create_client_cli(client_name, phone_number, password, email, company_name):
    """
    Create an active client account.

    Password must be at least 8 characters.
    """
    try:
        client = client_service.create_client(patch={
            "client_name": client_name,
            "phone_number": phone_number,
            "password": password,
            "email": email,
            "company_name": company_name,
        })
    except PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed: {e}")
    except ConflictError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created client: {client.client_name} ({client.client_code})")
    click.echo(f"     Login phone: {client.phone_number}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@clients_group.command('list')
@with_appcontext
def list_clients_cli():
    """List all clients."""
    clients = db.session.query(Client).order_by(Client.id.asc()).all()

    if not clients:
        click.echo("No clients found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Code':<26} {'Name':<25} {'Phone':<16} {'Status'}")
    click.echo("="*100)

    for client in clients:
        click.echo(
            f"{client.id:<5} {client.client_code:<26} {client.client_name[:24]:<25} "
            f"{client.phone_number:<16} {client.status}"
        )

    click.echo("="*100 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired and revoked sessions older than 30 days."""
    deleted = maintenance_service.cleanup_sessions()
    click.echo(f"Deleted {deleted} stale sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(clients_group)
    app.cli.add_command(maintenance_group)
