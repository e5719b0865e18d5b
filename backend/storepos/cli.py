# Overview: Flask CLI command groups for bootstrap and staff accounts.

# backend/storepos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "storepos:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create all tables (idempotent) for local setups without migrations.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Staff accounts:
# - python -m flask users create --username admin --email admin@store.local --full-name "Store Admin" --role admin
#   Create a user (prompts for the password).
# - python -m flask users list [--all]
#   List users with role and active status.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import USER_ROLES
from .schemas import CreateUserInput
from .services import users_service
from .validation import ValidationError, ConflictError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def system_init():
    """Create all tables."""
    db.create_all()
    click.echo("Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset.')
@with_appcontext
def system_reset_db(yes: bool):
    """Drop and recreate all tables. DEV/TEST ONLY."""
    if not yes:
        raise click.ClickException("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("Database reset complete.")


@click.group('users')
def users_group():
    """Staff account commands."""


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--full-name', prompt=True)
@click.option('--role', type=click.Choice(USER_ROLES), default='cashier', show_default=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def users_create(username: str, email: str, full_name: str, role: str, password: str):
    """Create a staff account."""
    try:
        data = CreateUserInput.from_payload({
            "username": username,
            "email": email,
            "password": password,
            "full_name": full_name,
            "role": role,
        })
        user = users_service.create_user(data)
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"Created user id={user.id} username={user.username} role={user.role}")


@users_group.command('list')
@click.option('--all', 'include_inactive', is_flag=True, help='Include inactive users.')
@with_appcontext
def users_list(include_inactive: bool):
    """List staff accounts."""
    users = users_service.list_users(include_inactive=include_inactive)
    if not users:
        click.echo("No users found.")
        return
    for u in users:
        status = "active" if u.is_active else "inactive"
        click.echo(f"{u.id:>4}  {u.username:<20} {u.role:<14} {status}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
