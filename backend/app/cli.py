# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/app/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables (if missing) and the SYSTEM user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role SHIPPER]
#   List all users with role, verification and active status.
# - python -m flask users create --email ada@example.com --name "Ada" --password "Password123!" --role SHIPPER
#   Create a user (prompts if options are omitted).
#
# Permission inspection:
# - python -m flask perms show SHIPPER
#   Print the role's resource/action table.
# - python -m flask perms check ada@example.com boxes create
#   Evaluate the policy for a user (no instance, so ownership rules pass).

import click
from flask.cli import with_appcontext

from .errors import ServiceError
from .extensions import db
from .models import User, VerificationStatus
from .permissions import Actions, Roles, describe_role, describe_rule, get_rule, has_full_access
from .services import permission_service
from .services.auth_service import create_user, ensure_system_user, get_user_by_email
from .services.session_service import Principal


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the Shipline backend.

    Creates:
    - Any missing tables (use `flask db upgrade` in production)
    - The SYSTEM user background jobs act as (never able to log in)
    """
    click.echo("START Initializing Shipline...")

    db.create_all()
    click.echo("PASS Tables present")

    system_user = ensure_system_user()
    click.echo(f"PASS System user: {system_user.email} (ID: {system_user.id})")

    click.echo("DONE System initialized")


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
    click.echo("START Recreating tables...")
    db.create_all()
    ensure_system_user()
    click.echo("PASS Database reset complete")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice([Roles.ADMIN, Roles.SHIPPER, Roles.CLIENT]), prompt=True, help='Role')
@click.option('--business-name', default=None, help='Business name (shippers)')
@click.option('--verified', is_flag=True, help='Mark as VERIFIED (bootstrap accounts that will vouch for others)')
@with_appcontext
def create_user_cli(email, name, password, role, business_name, verified):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(
            email=email,
            password=password,
            role=role,
            name=name,
            business_name=business_name,
            verification_status=VerificationStatus.VERIFIED if verified else VerificationStatus.UNVERIFIED,
        )
    except ServiceError as e:
        db.session.rollback()
        click.echo(f"FAIL {e.message}")
        return

    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@click.option('--role', type=click.Choice(list(Roles.ALL)), default=None, help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)

    users = query.order_by(User.created_at).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'Email':<35} {'Role':<8} {'Verification':<14} {'Active':<7} {'ID'}")
    click.echo("="*100)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        role_str = f"{user.role}*" if user.is_system_user else user.role
        click.echo(f"{user.email:<35} {role_str:<8} {user.verification_status:<14} {active_str:<7} {user.id}")

    click.echo("="*100)
    click.echo(f"Total: {len(users)} users (* = system user)\n")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('show')
@click.argument('role', type=click.Choice(list(Roles.ALL)))
def show_role(role):
    """Print the resource/action table for a role."""
    if has_full_access(role):
        click.echo(f"{role}: full access (* -> * -> allow)")
        return

    rows = describe_role(role)
    click.echo(f"\n{'Resource':<20} {'Action':<8} Rule")
    click.echo("-"*50)
    for resource, action, description in rows:
        click.echo(f"{resource:<20} {action:<8} {description}")
    click.echo(f"\n{len(rows)} rules")


@perms_group.command('check')
@click.argument('email')
@click.argument('resource')
@click.argument('action', type=click.Choice(list(Actions.ALL)))
@with_appcontext
def check_permission_cli(email, resource, action):
    """Check whether a user may perform ACTION on RESOURCE."""
    user = get_user_by_email(email)

    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    principal = Principal.from_user(user)
    allowed = permission_service.can(principal, action, resource)

    if allowed:
        click.echo(f"PASS {user.email} ({user.role}) CAN {action} {resource}")
    else:
        click.echo(f"FAIL {user.email} ({user.role}) CANNOT {action} {resource}")

    if not has_full_access(user.role):
        click.echo(f"Rule: {describe_rule(get_rule(user.role, resource, action))}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
