# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/order_tracker/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create missing tables and verify the ownership columns.
# - python -m flask system check-schema
#   Report tables missing the user_id ownership column.
#
# User inspection/bootstrap:
# - python -m flask users create --email admin@example.com --password "Password123!" --role Admin
#   Create an account and its profile (prompts if options are omitted).
# - python -m flask users list
#   List profiles with roles.
# - python -m flask users set-role admin@example.com Manager
#   Change the role on a profile.
#
# Demo data:
# - python -m flask demo seed --email admin@example.com
#   Add the sample catalog and one settled order to an account.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired and revoked sessions older than 30 days.

import click
from flask.cli import with_appcontext

from .errors import SchemaMismatch
from .extensions import db
from .models import InventoryItem, Order, UserProfile
from .permissions import TEAM_ROLES
from .services import session_service
from .services.auth_service import PasswordValidationError, AccountExistsError, normalize_email
from .services.data_gateway import DataGateway, reset_schema_cache, set_profile_role
from .services.orders_service import build_order_from_item
from .validation import ConflictError


DEMO_INVENTORY = [
    {
        "name": "Wireless Headphones",
        "category": "Electronics",
        "sku": "HEAD-WH-1000",
        "stock_level": 45,
        "unit_cost": 120.00,
        "retail_price": 199.99,
        "bank_settled_amount": 180.00,
        "min_stock_level": 10,
    },
    {
        "name": "Office Chair",
        "category": "Furniture",
        "sku": "CHAIR-ERG-01",
        "stock_level": 12,
        "unit_cost": 180.00,
        "retail_price": 350.00,
        "bank_settled_amount": 310.00,
        "min_stock_level": 5,
    },
]


def _schema_problems() -> list[SchemaMismatch]:
    reset_schema_cache()
    gateway = DataGateway()
    problems = []
    for model in (Order, InventoryItem):
        try:
            gateway.ensure_ownership_column(model)
        except SchemaMismatch as e:
            problems.append(e)
    return problems


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create missing tables, then verify the ownership columns.

    Idempotent. Existing tables are never altered; use flask db upgrade for
    schema changes.
    """
    click.echo("START Initializing order tracker...")
    db.create_all()
    click.echo("PASS Tables created (existing tables untouched)")

    problems = _schema_problems()
    if problems:
        for problem in problems:
            click.echo(f"FAIL {problem}")
        raise SystemExit(1)
    click.echo("PASS Ownership columns present")
    click.echo("\nNext: python -m flask users create --role Admin")


@system_group.command('check-schema')
@with_appcontext
def check_schema():
    """Report tables missing the ownership column."""
    problems = _schema_problems()
    if not problems:
        click.echo("PASS Schema OK")
        return
    for problem in problems:
        click.echo(f"FAIL {problem}")
    raise SystemExit(1)


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', default='Staff', show_default=True, help=f"Role ({', '.join(TEAM_ROLES)})")
@with_appcontext
def create_user_cli(email, password, role):
    """
    Create an account and its profile.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        result = DataGateway().register(email, password, role=role, start_session=False)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        return
    except AccountExistsError as e:
        click.echo(f"FAIL {str(e)}")
        return
    except ValueError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    profile = result["profile"]
    click.echo(f"PASS Created user: {profile['email']} with role '{profile['role']}'")
    click.echo(f"     User ID: {profile['id']}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all profiles with their roles."""
    profiles = db.session.query(UserProfile).order_by(UserProfile.email.asc()).all()

    if not profiles:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<38} {'Email':<35} {'Role'}")
    click.echo("="*90)
    for profile in profiles:
        click.echo(f"{profile.id:<38} {profile.email:<35} {profile.role}")
    click.echo("="*90 + "\n")


@users_group.command('set-role')
@click.argument('email')
@click.argument('role')
@with_appcontext
def set_role_cli(email, role):
    """Change the role on the profile with EMAIL."""
    profile = db.session.query(UserProfile).filter_by(email=normalize_email(email)).first()
    if not profile:
        click.echo(f"FAIL No profile for {email}")
        return

    profile = set_profile_role(profile.id, role)
    click.echo(f"PASS {profile.email} is now '{profile.role}'")


@click.group('demo')
def demo_group():
    """Sample data for local development."""


@demo_group.command('seed')
@click.option('--email', required=True, help='Account that receives the sample data')
@with_appcontext
def seed_demo(email):
    """Add the sample catalog and one settled order. Skips SKUs already present."""
    profile = db.session.query(UserProfile).filter_by(email=normalize_email(email)).first()
    if not profile:
        click.echo(f"FAIL No profile for {email}. Run 'python -m flask users create' first.")
        return

    gateway = DataGateway(user=profile)
    existing = {(item.sku or "").lower(): item for item in gateway.get_inventory()}

    created = []
    for values in DEMO_INVENTORY:
        item = existing.get(values["sku"].lower())
        if item is None:
            item = gateway.save_inventory_item(dict(values))
            created.append(item.sku)
        existing[values["sku"].lower()] = item
    click.echo(f"PASS Inventory items added: {', '.join(created) if created else 'none'}")

    headphones = existing["head-wh-1000"]
    order = build_order_from_item(headphones, "ORD-001", "2023-10-25", status="Settled")
    try:
        gateway.save_order(order)
        click.echo("PASS Sample order ORD-001 recorded")
    except ConflictError:
        click.echo("WARN  Order ORD-001 already exists, skipping...")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions():
    """Delete expired and revoked sessions older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} sessions")


def register_commands(app):
    """Register all CLI command groups with the Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(demo_group)
    app.cli.add_command(maintenance_group)
