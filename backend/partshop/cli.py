# Overview: Flask CLI command groups for bootstrap, accounts, couriers and catalog maintenance.

# backend/partshop/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-password "Password123!"]
#   Idempotent bootstrap: creates tables, roles, delivery statuses and an admin account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system cleanup-sessions
#   Delete expired and old revoked session tokens.
#
# Accounts:
# - python -m flask users create --username staff1 --name "Staff One" --password "Password123!" --role employee
#   Create an account (prompts if options are omitted).
# - python -m flask users list
#   List accounts with their roles.
#
# Couriers (shipping rate table):
# - python -m flask couriers add --name "J&T" --base-rate 120 --rate-per-kg 40 --max-weight 50 --eta "2-3 days"
# - python -m flask couriers list
#
# Vehicle catalog:
# - python -m flask vehicles backfill-variants --dry-run
#   Show (or, without --dry-run, apply) the base model / variant split for models created without one.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import (
    ROLE_ADMIN,
    ROLE_CUSTOMER,
    ROLE_EMPLOYEE,
    ROLE_MANAGER,
    Courier,
    RoleType,
    User,
)
from .services.auth_service import create_default_roles, create_user
from .services.order_service import ensure_default_statuses
from .services import session_service
from .services import vehicle_service
from .validation import ConflictError, ValidationError

ROLE_CHOICES = {
    "admin": ROLE_ADMIN,
    "manager": ROLE_MANAGER,
    "employee": ROLE_EMPLOYEE,
    "customer": ROLE_CUSTOMER,
}


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-username', default='admin', help='Username of the bootstrap admin')
@click.option('--admin-password', default='Password123!', help='Password of the bootstrap admin')
@with_appcontext
def init_system(admin_username, admin_password):
    """
    Initialize the shop: tables, roles, delivery statuses and one admin account.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing shop...")

    db.create_all()
    click.echo("PASS Tables ready")

    roles = create_default_roles()
    click.echo(f"PASS Roles: {', '.join(r.title for r in roles)}")

    ensure_default_statuses()
    click.echo("PASS Delivery statuses ready")

    if db.session.query(User).filter_by(username=admin_username).first():
        click.echo(f"WARN  User '{admin_username}' already exists, skipping...")
    else:
        try:
            create_user(
                user_name="Administrator",
                username=admin_username,
                password=admin_password,
                role_id=ROLE_ADMIN,
                is_superuser=True,
            )
            click.echo(f"PASS Created admin user: {admin_username}")
        except ValidationError as e:
            click.echo(f"FAIL Could not create admin user: {e}")

    click.echo("DONE Shop initialized.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions():
    """Delete expired session tokens."""
    count = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Removed {count} session tokens")


@click.group('users')
def users_group():
    """Account inspection and bootstrap."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Login name')
@click.option('--name', 'user_name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(ROLE_CHOICES)), prompt=True, help='Role')
@click.option('--email', default=None, help='Email address')
@click.option('--superuser', is_flag=True, help='Grant superuser')
@with_appcontext
def create_user_cli(username, user_name, password, role, email, superuser):
    """Create an account with the given role."""
    create_default_roles()
    try:
        user = create_user(
            user_name=user_name,
            username=username,
            password=password,
            role_id=ROLE_CHOICES[role],
            email=email,
            is_superuser=superuser,
        )
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user: {user.username} (ID: {user.user_id}) with role '{role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all accounts."""
    rows = (
        db.session.query(User, RoleType)
        .outerjoin(RoleType, User.role_id == RoleType.role_id)
        .order_by(User.user_id.asc())
        .all()
    )
    if not rows:
        click.echo("No users found.")
        return
    click.echo(f"{'ID':<6} {'Username':<24} {'Role':<12} {'Superuser':<10} Last login")
    click.echo("-" * 80)
    for user, role in rows:
        click.echo(
            f"{user.user_id:<6} {user.username:<24} {(role.title if role else '?'):<12} "
            f"{('yes' if user.is_superuser else 'no'):<10} {user.last_login or '-'}"
        )


@click.group('couriers')
def couriers_group():
    """Shipping rate table."""


@couriers_group.command('add')
@click.option('--name', required=True, help='Courier name')
@click.option('--base-rate', type=float, required=True, help='Fee for the first kilogram')
@click.option('--rate-per-kg', type=float, required=True, help='Fee per started kilogram above 1 kg')
@click.option('--max-weight', type=float, default=None, help='Heaviest cart accepted (kg); omit for no limit')
@click.option('--eta', default=None, help='Delivery time shown at checkout')
@with_appcontext
def add_courier(name, base_rate, rate_per_kg, max_weight, eta):
    if base_rate < 0 or rate_per_kg < 0:
        raise click.BadParameter("rates must be >= 0")
    if max_weight is not None and max_weight <= 0:
        raise click.BadParameter("max weight must be > 0")

    courier = Courier(
        name=name.strip(),
        base_rate=base_rate,
        rate_per_kg=rate_per_kg,
        max_weight=max_weight,
        delivery_time=eta,
    )
    db.session.add(courier)
    db.session.commit()
    click.echo(f"PASS Created courier: {courier.name} (ID: {courier.courier_id})")


@couriers_group.command('list')
@with_appcontext
def list_couriers():
    couriers = db.session.query(Courier).order_by(Courier.courier_id.asc()).all()
    if not couriers:
        click.echo("No couriers found.")
        return
    for c in couriers:
        limit = f"{c.max_weight:g} kg" if c.max_weight is not None else "no limit"
        click.echo(f"{c.courier_id:<4} {c.name:<24} base {c.base_rate:g} + {c.rate_per_kg:g}/kg ({limit}) {c.delivery_time or ''}")


@click.group('vehicles')
def vehicles_group():
    """Vehicle catalog maintenance."""


@vehicles_group.command('backfill-variants')
@click.option('--dry-run', is_flag=True, help='Only print the proposed split')
@with_appcontext
def backfill_variants(dry_run):
    changes = vehicle_service.backfill_model_variants(dry_run=dry_run)
    for change in changes:
        click.echo(f"{change['model_id']:<6} {change['model_name']!r} -> base={change['base_model']!r} variant={change['variant']!r}")
    verb = "Would update" if dry_run else "Updated"
    click.echo(f"PASS {verb} {len(changes)} models")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(couriers_group)
    app.cli.add_command(vehicles_group)
