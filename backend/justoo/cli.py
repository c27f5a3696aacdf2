# Overview: Flask CLI command groups for bootstrap, account management, and maintenance.

# backend/justoo/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: superadmin, inventory admin, demo rider, demo catalog.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Accounts:
# - python -m flask admins list
# - python -m flask admins create --username ops --email ops@justoo.local --password "Password123!" --role admin
# - python -m flask inventory-users create --username stock --email stock@justoo.local --password "Password123!" --role admin
# - python -m flask riders create --name "Ravi Kumar" --phone 9876543210 --vehicle-type bike --vehicle-number KA01AB1234 --password "Password123!"
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired/revoked session tokens older than the retention window.
# - python -m flask maintenance prune-carts --ttl-hours 72
#   Delete carts untouched for longer than the TTL.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Admin, InventoryUser, Item, Rider
from .models.accounts import ADMIN_ROLES, INVENTORY_ROLES, VEHICLE_TYPES
from .services import admin_service, cart_service, rider_service, session_service
from .services.auth_service import hash_password
from .validation import ServiceError


DEFAULT_PASSWORD = "Password123!"

DEMO_ITEMS = [
    # name, price_cents, quantity, unit, category, discount_percent
    ("Basmati Rice", 12000, 80, "kg", "Grains", 5.0),
    ("Toor Dal", 14500, 60, "kg", "Pulses", 0.0),
    ("Full Cream Milk", 3200, 120, "litre", "Dairy", 0.0),
    ("Brown Bread", 4500, 40, "packet", "Bakery", 10.0),
    ("Farm Eggs", 8400, 50, "dozen", "Dairy", 0.0),
    ("Bananas", 6000, 8, "dozen", "Fruits", 0.0),
    ("Tomatoes", 3000, 100, "kg", "Vegetables", 15.0),
    ("Mineral Water", 2000, 200, "bottle", "Beverages", 0.0),
]


def _fail(exc: ServiceError):
    raise click.ClickException(exc.message)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--password', default=DEFAULT_PASSWORD, show_default=True, help='Password for seeded accounts')
@with_appcontext
def init_system(password):
    """
    Initialize Justoo with default accounts and a demo catalog.

    Creates (skipping anything that already exists):
    - Admin: superadmin / superadmin@justoo.local
    - Inventory user: inventory / inventory@justoo.local (role admin)
    - Rider: demo rider on a bike
    - A handful of catalog items across categories

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing Justoo...")

    admin = db.session.query(Admin).filter_by(username="superadmin").first()
    if admin is None:
        admin = Admin(
            username="superadmin",
            email="superadmin@justoo.local",
            password_hash=hash_password(password),
            role="superadmin",
            is_active=True,
        )
        db.session.add(admin)
        db.session.commit()
        click.echo(f"PASS Created superadmin (ID: {admin.id})")
    else:
        click.echo(f"PASS Using existing superadmin (ID: {admin.id})")

    inventory_user = db.session.query(InventoryUser).filter_by(username="inventory").first()
    if inventory_user is None:
        inventory_user = InventoryUser(
            username="inventory",
            email="inventory@justoo.local",
            password_hash=hash_password(password),
            role="admin",
            is_active=True,
            created_by=admin.id,
        )
        db.session.add(inventory_user)
        db.session.commit()
        click.echo(f"PASS Created inventory admin (ID: {inventory_user.id})")
    else:
        click.echo(f"PASS Using existing inventory admin (ID: {inventory_user.id})")

    rider = db.session.query(Rider).filter_by(phone="9000000001").first()
    if rider is None:
        rider = rider_service.create_rider({
            "name": "Demo Rider",
            "phone": "9000000001",
            "vehicle_type": "bike",
            "vehicle_number": "DEMO-0001",
            "password": password,
        })
        click.echo(f"PASS Created demo rider: {rider.username}")
    else:
        click.echo(f"PASS Using existing demo rider: {rider.username}")

    created = 0
    for name, price_cents, quantity, unit, category, discount in DEMO_ITEMS:
        if db.session.query(Item.id).filter_by(name=name).first():
            continue
        db.session.add(Item(
            name=name,
            price_cents=price_cents,
            quantity=quantity,
            unit=unit,
            category=category,
            discount_percent=discount,
            min_stock_level=10,
            is_active=True,
        ))
        created += 1
    db.session.commit()
    click.echo(f"PASS Catalog items created: {created}")

    click.echo("\nDONE Justoo initialized.")
    click.echo(f"   Default password: {password}")


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


# =============================================================================
# Accounts
# =============================================================================

@click.group('admins')
def admins_group():
    """Admin account commands."""


@admins_group.command('list')
@with_appcontext
def list_admins():
    admins = admin_service.list_admins()
    if not admins:
        click.echo("No admins found.")
        return
    for admin in admins:
        status = "active" if admin.is_active else "inactive"
        click.echo(f"{admin.id:>4}  {admin.username:<20} {admin.email:<32} {admin.role:<16} {status}")


@admins_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ADMIN_ROLES), default='admin', show_default=True)
@with_appcontext
def create_admin(username, email, password, role):
    """Create an admin; unlike the API this may also create viewers."""
    try:
        admin = admin_service.create_admin(
            {"username": username, "email": email, "password": password, "role": role},
            roles=ADMIN_ROLES,
        )
    except ServiceError as exc:
        _fail(exc)
    click.echo(f"PASS Created admin {admin.username} (ID: {admin.id}, role: {admin.role})")


@click.group('inventory-users')
def inventory_users_group():
    """Inventory account commands."""


@inventory_users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(INVENTORY_ROLES), default='user', show_default=True)
@with_appcontext
def create_inventory_user(username, email, password, role):
    try:
        user = admin_service.create_inventory_user(
            {"username": username, "email": email, "password": password, "role": role}
        )
    except ServiceError as exc:
        _fail(exc)
    click.echo(f"PASS Created inventory user {user.username} (ID: {user.id}, role: {user.role})")


@click.group('riders')
def riders_group():
    """Rider account commands."""


@riders_group.command('create')
@click.option('--name', prompt=True)
@click.option('--phone', prompt=True)
@click.option('--vehicle-type', type=click.Choice(VEHICLE_TYPES), default='bike', show_default=True)
@click.option('--vehicle-number', prompt=True)
@click.option('--email', default=None)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_rider(name, phone, vehicle_type, vehicle_number, email, password):
    try:
        rider = rider_service.create_rider({
            "name": name,
            "phone": phone,
            "vehicle_type": vehicle_type,
            "vehicle_number": vehicle_number,
            "email": email,
            "password": password,
        })
    except ServiceError as exc:
        _fail(exc)
    click.echo(f"PASS Created rider {rider.username} (ID: {rider.id})")


# =============================================================================
# Maintenance
# =============================================================================

@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """Delete expired or revoked session tokens past the retention window."""
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"Deleted {deleted} session tokens older than {retention_days} days.")


@maintenance_group.command('prune-carts')
@click.option('--ttl-hours', type=int, default=None, help='Defaults to CART_TTL_HOURS')
@with_appcontext
def prune_carts_cli(ttl_hours):
    deleted = cart_service.prune_stale_carts(ttl_hours=ttl_hours)
    click.echo(f"Deleted {deleted} stale carts.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admins_group)
    app.cli.add_command(inventory_users_group)
    app.cli.add_command(riders_group)
    app.cli.add_command(maintenance_group)
