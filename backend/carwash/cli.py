# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/carwash/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-email admin@lavadero.local --admin-password "Password123!"]
#   Idempotent bootstrap: permissions, roles (admin, empleado, cliente), default grants, optional admin.
# - python -m flask system init-permissions
#   Initialize permissions and assign defaults to roles.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --email emp@lavadero.local --first-name Ana --last-name Paz --role empleado
#   Create a user (prompts for the password).
#
# Permissions:
# - python -m flask perms list [--role empleado] [--module turnos]
# - python -m flask perms check emp@lavadero.local turnos.editar
# - python -m flask perms grant empleado productos.eliminar
# - python -m flask perms revoke empleado productos.eliminar
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions
#   Delete expired/revoked sessions older than 30 days.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Role, Permission, RolePermission
from .permissions import ADMIN_ROLE
from .services import auth_service
from .services import permission_service
from .services import session_service
from .services.auth_service import PasswordValidationError
from .validation import ValidationError, ConflictError, NotFoundError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-email', default=None, help='Create an admin user with this e-mail')
@click.option('--admin-password', default=None, help='Password for the admin user')
@with_appcontext
def init_system(admin_email, admin_password):
    """
    Initialize permissions, system roles and default role grants.

    With --admin-email an admin account is created as well (skipped if it
    already exists).
    """
    click.echo("START Initializing system...")

    perms = permission_service.initialize_permissions()
    click.echo(f"PASS Permissions created: {perms}")

    roles = auth_service.create_default_roles()
    click.echo(f"PASS Roles created: {roles}")

    links = permission_service.assign_default_role_permissions()
    click.echo(f"PASS Role permissions assigned: {links}")

    if admin_email:
        if auth_service.check_user_exists_by_email(admin_email):
            click.echo(f"SKIP Admin user {admin_email} already exists")
        else:
            if not admin_password:
                admin_password = click.prompt('Admin password', hide_input=True, confirmation_prompt=True)
            try:
                user = auth_service.register_user(
                    email=admin_email,
                    password=admin_password,
                    first_name="Admin",
                    last_name="Sistema",
                    role_name=ADMIN_ROLE,
                )
                click.echo(f"PASS Created admin user {user.email} (ID: {user.id})")
            except (ValidationError, PasswordValidationError, ConflictError) as e:
                click.echo(f"FAIL Could not create admin user: {e}")

    click.echo("DONE System initialized")


@system_group.command('init-permissions')
@with_appcontext
def init_permissions():
    """Initialize permissions and assign defaults to roles."""
    perms = permission_service.initialize_permissions()
    links = permission_service.assign_default_role_permissions()
    click.echo(f"PASS Permissions created: {perms}, role links created: {links}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--first-name', prompt=True)
@click.option('--last-name', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', default=None, help='Role name (defaults to the customer role)')
@with_appcontext
def create_user_cli(email, first_name, last_name, password, role):
    """Create a user with a profile."""
    try:
        user = auth_service.register_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role_name=role,
        )
    except (ValidationError, PasswordValidationError, ConflictError, NotFoundError) as e:
        click.echo(f"FAIL Error: {e}")
        return
    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.profile.role.name})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<25} {'Active':<8} {'Role'}")
    click.echo("="*90)

    for user in users:
        profile = user.profile
        name = profile.full_name if profile else "-"
        role = profile.role.name if profile and profile.role else "none"
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {name:<25} {active_str:<8} {role}")

    click.echo("="*90 + "\n")


@click.group('perms')
def perms_group():
    """Permission inspection and repair commands."""


@perms_group.command('list')
@click.option('--role', help='Filter by role name')
@click.option('--module', help='Filter by module')
@with_appcontext
def list_permissions_cli(role, module):
    """List permissions, optionally filtered by role or module."""
    query = db.session.query(Permission)

    if role:
        role_obj = db.session.query(Role).filter_by(name=role).first()
        if not role_obj:
            click.echo(f"FAIL Role '{role}' not found")
            return
        query = query.join(RolePermission, RolePermission.permission_id == Permission.id).filter(
            RolePermission.role_id == role_obj.id
        )
    if module:
        query = query.filter(Permission.module == module)

    perms = query.order_by(Permission.module, Permission.action).all()

    current_module = None
    for perm in perms:
        if perm.module != current_module:
            click.echo(f"\nMODULE {perm.module}")
            click.echo("-"*80)
            current_module = perm.module
        click.echo(f"  {perm.code:<34} {perm.name}")

    click.echo(f"\n Total: {len(perms)} permissions\n")


@perms_group.command('grant')
@click.argument('role_name')
@click.argument('permission_code')
@with_appcontext
def grant_permission_cli(role_name, permission_code):
    """Grant a permission to a role."""
    try:
        permission_service.grant_permission_to_role(role_name, permission_code)
        click.echo(f"PASS Granted '{permission_code}' to role '{role_name}'")
    except ValueError as e:
        click.echo(f"FAIL Error: {str(e)}")


@perms_group.command('revoke')
@click.argument('role_name')
@click.argument('permission_code')
@with_appcontext
def revoke_permission_cli(role_name, permission_code):
    """Revoke a permission from a role."""
    try:
        revoked = permission_service.revoke_permission_from_role(role_name, permission_code)
        if revoked:
            click.echo(f"PASS Revoked '{permission_code}' from role '{role_name}'")
        else:
            click.echo(f"WARN  Permission '{permission_code}' was not granted to '{role_name}'")
    except ValueError as e:
        click.echo(f"FAIL Error: {str(e)}")


@perms_group.command('check')
@click.argument('email')
@click.argument('permission_code')
@with_appcontext
def check_permission_cli(email, permission_code):
    """Check if a user has a specific permission."""
    user = db.session.query(User).filter_by(email=auth_service.normalize_email(email)).first()

    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    all_perms = permission_service.get_user_permissions(user.id)

    if permission_service.user_has_permission(user.id, permission_code):
        click.echo(f"PASS User '{email}' HAS permission '{permission_code}'")
    else:
        click.echo(f"FAIL User '{email}' DOES NOT HAVE permission '{permission_code}'")

    role = user.profile.role.name if user.profile and user.profile.role else "none"
    click.echo(f"\nUser role: {role}")
    click.echo(f"Total permissions: {len(all_perms)}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions_cli():
    """Delete expired and revoked sessions older than 30 days."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} sessions.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(maintenance_group)
