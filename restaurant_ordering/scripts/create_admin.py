import click

from restaurant_ordering import errors
from restaurant_ordering.models import AdminRole
from restaurant_ordering.services.auth import create_admin


@click.command("create-admin")
@click.option("--email", prompt=True)
@click.option("--name", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--role", type=click.Choice([role.value for role in AdminRole]),
              default=AdminRole.ADMIN.value, show_default=True)
def create_admin_command(email, name, password, role):
    """Create an admin account."""
    if len(password) < 8:
        raise click.BadParameter("Password must be at least 8 characters",
                                 param_hint="--password")
    try:
        admin = create_admin(email, password, name, AdminRole(role))
    except errors.ConflictError as e:
        raise click.ClickException(e.message)
    click.echo(f"Admin {admin.email} created with role {admin.role.value}")


def register_commands(app):
    app.cli.add_command(create_admin_command)
