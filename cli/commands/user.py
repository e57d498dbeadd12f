import click
from core.exceptions import ShelfmateError
from core.sa.repositories import UserRepository
from ..utils import open_database, echo_error

@click.group()
def user():
    """Local user records"""
    pass

@user.command()
@click.argument('name')
@click.option('--email', default=None, help='Email address (must be unique)')
@click.pass_context
def add(ctx, name, email):
    """Register a user so books and links can be attached to them."""
    database = open_database(ctx.obj.get('database_url'))
    with database.get_db() as session:
        try:
            created = UserRepository(session).create_user(name, email)
        except ShelfmateError as e:
            echo_error(e.message)
            raise click.Abort()
        click.echo(click.style("Created user ", fg='green') +
                   click.style(f"{created.name} (ID: {created.id})", fg='cyan'))

@user.command(name='list')
@click.pass_context
def list_users(ctx):
    """List user IDs."""
    database = open_database(ctx.obj.get('database_url'))
    with database.get_db() as session:
        for user_id in UserRepository(session).list_user_ids():
            click.echo(str(user_id))
