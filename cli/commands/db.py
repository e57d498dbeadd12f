import click
from ..utils import open_database

@click.group()
def db():
    """Database schema management"""
    pass

@db.command()
@click.pass_context
def init(ctx):
    """Create all tables that do not exist yet."""
    database = open_database(ctx.obj.get('database_url'))
    database.init_db()
    click.echo(click.style("Database initialized: ", fg='green') +
               click.style(database.connection_string, fg='cyan'))

@db.command()
@click.confirmation_option(prompt='This deletes every table and all data. Continue?')
@click.pass_context
def drop(ctx):
    """Drop all tables."""
    database = open_database(ctx.obj.get('database_url'))
    database.drop_db()
    click.echo(click.style("All tables dropped", fg='yellow'))
