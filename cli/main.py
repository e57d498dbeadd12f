# cli/main.py
import click
from .commands.db import db
from .commands.user import user
from .commands.links import links
from .commands.catalog import lists, challenges

@click.group()
@click.option('--database-url', envvar='DATABASE_URL', default=None,
              help='Database URL (defaults to DATABASE_URL or a local SQLite file)')
@click.pass_context
def cli(ctx, database_url):
    """Shelfmate maintenance CLI"""
    ctx.ensure_object(dict)
    ctx.obj['database_url'] = database_url

cli.add_command(db)
cli.add_command(user)
cli.add_command(links)
cli.add_command(lists)
cli.add_command(challenges)

def main():
    """Entry point for the CLI"""
    cli(obj={})

if __name__ == '__main__':
    main()
