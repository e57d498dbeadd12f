import click
import json
from core.exceptions import ShelfmateError
from core.services.challenge_service import ChallengeService
from core.services.reading_list_service import ReadingListService
from ..utils import ProgressTracker, open_cache, open_database, echo_error

def _load_items(json_file):
    """A JSON file holding one object or a list of objects."""
    with open(json_file, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return data if isinstance(data, list) else [data]

@click.group()
def lists():
    """Curated reading lists"""
    pass

@lists.command(name='import')
@click.argument('json_file', type=click.Path(exists=True))
@click.option('--verbose', '-v', is_flag=True, help='Show skipped lists')
@click.pass_context
def import_lists(ctx, json_file, verbose):
    """Import reading lists with their levels and books from a JSON file.

    Lists whose slug already exists are skipped.
    """
    database = open_database(ctx.obj.get('database_url'))
    tracker = ProgressTracker(verbose=verbose)
    items = _load_items(json_file)
    with database.get_db() as session:
        service = ReadingListService(session, open_cache())
        for data in items:
            tracker.increment_processed()
            try:
                imported = service.import_list(data)
            except ShelfmateError as e:
                tracker.add_skipped(data.get('name', '?'), data.get('slug', '?'), e.message, color='red')
                continue
            if imported is None:
                tracker.add_skipped(data.get('name', '?'), data.get('slug', '?'), 'already exists')
                continue
            tracker.increment_changed()
            click.echo(click.style("Imported ", fg='green') +
                       click.style(f"{imported.name} ({imported.book_count} books)", fg='cyan'))
    tracker.print_results('reading lists', changed_label='Imported')

@click.group()
def challenges():
    """Yearly reading challenges"""
    pass

@challenges.command(name='import')
@click.argument('json_file', type=click.Path(exists=True))
@click.option('--verbose', '-v', is_flag=True, help='Show skipped challenges')
@click.pass_context
def import_challenges(ctx, json_file, verbose):
    """Import challenges with their months and books from a JSON file."""
    database = open_database(ctx.obj.get('database_url'))
    tracker = ProgressTracker(verbose=verbose)
    items = _load_items(json_file)
    with database.get_db() as session:
        service = ChallengeService(session, open_cache())
        for data in items:
            tracker.increment_processed()
            year = str(data.get('year', '?'))
            try:
                imported = service.import_challenge(data)
            except ShelfmateError as e:
                echo_error(f"{year}: {e.message}")
                tracker.add_skipped(data.get('name', '?'), year, e.message, color='red')
                continue
            if imported is None:
                tracker.add_skipped(data.get('name', '?'), year, 'already exists')
                continue
            tracker.increment_changed()
            click.echo(click.style("Imported ", fg='green') +
                       click.style(f"{imported.name} ({imported.total_books} books)", fg='cyan'))
    tracker.print_results('challenges', changed_label='Imported')
