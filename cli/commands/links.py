import click
from core.cache import InvalidationDispatcher
from core.exceptions import ShelfmateError
from core.resolvers.link_resolver import LinkResolver
from core.sa.repositories import UserRepository
from ..utils import ProgressTracker, create_progress_bar, open_cache, open_database, echo_error

@click.group()
def links():
    """Reading-list and challenge link maintenance"""
    pass

@links.command()
@click.option('--user-id', type=int, default=None, help='Only repair links for this user')
@click.option('--verbose', '-v', is_flag=True, help='Show suggestions and skipped users')
@click.pass_context
def repair(ctx, user_id, verbose):
    """Link unlinked books to matching reading-list and challenge entries.

    Runs for every user unless --user-id is given. Safe to run repeatedly.
    """
    database = open_database(ctx.obj.get('database_url'))
    dispatcher = InvalidationDispatcher(open_cache())
    tracker = ProgressTracker(verbose=verbose)

    with database.get_db() as session:
        if user_id is not None:
            if UserRepository(session).get_by_id(user_id) is None:
                echo_error(f"User {user_id} not found")
                raise click.Abort()
            user_ids = [user_id]
        else:
            user_ids = UserRepository(session).list_user_ids()

        resolver = LinkResolver(session, dispatcher)
        suggestions = []
        with create_progress_bar(user_ids, verbose, 'Repairing links',
                                 lambda uid: f"user {uid}") as bar:
            for uid in bar:
                tracker.increment_processed()
                try:
                    result = resolver.repair_links(uid)
                except ShelfmateError as e:
                    tracker.add_skipped(f"user {uid}", str(uid), e.message, color='red')
                    continue
                tracker.increment_changed(len(result.linked))
                if result.stats.conflicts_skipped:
                    tracker.add_skipped(
                        f"user {uid}", str(uid),
                        f"{result.stats.conflicts_skipped} links were already taken"
                    )
                suggestions.extend((uid, suggestion) for suggestion in result.suggestions)

    if verbose and suggestions:
        click.echo("\n" + click.style("Needs confirmation:", fg='yellow'))
        for uid, suggestion in suggestions:
            best = suggestion.candidates[0]
            click.echo(
                click.style(f"[user {uid}] ", fg='blue') +
                click.style(f"{suggestion.target_title}", fg='cyan') +
                click.style(f" ({suggestion.list_or_challenge_name}) ~ ", fg='blue') +
                click.style(f"{best.book_title} [{best.confidence.value} {best.score:.2f}]", fg='yellow')
            )
    tracker.print_results('users', changed_label='Linked')

@links.command()
@click.option('--user-id', type=int, required=True, help='User to inspect')
@click.pass_context
def broken(ctx, user_id):
    """Count link rows that have no personal copy attached."""
    database = open_database(ctx.obj.get('database_url'))
    with database.get_db() as session:
        counts = LinkResolver(session, InvalidationDispatcher(open_cache())).count_broken_links(user_id)
    click.echo(click.style("Reading lists: ", fg='blue') + click.style(str(counts.reading_lists), fg='cyan'))
    click.echo(click.style("Challenges: ", fg='blue') + click.style(str(counts.challenges), fg='cyan'))
    click.echo(click.style("Total: ", fg='blue') + click.style(str(counts.total), fg='cyan'))
