import click
from typing import List, Any, Callable, Optional, Dict

from core.cache import MemoryCacheStore
from core.config import Settings
from core.sa.database import Database
from core.utils.log import configure_logging


class ProgressTracker:
    """Tracks progress and skipped items during batch operations"""

    def __init__(self, verbose: bool = False):
        self.processed = 0
        self.changed = 0
        self.skipped: List[Dict[str, str]] = []
        self.verbose = verbose

    def add_skipped(self, name: str, id: str, reason: str, color: str = 'yellow'):
        """Add a skipped item to the tracking"""
        if self.verbose or color == 'red':  # Always track errors
            self.skipped.append({
                'name': name,
                'id': id,
                'reason': reason,
                'color': color
            })

    def increment_processed(self):
        self.processed += 1

    def increment_changed(self, count: int = 1):
        self.changed += count

    def print_results(self, item_type: str = 'items', changed_label: str = 'Changed'):
        """Print the results of the operation"""
        click.echo("\n" + click.style("Results:", fg='blue'))
        click.echo(click.style("Processed: ", fg='blue') +
                   click.style(str(self.processed), fg='cyan') +
                   click.style(f" {item_type}", fg='blue'))
        click.echo(click.style(f"{changed_label}: ", fg='blue') +
                   click.style(str(self.changed), fg='green'))

        if self.skipped and self.verbose:
            click.echo("\n" + click.style("Skipped items:", fg='yellow'))
            for skip_info in self.skipped:
                click.echo("\n" + click.style(f"Name: {skip_info['name']}", fg=skip_info['color']))
                click.echo(click.style(f"ID: {skip_info['id']}", fg=skip_info['color']))
                click.echo(click.style(f"Reason: {skip_info['reason']}", fg=skip_info['color']))
        elif self.skipped:
            click.echo(click.style(f"\nSkipped {len(self.skipped)} items. ", fg='yellow') +
                       click.style("Use --verbose to see details.", fg='blue'))


def create_progress_bar(items: List[Any], verbose: bool = False,
                        label: str = 'Processing',
                        item_name_func: Optional[Callable[[Any], str]] = None) -> click.progressbar:
    """Create a standardized progress bar for batch operations"""
    return click.progressbar(
        items,
        label=click.style(label, fg='blue'),
        item_show_func=lambda x: click.style(item_name_func(x), fg='cyan') if x and verbose and item_name_func else None,
        show_eta=True,
        show_percent=True,
        width=50
    )


def open_database(database_url: Optional[str] = None) -> Database:
    """Database for a CLI run, from ``--database-url`` or the environment."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return Database(database_url or settings.database_url)


def open_cache() -> MemoryCacheStore:
    """A cache for this process only; the API keeps its own."""
    return MemoryCacheStore(default_ttl=Settings.from_env().cache_default_ttl)


def echo_error(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg='red'), err=True)
