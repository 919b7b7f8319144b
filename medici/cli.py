# cli.py - Command line interface for Medici
"""
Medici CLI - keep course question data canonical and in sync

COMMANDS:
    medici format [--data-path PATH]                 Rewrite course files in canonical form
    medici validate [--data-path PATH]               Check course files without writing
    medici sync [--data-path PATH] [--dry-run]       Push changes to the remote store
    medici init [--force]                            Create a medici.yaml template
    medici version                                   Show version information

EXAMPLES:
    # Normalize files after hand-editing them
    medici format --data-path data

    # Preview what sync would send
    medici sync --dry-run

    # Machine-readable changeset
    medici sync --dry-run --json
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from medici import __version__
from medici.config_utils import CONFIG_FILE_NAME, create_config_template, get_config
from medici.errors import MediciError
from medici.logging_utils import setup_logging
from medici.pipeline import format_data_dir, load_dataset, plan_sync, sync_data_dir
from medici.remote_client import RemoteStore


class MediciContext:
    """Shared context for CLI commands"""

    def __init__(self, project_dir: Optional[Path] = None):
        self.project_root = Path(project_dir) if project_dir else Path.cwd()
        self._config = None

    @property
    def config(self):
        if self._config is None:
            self._config = get_config(self.project_root)
        return self._config

    def data_path(self, override: Optional[str]) -> Path:
        if override:
            return Path(override)
        return self.config.resolved_data_path()


def fail(error: MediciError):
    """Print a Medici error and exit non-zero"""
    click.echo(str(error), err=True)
    sys.exit(1)


data_path_option = click.option(
    '--data-path', '-d',
    type=click.Path(file_okay=False),
    help='Directory of course files (default: data_path from medici.yaml, or ./data)',
)


# ============================================================================
# Click Group Setup
# ============================================================================

@click.group()
@click.option('--project-dir', type=click.Path(file_okay=False), help='Project root (default: cwd)')
@click.option('--verbose', '-v', count=True, help='Show debug output')
@click.pass_context
def cli(ctx, project_dir: Optional[str], verbose: int):
    """
    Medici - course question data sync

    Keeps a directory of course files canonical and pushes only what
    changed to the remote store.
    """
    setup_logging(verbose)
    ctx.obj = MediciContext(Path(project_dir) if project_dir else None)


# ============================================================================
# Dataset Commands
# ============================================================================

@cli.command('format')
@data_path_option
@click.pass_obj
def format_cmd(ctx: MediciContext, data_path: Optional[str]):
    """
    Rewrite course files in canonical form

    Trims text, removes duplicate options and questions, sorts everything
    and assigns ids to new questions and options.
    """
    try:
        changed = format_data_dir(ctx.data_path(data_path))
    except MediciError as e:
        fail(e)

    if changed:
        click.echo(f"[v] Formatted {len(changed)} file(s)")
    else:
        click.echo("[v] All files already formatted")


@cli.command()
@data_path_option
@click.pass_obj
def validate(ctx: MediciContext, data_path: Optional[str]):
    """
    Check course files without writing anything

    Fails on the first unreadable file or invalid question.
    """
    try:
        courses = load_dataset(ctx.data_path(data_path))
    except MediciError as e:
        fail(e)

    questions = sum(len(course.questions) for course in courses)
    click.echo(f"[v] {len(courses)} course(s), {questions} question(s) valid")


@cli.command()
@data_path_option
@click.option('--dry-run', '-n', is_flag=True, help='Compute the changeset without pushing it')
@click.option('--json', 'as_json', is_flag=True, help='Print the changeset as JSON')
@click.pass_obj
def sync(ctx: MediciContext, data_path: Optional[str], dry_run: bool, as_json: bool):
    """
    Push local changes to the remote store

    Examples:
        medici sync                   # Sync once
        medici sync --dry-run         # Preview what would happen
        medici sync -n --json         # Changeset as JSON
    """
    try:
        path = ctx.data_path(data_path)
        store = RemoteStore.from_config(ctx.config)
        if as_json and dry_run:
            changeset = plan_sync(path, store)
        else:
            changeset = sync_data_dir(path, store, dry_run=dry_run)
    except MediciError as e:
        fail(e)

    if as_json:
        click.echo(json.dumps(changeset.to_dict(), indent=2, ensure_ascii=False))
        return

    click.echo(changeset.summary())
    if dry_run:
        click.echo("\n[v] Dry run complete! No changes were made.")
    else:
        click.echo("\n[v] Sync complete!")


# ============================================================================
# Other
# ============================================================================

@cli.command()
@click.option('--force', is_flag=True, help='Overwrite an existing medici.yaml')
@click.pass_obj
def init(ctx: MediciContext, force: bool):
    """Create a medici.yaml template in the project root"""
    config_path = ctx.project_root / CONFIG_FILE_NAME
    if config_path.exists() and not force:
        click.echo(f"[!] {config_path} already exists (use --force to overwrite)", err=True)
        sys.exit(1)

    config_path.write_text(create_config_template())
    click.echo(f"[v] Created: {config_path}")


@cli.command()
def version():
    """Show version information"""
    click.echo(f"Medici CLI v{__version__}")


if __name__ == '__main__':
    cli()
