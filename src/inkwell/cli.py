#!/usr/bin/env python3
"""
inkwell CLI - publish journal entries and keep the journals in step.

This module provides the `inkwell` command-line interface for inkwell projects.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click

from inkwell import __version__
from inkwell.core.archive import extract
from inkwell.core.pipeline import Pipeline
from inkwell.core.workspace import CONFIG_FILENAME, DEFAULT_CONFIG_TEMPLATE, Workspace
from inkwell.messages import get_logger, set_verbose
from inkwell.messages.errors import ErrorFormatter
from inkwell.utility.exceptions import ConfigError, InkwellError


def _fail(error: Exception, verbose: bool = False) -> None:
    """Print a friendly error with its phase and a suggestion, then exit 1."""
    message, suggestion = ErrorFormatter.format_error(error, verbose=verbose)
    click.echo(f"Error: {message}", err=True)
    if suggestion:
        click.echo(f"Suggestion: {suggestion}", err=True)
    if verbose:
        click.echo(ErrorFormatter.format_with_stack_trace(error), err=True)
    sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name="inkwell")
def inkwell():
    """
    inkwell - journal entries in, site posts out

    Exports a journal from the journaling web app, publishes new and edited
    entries, and lists published entries that still need moving out of the
    draft journal.
    """
    pass


@inkwell.command()
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite an existing inkwell.yml",
)
def init(force: bool):
    """Create inkwell.yml in the current directory."""
    logger = get_logger("inkwell.cli.init")

    project_dir = Path.cwd()
    config_file = project_dir / CONFIG_FILENAME

    if config_file.exists() and not force:
        click.echo(f"{CONFIG_FILENAME} already exists in {project_dir}")
        click.echo("Use --force to overwrite it")
        sys.exit(1)

    config_file.write_text(DEFAULT_CONFIG_TEMPLATE.format(name=project_dir.name))
    click.echo(f"Created {config_file}")

    click.echo("\nNext steps:")
    click.echo("  1. export DAYONE_EMAIL=... DAYONE_PASSWORD=...")
    click.echo("  2. Set journals.draft (or DAYONE_JOURNAL_ID) to your draft journal")
    click.echo("  3. Run: playwright install chromium")
    click.echo("  4. Run: inkwell debug, then inkwell go")

    logger.info(f"Initialized inkwell project in {project_dir}")


@inkwell.command()
def debug():
    """Check the project configuration and show the selector table."""
    logger = get_logger("inkwell.cli.debug")

    try:
        workspace = Workspace.find()
        config = workspace.prepare()
    except InkwellError as e:
        _fail(e)

    click.echo("Project configuration is valid")
    click.echo(f"Project: {config.name}")
    click.echo(f"Config file: {workspace.inkwell_yml}")
    click.echo(f"Draft journal: {config.journals.draft}")
    click.echo(f"Published journal: {config.journals.published or '(not set)'}")
    click.echo(f"Export published journal: {config.journals.export_published}")

    click.echo("\nEnvironment:")
    references = workspace.env_references()
    if references:
        for name, is_set in references.items():
            click.echo(f"   {name}: {'set' if is_set else 'NOT SET'}")
    else:
        click.echo("   inkwell.yml references no environment variables")
    click.echo(f"   login email configured: {config.source.email is not None}")
    click.echo(f"   login password configured: {config.source.password is not None}")

    click.echo("\nPaths:")
    for label, value in config.paths.model_dump().items():
        click.echo(f"   {label}: {workspace.path(value)}")

    click.echo("\nSelectors (tried in order):")
    table = config.selector_table()
    for action in table.actions():
        marker = " (from inkwell.yml)" if action in config.selectors else ""
        click.echo(f"   {action}{marker}")
        for candidate in table.table[action]:
            click.echo(f"      {candidate}")

    logger.info("Project configuration debug completed")


@inkwell.command()
@click.option(
    "--journal",
    "-j",
    help="Journal to export (default: journals.draft from inkwell.yml)",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
def export(journal: Optional[str], verbose: bool):
    """Export a journal and show what it contains, without publishing."""
    logger = get_logger("inkwell.cli.export")
    if verbose:
        set_verbose(True)

    try:
        workspace = Workspace.find()
        config = workspace.prepare()
        journal_name = journal or config.journals.draft

        pipeline = Pipeline(config, workspace.root)
        path = asyncio.run(
            pipeline.driver.export_journal(config.source.credentials(), journal_name)
        )
        entries = extract(path, journal_name)
    except InkwellError as e:
        logger.error(f"Export failed: {e}")
        _fail(e, verbose)

    click.echo(f"Export saved to {path}")
    click.echo(f"{len(entries)} entries for journal '{journal_name}'")
    for entry in entries[:5]:
        click.echo(
            f"   {entry.created_at:%Y-%m-%d}  {entry.title or 'Untitled'}  ({entry.id})"
        )
    if len(entries) > 5:
        click.echo(f"   ... and {len(entries) - 5} more")


@inkwell.command()
@click.option(
    "--archive",
    "-a",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Use an existing export file instead of exporting through the browser",
)
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
def go(archive: Optional[Path], verbose: bool):
    """Export, publish new and edited entries, and report pending moves."""
    logger = get_logger("inkwell.cli.go")
    if verbose:
        set_verbose(True)

    pipeline = None
    try:
        workspace = Workspace.find()
        pipeline = Pipeline.from_workspace(workspace)
        result = asyncio.run(pipeline.run(archive=archive))
    except InkwellError as e:
        if e.phase is None and pipeline is not None:
            e.phase = pipeline.phase
        logger.error(f"Run failed: {e}")
        _fail(e, verbose)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        _fail(e, verbose)

    published = len(result.published)
    click.echo(
        f"Done: {published} published, {result.count('unchanged')} unchanged, "
        f"{len(result.failures)} failed"
    )
    for failure in result.failures:
        click.echo(f"   FAILED {failure.title or failure.entry_id}: {failure.error}")
    if result.report_path:
        click.echo(f"Migration report: {result.report_path}")


@inkwell.command()
def clean():
    """Delete captured exports from the scratch directory."""
    logger = get_logger("inkwell.cli.clean")

    try:
        workspace = Workspace.find()
        config = workspace.prepare()
    except ConfigError as e:
        _fail(e)

    scratch_dir = workspace.path(config.paths.scratch_dir)
    if not scratch_dir.exists():
        click.echo(f"Nothing to clean: {scratch_dir} does not exist")
        return

    removed = 0
    for path in scratch_dir.iterdir():
        if path.is_file():
            path.unlink()
            removed += 1

    click.echo(f"Removed {removed} files from {scratch_dir}")
    logger.info(f"Cleaned scratch directory {scratch_dir}")


if __name__ == "__main__":
    inkwell()
