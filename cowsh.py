#!/usr/bin/env python3
"""
cowsh - shell and file operation helpers

Main entry point for the cowsh CLI.
"""

import sys

import click
from rich.markup import escape
from rich.table import Table

from core import Console, Settings, AuditLogger, VERSION
from core.config import parse_mode
from modules.shell import Shell, RunOptions, FileCheck


def get_shell(ctx: click.Context) -> Shell:
    """Get the Shell configured by the group options."""
    return ctx.obj["shell"]


def finish(ok: bool) -> None:
    """Exit with status 1 when the operation failed."""
    if not ok:
        sys.exit(1)


@click.group()
@click.version_option(version=VERSION, prog_name="cowsh")
@click.option("--config", "config_path", default="config.yaml", show_default=True,
              help="YAML settings file.")
@click.option("-n", "--dry-run", is_flag=True, help="Print what would be done without doing it.")
@click.option("-c", "--show-commands", is_flag=True, help="Print commands before running them.")
@click.option("-v", "--verbose", is_flag=True, help="Echo the output of commands.")
@click.pass_context
def cowsh(ctx, config_path, dry_run, show_commands, verbose):
    """
    cowsh - shell and file operation helpers

    Run commands and copy, move, delete, create and find files with
    readable status output.
    """
    settings = Settings(config_path=config_path).override(
        skip_commands=True if dry_run else None,
        show_commands=True if show_commands else None,
        show_outputs=True if verbose else None,
    )
    console = Console.from_settings(settings)
    ctx.obj = {
        "settings": settings,
        "shell": Shell(console, AuditLogger(settings.audit_log)),
    }


@cowsh.command()
@click.argument("command", nargs=-1, required=True)
@click.option("-q", "--quiet", is_flag=True, help="Do not echo the command output.")
@click.option("--abort", is_flag=True, help="Exit with status 1 if the command fails.")
@click.pass_context
def run(ctx, command, quiet, abort):
    """Run a command through the system shell."""
    shell = get_shell(ctx)
    result = shell.run(RunOptions(
        command=" ".join(command),
        announce=True,
        echo_output=False if quiet else None,
        report_exit_status=True,
        abort_on_failure=abort,
    ))
    finish(result.success)


@cowsh.command()
@click.argument("path")
@click.option("-t", "--test", "tests", multiple=True,
              type=click.Choice([check.value for check in FileCheck]),
              help="Check to perform (repeatable, default: exists).")
@click.pass_context
def check(ctx, path, tests):
    """Check that PATH exists and passes every requested test."""
    shell = get_shell(ctx)
    ok = shell.file_check(path, list(tests) or None)
    shell.console.write(f"{escape(path)}: {'[green]yes[/green]' if ok else '[red]no[/red]'}")
    finish(ok)


@cowsh.command()
@click.argument("paths", nargs=-1, required=True)
@click.option("--fatal", is_flag=True, help="Abort on unexpected errors.")
@click.pass_context
def rm(ctx, paths, fatal):
    """Delete files and directories recursively."""
    finish(get_shell(ctx).delete_files(list(paths), show_errors=True, fatal=fatal))


@cowsh.command()
@click.argument("paths", nargs=-1, required=True)
@click.option("-m", "--mode", default=None, help="Octal mode for new directories.")
@click.option("--fatal", is_flag=True, help="Abort on unexpected errors.")
@click.pass_context
def mkdir(ctx, paths, mode, fatal):
    """Create directories and their missing parents."""
    settings = ctx.obj["settings"]
    directory_mode = parse_mode(mode) if mode else settings.directory_mode
    finish(get_shell(ctx).create_directories(list(paths), mode=directory_mode,
                                             fatal=fatal, show_errors=True))


def _transfer(ctx, sources, destination, into, fatal, move):
    shell = get_shell(ctx)
    if into or len(sources) > 1:
        ok = shell.copy(list(sources), destination, move=move, destination_is_directory=True,
                        fatal=fatal, show_errors=True)
    else:
        ok = shell.copy(sources[0], destination, move=move, fatal=fatal, show_errors=True)
    finish(ok)


@cowsh.command()
@click.argument("sources", nargs=-1, required=True)
@click.argument("destination")
@click.option("-d", "--into", is_flag=True, help="Treat DESTINATION as a directory.")
@click.option("--fatal", is_flag=True, help="Abort on unexpected errors.")
@click.pass_context
def cp(ctx, sources, destination, into, fatal):
    """Copy SOURCES to DESTINATION."""
    _transfer(ctx, sources, destination, into, fatal, move=False)


@cowsh.command()
@click.argument("sources", nargs=-1, required=True)
@click.argument("destination")
@click.option("-d", "--into", is_flag=True, help="Treat DESTINATION as a directory.")
@click.option("--fatal", is_flag=True, help="Abort on unexpected errors.")
@click.pass_context
def mv(ctx, sources, destination, into, fatal):
    """Move SOURCES to DESTINATION."""
    _transfer(ctx, sources, destination, into, fatal, move=True)


@cowsh.command()
@click.argument("paths", nargs=-1, required=True)
@click.option("-p", "--pattern", "patterns", multiple=True, help="Regular expression (repeatable).")
@click.option("-e", "--ext", "extensions", multiple=True, help="File extension (repeatable).")
@click.pass_context
def find(ctx, paths, patterns, extensions):
    """Find entries under PATHS matching a pattern or an extension."""
    if not patterns and not extensions:
        raise click.UsageError("Give at least one --pattern or --ext.")

    shell = get_shell(ctx)
    found = []
    if patterns:
        found.extend(shell.find_by_pattern(list(paths), list(patterns)))
    if extensions:
        for path in shell.find_by_extension(list(paths), list(extensions)):
            if path not in found:
                found.append(path)

    for path in found:
        click.echo(path)


@cowsh.command()
@click.option("-l", "--limit", default=20, show_default=True, help="Number of entries to show.")
@click.pass_context
def audit(ctx, limit):
    """View the audit log."""
    shell = get_shell(ctx)
    entries = shell.logger.get_recent(limit=limit)

    if not entries:
        shell.console.write("[dim]No audit entries found.[/dim]")
        return

    table = Table(title="Recent Operations")
    table.add_column("Time", style="dim")
    table.add_column("Action")
    table.add_column("Description")
    table.add_column("Status")

    for entry in entries:
        time_str = entry.timestamp.split("T")[1].split(".")[0] if "T" in entry.timestamp else entry.timestamp

        status_str = entry.status
        if entry.status == "executed":
            status_str = f"[green]{entry.status}[/green]"
        elif entry.status == "failed":
            status_str = f"[red]{entry.status}[/red]"

        description = entry.action_description
        if len(description) > 50:
            description = description[:50] + "..."
        table.add_row(
            time_str,
            entry.action_type,
            escape(description),
            status_str
        )

    shell.console.output.print(table)


if __name__ == "__main__":
    cowsh()
