import os
import sys
import uuid
import click
from datetime import datetime, timezone
from dateutil import tz
from dateutil.parser import parse as dateutil_parse
from rich import print
from rich.console import Console
from rich.table import Table

from natcal import __version__ as VERSION
from natcal.errors import NatcalError, ParseError
from natcal.ical import record_to_ical
from natcal.item import UpsertRecord, compose, parse, render
from natcal.natcal_env import NatcalEnvironment
from natcal.occurrences import next_occurrence
from natcal.recurrence import render_recurrence

console = Console()


def get_entry(entry: tuple[str, ...]) -> str:
    if not entry and not sys.stdin.isatty():
        return sys.stdin.read().strip()
    return " ".join(entry).strip()


def resolve_reference(at: str | None, tz_name: str | None, env: NatcalEnvironment):
    zone = tz.gettz(tz_name) if tz_name else env.zone()
    if zone is None:
        raise click.BadParameter(f"unknown timezone {tz_name!r}", param_hint="--tz")
    if not at:
        return datetime.now(zone)
    try:
        reference = dateutil_parse(at)
    except (ValueError, OverflowError) as e:
        raise click.BadParameter(str(e), param_hint="--at")
    if reference.tzinfo is None:
        return reference.replace(tzinfo=zone)
    return reference.astimezone(zone)


def record_table(record: UpsertRecord, reference: datetime) -> Table:
    zone = reference.tzinfo
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("field", style="cyan")
    table.add_column("value")

    def fmt(dt):
        return dt.astimezone(zone).strftime("%a %Y-%m-%d %H:%M %Z") if dt else "-"

    table.add_row("summary", record.summary or "-")
    table.add_row("type", record.item_type.value)
    table.add_row("status", record.status.value)
    if record.time_range is not None:
        table.add_row("start", fmt(record.time_range.start))
        table.add_row("end", fmt(record.time_range.end))
    else:
        table.add_row("start", "-")
    if record.recurrence is not None:
        try:
            table.add_row("repeats", render_recurrence(record.recurrence))
        except NatcalError as e:
            table.add_row("repeats", f"[red]{e}[/red]")
    table.add_row("tags", ", ".join(record.tags) or "-")
    return table


@click.group()
@click.version_option(VERSION, prog_name="natcal", message="%(prog)s version %(version)s")
@click.option(
    "--home",
    help="Override the natcal home directory (equivalent to setting $NATCAL_HOME).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, home, verbose):
    """natcal – read and write calendar entries in plain language."""
    if home:
        os.environ["NATCAL_HOME"] = home

    # config is read on first use so --help never creates it
    env = NatcalEnvironment()

    ctx.ensure_object(dict)
    ctx.obj["ENV"] = env
    ctx.obj["VERBOSE"] = verbose


@cli.command("parse")
@click.argument("entry", nargs=-1)
@click.option("--at", "at", help="Reference date and time. Defaults to now.")
@click.option("--tz", "tz_name", help="Timezone name. Defaults to the configured zone.")
@click.option("--ical", is_flag=True, help="Print the entry as iCalendar text.")
@click.pass_context
def parse_cmd(ctx, entry, at, tz_name, ical):
    """Show the fields read from an entry."""
    env = ctx.obj["ENV"]
    entry = get_entry(entry)
    if not entry:
        print("[bold red]✘ No entry provided. Use argument or pipe.[/bold red]")
        sys.exit(1)

    reference = resolve_reference(at, tz_name, env)
    record, _ = compose(reference, entry)
    durations = env.durations()

    if ical:
        try:
            click.echo(
                record_to_ical(
                    record,
                    str(uuid.uuid4()),
                    durations,
                    stamp=datetime.now(timezone.utc),
                )
            )
        except NatcalError as e:
            print(f"[red]✘ {e}[/red]")
            sys.exit(1)
        return

    console.print(record_table(record, reference))
    try:
        console.print(f"[blue]input:[/blue] {render(record, reference, durations)}")
    except NatcalError as e:
        print(f"[red]✘ {e}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("entry", nargs=-1)
@click.option("--at", "at", help="Reference date and time. Defaults to now.")
@click.option("--tz", "tz_name", help="Timezone name. Defaults to the configured zone.")
@click.pass_context
def check(ctx, entry, at, tz_name):
    """Check whether an entry is valid (parsing only)."""
    env = ctx.obj["ENV"]
    verbose = ctx.obj["VERBOSE"]
    entry = get_entry(entry)
    if not entry:
        print("[bold red]✘ No entry provided. Use argument or pipe.[/bold red]")
        sys.exit(1)

    reference = resolve_reference(at, tz_name, env)
    try:
        record = parse(reference, entry)
    except ParseError as e:
        print(f"[red]✘ Invalid entry:[/red] {entry!r}")
        print(f"  {e}")
        sys.exit(1)

    print("[green]✔ Entry is valid.[/green]")
    if verbose:
        console.print(record_table(record, reference))


@cli.command("next")
@click.argument("entry", nargs=-1)
@click.option("--at", "at", help="Find the first occurrence after this. Defaults to now.")
@click.option("--tz", "tz_name", help="Timezone name. Defaults to the configured zone.")
@click.pass_context
def next_cmd(ctx, entry, at, tz_name):
    """Show the next occurrence of an entry."""
    env = ctx.obj["ENV"]
    entry = get_entry(entry)
    reference = resolve_reference(at, tz_name, env)
    try:
        record = parse(reference, entry)
    except ParseError as e:
        print(f"[red]✘ {e}[/red]")
        sys.exit(1)

    found = next_occurrence(record, reference)
    if found is None:
        print("[yellow]No further occurrences.[/yellow]")
        return
    print(found.astimezone(reference.tzinfo).strftime("%a %Y-%m-%d %H:%M %Z"))


if __name__ == "__main__":
    cli()
