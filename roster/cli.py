"""Roster CLI — the main entry point for managing a profile registry."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from roster import __version__
from roster.config import load_settings
from roster.registry.errors import RegistryError, StoreError
from roster.registry.models import EventKind, Status

console = Console()

STATUS_CHOICE = click.Choice([s.value for s in Status], case_sensitive=False)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--registry-dir",
    "-r",
    envvar="ROSTER_REGISTRY_DIR",
    default=None,
    help="Registry directory (default: ~/.roster)",
)
@click.option("--as", "caller", envvar="ROSTER_IDENTITY", default=None, help="Caller identity")
@click.option("--verbose", "-v", count=True, help="Log INFO (-v) or DEBUG (-vv)")
@click.pass_context
def main(ctx: click.Context, registry_dir: str | None, caller: str | None, verbose: int):
    """Roster — an administered registry of participant profiles.

    Participants register themselves, keep a Present/Absent status and up
    to five tags; a single administrator can hand over ownership.
    """
    settings = load_settings()
    if registry_dir:
        settings.registry_dir = Path(registry_dir).expanduser()
    if caller:
        settings.identity = caller

    level = settings.log_level_number
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

    ctx.obj = settings


def _open(settings, creator: str = ""):
    from roster.registry.service import RegistryService

    return RegistryService.open(settings.registry_dir, creator=creator or settings.admin)


def _caller(settings) -> str:
    if not settings.identity:
        raise click.UsageError("No caller identity: pass --as or set ROSTER_IDENTITY")
    return settings.identity


@contextmanager
def _registry_errors():
    try:
        yield
    except RegistryError as exc:
        console.print(f"[red]\\[{exc.code}][/] {exc.message}")
        raise click.exceptions.Exit(1)
    except StoreError as exc:
        console.print(f"[red]Store error:[/] {exc}")
        raise click.exceptions.Exit(1)


# ── Setup ────────────────────────────────────────────────────────────


@main.command()
@click.argument("admin")
@click.pass_obj
def init(settings, admin: str):
    """Create a registry with ADMIN as administrator."""
    from roster.registry.store import RegistryStore

    if RegistryStore(settings.registry_dir).exists():
        console.print(f"[yellow]Registry already initialized at {settings.registry_dir}[/]")
        return
    with _registry_errors():
        service = _open(settings, creator=admin)
    console.print(
        f"[green]Initialized[/] {settings.registry_dir} (administrator: [cyan]{service.administrator}[/])"
    )


@main.command(name="import")
@click.argument("seed_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_profiles(settings, seed_file: str):
    """Bulk-register every profile listed in a YAML SEED_FILE.

    Each entry is written as its own identity, one after another; the
    whole file is checked first, but a write failing partway does not roll
    back the entries before it::

        profiles:
          - identity: alice
            name: Alice
            status: Present
            tags: [Chess, Art]
    """
    import yaml

    try:
        with open(seed_file) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise click.BadParameter(f"not valid YAML: {exc}", param_hint="SEED_FILE")

    entries = _seed_entries(data)
    with _registry_errors():
        service = _open(settings)
        for entry in entries:
            service.register(entry["identity"], entry["name"], entry["status"], entry["tags"])
    console.print(f"[green]Imported {len(entries)} profiles[/]")


def _seed_entries(data) -> list[dict]:
    """Check a seed document and return normalized entries."""

    def bad(message: str):
        return click.BadParameter(message, param_hint="SEED_FILE")

    if not isinstance(data, dict):
        raise bad("top level must be a mapping with a 'profiles' list")
    raw = data.get("profiles", [])
    if not isinstance(raw, list):
        raise bad("'profiles' must be a list")

    entries = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise bad(f"entry {i} must be a mapping")
        identity = entry.get("identity")
        if not isinstance(identity, str) or not identity:
            raise bad(f"entry {i} has no identity")
        name = entry.get("name", "")
        if not isinstance(name, str):
            raise bad(f"entry {i} ({identity}): name must be text")
        try:
            status = Status.parse(entry.get("status", Status.absent.value))
        except ValueError as exc:
            raise bad(f"entry {i} ({identity}): {exc}")
        tags = entry.get("tags", [])
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise bad(f"entry {i} ({identity}): tags must be a list of text")
        entries.append({"identity": identity, "name": name, "status": status, "tags": tags})
    return entries


# ── Registration ─────────────────────────────────────────────────────


@main.command()
@click.argument("name")
@click.option("--status", "-s", type=STATUS_CHOICE, default=Status.absent.value)
@click.option("--tag", "-t", multiple=True, help="Tag (repeatable)")
@click.pass_obj
def register(settings, name: str, status: str, tag: tuple):
    """Overwrite the caller's profile with NAME, status and tags."""
    caller = _caller(settings)
    with _registry_errors():
        _open(settings).register(caller, name, status, list(tag))
    console.print(f"  Registered [cyan]{caller}[/] as {name}")


@main.command()
@click.argument("name")
@click.pass_obj
def join(settings, name: str):
    """Register the caller for the first time as NAME."""
    caller = _caller(settings)
    with _registry_errors():
        _open(settings).register_new(caller, name)
    console.print(f"  Joined as [cyan]{caller}[/] ({name})")


@main.command()
@click.argument("identity")
@click.argument("status", type=STATUS_CHOICE)
@click.pass_obj
def mark(settings, identity: str, status: str):
    """Set IDENTITY's status to Present or Absent."""
    with _registry_errors():
        _open(settings).mark_status(identity, status)
    console.print(f"  [cyan]{identity}[/] marked {Status.parse(status).value}")


# ── Tags ─────────────────────────────────────────────────────────────


@main.group()
def tag():
    """Add or remove a profile's tags."""


@tag.command(name="add")
@click.argument("identity")
@click.argument("label")
@click.pass_obj
def tag_add(settings, identity: str, label: str):
    """Add LABEL to IDENTITY's tags."""
    with _registry_errors():
        _open(settings).add_tag(identity, label)
    console.print(f"  [green]+[/] {label}")


@tag.command(name="remove")
@click.argument("identity")
@click.argument("label")
@click.pass_obj
def tag_remove(settings, identity: str, label: str):
    """Remove LABEL from IDENTITY's tags."""
    with _registry_errors():
        _open(settings).remove_tag(identity, label)
    console.print(f"  [red]-[/] {label}")


# ── Queries ──────────────────────────────────────────────────────────


@main.command()
@click.argument("identity")
@click.pass_obj
def show(settings, identity: str):
    """Show IDENTITY's name, status and tags."""
    with _registry_errors():
        service = _open(settings)
        name = service.get_name(identity)
        status = service.get_status(identity)
        tags = service.get_tags(identity)

    console.print(f"[bold cyan]{identity}[/]")
    console.print(f"  Name:   {name}")
    console.print(f"  Status: {status.value}")
    console.print(f"  Tags:   {', '.join(tags) if tags else '-'}")


@main.command(name="list")
@click.pass_obj
def list_profiles(settings):
    """List all registered profiles."""
    with _registry_errors():
        profiles = _open(settings).profiles()

    registered = {i: p for i, p in profiles.items() if p.exists}
    if not registered:
        console.print("[yellow]Registry is empty.[/]")
        return

    table = Table(title=f"Roster ({len(registered)} profiles)")
    table.add_column("Identity", style="cyan")
    table.add_column("Name")
    table.add_column("Status", justify="center")
    table.add_column("Tags")

    for identity, profile in registered.items():
        status = "[green]Present[/]" if profile.status is Status.present else "[dim]Absent[/]"
        table.add_row(identity, profile.name, status, ", ".join(profile.tags))

    console.print(table)


@main.command()
@click.pass_obj
def admin(settings):
    """Print the current administrator."""
    with _registry_errors():
        console.print(_open(settings).administrator)


@main.command()
@click.argument("new_identity")
@click.pass_obj
def transfer(settings, new_identity: str):
    """Hand administration to NEW_IDENTITY (administrator only)."""
    caller = _caller(settings)
    with _registry_errors():
        _open(settings).transfer_ownership(caller, new_identity)
    console.print(f"  Administrator is now [cyan]{new_identity}[/]")


@main.command()
@click.option("--identity", "-i", default=None, help="Only events for this identity")
@click.option(
    "--kind",
    "-k",
    type=click.Choice([k.value for k in EventKind]),
    default=None,
    help="Only events of this kind",
)
@click.option("--limit", "-n", default=50, show_default=True)
@click.option("--format", "fmt", type=click.Choice(["table", "json", "csv"]), default="table")
@click.pass_obj
def events(settings, identity: str | None, kind: str | None, limit: int, fmt: str):
    """Show the registry's event log, newest first."""
    from roster.registry.events import EventLog

    log = EventLog(settings.registry_dir)

    if fmt != "table":
        click.echo(log.export_events(fmt, identity=identity, kind=kind, limit=limit))
        return

    entries = log.get_events(identity=identity, kind=kind, limit=limit)
    if not entries:
        console.print("[yellow]No events recorded.[/]")
        return

    table = Table(title=f"Events ({len(entries)})")
    table.add_column("Time", style="dim")
    table.add_column("Kind", style="magenta")
    table.add_column("Identity", style="cyan")
    table.add_column("Data")

    for e in entries:
        data = ", ".join(f"{k}={v}" for k, v in e.get("data", {}).items())
        table.add_row(e["timestamp"], e["kind"], e["identity"], data)

    console.print(table)


if __name__ == "__main__":
    main()
