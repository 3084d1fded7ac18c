"""provreg CLI — the command-line entry point for the provenance registry."""

from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Iterator, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from provreg import __version__
from provreg.auth.models import Role
from provreg.catalog.catalog import Catalog
from provreg.config import Settings, load_settings
from provreg.deployment import Deployment
from provreg.errors import CatalogNotFound, RegistryError
from provreg.store.state_store import StateError, StateStore
from provreg.utils.ids import ZERO_BYTES32, asset_id_hex, parse_bytes32, to_address, to_bytes32
from provreg.utils.logs import configure_logging
from provreg.utils.text import is_zero_address

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option("--state-dir", "-s", default=None, help="State directory (default: ~/.provreg/state)")
@click.option("--config", "config_path", default=None, help="YAML config file")
@click.pass_context
def main(ctx: click.Context, state_dir: str | None, config_path: str | None):
    """provreg — a provenance registry.

    Claim a creator name, provision a catalog for it, and publish series
    and tagged assets into that catalog.
    """
    settings = load_settings(config_path)
    if state_dir:
        settings.state_dir = Path(state_dir)
    configure_logging(settings.log_level)
    ctx.obj = settings


# ── Helpers ──────────────────────────────────────────────────────────


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/] {escape(message)}")
    raise SystemExit(1)


def _store(settings: Settings) -> StateStore:
    return StateStore(settings.state_dir)


@contextlib.contextmanager
def _deployment(settings: Settings, save: bool = False) -> Iterator[Deployment]:
    """Load the deployment, hand it to the command, and save it afterwards."""
    store = _store(settings)
    try:
        deployment = store.load()
    except StateError as e:
        _fail(str(e))
    try:
        yield deployment
    except RegistryError as e:
        _fail(e.message)
    if save:
        store.save(deployment)


def _caller(settings: Settings, caller: Optional[str]) -> str:
    caller = caller or settings.default_caller
    if not caller:
        _fail("No caller identity; pass --as or set PROVREG_CALLER")
    return caller


def _catalog(deployment: Deployment, creator: str) -> Catalog:
    catalog = deployment.factory.get_catalog(creator)
    if catalog is None:
        raise CatalogNotFound(creator=creator)
    return catalog


def _key(value: bytes) -> str:
    if value == ZERO_BYTES32:
        return "-"
    return parse_bytes32(value)


caller_option = click.option("--as", "caller", default=None, help="Invoking identity (address)")
page_options = [
    click.option("--offset", default=0, type=int, help="Index of the first item"),
    click.option("--page-size", default=100, type=int, help="Items per page (1-100)"),
]


def paged(f):
    for option in reversed(page_options):
        f = option(f)
    return f


def _print_page(title: str, page, render) -> None:
    console.print(f"{title}: {page.count} of {page.total_count}")
    for item in page.valid:
        console.print(f"  {escape(render(item))}")


# ── Init ─────────────────────────────────────────────────────────────


@main.command()
@click.option("--owner", required=True, help="Address that deploys and administers the registry")
@click.pass_obj
def init(settings: Settings, owner: str):
    """Deploy a new name registry and catalog factory."""
    try:
        deployment = _store(settings).create(owner)
    except (StateError, RegistryError) as e:
        _fail(str(e))
    console.print(f"\n[bold blue]provreg[/] — deployed to {settings.state_dir}\n")
    console.print(f"  Name registry: {deployment.names.address}")
    console.print(f"  Factory:       {deployment.factory.address}")


# ── Names ────────────────────────────────────────────────────────────


@main.group()
def name():
    """Query and bind creator display names."""


@name.command()
@click.argument("display_name")
@click.pass_obj
def available(settings: Settings, display_name: str):
    """Check whether DISPLAY_NAME can still be claimed."""
    with _deployment(settings) as d:
        if d.names.is_name_available(display_name):
            console.print(f"[green]available[/] {escape(display_name)}")
        else:
            console.print(f"[yellow]taken[/] {escape(display_name)}")


@name.command(name="set")
@click.argument("address")
@click.argument("display_name")
@caller_option
@click.pass_obj
def set_name(settings: Settings, address: str, display_name: str, caller: str | None):
    """Bind DISPLAY_NAME to ADDRESS (once)."""
    caller = _caller(settings, caller)
    with _deployment(settings, save=True) as d:
        d.names.set_name(address, display_name, caller=caller)
        console.print(f"  Bound {escape(display_name)} to {to_address(address)}")


@name.command(name="get")
@click.argument("address")
@click.pass_obj
def get_name(settings: Settings, address: str):
    """Show the display name bound to ADDRESS."""
    with _deployment(settings) as d:
        bound = d.names.get_name(address)
        console.print(escape(bound) if bound else "[yellow]No name bound.[/]")


@name.command()
@click.argument("display_name")
@click.pass_obj
def lookup(settings: Settings, display_name: str):
    """Show the address that claimed DISPLAY_NAME."""
    with _deployment(settings) as d:
        address = d.names.get_id(display_name)
        console.print("[yellow]Unclaimed.[/]" if is_zero_address(address) else address)


@name.command()
@click.argument("account")
@caller_option
@click.pass_obj
def grant(settings: Settings, account: str, caller: str | None):
    """Grant ACCOUNT the authorized-writer role on the name registry."""
    caller = _caller(settings, caller)
    with _deployment(settings, save=True) as d:
        changed = d.names.grant_role(Role.writer, account, caller=caller)
        console.print(f"  {'Granted' if changed else 'Already granted'}: {to_address(account)}")


# ── Provisioning ─────────────────────────────────────────────────────


@main.command()
@click.argument("creator")
@click.option("--name", "display_name", default="", help="Display name to claim (if none bound yet)")
@click.option("--story", default="", help="The creator's story")
@click.option("--url", "url_template", default="", help="Asset URL template; {0} becomes the asset id")
@caller_option
@click.pass_obj
def provision(settings: Settings, creator: str, display_name: str, story: str, url_template: str, caller: str | None):
    """Provision a catalog for CREATOR."""
    caller = _caller(settings, caller)
    with _deployment(settings, save=True) as d:
        address = d.factory.provision(creator, display_name, story, url_template, caller=caller)
        console.print(f"  Catalog for {to_address(creator)}: {address}")


@main.command()
@paged
@click.pass_obj
def catalogs(settings: Settings, offset: int, page_size: int):
    """List provisioned catalogs."""
    with _deployment(settings) as d:
        creators = d.factory.list_creators(offset, page_size)
        console.print(f"Catalogs: {creators.count} of {creators.total_count}")
        for creator in creators.valid:
            catalog = d.factory.get_catalog(creator)
            console.print(f"  {catalog.address}  {creator}  {escape(catalog.display_name)}")


# ── Series ───────────────────────────────────────────────────────────


@main.group()
def series():
    """Manage a creator's series."""


@series.command(name="create")
@click.argument("creator")
@click.argument("series_id")
@click.argument("description")
@caller_option
@click.pass_obj
def create_series(settings: Settings, creator: str, series_id: str, description: str, caller: str | None):
    """Create SERIES_ID in CREATOR's catalog."""
    caller = _caller(settings, caller)
    with _deployment(settings, save=True) as d:
        _catalog(d, creator).create_series(series_id, description, caller=caller)
        console.print(f"  Created series {escape(series_id)}")


@series.command(name="update")
@click.argument("creator")
@click.argument("series_id")
@click.argument("description")
@caller_option
@click.pass_obj
def update_series(settings: Settings, creator: str, series_id: str, description: str, caller: str | None):
    """Replace the description of SERIES_ID."""
    caller = _caller(settings, caller)
    with _deployment(settings, save=True) as d:
        _catalog(d, creator).update_series_description(series_id, description, caller=caller)
        console.print(f"  Updated series {escape(series_id)}")


@series.command(name="show")
@click.argument("creator")
@click.argument("series_id")
@click.pass_obj
def show_series(settings: Settings, creator: str, series_id: str):
    """Show the description of SERIES_ID."""
    with _deployment(settings) as d:
        catalog = _catalog(d, creator)
        if not catalog.has_series(series_id):
            console.print("[yellow]No such series.[/]")
            return
        console.print(escape(catalog.get_series_metadata(series_id)))


@series.command(name="list")
@click.argument("creator")
@paged
@click.pass_obj
def list_series(settings: Settings, creator: str, offset: int, page_size: int):
    """List CREATOR's series in creation order."""
    with _deployment(settings) as d:
        _print_page("Series", _catalog(d, creator).list_series(offset, page_size), _key)


# ── Assets ───────────────────────────────────────────────────────────


@main.group()
def asset():
    """Manage a creator's assets."""


@asset.command(name="register")
@click.argument("creator")
@click.argument("asset_id")
@click.option("--series", "series_id", default="", help="Series to file the asset under")
@click.option("--description", "-d", default="", help="Asset description")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable)")
@caller_option
@click.pass_obj
def register_asset(
    settings: Settings,
    creator: str,
    asset_id: str,
    series_id: str,
    description: str,
    tags: tuple,
    caller: str | None,
):
    """Register ASSET_ID (decimal or 0x hex) in CREATOR's catalog."""
    caller = _caller(settings, caller)
    with _deployment(settings, save=True) as d:
        series_key = to_bytes32(series_id) if series_id else ZERO_BYTES32
        registered = _catalog(d, creator).register_asset(asset_id, series_key, description, list(tags), caller=caller)
        console.print(f"  Registered asset {asset_id_hex(registered.asset_id)}")


@asset.command(name="update")
@click.argument("creator")
@click.argument("asset_id")
@click.argument("description")
@caller_option
@click.pass_obj
def update_asset(settings: Settings, creator: str, asset_id: str, description: str, caller: str | None):
    """Replace the description of ASSET_ID."""
    caller = _caller(settings, caller)
    with _deployment(settings, save=True) as d:
        _catalog(d, creator).update_asset_description(asset_id, description, caller=caller)
        console.print(f"  Updated asset {escape(asset_id)}")


@asset.command(name="show")
@click.argument("creator")
@click.argument("asset_id")
@click.pass_obj
def show_asset(settings: Settings, creator: str, asset_id: str):
    """Show ASSET_ID's metadata."""
    with _deployment(settings) as d:
        meta = _catalog(d, creator).get_asset_metadata(asset_id)
        if not meta.exists:
            console.print("[yellow]No such asset.[/]")
            return

        table = Table(title=f"Asset {asset_id_hex(meta.id)}", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Description", escape(meta.description))
        table.add_row("Series", escape(_key(meta.series_id)))
        table.add_row("Creator", meta.creator)
        table.add_row("Tags", escape(", ".join(_key(t) for t in meta.tags)))
        table.add_row("URL", escape(meta.url))
        console.print(table)


@asset.command(name="by-series")
@click.argument("creator")
@click.argument("series_id")
@paged
@click.pass_obj
def assets_by_series(settings: Settings, creator: str, series_id: str, offset: int, page_size: int):
    """List the assets filed under SERIES_ID."""
    with _deployment(settings) as d:
        page = _catalog(d, creator).get_assets_by_series(series_id, offset, page_size)
        _print_page("Assets", page, asset_id_hex)


# ── Tags ─────────────────────────────────────────────────────────────


@main.group()
def tag():
    """Add and remove asset tags."""


@tag.command(name="add")
@click.argument("creator")
@click.argument("asset_id")
@click.argument("tag_value")
@caller_option
@click.pass_obj
def add_tag(settings: Settings, creator: str, asset_id: str, tag_value: str, caller: str | None):
    """Append TAG_VALUE to ASSET_ID's tags."""
    caller = _caller(settings, caller)
    with _deployment(settings, save=True) as d:
        _catalog(d, creator).add_tag_to_asset(asset_id, tag_value, caller=caller)
        console.print(f"  Tagged {escape(asset_id)} with {escape(tag_value)}")


@tag.command(name="remove")
@click.argument("creator")
@click.argument("asset_id")
@click.argument("tag_value")
@caller_option
@click.pass_obj
def remove_tag(settings: Settings, creator: str, asset_id: str, tag_value: str, caller: str | None):
    """Remove the first TAG_VALUE from ASSET_ID's tags."""
    caller = _caller(settings, caller)
    with _deployment(settings, save=True) as d:
        _catalog(d, creator).remove_tag_from_asset(asset_id, tag_value, caller=caller)
        console.print(f"  Removed {escape(tag_value)} from {escape(asset_id)}")


# ── Events ───────────────────────────────────────────────────────────


@main.command()
@click.option("--name", "event_name", default=None, help="Only events with this name")
@click.option("--limit", default=50, type=int, help="Show at most this many (newest)")
@click.pass_obj
def events(settings: Settings, event_name: str | None, limit: int):
    """Show the event log."""
    with _deployment(settings) as d:
        selected = d.events.filter(name=event_name)[-limit:] if limit > 0 else []
        if not selected:
            console.print("[yellow]No events.[/]")
            return
        for event in selected:
            args = ", ".join(f"{k}={v}" for k, v in event.to_dict()["args"].items())
            console.print(f"  #{event.block} [cyan]{event.name}[/] {escape(args)}")


if __name__ == "__main__":
    main()
