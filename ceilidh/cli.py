"""
CLI entry point: ceilidh [list | show | setlists | check]

Usage:
    ceilidh                                   # browse in the TUI
    ceilidh list --formation longways --bars 32
    ceilidh show strip-the-willow --role-set larks-robins --calling
    ceilidh setlists
    ceilidh check                             # verify the data loads
"""

import logging
import sys

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ceilidh.config import Settings

load_dotenv()

console = Console()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _viewer(settings: Settings):
    """Viewer for one read-only command.

    The loaded catalog still refreshes the offline cache, but the viewer works
    on an in-memory copy of the session state, so printing a dance never
    changes what the TUI restores.
    """
    from ceilidh.loader import load_catalog
    from ceilidh.storage import SESSION_KEYS, MemoryStore
    from ceilidh.viewer import Viewer

    store = settings.make_store()
    catalog = load_catalog(settings.data, store, timeout=settings.timeout)
    session = MemoryStore.copy_of(store, SESSION_KEYS)
    return Viewer(catalog, session, default_role_set=settings.role_set)


@click.group(invoke_without_command=True)
@click.option("--data", default=None, help="Data directory or base URL (env: CEILIDH_DATA).")
@click.option("--state", default=None, help="State file (env: CEILIDH_STATE).")
@click.option("--no-state", is_flag=True, help="Keep state in memory only.")
@click.option("--log-level", default=None, help="Logging level (env: CEILIDH_LOG_LEVEL).")
@click.pass_context
def cli(ctx, data, state, no_state, log_level):
    """ceilidh — dance reference and calling aid."""
    settings = Settings.from_env().override(data=data, state=state, log_level=log_level)
    if no_state:
        settings = settings.override(state="")
    _setup_logging(settings.log_level)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        try:
            from ceilidh.tui import CeilidhApp
        except ImportError:
            raise click.ClickException(
                "textual is required for TUI mode. Install with: uv add textual"
            )
        CeilidhApp(settings=settings).run()


@cli.command("list")
@click.option("--setlist", default=None, help="Only dances in this setlist, in its order.")
@click.option("--formation", default=None, help="Formation id.")
@click.option("--bars", default=None, help="Bars per part.")
@click.option("--music-type", default=None, help="Music type, e.g. reel or jig.")
@click.option("--difficulty", default=None, help="Difficulty 1-3.")
@click.pass_obj
def list_dances(settings, setlist, formation, bars, music_type, difficulty):
    """List the dances matching the filters."""
    from ceilidh.filters import FilterCriteria
    from ceilidh.render import dance_table

    viewer = _viewer(settings)
    if setlist and not viewer.select_setlist(setlist):
        raise click.ClickException(f"Unknown setlist: {setlist}")
    viewer.apply_filters(
        FilterCriteria.from_strings(formation, bars, music_type, difficulty)
    )
    console.print(dance_table(viewer.get_visible_dances(), viewer.catalog))


@cli.command()
@click.argument("dance_id")
@click.option("--role-set", default=None, help="Role-set id for role terms.")
@click.option("--calling", is_flag=True, help="Calling-mode card: structure and calls only.")
@click.pass_obj
def show(settings, dance_id, role_set, calling):
    """Show one dance."""
    from ceilidh.render import dance_panel, project

    viewer = _viewer(settings)
    if viewer.catalog.dance(dance_id) is None:
        raise click.ClickException(f"Unknown dance: {dance_id}")
    if role_set is not None and role_set not in viewer.catalog.role_set_by_id:
        raise click.ClickException(f"Unknown role-set: {role_set}")
    viewer.clear_filters()
    viewer.select_dance(dance_id)
    if role_set is not None:
        viewer.set_role_set(role_set)
    console.print(dance_panel(project(viewer), calling_mode=calling))


@cli.command()
@click.pass_obj
def setlists(settings):
    """Show the working copy of every setlist."""
    from ceilidh.render import setlist_table

    viewer = _viewer(settings)
    if not viewer.editor.working:
        console.print("No setlists.")
        return
    for setlist in viewer.editor.working.values():
        console.print(setlist_table(setlist, viewer.catalog))


@cli.command()
@click.pass_obj
def check(settings):
    """Verify the data loads and report record counts."""
    from ceilidh.catalog import Catalog
    from ceilidh.loader import load_payload

    console.print(f"Loading data from {settings.data} ...")
    payload, errors = load_payload(settings.data, settings.make_store(), settings.timeout)
    catalog = Catalog.from_raw(payload)
    counts = {
        "dances": len(catalog.dances),
        "formations": len(catalog.formations),
        "roles": len(catalog.role_sets),
        "setlists": len(catalog.setlists),
    }
    for name, count in counts.items():
        raw = len(payload.get(name) or [])
        status = "[red]FAILED[/red]" if name in errors else "[green]OK[/green]"
        skipped = f" ({raw - count} skipped)" if raw > count else ""
        console.print(f"  {name:<11} {status} {count}{skipped}")
    if errors:
        for message in errors.values():
            console.print(f"  [red]{escape(message)}[/red]", highlight=False)
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
