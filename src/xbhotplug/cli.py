"""Command-line interface for xbhotplug."""

import json
import logging
import os
import sys
from pathlib import Path
from typing import NoReturn

import click
import yaml

from xbhotplug import __version__
from xbhotplug.config import HotplugConfig, load_config
from xbhotplug.models import Result, Status

CAUTION = (
    "CAUTION: Performing hotplug command. "
    "This command is going to impact both user pf and mgmt pf.\n"
    "Please make sure no application is currently running."
)


def _exit_with(result: Result) -> NoReturn:
    """Report a failed result and exit with its code."""
    click.echo(f"Error: {result.message or result.status}", err=True)
    sys.exit(result.exit_code)


def _require_root() -> None:
    """Exit unless running with root privileges."""
    if os.geteuid() != 0:
        click.echo("Error: Permission denied. Try running as root.", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.option("-v", "--verbose", is_flag=True, help="Log every sysfs access")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML hotplug profile",
)
@click.pass_context
def main(ctx: click.Context, json_output: bool, verbose: bool, config_path: Path | None) -> None:
    """Managed PCIe hotplug for accelerator cards.

    Take a card offline (shut down and remove its PCI functions) or bring
    it back online (rescan its root port).
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )

    config = HotplugConfig()
    if config_path is not None:
        try:
            config = load_config(config_path)
        except (yaml.YAMLError, ValueError) as e:
            _exit_with(Result(Status.INVALID_ARGUMENT, f"Bad profile {config_path}: {e}"))

    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    ctx.obj["config"] = config


@main.command("list")
@click.pass_context
def list_cards(ctx: click.Context) -> None:
    """List accelerator cards in the system."""
    from xbhotplug.discovery import discover_cards
    from xbhotplug.models import FunctionRole

    cards = discover_cards(ctx.obj["config"])

    if ctx.obj["json"]:
        output = [
            {
                "index": c.index,
                "mgmt_bdf": c.mgmt_bdf if c.is_present(FunctionRole.MGMT) else None,
                "user_bdf": c.user_bdf if c.is_present(FunctionRole.USER) else None,
            }
            for c in cards
        ]
        click.echo(json.dumps(output, indent=2))
    else:
        if not cards:
            click.echo("No accelerator cards found.")
            return

        click.echo(f"Found {len(cards)} card(s):")
        click.echo()
        click.echo(f"  {'Index':>5}  {'Mgmt PF':<14}  {'User PF':<14}")
        for card in cards:
            mgmt = card.mgmt_bdf if card.is_present(FunctionRole.MGMT) else "-"
            user = card.user_bdf if card.is_present(FunctionRole.USER) else "-"
            click.echo(f"  {card.index:>5}  {mgmt:<14}  {user:<14}")


@main.command("hotplug")
@click.option("--offline", "offline_ref", metavar="BDF", help="Shut down and remove the card")
@click.option("--online", is_flag=True, help="Rescan the root port to bring cards back")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def hotplug(ctx: click.Context, offline_ref: str | None, online: bool, assume_yes: bool) -> None:
    """Perform managed hotplug on an accelerator card.

    BDF is the PCI address of either function of the card (e.g.,
    0000:03:00.1) or its index as shown by `xbhotplug list`.
    """
    from xbhotplug.backends.sysfs import SysfsAccessor
    from xbhotplug.discovery import discover_cards, resolve_index
    from xbhotplug.hotplug import HotplugManager

    _require_root()

    if offline_ref is None and not online:
        _exit_with(Result(Status.INVALID_ARGUMENT, "Specify --offline BDF and/or --online"))

    config: HotplugConfig = ctx.obj["config"]

    with SysfsAccessor() as accessor:
        index: int | None = None
        if offline_ref is not None:
            try:
                index = resolve_index(offline_ref, discover_cards(config, accessor))
            except ValueError as e:
                _exit_with(Result(Status.INVALID_ARGUMENT, str(e)))
            if index is None:
                _exit_with(Result.not_found(f"Device {offline_ref} not found"))

        click.echo(CAUTION)
        if not assume_yes and not click.confirm("Are you sure you wish to proceed?"):
            _exit_with(Result(Status.CANCELED, "Operation canceled"))

        manager = HotplugManager(config, accessor)
        result = manager.run(offline_index=index, online=online)

    if not result.ok:
        _exit_with(result)
    if result.message:
        click.echo(result.message)


if __name__ == "__main__":
    main()
