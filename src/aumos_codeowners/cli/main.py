"""CLI entry point for aumos-codeowners.

Invoked as::

    codeowners-gov [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m aumos_codeowners.cli.main

Commands
--------
- init             Write a starter code-owners configuration
- status           Show per-file code-owner statuses of a scenario's change
- owners           Resolve the code owners of a path
- owned-paths      List the changed paths an account owns
- config validate  Validate a code-owners configuration file
- version          Show version information
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from aumos_codeowners.errors import CodeOwnersError, StructuralError

if TYPE_CHECKING:
    from aumos_codeowners.scenario import Scenario

console = Console()
err_console = Console(stderr=True)

_DEFAULT_CONFIG = Path("code-owners.yaml")
_DEFAULT_SCENARIO = Path("scenario.yaml")

_STATUS_STYLES: dict[str, str] = {
    "APPROVED": "green",
    "PENDING": "yellow",
    "INSUFFICIENT_REVIEWERS": "red",
}

# ---------------------------------------------------------------------------
# Preset configurations
# ---------------------------------------------------------------------------
_PRESETS: dict[str, dict[str, object]] = {
    "strict": {
        "required_approval": "Code-Review+2",
        "enable_implicit_approvals": "false",
        "enable_sticky_approvals": False,
        "fallback_code_owners": "NONE",
    },
    "balanced": {
        "required_approval": "Code-Review+1",
        "enable_implicit_approvals": "true",
        "enable_sticky_approvals": True,
        "fallback_code_owners": "PROJECT_OWNERS",
    },
    "permissive": {
        "required_approval": "Code-Review+1",
        "enable_implicit_approvals": "forced",
        "enable_sticky_approvals": True,
        "fallback_code_owners": "ALL_USERS",
    },
}


def _load_scenario(scenario_path: str) -> Scenario:
    from aumos_codeowners.scenario import ScenarioLoader

    try:
        return ScenarioLoader().load(Path(scenario_path))
    except (CodeOwnersError, ValueError) as exc:
        err_console.print(f"[red]Invalid scenario:[/red] {exc}")
        sys.exit(2)


def _account_label(scenario: Scenario, account_id: int) -> str:
    account = scenario.accounts.get(account_id)
    return str(account) if account is not None else str(account_id)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="aumos-codeowners")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Code Owners CLI — owner resolution and approval status tools."""
    if verbose:
        import logging

        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from aumos_codeowners import __version__

    console.print(
        Panel(
            f"[bold]aumos-codeowners[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Code-owner resolution and approval checks for change review.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


@cli.command(name="init")
@click.option(
    "--preset",
    type=click.Choice(sorted(_PRESETS)),
    default="balanced",
    show_default=True,
    help="Configuration preset to start from.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default=str(_DEFAULT_CONFIG),
    show_default=True,
    help="Output config file path.",
)
def init_command(preset: str, output: str) -> None:
    """Write a starter code-owners configuration."""
    import yaml

    config: dict[str, object] = {
        "version": "1",
        "labels": [{"name": "Code-Review", "min_value": -2, "max_value": 2}],
        **_PRESETS[preset],
        "override_approvals": [],
        "exempted_users": [],
        "global_code_owners": [],
        "merge_commit_strategy": "ALL_CHANGED_FILES",
        "path_expressions": "GLOB",
    }
    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as fh:
        yaml.dump(config, fh, default_flow_style=False, sort_keys=False, allow_unicode=True)

    console.print(f"[green]Initialised[/green] code-owners config: [bold]{output_path}[/bold]")
    console.print(f"  Preset: [cyan]{preset}[/cyan]")


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@cli.command(name="status")
@click.option(
    "--scenario",
    "-s",
    "scenario_path",
    default=str(_DEFAULT_SCENARIO),
    show_default=True,
    type=click.Path(exists=True),
    help="Path to a scenario YAML file.",
)
@click.option("--patch-set", "-p", "patch_set_id", type=int, default=None, help="Patch set to evaluate.")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def status_command(scenario_path: str, patch_set_id: int | None, as_json: bool) -> None:
    """Show per-file code-owner statuses; exit 0 when submittable, 1 otherwise."""
    scenario = _load_scenario(scenario_path)
    if scenario.change is None:
        err_console.print("[red]Scenario has no change to evaluate.[/red]")
        sys.exit(2)

    try:
        result = scenario.approval_check().evaluate(scenario.change, patch_set_id)
    except StructuralError as exc:
        err_console.print(f"[red]Conflict:[/red] {exc}")
        sys.exit(2)

    if as_json:
        payload = {
            "change": scenario.change.change_id,
            "patch_set": result.evidence.patch_set_id,
            "submittable": result.verdict.submittable,
            "overridden": result.verdict.overridden,
            "files": [
                {
                    "type": file_status.changed_file.change_type,
                    "old_path": file_status.changed_file.old_path,
                    "new_path": file_status.changed_file.new_path,
                    "statuses": [
                        {"path": ps.path, "status": ps.status.value, "reasons": list(ps.reasons)}
                        for ps in file_status.path_statuses()
                    ],
                }
                for file_status in result.statuses
            ],
        }
        click.echo(json.dumps(payload, indent=2))
        sys.exit(0 if result.verdict.submittable else 1)

    table = Table(
        title=f"Change {scenario.change.change_id} — patch set {result.evidence.patch_set_id}",
        box=box.SIMPLE,
    )
    table.add_column("Type", style="dim")
    table.add_column("Path", style="cyan")
    table.add_column("Status")
    table.add_column("Reason")
    for file_status in result.statuses:
        for path_status in file_status.path_statuses():
            style = _STATUS_STYLES[path_status.status.value]
            table.add_row(
                file_status.changed_file.change_type,
                path_status.path,
                f"[{style}]{path_status.status.value}[/{style}]",
                "; ".join(path_status.reasons),
            )
    console.print(table)

    if result.verdict.submittable:
        verdict = "[green]SUBMITTABLE[/green]"
        if result.verdict.overridden:
            verdict += " (override)"
    else:
        verdict = f"[red]NOT SUBMITTABLE[/red] ({len(result.verdict.blocking_paths)} blocking paths)"
    console.print(Panel(verdict, title="Code Owner Check", border_style="blue"))
    sys.exit(0 if result.verdict.submittable else 1)


# ---------------------------------------------------------------------------
# owners
# ---------------------------------------------------------------------------


@cli.command(name="owners")
@click.argument("path")
@click.option(
    "--scenario",
    "-s",
    "scenario_path",
    default=str(_DEFAULT_SCENARIO),
    show_default=True,
    type=click.Path(exists=True),
    help="Path to a scenario YAML file.",
)
@click.option("--revision", "-r", default=None, help="Revision to read declarations from.")
def owners_command(path: str, scenario_path: str, revision: str | None) -> None:
    """Resolve the code owners of PATH."""
    scenario = _load_scenario(scenario_path)
    revision = revision or scenario.branch_revision()
    if revision is None:
        err_console.print("[red]No revision given and the destination branch does not exist.[/red]")
        sys.exit(2)

    owners = scenario.approval_check().resolve_owners(path, revision, project=scenario.project)

    table = Table(title=f"Code owners of {owners.path} @ {revision}", box=box.SIMPLE)
    table.add_column("Account", style="cyan")
    table.add_column("Id", style="dim")
    for account_id in sorted(owners.owners.owners):
        table.add_row(_account_label(scenario, account_id), str(account_id))
    if owners.owners.owned_by_all_users:
        table.add_row("[bold]all users[/bold]", "*")
    console.print(table)

    flags = []
    if owners.ignore_parent_owners:
        flags.append("parent owners ignored")
    if owners.fallback_applied:
        flags.append("fallback owners applied")
    if owners.bootstrapping:
        flags.append("bootstrapping")
    if flags:
        console.print(f"  Flags: [magenta]{', '.join(flags)}[/magenta]")
    for message in owners.messages:
        console.print(f"  [dim]{message}[/dim]")


# ---------------------------------------------------------------------------
# owned-paths
# ---------------------------------------------------------------------------


@cli.command(name="owned-paths")
@click.option("--account", "-a", "account_id", required=True, type=int, help="Account id to check.")
@click.option(
    "--scenario",
    "-s",
    "scenario_path",
    default=str(_DEFAULT_SCENARIO),
    show_default=True,
    type=click.Path(exists=True),
    help="Path to a scenario YAML file.",
)
def owned_paths_command(account_id: int, scenario_path: str) -> None:
    """List the changed paths of the scenario's change that ACCOUNT owns."""
    scenario = _load_scenario(scenario_path)
    if scenario.change is None:
        err_console.print("[red]Scenario has no change to evaluate.[/red]")
        sys.exit(2)
    try:
        paths = scenario.approval_check().get_owned_paths(scenario.change, account_id)
    except StructuralError as exc:
        err_console.print(f"[red]Conflict:[/red] {exc}")
        sys.exit(2)

    if not paths:
        console.print(f"[yellow]{_account_label(scenario, account_id)} owns none of the changed paths.[/yellow]")
        return
    for path in paths:
        console.print(f"  [cyan]{path}[/cyan]")


# ---------------------------------------------------------------------------
# config group
# ---------------------------------------------------------------------------


@cli.group(name="config")
def config_group() -> None:
    """Configuration commands."""


@config_group.command(name="validate")
@click.argument("config_path", type=click.Path(exists=True), default=str(_DEFAULT_CONFIG))
def config_validate_command(config_path: str) -> None:
    """Validate a code-owners configuration file."""
    from aumos_codeowners.config.schema import ConfigLoader

    try:
        snapshot = ConfigLoader().load(Path(config_path)).snapshot()
    except CodeOwnersError as exc:
        err_console.print(f"[red]Invalid configuration:[/red] {exc}")
        sys.exit(1)

    table = Table(title=f"Configuration {config_path}", box=box.SIMPLE)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="bold")
    table.add_row("Required approval", str(snapshot.required_approval))
    table.add_row("Override approvals", ", ".join(str(o) for o in snapshot.override_approvals) or "-")
    table.add_row("Implicit approvals", snapshot.implicit_approvals.value)
    table.add_row("Sticky approvals", str(snapshot.enable_sticky_approvals))
    table.add_row("Fallback code owners", snapshot.fallback_code_owners.value)
    table.add_row("Merge commit strategy", snapshot.merge_commit_strategy.value)
    table.add_row("Path expressions", snapshot.path_expressions.value)
    console.print(table)
    console.print("[green]Configuration is valid.[/green]")


if __name__ == "__main__":
    cli()
