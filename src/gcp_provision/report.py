from __future__ import annotations

from typing import List, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import RunConfig
from .state import ProvisioningState

Row = Tuple[str, str]


def _section(title: str, rows: List[Row]) -> Table:
    table = Table(title=title, show_header=False, title_justify="left", title_style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for label, value in rows:
        table.add_row(label, escape(value or "-"))
    return table


def report_sections(state: ProvisioningState, cfg: RunConfig) -> List[Tuple[str, List[Row]]]:
    """Titled rows for the final report. Secret values never appear here."""
    project = state.project
    sections: List[Tuple[str, List[Row]]] = [
        (
            "Project",
            [
                ("name", project.display_name),
                ("id", project.id),
                ("number", project.number),
                ("account", project.account),
                ("region", cfg.region),
                ("zone", cfg.zone),
            ],
        )
    ]

    db = state.database
    if db.instance_id:
        sections.append(
            (
                "Database",
                [
                    ("instance", db.instance_id),
                    ("connection", db.connection_name),
                    ("address", db.address),
                    ("name", db.name),
                    ("user", db.user),
                ],
            )
        )

    build = state.build
    if build.connection or build.repository or build.trigger:
        sections.append(
            (
                "Build",
                [("connection", build.connection), ("repository", build.repository), ("trigger", build.trigger)],
            )
        )

    lb = state.load_balancer
    if lb.service:
        sections.append(
            (
                "Load balancer",
                [("service", lb.service), ("domain", lb.domain), ("address", lb.address)],
            )
        )

    if state.secrets or state.env_vars:
        sections.append(
            (
                "Environment",
                [
                    ("variables", ", ".join(p.key for p in state.env_vars)),
                    ("secrets", ", ".join(p.key for p in state.secrets)),
                ],
            )
        )
    return sections


def print_report(state: ProvisioningState, cfg: RunConfig, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print()
    for title, rows in report_sections(state, cfg):
        console.print(_section(title, rows))

    lb = state.load_balancer
    if lb.service and lb.address:
        console.print(
            f"Point an A record for [bold]{escape(lb.domain)}[/bold] at [bold]{escape(lb.address)}[/bold]. "
            "The managed certificate is issued once DNS resolves."
        )

    if state.deferred_command:
        console.print("\n[bold]Run this command to deploy the service:[/bold]\n")
        # Printed raw so it can be copied as-is.
        console.print(state.deferred_command, markup=False, highlight=False, soft_wrap=True)
        console.print()
