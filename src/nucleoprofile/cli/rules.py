"""nucleoprofile rules — list landmark rule presets and rule types."""

from __future__ import annotations

import click
from rich.table import Table

from nucleoprofile.cli.utils import console, error_handler


@click.command()
@click.option(
    "--preset", default=None,
    type=click.Choice(["round", "pointed"], case_sensitive=False),
    help="Only show this preset.",
)
@click.option("--types", "show_types", is_flag=True, help="List the available rule types instead.")
@error_handler
def rules(preset: str | None, show_types: bool) -> None:
    """Show landmark rule presets."""
    from nucleoprofile.rules import PRESETS, RuleType

    if show_types:
        table = Table(title="Rule types")
        table.add_column("Type")
        table.add_column("Value")
        for rule_type in RuleType:
            table.add_row(rule_type.name, rule_type.value)
        console.print(table)
        return

    names = [preset.lower()] if preset else sorted(PRESETS)
    for name in names:
        collection = PRESETS[name]()
        table = Table(title=f"Preset: {name}")
        table.add_column("Landmark")
        table.add_column("Profile")
        table.add_column("Rules")
        for landmark in collection.landmarks():
            for rule_set in collection.get_rule_sets(landmark):
                table.add_row(
                    landmark.name,
                    rule_set.profile_type.value,
                    " & ".join(str(r) for r in rule_set.rules),
                )
        console.print(table)
