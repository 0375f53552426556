"""List the platforms rules can be adapted for."""

from __future__ import annotations

import click

from ruleforge.commands.common import json_mode
from ruleforge.output.formatter import format_table, json_envelope, to_json


def _limit_text(limits) -> str:
    parts = [f"{k}={v}" for k, v in limits.to_dict().items() if v is not None]
    return ", ".join(parts) or "-"


@click.command()
@click.pass_context
def platforms(ctx):
    """Show built-in and plugin platforms with their limits."""
    from ruleforge.adapt.platforms import list_platforms

    descriptors = list_platforms()
    if json_mode(ctx):
        click.echo(to_json(json_envelope(
            "platforms",
            summary={"platforms": len(descriptors)},
            platforms=[d.to_dict() for d in descriptors],
        )))
        return

    rows = [
        [d.id, d.name, d.envelope_style, ", ".join(d.aliases) or "-", _limit_text(d.character_limits)]
        for d in descriptors
    ]
    click.echo(format_table(["Id", "Name", "Envelope", "Aliases", "Limits"], rows))
