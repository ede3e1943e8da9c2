"""Command: load and check a form definition file."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fieldctl.commands._base import DefinitionPath, FieldctlCommand

if TYPE_CHECKING:
    from pathlib import Path

    from fieldctl.commands._context import AppContext


@click.command(
    cls=FieldctlCommand,
    examples="""\
  fieldctl check forms/account-update.yaml
  fieldctl --json check forms/card-update.toml
  fieldctl -v check account-update""",
)
@click.argument("definition", type=DefinitionPath())
@click.pass_obj
def check(app: AppContext, definition: Path) -> None:
    """Compile masks, check invariants and the rule graph of DEFINITION."""
    from fieldctl.services.forms import FormService

    app.emit(FormService(app.settings, app.plugins).check(definition))
