"""Command group: picture mask inspection, formatting and parsing."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fieldctl.commands._base import FieldctlGroup

if TYPE_CHECKING:
    from fieldctl.commands._context import AppContext


@click.group(
    cls=FieldctlGroup,
    examples="""\
  fieldctl mask inspect '+ZZZ,ZZZ,ZZZ.99'
  fieldctl mask format '+ZZZ,ZZZ,ZZZ.99' 1234.5
  fieldctl mask format --fixed-width 'ZZ9.99-' -- -7
  fieldctl mask parse '9(11)' 00000000001""",
)
def mask() -> None:
    """Compile and apply picture masks."""


@mask.command()
@click.argument("spec")
@click.pass_obj
def inspect(app: AppContext, spec: str) -> None:
    """Show the compiled layout of a picture mask."""
    from fieldctl.services.forms import MaskService

    app.emit(MaskService(app.settings).inspect(spec))


@mask.command("format")
@click.argument("spec")
@click.argument("value")
@click.option("--fixed-width", is_flag=True, help="Pad to the mask width.")
@click.pass_obj
def format_value(app: AppContext, spec: str, value: str, fixed_width: bool) -> None:
    """Render VALUE for display under mask SPEC."""
    from fieldctl.services.forms import MaskService

    app.emit(MaskService(app.settings).format(spec, value, fixed_width=fixed_width))


@mask.command("parse")
@click.argument("spec")
@click.argument("value")
@click.pass_obj
def parse_value(app: AppContext, spec: str, value: str) -> None:
    """Convert a displayed VALUE to its canonical form under mask SPEC."""
    from fieldctl.services.forms import MaskService

    app.emit(MaskService(app.settings).parse(spec, value))
