"""Command group: exact monetary arithmetic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fieldctl.commands._base import FieldctlGroup

if TYPE_CHECKING:
    from fieldctl.commands._context import AppContext


@click.group(
    cls=FieldctlGroup,
    examples="""\
  fieldctl amount add 1234567.89 0.01
  fieldctl amount subtract 100.00 250.50
  fieldctl amount compare 5,000.00 4999.99
  fieldctl amount format --mask '+ZZZ,ZZZ,ZZZ.99' -- -1500""",
)
def amount() -> None:
    """Add, subtract, compare and format monetary amounts."""


@amount.command()
@click.argument("left")
@click.argument("right")
@click.pass_obj
def add(app: AppContext, left: str, right: str) -> None:
    """Add two amounts."""
    from fieldctl.services.forms import AmountService

    app.emit(AmountService(app.settings).add(left, right))


@amount.command()
@click.argument("left")
@click.argument("right")
@click.pass_obj
def subtract(app: AppContext, left: str, right: str) -> None:
    """Subtract RIGHT from LEFT."""
    from fieldctl.services.forms import AmountService

    app.emit(AmountService(app.settings).subtract(left, right))


@amount.command()
@click.argument("left")
@click.argument("right")
@click.pass_obj
def compare(app: AppContext, left: str, right: str) -> None:
    """Compare two amounts (-1, 0 or 1)."""
    from fieldctl.services.forms import AmountService

    app.emit(AmountService(app.settings).compare(left, right))


@amount.command("format")
@click.argument("value")
@click.option("--mask", "mask_spec", default=None, help="Numeric edited mask to format with.")
@click.option(
    "--sign/--no-sign",
    "explicit_sign",
    default=None,
    help="Show '+' on non-negative amounts (default from [money]).",
)
@click.option(
    "--grouping/--no-grouping",
    default=None,
    help="Insert thousands separators (default from [money]).",
)
@click.pass_obj
def format_amount(
    app: AppContext,
    value: str,
    mask_spec: str | None,
    explicit_sign: bool | None,
    grouping: bool | None,
) -> None:
    """Format VALUE with exactly two fractional digits."""
    from fieldctl.services.forms import AmountService

    app.emit(
        AmountService(app.settings).format(
            value, mask=mask_spec, explicit_sign=explicit_sign, grouping=grouping
        )
    )
