"""Subcommand modules for fieldctl.

Provides register_commands() which uses deferred imports to keep
``fieldctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    2 groups (mask, amount) + 2 standalone commands (check, validate).
    """
    from fieldctl.commands.amount import amount
    from fieldctl.commands.mask import mask

    cli.add_command(mask)
    cli.add_command(amount)

    from fieldctl.commands.check import check
    from fieldctl.commands.validate import validate

    cli.add_command(check)
    cli.add_command(validate)
