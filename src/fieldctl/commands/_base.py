"""Custom Click base classes and parameter types shared by fieldctl commands.

FieldctlCommand and FieldctlGroup accept an ``examples`` parameter: with
``--examples`` the command prints usage examples and exits, keeping
``--help`` concise. DefinitionPath resolves a definition argument given as
a path or as a form name, and Assignment parses ``FIELD=VALUE`` options.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from fieldctl.config.discovery import find_definition, forms_root
from fieldctl.config.settings import FieldctlSettings


def _add_examples_option(cmd: click.Command, examples: str) -> None:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class FieldctlCommand(click.Command):
    """Click Command subclass that supports an ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class FieldctlGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    Subcommands default to :class:`FieldctlCommand`.
    """

    command_class = FieldctlCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


def _settings(ctx: click.Context | None) -> FieldctlSettings:
    app = ctx.find_root().obj if ctx is not None else None
    settings = getattr(app, "settings", None)
    return settings if isinstance(settings, FieldctlSettings) else FieldctlSettings.from_cli()


class DefinitionPath(click.ParamType):
    """A form definition file, given by path or by form name.

    Names are looked up in the ``[forms] directory`` of the active
    settings (``account-update`` finds ``forms/account-update.yaml``).
    """

    name = "definition"

    def convert(
        self, value: Any, param: click.Parameter | None, ctx: click.Context | None
    ) -> Path:
        if isinstance(value, Path):
            return value
        settings = _settings(ctx)
        root = forms_root(settings.config_path, settings.forms.directory)
        path = find_definition(str(value), root)
        if path is None:
            self.fail(f"{value!r} is not a definition file or a form name in {root}", param, ctx)
        return path


class Assignment(click.ParamType):
    """A ``FIELD=VALUE`` pair; the value may be empty."""

    name = "field=value"

    def convert(
        self, value: Any, param: click.Parameter | None, ctx: click.Context | None
    ) -> tuple[str, str]:
        if isinstance(value, tuple):
            return value
        field, sep, text = str(value).partition("=")
        if not sep or not field.strip():
            self.fail(f"expected FIELD=VALUE, got {value!r}", param, ctx)
        return field.strip(), text
