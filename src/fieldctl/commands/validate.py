"""Command: validate a set of field values against a form definition."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from fieldctl.commands._base import Assignment, DefinitionPath, FieldctlCommand

if TYPE_CHECKING:
    from fieldctl.commands._context import AppContext


def _read_values(path: Path) -> dict[str, str]:
    from fieldctl.domain.errors import FormDefinitionError
    from fieldctl.services.definition import read_definition_file

    try:
        data: dict[str, Any] = read_definition_file(path)
    except FormDefinitionError as exc:
        raise click.BadParameter(str(exc), param_hint="VALUES") from exc
    return {str(k): "" if v is None else str(v) for k, v in data.items()}


@click.command(
    cls=FieldctlCommand,
    examples="""\
  fieldctl validate forms/account-update.yaml values.yaml
  fieldctl validate account-update --set account_id=00000000001
  fieldctl --json validate forms/account-update.yaml values.toml --set cash_limit=500""",
)
@click.argument("definition", type=DefinitionPath())
@click.argument(
    "values_file",
    metavar="[VALUES]",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--set", "assignments", type=Assignment(), multiple=True, help="Field value as FIELD=VALUE."
)
@click.pass_obj
def validate(
    app: AppContext,
    definition: Path,
    values_file: Path | None,
    assignments: tuple[tuple[str, str], ...],
) -> None:
    """Validate VALUES (a YAML/TOML mapping of field to value) against DEFINITION.

    DEFINITION is a file path or a form name in the configured forms directory.

    ``--set`` entries override values from the file.
    """
    from fieldctl.services.forms import FormService

    values = _read_values(values_file) if values_file is not None else {}
    values.update(assignments)
    app.emit(FormService(app.settings, app.plugins).validate(definition, values))
