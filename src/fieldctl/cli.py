"""Root CLI group for fieldctl with global flags and command registration.

Besides the output flags, the root group carries per-invocation
overrides for the ``[money]``, ``[validation]`` and ``[plugins]`` sections
of fieldctl.toml. Overrides merge into the file's section rather than
replacing it.
"""

from __future__ import annotations

from typing import Any

import click

from fieldctl import __version__
from fieldctl.commands import register_commands
from fieldctl.commands._context import AppContext
from fieldctl.config.settings import FieldctlSettings


def _section_overrides(
    max_digits: int | None,
    rule_timeout: float | None,
    plugins: bool | None,
) -> dict[str, dict[str, Any]]:
    overrides: dict[str, dict[str, Any]] = {}
    if max_digits is not None:
        overrides["money"] = {"max_digits": max_digits}
    if rule_timeout is not None:
        overrides["validation"] = {"async_rule_timeout": rule_timeout}
    if plugins is not None:
        overrides["plugins"] = {"enabled": plugins}
    return overrides


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="fieldctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--log-values", is_flag=True, help="Show raw field values in logs.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--max-digits",
    type=click.IntRange(3, 31),
    default=None,
    help="Monetary digit budget (overrides [money] max_digits).",
)
@click.option(
    "--rule-timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds an async rule may run (overrides [validation]).",
)
@click.option(
    "--plugins/--no-plugins",
    default=None,
    help="Enable or disable plugins (overrides [plugins] enabled).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    log_values: bool,
    config_path: str | None,
    max_digits: int | None,
    rule_timeout: float | None,
    plugins: bool | None,
) -> None:
    """fieldctl — legacy field masks, money, and form validation."""
    ctx.ensure_object(dict)
    settings = FieldctlSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        log_values=log_values,
        **_section_overrides(max_digits, rule_timeout, plugins),
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
