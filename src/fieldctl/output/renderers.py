"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from fieldctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from fieldctl.services.result import ServiceResult

# Value-producing ops print just the value under --quiet.
_QUIET_VALUES: dict[str, str] = {
    "format_value": "formatted",
    "parse_value": "canonical",
    "add_amounts": "result",
    "subtract_amounts": "result",
    "compare_amounts": "relation",
    "format_amount": "formatted",
}


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()
    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    key = _QUIET_VALUES.get(result.op)
    if key is not None and key in result.data:
        return str(result.data[key])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="fc.ok"), Text(f"  {result.op}", style="fc.op"))


def _field(console: Console, key: str, value: Any) -> None:
    style = "fc.mask" if key == "mask" else "fc.value"
    console.print(Text(f"  {key}: ", style="fc.key"), Text(str(value), style=style))


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in result.meta.items():
        if key == "telemetry":
            _render_span(console, value, indent=4)
        else:
            console.print(f"    {key}: {value}")


def _render_span(console: Console, span: dict[str, Any], indent: int) -> None:
    duration = span.get("duration_ms", 0.0)
    style = "yellow" if duration > 100 else "dim"
    line = f"{' ' * indent}[{style}]{duration:>8.2f}ms[/{style}]  {span.get('name', '?')}"
    annotations = span.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)
    for child in span.get("children", []):
        _render_span(console, child, indent + 4)


def _error_table(detail: dict[str, Any]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Field / rule", style="fc.field", no_wrap=True)
    table.add_column("Message")
    for name, message in (detail.get("field_errors") or {}).items():
        table.add_row(name, message)
    for error in detail.get("cross_field_errors") or []:
        rule_id = Text(str(error.get("rule_id", "")), style="fc.rule")
        table.add_row(rule_id, error.get("message", ""))
    for rule_id in detail.get("pending_rules") or []:
        table.add_row(Text(str(rule_id), style="fc.rule"), Text("pending", style="fc.warning"))
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="fc.error"), Text(f"  {result.op}", style="fc.op"), "—", Text(msg)
    )
    if err is None or not err.detail:
        return
    if err.code == "VALIDATION_FAILED":
        console.print(_error_table(err.detail))
    elif verbose or err.code == "INVALID_MASK":
        for key, value in err.detail.items():
            if value is not None:
                console.print(f"    {key}: {value}")


# ── Operation renderers ───────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


def _render_mask(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    table = Table(show_header=False, pad_edge=False, expand=False, box=None)
    table.add_column(style="fc.key")
    table.add_column()
    for key, value in result.data.items():
        shown = ", ".join(str(v) for v in value) if isinstance(value, list) else str(value)
        table.add_row(f"  {key}", shown or "-")
    console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "form", result.data.get("form", ""))

    fields = Table(title="Fields", show_header=True, pad_edge=False, expand=False)
    fields.add_column("Name", style="fc.field", no_wrap=True)
    fields.add_column("Protection")
    fields.add_column("Mask", style="fc.mask")
    fields.add_column("Max", justify="right")
    fields.add_column("Required")
    fields.add_column("Rules")
    for item in result.data.get("fields", []):
        fields.add_row(
            str(item.get("name", "")),
            str(item.get("protection", "")),
            str(item.get("mask") or "-"),
            str(item.get("max_length", "")),
            "yes" if item.get("required") else "",
            ", ".join(item.get("rules", [])),
        )
    console.print(fields)

    rules = result.data.get("cross_rules", [])
    if rules:
        table = Table(title="Cross-field rules", show_header=True, pad_edge=False, expand=False)
        table.add_column("Rule", style="fc.rule", no_wrap=True)
        table.add_column("Reads")
        table.add_column("Re-validates")
        for rule in rules:
            suffix = " (async)" if rule.get("async") else ""
            table.add_row(
                f"{rule.get('id', '')}{suffix}",
                ", ".join(rule.get("fields", [])),
                ", ".join(rule.get("dependents", [])),
            )
        console.print(table)
    if verbose:
        for source, target in result.data.get("edges", []):
            console.print(f"  [fc.rule]{source}[/fc.rule] -> [fc.rule]{target}[/fc.rule]")
        _render_meta(console, result)


def _render_validation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "form", result.data.get("form", ""))
    payload = result.data.get("payload", {})
    table = Table(title="Payload", show_header=True, pad_edge=False, expand=False)
    table.add_column("Field", style="fc.field", no_wrap=True)
    table.add_column("Value", style="fc.value")
    for name, value in payload.items():
        table.add_row(name, value)
    console.print(table)
    if verbose:
        _render_meta(console, result)


_OP_RENDERERS: dict[str, Callable[..., None]] = {
    "inspect_mask": _render_mask,
    "check_definition": _render_check,
    "validate_form": _render_validation,
}
