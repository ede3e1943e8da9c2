"""Output mode selection for ServiceResult.

``--json`` emits the serialized result, ``--quiet`` a single status line
(or the bare value for value-producing operations), and the default mode
a Rich rendering from :mod:`fieldctl.output.renderers`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from fieldctl.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from fieldctl.services.result import ServiceResult


class OutputSettings(BaseModel):
    """Output flags taken from the global CLI options."""

    model_config = {"frozen": True}

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2, exclude_none=True)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
