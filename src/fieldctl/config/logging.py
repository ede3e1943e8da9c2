"""structlog configuration for fieldctl.

Two output modes:
- Human (default): colored console output to stderr
- JSON (--log-json): Structured JSON lines to stderr

Log lines emitted while a form is being checked or validated carry the
form name and session id bound by :func:`form_context`. Raw field values
are personal data (SSNs, card numbers), so events are redacted down to
the value's length unless ``show_values`` is set.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any

import structlog

VALUE_KEYS = frozenset({"value", "values", "raw_value"})


def redact_field_values(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace raw field values with their length."""
    for key in event_dict.keys() & VALUE_KEYS:
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = f"<{len(value)} chars>"
        elif isinstance(value, dict):
            event_dict[key] = {name: f"<{len(str(v))} chars>" for name, v in value.items()}
    return event_dict


@contextmanager
def form_context(form: str, **extra: Any) -> Iterator[None]:
    """Bind *form* (and e.g. ``session``) to every log line in the block."""
    with structlog.contextvars.bound_contextvars(form=form, **extra):
        yield


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    show_values: bool = False,
) -> None:
    """Configure structlog processors and output routing.

    Args:
        verbose: Enable DEBUG-level output. When False, only WARNING+.
        log_json: Use JSON renderer instead of console renderer.
        show_values: Log raw field values instead of their length.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if not show_values:
        shared_processors.append(redact_field_values)

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("fieldctl").setLevel(level)
