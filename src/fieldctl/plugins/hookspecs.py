"""Pluggy hook specifications for validation events and setup extensions.

Three observer events are dispatched synchronously by form sessions.
One setup-time hook lets plugins contribute named field predicates that
form definitions can reference.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("fieldctl")
hookimpl = pluggy.HookimplMarker("fieldctl")


class FieldctlHookSpec:
    """Hook specifications for the fieldctl plugin system."""

    @hookspec
    def rule_evaluation_failed(
        self,
        form: str,
        rule_id: str,
        error: str,
    ) -> None:
        """Called when a custom or cross-field rule raises or times out."""

    @hookspec
    def validation_completed(
        self,
        form: str,
        field: str,
        result: dict[str, Any],
    ) -> None:
        """Called after a field change has been fully propagated."""

    @hookspec
    def form_submitted(
        self,
        form: str,
        accepted: bool,
        result: dict[str, Any],
    ) -> None:
        """Called after a submit sweep, accepted or rejected."""

    @hookspec
    def register_predicates(self) -> dict[str, Any] | None:
        """Return ``{name: predicate}`` for custom field rules.

        A predicate takes ``(value, snapshot)`` and returns True, False, or
        a failure message.
        """
