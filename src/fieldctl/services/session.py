"""FormSession — per-form validation state machine.

States: ``idle`` → change → propagation → ``idle``; submit → full sweep →
``accepted`` (terminal) or ``rejected`` (the next edit returns to ``idle``).

A change re-validates the changed field, evaluates every cross-field rule
that reads it, re-validates those rules' dependents, and continues with the
rules reading the dependents. Each field is re-validated and each rule
evaluated at most once per change.

Asynchronous rules run only through :meth:`FormSession.change_async` and
:meth:`FormSession.submit_async`. Each in-flight evaluation is owned by the
``(field, generation)`` event that started it; a result that arrives after
a newer event took ownership is dropped.

INVARIANT: a throwing rule never crashes the session. It yields the generic
rule error message and is reported to observers.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import structlog

from fieldctl.config.models import ValidationConfig
from fieldctl.domain.errors import RuleEvaluationError, SessionClosedError
from fieldctl.domain.rules import AnyCrossFieldRule, RuleOutcome, Snapshot
from fieldctl.domain.types import AsyncRuleStatus, SessionState
from fieldctl.plugins.manager import PluginManager
from fieldctl.services.cross_field import Propagation
from fieldctl.services.definition import FormDefinition
from fieldctl.services.field_validation import validate_field
from fieldctl.services.result import CrossFieldError, FieldVerdict, ValidationResult

_SUBMIT = "<submit>"
_session_ids = itertools.count(1)

logger = structlog.get_logger(__name__)


class FormSession:
    """Mutable validation state for one user editing one form.

    Args:
        definition: The form being edited. Shared read-only.
        values: Starting raw values; defaults to each field's initial value.
        validation: Message and timeout settings.
        plugins: Observer plugins notified of rule failures, completed
            validations and submissions.

    Attributes:
        session_id: Process-unique id carried by the session's log lines.
    """

    def __init__(
        self,
        definition: FormDefinition,
        *,
        values: Mapping[str, str] | None = None,
        validation: ValidationConfig | None = None,
        plugins: PluginManager | None = None,
    ) -> None:
        self._definition = definition
        self._config = validation or ValidationConfig()
        self._plugins = plugins
        self._values = definition.initial_values()
        for name, value in (values or {}).items():
            definition.field(name)
            self._values[name] = value

        self._verdicts: dict[str, FieldVerdict] = {}
        self._rule_failures: dict[str, str] = {}
        self._async_ids = tuple(r.rule_id for r in definition.cross_rules if r.is_async)
        self._async_status = dict.fromkeys(self._async_ids, AsyncRuleStatus.IDLE)
        self._async_owner: dict[str, tuple[str, int]] = {}
        self._generation = 0
        self._state = SessionState.IDLE
        self._last_propagation: Propagation | None = None
        self.session_id = next(_session_ids)
        self._log = logger.bind(form=definition.name, session=self.session_id)

    # --- Queries ---

    @property
    def definition(self) -> FormDefinition:
        return self._definition

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def values(self) -> Mapping[str, str]:
        return MappingProxyType(self._values)

    @property
    def last_propagation(self) -> Propagation | None:
        """Fields re-validated and rules evaluated by the most recent change."""
        return self._last_propagation

    @property
    def result(self) -> ValidationResult:
        return self._build_result()

    def async_status(self, rule_id: str) -> AsyncRuleStatus:
        return self._async_status[rule_id]

    # --- Commands ---

    def change(self, field: str, value: str) -> ValidationResult:
        """Record a new raw value for *field* and propagate.

        Raises:
            SessionClosedError: the session was already accepted.
            FormDefinitionError: *field* is not part of the form.
        """
        self._ensure_open()
        self._definition.field(field)
        if self._state is SessionState.REJECTED:
            self._state = SessionState.IDLE

        self._values[field] = value
        self._generation += 1
        plan = self._definition.graph.plan(field)
        snapshot = self._snapshot()
        for name in plan.fields:
            self._validate(name, snapshot)
        for rule_id in plan.rules:
            self._evaluate(self._definition.graph.rule(rule_id), snapshot)

        owner = (field, self._generation)
        for rule_id in plan.async_rules:
            self._async_owner[rule_id] = owner
            self._rule_failures.pop(rule_id, None)
            if self._async_status[rule_id] is not AsyncRuleStatus.IDLE:
                self._async_status[rule_id] = AsyncRuleStatus.STALE

        self._last_propagation = plan
        result = self._build_result()
        self._log.debug(
            "field.changed",
            field=field,
            value=value,
            revalidated=list(plan.fields),
            rules=list(plan.rules),
            valid=result.is_valid,
        )
        self._notify(
            "validation_completed",
            form=self._definition.name,
            field=field,
            result=result.model_dump(mode="json"),
        )
        return result

    async def change_async(self, field: str, value: str) -> ValidationResult:
        """Like :meth:`change`, then await every asynchronous rule it reached."""
        result = self.change(field, value)
        plan = self._last_propagation
        if plan is None or not plan.async_rules:
            return result

        owner = (field, self._generation)
        snapshot = self._snapshot()
        for rule_id in plan.async_rules:
            self._async_status[rule_id] = AsyncRuleStatus.PENDING
        await asyncio.gather(*(self._run_async(r, owner, snapshot) for r in plan.async_rules))
        return self._build_result()

    def submit(self) -> ValidationResult:
        """Full synchronous sweep, then accept or reject.

        Asynchronous rules keep their last resolved outcome; one that has
        not resolved for the current values is reported as pending and
        blocks acceptance. Use :meth:`submit_async` to evaluate them.
        """
        self._ensure_open()
        self._sweep()
        unresolved = tuple(
            r for r in self._async_ids if self._async_status[r] is not AsyncRuleStatus.RESOLVED
        )
        return self._finish_submit(unresolved)

    async def submit_async(self) -> ValidationResult:
        """Full sweep including every asynchronous rule, then accept or reject."""
        self._ensure_open()
        self._sweep()
        owner = (_SUBMIT, self._generation)
        snapshot = self._snapshot()
        for rule_id in self._async_ids:
            self._async_owner[rule_id] = owner
            self._async_status[rule_id] = AsyncRuleStatus.PENDING
        await asyncio.gather(*(self._run_async(r, owner, snapshot) for r in self._async_ids))
        unresolved = tuple(
            r for r in self._async_ids if self._async_status[r] is not AsyncRuleStatus.RESOLVED
        )
        return self._finish_submit(unresolved)

    # --- Internals ---

    def _ensure_open(self) -> None:
        if self._state is SessionState.ACCEPTED:
            raise SessionClosedError(f"form {self._definition.name!r} was already accepted")

    def _snapshot(self) -> Snapshot:
        return MappingProxyType(dict(self._values))

    def _sweep(self) -> None:
        self._generation += 1
        snapshot = self._snapshot()
        for name in self._definition.field_names:
            self._validate(name, snapshot)
        for rule in self._definition.cross_rules:
            if not rule.is_async:
                self._evaluate(rule, snapshot)

    def _validate(self, name: str, snapshot: Snapshot) -> None:
        verdict = validate_field(
            self._definition.field(name),
            self._definition.rules_for(name),
            self._values[name],
            snapshot,
            messages=self._config.messages,
            generic_error=self._config.generic_rule_error,
        )
        if verdict.rule_error is not None:
            self._report_failure(f"{name}.custom", verdict.rule_error)
        self._verdicts[name] = verdict

    def _evaluate(self, rule: AnyCrossFieldRule, snapshot: Snapshot) -> None:
        try:
            outcome = RuleOutcome.coerce(rule.evaluate(snapshot))
        except Exception as exc:
            error = RuleEvaluationError(rule.rule_id, exc)
            self._report_failure(rule.rule_id, str(error))
            outcome = RuleOutcome.fail(self._config.generic_rule_error)
        self._record(rule, outcome)

    async def _run_async(self, rule_id: str, owner: tuple[str, int], snapshot: Snapshot) -> None:
        rule = self._definition.graph.rule(rule_id)
        try:
            value = await asyncio.wait_for(
                rule.evaluate(snapshot), timeout=self._config.async_rule_timeout
            )
            outcome = RuleOutcome.coerce(value)
        except TimeoutError:
            self._report_failure(
                rule_id, f"Rule {rule_id!r} timed out after {self._config.async_rule_timeout}s"
            )
            outcome = RuleOutcome.fail(self._config.generic_rule_error)
        except Exception as exc:
            self._report_failure(rule_id, str(RuleEvaluationError(rule_id, exc)))
            outcome = RuleOutcome.fail(self._config.generic_rule_error)

        if self._async_owner.get(rule_id) != owner:
            self._log.debug("rule.stale", rule_id=rule_id, owner=owner)
            return
        self._record(rule, outcome)
        self._async_status[rule_id] = AsyncRuleStatus.RESOLVED

    def _record(self, rule: AnyCrossFieldRule, outcome: RuleOutcome) -> None:
        if outcome.valid:
            self._rule_failures.pop(rule.rule_id, None)
        else:
            self._rule_failures[rule.rule_id] = outcome.message or rule.default_message()

    def _report_failure(self, rule_id: str, error: str) -> None:
        self._log.warning("rule.failed", rule_id=rule_id, error=error)
        self._notify(
            "rule_evaluation_failed", form=self._definition.name, rule_id=rule_id, error=error
        )

    def _finish_submit(self, unresolved: tuple[str, ...]) -> ValidationResult:
        result = self._build_result(unresolved)
        accepted = result.is_valid and not result.pending_rules
        self._state = SessionState.ACCEPTED if accepted else SessionState.REJECTED
        self._log.info(
            "form.submitted",
            accepted=accepted,
            field_errors=len(result.field_errors),
            cross_field_errors=len(result.cross_field_errors),
        )
        self._notify(
            "form_submitted",
            form=self._definition.name,
            accepted=accepted,
            result=result.model_dump(mode="json"),
        )
        return result

    def _build_result(self, unresolved: tuple[str, ...] = ()) -> ValidationResult:
        field_errors = {
            name: verdict.message or ""
            for name in self._definition.field_names
            if (verdict := self._verdicts.get(name)) is not None and not verdict.valid
        }
        cross_errors = tuple(
            CrossFieldError(rule_id=rule.rule_id, message=self._rule_failures[rule.rule_id])
            for rule in self._definition.cross_rules
            if rule.rule_id in self._rule_failures
        )
        pending = tuple(
            r
            for r in self._async_ids
            if self._async_status[r] is AsyncRuleStatus.PENDING or r in unresolved
        )
        return ValidationResult(
            field_errors=field_errors,
            cross_field_errors=cross_errors,
            pending_rules=pending,
        )

    def _notify(self, hook_name: str, **kwargs: Any) -> None:
        if self._plugins is None:
            return
        self._plugins.notify(hook_name, **kwargs)

