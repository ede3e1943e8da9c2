"""Validation rule model — per-field rules and cross-field rules.

Rules are immutable values built at form-definition load time. A rule's
behavior is data (kind + parameters) except for ``custom`` predicates and
cross-field evaluators, which are plain callables resolved when the
definition is built.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Self

from fieldctl.domain.errors import FormDefinitionError
from fieldctl.domain.types import RuleKind

# Snapshot of every field's current raw value, keyed by field name.
Snapshot = Mapping[str, str]

# A custom predicate returns True (valid), False (invalid, default message)
# or a message string (invalid, that message).
Predicate = Callable[[str, Snapshot], "bool | str"]

DEFAULT_MESSAGES: dict[RuleKind, str] = {
    RuleKind.REQUIRED: "{label} is required",
    RuleKind.PATTERN: "{label} {hint}",
    RuleKind.LENGTH: "{label} must be {min} to {max} characters",
    RuleKind.NUMERIC_RANGE: "{label} must be between {min} and {max}",
    RuleKind.ENUMERATED_VALUES: "{label} must be one of: {values}",
    RuleKind.CUSTOM: "{label} is not valid",
}


@dataclass(frozen=True)
class RuleOutcome:
    """Result of evaluating a single rule."""

    valid: bool
    message: str | None = None

    @classmethod
    def ok(cls) -> Self:
        return cls(True)

    @classmethod
    def fail(cls, message: str | None = None) -> Self:
        return cls(False, message)

    @classmethod
    def coerce(cls, value: Any) -> RuleOutcome:
        """Normalize an evaluator return value.

        ``True``/``None`` pass, ``False`` fails with the rule's default
        message, and a non-empty string fails with that message.
        """
        if isinstance(value, RuleOutcome):
            return value
        if value is None or value is True:
            return cls.ok()
        if value is False:
            return cls.fail()
        if isinstance(value, str):
            return cls.fail(value) if value else cls.ok()
        msg = f"rule returned {type(value).__name__}, expected RuleOutcome, bool or str"
        raise TypeError(msg)


def _to_decimal(value: Decimal | int | str | None, what: str) -> Decimal | None:
    if value is None:
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation as exc:
        raise FormDefinitionError(f"{what} {value!r} is not a number") from exc
    if not result.is_finite():
        raise FormDefinitionError(f"{what} {value!r} is not finite")
    return result


@dataclass(frozen=True)
class FieldValidationRule:
    """One per-field rule.

    Build with the named constructors rather than directly; they check the
    kind-specific parameters.
    """

    kind: RuleKind
    error_message: str | None = None
    regex: re.Pattern[str] | None = None
    min_length: int | None = None
    max_length: int | None = None
    minimum: Decimal | None = None
    maximum: Decimal | None = None
    allowed_values: tuple[str, ...] = ()
    predicate: Predicate | None = field(default=None, compare=False)
    name: str | None = None

    # --- Constructors ---

    @classmethod
    def required(cls, message: str | None = None) -> Self:
        return cls(RuleKind.REQUIRED, message)

    @classmethod
    def pattern(cls, regex: str | None = None, message: str | None = None) -> Self:
        """Mask-driven pattern rule, or a regex rule for fields without a mask."""
        compiled = None
        if regex is not None:
            try:
                compiled = re.compile(regex)
            except re.error as exc:
                raise FormDefinitionError(f"invalid pattern {regex!r}: {exc}") from exc
        return cls(RuleKind.PATTERN, message, regex=compiled)

    @classmethod
    def length(
        cls,
        min_length: int | None = None,
        max_length: int | None = None,
        message: str | None = None,
    ) -> Self:
        if min_length is None and max_length is None:
            raise FormDefinitionError("length rule needs min_length or max_length")
        if min_length is not None and min_length < 0:
            raise FormDefinitionError("min_length must not be negative")
        if min_length is not None and max_length is not None and min_length > max_length:
            raise FormDefinitionError(f"min_length {min_length} exceeds max_length {max_length}")
        return cls(RuleKind.LENGTH, message, min_length=min_length, max_length=max_length)

    @classmethod
    def numeric_range(
        cls,
        minimum: Decimal | int | str | None = None,
        maximum: Decimal | int | str | None = None,
        message: str | None = None,
    ) -> Self:
        low = _to_decimal(minimum, "minimum")
        high = _to_decimal(maximum, "maximum")
        if low is None and high is None:
            raise FormDefinitionError("numeric_range rule needs minimum or maximum")
        if low is not None and high is not None and low > high:
            raise FormDefinitionError(f"minimum {low} exceeds maximum {high}")
        return cls(RuleKind.NUMERIC_RANGE, message, minimum=low, maximum=high)

    @classmethod
    def one_of(cls, values: Sequence[str], message: str | None = None) -> Self:
        allowed = tuple(str(v) for v in values)
        if not allowed:
            raise FormDefinitionError("enumerated_values rule needs at least one value")
        return cls(RuleKind.ENUMERATED_VALUES, message, allowed_values=allowed)

    @classmethod
    def custom(
        cls,
        predicate: Predicate,
        message: str | None = None,
        *,
        name: str | None = None,
    ) -> Self:
        if not callable(predicate):
            raise FormDefinitionError("custom rule predicate must be callable")
        return cls(
            RuleKind.CUSTOM,
            message,
            predicate=predicate,
            name=name or getattr(predicate, "__name__", None),
        )

    # --- Messages ---

    def render_message(
        self, label: str, hint: str = "", templates: Mapping[str, str] | None = None
    ) -> str:
        """Fill the rule's message template.

        *templates* overrides the built-in default per rule kind when the
        rule carries no message of its own.
        """
        template = self.error_message
        if template is None and templates:
            template = templates.get(str(self.kind))
        if template is None:
            template = DEFAULT_MESSAGES[self.kind]
        values = {
            "label": label,
            "hint": hint,
            "min": self._bound(self.minimum, self.min_length),
            "max": self._bound(self.maximum, self.max_length),
            "values": ", ".join(self.allowed_values),
        }
        try:
            return template.format(**values)
        except (KeyError, IndexError, ValueError):
            return template

    @staticmethod
    def _bound(number: Decimal | None, length: int | None) -> str:
        if number is not None:
            return str(number)
        if length is not None:
            return str(length)
        return ""


@dataclass(frozen=True)
class CrossFieldRule:
    """A rule over several fields.

    Attributes:
        rule_id: Unique id within a form.
        fields: Fields read by the rule, in order. Non-empty.
        evaluate: ``snapshot -> RuleOutcome | bool | str``.
        dependents: Fields re-validated after the rule runs. May overlap
            ``fields``.
        message: Default failure message.
    """

    rule_id: str
    fields: tuple[str, ...]
    evaluate: Callable[[Snapshot], Any] = field(compare=False)
    dependents: tuple[str, ...] = ()
    message: str = "{rule_id} failed"

    def __post_init__(self) -> None:
        _check_shape(self.rule_id, self.fields, self.dependents)
        if not callable(self.evaluate):
            raise FormDefinitionError(f"rule {self.rule_id!r}: evaluate must be callable")

    @property
    def is_async(self) -> bool:
        return False

    def default_message(self) -> str:
        return self.message.replace("{rule_id}", self.rule_id)


@dataclass(frozen=True)
class AsyncCrossFieldRule:
    """A cross-field rule whose evaluator is a coroutine function.

    Used for checks that need external data, such as confirming that an
    account number exists.
    """

    rule_id: str
    fields: tuple[str, ...]
    evaluate: Callable[[Snapshot], Awaitable[Any]] = field(compare=False)
    dependents: tuple[str, ...] = ()
    message: str = "{rule_id} failed"

    def __post_init__(self) -> None:
        _check_shape(self.rule_id, self.fields, self.dependents)
        if not callable(self.evaluate):
            raise FormDefinitionError(f"rule {self.rule_id!r}: evaluate must be callable")

    @property
    def is_async(self) -> bool:
        return True

    def default_message(self) -> str:
        return self.message.replace("{rule_id}", self.rule_id)


AnyCrossFieldRule = CrossFieldRule | AsyncCrossFieldRule


def _check_shape(rule_id: str, fields: tuple[str, ...], dependents: tuple[str, ...]) -> None:
    if not rule_id:
        raise FormDefinitionError("cross-field rule needs a rule_id")
    if not isinstance(fields, tuple) or not isinstance(dependents, tuple):
        raise FormDefinitionError(f"rule {rule_id!r}: fields and dependents must be tuples")
    if not fields:
        raise FormDefinitionError(f"rule {rule_id!r} reads no fields")
    if len(set(fields)) != len(fields):
        raise FormDefinitionError(f"rule {rule_id!r} lists a field twice")
