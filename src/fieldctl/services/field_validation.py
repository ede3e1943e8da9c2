"""Field validation engine — evaluate one field's rules against a raw value.

Pure: the same attribute, rules, raw value and snapshot always produce an
equal :class:`FieldVerdict`. Per-value errors (ParseError,
DigitOverflowError) never escape; they become the verdict's message.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation

from fieldctl.domain.errors import FieldValueError
from fieldctl.domain.fields import FieldAttribute
from fieldctl.domain.rules import FieldValidationRule, RuleOutcome, Snapshot
from fieldctl.domain.types import PARSED_VALUE_KINDS, MaskKind, RuleKind
from fieldctl.services.result import FieldVerdict

logger = logging.getLogger(__name__)

GENERIC_RULE_ERROR = "validation rule error"
_OK = FieldVerdict(valid=True)


def order_rules(
    attribute: FieldAttribute, rules: Sequence[FieldValidationRule]
) -> list[FieldValidationRule]:
    """Effective evaluation order for a field's rules.

    A ``required`` rule always runs first (one is added when the field is
    required and none is declared). A masked field with no pattern rule
    gets one right after it. Rules on the parsed value run after every
    pattern rule; the rest keep their declared order.
    """
    ordered = list(rules)
    if attribute.input_mask is not None and not any(r.kind is RuleKind.PATTERN for r in ordered):
        ordered.insert(0, FieldValidationRule.pattern())
    if attribute.required and not any(r.kind is RuleKind.REQUIRED for r in ordered):
        ordered.insert(0, FieldValidationRule.required())
    required = [r for r in ordered if r.kind is RuleKind.REQUIRED][:1]
    body = [r for r in ordered if r.kind is not RuleKind.REQUIRED]
    head = [r for r in body if r.kind not in PARSED_VALUE_KINDS]
    tail = [r for r in body if r.kind in PARSED_VALUE_KINDS]
    return required + head + tail


def validate_field(
    attribute: FieldAttribute,
    rules: Sequence[FieldValidationRule],
    raw_value: str,
    snapshot: Snapshot | None = None,
    *,
    messages: Mapping[str, str] | None = None,
    generic_error: str = GENERIC_RULE_ERROR,
) -> FieldVerdict:
    """Validate *raw_value* for *attribute*, short-circuiting on the first failure.

    Args:
        attribute: The field's static contract.
        rules: Declared rules, in declaration order.
        raw_value: The value as typed.
        snapshot: Current raw values of every field (for custom predicates).
        messages: Per-rule-kind message templates overriding the defaults.
        generic_error: Message used when a custom predicate raises.
    """
    if not attribute.is_editable:
        return _stored_value(attribute, raw_value)

    snapshot = snapshot if snapshot is not None else {}
    label = attribute.display_label
    mask = attribute.input_mask
    hint = mask.hint if mask is not None else ""
    ordered = order_rules(attribute, rules)
    empty = not raw_value.strip()

    def fail(rule: FieldValidationRule, **extra: str | None) -> FieldVerdict:
        return FieldVerdict(
            valid=False,
            message=rule.render_message(label, hint, messages),
            rule_kind=rule.kind,
            **extra,
        )

    if attribute.required and empty:
        return fail(ordered[0])

    if len(raw_value) > attribute.max_length:
        return FieldVerdict(
            valid=False,
            message=f"{label} must be at most {attribute.max_length} characters",
            rule_kind=RuleKind.LENGTH,
        )

    if empty:
        return _OK

    canonical: str | None = None
    parse_error: str | None = None
    if mask is not None:
        try:
            canonical = mask.parse(raw_value)
        except FieldValueError as exc:
            parse_error = str(exc)

    for rule in ordered:
        if rule.kind is RuleKind.REQUIRED:
            continue

        if rule.kind is RuleKind.PATTERN:
            if mask is not None:
                if parse_error is not None:
                    return fail(rule)
            elif rule.regex is not None and rule.regex.fullmatch(raw_value) is None:
                return fail(rule)

        elif rule.kind is RuleKind.LENGTH:
            size = len(raw_value.rstrip(" "))
            if (rule.min_length is not None and size < rule.min_length) or (
                rule.max_length is not None and size > rule.max_length
            ):
                return fail(rule)

        elif rule.kind is RuleKind.NUMERIC_RANGE:
            if parse_error is not None:
                return _mask_failure(label, hint, parse_error)
            number = _to_number(canonical if canonical is not None else raw_value)
            if number is None:
                return FieldVerdict(
                    valid=False, message=f"{label} must be a number", rule_kind=rule.kind
                )
            if (rule.minimum is not None and number < rule.minimum) or (
                rule.maximum is not None and number > rule.maximum
            ):
                return fail(rule, canonical=canonical)

        elif rule.kind is RuleKind.ENUMERATED_VALUES:
            if parse_error is not None:
                return _mask_failure(label, hint, parse_error)
            value = canonical if canonical is not None else raw_value.strip()
            if value not in rule.allowed_values:
                return fail(rule, canonical=canonical)

        elif rule.kind is RuleKind.CUSTOM:
            verdict = _run_custom(rule, raw_value, snapshot, label, hint, messages, generic_error)
            if verdict is not None:
                return verdict

    return FieldVerdict(valid=True, canonical=canonical)


def _stored_value(attribute: FieldAttribute, raw_value: str) -> FieldVerdict:
    # Declared rules do not apply; the value must still fit the mask for the payload.
    mask = attribute.input_mask
    if mask is None or not raw_value.strip():
        return _OK
    try:
        canonical = mask.parse(raw_value)
    except FieldValueError as exc:
        return _mask_failure(attribute.display_label, mask.hint, str(exc))
    return FieldVerdict(valid=True, canonical=canonical)


def _mask_failure(label: str, hint: str, detail: str) -> FieldVerdict:
    return FieldVerdict(
        valid=False,
        message=f"{label} {hint}" if hint else f"{label} is not valid: {detail}",
        rule_kind=RuleKind.PATTERN,
    )


def _to_number(text: str) -> Decimal | None:
    try:
        number = Decimal(text.replace(",", "").strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _run_custom(
    rule: FieldValidationRule,
    raw_value: str,
    snapshot: Snapshot,
    label: str,
    hint: str,
    messages: Mapping[str, str] | None,
    generic_error: str,
) -> FieldVerdict | None:
    assert rule.predicate is not None
    try:
        outcome = RuleOutcome.coerce(rule.predicate(raw_value, snapshot))
    except Exception as exc:
        logger.warning("Custom rule %s raised %s", rule.name, type(exc).__name__, exc_info=True)
        return FieldVerdict(
            valid=False,
            message=generic_error,
            rule_kind=RuleKind.CUSTOM,
            rule_error=f"{rule.name or 'custom'}: {type(exc).__name__}: {exc}",
        )
    if outcome.valid:
        return None
    if outcome.message is not None:
        template = rule.error_message or "{label} {hint}"
        text = template.replace("{label}", label).replace("{hint}", outcome.message)
        return FieldVerdict(valid=False, message=text, rule_kind=RuleKind.CUSTOM)
    return FieldVerdict(
        valid=False,
        message=rule.render_message(label, hint, messages),
        rule_kind=RuleKind.CUSTOM,
    )


def is_monetary(attribute: FieldAttribute) -> bool:
    """True for edited numeric fields with exactly two fraction digits."""
    mask = attribute.input_mask
    return mask is not None and mask.kind is MaskKind.NUMERIC_SIGNED and mask.fraction_digits == 2
