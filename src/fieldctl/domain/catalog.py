"""Built-in rule catalog.

Factories for the cross-field rule families found on the legacy account,
card and customer screens, and named single-field predicates that form
definitions can reference by name.

Cross-field rules treat an empty or unparseable input as "nothing to
check": the per-field rules on that input already report the problem.
"""

from __future__ import annotations

import datetime
import re
from collections.abc import Awaitable, Callable, Mapping
from types import MappingProxyType

from fieldctl.domain.errors import FieldValueError
from fieldctl.domain.money import MonetaryAmount
from fieldctl.domain.reference import STATE_ZIP_PREFIXES, is_consistent_state_zip, is_valid_state
from fieldctl.domain.rules import (
    AsyncCrossFieldRule,
    CrossFieldRule,
    Predicate,
    RuleOutcome,
    Snapshot,
)
from fieldctl.domain.status import normalize_status

_SEPARATORS = re.compile(r"[\s\-()]")

# ---------------------------------------------------------------------------
# Named field predicates
# ---------------------------------------------------------------------------


def luhn(value: str, snapshot: Snapshot | None = None) -> bool | str:
    """Card number check digit (13 to 19 digits, spaces and hyphens allowed)."""
    digits = _SEPARATORS.sub("", value)
    if not digits.isdigit() or not 13 <= len(digits) <= 19:
        return "must be 13 to 19 digits"
    total = 0
    for i, ch in enumerate(reversed(digits)):
        d = int(ch)
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return True if total % 10 == 0 else "is not a valid card number"


def ssn(value: str, snapshot: Snapshot | None = None) -> bool | str:
    """US Social Security Number: 9 digits, no 000/666/9xx area, no zero group or serial."""
    digits = _SEPARATORS.sub("", value)
    if len(digits) != 9 or not digits.isdigit():
        return "must be exactly 9 digits"
    area, group, serial = digits[:3], digits[3:5], digits[5:]
    if area in ("000", "666") or area.startswith("9"):
        return "has an invalid area number"
    if group == "00":
        return "has an invalid group number"
    if serial == "0000":
        return "has an invalid serial number"
    return True


def us_phone(value: str, snapshot: Snapshot | None = None) -> bool | str:
    """North American number: 10 digits; area code and exchange do not start with 0 or 1."""
    digits = _SEPARATORS.sub("", value)
    if len(digits) != 10 or not digits.isdigit():
        return "must be exactly 10 digits"
    if digits[0] in "01":
        return "has an invalid area code"
    if digits[3] in "01":
        return "has an invalid exchange"
    return True


def us_state(value: str, snapshot: Snapshot | None = None) -> bool | str:
    return True if is_valid_state(value.strip()) else "is not a valid US state code"


def account_status(value: str, snapshot: Snapshot | None = None) -> bool | str:
    try:
        normalize_status(value)
    except FieldValueError:
        return "must be Y or N"
    return True


BUILTIN_PREDICATES: Mapping[str, Predicate] = MappingProxyType(
    {
        "luhn": luhn,
        "ssn": ssn,
        "us_phone": us_phone,
        "us_state": us_state,
        "account_status": account_status,
    }
)

# ---------------------------------------------------------------------------
# Cross-field rule factories
# ---------------------------------------------------------------------------


def _value(snapshot: Snapshot, name: str) -> str:
    return snapshot.get(name, "").strip()


def date_parts_rule(
    rule_id: str,
    year: str,
    month: str,
    day: str,
    *,
    dependents: tuple[str, ...] | None = None,
    message: str = "{rule_id}: not a valid calendar date",
) -> CrossFieldRule:
    """Year, month and day fields must together form a real date."""

    def evaluate(snapshot: Snapshot) -> RuleOutcome:
        parts = [_value(snapshot, f) for f in (year, month, day)]
        if not all(p.isdigit() for p in parts):
            return RuleOutcome.ok()
        try:
            datetime.date(*(int(p) for p in parts))
        except ValueError:
            return RuleOutcome.fail()
        return RuleOutcome.ok()

    return CrossFieldRule(
        rule_id=rule_id,
        fields=(year, month, day),
        evaluate=evaluate,
        dependents=dependents if dependents is not None else (day,),
        message=message,
    )


def state_zip_rule(
    rule_id: str,
    state: str,
    zip_code: str,
    *,
    dependents: tuple[str, ...] | None = None,
    message: str | None = None,
) -> CrossFieldRule:
    """ZIP code prefix must belong to the state (legacy state/ZIP lookup table)."""

    def evaluate(snapshot: Snapshot) -> RuleOutcome:
        code = _value(snapshot, state).upper()
        zip_value = _value(snapshot, zip_code)
        if code not in STATE_ZIP_PREFIXES or len(zip_value) < 2 or not zip_value.isdigit():
            return RuleOutcome.ok()
        if is_consistent_state_zip(code, zip_value):
            return RuleOutcome.ok()
        return RuleOutcome.fail(f"ZIP code {zip_value} is not valid for state {code}")

    return CrossFieldRule(
        rule_id=rule_id,
        fields=(state, zip_code),
        evaluate=evaluate,
        dependents=dependents if dependents is not None else (zip_code,),
        message=message or "{rule_id}: ZIP code does not match state",
    )


def not_exceeding_rule(
    rule_id: str,
    amount: str,
    limit: str,
    *,
    amount_label: str | None = None,
    limit_label: str | None = None,
    dependents: tuple[str, ...] | None = None,
    message: str | None = None,
) -> CrossFieldRule:
    """Monetary *amount* must not exceed *limit* (cash limit vs credit limit)."""
    text = message or (
        f"{amount_label or amount} must not exceed {limit_label or limit}"
    )

    def evaluate(snapshot: Snapshot) -> RuleOutcome:
        try:
            value = MonetaryAmount.parse(_value(snapshot, amount))
            ceiling = MonetaryAmount.parse(_value(snapshot, limit))
        except FieldValueError:
            return RuleOutcome.ok()
        return RuleOutcome.ok() if value <= ceiling else RuleOutcome.fail(text)

    return CrossFieldRule(
        rule_id=rule_id,
        fields=(amount, limit),
        evaluate=evaluate,
        dependents=dependents if dependents is not None else (amount,),
        message=text,
    )


def linked_entity_rule(
    rule_id: str,
    source: str,
    target: str,
    table: Mapping[str, str],
    *,
    dependents: tuple[str, ...] | None = None,
    message: str | None = None,
) -> CrossFieldRule:
    """*target* must equal the cross-reference entry for *source* (card → account)."""
    lookup = MappingProxyType(dict(table))

    def evaluate(snapshot: Snapshot) -> RuleOutcome:
        key = _value(snapshot, source)
        linked = _value(snapshot, target)
        if not key or not linked:
            return RuleOutcome.ok()
        if key not in lookup:
            return RuleOutcome.fail(f"{source} {key} not found")
        if lookup[key] != linked:
            return RuleOutcome.fail(f"{target} {linked} is not linked to {source} {key}")
        return RuleOutcome.ok()

    return CrossFieldRule(
        rule_id=rule_id,
        fields=(source, target),
        evaluate=evaluate,
        dependents=dependents if dependents is not None else (target,),
        message=message or "{rule_id}: cross-reference mismatch",
    )


def async_linked_entity_rule(
    rule_id: str,
    source: str,
    target: str,
    resolver: Callable[[str], Awaitable[str | None]],
    *,
    dependents: tuple[str, ...] | None = None,
    message: str | None = None,
) -> AsyncCrossFieldRule:
    """Like :func:`linked_entity_rule`, but *resolver* fetches the link."""

    async def evaluate(snapshot: Snapshot) -> RuleOutcome:
        key = _value(snapshot, source)
        linked = _value(snapshot, target)
        if not key or not linked:
            return RuleOutcome.ok()
        expected = await resolver(key)
        if expected is None:
            return RuleOutcome.fail(f"{source} {key} not found")
        if expected != linked:
            return RuleOutcome.fail(f"{target} {linked} is not linked to {source} {key}")
        return RuleOutcome.ok()

    return AsyncCrossFieldRule(
        rule_id=rule_id,
        fields=(source, target),
        evaluate=evaluate,
        dependents=dependents if dependents is not None else (target,),
        message=message or "{rule_id}: cross-reference mismatch",
    )
