"""Classification enums shared across the engine.

Legacy field attributes were a flag bag of attribute bytes. Here they are a
tagged protection state plus independent flags, so illegal combinations
(e.g. protected *and* mandatory) cannot be expressed.
"""

from __future__ import annotations

from enum import StrEnum


class Protection(StrEnum):
    """Field protection state (legacy UNPROT / ASKIP, PROT / DRK)."""

    EDITABLE = "editable"
    READ_ONLY = "read_only"
    HIDDEN = "hidden"


class Emphasis(StrEnum):
    """Display intensity hint (legacy NORM / BRT). No validation effect."""

    NORMAL = "normal"
    BRIGHT = "bright"


class MaskKind(StrEnum):
    """Picture mask families.

    ``NUMERIC_SIGNED`` covers every edited numeric mask: sign placeholders,
    grouping separators, decimal point, zero suppression.
    """

    NUMERIC_INTEGER = "numeric_integer"
    NUMERIC_SIGNED = "numeric_signed"
    ALPHANUMERIC = "alphanumeric"


class SignPlacement(StrEnum):
    """Where an edited numeric mask places its sign."""

    NONE = "none"
    LEADING = "leading"
    TRAILING = "trailing"


class RuleKind(StrEnum):
    """Per-field rule kinds."""

    REQUIRED = "required"
    PATTERN = "pattern"
    LENGTH = "length"
    NUMERIC_RANGE = "numeric_range"
    ENUMERATED_VALUES = "enumerated_values"
    CUSTOM = "custom"


class SessionState(StrEnum):
    """Form session lifecycle."""

    IDLE = "idle"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class AsyncRuleStatus(StrEnum):
    """Progress of an asynchronous cross-field rule."""

    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"
    STALE = "stale"


# Rule kinds that read the parsed value rather than the raw string.
PARSED_VALUE_KINDS: frozenset[RuleKind] = frozenset(
    {RuleKind.NUMERIC_RANGE, RuleKind.ENUMERATED_VALUES}
)
