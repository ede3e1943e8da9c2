"""Error taxonomy for the validation engine.

Load-time errors (``CompileError``, ``FormDefinitionError``) abort form
initialization. Per-value errors (``ParseError``, ``DigitOverflowError``)
are recoverable and surface as field errors; they never escape the public
validation API.
"""

from __future__ import annotations


class FieldctlError(Exception):
    """Root of every error raised by fieldctl."""


class CompileError(FieldctlError, ValueError):
    """A picture mask could not be compiled.

    Attributes:
        mask: The offending mask string.
        position: Zero-based index of the offending character, or None.
        char: The offending character, or None.
        reason: Short description of what is wrong.
    """

    def __init__(
        self,
        mask: str,
        reason: str,
        *,
        position: int | None = None,
        char: str | None = None,
    ) -> None:
        self.mask = mask
        self.reason = reason
        self.position = position
        self.char = char
        if position is not None and char is not None:
            msg = f"Invalid mask {mask!r}: {reason} ({char!r} at position {position})"
        elif position is not None:
            msg = f"Invalid mask {mask!r}: {reason} (at position {position})"
        else:
            msg = f"Invalid mask {mask!r}: {reason}"
        super().__init__(msg)


class FormDefinitionError(FieldctlError, ValueError):
    """A field, rule, or form definition violates a load-time invariant."""


class FieldValueError(FieldctlError, ValueError):
    """Base for recoverable per-value errors."""


class ParseError(FieldValueError):
    """A raw value is malformed for its mask or type."""


class DigitOverflowError(FieldValueError):
    """A value exceeds its configured digit capacity."""

    def __init__(self, message: str, *, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(message)


class RuleEvaluationError(FieldctlError):
    """A custom or cross-field rule raised instead of returning an outcome."""

    def __init__(self, rule_id: str, cause: BaseException) -> None:
        self.rule_id = rule_id
        self.cause = cause
        super().__init__(f"Rule {rule_id!r} raised {type(cause).__name__}: {cause}")


class SessionClosedError(FieldctlError):
    """A form session was edited or resubmitted after it was accepted."""
