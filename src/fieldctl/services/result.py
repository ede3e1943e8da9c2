"""Result types — ServiceResult for the service facade, ValidationResult for forms.

INVARIANT: All service-layer methods return ServiceResult.
INVARIANT: ValidationResult is frozen; every recomputation builds a new one.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, computed_field

from fieldctl.domain.types import RuleKind


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"validate_form"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None


class FieldVerdict(BaseModel):
    """Outcome of validating one field value.

    Attributes:
        valid: Whether the value passed every rule.
        message: The first failing rule's message.
        rule_kind: Kind of the failing rule.
        canonical: Parsed canonical value, when the field has a mask and
            the value parsed.
        rule_error: Description of a custom rule that raised, if any.
    """

    model_config = {"frozen": True}

    valid: bool
    message: str | None = None
    rule_kind: RuleKind | None = None
    canonical: str | None = None
    rule_error: str | None = None


class CrossFieldError(BaseModel):
    """One failing cross-field rule."""

    model_config = {"frozen": True}

    rule_id: str
    message: str


class ValidationResult(BaseModel):
    """Consolidated validation state of a form.

    ``field_errors`` keeps field declaration order and holds at most one
    message per field. ``cross_field_errors`` keeps rule declaration order.
    """

    model_config = {"frozen": True}

    field_errors: dict[str, str] = Field(default_factory=dict)
    cross_field_errors: tuple[CrossFieldError, ...] = ()
    pending_rules: tuple[str, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        return not self.field_errors and not self.cross_field_errors

    def cross_field_message(self, rule_id: str) -> str | None:
        for error in self.cross_field_errors:
            if error.rule_id == rule_id:
                return error.message
        return None
