"""FieldAttribute — one field's static contract.

Constructed once per form definition at load time and immutable for the
life of the form session.

INVARIANT: read-only and hidden fields are never required.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Self

from pydantic import (
    BaseModel,
    Field,
    PositiveInt,
    ValidationError,
    field_validator,
    model_validator,
)

from fieldctl.domain.errors import FormDefinitionError
from fieldctl.domain.masks import PictureMask, compile_mask
from fieldctl.domain.types import Emphasis, Protection

# --- Legacy attribute byte vocabulary ---

LEGACY_PROTECTION: dict[str, Protection] = {
    "UNPROT": Protection.EDITABLE,
    "ASKIP": Protection.READ_ONLY,
    "PROT": Protection.READ_ONLY,
}
LEGACY_EMPHASIS: dict[str, Emphasis] = {
    "NORM": Emphasis.NORMAL,
    "BRT": Emphasis.BRIGHT,
}
# Modified-data tag and numeric keyboard shift carry no validation meaning.
LEGACY_IGNORED: frozenset[str] = frozenset({"FSET", "NUM"})


class FieldPosition(BaseModel):
    """Screen position of a field (1-based row and column)."""

    model_config = {"frozen": True}

    row: PositiveInt
    column: PositiveInt


class FieldAttribute(BaseModel):
    """Static attributes of one form field.

    Attributes:
        name: Field identifier, unique within a form.
        label: Display text used in messages (defaults to ``name``).
        protection: Editable, read-only, or hidden.
        emphasis: Display intensity hint.
        concealed: Editable but not echoed (legacy UNPROT + DRK).
        max_length: Hard upper bound on raw input length. Defaults to the
            mask width when a mask is present.
        input_mask: Compiled picture mask; a mask string is compiled on
            construction.
        required: Legacy MUSTFILL.
        initial_value: Default value shown when the form loads.
        position: Screen position, if known.
        initial_cursor: Legacy IC; the field focused on load.
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    name: str = Field(min_length=1)
    label: str | None = None
    protection: Protection = Protection.EDITABLE
    emphasis: Emphasis = Emphasis.NORMAL
    concealed: bool = False
    max_length: PositiveInt
    input_mask: PictureMask | None = None
    required: bool = False
    initial_value: str | None = None
    position: FieldPosition | None = None
    initial_cursor: bool = False

    @model_validator(mode="before")
    @classmethod
    def _default_max_length(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("max_length") is not None:
            return data
        mask = data.get("input_mask")
        if isinstance(mask, str):
            mask = compile_mask(mask)
        if isinstance(mask, PictureMask):
            return {**data, "input_mask": mask, "max_length": mask.length}
        msg = f"field {data.get('name')!r} needs a max_length or an input mask"
        raise ValueError(msg)

    @field_validator("input_mask", mode="before")
    @classmethod
    def _compile_mask(cls, value: Any) -> Any:
        if isinstance(value, str):
            return compile_mask(value)
        return value

    @model_validator(mode="after")
    def _check_invariants(self) -> Self:
        if self.required and self.protection is not Protection.EDITABLE:
            msg = f"field {self.name!r} is {self.protection} and cannot be required"
            raise ValueError(msg)
        if self.input_mask is not None and self.max_length < self.input_mask.length:
            msg = (
                f"field {self.name!r} max_length {self.max_length} is shorter than "
                f"its mask {self.input_mask.spec!r} ({self.input_mask.length})"
            )
            raise ValueError(msg)
        if self.initial_value:
            if len(self.initial_value) > self.max_length:
                msg = f"field {self.name!r} initial value exceeds max_length {self.max_length}"
                raise ValueError(msg)
            if self.input_mask is not None and not self.input_mask.matches(self.initial_value):
                msg = (
                    f"field {self.name!r} initial value {self.initial_value!r} "
                    "does not fit its mask"
                )
                raise ValueError(msg)
        return self

    @property
    def display_label(self) -> str:
        return self.label or self.name

    @property
    def is_editable(self) -> bool:
        return self.protection is Protection.EDITABLE

    @classmethod
    def from_legacy_attributes(
        cls,
        name: str,
        attributes: Iterable[str],
        **kwargs: Any,
    ) -> FieldAttribute:
        """Build a field from a legacy attribute flag bag.

        ``["UNPROT", "BRT", "IC", "FSET"]`` becomes an editable, bright,
        initially focused field. Contradictory bags (``UNPROT`` with
        ``ASKIP``, ``NORM`` with ``BRT``) are rejected.

        Raises:
            FormDefinitionError: unknown or contradictory attributes.
        """
        flags = {a.strip().upper() for a in attributes}
        unknown = flags - set(LEGACY_PROTECTION) - set(LEGACY_EMPHASIS) - LEGACY_IGNORED - {
            "DRK",
            "IC",
        }
        if unknown:
            msg = f"field {name!r}: unknown legacy attributes {sorted(unknown)}"
            raise FormDefinitionError(msg)

        protections = {LEGACY_PROTECTION[f] for f in flags if f in LEGACY_PROTECTION}
        if len(protections) > 1:
            msg = f"field {name!r}: contradictory protection attributes {sorted(flags)}"
            raise FormDefinitionError(msg)
        emphases = {LEGACY_EMPHASIS[f] for f in flags if f in LEGACY_EMPHASIS}
        if len(emphases) > 1 or (emphases and "DRK" in flags):
            msg = f"field {name!r}: contradictory intensity attributes {sorted(flags)}"
            raise FormDefinitionError(msg)

        protection = protections.pop() if protections else Protection.READ_ONLY
        concealed = False
        if "DRK" in flags:
            if protection is Protection.EDITABLE:
                concealed = True
            else:
                protection = Protection.HIDDEN

        spec: dict[str, Any] = {
            "name": name,
            "protection": protection,
            "emphasis": emphases.pop() if emphases else Emphasis.NORMAL,
            "concealed": concealed,
            "initial_cursor": "IC" in flags,
            **kwargs,
        }
        return create_field_attribute(spec)


def create_field_attribute(spec: Mapping[str, Any]) -> FieldAttribute:
    """Construct a :class:`FieldAttribute`, validating invariants at load time.

    The mask is compiled before the model is built, so a malformed mask
    surfaces as :class:`~fieldctl.domain.errors.CompileError`.

    Raises:
        CompileError: the mask is malformed.
        FormDefinitionError: an attribute invariant is violated.
    """
    data = dict(spec)
    mask = data.get("input_mask")
    if isinstance(mask, str):
        data["input_mask"] = compile_mask(mask)
    try:
        return FieldAttribute.model_validate(data)
    except ValidationError as exc:
        name = data.get("name", "<unnamed>")
        details = "; ".join(str(e["msg"]) for e in exc.errors())
        msg = f"invalid field {name!r}: {details}"
        raise FormDefinitionError(msg) from exc
