"""Tests for FieldAttribute construction and legacy attribute mapping."""

from __future__ import annotations

import pytest

from fieldctl.domain.errors import CompileError, FormDefinitionError
from fieldctl.domain.fields import FieldAttribute, FieldPosition, create_field_attribute
from fieldctl.domain.masks import compile_mask
from fieldctl.domain.types import Emphasis, Protection


class TestCreateFieldAttribute:
    def test_defaults(self) -> None:
        attr = create_field_attribute({"name": "first_name", "max_length": 25})
        assert attr.protection is Protection.EDITABLE
        assert attr.emphasis is Emphasis.NORMAL
        assert not attr.required
        assert not attr.concealed
        assert attr.display_label == "first_name"
        assert attr.is_editable

    def test_mask_string_is_compiled(self) -> None:
        attr = create_field_attribute({"name": "zip", "input_mask": "9(5)"})
        assert attr.input_mask == compile_mask("9(5)")

    def test_max_length_defaults_to_mask_width(self) -> None:
        attr = create_field_attribute({"name": "limit", "input_mask": "+ZZZ,ZZZ,ZZZ.99"})
        assert attr.max_length == 15

    def test_explicit_max_length_may_exceed_mask(self) -> None:
        attr = create_field_attribute({"name": "zip", "input_mask": "9(5)", "max_length": 10})
        assert attr.max_length == 10

    def test_max_length_shorter_than_mask(self) -> None:
        with pytest.raises(FormDefinitionError, match="shorter than its mask"):
            create_field_attribute({"name": "zip", "input_mask": "9(5)", "max_length": 3})

    def test_needs_length_or_mask(self) -> None:
        with pytest.raises(FormDefinitionError, match="needs a max_length or an input mask"):
            create_field_attribute({"name": "notes"})

    def test_zero_max_length(self) -> None:
        with pytest.raises(FormDefinitionError):
            create_field_attribute({"name": "notes", "max_length": 0})

    def test_malformed_mask_is_compile_error(self) -> None:
        with pytest.raises(CompileError):
            create_field_attribute({"name": "zip", "input_mask": "9(0)"})

    @pytest.mark.parametrize("protection", [Protection.READ_ONLY, Protection.HIDDEN])
    def test_non_editable_cannot_be_required(self, protection: Protection) -> None:
        with pytest.raises(FormDefinitionError, match="cannot be required"):
            create_field_attribute(
                {"name": "x", "max_length": 5, "protection": protection, "required": True}
            )

    def test_initial_value_must_fit_mask(self) -> None:
        with pytest.raises(FormDefinitionError, match="does not fit its mask"):
            create_field_attribute({"name": "zip", "input_mask": "9(5)", "initial_value": "ABCDE"})

    def test_initial_value_must_fit_length(self) -> None:
        with pytest.raises(FormDefinitionError, match="exceeds max_length"):
            create_field_attribute({"name": "code", "max_length": 2, "initial_value": "ABC"})

    def test_position(self) -> None:
        attr = create_field_attribute(
            {"name": "title", "max_length": 10, "position": {"row": 1, "column": 30}}
        )
        assert attr.position == FieldPosition(row=1, column=30)

    def test_frozen(self) -> None:
        attr = create_field_attribute({"name": "title", "max_length": 10})
        with pytest.raises(ValueError):
            attr.required = True  # type: ignore[misc]


class TestLegacyAttributes:
    def test_unprot_bright_ic(self) -> None:
        attr = FieldAttribute.from_legacy_attributes(
            "acct", ["UNPROT", "BRT", "IC", "FSET"], input_mask="9(11)"
        )
        assert attr.protection is Protection.EDITABLE
        assert attr.emphasis is Emphasis.BRIGHT
        assert attr.initial_cursor
        assert attr.max_length == 11

    @pytest.mark.parametrize("flag", ["ASKIP", "PROT"])
    def test_protected(self, flag: str) -> None:
        attr = FieldAttribute.from_legacy_attributes("title", [flag, "NORM"], max_length=40)
        assert attr.protection is Protection.READ_ONLY

    def test_no_protection_flag_is_read_only(self) -> None:
        attr = FieldAttribute.from_legacy_attributes("title", ["BRT"], max_length=40)
        assert attr.protection is Protection.READ_ONLY

    def test_dark_protected_is_hidden(self) -> None:
        attr = FieldAttribute.from_legacy_attributes("key", ["ASKIP", "DRK"], max_length=8)
        assert attr.protection is Protection.HIDDEN
        assert not attr.concealed

    def test_dark_unprotected_is_concealed_input(self) -> None:
        attr = FieldAttribute.from_legacy_attributes(
            "password", ["UNPROT", "DRK", "FSET"], max_length=8, required=True
        )
        assert attr.protection is Protection.EDITABLE
        assert attr.concealed
        assert attr.required

    def test_lowercase_and_whitespace(self) -> None:
        attr = FieldAttribute.from_legacy_attributes("x", [" unprot ", "num"], max_length=3)
        assert attr.is_editable

    def test_unknown_flag(self) -> None:
        with pytest.raises(FormDefinitionError, match="unknown legacy attributes"):
            FieldAttribute.from_legacy_attributes("x", ["UNPROT", "BLINK"], max_length=3)

    def test_contradictory_protection(self) -> None:
        with pytest.raises(FormDefinitionError, match="contradictory protection"):
            FieldAttribute.from_legacy_attributes("x", ["UNPROT", "ASKIP"], max_length=3)

    def test_contradictory_intensity(self) -> None:
        with pytest.raises(FormDefinitionError, match="contradictory intensity"):
            FieldAttribute.from_legacy_attributes("x", ["UNPROT", "NORM", "BRT"], max_length=3)

    def test_dark_with_bright(self) -> None:
        with pytest.raises(FormDefinitionError, match="contradictory intensity"):
            FieldAttribute.from_legacy_attributes("x", ["UNPROT", "DRK", "BRT"], max_length=3)

    def test_hidden_required_rejected(self) -> None:
        with pytest.raises(FormDefinitionError, match="cannot be required"):
            FieldAttribute.from_legacy_attributes(
                "x", ["PROT", "DRK"], max_length=3, required=True
            )
