"""Tests for form definitions — building in code and loading from files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from fieldctl.domain.errors import CompileError, FormDefinitionError
from fieldctl.domain.fields import create_field_attribute
from fieldctl.domain.rules import CrossFieldRule, FieldValidationRule
from fieldctl.domain.types import Emphasis, Protection, RuleKind
from fieldctl.services.definition import (
    FormDefinition,
    build_form_definition,
    load_form_definition,
    read_definition_file,
)


def _doc(**overrides: Any) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "form": "customer",
        "fields": [
            {"name": "first_name", "label": "First Name", "max_length": 25, "required": True},
            {
                "name": "ssn",
                "label": "SSN",
                "mask": "9(9)",
                "rules": [{"kind": "custom", "predicate": "ssn"}],
            },
        ],
    }
    doc.update(overrides)
    return doc


def _even_field() -> dict[str, Any]:
    return {"name": "code", "max_length": 4, "rules": [{"kind": "custom", "predicate": "even"}]}


class TestFormDefinition:
    def test_accessors(self, account_form: FormDefinition) -> None:
        assert account_form.name == "account-update"
        assert account_form.field_names[0] == "account_id"
        assert account_form.field("zip").display_label == "ZIP Code"
        assert [r.rule_id for r in account_form.cross_rules] == ["cash-within-credit", "state-zip"]
        assert account_form.rules_for("credit_limit")[0].kind is RuleKind.NUMERIC_RANGE
        assert account_form.rules_for("zip") == ()
        assert "account-update" in repr(account_form)

    def test_unknown_field(self, account_form: FormDefinition) -> None:
        with pytest.raises(FormDefinitionError, match="has no field 'nope'"):
            account_form.field("nope")

    def test_needs_fields(self) -> None:
        with pytest.raises(FormDefinitionError, match="has no fields"):
            FormDefinition("empty", [])

    def test_duplicate_fields(self) -> None:
        field = create_field_attribute({"name": "a", "max_length": 3})
        with pytest.raises(FormDefinitionError, match="declares fields twice"):
            FormDefinition("dup", [field, field])

    def test_one_initial_cursor(self) -> None:
        fields = [
            create_field_attribute({"name": "a", "max_length": 3, "initial_cursor": True}),
            create_field_attribute({"name": "b", "max_length": 3, "initial_cursor": True}),
        ]
        with pytest.raises(FormDefinitionError, match="more than one initial cursor"):
            FormDefinition("focus", fields)

    def test_rules_for_unknown_field(self) -> None:
        fields = [create_field_attribute({"name": "a", "max_length": 3})]
        with pytest.raises(FormDefinitionError, match="rules for unknown fields"):
            FormDefinition("f", fields, {"b": [FieldValidationRule.required()]})

    def test_rule_cycle(self) -> None:
        fields = [
            create_field_attribute({"name": "a", "max_length": 3}),
            create_field_attribute({"name": "b", "max_length": 3}),
        ]
        rules = [
            CrossFieldRule("r1", ("a",), lambda s: True, ("b",)),
            CrossFieldRule("r2", ("b",), lambda s: True, ("a",)),
        ]
        with pytest.raises(FormDefinitionError, match="cycle"):
            FormDefinition("f", fields, cross_rules=rules)

    def test_initial_values(self, account_form: FormDefinition) -> None:
        assert set(account_form.initial_values().values()) == {""}


class TestBuildFormDefinition:
    def test_builds_fields_and_rules(self) -> None:
        definition = build_form_definition(_doc())
        assert definition.field("first_name").required
        assert definition.field("ssn").max_length == 9
        [rule] = definition.rules_for("ssn")
        assert rule.kind is RuleKind.CUSTOM
        assert rule.name == "ssn"

    def test_extra_predicates(self) -> None:
        doc = _doc(fields=[_even_field()])
        definition = build_form_definition(doc, predicates={"even": lambda v, s: True})
        assert definition.rules_for("code")[0].name == "even"

    def test_unknown_predicate(self) -> None:
        doc = _doc(fields=[_even_field()])
        with pytest.raises(FormDefinitionError, match="unknown predicate 'even'"):
            build_form_definition(doc)

    def test_custom_rule_needs_predicate(self) -> None:
        doc = _doc(fields=[{"name": "code", "max_length": 4, "rules": [{"kind": "custom"}]}])
        with pytest.raises(FormDefinitionError, match="needs a predicate"):
            build_form_definition(doc)

    def test_rule_parameters(self) -> None:
        month = {
            "name": "month",
            "mask": "99",
            "rules": [
                {"kind": "numeric_range", "minimum": 1, "maximum": 12, "message": "bad month"},
                {"kind": "enumerated_values", "values": ["01", "02", 3]},
                {"kind": "length", "min_length": 2},
                {"kind": "pattern", "regex": "[0-9]+"},
                {"kind": "required"},
            ],
        }
        rules = build_form_definition(_doc(fields=[month])).rules_for("month")
        assert [r.kind for r in rules] == [
            RuleKind.NUMERIC_RANGE,
            RuleKind.ENUMERATED_VALUES,
            RuleKind.LENGTH,
            RuleKind.PATTERN,
            RuleKind.REQUIRED,
        ]
        assert rules[0].error_message == "bad month"
        assert rules[1].allowed_values == ("01", "02", "3")

    def test_legacy_attributes(self) -> None:
        fields = [
            {"name": "title", "max_length": 40, "attributes": ["ASKIP", "BRT"]},
            {"name": "acct", "mask": "9(11)", "attributes": ["UNPROT", "IC"]},
        ]
        doc = _doc(fields=fields)
        definition = build_form_definition(doc)
        assert definition.field("title").protection is Protection.READ_ONLY
        assert definition.field("title").emphasis is Emphasis.BRIGHT
        assert definition.field("acct").initial_cursor

    def test_attributes_exclude_protection(self) -> None:
        field = {"name": "t", "max_length": 4, "attributes": ["UNPROT"], "protection": "hidden"}
        doc = _doc(fields=[field])
        with pytest.raises(FormDefinitionError, match="either attributes or protection"):
            build_form_definition(doc)

    def test_hidden_required_rejected(self) -> None:
        field = {"name": "key", "max_length": 8, "attributes": ["ASKIP", "DRK"], "required": True}
        doc = _doc(fields=[field])
        with pytest.raises(FormDefinitionError, match="cannot be required"):
            build_form_definition(doc)

    def test_malformed_mask(self) -> None:
        doc = _doc(fields=[{"name": "zip", "mask": "9(5"}])
        with pytest.raises(CompileError, match="unbalanced parenthesis"):
            build_form_definition(doc)

    def test_unknown_key(self) -> None:
        with pytest.raises(FormDefinitionError, match="invalid form definition"):
            build_form_definition(_doc(colour="blue"))

    def test_unknown_cross_rule_type(self) -> None:
        doc = _doc(cross_rules=[{"id": "r", "type": "teleport", "fields": ["ssn"]}])
        with pytest.raises(FormDefinitionError):
            build_form_definition(doc)

    def test_cross_rules(self) -> None:
        doc = {
            "form": "dates",
            "fields": [
                {"name": "year", "mask": "9(4)"},
                {"name": "month", "mask": "99"},
                {"name": "day", "mask": "99"},
                {"name": "card", "mask": "9(16)"},
                {"name": "account", "mask": "9(11)"},
            ],
            "cross_rules": [
                {"id": "dob", "type": "date_parts", "year": "year", "month": "month", "day": "day"},
                {
                    "id": "link",
                    "type": "linked_entity",
                    "source": "card",
                    "target": "account",
                    "table": {"4111111111111111": "00000000001"},
                    "message": "card and account do not match",
                },
            ],
        }
        definition = build_form_definition(doc)
        assert [r.rule_id for r in definition.cross_rules] == ["dob", "link"]
        assert definition.graph.rule("dob").dependents == ("day",)
        assert definition.graph.rule("link").default_message() == "card and account do not match"

    def test_not_exceeding_uses_labels(self) -> None:
        doc = {
            "form": "limits",
            "fields": [
                {"name": "credit", "label": "Credit Limit", "mask": "+ZZZ,ZZZ,ZZZ.99"},
                {"name": "cash", "label": "Cash Limit", "mask": "+ZZZ,ZZZ,ZZZ.99"},
            ],
            "cross_rules": [
                {"id": "cash", "type": "not_exceeding", "amount": "cash", "limit": "credit"},
            ],
        }
        rule = build_form_definition(doc).graph.rule("cash")
        assert rule.default_message() == "Cash Limit must not exceed Credit Limit"


class TestLoadFormDefinition:
    def test_yaml(self, definition_file: Path) -> None:
        definition = load_form_definition(definition_file)
        assert definition.name == "account-update"
        assert definition.field("account_id").initial_cursor
        assert definition.field("screen_title").initial_value == "Update Account"
        assert len(definition.cross_rules) == 2

    def test_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "form.toml"
        path.write_text(
            'form = "zip-only"\n\n[[fields]]\nname = "zip"\nmask = "9(5)"\nrequired = true\n',
            encoding="utf-8",
        )
        definition = load_form_definition(path)
        assert definition.field("zip").required

    def test_unsupported_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "form.json"
        path.write_text("{}", encoding="utf-8")
        with pytest.raises(FormDefinitionError, match="unsupported definition format"):
            read_definition_file(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "form.yaml"
        path.write_text("form: [unclosed\n", encoding="utf-8")
        with pytest.raises(FormDefinitionError, match="invalid YAML"):
            read_definition_file(path)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "form.toml"
        path.write_text("form = \n", encoding="utf-8")
        with pytest.raises(FormDefinitionError, match="invalid TOML"):
            read_definition_file(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "form.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(FormDefinitionError, match="does not contain a mapping"):
            read_definition_file(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FormDefinitionError, match="cannot read"):
            read_definition_file(tmp_path / "missing.yaml")
