"""Tests for canonical submission payloads."""

from __future__ import annotations

import pytest

from fieldctl.domain.errors import DigitOverflowError
from fieldctl.domain.fields import create_field_attribute
from fieldctl.services.definition import FormDefinition
from fieldctl.services.payload import build_payload


class TestBuildPayload:
    def test_canonical_values(
        self, account_form: FormDefinition, account_values: dict[str, str]
    ) -> None:
        payload = build_payload(account_form, account_values)
        assert payload == {
            "account_id": "00000000001",
            "credit_limit": "5000.00",
            "cash_limit": "1500.00",
            "state": "NY",
            "zip": "10001",
        }

    def test_declaration_order(
        self, account_form: FormDefinition, account_values: dict[str, str]
    ) -> None:
        values = dict(reversed(list(account_values.items())))
        assert list(build_payload(account_form, values)) == list(account_form.field_names)

    def test_money_never_loses_cents(self, account_form: FormDefinition) -> None:
        payload = build_payload(account_form, {"credit_limit": "+999,999,999.99"})
        assert payload["credit_limit"] == "999999999.99"

    def test_negative_money(self, account_form: FormDefinition) -> None:
        assert build_payload(account_form, {"cash_limit": "-0.5"})["cash_limit"] == "-0.50"

    def test_empty_values(self, account_form: FormDefinition) -> None:
        assert set(build_payload(account_form, {}).values()) == {""}

    def test_missing_values_take_initial_value(self) -> None:
        fields = [
            create_field_attribute({"name": "title", "max_length": 20, "initial_value": "Hello  "})
        ]
        assert build_payload(FormDefinition("f", fields), {}) == {"title": "Hello"}

    def test_overflow_propagates(self, account_form: FormDefinition) -> None:
        with pytest.raises(DigitOverflowError):
            build_payload(account_form, {"credit_limit": "1000000000"})
