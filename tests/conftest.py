"""Shared pytest fixtures and test helpers for fieldctl tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from fieldctl.domain.catalog import not_exceeding_rule, state_zip_rule
from fieldctl.domain.fields import create_field_attribute
from fieldctl.domain.rules import FieldValidationRule
from fieldctl.services.definition import FormDefinition
from fieldctl.services.telemetry import disable_telemetry

ACCOUNT_FORM_YAML = """\
form: account-update
fields:
  - name: account_id
    label: Account ID
    mask: "9(11)"
    required: true
    attributes: [UNPROT, IC, FSET]
  - name: status
    label: Active Status
    mask: "X(1)"
    rules:
      - kind: enumerated_values
        values: ["Y", "N"]
  - name: credit_limit
    label: Credit Limit
    mask: "+ZZZ,ZZZ,ZZZ.99"
  - name: cash_limit
    label: Cash Credit Limit
    mask: "+ZZZ,ZZZ,ZZZ.99"
  - name: state
    label: State
    mask: "A(2)"
    rules:
      - kind: custom
        predicate: us_state
  - name: zip
    label: ZIP Code
    mask: "9(5)"
  - name: screen_title
    max_length: 40
    attributes: [ASKIP, BRT]
    initial_value: Update Account
cross_rules:
  - id: cash-within-credit
    type: not_exceeding
    amount: cash_limit
    limit: credit_limit
  - id: state-zip
    type: state_zip
    state: state
    zip_code: zip
"""


@pytest.fixture(autouse=True)
def _reset_global_state() -> Generator[None]:
    """Undo logging and telemetry changes made by CLI invocations."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("fieldctl").setLevel(logging.NOTSET)
    structlog.reset_defaults()
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from an empty temp directory so no fieldctl.toml is discovered."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FIELDCTL_CONFIG", raising=False)


@pytest.fixture
def definition_file(tmp_path: Path) -> Path:
    """The account-update form as a YAML definition file."""
    path = tmp_path / "account-update.yaml"
    path.write_text(ACCOUNT_FORM_YAML, encoding="utf-8")
    return path


@pytest.fixture
def account_form() -> FormDefinition:
    """The account-update form built in code."""
    fields = [
        create_field_attribute(
            {"name": "account_id", "label": "Account ID", "input_mask": "9(11)", "required": True}
        ),
        create_field_attribute(
            {"name": "credit_limit", "label": "Credit Limit", "input_mask": "+ZZZ,ZZZ,ZZZ.99"}
        ),
        create_field_attribute(
            {"name": "cash_limit", "label": "Cash Credit Limit", "input_mask": "+ZZZ,ZZZ,ZZZ.99"}
        ),
        create_field_attribute({"name": "state", "label": "State", "input_mask": "A(2)"}),
        create_field_attribute({"name": "zip", "label": "ZIP Code", "input_mask": "9(5)"}),
    ]
    rules = {"credit_limit": [FieldValidationRule.numeric_range(0, "999999999.99")]}
    cross = [
        not_exceeding_rule(
            "cash-within-credit",
            "cash_limit",
            "credit_limit",
            amount_label="Cash Credit Limit",
            limit_label="Credit Limit",
        ),
        state_zip_rule("state-zip", "state", "zip"),
    ]
    return FormDefinition("account-update", fields, rules, cross)


@pytest.fixture
def account_values() -> dict[str, str]:
    """A complete, valid submission for the account-update form."""
    return {
        "account_id": "00000000001",
        "credit_limit": "5,000.00",
        "cash_limit": "1500",
        "state": "NY",
        "zip": "10001",
    }
