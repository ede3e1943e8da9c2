"""Tests for the state and state/ZIP reference tables."""

from __future__ import annotations

import pytest

from fieldctl.domain.reference import (
    STATE_ZIP_PREFIXES,
    US_STATE_CODES,
    is_consistent_state_zip,
    is_valid_state,
)


class TestStates:
    def test_includes_territories_and_military(self) -> None:
        assert {"PR", "GU", "AA", "AE", "AP", "DC"} <= US_STATE_CODES

    @pytest.mark.parametrize("code", ["NY", "ca", " tx "])
    def test_valid(self, code: str) -> None:
        assert is_valid_state(code)

    @pytest.mark.parametrize("code", ["", "ZZ", "New York"])
    def test_invalid(self, code: str) -> None:
        assert not is_valid_state(code)

    def test_prefixes_are_two_digits(self) -> None:
        for prefixes in STATE_ZIP_PREFIXES.values():
            assert all(len(p) == 2 and p.isdigit() for p in prefixes)


class TestStateZip:
    @pytest.mark.parametrize(
        ("state", "zip_code"),
        [("NY", "10001"), ("CA", "90210"), ("TX", "75001"), ("fl", "33101")],
    )
    def test_consistent(self, state: str, zip_code: str) -> None:
        assert is_consistent_state_zip(state, zip_code)

    def test_inconsistent(self) -> None:
        assert not is_consistent_state_zip("NY", "90210")

    def test_unknown_state(self) -> None:
        assert not is_consistent_state_zip("ZZ", "10001")
