"""Canonical account status taxonomy.

Legacy screens and files carried the same concept under several codings:
single letters (``Y``/``N``, ``A``/``I``), numeric flags (``1``/``0``) and
spelled-out words. The semantic enum below is canonical; every legacy
coding is mapped onto it at the boundary by :func:`normalize_status`.
"""

from __future__ import annotations

from enum import StrEnum

from fieldctl.domain.errors import ParseError


class AccountStatus(StrEnum):
    """Canonical account/card status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


LEGACY_STATUS_CODES: dict[str, AccountStatus] = {
    "Y": AccountStatus.ACTIVE,
    "A": AccountStatus.ACTIVE,
    "1": AccountStatus.ACTIVE,
    "ACTIVE": AccountStatus.ACTIVE,
    "N": AccountStatus.INACTIVE,
    "I": AccountStatus.INACTIVE,
    "0": AccountStatus.INACTIVE,
    "INACTIVE": AccountStatus.INACTIVE,
}

# Single-letter screen coding, used when writing a status back to a legacy field.
SCREEN_CODES: dict[AccountStatus, str] = {
    AccountStatus.ACTIVE: "Y",
    AccountStatus.INACTIVE: "N",
}


def normalize_status(code: str) -> AccountStatus:
    """Map any legacy status coding onto :class:`AccountStatus`.

    Raises:
        ParseError: *code* is not a recognised status coding.
    """
    status = LEGACY_STATUS_CODES.get(code.strip().upper())
    if status is None:
        raise ParseError(f"{code!r} is not a recognised status code")
    return status


def to_screen_code(status: AccountStatus) -> str:
    return SCREEN_CODES[status]
