"""Reference tables for address and contact validation.

State codes and the state/ZIP-prefix combinations come from the legacy
address lookup copybook; a ZIP code is consistent with a state when its
first two digits appear under that state.
"""

from __future__ import annotations

STATE_ZIP_PREFIXES: dict[str, frozenset[str]] = {
    "AA": frozenset({"34"}),
    "AE": frozenset({"90", "91", "92", "93", "94", "95", "96", "97", "98"}),
    "AK": frozenset({"99"}),
    "AL": frozenset({"35", "36"}),
    "AP": frozenset({"96"}),
    "AR": frozenset({"71", "72"}),
    "AS": frozenset({"96"}),
    "AZ": frozenset({"85", "86"}),
    "CA": frozenset({"90", "91", "92", "93", "94", "95", "96"}),
    "CO": frozenset({"80", "81"}),
    "CT": frozenset({"60", "61", "62", "63", "64", "65", "66", "67", "68", "69"}),
    "DC": frozenset({"20", "56", "88"}),
    "DE": frozenset({"19"}),
    "FL": frozenset({"32", "33", "34"}),
    "FM": frozenset({"96"}),
    "GA": frozenset({"30", "31", "39"}),
    "GU": frozenset({"96"}),
    "HI": frozenset({"96"}),
    "IA": frozenset({"50", "51", "52"}),
    "ID": frozenset({"83"}),
    "IL": frozenset({"60", "61", "62"}),
    "IN": frozenset({"46", "47"}),
    "KS": frozenset({"66", "67"}),
    "KY": frozenset({"40", "41", "42"}),
    "LA": frozenset({"70", "71"}),
    "MA": frozenset({*(str(n) for n in range(10, 28)), "55"}),
    "MD": frozenset({"20", "21"}),
    "ME": frozenset({"39", "40", "41", "42", "43", "44", "45", "46", "47", "48", "49"}),
    "MH": frozenset({"96"}),
    "MI": frozenset({"48", "49"}),
    "MN": frozenset({"55", "56"}),
    "MO": frozenset({"63", "64", "65", "72"}),
    "MP": frozenset({"96"}),
    "MS": frozenset({"38", "39"}),
    "MT": frozenset({"59"}),
    "NC": frozenset({"27", "28"}),
    "ND": frozenset({"58"}),
    "NE": frozenset({"68", "69"}),
    "NH": frozenset({"30", "31", "32", "33", "34", "35", "36", "37", "38"}),
    "NJ": frozenset(str(n) for n in range(70, 90)),
    "NM": frozenset({"87", "88"}),
    "NV": frozenset({"88", "89"}),
    "NY": frozenset({"10", "11", "12", "13", "14", "50", "54", "63"}),
    "OH": frozenset({"43", "44", "45"}),
    "OK": frozenset({"73", "74"}),
    "OR": frozenset({"97"}),
    "PA": frozenset({"15", "16", "17", "18", "19"}),
    "PR": frozenset({*(str(n) for n in range(60, 80)), *(str(n) for n in range(90, 99))}),
    "PW": frozenset({"96"}),
    "RI": frozenset({"28", "29"}),
    "SC": frozenset({"29"}),
    "SD": frozenset({"57"}),
    "TN": frozenset({"37", "38"}),
    "TX": frozenset({"73", "75", "76", "77", "78", "79", "88"}),
    "UT": frozenset({"84"}),
    "VA": frozenset({"20", "22", "23", "24"}),
    "VI": frozenset({"80", "82", "83", "84", "85"}),
    "VT": frozenset({"50", "51", "52", "53", "54", "56", "57", "58", "59"}),
    "WA": frozenset({"98", "99"}),
    "WI": frozenset({"53", "54"}),
    "WV": frozenset({"24", "25", "26"}),
    "WY": frozenset({"82", "83"}),
}

US_STATE_CODES: frozenset[str] = frozenset(STATE_ZIP_PREFIXES)


def is_valid_state(code: str) -> bool:
    """Check a two-letter state, territory, or military postal code."""
    return code.strip().upper() in US_STATE_CODES


def is_consistent_state_zip(state: str, zip_code: str) -> bool:
    """Check that *zip_code*'s two-digit prefix belongs to *state*."""
    prefixes = STATE_ZIP_PREFIXES.get(state.strip().upper())
    if prefixes is None:
        return False
    return zip_code.strip()[:2] in prefixes
