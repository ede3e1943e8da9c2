"""Submission payload — canonical, precision-exact values for transport.

Monetary fields (edited numeric masks with two fraction digits) serialise
as decimal strings with exactly two fractional digits, never as floats.
Build payloads only from values that passed validation.
"""

from __future__ import annotations

from collections.abc import Mapping

from fieldctl.domain.money import MonetaryAmount
from fieldctl.services.definition import FormDefinition
from fieldctl.services.field_validation import is_monetary


def build_payload(definition: FormDefinition, values: Mapping[str, str]) -> dict[str, str]:
    """Canonicalise *values* field by field, in declaration order.

    Empty values stay empty strings. Fields missing from *values* take
    their initial value.

    Raises:
        ParseError: a value does not fit its mask.
        DigitOverflowError: a value exceeds its mask capacity.
    """
    payload: dict[str, str] = {}
    for attribute in definition.fields:
        raw = values.get(attribute.name, attribute.initial_value or "")
        if not raw.strip():
            payload[attribute.name] = ""
        elif is_monetary(attribute):
            payload[attribute.name] = MonetaryAmount.parse(raw, attribute.input_mask).canonical()
        elif attribute.input_mask is not None:
            payload[attribute.name] = attribute.input_mask.parse(raw)
        else:
            payload[attribute.name] = raw.rstrip(" ")
    return payload
