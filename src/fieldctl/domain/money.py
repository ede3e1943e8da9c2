"""MonetaryAmount — exact fixed-point money in integer minor units.

Legacy monetary fields are signed fixed-point with exactly two fractional
digits (PIC S9(10)V99). Values are held as a signed count of cents and are
never converted through binary floating point.

INVARIANT: every amount has exactly 2 fractional digits. Arithmetic never
gains or loses precision; exceeding the digit budget is a reported
``DigitOverflowError``, never silent truncation.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Self

from fieldctl.domain.errors import DigitOverflowError, ParseError
from fieldctl.domain.masks import PictureMask, canonical_decimal, group_digits, lex_numeric
from fieldctl.domain.types import MaskKind

SCALE = 2
MINOR_PER_MAJOR = 10**SCALE
DEFAULT_MAX_DIGITS = 12


def _check_budget(minor_units: int, max_digits: int) -> None:
    if abs(minor_units) > 10**max_digits - 1:
        top = MonetaryAmount(10**max_digits - 1).format(grouping=True)
        raise DigitOverflowError(
            f"amount exceeds the {max_digits}-digit limit of {top}",
            capacity=max_digits,
        )


@functools.total_ordering
@dataclass(frozen=True)
class MonetaryAmount:
    """Signed amount held as integer minor units (cents).

    Attributes:
        minor_units: Signed count of cents.
        max_digits: Digit budget (integer + fractional digits) enforced by
            arithmetic on this amount. Not part of equality or ordering.
    """

    minor_units: int
    max_digits: int = field(default=DEFAULT_MAX_DIGITS, compare=False, repr=False)

    def __post_init__(self) -> None:
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            msg = f"minor_units must be an int, got {type(self.minor_units).__name__}"
            raise TypeError(msg)

    # --- Construction ---

    @classmethod
    def zero(cls) -> Self:
        return cls(0)

    @classmethod
    def from_minor_units(cls, minor_units: int, *, max_digits: int = DEFAULT_MAX_DIGITS) -> Self:
        _check_budget(minor_units, max_digits)
        return cls(minor_units, max_digits)

    @classmethod
    def from_decimal(cls, value: Decimal, *, max_digits: int = DEFAULT_MAX_DIGITS) -> Self:
        """Build from a Decimal that carries at most 2 significant fractional digits."""
        if not value.is_finite():
            raise ParseError(f"{value} is not a finite amount")
        scaled = value * MINOR_PER_MAJOR
        if scaled != scaled.to_integral_value():
            raise ParseError(f"{value} has more than {SCALE} decimal places")
        return cls.from_minor_units(int(scaled), max_digits=max_digits)

    @classmethod
    def parse(
        cls,
        text: str,
        mask: PictureMask | None = None,
        *,
        max_digits: int = DEFAULT_MAX_DIGITS,
    ) -> Self:
        """Parse a user-typed or displayed amount.

        With a ``numeric_signed`` *mask*, the mask's digit capacity and sign
        rules apply as well as the digit budget.

        Raises:
            ParseError: *text* is not a well-formed amount.
            DigitOverflowError: *text* exceeds the mask capacity or budget.
            ValueError: *mask* is not a numeric edited mask.
        """
        if mask is not None:
            if mask.kind is not MaskKind.NUMERIC_SIGNED:
                msg = f"mask {mask.spec!r} is {mask.kind}, not a numeric edited mask"
                raise ValueError(msg)
            canonical = mask.parse(text)
            lexed = lex_numeric(canonical)
        else:
            lexed = lex_numeric(text)
            if lexed.comma_offsets:
                expected = tuple(range((len(lexed.integer) - 1) // 3 * 3, 0, -3))
                if lexed.comma_offsets != expected:
                    raise ParseError(f"{text!r} has a misplaced separator")

        if len(lexed.fraction.rstrip("0")) > SCALE:
            raise ParseError(f"{text!r} has more than {SCALE} decimal places")
        fraction = lexed.fraction.ljust(SCALE, "0")[:SCALE]
        minor = int(lexed.integer or "0") * MINOR_PER_MAJOR + int(fraction)
        if lexed.negative:
            minor = -minor
        _check_budget(minor, max_digits)
        return cls(minor, max_digits)

    # --- Queries ---

    def is_negative(self) -> bool:
        return self.minor_units < 0

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def compare(self, other: MonetaryAmount) -> int:
        """Return -1, 0 or 1 ordering by signed minor units."""
        return (self.minor_units > other.minor_units) - (self.minor_units < other.minor_units)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, MonetaryAmount):
            return NotImplemented
        return self.minor_units < other.minor_units

    # --- Arithmetic ---

    def add(self, other: MonetaryAmount) -> MonetaryAmount:
        return MonetaryAmount.from_minor_units(
            self.minor_units + other.minor_units, max_digits=self.max_digits
        )

    def subtract(self, other: MonetaryAmount) -> MonetaryAmount:
        return MonetaryAmount.from_minor_units(
            self.minor_units - other.minor_units, max_digits=self.max_digits
        )

    def __add__(self, other: object) -> MonetaryAmount:
        if not isinstance(other, MonetaryAmount):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: object) -> MonetaryAmount:
        if not isinstance(other, MonetaryAmount):
            return NotImplemented
        return self.subtract(other)

    def __neg__(self) -> MonetaryAmount:
        return MonetaryAmount(-self.minor_units, self.max_digits)

    def __abs__(self) -> MonetaryAmount:
        return MonetaryAmount(abs(self.minor_units), self.max_digits)

    # --- Rendering ---

    def to_decimal(self) -> Decimal:
        return Decimal(self.minor_units).scaleb(-SCALE)

    def canonical(self) -> str:
        """Wire form: plain decimal string with exactly 2 fractional digits."""
        whole, cents = divmod(abs(self.minor_units), MINOR_PER_MAJOR)
        return canonical_decimal(self.is_negative(), str(whole), f"{cents:02d}", SCALE)

    def format(
        self,
        mask: PictureMask | None = None,
        *,
        explicit_sign: bool = False,
        grouping: bool = False,
    ) -> str:
        """Render for display with exactly 2 fractional digits.

        With a mask, the mask decides sign and separator placement. Without
        one, negatives carry a leading ``-`` and *explicit_sign* adds ``+``
        to non-negative amounts.

        Raises:
            ParseError: the amount cannot be shown by *mask* (negative value
                on an unsigned mask, or cents on a whole-number mask).
            DigitOverflowError: the amount exceeds the mask capacity.
        """
        if mask is not None:
            if mask.kind is not MaskKind.NUMERIC_SIGNED:
                msg = f"mask {mask.spec!r} is {mask.kind}, not a numeric edited mask"
                raise ValueError(msg)
            return mask.format(self.canonical())

        whole, cents = divmod(abs(self.minor_units), MINOR_PER_MAJOR)
        digits = group_digits(str(whole)) if grouping else str(whole)
        if self.is_negative():
            sign = "-"
        elif explicit_sign:
            sign = "+"
        else:
            sign = ""
        return f"{sign}{digits}.{cents:02d}"

    def __str__(self) -> str:
        return self.canonical()
