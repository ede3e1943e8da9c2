"""Picture-clause mask compiler.

Three mask families from the legacy screen definitions:

- Pure digit: ``9`` repeated or ``9(n)`` (account numbers, ZIP codes).
- Edited numeric: ``+ZZZ,ZZZ,ZZZ.99``, ``ZZ9.99-``, ``S9(10)V99`` — sign
  placeholder, zero-suppressed digits, grouping separators, decimal point.
- Alphanumeric: ``X`` / ``X(n)`` (any printable) and ``A`` / ``A(n)`` (letters).

A compiled :class:`PictureMask` splits the validation side (``matches``)
from the presentation side (``format`` / ``parse``).

INVARIANT: for every raw value accepted by ``matches``, with
``c = parse(raw)``, ``parse(format(c)) == c``.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import Any

from fieldctl.domain.errors import CompileError, DigitOverflowError, ParseError
from fieldctl.domain.types import MaskKind, SignPlacement

PLACEHOLDERS = frozenset("9XAZ")
NUMERIC_SYMBOLS = frozenset("9Z,.+-SV")
ALPHA_SYMBOLS = frozenset("XA")

# Expanded masks longer than this are rejected (X(n) with a huge n).
MAX_MASK_WIDTH = 4096

_DIGITS = re.compile(r"[0-9]+")
_NUMERIC_TEXT = re.compile(
    r"^(?P<lead>[+-])?(?P<int>[0-9,]*)(?:(?P<point>\.)(?P<frac>[0-9]*))?(?P<trail>[+-])?$"
)


@dataclass(frozen=True)
class _Token:
    char: str
    position: int


# ---------------------------------------------------------------------------
# Numeric text lexing (shared with MonetaryAmount)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NumericText:
    """Lexed pieces of a user-typed or displayed number."""

    negative: bool
    integer: str
    fraction: str
    comma_offsets: tuple[int, ...]


def lex_numeric(text: str) -> NumericText:
    """Split *text* into sign, integer digits, fraction digits and separator offsets.

    Accepts a leading or trailing sign, grouping commas, and an optional
    decimal point. Comma offsets count the integer digits to the right of
    each comma, so callers can check them against a mask layout.
    """
    s = text.strip()
    m = _NUMERIC_TEXT.match(s)
    if not s or m is None:
        raise ParseError(f"{text!r} is not a number")
    if m["lead"] and m["trail"]:
        raise ParseError(f"{text!r} has more than one sign")

    int_raw = m["int"] or ""
    frac = m["frac"] or ""
    digits = int_raw.replace(",", "")
    if not digits and not frac:
        raise ParseError(f"{text!r} has no digits")
    if int_raw and (int_raw.startswith(",") or int_raw.endswith(",") or ",," in int_raw):
        raise ParseError(f"{text!r} has a misplaced separator")

    offsets: list[int] = []
    remaining = len(digits)
    for ch in int_raw:
        if ch == ",":
            offsets.append(remaining)
        else:
            remaining -= 1

    sign = m["lead"] or m["trail"]
    return NumericText(
        negative=sign == "-",
        integer=digits,
        fraction=frac,
        comma_offsets=tuple(offsets),
    )


def canonical_decimal(negative: bool, integer: str, fraction: str, fraction_digits: int) -> str:
    """Render the canonical decimal string: no leading zeros, fixed fraction width.

    Zero is never negative.
    """
    whole = integer.lstrip("0") or "0"
    frac = fraction.ljust(fraction_digits, "0")[:fraction_digits] if fraction_digits else ""
    is_zero = whole == "0" and not frac.strip("0")
    sign = "-" if negative and not is_zero else ""
    if fraction_digits:
        return f"{sign}{whole}.{frac}"
    return f"{sign}{whole}"


def group_digits(integer: str) -> str:
    """Insert thousands separators into a plain digit string."""
    head = len(integer) % 3 or 3
    parts = [integer[:head]]
    parts.extend(integer[i : i + 3] for i in range(head, len(integer), 3))
    return ",".join(parts)


# ---------------------------------------------------------------------------
# Compiled structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NumericLayout:
    """Layout recorded for an edited numeric mask.

    Attributes:
        integer_digits: Digit placeholders before the decimal point.
        fraction_digits: Digit placeholders after the decimal point.
        sign: Sign placement (none, leading, trailing).
        sign_char: ``"+"`` (always shown) or ``"-"`` (shown for negatives only).
        slots: Integer-part template, e.g. ``("Z", "Z", ",", "Z", "9")``.
        group_offsets: For each separator, integer digits to its right.
        separator_positions: Mask positions of ``,`` and ``.`` literals.
        suppressed_digits: Leading ``Z`` placeholders.
        implied_decimal: True for legacy ``V`` notation.
    """

    integer_digits: int
    fraction_digits: int
    sign: SignPlacement
    sign_char: str | None
    slots: tuple[str, ...]
    group_offsets: tuple[int, ...]
    separator_positions: tuple[int, ...]
    suppressed_digits: int
    implied_decimal: bool = False

    @property
    def capacity(self) -> int:
        return self.integer_digits + self.fraction_digits

    @property
    def has_sign(self) -> bool:
        return self.sign is not SignPlacement.NONE


@dataclass(frozen=True)
class PictureMask:
    """A compiled picture mask.

    Construct with :func:`compile_mask`; identical mask strings compile to
    equal (and cached) instances.
    """

    spec: str
    kind: MaskKind
    length: int
    layout: NumericLayout | None = None
    classes: tuple[str, ...] = ()

    # --- Derived properties ---

    @property
    def capacity(self) -> int:
        """Total digit capacity (0 for alphanumeric masks)."""
        if self.kind is MaskKind.NUMERIC_INTEGER:
            return self.length
        if self.layout is not None:
            return self.layout.capacity
        return 0

    @property
    def fraction_digits(self) -> int:
        return self.layout.fraction_digits if self.layout is not None else 0

    @property
    def has_sign(self) -> bool:
        return self.layout is not None and self.layout.has_sign

    @property
    def max_value(self) -> str | None:
        """Largest canonical value the mask can hold (numeric masks only)."""
        if self.kind is MaskKind.NUMERIC_INTEGER:
            return "9" * self.length
        if self.layout is None:
            return None
        whole = "9" * self.layout.integer_digits
        fraction = "9" * self.layout.fraction_digits
        return canonical_decimal(False, whole, fraction, self.fraction_digits)

    @property
    def hint(self) -> str:
        """Human-readable description of what the mask accepts."""
        if self.kind is MaskKind.NUMERIC_INTEGER:
            noun = "digit" if self.length == 1 else "digits"
            return f"must be {self.length} {noun}"
        if self.kind is MaskKind.ALPHANUMERIC:
            noun = "letters" if set(self.classes) == {"A"} else "characters"
            return f"must be at most {self.length} {noun}"
        top = self._render_numeric(self.max_value or "0").strip("+-")
        if self.has_sign:
            return f"must be a number between -{top} and {top}"
        return f"must be a number from 0 to {top}"

    # --- Matcher / parser / formatter ---

    def matches(self, raw: str) -> bool:
        """Return True when *raw* conforms to the mask."""
        try:
            self.parse(raw)
        except (ParseError, DigitOverflowError):
            return False
        return True

    def parse(self, raw: str) -> str:
        """Convert a display or raw string to its canonical value.

        Raises:
            ParseError: *raw* is malformed for this mask.
            DigitOverflowError: *raw* exceeds the mask's digit capacity.
        """
        if self.kind is MaskKind.NUMERIC_INTEGER:
            return self._parse_integer(raw)
        if self.kind is MaskKind.ALPHANUMERIC:
            return self._parse_alphanumeric(raw)
        return self._parse_numeric(raw)

    def format(self, value: str, *, fixed_width: bool = False) -> str:
        """Render a canonical (or any accepted raw) value for display.

        With *fixed_width*, the result is padded to the mask width the way
        the legacy screen laid it out: numbers right-justified, text left.
        """
        canonical = self.parse(value)
        if self.kind is MaskKind.ALPHANUMERIC:
            return canonical.ljust(self.length) if fixed_width else canonical
        if self.kind is MaskKind.NUMERIC_INTEGER:
            return canonical
        text = self._render_numeric(canonical)
        return text.rjust(self.length) if fixed_width else text

    def describe(self) -> dict[str, Any]:
        """Summarize the compiled mask for display."""
        info: dict[str, Any] = {
            "mask": self.spec,
            "kind": str(self.kind),
            "length": self.length,
            "capacity": self.capacity,
            "hint": self.hint,
        }
        if self.layout is not None:
            info.update(
                {
                    "integer_digits": self.layout.integer_digits,
                    "fraction_digits": self.layout.fraction_digits,
                    "sign": str(self.layout.sign),
                    "separator_positions": list(self.layout.separator_positions),
                    "max_value": self.max_value,
                }
            )
        elif self.kind is MaskKind.NUMERIC_INTEGER:
            info["max_value"] = self.max_value
        return info

    # --- Internals ---

    def _parse_integer(self, raw: str) -> str:
        s = raw.strip()
        if len(s) != self.length or _DIGITS.fullmatch(s) is None:
            raise ParseError(f"{raw!r}: {self.hint}")
        return s

    def _parse_alphanumeric(self, raw: str) -> str:
        s = raw.rstrip(" ")
        if len(s) > self.length:
            raise ParseError(f"{raw!r}: {self.hint}")
        for ch, cls in zip(s, self.classes, strict=False):
            if cls == "A" and not (ch.isalpha() or ch == " "):
                raise ParseError(f"{raw!r}: {ch!r} is not a letter")
            if cls == "X" and not ch.isprintable():
                raise ParseError(f"{raw!r}: contains a non-printable character")
        return s

    def _parse_numeric(self, raw: str) -> str:
        layout = self.layout
        assert layout is not None
        text = lex_numeric(raw)
        if text.negative and not layout.has_sign:
            raise ParseError(f"{raw!r}: must not be negative")
        stray = [o for o in text.comma_offsets if o not in layout.group_offsets]
        if stray:
            raise ParseError(f"{raw!r}: misplaced separator")
        significant_fraction = text.fraction.rstrip("0")
        if len(significant_fraction) > layout.fraction_digits:
            if layout.fraction_digits == 0:
                raise ParseError(f"{raw!r}: must be a whole number")
            raise ParseError(f"{raw!r}: at most {layout.fraction_digits} decimal places")
        whole = text.integer.lstrip("0")
        if len(whole) > layout.integer_digits:
            raise DigitOverflowError(
                f"{raw!r} exceeds the {layout.capacity}-digit capacity of {self.spec}",
                capacity=layout.capacity,
            )
        return canonical_decimal(text.negative, whole, text.fraction, layout.fraction_digits)

    def _render_numeric(self, canonical: str) -> str:
        layout = self.layout
        assert layout is not None
        negative = canonical.startswith("-")
        whole, _, frac = canonical.lstrip("-").partition(".")
        padded = whole.rjust(layout.integer_digits, "0")

        out: list[str] = []
        significant = False
        index = 0
        for slot in layout.slots:
            if slot == ",":
                if significant:
                    out.append(",")
                continue
            digit = padded[index]
            index += 1
            if not significant and slot == "Z" and digit == "0":
                continue
            significant = True
            out.append(digit)

        text = "".join(out)
        if not text and layout.integer_digits:
            text = "0"
        if layout.fraction_digits:
            text = f"{text}.{frac}"

        if layout.sign_char == "+":
            sign = "-" if negative else "+"
        elif layout.sign_char == "-":
            sign = "-" if negative else ""
        else:
            sign = ""
        if layout.sign is SignPlacement.TRAILING:
            return f"{text}{sign}"
        return f"{sign}{text}"


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


def _expand(mask: str) -> list[_Token]:
    """Expand ``C(n)`` repeat notation into one token per display position."""
    tokens: list[_Token] = []
    last_was_repeat = False
    i = 0
    while i < len(mask):
        ch = mask[i]
        if ch == "(":
            if not tokens or last_was_repeat or tokens[-1].char not in PLACEHOLDERS:
                raise CompileError(mask, "repeat count without a placeholder", position=i, char=ch)
            close = mask.find(")", i + 1)
            if close == -1:
                raise CompileError(mask, "unbalanced parenthesis", position=i, char=ch)
            count_text = mask[i + 1 : close]
            nested = count_text.find("(")
            if nested != -1:
                raise CompileError(
                    mask, "unbalanced parenthesis", position=i + 1 + nested, char="("
                )
            if _DIGITS.fullmatch(count_text) is None or int(count_text) == 0:
                raise CompileError(
                    mask, "repeat count must be a positive integer", position=i + 1
                )
            count = int(count_text)
            if len(tokens) + count - 1 > MAX_MASK_WIDTH:
                raise CompileError(mask, f"mask wider than {MAX_MASK_WIDTH} positions", position=i)
            placeholder = tokens[-1].char
            tokens.extend(_Token(placeholder, i) for _ in range(count - 1))
            last_was_repeat = True
            i = close + 1
            continue
        if ch == ")":
            raise CompileError(mask, "unbalanced parenthesis", position=i, char=ch)
        tokens.append(_Token(ch, i))
        last_was_repeat = False
        i += 1
    return tokens


def _check_symbols(mask: str, tokens: list[_Token]) -> None:
    for token in tokens:
        if token.char == "P":
            raise CompileError(
                mask, "scaling positions are not supported", position=token.position, char="P"
            )
        if token.char not in NUMERIC_SYMBOLS and token.char not in ALPHA_SYMBOLS:
            raise CompileError(mask, "unknown character", position=token.position, char=token.char)


def _compile_alphanumeric(mask: str, tokens: list[_Token]) -> PictureMask:
    for token in tokens:
        if token.char not in ALPHA_SYMBOLS:
            raise CompileError(
                mask,
                "cannot mix alphanumeric and numeric placeholders",
                position=token.position,
                char=token.char,
            )
    classes = tuple(t.char for t in tokens)
    return PictureMask(spec=mask, kind=MaskKind.ALPHANUMERIC, length=len(tokens), classes=classes)


def _compile_numeric(mask: str, tokens: list[_Token]) -> PictureMask:
    body = list(tokens)
    sign = SignPlacement.NONE
    sign_char: str | None = None

    if body[0].char in "+-S":
        sign = SignPlacement.LEADING
        sign_char = "-" if body[0].char in "-S" else "+"
        body = body[1:]
    elif body[-1].char in "+-":
        sign = SignPlacement.TRAILING
        sign_char = body[-1].char
        body = body[:-1]

    for token in body:
        if token.char in "+-":
            raise CompileError(
                mask,
                "sign placeholder must be first or last",
                position=token.position,
                char=token.char,
            )
        if token.char == "S":
            raise CompileError(mask, "S must lead the mask", position=token.position, char="S")

    points = [t for t in body if t.char in ".V"]
    if len(points) > 1:
        raise CompileError(
            mask, "more than one decimal point", position=points[1].position, char=points[1].char
        )
    if points:
        split = body.index(points[0])
        int_part, frac_part = body[:split], body[split + 1 :]
    else:
        int_part, frac_part = body, []

    for token in frac_part:
        if token.char == ",":
            raise CompileError(
                mask, "separator after the decimal point", position=token.position, char=","
            )

    if int_part and (int_part[0].char == "," or int_part[-1].char == ","):
        bad = int_part[0] if int_part[0].char == "," else int_part[-1]
        raise CompileError(
            mask, "separator must sit between digits", position=bad.position, char=","
        )

    seen_forced = False
    previous = ""
    for token in int_part:
        if token.char == "," and previous == ",":
            raise CompileError(mask, "adjacent separators", position=token.position, char=",")
        if token.char == "9":
            seen_forced = True
        elif token.char == "Z" and seen_forced:
            raise CompileError(
                mask, "zero suppression after a forced digit", position=token.position, char="Z"
            )
        previous = token.char

    slots = tuple(t.char for t in int_part)
    integer_digits = sum(1 for s in slots if s != ",")
    if integer_digits + len(frac_part) == 0:
        raise CompileError(mask, "no digit placeholders")

    group_offsets: list[int] = []
    remaining = integer_digits
    for slot in slots:
        if slot == ",":
            group_offsets.append(remaining)
        else:
            remaining -= 1

    layout = NumericLayout(
        integer_digits=integer_digits,
        fraction_digits=len(frac_part),
        sign=sign,
        sign_char=sign_char,
        slots=slots,
        group_offsets=tuple(group_offsets),
        separator_positions=tuple(t.position for t in body if t.char in ",.V"),
        suppressed_digits=sum(1 for s in slots if s == "Z"),
        implied_decimal=bool(points) and points[0].char == "V",
    )
    return PictureMask(spec=mask, kind=MaskKind.NUMERIC_SIGNED, length=len(tokens), layout=layout)


@functools.lru_cache(maxsize=256)
def compile_mask(spec: str) -> PictureMask:
    """Compile a picture clause into a :class:`PictureMask`.

    Raises:
        CompileError: the mask is malformed. Callers must compile masks at
            form-definition load time, never per keystroke.
    """
    mask = spec.strip().upper()
    if not mask:
        raise CompileError(spec, "empty mask")

    tokens = _expand(mask)
    _check_symbols(mask, tokens)

    chars = {t.char for t in tokens}
    if chars & ALPHA_SYMBOLS:
        return _compile_alphanumeric(mask, tokens)
    if chars == {"9"}:
        return PictureMask(spec=mask, kind=MaskKind.NUMERIC_INTEGER, length=len(tokens))
    return _compile_numeric(mask, tokens)
