"""Tests for the picture mask compiler, matcher, parser and formatter."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from fieldctl.domain.errors import CompileError, DigitOverflowError, ParseError
from fieldctl.domain.masks import compile_mask, group_digits, lex_numeric
from fieldctl.domain.types import MaskKind, SignPlacement

MONEY_MASK = "+ZZZ,ZZZ,ZZZ.99"


class TestCompile:
    def test_pure_digit_mask(self) -> None:
        mask = compile_mask("9(11)")
        assert mask.kind is MaskKind.NUMERIC_INTEGER
        assert mask.length == 11
        assert mask.capacity == 11
        assert mask.layout is None

    def test_repeated_nines_equal_repeat_notation(self) -> None:
        assert compile_mask("99999").length == compile_mask("9(5)").length == 5

    def test_edited_numeric_layout(self) -> None:
        mask = compile_mask(MONEY_MASK)
        assert mask.kind is MaskKind.NUMERIC_SIGNED
        assert mask.length == 15
        layout = mask.layout
        assert layout is not None
        assert layout.integer_digits == 9
        assert layout.fraction_digits == 2
        assert layout.sign is SignPlacement.LEADING
        assert layout.sign_char == "+"
        assert layout.group_offsets == (6, 3)
        assert layout.separator_positions == (4, 8, 12)
        assert layout.suppressed_digits == 9
        assert mask.capacity == 11

    def test_trailing_sign(self) -> None:
        layout = compile_mask("ZZ9.99-").layout
        assert layout is not None
        assert layout.sign is SignPlacement.TRAILING
        assert layout.sign_char == "-"

    def test_implied_decimal(self) -> None:
        mask = compile_mask("S9(10)V99")
        assert mask.kind is MaskKind.NUMERIC_SIGNED
        assert mask.length == 14
        assert mask.layout is not None
        assert mask.layout.implied_decimal
        assert mask.capacity == 12

    def test_alphanumeric(self) -> None:
        mask = compile_mask("X(5)")
        assert mask.kind is MaskKind.ALPHANUMERIC
        assert mask.length == 5
        assert mask.capacity == 0

    def test_lowercase_is_accepted(self) -> None:
        assert compile_mask("x(3)").kind is MaskKind.ALPHANUMERIC

    def test_compilation_is_cached(self) -> None:
        assert compile_mask("9(3)") is compile_mask("9(3)")

    @pytest.mark.parametrize(
        ("spec", "reason", "position"),
        [
            ("9(0)", "repeat count must be a positive integer", 2),
            ("9(3", "unbalanced parenthesis", 1),
            ("9)", "unbalanced parenthesis", 1),
            ("(3)", "repeat count without a placeholder", 0),
            ("9Q", "unknown character", 1),
            ("9P", "scaling positions are not supported", 1),
            ("99Z", "zero suppression after a forced digit", 2),
            ("Z,,Z", "adjacent separators", 2),
            (",99", "separator must sit between digits", 0),
            ("9.9.9", "more than one decimal point", 3),
            ("Z+Z", "sign placeholder must be first or last", 1),
            ("9X", "cannot mix alphanumeric and numeric placeholders", 0),
        ],
    )
    def test_malformed_masks(self, spec: str, reason: str, position: int) -> None:
        with pytest.raises(CompileError) as exc_info:
            compile_mask(spec)
        assert exc_info.value.reason == reason
        assert exc_info.value.position == position
        assert spec in str(exc_info.value)

    def test_empty_mask(self) -> None:
        with pytest.raises(CompileError, match="empty mask"):
            compile_mask("   ")

    def test_unknown_character_reports_char(self) -> None:
        with pytest.raises(CompileError) as exc_info:
            compile_mask("99#9")
        assert exc_info.value.char == "#"
        assert exc_info.value.position == 2

    def test_too_wide(self) -> None:
        with pytest.raises(CompileError, match="wider than"):
            compile_mask("X(5000)")


class TestHint:
    @pytest.mark.parametrize(
        ("spec", "hint"),
        [
            ("9(11)", "must be 11 digits"),
            ("9", "must be 1 digit"),
            ("X(5)", "must be at most 5 characters"),
            ("A(2)", "must be at most 2 letters"),
            (MONEY_MASK, "must be a number between -999,999,999.99 and 999,999,999.99"),
            ("ZZ9", "must be a number from 0 to 999"),
        ],
    )
    def test_hint(self, spec: str, hint: str) -> None:
        assert compile_mask(spec).hint == hint


class TestIntegerMask:
    def test_exact_length(self) -> None:
        mask = compile_mask("9(11)")
        assert mask.matches("00000000001")
        assert not mask.matches("0000000001")
        assert not mask.matches("000000000012")

    def test_rejects_non_digits(self) -> None:
        mask = compile_mask("9(5)")
        assert not mask.matches("1234a")
        assert not mask.matches("-1234")

    def test_parse_strips_padding(self) -> None:
        assert compile_mask("9(5)").parse(" 01234 ") == "01234"

    def test_parse_error_carries_hint(self) -> None:
        with pytest.raises(ParseError, match="must be 5 digits"):
            compile_mask("9(5)").parse("123")


class TestEditedNumericMask:
    def test_parse_grouped(self) -> None:
        assert compile_mask(MONEY_MASK).parse("+1,234.50") == "1234.50"

    def test_parse_plain(self) -> None:
        mask = compile_mask(MONEY_MASK)
        assert mask.parse("1234") == "1234.00"
        assert mask.parse("1234.5") == "1234.50"
        assert mask.parse("-0.5") == "-0.50"

    def test_negative_zero_is_zero(self) -> None:
        assert compile_mask(MONEY_MASK).parse("-0") == "0.00"

    def test_trailing_zero_fraction_is_lossless(self) -> None:
        assert compile_mask(MONEY_MASK).parse("1.500") == "1.50"

    def test_too_many_decimals(self) -> None:
        with pytest.raises(ParseError, match="at most 2 decimal places"):
            compile_mask(MONEY_MASK).parse("1.999")

    def test_misplaced_separator(self) -> None:
        with pytest.raises(ParseError, match="misplaced separator"):
            compile_mask(MONEY_MASK).parse("12,34")

    def test_overflow(self) -> None:
        with pytest.raises(DigitOverflowError) as exc_info:
            compile_mask(MONEY_MASK).parse("1000000000")
        assert exc_info.value.capacity == 11

    def test_two_signs(self) -> None:
        with pytest.raises(ParseError):
            compile_mask(MONEY_MASK).parse("+1-")

    def test_not_a_number(self) -> None:
        assert not compile_mask(MONEY_MASK).matches("abc")
        assert not compile_mask(MONEY_MASK).matches("")

    def test_format_leading_plus(self) -> None:
        mask = compile_mask(MONEY_MASK)
        assert mask.format("1234.5") == "+1,234.50"
        assert mask.format("-1234.5") == "-1,234.50"
        assert mask.format("0") == "+0.00"
        assert mask.format("999999999.99") == "+999,999,999.99"

    def test_format_fixed_width(self) -> None:
        assert compile_mask(MONEY_MASK).format("1234.5", fixed_width=True) == "      +1,234.50"

    def test_format_trailing_minus(self) -> None:
        mask = compile_mask("ZZ9.99-")
        assert mask.format("-7") == "7.00-"
        assert mask.format("7") == "7.00"
        assert mask.format("0") == "0.00"
        assert mask.parse("7.00-") == "-7.00"

    def test_forced_digits_keep_leading_zeros(self) -> None:
        mask = compile_mask("S9(10)V99")
        assert mask.format("12.5") == "0000000012.50"
        assert mask.format("-12.5") == "-0000000012.50"
        assert mask.parse("-0000000012.50") == "-12.50"

    def test_unsigned_rejects_negative(self) -> None:
        with pytest.raises(ParseError, match="must not be negative"):
            compile_mask("ZZ9").parse("-5")

    def test_whole_number_mask(self) -> None:
        mask = compile_mask("ZZ9")
        assert mask.parse("007") == "7"
        assert mask.parse("1.00") == "1"
        assert mask.format("7", fixed_width=True) == "  7"
        with pytest.raises(ParseError, match="must be a whole number"):
            mask.parse("1.5")

    def test_max_value(self) -> None:
        assert compile_mask(MONEY_MASK).max_value == "999999999.99"
        assert compile_mask("9(3)").max_value == "999"
        assert compile_mask("X(3)").max_value is None


class TestAlphanumericMask:
    def test_length_bound(self) -> None:
        mask = compile_mask("X(5)")
        assert mask.matches("AB")
        assert mask.matches("AB-1 ")
        assert not mask.matches("ABCDEF")

    def test_trailing_spaces_are_padding(self) -> None:
        assert compile_mask("X(5)").parse("AB   ") == "AB"

    def test_letters_only(self) -> None:
        mask = compile_mask("A(3)")
        assert mask.matches("AB ")
        with pytest.raises(ParseError, match="is not a letter"):
            mask.parse("AB1")

    def test_non_printable(self) -> None:
        assert not compile_mask("X(3)").matches("A\x00")

    def test_fixed_width_pads_right(self) -> None:
        assert compile_mask("X(5)").format("AB", fixed_width=True) == "AB   "


class TestDescribe:
    def test_integer(self) -> None:
        info = compile_mask("9(5)").describe()
        assert info == {
            "mask": "9(5)",
            "kind": "numeric_integer",
            "length": 5,
            "capacity": 5,
            "hint": "must be 5 digits",
            "max_value": "99999",
        }

    def test_edited_numeric(self) -> None:
        info = compile_mask(MONEY_MASK).describe()
        assert info["kind"] == "numeric_signed"
        assert info["sign"] == "leading"
        assert info["fraction_digits"] == 2
        assert info["separator_positions"] == [4, 8, 12]


class TestLexing:
    def test_comma_offsets(self) -> None:
        text = lex_numeric("1,234,567.89")
        assert text.integer == "1234567"
        assert text.fraction == "89"
        assert text.comma_offsets == (6, 3)
        assert not text.negative

    def test_trailing_sign(self) -> None:
        assert lex_numeric("12-").negative

    def test_no_digits(self) -> None:
        with pytest.raises(ParseError):
            lex_numeric("+.")

    def test_group_digits(self) -> None:
        assert group_digits("1234567") == "1,234,567"
        assert group_digits("123") == "123"


class TestRoundTripProperties:
    @given(st.integers(min_value=-99_999_999_999, max_value=99_999_999_999))
    def test_money_mask_round_trip(self, cents: int) -> None:
        mask = compile_mask(MONEY_MASK)
        sign = "-" if cents < 0 else ""
        whole, frac = divmod(abs(cents), 100)
        canonical = mask.parse(f"{sign}{whole}.{frac:02d}")
        assert mask.parse(mask.format(canonical)) == canonical
        assert mask.parse(mask.format(canonical, fixed_width=True)) == canonical

    @given(st.integers(min_value=-99_999, max_value=99_999))
    def test_trailing_sign_round_trip(self, cents: int) -> None:
        mask = compile_mask("ZZ9.99-")
        sign = "-" if cents < 0 else ""
        whole, frac = divmod(abs(cents), 100)
        canonical = mask.parse(f"{sign}{whole}.{frac:02d}")
        assert mask.parse(mask.format(canonical)) == canonical

    @given(st.text(alphabet="ABCXYZ -/", max_size=8))
    def test_alphanumeric_round_trip(self, raw: str) -> None:
        mask = compile_mask("X(8)")
        canonical = mask.parse(raw)
        assert mask.parse(mask.format(canonical, fixed_width=True)) == canonical
