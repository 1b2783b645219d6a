from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, Overflow, ROUND_DOWN, Rounded
from typing import Union

from payments_ledger.errors import AmountOverflowError, AmountParseError

SCALE = 4
QUANTUM = Decimal(1).scaleb(-SCALE)
ZERO = Decimal("0").quantize(QUANTUM)

# Largest accepted amount is below 10**MAX_INTEGER_DIGITS.
MAX_INTEGER_DIGITS = 20

# Any result that would drop a digit raises instead, even a trailing zero.
_ARITHMETIC = Context(prec=28, traps=[InvalidOperation, DivisionByZero, Overflow, Inexact, Rounded])


def to_amount(value: Union[Decimal, int, str]) -> Decimal:
    """Quantize a numeric value to the ledger's fixed scale."""
    return Decimal(value).quantize(QUANTUM)


def parse_amount(text: str) -> Decimal:
    """
    Parse an amount column.

    Raises AmountParseError for non-numeric or non-finite text, for values
    carrying more than four significant fractional digits, and for values
    with more than MAX_INTEGER_DIGITS integer digits.
    """
    stripped = text.strip()
    try:
        value = Decimal(stripped)
        if not value.is_finite():
            raise AmountParseError(f"invalid amount {text!r}")
        if value and value.adjusted() >= MAX_INTEGER_DIGITS:
            raise AmountParseError(f"amount {stripped} exceeds {MAX_INTEGER_DIGITS} integer digits")
        quantized = value.quantize(QUANTUM, rounding=ROUND_DOWN)
    except InvalidOperation:
        raise AmountParseError(f"invalid amount {text!r}") from None

    # 1.50000 is fine, 1.23456 is not
    if value != quantized:
        raise AmountParseError(f"amount {stripped} exceeds {SCALE} decimal places")

    return quantized


def add(a: Decimal, b: Decimal) -> Decimal:
    try:
        return _ARITHMETIC.add(a, b)
    except (Inexact, Rounded):
        raise AmountOverflowError(f"{a} + {b} cannot be represented exactly") from None


def subtract(a: Decimal, b: Decimal) -> Decimal:
    try:
        return _ARITHMETIC.subtract(a, b)
    except (Inexact, Rounded):
        raise AmountOverflowError(f"{a} - {b} cannot be represented exactly") from None


def format_amount(value: Decimal) -> str:
    return f"{value.quantize(QUANTUM):f}"
