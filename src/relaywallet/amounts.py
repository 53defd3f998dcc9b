"""Exact conversion between decimal strings and token base units."""

import re
from decimal import Decimal, InvalidOperation

from relaywallet.errors import InvalidAmountError

MAX_DECIMALS = 255

_AMOUNT_RE = re.compile(r"(?P<whole>[0-9]*)(?:\.(?P<frac>[0-9]*))?")


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise InvalidAmountError(decimals, "decimals must be an integer")
    if not 0 <= decimals <= MAX_DECIMALS:
        raise InvalidAmountError(decimals, f"decimals must be between 0 and {MAX_DECIMALS}")


def parse_amount(amount: str) -> Decimal:
    """Validate a human-readable amount string.

    Accepts plain non-negative decimal notation ("10", "10.25", ".5").
    Only ASCII digits are accepted. Signs, exponents, whitespace (including a
    trailing newline) and thousands separators are rejected.

    Raises:
        InvalidAmountError: If the string is not a plain decimal number
    """
    if not isinstance(amount, str):
        raise InvalidAmountError(amount, "amount must be a decimal string")

    if amount.startswith("-"):
        raise InvalidAmountError(amount, "amount must not be negative")

    match = _AMOUNT_RE.fullmatch(amount)
    if not match or not (match.group("whole") or match.group("frac")):
        raise InvalidAmountError(amount, "not a decimal number")

    try:
        return Decimal(amount)
    except InvalidOperation as e:
        raise InvalidAmountError(amount, "not a decimal number") from e


def to_base_units(value: Decimal, decimals: int) -> int:
    """Scale a validated decimal to integer base units.

    Raises:
        InvalidAmountError: If the value needs more fractional digits than
            ``decimals`` allows
    """
    _check_decimals(decimals)

    if value < 0:
        raise InvalidAmountError(str(value), "amount must not be negative")

    if not value.is_finite():
        raise InvalidAmountError(str(value), "not a finite number")

    # Integer arithmetic only: Decimal context precision would round large values
    _, digits, exponent = value.as_tuple()
    digits = list(digits)
    if not any(digits):
        return 0

    # Trailing zeros do not count against the precision
    while exponent < 0 and len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1

    if -exponent > decimals:
        raise InvalidAmountError(
            str(value), f"more than {decimals} fractional digits"
        )

    coefficient = int("".join(str(d) for d in digits) or "0")
    return coefficient * 10 ** (exponent + decimals)


def parse_units(amount: str, decimals: int) -> int:
    """Convert a decimal string to base units, e.g. ("10.25", 6) -> 10250000."""
    return to_base_units(parse_amount(amount), decimals)


def format_units(value: int, decimals: int) -> str:
    """Format base units as a decimal string.

    Trailing fractional zeros are dropped but one fractional digit is always
    kept: (1500000000000000000, 18) -> "1.5", (250000000, 6) -> "250.0".
    """
    _check_decimals(decimals)

    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)

    frac_str = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac_str or '0'}"
