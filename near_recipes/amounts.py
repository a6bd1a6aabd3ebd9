"""
Exact arithmetic over string-encoded token amounts.

Amounts travel as decimal strings (the JSON representation NEAR contracts use
for u128 values) and are converted to Python ints for every operation, so no
precision is ever lost. Division truncates toward zero, which is floor for the
non-negative values handled here; every slippage and share computation in
this package relies on that.

Inputs are not validated: a malformed or negative string is the caller's
problem, beyond the ValueError that int() raises on its own.
"""

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Iterable, Union

Amount = str
AmountLike = Union[str, int]

NEAR_NOMINATION_EXP = 24
NEAR_NOMINATION = 10**NEAR_NOMINATION_EXP

ONE_YOCTO: Amount = "1"
ZERO: Amount = "0"


def to_int(amount: AmountLike) -> int:
    """Convert an Amount (or int) to int."""
    return int(amount)


def add(a: AmountLike, b: AmountLike) -> Amount:
    return str(to_int(a) + to_int(b))


def sub(a: AmountLike, b: AmountLike) -> Amount:
    return str(to_int(a) - to_int(b))


def mul(a: AmountLike, b: AmountLike) -> Amount:
    return str(to_int(a) * to_int(b))


def div(a: AmountLike, b: AmountLike) -> Amount:
    """Integer division, truncated (floor for non-negative operands)."""
    return str(to_int(a) // to_int(b))


def mul_div(a: AmountLike, numerator: AmountLike, denominator: AmountLike) -> Amount:
    """floor(a * numerator / denominator), multiplying first."""
    return str(to_int(a) * to_int(numerator) // to_int(denominator))


def compare(a: AmountLike, b: AmountLike) -> int:
    """Return -1, 0 or 1 as a is less than, equal to or greater than b."""
    x, y = to_int(a), to_int(b)
    return (x > y) - (x < y)


def min_amount(amounts: Iterable[AmountLike]) -> Amount:
    return str(min(to_int(a) for a in amounts))


def is_zero(amount: AmountLike) -> bool:
    return to_int(amount) == 0


def round_up_to_nearest(x: AmountLike, m: AmountLike) -> Amount:
    """
    Round x up to the next multiple of m.

    If x is already a multiple of m it is returned unchanged.

    Examples:
        >>> round_up_to_nearest("0", "5")
        '0'
        >>> round_up_to_nearest("39", "5")
        '40'
        >>> round_up_to_nearest("40", "5")
        '40'
        >>> round_up_to_nearest("41", "5")
        '45'
    """
    value, multiple = to_int(x), to_int(m)
    return str(value + (multiple - value % multiple) % multiple)


def parse_near_amount(text: str) -> Amount:
    """
    Convert a human readable NEAR amount ("1.5") into yoctoNEAR.

    Thousands separators are stripped. More than 24 fractional digits cannot
    be represented and raise ValueError.

    Examples:
        >>> parse_near_amount("0.045")
        '45000000000000000000000'
        >>> parse_near_amount("1,000")
        '1000000000000000000000000000'
    """
    cleaned = text.replace(",", "").strip()
    parts = cleaned.split(".")
    whole = parts[0]
    fraction = parts[1] if len(parts) > 1 else ""
    if (
        len(parts) > 2
        or len(fraction) > NEAR_NOMINATION_EXP
        or not (whole + fraction).isdigit()
    ):
        raise ValueError(f"Cannot parse '{text}' as NEAR amount")
    return (whole + fraction.ljust(NEAR_NOMINATION_EXP, "0")).lstrip("0") or "0"


def format_near_amount(yocto: AmountLike, frac_digits: int = 5) -> str:
    """
    Render a yoctoNEAR amount in NEAR, rounded half-up to frac_digits and
    with trailing zeros trimmed. No thousands separators are inserted.

    Examples:
        >>> format_near_amount("45000000000000000000000")
        '0.045'
        >>> format_near_amount("1234567000000000000000000", 2)
        '1.23'
    """
    with localcontext() as ctx:
        ctx.prec = 100
        quantum = Decimal(1).scaleb(-frac_digits)
        near = (Decimal(to_int(yocto)) / Decimal(NEAR_NOMINATION)).quantize(
            quantum, rounding=ROUND_HALF_UP
        )
        text = format(near, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
