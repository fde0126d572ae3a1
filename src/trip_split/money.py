"""Integer money arithmetic.

Amounts are plain ints counting the smallest currency unit. The default
currency (VND) has no subunits, so every amount is a whole number of đồng.
Every operation here is exact; anything that would leave the signed 64-bit
range raises MoneyOverflowError instead of being clamped.
"""

import re

from .exceptions import InvalidScaleError, MoneyOverflowError

MIN_AMOUNT = -(2**63)
MAX_AMOUNT = 2**63 - 1

CURRENCY_SYMBOL = "₫"

# locale -> (thousands separator, symbol before amount)
_LOCALES: dict[str, tuple[str, bool]] = {
    "vi-VN": (".", False),
    "en-US": (",", True),
}


def check_amount(value: int) -> int:
    """
    Validate that a value is a representable money amount.

    Args:
        value: Candidate amount

    Returns:
        The same value

    Raises:
        TypeError: If value is not an int (bools and floats are rejected)
        MoneyOverflowError: If value is outside the representable range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Money amounts must be int, got {type(value).__name__}")
    if value < MIN_AMOUNT or value > MAX_AMOUNT:
        raise MoneyOverflowError(value)
    return value


def add(a: int, b: int) -> int:
    """Add two amounts."""
    return check_amount(check_amount(a) + check_amount(b))


def subtract(a: int, b: int) -> int:
    """Subtract b from a."""
    return check_amount(check_amount(a) - check_amount(b))


def total(amounts) -> int:
    """Sum an iterable of amounts, checking the range after every step."""
    result = 0
    for amount in amounts:
        result = add(result, amount)
    return result


def scale_by_ratio(amount: int, numerator: int, denominator: int) -> int:
    """
    Scale an amount by numerator/denominator, rounding toward negative infinity.

    The multiplication happens before the division, so no precision is lost
    to intermediate rounding.

    Args:
        amount: Amount to scale
        numerator: Ratio numerator (>= 0)
        denominator: Ratio denominator (> 0)

    Returns:
        floor(amount * numerator / denominator)

    Raises:
        InvalidScaleError: If denominator <= 0 or numerator < 0
        MoneyOverflowError: If the result is outside the representable range
    """
    check_amount(amount)
    if denominator <= 0:
        raise InvalidScaleError(f"Scale denominator must be positive, got {denominator}")
    if numerator < 0:
        raise InvalidScaleError(f"Scale numerator must not be negative, got {numerator}")
    return check_amount((amount * numerator) // denominator)


def split_evenly(amount: int, parts: int) -> tuple[int, int]:
    """
    Divide an amount into equal integer parts.

    Returns:
        Tuple of (per_part, remainder) with per_part * parts + remainder == amount
        and 0 <= remainder < parts
    """
    check_amount(amount)
    if parts <= 0:
        raise InvalidScaleError(f"Cannot split an amount into {parts} parts")
    per_part, remainder = divmod(amount, parts)
    return per_part, remainder


def format_amount(amount: int, locale: str = "vi-VN") -> str:
    """
    Format an amount for display.

    vi-VN renders "1.234.567 ₫", en-US renders "₫1,234,567".
    """
    try:
        separator, symbol_first = _LOCALES[locale]
    except KeyError:
        raise ValueError(
            f"Unsupported locale '{locale}'. Supported: {', '.join(_LOCALES)}"
        ) from None

    sign = "-" if amount < 0 else ""
    digits = f"{abs(amount):,}".replace(",", separator)
    if symbol_first:
        return f"{sign}{CURRENCY_SYMBOL}{digits}"
    return f"{sign}{digits} {CURRENCY_SYMBOL}"


_AMOUNT_RE = re.compile(r"^-?\d+$")


def parse_amount(text: str) -> int:
    """
    Parse user input like "1.500.000 ₫" or "1,500,000" into an amount.

    Grouping separators, whitespace and the currency sign are ignored.

    Raises:
        ValueError: If the input is not a whole number
    """
    cleaned = (
        text.replace(CURRENCY_SYMBOL, "")
        .replace(".", "")
        .replace(",", "")
        .replace(" ", "")
        .replace("\u00a0", "")
        .strip()
    )
    if not _AMOUNT_RE.match(cleaned):
        raise ValueError(f"Not a whole amount: {text!r}")
    return check_amount(int(cleaned))
