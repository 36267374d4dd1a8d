"""Currency helpers: parse user text into ``Decimal`` and format for display."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Union

from .exceptions import AmountParseError

CENTS = Decimal("0.01")
# largest amount accepted from the user, in either direction
MAX_AMOUNT = Decimal("1000000000000")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Coerce a numeric value into ``Decimal`` without float artefacts.

    NaN and infinities pass through unchanged; see :func:`check_amount`.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() first so 0.1 becomes Decimal("0.1"), not the binary expansion
        return Decimal(str(value))
    return Decimal(value)


def check_amount(amount: Decimal) -> Decimal:
    """Return ``amount`` if it is finite and within ``MAX_AMOUNT``.

    Raises:
        AmountParseError: For NaN, infinities and out-of-range values.
    """
    if not amount.is_finite():
        raise AmountParseError()
    if abs(amount) > MAX_AMOUNT:
        raise AmountParseError("Amount is too large")
    return amount


def parse_amount(text: str) -> Decimal:
    """Parse a user-typed amount such as ``"30"``, ``"19.99"`` or ``"1,000.50"``.

    Raises:
        AmountParseError: For empty, non-numeric, NaN, infinite or
            out-of-range input.
    """
    cleaned = (text or "").strip().replace(",", "")
    if not cleaned:
        raise AmountParseError("Amount cannot be empty")
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise AmountParseError()
    return check_amount(amount)


def format_money(amount: Number, symbol: str = "$") -> str:
    """``Decimal("1234.5") -> "$1,234.50"``; negatives render as ``"-$5.00"``."""
    amount = to_decimal(amount)
    if not amount.is_finite():
        return f"{symbol}{amount}"
    with localcontext() as ctx:
        # enough digits to quantize any finite value to cents
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        rounded = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
        sign = "-" if rounded < 0 else ""
        return f"{sign}{symbol}{abs(rounded):,.2f}"
