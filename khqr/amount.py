"""Currency-aware rendering of the tag 54 transaction amount."""
from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from .models import AmountInput, Currency
from .services.errors import InvalidAmount

_AMOUNT_RE = re.compile(r"[0-9]+(\.[0-9]+)?")
_CENTS = Decimal("0.01")


def normalize_amount(value: AmountInput, currency: Currency) -> str:
    """Validate ``value`` and render it the way KHQR expects for ``currency``.

    USD amounts always carry two decimals. KHR amounts keep their integer
    form and lose trailing fractional zeros (``"1500.50"`` -> ``"1500.5"``).
    """

    if isinstance(value, bool):
        raise InvalidAmount(value)
    if isinstance(value, str):
        text = value.strip()
        if not _AMOUNT_RE.fullmatch(text):
            raise InvalidAmount(value)
    elif isinstance(value, (int, float, Decimal)):
        text = _number_to_text(value)
    else:
        raise InvalidAmount(value)

    if currency is Currency.USD:
        # Half-up on the decimal text, so "1.005" renders "1.01" rather than the binary-float "1.00".
        with localcontext() as ctx:
            ctx.prec = len(text) + 2
            return str(Decimal(text).quantize(_CENTS, rounding=ROUND_HALF_UP))

    if "." not in text:
        return text
    text = text.rstrip("0").rstrip(".")
    return text or "0"


def _number_to_text(value: int | float | Decimal) -> str:
    try:
        number = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except InvalidOperation as exc:
        raise InvalidAmount(value) from exc
    if not number.is_finite():
        raise InvalidAmount(value, "Amount must be finite")
    if number < 0:
        raise InvalidAmount(value, "Amount must be >= 0")
    return format(number.copy_abs(), "f")
