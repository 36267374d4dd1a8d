"""Shopping cart: a running total checked out against an attached card."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Tuple

from .metrics import CART_TOTAL, CHECKOUT_ERROR_TOTAL
from .money import Number, check_amount, format_money, to_decimal
from .payment import PaymentRecord

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
INSUFFICIENT_FUNDS = "Not enough money on your balance"


class ShoppingCart:
    """
    Keeps a non-negative running total and an optional payment card.

    The attached :class:`PaymentRecord` belongs to the registry; the cart
    only refers to it.
    """

    def __init__(self, currency_symbol: str = "$") -> None:
        self._total = ZERO
        self._payment: Optional[PaymentRecord] = None
        self.currency_symbol = currency_symbol

    # ---- Total ----

    @property
    def total(self) -> Decimal:
        return self._total

    def _set_total(self, value: Decimal) -> None:
        self._total = max(value, ZERO)
        CART_TOTAL.set(float(self._total))

    def add_item(self, price: Number) -> None:
        """Add ``price`` to the total.  Negative prices lower it, down to zero.

        Raises:
            AmountParseError: If ``price`` is NaN, infinite or beyond
                ``MAX_AMOUNT``.  The total is unchanged.
        """
        self._set_total(self._total + check_amount(to_decimal(price)))

    def remove_item(self, price: Number) -> None:
        """Subtract ``price`` from the total, never going below zero."""
        self._set_total(self._total - check_amount(to_decimal(price)))

    # ---- Payment ----

    @property
    def payment(self) -> Optional[PaymentRecord]:
        return self._payment

    @property
    def has_payment(self) -> bool:
        return self._payment is not None

    def attach(self, record: PaymentRecord) -> None:
        self._payment = record

    def detach(self) -> None:
        self._payment = None

    # ---- Checkout ----

    def checkout(self) -> Tuple[bool, str]:
        """Charge the cart total to the attached card.

        Returns:
            ``(True, receipt)`` when the charge went through and the total
            was reset, ``(False, reason)`` otherwise.  The total is left
            untouched on every failure.
        """
        record = self._payment
        if record is None:
            CHECKOUT_ERROR_TOTAL.inc(type="missing_payment")
            return False, "Payment details are missing"
        if not record.is_valid():
            CHECKOUT_ERROR_TOTAL.inc(type="invalid_card")
            logger.warning(
                "Checkout refused, invalid card details",
                extra={"extra": {"card": record.masked_number}},
            )
            return False, "Invalid card details"

        amount = self._total
        if not record.charge(amount):
            CHECKOUT_ERROR_TOTAL.inc(type="insufficient_funds")
            return False, INSUFFICIENT_FUNDS

        self._set_total(ZERO)
        receipt_lines = [
            f"Processing {record.payment_type} payment of {self._money(amount)} "
            f"on {record.history[-1].timestamp:%Y-%m-%d %H:%M:%S}",
            f"Card ending in {record.masked_number}, "
            f"Expiry: {record.expiry_label}",
            f"Payment Successful! Remaining balance: {self._money(record.balance)}",
        ]
        return True, "\n".join(receipt_lines)

    def _money(self, amount: Decimal) -> str:
        return format_money(amount, self.currency_symbol)
