"""
Payment records: a registered card, its balance and its charge history.

A :class:`PaymentRecord` never raises on an insufficient balance.  A
charge either succeeds or fails, the outcome is returned as a bool, and
every attempt is appended to ``history`` regardless of outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Tuple

from .metrics import CHARGE_ATTEMPTS_TOTAL
from .money import Number, to_decimal

logger = logging.getLogger(__name__)

CARD_NUMBER_LENGTH = 16
CVV_LENGTH = 3
# listings never show more than the last four digits
MAX_MASK_DIGITS = 4


def mask_card_number(card_number: str, visible: int = MAX_MASK_DIGITS) -> str:
    """Return only the trailing ``visible`` digits, at most ``MAX_MASK_DIGITS``."""
    visible = min(visible, MAX_MASK_DIGITS)
    return card_number[-visible:] if visible > 0 else ""


@dataclass(frozen=True)
class PaymentAttempt:
    """One charge attempt against a card."""
    amount: Decimal
    timestamp: datetime
    succeeded: bool


@dataclass
class PaymentRecord:
    """
    A card registered in the console session.

    ``balance`` is only ever decremented by a successful :meth:`charge`;
    it can never go negative.
    """
    balance: Decimal
    card_number: str
    cvv: str
    expiry: date
    created_at: datetime = field(default_factory=datetime.now)
    payment_type: str = "Card"
    mask_digits: int = field(default=MAX_MASK_DIGITS, repr=False)
    _history: List[PaymentAttempt] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self.balance = to_decimal(self.balance)
        if not self.balance.is_finite() or self.balance < 0:
            raise ValueError("balance must be a finite, non-negative amount")

    @property
    def history(self) -> Tuple[PaymentAttempt, ...]:
        """All charge attempts, oldest first."""
        return tuple(self._history)

    @property
    def masked_number(self) -> str:
        return mask_card_number(self.card_number, self.mask_digits)

    @property
    def expiry_label(self) -> str:
        return self.expiry.strftime("%m/%y")

    def charge(self, amount: Number) -> bool:
        """Deduct ``amount`` if the balance covers it.

        Returns:
            True if the balance was decremented, False otherwise.  A
            negative, NaN or infinite amount is refused.
        """
        amount = to_decimal(amount)
        ok = amount.is_finite() and Decimal(0) <= amount <= self.balance
        if ok:
            self.balance -= amount
        self._history.append(PaymentAttempt(amount=amount, timestamp=datetime.now(), succeeded=ok))
        CHARGE_ATTEMPTS_TOTAL.inc(outcome="success" if ok else "failure")

        context = {
            "card": self.masked_number,
            "amount": str(amount),
            "balance": str(self.balance),
        }
        if ok:
            logger.info("Charge approved", extra={"extra": context})
        else:
            logger.warning("Charge declined", extra={"extra": context})
        return ok

    def is_valid(self) -> bool:
        """Format check only: 16-character card number and 3-character CVV."""
        return len(self.card_number) == CARD_NUMBER_LENGTH and len(self.cvv) == CVV_LENGTH
