"""
Card registry: owns every card registered during the session.

The registry keeps cards in insertion order and does not de-duplicate
by card number.  :meth:`CardRegistry.create_card` is the validated,
non-interactive constructor; :meth:`register_card` and
:meth:`select_card` wrap it with prompts.  Interactive methods never
raise domain errors: they print the error's ``detail`` and return None.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Callable, Iterator, List, Optional, Union

from .exceptions import AmountParseError, CardPayError, CardSelectionError, CardValidationError
from .expiry import parse_expiry, read_expiry
from .metrics import CARDS_REGISTERED_TOTAL
from .money import Number, check_amount, parse_amount, to_decimal
from .payment import MAX_MASK_DIGITS, PaymentRecord

logger = logging.getLogger(__name__)

InputFunc = Callable[[str], str]
PrintFunc = Callable[..., None]


class CardRegistry:
    """Ordered collection of :class:`PaymentRecord` objects."""

    def __init__(
        self,
        input_func: Optional[InputFunc] = None,
        print_func: Optional[PrintFunc] = None,
        mask_digits: int = MAX_MASK_DIGITS,
    ) -> None:
        self._cards: List[PaymentRecord] = []
        self._input = input_func or input
        self._print = print_func or print
        self.mask_digits = mask_digits

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[PaymentRecord]:
        return iter(self._cards)

    # ---- Non-interactive API ----

    def create_card(
        self,
        card_number: str,
        cvv: str,
        expiry: Union[str, date],
        balance: Union[str, Number],
    ) -> PaymentRecord:
        """Validate the fields, build a record and append it.

        Raises:
            CardValidationError: For an empty card number or CVV, an empty
                or malformed expiry, or a non-numeric / negative balance.
                Nothing is appended in that case.
        """
        card_number = (card_number or "").strip()
        cvv = (cvv or "").strip()
        if not card_number:
            raise CardValidationError("Card number cannot be empty")
        if not cvv:
            raise CardValidationError("CVV cannot be empty")
        expiry_date = expiry if isinstance(expiry, date) else parse_expiry((expiry or "").strip())
        amount = _parse_balance(balance)

        record = PaymentRecord(
            balance=amount,
            card_number=card_number,
            cvv=cvv,
            expiry=expiry_date,
            mask_digits=self.mask_digits,
        )
        self._cards.append(record)
        CARDS_REGISTERED_TOTAL.inc()
        logger.info(
            "Card registered",
            extra={"extra": {"card": record.masked_number, "count": len(self._cards)}},
        )
        return record

    def get(self, index: int) -> PaymentRecord:
        """Return the card at 1-based ``index``.

        Raises:
            CardSelectionError: If the registry is empty or the index is
                out of range.
        """
        if not self._cards:
            raise CardSelectionError("No registered cards available")
        if not 1 <= index <= len(self._cards):
            raise CardSelectionError("Invalid selection")
        return self._cards[index - 1]

    # ---- Interactive API ----

    def register_card(self) -> Optional[PaymentRecord]:
        """Prompt for the card fields and register the card."""
        try:
            card_number = self._ask("Enter card number:")
            if not card_number:
                raise CardValidationError("Card number cannot be empty")
            cvv = self._ask("Enter CVV:")
            if not cvv:
                raise CardValidationError("CVV cannot be empty")
            # each typed character goes through the expiry state machine
            expiry = read_expiry(self._ask("Enter expiry date (MM/yy):"))
            balance = self._ask("Enter initial balance:")
            record = self.create_card(card_number, cvv, expiry, balance)
        except CardPayError as exc:
            logger.info("Card registration aborted", extra={"extra": {"reason": exc.detail}})
            self._print(exc.detail)
            return None
        self._print("Card registered successfully")
        return record

    def select_card(self) -> Optional[PaymentRecord]:
        """List the cards with 1-based indices and read the user's choice."""
        try:
            if not self._cards:
                raise CardSelectionError("No registered cards available")
            self._print("Select a card by index:")
            for i, card in enumerate(self._cards, start=1):
                self._print(f"{i}. Card ending in {card.masked_number}")
            raw = self._input("").strip()
            try:
                index = int(raw)
            except ValueError:
                raise CardSelectionError("Invalid selection")
            return self.get(index)
        except CardSelectionError as exc:
            self._print(exc.detail)
            return None

    def _ask(self, prompt: str) -> str:
        self._print(prompt)
        return self._input("").strip()


def _parse_balance(balance: Union[str, Number]) -> Decimal:
    try:
        amount = parse_amount(balance) if isinstance(balance, str) else check_amount(to_decimal(balance))
    except AmountParseError:
        raise CardValidationError("Invalid balance amount")
    if amount < 0:
        raise CardValidationError("Invalid balance amount")
    return amount
