"""
Command-line interface for the card payment console.

``InteractiveShell`` wires a :class:`CardRegistry` and a
:class:`ShoppingCart` into a menu loop.  It reads one line per
iteration, dispatches synchronously and loops until the user picks
Exit.  The card and cart objects hold no I/O code beyond the
registry's prompts, which keeps them testable.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, Optional

from .cart import ShoppingCart
from .config import Settings
from .exceptions import AmountParseError, ConfigError
from .logging_config import configure_logging
from .metrics import generate_metrics_text
from .money import format_money, parse_amount
from .payment import PaymentRecord
from .registry import CardRegistry

logger = logging.getLogger(__name__)

MENU = (
    "1. Register Card",
    "2. Add Item to Cart",
    "3. Card Options",
    "4. Exit",
)

CARD_OPTIONS = (
    "1. Pay",
    "2. View History",
)


class InteractiveShell:
    """Menu loop with a single state and four transitions."""

    def __init__(
        self,
        registry: CardRegistry,
        cart: ShoppingCart,
        settings: Optional[Settings] = None,
        input_func: Optional[Callable[[str], str]] = None,
        print_func: Optional[Callable[..., None]] = None,
    ) -> None:
        self.registry = registry
        self.cart = cart
        self.settings = settings or Settings()
        self._input = input_func or input
        self._print = print_func or print
        self._running = False

    def print_menu(self) -> None:
        self._print()
        for line in MENU:
            self._print(line)

    def run(self) -> None:
        """Loop until Exit is chosen."""
        self._running = True
        while self._running:
            self.print_menu()
            choice = self._input("Select an option: ").strip()
            self.dispatch(choice)

    def dispatch(self, choice: str) -> None:
        if choice == "1":
            self.registry.register_card()
        elif choice == "2":
            self.add_item()
        elif choice == "3":
            self.card_options()
        elif choice == "4":
            self._print("Exiting application.")
            self._running = False
        else:
            self._print("Invalid option")

    # ---- Menu actions ----

    def add_item(self) -> None:
        try:
            price = parse_amount(self._input("Enter item price: "))
        except AmountParseError:
            self._print("Invalid price")
            return
        self.cart.add_item(price)
        self._print("Item added to cart")
        self._print(f"Cart total: {self._money(self.cart.total)}")

    def card_options(self) -> None:
        card = self.registry.select_card()
        if card is None:
            return
        for line in CARD_OPTIONS:
            self._print(line)
        choice = self._input("Select an option: ").strip()
        if choice == "1":
            self.pay(card)
        elif choice == "2":
            self.show_history(card)
        else:
            self._print("Invalid option")

    def pay(self, card: PaymentRecord) -> None:
        self.cart.attach(card)
        ok, message = self.cart.checkout()
        self._print(message)
        if not ok:
            logger.info("Checkout failed", extra={"extra": {"reason": message}})

    def show_history(self, card: PaymentRecord) -> None:
        self._print(f"Card ending in {card.masked_number}, Expiry: {card.expiry_label}")
        self._print(f"Balance: {self._money(card.balance)}")
        history = card.history
        if not history:
            self._print("No payment attempts yet.")
            return
        for attempt in history:
            status = "SUCCESS" if attempt.succeeded else "FAILED"
            self._print(f"{attempt.timestamp:%Y-%m-%d %H:%M:%S}  {self._money(attempt.amount):>12}  {status}")

    def _money(self, amount) -> str:
        return format_money(amount, self.settings.currency_symbol)


def build_shell(settings: Settings) -> InteractiveShell:
    registry = CardRegistry(mask_digits=settings.mask_visible_digits)
    cart = ShoppingCart(currency_symbol=settings.currency_symbol)
    return InteractiveShell(registry, cart, settings)


def main() -> int:
    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        print(f"Configuration error: {exc.detail}", file=sys.stderr)
        return 2
    configure_logging(settings.log_dir, settings.log_level)
    shell = build_shell(settings)
    try:
        shell.run()
    except (KeyboardInterrupt, EOFError):
        print("\nInput closed. Exiting.")
    logger.debug("Session metrics", extra={"extra": {"metrics": generate_metrics_text()}})
    return 0


if __name__ == "__main__":
    sys.exit(main())
