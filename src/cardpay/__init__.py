"""Top-level package for the card payment console.

Cards and their charge history live in :mod:`cardpay.payment`, the
registry in :mod:`cardpay.registry`, the cart in :mod:`cardpay.cart`
and the menu loop in :mod:`cardpay.cli`.
"""

from .cart import ShoppingCart
from .payment import PaymentAttempt, PaymentRecord
from .registry import CardRegistry

__all__ = ["CardRegistry", "PaymentAttempt", "PaymentRecord", "ShoppingCart"]

__version__ = "0.1.0"
