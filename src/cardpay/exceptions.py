"""
Domain exceptions for the card payment console.

Business objects raise these instead of printing, and the interactive
layer (:mod:`cardpay.cli`, :mod:`cardpay.registry`) catches them at the
point of input and turns ``detail`` into a user-visible message.

Exception hierarchy:
    CardPayError (base)
    ├── ConfigError            : bad environment configuration at startup
    ├── CardValidationError    : empty or malformed card field
    │   └── AmountParseError   : non-numeric text where a number is expected
    └── CardSelectionError     : empty registry or index out of range
"""


class CardPayError(Exception):
    """Base exception for all card payment errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


class ConfigError(CardPayError):
    """Raised when an environment setting cannot be parsed."""


class CardValidationError(CardPayError):
    """Raised when a card field is empty or malformed."""


class AmountParseError(CardValidationError):
    """Raised when text cannot be read as a usable currency amount."""

    def __init__(self, detail: str = "Invalid amount"):
        super().__init__(detail)


class CardSelectionError(CardPayError):
    """Raised when a card cannot be picked from the registry."""
