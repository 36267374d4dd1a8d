"""
Runtime configuration read from environment variables.

Settings are resolved once at startup by :meth:`Settings.from_env` and
then passed to the objects that need them.  Precedence:

  1. ``CARDPAY_*`` environment variables
  2. the defaults declared on :class:`Settings`

Usage:
    from cardpay.config import Settings
    settings = Settings.from_env()
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import ConfigError
from .payment import MAX_MASK_DIGITS

ENV_PREFIX = "CARDPAY_"


@dataclass(frozen=True)
class Settings:
    """Central configuration for the console application."""

    # --- Display ---
    currency_symbol: str = "$"
    mask_visible_digits: int = MAX_MASK_DIGITS

    # --- Logging ---
    log_level: int = logging.WARNING
    # None disables the rotating file handler
    log_dir: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``).

        Raises:
            ConfigError: If a variable is present but cannot be parsed.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        symbol = env.get(ENV_PREFIX + "CURRENCY_SYMBOL", defaults.currency_symbol)

        raw_digits = env.get(ENV_PREFIX + "MASK_DIGITS")
        digits = defaults.mask_visible_digits
        if raw_digits is not None:
            try:
                digits = int(raw_digits)
            except ValueError:
                raise ConfigError(f"{ENV_PREFIX}MASK_DIGITS must be an integer, got {raw_digits!r}")
            if not 0 < digits <= MAX_MASK_DIGITS:
                raise ConfigError(
                    f"{ENV_PREFIX}MASK_DIGITS must be between 1 and {MAX_MASK_DIGITS}, got {digits}"
                )

        raw_level = env.get(ENV_PREFIX + "LOG_LEVEL")
        level = defaults.log_level
        if raw_level is not None:
            resolved = logging.getLevelName(raw_level.strip().upper())
            if not isinstance(resolved, int):
                raise ConfigError(f"Unknown log level {raw_level!r}")
            level = resolved

        log_dir = env.get(ENV_PREFIX + "LOG_DIR") or defaults.log_dir

        return cls(
            currency_symbol=symbol,
            mask_visible_digits=digits,
            log_level=level,
            log_dir=log_dir,
        )
