# --- path/bootstrap (keep this at the very top) ---
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if SRC.is_dir() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
# --- end path/bootstrap ---

import json
import logging
import os
import tempfile
import unittest
from decimal import Decimal
from unittest import mock

from cardpay import cli, metrics
from cardpay.cart import ShoppingCart
from cardpay.cli import InteractiveShell
from cardpay.config import Settings
from cardpay.logging_config import LOG_FILE_NAME, JsonFormatter, configure_logging
from cardpay.registry import CardRegistry

CARD = ["1234567890123456", "123", "1229"]


class ScriptedConsole:
    """Feeds canned lines to ``input`` and records everything printed."""

    def __init__(self, lines):
        self._lines = list(lines)
        self.output = []

    def input(self, prompt=""):
        if prompt:
            self.output.append(prompt)
        if not self._lines:
            raise EOFError
        return self._lines.pop(0)

    def print(self, *args, **kwargs):
        self.output.append(" ".join(str(a) for a in args))

    @property
    def text(self):
        return "\n".join(self.output)


def make_shell(lines, settings=None):
    console = ScriptedConsole(lines)
    settings = settings or Settings()
    registry = CardRegistry(console.input, console.print, settings.mask_visible_digits)
    cart = ShoppingCart(settings.currency_symbol)
    shell = InteractiveShell(registry, cart, settings, console.input, console.print)
    return shell, console


class TestInteractiveShell(unittest.TestCase):
    """End-to-end menu sessions driven by scripted input."""

    def setUp(self):
        metrics.reset_all()

    def test_register_add_and_pay(self):
        shell, console = make_shell(
            ["1", *CARD, "100.00",
             "2", "30.00",
             "2", "20.00",
             "3", "1", "1",
             "3", "1", "2",
             "4"]
        )
        shell.run()

        card = shell.registry.get(1)
        self.assertEqual(card.balance, Decimal("50.00"))
        self.assertEqual(shell.cart.total, Decimal("0"))
        self.assertIs(shell.cart.payment, card)
        self.assertIn("Card registered successfully", console.output)
        self.assertIn("Cart total: $50.00", console.output)
        self.assertIn("1. Card ending in 3456", console.output)
        self.assertIn("Payment Successful! Remaining balance: $50.00", console.text)
        self.assertIn("Balance: $50.00", console.output)
        self.assertTrue(any(line.endswith("SUCCESS") and "$50.00" in line for line in console.output))
        self.assertEqual(console.output[-1], "Exiting application.")

    def test_insufficient_balance_keeps_cart(self):
        shell, console = make_shell(
            ["1", *CARD, "10.00", "2", "50", "3", "1", "1", "3", "1", "2", "4"]
        )
        shell.run()

        card = shell.registry.get(1)
        self.assertEqual(card.balance, Decimal("10.00"))
        self.assertEqual(shell.cart.total, Decimal("50"))
        self.assertIn("Not enough money on your balance", console.output)
        self.assertTrue(any(line.endswith("FAILED") for line in console.output))

    def test_registration_errors_abort(self):
        cases = [
            (["", ], "Card number cannot be empty"),
            (["1234567890123456", ""], "CVV cannot be empty"),
            (["1234567890123456", "123", ""], "Expiry date cannot be empty"),
            (["1234567890123456", "123", "1329"], "Invalid expiry date, expected MM/yy"),
            (["1234567890123456", "123", "12"], "Invalid expiry date, expected MM/yy"),
            ([*CARD, "lots"], "Invalid balance amount"),
            ([*CARD, "-5"], "Invalid balance amount"),
        ]
        for fields, message in cases:
            with self.subTest(message=message, fields=fields):
                shell, console = make_shell(["1", *fields, "4"])
                shell.run()
                self.assertIn(message, console.output)
                self.assertNotIn("Card registered successfully", console.output)
                self.assertEqual(len(shell.registry), 0)

    def test_expiry_backspace_across_separator(self):
        shell, console = make_shell(["1", "1234567890123456", "123", "12\x7f\x7f0331", "5", "4"])
        shell.run()
        self.assertEqual(shell.registry.get(1).expiry_label, "03/31")

    def test_card_options_without_cards(self):
        shell, console = make_shell(["3", "4"])
        shell.run()
        self.assertIn("No registered cards available", console.output)

    def test_invalid_card_selection(self):
        for choice in ("x", "0", "2"):
            with self.subTest(choice=choice):
                shell, console = make_shell(["1", *CARD, "1", "3", choice, "4"])
                shell.run()
                self.assertIn("Invalid selection", console.output)
                self.assertNotIn("1. Pay", console.output)

    def test_invalid_menu_option_has_no_side_effects(self):
        shell, console = make_shell(["9", "", "4"])
        shell.run()
        self.assertEqual(console.output.count("Invalid option"), 2)
        self.assertEqual(len(shell.registry), 0)
        self.assertEqual(shell.cart.total, Decimal("0"))

    def test_invalid_price(self):
        shell, console = make_shell(["2", "ten", "4"])
        shell.run()
        self.assertIn("Invalid price", console.output)
        self.assertEqual(shell.cart.total, Decimal("0"))

    def test_huge_price_rejected_and_loop_continues(self):
        for price in ("100000000000000000000000000", "1e30", "nan"):
            with self.subTest(price=price):
                shell, console = make_shell(["2", price, "4"])
                shell.run()
                self.assertIn("Invalid price", console.output)
                self.assertEqual(shell.cart.total, Decimal("0"))
                self.assertEqual(console.output[-1], "Exiting application.")

    def test_huge_balance_rejected_and_loop_continues(self):
        shell, console = make_shell(["1", *CARD, "1e30", "3", "4"])
        shell.run()
        self.assertIn("Invalid balance amount", console.output)
        self.assertIn("No registered cards available", console.output)
        self.assertEqual(console.output[-1], "Exiting application.")

    def test_history_with_largest_balance(self):
        shell, console = make_shell(["1", *CARD, "1000000000000", "3", "1", "2", "4"])
        shell.run()
        self.assertIn("Balance: $1,000,000,000,000.00", console.output)
        self.assertEqual(console.output[-1], "Exiting application.")

    def test_invalid_card_submenu_option(self):
        shell, console = make_shell(["1", *CARD, "1", "3", "1", "7", "4"])
        shell.run()
        self.assertIn("Invalid option", console.output)
        self.assertEqual(shell.registry.get(1).history, ())

    def test_history_empty(self):
        shell, console = make_shell(["1", *CARD, "1", "3", "1", "2", "4"])
        shell.run()
        self.assertIn("No payment attempts yet.", console.output)
        self.assertIn("Card ending in 3456, Expiry: 12/29", console.output)

    def test_pay_with_invalid_card(self):
        shell, console = make_shell(["1", "1234", "12", "1229", "100", "2", "5", "3", "1", "1", "4"])
        shell.run()
        self.assertIn("Invalid card details", console.output)
        self.assertEqual(shell.cart.total, Decimal("5"))

    def test_custom_currency_and_mask(self):
        settings = Settings(currency_symbol="€", mask_visible_digits=2)
        shell, console = make_shell(["1", *CARD, "100", "2", "1", "3", "1", "1", "4"], settings)
        shell.run()
        self.assertIn("1. Card ending in 56", console.output)
        self.assertIn("Payment Successful! Remaining balance: €99.00", console.text)

    def test_eof_propagates_from_run(self):
        shell, console = make_shell(["2"])
        with self.assertRaises(EOFError):
            shell.run()


class TestMain(unittest.TestCase):

    def setUp(self):
        metrics.reset_all()
        patcher = mock.patch.object(cli, "configure_logging")
        self.configure_logging = patcher.start()
        self.addCleanup(patcher.stop)

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_exit_option_returns_zero(self):
        with mock.patch("builtins.input", side_effect=["4"]), mock.patch("builtins.print") as fake_print:
            self.assertEqual(cli.main(), 0)
        fake_print.assert_any_call("Exiting application.")
        self.configure_logging.assert_called_once()

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_end_of_input_exits_cleanly(self):
        with mock.patch("builtins.input", side_effect=EOFError), mock.patch("builtins.print"):
            self.assertEqual(cli.main(), 0)

    @mock.patch.dict(os.environ, {"CARDPAY_MASK_DIGITS": "nope"}, clear=True)
    def test_bad_configuration(self):
        with mock.patch("builtins.print"):
            self.assertEqual(cli.main(), 2)
        self.configure_logging.assert_not_called()


class TestLoggingConfig(unittest.TestCase):
    """JSON log lines on stderr and, when configured, in a rotating file."""

    def setUp(self):
        root = logging.getLogger()
        saved = (root.level, list(root.handlers))

        def restore():
            for handler in list(root.handlers):
                root.removeHandler(handler)
                handler.close()
            root.setLevel(saved[0])
            for handler in saved[1]:
                root.addHandler(handler)

        self.addCleanup(restore)

    def test_json_formatter_merges_extra(self):
        record = logging.LogRecord("cardpay.payment", logging.INFO, __file__, 1, "Charge approved", None, None)
        record.extra = {"card": "3456", "amount": "50.00"}
        payload = json.loads(JsonFormatter().format(record))
        self.assertEqual(payload["level"], "INFO")
        self.assertEqual(payload["message"], "Charge approved")
        self.assertEqual(payload["card"], "3456")
        self.assertTrue(payload["timestamp"].endswith("Z"))

    def test_file_handler_written_when_dir_configured(self):
        with tempfile.TemporaryDirectory() as log_dir:
            configure_logging(log_dir, logging.INFO)
            logging.getLogger("cardpay.test").info("hello", extra={"extra": {"k": "v"}})
            for handler in logging.getLogger().handlers:
                handler.flush()
            with open(os.path.join(log_dir, LOG_FILE_NAME), encoding="utf-8") as fh:
                line = json.loads(fh.readline())
            self.assertEqual(line["message"], "hello")
            self.assertEqual(line["k"], "v")
            for handler in list(logging.getLogger().handlers):
                logging.getLogger().removeHandler(handler)
                handler.close()

    def test_console_only_by_default(self):
        configure_logging(level=logging.DEBUG)
        handlers = logging.getLogger().handlers
        self.assertEqual(len(handlers), 1)
        self.assertIsInstance(handlers[0].formatter, JsonFormatter)
        self.assertEqual(logging.getLogger().level, logging.DEBUG)


if __name__ == "__main__":
    unittest.main(verbosity=2)
