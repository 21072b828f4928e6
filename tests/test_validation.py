import os
import sys
import unittest
from datetime import datetime, timezone

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from utils.errors import (
    NETWORK_MESSAGE,
    SERVER_MESSAGE,
    AppError,
    NetworkError,
    ValidationError,
    user_message,
)
from utils.pure import (
    conversation_id,
    epoch_key,
    format_date,
    generate_markdown_table,
    short_order_id,
    to_datetime,
)
from utils.validation import (
    ensure_valid,
    validate_barangay,
    validate_contact_number,
    validate_email,
    validate_full_name,
    validate_login_password,
    validate_new_password,
    validate_province,
    validate_street,
)


class ValidationTestCase(unittest.TestCase):
    def test_email(self):
        self.assertIsNone(validate_email("juan@example.com"))
        self.assertIsNone(validate_email("  juan.dela+shop@mail.example.ph "))
        self.assertEqual(validate_email(""), "Email is required.")
        self.assertIn("Invalid email", validate_email("juan@example"))
        self.assertIn("64 characters", validate_email("a" * 65 + "@example.com"))

    def test_passwords(self):
        self.assertIsNone(validate_login_password("x"))
        self.assertEqual(validate_login_password(""), "Password is required.")
        self.assertIn("8 characters", validate_new_password("short1"))
        self.assertIn("number", validate_new_password("longpassword"))
        self.assertIsNone(validate_new_password("longpass1"))

    def test_full_name(self):
        self.assertIsNone(validate_full_name("Juan Dela Cruz"))
        self.assertIsNone(validate_full_name("Juan   Cruz"))
        cases = {
            "": "required",
            "Juan2 Cruz": "numbers",
            "juan cruz": "capital letter",
            "Juan": "at least 5",
            "Juanito": "first and last",
            "Jooohn Cruz": "repeated",
        }
        for value, fragment in cases.items():
            with self.subTest(value=value):
                self.assertIn(fragment, validate_full_name(value))

    def test_contact_number(self):
        self.assertIsNone(validate_contact_number("09123456789"))
        self.assertIn("Philippine", validate_contact_number("0912345678"))
        self.assertIn("special characters", validate_contact_number("0912-345-6789"))
        self.assertIn("repeating", validate_contact_number("09111123456"))

    def test_places(self):
        self.assertIsNone(validate_province("Batangas"))
        self.assertIn("at least 3", validate_province("Ba"))
        self.assertIn("only contain", validate_province("Batangas1"))
        self.assertIn("repeated", validate_province("Baaatangas"))
        self.assertIsNone(validate_barangay("Zone 1"))

    def test_street(self):
        self.assertIsNone(validate_street("123 Rizal St."))
        self.assertIsNone(validate_street("#12 Unit 3/F"))
        self.assertIn("only contain", validate_street("Main St @ corner"))
        self.assertIn("repeated", validate_street("Mainnnn St"))

    def test_ensure_valid_tags_first_failure(self):
        with self.assertRaises(ValidationError) as ctx:
            ensure_valid(
                {
                    "email": lambda: validate_email("juan@example.com"),
                    "password": lambda: validate_new_password("short"),
                    "contact_number": lambda: validate_contact_number("x"),
                }
            )
        self.assertEqual(ctx.exception.field, "password")
        self.assertIn("8 characters", ctx.exception.user_message)

        ensure_valid({"email": lambda: None})


class PureTestCase(unittest.TestCase):
    def test_markdown_table(self):
        table = generate_markdown_table(["Status", "Count"], [["pending", 2], ["shipped", None]], ["l", "r"])
        self.assertEqual(
            table,
            "| Status | Count |\n| :--- | ---: |\n| pending | 2 |\n| shipped | - |",
        )
        self.assertEqual(generate_markdown_table(["A"], []), "")
        self.assertTrue(generate_markdown_table(None, [["H"], ["v"]]).startswith("| H |"))
        with self.assertRaises(ValueError):
            generate_markdown_table(["A", "B"], [[1, 2]], ["l"])

    def test_to_datetime(self):
        naive = datetime(2024, 5, 1, 10, 0)
        self.assertEqual(to_datetime(naive).tzinfo, timezone.utc)
        self.assertEqual(to_datetime(0), datetime(1970, 1, 1, tzinfo=timezone.utc))
        self.assertIsNone(to_datetime(""))
        self.assertIsNone(to_datetime(True))
        self.assertIsNone(to_datetime({"seconds": 1}))

    def test_helpers(self):
        self.assertEqual(conversation_id("seller1", "buyer1"), "buyer1_seller1")
        self.assertEqual(conversation_id("buyer1", "seller1"), "buyer1_seller1")
        self.assertEqual(short_order_id("order-abcdef123"), "BCDEF123")
        self.assertEqual(epoch_key(None), 0.0)
        self.assertEqual(format_date(None), "N/A")


class ErrorTestCase(unittest.TestCase):
    def test_user_messages_never_leak(self):
        self.assertEqual(user_message(RuntimeError("db password is hunter2")), SERVER_MESSAGE)
        self.assertEqual(user_message(NetworkError()), NETWORK_MESSAGE)
        self.assertEqual(user_message(AppError("Shop is closed.")), "Shop is closed.")

    def test_validation_error_field(self):
        e = ValidationError("Bad", field="email")
        self.assertIsInstance(e, AppError)
        self.assertEqual(e.field, "email")
        self.assertEqual(str(e), "Bad")


if __name__ == "__main__":
    unittest.main()
