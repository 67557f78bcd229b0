import os
import random
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db.models import User, UserRole  # noqa: E402
from utils.analytics import ACTIONS, synthesize_metric  # noqa: E402
from utils.permissions import Capability, authorize, capabilities_for  # noqa: E402
from utils.pure import (  # noqa: E402
    avatar_url,
    first_name,
    format_price,
    generate_markdown_table,
    is_valid_email,
    new_id,
)


class PureTestCase(unittest.TestCase):
    def test_format_price(self):
        self.assertEqual(format_price(25000), "LKR 25,000")
        self.assertEqual(format_price(0), "LKR 0")
        self.assertEqual(format_price(1234567), "LKR 1,234,567")

    def test_is_valid_email(self):
        self.assertTrue(is_valid_email("user@example.com"))
        for bad in ("", "user", "user@", "user@example", "us er@example.com"):
            self.assertFalse(is_valid_email(bad), bad)

    def test_new_id(self):
        ids = {new_id("u") for _ in range(200)}
        self.assertEqual(len(ids), 200)
        self.assertTrue(all(i.startswith("u-") for i in ids))

    def test_avatar_and_first_name(self):
        self.assertEqual(
            avatar_url("Jane Doe"),
            "https://ui-avatars.com/api/?name=Jane%20Doe&background=random",
        )
        self.assertEqual(first_name("Aaiysha (Artist)"), "Aaiysha")
        self.assertEqual(first_name(""), "")

    def test_markdown_table(self):
        md = generate_markdown_table(["A", "B"], [["x|y", 1]], ["l", "r"])
        self.assertEqual(md.splitlines(), ["| A | B |", "| :--- | ---: |", "| x\\|y | 1 |"])
        self.assertEqual(generate_markdown_table(["A"], []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["A", "B"], [["1", "2"]], ["l"])

    def test_synthesize_metric_ranges(self):
        rng = random.Random(1)
        for _ in range(100):
            m = synthesize_metric(rng, timestamp=42)
            self.assertEqual(m.timestamp, 42)
            self.assertTrue(10 <= m.active_users <= 29)
            self.assertTrue(0 <= m.page_views <= 4)
            self.assertIn(m.recent_action, ACTIONS)

    def test_capabilities(self):
        admin = User(id="a", name="A", email="a@x.com", role=UserRole.ADMIN)
        customer = User(id="c", name="C", email="c@x.com")
        self.assertEqual(capabilities_for(None), frozenset())
        self.assertEqual(capabilities_for(customer), {Capability.SHOP})
        self.assertEqual(capabilities_for(admin), set(Capability))
        self.assertFalse(authorize(Capability.MANAGE_ORDERS, customer))
        self.assertTrue(authorize(Capability.MANAGE_ORDERS, admin))


if __name__ == "__main__":
    unittest.main()
