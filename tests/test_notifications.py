import tempfile
import unittest
from pathlib import Path

import api.client as client
from fakes import FakeBackend, product_json, reset_api_state
from utils.notifications import NotificationCenter, check_low_stock
from utils.state import SessionState


class NotificationCenterTestCase(unittest.TestCase):
    def setUp(self):
        self.center = NotificationCenter()

    def test_newest_first_and_unread_count(self):
        first = self.center.add("A", "first")
        second = self.center.add("B", "second", type="error")

        self.assertEqual([n.id for n in self.center.notifications], [second.id, first.id])
        self.assertEqual(self.center.unread_count, 2)

        self.center.mark_read(first.id)
        self.assertEqual(self.center.unread_count, 1)

        self.center.mark_all_read()
        self.assertEqual(self.center.unread_count, 0)

    def test_dismiss_and_clear(self):
        note = self.center.add("A", "a")
        self.center.add("B", "b")

        self.center.dismiss(note.id)
        self.assertEqual([n.title for n in self.center.notifications], ["B"])

        self.center.clear()
        self.assertEqual(self.center.notifications, [])


class LowStockPollTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        reset_api_state()
        self.backend = FakeBackend().install()
        self.tmp = tempfile.TemporaryDirectory()
        self.session = SessionState(path=Path(self.tmp.name) / "session.json")
        self.center = NotificationCenter()

    def tearDown(self):
        reset_api_state()
        self.tmp.cleanup()

    def login(self):
        self.session.token = "t1"
        client.set_token("t1")

    async def test_warning_added_for_low_stock(self):
        self.login()
        self.backend.route("GET", "/products/low-stock", [product_json("p1", "Kettle", 1), product_json("p2", "Iron", 0)])

        note = await check_low_stock(self.center, self.session)

        self.assertEqual(note.type, "warning")
        self.assertEqual(note.title, "Low Stock Alert!")
        self.assertIn("2 product(s)", note.message)
        self.assertEqual(self.center.unread_count, 1)

    async def test_polls_are_not_cached(self):
        self.login()
        self.backend.route("GET", "/products/low-stock", [])

        self.assertIsNone(await check_low_stock(self.center, self.session))
        await check_low_stock(self.center, self.session)
        self.assertEqual(self.backend.count("GET", "/products/low-stock"), 2)

    async def test_skipped_without_token(self):
        self.assertIsNone(await check_low_stock(self.center, self.session))
        self.assertEqual(len(self.backend.requests), 0)

    async def test_unauthorized_is_ignored(self):
        self.login()
        self.backend.route("GET", "/products/low-stock", None, status=401)

        self.assertIsNone(await check_low_stock(self.center, self.session))
        self.assertEqual(self.center.notifications, [])
        self.assertFalse(self.session.is_authenticated)

    async def test_server_error_adds_nothing(self):
        self.login()
        self.backend.route("GET", "/products/low-stock", {"message": "down"}, status=503)

        self.assertIsNone(await check_low_stock(self.center, self.session))
        self.assertEqual(self.center.notifications, [])


if __name__ == "__main__":
    unittest.main()
