import time
import unittest

from api import cache
from api.cache import cached_query, make_cache_key
from utils.config import settings


class CacheTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        cache.clear()

    def tearDown(self):
        cache.clear()

    def test_key_is_prefix_without_arguments(self):
        self.assertEqual(make_cache_key("products"), "products")
        self.assertTrue(make_cache_key("products", "p1").startswith("products:"))
        self.assertNotEqual(make_cache_key("products", "p1"), make_cache_key("products", "p2"))

    def test_entries_expire(self):
        cache.put("bills", [1])
        self.assertEqual(cache.get("bills"), [1])

        cache._entries["bills"] = (time.monotonic() - settings.CACHE_TTL_SECONDS - 1, [1])
        self.assertIsNone(cache.get("bills"))
        self.assertNotIn("bills", cache._entries)

    def test_invalidate_by_prefix(self):
        cache.put("products", "all")
        cache.put("products:('p1',):[]", "one")
        cache.put("products-archive", "other")
        cache.put("customers", "c")

        cache.invalidate("products")

        self.assertIsNone(cache.get("products"))
        self.assertIsNone(cache.get("products:('p1',):[]"))
        self.assertEqual(cache.get("products-archive"), "other")
        self.assertEqual(cache.get("customers"), "c")

    async def test_cached_query_reuses_result_until_refresh_or_invalidate(self):
        calls = []

        @cached_query("sellers")
        async def list_sellers():
            calls.append(1)
            return [f"seller-{len(calls)}"]

        self.assertEqual(await list_sellers(), ["seller-1"])
        self.assertEqual(await list_sellers(), ["seller-1"])
        self.assertEqual(len(calls), 1)

        self.assertEqual(await list_sellers(refresh=True), ["seller-2"])
        self.assertEqual(await list_sellers(), ["seller-2"])

        cache.invalidate("sellers")
        self.assertEqual(await list_sellers(), ["seller-3"])
        self.assertEqual(len(calls), 3)


if __name__ == "__main__":
    unittest.main()
