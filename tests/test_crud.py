import unittest

import api.client as client
import api.crud as crud
from fakes import FakeBackend, product_json, reset_api_state


class CrudTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        reset_api_state()
        self.backend = FakeBackend().install()

    def tearDown(self):
        reset_api_state()

    # ---------- Auth ----------

    async def test_login_sends_credentials(self):
        self.backend.route(
            "POST",
            "/auth/login",
            {"token": "t1", "userType": "admin", "admin": {"_id": "a1", "username": "Asad"}},
        )
        data = await crud.login("asad@example.com", "secret")

        self.assertEqual(data["token"], "t1")
        self.assertEqual(
            self.backend.calls("POST", "/auth/login"),
            [{"email": "asad@example.com", "password": "secret"}],
        )

    async def test_register_includes_invite_code_only_when_given(self):
        self.backend.route("POST", "/auth/register", {"token": "t"})
        await crud.register("u", "u@example.com", "pw1234")
        await crud.register("v", "v@example.com", "pw1234", "INV-9")

        first, second = self.backend.calls("POST", "/auth/register")
        self.assertNotIn("inviteCode", first)
        self.assertEqual(second["inviteCode"], "INV-9")

    async def test_get_me_reads_admin_or_seller_profile(self):
        self.backend.route("GET", "/auth/me", {"user": {"_id": "s1", "name": "Bilal", "role": "seller"}})
        me = await crud.get_me()
        self.assertEqual((me.uid, me.username, me.role), ("s1", "Bilal", "seller"))

        self.backend.route("GET", "/auth/me", {})
        self.assertIsNone(await crud.get_me())

    async def test_forgot_password_returns_server_message(self):
        self.backend.route("POST", "/auth/forgot-password", {"message": "Check your inbox"})
        self.assertEqual(await crud.forgot_password("a@b.c"), "Check your inbox")

    # ---------- Products ----------

    async def test_list_products_parses_models_and_wrapped_lists(self):
        self.backend.route("GET", "/products", {"data": [product_json("p1", "Kettle", 3)]})

        products = await crud.list_products()

        self.assertEqual(len(products), 1)
        p = products[0]
        self.assertEqual((p.pid, p.name, p.stock, p.retail_price), ("p1", "Kettle", 3, 100.0))
        self.assertTrue(p.is_low_stock)

    async def test_list_products_is_cached_until_a_mutation(self):
        self.backend.route("GET", "/products", [product_json("p1", "Kettle", 3)])
        self.backend.route("POST", "/customers", {"_id": "c1"})

        await crud.list_products()
        await crud.list_products()
        self.assertEqual(self.backend.count("GET", "/products"), 1)

        # a customer with products takes stock, so products are re-read
        await crud.create_customer({"name": "Ali"})
        await crud.list_products()
        self.assertEqual(self.backend.count("GET", "/products"), 2)

        await crud.list_products(refresh=True)
        self.assertEqual(self.backend.count("GET", "/products"), 3)

    async def test_add_stock_posts_quantity(self):
        self.backend.route("POST", "/products/p1/stock", {"product": product_json("p1", "Kettle", 13)})
        product = await crud.add_stock("p1", 10, "restock")

        self.assertEqual(product.stock, 13)
        self.assertEqual(self.backend.calls("POST", "/products/p1/stock"), [{"quantity": 10, "note": "restock"}])

    async def test_single_records(self):
        self.backend.route("GET", "/products/p1", product_json("p1", "Kettle", 3))
        self.backend.route("GET", "/customers/c1", {"_id": "c1", "name": "Ali", "productId": {"_id": "p1"}})
        self.backend.route("GET", "/sellers/s1", {"_id": "s1", "name": "Bilal", "basicSalary": "30000"})
        self.backend.route(
            "GET",
            "/bills/b1",
            {"_id": "b1", "billNumber": 42, "items": [{"productId": "p1", "name": "Kettle", "quantity": 2}]},
        )
        self.backend.route("GET", "/products/gone", None)

        self.assertEqual((await crud.get_product("p1")).stock, 3)
        self.assertIsNone(await crud.get_product("gone"))
        self.assertEqual((await crud.get_customer("c1")).product_id, "p1")
        self.assertEqual((await crud.get_seller("s1")).basic_salary, 30000.0)

        bill = await crud.get_bill("b1")
        self.assertEqual(bill.bill_number, "42")
        self.assertEqual(bill.customer_name, "Walk-in")
        self.assertEqual(bill.items[0].quantity, 2)

    async def test_category_changes_refresh_the_list(self):
        self.backend.route("GET", "/categories", [{"_id": "k1", "name": "Kitchen"}])
        self.backend.route("PUT", "/categories/k1", {})
        self.backend.route("DELETE", "/categories/k1", None, status=204)

        await crud.list_categories()
        await crud.update_category("k1", "Home & Kitchen")
        await crud.list_categories()
        await crud.delete_category("k1")
        await crud.list_categories()

        self.assertEqual(self.backend.count("GET", "/categories"), 3)
        self.assertEqual(
            self.backend.calls("PUT", "/categories/k1"), [{"name": "Home & Kitchen", "description": ""}]
        )

    # ---------- Sellers ----------

    async def test_create_seller_returns_temporary_password(self):
        self.backend.route(
            "POST",
            "/sellers",
            {"seller": {"_id": "s1", "name": "Bilal", "commissionRate": 20}, "temporaryPassword": "x9y8"},
        )
        seller, password = await crud.create_seller({"name": "Bilal"})

        self.assertEqual(seller.sid, "s1")
        self.assertEqual(seller.commission_rate, 20.0)
        self.assertEqual(password, "x9y8")

    # ---------- Parcels, LCS, misc ----------

    async def test_update_parcel_status_sends_only_given_fields(self):
        self.backend.route("PATCH", "/parcels/po1/status", {})
        await crud.update_parcel_status("po1", status="delivered")
        await crud.update_parcel_status("po1", payment_status="paid")

        self.assertEqual(
            self.backend.calls("PATCH", "/parcels/po1/status"),
            [{"status": "delivered"}, {"paymentStatus": "paid"}],
        )

    async def test_parcel_models_keep_products_info_and_legacy_id(self):
        self.backend.route(
            "GET",
            "/parcels",
            [
                {
                    "_id": "po1",
                    "trackingNumber": "LE123",
                    "productsInfo": [{"productId": {"_id": "p1", "name": "Kettle"}, "quantity": 2}],
                    "productId": "p1",
                    "bookPO": {"_id": "b1"},
                }
            ],
        )
        (parcel,) = await crud.list_parcels()

        self.assertEqual(parcel.products_info[0].product_id, "p1")
        self.assertEqual(parcel.products_info[0].quantity, 2)
        self.assertEqual(parcel.product_id, "p1")
        self.assertEqual(parcel.book_po_id, "b1")
        self.assertEqual(parcel.status, "processing")

    async def test_sync_lcs_parcels_returns_count(self):
        self.backend.route("POST", "/lcs/sync", {"synced": 7})
        self.assertEqual(await crud.sync_lcs_parcels("2026-10-01", "2026-10-07"), 7)
        self.assertEqual(self.backend.calls("POST", "/lcs/sync"), [{"from": "2026-10-01", "to": "2026-10-07"}])

    async def test_dashboard_stats(self):
        self.backend.route(
            "GET",
            "/dashboard/stats",
            {"totalProducts": 12, "totalRevenue": "2500.5", "salesByCategory": [{"_id": "Home", "revenue": 100}]},
        )
        stats = await crud.dashboard_stats()
        self.assertEqual(stats.total_products, 12)
        self.assertEqual(stats.total_revenue, 2500.5)
        self.assertEqual(stats.sales_by_category[0]["_id"], "Home")

    def test_invoice_url(self):
        self.assertEqual(crud.invoice_url("s1"), client.API_URL.rstrip("/") + "/pdf/invoice/s1")

    def test_list_unwraps_common_shapes(self):
        self.assertEqual(crud._list(None), [])
        self.assertEqual(crud._list([1, 2]), [1, 2])
        self.assertEqual(crud._list({"items": [3]}), [3])
        self.assertEqual(crud._list({"message": "ok"}), [])


if __name__ == "__main__":
    unittest.main()
