import unittest

import api.orders as orders
from api.models import Allocation, Bill, BillItem, BookPO, Customer, Parcel
from fakes import FakeBackend, product_json, reset_api_state
from utils.selection import LineItem, LineItemSelection, ValidationError


def selection_of(*lines) -> LineItemSelection:
    return LineItemSelection(LineItem(pid, name, quantity=qty, unit_price=price) for pid, name, qty, price in lines)


class OrdersTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        reset_api_state()
        self.backend = FakeBackend().install()
        self.backend.route(
            "GET",
            "/products",
            [
                product_json("pA", "Kettle", 3, category="Kitchen"),
                product_json("pB", "Iron", 1),
                product_json("pC", "Fan", 5),
            ],
        )
        self.backend.route("POST", "/customers", {"_id": "c-new"})
        self.backend.route("PUT", "/customers/c1", {"_id": "c1"})
        self.backend.route("POST", "/parcels", {"_id": "po-new"})
        self.backend.route("PUT", "/parcels/po1", {"_id": "po1"})
        self.backend.route("POST", "/bills", {"_id": "b-new"})
        self.backend.route("PUT", "/bills/b1", {"_id": "b1"})

    def tearDown(self):
        reset_api_state()

    # ---------- Customers ----------

    async def test_new_customer_rejected_on_second_line_without_saving(self):
        selection = selection_of(("pA", "Kettle", 3, None), ("pB", "Iron", 2, None))

        with self.assertRaises(ValidationError) as ctx:
            await orders.submit_customer({"name": "Ali", "type": "online"}, selection)

        self.assertEqual(str(ctx.exception), "Insufficient stock for Iron. Available: 1, Requested: 2")
        self.assertEqual(self.backend.count("POST", "/customers"), 0)

    async def test_new_customer_payload_mirrors_primary(self):
        selection = selection_of(("pA", "Kettle", 2, None), ("pB", "Iron", 1, None))

        await orders.submit_customer({"name": " Ali ", "type": "offline", "phone": "0300"}, selection)

        (payload,) = self.backend.calls("POST", "/customers")
        self.assertEqual(payload["name"], "Ali")
        self.assertEqual(
            payload["productsInfo"],
            [{"productId": "pA", "quantity": 2}, {"productId": "pB", "quantity": 1}],
        )
        self.assertEqual((payload["product"], payload["productId"]), ("Kettle", "pA"))

    async def test_customer_without_products_skips_stock_check(self):
        await orders.submit_customer({"name": "Walk-in"}, LineItemSelection())

        self.assertEqual(self.backend.count("GET", "/products"), 0)
        (payload,) = self.backend.calls("POST", "/customers")
        self.assertEqual(payload["productsInfo"], [])
        self.assertIsNone(payload["productId"])

    async def test_customer_name_required(self):
        with self.assertRaises(ValidationError):
            await orders.submit_customer({"name": "  "}, LineItemSelection())

    async def test_editing_customer_only_needs_the_increase(self):
        existing = Customer(cid="c1", name="Ali", type="online", products_info=(Allocation("pC", 2),))

        # Fan stock 5, already holds 2: 6 needs 4 more
        await orders.submit_customer({"name": "Ali"}, selection_of(("pC", "Fan", 6, None)), existing)
        self.assertEqual(self.backend.count("PUT", "/customers/c1"), 1)

        with self.assertRaises(ValidationError) as ctx:
            await orders.submit_customer({"name": "Ali"}, selection_of(("pC", "Fan", 8, None)), existing)
        self.assertIn("Available: 5, Requested: 6", str(ctx.exception))
        self.assertEqual(self.backend.count("PUT", "/customers/c1"), 1)

    async def test_legacy_customer_counts_one_unit(self):
        existing = Customer(cid="c1", name="Ali", type="online", product="Iron", product_id="pB")

        # Iron stock 1 plus the unit the customer already has
        await orders.submit_customer({"name": "Ali"}, selection_of(("pB", "Iron", 2, None)), existing)
        self.assertEqual(self.backend.count("PUT", "/customers/c1"), 1)

    # ---------- Parcels ----------

    async def test_parcel_requires_product_and_tracking(self):
        with self.assertRaises(ValidationError) as ctx:
            await orders.submit_parcel({"trackingNumber": "LE1", "address": "Lahore"}, LineItemSelection())
        self.assertEqual(str(ctx.exception), "Please select a product")

        with self.assertRaises(ValidationError) as ctx:
            await orders.submit_parcel({"trackingNumber": "", "address": "Lahore"}, selection_of(("pA", "Kettle", 1, None)))
        self.assertEqual(str(ctx.exception), "Tracking number and address are required")

    async def test_parcel_payload(self):
        await orders.submit_parcel(
            {"trackingNumber": "LE1", "address": "Lahore", "codAmount": "1500"},
            selection_of(("pA", "Kettle", 1, None), ("pC", "Fan", 2, None)),
        )
        (payload,) = self.backend.calls("POST", "/parcels")
        self.assertEqual(payload["codAmount"], 1500.0)
        self.assertEqual(payload["productId"], "pA")
        self.assertEqual(len(payload["productsInfo"]), 2)

    async def test_parcel_rejects_partial_cod_amount_before_saving(self):
        selection = selection_of(("pA", "Kettle", 1, None))
        for bad in ("-", ".", "1e", "nan"):
            with self.assertRaises(ValidationError) as ctx:
                await orders.submit_parcel({"trackingNumber": "LE1", "address": "Lahore", "codAmount": bad}, selection)
            self.assertEqual(str(ctx.exception), "COD amount must be a number")

        self.assertEqual(self.backend.count("GET", "/products"), 0)
        self.assertEqual(self.backend.count("POST", "/parcels"), 0)

    def test_blank_cod_amount_is_zero(self):
        payload = orders.build_parcel_payload({"codAmount": " "}, selection_of(("pA", "Kettle", 1, None)))
        self.assertEqual(payload["codAmount"], 0.0)

    async def test_edit_parcel_uses_its_allocations(self):
        existing = Parcel(
            poid="po1",
            tracking_number="LE1",
            customer_name="Ali",
            customer_phone="",
            address="Lahore",
            cod_amount=0,
            status="processing",
            payment_status="unpaid",
            products_info=(Allocation("pA", 3),),
        )
        # Kettle stock 3, parcel holds 3: 6 is exactly 3 more
        await orders.submit_parcel(
            {"trackingNumber": "LE1", "address": "Lahore"}, selection_of(("pA", "Kettle", 6, None)), existing
        )
        self.assertEqual(self.backend.count("PUT", "/parcels/po1"), 1)

    # ---------- Bills ----------

    def test_bill_totals_for_new_bill(self):
        totals = orders.compute_bill_totals(
            [LineItem("pA", "Kettle", quantity=2, unit_price=100), LineItem("pB", "Iron", quantity=1, unit_price=50)],
            120,
        )
        self.assertEqual(
            totals,
            {"subtotal": 250.0, "total": 250.0, "amountPaid": 120.0, "remainingAmount": 130.0, "previousRemaining": 0.0},
        )

    def test_bill_totals_never_negative_and_carry_previous_balance(self):
        existing = Bill(
            bid="b1",
            bill_number="B-1",
            customer={},
            items=(),
            subtotal=200,
            total=200,
            amount_paid=100,
            remaining_amount=150,
        )
        totals = orders.compute_bill_totals([LineItem("pA", "Kettle", quantity=1, unit_price=100)], 300, existing)

        self.assertEqual(totals["remainingAmount"], 0.0)
        self.assertEqual(totals["previousRemaining"], 50.0)

    async def test_bill_edit_checks_delta_and_keeps_price_type(self):
        existing = Bill(
            bid="b1",
            bill_number="B-1",
            customer={"name": "Ali"},
            items=(BillItem("pB", "Iron", "Iron-M", 90, 2, selected_price_type="wholesalePrice"),),
            subtotal=180,
            total=180,
            amount_paid=180,
            remaining_amount=0,
            payment_method="bank",
        )
        # Iron stock 1, bill holds 2: 3 is 1 more
        await orders.submit_bill(selection_of(("pB", "Iron", 3, 90)), 270, "paid in full", existing=existing)

        (payload,) = self.backend.calls("PUT", "/bills/b1")
        self.assertEqual(payload["items"][0]["selectedPriceType"], "wholesalePrice")
        self.assertEqual(payload["items"][0]["quantity"], 3)
        self.assertEqual(payload["customer"], {"name": "Ali"})
        self.assertEqual(payload["paymentMethod"], "bank")
        self.assertEqual(payload["total"], 270.0)
        self.assertEqual(payload["notes"], "paid in full")

        with self.assertRaises(ValidationError):
            await orders.submit_bill(selection_of(("pB", "Iron", 4, 90)), 0, existing=existing)

    async def test_new_bill_fills_category_and_rejects_bad_input(self):
        await orders.submit_bill(selection_of(("pA", "Kettle", 1, 100)), 100, customer={"name": "Sara"})
        (payload,) = self.backend.calls("POST", "/bills")
        self.assertEqual(payload["items"][0]["category"], "Kitchen")
        self.assertEqual(payload["items"][0]["selectedPriceType"], "retailPrice")

        with self.assertRaises(ValidationError):
            await orders.submit_bill(LineItemSelection(), 0)
        with self.assertRaises(ValidationError):
            await orders.submit_bill(selection_of(("pA", "Kettle", 1, 100)), -5)

    # ---------- Stock in / back ----------

    async def test_purchase_batch(self):
        self.backend.route("POST", "/purchase-batches", {})
        items = [
            LineItem("pA", "Kettle", quantity=10, unit_price=45),
            LineItem("pB", "Iron", quantity=0, unit_price=30),
        ]
        await orders.submit_purchase_batch(" Ahmed Traders ", "2026-10-19", items, "", "")

        (payload,) = self.backend.calls("POST", "/purchase-batches")
        self.assertEqual(payload["supplierName"], "Ahmed Traders")
        self.assertIsNone(payload["batchNumber"])
        self.assertEqual(payload["items"], [{"productId": "pA", "quantity": 10, "unitPrice": 45.0}])

        with self.assertRaises(ValidationError):
            await orders.submit_purchase_batch("", "2026-10-19", items)
        with self.assertRaises(ValidationError):
            await orders.submit_purchase_batch("Ahmed", "2026-10-19", [items[1]])

    async def test_return_requires_positive_quantity(self):
        self.backend.route("POST", "/returns", {})
        with self.assertRaises(ValidationError) as ctx:
            await orders.submit_return("pA", 0)
        self.assertEqual(str(ctx.exception), "Quantity must be greater than 0")

        await orders.submit_return("pA", "2", 100, "Ali", "LE1", "damaged")
        (payload,) = self.backend.calls("POST", "/returns")
        self.assertEqual(payload["quantity"], 2)
        self.assertEqual(payload["trackingId"], "LE1")

    async def test_sale_checks_stock(self):
        self.backend.route("POST", "/sales", {})
        with self.assertRaises(ValidationError):
            await orders.submit_sale("pB", 2, 100)

        await orders.submit_sale("pB", 1, 100, "Sara", "s1")
        (payload,) = self.backend.calls("POST", "/sales")
        self.assertEqual(payload, {"productId": "pB", "quantity": 1, "unitPrice": 100.0, "customerName": "Sara", "sellerId": "s1"})

    # ---------- Book PO ----------

    async def test_book_po_requires_every_field(self):
        self.backend.route("POST", "/book-po", {})
        with self.assertRaises(ValidationError) as ctx:
            await orders.submit_book_po({"toName": "Ali", "toPhone": "", "toAddress": "Lahore", "weight": "1kg", "amount": "500"})
        self.assertEqual(str(ctx.exception), orders.BOOK_PO_REQUIRED)

        await orders.submit_book_po(
            {"toName": "Ali", "toPhone": "0300", "toAddress": "Lahore", "weight": "1kg", "amount": "500"}
        )
        (payload,) = self.backend.calls("POST", "/book-po")
        self.assertEqual(payload["amount"], 500.0)

    async def test_book_po_edit_updates(self):
        self.backend.route("PUT", "/book-po/bp1", {})
        record = BookPO(bpid="bp1", to_name="Ali", to_phone="0300", to_address="Lahore", weight="1kg", amount=500)
        await orders.submit_book_po(
            {"toName": "Ali", "toPhone": "0301", "toAddress": "Lahore", "weight": "1kg", "amount": "550"}, record
        )
        self.assertEqual(self.backend.calls("PUT", "/book-po/bp1")[0]["toPhone"], "0301")


if __name__ == "__main__":
    unittest.main()
