import unittest

from api.models import Allocation, Bill, BillItem, ChartPoint, DashboardStats, Product
from utils.selection import ValidationError
from views.scr_billing import bill_selection, render_bill
from views.scr_customers import selection_for
from views.scr_dashboard import render_dashboard
from views.scr_products import product_payload


def make_product(pid: str, name: str) -> Product:
    return Product(pid, name, f"{name}-M", "General", 50, 80, 100, 110, 4, 5)


class DashboardRenderTestCase(unittest.TestCase):
    def test_category_share_is_of_total_revenue(self):
        stats = DashboardStats(
            total_revenue=400,
            sales_by_category=({"_id": "Kitchen", "revenue": 100}, {"_id": None, "revenue": 300}),
        )
        md = render_dashboard(stats, [])

        self.assertIn("| Kitchen | Rs. 100.00 | 25.0% |", md)
        self.assertIn("| Uncategorized | Rs. 300.00 | 75.0% |", md)
        self.assertNotIn("Last 7 days", md)

    def test_zero_revenue_shows_zero_share(self):
        md = render_dashboard(DashboardStats(sales_by_category=({"_id": "Home", "revenue": 0},)), [])
        self.assertIn("0.0%", md)

    def test_chart_bars_scale_to_peak(self):
        series = [ChartPoint("2026-10-18", 2, 50.0), ChartPoint("2026-10-19", 4, 100.0), ChartPoint("2026-10-17", 0, 0.0)]
        md = render_dashboard(DashboardStats(), series)

        self.assertIn("█" * 30, md)
        self.assertIn("█" * 15 + " |", md)
        self.assertIn("## Last 7 days", md)


class ProductPayloadTestCase(unittest.TestCase):
    def test_converts_numbers(self):
        payload = product_payload(
            {"name": "Kettle", "retailPrice": "1,200", "stock": "7", "lowStockAlert": ""}, with_stock=True
        )
        self.assertEqual(payload["retailPrice"], 1200.0)
        self.assertEqual(payload["originalPrice"], 0)
        self.assertEqual(payload["stock"], 7)
        self.assertEqual(payload["lowStockAlert"], 5)

    def test_stock_left_out_when_editing(self):
        self.assertNotIn("stock", product_payload({"name": "Kettle"}, with_stock=False))

    def test_rejects_missing_name_and_negative_values(self):
        with self.assertRaises(ValidationError):
            product_payload({"name": ""}, with_stock=False)
        with self.assertRaises(ValidationError) as ctx:
            product_payload({"name": "Kettle", "wholesalePrice": "-1"}, with_stock=False)
        self.assertEqual(str(ctx.exception), "Wholesale Price cannot be negative")


class ExistingSelectionTestCase(unittest.TestCase):
    def setUp(self):
        self.products = [make_product("p1", "Kettle"), make_product("p2", "Iron")]

    def test_products_info_wins(self):
        selection = selection_for((Allocation("p2", 3),), "p1", self.products)
        self.assertEqual(selection.to_products_info(), [{"productId": "p2", "quantity": 3}])

    def test_legacy_record_becomes_one_unit(self):
        selection = selection_for((), "p1", self.products)
        self.assertEqual(selection.to_products_info(), [{"productId": "p1", "quantity": 1}])
        self.assertEqual(selection.legacy_product, "Kettle")

    def test_bill_lines_keep_prices(self):
        bill = Bill(
            bid="b1",
            bill_number="B-7",
            customer={"name": "Ali", "phone": "0300"},
            items=(BillItem("p1", "Kettle", "Kettle-M", 120, 2),),
            subtotal=240,
            total=240,
            amount_paid=200,
            remaining_amount=40,
            notes="deliver Friday",
        )
        (line,) = bill_selection(bill).items
        self.assertEqual((line.quantity, line.unit_price), (2, 120))

        md = render_bill(bill)
        self.assertIn("### Bill B-7", md)
        self.assertIn("Ali** (0300)", md)
        self.assertIn("Remaining: Rs. 40.00", md)
        self.assertIn("> deliver Friday", md)


if __name__ == "__main__":
    unittest.main()
