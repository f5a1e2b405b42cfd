from datetime import date
from typing import List

from textual import on
from textual.app import ComposeResult
from textual.widgets import Button

import api.crud as crud
import api.orders as orders
from api.models import Product, PurchaseBatch
from utils.pure import format_money, generate_markdown_table
from utils.selection import LineItemSelection
from views.modal_dialog import MarkdownModal
from views.modal_form import FormField, SelectionFormModal
from views.table_screen import TableScreen


def render_batch(b: PurchaseBatch) -> str:
    rows = [
        [i.name or i.product_id, i.quantity, format_money(i.unit_price), format_money(i.quantity * i.unit_price)]
        for i in b.items
    ]
    md = f"### Batch {b.batch_number or '-'}\n\nSupplier: **{b.supplier_name}**  \nDate: {b.purchase_date}\n\n"
    md += generate_markdown_table(["Product", "Qty", "Unit Cost", "Total"], rows, ["l", "r", "r", "r"])
    md += f"\n\n**Total cost: {format_money(b.total_cost)}**"
    if b.notes:
        md += f"\n\n> {b.notes}"
    return md


class PurchaseBatchesScreen(TableScreen):
    """Stock bought from suppliers; saving a batch raises product stock."""

    COLUMNS = ("Batch", "Supplier", "Date", "Lines", "Units", "Total Cost")
    SEARCH_PLACEHOLDER = "Search batches by supplier or product..."

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []

    def compose_actions(self) -> ComposeResult:
        yield Button("New Batch", id="btn-add", variant="primary")
        yield Button("View", id="btn-view")

    async def fetch(self, refresh: bool) -> List[PurchaseBatch]:
        return await crud.list_purchase_batches(refresh=refresh)

    async def after_load(self, refresh: bool) -> None:
        self._products = await crud.list_products(refresh=refresh)

    def row(self, b: PurchaseBatch):
        return (
            b.batch_number or "-",
            b.supplier_name,
            b.purchase_date or "-",
            len(b.items),
            sum(i.quantity for i in b.items),
            format_money(b.total_cost),
        )

    @on(Button.Pressed, "#btn-add")
    def handle_add(self) -> None:
        selection = LineItemSelection()

        async def submit(values):
            await orders.submit_purchase_batch(
                values["supplierName"],
                values["purchaseDate"] or date.today().isoformat(),
                selection.items,
                values["batchNumber"],
                values["notes"],
            )

        self.open_form(
            SelectionFormModal(
                "New Purchase Batch",
                [
                    FormField("supplierName", "Supplier"),
                    FormField("purchaseDate", "Date", date.today().isoformat(), placeholder="YYYY-MM-DD"),
                    FormField("batchNumber", "Batch Number", placeholder="optional"),
                    FormField("notes", "Notes"),
                ],
                submit,
                selection,
                self._products,
                price_of=lambda p: p.original_price,
                check_stock=False,
                success_message="Purchase batch saved, stock updated.",
            )
        )

    @on(Button.Pressed, "#btn-view")
    def handle_view(self) -> None:
        batch = self.selected_record()
        if batch:
            self.app.push_screen(MarkdownModal(render_batch(batch)))
