from typing import Any, Dict, List, Optional

from textual import on
from textual.app import ComposeResult
from textual.widgets import Button, Label

import api.crud as crud
import api.orders as orders
from api.models import Bill, Product
from utils.pure import format_money, generate_markdown_table, parse_number
from utils.selection import LineItem, LineItemSelection
from views.modal_dialog import MarkdownModal
from views.modal_form import FormField, SelectionFormModal
from views.table_screen import TableScreen


def bill_selection(bill: Bill) -> LineItemSelection:
    return LineItemSelection(
        LineItem(i.product_id, i.name, i.model, i.quantity, i.selected_price) for i in bill.items
    )


def render_bill(bill: Bill) -> str:
    rows = [
        [i.name, i.model, i.quantity, format_money(i.selected_price), format_money(i.selected_price * i.quantity)]
        for i in bill.items
    ]
    md = f"### Bill {bill.bill_number or bill.bid}\n\n"
    md += f"Customer: **{bill.customer_name}**"
    if bill.customer.get("phone"):
        md += f" ({bill.customer['phone']})"
    if bill.created_at:
        md += f"  \nDate: {bill.created_at:%Y-%m-%d %H:%M}"
    md += "\n\n"
    md += generate_markdown_table(["Product", "Model", "Qty", "Price", "Total"], rows, ["l", "l", "r", "r", "r"])
    md += (
        f"\n\nSubtotal: {format_money(bill.subtotal)}  \n"
        f"**Total: {format_money(bill.total)}**  \n"
        f"Paid: {format_money(bill.amount_paid)}  \n"
        f"Remaining: {format_money(bill.remaining_amount)}"
    )
    if bill.notes:
        md += f"\n\n> {bill.notes}"
    return md


class BillingScreen(TableScreen):
    COLUMNS = ("Bill #", "Date", "Customer", "Items", "Total", "Paid", "Remaining")
    SEARCH_PLACEHOLDER = "Search bills by number, customer or product..."

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []

    def compose_actions(self) -> ComposeResult:
        yield Button("New Bill", id="btn-add", variant="primary")
        yield Button("Edit", id="btn-edit")
        yield Button("View", id="btn-view")
        yield Button("Delete", id="btn-delete", variant="error")

    def compose_summary(self) -> ComposeResult:
        yield Label("", id="label-billing-stats")

    async def fetch(self, refresh: bool) -> List[Bill]:
        return await crud.list_bills(refresh=refresh)

    async def after_load(self, refresh: bool) -> None:
        self._products = await crud.list_products(refresh=refresh)
        stats = await crud.billing_stats(refresh=refresh)
        self.query_one("#label-billing-stats", Label).update(
            f"Bills: {stats.get('totalBills', len(self._records))}   "
            f"Revenue: {format_money(stats.get('totalRevenue'))}   "
            f"Outstanding: {format_money(stats.get('totalRemaining'))}"
        )

    def row(self, b: Bill):
        return (
            b.bill_number or "-",
            b.created_at.strftime("%Y-%m-%d") if b.created_at else "-",
            b.customer_name,
            sum(i.quantity for i in b.items),
            format_money(b.total),
            format_money(b.amount_paid),
            format_money(b.remaining_amount),
        )

    def _form(self, bill: Optional[Bill] = None) -> SelectionFormModal:
        selection = bill_selection(bill) if bill else LineItemSelection()
        customer = bill.customer if bill else {}
        fields = [
            FormField("customerName", "Customer Name", customer.get("name") or ""),
            FormField("customerPhone", "Customer Phone", customer.get("phone") or ""),
            FormField("amountPaid", "Amount Paid", bill.amount_paid if bill else 0, type="number"),
            FormField("notes", "Notes", bill.notes if bill else ""),
        ]

        async def submit(values: Dict[str, Any]):
            paid = parse_number(values["amountPaid"], 0)
            new_customer = {**customer, "name": values["customerName"], "phone": values["customerPhone"]}
            await orders.submit_bill(selection, paid, values["notes"], new_customer, bill)

        return SelectionFormModal(
            f"Edit bill {bill.bill_number}" if bill else "New Bill",
            fields,
            submit,
            selection,
            self._products,
            price_of=lambda p: p.retail_price,
            success_message="Bill saved successfully.",
        )

    @on(Button.Pressed, "#btn-add")
    def handle_add(self) -> None:
        self.open_form(self._form())

    @on(Button.Pressed, "#btn-edit")
    def handle_edit(self) -> None:
        bill = self.selected_record()
        if bill:
            self.open_form(self._form(bill))

    @on(Button.Pressed, "#btn-view")
    def handle_view(self) -> None:
        bill = self.selected_record()
        if bill:
            self.app.push_screen(MarkdownModal(render_bill(bill)))

    @on(Button.Pressed, "#btn-delete")
    def handle_delete(self) -> None:
        bill = self.selected_record()
        if bill:
            self.confirm_delete(f"bill {bill.bill_number or bill.bid}", lambda: crud.delete_bill(bill.bid))
