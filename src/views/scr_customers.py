from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.widgets import Button, Select

import api.crud as crud
import api.orders as orders
from api.client import ApiError
from api.models import Allocation, Customer, Product
from utils.pure import format_money, generate_markdown_table, parse_number
from utils.selection import LineItemSelection
from views.modal_dialog import MarkdownModal
from views.modal_form import FormField, SelectionFormModal
from views.table_screen import TableScreen

CUSTOMER_TYPES = [("Online", "online"), ("Offline", "offline")]


def selection_for(
    products_info, legacy_product_id: Optional[str], products: List[Product]
) -> LineItemSelection:
    """Selection of an existing record; legacy single-product records count one unit."""
    allocations = list(products_info)
    if not allocations and legacy_product_id:
        allocations = [Allocation(legacy_product_id, 1)]
    return LineItemSelection.from_allocations(allocations, products)


class CustomersScreen(TableScreen):
    COLUMNS = ("Name", "Type", "Phone", "Address", "Products", "Price", "Tracking")
    SEARCH_PLACEHOLDER = "Search customers (name, phone, address, tracking)..."

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []
        self._product_names: Dict[str, str] = {}
        self._sellers: Dict[str, str] = {}

    def compose_filters(self) -> ComposeResult:
        yield Select(CUSTOMER_TYPES, prompt="All types", id="select-type")

    def compose_actions(self) -> ComposeResult:
        yield Button("Add", id="btn-add", variant="primary")
        yield Button("Edit", id="btn-edit")
        yield Button("History", id="btn-history")
        yield Button("Delete", id="btn-delete", variant="error")

    async def fetch(self, refresh: bool) -> List[Customer]:
        return await crud.list_customers(refresh=refresh)

    async def after_load(self, refresh: bool) -> None:
        self._products = await crud.list_products(refresh=refresh)
        self._product_names = {p.pid: p.name for p in self._products}
        if self.app.state.is_admin:
            self._sellers = {s.sid: s.name for s in await crud.list_sellers(refresh=refresh)}

    def keep(self, c: Customer) -> bool:
        select = self.query_one("#select-type", Select)
        return select.is_blank() or c.type == select.value

    @on(Select.Changed, "#select-type")
    def handle_type_filter(self) -> None:
        self.page_idx = 1
        self.apply_filter()

    def _products_label(self, c: Customer) -> str:
        if c.products_info:
            return ", ".join(
                f"{self._product_names.get(a.product_id, '?')} x{a.quantity}" for a in c.products_info
            )
        return c.product or "-"

    def row(self, c: Customer):
        return (
            c.name,
            c.type,
            c.phone or "-",
            c.address or "-",
            self._products_label(c),
            format_money(c.price) if c.price is not None else "-",
            c.tracking_number or "-",
        )

    def _form(self, customer: Optional[Customer] = None) -> SelectionFormModal:
        if customer is not None:
            selection = selection_for(customer.products_info, customer.product_id, self._products)
        else:
            selection = LineItemSelection()

        fields = [
            FormField("name", "Name", customer.name if customer else ""),
            FormField("type", "Type", customer.type if customer else "online", options=CUSTOMER_TYPES),
            FormField("phone", "Phone", customer.phone if customer else ""),
            FormField("address", "Address", customer.address if customer else ""),
            FormField(
                "price",
                "Price",
                customer.price if customer and customer.price is not None else "",
                type="number",
            ),
            FormField("trackingNumber", "Tracking Number", customer.tracking_number if customer else ""),
        ]
        if self._sellers:
            fields.append(
                FormField(
                    "seller",
                    "Seller",
                    customer.seller_id if customer else None,
                    options=[(name, sid) for sid, name in self._sellers.items()],
                )
            )

        async def submit(values):
            values["price"] = parse_number(values.get("price"))
            await orders.submit_customer(values, selection, customer)

        return SelectionFormModal(
            f"Edit {customer.name}" if customer else "Add Customer",
            fields,
            submit,
            selection,
            self._products,
            success_message="Customer saved successfully.",
        )

    @on(Button.Pressed, "#btn-add")
    def handle_add(self) -> None:
        self.open_form(self._form())

    @on(Button.Pressed, "#btn-edit")
    def handle_edit(self) -> None:
        customer = self.selected_record()
        if customer:
            self.open_form(self._form(customer))

    @on(Button.Pressed, "#btn-delete")
    def handle_delete(self) -> None:
        customer = self.selected_record()
        if customer:
            self.confirm_delete(f"customer {customer.name}", lambda: crud.delete_customer(customer.cid))

    @on(Button.Pressed, "#btn-history")
    @work(group="action")
    async def handle_history(self) -> None:
        customer = self.selected_record()
        if customer is None:
            return
        try:
            history = await crud.customer_history(customer.cid)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return

        bills = history.get("bills") or []
        rows = [
            [
                b.get("billNumber") or "-",
                str(b.get("createdAt") or "")[:10],
                format_money(b.get("total")),
                format_money(b.get("amountPaid")),
                format_money(b.get("remainingAmount")),
            ]
            for b in bills
        ]
        md = f"### {customer.name}\n\n"
        md += f"Outstanding balance: **{format_money(history.get('totalRemaining'))}**\n\n"
        md += generate_markdown_table(
            ["Bill", "Date", "Total", "Paid", "Remaining"], rows, ["l", "l", "r", "r", "r"]
        ) or "No bills yet."
        await self.app.push_screen_wait(MarkdownModal(md))
