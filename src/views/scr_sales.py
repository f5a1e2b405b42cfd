from typing import Dict, List

from textual import on
from textual.app import ComposeResult
from textual.widgets import Button

import api.crud as crud
import api.orders as orders
from api.models import Product, ReturnRecord, Sale
from utils.pure import format_money, parse_number
from views.modal_dialog import DialogModal
from views.modal_form import FieldsFormModal, FormField
from views.table_screen import TableScreen


def _product_options(products: List[Product]):
    return [(f"{p.name} · {p.model or '-'} (stock {p.stock})", p.pid) for p in products]


class SalesScreen(TableScreen):
    COLUMNS = ("Date", "Product", "Customer", "Seller", "Qty", "Unit Price", "Total", "Commission")
    SEARCH_PLACEHOLDER = "Search sales by product, customer or seller..."

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []
        self._sellers: Dict[str, str] = {}

    def compose_actions(self) -> ComposeResult:
        yield Button("Record Sale", id="btn-add", variant="primary")
        yield Button("Invoice", id="btn-invoice")

    async def fetch(self, refresh: bool) -> List[Sale]:
        return await crud.list_sales(refresh=refresh)

    async def after_load(self, refresh: bool) -> None:
        self._products = await crud.list_products(refresh=refresh)
        if self.app.state.is_admin:
            self._sellers = {s.sid: s.name for s in await crud.list_sellers(refresh=refresh)}

    def row(self, s: Sale):
        return (
            s.created_at.strftime("%Y-%m-%d") if s.created_at else "-",
            s.product_name,
            s.customer_name or "-",
            s.seller_name or "-",
            s.quantity,
            format_money(s.unit_price),
            format_money(s.total),
            format_money(s.commission),
        )

    @on(Button.Pressed, "#btn-add")
    def handle_add(self) -> None:
        fields = [
            FormField("productId", "Product", options=_product_options(self._products)),
            FormField("quantity", "Quantity", 1, type="integer"),
            FormField("unitPrice", "Unit Price", placeholder="retail price if blank", type="number"),
            FormField("customerName", "Customer Name"),
        ]
        if self._sellers:
            fields.append(
                FormField("sellerId", "Seller", options=[(name, sid) for sid, name in self._sellers.items()])
            )

        async def submit(values):
            price = parse_number(values["unitPrice"])
            if price is None:
                product = next((p for p in self._products if p.pid == values["productId"]), None)
                price = product.retail_price if product else 0
            await orders.submit_sale(
                values["productId"],
                values["quantity"],
                price,
                values["customerName"],
                values.get("sellerId"),
            )

        self.open_form(FieldsFormModal("Record Sale", fields, submit, success_message="Sale recorded."))

    @on(Button.Pressed, "#btn-invoice")
    def handle_invoice(self) -> None:
        sale = self.selected_record()
        if sale:
            self.app.push_screen(
                DialogModal(f"Invoice PDF for {sale.product_name}:\n{crud.invoice_url(sale.sid)}")
            )


class ReturnsScreen(TableScreen):
    COLUMNS = ("Date", "Product", "Qty", "Unit Price", "Customer", "Tracking", "Notes")
    SEARCH_PLACEHOLDER = "Search returns..."

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []

    def compose_actions(self) -> ComposeResult:
        yield Button("Record Return", id="btn-add", variant="primary")

    async def fetch(self, refresh: bool) -> List[ReturnRecord]:
        return await crud.list_returns(refresh=refresh)

    async def after_load(self, refresh: bool) -> None:
        self._products = await crud.list_products(refresh=refresh)

    def row(self, r: ReturnRecord):
        return (
            r.created_at.strftime("%Y-%m-%d") if r.created_at else "-",
            r.product_name or r.product_id,
            r.quantity,
            format_money(r.unit_price),
            r.customer_name or "-",
            r.tracking_id or "-",
            r.notes or "-",
        )

    @on(Button.Pressed, "#btn-add")
    def handle_add(self) -> None:
        async def submit(values):
            await orders.submit_return(
                values["productId"],
                values["quantity"],
                parse_number(values["unitPrice"], 0),
                values["customerName"],
                values["trackingId"],
                values["notes"],
            )

        self.open_form(
            FieldsFormModal(
                "Record Return",
                [
                    FormField("productId", "Product", options=_product_options(self._products)),
                    FormField("quantity", "Quantity", 1, type="integer"),
                    FormField("unitPrice", "Unit Price", 0, type="number"),
                    FormField("customerName", "Customer Name"),
                    FormField("trackingId", "Tracking ID"),
                    FormField("notes", "Notes"),
                ],
                submit,
                success_message="Return recorded, stock restored.",
            )
        )
