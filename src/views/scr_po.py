from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.widgets import Button, Select

import api.crud as crud
import api.orders as orders
from api.models import BookPO, Parcel, Product
from utils.pure import format_money
from utils.selection import LineItemSelection, ValidationError
from views.modal_form import FieldsFormModal, FormField, SelectionFormModal
from views.scr_customers import selection_for
from views.table_screen import TableScreen

STATUSES = [("Processing", "processing"), ("Delivered", "delivered"), ("Return", "return")]
PAYMENT_STATUSES = [("Unpaid", "unpaid"), ("Paid", "paid")]


class POScreen(TableScreen):
    """Post office parcels: dispatch, delivery and COD payment tracking."""

    COLUMNS = ("Tracking", "Customer", "Phone", "Address", "Products", "COD", "Status", "Payment")
    SEARCH_PLACEHOLDER = "Search parcels (tracking, name, address, Urdu ok)..."

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []
        self._product_names: Dict[str, str] = {}
        self._book_pos: List[BookPO] = []

    def compose_filters(self) -> ComposeResult:
        yield Select(STATUSES, prompt="All statuses", id="select-status")
        yield Select(PAYMENT_STATUSES, prompt="All payments", id="select-payment")

    def compose_actions(self) -> ComposeResult:
        yield Button("Add", id="btn-add", variant="primary")
        yield Button("From Book PO", id="btn-from-book-po")
        yield Button("Edit", id="btn-edit")
        yield Button("Status", id="btn-status", variant="success")
        yield Button("Delete", id="btn-delete", variant="error")

    async def fetch(self, refresh: bool) -> List[Parcel]:
        return await crud.list_parcels(refresh=refresh)

    async def after_load(self, refresh: bool) -> None:
        self._products = await crud.list_products(refresh=refresh)
        self._product_names = {p.pid: p.name for p in self._products}
        self._book_pos = await crud.list_book_pos(refresh=refresh)

    def keep(self, p: Parcel) -> bool:
        status = self.query_one("#select-status", Select)
        payment = self.query_one("#select-payment", Select)
        return (status.is_blank() or p.status == status.value) and (
            payment.is_blank() or p.payment_status == payment.value
        )

    @on(Select.Changed, "#select-status")
    @on(Select.Changed, "#select-payment")
    def handle_filter(self) -> None:
        self.page_idx = 1
        self.apply_filter()

    def row(self, p: Parcel):
        if p.products_info:
            products = ", ".join(
                f"{self._product_names.get(a.product_id, '?')} x{a.quantity}" for a in p.products_info
            )
        else:
            products = self._product_names.get(p.product_id, "-") if p.product_id else "-"
        return (
            p.tracking_number,
            p.customer_name or "-",
            p.customer_phone or "-",
            p.address,
            products,
            format_money(p.cod_amount),
            p.status,
            p.payment_status,
        )

    def _form(
        self, parcel: Optional[Parcel] = None, book_po: Optional[BookPO] = None
    ) -> SelectionFormModal:
        if parcel is not None:
            selection = selection_for(parcel.products_info, parcel.product_id, self._products)
        else:
            selection = LineItemSelection()

        def initial(attr: str, book_attr: str = "", default=""):
            if parcel is not None:
                return getattr(parcel, attr)
            if book_po is not None and book_attr:
                return getattr(book_po, book_attr)
            return default

        fields = [
            FormField("trackingNumber", "Tracking Number", initial("tracking_number")),
            FormField("customerName", "Customer Name", initial("customer_name", "to_name")),
            FormField("customerPhone", "Customer Phone", initial("customer_phone", "to_phone")),
            FormField("address", "Address", initial("address", "to_address")),
            FormField("codAmount", "COD Amount", initial("cod_amount", "amount", 0), type="number"),
            FormField("status", "Status", initial("status", default="processing"), options=STATUSES),
            FormField(
                "paymentStatus",
                "Payment",
                initial("payment_status", default="unpaid"),
                options=PAYMENT_STATUSES,
            ),
            FormField("notes", "Notes", initial("notes")),
        ]

        async def submit(values):
            if book_po is not None:
                values["bookPO"] = book_po.bpid
            await orders.submit_parcel(values, selection, parcel)

        return SelectionFormModal(
            f"Edit parcel {parcel.tracking_number}" if parcel else "Add Parcel",
            fields,
            submit,
            selection,
            self._products,
            success_message="Parcel saved successfully.",
        )

    @on(Button.Pressed, "#btn-add")
    def handle_add(self) -> None:
        self.open_form(self._form())

    @on(Button.Pressed, "#btn-edit")
    def handle_edit(self) -> None:
        parcel = self.selected_record()
        if parcel:
            self.open_form(self._form(parcel))

    @on(Button.Pressed, "#btn-from-book-po")
    @work(group="action")
    async def handle_from_book_po(self) -> None:
        if not self._book_pos:
            self.notify("No Book PO records yet.", severity="warning")
            return
        picked: Dict[str, BookPO] = {}

        async def pick(values):
            if not values["bookPO"]:
                raise ValidationError("Choose a Book PO record")
            picked["record"] = next(b for b in self._book_pos if b.bpid == values["bookPO"])

        chosen = await self.app.push_screen_wait(
            FieldsFormModal(
                "Pre-fill from Book PO",
                [
                    FormField(
                        "bookPO",
                        "Record",
                        options=[(f"{b.to_name} · {b.to_phone}", b.bpid) for b in self._book_pos],
                    )
                ],
                pick,
                submit_text="Continue",
            )
        )
        if chosen:
            self.open_form(self._form(book_po=picked["record"]))

    @on(Button.Pressed, "#btn-status")
    def handle_status(self) -> None:
        parcel = self.selected_record()
        if parcel is None:
            return

        async def submit(values):
            await crud.update_parcel_status(parcel.poid, values["status"], values["paymentStatus"])

        self.open_form(
            FieldsFormModal(
                f"Status of {parcel.tracking_number}",
                [
                    FormField("status", "Status", parcel.status, options=STATUSES),
                    FormField("paymentStatus", "Payment", parcel.payment_status, options=PAYMENT_STATUSES),
                ],
                submit,
                success_message="Status updated.",
            )
        )

    @on(Button.Pressed, "#btn-delete")
    def handle_delete(self) -> None:
        parcel = self.selected_record()
        if parcel:
            self.confirm_delete(f"parcel {parcel.tracking_number}", lambda: crud.delete_parcel(parcel.poid))
