from datetime import date, timedelta
from typing import Dict, List

from textual import on, work
from textual.app import ComposeResult
from textual.widgets import Button

import api.crud as crud
import api.orders as orders
from api.models import LcsParcel, Product
from utils.pure import format_money, generate_markdown_table
from utils.selection import LineItemSelection, ValidationError
from views.modal_dialog import MarkdownModal
from views.modal_form import FieldsFormModal, FormField, SelectionFormModal
from views.table_screen import TableScreen


def render_parcel(p: LcsParcel, product_names: Dict[str, str]) -> str:
    rows = [
        ["Tracking", p.tracking_number],
        ["Consignee", p.consignee_name],
        ["Phone", p.consignee_phone],
        ["Destination", p.destination],
        ["Status", p.status],
        ["COD", format_money(p.cod_amount)],
        ["Booked", p.booking_date],
        [
            "Products",
            ", ".join(f"{product_names.get(a.product_id, '?')} x{a.quantity}" for a in p.products_info),
        ],
    ]
    return f"### LCS parcel {p.tracking_number}\n\n" + generate_markdown_table(
        ["Field", "Value"], rows, ["l", "l"]
    )


class LcsScreen(TableScreen):
    """Parcels synced from the LCS courier. Only the product list is editable."""

    COLUMNS = ("Tracking", "Consignee", "Phone", "Destination", "Status", "COD", "Booked", "Products")
    SEARCH_PLACEHOLDER = "Search LCS parcels..."

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []
        self._product_names: Dict[str, str] = {}

    def compose_actions(self) -> ComposeResult:
        yield Button("Sync", id="btn-sync", variant="primary")
        yield Button("Lookup", id="btn-lookup")
        yield Button("Products", id="btn-products")

    async def fetch(self, refresh: bool) -> List[LcsParcel]:
        return await crud.list_lcs_parcels(refresh=refresh)

    async def after_load(self, refresh: bool) -> None:
        self._products = await crud.list_products(refresh=refresh)
        self._product_names = {p.pid: p.name for p in self._products}

    def row(self, p: LcsParcel):
        return (
            p.tracking_number,
            p.consignee_name,
            p.consignee_phone or "-",
            p.destination or "-",
            p.status or "-",
            format_money(p.cod_amount),
            p.booking_date or "-",
            sum(a.quantity for a in p.products_info) or "-",
        )

    @on(Button.Pressed, "#btn-sync")
    def handle_sync(self) -> None:
        async def submit(values):
            if not values["from"] or not values["to"]:
                raise ValidationError("Pick both dates")
            if values["from"] > values["to"]:
                raise ValidationError("Start date must be before end date")
            synced = await crud.sync_lcs_parcels(values["from"], values["to"])
            self.notify(f"Synced {synced} parcel(s) from LCS.")

        today = date.today()
        self.open_form(
            FieldsFormModal(
                "Sync from LCS",
                [
                    FormField("from", "From", (today - timedelta(days=7)).isoformat(), placeholder="YYYY-MM-DD"),
                    FormField("to", "To", today.isoformat(), placeholder="YYYY-MM-DD"),
                ],
                submit,
                submit_text="Sync",
            )
        )

    @on(Button.Pressed, "#btn-lookup")
    @work(group="action")
    async def handle_lookup(self) -> None:
        found = {}

        async def submit(values):
            if not values["tracking"]:
                raise ValidationError("Enter a tracking number")
            found["parcel"] = await crud.lookup_lcs_parcel(values["tracking"])

        if not await self.app.push_screen_wait(
            FieldsFormModal("Lookup", [FormField("tracking", "Tracking Number")], submit, submit_text="Find")
        ):
            return
        parcel = found.get("parcel")
        if parcel is None:
            self.notify("Tracking number not found", severity="warning")
            return
        await self.app.push_screen_wait(MarkdownModal(render_parcel(parcel, self._product_names)))

    @on(Button.Pressed, "#btn-products")
    def handle_products(self) -> None:
        parcel = self.selected_record()
        if parcel is None:
            return
        selection = LineItemSelection.from_allocations(parcel.products_info, self._products)

        async def submit(values):
            await orders.submit_lcs_products(parcel, selection)

        self.open_form(
            SelectionFormModal(
                f"Products in {parcel.tracking_number}",
                [],
                submit,
                selection,
                self._products,
                success_message="Parcel products updated.",
            )
        )
