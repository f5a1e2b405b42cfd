from typing import List, Optional

from textual import on
from textual.app import ComposeResult
from textual.widgets import Button

import api.crud as crud
import api.orders as orders
from api.models import BookPO
from utils.pure import format_money
from views.modal_dialog import MarkdownModal
from views.modal_form import FieldsFormModal, FormField
from views.table_screen import TableScreen


def render_label(b: BookPO) -> str:
    """Printable shipping label."""
    return (
        "### Book PO\n\n"
        f"**To:** {b.to_name}  \n"
        f"**Phone:** {b.to_phone}  \n"
        f"**Address:** {b.to_address}  \n\n"
        f"**Weight:** {b.weight}  \n"
        f"**Amount:** {format_money(b.amount)}"
    )


class BookPOScreen(TableScreen):
    COLUMNS = ("Name", "Phone", "Address", "Weight", "Amount", "Date")
    SEARCH_PLACEHOLDER = "نام، فون یا پتہ تلاش کریں / search name, phone, address..."

    def compose_actions(self) -> ComposeResult:
        yield Button("Add", id="btn-add", variant="primary")
        yield Button("Edit", id="btn-edit")
        yield Button("Print", id="btn-print")
        yield Button("Delete", id="btn-delete", variant="error")

    async def fetch(self, refresh: bool) -> List[BookPO]:
        return await crud.list_book_pos(refresh=refresh)

    def row(self, b: BookPO):
        return (
            b.to_name,
            b.to_phone,
            b.to_address,
            b.weight,
            format_money(b.amount),
            b.created_at.strftime("%Y-%m-%d") if b.created_at else "-",
        )

    def _form(self, record: Optional[BookPO] = None) -> FieldsFormModal:
        fields = [
            FormField("toName", "نام / Name", record.to_name if record else ""),
            FormField("toPhone", "فون / Phone", record.to_phone if record else ""),
            FormField("toAddress", "پتہ / Address", record.to_address if record else ""),
            FormField("weight", "وزن / Weight", record.weight if record else ""),
            FormField("amount", "رقم / Amount", record.amount if record else "", type="number"),
        ]

        async def submit(values):
            await orders.submit_book_po(values, record)

        return FieldsFormModal(
            "Edit Book PO" if record else "New Book PO",
            fields,
            submit,
            success_message="Book PO saved.",
        )

    @on(Button.Pressed, "#btn-add")
    def handle_add(self) -> None:
        self.open_form(self._form())

    @on(Button.Pressed, "#btn-edit")
    def handle_edit(self) -> None:
        record = self.selected_record()
        if record:
            self.open_form(self._form(record))

    @on(Button.Pressed, "#btn-print")
    def handle_print(self) -> None:
        record = self.selected_record()
        if record:
            self.app.push_screen(MarkdownModal(render_label(record)))

    @on(Button.Pressed, "#btn-delete")
    def handle_delete(self) -> None:
        record = self.selected_record()
        if record:
            self.confirm_delete(f"Book PO for {record.to_name}", lambda: crud.delete_book_po(record.bpid))
