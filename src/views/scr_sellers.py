from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.widgets import Button

import api.crud as crud
from api.client import ApiError
from api.models import Seller
from utils.pure import format_money, generate_markdown_table, parse_number
from utils.selection import ValidationError
from views.modal_dialog import DialogModal, MarkdownModal
from views.modal_form import FieldsFormModal, FormField
from views.table_screen import TableScreen


class SellersScreen(TableScreen):
    COLUMNS = ("Name", "Phone", "Email", "Basic Salary", "Commission / unit", "Total Commission")
    SEARCH_PLACEHOLDER = "Search sellers..."

    def compose_actions(self) -> ComposeResult:
        yield Button("Add", id="btn-add", variant="primary")
        yield Button("Edit", id="btn-edit")
        yield Button("Sales", id="btn-sales")
        yield Button("Leaderboard", id="btn-leaderboard")
        yield Button("Backfill Commission", id="btn-backfill", variant="warning")
        yield Button("Delete", id="btn-delete", variant="error")

    async def fetch(self, refresh: bool) -> List[Seller]:
        return await crud.list_sellers(refresh=refresh)

    def row(self, s: Seller):
        return (
            s.name,
            s.phone or "-",
            s.email or "-",
            format_money(s.basic_salary),
            format_money(s.commission_rate),
            format_money(s.total_commission),
        )

    def _fields(self, seller: Optional[Seller]) -> List[FormField]:
        fields = [
            FormField("name", "Name", seller.name if seller else ""),
            FormField("phone", "Phone", seller.phone if seller else ""),
            FormField("basicSalary", "Basic Salary", seller.basic_salary if seller else 0, type="number"),
            FormField(
                "commissionRate",
                "Commission per unit",
                seller.commission_rate if seller else 0,
                type="number",
            ),
        ]
        if seller is None:
            fields.insert(2, FormField("email", "Login Email"))
        return fields

    @staticmethod
    def _payload(values) -> dict:
        if not values["name"]:
            raise ValidationError("Seller name is required")
        values["basicSalary"] = parse_number(values["basicSalary"], 0)
        values["commissionRate"] = parse_number(values["commissionRate"], 0)
        if values["basicSalary"] < 0 or values["commissionRate"] < 0:
            raise ValidationError("Salary and commission cannot be negative")
        return values

    @on(Button.Pressed, "#btn-add")
    @work(group="action")
    async def handle_add(self) -> None:
        created = {}

        async def submit(values):
            seller, temp_password = await crud.create_seller(self._payload(values))
            created["seller"], created["password"] = seller, temp_password

        if not await self.app.push_screen_wait(
            FieldsFormModal("Add Seller", self._fields(None), submit, success_message="Seller created.")
        ):
            return
        self.reload()
        if created.get("password"):
            await self.app.push_screen_wait(
                DialogModal(
                    f"Temporary password for {created['seller'].name}: {created['password']}\n"
                    "Share it with the seller; it is shown only once.",
                    tone="positive",
                )
            )

    @on(Button.Pressed, "#btn-edit")
    def handle_edit(self) -> None:
        seller = self.selected_record()
        if seller is None:
            return

        async def submit(values):
            await crud.update_seller(seller.sid, self._payload(values))

        self.open_form(
            FieldsFormModal(
                f"Edit {seller.name}",
                self._fields(seller),
                submit,
                success_message="Seller updated.",
            )
        )

    @on(Button.Pressed, "#btn-delete")
    def handle_delete(self) -> None:
        seller = self.selected_record()
        if seller:
            self.confirm_delete(f"seller {seller.name}", lambda: crud.delete_seller(seller.sid))

    @on(Button.Pressed, "#btn-sales")
    @work(group="action")
    async def handle_sales(self) -> None:
        seller = self.selected_record()
        if seller is None:
            return
        try:
            sales = await crud.seller_sales(seller.sid)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        rows = [
            [
                s.created_at.strftime("%Y-%m-%d") if s.created_at else "-",
                s.product_name,
                s.customer_name,
                s.quantity,
                format_money(s.total),
                format_money(s.commission),
            ]
            for s in sales
        ]
        md = f"### Sales by {seller.name}\n\n"
        md += generate_markdown_table(
            ["Date", "Product", "Customer", "Qty", "Total", "Commission"], rows, ["l", "l", "l", "r", "r", "r"]
        ) or "No sales yet."
        await self.app.push_screen_wait(MarkdownModal(md))

    @on(Button.Pressed, "#btn-leaderboard")
    @work(group="action")
    async def handle_leaderboard(self) -> None:
        try:
            board = await crud.seller_leaderboard()
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        rows = [
            [
                rank,
                s.get("name") or "-",
                s.get("totalSales") or s.get("salesCount") or 0,
                format_money(s.get("totalRevenue")),
                format_money(s.get("totalCommission")),
            ]
            for rank, s in enumerate(board, start=1)
        ]
        md = "### Seller leaderboard\n\n"
        md += generate_markdown_table(
            ["#", "Seller", "Sales", "Revenue", "Commission"], rows, ["r", "l", "r", "r", "r"]
        ) or "No sales yet."
        await self.app.push_screen_wait(MarkdownModal(md))

    @on(Button.Pressed, "#btn-backfill")
    @work(group="action")
    async def handle_backfill(self) -> None:
        try:
            preview = await crud.preview_commission_backfill()
        except ApiError as e:
            self.notify(e.message, severity="error")
            return

        count = preview.get("salesToUpdate") or preview.get("count") or 0
        if not count:
            self.notify("All sales already carry commission.")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"{count} sale(s) have no commission recorded. "
                f"Estimated total: {format_money(preview.get('totalCommission'))}. Backfill now?",
                primary_text="Backfill",
                secondary_text="Cancel",
                tone="warning",
            )
        ):
            return

        try:
            result = await crud.backfill_commission()
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        self.notify(result.get("message") or "Commission backfilled.")
        self.reload()
