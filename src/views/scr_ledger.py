from datetime import date
from typing import Any, Dict, List

from textual import on
from textual.app import ComposeResult
from textual.widgets import Button, Label

import api.crud as crud
from api.models import DailyFigure, LedgerEntry
from utils.pure import format_money, parse_number
from utils.selection import ValidationError
from views.modal_form import FieldsFormModal, FormField
from views.table_screen import TableScreen

PERIODS = ("today", "week", "month", "year")


def stats_line(stats: Dict[str, Any]) -> str:
    return "   ".join(f"{p.capitalize()}: {format_money(stats.get(p))}" for p in PERIODS)


def _amount(values: Dict[str, Any]) -> float:
    amount = parse_number(values.get("amount"))
    if amount is None or amount <= 0:
        raise ValidationError("Amount must be greater than 0")
    return amount


class LedgerScreen(TableScreen):
    """
    Expenses or income: dated entries with period totals above the table.
    INCOME switches the endpoints and the wording.
    """

    COLUMNS = ("Date", "Title", "Amount", "Notes")
    INCOME = False

    def compose_actions(self) -> ComposeResult:
        yield Button("Add Income" if self.INCOME else "Add Expense", id="btn-add", variant="primary")

    def compose_summary(self) -> ComposeResult:
        yield Label("", id="label-stats")

    async def fetch(self, refresh: bool) -> List[LedgerEntry]:
        if self.INCOME:
            return await crud.list_income(refresh=refresh)
        return await crud.list_expenses(refresh=refresh)

    async def after_load(self, refresh: bool) -> None:
        if self.INCOME:
            stats = await crud.income_stats(refresh=refresh)
        else:
            stats = await crud.expense_stats(refresh=refresh)
        self.query_one("#label-stats", Label).update(stats_line(stats))

    def row(self, e: LedgerEntry):
        return (
            e.created_at.strftime("%Y-%m-%d") if e.created_at else "-",
            e.title,
            format_money(e.amount),
            e.notes or "-",
        )

    @on(Button.Pressed, "#btn-add")
    def handle_add(self) -> None:
        title_label = "Source" if self.INCOME else "Title"

        async def submit(values):
            if not values["title"]:
                raise ValidationError(f"{title_label} is required")
            if self.INCOME:
                await crud.create_income(values["title"], _amount(values), values["notes"])
            else:
                await crud.create_expense(values["title"], _amount(values), values["notes"])

        self.open_form(
            FieldsFormModal(
                "Add Income" if self.INCOME else "Add Expense",
                [
                    FormField("title", title_label),
                    FormField("amount", "Amount", type="number"),
                    FormField("notes", "Notes"),
                ],
                submit,
                success_message="Saved.",
            )
        )


class ExpensesScreen(LedgerScreen):
    SEARCH_PLACEHOLDER = "Search expenses..."


class IncomeScreen(LedgerScreen):
    SEARCH_PLACEHOLDER = "Search income..."
    INCOME = True



class AdSpendScreen(TableScreen):
    """One total per day; saving a date that exists replaces it."""

    COLUMNS = ("Date", "Total")
    SEARCH_PLACEHOLDER = "Search by date (YYYY-MM-DD)..."

    def compose_actions(self) -> ComposeResult:
        yield Button("Set Day", id="btn-add", variant="primary")

    async def fetch(self, refresh: bool) -> List[DailyFigure]:
        return await crud.list_ad_spend(refresh=refresh)

    def row(self, d: DailyFigure):
        return d.date, format_money(d.total)

    @on(Button.Pressed, "#btn-add")
    def handle_add(self) -> None:
        async def submit(values):
            total = parse_number(values["total"])
            if total is None or total < 0:
                raise ValidationError("Total cannot be negative")
            await crud.upsert_ad_spend(values["date"] or date.today().isoformat(), total)

        self.open_form(
            FieldsFormModal(
                "Ad Spend",
                [
                    FormField("date", "Date", date.today().isoformat(), placeholder="YYYY-MM-DD"),
                    FormField("total", "Total", type="number"),
                ],
                submit,
                success_message="Ad spend saved.",
            )
        )


class DispatchScreen(TableScreen):
    COLUMNS = ("Date", "Parcels", "Notes")
    SEARCH_PLACEHOLDER = "Search by date or notes..."

    def compose_actions(self) -> ComposeResult:
        yield Button("Set Day", id="btn-add", variant="primary")

    async def fetch(self, refresh: bool) -> List[DailyFigure]:
        return await crud.list_dispatch_records(refresh=refresh)

    def row(self, d: DailyFigure):
        return d.date, int(d.total), d.notes or "-"

    @on(Button.Pressed, "#btn-add")
    def handle_add(self) -> None:
        async def submit(values):
            count = parse_number(values["count"])
            if count is None or count < 0:
                raise ValidationError("Parcel count cannot be negative")
            await crud.upsert_dispatch_record(
                values["date"] or date.today().isoformat(), int(count), values["notes"]
            )

        self.open_form(
            FieldsFormModal(
                "Dispatch Record",
                [
                    FormField("date", "Date", date.today().isoformat(), placeholder="YYYY-MM-DD"),
                    FormField("count", "Parcels dispatched", type="integer"),
                    FormField("notes", "Notes"),
                ],
                submit,
                success_message="Dispatch record saved.",
            )
        )
