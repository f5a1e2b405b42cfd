from typing import Any, Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.widgets import Button

import api.crud as crud
from api.client import ApiError
from api.models import Product
from utils.pure import format_money, generate_markdown_table, parse_number
from utils.selection import ValidationError
from views.modal_dialog import MarkdownModal
from views.modal_form import FieldsFormModal, FormField
from views.table_screen import TableScreen

PRICE_FIELDS = [
    ("originalPrice", "Original Price", "original_price"),
    ("wholesalePrice", "Wholesale Price", "wholesale_price"),
    ("retailPrice", "Retail Price", "retail_price"),
    ("websitePrice", "Website Price", "website_price"),
]


def product_payload(values: Dict[str, Any], with_stock: bool) -> Dict[str, Any]:
    if not values.get("name"):
        raise ValidationError("Product name is required")
    payload: Dict[str, Any] = {
        "name": values["name"],
        "model": values.get("model") or "",
        "category": values.get("category") or "",
        "lowStockAlert": int(parse_number(values.get("lowStockAlert"), 5)),
    }
    for key, label, _ in PRICE_FIELDS:
        price = parse_number(values.get(key), 0)
        if price < 0:
            raise ValidationError(f"{label} cannot be negative")
        payload[key] = price
    if with_stock:
        stock = parse_number(values.get("stock"), 0)
        if stock < 0:
            raise ValidationError("Stock cannot be negative")
        payload["stock"] = int(stock)
    return payload


class ProductsScreen(TableScreen):
    COLUMNS = ("Name", "Model", "Category", "Retail", "Wholesale", "Stock", "Alert")
    SEARCH_PLACEHOLDER = "Search products by name, model or category..."

    def __init__(self) -> None:
        super().__init__()
        self._categories: List[str] = []

    def compose_actions(self) -> ComposeResult:
        yield Button("Add", id="btn-add", variant="primary")
        yield Button("Edit", id="btn-edit")
        yield Button("Add Stock", id="btn-add-stock", variant="success")
        yield Button("History", id="btn-history")
        yield Button("Category", id="btn-add-category")
        yield Button("Delete", id="btn-delete", variant="error")

    async def fetch(self, refresh: bool) -> List[Product]:
        return await crud.list_products(refresh=refresh)

    async def after_load(self, refresh: bool) -> None:
        self._categories = [c.name for c in await crud.list_categories(refresh=refresh)]

    def row(self, p: Product):
        stock = f"[b red]{p.stock}[/]" if p.is_low_stock else str(p.stock)
        return (
            p.name,
            p.model or "-",
            p.category or "-",
            format_money(p.retail_price),
            format_money(p.wholesale_price),
            stock,
            p.low_stock_alert,
        )

    def _form(self, title: str, product: Optional[Product] = None) -> FieldsFormModal:
        fields = [
            FormField("name", "Name", product.name if product else ""),
            FormField("model", "Model", product.model if product else ""),
            FormField(
                "category",
                "Category",
                product.category if product else "",
                options=[(c, c) for c in self._categories],
            ),
        ]
        fields += [
            FormField(key, label, getattr(product, attr) if product else "", type="number")
            for key, label, attr in PRICE_FIELDS
        ]
        if product is None:
            fields.append(FormField("stock", "Opening Stock", 0, type="integer"))
        fields.append(
            FormField("lowStockAlert", "Low Stock Alert", product.low_stock_alert if product else 5, type="integer")
        )

        async def submit(values):
            if product is None:
                await crud.create_product(product_payload(values, with_stock=True))
            else:
                await crud.update_product(product.pid, product_payload(values, with_stock=False))

        return FieldsFormModal(
            title,
            fields,
            submit,
            success_message="Product saved successfully.",
        )

    @on(Button.Pressed, "#btn-add")
    def handle_add(self) -> None:
        self.open_form(self._form("Add Product"))

    @on(Button.Pressed, "#btn-edit")
    def handle_edit(self) -> None:
        product = self.selected_record()
        if product:
            self.open_form(self._form(f"Edit {product.name}", product))

    @on(Button.Pressed, "#btn-delete")
    def handle_delete(self) -> None:
        product = self.selected_record()
        if product:
            self.confirm_delete(f"product {product.name}", lambda: crud.delete_product(product.pid))

    @on(Button.Pressed, "#btn-add-stock")
    def handle_add_stock(self) -> None:
        product = self.selected_record()
        if product is None:
            return

        async def submit(values):
            qty = parse_number(values["quantity"])
            if qty is None or qty < 1:
                raise ValidationError("Quantity must be at least 1")
            await crud.add_stock(product.pid, int(qty), values["note"])

        self.open_form(
            FieldsFormModal(
                f"Add stock: {product.name} (now {product.stock})",
                [
                    FormField("quantity", "Quantity", type="integer"),
                    FormField("note", "Note", placeholder="optional"),
                ],
                submit,
                submit_text="Add",
                success_message="Stock added.",
            )
        )

    @on(Button.Pressed, "#btn-add-category")
    def handle_add_category(self) -> None:
        async def submit(values):
            if not values["name"]:
                raise ValidationError("Category name is required")
            await crud.create_category(values["name"], values["description"])

        self.open_form(
            FieldsFormModal(
                "Add Category",
                [FormField("name", "Name"), FormField("description", "Description")],
                submit,
                success_message="Category added.",
            )
        )

    @on(Button.Pressed, "#btn-history")
    @work(group="action")
    async def handle_history(self) -> None:
        product = self.selected_record()
        if product is None:
            return
        try:
            moves = await crud.stock_history(product.pid)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return

        rows = [
            [m.created_at.strftime("%Y-%m-%d %H:%M") if m.created_at else "-", m.kind, m.quantity, m.note]
            for m in moves
        ]
        md = f"### Stock history: {product.name}\n\nCurrent stock: **{product.stock}**\n\n"
        md += generate_markdown_table(["Date", "Type", "Qty", "Note"], rows, ["l", "l", "r", "l"]) or "No movements yet."
        await self.app.push_screen_wait(MarkdownModal(md))
