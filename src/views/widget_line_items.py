from typing import Callable, List, Optional

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, DataTable, Input, Label, OptionList
from textual.widgets.option_list import Option

from api.models import Product
from utils.pure import format_money, parse_number
from utils.selection import LineItemSelection
from utils.textnorm import filter_records

MAX_OPTIONS = 50


class LineItemsEditor(Vertical):
    """
    Product picker plus the table of selected lines, editing a
    LineItemSelection in place. Row 0 of the table is the primary product.

    ``price_of`` picks the default unit price when lines carry prices
    (bills, purchase batches); without it the price column is hidden.
    """

    def __init__(
        self,
        selection: LineItemSelection,
        products: List[Product],
        price_of: Optional[Callable[[Product], float]] = None,
        check_stock: bool = True,
        id: Optional[str] = None,
    ) -> None:
        super().__init__(id=id, classes="line-items")
        self.selection = selection
        self.products = products
        self.price_of = price_of
        self.check_stock = check_stock
        self._by_id = {p.pid: p for p in products}
        self._options: List[Product] = []

    def compose(self) -> ComposeResult:
        yield Label("Products", classes="label-section")
        yield Input(placeholder="Search by name, model, or category...", id="input-prod-search")
        yield OptionList(id="optlist-prods")
        with Horizontal(classes="hort-btns"):
            yield Button("Set Primary", id="btn-set-primary")
            yield Button("Add Product", id="btn-add-product", variant="primary")
        yield DataTable(id="table-lines")
        with Horizontal(classes="hort-btns"):
            yield Input(placeholder="Qty", id="input-line-qty", type="integer")
            if self.price_of:
                yield Input(placeholder="Unit price", id="input-line-price", type="number")
            yield Button("Apply", id="btn-apply-line")
            yield Button("Remove", id="btn-remove-line", variant="error")
        yield Label("", id="label-primary")

    def on_mount(self) -> None:
        self.selection.on_warning = lambda msg: self.app.notify(msg, severity="warning")

        table = self.query_one("#table-lines", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        columns = ["#", "Product", "Model", "Qty", "Stock"]
        if self.price_of:
            columns += ["Unit Price", "Line Total"]
        table.add_columns(*columns)

        self.update_options("")
        self.render_lines()

    @on(Input.Changed, "#input-prod-search")
    def handle_search(self, event: Input.Changed) -> None:
        self.update_options(event.value)

    def update_options(self, query: str) -> None:
        self._options = filter_records(
            self.products, query
        )[:MAX_OPTIONS] if query else self.products[:MAX_OPTIONS]
        opt_list = self.query_one("#optlist-prods", OptionList)
        opt_list.clear_options()
        opt_list.add_options(
            [
                Option(f"{p.name} · {p.model or '-'} · {p.category or '-'} · stock {p.stock}", id=p.pid)
                for p in self._options
            ]
        )

    def _highlighted_product(self) -> Optional[Product]:
        idx = self.query_one("#optlist-prods", OptionList).highlighted
        if idx is None or idx >= len(self._options):
            self.app.notify("Pick a product from the list first.", severity="warning")
            return None
        return self._options[idx]

    def _selected_line_id(self) -> Optional[str]:
        table = self.query_one("#table-lines", DataTable)
        if table.row_count == 0:
            return None
        row = table.cursor_row
        if row is None or row >= len(self.selection.items):
            return None
        return self.selection.items[row].product_id

    def _default_price(self, product: Product) -> Optional[float]:
        return self.price_of(product) if self.price_of else None

    @on(Button.Pressed, "#btn-set-primary")
    def handle_set_primary(self) -> None:
        product = self._highlighted_product()
        if product:
            self.selection.select_primary(product, self._default_price(product))
            self.render_lines()

    @on(Button.Pressed, "#btn-add-product")
    def handle_add_product(self) -> None:
        product = self._highlighted_product()
        if product and self.selection.add_secondary(
            product, self._default_price(product), check_stock=self.check_stock
        ):
            self.render_lines()

    @on(OptionList.OptionSelected, "#optlist-prods")
    def handle_option_selected(self, event: OptionList.OptionSelected) -> None:
        product = self._by_id.get(event.option.id)
        if product is None:
            return
        # first pick becomes primary, later picks are added
        if not self.selection.items:
            self.selection.select_primary(product, self._default_price(product))
        elif not self.selection.add_secondary(
            product, self._default_price(product), check_stock=self.check_stock
        ):
            return
        self.render_lines()

    @on(DataTable.RowHighlighted, "#table-lines")
    def handle_line_highlighted(self) -> None:
        pid = self._selected_line_id()
        line = self.selection.find(pid) if pid else None
        if line is None:
            return
        self.query_one("#input-line-qty", Input).value = str(line.quantity)
        if self.price_of:
            self.query_one("#input-line-price", Input).value = str(line.unit_price or 0)

    @on(Button.Pressed, "#btn-apply-line")
    def handle_apply_line(self) -> None:
        pid = self._selected_line_id()
        if pid is None:
            return
        qty = parse_number(self.query_one("#input-line-qty", Input).value)
        if qty is not None:
            stock = self._by_id[pid].stock if self.check_stock and pid in self._by_id else None
            self.selection.set_quantity(pid, qty, current_stock=stock)
        if self.price_of:
            price = parse_number(self.query_one("#input-line-price", Input).value)
            if price is not None:
                self.selection.set_unit_price(pid, price)
        self.render_lines()

    @on(Button.Pressed, "#btn-remove-line")
    def handle_remove_line(self) -> None:
        pid = self._selected_line_id()
        if pid is not None:
            self.selection.remove_line(pid)
            self.render_lines()

    def render_lines(self) -> None:
        table = self.query_one("#table-lines", DataTable)
        table.clear()
        for idx, line in enumerate(self.selection.items):
            product = self._by_id.get(line.product_id)
            row = [
                "★" if idx == 0 else str(idx + 1),
                line.name,
                line.model or "-",
                line.quantity,
                product.stock if product else "?",
            ]
            if self.price_of:
                price = line.unit_price or 0
                row += [format_money(price), format_money(price * line.quantity)]
            table.add_row(*row)

        primary = self.selection.legacy_product
        self.query_one("#label-primary", Label).update(
            f"Primary product: {primary}" if primary else "No product selected"
        )
