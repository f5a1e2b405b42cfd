from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Sequence, Tuple

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select

from api.client import ApiError
from api.models import Product
from utils.selection import LineItemSelection, ValidationError
from views.widget_line_items import LineItemsEditor


@dataclass
class FormField:
    key: str
    label: str
    value: Any = ""
    placeholder: str = ""
    type: Literal["text", "integer", "number"] = "text"
    password: bool = False
    # (label, value) pairs turn the field into a Select
    options: Optional[Sequence[Tuple[str, Any]]] = None


class FieldsFormModal(ModalScreen[bool]):
    """
    A titled form built from FormField specs.

    ``on_submit`` receives the values keyed by field and does the saving.
    If it raises (validation or backend error) the message is shown and the
    form stays open; otherwise the modal returns True.
    """

    def __init__(
        self,
        title: str,
        fields: List[FormField],
        on_submit: Callable[[Dict[str, Any]], Awaitable[None]],
        submit_text: str = "Save",
        success_message: str = "",
    ):
        super().__init__()
        self.title_text = title
        self.fields = fields
        self.on_submit = on_submit
        self.submit_text = submit_text
        self.success_message = success_message

    def compose(self) -> ComposeResult:
        with Vertical(id="div-form"):
            yield Label(self.title_text, id="label-form-title")
            with VerticalScroll(id="div-form-fields"):
                for f in self.fields:
                    yield Label(f.label)
                    if f.options is not None:
                        # Select rejects values it has no option for
                        known = [v for _, v in f.options]
                        yield Select(
                            list(f.options),
                            value=f.value if f.value in known else Select.BLANK,
                            id=f"field-{f.key}",
                        )
                    else:
                        yield Input(
                            value="" if f.value is None else str(f.value),
                            placeholder=f.placeholder,
                            type=f.type,
                            password=f.password,
                            id=f"field-{f.key}",
                        )
                yield from self.compose_extra()
            with Horizontal(id="div-form-btns"):
                yield Button("Cancel", id="btn-cancel")
                yield Button(self.submit_text, id="btn-submit", variant="primary")

    def compose_extra(self) -> ComposeResult:
        yield from ()

    def on_mount(self):
        if self.fields:
            self.query_one(f"#field-{self.fields[0].key}").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def values(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for f in self.fields:
            widget = self.query_one(f"#field-{f.key}")
            if isinstance(widget, Select):
                result[f.key] = None if widget.is_blank() else widget.value
            else:
                result[f.key] = widget.value.strip()
        return result

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        try:
            await self.on_submit(self.values())
        except (ValidationError, ApiError) as e:
            self.notify(str(e), severity="error")
            return
        if self.success_message:
            self.notify(self.success_message)
        self.dismiss(True)


class SelectionFormModal(FieldsFormModal):
    """
    FieldsFormModal with a LineItemsEditor under the fields, for records
    that allocate stock (customers, parcels, bills, purchase batches).
    """

    def __init__(
        self,
        title: str,
        fields: List[FormField],
        on_submit: Callable[[Dict[str, Any]], Awaitable[None]],
        selection: LineItemSelection,
        products: List[Product],
        price_of: Optional[Callable[[Product], float]] = None,
        check_stock: bool = True,
        submit_text: str = "Save",
        success_message: str = "",
    ):
        super().__init__(title, fields, on_submit, submit_text, success_message)
        self.selection = selection
        self.products = products
        self.price_of = price_of
        self.check_stock = check_stock

    def compose_extra(self) -> ComposeResult:
        yield LineItemsEditor(
            self.selection,
            self.products,
            price_of=self.price_of,
            check_stock=self.check_stock,
            id="div-line-items",
        )
