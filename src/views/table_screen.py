from typing import Any, Awaitable, Callable, List, Optional, Sequence

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Input, Label

from api.client import ApiError, UnauthorizedError
from utils.config import settings
from utils.logger import get_logger
from utils.pure import paginate
from utils.textnorm import filter_records
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDeleteModal

_logger = get_logger(__name__)


class TableScreen(BaseScreen):
    """
    A searchable, paginated table of backend records.

    Subclasses set COLUMNS, implement ``fetch`` and ``row`` and add their
    action buttons in ``compose_actions``. Search matches the normalized
    text of every field of a record, so Urdu input finds Urdu records
    whatever keyboard produced them.
    """

    COLUMNS: Sequence[str] = ()
    SEARCH_PLACEHOLDER = "Search..."

    def __init__(self) -> None:
        super().__init__()
        self.page_idx = 1
        self.page_cnt = 1
        self._records: List[Any] = []
        self._filtered: List[Any] = []
        self._page_rows: List[Any] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-table-screen"):
            with Horizontal(id="hort-toolbar"):
                yield Input(placeholder=self.SEARCH_PLACEHOLDER, id="input-search")
                yield from self.compose_filters()
            with Horizontal(id="hort-actions"):
                yield from self.compose_actions()
            yield from self.compose_summary()
            yield DataTable(id="table-records")
            with Horizontal(id="hort-table-control"):
                yield Button("Refresh", id="btn-refresh")
                yield Button("<", id="btn-prev")
                yield Label(" 1 / 1 ", id="label-page")
                yield Button(">", id="btn-next")

    def compose_filters(self) -> ComposeResult:
        yield from ()

    def compose_actions(self) -> ComposeResult:
        yield from ()

    def compose_summary(self) -> ComposeResult:
        yield from ()

    def on_mount(self) -> None:
        table = self.query_one("#table-records", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns(*self.COLUMNS)

    async def fetch(self, refresh: bool) -> List[Any]:
        raise NotImplementedError

    def row(self, record: Any) -> Sequence[Any]:
        raise NotImplementedError

    def keep(self, record: Any) -> bool:
        """Extra filter applied before the search; screens with filters override."""
        return True

    async def after_load(self, refresh: bool) -> None:
        """Hook for screens that show more than the table."""

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self.reload()

    @on(Button.Pressed, "#btn-refresh")
    def handle_refresh(self) -> None:
        self.reload(refresh=True)

    def reload(self, refresh: bool = False) -> None:
        self.load_records(refresh)

    @work(exclusive=True, group="load", exit_on_error=False)
    async def load_records(self, refresh: bool = False) -> None:
        try:
            self._records = list(await self.fetch(refresh))
            await self.after_load(refresh)
        except UnauthorizedError:
            # the app sends the user back to login
            return
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        self.apply_filter()

    @on(Input.Changed, "#input-search")
    def handle_search(self) -> None:
        self.page_idx = 1
        self.apply_filter()

    def apply_filter(self) -> None:
        query = self.query_one("#input-search", Input).value
        kept = [r for r in self._records if self.keep(r)]
        self._filtered = filter_records(kept, query)
        self.render_page()

    def render_page(self) -> None:
        rows, self.page_cnt = paginate(self._filtered, self.page_idx, settings.PAGE_SIZE)
        self.page_idx = min(self.page_idx, self.page_cnt)
        self._page_rows = rows

        table = self.query_one("#table-records", DataTable)
        table.clear()
        for record in rows:
            table.add_row(*self.row(record))

        self.query_one("#label-page", Label).update(
            f" {self.page_idx} / {self.page_cnt} ({len(self._filtered)}) "
        )
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1
            self.render_page()

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1
            self.render_page()

    def selected_record(self, warn: bool = True) -> Optional[Any]:
        table = self.query_one("#table-records", DataTable)
        row = table.cursor_row
        if table.row_count == 0 or row is None or row >= len(self._page_rows):
            if warn:
                self.notify("Select a row first.", severity="warning")
            return None
        return self._page_rows[row]

    @work(group="action")
    async def open_form(self, modal: ModalScreen[bool]) -> None:
        """Push a form; reload the table when it saved something."""
        if await self.app.push_screen_wait(modal):
            self.reload()

    @work(group="action")
    async def confirm_delete(self, what: str, delete: Callable[[], Awaitable[None]]) -> None:
        if not await self.app.push_screen_wait(ConfirmDeleteModal(what)):
            return
        try:
            await delete()
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        _logger.info(f"Deleted {what}")
        self.notify("Deleted successfully.")
        self.reload()
