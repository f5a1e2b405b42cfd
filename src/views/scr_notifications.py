from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable

from utils.messages import NotificationsChangedMessage
from utils.notifications import Notification, check_low_stock
from views.base_screen import BaseScreen


class NotificationsScreen(BaseScreen):
    """Alerts raised while the app runs, newest first."""

    def __init__(self) -> None:
        super().__init__()
        self._rows: List[Notification] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-table-screen"):
            with Horizontal(id="hort-actions"):
                yield Button("Mark read", id="btn-read")
                yield Button("Mark all read", id="btn-read-all")
                yield Button("Dismiss", id="btn-dismiss")
                yield Button("Clear all", id="btn-clear", variant="error")
                yield Button("Check stock now", id="btn-check", variant="primary")
            yield DataTable(id="table-records")

    def on_mount(self) -> None:
        table = self.query_one("#table-records", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("", "Time", "Title", "Message")

    @on(ScreenResume)
    @on(NotificationsChangedMessage)
    def handle_refresh(self) -> None:
        self.reload()

    def reload(self, refresh: bool = False) -> None:
        self._rows = list(self.app.notifications.notifications)
        table = self.query_one("#table-records", DataTable)
        table.clear()
        for n in self._rows:
            table.add_row(
                " " if n.read else "●",
                n.timestamp.strftime("%Y-%m-%d %H:%M"),
                f"[b]{n.title}[/]" if not n.read else n.title,
                n.message,
            )

    def _changed(self) -> None:
        self.reload()
        self.handle_notifications_changed()

    def _selected(self) -> Notification | None:
        table = self.query_one("#table-records", DataTable)
        if table.row_count == 0 or table.cursor_row >= len(self._rows):
            return None
        return self._rows[table.cursor_row]

    @on(Button.Pressed, "#btn-read")
    def handle_read(self) -> None:
        note = self._selected()
        if note:
            self.app.notifications.mark_read(note.id)
            self._changed()

    @on(Button.Pressed, "#btn-read-all")
    def handle_read_all(self) -> None:
        self.app.notifications.mark_all_read()
        self._changed()

    @on(Button.Pressed, "#btn-dismiss")
    def handle_dismiss(self) -> None:
        note = self._selected()
        if note:
            self.app.notifications.dismiss(note.id)
            self._changed()

    @on(Button.Pressed, "#btn-clear")
    def handle_clear(self) -> None:
        self.app.notifications.clear()
        self._changed()

    @on(Button.Pressed, "#btn-check")
    @work(exclusive=True, group="load")
    async def handle_check(self) -> None:
        note = await check_low_stock(self.app.notifications, self.app.state)
        if note is None:
            self.notify("Stock levels look fine.")
        else:
            self.notify(note.message, title=note.title, severity="warning")
        self._changed()
