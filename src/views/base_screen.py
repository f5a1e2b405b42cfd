from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown
from textual.worker import Worker, WorkerState

import api.crud as crud
from utils.logger import get_logger
from utils.messages import NotificationsChangedMessage, UserLogoutMessage
from utils.pure import generate_markdown_table
from utils.selection import ValidationError
from views.modal_dialog import DialogModal, ErrorFallbackModal, QuitDialogModal
from views.modal_form import FieldsFormModal, FormField

_logger = get_logger(__name__)


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Label("", id="label-notifications")
        with Container(id="div-account-btns"):
            yield Button("Password", id="btn-password")
            yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode
        await self.refresh_session()

    async def refresh_session(self) -> None:
        """Render user info and the role's menu; called again whenever the screen resumes."""
        state = self.app.state

        if not state.is_authenticated:
            return

        profile = state.profile
        table_rows = [
            ["Name", profile.username if profile else "-"],
            ["Email", profile.email if profile else "-"],
            ["Role", "Admin" if state.is_admin else "Seller"],
        ]
        md_table_str = generate_markdown_table(None, table_rows, ["l", "l"])
        await self.query_one("#md-userinfo", Markdown).update(md_table_str)

        menu = self.app.ADMIN_MODES if state.is_admin else self.app.SELLER_MODES
        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [ListItem(Label(v), id="list-menu-item-" + k) for k, v in menu.items()]
        )

        self.refresh_badge()
        self.highlight_item(self.init_mode)

    def refresh_badge(self) -> None:
        unread = self.app.notifications.unread_count
        self.query_one("#label-notifications", Label).update(
            f"🔔 {unread} unread" if unread else "🔔 no new alerts"
        )

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    @on(Button.Pressed, "#btn-password")
    def handle_change_password(self):
        async def submit(values):
            if values["new"] != values["confirm"]:
                raise ValidationError("New passwords do not match")
            if len(values["new"]) < 6:
                raise ValidationError("Password must be at least 6 characters")
            await crud.change_password(values["current"], values["new"])

        self.app.push_screen(
            FieldsFormModal(
                "Change Password",
                [
                    FormField("current", "Current Password", password=True),
                    FormField("new", "New Password", password=True),
                    FormField("confirm", "Confirm New Password", password=True),
                ],
                submit,
                success_message="Password changed successfully.",
            )
        )

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.

    Loader workers run with ``exit_on_error=False``; if one dies with an
    unexpected error the screen offers to retry it or reload the session.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
        Binding("ctrl+r", "reload", "Reload", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "Etimad Mart",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        """
        self.app.title = "Etimad Mart Admin"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if type(self) is v:
                self.sub_title = self.app.ADMIN_MODES.get(k) or self.app.SELLER_MODES.get(k, header_sub_title)

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    def reload(self, refresh: bool = False) -> None:
        """Re-fetch whatever the screen shows; screens with data override this."""

    def action_reload(self) -> None:
        self.reload(refresh=True)

    @on(ScreenResume)
    async def handle_sidebar_resume(self) -> None:
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_session()

    @on(NotificationsChangedMessage)
    def handle_notifications_changed(self) -> None:
        for sidebar in self.query(Sidebar):
            sidebar.refresh_badge()

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.state == WorkerState.ERROR:
            error = event.worker.error
            _logger.error(f"Unexpected error in {type(self).__name__}: {error!r}")
            self.show_error_fallback(str(error))

    @work()
    async def show_error_fallback(self, message: str) -> None:
        choice = await self.app.push_screen_wait(ErrorFallbackModal(message))
        if choice == "retry":
            self.reload(refresh=True)
        elif choice == "reload":
            self.app.reload_session()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
