from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.widgets import Button

import api.crud as crud
from api.client import ApiError
from api.models import User
from views.modal_dialog import DialogModal
from views.modal_form import FieldsFormModal, FormField
from views.table_screen import TableScreen

ROLES = [("Admin", "admin"), ("Super admin", "superadmin")]


class AdminsScreen(TableScreen):
    COLUMNS = ("Username", "Email", "Role")
    SEARCH_PLACEHOLDER = "Search admins..."

    def compose_actions(self) -> ComposeResult:
        yield Button("Change Role", id="btn-role")
        yield Button("Invite Code", id="btn-invite", variant="primary")

    async def fetch(self, refresh: bool) -> List[User]:
        return await crud.list_admins()

    def row(self, u: User):
        return u.username, u.email, u.role

    @on(Button.Pressed, "#btn-role")
    def handle_role(self) -> None:
        admin = self.selected_record()
        if admin is None:
            return
        if self.app.state.profile and admin.uid == self.app.state.profile.uid:
            self.notify("You cannot change your own role.", severity="warning")
            return

        async def submit(values):
            await crud.update_admin_role(admin.uid, values["role"] or admin.role)

        self.open_form(
            FieldsFormModal(
                f"Role of {admin.username}",
                [FormField("role", "Role", admin.role, options=ROLES)],
                submit,
                success_message="Role updated.",
            )
        )

    @on(Button.Pressed, "#btn-invite")
    @work(group="action")
    async def handle_invite(self) -> None:
        try:
            code = await crud.get_invite_code()
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        await self.app.push_screen_wait(
            DialogModal(f"Invite code for new admins:\n{code or '-'}", tone="positive")
        )
