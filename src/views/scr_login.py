from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

import api.crud as crud
from api.client import ApiError
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal, QuitDialogModal


class LoginScreen(BaseScreen):
    """
    Login, admin sign up (invite code) and password reset.
    Dismisses once ``app.state`` holds a session.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="admin@etimadmart.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(placeholder="*********", password=True, id="input-login-pwd")
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Username")
                    yield Input(placeholder="Jane Doe", id="input-reg-name")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("Password")
                    yield Input(placeholder="*********", password=True, id="input-reg-pwd")
                    yield Label("Invite Code")
                    yield Input(placeholder="required after the first admin", id="input-reg-invite")
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

            with TabPane("Forgot password", id="tab-forgot"):
                with Vertical(id="div-forgot"):
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-forgot-email")
                    yield Button("Send reset link", id="btn-forgot")
                    yield Label("Reset Token")
                    yield Input(placeholder="token from the email", id="input-reset-token")
                    yield Label("New Password")
                    yield Input(placeholder="*********", password=True, id="input-reset-pwd")
                    yield Button("Reset password", id="btn-reset", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-invite"):
            self.handle_registration_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value.strip()

        if not email or not pwd:
            self.notify("Email or password cannot be empty!", severity="error")
            return

        try:
            role = await self.app.state.login(email, pwd)
        except ApiError as e:
            self.notify(e.message, severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return

        profile = self.app.state.profile
        self.notify(f"Hello {profile.username if profile else email}! ({role})")
        self.dismiss()

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        name = self.query_one("#input-reg-name", Input).value.strip()
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value.strip()
        invite = self.query_one("#input-reg-invite", Input).value.strip()

        if not name or not email or not pwd:
            self.notify("Make sure all inputs are filled.", severity="error")
            return
        if len(pwd) < 6:
            self.notify("Password must be at least 6 characters", severity="error")
            return

        try:
            await self.app.state.register(name, email, pwd, invite)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return

        self.notify("Registration successful.")
        self.dismiss()

    @on(Button.Pressed, "#btn-forgot")
    @work(exclusive=True)
    async def handle_forgot(self) -> None:
        email = self.query_one("#input-forgot-email", Input).value.strip()
        if not email:
            self.notify("Enter the email of your account.", severity="error")
            return
        try:
            message = await crud.forgot_password(email)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return
        await self.app.push_screen_wait(DialogModal(message))
        self.query_one("#input-reset-token").focus()

    @on(Button.Pressed, "#btn-reset")
    @work(exclusive=True)
    async def handle_reset(self) -> None:
        token = self.query_one("#input-reset-token", Input).value.strip()
        pwd = self.query_one("#input-reset-pwd", Input).value.strip()
        if not token or len(pwd) < 6:
            self.notify("Enter the reset token and a password of at least 6 characters.", severity="error")
            return
        try:
            await crud.reset_password(token, pwd)
        except ApiError as e:
            self.notify(e.message, severity="error")
            return

        self.get_child_by_type(TabbedContent).active = "tab-login"
        self.query_one("#input-login-pwd", Input).value = ""
        self.query_one("#input-login-email", Input).focus()
        self.notify("Password reset. Log in with the new password.")

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
