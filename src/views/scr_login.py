from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label

from utils.errors import AppError, ValidationError
from utils.messages import ModeSwitchedMessage
from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal, SimpleDialogModal


class LoginScreen(BaseScreen):
    """
    Email/password login. On success the session store flips to LoggedIn and
    the app's auth gate moves away from this screen; nothing here navigates.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-login"):
            yield Label("Email")
            yield Input(placeholder="user@example.com", id="input-login-email")
            yield Label("Password")
            yield Input(placeholder="*********", password=True, id="input-login-pwd")
            with Horizontal(id="div-login-btns"):
                yield Button("Quit", id="btn-quit")
                yield Button("Forgot password?", id="btn-forgot")
                yield Button("Login", id="btn-login", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    @on(Input.Submitted, "#input-login-pwd")
    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email_input = self.query_one("#input-login-email", Input)
        pwd_input = self.query_one("#input-login-pwd", Input)
        email_input.remove_class("-invalid")
        pwd_input.remove_class("-invalid")

        try:
            profile = await self.app.store.login(email_input.value, pwd_input.value)
        except ValidationError as e:
            target = email_input if e.field == "email" else pwd_input
            target.add_class("-invalid")
            target.focus()
            self.notify(e.user_message, severity="error")
            return
        except AppError as e:
            self.notify(e.user_message, severity="error")
            pwd_input.value = ""
            pwd_input.focus()
            pwd_input.add_class("-invalid")
            return

        pwd_input.value = ""
        self.notify(f"Hello {profile.display_name}!")

    @on(Button.Pressed, "#btn-forgot")
    async def handle_forgot(self) -> None:
        self.app.post_message(ModeSwitchedMessage(self.app.current_mode, "reset_password"))
        await self.app.switch_mode("reset_password")

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())


class ResetPasswordScreen(BaseScreen):
    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Reset Password", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-reset"):
            yield Label("Email")
            yield Input(placeholder="user@example.com", id="input-reset-email")
            yield Label("New Password")
            yield Input(placeholder="at least 8 characters, one number", password=True, id="input-reset-pwd")
            yield Label("Confirm Password")
            yield Input(placeholder="*********", password=True, id="input-reset-confirm")
            with Horizontal(id="div-reset-btns"):
                yield Button("Back to Login", id="btn-back")
                yield Button("Reset Password", id="btn-reset", variant="primary")

    def on_mount(self):
        self.query_one("#input-reset-email").focus()

    @on(Input.Submitted, "#input-reset-confirm")
    @on(Button.Pressed, "#btn-reset")
    @work(exclusive=True)
    async def handle_reset_submit(self) -> None:
        fields = {
            "email": self.query_one("#input-reset-email", Input),
            "new_password": self.query_one("#input-reset-pwd", Input),
            "confirm_password": self.query_one("#input-reset-confirm", Input),
        }
        for field in fields.values():
            field.remove_class("-invalid")

        try:
            await self.app.store.reset_password(
                fields["email"].value,
                fields["new_password"].value,
                fields["confirm_password"].value,
            )
        except ValidationError as e:
            target = fields.get(e.field, fields["email"])
            target.add_class("-invalid")
            target.focus()
            self.notify(e.user_message, severity="error")
            return
        except AppError as e:
            self.notify(e.user_message, severity="error")
            return

        fields["new_password"].value = ""
        fields["confirm_password"].value = ""
        await self.app.push_screen_wait(
            SimpleDialogModal("Password reset successfully. You can now log in.")
        )
        await self.back_to_login()

    @on(Button.Pressed, "#btn-back")
    async def back_to_login(self) -> None:
        self.app.post_message(ModeSwitchedMessage(self.app.current_mode, "login"))
        await self.app.switch_mode("login")
