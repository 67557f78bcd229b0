from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, Switch, TabbedContent, TabPane

from db.models import UserRole
from utils.messages import UserLoginMessage
from utils.pure import is_valid_email
from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal

ADMIN_EMAIL_HINT = "admin@artisha.com"


class LoginScreen(BaseScreen):
    """
    Login, sign up and password reset. Dismissed once a session is active.
    """

    def __init__(self):
        super().__init__()
        self.configure(header_sub_title="Login", show_sidebar=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr"):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    with Horizontal(classes="switch-row"):
                        yield Switch(value=False, id="switch-admin")
                        yield Label("Administrator login")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-login-email")
                    yield Label("", id="label-login-error", classes="form-error")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Name")
                    yield Input(placeholder="Jane Doe", id="input-reg-name")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("", id="label-reg-error", classes="form-error")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd"
                    )
                    with Container(id="div-reg-btns"):
                        yield Button("Register", id="btn-reg", variant="primary")

            with TabPane("Forgot password", id="tab-forgot"):
                with Vertical(id="div-forgot"):
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reset-email")
                    yield Label("", id="label-reset-error", classes="form-error")
                    with Container(id="div-reset-btns"):
                        yield Button(
                            "Send reset link", id="btn-reset", variant="primary"
                        )

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()
        if event.key == "enter" and self.focused == self.query_one("#input-reg-pwd"):
            self.handle_registration_submit()

    def on_switch_changed(self, event: Switch.Changed) -> None:
        # prefill the admin address for convenience
        email_input = self.query_one("#input-login-email", Input)
        email_input.value = ADMIN_EMAIL_HINT if event.value else ""
        self.query_one("#input-login-pwd", Input).value = ""
        self._show_error("#label-login-error", "")

    def _show_error(self, label_id: str, text: str) -> None:
        self.query_one(label_id, Label).update(text)

    def _check_email(self, input_id: str, label_id: str) -> str:
        """Returns the trimmed email, or "" after flagging the field invalid."""
        email_input = self.query_one(input_id, Input)
        email = email_input.value.strip()
        if not is_valid_email(email):
            self._show_error(
                label_id,
                "Please enter a valid email address (e.g., user@example.com).",
            )
            email_input.add_class("-invalid")
            email_input.focus()
            return ""
        self._show_error(label_id, "")
        email_input.remove_class("-invalid")
        return email

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self._check_email("#input-login-email", "#label-login-error")
        if not email:
            return
        pwd = self.query_one("#input-login-pwd", Input).value.strip()
        is_admin = self.query_one("#switch-admin", Switch).value
        role = UserRole.ADMIN if is_admin else UserRole.CUSTOMER

        if await self.store.login(email, role, pwd or None):
            self.app.post_message(UserLoginMessage())
            self.dismiss()
        else:
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        name = self.query_one("#input-reg-name", Input).value.strip()
        email = self._check_email("#input-reg-email", "#label-reg-error")
        pwd = self.query_one("#input-reg-pwd", Input).value.strip()

        if not email:
            return
        if not name:
            self.query_one("#input-reg-name", Input).focus()
            self.notify("Name is required for registration.", severity="error")
            return

        if await self.store.register(name, email, UserRole.CUSTOMER, pwd or None):
            self.app.post_message(UserLoginMessage())
            self.dismiss()

    @on(Button.Pressed, "#btn-reset")
    @work(exclusive=True)
    async def handle_reset_submit(self) -> None:
        email = self._check_email("#input-reset-email", "#label-reset-error")
        if not email:
            return
        await self.store.reset_password(email)
        self.query_one("#input-reset-email", Input).value = ""
        self.get_child_by_type(TabbedContent).active = "tab-login"

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
