from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Button, Input, Label, TextArea

from db.models import Message
from utils.pure import is_valid_email, new_id, now_iso
from views.base_screen import BaseScreen


class ContactScreen(BaseScreen):
    """
    Contact form, messages land in the admin inbox.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(classes="form"):
            yield Label("Name")
            yield Input(id="input-contact-name")
            yield Label("Email")
            yield Input(placeholder="user@example.com", id="input-contact-email")
            yield Label("", id="label-contact-error", classes="form-error")
            yield Label("Subject")
            yield Input(id="input-contact-subject")
            yield Label("Message")
            yield TextArea(id="text-contact-message")
            yield Button("Send Message", id="btn-send", variant="primary")

    def on_mount(self) -> None:
        user = self.store.user
        if user is not None:
            self.query_one("#input-contact-name", Input).value = user.name
            self.query_one("#input-contact-email", Input).value = user.email

    @on(Button.Pressed, "#btn-send")
    @work(exclusive=True)
    async def handle_send(self) -> None:
        name = self.query_one("#input-contact-name", Input).value.strip()
        email = self.query_one("#input-contact-email", Input).value.strip()
        subject = self.query_one("#input-contact-subject", Input).value.strip()
        body = self.query_one("#text-contact-message", TextArea).text.strip()

        if not is_valid_email(email):
            self.query_one("#label-contact-error", Label).update(
                "Please enter a valid email address."
            )
            return
        self.query_one("#label-contact-error", Label).update("")
        if not (name and subject and body):
            self.notify("Make sure all inputs are filled.", severity="error")
            return

        message = Message(
            id=new_id("m"),
            name=name,
            email=email,
            subject=subject,
            message=body,
            date=now_iso(),
        )
        if await self.store.send_message(message):
            self.query_one("#input-contact-subject", Input).value = ""
            self.query_one("#text-contact-message", TextArea).text = ""
