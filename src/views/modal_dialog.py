from typing import Dict, Literal, Tuple

from typing_extensions import override

from textual.app import ComposeResult
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static

from db.models import Notification
from utils.messages import AlertsChangedMessage, QuitRequestedMessage

ICONS = {"success": "✔", "info": "ℹ", "warning": "⚠", "error": "✖"}


class DialogModal(ModalScreen[bool]):
    """
    A simple yes/no dialog box, dismissed with True for the primary button.
    """

    VARIANT_MAP: Dict[
        str, Tuple[Literal["primary", "default", "success", "warning", "error"], ...]
    ] = {
        "default": ("primary", "default"),
        "positive": ("success", "default"),
        "warning": ("warning", "default"),
        "error": ("error", "primary"),
    }

    def __init__(
        self,
        caption: str,
        primary_text: str = "OK",
        secondary_text: str = "",
        tone: Literal["default", "positive", "warning", "error"] = "default",
    ):
        super().__init__()
        self.caption = caption
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone

    def compose(self) -> ComposeResult:
        with Container(classes="div-dialog"):
            yield Label(self.caption, classes="caption")
            with Horizontal(classes="dialog-buttons"):
                if self.secondary_text:
                    yield Button(
                        self.secondary_text,
                        variant=DialogModal.VARIANT_MAP[self.tone][1],
                        id="btn-secondary",
                    )
                yield Button(
                    self.primary_text,
                    variant=DialogModal.VARIANT_MAP[self.tone][0],
                    id="btn-primary",
                )

    def on_mount(self):
        # destructive dialogs focus the safe choice
        if not self.secondary_text or not self.tone == "error":
            self.query_one("#btn-primary").focus()
        else:
            self.query_one("#btn-secondary").focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.dismiss(True)
        if event.button.id == "btn-secondary":
            self.dismiss(False)


class QuitDialogModal(DialogModal):
    def __init__(self):
        super().__init__("Are you sure you want to quit?", "Yes", "No", "error")

    @override
    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.post_message(QuitRequestedMessage())
            self.dismiss(True)
        else:
            self.dismiss(False)


class AlertsModal(ModalScreen[None]):
    """
    The bell dropdown: newest alerts first, with a button to clear them.
    """

    BINDINGS = [("escape", "dismiss", "Close")]

    def __init__(self, alerts: list[Notification]):
        super().__init__()
        self.alerts = alerts

    def compose(self) -> ComposeResult:
        with Container(classes="div-dialog"):
            yield Label(f"Notifications ({len(self.alerts)})", classes="caption")
            with VerticalScroll(id="vert-alerts"):
                if not self.alerts:
                    yield Static("No new notifications.", classes="muted")
                for note in self.alerts:
                    yield Static(
                        f"{ICONS.get(note.type, '•')} {note.message}",
                        classes=f"alert alert-{note.type}",
                    )
            with Horizontal(classes="dialog-buttons"):
                yield Button("Clear All", id="btn-clear", variant="warning")
                yield Button("Close", id="btn-close", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-clear":
            self.app.store.clear_alerts()
            self.app.post_message(AlertsChangedMessage())
        self.dismiss(None)
