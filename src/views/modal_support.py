from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label

from services.chat import SupportBot
from views.chat_log import ChatLog


class SupportModal(ModalScreen[None]):
    """
    Floating support chat. The conversation is dropped when it closes.
    """

    BINDINGS = [("escape", "close", "Close")]

    def __init__(self) -> None:
        super().__init__()
        self.bot: SupportBot | None = None

    def compose(self) -> ComposeResult:
        with Container(id="div-support"):
            yield Label("Artisha Support", classes="caption")
            yield ChatLog(id="chat-support")
            with Horizontal(id="hort-quick-actions"):
                for i, action in enumerate(SupportBot.QUICK_ACTIONS):
                    yield Button(action, id=f"btn-quick-{i}", classes="quick-action")
            with Horizontal(id="hort-support-input"):
                yield Input(placeholder="Type a message...", id="input-support")
                yield Button("Close", id="btn-close")

    async def on_mount(self) -> None:
        self.bot = SupportBot(self.app.store)
        chat = self.query_one(ChatLog)
        self.bot.on_progress(chat.show_typing)
        await chat.show(self.bot.messages)
        self.query_one("#input-support", Input).focus()

    def on_unmount(self) -> None:
        if self.bot is not None:
            self.bot.close()

    def set_busy(self, busy: bool) -> None:
        self.query_one("#input-support", Input).disabled = busy
        for button in self.query(".quick-action"):
            button.disabled = busy

    @on(Input.Submitted, "#input-support")
    def handle_submit(self, event: Input.Submitted) -> None:
        event.input.value = ""
        self.ask(event.value)

    @on(Button.Pressed, ".quick-action")
    def handle_quick_action(self, event: Button.Pressed) -> None:
        self.ask(str(event.button.label))

    @work()
    async def ask(self, text: str) -> None:
        if not text.strip() or self.bot is None or self.bot.busy:
            return
        chat = self.query_one(ChatLog)
        self.set_busy(True)
        await chat.say("user", text)
        chat.show_typing("")
        try:
            reply = await self.bot.send(text)
        finally:
            self.set_busy(False)
        if reply is not None:
            await chat.append(reply)
        self.query_one("#input-support", Input).focus()

    @on(Button.Pressed, "#btn-close")
    def action_close(self) -> None:
        self.dismiss(None)
