from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, Input, Label, Select

from services.chat import MEDIUM_BASE_PRICES, SIZE_MULTIPLIERS, CreativeStudio
from utils.messages import CartChangedMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.chat_log import ChatLog
from views.modal_dialog import DialogModal


class StudioScreen(BaseScreen):
    """
    Creative studio: talk a custom piece through with the AI consultant,
    then commission it at the estimated price.
    """

    studio: Optional[CreativeStudio] = None
    _owner: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-studio"):
            with Vertical(id="vert-studio-chat"):
                yield ChatLog(id="chat-studio")
                yield Input(
                    placeholder="Describe your dream artwork...", id="input-studio"
                )
            with Vertical(id="vert-studio-panel"):
                yield Label("Medium")
                yield Select(
                    [(m, m) for m in MEDIUM_BASE_PRICES],
                    value="Canvas Print",
                    allow_blank=False,
                    id="select-medium",
                )
                yield Label("Size (inches)")
                yield Select(
                    [(s, s) for s in SIZE_MULTIPLIERS],
                    value="12x16",
                    allow_blank=False,
                    id="select-size",
                )
                yield Label("", id="label-price")
                yield Label("", id="label-visual")
                yield Button("Commission", id="btn-commission", variant="success")
                yield Button("New Design", id="btn-reset", variant="warning")

    async def on_mount(self) -> None:
        await self.open_studio()
        self.query_one("#input-studio", Input).focus()

    @on(ScreenResume)
    async def handle_resume(self) -> None:
        # a login or logout since the last visit started a fresh transcript
        if self.studio is not None and self._owner != self.store.session.uid:
            await self.open_studio()

    async def open_studio(self) -> None:
        if self.studio is not None:
            self.studio.close()
        self._owner = self.store.session.uid
        self.studio = await CreativeStudio.open()
        self.studio.configure(
            medium=self.query_one("#select-medium", Select).value,
            size=self.query_one("#select-size", Select).value,
        )
        chat = self.query_one(ChatLog)
        self.studio.on_progress(chat.show_typing)
        await chat.show(self.studio.messages)
        self.refresh_panel()

    def on_unmount(self) -> None:
        if self.studio is not None:
            self.studio.close()

    def refresh_panel(self) -> None:
        studio = self.studio
        self.query_one("#label-price", Label).update(
            f"Estimated price: {format_price(studio.estimated_price)}"
        )
        self.query_one("#label-visual", Label).update(
            "Visualization ready." if studio.generated_image
            else "No visualization yet."
        )
        self.query_one("#btn-commission", Button).disabled = not studio.generated_image

    @on(Select.Changed, "#select-medium")
    @on(Select.Changed, "#select-size")
    def handle_config_change(self) -> None:
        if self.studio is None:
            return
        self.studio.configure(
            medium=self.query_one("#select-medium", Select).value,
            size=self.query_one("#select-size", Select).value,
        )
        self.refresh_panel()

    @on(Input.Submitted, "#input-studio")
    @work()
    async def handle_send(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        if not text or self.studio is None or self.studio.busy:
            return

        studio_input = self.query_one("#input-studio", Input)
        studio_input.value = ""
        studio_input.disabled = True
        chat = self.query_one(ChatLog)
        await chat.say("user", text)
        chat.show_typing("")
        try:
            reply = await self.studio.send(text)
        finally:
            studio_input.disabled = False
        if reply is not None:
            await chat.append(reply)
            self.refresh_panel()
        studio_input.focus()

    @on(Button.Pressed, "#btn-commission")
    async def handle_commission(self) -> None:
        if self.studio.commission(self.store) is not None:
            self.app.post_message(CartChangedMessage())
            await self.refresh_sidebar()

    @on(Button.Pressed, "#btn-reset")
    @work(exclusive=True)
    async def handle_reset(self) -> None:
        confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Start a new design? The current conversation will be lost.",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        )
        if not confirmed or self.studio.busy:
            return
        await self.studio.reset()
        await self.query_one(ChatLog).show(self.studio.messages)
        self.refresh_panel()
