from typing import Iterable

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Static

from db.models import ChatMessage


class ChatLog(VerticalScroll):
    """
    Transcript of a chat session. The last bubble is a live one that shows
    the reply as it is being typed.
    """

    def compose(self) -> ComposeResult:
        yield Static(
            "", markup=False, id="chat-typing", classes="bubble bubble-model hidden"
        )

    def bubble_for(self, message: ChatMessage) -> Static:
        text = message.text
        if message.image:
            text += "\n\n[image attached]"
        return self.bubble(message.role, text)

    def bubble(self, role: str, text: str) -> Static:
        return Static(text, markup=False, classes=f"bubble bubble-{role}")

    async def show(self, messages: Iterable[ChatMessage]) -> None:
        await self.query(".bubble").exclude("#chat-typing").remove()
        typing = self.query_one("#chat-typing", Static)
        await self.mount_all([self.bubble_for(m) for m in messages], before=typing)
        typing.add_class("hidden")
        self.scroll_end(animate=False)

    async def say(self, role: str, text: str) -> None:
        typing = self.query_one("#chat-typing", Static)
        await self.mount(self.bubble(role, text), before=typing)
        self.scroll_end(animate=False)

    async def append(self, message: ChatMessage) -> None:
        typing = self.query_one("#chat-typing", Static)
        typing.update("")
        typing.add_class("hidden")
        await self.mount(self.bubble_for(message), before=typing)
        self.scroll_end(animate=False)

    def show_typing(self, text: str) -> None:
        typing = self.query_one("#chat-typing", Static)
        typing.remove_class("hidden")
        typing.update(text or "…")
        self.scroll_end(animate=False)
