# chat sessions for the support bot and the creative studio
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional

import db.crud as crud
from db.models import ChatMessage, Product
from services import genai
from utils.logger import get_logger
from utils.pure import first_name, new_id, now_ms

if TYPE_CHECKING:
    from utils.state import AppStore

_logger = get_logger(__name__)

ProgressListener = Callable[[str], None]


def _message(role: str, text: str, image: Optional[str] = None) -> ChatMessage:
    return ChatMessage(
        id=new_id("msg"), role=role, text=text, image=image, timestamp=now_ms()
    )


class ChatSession(ABC):
    """
    A conversation with one generative responder.

    Only one send() may be in flight at a time. A reply is revealed one
    character per tick through typed_text and the progress listeners, and
    is appended to the transcript only once fully revealed. close() stops
    any playback in progress and nothing partial is kept.
    """

    TYPING_INTERVAL = 0.02

    def __init__(
        self,
        messages: Optional[Iterable[ChatMessage]] = None,
        typing_interval: Optional[float] = None,
    ) -> None:
        self.messages: List[ChatMessage] = list(messages or []) or [
            _message("model", self.greeting_text())
        ]
        self.typing_interval = (
            self.TYPING_INTERVAL if typing_interval is None else typing_interval
        )
        self.typed_text = ""
        self._busy = False
        self._closed = False
        self._playback: Optional[asyncio.Task] = None
        self._listeners: List[ProgressListener] = []

    # hooks for subclasses

    def greeting_text(self) -> str:
        return "Hello! How can I help you today?"

    @abstractmethod
    async def respond(self, text: str) -> ChatMessage:
        """Produce the reply to one user message."""

    async def save(self) -> None:
        pass

    async def on_commit(self, reply: ChatMessage) -> None:
        pass

    # public api

    @property
    def busy(self) -> bool:
        return self._busy

    def on_progress(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    async def send(self, text: str) -> Optional[ChatMessage]:
        """
        Post a user message and play back the reply.

        Returns the committed reply, or None when the text is blank, another
        send is still in flight, or the session was closed mid-playback.
        """
        if not text.strip() or self._busy or self._closed:
            return None

        self._busy = True
        try:
            self.messages.append(_message("user", text))
            await self.save()

            reply = await self.respond(text)
            if not await self._play(reply.text):
                return None

            self.messages.append(reply)
            await self.save()
            await self.on_commit(reply)
            return reply
        finally:
            self._busy = False
            self.typed_text = ""

    def close(self) -> None:
        self._closed = True
        if self._playback is not None:
            self._playback.cancel()

    async def _play(self, text: str) -> bool:
        self._playback = asyncio.create_task(self._reveal(text))
        try:
            await self._playback
        except asyncio.CancelledError:
            if self._closed:
                _logger.debug("Typing playback cancelled on close.")
                return False
            raise
        finally:
            self._playback = None
        return not self._closed

    async def _reveal(self, text: str) -> None:
        for i in range(1, len(text) + 1):
            self.typed_text = text[:i]
            for listener in self._listeners:
                listener(self.typed_text)
            await asyncio.sleep(self.typing_interval)


class SupportBot(ChatSession):
    """Customer support chat. The transcript lives only as long as the bot."""

    QUICK_ACTIONS = ["Where is my order?", "Shipping Policy", "Return Policy"]

    def __init__(self, store: AppStore, typing_interval: Optional[float] = None):
        self.store = store
        super().__init__(typing_interval=typing_interval)

    def greeting_text(self) -> str:
        name = first_name(self.store.user.name) if self.store.user else "there"
        return f"Hi {name}! I am the Artisha Support Bot. How can I help you today?"

    async def respond(self, text: str) -> ChatMessage:
        reply = await genai.get_support_response(
            text, self.store.user, self.store.user_orders
        )
        return _message("model", reply)


MEDIUM_BASE_PRICES = {
    "Canvas Print": 8500,
    "Hand-embellished Print": 12000,
    "Acrylic on Canvas": 18000,
    "Oil Painting": 25000,
}

SIZE_MULTIPLIERS = {
    "12x16": 1.0,
    "18x24": 1.4,
    "24x36": 2.0,
    "30x40": 2.5,
}


def estimate_price(medium: str, size: str) -> int:
    """Commission price in LKR for a medium and size (inches)."""
    return int(round(MEDIUM_BASE_PRICES[medium] * SIZE_MULTIPLIERS[size]))


class CreativeStudio(ChatSession):
    """
    AI consultant that helps a customer describe a custom piece, then
    visualises it. The transcript is kept in session storage so it survives
    leaving and re-entering the studio.
    """

    TYPING_INTERVAL = 0.015

    # the consultant is asked for an image once the conversation has this
    # many messages, even without a final summary
    IMAGE_AFTER = 2

    def __init__(
        self,
        messages: Optional[Iterable[ChatMessage]] = None,
        typing_interval: Optional[float] = None,
    ) -> None:
        super().__init__(messages, typing_interval)
        self.medium = "Canvas Print"
        self.size = "12x16"
        self.generated_image: Optional[str] = next(
            (m.image for m in reversed(self.messages) if m.image), None
        )

    @classmethod
    async def open(cls, typing_interval: Optional[float] = None) -> CreativeStudio:
        """Resume this session's saved conversation, or start a fresh one."""
        return cls(await crud.load_studio_chat(), typing_interval)

    def greeting_text(self) -> str:
        return (
            "Welcome to the Creative Studio! I am your AI Art Consultant. "
            "Describe the artwork you imagine (style, colors, mood) and I will "
            "help you visualize it before we commission an artisan."
        )

    @property
    def estimated_price(self) -> int:
        return estimate_price(self.medium, self.size)

    def configure(self, medium: Optional[str] = None, size: Optional[str] = None):
        if medium is not None:
            if medium not in MEDIUM_BASE_PRICES:
                raise ValueError(f"unknown medium: {medium!r}")
            self.medium = medium
        if size is not None:
            if size not in SIZE_MULTIPLIERS:
                raise ValueError(f"unknown size: {size!r}")
            self.size = size

    async def save(self) -> None:
        await crud.save_studio_chat(self.messages)

    async def respond(self, text: str) -> ChatMessage:
        history = self.messages[:-1]  # everything before the new user message
        reply = await genai.generate_art_description(text, history)

        image = None
        if genai.FINAL_MARKER in reply:
            image = await genai.generate_art_image(
                reply.split(genai.FINAL_MARKER, 1)[1].strip()
            )
        elif len(history) > self.IMAGE_AFTER:
            image = await genai.generate_art_image(text)
        return _message("model", reply, image)

    async def on_commit(self, reply: ChatMessage) -> None:
        if reply.image:
            self.generated_image = reply.image

    async def reset(self) -> None:
        await crud.clear_studio_chat()
        self.messages = [_message("model", self.greeting_text())]
        self.generated_image = None

    def commission(self, store: AppStore) -> Optional[Product]:
        """Put a one-off product for the visualised piece in the cart."""
        if not self.generated_image:
            return None
        product = Product(
            id=new_id("custom"),
            title=f"Custom Commission ({self.medium})",
            description=(
                "Custom artwork based on AI visualization. "
                f"Size: {self.size}. Medium: {self.medium}."
            ),
            price=self.estimated_price,
            category="Commission",
            image_url=self.generated_image,
            stock=1,
            tags=["custom", "commission", "ai-design"],
        )
        store.add_to_cart(product)
        store.notify("success", "Custom commission added to cart!")
        return product
