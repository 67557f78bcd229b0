# generative-content client: chat replies, product copy and image generation
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from openai import AsyncOpenAI

from db.models import ChatMessage, Order, User
from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

API_KEY: Optional[str] = settings.openai_api_key
TEXT_MODEL = settings.openai_model
IMAGE_MODEL = settings.openai_image_model

FINAL_MARKER = "FINAL VISUALIZATION:"

CONSULTANT_INSTRUCTIONS = (
    "You are Artisha's AI Creative Consultant. Your goal is to help customers "
    "articulate their vision for a custom art piece. Ask clarifying questions "
    "about style, medium (oil, watercolor, digital), color palette, and mood. "
    "Be concise, friendly, and artistic. If the user seems satisfied with the "
    f"description, summarize it clearly starting with '{FINAL_MARKER}'."
)

SUPPORT_INSTRUCTIONS = (
    "You are the support bot for Artisha, a Sri Lankan art marketplace. Answer "
    "questions about shipping (island-wide delivery), payments (PayHere, "
    "Stripe), and custom orders. Be polite and helpful."
)

_client: Optional[AsyncOpenAI] = None
_client_key: Optional[str] = None


def get_client() -> Optional[AsyncOpenAI]:
    """Shared client, or None when no API key is configured."""
    global _client, _client_key
    if not API_KEY:
        return None
    if _client is None or _client_key != API_KEY:
        _client = AsyncOpenAI(api_key=API_KEY)
        _client_key = API_KEY
    return _client


def _to_input(history: Sequence[ChatMessage]) -> List[Dict[str, str]]:
    return [
        {"role": "assistant" if m.role == "model" else "user", "content": m.text}
        for m in history
    ]


async def _respond(instructions: str, messages: List[Dict[str, str]]) -> str:
    response = await get_client().responses.create(
        model=TEXT_MODEL,
        instructions=instructions,
        input=messages,
    )
    return (getattr(response, "output_text", "") or "").strip()


async def generate_art_description(
    prompt: str, history: Sequence[ChatMessage] = ()
) -> str:
    """Next consultant turn for the creative studio conversation."""
    if get_client() is None:
        return "AI services are unavailable (API Key missing)."
    try:
        text = await _respond(
            CONSULTANT_INSTRUCTIONS,
            [*_to_input(history), {"role": "user", "content": prompt}],
        )
    except Exception:
        _logger.exception("Creative consultant request failed.")
        return "Sorry, I encountered an error connecting to the creative mind."
    return text or "I'm having trouble visualizing that right now."


async def generate_art_image(prompt: str) -> Optional[str]:
    """A PNG data uri visualising prompt, or None if nothing could be made."""
    client = get_client()
    if client is None:
        return None
    try:
        result = await client.images.generate(
            model=IMAGE_MODEL, prompt=prompt, size="1024x1024"
        )
    except Exception:
        _logger.exception("Image generation request failed.")
        return None
    for image in result.data or []:
        if getattr(image, "b64_json", None):
            return f"data:image/png;base64,{image.b64_json}"
    return None


async def generate_product_description(title: str, category: str) -> str:
    """Two-sentence catalog copy, empty string when unavailable."""
    if get_client() is None:
        return ""
    prompt = (
        "Write a compelling, artistic, and concise product description "
        f'(max 2 sentences) for a {category} art piece titled "{title}". '
        "Focus on craftsmanship, visual appeal, and emotional impact."
    )
    try:
        return await _respond(
            "You write product copy for an art store.",
            [{"role": "user", "content": prompt}],
        )
    except Exception:
        _logger.exception("Product description request failed.")
        return ""


def support_context(user: Optional[User], orders: Sequence[Order]) -> str:
    context = SUPPORT_INSTRUCTIONS
    if user is not None:
        context += f" The user's name is {user.name}."
    if orders:
        summary = ", ".join(
            f"Order #{o.id} ({o.status.value}, Total: {o.total})" for o in orders[:3]
        )
        context += (
            f" The user has the following recent orders: {summary}. "
            "If they ask about order status, refer to this data."
        )
    else:
        context += " The user has no recent orders."
    return context


async def get_support_response(
    message: str, user: Optional[User] = None, orders: Sequence[Order] = ()
) -> str:
    if get_client() is None:
        return "I'm offline right now (API Key missing)."
    try:
        text = await _respond(
            support_context(user, orders), [{"role": "user", "content": message}]
        )
    except Exception:
        _logger.exception("Support bot request failed.")
        return "I am currently experiencing technical difficulties."
    return text or "I didn't catch that."
