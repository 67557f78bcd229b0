# src/db/crud.py
from __future__ import annotations

import dataclasses
import json
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from db import database, models, seed
from db.database import Scope
from utils.logger import get_logger
from utils.pure import now_iso

_logger = get_logger(__name__)

USERS_KEY = "artisha_users_v1"
PRODUCTS_KEY = "artisha_products_v1"
ORDERS_KEY = "artisha_orders_v1"
ANALYTICS_KEY = "artisha_analytics_v1"
REVIEWS_KEY = "artisha_reviews_v1"
MESSAGES_KEY = "artisha_messages_v1"
WISHLIST_KEY = "artisha_wishlist_v1"

SESSION_MARKER_KEY = "artisha_active_session"
STUDIO_CHAT_KEY = "artisha_studio_chat"

ANALYTICS_CAP = 20

T = TypeVar("T")


# ---------------------------
# Raw json helpers
# ---------------------------


async def _read_json(key: str, fallback: Callable[[], Any], scope: Scope = "local"):
    """Parsed value stored under key, or fallback() when missing or unparseable."""
    raw = await database.get_item(key, scope)
    if raw is None:
        return fallback()
    try:
        return json.loads(raw)
    except ValueError as e:
        _logger.error(f"Error parsing {key} from storage: {e}")
        return fallback()


async def _write_json(key: str, value: Any, scope: Scope = "local") -> None:
    await database.set_item(key, json.dumps(value), scope)


async def _load(key: str, model: Type[T]) -> List[T]:
    data = await _read_json(key, list)
    if not isinstance(data, list):
        _logger.error(f"Expected a list under {key}, got {type(data).__name__}")
        return []
    records: List[T] = []
    for entry in data:
        try:
            records.append(model.from_dict(entry))
        except (KeyError, TypeError, ValueError) as e:
            _logger.error(f"Skipping malformed record under {key}: {e}")
    return records


async def _save(key: str, records: List[Any]) -> None:
    await _write_json(key, [r.to_dict() for r in records])


def _merge(stored, updated):
    """
    Shallow merge: fields set on updated win, unset (None) fields keep stored.

    None always means "keep", so an optional field such as avatar or
    ai_pricing_details cannot be cleared through update_user/update_product.
    Products can be cleared by rewriting the collection with save_products.
    """
    merged: Dict[str, Any] = stored.to_dict()
    merged.update({k: v for k, v in updated.to_dict().items() if v is not None})
    return type(stored).from_dict(merged)


# ---------------------------
# Init & seed
# ---------------------------


async def init() -> None:
    """Seed every collection whose key is entirely absent. Existing data is
    never touched, so calling this repeatedly is safe."""
    seeds = {
        USERS_KEY: [u.to_dict() for u in seed.INITIAL_USERS],
        PRODUCTS_KEY: [p.to_dict() for p in seed.INITIAL_PRODUCTS],
        ORDERS_KEY: [],
        REVIEWS_KEY: [],
        MESSAGES_KEY: [],
        WISHLIST_KEY: [],
    }
    for key, value in seeds.items():
        if not await database.has_item(key):
            _logger.info(f"Seeding {key}...")
            await _write_json(key, value)


# ---------------------------
# Users
# ---------------------------


async def get_all_users() -> List[models.User]:
    return await _load(USERS_KEY, models.User)


async def add_user(user: models.User) -> None:
    users = await get_all_users()
    users.append(user)
    await _save(USERS_KEY, users)


async def update_user(user: models.User) -> bool:
    """Merge user onto the stored record with the same id. False if not found."""
    users = await get_all_users()
    for i, stored in enumerate(users):
        if stored.id == user.id:
            users[i] = _merge(stored, user)
            await _save(USERS_KEY, users)
            return True
    return False


async def delete_user(user_id: str) -> None:
    users = [u for u in await get_all_users() if u.id != user_id]
    await _save(USERS_KEY, users)


async def find_user_by_email(email: str) -> Optional[models.User]:
    for user in await get_all_users():
        if user.email == email:
            return user
    return None


# ---------------------------
# Products
# ---------------------------


async def get_all_products() -> List[models.Product]:
    return await _load(PRODUCTS_KEY, models.Product)


async def save_products(products: List[models.Product]) -> None:
    """Rewrite the whole product collection."""
    await _save(PRODUCTS_KEY, products)


async def add_product(product: models.Product) -> None:
    products = await get_all_products()
    products.append(product)
    await save_products(products)


async def update_product(product: models.Product) -> bool:
    products = await get_all_products()
    for i, stored in enumerate(products):
        if stored.id == product.id:
            products[i] = _merge(stored, product)
            await save_products(products)
            return True
    return False


async def delete_product(product_id: str) -> None:
    await save_products([p for p in await get_all_products() if p.id != product_id])


async def get_product(product_id: str) -> Optional[models.Product]:
    for product in await get_all_products():
        if product.id == product_id:
            return product
    return None


# ---------------------------
# Orders
# ---------------------------


async def get_all_orders() -> List[models.Order]:
    """All orders, newest first."""
    return await _load(ORDERS_KEY, models.Order)


async def get_orders_by_user(user_id: str) -> List[models.Order]:
    return [o for o in await get_all_orders() if o.user_id == user_id]


async def add_order(order: models.Order) -> None:
    orders = await get_all_orders()
    orders.insert(0, order)
    await _save(ORDERS_KEY, orders)


async def update_order(order: models.Order) -> bool:
    """Replace the stored order with the same id wholesale."""
    orders = await get_all_orders()
    for i, stored in enumerate(orders):
        if stored.id == order.id:
            orders[i] = order
            await _save(ORDERS_KEY, orders)
            return True
    return False


# ---------------------------
# Reviews
# ---------------------------


async def get_all_reviews() -> List[models.Review]:
    return await _load(REVIEWS_KEY, models.Review)


async def add_review(review: models.Review) -> None:
    reviews = await get_all_reviews()
    reviews.append(review)
    await _save(REVIEWS_KEY, reviews)


async def get_reviews_by_product(product_id: str) -> List[models.Review]:
    return [r for r in await get_all_reviews() if r.product_id == product_id]


async def delete_review(review_id: str) -> None:
    await _save(REVIEWS_KEY, [r for r in await get_all_reviews() if r.id != review_id])


# ---------------------------
# Messages (contact inbox)
# ---------------------------


async def get_all_messages() -> List[models.Message]:
    """All inbox messages, newest first."""
    return await _load(MESSAGES_KEY, models.Message)


async def add_message(message: models.Message) -> None:
    messages = await get_all_messages()
    messages.insert(0, message)
    await _save(MESSAGES_KEY, messages)


async def mark_message_read(message_id: str) -> bool:
    messages = await get_all_messages()
    for i, msg in enumerate(messages):
        if msg.id == message_id:
            messages[i] = dataclasses.replace(msg, read=True)
            await _save(MESSAGES_KEY, messages)
            return True
    return False


async def delete_message(message_id: str) -> None:
    await _save(
        MESSAGES_KEY, [m for m in await get_all_messages() if m.id != message_id]
    )


# ---------------------------
# Wishlist
# ---------------------------


async def get_all_wishlist() -> List[models.WishlistItem]:
    return await _load(WISHLIST_KEY, models.WishlistItem)


async def get_user_wishlist(user_id: str) -> List[str]:
    """Product ids wishlisted by user_id, in the order they were added."""
    return [w.product_id for w in await get_all_wishlist() if w.user_id == user_id]


async def toggle_wishlist(user_id: str, product_id: str) -> bool:
    """
    Add the (user, product) entry if absent, remove it if present.
    Returns True if the entry is now present, False if it was removed.
    """
    entries = await get_all_wishlist()
    remaining = [
        w for w in entries if not (w.user_id == user_id and w.product_id == product_id)
    ]
    existed = len(remaining) != len(entries)
    if not existed:
        remaining.append(
            models.WishlistItem(user_id=user_id, product_id=product_id, date=now_iso())
        )
    await _save(WISHLIST_KEY, remaining)
    return not existed


# ---------------------------
# Analytics
# ---------------------------


async def get_recent_analytics() -> List[models.AnalyticsMetric]:
    return (await _load(ANALYTICS_KEY, models.AnalyticsMetric))[-ANALYTICS_CAP:]


async def log_analytics(metric: models.AnalyticsMetric) -> None:
    data = await get_recent_analytics()
    data.append(metric)
    await _save(ANALYTICS_KEY, data[-ANALYTICS_CAP:])


# ---------------------------
# Session marker
# ---------------------------


async def load_session_marker() -> Optional[models.User]:
    """The user recorded as logged in on this device, if any."""
    data = await _read_json(SESSION_MARKER_KEY, lambda: None)
    if data is None:
        return None
    try:
        return models.User.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        _logger.error(f"Discarding unreadable session marker: {e}")
        return None


async def save_session_marker(user: models.User) -> None:
    await _write_json(SESSION_MARKER_KEY, user.to_dict())


async def clear_session_marker() -> None:
    await database.remove_item(SESSION_MARKER_KEY)


# ---------------------------
# Creative studio transcript (session scope)
# ---------------------------


async def load_studio_chat() -> Optional[List[models.ChatMessage]]:
    """Saved studio transcript, or None when nothing was saved this session."""
    data = await _read_json(STUDIO_CHAT_KEY, lambda: None, scope="session")
    if not isinstance(data, list):
        return None
    try:
        return [models.ChatMessage.from_dict(m) for m in data]
    except (KeyError, TypeError, ValueError) as e:
        _logger.error(f"Discarding unreadable studio transcript: {e}")
        return None


async def save_studio_chat(messages: List[models.ChatMessage]) -> None:
    await _write_json(
        STUDIO_CHAT_KEY, [m.to_dict() for m in messages], scope="session"
    )


async def clear_studio_chat() -> None:
    await database.remove_item(STUDIO_CHAT_KEY, scope="session")
