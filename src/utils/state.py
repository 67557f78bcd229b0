from __future__ import annotations

import dataclasses
import random
from dataclasses import dataclass
from typing import List, Optional, Union

import db.crud as crud
from db.models import (
    AnalyticsMetric,
    CartItem,
    Message,
    Notification,
    NotificationType,
    Order,
    OrderStatus,
    Product,
    Review,
    User,
    UserRole,
)
from utils.analytics import synthesize_metric
from utils.config import settings
from utils.logger import get_logger
from utils.notifications import NotificationCenter
from utils.permissions import Capability, authorize
from utils.pure import avatar_url, is_valid_email, new_id, now_iso
from utils.scheduler import PeriodicTask

_logger = get_logger(__name__)

DEFAULT_PASSWORD = "password123"
DEFAULT_BIO = "New member of the Artisha community."


@dataclass
class Session:
    """
    Who is logged in on this device.

    Lifecycle is none -> active(user) -> none. The user record is mirrored
    to the session marker in storage so a restart resumes the session.
    """

    user: Optional[User] = None

    @property
    def active(self) -> bool:
        return self.user is not None

    @property
    def uid(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def role(self) -> Optional[UserRole]:
        return self.user.role if self.user else None

    async def start(self, user: User) -> None:
        """Make user the active session, or refresh the stored record of it."""
        self.user = user
        await crud.save_session_marker(user)

    async def end(self) -> None:
        self.user = None
        await crud.clear_session_marker()

    async def restore(self) -> Optional[User]:
        self.user = await crud.load_session_marker()
        return self.user


class AppStore:
    """
    Single source of truth for the UI.

    Every mutation goes through one of the methods below: validate, update
    the in-memory copy, write it through to storage, then notify. Methods
    report failure by returning False/None after raising an error notice.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.session = Session()
        self.notices = NotificationCenter()

        self.users: List[User] = []
        self.products: List[Product] = []
        self.cart: List[CartItem] = []  # transient, never persisted
        self.orders: List[Order] = []
        self.reviews: List[Review] = []
        self.messages: List[Message] = []
        self.wishlist: List[str] = []  # product ids of the active user
        self.analytics: List[AnalyticsMetric] = []
        self.new_order_count = 0

        self._rng = rng or random.Random()
        self._ticker: Optional[PeriodicTask] = None

    # ---------------------------
    # Bootstrap & teardown
    # ---------------------------

    async def bootstrap(self) -> None:
        await crud.init()
        self.products = await crud.get_all_products()
        self.orders = await crud.get_all_orders()
        self.users = await crud.get_all_users()
        self.analytics = await crud.get_recent_analytics()
        self.reviews = await crud.get_all_reviews()
        self.messages = await crud.get_all_messages()

        user = await self.session.restore()
        if user is not None:
            _logger.info(f"Restored session for {user.email}")
            self.wishlist = await crud.get_user_wishlist(user.id)

    def start_analytics(self, interval: Optional[float] = None) -> None:
        if self._ticker is not None and self._ticker.running:
            return
        self._ticker = PeriodicTask(
            interval or settings.analytics_interval,
            self.record_analytics,
            name="analytics",
        )
        self._ticker.start()

    async def close(self) -> None:
        if self._ticker is not None:
            await self._ticker.stop()
            self._ticker = None

    # ---------------------------
    # Derived views
    # ---------------------------

    @property
    def user(self) -> Optional[User]:
        return self.session.user

    @property
    def user_orders(self) -> List[Order]:
        if self.user is None:
            return []
        return [o for o in self.orders if o.user_id == self.user.id]

    @property
    def wishlist_products(self) -> List[Product]:
        return [p for p in self.products if p.id in self.wishlist]

    @property
    def cart_total(self) -> int:
        return sum(item.line_total for item in self.cart)

    @property
    def cart_count(self) -> int:
        return sum(item.quantity for item in self.cart)

    @property
    def revenue(self) -> int:
        return sum(o.total for o in self.orders)

    @property
    def unread_message_count(self) -> int:
        return sum(1 for m in self.messages if not m.read)

    @property
    def notifications(self) -> List[Notification]:
        return self.notices.notifications

    @property
    def alerts(self) -> List[Notification]:
        return self.notices.alerts

    def get_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def product_reviews(self, product_id: str) -> List[Review]:
        return [r for r in self.reviews if r.product_id == product_id]

    def can(self, capability: Capability) -> bool:
        return authorize(capability, self.user)

    # ---------------------------
    # Notifications
    # ---------------------------

    def notify(self, type: NotificationType, message: str) -> Notification:
        return self.notices.notify(type, message)

    def remove_notification(self, notification_id: str) -> None:
        self.notices.remove_notification(notification_id)

    def clear_alerts(self) -> None:
        self.notices.clear_alerts()

    def _require(self, capability: Capability) -> bool:
        """Capability gate, evaluated once at the top of an operation."""
        if self.can(capability):
            return True
        if self.user is None:
            self.notify("error", "Please login first.")
        else:
            _logger.warning(f"{self.user.email} denied {capability.value}")
            self.notify("error", "You are not allowed to do that.")
        return False

    # ---------------------------
    # Auth & accounts
    # ---------------------------

    async def _begin_session(self, user: User) -> None:
        # the studio transcript belongs to the previous session
        await crud.clear_studio_chat()
        await self.session.start(user)
        self.wishlist = await crud.get_user_wishlist(user.id)

    async def login(
        self,
        email: str,
        role: UserRole = UserRole.CUSTOMER,
        password: Optional[str] = None,
    ) -> bool:
        """
        Log in as the user registered under email.

        A password is only checked when both the caller supplies one and the
        account has one. role is what the login form was in, it does not
        restrict which account matches.
        """
        found = await crud.find_user_by_email(email)
        if found is None:
            self.notify("error", "User not found. Please register.")
            return False
        if password and found.password and password != found.password:
            self.notify("error", "Invalid password.")
            return False

        if found.role != role:
            _logger.debug(f"{email} logged in as {found.role.value} via {role.value} form")
        await self._begin_session(found)
        self.notify("success", f"Welcome back, {found.name}!")
        return True

    async def register(
        self,
        name: str,
        email: str,
        role: UserRole = UserRole.CUSTOMER,
        password: Optional[str] = None,
    ) -> bool:
        if not name.strip():
            self.notify("error", "Name is required for registration.")
            return False
        if not is_valid_email(email):
            self.notify("error", "Please enter a valid email address.")
            return False
        if await crud.find_user_by_email(email) is not None:
            self.notify("error", "Email already registered.")
            return False

        user = User(
            id=new_id("u"),
            name=name,
            email=email,
            role=role,
            password=password or DEFAULT_PASSWORD,
            avatar=avatar_url(name),
            bio=DEFAULT_BIO,
            join_date=now_iso(),
        )
        await crud.add_user(user)
        self.users = await crud.get_all_users()
        await self._begin_session(user)
        self.notify("success", f"Account created successfully! Welcome, {name}.")
        return True

    async def logout(self) -> None:
        await self.session.end()
        self.wishlist = []
        await crud.clear_studio_chat()
        self.notify("info", "You have been logged out.")

    async def update_profile(self, updated: User) -> bool:
        actor = self.user
        if actor is None:
            self.notify("error", "Please login first.")
            return False
        if updated.id != actor.id and not self._require(Capability.MANAGE_USERS):
            return False
        stored = next((u for u in self.users if u.id == updated.id), None)
        if (
            stored is not None
            and updated.role != stored.role
            and not self._require(Capability.MANAGE_USERS)
        ):
            return False
        if not is_valid_email(updated.email):
            self.notify("error", "Please enter a valid email address.")
            return False
        owner = await crud.find_user_by_email(updated.email)
        if owner is not None and owner.id != updated.id:
            self.notify("error", "Email already registered.")
            return False

        if not await crud.update_user(updated):
            self.notify("error", "User not found.")
            return False
        self.users = await crud.get_all_users()
        if updated.id == actor.id:
            merged = next(u for u in self.users if u.id == actor.id)
            await self.session.start(merged)
        self.notify("success", "Profile updated successfully.")
        return True

    async def change_password(
        self, current: str, new: str, confirm: Optional[str] = None
    ) -> bool:
        user = self.user
        if user is None:
            self.notify("error", "Please login first.")
            return False
        if confirm is not None and confirm != new:
            self.notify("error", "Passwords don't match.")
            return False
        if user.password and current != user.password:
            self.notify("error", "Current password incorrect.")
            return False

        updated = dataclasses.replace(user, password=new)
        await crud.update_user(updated)
        self.users = await crud.get_all_users()
        await self.session.start(updated)
        self.notify("success", "Password changed successfully.")
        return True

    async def reset_password(self, email: str) -> None:
        """
        Pretend to mail a reset link. The notice reads the same whether or
        not the account exists, so it cannot be used to probe for accounts.
        """
        found = await crud.find_user_by_email(email)
        _logger.info(f"Password reset requested for {email} (known={found is not None})")
        self.notify("info", f"If an account exists for {email}, a reset link has been sent.")

    async def delete_user(self, user_id: str) -> bool:
        if not self._require(Capability.MANAGE_USERS):
            return False
        if user_id == self.session.uid:
            self.notify("error", "You cannot delete your own account.")
            return False
        await crud.delete_user(user_id)
        self.users = await crud.get_all_users()
        self.notify("info", "User deleted.")
        return True

    # ---------------------------
    # Catalog
    # ---------------------------

    async def add_product(self, product: Product) -> bool:
        if not self._require(Capability.MANAGE_CATALOG):
            return False
        if self.get_product(product.id) is not None:
            self.notify("error", f"A product with id {product.id} already exists.")
            return False
        self.products = [*self.products, product]
        await crud.save_products(self.products)
        self.notify("success", "Product added successfully.")
        return True

    async def update_product(self, product: Product) -> bool:
        if not self._require(Capability.MANAGE_CATALOG):
            return False
        if self.get_product(product.id) is None:
            self.notify("error", "Product not found.")
            return False
        self.products = [product if p.id == product.id else p for p in self.products]
        await crud.save_products(self.products)
        self.notify("success", "Product updated successfully.")
        return True

    async def remove_product(self, product_id: str) -> bool:
        if not self._require(Capability.MANAGE_CATALOG):
            return False
        self.products = [p for p in self.products if p.id != product_id]
        await crud.save_products(self.products)
        self.notify("success", "Product removed.")
        return True

    # ---------------------------
    # Cart & orders
    # ---------------------------

    def add_to_cart(self, product: Product) -> CartItem:
        """Insert product with quantity 1, or bump the quantity of its line."""
        for i, item in enumerate(self.cart):
            if item.id == product.id:
                line = dataclasses.replace(item, quantity=item.quantity + 1)
                self.cart[i] = line
                break
        else:
            line = CartItem(product=product, quantity=1)
            self.cart.append(line)
        self.notify("success", f"{product.title} added to cart!")
        return line

    def remove_from_cart(self, product_id: str) -> None:
        self.cart = [item for item in self.cart if item.id != product_id]
        self.notify("info", "Item removed from cart.")

    def clear_cart(self) -> None:
        self.cart = []

    async def place_order(self) -> Optional[Order]:
        if not self._require(Capability.SHOP):
            return None
        if not self.cart:
            self.notify("warning", "Your cart is empty.")
            return None

        order = Order(
            id=new_id("ord"),
            user_id=self.user.id,
            items=list(self.cart),
            total=self.cart_total,
            status=OrderStatus.PENDING,
            date=now_iso(),
        )
        await crud.add_order(order)
        self.orders = await crud.get_all_orders()
        self.new_order_count += 1
        self.clear_cart()
        self.notify(
            "success", "Order placed successfully! We will notify you when it ships."
        )
        return order

    async def update_order_status(
        self, order_id: str, status: Union[OrderStatus, str]
    ) -> bool:
        """
        Set an order's status. Any known status is accepted, including a
        step backwards, which is logged since it is usually a correction.
        """
        if not self._require(Capability.MANAGE_ORDERS):
            return False
        try:
            status = OrderStatus(status)
        except ValueError:
            self.notify("error", f"Unknown order status: {status}.")
            return False
        order = next((o for o in self.orders if o.id == order_id), None)
        if order is None:
            self.notify("error", "Order not found.")
            return False
        if status.rank < order.status.rank:
            _logger.warning(
                f"Order {order_id} moved back from {order.status.value} to {status.value}"
            )

        await crud.update_order(dataclasses.replace(order, status=status))
        self.orders = await crud.get_all_orders()
        self.notify("success", f"Order #{order_id} updated to {status.value}.")
        self.notices.push_alert(
            "info",
            f"Update for Order #{order_id}: Your order status is now {status.value}.",
        )
        return True

    def clear_new_order_count(self) -> None:
        self.new_order_count = 0

    # ---------------------------
    # Reviews, inbox, wishlist
    # ---------------------------

    async def add_review(self, review: Review) -> bool:
        if not 1 <= review.rating <= 5:
            self.notify("error", "Rating must be between 1 and 5.")
            return False
        await crud.add_review(review)
        self.reviews = await crud.get_all_reviews()
        self.notify("success", "Review submitted successfully.")
        return True

    async def send_message(self, message: Message) -> bool:
        if not is_valid_email(message.email):
            self.notify("error", "Please enter a valid email address.")
            return False
        await crud.add_message(message)
        self.messages = await crud.get_all_messages()
        self.notify(
            "success", "Message sent successfully. We will get back to you soon."
        )
        return True

    async def delete_message(self, message_id: str) -> bool:
        if not self._require(Capability.MANAGE_INBOX):
            return False
        await crud.delete_message(message_id)
        self.messages = await crud.get_all_messages()
        self.notify("info", "Message deleted.")
        return True

    async def mark_message_read(self, message_id: str) -> bool:
        if not self._require(Capability.MANAGE_INBOX):
            return False
        found = await crud.mark_message_read(message_id)
        self.messages = await crud.get_all_messages()
        return found

    async def toggle_wishlist(self, product_id: str) -> Optional[bool]:
        """True if now wishlisted, False if removed, None without a session."""
        if self.user is None:
            self.notify("info", "Please login to use Wishlist.")
            return None
        added = await crud.toggle_wishlist(self.user.id, product_id)
        self.wishlist = await crud.get_user_wishlist(self.user.id)
        if added:
            self.notify("success", "Added to wishlist.")
        else:
            self.notify("info", "Removed from wishlist.")
        return added

    # ---------------------------
    # Analytics
    # ---------------------------

    async def record_analytics(
        self, metric: Optional[AnalyticsMetric] = None
    ) -> AnalyticsMetric:
        metric = metric or synthesize_metric(self._rng)
        await crud.log_analytics(metric)
        self.analytics = [*self.analytics, metric][-crud.ANALYTICS_CAP :]
        return metric
