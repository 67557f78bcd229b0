# provide dataclass models, plus their json (de)serialisation
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Literal, Optional


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"

    @property
    def rank(self) -> int:
        return list(OrderStatus).index(self)


NotificationType = Literal["success", "info", "error", "warning"]
NOTIFICATION_TYPES = ("success", "info", "error", "warning")


def _known(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only keys that are fields of cls, older records may carry extras."""
    names = {f.name for f in dataclasses.fields(cls)}
    return {k: v for k, v in data.items() if k in names}


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str
    role: UserRole = UserRole.CUSTOMER
    avatar: Optional[str] = None
    bio: Optional[str] = None
    join_date: Optional[str] = None
    password: Optional[str] = None  # plaintext, mock auth only

    def to_dict(self) -> Dict[str, Any]:
        d = dataclasses.asdict(self)
        d["role"] = self.role.value
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> User:
        d = _known(cls, data)
        d["role"] = UserRole(d.get("role", UserRole.CUSTOMER))
        return cls(**d)


@dataclass(frozen=True)
class Product:
    id: str
    title: str
    description: str
    price: int  # LKR
    category: str
    image_url: str = ""
    stock: int = 0
    tags: List[str] = field(default_factory=list)
    ai_pricing_details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = dataclasses.asdict(self)
        d["tags"] = list(self.tags)
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Product:
        d = _known(cls, data)
        d["tags"] = list(d.get("tags") or [])
        return cls(**d)


@dataclass(frozen=True)
class CartItem:
    product: Product
    quantity: int = 1

    @property
    def id(self) -> str:
        return self.product.id

    @property
    def line_total(self) -> int:
        return self.product.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {**self.product.to_dict(), "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CartItem:
        return cls(product=Product.from_dict(data), quantity=int(data["quantity"]))


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    items: List[CartItem]
    total: int
    status: OrderStatus
    date: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "status": self.status.value,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Order:
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            items=[CartItem.from_dict(i) for i in data.get("items", [])],
            total=int(data["total"]),
            status=OrderStatus(data.get("status", OrderStatus.PENDING)),
            date=data["date"],
        )


@dataclass(frozen=True)
class Review:
    id: str
    product_id: str
    user_id: str
    user_name: str
    rating: int
    comment: str
    date: str

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Review:
        return cls(**_known(cls, data))


@dataclass(frozen=True)
class Message:
    """A contact-form message sent to the shop inbox."""

    id: str
    name: str
    email: str
    subject: str
    message: str
    date: str
    read: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Message:
        return cls(**_known(cls, data))


@dataclass(frozen=True)
class WishlistItem:
    user_id: str
    product_id: str
    date: str

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> WishlistItem:
        return cls(**_known(cls, data))


@dataclass(frozen=True)
class AnalyticsMetric:
    timestamp: int  # epoch millis
    active_users: int
    page_views: int
    recent_action: str

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AnalyticsMetric:
        return cls(**_known(cls, data))


@dataclass(frozen=True)
class Notification:
    id: str
    type: NotificationType
    message: str


@dataclass(frozen=True)
class ChatMessage:
    id: str
    role: Literal["user", "model"]
    text: str
    timestamp: int  # epoch millis
    image: Optional[str] = None  # data uri of a generated visualisation

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ChatMessage:
        return cls(**_known(cls, data))
