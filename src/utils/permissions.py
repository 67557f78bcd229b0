from enum import Enum
from typing import Dict, FrozenSet, Optional

from db.models import User, UserRole


class Capability(str, Enum):
    SHOP = "shop"  # place orders, keep a wishlist
    MANAGE_CATALOG = "manage_catalog"
    MANAGE_ORDERS = "manage_orders"
    MANAGE_USERS = "manage_users"
    MANAGE_INBOX = "manage_inbox"
    VIEW_ANALYTICS = "view_analytics"


ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.CUSTOMER: frozenset({Capability.SHOP}),
    UserRole.ADMIN: frozenset(Capability),
}


def capabilities_for(actor: Optional[User]) -> FrozenSet[Capability]:
    """Capabilities granted to actor; nothing when nobody is logged in."""
    if actor is None:
        return frozenset()
    return ROLE_CAPABILITIES.get(actor.role, frozenset())


def authorize(capability: Capability, actor: Optional[User]) -> bool:
    return capability in capabilities_for(actor)
