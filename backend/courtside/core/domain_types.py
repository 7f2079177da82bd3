"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - SessionId, MembershipId, ItemId wrap server-issued string ids
    - Cents is always an integer amount in the smallest currency unit
    - Product types are a closed set; every other filter token is a tag
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON request bodies without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

SessionId = NewType("SessionId", str)
MembershipId = NewType("MembershipId", str)
ItemId = NewType("ItemId", str)
FeedCursor = NewType("FeedCursor", str)


# ─── Value Types ─────────────────────────────────────────────────

Cents = NewType("Cents", int)                   # >= 0 for display prices
DiscountPercent = NewType("DiscountPercent", float)  # 0–100


# ─── Enums ───────────────────────────────────────────────────────

class FeedMode(str, Enum):
    """How a feed request is cached: one page, or part of an infinite chain."""
    SINGLE = "single"
    INFINITE = "infinite"


class ProductType(str, Enum):
    """Product kinds the feed endpoint filters on by `type` column."""
    COURT_RENTAL = "court_rental"
    OPEN_PLAY = "open_play"
    COACHING = "coaching"
    CLINIC = "clinic"
    TOURNAMENT = "tournament"
    COMMUNITY_DAY = "community_day"
    FOOD_ADDON = "food_addon"


class SessionStatus(str, Enum):
    """Lifecycle of a bookable session; only open and full are upcoming."""
    OPEN = "open"
    FULL = "full"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InteractionType(str, Enum):
    """Feed interaction kinds logged for personalization."""
    VIEW = "view"
    TAP = "tap"
    BOOK = "book"
    DISMISS = "dismiss"


class MembershipTier(str, Enum):
    """Subscription tiers accepted by create-subscription."""
    LOCAL_PLAYER = "local_player"
    SAND_REGULAR = "sand_regular"
    FOUNDERS = "founders"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELLED = "cancelled"


PRODUCT_TYPE_VALUES: frozenset[str] = frozenset(t.value for t in ProductType)


def is_product_type(token: str) -> bool:
    """True when a filter token selects a product type rather than a tag."""
    return token in PRODUCT_TYPE_VALUES
