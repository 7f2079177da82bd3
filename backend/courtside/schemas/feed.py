"""Feed Schemas — Pydantic models validating generate-feed responses.

Invariants:
    - FeedItem requires id and a non-negative integer price_cents; other fields pass through
    - price_cents falls back to base_price_cents, then the first session's price_cents
    - FeedPage.items keeps server rank order
    - has_more=True requires a non-empty next_cursor
    - has_more=False never carries a cursor (a stray cursor is dropped)

Design Decisions:
    - extra="allow" on FeedItem: domain fields stay opaque to the core
    - model_validator over a custom parser: schema errors surface as ValidationError,
      which the feed API maps to MalformedResponseError
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)


class FeedItem(BaseModel):
    """One ranked product/session record."""
    model_config = ConfigDict(extra="allow", frozen=True)

    id: str = Field(min_length=1)
    price_cents: int = Field(ge=0, strict=True)
    relevance_score: float | None = None

    @model_validator(mode="before")
    @classmethod
    def derive_price(cls, data: Any) -> Any:
        """Products carry base_price_cents; fall back to the first session's price."""
        if not isinstance(data, dict) or data.get("price_cents") is not None:
            return data
        price = data.get("base_price_cents")
        if price is None:
            sessions = data.get("sessions")
            if isinstance(sessions, list) and sessions:
                first = sessions[0]
            else:
                first = data.get("nextSession")
            if isinstance(first, dict):
                price = first.get("price_cents")
        if price is None:
            return data
        return {**data, "price_cents": price}

    @property
    def extra_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class FeedPage(BaseModel):
    """One page of the feed with its resume cursor."""
    model_config = ConfigDict(frozen=True)

    items: list[FeedItem]
    has_more: bool
    next_cursor: str | None = None

    @model_validator(mode="before")
    @classmethod
    def drop_stray_cursor(cls, data: Any) -> Any:
        if (
            isinstance(data, dict)
            and data.get("has_more") is False
            and data.get("next_cursor") is not None
        ):
            logger.warning(
                "Dropping next_cursor on a page with has_more=false",
            )
            data = {**data, "next_cursor": None}
        return data

    @model_validator(mode="after")
    def cursor_required_when_more(self) -> "FeedPage":
        if self.has_more and not self.next_cursor:
            raise ValueError("next_cursor is required when has_more is true")
        return self

    @property
    def is_last(self) -> bool:
        return not self.has_more


class FeedRequest(BaseModel):
    """Body sent to generate-feed."""
    filters: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    search: str = ""
    cursor: str | None = None
    limit: int = Field(20, ge=1, le=50)

    def to_body(self) -> dict:
        return self.model_dump(exclude_none=True)
