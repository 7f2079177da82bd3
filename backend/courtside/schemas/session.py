"""Session Schemas — bookable sessions of a product, with their court.

Invariants:
    - Session.id is the session_id passed to create-checkout
    - price_cents is the stored session price (before membership discount)
    - court is present only when the row was selected with the courts join
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from courtside.core.domain_types import SessionStatus


class Court(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    name: str
    surface_type: str | None = None
    is_available: bool = True
    sort_order: int | None = None


class Session(BaseModel):
    """One scheduled occurrence of a product."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    product_id: str
    court_id: str | None = None
    starts_at: datetime
    ends_at: datetime
    price_cents: int = Field(ge=0)
    spots_total: int = Field(0, ge=0)
    spots_remaining: int = Field(0, ge=0)
    status: SessionStatus
    court: Court | None = None

    @property
    def is_bookable(self) -> bool:
        return self.status is SessionStatus.OPEN and self.spots_remaining > 0
