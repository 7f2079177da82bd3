"""Membership Schemas — active membership rows returned by the REST API."""

from pydantic import BaseModel, ConfigDict, Field

from courtside.core.domain_types import MembershipStatus, MembershipTier


class Membership(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    tier: MembershipTier
    status: MembershipStatus
    discount_percent: int = Field(ge=0, le=100)
    priority_booking_hours: int = 0
    guest_passes_remaining: int = 0
    current_period_end: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status is MembershipStatus.ACTIVE
