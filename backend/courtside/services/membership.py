"""Membership API — active membership lookup, tier catalogue, and cancellation.

Invariants:
    - get_my_membership returns None when the user has no active membership
    - The tier catalogue is static and never fetched
    - Remote failures surface as FetchFailedError (reads) or SubscriptionFailedError (cancel)
"""

import logging

from pydantic import ValidationError

from courtside.core.errors import (
    FetchFailedError, MalformedResponseError, RemoteFunctionError,
    SubscriptionFailedError,
)
from courtside.core.pricing import MEMBERSHIP_TIERS, MembershipTierConfig
from courtside.core.remote_protocols import RemoteChannel
from courtside.schemas.membership import Membership

logger = logging.getLogger(__name__)

CANCEL_FUNCTION = "cancel-membership"


class MembershipApi:

    def __init__(self, channel: RemoteChannel):
        self.channel = channel

    async def get_my_membership(self) -> Membership | None:
        try:
            rows = await self.channel.select("memberships", {
                "select": "*",
                "status": "in.(active)",
                "order": "created_at.desc",
                "limit": "1",
            })
        except RemoteFunctionError as e:
            raise FetchFailedError(e, context=e.context) from e
        if not rows:
            return None
        try:
            return Membership.model_validate(rows[0])
        except ValidationError as e:
            raise MalformedResponseError("Malformed membership row") from e

    async def get_membership_id(self) -> str | None:
        """Id to pass to create_checkout, or None without an active membership."""
        membership = await self.get_my_membership()
        return membership.id if membership else None

    def get_membership_tiers(self) -> tuple[MembershipTierConfig, ...]:
        return MEMBERSHIP_TIERS

    async def cancel_membership(self) -> Membership:
        """Cancel at period end; returns the updated membership."""
        try:
            payload = await self.channel.invoke(CANCEL_FUNCTION, {})
        except RemoteFunctionError as e:
            raise SubscriptionFailedError(
                e.remote_message or e.message, context=e.context,
            ) from e
        try:
            membership = Membership.model_validate(payload)
        except ValidationError as e:
            raise MalformedResponseError("Malformed membership response") from e
        logger.info("Membership cancelled", extra={"function_name": CANCEL_FUNCTION})
        return membership
