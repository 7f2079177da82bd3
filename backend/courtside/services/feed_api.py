"""Feed API — typed access to generate-feed, product detail, sessions, and interaction logging.

Invariants:
    - get_feed raises only FetchFailedError or MalformedResponseError
    - Request filters are sent sorted, split into product types and tags
    - Pages are returned exactly in server rank order
"""

import logging
from datetime import datetime, timezone

from pydantic import TypeAdapter, ValidationError

from courtside.core.domain_types import InteractionType, SessionStatus
from courtside.core.errors import (
    ErrorContext, FetchFailedError, MalformedResponseError,
    RemoteFunctionError, ResourceNotFoundError,
)
from courtside.core.filter_state import FilterCriteria
from courtside.core.remote_protocols import RemoteChannel
from courtside.schemas.feed import FeedItem, FeedPage, FeedRequest
from courtside.schemas.session import Session

logger = logging.getLogger(__name__)

FEED_FUNCTION = "generate-feed"
UPCOMING_STATUSES = (SessionStatus.OPEN, SessionStatus.FULL)

_SESSION_LIST = TypeAdapter(list[Session])


def _first_error_field(exc: ValidationError) -> str | None:
    errors = exc.errors()
    if not errors:
        return None
    return ".".join(str(loc) for loc in errors[0]["loc"]) or None


def build_feed_request(
    criteria: FilterCriteria, cursor: str | None, limit: int,
) -> FeedRequest:
    return FeedRequest(
        filters=criteria.sorted_filters,
        types=criteria.type_filters,
        tags=criteria.tag_filters,
        search=criteria.search_query,
        cursor=cursor,
        limit=limit,
    )


class FeedApi:
    """Remote feed endpoints behind the shared channel."""

    def __init__(self, channel: RemoteChannel, page_size: int = 20):
        self.channel = channel
        self.page_size = page_size

    async def get_feed(
        self, criteria: FilterCriteria, cursor: str | None = None,
    ) -> FeedPage:
        request = build_feed_request(criteria, cursor, self.page_size)
        try:
            payload = await self.channel.invoke(FEED_FUNCTION, request.to_body())
        except RemoteFunctionError as e:
            error = FetchFailedError(e, context=e.context)
            logger.warning(
                f"Feed request failed ({e.error_type})",
                extra={
                    "function_name": FEED_FUNCTION,
                    "error_code": error.code,
                    "status_code": e.context.status_code,
                },
            )
            raise error from e

        context = ErrorContext(function_name=FEED_FUNCTION)
        if not isinstance(payload, dict):
            raise MalformedResponseError(
                "Feed response is not an object", context=context,
            )
        try:
            page = FeedPage.model_validate(payload)
        except ValidationError as e:
            field = _first_error_field(e)
            logger.warning(
                f"Malformed feed response at {field}",
                extra={"function_name": FEED_FUNCTION, "error_code": "MALFORMED_RESPONSE"},
            )
            raise MalformedResponseError(
                f"Malformed feed response: {e.error_count()} error(s), first at {field}",
                field=field, context=context,
            ) from e
        logger.debug(
            "Feed page received",
            extra={"function_name": FEED_FUNCTION, "item_count": len(page.items)},
        )
        return page

    async def get_product(self, product_id: str) -> FeedItem:
        try:
            rows = await self.channel.select(
                "products", {"select": "*", "id": f"eq.{product_id}"},
            )
        except RemoteFunctionError as e:
            raise FetchFailedError(e, context=e.context) from e
        if not rows:
            raise ResourceNotFoundError("Product", product_id)
        try:
            return FeedItem.model_validate(rows[0])
        except ValidationError as e:
            raise MalformedResponseError(
                f"Malformed product row for {product_id}",
                field=_first_error_field(e),
            ) from e

    async def get_sessions_for_product(
        self, product_id: str, now: datetime | None = None,
    ) -> list[Session]:
        """Upcoming open or full sessions with their court, soonest first."""
        now = now or datetime.now(timezone.utc)
        try:
            rows = await self.channel.select("sessions", {
                "select": "*,court:courts(*)",
                "product_id": f"eq.{product_id}",
                "starts_at": f"gte.{now.isoformat()}",
                "status": f"in.({','.join(s.value for s in UPCOMING_STATUSES)})",
                "order": "starts_at.asc",
            })
        except RemoteFunctionError as e:
            raise FetchFailedError(e, context=e.context) from e
        try:
            return _SESSION_LIST.validate_python(rows)
        except ValidationError as e:
            raise MalformedResponseError(
                f"Malformed session rows for {product_id}",
                field=_first_error_field(e),
            ) from e

    async def log_interaction(
        self, product_id: str, interaction_type: InteractionType | str,
    ) -> None:
        """Record a view/tap/book/dismiss for feed personalization."""
        interaction = InteractionType(interaction_type)
        try:
            await self.channel.insert("feed_interactions", {
                "product_id": product_id,
                "interaction_type": interaction.value,
                "user_id": self.channel.user_id or "",
            })
        except RemoteFunctionError as e:
            raise FetchFailedError(e, context=e.context) from e
