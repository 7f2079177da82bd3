"""Checkout Orchestrator — turns purchase taps into remote payment/subscription intents.

Invariants:
    - The remote response is the authoritative amount; local pricing is estimate only
    - membership_id is always sent (null when absent)
    - Every attempt carries an Idempotency-Key; retries reuse the failed attempt's key
    - Failures raise CheckoutFailedError / SubscriptionFailedError with the remote message verbatim
    - Invalid arguments raise the same error types before any network call
    - No intent is produced on failure; nothing is held between calls

Design Decisions:
    - Key generated per attempt when the caller passes none; the key rides on the error
      so the caller can retry the same logical purchase without a duplicate intent
"""

import logging
import uuid
from collections.abc import Callable

from pydantic import ValidationError

from courtside.core.domain_types import MembershipTier
from courtside.core.errors import (
    CheckoutFailedError, CourtsideError, ErrorContext, RemoteFunctionError,
    SubscriptionFailedError,
)
from courtside.core.pricing import PricingQuote, quote_discount, tier_discount_percent
from courtside.core.remote_protocols import FunctionInvoker
from courtside.schemas.checkout import (
    CheckoutIntent, CheckoutRequest, CheckoutResponse,
    SubscriptionIntent, SubscriptionRequest, SubscriptionResponse,
)

logger = logging.getLogger(__name__)

CHECKOUT_FUNCTION = "create-checkout"
SUBSCRIPTION_FUNCTION = "create-subscription"


def new_idempotency_key() -> str:
    return uuid.uuid4().hex


def _log_failure(
    function_name: str, error: CourtsideError, cause: RemoteFunctionError,
) -> None:
    logger.warning(
        f"{function_name} failed ({cause.error_type}): {error.message}",
        extra={
            "function_name": function_name,
            "error_code": error.code,
            "status_code": cause.context.status_code,
            "idempotency_key": getattr(error, "idempotency_key", None),
        },
    )


class CheckoutOrchestrator:
    """Stateless bridge between purchase actions and the commerce functions."""

    def __init__(
        self,
        invoker: FunctionInvoker,
        key_factory: Callable[[], str] = new_idempotency_key,
    ):
        self.invoker = invoker
        self.key_factory = key_factory

    def estimate_checkout(
        self, price_cents: int, tier: MembershipTier | str | None = None,
    ) -> PricingQuote:
        """Display estimate of a member price; the remote total may differ."""
        return quote_discount(price_cents, tier_discount_percent(tier))

    async def create_checkout(
        self,
        session_id: str,
        membership_id: str | None = None,
        *,
        idempotency_key: str | None = None,
        expected_amount_cents: int | None = None,
    ) -> CheckoutIntent:
        key = idempotency_key or self.key_factory()
        try:
            request = CheckoutRequest(session_id=session_id, membership_id=membership_id)
        except ValidationError as e:
            raise CheckoutFailedError(
                "session_id is required",
                idempotency_key=key,
                context=ErrorContext(function_name=CHECKOUT_FUNCTION),
            ) from e
        try:
            payload = await self.invoker.invoke(
                CHECKOUT_FUNCTION, request.to_body(), idempotency_key=key,
            )
        except RemoteFunctionError as e:
            error = CheckoutFailedError(
                e.remote_message or e.message, idempotency_key=key, context=e.context,
            )
            _log_failure(CHECKOUT_FUNCTION, error, e)
            raise error from e

        try:
            response = CheckoutResponse.model_validate(payload)
        except ValidationError as e:
            raise CheckoutFailedError(
                "Checkout response was incomplete",
                idempotency_key=key,
                context=ErrorContext(function_name=CHECKOUT_FUNCTION),
            ) from e

        intent = CheckoutIntent.from_response(response, key)
        if expected_amount_cents is not None and expected_amount_cents != intent.amount_cents:
            logger.warning(
                f"Checkout total {intent.amount_cents} differs from estimate "
                f"{expected_amount_cents}; using remote total",
                extra={"function_name": CHECKOUT_FUNCTION, "idempotency_key": key},
            )
        logger.info(
            "Checkout intent created",
            extra={"function_name": CHECKOUT_FUNCTION, "idempotency_key": key},
        )
        return intent

    async def create_subscription(
        self,
        tier: MembershipTier | str,
        *,
        idempotency_key: str | None = None,
    ) -> SubscriptionIntent:
        key = idempotency_key or self.key_factory()
        tier_value = tier.value if isinstance(tier, MembershipTier) else tier
        try:
            request = SubscriptionRequest(tier=tier_value)
        except ValidationError as e:
            raise SubscriptionFailedError(
                "tier is required",
                idempotency_key=key,
                context=ErrorContext(function_name=SUBSCRIPTION_FUNCTION),
            ) from e
        try:
            payload = await self.invoker.invoke(
                SUBSCRIPTION_FUNCTION, request.to_body(), idempotency_key=key,
            )
        except RemoteFunctionError as e:
            error = SubscriptionFailedError(
                e.remote_message or e.message, idempotency_key=key, context=e.context,
            )
            _log_failure(SUBSCRIPTION_FUNCTION, error, e)
            raise error from e

        try:
            response = SubscriptionResponse.model_validate(payload)
        except ValidationError as e:
            raise SubscriptionFailedError(
                "Subscription response was incomplete",
                idempotency_key=key,
                context=ErrorContext(function_name=SUBSCRIPTION_FUNCTION),
            ) from e

        logger.info(
            "Subscription intent created",
            extra={"function_name": SUBSCRIPTION_FUNCTION, "idempotency_key": key},
        )
        return SubscriptionIntent.from_response(response, key)
