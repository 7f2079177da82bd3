"""Checkout Schemas — request bodies and intents for the commerce functions.

Invariants:
    - CheckoutRequest always serializes membership_id (None → null, never omitted)
    - Intents are built only from successful remote responses
    - amount_cents / discount_cents are the remote, authoritative totals
    - idempotency_key is the key sent with the request that produced the intent
"""

from pydantic import BaseModel, ConfigDict, Field


class CheckoutRequest(BaseModel):
    session_id: str = Field(min_length=1)
    membership_id: str | None = None

    def to_body(self) -> dict:
        return {"session_id": self.session_id, "membership_id": self.membership_id}


class SubscriptionRequest(BaseModel):
    tier: str = Field(min_length=1)

    def to_body(self) -> dict:
        return {"tier": self.tier}


class CheckoutResponse(BaseModel):
    """Raw create-checkout payload."""
    payment_intent_id: str
    client_secret: str
    amount_cents: int = Field(ge=0)
    discount_cents: int = Field(0, ge=0)
    tier: str | None = None


class SubscriptionResponse(BaseModel):
    """Raw create-subscription payload."""
    subscription_id: str
    client_secret: str
    tier: str


class CheckoutIntent(BaseModel):
    """Payment intent relayed to the confirmation collaborator."""
    model_config = ConfigDict(frozen=True)

    intent_id: str
    client_secret: str
    amount_cents: int
    discount_cents: int
    tier: str | None = None
    idempotency_key: str

    @classmethod
    def from_response(
        cls, response: CheckoutResponse, idempotency_key: str,
    ) -> "CheckoutIntent":
        return cls(
            intent_id=response.payment_intent_id,
            client_secret=response.client_secret,
            amount_cents=response.amount_cents,
            discount_cents=response.discount_cents,
            tier=response.tier,
            idempotency_key=idempotency_key,
        )

    @property
    def subtotal_cents(self) -> int:
        return self.amount_cents + self.discount_cents


class SubscriptionIntent(BaseModel):
    model_config = ConfigDict(frozen=True)

    subscription_id: str
    client_secret: str
    tier: str
    idempotency_key: str

    @classmethod
    def from_response(
        cls, response: SubscriptionResponse, idempotency_key: str,
    ) -> "SubscriptionIntent":
        return cls(
            subscription_id=response.subscription_id,
            client_secret=response.client_secret,
            tier=response.tier,
            idempotency_key=idempotency_key,
        )
