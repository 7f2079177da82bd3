"""Pricing Engine — pure monetary arithmetic for display prices and estimates.

Invariants:
    - Every function consumes and returns integer cents (never fractional)
    - Rounding is half away from zero, applied exactly once per call
    - calculate_discount rounds the discount amount, then subtracts
    - Preconditions (cents >= 0, multiplier >= 0) are the caller's job — not corrected here
    - Remote amounts are authoritative; results here are for display and estimation

Design Decisions:
    - Decimal arithmetic over float math: 0.5 boundaries round the same on every platform
    - Floats enter through repr(): 1.33 means 1.33, not its binary neighbour
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from courtside.core.domain_types import MembershipTier


DEFAULT_CURRENCY_SYMBOL = "$"

_HUNDRED = Decimal(100)
_CENT = Decimal("0.01")


def _to_decimal(value: int | float) -> Decimal:
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_half_away(value: Decimal) -> int:
    """Round to the nearest integer, ties away from zero (2.5 → 3, -2.5 → -3)."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_price(cents: int, currency_symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """Format a price in cents for display, e.g. 2500 → "$25.00".

    Precondition: cents >= 0. Negative input is a caller bug and is rendered
    as computed ("$-5.00"), not corrected.
    """
    dollars = (Decimal(cents) / _HUNDRED).quantize(_CENT, rounding=ROUND_HALF_UP)
    return f"{currency_symbol}{dollars}"


def discount_amount(cents: int, discount_percent: int | float) -> int:
    """Rounded discount in cents, e.g. (333, 15) → 50."""
    return round_half_away(Decimal(cents) * _to_decimal(discount_percent) / _HUNDRED)


def calculate_discount(cents: int, discount_percent: int | float) -> int:
    """Discounted price in cents, e.g. (10000, 20) → 8000.

    The discount amount is rounded before subtracting, so (1, 50) → 0.
    """
    return cents - discount_amount(cents, discount_percent)


def apply_pricing_rule(base_cents: int, multiplier: int | float) -> int:
    """Apply a peak/off-peak multiplier, e.g. (8000, 1.5) → 12000. No clamping."""
    return round_half_away(Decimal(base_cents) * _to_decimal(multiplier))


# ─── Quotes ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class PricingQuote:
    """One pricing step: base, the adjustment applied, and the rounded result."""
    base_cents: int
    result_cents: int
    discount_percent: float | None = None
    multiplier: float | None = None

    @property
    def saved_cents(self) -> int:
        return self.base_cents - self.result_cents


def quote_discount(cents: int, discount_percent: int | float) -> PricingQuote:
    return PricingQuote(
        base_cents=cents,
        result_cents=calculate_discount(cents, discount_percent),
        discount_percent=float(discount_percent),
    )


def quote_pricing_rule(base_cents: int, multiplier: int | float) -> PricingQuote:
    return PricingQuote(
        base_cents=base_cents,
        result_cents=apply_pricing_rule(base_cents, multiplier),
        multiplier=float(multiplier),
    )


# ─── Pricing Rules ──────────────────────────────────────────────

@dataclass(frozen=True)
class PricingRule:
    """Time-windowed multiplier.

    days_of_week uses 0=Sunday..6=Saturday. Times are "HH:MM" strings compared
    lexically, inclusive on both ends. Absent or empty constraints match all.
    """
    multiplier: float
    days_of_week: tuple[int, ...] | None = None
    start_time: str | None = None
    end_time: str | None = None

    def matches(self, starts_at: datetime) -> bool:
        # isoweekday(): Monday=1..Sunday=7 → Sunday=0
        day = starts_at.isoweekday() % 7
        if self.days_of_week and day not in self.days_of_week:
            return False
        time_str = starts_at.strftime("%H:%M")
        if self.start_time and time_str < self.start_time:
            return False
        if self.end_time and time_str > self.end_time:
            return False
        return True


def apply_pricing_rules(
    base_cents: int, rules: list[PricingRule], starts_at: datetime,
) -> int:
    """Chain every matching rule in order; each step rounds its own result."""
    price = base_cents
    for rule in rules:
        if rule.matches(starts_at):
            price = apply_pricing_rule(price, rule.multiplier)
    return price


# ─── Membership Tiers ───────────────────────────────────────────

@dataclass(frozen=True)
class MembershipTierConfig:
    tier: MembershipTier
    name: str
    price_cents: int
    discount_percent: int
    priority_hours: int
    benefits: tuple[str, ...]
    interval: str = "month"


MEMBERSHIP_TIERS: tuple[MembershipTierConfig, ...] = (
    MembershipTierConfig(
        tier=MembershipTier.LOCAL_PLAYER,
        name="Local Player",
        price_cents=4900,
        discount_percent=10,
        priority_hours=12,
        benefits=(
            "10% off all bookings",
            "12-hour early booking window",
            "Member badge on profile",
        ),
    ),
    MembershipTierConfig(
        tier=MembershipTier.SAND_REGULAR,
        name="Sand Regular",
        price_cents=9900,
        discount_percent=20,
        priority_hours=24,
        benefits=(
            "20% off all bookings",
            "24-hour early booking window",
            "1 free guest pass per month",
            "Member badge on profile",
        ),
    ),
    MembershipTierConfig(
        tier=MembershipTier.FOUNDERS,
        name="Founders Circle",
        price_cents=19900,
        discount_percent=30,
        priority_hours=48,
        benefits=(
            "30% off all bookings",
            "48-hour early booking window",
            "Unlimited guest passes",
            "Invite-only events access",
            "Premium member badge",
            "Priority customer support",
        ),
    ),
)


def tier_config(tier: MembershipTier | str) -> MembershipTierConfig:
    """Look up a tier's catalogue entry. Raises ValueError for unknown tiers."""
    tier = MembershipTier(tier)
    for config in MEMBERSHIP_TIERS:
        if config.tier is tier:
            return config
    raise ValueError(f"No catalogue entry for tier {tier.value}")


def tier_discount_percent(tier: MembershipTier | str | None) -> int:
    """Discount percent a tier grants; 0 for no membership."""
    if tier is None:
        return 0
    return tier_config(tier).discount_percent
