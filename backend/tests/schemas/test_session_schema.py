"""Session Schemas — session rows with the joined court."""

from courtside.core.domain_types import SessionStatus
from courtside.schemas.session import Session


def _row(**overrides):
    row = {
        "id": "s-1",
        "product_id": "p-1",
        "starts_at": "2026-10-18T09:00:00Z",
        "ends_at": "2026-10-18T10:30:00Z",
        "price_cents": 1500,
        "spots_total": 8,
        "spots_remaining": 3,
        "status": "open",
    }
    row.update(overrides)
    return row


def test_session_without_court_join():
    session = Session.model_validate(_row())
    assert session.court is None
    assert session.starts_at.hour == 9
    assert session.is_bookable


def test_full_session_is_not_bookable():
    session = Session.model_validate(_row(status="full", spots_remaining=0))
    assert session.status is SessionStatus.FULL
    assert not session.is_bookable


def test_session_ignores_unknown_columns():
    session = Session.model_validate(_row(weather_snapshot={"temp_f": 78}))
    assert not hasattr(session, "weather_snapshot")
