"""
Tests for card number generation and uniqueness.

These tests verify:
  - Generated numbers are 16 digits with a non-zero first digit
  - A number that is visibly taken is skipped before the INSERT
  - A number that slips past the existence check is caught by the UNIQUE
    constraint, rolled back and retried
  - Running out of attempts fails with 503 card_number_exhausted
  - Attempt ceilings below one are refused rather than silently replaced
"""

import uuid

import pytest
from pydantic import ValidationError

from app.config import Settings
from app.exceptions import CardNumberExhaustedError
from app.models.card import CreditCard
from app.repositories import LedgerStore
from app.services import card_number_service, card_service


def _numbers(*values):
    """Stand-in generator that hands out the given numbers in order."""
    it = iter(values)
    return lambda: next(it)


class TestGenerateCardNumber:

    def test_format(self):
        for _ in range(200):
            number = card_number_service.generate_card_number()
            assert len(number) == 16
            assert number.isdigit()
            assert number[0] != "0"


class TestUniqueness:
    """Collision handling in assign_unique_card_number."""

    async def test_taken_number_is_skipped(
        self, authenticated_client, customer_id, issue_card, monkeypatch
    ):
        existing = await issue_card(authenticated_client, customer_id)

        monkeypatch.setattr(
            card_number_service,
            "generate_card_number",
            _numbers(existing["card_number"], "4000000000000002"),
        )
        card = await issue_card(authenticated_client, customer_id)
        assert card["card_number"] == "4000000000000002"

    async def test_unique_constraint_conflict_is_retried(
        self, authenticated_client, customer_id, issue_card, monkeypatch
    ):
        """Simulates losing a race: the pre-check passes but the INSERT conflicts."""
        existing = await issue_card(authenticated_client, customer_id)

        async def never_exists(self, card_number):
            return False

        monkeypatch.setattr(LedgerStore, "card_number_exists", never_exists)
        monkeypatch.setattr(
            card_number_service,
            "generate_card_number",
            _numbers(existing["card_number"], "4000000000000003"),
        )
        card = await issue_card(authenticated_client, customer_id, 250)
        assert card["card_number"] == "4000000000000003"
        assert card["balance_cents"] == 250

        cards = await authenticated_client.get(f"/cards/customer/{customer_id}")
        assert sorted(c["card_number"] for c in cards.json()) == sorted(
            [existing["card_number"], "4000000000000003"]
        )

    async def test_exhaustion_returns_503(
        self, authenticated_client, customer_id, issue_card, monkeypatch
    ):
        existing = await issue_card(authenticated_client, customer_id)

        monkeypatch.setattr(
            card_number_service, "generate_card_number", lambda: existing["card_number"]
        )
        response = await authenticated_client.post("/cards", json={"customer_id": customer_id})
        assert response.status_code == 503
        assert response.json()["error_type"] == "card_number_exhausted"

        cards = await authenticated_client.get(f"/cards/customer/{customer_id}")
        assert len(cards.json()) == 1

    async def test_exhaustion_honours_attempt_ceiling(
        self, authenticated_client, customer_id, issue_card, session_factory, monkeypatch
    ):
        existing = await issue_card(authenticated_client, customer_id)
        calls = []

        def always_taken():
            calls.append(1)
            return existing["card_number"]

        monkeypatch.setattr(card_number_service, "generate_card_number", always_taken)
        monkeypatch.setattr(card_service.settings, "CARD_NUMBER_MAX_ATTEMPTS", 3)

        async with session_factory() as session:
            with pytest.raises(CardNumberExhaustedError) as exc_info:
                await card_service.create_card(session, customer_id=uuid.UUID(customer_id))
            await session.commit()

        assert exc_info.value.attempts == 3
        assert len(calls) == 3

    async def test_explicit_attempts_override_setting(
        self, authenticated_client, customer_id, issue_card, session_factory, monkeypatch
    ):
        existing = await issue_card(authenticated_client, customer_id)
        monkeypatch.setattr(
            card_number_service, "generate_card_number", lambda: existing["card_number"]
        )

        async with session_factory() as session:
            card = CreditCard(customer_id=uuid.UUID(customer_id))
            with pytest.raises(CardNumberExhaustedError) as exc_info:
                await card_number_service.assign_unique_card_number(session, card, max_attempts=1)
            with pytest.raises(ValueError):
                await card_number_service.assign_unique_card_number(session, card, max_attempts=0)
            await session.commit()

        assert exc_info.value.attempts == 1


class TestAttemptSettings:
    """Retry ceilings must allow at least one attempt."""

    @pytest.mark.parametrize("field", ["CARD_NUMBER_MAX_ATTEMPTS", "POSTING_MAX_RETRIES"])
    def test_zero_rejected(self, field):
        with pytest.raises(ValidationError):
            Settings(**{field: 0})

    def test_defaults_allow_retries(self):
        fresh = Settings()
        assert fresh.CARD_NUMBER_MAX_ATTEMPTS >= 1
        assert fresh.POSTING_MAX_RETRIES >= 1
