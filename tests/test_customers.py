"""
Tests for customer profile endpoints.

These tests verify:
  - A customer can read their own profile, with their cards
  - Admins can list and read every customer; customers cannot
  - Profile updates change only the fields sent
  - Username changes are checked for uniqueness; password changes re-hash
  - Renaming a customer leaves existing card holder names alone
  - Deleting a customer removes their cards and transactions
"""

import uuid

from sqlalchemy import func, select

from app.models.card import CreditCard
from app.models.transaction import Transaction
from app.repositories import LedgerStore


class TestReadProfile:
    """Tests for GET /customers/me and GET /customers/{id}."""

    async def test_get_me(self, authenticated_client):
        response = await authenticated_client.get("/customers/me")
        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "alice"
        assert data["name"] == "Alice Smith"
        assert data["role"] == "USER"

    async def test_profile_never_exposes_password_hash(self, authenticated_client, customer_id):
        me = await authenticated_client.get("/customers/me")
        detail = await authenticated_client.get(f"/customers/{customer_id}")
        for body in (me.json(), detail.json()):
            assert "hashed_password" not in body
            assert "password" not in body

    async def test_get_customer_includes_cards(self, authenticated_client, customer_id, issue_card):
        card = await issue_card(authenticated_client, customer_id, 1000)

        response = await authenticated_client.get(f"/customers/{customer_id}")
        assert response.status_code == 200
        cards = response.json()["cards"]
        assert [c["id"] for c in cards] == [card["id"]]
        assert cards[0]["balance_cents"] == 1000

    async def test_cannot_read_other_customer(
        self, authenticated_client, second_authenticated_client, customer_id
    ):
        response = await second_authenticated_client.get(f"/customers/{customer_id}")
        assert response.status_code == 403
        assert response.json()["error_type"] == "forbidden"


class TestAdminAccess:
    """Admins have read access to every customer."""

    async def test_admin_lists_all_customers(self, admin_client, customer_id, second_customer_id):
        response = await admin_client.get("/customers")
        assert response.status_code == 200
        ids = {c["id"] for c in response.json()}
        assert {customer_id, second_customer_id} <= ids

    async def test_admin_reads_any_customer(self, admin_client, customer_id):
        response = await admin_client.get(f"/customers/{customer_id}")
        assert response.status_code == 200
        assert response.json()["username"] == "alice"

    async def test_admin_read_unknown_customer(self, admin_client):
        response = await admin_client.get(f"/customers/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error_type"] == "customer_not_found"

    async def test_user_cannot_list_customers(self, authenticated_client):
        response = await authenticated_client.get("/customers")
        assert response.status_code == 403

    async def test_admin_cannot_update_other_customer(self, admin_client, customer_id):
        response = await admin_client.patch(
            f"/customers/{customer_id}", json={"name": "Hijacked"}
        )
        assert response.status_code == 403


class TestUpdateProfile:
    """Tests for PATCH /customers/{id}."""

    async def test_update_name_and_phone(self, authenticated_client, customer_id):
        response = await authenticated_client.patch(
            f"/customers/{customer_id}",
            json={"name": "Alice Cooper", "phone_number": "555-0100"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Alice Cooper"
        assert data["phone_number"] == "555-0100"
        assert data["username"] == "alice"

    async def test_update_username_taken(
        self, authenticated_client, second_authenticated_client, customer_id
    ):
        response = await authenticated_client.patch(
            f"/customers/{customer_id}", json={"username": "bob"}
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "duplicate_username"

        me = await authenticated_client.get("/customers/me")
        assert me.json()["username"] == "alice"

    async def test_update_username_lost_race(
        self, authenticated_client, second_authenticated_client, customer_id, monkeypatch
    ):
        """The UNIQUE constraint catches a rename the pre-check missed."""
        async def nobody(self, username):
            return None

        monkeypatch.setattr(LedgerStore, "find_customer_by_username", nobody)

        response = await authenticated_client.patch(
            f"/customers/{customer_id}", json={"username": "bob", "name": "Alice Renamed"}
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "duplicate_username"

        me = await authenticated_client.get("/customers/me")
        assert me.json()["username"] == "alice"
        assert me.json()["name"] == "Alice Smith"

    async def test_update_username_to_same_value(self, authenticated_client, customer_id):
        response = await authenticated_client.patch(
            f"/customers/{customer_id}", json={"username": "alice"}
        )
        assert response.status_code == 200

    async def test_update_password_then_login(self, authenticated_client, customer_id):
        response = await authenticated_client.patch(
            f"/customers/{customer_id}", json={"password": "BrandNewPass1!"}
        )
        assert response.status_code == 200

        old = await authenticated_client.post(
            "/auth/login", json={"username": "alice", "password": "SecurePass123!"}
        )
        assert old.status_code == 401

        new = await authenticated_client.post(
            "/auth/login", json={"username": "alice", "password": "BrandNewPass1!"}
        )
        assert new.status_code == 200

    async def test_rename_does_not_touch_card_holder_name(
        self, authenticated_client, customer_id, issue_card
    ):
        """The holder name is a copy made at issuance."""
        card = await issue_card(authenticated_client, customer_id)

        await authenticated_client.patch(
            f"/customers/{customer_id}", json={"name": "Alice Cooper"}
        )

        response = await authenticated_client.get(f"/cards/{card['id']}")
        assert response.json()["card_holder_name"] == "Alice Smith"

    async def test_cannot_update_other_customer(
        self, authenticated_client, second_authenticated_client, customer_id
    ):
        response = await second_authenticated_client.patch(
            f"/customers/{customer_id}", json={"name": "Mallory"}
        )
        assert response.status_code == 403


class TestDeleteCustomer:
    """Tests for DELETE /customers/{id}."""

    async def test_delete_removes_cards_and_transactions(
        self, authenticated_client, customer_id, issue_card, session_factory
    ):
        card = await issue_card(authenticated_client, customer_id, 1000)
        await authenticated_client.post(
            "/cards/debit",
            json={"customer_id": customer_id, "card_number": card["card_number"], "amount_cents": 100},
        )

        response = await authenticated_client.delete(f"/customers/{customer_id}")
        assert response.status_code == 204

        async with session_factory() as session:
            cards = await session.execute(select(func.count()).select_from(CreditCard))
            txns = await session.execute(select(func.count()).select_from(Transaction))
            assert cards.scalar_one() == 0
            assert txns.scalar_one() == 0

    async def test_deleted_customer_token_stops_working(self, authenticated_client, customer_id):
        await authenticated_client.delete(f"/customers/{customer_id}")

        response = await authenticated_client.get("/customers/me")
        assert response.status_code == 401

    async def test_delete_leaves_other_customers_alone(
        self,
        authenticated_client,
        second_authenticated_client,
        customer_id,
        second_customer_id,
        issue_card,
    ):
        await issue_card(authenticated_client, customer_id)
        bob_card = await issue_card(second_authenticated_client, second_customer_id)

        await authenticated_client.delete(f"/customers/{customer_id}")

        response = await second_authenticated_client.get(f"/cards/{bob_card['id']}")
        assert response.status_code == 200

    async def test_cannot_delete_other_customer(
        self, authenticated_client, second_authenticated_client, customer_id
    ):
        response = await second_authenticated_client.delete(f"/customers/{customer_id}")
        assert response.status_code == 403
