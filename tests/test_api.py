"""
HTTP-level tests: session login, error bodies, admin gating and the public
token payment endpoint.
"""
from decimal import Decimal

import pytest

from conftest import DEFAULT_PASSWORD, DEFAULT_SPIN, balance_of


def login(client, account, spin=DEFAULT_SPIN):
    response = client.post(
        "/api/auth/login",
        json={"username_or_phone": account.username, "password": DEFAULT_PASSWORD},
    )
    assert response.status_code == 200
    assert response.json()["requires_pin_verification"] is True

    response = client.post("/api/auth/verify-pin", json={"spin": spin})
    assert response.status_code == 200
    return response.json()["user"]


class TestAuthFlow:

    def test_register_login_me(self, client):
        response = client.post(
            "/api/auth/register",
            json={"username": "priya", "phone": "9988776655", "password": "secret1"},
        )
        assert response.status_code == 200
        token = response.json()["registration_token"]

        response = client.post("/api/auth/setup-wwid", json={"registration_token": token, "wwid": "priya"})
        assert response.json()["wwid"] == "priya@ww"

        response = client.post("/api/auth/setup-spin", json={"registration_token": token, "spin": "2468"})
        assert response.status_code == 200
        assert response.json()["user"]["wwid"] == "priya@ww"

        # registration does not log in
        assert client.get("/api/auth/me").status_code == 401

        client.post("/api/auth/login", json={"username_or_phone": "9988776655", "password": "secret1"})
        response = client.post("/api/auth/verify-pin", json={"spin": "2468"})
        assert response.json()["user"]["username"] == "priya"

        response = client.get("/api/auth/me")
        assert response.status_code == 200
        assert response.json()["balance"] == "0.00"

        client.post("/api/auth/logout")
        assert client.get("/api/auth/me").status_code == 401

    def test_password_alone_does_not_log_in(self, client, make_account):
        account = make_account()
        client.post(
            "/api/auth/login",
            json={"username_or_phone": account.username, "password": DEFAULT_PASSWORD},
        )

        assert client.get("/api/auth/me").status_code == 401

    def test_verify_pin_without_login(self, client):
        response = client.post("/api/auth/verify-pin", json={"spin": "1234"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "SessionExpired"
        assert body["sessionExpired"] is True

    def test_wrong_password(self, client, make_account):
        account = make_account()
        response = client.post(
            "/api/auth/login",
            json={"username_or_phone": account.username, "password": "not-it-at-all"},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "InvalidCredential"

    def test_expired_registration_token(self, client):
        response = client.post("/api/auth/setup-wwid", json={"registration_token": "stale", "wwid": "priya"})

        assert response.status_code == 400
        assert response.json()["sessionExpired"] is True

    def test_forgot_spin_does_not_log_in(self, client, make_account):
        account = make_account()
        response = client.post(
            "/api/auth/forgot-spin",
            json={"username_or_phone": account.username, "password": DEFAULT_PASSWORD, "new_spin": "7777"},
        )

        assert response.status_code == 200
        assert client.get("/api/auth/me").status_code == 401
        login(client, account, spin="7777")


class TestValidationErrors:

    def test_bad_body_is_invalid_input(self, client, make_account):
        login(client, make_account("100"))

        response = client.post(
            "/api/transactions/pay-to-user",
            json={"recipient_wwid": "someone@ww", "amount": "-1", "spin": "1234"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "InvalidInput"
        assert body["message"].startswith("amount")

    def test_requires_login(self, client):
        response = client.get("/api/transactions")

        assert response.status_code == 401
        assert response.json()["error"] == "NotAuthenticated"


class TestWalletRoutes:

    def test_pay_and_history(self, client, db, make_account):
        sender = make_account("100", username="sender")
        recipient = make_account(username="receiver")
        login(client, sender)

        response = client.post(
            "/api/transactions/pay-to-user",
            json={"recipient_wwid": recipient.wwid, "amount": "30", "spin": DEFAULT_SPIN},
        )
        assert response.status_code == 200
        assert response.json()["new_balance"] == "70.00"

        history = client.get("/api/transactions").json()
        assert len(history) == 1
        assert history[0]["recipient_username"] == "receiver"
        assert Decimal(history[0]["amount"]) == Decimal("30")

        assert balance_of(db, recipient.id) == Decimal("30.00")

    def test_insufficient_balance(self, client, make_account):
        sender = make_account("10")
        recipient = make_account()
        login(client, sender)

        response = client.post(
            "/api/transactions/pay-to-user",
            json={"recipient_wwid": recipient.wwid, "amount": "10.01", "spin": DEFAULT_SPIN},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InsufficientBalance"

    def test_withdraw(self, client, make_account):
        login(client, make_account("100"))

        response = client.post("/api/transactions/withdraw", json={"amount": "20", "upi_id": "me@upi"})

        body = response.json()
        assert body["new_balance"] == "80.00"
        assert body["request"]["status"] == "pending"
        assert Decimal(body["request"]["after_tax_amount"]) == Decimal("19.40")


class TestAdminRoutes:

    def test_non_admin_forbidden(self, client, make_account):
        login(client, make_account())

        for path in ("/api/admin/users", "/api/admin/fund-requests", "/api/admin/withdraw-requests"):
            response = client.get(path)
            assert response.status_code == 403
            assert response.json()["error"] == "Forbidden"

    def test_deposit_approval_flow(self, client, db, make_account):
        user = make_account()
        admin = make_account(is_admin=True)

        login(client, user)
        response = client.post("/api/transactions/add-fund", json={"amount": "100", "utr": "123456789012"})
        request_id = response.json()["request"]["id"]
        client.post("/api/auth/logout")

        login(client, admin)
        pending = client.get("/api/admin/fund-requests", params={"status": "pending"}).json()
        assert [r["id"] for r in pending] == [request_id]

        response = client.post(f"/api/admin/approve-fund/{request_id}")
        assert response.status_code == 200
        assert response.json()["request"]["status"] == "approved"

        response = client.post(f"/api/admin/approve-fund/{request_id}")
        assert response.status_code == 409
        assert response.json()["error"] == "InvalidStateTransition"

        assert balance_of(db, user.id) == Decimal("97.00")

    def test_decline_withdraw_refunds(self, client, db, make_account):
        user = make_account("100")
        admin = make_account(is_admin=True)

        login(client, user)
        request_id = client.post(
            "/api/transactions/withdraw", json={"amount": "20", "upi_id": "me@upi"}
        ).json()["request"]["id"]
        client.post("/api/auth/logout")

        login(client, admin)
        response = client.post(f"/api/admin/decline-withdraw/{request_id}")
        assert response.json()["request"]["status"] == "declined"
        assert balance_of(db, user.id) == Decimal("100.00")

    def test_update_balance(self, client, db, make_account):
        user = make_account("5")
        login(client, make_account(is_admin=True))

        response = client.post("/api/admin/update-balance", json={"user_id": str(user.id), "change": "-5"})
        assert response.json()["new_balance"] == "0.00"

        response = client.post("/api/admin/update-balance", json={"user_id": str(user.id), "change": "-1"})
        assert response.status_code == 400
        assert response.json()["error"] == "InsufficientBalance"
        assert balance_of(db, user.id) == Decimal("0.00")

    def test_unknown_request(self, client, make_account):
        login(client, make_account(is_admin=True))

        response = client.post("/api/admin/approve-withdraw/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404
        assert response.json()["error"] == "RequestNotFound"


class TestGiftCodeRoutes:

    def test_create_claim_stop(self, client, make_account):
        creator = make_account("500")
        claimer = make_account()

        login(client, creator)
        response = client.post(
            "/api/gift-codes/create",
            json={"total_slots": 5, "amount_per_slot": "50", "code": "FESTIVE"},
        )
        assert response.json()["new_balance"] == "250.00"
        client.post("/api/auth/logout")

        login(client, claimer)
        response = client.post("/api/gift-codes/claim", json={"code": "festive"})
        assert response.json()["amount"] == "50.00"
        response = client.post("/api/gift-codes/claim", json={"code": "FESTIVE"})
        assert response.status_code == 409
        assert response.json()["error"] == "AlreadyClaimed"

        response = client.post("/api/gift-codes/FESTIVE/stop")
        assert response.status_code == 403
        client.post("/api/auth/logout")

        login(client, creator)
        codes = client.get("/api/gift-codes/my-codes").json()
        assert codes[0]["remaining_slots"] == 4
        claims = client.get(f"/api/gift-codes/{codes[0]['id']}/claims").json()
        assert [c["username"] for c in claims] == [claimer.username]

        response = client.post("/api/gift-codes/FESTIVE/stop")
        assert response.json()["refunded"] == "200.00"
        assert response.json()["new_balance"] == "450.00"


class TestNotificationRoutes:

    def test_unread_and_mark_read(self, client, db, make_account):
        sender = make_account("100")
        recipient = make_account()

        login(client, sender)
        client.post(
            "/api/transactions/pay-to-user",
            json={"recipient_wwid": recipient.wwid, "amount": "5", "spin": DEFAULT_SPIN},
        )
        client.post("/api/auth/logout")

        login(client, recipient)
        assert client.get("/api/notifications/unread-count").json() == {"count": 1}
        notes = client.get("/api/notifications").json()
        assert notes[0]["type"] == "payment_received"

        assert client.post("/api/notifications/mark-all-read").json()["updated"] == 1
        assert client.get("/api/notifications/unread-count").json() == {"count": 0}


class TestApiPayments:

    @pytest.fixture
    def merchant(self, client, make_account):
        account = make_account("100", username="merchant")
        login(client, account)
        client.post("/api/api-settings/toggle", json={"enabled": True})
        token = client.post("/api/api-settings/generate-token").json()["api_token"]
        client.post("/api/auth/logout")
        return account, token

    def test_defaults(self, client, make_account):
        login(client, make_account())

        body = client.get("/api/api-settings").json()

        assert body["api_enabled"] is False
        assert body["api_token"] is None

    def test_bearer_token_payment(self, client, db, merchant, make_account):
        account, token = merchant
        recipient = make_account()

        response = client.get(
            "/api/wallet",
            params={"type": "wallet", "wwid": recipient.wwid, "amount": "12.50"},
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200
        assert response.json()["new_balance"] == "87.50"
        assert response.json()["transaction"]["channel"] == "api"
        assert balance_of(db, recipient.id) == Decimal("12.50")

    def test_query_token_payment(self, client, db, merchant, make_account):
        account, token = merchant
        recipient = make_account()

        response = client.get(
            "/api/wallet",
            params={"type": "wallet", "wwid": recipient.wwid, "amount": "1", "token": token},
        )

        assert response.status_code == 200
        assert balance_of(db, account.id) == Decimal("99.00")

    def test_disabled_api(self, client, db, merchant, make_account):
        account, token = merchant
        recipient = make_account()
        login(client, account)
        client.post("/api/api-settings/toggle", json={"enabled": False})

        response = client.get(
            "/api/wallet",
            params={"type": "wallet", "wwid": recipient.wwid, "amount": "1", "token": token},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "ApiDisabled"
        assert balance_of(db, account.id) == Decimal("100.00")

    def test_revoked_token(self, client, merchant, make_account):
        account, token = merchant
        recipient = make_account()
        login(client, account)
        body = client.post("/api/api-settings/revoke-token").json()
        assert body["api_token"] is None
        assert body["api_enabled"] is False

        response = client.get(
            "/api/wallet",
            params={"type": "wallet", "wwid": recipient.wwid, "amount": "1", "token": token},
        )

        assert response.status_code == 401
        assert response.json()["error"] == "InvalidCredential"

    def test_amount_rounded_to_cents(self, client, db, merchant, make_account):
        account, token = merchant
        recipient = make_account()

        response = client.get(
            "/api/wallet",
            params={"type": "wallet", "wwid": recipient.wwid, "amount": "10.005", "token": token},
        )

        assert response.status_code == 200
        assert response.json()["transaction"]["amount"] == "10.01"
        assert response.json()["new_balance"] == "89.99"
        assert balance_of(db, recipient.id) == Decimal("10.01")

    @pytest.mark.parametrize("amount", ["abc", "Infinity", "0.004", "-3"])
    def test_unusable_amount(self, client, db, merchant, make_account, amount):
        account, token = merchant
        recipient = make_account()

        response = client.get(
            "/api/wallet",
            params={"type": "wallet", "wwid": recipient.wwid, "amount": amount, "token": token},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidInput"
        assert balance_of(db, account.id) == Decimal("100.00")

    def test_bad_request_shape(self, client):
        assert client.get("/api/wallet", params={"type": "bank"}).status_code == 400
        assert client.get("/api/wallet", params={"type": "wallet", "wwid": "x@ww"}).status_code == 400

    def test_update_domain(self, client, make_account):
        login(client, make_account())

        body = client.post("/api/api-settings/update-domain", json={"domain": "https://shop.example.com/"}).json()

        assert body["domain"] == "https://shop.example.com"


def test_health(client):
    assert client.get("/health").json()["ok"] is True
