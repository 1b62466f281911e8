"""Tests for password change, forgotten password and reset"""
import re
from datetime import timedelta

from fastapi.testclient import TestClient
from jose import jwt

from app.models.account import AccountStatus
from app.models.password_reset import PasswordResetRequest
from app.services.password_service import FORGOT_PASSWORD_MESSAGE
from app.utils import clock
from conftest import DEFAULT_PASSWORD, bearer, login

NEW_PASSWORD = "brand-new-pass"


def _change(client: TestClient, token: str, old: str = DEFAULT_PASSWORD, new: str = NEW_PASSWORD, confirm: str = None):
    return client.patch(
        "/auth/change-password",
        json={"old_password": old, "new_password": new, "confirm_password": confirm or new},
        headers=bearer(token),
    )


def _reset_code_from_mail(mailer) -> str:
    return re.search(r"code is: (\d{6})", mailer.sent[-1]["text"]).group(1)


# ---------------------------------------------------------------------------
# Change password
# ---------------------------------------------------------------------------

def test_change_password(client: TestClient, db, make_account, revocation_store):
    account = make_account(email="ann@example.com")
    token = login(client, "ann@example.com")["access_token"]

    response = _change(client, token)
    assert response.status_code == 200
    assert "log in again" in response.json()["message"]

    db.refresh(account)
    assert account.password_changed_at is not None
    assert revocation_store.is_revoked(jwt.get_unverified_claims(token)["jti"])

    # The presenting token is dead immediately
    response = client.get("/auth/me", headers=bearer(token))
    assert response.status_code == 401
    assert response.json()["error"] == "token_revoked"

    old = client.post("/auth/login", json={"email": "ann@example.com", "password": DEFAULT_PASSWORD})
    assert old.status_code == 401
    login(client, "ann@example.com", NEW_PASSWORD)


def test_change_password_invalidates_other_sessions(client: TestClient, make_account, pin_clock):
    make_account(email="ann@example.com")
    now = clock.utcnow()

    pin_clock(now - timedelta(seconds=60))
    other_session = login(client, "ann@example.com")["access_token"]
    pin_clock(now - timedelta(seconds=30))
    token = login(client, "ann@example.com")["access_token"]

    pin_clock(now)
    assert _change(client, token).status_code == 200

    response = client.get("/auth/me", headers=bearer(other_session))
    assert response.status_code == 401
    assert response.json()["error"] == "password_changed"


def test_change_password_wrong_old_password(client: TestClient, make_account, revocation_store):
    make_account(email="ann@example.com")
    token = login(client, "ann@example.com")["access_token"]

    response = _change(client, token, old="not-my-password")
    assert response.status_code == 401
    assert response.json()["error"] == "incorrect_password"
    assert revocation_store.size() == 0
    assert client.get("/auth/me", headers=bearer(token)).status_code == 200


def test_change_password_confirmation_mismatch(client: TestClient, make_account):
    make_account(email="ann@example.com")
    token = login(client, "ann@example.com")["access_token"]
    response = _change(client, token, confirm="something-else")
    assert response.status_code == 422


def test_change_password_requires_token(client: TestClient):
    response = client.patch(
        "/auth/change-password",
        json={"old_password": DEFAULT_PASSWORD, "new_password": NEW_PASSWORD, "confirm_password": NEW_PASSWORD},
    )
    assert response.status_code == 401
    assert response.json()["error"] == "missing_token"


# ---------------------------------------------------------------------------
# Forgot password
# ---------------------------------------------------------------------------

def test_forgot_password_unknown_email(client: TestClient, db, mailer):
    """The reply for an unknown email is identical and nothing is sent"""
    response = client.post("/auth/forgot-password", json={"email": "ghost@example.com"})
    assert response.status_code == 200
    assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE
    assert mailer.sent == []
    assert db.query(PasswordResetRequest).count() == 0


def test_forgot_password_sends_code(client: TestClient, db, mailer, make_account):
    account = make_account(email="ann@example.com")

    response = client.post("/auth/forgot-password", json={"email": "ann@example.com"})
    assert response.status_code == 200
    assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE

    request = db.query(PasswordResetRequest).one()
    assert request.account_id == account.id
    assert request.code == _reset_code_from_mail(mailer)
    remaining = request.expires_at - clock.utcnow()
    assert timedelta(minutes=59) < remaining <= timedelta(minutes=60)


def test_forgot_password_replaces_previous_code(client: TestClient, db, mailer, make_account):
    make_account(email="ann@example.com")
    client.post("/auth/forgot-password", json={"email": "ann@example.com"})
    client.post("/auth/forgot-password", json={"email": "ann@example.com"})

    requests = db.query(PasswordResetRequest).all()
    assert len(requests) == 1
    assert requests[0].code == _reset_code_from_mail(mailer)


def test_forgot_password_mail_failure(client: TestClient, mailer, make_account):
    make_account(email="ann@example.com")
    mailer.fail = True
    response = client.post("/auth/forgot-password", json={"email": "ann@example.com"})
    assert response.status_code == 500
    assert response.json()["error"] == "mail_delivery_failed"


# ---------------------------------------------------------------------------
# Reset password
# ---------------------------------------------------------------------------

def test_reset_password(client: TestClient, db, mailer, make_account, pin_clock):
    make_account(email="ann@example.com")
    now = clock.utcnow()

    pin_clock(now - timedelta(seconds=30))
    old_session = login(client, "ann@example.com")["access_token"]
    client.post("/auth/forgot-password", json={"email": "ann@example.com"})
    code = _reset_code_from_mail(mailer)

    pin_clock(now)
    response = client.post("/auth/reset-password", json={"code": code, "password": NEW_PASSWORD})
    assert response.status_code == 200
    assert response.json()["message"] == "Password has been reset successfully."
    assert db.query(PasswordResetRequest).count() == 0

    login(client, "ann@example.com", NEW_PASSWORD)
    response = client.get("/auth/me", headers=bearer(old_session))
    assert response.status_code == 401
    assert response.json()["error"] == "password_changed"


def test_reset_code_is_single_use(client: TestClient, mailer, make_account):
    make_account(email="ann@example.com")
    client.post("/auth/forgot-password", json={"email": "ann@example.com"})
    code = _reset_code_from_mail(mailer)

    assert client.post("/auth/reset-password", json={"code": code, "password": NEW_PASSWORD}).status_code == 200
    response = client.post("/auth/reset-password", json={"code": code, "password": "another-pass"})
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_code"


def test_reset_password_unknown_code(client: TestClient):
    response = client.post("/auth/reset-password", json={"code": "123456", "password": NEW_PASSWORD})
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_code"


def test_reset_password_expired_code(client: TestClient, db, mailer, make_account, pin_clock):
    make_account(email="ann@example.com")
    start = pin_clock(clock.utcnow())
    client.post("/auth/forgot-password", json={"email": "ann@example.com"})
    code = _reset_code_from_mail(mailer)

    pin_clock(start + timedelta(minutes=60))
    response = client.post("/auth/reset-password", json={"code": code, "password": NEW_PASSWORD})
    assert response.status_code == 400
    assert response.json()["error"] == "code_expired"

    # Expired requests are discarded on sight
    assert db.query(PasswordResetRequest).count() == 0
    pin_clock(start)
    login(client, "ann@example.com")


def test_reset_password_short_password(client: TestClient):
    response = client.post("/auth/reset-password", json={"code": "123456", "password": "abc"})
    assert response.status_code == 422


def test_forgot_password_for_unverified_employee(client: TestClient, db, mailer, make_account):
    """Accounts that never set a password get the generic reply and no code"""
    make_account(email="ann@example.com", password=None, status=AccountStatus.PENDING_EMAIL_VERIFICATION)

    response = client.post("/auth/forgot-password", json={"email": "ann@example.com"})
    assert response.status_code == 200
    assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE
    assert mailer.sent == []
    assert db.query(PasswordResetRequest).count() == 0
