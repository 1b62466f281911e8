"""Tests for employee and employer registration"""
import re
from datetime import timedelta

from fastapi.testclient import TestClient

from app.models.account import Account, AccountStatus
from app.models.employee_profile import EmployeeProfile
from app.utils import clock
from conftest import DEFAULT_PASSWORD, login


def _register_employee(client: TestClient, email: str = "ann@example.com", name: str = "Ann"):
    return client.post("/auth/register/employee", json={"name": name, "email": email})


def _verify(client: TestClient, code: str, email: str = "ann@example.com", password: str = DEFAULT_PASSWORD):
    return client.post("/auth/verify-email/complete", json={"email": email, "code": code, "password": password})


def _employer_payload(**overrides) -> dict:
    payload = {
        "name": "Erin Boss",
        "email": "erin@acme.example.com",
        "password": DEFAULT_PASSWORD,
        "company_name": "Acme",
        "company_website": "https://acme.example.com",
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------

def test_register_employee_emails_code(client: TestClient, db, mailer):
    """A new employee is stored pending verification and emailed a 6-digit code"""
    response = _register_employee(client)
    assert response.status_code == 202
    assert "verification code" in response.json()["message"]

    account = db.query(Account).filter(Account.email == "ann@example.com").one()
    assert account.status == AccountStatus.PENDING_EMAIL_VERIFICATION
    assert account.role == "employee"
    assert account.password_hash is None
    assert re.fullmatch(r"[1-9]\d{5}", account.email_verification_code)

    remaining = account.email_verification_expires_at - clock.utcnow()
    assert timedelta(minutes=14) < remaining <= timedelta(minutes=15)

    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == "ann@example.com"
    assert account.email_verification_code in mailer.sent[0]["text"]


def test_register_employee_again_replaces_code(client: TestClient, db, mailer):
    """Re-registering while pending issues a fresh code on the same account"""
    _register_employee(client)

    # Force a different code so the replacement is observable
    account = db.query(Account).one()
    account.email_verification_code = "000000"
    db.commit()

    response = _register_employee(client)
    assert response.status_code == 202
    assert db.query(Account).count() == 1

    second_code = db.query(Account).one().email_verification_code
    assert second_code != "000000"
    assert len(mailer.sent) == 2
    assert second_code in mailer.sent[1]["text"]


def test_register_employee_conflicts_with_active_account(client: TestClient, make_account):
    make_account(email="ann@example.com")
    response = _register_employee(client)
    assert response.status_code == 409
    assert response.json()["error"] == "already_active"


def test_register_employee_conflicts_with_pending_employer(client: TestClient):
    client.post("/auth/register/employer", json=_employer_payload(email="ann@example.com"))
    response = _register_employee(client)
    assert response.status_code == 409
    assert response.json()["error"] == "already_pending_approval"


def test_register_employee_mail_failure_keeps_account(client: TestClient, db, mailer):
    """A failed verification email is a 500 but the pending account remains for a retry"""
    mailer.fail = True
    response = _register_employee(client)
    assert response.status_code == 500
    assert response.json()["error"] == "mail_delivery_failed"
    assert db.query(Account).filter(Account.email == "ann@example.com").count() == 1

    mailer.fail = False
    assert _register_employee(client).status_code == 202


def test_register_employee_rejects_invalid_email(client: TestClient):
    response = client.post("/auth/register/employee", json={"name": "Ann", "email": "not-an-email"})
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Email verification
# ---------------------------------------------------------------------------

def test_verify_email_activates_account(client: TestClient, db):
    _register_employee(client)
    code = db.query(Account).one().email_verification_code

    response = _verify(client, code)
    assert response.status_code == 200
    assert "verified" in response.json()["message"]

    account = db.query(Account).one()
    assert account.status == AccountStatus.ACTIVE
    assert account.password_hash
    assert account.email_verification_code is None
    assert account.email_verification_expires_at is None
    assert account.password_changed_at is not None

    profile = db.query(EmployeeProfile).filter(EmployeeProfile.account_id == account.id).one()
    assert profile.skills == []
    assert profile.years_of_experience == 0

    body = login(client, "ann@example.com")
    assert body["role"] == "employee"
    assert body["name"] == "Ann"


def test_verify_email_wrong_code(client: TestClient, db):
    _register_employee(client)
    code = db.query(Account).one().email_verification_code
    wrong = "999999" if code != "999999" else "100000"

    response = _verify(client, wrong)
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_code"
    assert db.query(Account).one().status == AccountStatus.PENDING_EMAIL_VERIFICATION


def test_verify_email_unknown_account(client: TestClient):
    response = _verify(client, "123456", email="ghost@example.com")
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_verification_request"


def test_verify_email_already_active(client: TestClient, db):
    _register_employee(client)
    code = db.query(Account).one().email_verification_code
    assert _verify(client, code).status_code == 200

    response = _verify(client, code)
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_verification_request"


def test_verify_email_one_second_before_expiry(client: TestClient, db, pin_clock):
    start = pin_clock(clock.utcnow())
    _register_employee(client)
    code = db.query(Account).one().email_verification_code

    pin_clock(start + timedelta(minutes=15) - timedelta(seconds=1))
    response = _verify(client, code)
    assert response.status_code == 200


def test_verify_email_at_expiry(client: TestClient, db, pin_clock):
    """A code is expired from its expiry instant onward"""
    start = pin_clock(clock.utcnow())
    _register_employee(client)
    code = db.query(Account).one().email_verification_code

    pin_clock(start + timedelta(minutes=15))
    response = _verify(client, code)
    assert response.status_code == 400
    assert response.json()["error"] == "code_expired"
    assert db.query(Account).one().status == AccountStatus.PENDING_EMAIL_VERIFICATION


def test_verify_email_short_password(client: TestClient, db):
    _register_employee(client)
    code = db.query(Account).one().email_verification_code
    response = _verify(client, code, password="abc")
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Employers
# ---------------------------------------------------------------------------

def test_register_employer_pending_approval(client: TestClient, db, mailer):
    response = client.post("/auth/register/employer", json=_employer_payload())
    assert response.status_code == 202
    assert "administrator approval" in response.json()["message"]

    account = db.query(Account).one()
    assert account.role == "employer"
    assert account.status == AccountStatus.PENDING_ADMIN_APPROVAL
    assert account.company_name == "Acme"
    assert account.company_website.startswith("https://acme.example.com")
    assert account.password_hash and account.password_hash != DEFAULT_PASSWORD
    assert mailer.sent == []


def test_pending_employer_cannot_log_in(client: TestClient):
    client.post("/auth/register/employer", json=_employer_payload())
    response = client.post("/auth/login", json={"email": "erin@acme.example.com", "password": DEFAULT_PASSWORD})
    assert response.status_code == 401
    assert response.json()["error"] == "account_pending_approval"


def test_register_employer_duplicate(client: TestClient):
    client.post("/auth/register/employer", json=_employer_payload())
    response = client.post("/auth/register/employer", json=_employer_payload())
    assert response.status_code == 409
    assert response.json()["error"] == "already_pending_approval"


def test_register_employer_over_pending_employee(client: TestClient):
    _register_employee(client, email="erin@acme.example.com")
    response = client.post("/auth/register/employer", json=_employer_payload())
    assert response.status_code == 409
    assert response.json()["error"] == "already_exists"


def test_register_employer_requires_valid_website(client: TestClient):
    response = client.post("/auth/register/employer", json=_employer_payload(company_website="not a url"))
    assert response.status_code == 422
