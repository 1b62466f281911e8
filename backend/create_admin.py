"""
Admin bootstrap script: creates the first administrator account.

Administrators cannot self-register, so run this once per environment:
    python create_admin.py --name "Site Admin" --email admin@example.com

The password is prompted for when --password is omitted. Running it again for
an existing email changes nothing.
"""
import argparse
import getpass
import sys

from sqlalchemy.orm import Session

from app.database import SessionLocal
from app.models.account import Account, AccountRole, AccountStatus
from app.schemas.auth import PASSWORD_MIN_LENGTH
from app.utils import clock
from app.utils.auth import hash_password


def create_admin(db: Session, name: str, email: str, password: str) -> tuple:
    """Insert an active admin account. Returns ``(account, created)``."""
    existing = db.query(Account).filter(Account.email == email).first()
    if existing:
        return existing, False

    account = Account(
        name=name,
        email=email,
        role=AccountRole.ADMIN,
        status=AccountStatus.ACTIVE,
        password_hash=hash_password(password),
        password_changed_at=clock.utcnow(),
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    return account, True


def _prompt_password() -> str:
    password = getpass.getpass("Password: ")
    if len(password) < PASSWORD_MIN_LENGTH:
        raise SystemExit(f"Password must be at least {PASSWORD_MIN_LENGTH} characters.")
    if password != getpass.getpass("Confirm password: "):
        raise SystemExit("Passwords do not match.")
    return password


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create an administrator account (idempotent).")
    parser.add_argument("--name", default="Administrator")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", help="omit to be prompted")
    args = parser.parse_args(argv)

    email = args.email.strip()
    if not email:
        raise SystemExit("Email is required.")
    password = args.password or _prompt_password()

    db = SessionLocal()
    try:
        account, created = create_admin(db, name=args.name, email=email, password=password)
    finally:
        db.close()

    if created:
        print(f"✓ Created admin account id={account.id} email={account.email}")
    else:
        print(f"  Account already exists: id={account.id} email={account.email} role={account.role}")
        if account.role != AccountRole.ADMIN:
            sys.exit(1)


if __name__ == "__main__":
    main()
