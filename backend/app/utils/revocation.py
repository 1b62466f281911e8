"""Token revocation store (jti deny-list) and its background sweeper.

Two backends share one interface:

- :class:`InMemoryRevocationStore`: process-local dict guarded by a lock.
  Revocations are not visible to other server instances.
- :class:`DatabaseRevocationStore`: rows in ``revoked_tokens``, shared by every
  instance pointed at the same database.

Expired entries are harmless (the token already fails ``exp`` verification), so
sweeping is space reclamation only and never affects validation results.
"""
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.middleware.monitoring import set_revoked_tokens
from app.utils import clock
from app.utils.logger import logger


class RevocationStore:
    """Interface for jti deny-lists"""

    def revoke(self, jti: Optional[str], expires_at: Optional[int]) -> None:
        """Deny ``jti`` until ``expires_at`` (seconds since epoch). Overwrites existing entries."""
        raise NotImplementedError

    def is_revoked(self, jti: Optional[str]) -> bool:
        raise NotImplementedError

    def purge_expired(self) -> int:
        """Drop entries whose expiry is in the past. Returns the number removed."""
        raise NotImplementedError

    def size(self) -> int:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    @staticmethod
    def _valid_args(jti: Optional[str], expires_at: Optional[int]) -> bool:
        if not jti or not expires_at:
            logger.warning(
                "Attempted to revoke token with invalid jti or exp",
                extra={"jti": jti, "action": "revoke_token"},
            )
            return False
        return True


class InMemoryRevocationStore(RevocationStore):
    def __init__(self) -> None:
        self._entries: Dict[str, int] = {}
        self._lock = threading.Lock()

    def revoke(self, jti: Optional[str], expires_at: Optional[int]) -> None:
        if not self._valid_args(jti, expires_at):
            return
        with self._lock:
            self._entries[jti] = int(expires_at)
        logger.info(
            f"Token jti={jti} added to deny list, expires at "
            f"{datetime.fromtimestamp(int(expires_at), tz=timezone.utc).isoformat()}",
            extra={"jti": jti, "action": "revoke_token"},
        )

    def is_revoked(self, jti: Optional[str]) -> bool:
        if not jti:
            return False
        return jti in self._entries

    def purge_expired(self) -> int:
        now = clock.epoch_now()
        with self._lock:
            expired = [jti for jti, exp in self._entries.items() if exp < now]
            for jti in expired:
                del self._entries[jti]
        return len(expired)

    def size(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class DatabaseRevocationStore(RevocationStore):
    """Deny-list persisted in ``revoked_tokens``; each call uses its own short session."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def revoke(self, jti: Optional[str], expires_at: Optional[int]) -> None:
        from app.models.revoked_token import RevokedToken

        if not self._valid_args(jti, expires_at):
            return
        expires = datetime.fromtimestamp(int(expires_at), tz=timezone.utc).replace(tzinfo=None)

        db = self._session_factory()
        try:
            existing = db.query(RevokedToken).filter(RevokedToken.jti == jti).first()
            if existing:
                existing.expires_at = expires
            else:
                db.add(RevokedToken(jti=jti, expires_at=expires))
            try:
                db.commit()
            except IntegrityError:
                # Another instance inserted the same jti concurrently; it is denied either way.
                db.rollback()
        finally:
            db.close()

        logger.info(
            f"Token jti={jti} added to deny list",
            extra={"jti": jti, "action": "revoke_token"},
        )

    def is_revoked(self, jti: Optional[str]) -> bool:
        from app.models.revoked_token import RevokedToken

        if not jti:
            return False
        db = self._session_factory()
        try:
            return db.query(RevokedToken.id).filter(RevokedToken.jti == jti).first() is not None
        finally:
            db.close()

    def purge_expired(self) -> int:
        from app.models.revoked_token import RevokedToken

        db = self._session_factory()
        try:
            removed = (
                db.query(RevokedToken)
                .filter(RevokedToken.expires_at < clock.utcnow())
                .delete(synchronize_session=False)
            )
            db.commit()
            return removed
        finally:
            db.close()

    def size(self) -> int:
        from app.models.revoked_token import RevokedToken

        db = self._session_factory()
        try:
            return db.query(RevokedToken).count()
        finally:
            db.close()

    def clear(self) -> None:
        from app.models.revoked_token import RevokedToken

        db = self._session_factory()
        try:
            db.query(RevokedToken).delete(synchronize_session=False)
            db.commit()
        finally:
            db.close()


class RevocationSweeper:
    """Daemon thread that purges expired deny-list entries on a fixed period."""

    def __init__(self, store: RevocationStore, interval_seconds: int) -> None:
        self.store = store
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def sweep_once(self) -> int:
        removed = self.store.purge_expired()
        if removed:
            logger.info(
                f"Cleaned up {removed} expired revoked tokens",
                extra={"action": "sweep_revoked_tokens"},
            )
        set_revoked_tokens(self.store.size())
        return removed

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.sweep_once()
            except Exception as exc:
                logger.error(
                    f"Revoked token sweep failed: {exc}",
                    extra={"action": "sweep_revoked_tokens"},
                    exc_info=True,
                )

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="revocation-sweeper", daemon=True)
        self._thread.start()
        logger.info(f"Scheduled revoked token cleanup every {self.interval_seconds // 60} minutes")

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None


# ---------------------------------------------------------------------------
# Process-wide store
# ---------------------------------------------------------------------------

_store: Optional[RevocationStore] = None


def build_revocation_store() -> RevocationStore:
    """Construct the backend named by ``REVOCATION_BACKEND``."""
    backend = settings.REVOCATION_BACKEND.lower()
    if backend == "database":
        from app.database import SessionLocal
        return DatabaseRevocationStore(SessionLocal)
    if backend != "memory":
        raise ValueError(f"Unknown REVOCATION_BACKEND '{settings.REVOCATION_BACKEND}' (expected memory or database)")
    return InMemoryRevocationStore()


def get_revocation_store() -> RevocationStore:
    """Return the process-wide store, building it on first call. Usable as a FastAPI dependency."""
    global _store
    if _store is None:
        _store = build_revocation_store()
    return _store
