"""Refresh token registry.

A refresh token is only honoured while a record for it exists here, so
deleting the record revokes the token before its natural expiry. Records are
keyed by a SHA-256 digest of the token string; the token itself is never
stored. Each record carries the token's expiry, and saving a new record
purges the ones that have already expired.
"""

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Lock
from typing import Protocol

from sqlalchemy.orm import Session

from backend.models.refresh_token import RefreshToken


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class StoredToken:
    user_id: int
    token_digest: str


class SessionStore(Protocol):
    def save(self, user_id: int, token: str, expires_at: datetime) -> None: ...

    def find(self, token: str) -> StoredToken | None: ...

    def delete(self, token: str) -> bool: ...


class InMemorySessionStore:
    """Process-local store for tests and single-worker deployments."""

    def __init__(self) -> None:
        self._records: dict[str, tuple[int, datetime]] = {}
        self._lock = Lock()

    def save(self, user_id: int, token: str, expires_at: datetime) -> None:
        now = datetime.now(timezone.utc)
        with self._lock:
            expired = [digest for digest, (_, expiry) in self._records.items() if expiry <= now]
            for digest in expired:
                del self._records[digest]
            self._records[token_digest(token)] = (int(user_id), expires_at)

    def find(self, token: str) -> StoredToken | None:
        digest = token_digest(token)
        with self._lock:
            record = self._records.get(digest)
        if record is None:
            return None
        return StoredToken(user_id=record[0], token_digest=digest)

    def delete(self, token: str) -> bool:
        with self._lock:
            return self._records.pop(token_digest(token), None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class SqlSessionStore:
    """Durable store backed by the ``refresh_tokens`` table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def save(self, user_id: int, token: str, expires_at: datetime) -> None:
        self.db.query(RefreshToken).filter(
            RefreshToken.expires_at <= datetime.now(timezone.utc)
        ).delete(synchronize_session=False)
        self.db.add(
            RefreshToken(
                user_id=int(user_id),
                token_digest=token_digest(token),
                expires_at=expires_at,
            )
        )
        self.db.commit()

    def find(self, token: str) -> StoredToken | None:
        record = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token_digest == token_digest(token))
            .first()
        )
        if record is None:
            return None
        return StoredToken(user_id=record.user_id, token_digest=record.token_digest)

    def delete(self, token: str) -> bool:
        deleted = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token_digest == token_digest(token))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted > 0
