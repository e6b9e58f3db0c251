"""
Purpose: Issue, validate and revoke opaque bearer tokens
Depends on: AccessToken model, a SQLAlchemy session
Used by: Auth routes, the auth_required guard, CLI
"""

import hashlib
import logging
import secrets
from datetime import timedelta
from typing import Optional

from taskapi.src.models.access_token import AccessToken
from taskapi.src.models.user import User
from taskapi.src.utils.clock import utcnow

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a plaintext token (what the database stores)."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


class TokenService:
    """
    Token lifecycle: Issued -> Valid -> Revoked.

    A token is valid while its digest is present (and, when a TTL is set,
    not past expires_at). Revocation deletes the row.
    """

    def __init__(self, session, ttl_seconds: Optional[int] = None, token_bytes: int = 40, clock=utcnow):
        self.session = session
        self.ttl_seconds = ttl_seconds
        self.token_bytes = token_bytes
        self._now = clock

    def issue(self, user: User, name: str = 'auth_token') -> str:
        """
        Create a new token for `user`.

        Returns:
            str: The plaintext token. It is not stored and cannot be retrieved again.
        """
        plaintext = secrets.token_urlsafe(self.token_bytes)
        expires_at = None
        if self.ttl_seconds:
            expires_at = self._now() + timedelta(seconds=self.ttl_seconds)

        record = AccessToken(
            user_id=user.id,
            name=name,
            token_hash=hash_token(plaintext),
            created_at=self._now(),
            expires_at=expires_at
        )
        self.session.add(record)
        self.session.commit()
        logger.info('Issued access token %s for user %s', record.id, user.id)
        return plaintext

    def lookup(self, token: Optional[str]) -> Optional[AccessToken]:
        """Live token record for a plaintext token. Read-only."""
        if not token:
            return None

        record = (
            self.session.query(AccessToken)
            .filter(AccessToken.token_hash == hash_token(token))
            .one_or_none()
        )
        if record is None:
            return None

        if record.is_expired(self._now()):
            logger.debug('Rejected expired access token %s', record.id)
            return None
        return record

    def touch(self, record: AccessToken) -> None:
        record.last_used_at = self._now()
        self.session.commit()

    def validate(self, token: Optional[str]) -> Optional[User]:
        """Resolve a plaintext token to its user, or None if unknown/revoked/expired."""
        record = self.lookup(token)
        if record is None:
            return None
        self.touch(record)
        return record.user

    def revoke(self, token: Optional[str]) -> None:
        """Delete the token. Unknown or already revoked tokens are ignored."""
        if not token:
            return
        deleted = (
            self.session.query(AccessToken)
            .filter(AccessToken.token_hash == hash_token(token))
            .delete(synchronize_session=False)
        )
        self.session.commit()
        if deleted:
            logger.info('Revoked access token')

    def prune_expired(self) -> int:
        """Delete every expired token. Returns the number of rows removed."""
        deleted = (
            self.session.query(AccessToken)
            .filter(AccessToken.expires_at.isnot(None), AccessToken.expires_at <= self._now())
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted
