from taskapi.src.extensions import db
from taskapi.src.utils.clock import utcnow


class AccessToken(db.Model):
    """
    Server-side record of an issued bearer token.

    Only the SHA-256 digest of the token is stored; the plaintext is handed
    to the client once at login and cannot be recovered afterwards.
    """
    __tablename__ = 'access_tokens'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey('users.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    name = db.Column(db.String(100), nullable=False, default='auth_token')
    token_hash = db.Column(db.String(64), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=True, index=True)  # NULL = until revoked

    user = db.relationship('User', back_populates='access_tokens')

    def is_expired(self, now=None):
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or utcnow())

    def __repr__(self):
        return f'<AccessToken {self.id} user={self.user_id}>'
