"""
Purpose: User model for authentication and task ownership.
Depends on: SQLAlchemy, werkzeug.security
Used by: Credential store, token service, task service
"""
from werkzeug.security import generate_password_hash, check_password_hash
from taskapi.src.extensions import db
from taskapi.src.utils.clock import utcnow


class User(db.Model):
    """
    User Model - Represents registered users who own tasks.

    Fields:
        - id: Primary key
        - name: Unique display name
        - email: Unique email address (stored lower-cased)
        - password_hash: Salted password hash (never store plain passwords)
        - avatar_path: Path of the uploaded avatar, relative to UPLOAD_FOLDER
        - created_at: Account creation timestamp
        - updated_at: Last update timestamp
    """

    __tablename__ = 'users'

    # Primary Key
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    name = db.Column(
        db.String(255),
        unique=True,  # No duplicate names
        nullable=False,
        index=True
    )

    email = db.Column(
        db.String(255),
        unique=True,  # Enforced by the database, not only by the validator
        nullable=False,
        index=True  # Fast lookups at login
    )

    # Password stored as hash (NEVER store plaintext passwords)
    password_hash = db.Column(db.String(255), nullable=False)

    avatar_path = db.Column(db.String(255), nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Deleting a user removes everything they own
    tasks = db.relationship(
        'Task',
        back_populates='owner',
        cascade='all, delete-orphan'
    )
    access_tokens = db.relationship(
        'AccessToken',
        back_populates='user',
        cascade='all, delete-orphan'
    )

    def set_password(self, password):
        """
        Hash and store password.

        Args:
            password (str): Plain text password from user input
        """
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """
        Verify password against stored hash (constant-time comparison).

        Args:
            password (str): Plain text password to verify

        Returns:
            bool: True if password matches, False otherwise
        """
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        """
        Convert User to dictionary. The password hash is never included.

        Returns:
            dict: Safe user data for API responses
        """
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'avatar_path': self.avatar_path,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat()
        }

    def __repr__(self):
        """String representation for debugging"""
        return f'<User {self.id}: {self.email}>'
