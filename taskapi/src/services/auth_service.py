"""
Purpose: Account registration, credential checks and profile changes
Depends on: User model, validators, avatar storage, a SQLAlchemy session
Used by: Auth and user API routes
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash

from taskapi.src.errors import AuthenticationError, ConflictError
from taskapi.src.models.user import User
from taskapi.src.utils import avatars
from taskapi.src.utils.validators import (
    LOGIN_RULES,
    REGISTER_RULES,
    UPDATE_PASSWORD_RULES,
    UPDATE_PROFILE_RULES,
    ValidationContext,
    validate,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid credentials'

# Checked when the email is unknown so both failure paths hash once
_DUMMY_PASSWORD_HASH = generate_password_hash('dummy-password-for-timing')


def _violates_unique(driver_error, column: str) -> bool:
    """
    Whether a driver IntegrityError names the users.<column> unique index.

    SQLite reports "UNIQUE constraint failed: users.email"; PostgreSQL puts
    the constraint name (users_email_key) on the first line and the
    duplicated value on the DETAIL line, which is never inspected.
    """
    first_line = str(driver_error).lower().split('\n', 1)[0]
    return f'users.{column}' in first_line or f'users_{column}_key' in first_line


class CredentialStore:
    """Service class for user accounts and credentials"""

    def __init__(self, session, upload_folder: str = 'uploads', settings: Optional[Dict[str, Any]] = None):
        self.session = session
        self.upload_folder = upload_folder
        self.settings = settings or {}

    def _context(self, ignore_id=None) -> ValidationContext:
        return ValidationContext(session=self.session, ignore_id=ignore_id, config=self.settings)

    def _commit_or_conflict(self, stored_avatar=None):
        """
        Commit, turning a unique-constraint race into ConflictError.

        The validator checks uniqueness first; the database constraint is
        what actually guarantees it when two requests race.
        """
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            avatars.delete_avatar(stored_avatar, self.upload_folder)
            errors = {
                column: [f'The {column} has already been taken.']
                for column in ('name', 'email')
                if _violates_unique(exc.orig, column)
            }
            raise ConflictError(errors or {'email': ['The email has already been taken.']}) from exc

    def register(self, data: Dict[str, Any]) -> User:
        """
        Create a new account.

        Args:
            data: name, email, password and optional avatar (FileStorage)

        Returns:
            User: The persisted user

        Raises:
            ValidationError: On any rule violation, including duplicates
            ConflictError: If a concurrent registration took the email/name first
        """
        validated = validate(data, REGISTER_RULES, self._context())

        avatar_path = None
        if validated.get('avatar') is not None:
            avatar_path = avatars.store_avatar(validated['avatar'], self.upload_folder)

        user = User(
            name=validated['name'],
            email=validated['email'],
            avatar_path=avatar_path
        )
        user.set_password(validated['password'])

        self.session.add(user)
        self._commit_or_conflict(stored_avatar=avatar_path)

        logger.info('Registered user %s', user.id)
        return user

    def authenticate(self, data: Dict[str, Any]) -> User:
        """
        Check an email/password pair.

        Unknown email and wrong password fail identically.

        Raises:
            ValidationError: If email or password is missing
            AuthenticationError: On any credential mismatch
        """
        validated = validate(data, LOGIN_RULES, self._context())
        email = validated['email'].lower()

        user = self.session.query(User).filter(User.email == email).one_or_none()
        if user is None:
            # Burn the same hashing cost as a real check
            User(password_hash=_DUMMY_PASSWORD_HASH).check_password(validated['password'])
            logger.info('Failed login attempt')
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not user.check_password(validated['password']):
            logger.info('Failed login attempt')
            raise AuthenticationError(INVALID_CREDENTIALS)

        return user

    def update_profile(self, user: User, data: Dict[str, Any]) -> User:
        """
        Replace name and email, and the avatar when a new one is uploaded.

        Uniqueness is checked against every other user, never against self.
        """
        validated = validate(data, UPDATE_PROFILE_RULES, self._context(ignore_id=user.id))

        old_avatar = None
        new_avatar = None
        if validated.get('avatar') is not None:
            new_avatar = avatars.store_avatar(validated['avatar'], self.upload_folder)
            old_avatar = user.avatar_path
            user.avatar_path = new_avatar

        user.name = validated['name']
        user.email = validated['email']
        self._commit_or_conflict(stored_avatar=new_avatar)

        if old_avatar and old_avatar != new_avatar:
            avatars.delete_avatar(old_avatar, self.upload_folder)

        logger.info('Updated profile of user %s', user.id)
        return user

    def update_password(self, user: User, data: Dict[str, Any]) -> None:
        """Hash and store a new password."""
        validated = validate(data, UPDATE_PASSWORD_RULES, self._context())
        user.set_password(validated['password'])
        self.session.commit()
        logger.info('Updated password of user %s', user.id)
