"""User registration and login."""

import logging
import re
import uuid
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from taskmanager.auth.jwt import create_access_token
from taskmanager.auth.passwords import hash_password, verify_password
from taskmanager.database.user_repository import UserRepository
from taskmanager.models.constants import MIN_PASSWORD_LENGTH
from taskmanager.models.user import User

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserExistsError(Exception):
    """Raised when registering an email that is already taken."""


class InvalidEmailError(ValueError):
    """Raised when an email address is malformed."""


class InvalidPasswordError(ValueError):
    """Raised when a password is too short."""


class InvalidCredentialsError(Exception):
    """Raised when login email or password is wrong."""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AuthService:
    """Registers users and issues access tokens."""

    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    def register(self, email: str, password: str) -> User:
        """Create a user with a bcrypt-hashed password.

        Raises:
            InvalidEmailError: If the email is malformed
            InvalidPasswordError: If the password is shorter than the minimum
            UserExistsError: If the email is already registered
        """
        email = normalize_email(email)
        if not EMAIL_PATTERN.match(email):
            raise InvalidEmailError("Invalid email address")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise InvalidPasswordError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        if self.user_repository.get_by_email(email):
            raise UserExistsError("User already exists")

        now = datetime.utcnow()
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=hash_password(password),
            created_at=now,
            updated_at=now,
        )
        try:
            created = self.user_repository.create(user)
        except IntegrityError as e:
            # Concurrent registration of the same email
            raise UserExistsError("User already exists") from e

        logger.info(f"Registered user {created.id}")
        return created

    def login(self, email: str, password: str) -> str:
        """Verify credentials and return a fresh access token.

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong
        """
        user = self.user_repository.get_by_email(normalize_email(email))
        if not user or not verify_password(password or "", user.password_hash):
            logger.info("Rejected login attempt")
            raise InvalidCredentialsError("Invalid credentials")
        return create_access_token(user.id)
