"""Password hashing, bearer tokens and account operations."""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from config import Settings
from interview_session.errors import Unauthorized, ValidationFailure
from storage.users import UserRecord, UserStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_CHARS = 6


class TokenService:  # Issue and verify HS256 bearer tokens
    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 1440) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    def issue(self, user_id: str, *, now: Optional[datetime] = None) -> str:
        issued = now or datetime.now(timezone.utc)
        claims = {
            "sub": user_id,
            "iat": int(issued.timestamp()),
            "exp": int((issued + timedelta(minutes=self._expire_minutes)).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def subject(self, token: str) -> str:
        """Return the user id carried by ``token``.

        Raises:
            Unauthorized: If the token is malformed, expired or signed with another key.
        """

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.warning("Rejected bearer token: %s", exc)
            raise Unauthorized("invalid or expired token") from exc
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise Unauthorized("token has no subject")
        return subject


class AuthService:  # Account registration and login
    def __init__(self, users: UserStore, tokens: TokenService) -> None:
        self._users = users
        self._tokens = tokens
        self._pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

    def hash_password(self, password: str) -> str:
        return self._pwd_context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        return self._pwd_context.verify(password, password_hash)

    def register(self, username: str, email: str, password: str) -> tuple[UserRecord, str]:
        if not username.strip() or "@" not in email:
            raise ValidationFailure("a username and a valid email are required")
        if len(password) < MIN_PASSWORD_CHARS:
            raise ValidationFailure(f"password must be at least {MIN_PASSWORD_CHARS} characters")
        try:
            user = self._users.create(username=username, email=email, password_hash=self.hash_password(password))
        except sqlite3.IntegrityError as exc:
            field = "username" if "username" in str(exc) else "email"
            raise ValidationFailure(f"a user with this {field} already exists") from exc
        logger.info("Registered user id=%s", user.id)
        return user, self._tokens.issue(user.id)

    def login(self, email: str, password: str) -> tuple[UserRecord, str]:
        if not email or not password:
            raise ValidationFailure("email and password are required")
        found = self._users.credentials_for(email)
        if found is None or not self.verify_password(password, found[1]):
            raise Unauthorized("invalid credentials")
        user = found[0]
        return user, self._tokens.issue(user.id)

    def authenticate(self, token: str) -> UserRecord:  # Resolve a bearer token to its user
        user = self._users.get(self._tokens.subject(token))
        if user is None:
            raise Unauthorized("user for token no longer exists")
        return user


def build_auth(settings: Settings, users: UserStore) -> AuthService:
    tokens = TokenService(settings.JWT_SECRET, settings.JWT_ALGORITHM, settings.JWT_EXPIRE_MINUTES)
    return AuthService(users, tokens)


__all__ = ["AuthService", "TokenService", "build_auth", "MIN_PASSWORD_CHARS"]
