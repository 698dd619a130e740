"""
Authentication/session service abstraction.

The hosted backend owns sign-in and session state; the application only asks
it whether a token maps to a live session and which user that session
belongs to.
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Protocol

from sqlalchemy import Column, DateTime, ForeignKey, String, create_engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from werkzeug.security import check_password_hash, generate_password_hash

from portfolio.db import utcnow
from portfolio.errors import AuthenticationFailed, TransportFailure, ValidationFailure

DEFAULT_SESSION_TTL_SECONDS = 7 * 24 * 3600


class AuthClient(Protocol):
    def create_user(self, email: str, password: str) -> "AuthUser":
        ...

    def sign_in_with_password(self, email: str, password: str) -> "AuthSession":
        ...

    def get_session(self, access_token: str | None) -> Optional["AuthSession"]:
        ...

    def get_user(self, access_token: str | None) -> Optional["AuthUser"]:
        ...

    def sign_out(self, access_token: str | None) -> None:
        ...


@dataclass
class AuthUser:
    id: str
    email: str


@dataclass
class AuthSession:
    access_token: str
    user_id: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _new_token() -> str:
    return secrets.token_urlsafe(32)


class InMemoryAuthClient:
    """Auth double keeping users and sessions in dictionaries."""

    def __init__(
        self,
        session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_ttl = timedelta(seconds=session_ttl_seconds)
        self.clock = clock
        self.users: Dict[str, AuthUser] = {}
        self.password_hashes: Dict[str, str] = {}
        self.sessions: Dict[str, AuthSession] = {}

    def _find_by_email(self, email: str) -> Optional[AuthUser]:
        normalized = _normalize_email(email)
        return next((u for u in self.users.values() if u.email == normalized), None)

    def create_user(self, email: str, password: str) -> AuthUser:
        normalized = _normalize_email(email)
        if not normalized or not password:
            raise ValidationFailure("Email and password are required")
        if self._find_by_email(normalized):
            raise ValidationFailure(f"User {normalized} already exists")
        user = AuthUser(id=uuid.uuid4().hex, email=normalized)
        self.users[user.id] = user
        self.password_hashes[user.id] = generate_password_hash(password)
        return user

    def add_session(self, user_id: str) -> AuthSession:
        """Issue a session directly (useful in tests)."""
        session = AuthSession(
            access_token=_new_token(),
            user_id=user_id,
            expires_at=self.clock() + self.session_ttl,
        )
        self.sessions[session.access_token] = session
        return session

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        user = self._find_by_email(email)
        if not user or not check_password_hash(
            self.password_hashes[user.id], password or ""
        ):
            raise AuthenticationFailed("Invalid login credentials")
        return self.add_session(user.id)

    def get_session(self, access_token: str | None) -> Optional[AuthSession]:
        if not access_token:
            return None
        session = self.sessions.get(access_token)
        if not session:
            return None
        if session.is_expired(self.clock()):
            del self.sessions[access_token]
            return None
        return session

    def get_user(self, access_token: str | None) -> Optional[AuthUser]:
        session = self.get_session(access_token)
        if not session:
            return None
        return self.users.get(session.user_id)

    def sign_out(self, access_token: str | None) -> None:
        if access_token:
            self.sessions.pop(access_token, None)

    def reset(self) -> None:
        self.users.clear()
        self.password_hashes.clear()
        self.sessions.clear()


class PostgresAuthClient:
    """SQLAlchemy-backed users and sessions."""

    def __init__(
        self,
        database_url: str,
        session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresAuthClient")
        self.session_ttl = timedelta(seconds=session_ttl_seconds)
        self.clock = clock
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        AuthBase.metadata.create_all(self.engine)

    def _now(self) -> datetime:
        # SQLite drops tzinfo on read; compare naive UTC values throughout.
        return self.clock().replace(tzinfo=None)

    def create_user(self, email: str, password: str) -> AuthUser:
        normalized = _normalize_email(email)
        if not normalized or not password:
            raise ValidationFailure("Email and password are required")
        try:
            with self.Session() as session:
                row = UserRow(
                    id=uuid.uuid4().hex,
                    email=normalized,
                    password_hash=generate_password_hash(password),
                    created_at=self._now(),
                )
                session.add(row)
                session.commit()
                return AuthUser(id=row.id, email=row.email)
        except IntegrityError as exc:
            raise ValidationFailure(f"User {normalized} already exists") from exc
        except SQLAlchemyError as exc:
            raise TransportFailure(str(exc)) from exc

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            with self.Session() as session:
                user = session.execute(
                    select(UserRow).where(UserRow.email == _normalize_email(email))
                ).scalar_one_or_none()
                if not user or not check_password_hash(
                    user.password_hash, password or ""
                ):
                    raise AuthenticationFailed("Invalid login credentials")
                row = SessionRow(
                    access_token=_new_token(),
                    user_id=user.id,
                    expires_at=self._now() + self.session_ttl,
                )
                session.add(row)
                session.commit()
                return AuthSession(
                    access_token=row.access_token,
                    user_id=row.user_id,
                    expires_at=row.expires_at,
                )
        except SQLAlchemyError as exc:
            raise TransportFailure(str(exc)) from exc

    def get_session(self, access_token: str | None) -> Optional[AuthSession]:
        if not access_token:
            return None
        try:
            with self.Session() as session:
                row = session.get(SessionRow, access_token)
                if not row:
                    return None
                expires_at = row.expires_at.replace(tzinfo=None)
                if self._now() >= expires_at:
                    session.delete(row)
                    session.commit()
                    return None
                return AuthSession(
                    access_token=row.access_token,
                    user_id=row.user_id,
                    expires_at=expires_at,
                )
        except SQLAlchemyError as exc:
            raise TransportFailure(str(exc)) from exc

    def get_user(self, access_token: str | None) -> Optional[AuthUser]:
        auth_session = self.get_session(access_token)
        if not auth_session:
            return None
        try:
            with self.Session() as session:
                row = session.get(UserRow, auth_session.user_id)
                return AuthUser(id=row.id, email=row.email) if row else None
        except SQLAlchemyError as exc:
            raise TransportFailure(str(exc)) from exc

    def sign_out(self, access_token: str | None) -> None:
        if not access_token:
            return
        try:
            with self.Session() as session:
                row = session.get(SessionRow, access_token)
                if row:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as exc:
            raise TransportFailure(str(exc)) from exc


AuthBase = declarative_base()


class UserRow(AuthBase):
    __tablename__ = "auth_users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False)


class SessionRow(AuthBase):
    __tablename__ = "auth_sessions"

    access_token = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("auth_users.id"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
