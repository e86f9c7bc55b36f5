# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError

from userauth.domain.users.entities import ClientInfo, Session, normalize_email
from userauth.domain.users.entities import User as DomainUser
from userauth.domain.users.exceptions import DuplicateEmailError
from userauth.domain.users.repositories import SessionRepository, UserRepository
from userauth.infrastructure.db.models import User, UserSession
from userauth.infrastructure.db.session import Database


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _to_domain(row: User) -> DomainUser:
    return DomainUser(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        email_confirmed=bool(row.email_confirmed),
        full_name=row.full_name,
        created_at=_aware(row.created_at) or datetime.now(UTC),
        updated_at=_aware(row.updated_at),
    )


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    def add(self, email: str, password_hash: str, full_name: str | None = None) -> DomainUser:
        try:
            with self._db.session_scope() as session:
                row = User(
                    email=normalize_email(email),
                    password_hash=password_hash,
                    full_name=full_name,
                    email_confirmed=False,
                )
                session.add(row)
                session.flush()
                session.refresh(row)
                return _to_domain(row)
        except IntegrityError as exc:
            raise DuplicateEmailError() from exc

    def find_by_email(self, email: str) -> DomainUser | None:
        with self._db.session_scope() as session:
            row = session.query(User).filter(User.email == normalize_email(email)).first()
            return _to_domain(row) if row else None

    def find_by_id(self, user_id: int) -> DomainUser | None:
        with self._db.session_scope() as session:
            row = session.get(User, user_id)
            return _to_domain(row) if row else None

    def set_confirmed(self, user_id: int) -> bool:
        with self._db.session_scope() as session:
            updated = (
                session.query(User)
                .filter(User.id == user_id, User.email_confirmed.is_(False))
                .update(
                    {User.email_confirmed: True, User.updated_at: datetime.now(UTC)},
                    synchronize_session=False,
                )
            )
            return updated > 0

    def update_password(self, user_id: int, password_hash: str) -> None:
        with self._db.session_scope() as session:
            session.query(User).filter(User.id == user_id).update(
                {User.password_hash: password_hash, User.updated_at: datetime.now(UTC)},
                synchronize_session=False,
            )

    def delete_by_emails(self, emails: Iterable[str]) -> int:
        normalized = sorted({normalize_email(e) for e in emails if e and e.strip()})
        if not normalized:
            return 0
        with self._db.session_scope() as session:
            doomed = [row.id for row in session.query(User.id).filter(User.email.in_(normalized))]
            if not doomed:
                return 0
            # SQLite only cascades with foreign keys switched on
            session.query(UserSession).filter(UserSession.user_id.in_(doomed)).delete(
                synchronize_session=False
            )
            return (
                session.query(User)
                .filter(User.id.in_(doomed))
                .delete(synchronize_session=False)
            )


def _session_to_domain(row: UserSession) -> Session:
    return Session(
        id=row.id,
        user_id=row.user_id,
        jti=row.jti,
        created_at=_aware(row.created_at) or datetime.now(UTC),
        expires_at=_aware(row.expires_at) or datetime.now(UTC),
        ip_address=row.ip_address,
        user_agent=row.user_agent,
    )


def _utc(value: datetime) -> datetime:
    return value.astimezone(UTC) if value.tzinfo else value.replace(tzinfo=UTC)


class SqlAlchemySessionRepository(SessionRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    def create(
        self,
        user_id: int,
        jti: str,
        expires_at: datetime,
        *,
        max_sessions: int,
        client: ClientInfo | None = None,
    ) -> Session:
        client = client or ClientInfo()
        with self._db.session_scope() as session:
            newest_first = (
                session.query(UserSession.id)
                .filter(UserSession.user_id == user_id)
                .order_by(UserSession.created_at.desc(), UserSession.id.desc())
                .all()
            )
            # Make room for the new session by dropping the oldest ones
            stale = [row.id for row in newest_first[max(0, max_sessions - 1):]]
            if stale:
                session.query(UserSession).filter(UserSession.id.in_(stale)).delete(
                    synchronize_session=False
                )
            row = UserSession(
                user_id=user_id,
                jti=jti,
                expires_at=_utc(expires_at),
                ip_address=client.ip_address,
                user_agent=client.user_agent[:255] if client.user_agent else None,
            )
            session.add(row)
            session.flush()
            session.refresh(row)
            return _session_to_domain(row)

    def find_by_jti(self, jti: str) -> Session | None:
        with self._db.session_scope() as session:
            row = session.query(UserSession).filter(UserSession.jti == jti).first()
            return _session_to_domain(row) if row else None

    def count_for_user(self, user_id: int) -> int:
        with self._db.session_scope() as session:
            return session.query(UserSession).filter(UserSession.user_id == user_id).count()

    def prune_expired(self, user_id: int, before: datetime) -> int:
        with self._db.session_scope() as session:
            return (
                session.query(UserSession)
                .filter(UserSession.user_id == user_id, UserSession.expires_at < _utc(before))
                .delete(synchronize_session=False)
            )

    def revoke(self, jti: str) -> bool:
        with self._db.session_scope() as session:
            deleted = (
                session.query(UserSession)
                .filter(UserSession.jti == jti)
                .delete(synchronize_session=False)
            )
            return deleted > 0

    def revoke_all(self, user_id: int) -> int:
        with self._db.session_scope() as session:
            return (
                session.query(UserSession)
                .filter(UserSession.user_id == user_id)
                .delete(synchronize_session=False)
            )
