"""
Credential Store

This module persists users: hashed passwords, roles and the password reset
fields. The hash and the reset fields are read and written only here; every
value handed back to callers is a ``User`` view without them.
"""

import datetime
from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func, or_, select, update, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cartpod.common.auth.exceptions import DuplicateEmailError, LastAdminError
from cartpod.common.auth.password import DEFAULT_ITERATIONS, hash_password, verify_password
from cartpod.common.auth.user import User, UserRole
from cartpod.common.exceptions import NotFoundError, ValidationError
from cartpod.common.logger import app_logger
from cartpod.database.init_db import Database
from cartpod.database.models import UserRecord

logger = app_logger.getChild("auth.store")

_ADMIN = UserRole.ADMIN.value

def normalize_email(email: str) -> str:
    return email.strip().lower()


def _other_admins_remain():
    """Row filter that only matches non-admins, or admins that are not the last one."""
    admin_count = (
        select(func.count(UserRecord.id))
        .where(UserRecord.role == _ADMIN)
        .scalar_subquery()
    )
    return or_(UserRecord.role != _ADMIN, admin_count > 1)


def _to_user(record: UserRecord) -> User:
    return User(
        id=record.id,
        name=record.name,
        email=record.email,
        role=UserRole(record.role),
        created_at=record.created_at,
    )


class CredentialStore:
    """
    Repository for user credentials.

    Args:
        database: The database to store users in
        iterations: PBKDF2 iteration count for newly hashed passwords
    """

    def __init__(self, database: Database, iterations: int = DEFAULT_ITERATIONS):
        self.database = database
        self.iterations = iterations
        # Checked for unknown emails at the same cost as a real hash.
        self._dummy_hash = hash_password("cartpod-dummy-password", iterations)

    async def _hash(self, password: str) -> str:
        return await run_in_threadpool(hash_password, password, self.iterations)

    async def create(self, name: str, email: str, password: str, role: Any = UserRole.OWNER) -> User:
        """
        Create a user.

        Raises:
            DuplicateEmailError: If the email is already registered
            ValidationError: If the role is unknown
        """
        role = UserRole.parse(role)
        record = UserRecord(
            name=name.strip(),
            email=normalize_email(email),
            password_hash=await self._hash(password),
            role=role.value,
        )
        async with self.database.session() as session:
            session.add(record)
            try:
                await session.flush()
            except IntegrityError:
                raise DuplicateEmailError()
            user = _to_user(record)

        logger.info(f"Created {role.value} user {user.id}")
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        async with self.database.session() as session:
            record = await self._get_by_email(session, email)
            return _to_user(record) if record else None

    async def find_by_id(self, user_id: str) -> Optional[User]:
        async with self.database.session() as session:
            record = await session.get(UserRecord, user_id)
            return _to_user(record) if record else None

    async def verify_password(self, user: Optional[User], password: str) -> bool:
        """
        Check ``password`` against the stored hash of ``user``.

        A missing user is checked against a dummy hash and always fails.
        """
        encoded = None
        if user is not None:
            async with self.database.session() as session:
                encoded = await session.scalar(
                    select(UserRecord.password_hash).where(UserRecord.id == user.id)
                )

        if encoded is None:
            await run_in_threadpool(verify_password, password, self._dummy_hash)
            return False

        return await run_in_threadpool(verify_password, password, encoded)

    async def list(self) -> List[User]:
        async with self.database.session() as session:
            result = await session.execute(select(UserRecord).order_by(UserRecord.created_at))
            return [_to_user(record) for record in result.scalars()]

    async def count_admins(self) -> int:
        async with self.database.session() as session:
            return await session.scalar(
                select(func.count(UserRecord.id)).where(UserRecord.role == _ADMIN)
            )

    async def update(self, user_id: str, fields: Dict[str, Any]) -> User:
        """
        Update name, email and/or role of a user.

        Demoting an admin is checked against the remaining admins in the same
        transaction as the write.

        Raises:
            NotFoundError: If the user does not exist
            DuplicateEmailError: If the new email belongs to another user
            ValidationError: For an unknown role or an empty name
            LastAdminError: When demoting the only admin
        """
        async with self.database.session() as session:
            record = await session.get(UserRecord, user_id, with_for_update=True)
            if record is None:
                raise NotFoundError("User", user_id)

            role = fields.get("role")
            if role is not None:
                role = UserRole.parse(role)
                if record.role == _ADMIN and role != UserRole.ADMIN:
                    await self._lock_admins(session)
                    result = await session.execute(
                        update(UserRecord)
                        .where(UserRecord.id == user_id, _other_admins_remain())
                        .values(role=role.value)
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount == 0:
                        raise LastAdminError("Cannot demote the last admin user")
                    await session.refresh(record)
                else:
                    record.role = role.value

            name = fields.get("name")
            if name is not None:
                if not name.strip():
                    raise ValidationError("Name is required", {"name": "must not be empty"})
                record.name = name.strip()

            email = fields.get("email")
            if email is not None and normalize_email(email) != record.email:
                email = normalize_email(email)
                if await self._get_by_email(session, email) is not None:
                    raise DuplicateEmailError("Email already in use")
                record.email = email

            try:
                await session.flush()
            except IntegrityError:
                raise DuplicateEmailError("Email already in use")
            user = _to_user(record)

        logger.info(f"Updated user {user_id}: {sorted(k for k, v in fields.items() if v is not None)}")
        return user

    async def delete(self, user_id: str) -> None:
        """
        Delete a user.

        Raises:
            NotFoundError: If the user does not exist
            LastAdminError: If the user is the only admin
        """
        async with self.database.session() as session:
            record = await session.get(UserRecord, user_id)
            if record is None:
                raise NotFoundError("User", user_id)

            if record.role == _ADMIN:
                await self._lock_admins(session)

            result = await session.execute(
                delete(UserRecord)
                .where(UserRecord.id == user_id, _other_admins_remain())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise LastAdminError()

        logger.info(f"Deleted user {user_id}")

    async def set_reset_token(self, user_id: str, token: str, expires_at: datetime.datetime) -> bool:
        """Store a pending reset token and its (naive UTC) expiry."""
        async with self.database.session() as session:
            result = await session.execute(
                update(UserRecord)
                .where(UserRecord.id == user_id)
                .values(reset_token=token, reset_token_expiry=expires_at)
            )
            return result.rowcount == 1

    async def clear_reset_token(self, user_id: str, token: Optional[str] = None) -> bool:
        """
        Clear the pending reset fields.

        When ``token`` is given they are only cleared while they still hold
        that token, so a newer request is not wiped out.
        """
        conditions = [UserRecord.id == user_id]
        if token is not None:
            conditions.append(UserRecord.reset_token == token)

        async with self.database.session() as session:
            result = await session.execute(
                update(UserRecord)
                .where(*conditions)
                .values(reset_token=None, reset_token_expiry=None)
            )
            return result.rowcount == 1

    async def consume_reset(
        self,
        user_id: str,
        token: str,
        new_password: str,
        now: datetime.datetime
    ) -> bool:
        """
        Replace the password if ``token`` is the pending, unexpired reset token.

        Matching the token and expiry, writing the new hash and clearing the
        reset fields is a single UPDATE, so a token can be consumed once.

        Returns:
            True if the password was changed
        """
        new_hash = await self._hash(new_password)
        async with self.database.session() as session:
            result = await session.execute(
                update(UserRecord)
                .where(
                    UserRecord.id == user_id,
                    UserRecord.reset_token == token,
                    UserRecord.reset_token_expiry > now,
                )
                .values(password_hash=new_hash, reset_token=None, reset_token_expiry=None)
            )
            return result.rowcount == 1

    async def ensure_admin(self, name: str, email: str, password: str) -> Optional[User]:
        """
        Make sure at least one admin exists.

        Creates the configured admin (or promotes the user already holding
        that email) when there is none. Returns the user if anything changed.
        """
        if await self.count_admins() > 0:
            return None

        existing = await self.find_by_email(email)
        if existing is not None:
            user = await self.update(existing.id, {"role": UserRole.ADMIN})
            logger.info(f"Promoted existing user {user.id} to admin")
            return user

        user = await self.create(name, email, password, UserRole.ADMIN)
        logger.info(f"Seeded admin user {user.id}")
        return user

    @staticmethod
    async def _get_by_email(session: AsyncSession, email: str) -> Optional[UserRecord]:
        return await session.scalar(
            select(UserRecord).where(UserRecord.email == normalize_email(email))
        )

    @staticmethod
    async def _lock_admins(session: AsyncSession) -> int:
        """Lock every admin row for the rest of the transaction and count them."""
        result = await session.execute(
            select(UserRecord.id).where(UserRecord.role == _ADMIN).with_for_update()
        )
        return len(result.all())
