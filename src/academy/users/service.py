"""User store: lookups and atomic progress counter increments."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

from sqlalchemy import select, update

from academy.db.models import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


class UserCounters(NamedTuple):
    """Snapshot of a user's progress counters."""

    lessons_completed: int
    courses_completed: int
    points: int


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by primary key."""
    return await db.get(User, user_id)


async def get_counters(db: AsyncSession, user_id: int) -> UserCounters | None:
    """Read the counters straight from the table, bypassing the identity map."""
    result = await db.execute(
        select(User.lessons_completed, User.courses_completed, User.points).where(User.id == user_id)
    )
    row = result.one_or_none()
    if row is None:
        return None
    return UserCounters(*row)


async def increment_counters(
    db: AsyncSession,
    user_id: int,
    lessons: int = 0,
    courses: int = 0,
    points: int = 0,
) -> None:
    """Apply relative increments in one UPDATE statement.

    The increment is computed by the database (``col = col + n``), so
    concurrent callers never overwrite each other's progress. Negative
    amounts are ignored: counters only grow.
    """
    values = {}
    if lessons > 0:
        values["lessons_completed"] = User.lessons_completed + lessons
    if courses > 0:
        values["courses_completed"] = User.courses_completed + courses
    if points > 0:
        values["points"] = User.points + points
    if not values:
        return

    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )


async def lock_user(db: AsyncSession, user_id: int) -> bool:
    """Row-lock the user for the rest of the transaction. Returns False if absent.

    Serializes concurrent reward updates for one user on PostgreSQL;
    SQLite ignores FOR UPDATE and relies on its database-wide write lock.
    """
    result = await db.execute(select(User.id).where(User.id == user_id).with_for_update())
    return result.first() is not None
