"""
Vantage Analytics - Analytics Repository
SQLAlchemy implementation of the analytics data source
"""

from typing import AbstractSet, List, Optional

import structlog
from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from app.domain.analytics.errors import DataAccessFailure
from app.domain.analytics.ports import ChallengeFilter, UserFilter, UserSort
from app.domain.challenges.entities import Challenge
from app.domain.users.entities import User
from app.infrastructure.database import DatabaseManager
from app.infrastructure.models import ChallengeModel, UserModel

logger = structlog.get_logger(__name__)


def apply_user_filter(stmt: Select, filter: Optional[UserFilter]) -> Select:
    """Add WHERE clauses for the non-empty fields of ``filter``."""
    if filter is None:
        return stmt
    if filter.created_since is not None:
        stmt = stmt.where(UserModel.created_at >= filter.created_since)
    if filter.role is not None:
        stmt = stmt.where(UserModel.role == filter.role.value)
    if filter.is_blocked is not None:
        stmt = stmt.where(UserModel.is_blocked.is_(filter.is_blocked))
    return stmt


def apply_challenge_filter(stmt: Select, filter: Optional[ChallengeFilter]) -> Select:
    if filter is None:
        return stmt
    if filter.is_visible is not None:
        stmt = stmt.where(ChallengeModel.is_visible.is_(filter.is_visible))
    return stmt


def apply_user_sort(stmt: Select, sort: Optional[UserSort]) -> Select:
    """Order users; ``id`` breaks ties so pages are repeatable."""
    if sort == UserSort.CREATED_DESC:
        return stmt.order_by(UserModel.created_at.desc(), UserModel.id)
    if sort == UserSort.POINTS_DESC:
        return stmt.order_by(UserModel.points.desc(), UserModel.id)
    return stmt.order_by(UserModel.id)


class SqlAnalyticsRepository:
    """
    Read-only analytics queries.

    Every call runs in its own session, so independent fetches can be
    awaited concurrently. Database and socket errors surface as
    DataAccessFailure.
    """

    def __init__(self, db_manager: DatabaseManager):
        self._db = db_manager

    async def fetch_users(
        self,
        projection: AbstractSet[str],
        filter: Optional[UserFilter] = None,
        sort: Optional[UserSort] = None,
        limit: Optional[int] = None,
    ) -> List[User]:
        with_solves = "solved_challenges" in projection

        stmt = apply_user_sort(apply_user_filter(select(UserModel), filter), sort)
        if with_solves:
            stmt = stmt.options(selectinload(UserModel.solved_challenges))
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self._db.session() as session:
                rows = (await session.scalars(stmt)).all()
                return [row.to_entity(with_solves=with_solves) for row in rows]
        except (SQLAlchemyError, OSError) as e:
            logger.error("User fetch failed", error=str(e))
            raise DataAccessFailure("fetch_users", str(e)) from e

    async def fetch_challenges(
        self,
        projection: AbstractSet[str],
        with_solvers: bool = False,
    ) -> List[Challenge]:
        stmt = select(ChallengeModel).order_by(ChallengeModel.created_at, ChallengeModel.id)
        if with_solvers:
            stmt = stmt.options(selectinload(ChallengeModel.solved_by))

        try:
            async with self._db.session() as session:
                rows = (await session.scalars(stmt)).all()
                return [row.to_entity(with_solvers=with_solvers) for row in rows]
        except (SQLAlchemyError, OSError) as e:
            logger.error("Challenge fetch failed", error=str(e))
            raise DataAccessFailure("fetch_challenges", str(e)) from e

    async def count_users(self, filter: Optional[UserFilter] = None) -> int:
        stmt = apply_user_filter(select(func.count()).select_from(UserModel), filter)
        return await self._count("count_users", stmt)

    async def count_challenges(self, filter: Optional[ChallengeFilter] = None) -> int:
        stmt = apply_challenge_filter(select(func.count()).select_from(ChallengeModel), filter)
        return await self._count("count_challenges", stmt)

    async def _count(self, operation: str, stmt: Select) -> int:
        try:
            async with self._db.session() as session:
                return (await session.scalar(stmt)) or 0
        except (SQLAlchemyError, OSError) as e:
            logger.error("Count failed", operation=operation, error=str(e))
            raise DataAccessFailure(operation, str(e)) from e
