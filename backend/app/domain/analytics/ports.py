"""
Data source contract consumed by the analytics engine.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import AbstractSet, List, Optional, Protocol

from app.domain.challenges.entities import Challenge
from app.domain.users.entities import User, UserRole


class UserSort(str, Enum):
    """Supported user orderings."""
    CREATED_DESC = "created_desc"
    POINTS_DESC = "points_desc"


@dataclass(frozen=True)
class UserFilter:
    """User selection criteria. ``None`` fields are not filtered on."""
    created_since: Optional[datetime] = None
    role: Optional[UserRole] = None
    is_blocked: Optional[bool] = None


@dataclass(frozen=True)
class ChallengeFilter:
    """Challenge selection criteria."""
    is_visible: Optional[bool] = None


# Field sets requested by the analytics service
USER_ACCOUNT_FIELDS = frozenset({"username", "email", "points", "created_at", "is_blocked", "role"})
USER_SOLVES_FIELDS = USER_ACCOUNT_FIELDS | {"solved_challenges"}
CHALLENGE_FIELDS = frozenset({"title", "category", "difficulty", "points", "is_visible"})


class AnalyticsDataSource(Protocol):
    """
    Read-only access to users and challenges.

    Relationship fields are only loaded when named in ``projection``;
    otherwise they are ``None`` on the returned records. Implementations
    raise ``DataAccessFailure`` when a read cannot be satisfied.
    """

    async def fetch_users(
        self,
        projection: AbstractSet[str],
        filter: Optional[UserFilter] = None,
        sort: Optional[UserSort] = None,
        limit: Optional[int] = None,
    ) -> List[User]:
        ...

    async def fetch_challenges(
        self,
        projection: AbstractSet[str],
        with_solvers: bool = False,
    ) -> List[Challenge]:
        ...

    async def count_users(self, filter: Optional[UserFilter] = None) -> int:
        ...

    async def count_challenges(self, filter: Optional[ChallengeFilter] = None) -> int:
        ...
