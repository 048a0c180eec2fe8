"""
Vantage Analytics - User Domain Entities
Read-only user records as seen by the aggregation engine
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from app.domain.challenges.entities import SolvedChallenge


class UserRole(str, Enum):
    """User role enumeration."""
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "superadmin"


ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})


@dataclass
class User:
    """
    Platform user record.

    ``solved_challenges`` is ``None`` when the data source was not asked
    to load it; an empty list means the user has solved nothing.
    """
    id: UUID = field(default_factory=uuid4)
    username: str = ""
    email: str = ""
    points: int = 0
    solved_challenges: Optional[List[SolvedChallenge]] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_blocked: bool = False
    role: UserRole = UserRole.USER


@dataclass
class UserSummary:
    """Lightweight user projection attached to challenge solver lists."""
    id: UUID
    username: str
    email: str
    points: int = 0

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "email": self.email,
            "points": self.points,
        }
