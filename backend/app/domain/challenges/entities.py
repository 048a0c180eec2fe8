"""
Vantage Analytics - Challenge Domain Entities
Read-only challenge records and the projections used inside user records
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from app.domain.users.entities import UserSummary


class ChallengeDifficulty(str, Enum):
    """Difficulty labels used by the platform. Records may carry others."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    INSANE = "insane"


@dataclass
class SolvedChallenge:
    """Challenge detail resolved onto a user's solved list."""
    id: UUID
    title: str
    category: str
    difficulty: str
    points: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "category": self.category,
            "difficulty": self.difficulty,
            "points": self.points,
        }


@dataclass
class Challenge:
    """
    Challenge record.

    ``solved_by`` is ``None`` when solvers were not loaded.
    """
    id: UUID = field(default_factory=uuid4)
    title: str = ""
    category: str = ""
    difficulty: str = ChallengeDifficulty.MEDIUM.value
    points: int = 0
    is_visible: bool = True
    solved_by: Optional[List["UserSummary"]] = field(default_factory=list)

    @property
    def solve_count(self) -> int:
        """Number of users who solved this challenge."""
        if self.solved_by is None:
            return 0
        return len(self.solved_by)
