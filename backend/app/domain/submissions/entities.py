"""
Vantage Analytics - Submission Domain Entities
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID, uuid4


@dataclass(frozen=True)
class Submission:
    """
    A single flag submission attempt.

    Created once per attempt and never modified afterwards. Not yet read
    by any metric; the success/failure figures are still estimated.
    """
    user_id: UUID
    challenge_id: UUID
    submitted_flag: str
    is_correct: bool
    id: UUID = field(default_factory=uuid4)
    points: int = 0
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "challenge_id": str(self.challenge_id),
            "is_correct": self.is_correct,
            "points": self.points,
            "submitted_at": self.submitted_at.isoformat(),
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
        }
