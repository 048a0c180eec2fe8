"""
Vantage Analytics - Persistence Models
SQLAlchemy mappings for the tables analytics reads from
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.domain.challenges.entities import Challenge, SolvedChallenge
from app.domain.submissions.entities import Submission
from app.domain.users.entities import User, UserRole, UserSummary
from app.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# One row per solve. Both User.solved_challenges and Challenge.solved_by
# read from it, so the two sides cannot drift inside this schema.
challenge_solves = Table(
    "challenge_solves",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("challenge_id", ForeignKey("challenges.id", ondelete="CASCADE"), primary_key=True),
)


class UserModel(Base):
    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(String(50), unique=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    points: Mapped[int] = mapped_column(Integer, default=0)
    role: Mapped[str] = mapped_column(String(20), default=UserRole.USER.value, index=True)
    is_blocked: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)

    solved_challenges: Mapped[List["ChallengeModel"]] = relationship(
        secondary=challenge_solves,
        back_populates="solved_by",
        order_by="ChallengeModel.title",
    )

    def to_entity(self, with_solves: bool = False) -> User:
        """Map to a domain record; solves stay ``None`` unless loaded."""
        return User(
            id=self.id,
            username=self.username,
            email=self.email,
            points=self.points or 0,
            solved_challenges=[c.to_solved() for c in self.solved_challenges] if with_solves else None,
            created_at=self.created_at,
            is_blocked=bool(self.is_blocked),
            role=UserRole(self.role),
        )

    def to_summary(self) -> UserSummary:
        return UserSummary(id=self.id, username=self.username, email=self.email, points=self.points or 0)


class ChallengeModel(Base):
    __tablename__ = "challenges"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    title: Mapped[str] = mapped_column(String(200))
    category: Mapped[str] = mapped_column(String(50), index=True)
    difficulty: Mapped[str] = mapped_column(String(20))
    points: Mapped[int] = mapped_column(Integer, default=100)
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    solved_by: Mapped[List[UserModel]] = relationship(
        secondary=challenge_solves,
        back_populates="solved_challenges",
        order_by=UserModel.username,
    )

    def to_entity(self, with_solvers: bool = False) -> Challenge:
        return Challenge(
            id=self.id,
            title=self.title,
            category=self.category,
            difficulty=self.difficulty,
            points=self.points or 0,
            is_visible=bool(self.is_visible),
            solved_by=[u.to_summary() for u in self.solved_by] if with_solvers else None,
        )

    def to_solved(self) -> SolvedChallenge:
        return SolvedChallenge(
            id=self.id,
            title=self.title,
            category=self.category,
            difficulty=self.difficulty,
            points=self.points or 0,
        )


class SubmissionModel(Base):
    """Flag submission attempts. Written by the platform, never updated."""
    __tablename__ = "submissions"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    challenge_id: Mapped[UUID] = mapped_column(ForeignKey("challenges.id", ondelete="CASCADE"))
    submitted_flag: Mapped[str] = mapped_column(String(500))
    is_correct: Mapped[bool] = mapped_column(Boolean)
    points: Mapped[int] = mapped_column(Integer, default=0)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45))
    user_agent: Mapped[Optional[str]] = mapped_column(String(500))

    __table_args__ = (
        Index("ix_submissions_user_time", "user_id", "submitted_at"),
        Index("ix_submissions_challenge_time", "challenge_id", "submitted_at"),
        Index("ix_submissions_is_correct", "is_correct"),
        Index("ix_submissions_time", "submitted_at"),
    )

    def to_entity(self) -> Submission:
        return Submission(
            id=self.id,
            user_id=self.user_id,
            challenge_id=self.challenge_id,
            submitted_flag=self.submitted_flag,
            is_correct=self.is_correct,
            points=self.points or 0,
            submitted_at=self.submitted_at,
            ip_address=self.ip_address,
            user_agent=self.user_agent,
        )
