"""
Metric computers for the admin analytics dashboard.

Every computer is a pure function of the records it is given and, where
time matters, an explicit reference timestamp. Nothing here touches the
database or the process clock.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, Iterable, List, Sequence

from app.domain.analytics.errors import ComputationFault
from app.domain.challenges.entities import Challenge, SolvedChallenge
from app.domain.users.entities import User, UserRole


ACTIVE_WINDOW = timedelta(days=30)
TRAFFIC_WINDOW = timedelta(days=30)
SHORT_TRAFFIC_WINDOW = timedelta(days=7)

HIGH_ENGAGEMENT_MIN_SOLVES = 5
MEDIUM_ENGAGEMENT_MIN_SOLVES = 2

RANKED_CHALLENGES_LIMIT = 5
LEADERBOARD_SIZE = 10

# Assumed share of failed attempts per successful solve
ESTIMATED_FAILURE_RATIO = 0.3


def round2(value: float) -> float:
    """
    Round half-up to two decimal places.

    Works on the exact binary value of ``value``, so 0.075 (stored as
    0.07499...) rounds down while an exact tie such as 0.125 rounds up.
    """
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _solved(user: User) -> List[SolvedChallenge]:
    if user.solved_challenges is None:
        raise ComputationFault(f"solved challenges not loaded for user {user.username!r}")
    return user.solved_challenges


def _solvers(challenge: Challenge) -> list:
    if challenge.solved_by is None:
        raise ComputationFault(f"solvers not loaded for challenge {challenge.title!r}")
    return challenge.solved_by


# =============================================================================
# Overview
# =============================================================================

@dataclass
class OverviewStats:
    """Platform-wide headline numbers."""
    total_users: int = 0
    active_users: int = 0
    admin_users: int = 0
    blocked_users: int = 0
    total_challenges: int = 0
    visible_challenges: int = 0
    total_submissions: int = 0
    total_points: int = 0
    avg_per_user: float = 0

    @property
    def hidden_challenges(self) -> int:
        return self.total_challenges - self.visible_challenges

    def to_dict(self) -> Dict[str, Any]:
        return {
            "users": {
                "total": self.total_users,
                "active": self.active_users,
                "admins": self.admin_users,
                "blocked": self.blocked_users,
            },
            "challenges": {
                "total": self.total_challenges,
                "visible": self.visible_challenges,
                "hidden": self.hidden_challenges,
            },
            "submissions": {
                "total": self.total_submissions,
                "avgPerUser": self.avg_per_user,
                "totalPoints": self.total_points,
            },
        }


def compute_overview(
    users: Sequence[User],
    challenges: Sequence[Challenge],
    now: datetime,
) -> OverviewStats:
    """
    Count users and challenges and total up solves and points.

    ``avg_per_user`` is total points divided by user count (not solves),
    and is 0 for an empty platform.
    """
    active_since = as_utc(now) - ACTIVE_WINDOW

    total_users = len(users)
    total_points = sum(user.points or 0 for user in users)

    return OverviewStats(
        total_users=total_users,
        active_users=sum(1 for user in users if as_utc(user.created_at) >= active_since),
        admin_users=sum(1 for user in users if user.role == UserRole.ADMIN),
        blocked_users=sum(1 for user in users if user.is_blocked),
        total_challenges=len(challenges),
        visible_challenges=sum(1 for challenge in challenges if challenge.is_visible),
        total_submissions=sum(len(_solved(user)) for user in users),
        total_points=total_points,
        avg_per_user=round2(total_points / total_users) if total_users > 0 else 0,
    )


# =============================================================================
# User engagement
# =============================================================================

class EngagementTier(str, Enum):
    """Engagement buckets, keyed by their summary field name."""
    HIGH = "highEngagement"
    MEDIUM = "mediumEngagement"
    LOW = "lowEngagement"
    INACTIVE = "inactive"


def classify_engagement(challenges_solved: int, is_active: bool) -> EngagementTier:
    """Place a user in exactly one tier. Blocked users are always inactive."""
    if not is_active:
        return EngagementTier.INACTIVE
    if challenges_solved >= HIGH_ENGAGEMENT_MIN_SOLVES:
        return EngagementTier.HIGH
    if challenges_solved >= MEDIUM_ENGAGEMENT_MIN_SOLVES:
        return EngagementTier.MEDIUM
    return EngagementTier.LOW


@dataclass
class UserEngagement:
    """Derived engagement figures for one user."""
    username: str
    joined_date: datetime
    challenges_solved: int
    points: int
    is_active: bool
    days_active: int

    @property
    def tier(self) -> EngagementTier:
        return classify_engagement(self.challenges_solved, self.is_active)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "joinedDate": self.joined_date.isoformat(),
            "challengesSolved": self.challenges_solved,
            "points": self.points,
            "isActive": self.is_active,
            "daysActive": self.days_active,
        }


@dataclass
class EngagementReport:
    summary: Dict[EngagementTier, int]
    users: List[UserEngagement] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {tier.value: self.summary.get(tier, 0) for tier in EngagementTier},
            "users": [user.to_dict() for user in self.users],
        }


def compute_user_engagement(users: Sequence[User], now: datetime) -> EngagementReport:
    """
    Derive per-user engagement and tier counts.

    Output order follows input order.
    """
    now = as_utc(now)
    rows = []
    for user in users:
        joined = as_utc(user.created_at)
        rows.append(
            UserEngagement(
                username=user.username,
                joined_date=joined,
                challenges_solved=len(_solved(user)),
                points=user.points or 0,
                is_active=not user.is_blocked,
                days_active=(now - joined) // timedelta(days=1),
            )
        )

    summary = {tier: 0 for tier in EngagementTier}
    for row in rows:
        summary[row.tier] += 1

    return EngagementReport(summary=summary, users=rows)


# =============================================================================
# Challenge statistics
# =============================================================================

@dataclass
class CategoryStats:
    count: int = 0
    solved: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"count": self.count, "solved": self.solved}


@dataclass
class DifficultyStats:
    count: int = 0
    # Running sum of point values; the dashboard reads it as avgPoints
    avg_points: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"count": self.count, "avgPoints": self.avg_points}


@dataclass
class ChallengeRanking:
    title: str
    solves: int
    points: int

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "solves": self.solves, "points": self.points}


@dataclass
class ChallengeStatsReport:
    by_category: Dict[str, CategoryStats] = field(default_factory=dict)
    by_difficulty: Dict[str, DifficultyStats] = field(default_factory=dict)
    top_challenges: List[ChallengeRanking] = field(default_factory=list)
    least_solved: List[ChallengeRanking] = field(default_factory=list)
    solved_challenges: List[Challenge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "byCategory": {k: v.to_dict() for k, v in self.by_category.items()},
            "byDifficulty": {k: v.to_dict() for k, v in self.by_difficulty.items()},
            "topChallenges": [r.to_dict() for r in self.top_challenges],
            "leastSolved": [r.to_dict() for r in self.least_solved],
            "solvedChallenges": [
                {
                    "title": c.title,
                    "category": c.category,
                    "difficulty": c.difficulty,
                    "points": c.points,
                    "solvedBy": [solver.to_dict() for solver in c.solved_by],
                }
                for c in self.solved_challenges
            ],
        }


def _rank(challenges: Iterable[Challenge]) -> List[ChallengeRanking]:
    return [ChallengeRanking(title=c.title, solves=c.solve_count, points=c.points) for c in challenges]


def compute_challenge_stats(challenges: Sequence[Challenge]) -> ChallengeStatsReport:
    """
    Group challenges by category and difficulty and rank them by solves.

    Ties in the rankings keep the order of ``challenges``.
    """
    report = ChallengeStatsReport()

    for challenge in challenges:
        solvers = _solvers(challenge)

        category = report.by_category.setdefault(challenge.category, CategoryStats())
        category.count += 1
        category.solved += len(solvers)

        difficulty = report.by_difficulty.setdefault(challenge.difficulty, DifficultyStats())
        difficulty.count += 1
        difficulty.avg_points += challenge.points

        if solvers:
            report.solved_challenges.append(challenge)

    by_solves = sorted(challenges, key=lambda c: c.solve_count, reverse=True)
    report.top_challenges = _rank(by_solves[:RANKED_CHALLENGES_LIMIT])
    report.least_solved = _rank(
        sorted(challenges, key=lambda c: c.solve_count)[:RANKED_CHALLENGES_LIMIT]
    )
    return report


# =============================================================================
# Traffic
# =============================================================================

@dataclass
class TrafficReport:
    last_30_days: int = 0
    last_7_days: int = 0
    today: int = 0
    daily_breakdown: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last30Days": self.last_30_days,
            "last7Days": self.last_7_days,
            "today": self.today,
            "dailyBreakdown": dict(self.daily_breakdown),
        }


def start_of_day(now: datetime, tz: tzinfo) -> datetime:
    """Midnight of ``now``'s calendar day in ``tz``."""
    return as_utc(now).astimezone(tz).replace(hour=0, minute=0, second=0, microsecond=0)


def compute_traffic(users: Sequence[User], now: datetime, tz: tzinfo = timezone.utc) -> TrafficReport:
    """
    Count signups over the trailing 30 days, 7 days and today.

    "Today" and the ``daily_breakdown`` keys both use calendar days in
    ``tz``. Only the default, UTC, keys signups by their UTC date; any
    other zone files a signup near midnight under its local date, which
    can differ from the UTC one. Days without signups are absent from
    the breakdown.
    """
    now = as_utc(now)
    window_start = now - TRAFFIC_WINDOW
    week_start = now - SHORT_TRAFFIC_WINDOW
    midnight = start_of_day(now, tz)

    joined = [as_utc(user.created_at) for user in users]
    joined = [created for created in joined if created >= window_start]

    per_day = Counter(created.astimezone(tz).date().isoformat() for created in joined)

    return TrafficReport(
        last_30_days=len(joined),
        last_7_days=sum(1 for created in joined if created >= week_start),
        today=sum(1 for created in joined if created >= midnight),
        daily_breakdown=dict(sorted(per_day.items())),
    )


# =============================================================================
# Leaderboard
# =============================================================================

@dataclass
class LeaderboardEntry:
    rank: int
    username: str
    points: int
    challenges_solved: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "username": self.username,
            "points": self.points,
            "challengesSolved": self.challenges_solved,
        }


def compute_leaderboard(users: Sequence[User], limit: int = LEADERBOARD_SIZE) -> List[LeaderboardEntry]:
    """Top users by points; equal scores keep their input order."""
    ranked = sorted(users, key=lambda user: user.points or 0, reverse=True)[:limit]
    return [
        LeaderboardEntry(
            rank=position,
            username=user.username,
            points=user.points or 0,
            challenges_solved=len(_solved(user)),
        )
        for position, user in enumerate(ranked, start=1)
    ]


# =============================================================================
# Submission analytics
# =============================================================================

@dataclass
class SubmissionEstimate:
    """
    Success/failure figures derived from solve counts alone.

    Failed attempts are not measured; they are assumed to be
    ``ESTIMATED_FAILURE_RATIO`` of the successful ones.
    """
    total_submissions: int
    successful_submissions: int
    estimated_failed_submissions: int
    estimated_total_attempts: int
    success_rate: float
    failure_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalSubmissions": self.total_submissions,
            "successfulSubmissions": self.successful_submissions,
            "estimatedFailedSubmissions": self.estimated_failed_submissions,
            "estimatedTotalAttempts": self.estimated_total_attempts,
            "successRate": self.success_rate,
            "failureRate": self.failure_rate,
        }


def estimate_submission_outcomes(total_successful: int) -> SubmissionEstimate:
    failed = math.floor(total_successful * ESTIMATED_FAILURE_RATIO)
    attempts = total_successful + failed
    success_rate = round2(total_successful / attempts * 100) if attempts > 0 else 0
    return SubmissionEstimate(
        total_submissions=total_successful,
        successful_submissions=total_successful,
        estimated_failed_submissions=failed,
        estimated_total_attempts=attempts,
        success_rate=success_rate,
        failure_rate=round2(100 - success_rate),
    )


@dataclass
class UserSubmissions:
    username: str
    email: str
    submissions: int
    points: int
    challenges: List[SolvedChallenge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "email": self.email,
            "submissions": self.submissions,
            "points": self.points,
            "challenges": [c.to_dict() for c in self.challenges],
        }


@dataclass
class ChallengeSubmissions:
    title: str
    category: str
    difficulty: str
    points: int
    submissions: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "category": self.category,
            "difficulty": self.difficulty,
            "points": self.points,
            "submissions": self.submissions,
        }


@dataclass
class SubmissionReport:
    overview: SubmissionEstimate
    by_user: List[UserSubmissions] = field(default_factory=list)
    by_challenge: List[ChallengeSubmissions] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overview": self.overview.to_dict(),
            "submissionsByUser": [u.to_dict() for u in self.by_user],
            "submissionsByChallenge": [c.to_dict() for c in self.by_challenge],
        }


def compute_submission_analytics(
    users: Sequence[User],
    challenges: Sequence[Challenge],
) -> SubmissionReport:
    """
    Per-user and per-challenge solve counts plus the estimated
    success/failure split. Both lists are sorted by count, descending.
    """
    total = 0
    by_user = []
    for user in users:
        solved = _solved(user)
        total += len(solved)
        if solved:
            by_user.append(
                UserSubmissions(
                    username=user.username,
                    email=user.email,
                    submissions=len(solved),
                    points=user.points or 0,
                    challenges=list(solved),
                )
            )

    by_challenge = [
        ChallengeSubmissions(
            title=challenge.title,
            category=challenge.category,
            difficulty=challenge.difficulty,
            points=challenge.points,
            submissions=len(_solvers(challenge)),
        )
        for challenge in challenges
        if _solvers(challenge)
    ]

    return SubmissionReport(
        overview=estimate_submission_outcomes(total),
        by_user=sorted(by_user, key=lambda row: row.submissions, reverse=True),
        by_challenge=sorted(by_challenge, key=lambda row: row.submissions, reverse=True),
    )
