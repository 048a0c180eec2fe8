"""
Vantage Analytics - Analytics Application Service
Fetches the records each metric needs and hands them to the computers
"""

import asyncio
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List

from app.domain.analytics.consistency import ConsistencyMode, enforce_solve_consistency
from app.domain.analytics.metrics import (
    LEADERBOARD_SIZE,
    TRAFFIC_WINDOW,
    ChallengeStatsReport,
    EngagementReport,
    LeaderboardEntry,
    OverviewStats,
    SubmissionReport,
    TrafficReport,
    as_utc,
    compute_challenge_stats,
    compute_leaderboard,
    compute_overview,
    compute_submission_analytics,
    compute_traffic,
    compute_user_engagement,
)
from app.domain.analytics.ports import (
    CHALLENGE_FIELDS,
    USER_ACCOUNT_FIELDS,
    USER_SOLVES_FIELDS,
    AnalyticsDataSource,
    UserFilter,
    UserSort,
)


class AnalyticsService:
    """
    One method per dashboard metric.

    Each call fetches fresh records and recomputes; nothing is cached and
    separate fetches are not read from a single snapshot.
    """

    def __init__(
        self,
        source: AnalyticsDataSource,
        tz: tzinfo = timezone.utc,
        consistency_mode: ConsistencyMode = ConsistencyMode.WARN,
    ):
        """
        Initialize analytics service.

        Args:
            source: Data source for users and challenges
            tz: Calendar used for day boundaries in traffic figures
            consistency_mode: Policy for solve-relation mismatches
        """
        self._source = source
        self._tz = tz
        self._consistency_mode = consistency_mode

    async def overview(self, now: datetime) -> OverviewStats:
        users, challenges = await asyncio.gather(
            self._source.fetch_users(USER_SOLVES_FIELDS),
            self._source.fetch_challenges(CHALLENGE_FIELDS),
        )
        return compute_overview(users, challenges, now)

    async def user_engagement(self, now: datetime) -> EngagementReport:
        users = await self._source.fetch_users(USER_SOLVES_FIELDS, sort=UserSort.CREATED_DESC)
        return compute_user_engagement(users, now)

    async def challenge_stats(self) -> ChallengeStatsReport:
        challenges = await self._source.fetch_challenges(CHALLENGE_FIELDS, with_solvers=True)
        return compute_challenge_stats(challenges)

    async def traffic(self, now: datetime) -> TrafficReport:
        since = as_utc(now) - TRAFFIC_WINDOW
        users = await self._source.fetch_users(
            USER_ACCOUNT_FIELDS,
            filter=UserFilter(created_since=since),
        )
        return compute_traffic(users, now, self._tz)

    async def leaderboard(self) -> List[LeaderboardEntry]:
        users = await self._source.fetch_users(
            USER_SOLVES_FIELDS,
            sort=UserSort.POINTS_DESC,
            limit=LEADERBOARD_SIZE,
        )
        return compute_leaderboard(users)

    async def submissions(self) -> SubmissionReport:
        users, challenges = await asyncio.gather(
            self._source.fetch_users(USER_SOLVES_FIELDS),
            self._source.fetch_challenges(CHALLENGE_FIELDS, with_solvers=True),
        )
        enforce_solve_consistency(users, challenges, self._consistency_mode)
        return compute_submission_analytics(users, challenges)

    async def record_counts(self) -> Dict[str, Any]:
        """Row counts used by the readiness probe."""
        users, challenges = await asyncio.gather(
            self._source.count_users(),
            self._source.count_challenges(),
        )
        return {"users": users, "challenges": challenges}
