"""
Analytics domain package.
"""

from .errors import AnalyticsError, ComputationFault, DataAccessFailure
from .consistency import ConsistencyMode, enforce_solve_consistency, find_solve_divergences
from .metrics import (
    ChallengeStatsReport,
    EngagementReport,
    EngagementTier,
    LeaderboardEntry,
    OverviewStats,
    SubmissionReport,
    TrafficReport,
    compute_challenge_stats,
    compute_leaderboard,
    compute_overview,
    compute_submission_analytics,
    compute_traffic,
    compute_user_engagement,
)
from .ports import AnalyticsDataSource, ChallengeFilter, UserFilter, UserSort

__all__ = [
    "AnalyticsError",
    "ComputationFault",
    "DataAccessFailure",
    "ConsistencyMode",
    "enforce_solve_consistency",
    "find_solve_divergences",
    "ChallengeStatsReport",
    "EngagementReport",
    "EngagementTier",
    "LeaderboardEntry",
    "OverviewStats",
    "SubmissionReport",
    "TrafficReport",
    "compute_challenge_stats",
    "compute_leaderboard",
    "compute_overview",
    "compute_submission_analytics",
    "compute_traffic",
    "compute_user_engagement",
    "AnalyticsDataSource",
    "ChallengeFilter",
    "UserFilter",
    "UserSort",
]
