"""
Unit tests for the analytics metric computers.
"""

import math
from datetime import timedelta
from zoneinfo import ZoneInfo

import pytest

from app.domain.analytics.errors import ComputationFault
from app.domain.analytics.metrics import (
    EngagementTier,
    classify_engagement,
    compute_challenge_stats,
    compute_leaderboard,
    compute_overview,
    compute_submission_analytics,
    compute_traffic,
    compute_user_engagement,
    estimate_submission_outcomes,
    round2,
)
from app.domain.users.entities import User
from tests.fixtures.analytics_fixtures import NOW, make_challenge, make_user, record_solve


class TestOverview:
    """Tests for compute_overview."""

    def test_empty_platform_is_all_zero(self):
        """No users and no challenges must not divide by zero."""
        result = compute_overview([], [], NOW).to_dict()

        assert result == {
            "users": {"total": 0, "active": 0, "admins": 0, "blocked": 0},
            "challenges": {"total": 0, "visible": 0, "hidden": 0},
            "submissions": {"total": 0, "avgPerUser": 0, "totalPoints": 0},
        }

    def test_counts(self, users, challenges, now):
        stats = compute_overview(users, challenges, now)

        assert stats.total_users == 6
        assert stats.active_users == 3  # alice, bob, erin
        assert stats.admin_users == 1  # superadmins are not counted
        assert stats.blocked_users == 1
        assert stats.total_challenges == 6
        assert stats.visible_challenges == 5
        assert stats.hidden_challenges == 1

    def test_submission_totals(self, users, challenges, now):
        stats = compute_overview(users, challenges, now)

        assert stats.total_submissions == 10
        assert stats.total_points == 1450
        # Points per user, not solves per user
        assert stats.avg_per_user == 241.67

    def test_average_rounds_stored_value(self):
        """3 / 40 is stored just below 0.075, so it rounds down."""
        users = [make_user(f"u{i}", points=1 if i < 3 else 0) for i in range(40)]
        assert compute_overview(users, [], NOW).avg_per_user == 0.07

    def test_active_window_is_relative_to_reference_time(self, users, challenges, now):
        """Moving the reference time forward ages users out of the window."""
        later = compute_overview(users, challenges, now + timedelta(days=35))
        assert later.active_users == 0

    def test_active_window_boundary_is_inclusive(self):
        user = make_user("edge", age=timedelta(days=30))
        assert compute_overview([user], [], NOW).active_users == 1

    def test_unloaded_solves_are_a_fault(self, challenges):
        user = User(username="ghost", solved_challenges=None, created_at=NOW)

        with pytest.raises(ComputationFault):
            compute_overview([user], challenges, NOW)


class TestUserEngagement:
    """Tests for compute_user_engagement."""

    def test_summary(self, users, now):
        report = compute_user_engagement(users, now)
        summary = report.to_dict()["summary"]

        assert summary == {
            "highEngagement": 1,
            "mediumEngagement": 1,
            "lowEngagement": 3,
            "inactive": 1,
        }

    def test_tiers_partition_all_users(self, users, now):
        report = compute_user_engagement(users, now)

        assert sum(report.summary.values()) == len(users)
        active_tiers = {EngagementTier.HIGH, EngagementTier.MEDIUM, EngagementTier.LOW}
        for row in report.users:
            assert (row.tier in active_tiers) == row.is_active

    def test_rows_keep_input_order(self, users, now):
        ordered = sorted(users, key=lambda u: u.created_at, reverse=True)
        report = compute_user_engagement(ordered, now)

        assert [row.username for row in report.users] == [u.username for u in ordered]

    def test_row_fields(self, users, now):
        rows = {row["username"]: row for row in compute_user_engagement(users, now).to_dict()["users"]}

        assert rows["alice"]["challengesSolved"] == 5
        assert rows["alice"]["daysActive"] == 2
        assert rows["alice"]["isActive"] is True
        assert rows["alice"]["joinedDate"] == "2024-06-13T12:00:00+00:00"
        assert rows["erin"]["daysActive"] == 0
        assert rows["dave"]["isActive"] is False
        assert rows["frank"]["daysActive"] == 400

    def test_blocked_user_with_many_solves_is_inactive(self):
        assert classify_engagement(10, is_active=False) == EngagementTier.INACTIVE

    @pytest.mark.parametrize(
        "solves,tier",
        [
            (0, EngagementTier.LOW),
            (1, EngagementTier.LOW),
            (2, EngagementTier.MEDIUM),
            (4, EngagementTier.MEDIUM),
            (5, EngagementTier.HIGH),
            (12, EngagementTier.HIGH),
        ],
    )
    def test_tier_thresholds(self, solves, tier):
        assert classify_engagement(solves, is_active=True) == tier

    def test_three_user_scenario(self):
        """Users with 100, 50 and 200 points and 2, 0 and 5 solves."""
        chals = [make_challenge(f"c{i}") for i in range(5)]
        first = make_user("first", points=100)
        second = make_user("second", points=50)
        third = make_user("third", points=200)
        for challenge in chals[:2]:
            record_solve(first, challenge)
        for challenge in chals:
            record_solve(third, challenge)

        summary = compute_user_engagement([first, second, third], NOW).to_dict()["summary"]

        assert summary["highEngagement"] == 1
        assert summary["mediumEngagement"] == 1
        assert summary["lowEngagement"] == 1
        assert summary["inactive"] == 0


class TestChallengeStats:
    """Tests for compute_challenge_stats."""

    def test_by_category(self, challenges):
        by_category = compute_challenge_stats(challenges).to_dict()["byCategory"]

        assert by_category == {
            "web": {"count": 2, "solved": 6},
            "crypto": {"count": 1, "solved": 1},
            "pwn": {"count": 1, "solved": 0},
            "misc": {"count": 1, "solved": 2},
            "forensics": {"count": 1, "solved": 1},
        }

    def test_category_sums_match_totals(self, challenges):
        report = compute_challenge_stats(challenges)

        assert sum(c.count for c in report.by_category.values()) == len(challenges)
        assert sum(c.solved for c in report.by_category.values()) == sum(
            len(c.solved_by) for c in challenges
        )

    def test_by_difficulty_accumulates_points(self, challenges):
        """avgPoints is a running sum of point values."""
        by_difficulty = compute_challenge_stats(challenges).to_dict()["byDifficulty"]

        assert by_difficulty == {
            "easy": {"count": 2, "avgPoints": 150},
            "medium": {"count": 2, "avgPoints": 350},
            "hard": {"count": 1, "avgPoints": 300},
            "insane": {"count": 1, "avgPoints": 500},
        }

    def test_rankings_use_stable_order(self, challenges):
        result = compute_challenge_stats(challenges).to_dict()

        assert [c["title"] for c in result["topChallenges"]] == [
            "web1", "web2", "misc1", "crypto1", "forensics1",
        ]
        assert [c["title"] for c in result["leastSolved"]] == [
            "pwn1", "crypto1", "forensics1", "web2", "misc1",
        ]
        assert result["topChallenges"][0] == {"title": "web1", "solves": 4, "points": 100}

    def test_unsolved_challenge_only_in_groupings(self, challenges):
        result = compute_challenge_stats(challenges).to_dict()

        solved_titles = [c["title"] for c in result["solvedChallenges"]]
        assert "pwn1" not in solved_titles
        assert solved_titles == ["web1", "web2", "crypto1", "misc1", "forensics1"]
        assert result["byCategory"]["pwn"]["count"] == 1
        assert result["byDifficulty"]["insane"]["count"] == 1

    def test_solved_challenge_lists_solvers(self, challenges):
        result = compute_challenge_stats(challenges).to_dict()
        web2 = next(c for c in result["solvedChallenges"] if c["title"] == "web2")

        assert web2["solvedBy"] == [
            {"username": "alice", "email": "alice@example.com", "points": 1000},
            {"username": "bob", "email": "bob@example.com", "points": 300},
        ]

    def test_fewer_than_five_challenges(self):
        result = compute_challenge_stats([make_challenge("only")]).to_dict()

        assert len(result["topChallenges"]) == 1
        assert len(result["leastSolved"]) == 1

    def test_does_not_reorder_input(self, challenges):
        titles = [c.title for c in challenges]
        compute_challenge_stats(challenges)
        assert [c.title for c in challenges] == titles


class TestTraffic:
    """Tests for compute_traffic."""

    def test_rolling_counts(self, users, now):
        report = compute_traffic(users, now)

        assert report.last_30_days == 3
        assert report.last_7_days == 2
        assert report.today == 1

    def test_daily_breakdown(self, users, now):
        breakdown = compute_traffic(users, now).to_dict()["dailyBreakdown"]

        assert breakdown == {"2024-06-05": 1, "2024-06-13": 1, "2024-06-15": 1}

    def test_breakdown_sums_to_window_count(self, users, now):
        report = compute_traffic(users, now)

        assert sum(report.daily_breakdown.values()) == report.last_30_days
        for day in report.daily_breakdown:
            assert "T" not in day
            assert (now.date() - timedelta(days=30)).isoformat() <= day <= now.date().isoformat()

    def test_users_outside_window_are_ignored(self, now):
        old = make_user("old", age=timedelta(days=31))
        assert compute_traffic([old], now).to_dict() == {
            "last30Days": 0,
            "last7Days": 0,
            "today": 0,
            "dailyBreakdown": {},
        }

    def test_today_follows_configured_timezone(self, now):
        """02:00 UTC on the 15th is still the 14th in New York."""
        early = make_user("early", age=timedelta(hours=10))
        new_york = ZoneInfo("America/New_York")

        utc_report = compute_traffic([early], now)
        assert utc_report.today == 1
        assert utc_report.daily_breakdown == {"2024-06-15": 1}

        report = compute_traffic([early], now, new_york)
        assert report.today == 0
        assert report.daily_breakdown == {"2024-06-14": 1}


class TestLeaderboard:
    """Tests for compute_leaderboard."""

    def test_order_and_ranks(self, users):
        entries = compute_leaderboard(users)

        assert [e.username for e in entries] == ["alice", "bob", "carol", "dave", "erin", "frank"]
        assert [e.rank for e in entries] == [1, 2, 3, 4, 5, 6]
        assert entries[0].to_dict() == {
            "rank": 1,
            "username": "alice",
            "points": 1000,
            "challengesSolved": 5,
        }

    def test_limited_to_ten(self):
        many = [make_user(f"user{i}", points=i) for i in range(15)]
        entries = compute_leaderboard(many)

        assert len(entries) == 10
        assert [e.rank for e in entries] == list(range(1, 11))
        points = [e.points for e in entries]
        assert points == sorted(points, reverse=True)

    def test_ties_keep_input_order(self):
        tied = [make_user(name, points=10) for name in ("x", "y", "z")]
        assert [e.username for e in compute_leaderboard(tied)] == ["x", "y", "z"]

    def test_three_user_scenario(self):
        ranked = compute_leaderboard(
            [make_user("a", points=100), make_user("b", points=50), make_user("c", points=200)]
        )
        assert [e.points for e in ranked] == [200, 100, 50]


class TestSubmissionAnalytics:
    """Tests for compute_submission_analytics and the failure estimate."""

    def test_estimate_for_ten_solves(self):
        estimate = estimate_submission_outcomes(10)

        assert estimate.estimated_failed_submissions == 3
        assert estimate.estimated_total_attempts == 13
        assert estimate.success_rate == 76.92
        assert estimate.failure_rate == 23.08

    def test_estimate_near_half_rate(self):
        """3077 / 4000 * 100 is stored just below 76.925."""
        estimate = estimate_submission_outcomes(3077)

        assert estimate.estimated_total_attempts == 4000
        assert (estimate.success_rate, estimate.failure_rate) == (76.92, 23.08)

    def test_estimate_without_solves(self):
        estimate = estimate_submission_outcomes(0)

        assert estimate.estimated_total_attempts == 0
        assert estimate.success_rate == 0
        assert estimate.failure_rate == 100

    @pytest.mark.parametrize("total", [1, 3, 7, 10, 33, 250, 1001])
    def test_estimate_properties(self, total):
        estimate = estimate_submission_outcomes(total)

        assert estimate.estimated_failed_submissions == math.floor(total * 0.3)
        assert abs(estimate.success_rate + estimate.failure_rate - 100) < 0.01

    def test_report(self, users, challenges):
        result = compute_submission_analytics(users, challenges).to_dict()

        assert result["overview"] == {
            "totalSubmissions": 10,
            "successfulSubmissions": 10,
            "estimatedFailedSubmissions": 3,
            "estimatedTotalAttempts": 13,
            "successRate": 76.92,
            "failureRate": 23.08,
        }

    def test_per_user_rows(self, users, challenges):
        rows = compute_submission_analytics(users, challenges).to_dict()["submissionsByUser"]

        assert [(r["username"], r["submissions"]) for r in rows] == [
            ("alice", 5), ("bob", 2), ("dave", 2), ("carol", 1),
        ]
        assert rows[-1]["challenges"] == [
            {"title": "web1", "category": "web", "difficulty": "easy", "points": 100},
        ]

    def test_per_challenge_rows(self, users, challenges):
        rows = compute_submission_analytics(users, challenges).to_dict()["submissionsByChallenge"]

        assert [(r["title"], r["submissions"]) for r in rows] == [
            ("web1", 4), ("web2", 2), ("misc1", 2), ("crypto1", 1), ("forensics1", 1),
        ]
        assert rows[0] == {
            "title": "web1",
            "category": "web",
            "difficulty": "easy",
            "points": 100,
            "submissions": 4,
        }

    def test_unloaded_solvers_are_a_fault(self, users):
        challenge = make_challenge("bare")
        challenge.solved_by = None

        with pytest.raises(ComputationFault):
            compute_submission_analytics(users, [challenge])


class TestRounding:

    @pytest.mark.parametrize(
        "value,expected",
        [
            (76.92307692307692, 76.92),
            (241.66666666666666, 241.67),
            (0.125, 0.13),
            (5, 5.0),
            # Binary values just below the half round down
            (3 / 40, 0.07),
            (3077 / 4000 * 100, 76.92),
            (1.005, 1.0),
        ],
    )
    def test_round2(self, value, expected):
        assert round2(value) == expected
