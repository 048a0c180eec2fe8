"""
Pytest configuration and shared fixtures.
"""

# Import fixtures
from tests.fixtures.analytics_fixtures import (
    challenges,
    data_source,
    now,
    platform,
    users,
)

__all__ = [
    "challenges",
    "data_source",
    "now",
    "platform",
    "users",
]


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "integration: marks tests that exercise the HTTP layer"
    )
