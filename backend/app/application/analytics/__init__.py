"""
Analytics application layer.
"""

from app.application.analytics.service import AnalyticsService

__all__ = ["AnalyticsService"]
