"""Admin analytics."""

from .models import PlatformSummary
from .service import AnalyticsService

__all__ = ["PlatformSummary", "AnalyticsService"]
