"""Dashboard composition of fee rates and the mempool histogram."""

from .cache import DashboardCache
from .service import DashboardService, DashboardView

__all__ = ["DashboardCache", "DashboardService", "DashboardView"]
