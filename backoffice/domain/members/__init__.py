"""VIP members domain - roster, dashboard and duplicate-phone detection"""

from .router import router

__all__ = ["router"]
