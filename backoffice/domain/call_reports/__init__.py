"""Call reports domain - call statuses, daily call reports and their aggregates"""

from .router import router

__all__ = ["router"]
