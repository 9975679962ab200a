"""Goods shipments domain - per-member goods totals and spreadsheet paste import"""

from .router import router

__all__ = ["router"]
