"""Hierarchy domain - areas, sub-areas, branches and cascading filter selection"""

from .router import router
from .selection import HierarchySelection

__all__ = ["router", "HierarchySelection"]
