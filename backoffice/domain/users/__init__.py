"""Users domain - users, permission codes and hierarchy assignments"""

from .router import marketing_router, router

__all__ = ["router", "marketing_router"]
