"""
Observatory — API Routers
"""

from observatory.api.routers.observatory import router

__all__ = ["router"]
