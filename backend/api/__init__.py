"""HTTP routes for the wiki."""

from .wiki import router

__all__ = ["router"]
