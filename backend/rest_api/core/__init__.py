"""
Application wiring: lifespan, CORS and exception handlers.
"""

from .lifespan import lifespan
from .cors import configure_cors
from .errors import register_exception_handlers

__all__ = ["lifespan", "configure_cors", "register_exception_handlers"]
