"""
Application wiring: CORS, exception handlers and the lifespan handler.
"""

from .cors import configure_cors
from .errors import register_exception_handlers
from .lifespan import lifespan

__all__ = ["configure_cors", "register_exception_handlers", "lifespan"]
