"""
Common utilities shared across routers.
"""

from .envelope import ok, failure

__all__ = ["ok", "failure"]
