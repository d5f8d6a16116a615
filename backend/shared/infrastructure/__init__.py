"""
Infrastructure module: request/operation correlation for logs.
"""

from shared.infrastructure.correlation import (
    CorrelationIdFilter,
    CorrelationIdMiddleware,
    bind_correlation_id,
    get_correlation_id,
    new_correlation_id,
)

__all__ = [
    "CorrelationIdFilter",
    "CorrelationIdMiddleware",
    "bind_correlation_id",
    "get_correlation_id",
    "new_correlation_id",
]
