"""
Utilities module: Exceptions, validators, schemas.
"""

from shared.utils.exceptions import (
    StoreError,
    MalformedBlobError,
    RemoteApiError,
    NotFoundError,
    DatabaseError,
)
from shared.utils.validators import (
    round_half_up,
    normalize_quantity,
    normalize_price,
    normalize_partner_name,
    clean_text,
    truncate_to_minute,
    to_naive_local,
)
from shared.utils.schemas import ApiEnvelope, ErrorResponse

__all__ = [
    # exceptions
    "StoreError",
    "MalformedBlobError",
    "RemoteApiError",
    "NotFoundError",
    "DatabaseError",
    # validators
    "round_half_up",
    "normalize_quantity",
    "normalize_price",
    "normalize_partner_name",
    "clean_text",
    "truncate_to_minute",
    "to_naive_local",
    # schemas
    "ApiEnvelope",
    "ErrorResponse",
]
