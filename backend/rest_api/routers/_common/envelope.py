"""
Response envelope helpers.

Every endpoint answers { data, success, message }.

Usage:
    from rest_api.routers._common import ok

    @router.get("", response_model=ApiEnvelope[list[HarvestOutput]])
    def list_harvests(...):
        return ok(service.list_all())
"""

from typing import Any, Optional

from shared.utils.schemas import ApiEnvelope


def ok(data: Any = None, message: Optional[str] = None) -> ApiEnvelope[Any]:
    return ApiEnvelope(data=data, success=True, message=message)


def failure(message: str) -> dict[str, Any]:
    """Error body, as a plain dict for JSONResponse."""
    return ApiEnvelope(data=None, success=False, message=message).model_dump()
