"""
Shared Pydantic schemas for the cooperative REST API.

Used by the FastAPI routers (request bodies and responses) and by the
store's HTTP gateway (response parsing), so both ends agree on the wire
format.
"""

from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shared.config.constants import (
    HarvestCategory,
    InventoryCategory,
    LossSourceType,
    UserRole,
    DEFAULT_ROLE,
    INVENTORY_UNIT,
    Limits,
)
from shared.utils.validators import normalize_partner_name, normalize_price, normalize_quantity

T = TypeVar("T")


# =============================================================================
# Envelope
# =============================================================================


class ApiEnvelope(BaseModel, Generic[T]):
    """Every API response: { data, success, message? }."""

    data: Optional[T] = None
    success: bool = True
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: str | None = None


# =============================================================================
# Shared attribution fields
# =============================================================================


class _RecordedByMixin(BaseModel):
    recorded_by: UserRole = DEFAULT_ROLE
    recorded_by_partner_name: Optional[str] = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)

    @model_validator(mode="after")
    def _gate_partner_name(self):
        self.recorded_by_partner_name = normalize_partner_name(
            self.recorded_by, self.recorded_by_partner_name
        )
        return self


# =============================================================================
# Harvests
# =============================================================================


class HarvestPayload(_RecordedByMixin):
    """Create/replace body for a harvest lot."""

    crop: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    category: HarvestCategory = HarvestCategory.PRIMERA
    quantity: int = Field(ge=0)
    date: datetime
    purchase_price_clp: Optional[int] = None
    sale_price_clp: Optional[int] = None

    @field_validator("crop")
    @classmethod
    def _strip_crop(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("crop must not be blank")
        return value

    @field_validator("quantity", mode="before")
    @classmethod
    def _round_quantity(cls, value: Any) -> Any:
        if isinstance(value, float):
            return normalize_quantity(value)
        return value

    @field_validator("purchase_price_clp", "sale_price_clp", mode="before")
    @classmethod
    def _normalize_price(cls, value: Any) -> Optional[int]:
        return normalize_price(value)


class HarvestOutput(HarvestPayload):
    model_config = ConfigDict(from_attributes=True)

    id: str


# =============================================================================
# Inventory
# =============================================================================


class InventoryItemPayload(_RecordedByMixin):
    """Create/replace body for an inventory item."""

    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    quantity: int = Field(ge=0)
    unit: str = INVENTORY_UNIT
    category: InventoryCategory = InventoryCategory.PLANTA

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("quantity", mode="before")
    @classmethod
    def _round_quantity(cls, value: Any) -> Any:
        if isinstance(value, float):
            return normalize_quantity(value)
        return value

    @field_validator("unit", mode="before")
    @classmethod
    def _fixed_unit(cls, value: Any) -> str:
        return INVENTORY_UNIT


class InventoryItemOutput(InventoryItemPayload):
    model_config = ConfigDict(from_attributes=True)

    id: str


# =============================================================================
# Losses
# =============================================================================


class LossPayload(_RecordedByMixin):
    """Create body for a loss (merma)."""

    product_name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    quantity: int = Field(gt=0)
    reason: str = Field(min_length=1, max_length=Limits.MAX_REASON_LENGTH)
    date: datetime
    source_type: Optional[LossSourceType] = None
    source_id: Optional[str] = None

    @field_validator("product_name", "reason")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @model_validator(mode="after")
    def _source_pair(self):
        if (self.source_type is None) != (self.source_id is None):
            raise ValueError("source_type and source_id must be given together")
        return self


class LossOutput(LossPayload):
    model_config = ConfigDict(from_attributes=True)

    id: str


# =============================================================================
# Quantity corrections
# =============================================================================


class QuantityUpdatePayload(BaseModel):
    """Stock correction for an inventory item or harvest lot."""

    quantity: int = Field(ge=0)
    recorded_by: Optional[UserRole] = None
    recorded_by_partner_name: Optional[str] = Field(default=None, max_length=Limits.MAX_NAME_LENGTH)

    @field_validator("quantity", mode="before")
    @classmethod
    def _round_quantity(cls, value: Any) -> Any:
        if isinstance(value, float):
            return normalize_quantity(value)
        return value


class HealthOutput(BaseModel):
    status: str
    service: str
