# product_catalog/schemas.py

"""
Pydantic schemas for the Product Catalog.
These define the product record shared by the service and the client state,
the request bodies accepted by the catalog endpoint, and the small response
envelopes used by the API.
"""

import math
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Number = Union[int, float]


def _to_number(value, field_name):
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be numeric")
    if not isinstance(value, (int, float)):
        try:
            text = str(value).strip()
            value = int(text) if text.lstrip("+-").isdigit() else float(text)
        except (TypeError, ValueError):
            raise ValueError(f"{field_name} must be numeric")
    if not math.isfinite(value):
        raise ValueError(f"{field_name} must be numeric")
    return value


def _check_finite(value, path):
    # JSON has no NaN or Infinity, so such values can never be stored
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"{path} must be a finite number")
    if isinstance(value, dict):
        for key, item in value.items():
            _check_finite(item, f"{path}.{key}")
    elif isinstance(value, list):
        for item in value:
            _check_finite(item, path)


def _optional_text(value):
    return str(value) if value else None


# Schema for a product record as stored in the catalog snapshot.
# Extra fields introduced through update merges are kept verbatim.
class Product(BaseModel):
    id: str = Field(..., description="Unique identifier, assigned at creation.")
    name: str = Field(..., description="Name of the product.")
    price: Number = Field(..., description="Base price of the product.")
    offerPrice: Optional[Number] = Field(None, description="Discounted price, if any.")
    images: List[str] = Field(default_factory=list, description="Image URLs or paths.")
    category: str = Field(..., description="Category used for grouping and filtering.")
    description: str = Field("", description="Detailed description of the product.")
    stock: int = Field(0, ge=0, description="Units in stock. Must be non-negative.")

    model_config = ConfigDict(extra="allow")

    def to_record(self) -> dict:
        """JSON-ready dict; an absent offer price is omitted rather than null."""
        return self.model_dump(exclude_none=True)


# Schema for creating a product.
# Used in POST /api/products. Every field is optional here so that a missing
# name, price or category is reported by the service as a 400, and the
# validators normalise what the client sent into the stored shape. Falsy
# name, price and category values count as missing.
class ProductCreate(BaseModel):
    name: Optional[str] = Field(None, description="Name of the product.")
    price: Optional[Number] = Field(None, description="Base price; numeric strings are accepted.")
    offerPrice: Optional[Number] = Field(None, description="Discounted price; falsy means none.")
    images: List[str] = Field(default_factory=list, description="Image URLs; non-lists become [].")
    category: Optional[str] = Field(None, description="Category of the product.")
    description: str = Field("", description="Detailed description of the product.")
    stock: int = Field(0, description="Units in stock; anything but a finite non-negative number is 0.")

    model_config = ConfigDict(allow_inf_nan=False)

    @field_validator("name", "category", mode="before")
    @classmethod
    def falsy_text_is_missing(cls, value):
        return _optional_text(value)

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, value):
        # a falsy price counts as missing
        return _to_number(value, "price") if value else None

    @field_validator("offerPrice", mode="before")
    @classmethod
    def coerce_offer_price(cls, value):
        return _to_number(value, "offerPrice") if value else None

    @field_validator("images", mode="before")
    @classmethod
    def coerce_images(cls, value):
        return [str(item) for item in value] if isinstance(value, list) else []

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, value):
        return str(value or "")

    @field_validator("stock", mode="before")
    @classmethod
    def coerce_stock(cls, value):
        # Only real finite numbers count; anything else falls back to zero.
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0
        if not math.isfinite(value) or value < 0:
            return 0
        return int(value)


# Schema for updating a product.
# Used in PUT /api/products. `updates` is merged shallowly into the record,
# so any JSON object is accepted as long as it holds only finite numbers.
class ProductUpdateRequest(BaseModel):
    id: Optional[str] = Field(None, description="Identifier of the product to update.")
    updates: Optional[Dict[str, Any]] = Field(None, description="Fields to overwrite.")

    @field_validator("id", mode="before")
    @classmethod
    def falsy_id_is_missing(cls, value):
        return _optional_text(value)

    @field_validator("updates")
    @classmethod
    def updates_are_json_safe(cls, value):
        if value is not None:
            _check_finite(value, "updates")
        return value


# Schema for deleting a product.
# Used in DELETE /api/products.
class ProductDeleteRequest(BaseModel):
    id: Optional[str] = Field(None, description="Identifier of the product to remove.")

    @field_validator("id", mode="before")
    @classmethod
    def falsy_id_is_missing(cls, value):
        return _optional_text(value)


class DeleteAck(BaseModel):
    ok: bool = True


class ErrorResponse(BaseModel):
    error: str
