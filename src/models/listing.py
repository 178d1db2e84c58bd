"""Listing models."""

from enum import Enum
from typing import Any, Mapping, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ListingStatus(str, Enum):
    """Listing status values."""
    ACTIVE = "Active"
    PENDING = "Pending"
    SOLD = "Sold"
    WITHDRAWN = "Withdrawn"


# Set by the store, never written back from a payload
SERVER_FIELDS = ("id", "created_at", "updated_at")

# Counts stay int and prices keep whatever precision the record has
Number = Union[int, float]


class Listing(BaseModel):
    """Real estate listing.

    Attributes are snake_case; the JSON wire format uses camelCase aliases
    (``listPrice``, ``streetAddress``...). Either spelling is accepted.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        extra="ignore",
    )

    id: Optional[str] = Field(None, description="Store-assigned document ID")
    listing_id: Optional[str] = Field(None, description="Brokerage listing ID")
    mls_id: Optional[str] = Field(None, description="MLS ID")
    listing_status: Optional[ListingStatus] = Field(None, description="Active, Pending, Sold or Withdrawn")
    list_price: Number = Field(0, description="Asking price")
    listing_date: Optional[str] = Field(None, description="Date listed (ISO 8601)")
    property_type: Optional[str] = Field(None, description="House, Condo, Townhouse...")
    description: Optional[str] = None
    bedrooms: Number = 0
    bathrooms: Number = 0
    square_feet: Number = 0
    lot_size: Number = 0
    year_built: Optional[int] = None
    parking: Optional[str] = None
    heating: Optional[str] = None
    cooling: Optional[str] = None
    hoa_fees: Number = 0
    street_address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    agent_id: Optional[str] = None
    agent_name: Optional[str] = None
    agent_phone: Optional[str] = None
    agent_email: Optional[str] = None
    brokerage_name: Optional[str] = None
    brokerage_phone: Optional[str] = None
    photos: list[str] = Field(default_factory=list, description="Photo URLs, display order")
    virtual_tour_url: Optional[str] = Field(None, alias="virtualTourURL")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("photos", mode="before")
    @classmethod
    def _none_photos(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_persisted(self) -> bool:
        """True once the store has assigned an ID."""
        return self.id is not None

    @classmethod
    def field_name(cls, name: str) -> Optional[str]:
        """Attribute name for a snake_case name or camelCase alias, or None if unknown."""
        if name in cls.model_fields:
            return name
        for attribute, field in cls.model_fields.items():
            if field.alias == name:
                return attribute
        return None

    @classmethod
    def from_record(cls, record_id: str, data: Mapping[str, Any]) -> "Listing":
        """Build a Listing from a raw store record, attaching its ID."""
        payload = {k: v for k, v in data.items() if k != "id"}
        return cls.model_validate({**payload, "id": record_id})

    def to_record(self) -> dict[str, Any]:
        """Storable fields (snake_case), without the store-assigned ones."""
        return self.model_dump(exclude=set(SERVER_FIELDS))

    def to_api(self) -> dict[str, Any]:
        """camelCase JSON representation for HTTP responses."""
        return self.model_dump(by_alias=True)


class SearchCriteria(BaseModel):
    """User-supplied search filters.

    ``None``, empty strings and zero/negative numbers all mean
    "no constraint on this field".
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    city: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_bedrooms: Optional[float] = None
    property_type: Optional[str] = None

    @property
    def has_city(self) -> bool:
        return bool(self.city)

    @property
    def has_property_type(self) -> bool:
        return bool(self.property_type)

    @property
    def has_min_price(self) -> bool:
        return self.min_price is not None and self.min_price > 0

    @property
    def has_max_price(self) -> bool:
        return self.max_price is not None and self.max_price > 0

    @property
    def has_min_bedrooms(self) -> bool:
        return self.min_bedrooms is not None and self.min_bedrooms > 0

    def is_empty(self) -> bool:
        """True when no field constrains the search."""
        return not (
            self.has_city
            or self.has_property_type
            or self.has_min_price
            or self.has_max_price
            or self.has_min_bedrooms
        )

    @classmethod
    def from_query_params(cls, params: Mapping[str, Any]) -> "SearchCriteria":
        """Build criteria from HTTP query parameters.

        Blank values are dropped; numeric fields that do not parse raise
        ``pydantic.ValidationError``.
        """
        fields = ("city", "minPrice", "maxPrice", "minBedrooms", "propertyType")
        values = {}
        for name in fields:
            value = params.get(name)
            if isinstance(value, list):
                value = value[0] if value else None
            if value is None or (isinstance(value, str) and value.strip() == ""):
                continue
            values[name] = value.strip() if isinstance(value, str) else value
        return cls.model_validate(values)
