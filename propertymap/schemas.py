# propertymap/schemas.py
import math
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Union
from datetime import datetime

Number = Union[float, int, str, None]


def parse_optional_number(value: Number) -> Optional[float]:
    """Parse an optional non-negative number typed as free text.

    Blank text means absent. Anything else that is not a finite,
    non-negative number is rejected.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            raise ValueError("must be a number")
    elif isinstance(value, bool):
        raise ValueError("must be a number")
    else:
        number = float(value)
    if not math.isfinite(number):
        raise ValueError("must be a finite number")
    if number < 0:
        raise ValueError("must not be negative")
    return number


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class PropertyBase(BaseModel):
    broker: Optional[str] = None
    price: Optional[float] = None
    acres: Optional[float] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    city: Optional[str] = None


class PropertyCreate(PropertyBase):
    # free-text numeric fields are validated here, before they reach storage
    price: Number = None
    acres: Number = None

    @field_validator("price", "acres", mode="before")
    @classmethod
    def _numeric(cls, v):
        return parse_optional_number(v)

    @field_validator("broker", "city", mode="before")
    @classmethod
    def _blank_is_absent(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


class PropertyOut(PropertyBase):
    id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_renderable(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class PropertyForm(BaseModel):
    """Descriptive fields as typed on the capture screen."""
    broker: Optional[str] = ""
    price: Optional[str] = ""
    acres: Optional[str] = ""
    city: Optional[str] = ""


class AddressQuery(BaseModel):
    street: Optional[str] = ""
    city: Optional[str] = ""
    state: Optional[str] = ""

    def as_text(self) -> str:
        parts = [p.strip() for p in (self.street, self.city, self.state) if p and p.strip()]
        return ", ".join(parts)


class ReverseGeocodeResult(BaseModel):
    formatted_address: str = "Selected location"
    place_id: str = ""
    state: Optional[str] = None
    city: Optional[str] = None
    street: Optional[str] = None


class LocationSelection(BaseModel):
    address: str
    place_id: str = ""
    lat: float
    lng: float
    state: Optional[str] = None
    city: Optional[str] = None
    street: Optional[str] = None


class GeolocationFailure(BaseModel):
    reason: Optional[str] = None


class HoverTarget(BaseModel):
    """Pointer position inside the map viewport; omitted when hovering a list row."""
    id: int
    x: Optional[float] = None
    y: Optional[float] = None


class FocusTarget(BaseModel):
    id: int


class Viewport(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    zoom: int = Field(..., ge=0)
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)
