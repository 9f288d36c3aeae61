"""
Pydantic models for place data.

``PlaceCreate`` and ``PlaceUpdate`` carry the user supplied fields and
enforce their constraints; constructing one is how inputs are
validated.  ``PlaceRead`` is the public representation, with the id and
the creator exposed as plain strings and the location resolved.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class Location(BaseModel):
    lat: float = Field(..., examples=[37.42])
    lng: float = Field(..., examples=[-122.08])


class PlaceUpdate(BaseModel):
    """Fields a creator may change on an existing place."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, examples=["Googleplex"])
    description: str = Field(..., min_length=5, examples=["Headquarters of Google"])


class PlaceCreate(PlaceUpdate):
    """Schema for creating a place.  The location is derived from ``address``."""

    address: str = Field(..., min_length=1, examples=["1600 Amphitheatre Parkway"])


class PlaceRead(BaseModel):
    id: str
    title: str
    description: str
    address: str
    location: Location
    image: str
    creator: str

    model_config = ConfigDict(from_attributes=True)


class PlaceResponse(BaseModel):
    place: PlaceRead


class PlaceListResponse(BaseModel):
    places: List[PlaceRead]


class MessageResponse(BaseModel):
    message: str
