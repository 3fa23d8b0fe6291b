"""
Request models for the cart pod and food cart endpoints.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from cartpod.directory.geo import validate_coordinates


class Location(BaseModel):
    """A GeoJSON point: ``coordinates`` is ``[longitude, latitude]``."""

    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., description="[longitude, latitude]")

    @field_validator("coordinates")
    @classmethod
    def validate_pair(cls, v):
        if len(v) != 2:
            raise ValueError("Coordinates must be [longitude, latitude]")
        validate_coordinates(v[0], v[1])
        return v


class CartPodCreate(BaseModel):
    name: str = Field(..., min_length=1)
    location: Location
    arrangementImage: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class CartPodUpdate(BaseModel):
    name: Optional[str] = None
    location: Optional[Location] = None
    arrangementImage: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v is not None else v


class PodFoodCartCreate(BaseModel):
    """A food cart added through its pod; the pod comes from the URL."""

    name: str = Field(..., min_length=1)
    location: Location
    podLocationImage: Optional[str] = None
    cartImage: Optional[str] = None
    menuImages: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class FoodCartCreate(PodFoodCartCreate):
    cartPod: str = Field(..., description="Id of the pod the cart belongs to")


class FoodCartUpdate(BaseModel):
    name: Optional[str] = None
    location: Optional[Location] = None
    podLocationImage: Optional[str] = None
    cartImage: Optional[str] = None
    menuImages: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v is not None else v


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5, description="Rating between 1 and 5")
    comment: str

    @field_validator("comment")
    @classmethod
    def require_comment(cls, v):
        if not v.strip():
            raise ValueError("Comment is required")
        return v.strip()
