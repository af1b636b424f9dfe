"""Pydantic schemas for waitlist entries and API responses.

JSON payloads use camelCase names (``farmType``, ``signupDate``); Python code
uses snake_case. All models accept either form on input.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FarmType(str, Enum):
    VEGETABLE = "vegetable"
    FRUIT = "fruit"
    GRAIN = "grain"
    LIVESTOCK = "livestock"
    GREENHOUSE = "greenhouse"
    URBAN = "urban"
    OTHER = "other"


class FarmSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    URBAN = "urban"


class Interest(str, Enum):
    AI_OPTIMIZATION = "ai-optimization"
    COMPOSTING = "composting"
    SOIL_HEALTH = "soil-health"
    PEST_MANAGEMENT = "pest-management"
    WATER_MANAGEMENT = "water-management"
    YIELD_PREDICTION = "yield-prediction"
    SUSTAINABILITY = "sustainability"


class EntryStatus(str, Enum):
    """Lifecycle status; only ``active`` is ever written by this service."""

    ACTIVE = "active"
    NOTIFIED = "notified"
    CONVERTED = "converted"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class WaitlistSignup(_CamelModel):
    """A validated, normalized signup ready to be persisted."""

    email: str = Field(..., description="Normalized (trimmed, lowercased) email address.")
    name: str = Field(..., description="Registrant name, trimmed.")
    farm_type: FarmType
    farm_size: FarmSize
    interests: Interest


class WaitlistEntry(_CamelModel):
    """A persisted waitlist entry as returned by the store."""

    id: int
    email: str
    name: str
    farm_type: FarmType
    farm_size: FarmSize
    interests: Interest
    signup_date: datetime
    status: EntryStatus = EntryStatus.ACTIVE


class SignupResult(BaseModel):
    """Response body for a successful signup."""

    message: str = Field(..., description="Human-readable confirmation.")
    position: int = Field(
        ...,
        ge=1,
        description="Total number of entries right after this signup was stored.",
    )


class CategoryCount(BaseModel):
    """One bucket of a grouped count, serialized as ``{"_id": value, "count": n}``."""

    model_config = ConfigDict(populate_by_name=True)

    value: str = Field(..., alias="_id")
    count: int = Field(..., ge=0)


class WaitlistStats(_CamelModel):
    """Aggregate statistics over all waitlist entries."""

    total_signups: int = Field(..., ge=0)
    this_week: int = Field(..., ge=0, description="Entries signed up in the last 7 days.")
    farm_type_stats: list[CategoryCount] = Field(default_factory=list)
    interest_stats: list[CategoryCount] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: str
