from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.models._mixins import ensure_utc


class CustomerCreate(BaseModel):
    # Validated by the resolver so that bad input maps to a 400.
    name: str | None = ""
    phone_number: str = Field(default="", alias="phoneNumber")

    class Config:
        populate_by_name = True


class CustomerOut(BaseModel):
    id: str = Field(alias="_id")
    name: str
    phone_number: str = Field(alias="phoneNumber")
    visits: int
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    class Config:
        populate_by_name = True

    @field_validator("created_at", "updated_at")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class CustomerStatsOut(BaseModel):
    total_customers: int = Field(alias="totalCustomers")
    total_visits: int = Field(alias="totalVisits")
    average_visits: float = Field(alias="averageVisits")

    class Config:
        populate_by_name = True
