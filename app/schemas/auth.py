from __future__ import annotations

from pydantic import BaseModel, Field


class AdminLoginRequest(BaseModel):
    password: str = ""


class AdminCheckResponse(BaseModel):
    is_admin: bool = Field(alias="isAdmin")

    class Config:
        populate_by_name = True


class OkResponse(BaseModel):
    ok: bool = True
