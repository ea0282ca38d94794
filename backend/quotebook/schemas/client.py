"""Pydantic schemas for Client CRUD operations."""

from datetime import datetime

from pydantic import BaseModel, Field


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    company: str | None = Field(None, max_length=255)
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    is_favorite: bool = False


class ClientUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    is_favorite: bool | None = None


class ClientOut(BaseModel):
    id: str
    name: str
    company: str | None
    email: str | None
    phone: str | None
    address: str | None
    is_favorite: bool
    last_used_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
