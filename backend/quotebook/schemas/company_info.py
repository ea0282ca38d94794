"""Pydantic schemas for CompanyInfo CRUD operations."""

from datetime import datetime

from pydantic import BaseModel, Field


class CompanyInfoCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    registration_number: str | None = Field(None, max_length=100)
    address: str = ""
    email: str = ""
    phone: str = ""
    logo_url: str | None = None
    is_default: bool = False


class CompanyInfoUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    registration_number: str | None = None
    address: str | None = None
    email: str | None = None
    phone: str | None = None
    logo_url: str | None = None
    is_default: bool | None = None


class CompanyInfoOut(BaseModel):
    id: str
    name: str
    registration_number: str | None
    address: str
    email: str
    phone: str
    logo_url: str | None
    is_default: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
