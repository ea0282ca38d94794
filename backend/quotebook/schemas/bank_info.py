"""Pydantic schemas for BankInfo CRUD operations."""

from datetime import datetime

from pydantic import BaseModel, Field


class BankInfoCreate(BaseModel):
    bank_name: str = Field(..., min_length=1, max_length=255)
    account_number: str = Field(..., min_length=1, max_length=100)
    account_name: str = Field(..., min_length=1, max_length=255)
    is_default: bool = False


class BankInfoUpdate(BaseModel):
    bank_name: str | None = Field(None, min_length=1, max_length=255)
    account_number: str | None = Field(None, min_length=1, max_length=100)
    account_name: str | None = Field(None, min_length=1, max_length=255)
    is_default: bool | None = None


class BankInfoOut(BaseModel):
    id: str
    bank_name: str
    account_number: str
    account_name: str
    is_default: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
