"""
Pydantic schemas for API requests and responses
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


# Auth schemas
class LoginRequest(BaseModel):
    email: str
    phone: str


class AuthResponse(BaseModel):
    success: bool
    message: str


class ProfileUpdateRequest(BaseModel):
    updates: Dict[str, Any] = Field(..., description="Profile fields to merge, e.g. full_name or address")


# Currency schemas
class ConvertRequest(BaseModel):
    amount: str = Field(..., description="Decimal amount as string")
    from_currency: str = Field(..., description="Source currency code")
    to_currency: str = Field(..., description="Target currency code")


class ConvertResponse(BaseModel):
    amount: str
    from_currency: str
    to_currency: str
    converted_amount: str
    display_amount: str
    exchange_rate: str
    rates_date: str
    is_fallback: bool


# Transfer schemas
class CreateTransferRequest(BaseModel):
    amount: str = Field(..., description="Decimal amount as string")
    from_currency: str
    to_currency: str
    to_user_id: Optional[str] = Field(None, description="Recipient; omit for a plain conversion")
    method: str = Field("hand_gesture", description="Transfer method (hand_gesture, biometric, standard)")
    notes: Optional[str] = None


class UpdateTransferStatusRequest(BaseModel):
    status: str = Field(..., description="Transfer status (completed, pending, failed)")


# Language schemas
class SetLanguageRequest(BaseModel):
    code: str = Field(..., description="Language code (en, id)")
