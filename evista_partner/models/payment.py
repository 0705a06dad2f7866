"""
Payment models
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator

from evista_partner.utils.helpers import parse_datetime


class PaymentOutcome(str, Enum):
    SUCCESS = "success"
    EXPIRED = "expired"
    FAILED = "failed"


class PaymentInstruction(BaseModel):
    """Virtual account number or QRIS code returned when a payment is created"""
    order_id: Optional[Union[int, str]] = None
    type: str = Field("va", validation_alias=AliasChoices("type", "payment_type"))
    bank: Optional[str] = None
    bank_logo: Optional[str] = None
    va_number: Optional[str] = None
    qr_code_url: Optional[str] = Field(None, validation_alias=AliasChoices("qr_code_url", "qr_string", "qris_url"))
    amount: int = 0
    expires_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("expires_at", "expired_at"))
    steps: List[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "allow"}

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        return str(v).lower() if v else "va"

    @field_validator("amount", mode="before")
    @classmethod
    def default_amount(cls, v):
        return 0 if v is None else v

    @field_validator("va_number", mode="before")
    @classmethod
    def stringify_va(cls, v):
        return str(v) if v is not None else v

    @field_validator("expires_at", mode="before")
    @classmethod
    def parse_expiry(cls, v):
        if v is None or isinstance(v, datetime):
            return v
        return parse_datetime(str(v))

    @classmethod
    def from_response(cls, payload: dict) -> "PaymentInstruction":
        data = payload.get("data", payload) if isinstance(payload, dict) else {}
        if not isinstance(data, dict):
            data = {}
        instructions = data.get("instructions") or {}
        steps = instructions.get("steps", []) if isinstance(instructions, dict) else []
        return cls.model_validate({**data, "steps": steps})
