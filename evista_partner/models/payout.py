"""
Payout / invoice models
"""
from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Optional, Literal
from datetime import datetime

from evista_partner.utils.helpers import parse_datetime


class Payout(BaseModel):
    """A commission payout to the hotel as returned by the payouts endpoint"""
    invoice_number: str = Field(..., validation_alias=AliasChoices("invoice_number", "invoice", "id"))
    period: str = Field("", validation_alias=AliasChoices("period", "period_label", "month"))
    amount: float = Field(0, ge=0)
    status: Literal["paid", "pending"] = "pending"
    paid_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("paid_at", "paid_date"))
    due_date: Optional[datetime] = None
    notes: Optional[str] = None
    transaction_count: Optional[int] = None

    model_config = {"populate_by_name": True}

    @field_validator("invoice_number", mode="before")
    @classmethod
    def stringify_invoice(cls, v):
        return str(v) if v is not None else v

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            # Backend sometimes reports settled payouts as "completed"
            if v in ("completed", "success", "settled"):
                return "paid"
        return v

    @field_validator("paid_at", "due_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        # Backend wall-clock strings are Jakarta time
        return parse_datetime(v) if isinstance(v, str) else v


class PayoutSummary(BaseModel):
    total_paid: float = 0
    total_pending: float = 0
    invoice_count: int = 0
