"""
Commission models and schemas for partner earnings
"""
from pydantic import AliasChoices, BaseModel, Field, model_validator
from typing import Optional, Dict, Literal
from datetime import datetime


class Tier(BaseModel):
    """Commission tier over the monthly transaction sequence"""
    name: str
    min: int = Field(..., ge=1)
    max: Optional[int] = Field(None, description="Inclusive upper bound, None for the top tier")
    rate: float = Field(..., ge=0, le=100)

    model_config = {"frozen": True}

    def contains(self, n: int) -> bool:
        return n >= self.min and (self.max is None or n <= self.max)

    @property
    def range_label(self) -> str:
        if self.max is None:
            return f"Trx #{self.min}+"
        return f"Trx #{self.min}–#{self.max}"


class Transaction(BaseModel):
    """A paid booking as returned by the hotel transactions endpoint"""
    booking_id: str = Field(..., validation_alias=AliasChoices("booking_id", "booking_code", "id"))
    guest_name: Optional[str] = Field(None, validation_alias=AliasChoices("guest_name", "guest", "customer_name"))
    service_type: Literal["single_trip", "round_trip", "rental"] = "single_trip"
    trip_status: Optional[str] = Field(None, validation_alias=AliasChoices("trip_status", "status"))
    grand_total: int = Field(0, ge=0)
    paid_at: Optional[datetime] = None
    seq: int = Field(..., ge=1, description="1-based sequence number inside the calendar month")
    commission_tier: Optional[str] = None
    commission_rate: Optional[float] = Field(None, ge=0, le=100)
    commission_amount: Optional[float] = None

    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def coerce_booking_id(cls, data):
        if isinstance(data, dict):
            for key in ("booking_id", "booking_code", "id"):
                if key in data and data[key] is not None and not isinstance(data[key], str):
                    data = {**data, key: str(data[key])}
        return data

    @model_validator(mode="after")
    def fill_derived(self):
        # Upstream normally computes these; derive them from the sequence when the payload omits them
        from evista_partner.services.commission_service import tier_of
        tier = tier_of(self.seq)
        if self.commission_rate is None:
            self.commission_rate = tier.rate
        if self.commission_amount is None:
            self.commission_amount = self.grand_total * self.commission_rate / 100
        if not self.commission_tier:
            self.commission_tier = tier.name
        return self


class TierBreakdown(BaseModel):
    count: int = 0
    rate: float
    commission: float = 0
    trx_range: str = ""


class CommissionSummary(BaseModel):
    total_paid_trx: int
    total_commission: float
    total_revenue: int
    breakdown: Dict[str, TierBreakdown] = Field(default_factory=dict)


class TierProgress(BaseModel):
    paid_count: int
    current_tier: Tier
    next_tier: Optional[Tier] = None
    bookings_to_next_tier: int = 0
    progress_percentage: float = 100.0


class CommissionSummaryResponse(BaseModel):
    month: str
    summary: Optional[CommissionSummary] = None
    tier_progress: TierProgress
