"""
Booking draft models

A draft is exactly one of four variants, discriminated by ``kind``. Every
variant carries the schedule, the vehicle choice, the backend order id, the
price, passenger contact and payment method.
"""
from datetime import date, time
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator


class ServiceType(str, Enum):
    TRANSFER = "transfer"
    RENTAL = "rental"


class Location(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    long: float = Field(..., ge=-180, le=180, validation_alias=AliasChoices("long", "lng"))
    label: str = Field(..., min_length=1, validation_alias=AliasChoices("label", "name"))
    address: Optional[str] = None

    model_config = {"populate_by_name": True, "frozen": True}


class Schedule(BaseModel):
    pickup_date: Optional[date] = None
    pickup_time: Optional[time] = None
    is_round_trip: bool = False
    return_date: Optional[date] = None
    return_time: Optional[time] = None

    model_config = {"frozen": True}

    @field_validator("pickup_time", "return_time", mode="before")
    @classmethod
    def parse_hhmm(cls, v):
        # The booking form sends "HH:MM"
        if v == "":
            return None
        return v

    @field_validator("pickup_date", "return_date", mode="before")
    @classmethod
    def blank_date(cls, v):
        return None if v == "" else v


class PassengerDetails(BaseModel):
    name: str = Field(..., min_length=1)
    whatsapp: str
    email: Optional[str] = None

    model_config = {"frozen": True}


class BackendCar(BaseModel):
    """Car type entry of the backend car list"""
    id: int
    name: str = ""
    price: Optional[int] = None

    model_config = {"extra": "allow", "frozen": True}


class _DraftBase(BaseModel):
    schedule: Schedule = Field(default_factory=Schedule)
    vehicle_class: Optional[str] = None
    car: Optional[BackendCar] = None
    order_id: Optional[Union[int, str]] = None
    price: Optional[int] = None
    passenger: Optional[PassengerDetails] = None
    payment_method: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def service_type(self) -> ServiceType:
        return ServiceType.TRANSFER

    @property
    def vehicle_chosen(self) -> bool:
        return self.vehicle_class is not None or self.car is not None


class PendingDestinationBooking(_DraftBase):
    kind: Literal["pending"] = "pending"


class FixedRouteBooking(_DraftBase):
    kind: Literal["fixed_route"] = "fixed_route"
    route_id: str


class ManualDestinationBooking(_DraftBase):
    kind: Literal["manual"] = "manual"
    destination: Location


class RentalBooking(_DraftBase):
    kind: Literal["rental"] = "rental"
    with_driver: Optional[bool] = None
    duration: Optional[str] = None
    return_location: Optional[str] = None

    @property
    def service_type(self) -> ServiceType:
        return ServiceType.RENTAL

    @property
    def rental_fields_complete(self) -> bool:
        return self.with_driver is not None and bool(self.duration) and bool(self.return_location)


BookingDraft = Annotated[
    Union[PendingDestinationBooking, FixedRouteBooking, ManualDestinationBooking, RentalBooking],
    Field(discriminator="kind"),
]


class ScheduleValidation(BaseModel):
    """Outcome of lead-time, return and night-service checks"""
    complete: bool = False
    pickup_too_early: bool = False
    return_invalid: bool = False
    night_blocked: bool = False
    night_advisory: bool = False
    messages: List[str] = Field(default_factory=list)
    support_link: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.complete and not (self.pickup_too_early or self.return_invalid or self.night_blocked)


# ─── Request bodies ───────────────────────────────────────────────────────────

class ScheduleValidationRequest(BaseModel):
    service_type: ServiceType = ServiceType.TRANSFER
    hotel_slug: Optional[str] = None
    pickup_date: Optional[date] = None
    pickup_time: Optional[time] = None
    is_round_trip: bool = False
    return_date: Optional[date] = None
    return_time: Optional[time] = None

    def to_schedule(self) -> Schedule:
        return Schedule(
            pickup_date=self.pickup_date,
            pickup_time=self.pickup_time,
            is_round_trip=self.is_round_trip and self.service_type == ServiceType.TRANSFER,
            return_date=self.return_date,
            return_time=self.return_time,
        )


class ManualQuoteRequest(BaseModel):
    """Either a backend one-way price or a destination to estimate from"""
    one_way_price: Optional[int] = Field(None, ge=0)
    hotel_slug: Optional[str] = None
    destination: Optional[Location] = None
    vehicle_class: Optional[str] = None
    is_round_trip: bool = False


class ManualQuoteResponse(BaseModel):
    one_way_price: int
    round_trip_price: int
    price: int
    distance_km: Optional[int] = None
    formatted: str


class ContactValidationRequest(BaseModel):
    name: Optional[str] = None
    whatsapp: str = ""
    email: Optional[str] = None


class ContactValidationResponse(BaseModel):
    valid: bool
    errors: dict = Field(default_factory=dict)
    whatsapp_normalized: Optional[str] = None
