"""
Booking wizard state machine.

``transition(state, event, hotel, now)`` is pure: it returns the next state
and the side-effect commands the runner must execute against the backend.
Command results come back as events. A draft is always exactly one booking
variant; changing anything that was submitted with the order drops the order
and everything derived from it, which sends the wizard back to submission.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Type, Union

from pydantic import BaseModel, Field, ValidationError

from evista_partner.config.hotels import duration_hours
from evista_partner.config.settings import settings
from evista_partner.models.booking import (
    BackendCar,
    BookingDraft,
    FixedRouteBooking,
    Location,
    ManualDestinationBooking,
    PassengerDetails,
    PendingDestinationBooking,
    RentalBooking,
    Schedule,
    ScheduleValidation,
    ServiceType,
)
from evista_partner.models.hotel import HotelConfig
from evista_partner.models.payment import PaymentInstruction, PaymentOutcome
from evista_partner.services.pricing import fixed_route_price, manual_car_price
from evista_partner.services.schedule_validation import combine, validate_schedule
from evista_partner.utils.helpers import format_backend_datetime
from evista_partner.utils.validators import is_email, is_whatsapp_number
from evista_partner.utils.whatsapp import admin_notification_message, build_link

logger = logging.getLogger(__name__)


class WizardStep(str, Enum):
    NO_DESTINATION = "no_destination"
    AWAITING_DATETIME = "awaiting_datetime"
    READY_TO_SUBMIT = "ready_to_submit"
    AWAITING_VEHICLE = "awaiting_vehicle"
    VEHICLE_CHOSEN = "vehicle_chosen"
    PASSENGER_DETAILS_ENTERED = "passenger_details_entered"
    PAYMENT_METHOD_SELECTED = "payment_method_selected"
    PAYMENT_PENDING = "payment_pending"
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_EXPIRED = "payment_expired"
    PAYMENT_FAILED = "payment_failed"


TERMINAL_STEPS = {WizardStep.PAYMENT_SUCCESS, WizardStep.PAYMENT_EXPIRED, WizardStep.PAYMENT_FAILED}
LOCKED_STEPS = TERMINAL_STEPS | {WizardStep.PAYMENT_PENDING}

_OUTCOME_STEPS = {
    PaymentOutcome.SUCCESS: WizardStep.PAYMENT_SUCCESS,
    PaymentOutcome.EXPIRED: WizardStep.PAYMENT_EXPIRED,
    PaymentOutcome.FAILED: WizardStep.PAYMENT_FAILED,
}


class WizardState(BaseModel):
    draft: BookingDraft = Field(default_factory=PendingDestinationBooking)
    step: WizardStep = WizardStep.NO_DESTINATION
    submitting: bool = False
    # Journey that last failed to submit; not retried until an input changes
    failed_journey: Optional[tuple] = None
    validation: Optional[ScheduleValidation] = None
    available_cars: List[BackendCar] = Field(default_factory=list)
    vehicle_options: List[str] = Field(default_factory=list)
    contact_errors: Dict[str, str] = Field(default_factory=dict)
    payment: Optional[PaymentInstruction] = None
    payment_outcome: Optional[PaymentOutcome] = None
    error: Optional[str] = None

    model_config = {"frozen": True}


# ─── Events ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ServiceTypeSelected:
    service_type: ServiceType


@dataclass(frozen=True)
class FixedRouteSelected:
    route_id: str


@dataclass(frozen=True)
class ManualDestinationSelected:
    destination: Location


@dataclass(frozen=True)
class DestinationCleared:
    pass


@dataclass(frozen=True)
class ScheduleUpdated:
    schedule: Schedule


@dataclass(frozen=True)
class TripTypeChanged:
    is_round_trip: bool


@dataclass(frozen=True)
class RentalOptionsChanged:
    """None leaves a field untouched"""
    with_driver: Optional[bool] = None
    duration: Optional[str] = None
    return_location: Optional[str] = None


@dataclass(frozen=True)
class JourneySubmitted:
    order_id: Union[int, str]
    journey: tuple


@dataclass(frozen=True)
class JourneySubmissionFailed:
    message: str
    journey: tuple


@dataclass(frozen=True)
class RetrySubmission:
    pass


@dataclass(frozen=True)
class CarsLoaded:
    cars: List[dict]


@dataclass(frozen=True)
class CarsLoadFailed:
    message: str


@dataclass(frozen=True)
class VehicleClassChosen:
    vehicle_class: str


@dataclass(frozen=True)
class CarChosen:
    car_id: int


@dataclass(frozen=True)
class CarSelected:
    """Backend answer to select-car; either field may update the draft"""
    price: Optional[int] = None
    order_id: Optional[Union[int, str]] = None


@dataclass(frozen=True)
class CarSelectionFailed:
    message: str


@dataclass(frozen=True)
class PassengerDetailsEntered:
    name: str
    whatsapp: str
    email: Optional[str] = None


@dataclass(frozen=True)
class ProfileUpdateFailed:
    message: str


@dataclass(frozen=True)
class PaymentMethodSelected:
    payment_method: str


@dataclass(frozen=True)
class PaymentCreated:
    payment: PaymentInstruction


@dataclass(frozen=True)
class PaymentCreationFailed:
    message: str


@dataclass(frozen=True)
class PaymentStatusChanged:
    outcome: PaymentOutcome


@dataclass(frozen=True)
class Reset:
    pass


# ─── Commands ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SelectPickup:
    location: Location
    order_type: str


@dataclass(frozen=True)
class SelectDestination:
    location: Location
    order_type: str


@dataclass(frozen=True)
class SetRoundTrip:
    is_round_trip: bool


@dataclass(frozen=True)
class SubmitTrip:
    payload: dict
    journey: tuple


@dataclass(frozen=True)
class LoadCars:
    order_type: str
    # None loads the unfiltered list
    allowed_type_ids: Optional[Tuple[int, ...]] = None


@dataclass(frozen=True)
class SelectCar:
    type_id: int
    order_type: str


@dataclass(frozen=True)
class UpdateProfile:
    fullname: str
    phone: str


@dataclass(frozen=True)
class Pay:
    order_id: Union[int, str]
    payment_method: str


@dataclass(frozen=True)
class StartPaymentPolling:
    order_id: Union[int, str]
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class StopPaymentPolling:
    pass


@dataclass(frozen=True)
class NotifyAdmin:
    phone: str
    message: str
    link: str = ""


Command = Union[
    SelectPickup, SelectDestination, SetRoundTrip, SubmitTrip, LoadCars, SelectCar,
    UpdateProfile, Pay, StartPaymentPolling, StopPaymentPolling, NotifyAdmin,
]
Result = Tuple[WizardState, List[Command]]


# ─── Helpers ──────────────────────────────────────────────────────────────────

def order_type(draft) -> str:
    return "rental" if isinstance(draft, RentalBooking) else "later"


def journey_key(draft) -> tuple:
    """Everything that is sent with the order; a change means a new order"""
    s = draft.schedule
    base = (draft.kind, s.pickup_date, s.pickup_time)
    if isinstance(draft, RentalBooking):
        return base + (draft.with_driver, draft.duration, draft.return_location)
    target = draft.route_id if isinstance(draft, FixedRouteBooking) else getattr(draft, "destination", None)
    return base + (target, s.is_round_trip, s.return_date if s.is_round_trip else None,
                   s.return_time if s.is_round_trip else None)


def _drop_order(state: WizardState, draft) -> WizardState:
    """Clear the order and everything derived from it"""
    draft = draft.model_copy(update={
        "order_id": None, "vehicle_class": None, "car": None, "price": None, "payment_method": None,
    })
    return state.model_copy(update={
        "draft": draft,
        "submitting": False,
        "available_cars": [],
        "vehicle_options": [],
        "payment": None,
        "error": None,
    })


def _with_journey_change(state: WizardState, draft) -> WizardState:
    if journey_key(draft) == journey_key(state.draft) and type(draft) is type(state.draft):
        return state.model_copy(update={"draft": draft})
    return _drop_order(state, draft)


def _carry(draft) -> dict:
    """Fields that survive a change of destination variant"""
    return {"schedule": draft.schedule, "passenger": draft.passenger}


def _error(state: WizardState, message: str) -> Result:
    return state.model_copy(update={"error": message}), []


def hotel_location(hotel: HotelConfig) -> Location:
    loc = hotel.location
    return Location(lat=loc.lat, long=loc.lng, label=loc.name or hotel.name, address=loc.address)


def _destination_location(draft, hotel: HotelConfig) -> Optional[Location]:
    if isinstance(draft, FixedRouteBooking):
        route = hotel.route(draft.route_id)
        if route is None:
            return None
        dest = route.destination
        return Location(lat=dest.lat, long=dest.lng, label=route.name, address=dest.address)
    if isinstance(draft, ManualDestinationBooking):
        return draft.destination
    if isinstance(draft, RentalBooking):
        ret = hotel.return_location(draft.return_location)
        if ret is None:
            return None
        return Location(lat=ret.lat, long=ret.lng, label=ret.label, address=ret.address)
    return None


def _returns_to_pickup(draft: RentalBooking, hotel: HotelConfig) -> bool:
    ret = hotel.return_location(draft.return_location)
    return ret is not None and ret.same_as_pickup


def trip_payload(draft, hotel: HotelConfig) -> dict:
    s = draft.schedule
    pickup_at = format_backend_datetime(combine(s.pickup_date, s.pickup_time))
    if isinstance(draft, RentalBooking):
        hours = duration_hours(draft.duration) or 0
        return_at = format_backend_datetime(combine(s.pickup_date, s.pickup_time) + timedelta(hours=hours))
        return {
            "order_type": "rental",
            "pickup_at": pickup_at,
            "return_at": return_at,
            "is_with_driver": 1 if draft.with_driver else 0,
            "is_same_return_location": 1 if _returns_to_pickup(draft, hotel) else 0,
            "hotel_slug": hotel.slug,
        }

    return_at = ""
    if s.is_round_trip and s.return_date and s.return_time:
        return_at = format_backend_datetime(combine(s.return_date, s.return_time))
    payload = {
        "order_type": "later",
        "pickup_at": pickup_at,
        "return_at": return_at,
        "hotel_slug": hotel.slug,
    }
    if isinstance(draft, FixedRouteBooking):
        payload["route_id"] = draft.route_id
    return payload


def _inputs_complete(draft) -> bool:
    if isinstance(draft, PendingDestinationBooking):
        return False
    if isinstance(draft, RentalBooking) and not draft.rental_fields_complete:
        return False
    s = draft.schedule
    if not (s.pickup_date and s.pickup_time):
        return False
    if s.is_round_trip and not isinstance(draft, RentalBooking):
        return bool(s.return_date and s.return_time)
    return True


def derive_step(state: WizardState) -> WizardStep:
    draft = state.draft
    if state.payment_outcome is not None:
        return _OUTCOME_STEPS[state.payment_outcome]
    if draft.order_id is None:
        if isinstance(draft, PendingDestinationBooking):
            return WizardStep.NO_DESTINATION
        if _inputs_complete(draft) and state.validation is not None and state.validation.ok:
            return WizardStep.READY_TO_SUBMIT
        return WizardStep.AWAITING_DATETIME
    if state.payment is not None:
        return WizardStep.PAYMENT_PENDING
    if draft.payment_method:
        return WizardStep.PAYMENT_METHOD_SELECTED
    if not draft.vehicle_chosen:
        return WizardStep.AWAITING_VEHICLE
    if draft.passenger is not None:
        return WizardStep.PASSENGER_DETAILS_ENTERED
    return WizardStep.VEHICLE_CHOSEN


def _settle(state: WizardState, commands: List[Command], hotel: HotelConfig, now: datetime) -> Result:
    """Recompute validation and step; start the journey submission when ready"""
    draft = state.draft
    validation = None
    if not isinstance(draft, PendingDestinationBooking) and draft.schedule.pickup_date and draft.schedule.pickup_time:
        validation = validate_schedule(draft.schedule, now, rental=isinstance(draft, RentalBooking), hotel=hotel)
    state = state.model_copy(update={"validation": validation})
    state = state.model_copy(update={"step": derive_step(state)})

    if state.step is WizardStep.READY_TO_SUBMIT and not state.submitting:
        key = journey_key(draft)
        if state.failed_journey != key:
            commands = commands + _submission_commands(draft, hotel, key)
            state = state.model_copy(update={"submitting": True, "error": None})
    return state, commands


def _submission_commands(draft, hotel: HotelConfig, key: tuple) -> List[Command]:
    kind = order_type(draft)
    commands: List[Command] = [SelectPickup(hotel_location(hotel), kind)]
    destination = _destination_location(draft, hotel)
    if destination is not None:
        commands.append(SelectDestination(destination, kind))
    if not isinstance(draft, RentalBooking):
        commands.append(SetRoundTrip(draft.schedule.is_round_trip))
    commands.append(SubmitTrip(trip_payload(draft, hotel), key))
    return commands


def initial_state() -> WizardState:
    return WizardState()


# ─── Handlers ─────────────────────────────────────────────────────────────────

def _on_service_type(state, event: ServiceTypeSelected, hotel, now) -> Result:
    wants_rental = event.service_type == ServiceType.RENTAL
    if wants_rental == isinstance(state.draft, RentalBooking):
        return state, []
    draft = RentalBooking(passenger=state.draft.passenger) if wants_rental else \
        PendingDestinationBooking(passenger=state.draft.passenger)
    return _drop_order(state.model_copy(update={"failed_journey": None}), draft), []


def _on_fixed_route(state, event: FixedRouteSelected, hotel, now) -> Result:
    if isinstance(state.draft, RentalBooking):
        return _error(state, "Rute tetap tidak tersedia untuk rental")
    if isinstance(state.draft, FixedRouteBooking) and state.draft.route_id == event.route_id:
        return state, []
    if hotel.route(event.route_id) is None:
        return _error(state, f"Rute '{event.route_id}' tidak ditemukan")
    draft = FixedRouteBooking(route_id=event.route_id, **_carry(state.draft))
    return _drop_order(state, draft), []


def _on_manual_destination(state, event: ManualDestinationSelected, hotel, now) -> Result:
    if isinstance(state.draft, RentalBooking):
        return _error(state, "Tujuan manual tidak tersedia untuk rental")
    if isinstance(state.draft, ManualDestinationBooking) and state.draft.destination == event.destination:
        return state, []
    draft = ManualDestinationBooking(destination=event.destination, **_carry(state.draft))
    return _drop_order(state, draft), []


def _on_destination_cleared(state, event, hotel, now) -> Result:
    if isinstance(state.draft, (PendingDestinationBooking, RentalBooking)):
        return state, []
    return _drop_order(state, PendingDestinationBooking(**_carry(state.draft))), []


def _on_schedule(state, event: ScheduleUpdated, hotel, now) -> Result:
    schedule = event.schedule
    if isinstance(state.draft, RentalBooking) and schedule.is_round_trip:
        schedule = schedule.model_copy(update={"is_round_trip": False, "return_date": None, "return_time": None})
    if schedule == state.draft.schedule:
        return state, []
    return _with_journey_change(state, state.draft.model_copy(update={"schedule": schedule})), []


def _on_trip_type(state, event: TripTypeChanged, hotel, now) -> Result:
    if isinstance(state.draft, RentalBooking):
        return _error(state, "Rental tidak mendukung pulang-pergi")
    current = state.draft.schedule
    if current.is_round_trip == event.is_round_trip:
        return state, []
    update = {"is_round_trip": event.is_round_trip}
    if not event.is_round_trip:
        update.update({"return_date": None, "return_time": None})
    schedule = current.model_copy(update=update)
    return _with_journey_change(state, state.draft.model_copy(update={"schedule": schedule})), []


def _on_rental_options(state, event: RentalOptionsChanged, hotel, now) -> Result:
    draft = state.draft
    if not isinstance(draft, RentalBooking):
        return _error(state, "Pilih layanan rental terlebih dahulu")
    if event.duration is not None and duration_hours(event.duration) is None:
        return _error(state, f"Durasi '{event.duration}' tidak tersedia")
    if event.return_location is not None and hotel.return_location(event.return_location) is None:
        return _error(state, f"Lokasi kembali '{event.return_location}' tidak tersedia")

    update = {}
    if event.with_driver is not None:
        update["with_driver"] = event.with_driver
    if event.duration is not None:
        update["duration"] = event.duration
    if event.return_location is not None:
        update["return_location"] = event.return_location
    new_draft = draft.model_copy(update=update)
    if journey_key(new_draft) == journey_key(draft):
        return state, []
    return _with_journey_change(state, new_draft), []


def _on_journey_submitted(state, event: JourneySubmitted, hotel, now) -> Result:
    if journey_key(state.draft) != event.journey:
        # Any submission for the current journey is still in flight
        logger.info("Ignoring order %s for a journey that has since changed", event.order_id)
        return state, []

    draft = state.draft.model_copy(update={"order_id": event.order_id})
    state = state.model_copy(update={"draft": draft, "submitting": False, "failed_journey": None, "error": None})

    if isinstance(draft, ManualDestinationBooking):
        return state, [LoadCars("later", tuple(settings.MANUAL_CAR_TYPE_IDS))]
    if isinstance(draft, RentalBooking):
        return state, [LoadCars("rental")]

    route = hotel.route(draft.route_id)
    options = list(route.pricing.keys()) if route else []
    state = state.model_copy(update={"vehicle_options": options})
    if len(options) == 1:
        return _choose_vehicle_class(state, options[0], hotel)
    return state, []


def _on_journey_failed(state, event: JourneySubmissionFailed, hotel, now) -> Result:
    if journey_key(state.draft) != event.journey:
        return state, []
    return state.model_copy(update={
        "submitting": False,
        "failed_journey": event.journey,
        "error": event.message or "Gagal membuat pesanan",
    }), []


def _on_retry(state, event, hotel, now) -> Result:
    return state.model_copy(update={"failed_journey": None}), []


def _on_cars_loaded(state, event: CarsLoaded, hotel, now) -> Result:
    cars = []
    for raw in event.cars:
        try:
            cars.append(BackendCar.model_validate(raw))
        except ValidationError as e:
            logger.warning("Skipping malformed car entry: %s", e)
    return state.model_copy(update={"available_cars": cars}), []


def _on_cars_failed(state, event: CarsLoadFailed, hotel, now) -> Result:
    return state.model_copy(update={"available_cars": [], "error": event.message or "Gagal memuat kendaraan"}), []


def _choose_vehicle_class(state: WizardState, vehicle_class: str, hotel: HotelConfig) -> Result:
    draft = state.draft
    price = fixed_route_price(hotel, draft.route_id, vehicle_class, draft.schedule.is_round_trip)
    draft = draft.model_copy(update={"vehicle_class": vehicle_class, "car": None, "price": price})
    state = state.model_copy(update={"draft": draft, "error": None})
    vc = hotel.vehicle_class(vehicle_class)
    if vc is not None and vc.car_type_id is not None:
        return state, [SelectCar(vc.car_type_id, order_type(draft))]
    return state, []


def _on_vehicle_class(state, event: VehicleClassChosen, hotel, now) -> Result:
    draft = state.draft
    if not isinstance(draft, FixedRouteBooking) or draft.order_id is None:
        return _error(state, "Kelas kendaraan hanya untuk rute tetap yang sudah dibuat")
    if event.vehicle_class not in state.vehicle_options:
        return _error(state, f"Kelas '{event.vehicle_class}' tidak tersedia untuk rute ini")
    if draft.vehicle_class == event.vehicle_class:
        return state, []
    return _choose_vehicle_class(state, event.vehicle_class, hotel)


def _on_car_chosen(state, event: CarChosen, hotel, now) -> Result:
    draft = state.draft
    if draft.order_id is None or isinstance(draft, (FixedRouteBooking, PendingDestinationBooking)):
        return _error(state, "Belum ada pesanan untuk memilih kendaraan")
    car = next((c for c in state.available_cars if c.id == event.car_id), None)
    if car is None:
        return _error(state, "Kendaraan tidak tersedia")
    if draft.car is not None and draft.car.id == car.id:
        return state, []
    if isinstance(draft, ManualDestinationBooking):
        price = manual_car_price(car.price, draft.schedule.is_round_trip)
    else:
        price = car.price
    draft = draft.model_copy(update={"car": car, "vehicle_class": None, "price": price})
    return state.model_copy(update={"draft": draft, "error": None}), [SelectCar(car.id, order_type(draft))]


def _on_car_selected(state, event: CarSelected, hotel, now) -> Result:
    update = {}
    # Fixed routes keep the MOU tariff whatever the backend quotes
    if event.price is not None and not isinstance(state.draft, FixedRouteBooking):
        update["price"] = event.price
    if event.order_id is not None:
        update["order_id"] = event.order_id
    if not update:
        return state, []
    return state.model_copy(update={"draft": state.draft.model_copy(update=update)}), []


def _on_car_failed(state, event: CarSelectionFailed, hotel, now) -> Result:
    return _error(state, event.message or "Gagal memilih kendaraan")


def _on_passenger(state, event: PassengerDetailsEntered, hotel, now) -> Result:
    if state.draft.order_id is None or not state.draft.vehicle_chosen:
        return _error(state, "Pilih kendaraan terlebih dahulu")
    errors = {}
    name = (event.name or "").strip()
    if not name:
        errors["name"] = "Nama wajib diisi"
    if not is_whatsapp_number(event.whatsapp):
        errors["whatsapp"] = "Nomor WhatsApp tidak valid"
    email = (event.email or "").strip() or None
    if email and not is_email(email):
        errors["email"] = "Email tidak valid"
    if errors:
        return state.model_copy(update={"contact_errors": errors}), []

    passenger = PassengerDetails(name=name, whatsapp=event.whatsapp.strip(), email=email)
    if passenger == state.draft.passenger:
        return state.model_copy(update={"contact_errors": {}}), []
    draft = state.draft.model_copy(update={"passenger": passenger})
    state = state.model_copy(update={"draft": draft, "contact_errors": {}, "error": None})
    return state, [UpdateProfile(passenger.name, passenger.whatsapp)]


def _on_profile_failed(state, event: ProfileUpdateFailed, hotel, now) -> Result:
    return _error(state, event.message or "Gagal memperbarui profil")


def _on_payment_method(state, event: PaymentMethodSelected, hotel, now) -> Result:
    draft = state.draft
    if draft.passenger is None or draft.order_id is None:
        return _error(state, "Lengkapi data pemesan terlebih dahulu")
    if state.submitting:
        return state, []
    draft = draft.model_copy(update={"payment_method": event.payment_method})
    state = state.model_copy(update={"draft": draft, "error": None, "submitting": True})
    return state, [Pay(draft.order_id, event.payment_method)]


def _on_payment_created(state, event: PaymentCreated, hotel, now) -> Result:
    order_id = state.draft.order_id
    state = state.model_copy(update={"payment": event.payment, "submitting": False, "error": None})
    return state, [StartPaymentPolling(order_id, event.payment.expires_at)]


def _on_payment_failed(state, event: PaymentCreationFailed, hotel, now) -> Result:
    draft = state.draft.model_copy(update={"payment_method": None})
    return state.model_copy(update={
        "draft": draft, "submitting": False, "error": event.message or "Gagal membuat pembayaran",
    }), []


def _on_payment_status(state, event: PaymentStatusChanged, hotel, now) -> Result:
    if state.step is not WizardStep.PAYMENT_PENDING:
        return state, []
    state = state.model_copy(update={"payment_outcome": event.outcome})
    commands: List[Command] = [StopPaymentPolling()]
    if event.outcome is PaymentOutcome.SUCCESS:
        amount = state.payment.amount if state.payment and state.payment.amount else (state.draft.price or 0)
        message = admin_notification_message(state.draft, str(state.draft.order_id), amount, hotel)
        commands.append(NotifyAdmin(settings.ADMIN_WHATSAPP, message, build_link(settings.ADMIN_WHATSAPP, message)))
    return state, commands


def _on_reset(state, event, hotel, now) -> Result:
    commands: List[Command] = [StopPaymentPolling()] if state.step is WizardStep.PAYMENT_PENDING else []
    return initial_state(), commands


_HANDLERS: Dict[Type, Callable[..., Result]] = {
    ServiceTypeSelected: _on_service_type,
    FixedRouteSelected: _on_fixed_route,
    ManualDestinationSelected: _on_manual_destination,
    DestinationCleared: _on_destination_cleared,
    ScheduleUpdated: _on_schedule,
    TripTypeChanged: _on_trip_type,
    RentalOptionsChanged: _on_rental_options,
    JourneySubmitted: _on_journey_submitted,
    JourneySubmissionFailed: _on_journey_failed,
    RetrySubmission: _on_retry,
    CarsLoaded: _on_cars_loaded,
    CarsLoadFailed: _on_cars_failed,
    VehicleClassChosen: _on_vehicle_class,
    CarChosen: _on_car_chosen,
    CarSelected: _on_car_selected,
    CarSelectionFailed: _on_car_failed,
    PassengerDetailsEntered: _on_passenger,
    ProfileUpdateFailed: _on_profile_failed,
    PaymentMethodSelected: _on_payment_method,
    PaymentCreated: _on_payment_created,
    PaymentCreationFailed: _on_payment_failed,
    PaymentStatusChanged: _on_payment_status,
    Reset: _on_reset,
}

# Events accepted once payment is pending or finished
_LOCKED_EVENTS = (PaymentStatusChanged, Reset)


def transition(state: WizardState, event, hotel: HotelConfig, now: datetime) -> Result:
    """Apply one event; returns (new state, commands to run in order)"""
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unknown wizard event: {type(event).__name__}")
    if state.step in LOCKED_STEPS and not isinstance(event, _LOCKED_EVENTS):
        logger.info("Ignoring %s while %s", type(event).__name__, state.step.value)
        return state, []
    new_state, commands = handler(state, event, hotel, now)
    return _settle(new_state, commands, hotel, now)


def night_support_link(state: WizardState) -> Optional[str]:
    """WhatsApp link offered when a night pickup or return is blocked"""
    if state.validation is not None and state.validation.night_blocked:
        return state.validation.support_link
    return None
