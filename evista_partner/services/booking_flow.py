"""
Booking wizard runner.

Feeds events into the pure state machine, executes the resulting commands one
at a time against the Evista backend and turns their results (or failures)
back into events. Backend failures never escape to the caller; they end up
as the ``error`` message on the wizard state.
"""
import logging
from collections import deque
from datetime import datetime
from typing import Callable, Deque, List, Optional

from pydantic import ValidationError

from evista_partner.models.hotel import HotelConfig
from evista_partner.models.payment import PaymentInstruction, PaymentOutcome
from evista_partner.services.backend_client import BackendError, EvistaClient
from evista_partner.services.booking_wizard import (
    CarSelected,
    CarSelectionFailed,
    CarsLoaded,
    CarsLoadFailed,
    JourneySubmissionFailed,
    JourneySubmitted,
    LoadCars,
    NotifyAdmin,
    Pay,
    PaymentCreated,
    PaymentCreationFailed,
    PaymentStatusChanged,
    ProfileUpdateFailed,
    SelectCar,
    SelectDestination,
    SelectPickup,
    SetRoundTrip,
    StartPaymentPolling,
    StopPaymentPolling,
    SubmitTrip,
    UpdateProfile,
    WizardState,
    initial_state,
    journey_key,
    transition,
)
from evista_partner.services.payment_poller import PaymentWatch
from evista_partner.utils.helpers import now_local

logger = logging.getLogger(__name__)

# Commands that belong to the journey submission; a failure aborts the rest
_JOURNEY_COMMANDS = (SelectPickup, SelectDestination, SetRoundTrip, SubmitTrip)


def _car_selected_event(response) -> CarSelected:
    if not isinstance(response, dict):
        return CarSelected()
    order = response.get("order") if isinstance(response.get("order"), dict) else {}
    data = response.get("data") if isinstance(response.get("data"), dict) else {}
    price = data.get("price") if data.get("price") is not None else order.get("price")
    return CarSelected(
        price=int(price) if isinstance(price, (int, float)) else None,
        order_id=order.get("id"),
    )


class BookingWizard:
    """Stateful runner around ``transition`` for one guest's booking"""

    def __init__(
        self,
        client: EvistaClient,
        hotel: HotelConfig,
        clock: Callable[[], datetime] = now_local,
        watch_factory: Optional[Callable[..., PaymentWatch]] = None,
    ):
        self.client = client
        self.hotel = hotel
        self.clock = clock
        self.watch_factory = watch_factory or PaymentWatch
        self.state: WizardState = initial_state()
        self.watch: Optional[PaymentWatch] = None
        self.notifications: List[NotifyAdmin] = []

    async def dispatch(self, event) -> WizardState:
        """Apply an event and run every command it causes, in order"""
        events: Deque = deque([event])
        while events:
            current = events.popleft()
            self.state, commands = transition(self.state, current, self.hotel, self.clock())
            pending: Deque = deque(commands)
            while pending:
                command = pending.popleft()
                result = await self._execute(command)
                if result is None:
                    continue
                events.append(result)
                if isinstance(result, JourneySubmissionFailed):
                    # Abort the remaining submission steps
                    pending = deque(c for c in pending if not isinstance(c, _JOURNEY_COMMANDS))
        return self.state

    async def _execute(self, command):
        try:
            return await self._run(command)
        except BackendError as e:
            logger.error("❌ %s failed: %s", type(command).__name__, e)
            return self._failure_event(command, e.message)

    def _failure_event(self, command, message: str):
        if isinstance(command, _JOURNEY_COMMANDS):
            return JourneySubmissionFailed(message or "Gagal membuat pesanan", self._journey_of(command))
        if isinstance(command, LoadCars):
            return CarsLoadFailed(message or "Gagal memuat kendaraan")
        if isinstance(command, SelectCar):
            return CarSelectionFailed(message or "Gagal memilih kendaraan")
        if isinstance(command, UpdateProfile):
            return ProfileUpdateFailed(message or "Gagal memperbarui profil")
        if isinstance(command, Pay):
            return PaymentCreationFailed(message or "Gagal membuat pembayaran")
        return None

    def _journey_of(self, command) -> tuple:
        if isinstance(command, SubmitTrip):
            return command.journey
        return journey_key(self.state.draft)

    async def _run(self, command):
        if isinstance(command, SelectPickup):
            loc = command.location
            await self.client.select_pickup(loc.lat, loc.long, loc.label, command.order_type, note=loc.address or "")
            return None
        if isinstance(command, SelectDestination):
            loc = command.location
            await self.client.select_destination(loc.lat, loc.long, loc.label, command.order_type)
            return None
        if isinstance(command, SetRoundTrip):
            await self.client.set_round_trip(command.is_round_trip)
            return None
        if isinstance(command, SubmitTrip):
            logger.info("🧾 Submitting trip: %s", command.payload)
            order_id = await self.client.submit_trip(command.payload)
            logger.info("✅ Order created: %s", order_id)
            return JourneySubmitted(order_id, command.journey)
        if isinstance(command, LoadCars):
            cars = await self.client.list_cars(command.order_type)
            if command.allowed_type_ids is not None:
                cars = [c for c in cars if isinstance(c, dict) and c.get("id") in command.allowed_type_ids]
            return CarsLoaded(cars)
        if isinstance(command, SelectCar):
            response = await self.client.select_car(command.type_id, command.order_type)
            return _car_selected_event(response)
        if isinstance(command, UpdateProfile):
            await self.client.update_profile(command.fullname, command.phone)
            return None
        if isinstance(command, Pay):
            response = await self.client.pay({"order_id": command.order_id, "payment_method": command.payment_method})
            try:
                instruction = PaymentInstruction.from_response(response)
            except ValidationError as e:
                raise BackendError(502, "Invalid payment response", e.errors(include_url=False))
            return PaymentCreated(instruction)
        if isinstance(command, StartPaymentPolling):
            self._start_watch(command)
            return None
        if isinstance(command, StopPaymentPolling):
            self.stop_polling()
            return None
        if isinstance(command, NotifyAdmin):
            self._notify_admin(command)
            return None
        raise TypeError(f"Unknown wizard command: {type(command).__name__}")

    # ─── Payment watch ────────────────────────────────────────────────────────

    def _start_watch(self, command: StartPaymentPolling) -> None:
        self.stop_polling()
        order_id = command.order_id

        async def fetch_status():
            return await self.client.payment_detail(order_id)

        async def on_outcome(outcome: PaymentOutcome):
            await self.dispatch(PaymentStatusChanged(outcome))

        self.watch = self.watch_factory(
            fetch_status=fetch_status,
            on_outcome=on_outcome,
            expires_at=command.expires_at,
        ).start()

    def stop_polling(self) -> None:
        if self.watch is not None:
            self.watch.cancel()
            self.watch = None

    async def close(self) -> None:
        """Stop any timers; safe to call more than once"""
        self.stop_polling()

    # ─── Notifications ────────────────────────────────────────────────────────

    def _notify_admin(self, command: NotifyAdmin) -> None:
        # Logged only; delivery through WhatsApp Business is handled outside this service
        self.notifications.append(command)
        logger.info("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
        logger.info("[AUTO-NOTIFICATION TO ADMIN] WhatsApp: %s", command.phone)
        logger.info("%s", command.message)
        logger.info("━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━")
