from datetime import date, time

import pytest

from evista_partner.models.booking import (
    FixedRouteBooking,
    Location,
    ManualDestinationBooking,
    PendingDestinationBooking,
    RentalBooking,
    Schedule,
    ServiceType,
)
from evista_partner.models.payment import PaymentInstruction, PaymentOutcome
from evista_partner.services.booking_wizard import (
    CarChosen,
    CarSelected,
    CarsLoaded,
    DestinationCleared,
    FixedRouteSelected,
    JourneySubmissionFailed,
    JourneySubmitted,
    LoadCars,
    ManualDestinationSelected,
    NotifyAdmin,
    PassengerDetailsEntered,
    Pay,
    PaymentCreated,
    PaymentMethodSelected,
    PaymentStatusChanged,
    RentalOptionsChanged,
    Reset,
    RetrySubmission,
    ScheduleUpdated,
    SelectCar,
    SelectDestination,
    SelectPickup,
    ServiceTypeSelected,
    SetRoundTrip,
    StartPaymentPolling,
    StopPaymentPolling,
    SubmitTrip,
    TripTypeChanged,
    UpdateProfile,
    VehicleClassChosen,
    WizardStep,
    initial_state,
    journey_key,
    night_support_link,
    transition,
)

TOMORROW_9 = Schedule(pickup_date=date(2026, 3, 11), pickup_time=time(9, 0))
JIMBARAN = Location(lat=-6.3, long=106.9, label="Jl. Jimbaran 1")


@pytest.fixture
def step(hotel, now):
    """Apply events in order; returns the final state and the last event's commands."""
    def apply(state, *events):
        commands = []
        for event in events:
            state, commands = transition(state, event, hotel, now)
        return state, commands
    return apply


def submitted(step, state):
    """Acknowledge the pending submission with order 777"""
    return step(state, JourneySubmitted(777, journey_key(state.draft)))


class TestDestinationChoice:
    def test_starts_without_destination(self):
        state = initial_state()
        assert state.step is WizardStep.NO_DESTINATION
        assert isinstance(state.draft, PendingDestinationBooking)

    def test_fixed_route_waits_for_schedule(self, step):
        state, commands = step(initial_state(), FixedRouteSelected("route-cgk"))
        assert isinstance(state.draft, FixedRouteBooking)
        assert state.step is WizardStep.AWAITING_DATETIME
        assert commands == []

    def test_manual_destination_replaces_route(self, step):
        state, _ = step(initial_state(), FixedRouteSelected("route-cgk"), ManualDestinationSelected(JIMBARAN))
        assert isinstance(state.draft, ManualDestinationBooking)
        assert not hasattr(state.draft, "route_id")

    def test_unknown_route_is_an_error(self, step):
        state, _ = step(initial_state(), FixedRouteSelected("route-nowhere"))
        assert state.step is WizardStep.NO_DESTINATION
        assert "route-nowhere" in state.error

    def test_clearing_keeps_schedule(self, step):
        state, _ = step(initial_state(), FixedRouteSelected("route-cgk"), DestinationCleared())
        state, _ = step(state, ScheduleUpdated(TOMORROW_9), FixedRouteSelected("route-hlp"))
        state, _ = step(state, DestinationCleared())
        assert state.step is WizardStep.NO_DESTINATION
        assert state.draft.schedule == TOMORROW_9


class TestSubmission:
    def test_ready_schedule_submits_journey(self, step, hotel):
        state, commands = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        assert state.step is WizardStep.READY_TO_SUBMIT
        assert state.submitting
        assert [type(c) for c in commands] == [SelectPickup, SelectDestination, SetRoundTrip, SubmitTrip]
        assert commands[0].location.label == "Classic Hotel"
        assert commands[1].location.label == hotel.route("route-cgk").name
        payload = commands[-1].payload
        assert payload["order_type"] == "later"
        assert payload["pickup_at"] == "2026-03-11 09:00:00"
        assert payload["return_at"] == ""
        assert payload["route_id"] == "route-cgk"

    def test_too_early_pickup_does_not_submit(self, step):
        early = Schedule(pickup_date=date(2026, 3, 10), pickup_time=time(10, 15))
        state, commands = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(early))
        assert state.step is WizardStep.AWAITING_DATETIME
        assert state.validation.pickup_too_early
        assert commands == []

    def test_blocked_night_pickup_offers_whatsapp(self, step):
        night = Schedule(pickup_date=date(2026, 3, 11), pickup_time=time(2, 0))
        state, commands = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(night))
        assert commands == []
        assert night_support_link(state).startswith("https://wa.me/")

    def test_order_created_offers_route_classes(self, step):
        state, _ = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        state, commands = submitted(step, state)
        assert state.draft.order_id == 777
        assert state.step is WizardStep.AWAITING_VEHICLE
        assert state.vehicle_options == ["economy", "premium", "elite"]
        assert not state.submitting
        assert commands == []

    def test_failure_is_not_retried_until_inputs_change(self, step):
        state, commands = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        key = commands[-1].journey
        state, commands = step(state, JourneySubmissionFailed("Server sibuk", key))
        assert state.error == "Server sibuk"
        assert state.step is WizardStep.READY_TO_SUBMIT
        assert commands == []

        state, commands = step(state, RetrySubmission())
        assert isinstance(commands[-1], SubmitTrip)

    def test_changed_inputs_resubmit_after_failure(self, step):
        state, commands = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        state, _ = step(state, JourneySubmissionFailed("Server sibuk", commands[-1].journey))
        later = Schedule(pickup_date=date(2026, 3, 11), pickup_time=time(10, 0))
        state, commands = step(state, ScheduleUpdated(later))
        assert commands[-1].payload["pickup_at"] == "2026-03-11 10:00:00"

    def test_stale_order_is_ignored(self, step):
        state, commands = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        old_key = commands[-1].journey
        state, _ = step(state, FixedRouteSelected("route-hlp"))
        state, commands = step(state, JourneySubmitted(555, old_key))
        assert state.draft.order_id is None
        assert state.submitting
        assert commands == []

    def test_stale_failure_does_not_block_new_journey(self, step):
        state, commands = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        old_key = commands[-1].journey
        state, _ = step(state, FixedRouteSelected("route-hlp"))
        state, commands = step(state, JourneySubmissionFailed("timeout", old_key))
        assert state.failed_journey is None
        assert state.error is None
        assert commands == []


class TestOrderInvalidation:
    def test_trip_type_change_drops_order(self, step):
        state, _ = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        state, _ = submitted(step, state)
        state, _ = step(state, VehicleClassChosen("economy"))

        state, commands = step(state, TripTypeChanged(True))
        assert state.draft.order_id is None
        assert state.draft.vehicle_class is None
        assert state.draft.price is None
        assert state.step is WizardStep.AWAITING_DATETIME
        assert commands == []

    def test_round_trip_submission_uses_return_time(self, step):
        round_trip = TOMORROW_9.model_copy(update={
            "is_round_trip": True, "return_date": date(2026, 3, 12), "return_time": time(18, 0),
        })
        state, commands = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(round_trip))
        assert commands[2] == SetRoundTrip(True)
        assert commands[-1].payload["return_at"] == "2026-03-12 18:00:00"

    def test_passenger_survives_destination_change(self, step):
        state, _ = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        state, _ = submitted(step, state)
        state, _ = step(state, VehicleClassChosen("elite"), PassengerDetailsEntered("Budi", "081234567890"))
        state, _ = step(state, ManualDestinationSelected(JIMBARAN))
        assert state.draft.passenger.name == "Budi"
        assert state.draft.order_id is None


class TestFixedRouteVehicle:
    def test_class_uses_route_tariff(self, step):
        state, _ = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        state, _ = submitted(step, state)
        state, commands = step(state, VehicleClassChosen("premium"))
        assert state.draft.price == 290000
        assert commands == [SelectCar(2, "later")]
        assert state.step is WizardStep.VEHICLE_CHOSEN

        state, _ = step(state, CarSelected(price=999999))
        assert state.draft.price == 290000

    def test_elite_has_no_backend_car(self, step):
        state, _ = step(initial_state(), FixedRouteSelected("route-hlp"), ScheduleUpdated(TOMORROW_9))
        state, _ = submitted(step, state)
        state, commands = step(state, VehicleClassChosen("elite"))
        assert state.draft.price == 510000
        assert commands == []

    def test_class_outside_route_is_rejected(self, step):
        state, _ = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        state, _ = submitted(step, state)
        state, _ = step(state, VehicleClassChosen("business"))
        assert state.draft.vehicle_class is None
        assert state.error


class TestManualDestination:
    CARS = [{"id": 9, "name": "Economy+", "price": 150000}, {"id": 2, "name": "Premium", "price": 200000}]

    def test_cars_are_limited_to_manual_types(self, step):
        state, _ = step(initial_state(), ManualDestinationSelected(JIMBARAN), ScheduleUpdated(TOMORROW_9))
        state, commands = submitted(step, state)
        assert commands == [LoadCars("later", (2, 9))]

    def test_round_trip_car_price(self, step):
        round_trip = TOMORROW_9.model_copy(update={
            "is_round_trip": True, "return_date": date(2026, 3, 11), "return_time": time(20, 0),
        })
        state, commands = step(initial_state(), ManualDestinationSelected(JIMBARAN), ScheduleUpdated(round_trip))
        assert commands[1].location == JIMBARAN
        state, _ = submitted(step, state)
        state, _ = step(state, CarsLoaded(self.CARS))
        state, commands = step(state, CarChosen(9))
        assert state.draft.price == 290000
        assert commands == [SelectCar(9, "later")]

    def test_backend_price_overrides_manual_estimate(self, step):
        state, _ = step(initial_state(), ManualDestinationSelected(JIMBARAN), ScheduleUpdated(TOMORROW_9))
        state, _ = submitted(step, state)
        state, _ = step(state, CarsLoaded(self.CARS), CarChosen(2), CarSelected(price=210000, order_id=778))
        assert state.draft.price == 210000
        assert state.draft.order_id == 778

    def test_unknown_car_is_rejected(self, step):
        state, _ = step(initial_state(), ManualDestinationSelected(JIMBARAN), ScheduleUpdated(TOMORROW_9))
        state, _ = submitted(step, state)
        state, commands = step(state, CarsLoaded(self.CARS), CarChosen(42))
        assert state.draft.car is None
        assert commands == []


class TestRental:
    def test_rental_submission(self, step):
        state, commands = step(
            initial_state(),
            ServiceTypeSelected(ServiceType.RENTAL),
            RentalOptionsChanged(with_driver=True, duration="6_hours", return_location="classic_hotel"),
            ScheduleUpdated(TOMORROW_9),
        )
        assert isinstance(state.draft, RentalBooking)
        assert [type(c) for c in commands] == [SelectPickup, SelectDestination, SubmitTrip]
        assert commands[0].order_type == "rental"
        payload = commands[-1].payload
        assert payload["order_type"] == "rental"
        assert payload["return_at"] == "2026-03-11 15:00:00"
        assert payload["is_with_driver"] == 1
        assert payload["is_same_return_location"] == 1

    def test_rental_waits_for_all_options(self, step):
        state, commands = step(
            initial_state(),
            ServiceTypeSelected(ServiceType.RENTAL),
            RentalOptionsChanged(duration="12_hours"),
            ScheduleUpdated(TOMORROW_9),
        )
        assert state.step is WizardStep.AWAITING_DATETIME
        assert commands == []

    def test_rental_rejects_round_trip(self, step):
        state, _ = step(initial_state(), ServiceTypeSelected(ServiceType.RENTAL), TripTypeChanged(True))
        assert state.error
        assert not state.draft.schedule.is_round_trip

    def test_rental_loads_rental_cars(self, step):
        state, _ = step(
            initial_state(),
            ServiceTypeSelected(ServiceType.RENTAL),
            RentalOptionsChanged(with_driver=False, duration="6_hours", return_location="halim_airport"),
            ScheduleUpdated(TOMORROW_9),
        )
        state, commands = submitted(step, state)
        assert commands == [LoadCars("rental")]


class TestPayment:
    def pending(self, step):
        state, _ = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        state, _ = submitted(step, state)
        state, _ = step(state, VehicleClassChosen("premium"))
        state, commands = step(state, PassengerDetailsEntered("Budi", "0812 3456 7890", "budi@example.com"))
        assert commands == [UpdateProfile("Budi", "0812 3456 7890")]
        assert state.step is WizardStep.PASSENGER_DETAILS_ENTERED

        state, commands = step(state, PaymentMethodSelected("bca"))
        assert commands == [Pay(777, "bca")]
        assert state.step is WizardStep.PAYMENT_METHOD_SELECTED

        payment = PaymentInstruction(order_id=777, type="va", bank="BCA", va_number="8808123", amount=290000)
        state, commands = step(state, PaymentCreated(payment))
        assert commands == [StartPaymentPolling(777, None)]
        assert state.step is WizardStep.PAYMENT_PENDING
        return state

    def test_invalid_contact_stays_on_vehicle(self, step):
        state, _ = step(initial_state(), FixedRouteSelected("route-cgk"), ScheduleUpdated(TOMORROW_9))
        state, _ = submitted(step, state)
        state, _ = step(state, VehicleClassChosen("economy"))
        state, commands = step(state, PassengerDetailsEntered("", "12ab", "not-an-email"))
        assert set(state.contact_errors) == {"name", "whatsapp", "email"}
        assert state.step is WizardStep.VEHICLE_CHOSEN
        assert commands == []

    def test_pending_payment_locks_the_draft(self, step):
        state = self.pending(step)
        after, commands = step(state, ScheduleUpdated(TOMORROW_9.model_copy(update={"pickup_time": time(12, 0)})))
        assert after == state
        assert commands == []

    def test_success_notifies_admin(self, step):
        state = self.pending(step)
        state, commands = step(state, PaymentStatusChanged(PaymentOutcome.SUCCESS))
        assert state.step is WizardStep.PAYMENT_SUCCESS
        assert isinstance(commands[0], StopPaymentPolling)
        notify = commands[1]
        assert isinstance(notify, NotifyAdmin)
        assert "Rp 290.000" in notify.message
        assert notify.link.startswith("https://wa.me/")

    @pytest.mark.parametrize("outcome,expected", [
        (PaymentOutcome.EXPIRED, WizardStep.PAYMENT_EXPIRED),
        (PaymentOutcome.FAILED, WizardStep.PAYMENT_FAILED),
    ])
    def test_terminal_outcomes(self, step, outcome, expected):
        state, commands = step(self.pending(step), PaymentStatusChanged(outcome))
        assert state.step is expected
        assert commands == [StopPaymentPolling()]

    def test_outcome_is_final(self, step):
        state, _ = step(self.pending(step), PaymentStatusChanged(PaymentOutcome.EXPIRED))
        state, commands = step(state, PaymentStatusChanged(PaymentOutcome.SUCCESS))
        assert state.step is WizardStep.PAYMENT_EXPIRED
        assert commands == []

    def test_reset_stops_polling(self, step):
        state, commands = step(self.pending(step), Reset())
        assert state.step is WizardStep.NO_DESTINATION
        assert commands == [StopPaymentPolling()]


def test_unknown_event_raises(hotel, now):
    with pytest.raises(TypeError):
        transition(initial_state(), object(), hotel, now)
