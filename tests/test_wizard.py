from datetime import date
from types import SimpleNamespace

import pytest

from barbershop.core.lifecycle import PaymentMethod
from barbershop.core.wizard import STEPS, BookingWizard, date_options
from barbershop.errors import IncompleteBooking, SlotConflict

SERVICE = SimpleNamespace(id=1, name="Haircut")
BARBER = SimpleNamespace(id=2)
TODAY = date(2024, 6, 3)


def wizard_at_confirm():
    wizard = BookingWizard(today=TODAY)
    wizard.select_service(SERVICE)
    wizard.next()
    wizard.select_barber(BARBER)
    wizard.next()
    wizard.select_time("10:00", available=["09:30", "10:00"])
    wizard.next()
    wizard.select_payment_method("online")
    wizard.next()
    return wizard


def test_steps_are_linear():
    assert STEPS == ("service", "barber", "datetime", "payment", "confirm")
    assert wizard_at_confirm().step == "confirm"


def test_next_blocked_until_selection():
    wizard = BookingWizard(today=TODAY)
    assert not wizard.can_proceed()
    with pytest.raises(IncompleteBooking):
        wizard.next()
    wizard.select_service(SERVICE)
    assert wizard.next() == "barber"
    with pytest.raises(IncompleteBooking):
        wizard.next()


def test_back_on_first_step_cancels():
    wizard = BookingWizard(today=TODAY)
    wizard.select_service(SERVICE)
    assert wizard.back() is None
    assert wizard.cancelled
    assert wizard.service is None


def test_back_keeps_selections():
    wizard = wizard_at_confirm()
    assert wizard.back() == "payment"
    assert wizard.back() == "datetime"
    assert wizard.start_time == "10:00"


def test_time_must_come_from_slot_list():
    wizard = BookingWizard(today=TODAY)
    with pytest.raises(IncompleteBooking):
        wizard.select_time("11:00", available=["09:30", "10:00"])


def test_changing_date_clears_time():
    wizard = wizard_at_confirm()
    wizard.select_date(date(2024, 6, 4))
    assert wizard.start_time is None


def test_submit_only_from_confirm():
    wizard = BookingWizard(today=TODAY)
    with pytest.raises(IncompleteBooking):
        wizard.submit(lambda request: request)


def test_submit_calls_create_once():
    calls = []
    wizard = wizard_at_confirm()
    result = wizard.submit(lambda request: calls.append(request) or "created")
    assert result == "created"
    assert len(calls) == 1
    request = calls[0]
    assert request.service_id == 1
    assert request.barber_id == 2
    assert request.appointment_date == TODAY
    assert request.start_time == "10:00"
    assert request.payment_method == PaymentMethod.online


def test_slot_conflict_returns_to_time_selection():
    def create(request):
        raise SlotConflict("taken")

    wizard = wizard_at_confirm()
    with pytest.raises(SlotConflict):
        wizard.submit(create)
    assert wizard.step == "datetime"
    assert wizard.start_time is None
    assert wizard.service is SERVICE


def test_cancel_discards_everything():
    wizard = wizard_at_confirm()
    wizard.cancel()
    assert wizard.cancelled
    assert wizard.step == "service"
    assert wizard.barber is None
    assert wizard.start_time is None


def test_date_options_cover_two_weeks():
    options = date_options(TODAY)
    assert len(options) == 14
    assert options[0] == TODAY
    assert options[-1] == date(2024, 6, 16)
