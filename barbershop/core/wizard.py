# barbershop/core/wizard.py

import logging
from datetime import date, timedelta
from typing import Callable, List, Optional

from barbershop.core.lifecycle import BookingRequest, PaymentMethod
from barbershop.errors import IncompleteBooking, SlotConflict

logger = logging.getLogger(__name__)

STEPS = ("service", "barber", "datetime", "payment", "confirm")


def date_options(today: date, days: int = 14) -> List[date]:
    return [today + timedelta(days=i) for i in range(days)]


class BookingWizard:
    """Linear service -> barber -> datetime -> payment -> confirm booking flow.

    Nothing is written until ``submit`` on the confirm step; cancelling at any
    point just drops the selections.
    """

    def __init__(self, today: Optional[date] = None):
        self.today = today or date.today()
        self._reset()

    def _reset(self):
        self.step = STEPS[0]
        self.cancelled = False
        self.service = None
        self.barber = None
        self.appointment_date = self.today
        self.start_time = None
        self.payment_method = PaymentMethod.cash
        self.submitted = None

    # -- selections -------------------------------------------------------

    def select_service(self, service):
        if self.service is not service:
            self.start_time = None
        self.service = service

    def select_barber(self, barber):
        if self.barber is not barber:
            self.start_time = None
        self.barber = barber

    def select_date(self, appointment_date: date):
        if appointment_date != self.appointment_date:
            self.start_time = None
        self.appointment_date = appointment_date

    def select_time(self, start_time: str, available: Optional[List[str]] = None):
        # The chosen time has to come from the last computed slot list
        if available is not None and start_time not in available:
            raise IncompleteBooking(f"{start_time} is not an available slot")
        self.start_time = start_time

    def select_payment_method(self, method):
        self.payment_method = PaymentMethod(method)

    # -- navigation -------------------------------------------------------

    @property
    def step_index(self) -> int:
        return STEPS.index(self.step)

    def can_proceed(self) -> bool:
        if self.step == "service":
            return self.service is not None
        if self.step == "barber":
            return self.barber is not None
        if self.step == "datetime":
            return self.start_time is not None
        if self.step == "payment":
            return self.payment_method is not None
        return True

    def next(self) -> str:
        if self.cancelled:
            raise IncompleteBooking("Booking was cancelled")
        if not self.can_proceed():
            raise IncompleteBooking(f"Complete the '{self.step}' step first")
        if self.step_index < len(STEPS) - 1:
            self.step = STEPS[self.step_index + 1]
        return self.step

    def back(self) -> Optional[str]:
        """Go to the previous step; on the first step this cancels the booking."""
        if self.step_index == 0:
            self.cancel()
            return None
        self.step = STEPS[self.step_index - 1]
        return self.step

    def cancel(self):
        self._reset()
        self.cancelled = True

    # -- completion -------------------------------------------------------

    def request(self) -> BookingRequest:
        if self.service is None or self.barber is None or self.start_time is None:
            raise IncompleteBooking("Service, barber and time are required")
        return BookingRequest(
            service_id=self.service.id,
            barber_id=self.barber.id,
            appointment_date=self.appointment_date,
            start_time=self.start_time,
            payment_method=self.payment_method,
        )

    def submit(self, create: Callable[[BookingRequest], object]):
        if self.step != "confirm":
            raise IncompleteBooking("Booking can only be submitted from the confirm step")
        try:
            self.submitted = create(self.request())
        except SlotConflict:
            logger.info("Slot %s taken while booking, returning to time selection", self.start_time)
            self.step = "datetime"
            self.start_time = None
            raise
        return self.submitted
