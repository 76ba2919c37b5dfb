# barbershop/core/lifecycle.py

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional

from barbershop.core.schedule import truncate_hhmm
from barbershop.core.slots import end_time_for
from barbershop.errors import InvalidTransition

logger = logging.getLogger(__name__)


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    refunded = "refunded"


class PaymentMethod(str, Enum):
    cash = "cash"
    online = "online"


class PaymentRecordStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"


class Actor(str, Enum):
    client = "client"
    barber = "barber"
    provider = "provider"


class Action(str, Enum):
    confirm = "confirm"
    cancel = "cancel"
    complete = "complete"


TERMINAL_STATUSES = frozenset({AppointmentStatus.completed, AppointmentStatus.cancelled})

# (current status, action) -> (next status, actors allowed to trigger it)
STATUS_TRANSITIONS = {
    (AppointmentStatus.pending, Action.confirm): (AppointmentStatus.confirmed, {Actor.barber}),
    (AppointmentStatus.pending, Action.cancel): (AppointmentStatus.cancelled, {Actor.client, Actor.barber}),
    (AppointmentStatus.confirmed, Action.cancel): (AppointmentStatus.cancelled, {Actor.barber}),
    (AppointmentStatus.confirmed, Action.complete): (AppointmentStatus.completed, {Actor.barber}),
}


def next_status(current, action, actor) -> AppointmentStatus:
    current, action, actor = AppointmentStatus(current), Action(action), Actor(actor)
    transition = STATUS_TRANSITIONS.get((current, action))
    if transition is None or actor not in transition[1]:
        raise InvalidTransition(action.value, current.value, actor.value)
    return transition[0]


def allowed_actions(current, actor=None) -> List[Action]:
    current = AppointmentStatus(current)
    actor = Actor(actor) if actor is not None else None
    return [
        action
        for (status, action), (_, actors) in STATUS_TRANSITIONS.items()
        if status == current and (actor is None or actor in actors)
    ]


def apply_action(appointment, action, actor) -> AppointmentStatus:
    """Move ``appointment.status`` along one transition. Single-field update."""
    new_status = next_status(appointment.status, action, actor)
    logger.info(
        "Appointment %s: %s -> %s (%s by %s)",
        appointment.id, AppointmentStatus(appointment.status).value, new_status.value,
        Action(action).value, Actor(actor).value,
    )
    appointment.status = new_status.value
    return new_status


def mark_paid(appointment, method, actor) -> PaymentStatus:
    actor = Actor(actor)
    if actor not in (Actor.barber, Actor.provider):
        raise InvalidTransition("mark paid", appointment.payment_status, actor.value)
    if PaymentStatus(appointment.payment_status) != PaymentStatus.pending:
        raise InvalidTransition("mark paid", appointment.payment_status, actor.value)

    # Payment status is not gated by appointment status; flag the odd case only
    if appointment.status == AppointmentStatus.cancelled.value:
        logger.warning("Appointment %s is cancelled but is being marked paid", appointment.id)

    method = PaymentMethod.online if actor == Actor.provider else PaymentMethod(method)
    appointment.payment_status = PaymentStatus.paid.value
    appointment.payment_method = method.value
    logger.info("Appointment %s marked paid (%s by %s)", appointment.id, method.value, actor.value)
    return PaymentStatus.paid


def refund(appointment, actor=Actor.provider) -> PaymentStatus:
    actor = Actor(actor)
    current = PaymentStatus(appointment.payment_status)
    if actor != Actor.provider or current not in (PaymentStatus.pending, PaymentStatus.paid):
        raise InvalidTransition("refund", current.value, actor.value)
    appointment.payment_status = PaymentStatus.refunded.value
    logger.info("Appointment %s refunded", appointment.id)
    return PaymentStatus.refunded


def map_provider_status(provider_status: Optional[str]) -> PaymentStatus:
    if provider_status == "approved":
        return PaymentStatus.paid
    if provider_status == "refunded":
        return PaymentStatus.refunded
    return PaymentStatus.pending


def payment_record_status(provider_status: Optional[str]) -> PaymentRecordStatus:
    if provider_status == "approved":
        return PaymentRecordStatus.completed
    if provider_status == "refunded":
        return PaymentRecordStatus.refunded
    if provider_status in ("rejected", "cancelled"):
        return PaymentRecordStatus.failed
    return PaymentRecordStatus.pending


@dataclass
class BookingRequest:
    service_id: int
    barber_id: int
    appointment_date: date
    start_time: str
    payment_method: PaymentMethod = PaymentMethod.cash
    notes: Optional[str] = None


def new_booking(request: BookingRequest, service, client_id: int) -> dict:
    """Field values for a freshly booked appointment.

    ``end_time`` is derived from the service duration and the price is
    snapshotted so later price edits do not touch existing bookings.
    """
    start_time = truncate_hhmm(request.start_time)
    return {
        "client_id": client_id,
        "barber_id": request.barber_id,
        "service_id": service.id,
        "appointment_date": request.appointment_date,
        "start_time": start_time,
        "end_time": end_time_for(start_time, service.duration),
        "status": AppointmentStatus.pending.value,
        "payment_status": PaymentStatus.pending.value,
        "payment_method": PaymentMethod(request.payment_method).value,
        "total_amount": float(service.price),
        "notes": request.notes,
    }
