# barbershop/booking.py

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .core.lifecycle import (
    AppointmentStatus, PaymentMethod, PaymentRecordStatus, PaymentStatus, Actor,
    BookingRequest, new_booking, mark_paid, refund, map_provider_status, payment_record_status,
)
from .core.schedule import day_schedule_for, truncate_hhmm
from .core.slots import SLOT_STEP_MINUTES, generate_slots
from .errors import RecordNotFound, SlotConflict, SlotUnavailable
from .mercadopago import PROVIDER_NAME
from .models import Appointment, Barber, Payment, Profile, Service

logger = logging.getLogger(__name__)


def get_active_service(session: Session, service_id: int) -> Service:
    service = session.get(Service, service_id)
    if service is None or not service.is_active:
        raise RecordNotFound("Service not found")
    return service


def get_active_barber(session: Session, barber_id: int) -> Barber:
    barber = session.get(Barber, barber_id)
    if barber is None or not barber.is_active:
        raise RecordNotFound("Barber not found")
    return barber


def booked_start_times(session: Session, barber_id: int, on_date: date) -> List[str]:
    rows = session.exec(
        select(Appointment.start_time)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.appointment_date == on_date)
        .where(Appointment.status != AppointmentStatus.cancelled.value)
    ).all()
    return [truncate_hhmm(t) for t in rows]


def available_slots(
    session: Session,
    barber: Barber,
    service: Service,
    on_date: date,
    now: Optional[datetime] = None,
) -> List[str]:
    return generate_slots(
        day_schedule_for(barber.work_schedule, on_date),
        service.duration,
        booked_start_times(session, barber.id, on_date),
        on_date,
        now or datetime.now(),
        step=SLOT_STEP_MINUTES,
    )


def create_appointment(
    session: Session,
    request: BookingRequest,
    client_id: int,
    now: Optional[datetime] = None,
) -> Appointment:
    """Book ``request`` for ``client_id``.

    The start time must be in the freshly computed slot list. A concurrent
    booking of the same slot loses on the unique index and raises SlotConflict.
    """
    service = get_active_service(session, request.service_id)
    barber = get_active_barber(session, request.barber_id)

    now = now or datetime.now()
    if request.appointment_date < now.date():
        raise SlotUnavailable("Cannot book an appointment in the past")

    start_time = truncate_hhmm(request.start_time)
    if start_time not in available_slots(session, barber, service, request.appointment_date, now):
        raise SlotUnavailable(f"{start_time} is not available on {request.appointment_date}")

    appointment = Appointment(**new_booking(request, service, client_id))
    session.add(appointment)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.info("Slot %s on %s for barber %s was taken concurrently",
                    start_time, request.appointment_date, barber.id)
        raise SlotConflict("Appointment already exists for that start time")

    session.refresh(appointment)
    logger.info("Appointment %s booked by client %s", appointment.id, client_id)
    return appointment


def record_manual_payment(session: Session, appointment: Appointment, method: PaymentMethod) -> Payment:
    mark_paid(appointment, method, Actor.barber)
    payment = Payment(
        appointment_id=appointment.id,
        amount=appointment.total_amount,
        payment_method=appointment.payment_method,
        status=PaymentRecordStatus.completed.value,
    )
    session.add(appointment)
    session.add(payment)
    session.commit()
    session.refresh(appointment)
    return payment


def apply_provider_payment(
    session: Session,
    appointment: Appointment,
    provider_payment_id: str,
    provider_status: Optional[str],
    amount: Optional[float],
) -> Optional[Payment]:
    """Apply one provider notification to an appointment.

    Returns the Payment row written, or None when the notification carried no
    new state (repeated deliveries, still-pending payments, appointments already
    in the reported state, stale downgrades).
    """
    target = map_provider_status(provider_status)
    record_status = payment_record_status(provider_status)
    current = PaymentStatus(appointment.payment_status)

    already_recorded = session.exec(
        select(Payment)
        .where(Payment.payment_provider_id == provider_payment_id)
        .where(Payment.status == record_status.value)
    ).first()
    if already_recorded is not None:
        logger.info("Payment %s already recorded as %s", provider_payment_id, record_status.value)
        return None

    if target == PaymentStatus.paid and current == PaymentStatus.pending:
        mark_paid(appointment, PaymentMethod.online, Actor.provider)
    elif target == PaymentStatus.refunded and current in (PaymentStatus.pending, PaymentStatus.paid):
        refund(appointment, Actor.provider)
    elif target == current and current != PaymentStatus.pending:
        # Already settled (e.g. paid in cash at the shop); keep the existing record
        logger.info(
            "Appointment %s already %s, ignoring provider payment %s",
            appointment.id, current.value, provider_payment_id,
        )
        return None
    elif target != current:
        logger.warning(
            "Ignoring provider status '%s' for appointment %s in payment state '%s'",
            provider_status, appointment.id, current.value,
        )
        return None

    appointment.payment_id = provider_payment_id
    appointment.payment_method = PaymentMethod.online.value
    session.add(appointment)

    payment = None
    if record_status != PaymentRecordStatus.pending:
        payment = Payment(
            appointment_id=appointment.id,
            amount=amount if amount is not None else appointment.total_amount,
            payment_method=PaymentMethod.online.value,
            payment_provider=PROVIDER_NAME,
            payment_provider_id=provider_payment_id,
            status=record_status.value,
        )
        session.add(payment)

    session.commit()
    session.refresh(appointment)
    return payment


def barber_day_stats(session: Session, barber_id: int, on_date: date) -> dict:
    appointments = session.exec(
        select(Appointment)
        .where(Appointment.barber_id == barber_id)
        .where(Appointment.appointment_date == on_date)
    ).all()
    return {
        "date": on_date,
        "total_appointments": len(appointments),
        "completed": sum(1 for a in appointments if a.status == AppointmentStatus.completed.value),
        "earnings": sum(a.total_amount for a in appointments if a.payment_status == PaymentStatus.paid.value),
        "pending_payments": sum(1 for a in appointments if a.payment_status == PaymentStatus.pending.value),
    }


def shop_stats(session: Session, today: date) -> dict:
    appointments = session.exec(select(Appointment)).all()
    paid = [a for a in appointments if a.payment_status == PaymentStatus.paid.value]

    by_barber = defaultdict(list)
    for a in appointments:
        by_barber[a.barber_id].append(a)

    barbers = []
    for barber, profile in session.exec(
        select(Barber, Profile).where(Barber.profile_id == Profile.id).order_by(Barber.id)
    ).all():
        rows = by_barber.get(barber.id, [])
        barber_paid = [a for a in rows if a.payment_status == PaymentStatus.paid.value]
        completed = [a for a in rows if a.status == AppointmentStatus.completed.value]
        barbers.append({
            "barber_id": barber.id,
            "barber_name": profile.full_name,
            "total_appointments": len(rows),
            "completed_appointments": len(completed),
            "total_earnings": sum(a.total_amount for a in barber_paid),
            "cash_earnings": sum(a.total_amount for a in barber_paid if a.payment_method == PaymentMethod.cash.value),
            "online_earnings": sum(a.total_amount for a in barber_paid if a.payment_method == PaymentMethod.online.value),
            "days_worked": len({a.appointment_date for a in completed}),
        })

    return {
        "total_earnings": sum(a.total_amount for a in paid),
        "total_appointments": len(appointments),
        "completed_today": sum(
            1 for a in appointments
            if a.appointment_date == today and a.status == AppointmentStatus.completed.value
        ),
        "pending_payments": sum(
            1 for a in appointments
            if a.payment_status == PaymentStatus.pending.value and a.status != AppointmentStatus.cancelled.value
        ),
        "barbers": barbers,
    }
