# barbershop/routers/appointments_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import Appointment, Barber
from barbershop.schemas import AppointmentCreate, AppointmentPublic, PaymentUpdate, Role
from barbershop.auth import AuthSession, get_auth_session
from barbershop.deps import require_role
from barbershop.booking import create_appointment, record_manual_payment
from barbershop.core.lifecycle import Action, Actor, AppointmentStatus, BookingRequest, apply_action
from barbershop.errors import (
    InvalidScheduleFormat, InvalidTransition, RecordNotFound, SlotConflict, SlotUnavailable,
)

router = APIRouter(
    tags=["appointments"],
)

TERMINAL = (AppointmentStatus.cancelled.value, AppointmentStatus.completed.value)


def load_appointment(session: Session, appt_id: int) -> Appointment:
    target = session.get(Appointment, appt_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return target


def barber_profile_id(session: Session, appointment: Appointment) -> Optional[int]:
    barber = session.get(Barber, appointment.barber_id)
    return barber.profile_id if barber is not None else None


def actor_for(session: Session, appointment: Appointment, auth: AuthSession) -> Actor:
    """Which party of the appointment the signed-in user is."""
    if auth.has_role(Role.barber) and barber_profile_id(session, appointment) == auth.profile_id:
        return Actor.barber
    if auth.profile_id == appointment.client_id:
        return Actor.client
    raise HTTPException(status_code=403, detail="Forbidden")


def transition(session: Session, appt_id: int, action: Action, auth: AuthSession) -> Appointment:
    target = load_appointment(session, appt_id)
    actor = actor_for(session, target, auth)

    try:
        apply_action(target, action, actor)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))

    session.add(target)
    session.commit()
    session.refresh(target)
    return target


@router.post("/appointments", response_model=AppointmentPublic, status_code=201)
def book_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    require_role(auth, Role.client)

    request = BookingRequest(
        service_id=appt.service_id,
        barber_id=appt.barber_id,
        appointment_date=appt.appointment_date,
        start_time=appt.start_time,
        payment_method=appt.payment_method,
        notes=appt.notes,
    )

    try:
        return create_appointment(session, request, auth.profile_id)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidScheduleFormat as e:
        raise HTTPException(status_code=422, detail=str(e))
    except SlotUnavailable as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SlotConflict as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/appointments", response_model=List[AppointmentPublic])
def list_recent_appointments(
    limit: int = 50,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    require_role(auth, Role.admin)

    stmt = (
        select(Appointment)
        .order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc())
        .limit(min(max(limit, 1), 200))
    )
    return session.exec(stmt).all()


@router.get("/appointments/{appt_id}", response_model=AppointmentPublic)
def get_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    target = load_appointment(session, appt_id)
    if not auth.has_role(Role.admin):
        actor_for(session, target, auth)
    return target


@router.patch("/appointments/{appt_id}/confirm", response_model=AppointmentPublic)
def confirm_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    return transition(session, appt_id, Action.confirm, auth)


@router.patch("/appointments/{appt_id}/complete", response_model=AppointmentPublic)
def complete_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    return transition(session, appt_id, Action.complete, auth)


@router.patch("/appointments/{appt_id}/cancel", response_model=AppointmentPublic)
def cancel_appointment(
    appt_id: int,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    return transition(session, appt_id, Action.cancel, auth)


@router.patch("/appointments/{appt_id}/payment", response_model=AppointmentPublic)
def mark_appointment_paid(
    appt_id: int,
    data: PaymentUpdate,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    target = load_appointment(session, appt_id)
    if actor_for(session, target, auth) != Actor.barber:
        raise HTTPException(status_code=403, detail="Forbidden")

    try:
        record_manual_payment(session, target, data.payment_method)
    except InvalidTransition as e:
        raise HTTPException(status_code=409, detail=str(e))

    return target


@router.get("/barbers/me/appointments", response_model=List[AppointmentPublic])
def list_barber_appointments(
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    require_role(auth, Role.barber)

    barber = session.exec(
        select(Barber).where(Barber.profile_id == auth.profile_id)
    ).first()
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber Not Found")

    stmt = (
        select(Appointment)
        .where(Appointment.barber_id == barber.id)
        .where(Appointment.appointment_date == (on_date or date.today()))
        .order_by(Appointment.start_time)
    )
    return session.exec(stmt).all()


@router.get("/clients/me/appointments", response_model=List[AppointmentPublic])
def list_my_appointments(
    scope: str = "all",
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    require_role(auth, Role.client)

    if scope not in ("upcoming", "past", "all"):
        raise HTTPException(status_code=422, detail="scope must be 'upcoming', 'past', or 'all'")

    stmt = (
        select(Appointment)
        .where(Appointment.client_id == auth.profile_id)
        .order_by(Appointment.appointment_date, Appointment.start_time)
    )
    appts = session.exec(stmt).all()

    today = date.today()
    if scope == "upcoming":
        appts = [a for a in appts if a.appointment_date >= today and a.status not in TERMINAL]
    elif scope == "past":
        appts = [a for a in appts if a.appointment_date < today or a.status in TERMINAL]
    return appts
