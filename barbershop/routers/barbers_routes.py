# barbershop/routers/barbers_routes.py

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import Barber, Profile
from barbershop.schemas import (
    AvailabilityResponse, BarberActiveUpdate, BarberCreate, BarberDayStats, BarberPublic,
    Role, WorkScheduleUpdate,
)
from barbershop.auth import AuthSession, get_auth_session
from barbershop.deps import require_role
from barbershop.booking import available_slots, barber_day_stats, get_active_barber, get_active_service
from barbershop.core.schedule import DEFAULT_WORK_SCHEDULE, coerce_work_schedule
from barbershop.errors import InvalidScheduleFormat, RecordNotFound

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/barbers",
    tags=["barbers"],
)


def barber_public(barber: Barber, profile: Optional[Profile]) -> dict:
    return {
        "id": barber.id,
        "profile_id": barber.profile_id,
        "is_active": barber.is_active,
        "work_schedule": coerce_work_schedule(barber.work_schedule),
        "profile": profile,
    }


def current_barber(session: Session, auth: AuthSession) -> Barber:
    require_role(auth, Role.barber)
    barber = session.exec(
        select(Barber).where(Barber.profile_id == auth.profile_id)
    ).first()
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber Not Found")
    return barber


@router.get("", response_model=List[BarberPublic])
def list_barbers(session: Session = Depends(get_session)):
    rows = session.exec(
        select(Barber, Profile)
        .where(Barber.profile_id == Profile.id)
        .where(Barber.is_active == True)  # noqa: E712
        .order_by(Barber.id)
    ).all()
    return [barber_public(barber, profile) for barber, profile in rows]


@router.post("", response_model=BarberPublic, status_code=201)
def create_barber(
    data: BarberCreate,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    require_role(auth, Role.admin)

    profile = session.get(Profile, data.profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")

    existing = session.exec(
        select(Barber).where(Barber.profile_id == profile.id)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Profile is already a barber")

    barber = Barber(
        profile_id=profile.id,
        work_schedule={name: dict(day) for name, day in DEFAULT_WORK_SCHEDULE.items()},
    )
    profile.role = Role.barber.value
    session.add(barber)
    session.add(profile)
    session.commit()
    session.refresh(barber)
    session.refresh(profile)

    logger.info("Profile %s promoted to barber %s", profile.id, barber.id)
    return barber_public(barber, profile)


@router.patch("/{barber_id}/active", response_model=BarberPublic)
def set_barber_active(
    barber_id: int,
    data: BarberActiveUpdate,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    require_role(auth, Role.admin)

    barber = session.get(Barber, barber_id)
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber Not Found")

    barber.is_active = data.is_active
    session.add(barber)
    session.commit()
    session.refresh(barber)
    return barber_public(barber, session.get(Profile, barber.profile_id))


@router.get("/me/schedule", response_model=WorkScheduleUpdate)
def get_my_schedule(
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    barber = current_barber(session, auth)
    return {"work_schedule": coerce_work_schedule(barber.work_schedule)}


@router.put("/{barber_id}/schedule", response_model=WorkScheduleUpdate)
def update_schedule(
    barber_id: int,
    data: WorkScheduleUpdate,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    barber = session.get(Barber, barber_id)
    if barber is None:
        raise HTTPException(status_code=404, detail="Barber Not Found")

    # Admins edit any schedule; barbers only their own
    if not auth.has_role(Role.admin) and not (
        auth.has_role(Role.barber) and barber.profile_id == auth.profile_id
    ):
        raise HTTPException(status_code=403, detail="Forbidden")

    barber.work_schedule = {
        name: day.model_dump() for name, day in data.work_schedule.items()
    }
    session.add(barber)
    session.commit()
    session.refresh(barber)

    return {"work_schedule": coerce_work_schedule(barber.work_schedule)}


@router.get("/me/stats", response_model=BarberDayStats)
def my_stats(
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    barber = current_barber(session, auth)
    return barber_day_stats(session, barber.id, on_date or date.today())


@router.get("/{barber_id}/availability", response_model=AvailabilityResponse)
def barber_availability(
    barber_id: int,
    date: date,
    service_id: int,
    session: Session = Depends(get_session),
):
    try:
        barber = get_active_barber(session, barber_id)
        service = get_active_service(session, service_id)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        starts = available_slots(session, barber, service, date)
    except InvalidScheduleFormat as e:
        logger.error(f"Barber {barber.id} has an invalid schedule: {e}")
        raise HTTPException(status_code=422, detail="Barber schedule is invalid")

    return {
        "barber_id": barber.id,
        "date": date,
        "service_id": service.id,
        "available_starts": starts,
    }
