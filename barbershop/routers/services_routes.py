# barbershop/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import Service
from barbershop.schemas import Role, ServiceCreate, ServicePublic, ServiceUpdate
from barbershop.auth import AuthSession, get_auth_session
from barbershop.deps import require_role

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(session: Session = Depends(get_session)):
    return session.exec(
        select(Service).where(Service.is_active == True).order_by(Service.name)  # noqa: E712
    ).all()


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    data: ServiceCreate,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    require_role(auth, Role.admin)

    service = Service(**data.model_dump())
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@router.patch("/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    data: ServiceUpdate,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    require_role(auth, Role.admin)

    service = session.get(Service, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    # Price changes never touch existing appointments (they keep their snapshot)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(service, field, value)

    session.add(service)
    session.commit()
    session.refresh(service)
    return service
