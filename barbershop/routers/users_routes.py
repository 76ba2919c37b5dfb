# barbershop/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from barbershop.db import get_session
from barbershop.models import Profile
from barbershop.schemas import ProfilePublic, Role, RoleUpdate
from barbershop.auth import AuthSession, get_auth_session
from barbershop.deps import require_role

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=ProfilePublic)
def me(
    auth: AuthSession = Depends(get_auth_session),
    session: Session = Depends(get_session),
):
    return session.get(Profile, auth.profile_id)


@router.patch("/users/{profile_id}/role", response_model=ProfilePublic)
def update_role(
    profile_id: int,
    data: RoleUpdate,
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    require_role(auth, Role.admin)

    profile = session.get(Profile, profile_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")

    profile.role = data.role.value
    session.add(profile)
    session.commit()
    session.refresh(profile)

    logger.info("Profile %s role set to %s by %s", profile_id, data.role.value, auth.profile_id)
    return profile
