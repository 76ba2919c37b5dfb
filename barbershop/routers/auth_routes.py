# barbershop/routers/auth_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from barbershop.db import get_session
from barbershop.models import Account, Profile
from barbershop.schemas import ProfilePublic, Role, SessionPublic, SignUp, Token
from barbershop.auth import (
    AuthSession, end_session, get_auth_session, hash_password, start_session, verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post("/signup", status_code=201, response_model=ProfilePublic)
def signup(
    data: SignUp,
    session: Session = Depends(get_session),
):
    email = data.email.strip().lower()

    # 1) Check if email already exists
    existing = session.exec(
        select(Account).where(Account.email == email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Credentials, then the linked profile
    account = Account(email=email, password_hash=hash_password(data.password))
    session.add(account)
    session.flush()  # fills account.id

    profile = Profile(
        id=account.id,
        email=email,
        full_name=data.full_name,
        phone=data.phone,
        role=Role.client.value,
    )
    session.add(profile)
    session.commit()
    session.refresh(profile)

    logger.info("Account %s created", account.id)
    return profile


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
):
    email = form_data.username.strip().lower()
    password = form_data.password

    account = session.exec(
        select(Account).where(Account.email == email)
    ).first()

    if account is None or not verify_password(password, account.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    profile = session.get(Profile, account.id)
    if profile is None:
        raise HTTPException(status_code=503, detail="Profile not available yet", headers={"Retry-After": "1"})

    token, _ = start_session(session, profile)
    return {"access_token": token, "token_type": "bearer"}


@router.post("/logout", status_code=204)
def logout(
    auth: AuthSession = Depends(get_auth_session),
    session: Session = Depends(get_session),
):
    end_session(session, auth.session_id)


@router.get("/session", response_model=SessionPublic)
def current_session(
    auth: AuthSession = Depends(get_auth_session),
    session: Session = Depends(get_session),
):
    profile = session.get(Profile, auth.profile_id)
    return {
        "session_id": auth.session_id,
        "expires_at": auth.expires_at,
        "home_path": auth.home_path,
        "profile": profile,
    }
