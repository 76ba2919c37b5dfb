# barbershop/auth.py

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlmodel import Session

from .config import (
    ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY,
    PROFILE_FETCH_ATTEMPTS, PROFILE_FETCH_DELAY_SECONDS, PROFILE_GRACE_SECONDS,
)
from .db import get_session
from .errors import ProfileNotFound, ProfileNotYetAvailable
from .models import Account, LoginSession, Profile
from .schemas import Role

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(data: dict, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes)
    to_encode["exp"] = expire
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def home_path(role: Role) -> str:
    """Landing page for a role; every role must be handled here."""
    match Role(role):
        case Role.admin:
            return "/admin"
        case Role.barber:
            return "/barber"
        case Role.client:
            return "/client"
    raise ValueError(f"Unhandled role {role!r}")


@dataclass
class AuthSession:
    """The signed-in user for one request.

    Built from the bearer token and its LoginSession row. It exists from
    sign-in until sign-out (or expiry) and is passed explicitly to handlers.
    """

    session_id: str
    profile_id: int
    email: str
    full_name: str
    role: Role
    expires_at: datetime

    @property
    def home_path(self) -> str:
        return home_path(self.role)

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles


def start_session(session: Session, profile: Profile) -> tuple:
    """Sign-in: persist a LoginSession and issue a token bound to it."""
    expires_at = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    login = LoginSession(id=uuid.uuid4().hex, profile_id=profile.id, expires_at=expires_at)
    session.add(login)
    session.commit()

    token = create_access_token({"sub": str(profile.id), "role": profile.role, "sid": login.id})
    logger.info("Session %s started for profile %s", login.id, profile.id)
    return token, login


def end_session(session: Session, session_id: str) -> bool:
    """Sign-out: drop the LoginSession so its token stops working."""
    login = session.get(LoginSession, session_id)
    if login is None:
        return False
    session.delete(login)
    session.commit()
    logger.info("Session %s ended", session_id)
    return True


@dataclass
class RetryPolicy:
    attempts: int = PROFILE_FETCH_ATTEMPTS
    delay: float = PROFILE_FETCH_DELAY_SECONDS
    backoff: float = 2.0

    def delays(self):
        delay = self.delay
        for _ in range(max(self.attempts - 1, 0)):
            yield delay
            delay *= self.backoff


def fetch_profile_with_retry(
    session: Session,
    profile_id: int,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
    now: Optional[datetime] = None,
) -> Profile:
    """Load a profile, waiting a bounded time for one that is still being written.

    Only accounts younger than the grace window are retried. Raises
    ProfileNotYetAvailable when such an account still has no profile after the
    last attempt and ProfileNotFound otherwise.
    """
    profile = session.get(Profile, profile_id)
    if profile is not None:
        return profile

    account = session.get(Account, profile_id)
    now = now or datetime.utcnow()
    if account is None or now - account.created_at >= timedelta(seconds=PROFILE_GRACE_SECONDS):
        raise ProfileNotFound(f"Profile {profile_id} not found")

    policy = policy or RetryPolicy()
    for delay in policy.delays():
        logger.info("Profile %s not found yet, retrying in %.2fs", profile_id, delay)
        sleep(delay)
        session.expire_all()
        profile = session.get(Profile, profile_id)
        if profile is not None:
            return profile

    raise ProfileNotYetAvailable(f"Profile {profile_id} is not available yet")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_auth_session(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> AuthSession:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        subject = payload.get("sub")
        session_id = payload.get("sid")
        if subject is None or session_id is None:
            raise _unauthorized("Invalid token")
    except JWTError:
        raise _unauthorized("Invalid token")

    login = session.get(LoginSession, session_id)
    if login is None or login.expires_at <= datetime.utcnow():
        raise _unauthorized("Session expired")

    try:
        profile = fetch_profile_with_retry(session, int(subject))
    except ProfileNotYetAvailable:
        raise HTTPException(
            status_code=503,
            detail="Profile not available yet",
            headers={"Retry-After": "1"},
        )
    except ProfileNotFound:
        raise _unauthorized("User not found")

    return AuthSession(
        session_id=login.id,
        profile_id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        role=Role(profile.role),
        expires_at=login.expires_at,
    )
