# barbershop/deps.py

from fastapi import HTTPException

from .auth import AuthSession
from .schemas import Role


def require_role(auth: AuthSession, *roles: Role):
    if not auth.has_role(*roles):
        raise HTTPException(status_code=403, detail="Forbidden")
