# barbershop/routers/admin_routes.py

from datetime import date

from fastapi import APIRouter, Depends
from sqlmodel import Session

from barbershop.db import get_session
from barbershop.schemas import Role, ShopStats
from barbershop.auth import AuthSession, get_auth_session
from barbershop.deps import require_role
from barbershop.booking import shop_stats

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
)


@router.get("/stats", response_model=ShopStats)
def stats(
    session: Session = Depends(get_session),
    auth: AuthSession = Depends(get_auth_session),
):
    require_role(auth, Role.admin)
    return shop_stats(session, date.today())
