# barbershop/models.py

from typing import Optional
from datetime import datetime, date as Date

from sqlalchemy import Index, text
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column


class Account(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Profile(SQLModel, table=True):
    # Same id as the owning Account
    id: int = Field(primary_key=True, foreign_key="account.id")
    email: str = Field(index=True)
    full_name: str
    phone: Optional[str] = None
    role: str = "client"  # admin, barber or client
    avatar_url: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class LoginSession(SQLModel, table=True):
    id: str = Field(primary_key=True)
    profile_id: int = Field(foreign_key="profile.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: datetime


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    price: float = Field(ge=0)
    duration: int = Field(gt=0)  # minutes
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Barber(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    profile_id: int = Field(foreign_key="profile.id", unique=True)
    is_active: bool = True
    work_schedule: dict = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Appointment(SQLModel, table=True):
    __table_args__ = (
        # One live booking per barber start time; cancelled rows free the slot
        Index(
            "uq_barber_slot",
            "barber_id", "appointment_date", "start_time",
            unique=True,
            sqlite_where=text("status != 'cancelled'"),
            postgresql_where=text("status != 'cancelled'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    client_id: int = Field(foreign_key="profile.id", index=True)
    barber_id: int = Field(foreign_key="barber.id", index=True)
    service_id: int = Field(foreign_key="service.id")

    appointment_date: Date = Field(index=True)
    start_time: str  # HH:MM
    end_time: str  # HH:MM

    status: str = "pending"
    payment_status: str = "pending"
    payment_method: Optional[str] = None
    payment_id: Optional[str] = None
    total_amount: float = 0
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Payment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointment.id", index=True)
    amount: float
    payment_method: str
    payment_provider: Optional[str] = None
    payment_provider_id: Optional[str] = None
    status: str = "pending"  # pending, completed, failed, refunded
    created_at: datetime = Field(default_factory=datetime.utcnow)
