# barbershop/schemas.py

from pydantic import BaseModel, Field, field_validator
from enum import Enum
from datetime import datetime, date
from typing import Dict, List, Optional

from barbershop.core.lifecycle import AppointmentStatus, PaymentMethod, PaymentStatus
from barbershop.core.schedule import DaySchedule, validate_work_schedule


class Role(str, Enum):
    admin = "admin"
    barber = "barber"
    client = "client"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class SignUp(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    full_name: str = Field(min_length=1)
    phone: Optional[str] = None


class ProfilePublic(BaseModel):
    id: int
    email: str
    full_name: str
    phone: Optional[str] = None
    role: Role


class SessionPublic(BaseModel):
    session_id: str
    expires_at: datetime
    home_path: str
    profile: ProfilePublic


class RoleUpdate(BaseModel):
    role: Role


class ServiceCreate(BaseModel):
    name: str
    description: Optional[str] = None
    price: float = Field(ge=0)
    duration: int = Field(gt=0)


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, gt=0)
    is_active: Optional[bool] = None


class ServicePublic(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    duration: int
    is_active: bool


class WorkScheduleUpdate(BaseModel):
    work_schedule: Dict[str, DaySchedule]

    @field_validator("work_schedule")
    @classmethod
    def check_schedule(cls, value):
        # InvalidScheduleFormat is a ValueError, so pydantic reports it as a 422
        return validate_work_schedule(value)


class BarberCreate(BaseModel):
    profile_id: int


class BarberActiveUpdate(BaseModel):
    is_active: bool


class BarberPublic(BaseModel):
    id: int
    profile_id: int
    is_active: bool
    work_schedule: Dict[str, DaySchedule]
    profile: Optional[ProfilePublic] = None


class AvailabilityResponse(BaseModel):
    barber_id: int
    date: date
    service_id: int
    available_starts: List[str]


class AppointmentCreate(BaseModel):
    service_id: int
    barber_id: int
    appointment_date: date
    start_time: str
    payment_method: PaymentMethod = PaymentMethod.cash
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    payment_method: PaymentMethod


class AppointmentPublic(BaseModel):
    id: int
    client_id: int
    barber_id: int
    service_id: int
    appointment_date: date
    start_time: str
    end_time: str
    status: AppointmentStatus
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    payment_id: Optional[str] = None
    total_amount: float
    notes: Optional[str] = None


class BarberDayStats(BaseModel):
    date: date
    total_appointments: int
    completed: int
    earnings: float
    pending_payments: int


class BarberStats(BaseModel):
    barber_id: int
    barber_name: str
    total_appointments: int
    completed_appointments: int
    total_earnings: float
    cash_earnings: float
    online_earnings: float
    days_worked: int


class ShopStats(BaseModel):
    total_earnings: float
    total_appointments: int
    completed_today: int
    pending_payments: int
    barbers: List[BarberStats]


class PreferenceRequest(BaseModel):
    appointmentId: str
    title: str
    description: str = ""
    price: float = Field(ge=0)
    clientEmail: str
    clientName: str


class PreferenceResponse(BaseModel):
    id: str
    init_point: Optional[str] = None
    sandbox_init_point: Optional[str] = None
