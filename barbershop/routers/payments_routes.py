"""
Mercado Pago endpoints
Creates checkout preferences and applies payment notifications to appointments
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from barbershop.db import get_session
from barbershop.models import Appointment
from barbershop.schemas import PreferenceRequest, PreferenceResponse
from barbershop.booking import apply_provider_payment
from barbershop.errors import ProviderError, ProviderNotConfigured
from barbershop.mercadopago import MercadoPagoClient, get_payment_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


class WebhookNotification(BaseModel):
    type: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


@router.post("/create-preference", response_model=PreferenceResponse)
async def create_preference(
    data: PreferenceRequest,
    provider: MercadoPagoClient = Depends(get_payment_provider),
):
    try:
        return await provider.create_preference(
            appointment_id=data.appointmentId,
            title=data.title,
            description=data.description,
            price=data.price,
            client_email=data.clientEmail,
            client_name=data.clientName,
        )
    except ProviderNotConfigured:
        logger.error("MERCADOPAGO_ACCESS_TOKEN is not configured")
        raise HTTPException(status_code=500, detail="Mercado Pago not configured")
    except ProviderError:
        raise HTTPException(status_code=500, detail="Failed to create preference")


@router.post("/webhook")
async def payment_webhook(
    notification: WebhookNotification,
    session: Session = Depends(get_session),
    provider: MercadoPagoClient = Depends(get_payment_provider),
):
    """
    Handle Mercado Pago notifications

    Only ``payment`` notifications are processed: the payment is fetched from
    the provider and its status is applied to the appointment named by the
    payment's ``external_reference``.
    """
    # We only care about payment notifications
    if notification.type != "payment":
        return {"received": True}

    payment_id = (notification.data or {}).get("id")
    if not payment_id:
        raise HTTPException(status_code=400, detail="Missing payment ID")
    payment_id = str(payment_id)

    try:
        payment = await provider.get_payment(payment_id)
    except ProviderNotConfigured:
        logger.error("MERCADOPAGO_ACCESS_TOKEN is not configured")
        raise HTTPException(status_code=500, detail="Mercado Pago not configured")
    except ProviderError:
        raise HTTPException(status_code=500, detail="Failed to fetch payment")

    reference = payment.get("external_reference")
    if not reference:
        logger.error(f"No appointment reference in payment {payment_id}")
        raise HTTPException(status_code=400, detail="Missing appointment reference")

    try:
        appointment = session.get(Appointment, int(reference))
    except ValueError:
        appointment = None
    if appointment is None:
        logger.error(f"Payment {payment_id} references unknown appointment {reference}")
        raise HTTPException(status_code=404, detail="Appointment not found")

    logger.info(f"Payment {payment_id} for appointment {reference}: {payment.get('status')}")

    try:
        apply_provider_payment(
            session,
            appointment,
            payment_id,
            payment.get("status"),
            payment.get("transaction_amount"),
        )
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Failed to update appointment {reference}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update appointment")

    return {"success": True}
