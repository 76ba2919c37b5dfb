"""
Mercado Pago client
Creates checkout preferences and reads payment details over the REST API
"""

import logging
from typing import Any, Dict, Optional

import httpx

from . import config
from .errors import ProviderError, ProviderNotConfigured

logger = logging.getLogger(__name__)

PROVIDER_NAME = "mercadopago"


class MercadoPagoClient:
    def __init__(
        self,
        access_token: Optional[str] = None,
        api_url: Optional[str] = None,
        base_url: Optional[str] = None,
        currency: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = config.MERCADOPAGO_ACCESS_TOKEN if access_token is None else access_token
        self.api_url = (api_url or config.MERCADOPAGO_API_URL).rstrip("/")
        self.base_url = (base_url or config.PUBLIC_BASE_URL).rstrip("/")
        self.currency = currency or config.PAYMENT_CURRENCY
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        if not self.access_token:
            raise ProviderNotConfigured("Mercado Pago not configured")
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def build_preference(
        self,
        appointment_id: str,
        title: str,
        description: str,
        price: float,
        client_email: str,
        client_name: str,
    ) -> Dict[str, Any]:
        return {
            "items": [
                {
                    "id": appointment_id,
                    "title": title,
                    "description": description,
                    "quantity": 1,
                    "currency_id": self.currency,
                    "unit_price": price,
                }
            ],
            "payer": {"email": client_email, "name": client_name},
            "back_urls": {
                "success": f"{self.base_url}/client?payment=success",
                "failure": f"{self.base_url}/client?payment=failure",
                "pending": f"{self.base_url}/client?payment=pending",
            },
            "auto_return": "approved",
            "external_reference": appointment_id,
            "notification_url": f"{self.base_url}/payments/webhook",
        }

    async def create_preference(self, **data) -> Dict[str, Any]:
        headers = self._headers()
        preference = self.build_preference(**data)

        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as http_client:
                response = await http_client.post(
                    f"{self.api_url}/checkout/preferences",
                    headers=headers,
                    json=preference,
                )
        except httpx.HTTPError as e:
            logger.error(f"Mercado Pago request failed: {e}")
            raise ProviderError("Failed to create preference") from e

        if response.status_code >= 400:
            logger.error(f"Mercado Pago error: {response.text}")
            raise ProviderError("Failed to create preference")

        body = response.json()
        return {
            "id": str(body.get("id")),
            "init_point": body.get("init_point"),
            "sandbox_init_point": body.get("sandbox_init_point"),
        }

    async def get_payment(self, payment_id: str) -> Dict[str, Any]:
        headers = self._headers()

        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as http_client:
                response = await http_client.get(
                    f"{self.api_url}/v1/payments/{payment_id}",
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error(f"Mercado Pago request failed: {e}")
            raise ProviderError("Failed to fetch payment") from e

        if response.status_code != 200:
            logger.error(f"Failed to fetch payment {payment_id}: {response.status_code}")
            raise ProviderError("Failed to fetch payment")

        return response.json()


def get_payment_provider() -> MercadoPagoClient:
    return MercadoPagoClient()
