# barbershop/config.py

import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barbershop.db")

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Mercado Pago
MERCADOPAGO_ACCESS_TOKEN = os.getenv("MERCADOPAGO_ACCESS_TOKEN", "")
MERCADOPAGO_API_URL = os.getenv("MERCADOPAGO_API_URL", "https://api.mercadopago.com")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "MXN")

# Base URL used to build provider redirect and notification URLs
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000").rstrip("/")

# Profile lookup right after sign-up
PROFILE_FETCH_ATTEMPTS = int(os.getenv("PROFILE_FETCH_ATTEMPTS", "3"))
PROFILE_FETCH_DELAY_SECONDS = float(os.getenv("PROFILE_FETCH_DELAY_SECONDS", "0.3"))
PROFILE_GRACE_SECONDS = int(os.getenv("PROFILE_GRACE_SECONDS", "10"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
