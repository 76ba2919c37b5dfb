# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import models  # noqa: F401  registers tables
from .config import CORS_ORIGINS, LOG_LEVEL
from .db import create_db_and_tables
from .routers import (
    admin_routes,
    appointments_routes,
    auth_routes,
    barbers_routes,
    payments_routes,
    services_routes,
    users_routes,
)

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    create_db_and_tables()
    logger.info("Database tables ready")
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Barbershop API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(services_routes.router)
app.include_router(barbers_routes.router)
app.include_router(appointments_routes.router)
app.include_router(payments_routes.router)
app.include_router(admin_routes.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import os

    import uvicorn

    PORT = int(os.environ.get("PORT", 8000))
    uvicorn.run("barbershop.main:app", host="0.0.0.0", port=PORT)
