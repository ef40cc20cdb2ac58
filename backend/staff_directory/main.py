from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from staff_directory.api.v1.router import api_router
from staff_directory.core.config import settings
from staff_directory.services.department_cache import department_cache
from staff_directory.services.employee_service import cosmos_employee_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    department_cache.ttl_seconds = settings.DEPARTMENT_CACHE_TTL_SECONDS
    try:
        await cosmos_employee_store.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize CosmosEmployeeStore; serving the in-memory store")
    if not cosmos_employee_store.initialized:
        logger.warning("Staff directory running on the in-memory employee store")
    if not settings.LOCK_SIGNING_KEY:
        logger.warning("LOCK_SIGNING_KEY not set; lock tokens are disabled")
    yield
    await cosmos_employee_store.close()


app = FastAPI(
    title="Staff Directory API",
    description="Company staff directory: searchable employee listing and HR administration",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Staff Directory API"}
