"""Application entry-point – creates the FastAPI app serving the camp dataset."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from summer_camps.api.routes import load_payload, router
from summer_camps.config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: report which dataset file will be served."""
    logger.info("=== Checking data files ===")
    if load_payload() is None:
        logger.warning(
            "No dataset at %s or %s – run the convert/enrich commands first.",
            settings.enriched_dataset_path,
            settings.dataset_path,
        )
    else:
        logger.info("Camp dataset available.")
    logger.info("=== Startup complete ===")
    yield


app = FastAPI(
    title="Summer Camp Finder API",
    description="Serves the normalized, geocoded and description-enriched camp dataset.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router, prefix="/api")
