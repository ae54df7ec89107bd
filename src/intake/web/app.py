"""
Agency Intake Web - FastAPI application.

Serves the onboarding API to the form frontend and receives the database
webhook for completed onboardings.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from intake import __version__
from intake.config import settings
from onboarding.api import router as onboarding_router
from onboarding.notify import router as hooks_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Agency Intake", version=__version__)


@app.on_event("startup")
async def startup_event():
    """Log configuration on startup."""
    logger.info("Agency Intake starting up...")
    logger.info(f"  Environment: {settings.intake_env}")
    logger.info(f"  Completion webhook: {'configured' if settings.webhook_url else 'not configured'}")


# CORS for the form frontend (session cookie needs credentials)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(onboarding_router, prefix="/api")
app.include_router(hooks_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}
