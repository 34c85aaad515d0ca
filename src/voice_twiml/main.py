"""ASGI app entrypoint for the TwiML voice service.

This module exposes the FastAPI `app` object and includes a
minimal healthcheck endpoint used by orchestration tooling.
"""

import logging

from pydantic import BaseModel
from fastapi import FastAPI

from .config import settings
# Import the webhooks router and mount it under /voice
from .api import webhooks as webhooks_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


# Pydantic model for the /health response to ensure a stable schema
class HealthResponse(BaseModel):
    status: str = "ok"


app = FastAPI(title="Voice TwiML")

app.include_router(webhooks_router.router, prefix="/voice", tags=["voice"])


@app.get("/health", response_model=HealthResponse, status_code=200)
async def health() -> HealthResponse:
    """Return a simple health status in a predictable JSON schema."""
    return HealthResponse()
