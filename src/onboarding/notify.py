"""
Completion Forwarder.

Receives the database webhook fired on inserts into the final step's table
and forwards a single "onboarding_completed" event to an external endpoint.
Failures are logged and reported back to the caller; nothing is retried.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from .errors import ForwardingFailure
from .steps import FINAL_COLLECTION

logger = logging.getLogger(__name__)

COMPLETION_EVENT = "onboarding_completed"


class CompletionForwarder:
    """Posts completion events to the configured webhook URL."""

    def __init__(
        self,
        webhook_url: str | None,
        table: str = FINAL_COLLECTION,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url
        self.table = table
        self._transport = transport

    def is_completion(self, payload: dict[str, Any]) -> bool:
        return payload.get("type") == "INSERT" and payload.get("table") == self.table

    @staticmethod
    def build_event(record: dict[str, Any]) -> dict[str, Any]:
        return {
            "event": COMPLETION_EVENT,
            "session_id": record.get("session_id"),
            "payment_method": record.get("Payment_method"),
            "work_capacity": record.get("Work_capacity"),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def forward(self, record: dict[str, Any]) -> dict[str, Any]:
        """
        POST the completion event for `record`.

        Raises:
            ForwardingFailure: no URL configured, network error, or non-2xx.
        """
        if not self.webhook_url:
            raise ForwardingFailure("Webhook URL is not configured")

        event = self.build_event(record)
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(self.webhook_url, json=event)
        except httpx.HTTPError as e:
            raise ForwardingFailure(f"Webhook request failed: {e}") from e

        if not response.is_success:
            raise ForwardingFailure(
                f"Webhook failed with status: {response.status_code}",
                status_code=response.status_code,
            )
        return event

    async def handle(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Process one database webhook payload.

        Raises:
            ForwardingFailure: malformed record, or propagated from forward().
        """
        if not self.is_completion(payload):
            return {"success": True, "message": "Ignored unrelated event"}

        record = payload.get("record") or {}
        if not isinstance(record, dict):
            raise ForwardingFailure("Expected the inserted record to be a JSON object")
        logger.info(f"User finished onboarding. Session ID: {record.get('session_id')}")
        await self.forward(record)
        return {"success": True, "message": "Webhook notified successfully"}


# =============================================================================
# Endpoint
# =============================================================================

router = APIRouter(prefix="/hooks", tags=["hooks"])


def get_forwarder() -> CompletionForwarder:
    from intake.config import settings

    return CompletionForwarder(settings.webhook_url)


@router.post("/notify-completion")
async def notify_completion(
    request: Request,
    forwarder: CompletionForwarder = Depends(get_forwarder),
):
    """Database webhook target for inserts into the final step's table."""
    try:
        payload = await request.json()
    except ValueError as e:
        return JSONResponse(status_code=400, content={"success": False, "error": f"Invalid JSON: {e}"})

    if not isinstance(payload, dict):
        return JSONResponse(status_code=400, content={"success": False, "error": "Expected a JSON object"})

    try:
        return await forwarder.handle(payload)
    except ForwardingFailure as e:
        logger.error(f"Completion forwarding failed: {e}")
        return JSONResponse(status_code=400, content={"success": False, "error": str(e)})
