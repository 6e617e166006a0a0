# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Webhook client that pushes a freshly generated rotation downstream.
Handles HTTP calls with timeout & fault tolerance.
"""

from typing import Any

import httpx

from rodizio.core.config import settings
from rodizio.core.logging import get_logger
from rodizio.metrics.prometheus import WEBHOOK_SENT

logger = get_logger(__name__)


class NotificationClient:
    """Fire-and-forget webhook sender."""

    def __init__(self, url: str | None = None, timeout: float | None = None) -> None:
        self._url = settings.WEBHOOK_URL if url is None else url
        self._timeout = settings.WEBHOOK_TIMEOUT if timeout is None else timeout

    @property
    def enabled(self) -> bool:
        return bool(self._url)

    def send_rotation(
        self,
        church_id: int,
        period_start: str,
        period_end: str,
        assignments: list[dict[str, Any]],
    ) -> bool:
        """Send the generated rows. Failures are logged but never raised."""
        if not self.enabled:
            logger.debug("WEBHOOK_URL not configured, skipping rotation webhook")
            return False
        if not assignments:
            logger.info("No assignments to send for church %d", church_id)
            return False

        payload = {
            "type": "rotation_generated",
            "church_id": church_id,
            "total": len(assignments),
            "period": {"start": period_start, "end": period_end},
            "assignments": [
                {
                    "service_id": a["service_id"],
                    "date": a["service_date"],
                    "time": a["slot_time"],
                    "role": a["role"],
                    "organist": a["organist_name"],
                    "cycle": a.get("origin_cycle_name"),
                }
                for a in assignments
            ],
        }
        try:
            with httpx.Client(timeout=self._timeout) as client:
                resp = client.post(self._url, json=payload)
            WEBHOOK_SENT.labels(status=str(resp.status_code)).inc()
            logger.info(
                "Rotation webhook sent: church=%d, rows=%d, status=%d",
                church_id, len(assignments), resp.status_code,
            )
            return resp.is_success
        except Exception as exc:
            WEBHOOK_SENT.labels(status="error").inc()
            logger.warning("Rotation webhook failed: %s", exc)
            return False
