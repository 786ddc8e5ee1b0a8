# backend/ctiengine/services/alerting/webhook_alert_service.py
import logging
from typing import List

import requests

from ctiengine.schemas.alerts import ThreatAlert
from ctiengine.schemas.correlation import ThreatPattern
from ctiengine.core.config import settings
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

GENERIC_WEBHOOK_URL = settings.GENERIC_ALERT_WEBHOOK_URL


def _post(payload: dict) -> None:
    # Make it JSON-safe (datetimes → isoformat, enums → values, etc.)
    json_payload = jsonable_encoder(payload, by_alias=True)

    resp = requests.post(GENERIC_WEBHOOK_URL, json=json_payload, timeout=5)
    resp.raise_for_status()


def send_generic_webhook_alert(alert: ThreatAlert) -> None:
    """
    Generic JSON webhook for n8n, custom dashboards, etc.

    Configure env:
      GENERIC_ALERT_WEBHOOK_URL=https://your-endpoint/ingest
    """
    if not GENERIC_WEBHOOK_URL:
        logger.info("Generic webhook URL not configured; skipping generic alert.")
        return

    try:
        _post({"event": "new-alert", "alert": alert})
    except Exception as exc:
        logger.exception("Failed to send generic webhook alert: %s", exc)


def send_generic_webhook_patterns(patterns: List[ThreatPattern]) -> None:
    if not GENERIC_WEBHOOK_URL:
        logger.info("Generic webhook URL not configured; skipping pattern broadcast.")
        return

    try:
        _post({"event": "threat-patterns", "patterns": patterns})
    except Exception as exc:
        logger.exception("Failed to send threat patterns webhook: %s", exc)
