# backend/ctiengine/services/alerting/slack_alert_service.py
import logging
import requests

from ctiengine.schemas.alerts import ThreatAlert
from ctiengine.core.config import settings
from ctiengine.services.risk_scoring.risk_utils import severity_from_score
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

SLACK_WEBHOOK_URL = settings.SLACK_ALERT_WEBHOOK_URL


def send_slack_alert(alert: ThreatAlert) -> None:
    """
    Simple Slack alert sender using Incoming Webhook URL.

    Configure env:
      SLACK_ALERT_WEBHOOK_URL=https://hooks.slack.com/services/...
    """
    if not SLACK_WEBHOOK_URL:
        logger.info("Slack webhook URL not configured; skipping Slack alert.")
        return

    score = alert.metadata.get("threat_score") or {}

    text_lines = [
        ":rotating_light: *High-severity threat detected*",
        f"*Threat*: {alert.title}",
        f"*Threat ID*: `{alert.threat_id}`",
        f"*Severity*: `{severity_from_score(alert.severity)}` ({alert.severity:.2f})",
        f"*Category*: `{alert.category}` / *Source*: `{alert.source}`",
    ]

    if score:
        text_lines.append(
            f"*Priority*: {score.get('priority', 0):.2f} "
            f"(relevance {score.get('relevance', 0):.2f}, "
            f"confidence {score.get('confidence', 0):.2f})"
        )

    if alert.description:
        text_lines.append(f"*Description*: {alert.description[:500]}")

    payload = {"text": "\n".join(text_lines)}

    # Make it JSON-safe (datetimes → isoformat, enums → values, etc.)
    json_payload = jsonable_encoder(payload)

    try:
        resp = requests.post(SLACK_WEBHOOK_URL, json=json_payload, timeout=5)
        resp.raise_for_status()
    except Exception as exc:
        logger.exception("Failed to send Slack alert: %s", exc)
