# backend/ctiengine/services/alerting/alert_dispatcher.py
import logging
from typing import List

from ctiengine.schemas.alerts import ThreatAlert
from ctiengine.schemas.correlation import ThreatPattern
from ctiengine.services.alerting.slack_alert_service import send_slack_alert
from ctiengine.services.alerting.webhook_alert_service import (
    send_generic_webhook_alert,
    send_generic_webhook_patterns,
)

logger = logging.getLogger(__name__)

# Alerts at or above this severity also go to Slack
SLACK_MIN_SEVERITY = 0.7


def dispatch_alert(alert: ThreatAlert) -> None:
    """
    Central place to decide which channels a new alert goes to.
    For now:
      - every alert goes to the generic webhook
      - high-severity alerts (> 0.7) also go to Slack
    """
    logger.info(
        "Dispatching alert %s for threat %s (severity=%.2f)",
        alert.id,
        alert.threat_id,
        alert.severity,
    )

    # Fan-out to individual channels; failures shouldn't break the pipeline.
    if alert.severity > SLACK_MIN_SEVERITY:
        try:
            send_slack_alert(alert)
        except Exception:
            logger.exception("Slack alert failed.")

    try:
        send_generic_webhook_alert(alert)
    except Exception:
        logger.exception("Generic webhook alert failed.")


def dispatch_patterns(patterns: List[ThreatPattern]) -> None:
    if not patterns:
        return

    logger.info("Broadcasting %s threat patterns", len(patterns))
    try:
        send_generic_webhook_patterns(patterns)
    except Exception:
        logger.exception("Generic webhook pattern broadcast failed.")
