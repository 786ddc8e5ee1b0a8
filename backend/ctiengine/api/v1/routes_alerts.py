# backend/ctiengine/api/v1/routes_alerts.py

from typing import List, Optional

from fastapi import APIRouter, HTTPException, status

from ctiengine.schemas.alerts import (
    AlertStatus,
    AlertStatusUpdate,
    BatchReport,
    BatchRequest,
    MonitoringStats,
    ThreatAlert,
)
from ctiengine.services.monitoring.threat_monitoring_service import threat_monitoring_service

router = APIRouter(tags=["monitoring"])


@router.post(
    "/monitoring/batch",
    response_model=BatchReport,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Run a batch through filtering, alerting, patterns and graph building",
)
def process_batch(payload: BatchRequest) -> BatchReport:
    return threat_monitoring_service.process_batch(
        payload.threats,
        persist_relationships=payload.persist_relationships,
    )


@router.get("/alerts", response_model=List[ThreatAlert])
def list_alerts(
    category: Optional[str] = None,
    min_severity: Optional[float] = None,
    status: Optional[AlertStatus] = None,
    limit: Optional[int] = None,
) -> List[ThreatAlert]:
    return threat_monitoring_service.get_alerts(
        category=category,
        min_severity=min_severity,
        status=status,
        limit=limit,
    )


@router.get("/alerts/stats", response_model=MonitoringStats)
def alert_stats() -> MonitoringStats:
    return threat_monitoring_service.get_monitoring_stats()


@router.get("/alerts/{alert_id}", response_model=ThreatAlert)
def get_alert(alert_id: str) -> ThreatAlert:
    alert = threat_monitoring_service.get_alert(alert_id)
    if alert is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Alert {alert_id} not found",
        )
    return alert


@router.post("/alerts/{alert_id}/status", response_model=ThreatAlert)
def update_alert_status(alert_id: str, payload: AlertStatusUpdate) -> ThreatAlert:
    alert = threat_monitoring_service.update_alert_status(
        alert_id,
        payload.status,
        notes=payload.notes,
        user_id=payload.assigned_to,
    )
    if alert is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Alert {alert_id} not found",
        )
    return alert
