# backend/ctiengine/schemas/alerts.py
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ctiengine.schemas.correlation import ThreatPattern, ThreatRelationship
from ctiengine.schemas.threats import ThreatRecord


class AlertStatus(str, Enum):
    NEW = "new"
    ACKNOWLEDGED = "acknowledged"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    FALSE_POSITIVE = "false_positive"


class ThreatAlert(BaseModel):
    id: str
    threat_id: str
    title: str
    description: str
    severity: float
    category: str
    source: str
    timestamp: datetime
    status: AlertStatus = AlertStatus.NEW
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AlertStatusUpdate(BaseModel):
    status: AlertStatus
    notes: Optional[str] = None
    assigned_to: Optional[str] = None


class MonitoringStats(BaseModel):
    total_threats: int = 0
    critical_threats: int = 0
    high_threats: int = 0
    medium_threats: int = 0
    low_threats: int = 0
    threats_by_category: Dict[str, int] = Field(default_factory=dict)
    threats_by_source: Dict[str, int] = Field(default_factory=dict)
    recent_alerts: List[ThreatAlert] = Field(default_factory=list)


class BatchRequest(BaseModel):
    threats: List[ThreatRecord] = Field(default_factory=list)
    persist_relationships: bool = True


class BatchReport(BaseModel):
    """
    Outcome of one monitoring cycle over a batch of threat records.
    """
    received: int
    retained: int
    dropped: int
    alerts: List[ThreatAlert] = Field(default_factory=list)
    patterns: List[ThreatPattern] = Field(default_factory=list)
    relationships: List[ThreatRelationship] = Field(default_factory=list)
