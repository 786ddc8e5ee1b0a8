# backend/ctiengine/schemas/threats.py
from typing import Any, Dict, List
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ThreatCategory(str, Enum):
    """Well-known categories. Records may carry any other string."""
    VULNERABILITY = "vulnerability"
    MALWARE = "malware"
    PHISHING = "phishing"
    ATTACK = "attack"
    BREACH = "breach"
    RANSOMWARE = "ransomware"
    GENERAL = "general"


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple, set)):
        return []
    return [str(v) for v in value if v is not None and str(v)]


class ThreatRecord(BaseModel):
    """
    A single intelligence item as produced by the ingestion layer.

    Records are frozen: scoring, similarity and pattern detection read them
    but never change them.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: str = ""
    source: str = ""
    category: str = ThreatCategory.GENERAL.value
    severity: float = 0.5
    timestamp: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("severity")
    @classmethod
    def _clamp_severity(cls, v: float) -> float:
        return max(0.0, min(float(v), 1.0))

    @field_validator("title", "description", "source", "category", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    # --------------------------------------------------------
    # Known metadata keys
    # --------------------------------------------------------
    @property
    def iocs(self) -> List[str]:
        return _string_list(self.metadata.get("iocs"))

    @property
    def tags(self) -> List[str]:
        return _string_list(self.metadata.get("tags"))

    @property
    def declared_sectors(self) -> List[str]:
        return _string_list(self.metadata.get("affectedSectors"))

    @property
    def epoch_seconds(self) -> float:
        """POSIX time of the observation; naive timestamps are read as UTC."""
        ts = self.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return ts.timestamp()

    @property
    def text(self) -> str:
        """Lower-cased title + description, the input of every lexical rule."""
        return f"{self.title} {self.description}".lower()


class ThreatScore(BaseModel):
    relevance: float
    severity: float
    confidence: float
    priority: float
