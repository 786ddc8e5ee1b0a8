# backend/ctiengine/services/monitoring/alert_cache.py
from collections import OrderedDict
from typing import Optional


class AlertCache:
    """
    Threat ids that already produced an alert, bounded to `capacity`.

    Eviction is least-recently-used: looking an id up refreshes it, and
    adding past capacity drops the stalest id. An evicted threat can
    alert again if it shows up in a later batch.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("AlertCache capacity must be positive")
        self.capacity = capacity
        self._entries: "OrderedDict[str, str]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, threat_id: str) -> bool:
        return threat_id in self._entries

    def get(self, threat_id: str) -> Optional[str]:
        """Alert id recorded for `threat_id`, refreshing its recency."""
        if threat_id not in self._entries:
            return None
        self._entries.move_to_end(threat_id)
        return self._entries[threat_id]

    def add(self, threat_id: str, alert_id: str) -> Optional[str]:
        """Record an alert; returns the threat id evicted to make room, if any."""
        self._entries[threat_id] = alert_id
        self._entries.move_to_end(threat_id)

        if len(self._entries) > self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            return evicted
        return None

    def clear(self) -> None:
        self._entries.clear()
