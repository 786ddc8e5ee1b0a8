import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# Point the app at a throwaway SQLite file before ctiengine.core.config loads.
_db_dir = tempfile.mkdtemp(prefix="cti-engine-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_db_dir, 'test.db')}")
os.environ.setdefault("SLACK_ALERT_WEBHOOK_URL", "")
os.environ.setdefault("GENERIC_ALERT_WEBHOOK_URL", "")

from ctiengine.schemas.threats import ThreatRecord  # noqa: E402

BASE_TIME = datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)

LONG_DESCRIPTION = (
    "Attackers are actively exploiting this flaw against exposed servers; "
    "patches are available from the vendor."
)


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def make_threat():
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "id": f"threat-{counter['n']}",
            "title": "Generic item",
            "description": "",
            "source": "Unknown Feed",
            "category": "general",
            "severity": 0.5,
            "timestamp": BASE_TIME,
            "metadata": {},
        }
        if "minutes" in overrides:
            data["timestamp"] = BASE_TIME + timedelta(minutes=overrides.pop("minutes"))
        data.update(overrides)
        return ThreatRecord(**data)

    return _make
