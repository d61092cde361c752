"""
Metric model for the fake IoT simulator.
A metric is sent by the device every time a user logs into it.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict

# Zero value used for the empty metric, serialized as 0001-01-01T00:00:00Z
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """Format a datetime as an RFC3339 UTC timestamp with a Z suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Metric:
    """One reported activity event."""
    account_id: str = ""   # UUID identifying the account
    user_id: str = ""      # ID identifying the user activity
    timestamp: datetime = field(default=ZERO_TIME)  # time as recorded by the device

    def to_dict(self) -> Dict[str, str]:
        return {
            "account_id": self.account_id,
            "user_id": self.user_id,
            "timestamp": format_timestamp(self.timestamp),
        }

    def __str__(self) -> str:
        return json.dumps(self.to_dict())
