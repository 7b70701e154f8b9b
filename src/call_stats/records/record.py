from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class CallRecord:
    record_id: str
    endpoint: str
    recorded_at: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "record_id": self.record_id,
            "endpoint": self.endpoint,
            "recorded_at": format_timestamp(self.recorded_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CallRecord":
        return cls(
            record_id=str(data["record_id"]),
            endpoint=str(data.get("endpoint", "")),
            recorded_at=parse_timestamp(str(data["recorded_at"])),
        )


@dataclass(frozen=True)
class EndpointCount:
    endpoint: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"endpoint": self.endpoint, "count": self.count}


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as a fixed-width ISO-8601 UTC string (microsecond precision)."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string back into an aware UTC datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        # Naive values were written as UTC
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
