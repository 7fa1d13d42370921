"""
Lucky number derivation from a login instant.

The lucky number is the local clock's minute plus its second, so it always
lies in 0..118. The same instant always gives the same number.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo


def to_local(timestamp: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    Express timestamp on the local clock.

    Aware timestamps are converted to tz_name (or the host zone when None);
    naive timestamps are taken as already local.
    """
    if timestamp.tzinfo is None:
        return timestamp
    if tz_name:
        return timestamp.astimezone(ZoneInfo(tz_name))
    return timestamp.astimezone()


def generate_lucky_number(timestamp: datetime, tz_name: Optional[str] = None) -> int:
    local = to_local(timestamp, tz_name)
    return local.minute + local.second


def clock_time(timestamp: datetime, tz_name: Optional[str] = None) -> str:
    """``HH:MM:SS`` of timestamp on the local clock."""
    return to_local(timestamp, tz_name).strftime("%H:%M:%S")


@dataclass(frozen=True)
class LoginInstant:
    """A login moment captured once and passed explicitly to the evaluator."""
    timestamp: datetime
    clock: str
    minute: int
    lucky_number: int

    @classmethod
    def capture(cls, timestamp: datetime, tz_name: Optional[str] = None) -> "LoginInstant":
        local = to_local(timestamp, tz_name)
        return cls(
            timestamp=timestamp,
            clock=local.strftime("%H:%M:%S"),
            minute=local.minute,
            lucky_number=local.minute + local.second,
        )
