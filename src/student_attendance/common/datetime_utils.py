from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def parse_iso_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r}")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now()


@dataclass(frozen=True)
class DayBoundary:
    """Maps a timestamp to the attendance day it belongs to.

    A timestamp earlier than `cutoff` on its calendar date counts toward the
    previous day. Timestamps are first moved into `tz`; naive ones are read as
    server-local, and with no `tz` aware ones are moved to server-local.
    """

    cutoff: time = time(0, 0)
    tz: Optional[tzinfo] = None

    @classmethod
    def from_settings(cls, cutoff: str = "00:00", timezone: Optional[str] = None) -> "DayBoundary":
        try:
            cutoff_t = datetime.strptime(cutoff.strip(), "%H:%M").time()
        except ValueError:
            raise ValidationError(f"Invalid DAY_BOUNDARY: {cutoff!r} (expected HH:MM)")

        tz = None
        if timezone:
            try:
                tz = ZoneInfo(timezone)
            except ZoneInfoNotFoundError:
                raise ValidationError(f"Unknown TIMEZONE: {timezone!r}")
        return cls(cutoff=cutoff_t, tz=tz)

    def day_of(self, ts: datetime) -> date:
        if self.tz is not None or ts.tzinfo is not None:
            ts = ts.astimezone(self.tz)
        offset = timedelta(hours=self.cutoff.hour, minutes=self.cutoff.minute, seconds=self.cutoff.second)
        return (ts - offset).date()
