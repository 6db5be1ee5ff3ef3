"""
Civil time zones for calendar derivation.

Every Calendar Timestamp is derived from an absolute POSIX second through
one of these zones. A zone answers two questions about an instant: what
the wall-clock fields are, and whether DST is in effect.

    LocalZone        - the process's ambient zone (time.localtime)
    FixedOffsetZone  - a forced offset with no DST (JST is UTC+9)
    NamedZone        - an IANA zone via zoneinfo (e.g. "America/Denver")
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional, Union

from .timecode_constants import JST_OFFSET_SECONDS, SECONDS_PER_DAY

logger = logging.getLogger(__name__)


class CivilFields(NamedTuple):
    """Broken-down wall-clock fields for one instant."""
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    weekday: int      # Sunday = 0
    yday: int         # 1-based
    isdst: bool


def _from_struct(tm: time.struct_time) -> CivilFields:
    return CivilFields(
        year=tm.tm_year,
        month=tm.tm_mon,
        day=tm.tm_mday,
        hour=tm.tm_hour,
        minute=tm.tm_min,
        # time.struct_time may report 60 on leap-second-aware platforms
        second=tm.tm_sec,
        weekday=(tm.tm_wday + 1) % 7,
        yday=tm.tm_yday,
        isdst=tm.tm_isdst > 0,
    )


class CivilZone:
    """Base class: maps an absolute POSIX second to civil fields."""

    name = "abstract"

    def fields(self, epoch: int) -> CivilFields:
        raise NotImplementedError

    def isdst(self, epoch: int) -> bool:
        return self.fields(epoch).isdst

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class UTCZone(CivilZone):
    name = "UTC"

    def fields(self, epoch: int) -> CivilFields:
        return _from_struct(time.gmtime(epoch))

    def isdst(self, epoch: int) -> bool:
        return False


class LocalZone(CivilZone):
    """The zone configured for the process (TZ environment / system)."""

    name = "local"

    def fields(self, epoch: int) -> CivilFields:
        return _from_struct(time.localtime(epoch))


class FixedOffsetZone(CivilZone):
    """A constant UTC offset without daylight saving time."""

    def __init__(self, offset_seconds: int, name: Optional[str] = None):
        self.offset_seconds = int(offset_seconds)
        hours, rem = divmod(abs(self.offset_seconds), 3600)
        sign = '+' if self.offset_seconds >= 0 else '-'
        self.name = name or f"UTC{sign}{hours:02d}:{rem // 60:02d}"

    def fields(self, epoch: int) -> CivilFields:
        return _from_struct(time.gmtime(epoch + self.offset_seconds))

    def isdst(self, epoch: int) -> bool:
        return False


class NamedZone(CivilZone):
    """An IANA time zone resolved through zoneinfo."""

    def __init__(self, key: str):
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            self._tz = ZoneInfo(key)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {key}") from e
        self.name = key
        logger.debug(f"Resolved IANA time zone {key}")

    def fields(self, epoch: int) -> CivilFields:
        dt = datetime.fromtimestamp(epoch, self._tz)
        tt = dt.timetuple()
        return CivilFields(
            year=dt.year,
            month=dt.month,
            day=dt.day,
            hour=dt.hour,
            minute=dt.minute,
            second=dt.second,
            weekday=dt.isoweekday() % 7,
            yday=tt.tm_yday,
            isdst=bool(dt.dst()),
        )

    def isdst(self, epoch: int) -> bool:
        return bool(datetime.fromtimestamp(epoch, self._tz).dst())


UTC = UTCZone()
JST = FixedOffsetZone(JST_OFFSET_SECONDS, name="JST")


def resolve_zone(value: Union[None, str, int, float, CivilZone]) -> CivilZone:
    """
    Build a zone from a configuration value.

    Accepted values:
        None / "local"       - ambient process zone
        "UTC"                - UTC
        "JST"                - UTC+9
        number / "+5.5"      - fixed offset in hours
        "Area/Location"      - IANA zone name
    """
    if isinstance(value, CivilZone):
        return value
    if value is None:
        return LocalZone()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return FixedOffsetZone(round(value * 3600))

    text = str(value).strip()
    upper = text.upper()
    if upper in ('', 'LOCAL'):
        return LocalZone()
    if upper == 'UTC':
        return UTC
    if upper == 'JST':
        return JST
    try:
        hours = float(text)
    except ValueError:
        return NamedZone(text)
    return FixedOffsetZone(round(hours * 3600))


def utc_day_bounds(epoch: int):
    """Return (first, last) POSIX second of the UTC day containing epoch."""
    start = epoch - epoch % SECONDS_PER_DAY
    return start, start + SECONDS_PER_DAY - 1


def describe_offset(zone: CivilZone, epoch: int) -> str:
    """Human-readable offset of a zone at an instant, for startup logging."""
    fields = zone.fields(epoch)
    wall = datetime(fields.year, fields.month, fields.day,
                    fields.hour, fields.minute, min(fields.second, 59),
                    tzinfo=timezone.utc)
    offset = wall - datetime.fromtimestamp(epoch, timezone.utc)
    minutes = round(offset / timedelta(minutes=1))
    sign = '+' if minutes >= 0 else '-'
    hours, mins = divmod(abs(minutes), 60)
    return f"{zone.name} (UTC{sign}{hours:02d}:{mins:02d}{', DST' if fields.isdst else ''})"
