"""
Pytest configuration and fixtures for ersatz-timecode tests.
"""

import calendar
import pytest
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from ersatz_timecode.timing.civil_time import UTC, CivilZone


class SwitchingZone(CivilZone):
    """UTC wall clock whose DST flag flips at a fixed instant."""

    name = "switching"

    def __init__(self, switch_epoch, dst_before, dst_after):
        self.switch_epoch = switch_epoch
        self.dst_before = dst_before
        self.dst_after = dst_after

    def fields(self, epoch):
        return UTC.fields(epoch)._replace(isdst=self.isdst(epoch))

    def isdst(self, epoch):
        return self.dst_after if epoch >= self.switch_epoch else self.dst_before


def utc_epoch(year, month, day, hour=0, minute=0, second=0):
    """POSIX second for a UTC wall-clock time."""
    return calendar.timegm((year, month, day, hour, minute, second, 0, 0, 0))


@pytest.fixture
def sample_rate():
    """Standard sample rate for tests."""
    return 48000


@pytest.fixture
def epoch_at():
    """Factory: UTC wall-clock fields -> POSIX second."""
    return utc_epoch


@pytest.fixture
def switching_zone():
    """Factory for a zone with a single DST transition."""
    return SwitchingZone


@pytest.fixture
def utc_timestamp():
    """Factory: UTC wall-clock fields -> CalendarTimestamp in UTC."""
    from ersatz_timecode.timing.calendar_bits import CalendarTimestamp

    def make(year, month, day, hour=0, minute=0, second=0, dst_zone=None):
        return CalendarTimestamp.at(
            utc_epoch(year, month, day, hour, minute, second), UTC, dst_zone=dst_zone)
    return make
