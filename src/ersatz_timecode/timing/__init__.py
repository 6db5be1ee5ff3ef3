"""
Time code generation for ersatz-timecode.

Calendar bit functions, the per-second symbol tables of JJY and WWVB, the
WWVB phase overlay and the carrier wavetables.
"""

from .calendar_bits import CalendarTimestamp
from .phase_overlay import phase_symbol
from .symbol_table import JJY_LAYOUT, WWVB_LAYOUT, Symbol
from .wavetable import ConfigurationError, Wavetable

__all__ = [
    'CalendarTimestamp',
    'ConfigurationError',
    'JJY_LAYOUT',
    'Symbol',
    'WWVB_LAYOUT',
    'Wavetable',
    'phase_symbol',
]
