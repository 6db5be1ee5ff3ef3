#!/usr/bin/env python3
"""
ersatz-timecode: Longwave Time Signal Simulator

Main entry point. This program:
1. Reads the station and clock configuration (TOML file + command line)
2. Builds the carrier wavetables for the chosen station
3. Starts the sample clock at the current wall-clock time
4. Streams the encoded time code to the default audio output until stopped

Usage:
    # JJY 60 kHz in the system time zone
    ersatz-timecode

    # JJY 40 kHz, forced JST
    ersatz-timecode --station jjy --fukushima --jst

    # WWVB with U.S. Mountain time DST bits
    ersatz-timecode --station wwvb --timezone America/Denver

Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                      ersatz-timecode                          │
    │                                                              │
    │  ┌─────────────┐   ┌──────────────┐   ┌──────────────────┐   │
    │  │ wall clock  │──▶│  Waveform    │──▶│ sounddevice      │──▶ DAC
    │  │ (time_ns)   │   │  Scheduler   │   │ OutputStream     │   │
    │  └─────────────┘   └──────┬───────┘   └──────────────────┘   │
    │                           │ once per second                  │
    │              ┌────────────┴────────────┐                     │
    │              ▼                         ▼                     │
    │      Second Symbol Table       Phase-Overlay (WWVB)          │
    └──────────────────────────────────────────────────────────────┘

A speaker or a loop of wire on the headphone jack, placed next to a radio
clock, is enough for the clock to synchronize from the harmonic at the
real carrier frequency.
"""

import argparse
import copy
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import toml

# Set up logging before imports that use it
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger('ersatz-timecode')

from . import __version__
from .interfaces.synthesis_state import Station, StationProfile
from .timing.civil_time import JST, CivilZone, describe_offset, resolve_zone
from .timing.phase_overlay import phase_frame
from .timing.scheduler import WaveformScheduler
from .timing.stations import station_profile
from .timing.symbol_table import format_frame
from .timing.timecode_constants import DEFAULT_BLOCKSIZE, DEFAULT_SAMPLE_RATE
from .timing.wavetable import ConfigurationError, Wavetable

SAMPLE_FORMATS = {
    'float32': np.float32,
    'int16': np.int16,
}

DEFAULT_CONFIG: Dict[str, Any] = {
    'general': {
        'station': 'jjy',
        'sample_rate': DEFAULT_SAMPLE_RATE,
    },
    'carrier': {
        'fukushima': False,
    },
    'clock': {
        'timezone': 'local',
    },
    'audio': {
        'device': None,
        'blocksize': DEFAULT_BLOCKSIZE,
        'channels': 1,
        'latency': 'low',
        'dtype': 'float32',
    },
}


class TimecodeTransmitter:
    """
    Ties the configuration, the scheduler and the audio sink together.

    Owns the stream lifecycle: build, start, wait for a stop request, close.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize the transmitter.

        Args:
            config: Configuration dictionary (see DEFAULT_CONFIG)

        Raises:
            ConfigurationError: The sample rate / carrier pair is unusable
            ValueError: Unknown station, time zone or sample format
        """
        self.config = config
        general = config.get('general', {})
        audio = config.get('audio', {})

        self.profile: StationProfile = station_profile(
            general.get('station', 'jjy'),
            fukushima=config.get('carrier', {}).get('fukushima', False),
        )
        self.zone: CivilZone = resolve_zone(config.get('clock', {}).get('timezone'))
        self.sample_rate = int(general.get('sample_rate', DEFAULT_SAMPLE_RATE))

        dtype_name = audio.get('dtype', 'float32')
        if dtype_name not in SAMPLE_FORMATS:
            raise ValueError(f"Unsupported sample format: {dtype_name} "
                             f"(choose from {', '.join(SAMPLE_FORMATS)})")

        self.wavetable = Wavetable(
            self.profile.carrier_hz,
            self.sample_rate,
            self.profile.low_attenuation,
            require_phase_rotation=self.profile.phase_modulated,
            dtype=SAMPLE_FORMATS[dtype_name],
        )
        self.device = audio.get('device')
        self.blocksize = int(audio.get('blocksize', DEFAULT_BLOCKSIZE))
        self.channels = int(audio.get('channels', 1))
        self.latency = audio.get('latency', 'low')

        self.scheduler: Optional[WaveformScheduler] = None
        self.sink = None
        self.stop_event = threading.Event()

        logger.info("=" * 60)
        logger.info(f"ersatz-timecode v{__version__} initializing")
        logger.info(f"  Station: {self.profile.label}")
        logger.info(f"  Audio carrier: {float(self.profile.carrier_hz):.1f} Hz "
                    f"({self.wavetable.size}-sample table, {self.wavetable.cycles} cycles)")
        logger.info(f"  Sample rate: {self.sample_rate} Hz, format {dtype_name}")
        logger.info(f"  Time zone: {self.zone.name}")
        logger.info("=" * 60)

    def build_scheduler(self, now_ns: Optional[int] = None) -> WaveformScheduler:
        self.scheduler = WaveformScheduler.from_clock(
            self.profile, self.wavetable, self.zone, now_ns=now_ns)
        ts = self.scheduler.timestamp
        logger.info(f"Clock: {ts} - {describe_offset(self.zone, ts.epoch)}")
        return self.scheduler

    def show_code(self) -> None:
        """Print the time code of the minute being sent."""
        if self.scheduler is None:
            self.build_scheduler()
        ts = self.scheduler.timestamp
        print(f"{self.profile.label} time code for {ts}")
        print(f"  AM: {format_frame(self.profile.layout.frame_symbols(ts))}")
        if self.profile.phase_modulated:
            bits = ''.join('1' if b else '0' for b in phase_frame(ts))
            print(f"  PM: {' '.join(bits[i:i + 10] for i in range(0, 60, 10))}")

    def start(self) -> None:
        """Start streaming and block until a stop is requested."""
        from .output.audio_sink import AudioSink

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        if self.scheduler is None:
            self.build_scheduler()
        self.sink = AudioSink(
            self.scheduler,
            device=self.device,
            blocksize=self.blocksize,
            channels=self.channels,
            latency=self.latency,
        )
        try:
            self.sink.start()
            logger.info("Transmitting... press Ctrl+C to stop")
            self.sink.wait(self.stop_event)
        finally:
            self._cleanup()

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        logger.info(f"Received signal {signum}, shutting down...")
        self.stop_event.set()

    def _cleanup(self):
        """Close the audio stream."""
        if self.sink is not None:
            self.sink.stop()
        if self.scheduler is not None:
            logger.info(f"Last second sent: {self.scheduler.timestamp}")
        logger.info("ersatz-timecode stopped")


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from TOML file, layered over the defaults."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(path, 'r') as f:
            loaded = toml.load(f)
        for section, values in loaded.items():
            if isinstance(values, dict):
                config.setdefault(section, {}).update(values)
            else:
                config[section] = values
    return config


def apply_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Command-line options take precedence over the config file."""
    if args.station:
        config['general']['station'] = args.station
    if args.sample_rate:
        config['general']['sample_rate'] = args.sample_rate
    if args.fukushima:
        config['carrier']['fukushima'] = True
    if args.jst:
        config['clock']['timezone'] = JST.name
    elif args.timezone:
        config['clock']['timezone'] = args.timezone
    if args.device is not None:
        config['audio']['device'] = int(args.device) if args.device.isdigit() else args.device
    if args.blocksize is not None:
        config['audio']['blocksize'] = args.blocksize
    if args.dtype:
        config['audio']['dtype'] = args.dtype
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='ersatz-timecode',
        description='Output audio simulating the JJY or WWVB longwave time signal',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    ersatz-timecode                          # JJY 60 kHz, system time zone
    ersatz-timecode -f -j                    # JJY 40 kHz, forced JST
    ersatz-timecode --station wwvb --timezone America/Denver
    ersatz-timecode --config /etc/ersatz-timecode.toml --show-code
        """
    )
    parser.add_argument(
        '--config',
        help='Path to configuration file (TOML)'
    )
    parser.add_argument(
        '-s', '--station',
        choices=[s.value for s in Station],
        help='Station to simulate (default: jjy)'
    )
    parser.add_argument(
        '-f', '--fukushima',
        action='store_true',
        help='Simulate the 40 kHz JJY signal (JJY only)'
    )
    parser.add_argument(
        '-j', '--jst',
        action='store_true',
        help='Force JST timezone'
    )
    parser.add_argument(
        '--timezone',
        help='Civil time zone: "local", "UTC", "JST", hours offset or IANA name'
    )
    parser.add_argument(
        '--sample-rate',
        type=int,
        help=f'Output sample rate in Hz (default: {DEFAULT_SAMPLE_RATE})'
    )
    parser.add_argument(
        '--device',
        help='Audio output device index or name (default: system default)'
    )
    parser.add_argument(
        '--blocksize',
        type=int,
        help=f'Frames per audio callback (default: {DEFAULT_BLOCKSIZE})'
    )
    parser.add_argument(
        '--dtype',
        choices=list(SAMPLE_FORMATS),
        help='Output sample format (default: float32)'
    )
    parser.add_argument(
        '--show-code',
        action='store_true',
        help='Print the time code of the current minute before transmitting'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '-v', '--version',
        action='version',
        version=f'%(prog)s v{__version__}'
    )
    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = apply_overrides(load_config(args.config), args)
        transmitter = TimecodeTransmitter(config)
        transmitter.build_scheduler()
    except (ValueError, FileNotFoundError, toml.TomlDecodeError) as e:
        logger.error(f"Configuration error: {e}")
        return 1

    if args.show_code:
        transmitter.show_code()

    try:
        transmitter.start()
    except Exception as e:
        logger.exception(f"Audio stream failed: {e}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
