"""
Unit tests for the Sample Clock / Waveform Scheduler.

Tests threshold selection, sample conservation over whole minutes,
independence from the audio block size and the WWVB phase shift.
"""

import numpy as np
import pytest


def make_scheduler(profile_name, timestamp, sample_index=0, sample_rate=48000, dtype=np.float32):
    from ersatz_timecode.timing import stations
    from ersatz_timecode.timing.scheduler import WaveformScheduler
    from ersatz_timecode.timing.wavetable import Wavetable

    profile = getattr(stations, profile_name)
    wavetable = Wavetable(profile.carrier_hz, sample_rate, profile.low_attenuation,
                          require_phase_rotation=profile.phase_modulated, dtype=dtype)
    return WaveformScheduler(profile, wavetable, timestamp, sample_index=sample_index)


def expected_amplitude_minute(scheduler, timestamp):
    """Reference rendering of one minute for a station without phase overlay."""
    wt = scheduler.wavetable
    rate = wt.sample_rate
    lead = wt.high if scheduler.profile.leading_high else wt.low
    trail = wt.low if scheduler.profile.leading_high else wt.high
    out = np.empty(60 * rate, dtype=wt.dtype)
    ts = timestamp
    for s in range(60):
        threshold = scheduler.threshold_for(ts)
        n = np.arange(s * rate, (s + 1) * rate)
        out[s * rate:(s + 1) * rate] = np.where(
            n - s * rate < threshold, lead[n % wt.size], trail[n % wt.size])
        ts = ts.next_second()
    return out


class TestThresholds:
    """Test per-second leading-state durations."""

    def test_jjy_widths(self, utc_timestamp):
        from ersatz_timecode.timing.symbol_table import Symbol

        sched = make_scheduler('JJY_60KHZ', utc_timestamp(2025, 1, 1))
        assert sched.thresholds == {Symbol.MARK: 9600, Symbol.ONE: 24000, Symbol.ZERO: 38400}

    def test_wwvb_widths(self, utc_timestamp):
        from ersatz_timecode.timing.symbol_table import Symbol

        sched = make_scheduler('WWVB', utc_timestamp(2025, 1, 1))
        assert sched.thresholds == {Symbol.MARK: 38400, Symbol.ONE: 24000, Symbol.ZERO: 9600}

    def test_second_zero_marker_threshold(self, utc_timestamp):
        jjy = make_scheduler('JJY_60KHZ', utc_timestamp(2025, 1, 1, 3, 4, 0))
        wwvb = make_scheduler('WWVB', utc_timestamp(2025, 1, 1, 3, 4, 0))
        assert jjy.state.threshold == 9600
        assert wwvb.state.threshold == 38400

    def test_inexact_width_rejected(self, utc_timestamp):
        """At 12 Hz a 0.2 s pulse is 2.4 samples."""
        from fractions import Fraction

        from ersatz_timecode.timing.scheduler import WaveformScheduler
        from ersatz_timecode.timing.stations import JJY_60KHZ
        from ersatz_timecode.timing.wavetable import ConfigurationError, Wavetable

        wavetable = Wavetable(Fraction(3), 12, 0.1)
        with pytest.raises(ConfigurationError):
            WaveformScheduler(JJY_60KHZ, wavetable, utc_timestamp(2025, 1, 1))

    def test_sample_index_out_of_range(self, utc_timestamp):
        with pytest.raises(ValueError):
            make_scheduler('JJY_60KHZ', utc_timestamp(2025, 1, 1), sample_index=48000)


class TestSampleConservation:
    """Test that seconds last exactly sample_rate samples."""

    @pytest.mark.parametrize("profile_name", ['JJY_60KHZ', 'JJY_40KHZ'])
    def test_one_minute_in_audio_blocks(self, utc_timestamp, profile_name):
        start = utc_timestamp(2025, 4, 1, 6, 30)
        sched = make_scheduler(profile_name, start)
        reference = expected_amplitude_minute(sched, start)

        blocks = [sched.advance(512) for _ in range(60 * 48000 // 512)]
        out = np.concatenate(blocks)

        assert sched.state.seconds_advanced == 60
        assert sched.state.sample_index == 0
        assert sched.timestamp.epoch == start.epoch + 60
        np.testing.assert_array_equal(out, reference)

    def test_leading_samples_match_symbols(self, utc_timestamp):
        """Per second: threshold samples of HIGH then the rest LOW."""
        from ersatz_timecode.timing.stations import JJY_60KHZ

        start = utc_timestamp(2025, 4, 1, 6, 30)
        sched = make_scheduler('JJY_60KHZ', start)
        out = sched.advance(60 * 48000).reshape(60, 48000)
        high = sched.wavetable.high
        ts = start
        for s in range(60):
            threshold = sched.thresholds[JJY_60KHZ.layout.symbol(ts)]
            # Sample 3 of each 12-sample period is the positive peak
            peaks = out[s, 3::12]
            assert np.all(peaks[:threshold // 12] == high[3])
            assert np.all(peaks[threshold // 12:] < high[3])
            ts = ts.next_second()

    def test_block_size_does_not_change_output(self, utc_timestamp):
        start = utc_timestamp(2025, 4, 1, 6, 30, 57)
        whole = make_scheduler('WWVB', start, sample_index=1234).advance(3 * 48000)

        sched = make_scheduler('WWVB', start, sample_index=1234)
        pieces = []
        remaining = 3 * 48000
        for size in (7, 333, 4801, 1, 48000, 96000):
            size = min(size, remaining)
            if size == 0:
                break
            pieces.append(sched.advance(size))
            remaining -= size
        np.testing.assert_array_equal(np.concatenate(pieces), whole)

    def test_single_call_spanning_seconds(self, utc_timestamp):
        start = utc_timestamp(2025, 4, 1, 6, 30, 58)
        sched = make_scheduler('JJY_60KHZ', start)
        sched.advance(5 * 48000 + 100)
        assert sched.state.seconds_advanced == 5
        assert sched.state.sample_index == 100
        assert (sched.timestamp.minute, sched.timestamp.second) == (31, 3)

    def test_wavetable_index_stays_in_range(self, utc_timestamp):
        sched = make_scheduler('JJY_40KHZ', utc_timestamp(2025, 4, 1))
        for size in (1, 17, 513, 9999):
            sched.advance(size)
            assert 0 <= sched.state.wt_index < sched.wavetable.size

    def test_zero_frames_rejected(self, utc_timestamp):
        sched = make_scheduler('JJY_60KHZ', utc_timestamp(2025, 4, 1))
        with pytest.raises(ValueError):
            sched.advance(0)


class TestPhaseShift:
    """Test the WWVB 180° shift 100 ms into each second."""

    def test_phase_reset_at_100ms(self, utc_timestamp):
        """Second 1 carries phase 0, second 2 phase 1 (sync word)."""
        start = utc_timestamp(2025, 4, 1, 6, 5, 1)
        sched = make_scheduler('WWVB', start)
        low = sched.wavetable.low

        out = sched.advance(4802)
        assert sched.state.phase_offset == 0
        assert out[4801] == low[1]

        sched.advance(48000 - 4802)
        assert sched.timestamp.second == 2
        out = sched.advance(4802)
        assert sched.state.phase_offset == 6
        assert out[4801] == low[7]

    def test_phase_block_boundary_at_100ms(self, utc_timestamp):
        """A block ending exactly at the shift defers it to the next block."""
        start = utc_timestamp(2025, 4, 1, 6, 5, 2)
        sched = make_scheduler('WWVB', start)
        sched.advance(4800)
        assert sched.state.sample_index == 4800
        assert sched.state.phase_offset == 0
        out = sched.advance(2)
        assert sched.state.phase_offset == 6
        assert out[1] == sched.wavetable.low[7]

    def test_jjy_never_shifts_phase(self, utc_timestamp):
        sched = make_scheduler('JJY_60KHZ', utc_timestamp(2025, 4, 1, 6, 5, 2))
        assert sched.phase_delay is None
        sched.advance(48000)
        assert sched.state.phase_offset == 0


class TestStartup:
    """Test sample clock initialization from absolute time."""

    def test_from_clock_alignment(self, epoch_at):
        from ersatz_timecode.timing.civil_time import UTC
        from ersatz_timecode.timing.scheduler import WaveformScheduler
        from ersatz_timecode.timing.stations import JJY_60KHZ
        from ersatz_timecode.timing.wavetable import Wavetable

        wavetable = Wavetable(JJY_60KHZ.carrier_hz, 48000, JJY_60KHZ.low_attenuation)
        epoch = epoch_at(2025, 4, 1, 6, 5, 30)
        sched = WaveformScheduler.from_clock(
            JJY_60KHZ, wavetable, UTC, now_ns=epoch * 1_000_000_000 + 123_456_789)

        assert sched.timestamp.epoch == epoch
        assert sched.state.sample_index == 5925
        assert sched.state.wt_index == 5925 % 12

    def test_from_clock_wwvb_uses_utc_fields(self, epoch_at):
        from ersatz_timecode.timing.civil_time import JST
        from ersatz_timecode.timing.scheduler import WaveformScheduler
        from ersatz_timecode.timing.stations import WWVB
        from ersatz_timecode.timing.wavetable import Wavetable

        wavetable = Wavetable(WWVB.carrier_hz, 48000, WWVB.low_attenuation,
                              require_phase_rotation=True)
        epoch = epoch_at(2025, 4, 1, 6, 5, 30)
        sched = WaveformScheduler.from_clock(WWVB, wavetable, JST,
                                             now_ns=epoch * 1_000_000_000)
        assert sched.timestamp.hour == 6
        assert sched.state.sample_index == 0

    def test_stereo_fill(self, utc_timestamp):
        sched = make_scheduler('JJY_60KHZ', utc_timestamp(2025, 4, 1))
        out = np.zeros((512, 2), dtype=np.float32)
        sched.fill(out)
        np.testing.assert_array_equal(out[:, 0], out[:, 1])
        np.testing.assert_array_equal(out[:, 0], sched.wavetable.high[np.arange(512) % 12])

    def test_int16_output(self, utc_timestamp):
        sched = make_scheduler('WWVB', utc_timestamp(2025, 4, 1), dtype=np.int16)
        out = sched.advance(1024)
        assert out.dtype == np.int16

    def test_state_to_dict(self, utc_timestamp):
        sched = make_scheduler('JJY_60KHZ', utc_timestamp(2025, 4, 1))
        d = sched.state.to_dict()
        assert d['sample_index'] == 0
        assert d['threshold'] == 9600
        assert d['seconds_advanced'] == 0
