"""
Tests for configuration loading, the command line and the audio sink.

The sounddevice stream is never opened here; AudioSink is exercised
through its callback and a stand-in stream object.
"""

import logging

import numpy as np
import pytest


NOW_NS = 1_743_487_530_250_000_000     # 2025-04-01 06:05:30.25 UTC


class FakeStream:
    """Minimal stand-in for sounddevice.OutputStream."""

    def __init__(self):
        self.active = True
        self.stopped = False
        self.closed = False

    def stop(self):
        self.stopped = True
        self.active = False

    def close(self):
        self.closed = True


class TestLoadConfig:
    """Test TOML configuration layered over defaults."""

    def test_defaults_without_file(self):
        from ersatz_timecode.main import DEFAULT_CONFIG, load_config

        config = load_config(None)
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_file_overrides_defaults(self, tmp_path):
        from ersatz_timecode.main import load_config

        path = tmp_path / 'ersatz.toml'
        path.write_text(
            '[general]\n'
            'station = "wwvb"\n'
            '\n'
            '[clock]\n'
            'timezone = "America/Denver"\n'
        )
        config = load_config(str(path))
        assert config['general']['station'] == 'wwvb'
        assert config['general']['sample_rate'] == 48000
        assert config['clock']['timezone'] == 'America/Denver'
        assert config['audio']['blocksize'] == 512

    def test_defaults_not_mutated(self, tmp_path):
        from ersatz_timecode.main import DEFAULT_CONFIG, load_config

        path = tmp_path / 'ersatz.toml'
        path.write_text('[audio]\nchannels = 2\n')
        load_config(str(path))
        assert DEFAULT_CONFIG['audio']['channels'] == 1

    def test_missing_file(self, tmp_path):
        from ersatz_timecode.main import load_config

        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / 'missing.toml'))


class TestCommandLine:
    """Test argument parsing and overrides."""

    def test_flags_override_config(self):
        from ersatz_timecode.main import apply_overrides, build_parser, load_config

        args = build_parser().parse_args(
            ['--station', 'jjy', '-f', '-j', '--sample-rate', '96000',
             '--device', '3', '--blocksize', '1024', '--dtype', 'int16'])
        config = apply_overrides(load_config(None), args)

        assert config['general']['station'] == 'jjy'
        assert config['general']['sample_rate'] == 96000
        assert config['carrier']['fukushima'] is True
        assert config['clock']['timezone'] == 'JST'
        assert config['audio']['device'] == 3
        assert config['audio']['blocksize'] == 1024
        assert config['audio']['dtype'] == 'int16'

    def test_named_device_kept_as_string(self):
        from ersatz_timecode.main import apply_overrides, build_parser, load_config

        args = build_parser().parse_args(['--device', 'pulse'])
        config = apply_overrides(load_config(None), args)
        assert config['audio']['device'] == 'pulse'

    def test_jst_wins_over_timezone(self):
        from ersatz_timecode.main import apply_overrides, build_parser, load_config

        args = build_parser().parse_args(['-j', '--timezone', 'UTC'])
        config = apply_overrides(load_config(None), args)
        assert config['clock']['timezone'] == 'JST'

    def test_unknown_station_rejected_by_parser(self):
        from ersatz_timecode.main import build_parser

        with pytest.raises(SystemExit):
            build_parser().parse_args(['--station', 'dcf77'])

    def test_version(self, capsys):
        from ersatz_timecode.main import main

        with pytest.raises(SystemExit) as exc:
            main(['--version'])
        assert exc.value.code == 0
        assert '1.0.0' in capsys.readouterr().out

    def test_bad_config_returns_error(self, tmp_path):
        from ersatz_timecode.main import main

        path = tmp_path / 'bad.toml'
        path.write_text('[general]\nstation = "dcf77"\n')
        assert main(['--config', str(path)]) == 1

    def test_unusable_sample_rate_returns_error(self):
        from ersatz_timecode.main import main

        assert main(['--station', 'wwvb', '--sample-rate', '44100']) == 1

    def test_inexact_pulse_width_returns_error(self, caplog):
        """46875 Hz gives a 75-sample table but a 0.5 s pulse of 23437.5 samples."""
        from ersatz_timecode.main import main

        with caplog.at_level(logging.ERROR):
            assert main(['--station', 'jjy', '--timezone', 'UTC',
                         '--sample-rate', '46875']) == 1
        assert any('0.5 s pulse' in r.getMessage() for r in caplog.records)


class TestTimecodeTransmitter:
    """Test transmitter assembly without opening an audio stream."""

    def _config(self, **general):
        from ersatz_timecode.main import load_config

        config = load_config(None)
        config['general'].update(general)
        config['clock']['timezone'] = 'UTC'
        return config

    def test_jjy_default(self):
        from ersatz_timecode.main import TimecodeTransmitter

        tx = TimecodeTransmitter(self._config())
        assert tx.profile.label == 'JJY 60 kHz'
        assert tx.wavetable.size == 12
        assert tx.wavetable.dtype == np.float32

    def test_fukushima(self):
        from ersatz_timecode.main import TimecodeTransmitter

        config = self._config()
        config['carrier']['fukushima'] = True
        tx = TimecodeTransmitter(config)
        assert tx.profile.label == 'JJY 40 kHz'
        assert tx.wavetable.size == 18

    def test_wwvb_int16(self):
        from ersatz_timecode.main import TimecodeTransmitter

        config = self._config(station='wwvb')
        config['audio']['dtype'] = 'int16'
        tx = TimecodeTransmitter(config)
        assert tx.profile.phase_modulated
        assert tx.wavetable.dtype == np.int16
        assert tx.wavetable.phase_index == 6

    def test_unsupported_dtype(self):
        from ersatz_timecode.main import TimecodeTransmitter

        config = self._config()
        config['audio']['dtype'] = 'float64'
        with pytest.raises(ValueError, match="sample format"):
            TimecodeTransmitter(config)

    def test_unknown_station(self):
        from ersatz_timecode.main import TimecodeTransmitter

        with pytest.raises(ValueError, match="Unknown station"):
            TimecodeTransmitter(self._config(station='msf'))

    def test_build_scheduler_from_clock(self):
        from ersatz_timecode.main import TimecodeTransmitter

        tx = TimecodeTransmitter(self._config())
        sched = tx.build_scheduler(now_ns=NOW_NS)
        assert (sched.timestamp.hour, sched.timestamp.minute, sched.timestamp.second) == (6, 5, 30)
        assert sched.state.sample_index == 12000

    def test_show_code_wwvb(self, capsys):
        from ersatz_timecode.main import TimecodeTransmitter

        tx = TimecodeTransmitter(self._config(station='wwvb'))
        tx.build_scheduler(now_ns=NOW_NS)
        tx.show_code()
        out = capsys.readouterr().out
        assert 'WWVB 60 kHz' in out
        assert 'AM: M' in out
        assert 'PM: 0011101101' in out

    def test_show_code_jjy_has_no_phase_line(self, capsys):
        from ersatz_timecode.main import TimecodeTransmitter

        tx = TimecodeTransmitter(self._config())
        tx.build_scheduler(now_ns=NOW_NS)
        tx.show_code()
        out = capsys.readouterr().out
        assert 'AM: M' in out
        assert 'PM:' not in out


class TestAudioSink:
    """Test the stream callback and lifecycle with a stand-in stream."""

    def _sink(self, channels=1):
        from ersatz_timecode.main import TimecodeTransmitter, load_config
        from ersatz_timecode.output.audio_sink import AudioSink

        config = load_config(None)
        config['clock']['timezone'] = 'UTC'
        tx = TimecodeTransmitter(config)
        return AudioSink(tx.build_scheduler(now_ns=NOW_NS), channels=channels)

    def test_callback_fills_buffer(self):
        sink = self._sink(channels=2)
        outdata = np.full((256, 2), 99.0, dtype=np.float32)
        sink.callback(outdata, 256, None, None)

        assert sink.callbacks == 1
        assert sink.frames_written == 256
        assert np.all(np.abs(outdata) <= 1.0)
        np.testing.assert_array_equal(outdata[:, 0], outdata[:, 1])

    def test_callback_counts_status(self, caplog):
        sink = self._sink()
        outdata = np.zeros((64, 1), dtype=np.float32)
        sink.callback(outdata, 64, None, 'output underflow')
        sink.callback(outdata, 64, None, None)
        assert sink.status_events == 1

        with caplog.at_level(logging.WARNING):
            sink.report_status()
            sink.report_status()
        warnings = [r for r in caplog.records if 'output underflow' in r.getMessage()]
        assert len(warnings) == 1

    def test_stop_closes_stream(self):
        sink = self._sink()
        stream = FakeStream()
        sink.stream = stream
        assert sink.active
        sink.stop()
        assert stream.stopped and stream.closed
        assert sink.stream is None
        assert not sink.active

    def test_wait_returns_when_stop_requested(self):
        import threading

        sink = self._sink()
        sink.stream = FakeStream()
        stop = threading.Event()
        stop.set()
        sink.wait(stop, poll_interval=0.01)
        sink.stop()

    def test_invalid_channel_count(self):
        from ersatz_timecode.output.audio_sink import AudioSink

        with pytest.raises(ValueError):
            AudioSink(scheduler=None, channels=0)
