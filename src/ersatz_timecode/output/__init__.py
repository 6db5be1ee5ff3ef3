"""Output adapters - audio stream sink."""

from .audio_sink import AudioSink

__all__ = ['AudioSink']
