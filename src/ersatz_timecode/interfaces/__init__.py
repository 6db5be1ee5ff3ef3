"""Data contracts shared by the encoder, scheduler and audio sink."""

from .synthesis_state import Station, StationProfile, SynthesisState

__all__ = ['Station', 'StationProfile', 'SynthesisState']
