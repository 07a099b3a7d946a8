"""
Multi-track mixer for ClipForge.
Layers tracks on a shared timeline with per-track gain and fade envelopes.
"""
from __future__ import annotations
import logging

import numpy as np

from .codec import resample_buffer
from .config import MIXER_CONFIG
from .track import Track
from .types import AudioArray, AudioBuffer

logger = logging.getLogger("ClipForge")


def track_envelope(track: Track, length: int) -> np.ndarray:
    """
    Per-frame gain for a track: ``gain * fade_in(i) * fade_out(i)``.

    The fade-in ramps ``i / F_in`` over the first ``F_in`` frames and the
    fade-out ramps ``(L - i) / F_out`` over frames past ``L - F_out``.
    """
    envelope = np.full(length, track.gain, dtype=np.float64)
    index = np.arange(length, dtype=np.float64)

    if track.fade_in_frames > 0:
        head = index < track.fade_in_frames
        envelope[head] *= index[head] / track.fade_in_frames

    if track.fade_out_frames > 0:
        tail = index > length - track.fade_out_frames
        envelope[tail] *= (length - index[tail]) / track.fade_out_frames

    return envelope


def map_channels(data: AudioArray, channels: int) -> AudioArray:
    """Widen to ``channels``; missing outputs reuse the last source channel."""
    source_channels = data.shape[1]
    if source_channels == channels:
        return data
    mapping = [min(ch, source_channels - 1) for ch in range(channels)]
    return data[:, mapping]


def _conform_track(track: Track, sample_rate: int) -> Track:
    """Resample a track to ``sample_rate``, rescaling its frame positions to match."""
    buffer = track.buffer
    if buffer.sample_rate == sample_rate:
        return track

    logger.debug(f"Resampling track from {buffer.sample_rate} Hz to {sample_rate} Hz")
    ratio = sample_rate / buffer.sample_rate
    return Track(
        resample_buffer(buffer, sample_rate),
        track.gain,
        round(track.start_offset_frames * ratio),
        round(track.fade_in_frames * ratio),
        round(track.fade_out_frames * ratio),
    )


def mix(tracks: list[Track]) -> AudioBuffer:
    """
    Mix tracks into one buffer.

    The output uses the first track's sample rate (other tracks are
    resampled) and the widest track's channel count. Each track is summed
    at its start offset with clamping after every addition; a final limiter
    scales the mix down when its peak exceeds the configured ceiling.

    Raises:
        ValueError: if no tracks are given
    """
    if not tracks:
        raise ValueError("No tracks provided")

    sample_rate = tracks[0].buffer.sample_rate
    channels = max(t.buffer.num_channels for t in tracks)
    if channels == 0:
        raise ValueError("Tracks have no channels")

    prepared = [_conform_track(track, sample_rate) for track in tracks]

    total = max(track.end_frame for track in prepared)
    master = np.zeros((total, channels), dtype=np.float64)

    for track in prepared:
        buffer = track.buffer
        length = buffer.frame_count
        if length == 0 or buffer.num_channels == 0:
            continue
        data = map_channels(buffer.data.astype(np.float64), channels)
        start = track.start_offset_frames
        weighted = data * track_envelope(track, length)[:, np.newaxis]
        master[start:start + length] = np.clip(master[start:start + length] + weighted, -1.0, 1.0)

    peak = float(np.max(np.abs(master))) if master.size else 0.0
    ceiling = MIXER_CONFIG.limiter_ceiling
    if peak > ceiling:
        master *= ceiling / peak

    logger.info(f"Mixed {len(tracks)} tracks ({total} frames, {channels} ch)")
    return AudioBuffer(master, sample_rate)
