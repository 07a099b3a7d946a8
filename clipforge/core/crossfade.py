"""
Crossfade compositor for ClipForge.
Joins two clips so the end of the first overlaps the start of the second.
"""
from __future__ import annotations
import logging
import math

import numpy as np

from .codec import resample_buffer
from .config import FadeCurve
from .mixer import map_channels
from .types import AudioBuffer

logger = logging.getLogger("ClipForge")


def crossfade(
    first: AudioBuffer,
    second: AudioBuffer,
    duration: float,
    curve: FadeCurve = FadeCurve.LINEAR
) -> AudioBuffer:
    """
    Crossfade ``first`` into ``second``.

    The overlap is ``floor(duration * sr)`` frames, clamped to the shorter
    clip. Over the overlap the first clip is scaled by ``1 - curve(p)`` and
    the second by ``curve(p)``; the sum is clamped.

    Args:
        first: Outgoing clip (its sample rate is used for the result)
        second: Incoming clip
        duration: Overlap in seconds
        curve: Fade curve shape

    Returns:
        A buffer of ``len(first) + len(second) - overlap`` frames

    Raises:
        ValueError: on a negative duration
    """
    if duration < 0:
        raise ValueError(f"Crossfade duration must be non-negative, got {duration}")

    sample_rate = first.sample_rate
    if second.sample_rate != sample_rate:
        second = resample_buffer(second, sample_rate)

    len_a, len_b = first.frame_count, second.frame_count
    fade = int(math.floor(duration * sample_rate))
    if fade > min(len_a, len_b):
        logger.warning(f"Crossfade of {fade} frames exceeds clip length, clamped to {min(len_a, len_b)}")
        fade = min(len_a, len_b)

    channels = max(first.num_channels, second.num_channels)
    a = map_channels(first.data.astype(np.float64), channels)
    b = map_channels(second.data.astype(np.float64), channels)

    output = np.zeros((len_a + len_b - fade, channels), dtype=np.float64)
    output[:len_a] = a

    offset = len_a - fade
    if fade > 0:
        progress = np.arange(fade, dtype=np.float64) / fade
        gains = np.asarray(curve(progress), dtype=np.float64)[:, np.newaxis]
        output[offset:len_a] *= 1.0 - gains
        output[offset:len_a] += b[:fade] * gains
    output[len_a:] = b[fade:]

    return AudioBuffer(np.clip(output, -1.0, 1.0), sample_rate)
