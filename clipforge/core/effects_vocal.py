"""
Voice processing effects for ClipForge.
Includes voice filter presets, noise suppression and silence removal.
All functions are pure and operate on AudioBuffer values.
"""
from __future__ import annotations
import logging
import math

import numpy as np
from scipy.signal import lfilter

from .analysis import detect_silence
from .config import ANALYSIS_CONFIG, EFFECTS_CONFIG, VoiceFilterType
from .effects_basic import apply_resample
from .types import AudioArray, AudioBuffer

logger = logging.getLogger("ClipForge")


def _biquad(data: AudioArray, b: np.ndarray, a: np.ndarray) -> AudioArray:
    return np.clip(lfilter(b, a, data.astype(np.float64), axis=0), -1.0, 1.0)


def _check_frequency(frequency: float, sr: int) -> float:
    if not 0.0 < frequency < sr / 2:
        raise ValueError(f"Filter frequency {frequency} Hz outside (0, {sr / 2}) Hz")
    return 2 * math.pi * frequency / sr


def apply_bandpass_biquad(
    buffer: AudioBuffer,
    frequency: float = 1000.0,
    Q: float = 1.0
) -> AudioBuffer:
    """
    Second-order band-pass (constant 0 dB peak gain).

    Args:
        buffer: Source audio
        frequency: Center frequency in Hz
        Q: Q factor (bandwidth control)

    Returns:
        Filtered audio
    """
    omega = _check_frequency(frequency, buffer.sample_rate)
    sn = math.sin(omega)
    cs = math.cos(omega)
    alpha = sn / (2 * Q)

    b0 = alpha
    b1 = 0.0
    b2 = -alpha
    a0 = 1 + alpha
    a1 = -2 * cs
    a2 = 1 - alpha

    b = np.array([b0, b1, b2]) / a0
    a = np.array([a0, a1, a2]) / a0

    return buffer.with_data(_biquad(buffer.data, b, a))


def apply_highpass_biquad(
    buffer: AudioBuffer,
    frequency: float = 500.0,
    Q: float = 0.707
) -> AudioBuffer:
    """
    Second-order resonant high-pass.

    Args:
        buffer: Source audio
        frequency: Cutoff frequency in Hz
        Q: Resonance at the cutoff

    Returns:
        Filtered audio
    """
    omega = _check_frequency(frequency, buffer.sample_rate)
    sn = math.sin(omega)
    cs = math.cos(omega)
    alpha = sn / (2 * Q)

    b0 = (1 + cs) / 2
    b1 = -(1 + cs)
    b2 = (1 + cs) / 2
    a0 = 1 + alpha
    a1 = -2 * cs
    a2 = 1 - alpha

    b = np.array([b0, b1, b2]) / a0
    a = np.array([a0, a1, a2]) / a0

    return buffer.with_data(_biquad(buffer.data, b, a))


def _rate_preset(buffer: AudioBuffer, rate: float) -> AudioBuffer:
    """Play back at ``rate``, padded or cut to the input length."""
    shifted = apply_resample(buffer, factor=rate)
    keep = min(shifted.frame_count, buffer.frame_count)
    data = np.zeros_like(buffer.data)
    data[:keep] = shifted.data[:keep]
    return buffer.with_data(data)


def apply_voice_filter(
    buffer: AudioBuffer,
    filter_type: VoiceFilterType | str = VoiceFilterType.NONE,
    intensity: float = 0.5
) -> AudioBuffer:
    """
    Apply a character voice preset.

    | preset    | processing                                 |
    |-----------|--------------------------------------------|
    | robot     | band-pass at 1000 + 500*i Hz, Q 10         |
    | chipmunk  | playback rate 1 + 0.5*i                    |
    | deep      | playback rate 1 - 0.3*i                    |
    | alien     | high-pass at 500 + 1000*i Hz, Q 5          |
    | telephone | band-pass at 2000 Hz, Q 1                  |
    | radio     | band-pass at 1500 Hz, Q 2                  |

    The rate presets keep the clip duration: a faster rate ends in silence
    and a slower one is cut at the original length.

    Args:
        buffer: Source audio
        filter_type: Preset name or VoiceFilterType
        intensity: Preset strength (0.0 to 1.0)

    Returns:
        Filtered audio; the input for ``none`` or zero intensity
    """
    filter_type = VoiceFilterType(filter_type)
    if filter_type is VoiceFilterType.NONE or intensity == 0:
        return buffer
    if not 0.0 <= intensity <= 1.0:
        raise ValueError(f"intensity must be in [0, 1], got {intensity}")

    logger.debug("Voice filter %s (intensity=%.2f)", filter_type.value, intensity)

    if filter_type is VoiceFilterType.ROBOT:
        return apply_bandpass_biquad(buffer, frequency=1000 + intensity * 500, Q=10)
    if filter_type is VoiceFilterType.CHIPMUNK:
        return _rate_preset(buffer, 1.0 + intensity * 0.5)
    if filter_type is VoiceFilterType.DEEP:
        return _rate_preset(buffer, 1.0 - intensity * 0.3)
    if filter_type is VoiceFilterType.ALIEN:
        return apply_highpass_biquad(buffer, frequency=500 + intensity * 1000, Q=5)
    if filter_type is VoiceFilterType.TELEPHONE:
        return apply_bandpass_biquad(buffer, frequency=2000, Q=1)
    # Radio
    return apply_bandpass_biquad(buffer, frequency=1500, Q=2)


def estimate_noise_level(
    samples: np.ndarray,
    sr: int,
    profile_seconds: float = EFFECTS_CONFIG.noise_profile_seconds
) -> float:
    """RMS of the leading ``profile_seconds`` of a channel."""
    head = samples[:int(sr * profile_seconds)]
    if head.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(head.astype(np.float64) ** 2)))


def apply_noise_suppression(
    buffer: AudioBuffer,
    strength: float = EFFECTS_CONFIG.noise_strength
) -> AudioBuffer:
    """
    Attenuate quiet samples relative to a per-channel noise estimate.

    The noise level is the RMS of the channel's leading half second. Samples
    with ``|x| < 3 * noise`` are scaled by
    ``1 - strength * (1 - |x| / (3 * noise))``; louder samples pass through.

    Args:
        buffer: Source audio
        strength: Reduction strength (0.0 to 1.0)

    Returns:
        Denoised audio; the input when there is nothing to suppress
    """
    if not 0.0 <= strength <= 1.0:
        raise ValueError(f"strength must be in [0, 1], got {strength}")
    if strength == 0 or buffer.frame_count == 0:
        return buffer

    window = EFFECTS_CONFIG.noise_window
    ratio = EFFECTS_CONFIG.noise_gate_ratio
    output = buffer.data.astype(np.float64)
    changed = False

    for ch in range(buffer.num_channels):
        noise_level = estimate_noise_level(output[:, ch], buffer.sample_rate)
        if noise_level <= 0:
            continue
        gate = noise_level * ratio
        changed = True

        for start in range(0, buffer.frame_count, window):
            block = output[start:start + window, ch]
            magnitude = np.abs(block)
            quiet = magnitude < gate
            block[quiet] *= 1.0 - strength * (1.0 - magnitude[quiet] / gate)

    if not changed:
        return buffer
    return buffer.with_data(np.clip(output, -1.0, 1.0))


def apply_silence_removal(
    buffer: AudioBuffer,
    threshold: float = ANALYSIS_CONFIG.silence_threshold,
    min_silence_duration: float = ANALYSIS_CONFIG.min_silence_duration,
    padding: float = ANALYSIS_CONFIG.silence_padding
) -> AudioBuffer:
    """
    Cut detected silent regions out of the clip.

    Args:
        buffer: Source audio
        threshold: RMS level below which a window is silent
        min_silence_duration: Shortest silence that gets removed (seconds)
        padding: Seconds added around each silent region

    Returns:
        Audio with silence removed; the input when nothing (or everything)
        is silent
    """
    regions = detect_silence(buffer, threshold, min_silence_duration, padding)
    if not regions:
        return buffer

    # Regions are ordered and disjoint, so the kept spans are the gaps
    kept: list[np.ndarray] = []
    cursor = 0
    for region in regions:
        if region.start_frame > cursor:
            kept.append(buffer.data[cursor:region.start_frame])
        cursor = max(cursor, region.end_frame)
    if cursor < buffer.frame_count:
        kept.append(buffer.data[cursor:])

    if not kept:
        logger.info("Silence removal skipped: entire clip is silent")
        return buffer

    removed = buffer.frame_count - sum(len(span) for span in kept)
    logger.debug("Removed %d silent frames in %d regions", removed, len(regions))
    return buffer.with_data(np.clip(np.concatenate(kept, axis=0), -1.0, 1.0))
