"""
Basic audio effects for ClipForge.
All functions are pure: they never modify the input buffer and return either
a new AudioBuffer or, for no-op parameters, the input buffer itself.
Every written sample is clamped to [-1, 1].
"""
from __future__ import annotations
import math
from typing import Optional

import numpy as np
from scipy.interpolate import interp1d
from scipy.signal import fftconvolve

from .analysis import find_best_window, rms_level
from .config import EFFECTS_CONFIG, AUDIO_CONFIG, FadeCurve
from .types import AudioArray, AudioBuffer


def _finish(buffer: AudioBuffer, data: AudioArray) -> AudioBuffer:
    """Clamp and wrap processed samples at the source sample rate."""
    return buffer.with_data(np.clip(data, -1.0, 1.0))


def _seconds_to_frames(seconds: float, sample_rate: int) -> int:
    return int(math.floor(seconds * sample_rate))


def apply_trim(
    buffer: AudioBuffer,
    trim_start: float = 0.0,
    trim_end: float = 0.0
) -> AudioBuffer:
    """
    Remove audio from the head and tail.

    Args:
        buffer: Source audio
        trim_start: Seconds to drop from the start
        trim_end: Seconds to drop from the end

    Returns:
        Trimmed audio, or the input when the range is invalid
        (negative values, or nothing would remain)
    """
    if trim_start == 0 and trim_end == 0:
        return buffer

    total = buffer.frame_count
    head = _seconds_to_frames(trim_start, buffer.sample_rate)
    tail = _seconds_to_frames(trim_end, buffer.sample_rate)

    if head < 0 or tail < 0 or head + tail >= total:
        return buffer

    return _finish(buffer, buffer.data[head:total - tail])


def apply_volume(buffer: AudioBuffer, multiplier: float = 1.0) -> AudioBuffer:
    """
    Multiply audio by a gain factor.

    Args:
        buffer: Source audio
        multiplier: Gain (0.0 to 2.0, 1.0 = no change)

    Returns:
        Gained audio, clamped
    """
    if multiplier == 1.0:
        return buffer
    if not 0.0 <= multiplier <= AUDIO_CONFIG.max_gain:
        raise ValueError(f"Volume multiplier must be in [0, {AUDIO_CONFIG.max_gain}], got {multiplier}")
    return _finish(buffer, buffer.data * np.float32(multiplier))


def apply_normalize(
    buffer: AudioBuffer,
    target_peak: float = EFFECTS_CONFIG.target_peak,
    target_rms: Optional[float] = None
) -> AudioBuffer:
    """
    Level the whole clip to a target peak (boosting or cutting).

    When ``target_rms`` is given an RMS gain is computed too and the more
    conservative of the two gains is used.

    Args:
        buffer: Source audio
        target_peak: Target peak amplitude (0.0 to 1.0)
        target_rms: Optional target RMS level (0.0 to 1.0)

    Returns:
        Levelled audio; the input itself for silence or when already at target
    """
    if not 0.0 < target_peak <= 1.0:
        raise ValueError(f"target_peak must be in (0, 1], got {target_peak}")

    peak = buffer.peak
    if peak == 0.0:
        return buffer

    gain = 1.0 if math.isclose(peak, target_peak, abs_tol=1e-6) else target_peak / peak

    if target_rms:
        rms = rms_level(buffer)
        if rms > 0:
            gain = min(gain, target_rms / rms)

    if gain == 1.0:
        return buffer
    return _finish(buffer, buffer.data.astype(np.float64) * gain)


def _fade_gains(fade_len: int, curve: FadeCurve) -> np.ndarray:
    return np.asarray(curve(np.linspace(0, 1, fade_len, dtype=np.float64)), dtype=np.float32)


def apply_fade_in(
    buffer: AudioBuffer,
    duration_frames: int | None = None,
    curve: FadeCurve = FadeCurve.LINEAR
) -> AudioBuffer:
    """
    Apply a fade-in over the first frames.

    Args:
        buffer: Source audio
        duration_frames: Fade duration in frames (None = full length)
        curve: Fade curve shape

    Returns:
        Faded audio
    """
    length = buffer.frame_count
    if length == 0 or duration_frames == 0:
        return buffer

    fade_len = min(duration_frames if duration_frames else length, length)

    fade_curve = np.ones(length, dtype=np.float32)
    fade_curve[:fade_len] = _fade_gains(fade_len, curve)
    return _finish(buffer, buffer.data * fade_curve[:, np.newaxis])


def apply_fade_out(
    buffer: AudioBuffer,
    duration_frames: int | None = None,
    curve: FadeCurve = FadeCurve.LINEAR
) -> AudioBuffer:
    """
    Apply a fade-out over the last frames.

    Args:
        buffer: Source audio
        duration_frames: Fade duration in frames (None = full length)
        curve: Fade curve shape

    Returns:
        Faded audio
    """
    length = buffer.frame_count
    if length == 0 or duration_frames == 0:
        return buffer

    fade_len = min(duration_frames if duration_frames else length, length)

    fade_curve = np.ones(length, dtype=np.float32)
    fade_curve[-fade_len:] = _fade_gains(fade_len, curve)[::-1]
    return _finish(buffer, buffer.data * fade_curve[:, np.newaxis])


def apply_transition(
    buffer: AudioBuffer,
    duration: float = EFFECTS_CONFIG.transition_duration,
    curve: FadeCurve = FadeCurve.EXPONENTIAL
) -> AudioBuffer:
    """
    Smooth the clip edges: fade in at the start and out at the end.

    Frame ``i`` from either edge gets ``curve(i / T)`` where ``T`` is the
    transition length in frames, so the first and last frames are silent.
    """
    length = buffer.frame_count
    transition = _seconds_to_frames(duration, buffer.sample_rate)
    if length == 0 or transition <= 0:
        return buffer

    span = min(transition, length)
    gains = np.asarray(curve(np.arange(span, dtype=np.float64) / transition), dtype=np.float64)

    envelope = np.ones(length, dtype=np.float64)
    envelope[:span] *= gains
    envelope[length - span:] *= gains[::-1]
    return _finish(buffer, buffer.data * envelope[:, np.newaxis])


def apply_resample(
    buffer: AudioBuffer,
    factor: float = 1.0,
    kind: str = 'linear'
) -> AudioBuffer:
    """
    Change speed and pitch together by reading the source at ``factor`` x.

    Output frame ``i`` reads source position ``i * factor``; the result has
    ``ceil(frames / factor)`` frames at the original sample rate.

    Args:
        buffer: Source audio
        factor: Playback rate (>1 = faster/higher, <1 = slower/lower)
        kind: Interpolation type ('linear', 'cubic', 'quadratic')

    Returns:
        Resampled audio data
    """
    if factor <= 0:
        raise ValueError(f"Resample factor must be positive, got {factor}")
    if abs(factor - 1.0) < 0.001:
        return buffer

    length = buffer.frame_count
    if length == 0:
        return buffer

    new_length = int(math.ceil(length / factor))
    if length == 1:
        return _finish(buffer, np.repeat(buffer.data, new_length, axis=0))

    x = np.arange(length, dtype=np.float64)
    x_new = np.minimum(np.arange(new_length, dtype=np.float64) * factor, length - 1)

    f = interp1d(x, buffer.data, kind=kind, axis=0, assume_sorted=True)
    return _finish(buffer, f(x_new))


def apply_pitch_shift(buffer: AudioBuffer, semitones: float = 0.0) -> AudioBuffer:
    """
    Shift pitch by playback-rate scaling.

    ``rate = 2 ** (semitones / 12)``. Duration changes with the pitch; this
    is the playback-rate approximation, not a tempo-independent shift.
    """
    if semitones == 0:
        return buffer
    return apply_resample(buffer, factor=2.0 ** (semitones / 12.0))


def _time_stretch_linear(data: AudioArray, speed: float) -> AudioArray:
    """Read position ``i * speed`` with linear interpolation between neighbours."""
    length = data.shape[0]
    new_length = int(math.ceil(length / speed))

    source = np.arange(new_length, dtype=np.float64) * speed
    index1 = np.minimum(np.floor(source).astype(np.int64), length - 1)
    index2 = np.minimum(index1 + 1, length - 1)
    fraction = (source - index1)[:, np.newaxis]

    src = data.astype(np.float64)
    return src[index1] * (1.0 - fraction) + src[index2] * fraction


def apply_speed_change(
    buffer: AudioBuffer,
    speed: float = 1.0,
    preserve_pitch: bool = False
) -> AudioBuffer:
    """
    Play the clip faster or slower.

    Args:
        buffer: Source audio
        speed: Speed factor (0.5 = half speed, 2.0 = double speed)
        preserve_pitch: Use the linear-interpolation time stretch instead of
            a plain rate change

    Returns:
        Audio lasting ``duration / speed``
    """
    if speed == 1.0:
        return buffer
    if not EFFECTS_CONFIG.min_speed <= speed <= EFFECTS_CONFIG.max_speed:
        raise ValueError(
            f"Speed must be in [{EFFECTS_CONFIG.min_speed}, {EFFECTS_CONFIG.max_speed}], got {speed}"
        )
    if buffer.frame_count == 0:
        return buffer

    if preserve_pitch:
        return _finish(buffer, _time_stretch_linear(buffer.data, speed))
    return apply_resample(buffer, factor=speed)


def apply_echo(
    buffer: AudioBuffer,
    delay: float = EFFECTS_CONFIG.echo_delay,
    feedback: float = EFFECTS_CONFIG.echo_feedback,
    wet_level: float = EFFECTS_CONFIG.echo_wet_level
) -> AudioBuffer:
    """
    Apply a multi-generation echo.

    The dry signal is scaled by ``1 - wet_level`` and a delayed copy scaled
    by ``wet_level`` is added one delay later. Three more generations follow,
    each a ``feedback``-scaled copy of the previous one, one delay further
    on. Every summation is clamped. The output grows by a tail long enough
    to hold the last generation.

    Args:
        buffer: Source audio
        delay: Delay time in seconds (0.1 to 1.0)
        feedback: Per-generation decay (0.0 to 0.9)
        wet_level: Echo level (0.0 to 1.0)

    Returns:
        Audio with echo effect
    """
    if not 0.0 <= feedback < 1.0:
        raise ValueError(f"feedback must be in [0, 1), got {feedback}")
    if not 0.0 <= wet_level <= 1.0:
        raise ValueError(f"wet_level must be in [0, 1], got {wet_level}")

    delay_samples = _seconds_to_frames(delay, buffer.sample_rate)
    length = buffer.frame_count
    if delay_samples <= 0 or wet_level == 0.0 or length == 0:
        return buffer

    generations = EFFECTS_CONFIG.echo_generations
    source = buffer.data.astype(np.float64)
    output = np.zeros((length + (generations + 1) * delay_samples, buffer.num_channels), dtype=np.float64)

    output[:length] = source * (1.0 - wet_level)
    echo = source * wet_level

    for index in range(1, generations + 2):
        start = delay_samples * index
        target = slice(start, start + length)
        output[target] = np.clip(output[target] + echo, -1.0, 1.0)
        echo = echo * feedback

    return _finish(buffer, output)


def build_impulse_response(
    sample_rate: int,
    channels: int,
    room_size: float,
    damping: float,
    seconds: float = EFFECTS_CONFIG.reverb_impulse_seconds,
    seed: int = 0
) -> np.ndarray:
    """
    Synthetic decaying-noise impulse response, shape (frames, channels).

    ``ir[i] = noise * (1 - n) * room_size * (1 - n) ** (damping * 10)`` with
    ``n = i / N``. The noise comes from a seeded generator so the same
    parameters always give the same response.
    """
    length = max(1, int(sample_rate * seconds))
    n = np.arange(length, dtype=np.float64) / length
    envelope = (1.0 - n) * room_size * (1.0 - n) ** (damping * 10.0)

    rng = np.random.default_rng(seed)
    noise = rng.uniform(-1.0, 1.0, size=(length, channels))
    return noise * envelope[:, np.newaxis]


def apply_reverb(
    buffer: AudioBuffer,
    room_size: float = EFFECTS_CONFIG.reverb_room_size,
    damping: float = EFFECTS_CONFIG.reverb_damping,
    wet_level: float = EFFECTS_CONFIG.reverb_wet_level,
    seed: int = 0,
    keep_tail: bool = True
) -> AudioBuffer:
    """
    Convolution reverb with a synthetic impulse response.

    Args:
        buffer: Source audio
        room_size: Room size factor (0.0 to 1.0)
        damping: Decay steepness (0.0 to 1.0)
        wet_level: Reverb level (0.0 = dry, 1.0 = wet)
        seed: Impulse response noise seed
        keep_tail: Keep the reverb tail past the end of the input

    Returns:
        ``dry * (1 - wet_level) + reverb * wet_level``, clamped
    """
    for name, value in (("room_size", room_size), ("damping", damping), ("wet_level", wet_level)):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} must be in [0, 1], got {value}")

    length = buffer.frame_count
    if wet_level == 0.0 or length == 0:
        return buffer

    impulse = build_impulse_response(
        buffer.sample_rate, buffer.num_channels, room_size, damping, seed=seed
    )
    source = buffer.data.astype(np.float64)
    wet = fftconvolve(source, impulse, mode='full', axes=0)

    output = wet * wet_level
    output[:length] += source * (1.0 - wet_level)

    if not keep_tail:
        output = output[:length]
    return _finish(buffer, output)


def extract_snippet(
    buffer: AudioBuffer,
    start: float = 0.0,
    duration: float = 10.0
) -> AudioBuffer:
    """
    Cut a highlight of up to ``duration`` seconds starting at ``start``.

    The start is clamped so it is never later than one second before the end.
    """
    total_duration = buffer.duration_seconds
    start_seconds = max(0.0, min(start, total_duration - 1.0))
    snippet_seconds = max(0.0, min(duration, total_duration - start_seconds))

    first = _seconds_to_frames(start_seconds, buffer.sample_rate)
    count = _seconds_to_frames(snippet_seconds, buffer.sample_rate)
    return _finish(buffer, buffer.data[first:min(first + count, buffer.frame_count)])


def find_best_snippet(
    buffer: AudioBuffer,
    duration: float = 10.0
) -> tuple[float, AudioBuffer]:
    """
    Locate and cut the most active ``duration``-second stretch.

    Returns:
        (start time in seconds, snippet buffer)
    """
    start_frame = find_best_window(buffer, duration)
    count = _seconds_to_frames(min(duration, buffer.duration_seconds), buffer.sample_rate)
    snippet = _finish(buffer, buffer.data[start_frame:start_frame + count])
    return start_frame / buffer.sample_rate, snippet
