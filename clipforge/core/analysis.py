"""
Signal analysis for ClipForge.
Windowed RMS, silence detection, best-window search, waveform summaries and
recording quality scoring. Nothing here modifies a buffer.
"""
from __future__ import annotations
import logging

import numpy as np

from .config import ANALYSIS_CONFIG
from .types import AudioBuffer, MonoArray, QualityMetrics, SilenceRegion

logger = logging.getLogger("ClipForge")


SUGGEST_TOO_QUIET = "Audio is too quiet. Speak closer to the microphone or increase input volume."
SUGGEST_TOO_LOUD = "Audio may be clipping (too loud). Reduce input volume or move away from microphone."
SUGGEST_LOW_RMS = "Average audio level is low. Consider speaking louder or closer to the microphone."
SUGGEST_NOISY = "Background noise detected. Consider recording in a quieter environment or use noise reduction."
SUGGEST_SOME_NOISE = "Some background noise detected. You may want to use noise reduction."
SUGGEST_SILENCE = "Long periods of silence detected. Consider trimming the beginning/end of your recording."
SUGGEST_CLIPPING = "Audio clipping detected. Reduce input volume to prevent distortion."
SUGGEST_UNAVAILABLE = "Unable to analyze audio quality."


def window_size(sample_rate: int, window_seconds: float = ANALYSIS_CONFIG.window_seconds) -> int:
    """Frames per analysis window (at least one)."""
    return max(1, int(sample_rate * window_seconds))


def window_rms(
    samples: MonoArray,
    sample_rate: int,
    window_seconds: float = ANALYSIS_CONFIG.window_seconds
) -> np.ndarray:
    """
    RMS of consecutive non-overlapping windows.

    Only full windows are scored; a trailing partial window is ignored.

    Args:
        samples: Mono samples
        sample_rate: Sample rate
        window_seconds: Window length in seconds

    Returns:
        One RMS value per full window
    """
    window = window_size(sample_rate, window_seconds)
    n_windows = len(samples) // window
    if n_windows == 0:
        return np.zeros(0, dtype=np.float64)
    frames = np.asarray(samples[:n_windows * window], dtype=np.float64).reshape(n_windows, window)
    return np.sqrt(np.mean(frames ** 2, axis=1))


def peak_level(buffer: AudioBuffer) -> float:
    """Absolute peak across all channels."""
    return buffer.peak


def rms_level(buffer: AudioBuffer) -> float:
    """RMS across all channels."""
    if buffer.data.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(buffer.data.astype(np.float64) ** 2)))


def detect_silence(
    buffer: AudioBuffer,
    threshold: float = ANALYSIS_CONFIG.silence_threshold,
    min_silence_duration: float = ANALYSIS_CONFIG.min_silence_duration,
    padding: float = ANALYSIS_CONFIG.silence_padding
) -> list[SilenceRegion]:
    """
    Find silent stretches on the first channel.

    A run of consecutive windows with RMS below ``threshold`` becomes a
    region when it lasts at least ``min_silence_duration`` seconds. Regions
    are widened by ``padding`` seconds on both sides (clamped to the buffer)
    and merged where the padding makes them touch.

    Returns:
        Ordered, non-overlapping half-open regions
    """
    total = buffer.frame_count
    if total == 0 or buffer.num_channels == 0 or buffer.sample_rate <= 0:
        return []

    sr = buffer.sample_rate
    window = window_size(sr)
    rms = window_rms(buffer.channel(0), sr)
    pad = max(0, int(padding * sr))

    regions: list[SilenceRegion] = []

    def close_run(start: int, end: int) -> None:
        if (end - start) / sr < min_silence_duration:
            return
        region = SilenceRegion(max(0, start - pad), min(total, end + pad))
        if regions and region.start_frame <= regions[-1].end_frame:
            last = regions.pop()
            region = SilenceRegion(last.start_frame, max(last.end_frame, region.end_frame))
        regions.append(region)

    run_start = None
    for index, value in enumerate(rms):
        position = index * window
        if value < threshold:
            if run_start is None:
                run_start = position
        elif run_start is not None:
            close_run(run_start, position)
            run_start = None

    # A run that reaches the last window covers the tail of the buffer
    if run_start is not None:
        close_run(run_start, total)

    logger.debug("Detected %d silence regions", len(regions))
    return regions


def find_best_window(
    buffer: AudioBuffer,
    duration: float = ANALYSIS_CONFIG.snippet_duration,
    step_seconds: float = ANALYSIS_CONFIG.snippet_step_seconds
) -> int:
    """
    Start frame of the most active ``duration``-second window.

    Candidate windows start every ``step_seconds``; the score is the mean
    absolute sample value across all channels. The earliest window wins ties.
    """
    total = buffer.frame_count
    sr = buffer.sample_rate
    if total == 0 or sr <= 0:
        return 0

    window = min(total, int(min(duration, buffer.duration_seconds) * sr))
    if window <= 0:
        return 0
    step = max(1, int(step_seconds * sr))

    magnitude = np.abs(buffer.data.astype(np.float64))
    best_start = 0
    best_score = -1.0
    for start in range(0, total - window + 1, step):
        score = float(np.mean(magnitude[start:start + window]))
        if score > best_score:
            best_start, best_score = start, score
    return best_start


def waveform(buffer: AudioBuffer, bins: int = ANALYSIS_CONFIG.waveform_bins) -> list[float]:
    """
    Bar heights for a clip thumbnail.

    The first channel is cut into ``bins`` equal segments; each bar is twice
    the segment's mean magnitude, clamped to [0.1, 1] so silent bars stay
    visible.
    """
    if bins <= 0:
        raise ValueError(f"bins must be positive, got {bins}")

    floor = ANALYSIS_CONFIG.waveform_floor
    if buffer.frame_count == 0 or buffer.num_channels == 0:
        return [floor] * bins

    magnitude = np.abs(buffer.channel(0).astype(np.float64))
    per_bin = len(magnitude) // bins
    if per_bin > 0:
        means = magnitude[:per_bin * bins].reshape(bins, per_bin).mean(axis=1)
    else:
        # Fewer samples than bins
        means = np.array([seg.mean() if seg.size else 0.0 for seg in np.array_split(magnitude, bins)])

    return [float(v) for v in np.clip(means * 2.0, floor, 1.0)]


def detect_background_noise(
    buffer: AudioBuffer,
    threshold: float = ANALYSIS_CONFIG.noise_threshold,
    search_factor: float = ANALYSIS_CONFIG.noise_search_factor
) -> tuple[float, bool]:
    """
    Estimate the noise floor of a recording.

    The floor is the mean RMS of the background windows, those with RMS
    below ``threshold * search_factor``. With the default factor of 1 only
    windows under the threshold count, so quiet speech is never scored as
    noise. Raise the factor to measure a steady hiss that sits above the
    threshold. A clip with no background window has a floor of 0.

    Returns:
        (noise_floor, has_excessive_noise)
    """
    if buffer.frame_count == 0 or buffer.num_channels == 0:
        return 0.0, False

    rms = window_rms(buffer.channel(0), buffer.sample_rate)
    background = rms[rms < threshold * search_factor]
    if background.size == 0:
        return 0.0, False

    noise_floor = float(background.mean())
    return noise_floor, noise_floor > threshold * 2


def silence_percentage(
    buffer: AudioBuffer,
    threshold: float = ANALYSIS_CONFIG.silence_threshold
) -> float:
    """Share of the first channel (in percent) spent in silent windows."""
    if buffer.frame_count == 0 or buffer.sample_rate <= 0:
        return 0.0
    rms = window_rms(buffer.channel(0), buffer.sample_rate)
    silent_frames = int(np.count_nonzero(rms < threshold)) * window_size(buffer.sample_rate)
    return silent_frames / buffer.frame_count * 100.0


def analyze_quality(
    buffer: AudioBuffer,
    noise_search_factor: float = ANALYSIS_CONFIG.noise_search_factor
) -> QualityMetrics:
    """
    Score a recording from 0 to 100 and collect suggestions.

    Every detected problem subtracts a fixed penalty and appends one
    human-readable suggestion. ``noise_search_factor`` widens the band of
    windows treated as background noise (see detect_background_noise).
    """
    cfg = ANALYSIS_CONFIG

    if buffer.frame_count == 0 or buffer.num_channels == 0 or buffer.sample_rate <= 0:
        logger.warning("Quality analysis skipped: empty buffer")
        return QualityMetrics(
            peak=0.5,
            rms=0.3,
            noise_floor=0.0,
            has_excessive_noise=False,
            suggestions=(SUGGEST_UNAVAILABLE,),
            score=50,
        )

    samples = buffer.channel(0).astype(np.float64)
    magnitude = np.abs(samples)
    peak = float(magnitude.max())
    rms = float(np.sqrt(np.mean(samples ** 2)))

    suggestions: list[str] = []
    score = 100

    if peak < cfg.low_peak:
        suggestions.append(SUGGEST_TOO_QUIET)
        score -= cfg.low_peak_penalty
    elif peak > cfg.hot_peak:
        suggestions.append(SUGGEST_TOO_LOUD)
        score -= cfg.hot_peak_penalty

    if rms < cfg.low_rms:
        suggestions.append(SUGGEST_LOW_RMS)
        score -= cfg.low_rms_penalty

    noise_floor, has_excessive_noise = detect_background_noise(
        buffer, cfg.noise_threshold, noise_search_factor
    )
    if has_excessive_noise:
        suggestions.append(SUGGEST_NOISY)
        score -= cfg.excessive_noise_penalty
    elif noise_floor > cfg.mild_noise_level:
        suggestions.append(SUGGEST_SOME_NOISE)
        score -= cfg.mild_noise_penalty

    if silence_percentage(buffer) > cfg.max_silence_percent:
        suggestions.append(SUGGEST_SILENCE)
        score -= cfg.silence_penalty

    clipping_percent = np.count_nonzero(magnitude >= cfg.clipping_level) / len(magnitude) * 100.0
    if clipping_percent > cfg.max_clipping_percent:
        suggestions.append(SUGGEST_CLIPPING)
        score -= cfg.clipping_penalty

    return QualityMetrics(
        peak=min(peak, 1.0),
        rms=min(rms, 1.0),
        noise_floor=min(noise_floor, 1.0),
        has_excessive_noise=has_excessive_noise,
        suggestions=tuple(suggestions),
        score=int(max(0, min(100, score))),
    )
