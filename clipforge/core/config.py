"""
Centralized configuration for ClipForge.
All magic numbers and default settings in one place.
"""
from dataclasses import dataclass
from enum import Enum

import numpy as np


class FadeCurve(Enum):
    """Fade curve shapes. Calling a member maps progress in [0, 1] to a gain."""
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    LOGARITHMIC = "logarithmic"
    SIGMOID = "sigmoid"

    def __call__(self, progress):
        if self is FadeCurve.EXPONENTIAL:
            return progress ** 2
        if self is FadeCurve.LOGARITHMIC:
            return 1 - (1 - progress) ** 2
        if self is FadeCurve.SIGMOID:
            return 1.0 / (1.0 + np.exp(-10.0 * (progress - 0.5)))
        return progress


class VoiceFilterType(Enum):
    """Voice filter presets."""
    NONE = "none"
    ROBOT = "robot"
    CHIPMUNK = "chipmunk"
    DEEP = "deep"
    ALIEN = "alien"
    TELEPHONE = "telephone"
    RADIO = "radio"


@dataclass(frozen=True, slots=True)
class AudioConfig:
    """Sample format and container configuration."""
    default_samplerate: int = 44100
    bits_per_sample: int = 16
    pcm_positive_scale: float = 32767.0
    pcm_negative_scale: float = 32768.0
    header_size: int = 44
    max_gain: float = 2.0
    default_gain: float = 1.0


@dataclass(frozen=True, slots=True)
class AnalysisConfig:
    """Analyzer windows, thresholds and quality penalties."""
    window_seconds: float = 0.1  # 100ms RMS windows
    snippet_step_seconds: float = 1.0
    snippet_duration: float = 10.0

    waveform_bins: int = 24
    waveform_floor: float = 0.1  # keeps bars visible

    silence_threshold: float = 0.02
    min_silence_duration: float = 0.3
    silence_padding: float = 0.1

    noise_threshold: float = 0.02
    noise_search_factor: float = 1.0  # windows below threshold * factor count as background
    mild_noise_level: float = 0.01

    low_peak: float = 0.3
    hot_peak: float = 0.98
    low_rms: float = 0.1
    clipping_level: float = 0.98
    max_silence_percent: float = 30.0
    max_clipping_percent: float = 0.1

    low_peak_penalty: int = 20
    hot_peak_penalty: int = 15
    low_rms_penalty: int = 15
    excessive_noise_penalty: int = 25
    mild_noise_penalty: int = 10
    silence_penalty: int = 10
    clipping_penalty: int = 20


@dataclass(frozen=True, slots=True)
class EffectsConfig:
    """Default effect parameters."""
    # Normalize
    target_peak: float = 0.95

    # Echo
    echo_delay: float = 0.2
    echo_feedback: float = 0.3
    echo_wet_level: float = 0.5
    echo_generations: int = 3

    # Reverb
    reverb_room_size: float = 0.3
    reverb_damping: float = 0.5
    reverb_wet_level: float = 0.5
    reverb_impulse_seconds: float = 2.0

    # Noise suppression
    noise_strength: float = 0.5
    noise_profile_seconds: float = 0.5
    noise_window: int = 2048
    noise_gate_ratio: float = 3.0

    # Transitions
    transition_duration: float = 0.5

    # Speed limits
    min_speed: float = 0.25
    max_speed: float = 4.0


@dataclass(frozen=True, slots=True)
class MixerConfig:
    """Multi-track mixer settings."""
    limiter_ceiling: float = 0.95
    max_track_gain: float = 2.0


@dataclass(frozen=True, slots=True)
class EnhanceConfig:
    """Auto-enhance decisions."""
    normalize_below_peak: float = 0.7
    noise_strength: float = 0.5
    target_peak: float = 0.95


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Worker pool sizing."""
    max_workers: int | None = None  # None = one per available core
    max_pending: int = 16
    submit_timeout: float | None = None


# Global config instances (immutable singletons)
AUDIO_CONFIG = AudioConfig()
ANALYSIS_CONFIG = AnalysisConfig()
EFFECTS_CONFIG = EffectsConfig()
MIXER_CONFIG = MixerConfig()
ENHANCE_CONFIG = EnhanceConfig()
ENGINE_CONFIG = EngineConfig()
