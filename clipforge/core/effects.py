"""
Effect requests and dispatch for ClipForge.

Each request is a frozen record naming one effect and its parameters.
apply_effect() is the fail-soft boundary: a failing effect is logged and the
input buffer comes back unchanged, unless strict mode is requested.
"""
from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Optional

from . import effects_basic, effects_vocal
from .config import ANALYSIS_CONFIG, EFFECTS_CONFIG, FadeCurve, VoiceFilterType
from .errors import TransformFailure
from .types import AudioBuffer, EffectFunc, TransformResult
from clipforge.utils.logger import logger


@dataclass(frozen=True, slots=True)
class EffectRequest:
    """Base class for effect requests."""
    effect: ClassVar[str] = ""

    def params(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True, slots=True)
class Trim(EffectRequest):
    effect: ClassVar[str] = "trim"
    trim_start: float = 0.0
    trim_end: float = 0.0


@dataclass(frozen=True, slots=True)
class Normalize(EffectRequest):
    effect: ClassVar[str] = "normalize"
    target_peak: float = EFFECTS_CONFIG.target_peak
    target_rms: Optional[float] = None


@dataclass(frozen=True, slots=True)
class PitchShift(EffectRequest):
    effect: ClassVar[str] = "pitch_shift"
    semitones: float = 0.0


@dataclass(frozen=True, slots=True)
class SpeedChange(EffectRequest):
    effect: ClassVar[str] = "speed_change"
    speed: float = 1.0
    preserve_pitch: bool = False


@dataclass(frozen=True, slots=True)
class Echo(EffectRequest):
    effect: ClassVar[str] = "echo"
    delay: float = EFFECTS_CONFIG.echo_delay
    feedback: float = EFFECTS_CONFIG.echo_feedback
    wet_level: float = EFFECTS_CONFIG.echo_wet_level


@dataclass(frozen=True, slots=True)
class Reverb(EffectRequest):
    effect: ClassVar[str] = "reverb"
    room_size: float = EFFECTS_CONFIG.reverb_room_size
    damping: float = EFFECTS_CONFIG.reverb_damping
    wet_level: float = EFFECTS_CONFIG.reverb_wet_level
    seed: int = 0


@dataclass(frozen=True, slots=True)
class VoiceFilter(EffectRequest):
    effect: ClassVar[str] = "voice_filter"
    filter_type: VoiceFilterType = VoiceFilterType.NONE
    intensity: float = 0.5


@dataclass(frozen=True, slots=True)
class NoiseSuppress(EffectRequest):
    effect: ClassVar[str] = "noise_suppression"
    strength: float = EFFECTS_CONFIG.noise_strength


@dataclass(frozen=True, slots=True)
class SilenceRemove(EffectRequest):
    effect: ClassVar[str] = "silence_removal"
    threshold: float = ANALYSIS_CONFIG.silence_threshold
    min_silence_duration: float = ANALYSIS_CONFIG.min_silence_duration
    padding: float = ANALYSIS_CONFIG.silence_padding


@dataclass(frozen=True, slots=True)
class Volume(EffectRequest):
    effect: ClassVar[str] = "volume"
    multiplier: float = 1.0


@dataclass(frozen=True, slots=True)
class Transition(EffectRequest):
    effect: ClassVar[str] = "transition"
    duration: float = EFFECTS_CONFIG.transition_duration
    curve: FadeCurve = FadeCurve.EXPONENTIAL


EFFECT_REGISTRY: dict[str, EffectFunc] = {
    "trim": effects_basic.apply_trim,
    "normalize": effects_basic.apply_normalize,
    "pitch_shift": effects_basic.apply_pitch_shift,
    "speed_change": effects_basic.apply_speed_change,
    "echo": effects_basic.apply_echo,
    "reverb": effects_basic.apply_reverb,
    "volume": effects_basic.apply_volume,
    "transition": effects_basic.apply_transition,
    "voice_filter": effects_vocal.apply_voice_filter,
    "noise_suppression": effects_vocal.apply_noise_suppression,
    "silence_removal": effects_vocal.apply_silence_removal,
}


def apply_effect(
    buffer: AudioBuffer,
    request: EffectRequest,
    strict: bool = False
) -> AudioBuffer:
    """
    Run one effect request against a buffer.

    Args:
        buffer: Source audio
        request: Effect and parameters
        strict: Raise TransformFailure instead of falling back

    Returns:
        The transformed buffer, or the input buffer when the effect failed
        in best-effort mode
    """
    try:
        effect_func = EFFECT_REGISTRY[request.effect]
        return effect_func(buffer, **request.params())
    except Exception as e:
        if strict:
            raise TransformFailure(request.effect, e) from e
        logger.error(f"Effect error ({request.effect}): {e}", exc_info=True)
        return buffer


def try_effect(buffer: AudioBuffer, request: EffectRequest) -> TransformResult:
    """Strictly apply an effect and report the outcome instead of raising."""
    try:
        return TransformResult(True, buffer=apply_effect(buffer, request, strict=True))
    except TransformFailure as e:
        return TransformResult(False, error=str(e))
