"""
Pipeline orchestration for ClipForge.
Runs ordered effect sequences, the automatic enhancement pass and builds the
effect metadata record stored alongside a clip.
"""
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, field
from typing import Optional, Sequence

from .analysis import analyze_quality
from .config import ANALYSIS_CONFIG, ENHANCE_CONFIG, VoiceFilterType
from .effects import (
    EffectRequest, Echo, NoiseSuppress, Normalize, PitchShift, Reverb,
    SilenceRemove, SpeedChange, Trim, VoiceFilter, apply_effect
)
from .errors import PipelineCancelled, TransformFailure
from .types import AudioBuffer, EffectMetadata, ProgressCallback

logger = logging.getLogger("ClipForge")


class CancellationToken:
    """Cooperative cancellation flag, checked between pipeline stages."""
    __slots__ = ('_event',)

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(slots=True)
class PipelineResult:
    """Outcome of a pipeline run."""
    buffer: AudioBuffer
    applied: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


def run_pipeline(
    buffer: AudioBuffer,
    requests: Sequence[EffectRequest],
    *,
    strict: bool = False,
    cancel_token: Optional[CancellationToken] = None,
    progress: Optional[ProgressCallback] = None
) -> PipelineResult:
    """
    Apply effect requests in order.

    In best-effort mode a failing stage is logged and its input flows on to
    the next stage. In strict mode the first failure raises.

    Args:
        buffer: Source audio
        requests: Effects to apply, in order
        strict: Raise TransformFailure on the first failing stage
        cancel_token: Checked before each stage
        progress: Called with (stage, total, effect name) before each stage

    Returns:
        PipelineResult with the final buffer

    Raises:
        TransformFailure: a stage failed in strict mode
        PipelineCancelled: the token was cancelled
    """
    result = PipelineResult(buffer)
    total = len(requests)

    for index, request in enumerate(requests):
        if cancel_token is not None and cancel_token.cancelled:
            logger.info(f"Pipeline cancelled at stage {index}/{total}")
            raise PipelineCancelled(index, total)

        if progress:
            progress(index, total, request.effect)

        # Run strictly so a failure can be told apart from a no-op
        try:
            result.buffer = apply_effect(result.buffer, request, strict=True)
            result.applied.append(request.effect)
        except TransformFailure as e:
            if strict:
                raise
            logger.error(f"Pipeline stage skipped: {e}", exc_info=True)
            result.failed.append(request.effect)

    if progress:
        progress(total, total, "done")

    logger.debug(f"Pipeline finished: applied={result.applied} failed={result.failed}")
    return result


def auto_enhance(
    buffer: AudioBuffer,
    reduce_noise: bool = True,
    normalize: bool = True,
    target_peak: float = ENHANCE_CONFIG.target_peak,
    noise_search_factor: float = ANALYSIS_CONFIG.noise_search_factor
) -> AudioBuffer:
    """
    One-shot cleanup driven by quality analysis.

    Noise suppression runs when the recording has excessive background
    noise; normalization runs when the peak is below 0.7. Each step falls
    back to its input on failure. ``noise_search_factor`` is passed to the
    noise-floor estimate.
    """
    metrics = analyze_quality(buffer, noise_search_factor)
    processed = buffer

    if reduce_noise and metrics.has_excessive_noise:
        logger.info("Auto-enhance: reducing background noise")
        processed = apply_effect(processed, NoiseSuppress(strength=ENHANCE_CONFIG.noise_strength))

    if normalize and metrics.peak < ENHANCE_CONFIG.normalize_below_peak:
        logger.info("Auto-enhance: normalizing level")
        processed = apply_effect(processed, Normalize(target_peak=target_peak))

    return processed


def describe_effects(requests: Sequence[EffectRequest]) -> Optional[EffectMetadata]:
    """
    JSON-ready summary of the requested effects.

    The ``pitch``, ``reverb``, ``echo`` and ``modulation`` keys are always
    present (``None`` when not requested). Other effects add their own key
    only when requested. Returns None for an empty request list.
    """
    if not requests:
        return None

    metadata: EffectMetadata = {"pitch": None, "reverb": None, "echo": None, "modulation": None}

    for request in requests:
        if isinstance(request, PitchShift):
            metadata["pitch"] = {"value": request.semitones, "enabled": True}
        elif isinstance(request, Reverb):
            metadata["reverb"] = {
                "room_size": request.room_size,
                "damping": request.damping,
                "wet_level": request.wet_level,
                "enabled": True,
            }
        elif isinstance(request, Echo):
            metadata["echo"] = {
                "delay": request.delay,
                "feedback": request.feedback,
                "wet_level": request.wet_level,
                "enabled": True,
            }
        elif isinstance(request, VoiceFilter):
            filter_type = VoiceFilterType(request.filter_type)
            if filter_type is not VoiceFilterType.NONE:
                metadata["modulation"] = {
                    "type": filter_type.value,
                    "intensity": request.intensity,
                    "enabled": True,
                }
        elif isinstance(request, SpeedChange):
            metadata["speed"] = {"value": request.speed, "preserve_pitch": request.preserve_pitch}
        elif isinstance(request, NoiseSuppress):
            metadata["noise_reduction"] = {"strength": request.strength}
        elif isinstance(request, SilenceRemove):
            metadata["silence_removed"] = True
        elif isinstance(request, Normalize):
            metadata["normalized"] = {"target_peak": request.target_peak}
        elif isinstance(request, Trim):
            metadata["trim"] = {"start": request.trim_start, "end": request.trim_end}

    return metadata
