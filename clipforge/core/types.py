"""
Type definitions for the ClipForge core module.
Provides type aliases and value types shared by the codec, analyzer and effects.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

import numpy as np
from numpy.typing import NDArray

# Audio data types
AudioArray = NDArray[np.float32]  # Shape: (frames, channels)
MonoArray = NDArray[np.float32]   # Shape: (frames,)

# Callback types
ProgressCallback = Callable[[int, int, str], None]  # (current, total, status)

# JSON-ready effect metadata
EffectMetadata = dict[str, Any]


class AudioBuffer:
    """
    Decoded PCM audio: float32 samples shaped (frames, channels).

    The sample array is copied on construction and made read-only, so a
    transformed buffer can never share writable memory with its source.
    """
    __slots__ = ('_data', 'sample_rate')

    def __init__(self, data: Any, sample_rate: int):
        arr = np.array(data, dtype=np.float32)
        if arr.ndim == 1:
            arr = arr[:, np.newaxis]
        arr.setflags(write=False)
        self._data = arr
        self.sample_rate = int(sample_rate)

    @classmethod
    def from_channels(cls, channels: list[Any], sample_rate: int) -> "AudioBuffer":
        """Build from a list of equally sized per-channel arrays."""
        lengths = {len(ch) for ch in channels}
        if len(lengths) > 1:
            raise ValueError(f"Channels differ in length: {sorted(lengths)}")
        if not channels:
            return cls(np.zeros((0, 0), dtype=np.float32), sample_rate)
        return cls(np.column_stack([np.asarray(ch, dtype=np.float32) for ch in channels]), sample_rate)

    @classmethod
    def silence(cls, frames: int, sample_rate: int, channels: int = 1) -> "AudioBuffer":
        return cls(np.zeros((frames, channels), dtype=np.float32), sample_rate)

    @property
    def data(self) -> AudioArray:
        return self._data

    @property
    def frame_count(self) -> int:
        return self._data.shape[0]

    @property
    def num_channels(self) -> int:
        return self._data.shape[1] if self._data.ndim == 2 else 0

    @property
    def duration_seconds(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.frame_count / self.sample_rate

    @property
    def peak(self) -> float:
        """Global absolute peak across all channels."""
        if self._data.size == 0:
            return 0.0
        return float(np.max(np.abs(self._data)))

    def channel(self, index: int) -> MonoArray:
        return self._data[:, index]

    def channels(self) -> list[MonoArray]:
        return [self._data[:, ch] for ch in range(self.num_channels)]

    def with_data(self, data: Any) -> "AudioBuffer":
        """New buffer at the same sample rate."""
        return AudioBuffer(data, self.sample_rate)

    def __len__(self) -> int:
        return self.frame_count

    def __repr__(self) -> str:
        return (f"AudioBuffer(channels={self.num_channels}, frames={self.frame_count}, "
                f"sample_rate={self.sample_rate}, duration={self.duration_seconds:.2f}s)")


class EffectFunc(Protocol):
    """Protocol for effect functions that transform a buffer."""
    def __call__(self, buffer: AudioBuffer, **kwargs: Any) -> AudioBuffer: ...


@dataclass(frozen=True, slots=True)
class SilenceRegion:
    """Half-open frame range [start_frame, end_frame) detected as silence."""
    start_frame: int
    end_frame: int

    @property
    def length(self) -> int:
        return self.end_frame - self.start_frame


@dataclass(frozen=True, slots=True)
class QualityMetrics:
    """Result of a recording quality analysis."""
    peak: float
    rms: float
    noise_floor: float
    has_excessive_noise: bool
    suggestions: tuple[str, ...] = field(default_factory=tuple)
    score: int = 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "peak": self.peak,
            "rms": self.rms,
            "noise_floor": self.noise_floor,
            "has_excessive_noise": self.has_excessive_noise,
            "suggestions": list(self.suggestions),
            "score": self.score,
        }


class TransformResult:
    """Result from a strictly checked effect application."""
    __slots__ = ('success', 'buffer', 'error')

    def __init__(
        self,
        success: bool,
        buffer: Optional[AudioBuffer] = None,
        error: Optional[str] = None
    ):
        self.success = success
        self.buffer = buffer
        self.error = error

    def __repr__(self) -> str:
        return f"TransformResult(success={self.success}, error={self.error!r})"
