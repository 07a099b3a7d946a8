"""
ClipForge Core Module

This module contains the core audio processing logic:
- AudioEngine: Worker pool and entry point for clip processing
- AudioBuffer: Decoded PCM samples
- codec: Canonical WAV container encode/decode
- analysis: Silence, waveform, best-window and quality analysis
- Effects: Audio processing effects and effect requests
- mix / crossfade: Multi-clip composition
- pipeline: Ordered effect runs and auto-enhance
"""
from .audio_engine import AudioEngine
from .types import AudioBuffer, QualityMetrics, SilenceRegion, TransformResult
from .track import Track
from .codec import decode, encode, probe
from .mixer import mix
from .crossfade import crossfade
from .pipeline import (
    CancellationToken,
    PipelineResult,
    run_pipeline,
    auto_enhance,
    describe_effects
)
from .errors import (
    ClipForgeError,
    DecodeError,
    EncodeError,
    TransformFailure,
    PipelineCancelled
)
from .config import (
    AUDIO_CONFIG,
    ANALYSIS_CONFIG,
    EFFECTS_CONFIG,
    MIXER_CONFIG,
    ENHANCE_CONFIG,
    ENGINE_CONFIG,
    FadeCurve,
    VoiceFilterType
)
from . import analysis
from . import effects
from . import effects_basic
from . import effects_vocal

__all__ = [
    # Main classes
    'AudioEngine',
    'AudioBuffer',
    'Track',
    'QualityMetrics',
    'SilenceRegion',
    'TransformResult',
    'CancellationToken',
    'PipelineResult',
    # Operations
    'decode',
    'encode',
    'probe',
    'mix',
    'crossfade',
    'run_pipeline',
    'auto_enhance',
    'describe_effects',
    # Errors
    'ClipForgeError',
    'DecodeError',
    'EncodeError',
    'TransformFailure',
    'PipelineCancelled',
    # Config
    'AUDIO_CONFIG',
    'ANALYSIS_CONFIG',
    'EFFECTS_CONFIG',
    'MIXER_CONFIG',
    'ENHANCE_CONFIG',
    'ENGINE_CONFIG',
    'FadeCurve',
    'VoiceFilterType',
    # Submodules
    'analysis',
    'effects',
    'effects_basic',
    'effects_vocal',
]
