"""
Pytest configuration and fixtures for ClipForge tests.
"""
import pytest
import numpy as np

from clipforge.core.types import AudioBuffer
from clipforge.core.codec import encode
from clipforge.core.config import AUDIO_CONFIG


def make_sine(freq=440.0, seconds=1.0, amplitude=1.0, sr=AUDIO_CONFIG.default_samplerate):
    """Sine tone as a float32 array (the same construction every fixture uses)."""
    t = np.linspace(0, seconds, int(sr * seconds), dtype=np.float32)
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


@pytest.fixture
def sr() -> int:
    return AUDIO_CONFIG.default_samplerate


@pytest.fixture
def sample_mono_audio() -> np.ndarray:
    """Generate 1 second of mono sine wave audio."""
    return make_sine(440)


@pytest.fixture
def sample_stereo_audio() -> np.ndarray:
    """Generate 1 second of stereo sine wave audio."""
    left = make_sine(440)
    right = make_sine(880)
    return np.column_stack((left, right))


@pytest.fixture
def mono_buffer(sample_mono_audio) -> AudioBuffer:
    return AudioBuffer(sample_mono_audio, AUDIO_CONFIG.default_samplerate)


@pytest.fixture
def stereo_buffer(sample_stereo_audio) -> AudioBuffer:
    return AudioBuffer(sample_stereo_audio, AUDIO_CONFIG.default_samplerate)


@pytest.fixture
def half_scale_buffer() -> AudioBuffer:
    """1 second 440 Hz sine at 0.5 amplitude."""
    return AudioBuffer(make_sine(440, amplitude=0.5), AUDIO_CONFIG.default_samplerate)


@pytest.fixture
def silent_buffer() -> AudioBuffer:
    """2 seconds of digital silence."""
    return AudioBuffer.silence(2 * AUDIO_CONFIG.default_samplerate, AUDIO_CONFIG.default_samplerate)


@pytest.fixture
def gapped_buffer() -> AudioBuffer:
    """0.5 s tone, 1 s silence, 0.5 s tone."""
    sr = AUDIO_CONFIG.default_samplerate
    tone = make_sine(440, seconds=0.5, amplitude=0.5)
    gap = np.zeros(sr, dtype=np.float32)
    return AudioBuffer(np.concatenate([tone, gap, tone]), sr)


@pytest.fixture
def wav_bytes(stereo_buffer) -> bytes:
    return encode(stereo_buffer)
