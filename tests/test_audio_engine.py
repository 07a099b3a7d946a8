"""
Tests for AudioEngine.
"""
import threading

import pytest
import numpy as np

from clipforge.core import codec, effects
from clipforge.core.audio_engine import AudioEngine
from clipforge.core.config import EngineConfig
from clipforge.core.track import Track


@pytest.fixture
def engine():
    with AudioEngine(EngineConfig(max_workers=2, max_pending=4)) as eng:
        yield eng


class TestAudioEngine:
    """Tests for the engine context object."""

    def test_default_pool_size(self):
        with AudioEngine() as eng:
            assert eng.max_workers >= 1

    def test_process(self, engine, half_scale_buffer):
        result = engine.process(half_scale_buffer, [effects.Normalize(target_peak=0.8)])
        assert result.applied == ["normalize"]
        assert result.buffer.peak == pytest.approx(0.8, abs=1e-5)

    def test_process_bytes(self, engine, wav_bytes, stereo_buffer):
        out = engine.process_bytes(wav_bytes, [effects.Trim(trim_start=0.5)])
        decoded = codec.decode(out)
        assert decoded.num_channels == 2
        assert decoded.frame_count == stereo_buffer.frame_count - 22050

    def test_submit_returns_future(self, engine, half_scale_buffer):
        futures = [engine.submit(half_scale_buffer, [effects.Volume(0.5)]) for _ in range(8)]
        for future in futures:
            result = future.result(timeout=30)
            assert result.buffer.peak == pytest.approx(half_scale_buffer.peak * 0.5, abs=1e-6)

    def test_submit_bytes(self, engine, wav_bytes):
        future = engine.submit_bytes(wav_bytes, [effects.Volume(0.5)])
        assert codec.decode(future.result(timeout=30)).num_channels == 2

    def test_back_pressure_timeout(self, half_scale_buffer):
        release = threading.Event()
        eng = AudioEngine(EngineConfig(max_workers=1, max_pending=1, submit_timeout=0.05))
        try:
            def progress(stage, total, name):
                release.wait(timeout=10)

            first = eng.submit(half_scale_buffer, [effects.Volume(0.5)], progress=progress)
            with pytest.raises(TimeoutError):
                eng.submit(half_scale_buffer, [effects.Volume(0.5)])
            release.set()
            first.result(timeout=30)
        finally:
            release.set()
            eng.close()

    def test_submit_after_close_raises(self, half_scale_buffer):
        eng = AudioEngine(EngineConfig(max_workers=1))
        eng.close()
        with pytest.raises(RuntimeError):
            eng.submit(half_scale_buffer, [])

    def test_close_is_idempotent(self):
        eng = AudioEngine(EngineConfig(max_workers=1))
        eng.close()
        eng.close()

    def test_analyze_and_enhance(self, engine, gapped_buffer):
        metrics = engine.analyze(gapped_buffer)
        assert metrics.score == 90
        assert engine.auto_enhance(gapped_buffer).peak == pytest.approx(0.95, abs=1e-5)

    def test_mix_and_crossfade(self, engine, mono_buffer, half_scale_buffer):
        mixed = engine.mix([Track(mono_buffer, gain=0.5), Track(half_scale_buffer, gain=0.5)])
        assert np.max(np.abs(mixed.data)) <= 1.0
        joined = engine.crossfade(mono_buffer, half_scale_buffer, 0.5)
        assert joined.frame_count == 2 * 44100 - 22050
