"""
Tests for pipeline orchestration.
"""
import json

import pytest
import numpy as np

from clipforge.core import effects, pipeline
from clipforge.core.config import VoiceFilterType
from clipforge.core.errors import PipelineCancelled, TransformFailure
from clipforge.core.types import AudioBuffer


class TestRunPipeline:
    """Tests for run_pipeline."""

    def test_applies_in_order(self, half_scale_buffer):
        requests = [effects.Trim(trim_start=0.5), effects.Normalize(target_peak=0.9)]
        result = pipeline.run_pipeline(half_scale_buffer, requests)
        assert result.applied == ["trim", "normalize"]
        assert result.failed == []
        assert result.success
        assert result.buffer.frame_count == 22050
        assert result.buffer.peak == pytest.approx(0.9, abs=1e-5)

    def test_order_matters(self, half_scale_buffer):
        trim_then_speed = pipeline.run_pipeline(
            half_scale_buffer, [effects.Trim(trim_start=0.5), effects.SpeedChange(speed=2.0)]
        )
        speed_then_trim = pipeline.run_pipeline(
            half_scale_buffer, [effects.SpeedChange(speed=2.0), effects.Trim(trim_start=0.5)]
        )
        assert trim_then_speed.buffer.frame_count == 11025
        # Trimming 0.5 s from a 0.5 s clip would leave nothing, so trim is a no-op
        assert speed_then_trim.buffer.frame_count == 22050

    def test_failed_stage_is_skipped(self, half_scale_buffer):
        requests = [effects.Volume(multiplier=9.0), effects.Normalize(target_peak=0.9)]
        result = pipeline.run_pipeline(half_scale_buffer, requests)
        assert result.failed == ["volume"]
        assert result.applied == ["normalize"]
        assert not result.success
        assert result.buffer.peak == pytest.approx(0.9, abs=1e-5)

    def test_strict_mode_raises(self, half_scale_buffer):
        with pytest.raises(TransformFailure):
            pipeline.run_pipeline(half_scale_buffer, [effects.Volume(multiplier=9.0)], strict=True)

    def test_cancelled_token_stops_before_first_stage(self, half_scale_buffer):
        token = pipeline.CancellationToken()
        token.cancel()
        with pytest.raises(PipelineCancelled) as info:
            pipeline.run_pipeline(half_scale_buffer, [effects.Normalize()], cancel_token=token)
        assert info.value.completed == 0
        assert info.value.total == 1

    def test_cancel_between_stages(self, half_scale_buffer):
        token = pipeline.CancellationToken()
        seen = []

        def progress(stage, total, name):
            seen.append(name)
            if stage == 1:
                token.cancel()

        requests = [effects.Volume(0.5), effects.Volume(0.5), effects.Volume(0.5)]
        with pytest.raises(PipelineCancelled) as info:
            pipeline.run_pipeline(half_scale_buffer, requests, cancel_token=token, progress=progress)
        assert info.value.completed == 2
        assert seen == ["volume", "volume"]

    def test_progress_reports_completion(self, half_scale_buffer):
        calls = []
        pipeline.run_pipeline(
            half_scale_buffer, [effects.Volume(0.5)],
            progress=lambda stage, total, name: calls.append((stage, total, name))
        )
        assert calls == [(0, 1, "volume"), (1, 1, "done")]

    def test_empty_request_list_returns_input(self, half_scale_buffer):
        result = pipeline.run_pipeline(half_scale_buffer, [])
        assert result.buffer is half_scale_buffer


class TestAutoEnhance:
    """Tests for auto_enhance."""

    def test_quiet_clip_is_normalized(self, gapped_buffer):
        result = pipeline.auto_enhance(gapped_buffer)
        assert result.peak == pytest.approx(0.95, abs=1e-5)

    def test_hot_clip_is_left_alone(self, mono_buffer):
        assert pipeline.auto_enhance(mono_buffer) is mono_buffer

    def test_noisy_clip_is_denoised_then_normalized(self, sr):
        rng = np.random.default_rng(5)
        hiss = rng.normal(0, 0.06, 2 * sr).astype(np.float32)
        buffer = AudioBuffer(np.clip(hiss, -1, 1), sr)
        normalized_only = pipeline.auto_enhance(buffer)
        denoised = pipeline.auto_enhance(buffer, noise_search_factor=4.0)
        assert normalized_only.peak == pytest.approx(0.95, abs=1e-5)
        assert denoised.peak == pytest.approx(0.95, abs=1e-5)
        assert not np.allclose(denoised.data, normalized_only.data)

    def test_steps_can_be_disabled(self, gapped_buffer):
        assert pipeline.auto_enhance(gapped_buffer, reduce_noise=False, normalize=False) is gapped_buffer


class TestDescribeEffects:
    """Tests for describe_effects."""

    def test_no_requests(self):
        assert pipeline.describe_effects([]) is None

    def test_core_keys(self):
        metadata = pipeline.describe_effects([
            effects.PitchShift(semitones=2),
            effects.Reverb(room_size=0.4, damping=0.6),
            effects.VoiceFilter(filter_type=VoiceFilterType.ROBOT, intensity=0.7),
        ])
        assert metadata["pitch"] == {"value": 2, "enabled": True}
        assert metadata["reverb"]["room_size"] == 0.4
        assert metadata["echo"] is None
        assert metadata["modulation"] == {"type": "robot", "intensity": 0.7, "enabled": True}

    def test_extra_keys_only_when_requested(self):
        metadata = pipeline.describe_effects([effects.Trim(0.1, 0.2), effects.SilenceRemove()])
        assert metadata["trim"] == {"start": 0.1, "end": 0.2}
        assert metadata["silence_removed"] is True
        assert "speed" not in metadata
        assert "noise_reduction" not in metadata

    def test_voice_filter_none_is_not_modulation(self):
        metadata = pipeline.describe_effects([effects.VoiceFilter()])
        assert metadata["modulation"] is None

    def test_metadata_is_json_serializable(self):
        metadata = pipeline.describe_effects([
            effects.Echo(), effects.SpeedChange(1.5), effects.NoiseSuppress(), effects.Normalize()
        ])
        assert json.loads(json.dumps(metadata)) == metadata
