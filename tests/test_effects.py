"""
Tests for effect requests and the fail-soft dispatch boundary.
"""
import logging

import pytest
import numpy as np

from clipforge.core import effects
from clipforge.core.config import FadeCurve, VoiceFilterType
from clipforge.core.errors import TransformFailure


class TestRequests:
    """Tests for request records."""

    def test_params_exclude_effect_tag(self):
        request = effects.Echo(delay=0.3, feedback=0.2, wet_level=0.4)
        assert request.effect == "echo"
        assert request.params() == {"delay": 0.3, "feedback": 0.2, "wet_level": 0.4}

    def test_requests_are_frozen(self):
        request = effects.Trim(trim_start=0.1)
        with pytest.raises(AttributeError):
            request.trim_start = 0.5

    def test_every_request_is_registered(self):
        request_types = [
            effects.Trim, effects.Normalize, effects.PitchShift, effects.SpeedChange,
            effects.Echo, effects.Reverb, effects.VoiceFilter, effects.NoiseSuppress,
            effects.SilenceRemove, effects.Volume, effects.Transition,
        ]
        assert {cls.effect for cls in request_types} == set(effects.EFFECT_REGISTRY)


class TestApplyEffect:
    """Tests for apply_effect and try_effect."""

    def test_dispatches_to_effect(self, mono_buffer):
        result = effects.apply_effect(mono_buffer, effects.Trim(trim_start=0.2))
        assert result.frame_count == 35280

    @pytest.mark.parametrize("request_obj", [
        effects.Normalize(target_peak=0.5),
        effects.PitchShift(semitones=3),
        effects.SpeedChange(speed=1.5, preserve_pitch=True),
        effects.Echo(),
        effects.Reverb(wet_level=0.2),
        effects.VoiceFilter(filter_type=VoiceFilterType.RADIO, intensity=0.5),
        effects.NoiseSuppress(strength=0.5),
        effects.SilenceRemove(),
        effects.Volume(multiplier=0.5),
        effects.Transition(duration=0.1, curve=FadeCurve.SIGMOID),
    ])
    def test_every_effect_stays_in_range(self, stereo_buffer, request_obj):
        result = effects.apply_effect(stereo_buffer, request_obj, strict=True)
        assert result.num_channels == 2
        assert np.max(np.abs(result.data)) <= 1.0

    def test_best_effort_returns_input_on_failure(self, mono_buffer, caplog):
        with caplog.at_level(logging.ERROR, logger="ClipForge"):
            result = effects.apply_effect(mono_buffer, effects.SpeedChange(speed=-1.0))
        assert result is mono_buffer
        assert "speed_change" in caplog.text

    def test_strict_raises_transform_failure(self, mono_buffer):
        with pytest.raises(TransformFailure) as info:
            effects.apply_effect(mono_buffer, effects.Reverb(room_size=3.0), strict=True)
        assert info.value.effect == "reverb"
        assert isinstance(info.value.cause, ValueError)

    def test_try_effect_success(self, mono_buffer):
        result = effects.try_effect(mono_buffer, effects.Volume(multiplier=0.5))
        assert result.success
        assert result.error is None
        assert result.buffer.peak == pytest.approx(mono_buffer.peak * 0.5, abs=1e-6)

    def test_try_effect_failure(self, mono_buffer):
        result = effects.try_effect(mono_buffer, effects.Volume(multiplier=9.0))
        assert not result.success
        assert result.buffer is None
        assert "volume" in result.error
