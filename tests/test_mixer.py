"""
Tests for the multi-track mixer.
"""
import pytest
import numpy as np

from clipforge.core.mixer import mix, track_envelope
from clipforge.core.track import Track
from clipforge.core.types import AudioBuffer


class TestEnvelope:
    """Tests for per-track gain envelopes."""

    def test_flat_gain(self, sr):
        track = Track(AudioBuffer.silence(100, sr), gain=0.5)
        assert np.allclose(track_envelope(track, 100), 0.5)

    def test_fade_in_ramp(self, sr):
        track = Track(AudioBuffer.silence(100, sr), fade_in_frames=10)
        envelope = track_envelope(track, 100)
        assert envelope[0] == 0.0
        assert envelope[5] == pytest.approx(0.5)
        assert envelope[10] == 1.0

    def test_fade_out_ramp(self, sr):
        track = Track(AudioBuffer.silence(100, sr), fade_out_frames=10)
        envelope = track_envelope(track, 100)
        assert envelope[90] == 1.0
        assert envelope[95] == pytest.approx(0.5)
        assert envelope[99] == pytest.approx(0.1)


class TestMix:
    """Tests for mix()."""

    def test_empty_list_raises(self):
        with pytest.raises(ValueError):
            mix([])

    def test_single_quiet_track_passes_through(self, half_scale_buffer):
        result = mix([Track(half_scale_buffer)])
        assert np.allclose(result.data, half_scale_buffer.data, atol=1e-6)

    def test_length_covers_offsets(self, mono_buffer, sr):
        result = mix([Track(mono_buffer), Track(mono_buffer, start_offset_frames=sr // 2)])
        assert result.frame_count == sr + sr // 2

    def test_tracks_sum_at_offset(self, sr):
        a = AudioBuffer(np.full(10, 0.2, dtype=np.float32), sr)
        b = AudioBuffer(np.full(10, 0.3, dtype=np.float32), sr)
        result = mix([Track(a), Track(b, start_offset_frames=5)])
        out = result.data[:, 0]
        assert np.allclose(out[:5], 0.2)
        assert np.allclose(out[5:10], 0.5)
        assert np.allclose(out[10:], 0.3)

    def test_output_never_exceeds_full_scale(self, mono_buffer, stereo_buffer):
        tracks = [Track(mono_buffer, gain=2.0), Track(stereo_buffer, gain=2.0), Track(mono_buffer, gain=1.5)]
        result = mix(tracks)
        assert np.max(np.abs(result.data)) <= 1.0

    def test_limiter_ceiling(self, mono_buffer):
        result = mix([Track(mono_buffer, gain=2.0)])
        assert result.peak == pytest.approx(0.95, abs=1e-6)

    def test_mono_fills_all_channels(self, mono_buffer, stereo_buffer):
        result = mix([Track(mono_buffer, gain=0.3), Track(AudioBuffer.silence(10, 44100, channels=2))])
        assert result.num_channels == 2
        assert np.allclose(result.channel(0), result.channel(1))

    def test_resamples_to_first_track_rate(self, mono_buffer):
        other = AudioBuffer(np.zeros(22050, dtype=np.float32), 22050)
        result = mix([Track(mono_buffer), Track(other)])
        assert result.sample_rate == mono_buffer.sample_rate
        assert result.frame_count == mono_buffer.frame_count

    def test_offset_scales_with_resampled_track(self, sr):
        bed = AudioBuffer.silence(2 * sr, sr)
        voice = AudioBuffer(np.full(11025, 0.5, dtype=np.float32), 22050)
        result = mix([Track(bed), Track.from_seconds(voice, start_offset=1.0)])
        out = result.data[:, 0]
        audible = np.flatnonzero(np.abs(out) > 1e-3)
        assert np.all(out[:sr] == 0.0)
        assert sr <= audible[0] < sr + 100
        assert result.frame_count == 2 * sr

    def test_fades_scale_with_resampled_track(self, sr):
        voice = AudioBuffer(np.full(22050, 0.5, dtype=np.float32), 22050)
        result = mix([
            Track(AudioBuffer.silence(10, sr)),
            Track.from_seconds(voice, fade_in=0.5),
        ])
        # Half a second of fade at 44.1 kHz is 22050 frames, so its midpoint is half gain
        assert result.data[11025, 0] == pytest.approx(0.25, abs=1e-2)
        assert result.data[30000, 0] == pytest.approx(0.5, abs=1e-2)
