from dataclasses import dataclass

from .config import MIXER_CONFIG
from .types import AudioBuffer


@dataclass(slots=True)
class Track:
    """
    One layer of a mix: a buffer placed on the timeline with its own gain
    and fade envelope.
    """
    buffer: AudioBuffer
    gain: float = 1.0
    start_offset_frames: int = 0
    fade_in_frames: int = 0
    fade_out_frames: int = 0

    def __post_init__(self):
        self.gain = min(max(float(self.gain), 0.0), MIXER_CONFIG.max_track_gain)
        self.start_offset_frames = max(0, int(self.start_offset_frames))
        self.fade_in_frames = max(0, int(self.fade_in_frames))
        self.fade_out_frames = max(0, int(self.fade_out_frames))

    @classmethod
    def from_seconds(cls, buffer, gain=1.0, start_offset=0.0, fade_in=0.0, fade_out=0.0):
        """Build a track with its offset and fades given in seconds."""
        sr = buffer.sample_rate
        return cls(buffer, gain, int(start_offset * sr), int(fade_in * sr), int(fade_out * sr))

    @property
    def end_frame(self):
        """Timeline frame just past the track's last sample."""
        return self.start_offset_frames + self.buffer.frame_count

    @property
    def duration_seconds(self):
        return self.buffer.duration_seconds
