"""
Container codec for ClipForge.

encode() always writes the canonical 44-byte-header RIFF/WAVE PCM16 layout.
decode() reads that layout directly (using the exact inverse of the encoder's
asymmetric int16 scaling) and hands every other container to libsndfile.
"""
from __future__ import annotations
import io
import struct
from dataclasses import dataclass
from typing import Optional

import numpy as np
import soundfile as sf

from .config import AUDIO_CONFIG
from .errors import DecodeError, EncodeError
from .types import AudioBuffer
from clipforge.utils.logger import logger

_HEADER = struct.Struct('<4sI4s4sIHHIIHH4sI')
_CHUNK = struct.Struct('<4sI')
_PCM_FORMAT = 1
_MAX_U32 = 0xFFFFFFFF


@dataclass(frozen=True, slots=True)
class ContainerInfo:
    """Header fields of a RIFF/WAVE container."""
    audio_format: int
    channels: int
    sample_rate: int
    bits_per_sample: int
    data_offset: int
    data_size: int

    @property
    def block_align(self) -> int:
        return self.channels * (self.bits_per_sample // 8)

    @property
    def frame_count(self) -> int:
        if self.block_align == 0:
            return 0
        return self.data_size // self.block_align

    @property
    def duration_seconds(self) -> float:
        return self.frame_count / self.sample_rate if self.sample_rate > 0 else 0.0

    @property
    def is_canonical(self) -> bool:
        return self.audio_format == _PCM_FORMAT and self.bits_per_sample == AUDIO_CONFIG.bits_per_sample


def _is_riff_wave(data: bytes) -> bool:
    return len(data) >= 12 and data[:4] == b'RIFF' and data[8:12] == b'WAVE'


def probe(data: bytes) -> ContainerInfo:
    """
    Read the fmt and data chunk descriptors of a RIFF/WAVE container.

    Unknown chunks (LIST, fact, ...) are skipped. A data chunk whose declared
    size runs past the end of the input is truncated to the bytes present.

    Raises:
        DecodeError: if the bytes are not a RIFF/WAVE container or the
            required chunks are missing or malformed.
    """
    if not _is_riff_wave(data):
        raise DecodeError("Not a RIFF/WAVE container")

    fmt: Optional[tuple[int, int, int, int]] = None
    pos = 12
    while pos + _CHUNK.size <= len(data):
        chunk_id, size = _CHUNK.unpack_from(data, pos)
        body = pos + _CHUNK.size
        if chunk_id == b'fmt ':
            if size < 16 or body + 16 > len(data):
                raise DecodeError("Truncated fmt chunk")
            audio_format, channels, sample_rate, _, _, bits = struct.unpack_from('<HHIIHH', data, body)
            fmt = (audio_format, channels, sample_rate, bits)
        elif chunk_id == b'data':
            if fmt is None:
                raise DecodeError("data chunk precedes fmt chunk")
            available = len(data) - body
            if size > available:
                logger.warning(f"data chunk declares {size} bytes, only {available} present")
                size = available
            audio_format, channels, sample_rate, bits = fmt
            if channels == 0:
                raise DecodeError("Container declares zero channels")
            if sample_rate == 0:
                raise DecodeError("Container declares a zero sample rate")
            return ContainerInfo(audio_format, channels, sample_rate, bits, body, size)
        # Chunks are word aligned
        pos = body + size + (size & 1)

    if fmt is None:
        raise DecodeError("Missing fmt chunk")
    raise DecodeError("Missing data chunk")


def _decode_pcm16(data: bytes, info: ContainerInfo) -> AudioBuffer:
    usable = info.frame_count * info.block_align
    raw = data[info.data_offset:info.data_offset + usable]
    ints = np.frombuffer(raw, dtype='<i2').reshape(-1, info.channels).astype(np.float64)
    samples = np.where(
        ints < 0,
        ints / AUDIO_CONFIG.pcm_negative_scale,
        ints / AUDIO_CONFIG.pcm_positive_scale,
    )
    return AudioBuffer(samples, info.sample_rate)


def _decode_with_soundfile(data: bytes) -> AudioBuffer:
    try:
        samples, sample_rate = sf.read(io.BytesIO(data), dtype='float32', always_2d=True)
    except (RuntimeError, TypeError, ValueError) as e:
        raise DecodeError(f"Unsupported or malformed container: {e}") from e
    return AudioBuffer(samples, sample_rate)


def resample_buffer(buffer: AudioBuffer, target_sample_rate: int) -> AudioBuffer:
    """Convert a buffer to another sample rate (band-limited, via librosa)."""
    if target_sample_rate <= 0:
        raise ValueError(f"Invalid target sample rate: {target_sample_rate}")
    if buffer.sample_rate == target_sample_rate or buffer.frame_count == 0:
        return buffer

    import librosa

    logger.debug(f"Resampling {buffer.sample_rate} Hz -> {target_sample_rate} Hz")
    resampled = librosa.resample(
        np.ascontiguousarray(buffer.data.T),
        orig_sr=buffer.sample_rate,
        target_sr=target_sample_rate,
        axis=-1,
    )
    return AudioBuffer(np.clip(resampled.T, -1.0, 1.0), target_sample_rate)


def decode(data: bytes, target_sample_rate: Optional[int] = None) -> AudioBuffer:
    """
    Decode container bytes into an AudioBuffer.

    Args:
        data: Raw container bytes
        target_sample_rate: Resample to this rate after decoding (None = keep)

    Returns:
        Decoded buffer, samples in [-1, 1]

    Raises:
        DecodeError: malformed container or unsupported codec
    """
    if not data:
        raise DecodeError("Empty input")
    data = bytes(data)

    if _is_riff_wave(data):
        info = probe(data)
        if info.is_canonical:
            buffer = _decode_pcm16(data, info)
        else:
            buffer = _decode_with_soundfile(data)
    else:
        buffer = _decode_with_soundfile(data)

    if buffer.num_channels == 0:
        raise DecodeError("Decoded stream has no channels")

    if target_sample_rate is not None:
        buffer = resample_buffer(buffer, target_sample_rate)
    return buffer


def _validate_for_encode(buffer: AudioBuffer) -> None:
    if buffer.data.ndim != 2:
        raise EncodeError(f"Expected (frames, channels) data, got shape {buffer.data.shape}")
    if buffer.num_channels < 1:
        raise EncodeError("Buffer has no channels")
    if buffer.num_channels > 0xFFFF:
        raise EncodeError(f"Too many channels: {buffer.num_channels}")
    if buffer.sample_rate <= 0:
        raise EncodeError(f"Invalid sample rate: {buffer.sample_rate}")
    if buffer.sample_rate * buffer.num_channels * 2 > _MAX_U32:
        raise EncodeError(f"Byte rate overflows the header: {buffer.sample_rate} Hz")


def encode(buffer: AudioBuffer) -> bytes:
    """
    Encode a buffer as canonical little-endian 16-bit PCM RIFF/WAVE bytes.

    Samples are clamped to [-1, 1], scaled by 32768 (negative) or 32767
    (positive), truncated toward zero and interleaved frame by frame.

    Raises:
        EncodeError: invalid buffer shape or sample rate
    """
    _validate_for_encode(buffer)

    channels = buffer.num_channels
    sample_rate = buffer.sample_rate
    block_align = channels * 2
    data_size = buffer.frame_count * block_align
    if AUDIO_CONFIG.header_size - 8 + data_size > _MAX_U32:
        raise EncodeError(f"Buffer too large for a RIFF container ({data_size} bytes)")

    samples = np.nan_to_num(buffer.data.astype(np.float64), nan=0.0)
    samples = np.clip(samples, -1.0, 1.0)
    scaled = np.where(
        samples < 0,
        samples * AUDIO_CONFIG.pcm_negative_scale,
        samples * AUDIO_CONFIG.pcm_positive_scale,
    )
    pcm = np.trunc(scaled).astype('<i2')

    header = _HEADER.pack(
        b'RIFF',
        AUDIO_CONFIG.header_size - 8 + data_size,
        b'WAVE',
        b'fmt ',
        16,
        _PCM_FORMAT,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        AUDIO_CONFIG.bits_per_sample,
        b'data',
        data_size,
    )
    return header + pcm.tobytes()
