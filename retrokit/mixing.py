"""Sample mixing helpers for interleaved stereo 16-bit audio."""

from __future__ import annotations

import struct
from collections.abc import Sequence

MAX_VOLUME = 100
INT16_MAX = (1 << 15) - 1
INT16_MIN = -(1 << 15)


def _f32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def _scale_volume(sample: int, volume: int) -> int:
    product = sample * volume
    quotient = abs(product) // MAX_VOLUME
    return quotient if product >= 0 else -quotient


def mix_samples(dst: Sequence[int], src: Sequence[int], volume: int, pan: int) -> list[int]:
    """Return ``dst`` with ``src`` added at ``volume`` (0-100) and ``pan`` (-100..100).

    Samples are interleaved left/right; even indices are the left channel.
    """
    if len(src) > len(dst):
        raise ValueError("source has more samples than the destination")
    mixed = list(dst)
    if volume == 0:
        return mixed
    volume = min(volume, MAX_VOLUME)

    pan_left = pan_right = 0.0
    if pan < 0:
        pan_right = _f32(1.0 - abs(_f32(pan / 100.0)))
        pan_left = 1.0
    elif pan > 0:
        pan_left = _f32(1.0 - abs(_f32(pan / 100.0)))
        pan_right = 1.0

    for index, raw in enumerate(src):
        sample = _scale_volume(raw, volume)
        if pan != 0:
            factor = pan_right if index % 2 else pan_left
            sample = int(_f32(sample * factor))
        mixed[index] += sample
    return mixed


def clamp_to_int16(samples: Sequence[int]) -> list[int]:
    """Clamp mixed samples to the signed 16-bit range."""
    return [max(INT16_MIN, min(INT16_MAX, sample)) for sample in samples]