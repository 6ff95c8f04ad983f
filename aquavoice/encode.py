"""WAV encoding of captured samples."""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import numpy as np
from scipy.io.wavfile import write as wav_write

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

INT16_MIN = -32768
INT16_MAX = 32767
POSITIVE_SCALE = 32767.0
NEGATIVE_SCALE = 32768.0


class EncodingError(RuntimeError):
    """Samples could not be written as a WAV container."""


def to_pcm16(samples: "ArrayLike") -> "NDArray[np.int16]":
    """
    Convert float samples in [-1.0, 1.0] to signed 16-bit PCM.

    Positive samples are scaled by 32767 and negative samples by 32768, so
    1.0 maps to 32767 and -1.0 to -32768. A plain ``x * 32767`` conversion
    would put negative samples up to one step closer to zero than this one.
    Values are clamped to the int16 range before narrowing and fractions are
    truncated toward zero.
    """
    audio = np.nan_to_num(np.asarray(samples, dtype=np.float64).reshape(-1))
    scaled = np.where(audio < 0, audio * NEGATIVE_SCALE, audio * POSITIVE_SCALE)
    return np.clip(scaled, INT16_MIN, INT16_MAX).astype(np.int16)


def encode_wav(samples: "ArrayLike", sample_rate: int) -> bytes:
    """
    Encode float samples as a mono 16-bit PCM WAV file.

    Args:
        samples: Mono float samples in capture order.
        sample_rate: Rate the samples were captured at.

    Returns:
        The complete WAV file as bytes.

    Raises:
        EncodingError: If the rate is invalid or the writer fails.
    """
    if sample_rate <= 0:
        raise EncodingError(f"WAV conversion error: invalid sample rate {sample_rate}")

    pcm = to_pcm16(samples)
    buf = io.BytesIO()
    try:
        wav_write(buf, int(sample_rate), pcm)
    except (ValueError, OSError) as e:
        raise EncodingError(f"WAV conversion error: {e}") from e
    return buf.getvalue()
