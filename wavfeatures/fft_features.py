"""Spectral feature extraction from raw PCM or IEEE-float audio samples."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from typing import BinaryIO

import numpy as np

DEFAULT_SAMPLE_RATE = 8000
DEFAULT_FFT_SIZE = 512
DEFAULT_FEATURE_SIZE = 128

_PCM_SCALE = 32768.0


class AudioFormat(enum.IntEnum):
    """WAV format codes understood by the feature extractor."""

    PCM = 1
    IEEE_FLOAT = 3

    @property
    def sample_width(self) -> int:
        """Bytes occupied by one sample."""
        return 2 if self is AudioFormat.PCM else 4


def _as_format(audio_format: int) -> AudioFormat:
    try:
        return AudioFormat(audio_format)
    except ValueError:
        raise ValueError(f"unsupported audio format: {audio_format}") from None


def _decode(data: bytes, fmt: AudioFormat, size: int) -> np.ndarray:
    """Turn raw little-endian sample bytes into `size` doubles, zero padded."""
    samples = np.zeros(size, dtype=np.float64)
    width = fmt.sample_width
    count = min(len(data) // width, size)
    whole = data[: count * width]
    if fmt is AudioFormat.PCM:
        samples[:count] = np.frombuffer(whole, dtype="<i2") / _PCM_SCALE
        # A lone trailing byte lands in the low half of a zeroed sample.
        if len(data) % width and count < size:
            samples[count] = data[count * width] / _PCM_SCALE
    else:
        values = np.frombuffer(whole, dtype="<f4").astype(np.float64)
        values[~np.isfinite(values)] = 0.0
        samples[:count] = values
    return samples


def read_samples(
    stream: BinaryIO, audio_format: int, size: int = DEFAULT_FFT_SIZE
) -> np.ndarray:
    """Read up to `size` samples from `stream`, padding with zeros at the end.

    PCM samples are 16-bit and scaled to [-1, 1); float samples are 32-bit,
    with NaN and infinities replaced by zero. Incomplete float samples read
    as zero.
    """
    fmt = _as_format(audio_format)
    return _decode(stream.read(size * fmt.sample_width), fmt, size)


def hamming_window(size: int) -> np.ndarray:
    """Symmetric Hamming window of `size` points."""
    return np.hamming(size)


def magnitude_spectrum(samples: Iterable[float]) -> np.ndarray:
    """Magnitudes of the forward FFT of Hamming-windowed `samples`."""
    values = np.asarray(list(samples) if not isinstance(samples, np.ndarray) else samples,
                        dtype=np.float64)
    return np.abs(np.fft.fft(values * hamming_window(len(values))))


def format_features(features: Iterable[float]) -> str:
    """Render features with six decimals, separated by ', '."""
    return ", ".join(f"{float(value):.6f}" for value in features)


class FeatureExtractor:
    """Cuts an audio stream into FFT frames and yields low-band magnitudes."""

    def __init__(
        self,
        fft_size: int = DEFAULT_FFT_SIZE,
        feature_size: int = DEFAULT_FEATURE_SIZE,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
    ) -> None:
        if fft_size < 2 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two, got {fft_size}")
        if not 1 <= feature_size <= fft_size:
            raise ValueError(
                f"feature_size must be between 1 and {fft_size}, got {feature_size}"
            )
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        self.fft_size = fft_size
        self.feature_size = feature_size
        self.sample_rate = sample_rate
        self._window = hamming_window(fft_size)

    def process_chunk(self, stream: BinaryIO, audio_format: int) -> np.ndarray | None:
        """Read one frame and return its features, or None at end of stream."""
        fmt = _as_format(audio_format)
        data = stream.read(self.fft_size * fmt.sample_width)
        if not data:
            return None
        samples = _decode(data, fmt, self.fft_size)
        spectrum = np.abs(np.fft.fft(samples * self._window))
        return spectrum[: self.feature_size]

    def iter_features(self, stream: BinaryIO, audio_format: int) -> Iterator[np.ndarray]:
        """Yield the features of every frame until the stream is exhausted."""
        while (features := self.process_chunk(stream, audio_format)) is not None:
            yield features