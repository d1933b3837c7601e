"""FFT magnitude features from WAV audio, scored by a classifier you supply."""

__version__ = "0.1.0"
__all__ = ["fft_features", "prediction", "wav_processor"]