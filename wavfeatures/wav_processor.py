"""Reading WAV headers and classifying every recording in a folder."""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, TextIO

from .fft_features import AudioFormat, FeatureExtractor, format_features
from .prediction import PredictionEngine

logger = logging.getLogger(__name__)

_MIN_WAV_SIZE = 44
_FMT_LAYOUT = struct.Struct("<4sI4s4sIHHIIHH")
_CHUNK_LAYOUT = struct.Struct("<4sI")


class WavFormatError(ValueError):
    """The file is not a WAV file this package can read."""


@dataclass(frozen=True)
class WavHeader:
    audio_format: int
    channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int
    data_offset: int

    @property
    def format_name(self) -> str:
        if self.audio_format == AudioFormat.PCM:
            return "PCM (Pulse Code Modulation)"
        if self.audio_format == AudioFormat.IEEE_FLOAT:
            return "IEEE Float"
        return f"Other (Format Code: {self.audio_format})"


def read_wav_header(stream: BinaryIO) -> WavHeader:
    """Parse the header and leave `stream` at the start of the sample data.

    The format fields are read from their fixed positions; chunks after them
    are skipped until the 'data' chunk is found.
    """
    size = stream.seek(0, io.SEEK_END)
    if size < _MIN_WAV_SIZE:
        raise WavFormatError("invalid WAV file: file too small")
    stream.seek(0)
    (_riff, _riff_size, _wave, _fmt_id, _fmt_size, audio_format, channels,
     sample_rate, byte_rate, block_align, bits_per_sample) = _FMT_LAYOUT.unpack(
        stream.read(_FMT_LAYOUT.size)
    )
    while True:
        position = stream.tell()
        chunk = stream.read(_CHUNK_LAYOUT.size)
        if len(chunk) < _CHUNK_LAYOUT.size:
            raise WavFormatError("no 'data' chunk found")
        chunk_id, chunk_size = _CHUNK_LAYOUT.unpack(chunk)
        if chunk_id == b"data":
            break
        body = position + _CHUNK_LAYOUT.size
        if body + chunk_size >= size:
            raise WavFormatError("invalid chunk size")
        stream.seek(body + chunk_size)
    return WavHeader(
        audio_format=audio_format,
        channels=channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits_per_sample,
        data_size=chunk_size,
        data_offset=stream.tell(),
    )


@dataclass(frozen=True)
class FileResult:
    path: str
    sample_count: int
    positive_count: int

    @property
    def ratio(self) -> float:
        return self.positive_count / self.sample_count if self.sample_count else 0.0

    def summary(self) -> str:
        """One result line as written to the result file."""
        return (
            f"檔案: {self.path}  總處理筆數: {self.sample_count}  "
            f"加總/總筆數: {self.positive_count}/{self.sample_count} = {self.ratio:.4f}"
        )


class WavProcessor:
    """Extracts features from WAV files, saves them and tallies predictions."""

    def __init__(
        self, engine: PredictionEngine, extractor: FeatureExtractor | None = None
    ) -> None:
        self.engine = engine
        self.extractor = extractor if extractor is not None else FeatureExtractor()

    def process_file(self, path: str | Path) -> FileResult:
        """Classify every frame of one WAV file.

        The features of each frame are written, one line per frame, to a
        .txt file next to the recording.
        """
        path = Path(path)
        with path.open("rb") as wav:
            header = read_wav_header(wav)
            logger.info(
                "%s: format %s, %d channel(s), %d Hz, %d bits",
                path, header.format_name, header.channels,
                header.sample_rate, header.bits_per_sample,
            )
            try:
                audio_format = AudioFormat(header.audio_format)
            except ValueError:
                raise WavFormatError(
                    f"unsupported audio format: {header.audio_format}"
                ) from None
            sample_count = positive_count = 0
            with path.with_suffix(".txt").open("w", encoding="utf-8") as out:
                for features in self.extractor.iter_features(wav, audio_format):
                    out.write(format_features(features) + "\n")
                    positive_count += self.engine.predict(features)
                    sample_count += 1
        return FileResult(path.as_posix(), sample_count, positive_count)

    def process_folder(self, folder: str | Path, result_stream: TextIO) -> list[FileResult]:
        """Process every .wav file in `folder`, writing one line each to `result_stream`.

        Files whose header cannot be read are reported with zero frames.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise FileNotFoundError(f"failed to open directory: {folder}")
        results = []
        for entry in sorted(folder.iterdir()):
            if entry.is_dir() or not entry.name.endswith(".wav"):
                continue
            logger.info("Processing file: %s", entry.as_posix())
            try:
                result = self.process_file(entry)
            except WavFormatError as exc:
                logger.warning("%s: %s", entry.as_posix(), exc)
                result = FileResult(entry.as_posix(), 0, 0)
            line = result.summary()
            logger.info(line)
            result_stream.write(line + "\n")
            results.append(result)
        return results