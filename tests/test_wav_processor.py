import io
import math
import struct

import numpy as np
import pytest

from wavfeatures.fft_features import FeatureExtractor
from wavfeatures.prediction import PredictionEngine
from wavfeatures.wav_processor import (
    FileResult,
    WavFormatError,
    WavProcessor,
    read_wav_header,
)


def wav_bytes(payload, audio_format=1, extra=b""):
    bits = 16 if audio_format == 1 else 32
    head = struct.pack(
        "<4sI4s4sIHHIIHH", b"RIFF", 36 + len(extra) + len(payload), b"WAVE",
        b"fmt ", 16, audio_format, 1, 8000, 8000 * bits // 8, bits // 8, bits,
    )
    return head + extra + struct.pack("<4sI", b"data", len(payload)) + payload


def pcm_sine(count, bin_index=16):
    n = np.arange(count)
    return (12000 * np.sin(2 * np.pi * bin_index * n / 512)).astype("<i2").tobytes()


class RecordingModel:
    def __init__(self, label=1):
        self.label = label
        self.calls = []

    def predict(self, features):
        self.calls.append(features)
        return self.label


def test_header_fields_and_position():
    payload = pcm_sine(100)
    stream = io.BytesIO(wav_bytes(payload))
    header = read_wav_header(stream)
    assert header.audio_format == 1
    assert header.channels == 1
    assert header.sample_rate == 8000
    assert header.bits_per_sample == 16
    assert header.data_size == len(payload)
    assert header.data_offset == 44
    assert stream.tell() == 44


def test_header_skips_other_chunks():
    extra = struct.pack("<4sI", b"LIST", 4) + b"abcd"
    stream = io.BytesIO(wav_bytes(pcm_sine(10), extra=extra))
    header = read_wav_header(stream)
    assert header.data_offset == 44 + len(extra)
    assert stream.tell() == header.data_offset


def test_header_too_small():
    with pytest.raises(WavFormatError, match="too small"):
        read_wav_header(io.BytesIO(b"RIFF"))


def test_header_invalid_chunk_size():
    extra = struct.pack("<4sI", b"LIST", 10_000)
    with pytest.raises(WavFormatError, match="chunk size"):
        read_wav_header(io.BytesIO(wav_bytes(pcm_sine(10), extra=extra)))


def test_header_without_data_chunk():
    head = wav_bytes(b"")[:36]
    blob = head + struct.pack("<4sI", b"JUNK", 4) + b"abcd" + b"xy"
    with pytest.raises(WavFormatError, match="data"):
        read_wav_header(io.BytesIO(blob))


def test_summary_line():
    line = FileResult("rec/a.wav", 4, 3).summary()
    assert line == "檔案: rec/a.wav  總處理筆數: 4  加總/總筆數: 3/4 = 0.7500"


def test_summary_with_no_frames():
    result = FileResult("rec/b.wav", 0, 0)
    assert result.ratio == 0.0
    assert result.summary().endswith("0/0 = 0.0000")


def test_process_file_counts_and_writes_features(tmp_path):
    path = tmp_path / "clip.wav"
    path.write_bytes(wav_bytes(pcm_sine(1000)))
    model = RecordingModel()
    result = WavProcessor(PredictionEngine(model)).process_file(path)
    assert result.sample_count == math.ceil(1000 / 512)
    assert result.positive_count == result.sample_count
    assert result.path == path.as_posix()
    lines = (tmp_path / "clip.txt").read_text(encoding="utf-8").splitlines()
    assert len(lines) == result.sample_count
    assert all(len(line.split(", ")) == 128 for line in lines)
    assert all(call.dtype == np.float32 and len(call) == 128 for call in model.calls)


def test_process_file_float_format(tmp_path):
    n = np.arange(512)
    payload = (0.5 * np.sin(2 * np.pi * 30 * n / 512)).astype("<f4").tobytes()
    path = tmp_path / "float.wav"
    path.write_bytes(wav_bytes(payload, audio_format=3))
    model = RecordingModel(label=0)
    result = WavProcessor(PredictionEngine(model)).process_file(path)
    assert result.sample_count == 1
    assert result.positive_count == 0
    assert int(np.argmax(model.calls[0])) == 30


def test_process_file_custom_extractor(tmp_path):
    path = tmp_path / "short.wav"
    path.write_bytes(wav_bytes(pcm_sine(64)))
    processor = WavProcessor(PredictionEngine(None), FeatureExtractor(fft_size=16, feature_size=4))
    result = processor.process_file(path)
    assert result.sample_count == 64 // 16
    assert result.positive_count == 0
    first = (tmp_path / "short.txt").read_text(encoding="utf-8").splitlines()[0]
    assert len(first.split(", ")) == 4


def test_process_file_unsupported_format(tmp_path):
    path = tmp_path / "adpcm.wav"
    path.write_bytes(wav_bytes(pcm_sine(100), audio_format=2))
    with pytest.raises(WavFormatError, match="unsupported"):
        WavProcessor(PredictionEngine(None)).process_file(path)


def test_process_folder(tmp_path):
    (tmp_path / "a.wav").write_bytes(wav_bytes(pcm_sine(600)))
    (tmp_path / "b.wav").write_bytes(wav_bytes(pcm_sine(200)))
    (tmp_path / "bad.wav").write_bytes(b"RIFF")
    (tmp_path / "notes.txt").write_text("ignore me", encoding="utf-8")
    (tmp_path / "sub.wav").mkdir()
    out = io.StringIO()
    results = WavProcessor(PredictionEngine(RecordingModel())).process_folder(tmp_path, out)
    names = [r.path.rsplit("/", 1)[1] for r in results]
    assert names == ["a.wav", "b.wav", "bad.wav"]
    lines = out.getvalue().splitlines()
    assert lines == [r.summary() for r in results]
    assert lines[0].startswith("檔案: " + (tmp_path / "a.wav").as_posix())
    assert results[2].sample_count == 0
    assert (tmp_path / "a.txt").exists() and (tmp_path / "b.txt").exists()


def test_process_folder_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        WavProcessor(PredictionEngine(None)).process_folder(tmp_path / "nope", io.StringIO())