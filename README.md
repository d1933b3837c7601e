# wavfeatures

Turns WAV recordings into FFT magnitude features and scores each frame of audio
with a classifier you supply.

For every WAV file it processes, the package:

1. reads the RIFF header and skips chunks until it finds the `data` chunk
   (`read_wav_header`),
2. reads frames of samples (16-bit PCM or 32-bit IEEE float), applies a Hamming
   window, runs an FFT and keeps the magnitudes of the lowest bins as features
   (`FeatureExtractor`),
3. writes each feature vector as one line in a `.txt` file with the same name,
   next to the WAV file (an existing file of that name is overwritten),
4. passes each feature vector to a `PredictionEngine` and counts how many
   frames came out positive.

## Installation

```
pip install .
```

To run the tests, install the `test` extra and run `pytest`:

```
pip install ".[test]"
pytest
```

## Usage

The model given to `PredictionEngine` is either an object with a
`predict(features)` method or a plain callable. It receives the features as a
`float32` NumPy array, and its result is turned into an `int`. With `None` as
the model, `PredictionEngine.predict` always returns `0` and
`PredictionEngine.ready` is `False`.

```python
import sys

from wavfeatures.fft_features import FeatureExtractor
from wavfeatures.prediction import PredictionEngine
from wavfeatures.wav_processor import WavProcessor


class LoudnessModel:
    def predict(self, features):
        return int(features.sum() > 10.0)


engine = PredictionEngine(LoudnessModel())
extractor = FeatureExtractor(fft_size=512, feature_size=128, sample_rate=8000)
processor = WavProcessor(engine, extractor)

# A single file: returns a FileResult
result = processor.process_file("recordings/clip.wav")
print(result.summary())

# Every .wav file in a folder, with one summary line per file written to a stream
with open("result.txt", "w", encoding="utf-8") as out:
    results = processor.process_folder("recordings", out)
```

`WavProcessor(engine)` without an extractor uses `FeatureExtractor()` with its
defaults: 512-point FFT, 128 features, 8000 Hz.

A `FileResult` holds `path`, `sample_count` (frames processed) and
`positive_count` (sum of the predictions); `ratio` is their quotient, or `0.0`
when no frame was processed. `summary()` gives the line written to the result
stream, for example:

```
檔案: recordings/clip.wav  總處理筆數: 12  加總/總筆數: 3/12 = 0.2500
```

`process_folder` visits the entries of the folder in sorted order, takes only
files whose name ends in `.wav`, and returns the list of results. A file whose
header is malformed or whose audio format is unsupported is logged as a warning
and reported with zero frames. A folder that does not exist raises
`FileNotFoundError`. Progress and header details go to the standard `logging`
module under the `wavfeatures.wav_processor` logger.

### Reading headers

`read_wav_header(stream)` returns a `WavHeader` (`audio_format`, `channels`,
`sample_rate`, `byte_rate`, `block_align`, `bits_per_sample`, `data_size`,
`data_offset`, and a readable `format_name`) and leaves the stream at the
start of the sample data. It raises `WavFormatError` for a file shorter than
44 bytes, a chunk whose size runs to or past the end of the file, or a missing
`data` chunk. `WavProcessor.process_file` also raises `WavFormatError` when the
format code is neither PCM (1) nor IEEE float (3).

### Working with features directly

```python
from wavfeatures.fft_features import AudioFormat, FeatureExtractor, format_features

extractor = FeatureExtractor(fft_size=512, feature_size=128, sample_rate=8000)
with open("clip.raw", "rb") as stream:
    for features in extractor.iter_features(stream, AudioFormat.PCM):
        print(format_features(features))
```

- `FeatureExtractor.process_chunk(stream, audio_format)` reads one frame and
  returns its features, or `None` at the end of the stream. A short last frame
  is padded with zeros.
- `FeatureExtractor` raises `ValueError` if `fft_size` is not a power of two,
  if `feature_size` is not between 1 and `fft_size`, or if `sample_rate` is
  not positive.
- `read_samples(stream, audio_format, size=512)` returns `size` samples as
  doubles: PCM is scaled to [-1, 1), float NaN and infinities become zero, and
  missing samples are zero. An unknown format raises `ValueError`.
- `hamming_window(size)` is the symmetric Hamming window.
- `magnitude_spectrum(samples)` gives the FFT magnitudes of the
  Hamming-windowed samples, over all bins.
- `format_features(features)` renders values with six decimals, separated by
  `, `.

## What it does not do

- There is no command-line program; the package is used from Python.
- No classifier is included. You supply the model that `PredictionEngine`
  calls.
- Only the first channel layout as stored is read: samples are taken in file
  order, so multi-channel data is not split into channels.