"""Classification of feature vectors by a pluggable model."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Protocol, Union

import numpy as np


class Classifier(Protocol):
    """Anything with a predict method taking a float32 feature vector."""

    def predict(self, features: np.ndarray) -> Any: ...


Model = Union[Classifier, Callable[[np.ndarray], Any]]


class PredictionEngine:
    """Runs a classifier on feature vectors; without a model it predicts 0."""

    def __init__(self, model: Model | None) -> None:
        if model is not None and not (hasattr(model, "predict") or callable(model)):
            raise TypeError("model must have a predict method or be callable")
        self._model = model

    @property
    def ready(self) -> bool:
        """Whether a model is attached."""
        return self._model is not None

    def predict(self, features: Iterable[float]) -> int:
        """Return the model's class label for `features` as an int."""
        if self._model is None:
            return 0
        vector = np.asarray(
            features if isinstance(features, np.ndarray) else list(features),
            dtype=np.float32,
        )
        predict = getattr(self._model, "predict", None) or self._model
        return int(predict(vector))