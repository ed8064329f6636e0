"""
model.py - Model Handle Capability
===================================

The calculation core never touches a concrete ML library directly. Every
trained model is seen through the ModelHandle capability:

    predict(vector) -> list[float]   one standardized feature vector in,
                                     plain floats out
    dispose()                        release the underlying model

SklearnModelHandle implements it for the scikit-learn estimators produced
by train.py and persisted with joblib. The 2-D input array and the raw
output array only live for the duration of one predict() call; callers
get plain Python floats back.

Handle kinds:
    regressor  - [hpi]
    classifier - [p_safe, p_moderate, p_high, p_critical]
    anomaly    - [score in 0..1], 1 = most unusual
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

import joblib
import numpy as np

from . import config

logger = logging.getLogger("hmpi.model")

REGRESSOR = "regressor"
CLASSIFIER = "classifier"
ANOMALY = "anomaly"

_KINDS = (REGRESSOR, CLASSIFIER, ANOMALY)


class ModelHandle(ABC):
    """Opaque inference capability used by the ML adapters."""

    @abstractmethod
    def predict(self, vector: Sequence[float]) -> List[float]:
        """Run inference on one feature vector."""

    @abstractmethod
    def dispose(self) -> None:
        """Release the model. Further predict() calls raise RuntimeError."""


class SklearnModelHandle(ModelHandle):
    """
    ModelHandle backed by a fitted scikit-learn estimator.

    Attributes:
        estimator: The fitted estimator, or None once disposed.
        kind (str): One of "regressor", "classifier", "anomaly".
        name (str): Label used in log messages.
    """

    def __init__(self, estimator, kind: str, name: str = None):
        if kind not in _KINDS:
            raise ValueError(f"Unknown model kind '{kind}', expected one of {_KINDS}")
        self.estimator = estimator
        self.kind = kind
        self.name = name or kind

    def predict(self, vector: Sequence[float]) -> List[float]:
        """
        Run the estimator on a single standardized feature vector.

        Args:
            vector: Standardized features in config.METALS order.

        Returns:
            Plain floats; see the module docstring for the layout per kind.

        Raises:
            RuntimeError: If the handle has been disposed.
        """
        self._check_loaded()
        X = np.asarray([vector], dtype=float)
        if self.kind == REGRESSOR:
            return [float(self.estimator.predict(X)[0])]
        if self.kind == CLASSIFIER:
            return self._class_probabilities(X)
        return [self._anomaly_score(X)]

    def _class_probabilities(self, X: np.ndarray) -> List[float]:
        """
        predict_proba aligned to the four safety class indices.

        A classifier trained on data lacking some class only reports the
        classes it saw (estimator.classes_); the missing ones get 0.
        """
        proba = self.estimator.predict_proba(X)[0]
        aligned = [0.0] * config.N_SAFETY_CLASSES
        for label, p in zip(self.estimator.classes_, proba):
            aligned[int(label)] = float(p)
        return aligned

    def _anomaly_score(self, X: np.ndarray) -> float:
        """
        Normalized anomaly score in [0, 1].

        IsolationForest.decision_function is negative for anomalies and
        positive for inliers; it is mapped through 1 - sigmoid(raw):
            0.0 = definitely normal
            1.0 = definitely anomalous
        """
        raw = self.estimator.decision_function(X)
        normalized = 1.0 / (1.0 + np.exp(raw))
        return float(np.clip(normalized, 0.0, 1.0)[0])

    def dispose(self) -> None:
        if self.estimator is not None:
            logger.debug(f"Disposing model handle '{self.name}'")
        self.estimator = None

    def _check_loaded(self) -> None:
        """Raise if the handle has been disposed."""
        if self.estimator is None:
            raise RuntimeError(f"Model '{self.name}' has been disposed")

    # ── Persistence ───────────────────────────────────────────────

    def save(self, path: str) -> None:
        """Serialize the estimator to disk using joblib."""
        self._check_loaded()
        joblib.dump(self.estimator, path)
        logger.info(f"Model '{self.name}' saved to {path}")

    @classmethod
    def load(cls, path: str, kind: str, name: str = None) -> "SklearnModelHandle":
        """Load a joblib-serialized estimator from disk."""
        estimator = joblib.load(path)
        logger.info(f"Model '{name or kind}' loaded from {path}")
        return cls(estimator, kind, name=name)
