"""
inference.py - ML Prediction Adapter
=====================================

Runs the HPI regressor and the safety level classifier on one sample:
    sample -> 7-metal vector -> standardize -> regressor -> hpi
                                            -> classifier -> argmax -> safety level

The adapter never raises. Missing models, unsupported model execution or
any numeric failure produce MLPrediction.unavailable(reason), which tells
the orchestrator to defer to the formula engine.
"""

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from .model import ModelHandle
from .records import MLPrediction, Sample, SafetyLevel
from .registry import ModelRegistry

logger = logging.getLogger("hmpi.inference")


class MLPredictionAdapter:
    """
    Fail-soft wrapper around the regression and classification models.

    Usage:
        adapter = MLPredictionAdapter(load_standard_models())
        prediction = adapter.predict(sample)
        if prediction.available:
            ...
    """

    def __init__(self, registry: Optional[ModelRegistry] = None):
        self.registry = registry or ModelRegistry.empty()

    def _unavailable_reason(self) -> Optional[str]:
        if not self.registry.supported:
            return "model execution is not supported in this context"
        if not self.registry.has_primary_models:
            return "models not loaded"
        return None

    def features(self, sample: Sample) -> List[float]:
        """Standardized model input vector for a sample."""
        return self.registry.preprocessing.standardize(sample.to_vector())

    @staticmethod
    def run_regressor(handle: ModelHandle, features: Sequence[float]) -> float:
        """
        Scalar output of a regression handle.

        Raises:
            ValueError: If the model returned no output or a non-finite value.
        """
        output = handle.predict(features)
        if len(output) == 0:
            raise ValueError("regressor returned an empty output")
        value = float(output[0])
        if not math.isfinite(value):
            raise ValueError(f"regressor returned a non-finite value ({value})")
        return value

    @staticmethod
    def run_classifier(handle: ModelHandle, features: Sequence[float]) -> Optional[SafetyLevel]:
        """Arg-max over the classifier probabilities, mapped to a safety level."""
        probabilities = handle.predict(features)
        if len(probabilities) == 0:
            raise ValueError("classifier returned an empty output")
        return SafetyLevel.from_index(int(np.argmax(probabilities)))

    def predict(self, sample: Sample) -> MLPrediction:
        """
        Predict HPI and safety level for one sample.

        Args:
            sample: The groundwater sample.

        Returns:
            MLPrediction with both fields set, or both None with a reason.
        """
        reason = self._unavailable_reason()
        if reason is not None:
            logger.debug(f"ML prediction skipped for '{sample.sample_id}': {reason}")
            return MLPrediction.unavailable(reason)

        try:
            features = self.features(sample)
            hpi = self.run_regressor(self.registry.regression, features)
            safety_level = self.run_classifier(self.registry.classifier, features)
        except Exception as e:
            logger.error(f"ML prediction failed for '{sample.sample_id}': {e}", exc_info=True)
            return MLPrediction.unavailable(f"prediction failed: {e}")

        if safety_level is None:
            logger.warning(f"Classifier returned an unknown class for '{sample.sample_id}'")
            return MLPrediction.unavailable("classifier returned an unknown class")

        logger.debug(f"ML prediction for '{sample.sample_id}': "
                     f"hpi={hpi:.2f} level={safety_level.value}")
        return MLPrediction(hpi=hpi, safety_level=safety_level)
