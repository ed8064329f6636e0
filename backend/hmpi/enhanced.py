"""
enhanced.py - Enhanced ML Adapter (Anomaly Detection + Ensemble)
=================================================================

Extends the ML prediction adapter with two independent refinements:

1. Anomaly detection: a dedicated model scores how unusual the sample's
   metal profile is (0 = typical, 1 = very unusual). Scores strictly above
   config.ANOMALY_THRESHOLD flag the sample.

2. Ensemble: N independent HPI regressors run on the same input. Their
   mean is the ensemble HPI and their agreement is turned into a
   confidence score:
       confidence = 1 / (1 + variance)
   which is 1 when all members agree and decays smoothly toward 0 as they
   disagree.

Every sub-step degrades to its own sentinel (no anomaly / score 0, no
ensemble HPI / confidence) without affecting the others.
"""

import logging
import math
import sys
from typing import List, Optional, Sequence, Tuple

import numpy as np

from . import config
from .inference import MLPredictionAdapter
from .model import ModelHandle
from .records import AnomalyResult, EnhancedPrediction, Sample

logger = logging.getLogger("hmpi.enhanced")


def ensemble_statistics(outputs: Sequence[float]) -> Tuple[Optional[float], Optional[float]]:
    """
    Mean and variance-derived confidence of the ensemble outputs.

    Args:
        outputs: Successful ensemble member predictions.

    Returns:
        (ensemble_hpi, confidence), or (None, None) if ``outputs`` is empty.
        Confidence is in (0, 1] and exactly 1 when all outputs are identical.
    """
    if len(outputs) == 0:
        return None, None

    values = np.asarray(outputs, dtype=float)
    if values.min() == values.max():
        return float(values[0]), 1.0

    # Population variance (ddof=0); a huge spread may overflow to inf
    with np.errstate(over="ignore"):
        mean = float(values.mean())
        variance = float(values.var())
    confidence = 1.0 / (1.0 + variance)
    # Differing outputs stay strictly inside (0, 1)
    confidence = min(max(confidence, sys.float_info.min), math.nextafter(1.0, 0.0))
    return mean, confidence


class EnhancedMLAdapter(MLPredictionAdapter):
    """
    ML prediction adapter with anomaly detection and ensemble prediction.

    Usage:
        adapter = EnhancedMLAdapter(load_enhanced_models())
        prediction = adapter.predict_enhanced(sample)
    """

    def detect_anomalies(self, sample: Sample) -> AnomalyResult:
        """
        Score how unusual a sample is.

        Returns:
            AnomalyResult; (False, 0.0) if the detector is unavailable or fails.
        """
        registry = self.registry
        if not registry.supported or registry.anomaly is None or registry.preprocessing is None:
            logger.debug("Anomaly detection model not loaded")
            return AnomalyResult()

        try:
            output = registry.anomaly.predict(self.features(sample))
            score = float(output[0])
            if not math.isfinite(score):
                raise ValueError(f"non-finite anomaly score ({score})")
        except Exception as e:
            logger.error(f"Anomaly detection failed for '{sample.sample_id}': {e}",
                         exc_info=True)
            return AnomalyResult()

        score = min(max(score, 0.0), 1.0)
        is_anomaly = score > config.ANOMALY_THRESHOLD
        if is_anomaly:
            logger.warning(f"Sample '{sample.sample_id}' flagged as anomalous "
                           f"(score={score:.3f}, threshold={config.ANOMALY_THRESHOLD})")
        return AnomalyResult(is_anomaly=is_anomaly, anomaly_score=score)

    def ensemble_predict(self, sample: Sample,
                         models: Sequence[ModelHandle] = None) -> List[float]:
        """
        Run every ensemble member on the sample.

        Members that raise or return a non-finite value are skipped.

        Args:
            sample: The groundwater sample.
            models: Members to run. Defaults to the registry's ensemble.

        Returns:
            Outputs of the members that succeeded, possibly empty.
        """
        models = self.registry.ensemble if models is None else models
        if not models or not self.registry.supported or self.registry.preprocessing is None:
            return []

        features = self.features(sample)
        outputs = []
        for i, model in enumerate(models):
            try:
                outputs.append(self.run_regressor(model, features))
            except Exception as e:
                logger.warning(f"Error in ensemble member {i} prediction: {e}")
        logger.debug(f"Ensemble for '{sample.sample_id}': "
                     f"{len(outputs)}/{len(models)} members succeeded")
        return outputs

    def predict_enhanced(self, sample: Sample) -> EnhancedPrediction:
        """
        Primary prediction, anomaly fields and ensemble fields together.

        Args:
            sample: The groundwater sample.

        Returns:
            EnhancedPrediction; any failing sub-step leaves its fields at
            their unavailable sentinel.
        """
        primary = self.predict(sample)
        anomaly = self.detect_anomalies(sample)

        try:
            outputs = self.ensemble_predict(sample)
        except Exception as e:
            logger.warning(f"Ensemble prediction failed for '{sample.sample_id}': {e}")
            outputs = []
        ensemble_hpi, confidence = ensemble_statistics(outputs)

        return EnhancedPrediction(
            hpi=primary.hpi,
            safety_level=primary.safety_level,
            is_anomaly=anomaly.is_anomaly,
            anomaly_score=anomaly.anomaly_score,
            ensemble_hpi=ensemble_hpi,
            confidence=confidence,
            reason=primary.reason,
        )
