"""
registry.py - Model Registry and Model Provider
================================================

ModelRegistry is the explicit set of model handles an orchestrator is
constructed with. "No models" is simply an empty registry (or None), so
the formula fallback path never depends on hidden global state.

The provider functions load the artifacts written by train.py:

    heavy_metal_model.pkl      HPI regressor          (required)
    safety_classifier.pkl      safety level classifier (required)
    anomaly_detector.pkl       IsolationForest         (enhanced, optional)
    ensemble_model_{1,2,3}.pkl HPI regressors          (enhanced, optional)
    preprocessing_params.json  feature means / stds    (required)

Loading happens once at start-up. Failures are logged and reported as a
missing registry; the core degrades to the formula engine and never
retries.
"""

import logging
import os
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from . import config
from .model import ANOMALY, CLASSIFIER, REGRESSOR, ModelHandle, SklearnModelHandle
from .preprocessing import PreprocessingParams

logger = logging.getLogger("hmpi.registry")


@dataclass(frozen=True)
class ModelRegistry:
    """
    Immutable bundle of loaded model handles.

    Attributes:
        regression: HPI regressor handle.
        classifier: Safety level classifier handle.
        anomaly: Anomaly detector handle (enhanced only).
        ensemble: Additional HPI regressors (enhanced only).
        preprocessing: Standardization params shared by every model.
        supported: False where model execution is not available at all;
            adapters then report every prediction as unavailable.
    """
    regression: Optional[ModelHandle] = None
    classifier: Optional[ModelHandle] = None
    anomaly: Optional[ModelHandle] = None
    ensemble: Tuple[ModelHandle, ...] = ()
    preprocessing: Optional[PreprocessingParams] = None
    supported: bool = True

    @classmethod
    def empty(cls) -> "ModelRegistry":
        return cls()

    @classmethod
    def unsupported(cls) -> "ModelRegistry":
        return cls(supported=False)

    @property
    def has_primary_models(self) -> bool:
        """True if the regressor, classifier and preprocessing params are all present."""
        return (self.supported
                and self.regression is not None
                and self.classifier is not None
                and self.preprocessing is not None)

    def handles(self) -> Iterator[ModelHandle]:
        for handle in (self.regression, self.classifier, self.anomaly, *self.ensemble):
            if handle is not None:
                yield handle

    def dispose(self) -> None:
        """Release every model handle held by the registry."""
        for handle in self.handles():
            handle.dispose()

    def status(self) -> dict:
        """Summary of what is loaded, for health / status reporting."""
        return {
            "supported": self.supported,
            "regression": self.regression is not None,
            "classifier": self.classifier is not None,
            "anomaly": self.anomaly is not None,
            "ensemble_members": len(self.ensemble),
            "preprocessing": self.preprocessing is not None,
        }


def _load_primary(model_dir: str) -> Tuple[ModelHandle, ModelHandle, PreprocessingParams]:
    regression = SklearnModelHandle.load(
        os.path.join(model_dir, config.REGRESSION_MODEL_FILE), REGRESSOR, name="regression")
    classifier = SklearnModelHandle.load(
        os.path.join(model_dir, config.CLASSIFIER_MODEL_FILE), CLASSIFIER, name="classifier")
    params = PreprocessingParams.load(
        os.path.join(model_dir, config.PREPROCESSING_PARAMS_FILE))
    return regression, classifier, params


def load_standard_models(model_dir: str = None) -> Optional[ModelRegistry]:
    """
    Load the regressor, the classifier and the preprocessing params.

    Args:
        model_dir: Artifact directory. Defaults to config.SAVED_DIR.

    Returns:
        ModelRegistry, or None if any required artifact failed to load.
    """
    model_dir = model_dir or config.SAVED_DIR
    logger.info(f"Loading standard models from {model_dir}")
    try:
        regression, classifier, params = _load_primary(model_dir)
    except Exception as e:
        logger.error(f"Failed to load standard models: {e}", exc_info=True)
        return None

    logger.info("Standard models loaded successfully")
    return ModelRegistry(regression=regression, classifier=classifier,
                         preprocessing=params)


def load_enhanced_models(model_dir: str = None) -> Optional[ModelRegistry]:
    """
    Load the standard models plus the anomaly detector and ensemble.

    The anomaly detector and each ensemble member are optional: a member
    that fails to load is logged and left out.

    Args:
        model_dir: Artifact directory. Defaults to config.SAVED_DIR.

    Returns:
        ModelRegistry, or None if a required artifact failed to load.
    """
    model_dir = model_dir or config.SAVED_DIR
    logger.info(f"Loading enhanced models from {model_dir}")
    try:
        regression, classifier, params = _load_primary(model_dir)
    except Exception as e:
        logger.error(f"Failed to load enhanced models: {e}", exc_info=True)
        return None

    anomaly = None
    try:
        anomaly = SklearnModelHandle.load(
            os.path.join(model_dir, config.ANOMALY_MODEL_FILE), ANOMALY, name="anomaly")
    except Exception as e:
        logger.warning(f"Failed to load anomaly detection model: {e}")

    ensemble = []
    for i, filename in enumerate(config.ENSEMBLE_MODEL_FILES, start=1):
        path = os.path.join(model_dir, filename)
        try:
            ensemble.append(SklearnModelHandle.load(path, REGRESSOR, name=f"ensemble_{i}"))
        except Exception as e:
            logger.warning(f"Failed to load ensemble model from {path}: {e}")

    logger.info(f"Enhanced models loaded (anomaly={anomaly is not None}, "
                f"ensemble={len(ensemble)}/{len(config.ENSEMBLE_MODEL_FILES)})")
    return ModelRegistry(regression=regression, classifier=classifier,
                         anomaly=anomaly, ensemble=tuple(ensemble),
                         preprocessing=params)
