"""
preprocessing.py - Feature Standardization for the ML Models
=============================================================

Responsibilities:
1. Hold the per-feature mean / std the models were trained with
   (PreprocessingParams, persisted as preprocessing_params.json).
2. Standardize a 7-metal concentration vector before inference:
       z_i = (value_i - mean_i) / std_i
3. Fit those parameters from training data with StandardScaler and
   drop incomplete training rows.

The parameters are produced by train.py and loaded by the model provider
(registry.py). The calculation core treats them as injected configuration.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from . import config

logger = logging.getLogger("hmpi.preprocessing")


@dataclass(frozen=True)
class PreprocessingParams:
    """
    Standardization parameters for the model feature vector.

    Attributes:
        feature_means: Mean of each feature in the training data.
        feature_stds: Standard deviation of each feature.
        feature_names: Feature names, in model input order.
    """
    feature_means: List[float]
    feature_stds: List[float]
    feature_names: List[str] = field(default_factory=lambda: list(config.METALS))

    def standardize(self, values: Sequence[float]) -> List[float]:
        """
        Standardize a raw feature vector.

        A missing mean is treated as 0 and a missing or zero std as 1, so a
        constant training feature passes through centred but unscaled.

        Args:
            values: Raw concentrations in model feature order.

        Returns:
            Standardized values, same length as ``values``.
        """
        standardized = []
        for i, value in enumerate(values):
            mean = self.feature_means[i] if i < len(self.feature_means) else 0.0
            std = self.feature_stds[i] if i < len(self.feature_stds) else 1.0
            standardized.append((value - (mean or 0.0)) / (std or 1.0))
        return standardized

    # ── Persistence ───────────────────────────────────────────────

    @classmethod
    def from_dict(cls, data: dict) -> "PreprocessingParams":
        return cls(
            feature_means=[float(v) for v in data["feature_means"]],
            feature_stds=[float(v) for v in data["feature_stds"]],
            feature_names=list(data.get("feature_names", config.METALS)),
        )

    def to_dict(self) -> dict:
        return {
            "feature_means": list(self.feature_means),
            "feature_stds": list(self.feature_stds),
            "feature_names": list(self.feature_names),
        }

    @classmethod
    def load(cls, path: str) -> "PreprocessingParams":
        """Load parameters from a preprocessing_params.json file."""
        with open(path, "r", encoding="utf-8") as f:
            params = cls.from_dict(json.load(f))
        logger.info(f"Preprocessing params loaded from {path}")
        return params

    def save(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Preprocessing params saved to {path}")


# ── Training-time helpers ─────────────────────────────────────────

def remove_missing(df: pd.DataFrame, columns: Sequence[str] = config.METALS) -> pd.DataFrame:
    """
    Drop rows with a missing or non-numeric concentration.

    Args:
        df: Raw sample DataFrame.
        columns: Concentration columns that must be present.

    Returns:
        DataFrame with incomplete rows removed and a fresh index.
    """
    df = df.copy()
    for col in columns:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    before = len(df)
    df_clean = df.dropna(subset=list(columns))
    dropped = before - len(df_clean)
    if dropped > 0:
        logger.info(f"Removed {dropped} rows with missing values "
                    f"({dropped / before * 100:.1f}% of data)")
    return df_clean.reset_index(drop=True)


def fit_preprocessing_params(features: np.ndarray,
                             feature_names: Sequence[str] = config.METALS
                             ) -> PreprocessingParams:
    """
    Fit standardization parameters on training features.

    Args:
        features: 2-D array of shape (n_samples, n_features).
        feature_names: Names of the feature columns.

    Returns:
        PreprocessingParams with the fitted means and stds.
    """
    scaler = StandardScaler()
    scaler.fit(features)
    logger.info(f"Scaler fitted on {features.shape[0]} samples, "
                f"{features.shape[1]} features")
    return PreprocessingParams(
        feature_means=[float(v) for v in scaler.mean_],
        feature_stds=[float(v) for v in scaler.scale_],
        feature_names=list(feature_names),
    )
