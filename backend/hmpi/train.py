"""
train.py - Model Training for the ML Adapters
==============================================

Trains every artifact the model provider (registry.py) loads and saves
them to the artifact directory.

This script can be run standalone:
    python -m backend.hmpi.train [samples.csv]

Or called programmatically:
    from backend.hmpi.train import train_models
    train_models(samples_df)

Training flow:
    1. Take a DataFrame of samples (one column per metal, ppm), or
       generate a synthetic batch when none is given
    2. Drop rows with missing or non-numeric concentrations
    3. Label each row with the formula engine (HPI, safety level index)
    4. Fit the standardization params and standardize the features
    5. Train the HPI regressor and the safety level classifier
    6. Train the IsolationForest anomaly detector
    7. Train the ensemble regressors
    8. Save all models (joblib) and preprocessing_params.json
"""

import os
import sys
import logging
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.ensemble import (
    ExtraTreesRegressor,
    GradientBoostingRegressor,
    IsolationForest,
    RandomForestClassifier,
    RandomForestRegressor,
)
from sklearn.linear_model import Ridge

from . import config
from .formulas import calculate_hpi, get_safety_level
from .model import ANOMALY, CLASSIFIER, REGRESSOR, SklearnModelHandle
from .preprocessing import fit_preprocessing_params, remove_missing
from .records import Sample
from .utils import ensure_saved_dir, setup_logging

logger = logging.getLogger("hmpi.train")

# Fewer rows than this cannot produce meaningful models.
MIN_TRAINING_SAMPLES = 50


def generate_synthetic_samples(n: int = None, random_state: int = None) -> pd.DataFrame:
    """
    Generate a synthetic batch of groundwater samples.

    Each concentration is its standard times a lognormal factor, so about
    half of the readings exceed their limit and a long tail reaches the
    Critical range. Values are clipped to the ingestion limits.

    Args:
        n: Number of samples. Defaults to config.SYNTHETIC_SAMPLE_COUNT.
        random_state: Seed. Defaults to config.RANDOM_STATE.

    Returns:
        DataFrame with a sample_id column and one column per metal.
    """
    n = n or config.SYNTHETIC_SAMPLE_COUNT
    rng = np.random.default_rng(config.RANDOM_STATE if random_state is None else random_state)

    data = {"sample_id": [f"SYN-{i:05d}" for i in range(n)]}
    for metal in config.METALS:
        factors = rng.lognormal(mean=0.0, sigma=0.8, size=n)
        data[metal] = np.clip(config.STANDARDS[metal] * factors, 0.0,
                              config.MAX_CONCENTRATION_PPM)
    logger.info(f"Generated {n} synthetic training samples")
    return pd.DataFrame(data)


def label_samples(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add the formula engine targets to a sample DataFrame.

    Adds ``hpi`` (float) and ``safety_class`` (0=Safe .. 3=Critical).
    """
    df = df.copy()
    hpis = [calculate_hpi(Sample.from_dict(row))
            for row in df[list(config.METALS)].to_dict("records")]
    df["hpi"] = hpis
    df["safety_class"] = [get_safety_level(h).rank for h in hpis]
    return df


def train_models(samples: Optional[pd.DataFrame] = None, model_dir: str = None) -> bool:
    """
    Complete training pipeline: samples -> labels -> preprocess -> train -> save.

    Args:
        samples: Training samples. A synthetic batch is used when None.
        model_dir: Output directory. Defaults to config.SAVED_DIR.

    Returns:
        True if training succeeded, False otherwise.
    """
    setup_logging()
    model_dir = ensure_saved_dir(model_dir)

    logger.info("=" * 60)
    logger.info("STARTING MODEL TRAINING PIPELINE")
    logger.info("=" * 60)

    # ── Step 1 & 2: Samples and cleaning ─────────────────────────
    if samples is None:
        samples = generate_synthetic_samples()

    missing = [metal for metal in config.METALS if metal not in samples.columns]
    if missing:
        logger.error(f"Training data is missing columns: {missing}")
        return False

    df = remove_missing(samples)
    if len(df) < MIN_TRAINING_SAMPLES:
        logger.error(f"Only {len(df)} usable samples. "
                     f"Need at least {MIN_TRAINING_SAMPLES}.")
        return False

    # ── Step 3: Formula engine labels ────────────────────────────
    df = label_samples(df)
    class_counts = df["safety_class"].value_counts().sort_index().to_dict()
    logger.info(f"Label distribution (class -> count): {class_counts}")

    # ── Step 4: Standardization ──────────────────────────────────
    X_raw = df[list(config.METALS)].to_numpy(dtype=float)
    params = fit_preprocessing_params(X_raw)
    X = (X_raw - np.asarray(params.feature_means)) / np.asarray(params.feature_stds)
    y_hpi = df["hpi"].to_numpy(dtype=float)
    y_class = df["safety_class"].to_numpy(dtype=int)

    # ── Step 5: Regressor and classifier ─────────────────────────
    logger.info(f"Training regressor and classifier on {X.shape[0]} samples …")
    regressor = RandomForestRegressor(n_estimators=config.N_ESTIMATORS,
                                      random_state=config.RANDOM_STATE)
    regressor.fit(X, y_hpi)
    classifier = RandomForestClassifier(n_estimators=config.N_ESTIMATORS,
                                        random_state=config.RANDOM_STATE)
    classifier.fit(X, y_class)
    logger.info(f"Regressor R² (train): {regressor.score(X, y_hpi):.3f}")
    logger.info(f"Classifier accuracy (train): {classifier.score(X, y_class):.3f}")

    # ── Step 6: Anomaly detector ─────────────────────────────────
    detector = IsolationForest(n_estimators=config.N_ESTIMATORS,
                               contamination=config.CONTAMINATION,
                               random_state=config.RANDOM_STATE)
    detector.fit(X)
    anomaly_handle = SklearnModelHandle(detector, ANOMALY, name="anomaly")
    scores = np.array([anomaly_handle.predict(row)[0] for row in X])
    logger.info(f"Anomaly score range: [{scores.min():.3f}, {scores.max():.3f}], "
                f"{int((scores > config.ANOMALY_THRESHOLD).sum())} above threshold")

    # ── Step 7: Ensemble ─────────────────────────────────────────
    ensemble = [
        ExtraTreesRegressor(n_estimators=config.N_ESTIMATORS,
                            random_state=config.RANDOM_STATE + 1),
        GradientBoostingRegressor(random_state=config.RANDOM_STATE + 2),
        Ridge(alpha=1.0),
    ]
    for member in ensemble:
        member.fit(X, y_hpi)
        logger.info(f"Ensemble member {type(member).__name__} R² (train): "
                    f"{member.score(X, y_hpi):.3f}")

    # ── Step 8: Save artifacts ───────────────────────────────────
    SklearnModelHandle(regressor, REGRESSOR, name="regression").save(
        os.path.join(model_dir, config.REGRESSION_MODEL_FILE))
    SklearnModelHandle(classifier, CLASSIFIER, name="classifier").save(
        os.path.join(model_dir, config.CLASSIFIER_MODEL_FILE))
    anomaly_handle.save(os.path.join(model_dir, config.ANOMALY_MODEL_FILE))
    for i, (member, filename) in enumerate(zip(ensemble, config.ENSEMBLE_MODEL_FILES), start=1):
        SklearnModelHandle(member, REGRESSOR, name=f"ensemble_{i}").save(
            os.path.join(model_dir, filename))
    params.save(os.path.join(model_dir, config.PREPROCESSING_PARAMS_FILE))

    logger.info("=" * 60)
    logger.info("MODEL TRAINING COMPLETE")
    logger.info(f"  Artifacts saved to: {model_dir}")
    logger.info("=" * 60)

    return True


# ── CLI entry point ──────────────────────────────────────────────
if __name__ == "__main__":
    data = pd.read_csv(sys.argv[1]) if len(sys.argv) > 1 else None
    success = train_models(data)
    sys.exit(0 if success else 1)
