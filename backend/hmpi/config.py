"""
config.py - Pollution Index Configuration Constants
====================================================

Centralizes the regulatory standards table, the formula weights, the
classification breakpoints, the recommendation thresholds and the file
paths of the trained model artifacts.

The standards and thresholds are fixed by the drinking-water guidelines the
indices are built on and are NOT meant to be tuned at runtime. Only the
operational knobs at the bottom of this file (model directory, worker
count, log level, service port) read environment overrides.

Concentrations everywhere in the package are in ppm (mg/L).
"""

import os

# ═══════════════════════════════════════════════════════════════════
# METALS
# ═══════════════════════════════════════════════════════════════════

# Canonical metal order. This is also the feature order expected by every
# trained model, so it must never be reordered.
METALS = (
    "lead",
    "arsenic",
    "cadmium",
    "chromium",
    "copper",
    "iron",
    "zinc",
)

# ═══════════════════════════════════════════════════════════════════
# STANDARDS TABLE
# ═══════════════════════════════════════════════════════════════════

# Permissible limit Si (ppm) for each metal.
STANDARDS = {
    "lead": 0.01,
    "arsenic": 0.01,
    "cadmium": 0.003,
    "chromium": 0.05,
    "copper": 2.0,
    "iron": 0.3,
    "zinc": 3.0,
}

# Unit weight Wi used by the HPI. Sums to 1.0 across the seven metals.
WEIGHTS = {
    "lead": 0.20,
    "arsenic": 0.20,
    "cadmium": 0.20,
    "chromium": 0.15,
    "copper": 0.10,
    "iron": 0.10,
    "zinc": 0.05,
}

# Geological background ratios for the Enrichment Factor.
# Iron is the reference element (ratio 1.0) and is excluded from the mean.
BACKGROUND_RATIOS = {
    "lead": 0.5,
    "arsenic": 0.3,
    "cadmium": 0.2,
    "chromium": 0.8,
    "copper": 1.2,
    "iron": 1.0,
    "zinc": 0.9,
}

REFERENCE_METAL = "iron"

# Decimal places kept for metal/standard ratios and computed indices.
# Inputs are decimal ppm readings; rounding here absorbs binary
# floating-point error so that e.g. 0.03 / 0.01 yields exactly 3.
INDEX_DECIMALS = 9

# ═══════════════════════════════════════════════════════════════════
# CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════

# HPI breakpoints. Each level covers [previous, breakpoint).
HPI_SAFE_LIMIT = 100.0
HPI_MODERATE_LIMIT = 200.0
HPI_HIGH_LIMIT = 300.0

# Combined (hpi, hei, cd) upper bounds used by the narrative risk text.
# A tier is chosen only if all three indices are below its bounds.
RISK_TIERS = (
    ("Safe", 100.0, 1.0, 7.0),
    ("Moderate", 200.0, 2.0, 14.0),
    ("High", 300.0, 3.0, 21.0),
)

# ═══════════════════════════════════════════════════════════════════
# ML ADAPTERS
# ═══════════════════════════════════════════════════════════════════

# Anomaly scores are in [0, 1]; a sample is flagged strictly above this.
ANOMALY_THRESHOLD = 0.8

# Number of output probabilities expected from the safety classifier.
N_SAFETY_CLASSES = 4

# ═══════════════════════════════════════════════════════════════════
# RECOMMENDATION THRESHOLDS
# ═══════════════════════════════════════════════════════════════════

# |ML HPI - formula HPI| above this asks for manual verification.
DISCREPANCY_THRESHOLD = 50.0

# |ML HPI - ensemble HPI| above this asks for expert review.
ENSEMBLE_DISAGREEMENT_THRESHOLD = 30.0

# Metal-specific action limits (ppm). These are treatment triggers and
# are deliberately distinct from STANDARDS.
METAL_ACTION_LIMITS = {
    "lead": 0.015,
    "arsenic": 0.010,
    "cadmium": 0.005,
    "chromium": 0.100,
}

# A concentration above this multiple of its standard is reported as
# "high" in batch summaries.
HIGH_CONCENTRATION_FACTOR = 2.0

# ═══════════════════════════════════════════════════════════════════
# INGESTION LIMITS
# ═══════════════════════════════════════════════════════════════════

# Upper bound enforced by the entry form. The formulas themselves do not
# depend on it.
MAX_CONCENTRATION_PPM = 10.0

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)

# ═══════════════════════════════════════════════════════════════════
# TRAINING HYPERPARAMETERS
# ═══════════════════════════════════════════════════════════════════

# Trees per random forest (regressor, classifier, ensemble members).
N_ESTIMATORS = 100

# Expected share of unusual samples in the training data.
CONTAMINATION = 0.05

# Number of synthetic samples generated when no training data is given.
SYNTHETIC_SAMPLE_COUNT = 2000

RANDOM_STATE = 42

# ═══════════════════════════════════════════════════════════════════
# MODEL ARTIFACT PATHS
# ═══════════════════════════════════════════════════════════════════

_PKG_DIR = os.path.dirname(os.path.abspath(__file__))

# Directory holding the trained artifacts (override with HMPI_MODEL_DIR).
SAVED_DIR = os.environ.get("HMPI_MODEL_DIR", os.path.join(_PKG_DIR, "saved"))

REGRESSION_MODEL_FILE = "heavy_metal_model.pkl"
CLASSIFIER_MODEL_FILE = "safety_classifier.pkl"
ANOMALY_MODEL_FILE = "anomaly_detector.pkl"
ENSEMBLE_MODEL_FILES = (
    "ensemble_model_1.pkl",
    "ensemble_model_2.pkl",
    "ensemble_model_3.pkl",
)
PREPROCESSING_PARAMS_FILE = "preprocessing_params.json"

# ═══════════════════════════════════════════════════════════════════
# RUNTIME
# ═══════════════════════════════════════════════════════════════════

# Worker threads for batch calculation. 0 lets the executor pick.
BATCH_MAX_WORKERS = int(os.environ.get("HMPI_BATCH_WORKERS", "0"))

# HTTP service port.
SERVICE_PORT = int(os.environ.get("HMPI_SERVICE_PORT", "5060"))

# Log level for the package (DEBUG, INFO, WARNING, ERROR, CRITICAL)
LOG_LEVEL = os.environ.get("HMPI_LOG_LEVEL", "INFO")
