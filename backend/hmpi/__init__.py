"""
backend.hmpi - Groundwater Heavy-Metal Pollution Index Engine
==============================================================

Computes standardized pollution indices for groundwater heavy-metal
samples, optionally refined by trained models, with a deterministic
fallback to the closed-form formulas.

Architecture:
    Sample (7 metal concentrations, ppm)
        │
        ├── Formula Engine (always): HPI, HEI, Cd, EF, safety level
        │
        └── ML adapters (when models are loaded):
              Enhanced: regressor + classifier + anomaly detector + ensemble
              Standard: regressor + classifier
        ↓
    Orchestrator: enhanced → standard → formula fallback
        ↓
    EnhancedResult: indices, safety level, risk narrative,
                    anomaly / ensemble fields, recommendations

Modules:
    config          - Standards table, thresholds, paths
    exceptions      - InputError, DegenerateComputationError
    records         - Sample and result records
    formulas        - HPI / HEI / Cd / EF / safety level
    risk            - Risk narrative and formula documentation
    preprocessing   - Feature standardization params
    model           - ModelHandle capability (scikit-learn backed)
    registry        - ModelRegistry and model artifact loading
    inference       - ML prediction adapter
    enhanced        - Anomaly detection and ensemble adapter
    recommendations - Rule-based remediation advice
    pipeline        - Per-sample and batch orchestration
    summary         - Batch summary statistics
    train           - Model training
    service         - Flask HTTP service
    utils           - Logging setup and sample validation
"""

__version__ = "1.0.0"
__author__ = "Groundwater Quality Team"
