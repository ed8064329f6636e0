"""
recommendations.py - Remediation Recommendation Engine
=======================================================

Rule-based advisories for one analysed sample. Rules are evaluated in
order and accumulate; they are not mutually exclusive:

    1. ML vs formula HPI discrepancy  -> manual verification
    2. Safety level                   -> escalating advisory
    3. Anomaly flag                   -> additional testing
    4. ML vs ensemble HPI disagreement -> expert review
    5. Metal above its action limit   -> metal-specific treatment
"""

from typing import List, Optional

from . import config
from .formulas import calculate_hpi
from .records import Sample, SafetyLevel

SAFETY_ADVICE = {
    SafetyLevel.CRITICAL: (
        "Immediate action required. Water not suitable for any use.",
        "Implement emergency water treatment protocols.",
        "Notify environmental authorities immediately.",
    ),
    SafetyLevel.HIGH: (
        "Water not suitable for drinking. Consider treatment before use.",
        "Implement water treatment solutions.",
    ),
    SafetyLevel.MODERATE: (
        "Water quality is moderate. Monitor regularly and consider treatment.",
    ),
    SafetyLevel.SAFE: (
        "Water quality is within safe limits for drinking and irrigation.",
    ),
}

DISCREPANCY_ADVICE = ("Significant discrepancy between ML prediction and calculated HPI. "
                      "Recommend manual verification.")
ANOMALY_ADVICE = "Unusual pattern detected in sample data. Recommend additional testing."
ENSEMBLE_ADVICE = ("Significant difference between primary and ensemble model predictions. "
                   "Recommend expert review.")


def metal_advice(metal: str) -> str:
    return f"Elevated {metal} levels detected. Consider {metal}-specific treatment methods."


def generate_recommendations(sample: Sample,
                             hpi: float,
                             safety_level: Optional[SafetyLevel],
                             is_anomaly: bool = False,
                             ensemble_hpi: Optional[float] = None) -> List[str]:
    """
    Generate remediation recommendations for one sample.

    Args:
        sample: The analysed sample.
        hpi: HPI reported for the sample (ML or formula).
        safety_level: Reported safety level, None to skip rule 2.
        is_anomaly: Whether the anomaly detector flagged the sample.
        ensemble_hpi: Ensemble mean HPI, None if unavailable.

    Returns:
        Recommendation strings in rule order.
    """
    recommendations = []

    if abs(hpi - calculate_hpi(sample)) > config.DISCREPANCY_THRESHOLD:
        recommendations.append(DISCREPANCY_ADVICE)

    if safety_level is not None:
        recommendations.extend(SAFETY_ADVICE[SafetyLevel(safety_level)])

    if is_anomaly:
        recommendations.append(ANOMALY_ADVICE)

    if ensemble_hpi is not None and abs(hpi - ensemble_hpi) > config.ENSEMBLE_DISAGREEMENT_THRESHOLD:
        recommendations.append(ENSEMBLE_ADVICE)

    for metal, action_limit in config.METAL_ACTION_LIMITS.items():
        if getattr(sample, metal) > action_limit:
            recommendations.append(metal_advice(metal))

    return recommendations
