"""
risk.py - Risk Narrative Generator
===================================

Turns the computed indices into the textual risk assessment shown in
reports, followed by the formula documentation.

The narrative tier requires ALL of hpi, hei and cd to be under the tier
bounds (config.RISK_TIERS), whereas the safety level is a function of
hpi alone. The two can therefore disagree for the same sample, e.g. an
HPI of 150 with an HEI of 2.5 is classified Moderate but described as
highly contaminated. Both are reported as computed.
"""

from . import config

RISK_TEXT = {
    "Safe": "Groundwater quality is suitable for drinking and irrigation.",
    "Moderate": "Groundwater quality is moderately contaminated. Use with caution.",
    "High": "Groundwater quality is highly contaminated. Not suitable for drinking.",
    "Critical": "Groundwater quality is critically contaminated. Not suitable for any use.",
}

FORMULA_DOCUMENTATION = {
    "hpi": "HPI Formula: Σ(Wi × (Ci/Si) × 100).",
    "hei": "HEI Formula: (Ci/Si)max.",
    "cd": "Cd Formula: Σ(Ci/Si).",
    "ef": "EF Formula: (Ci/Cref)sample / (Ci/Cref)background.",
}

FORMULA_SENTENCE = " ".join(FORMULA_DOCUMENTATION.values())


def get_risk_tier(hpi: float, hei: float, cd: float) -> str:
    """Narrative tier name for the combined (hpi, hei, cd) thresholds."""
    for tier, max_hpi, max_hei, max_cd in config.RISK_TIERS:
        if hpi < max_hpi and hei < max_hei and cd < max_cd:
            return tier
    return "Critical"


def get_risk_assessment(hpi: float, hei: float, cd: float) -> str:
    """
    Build the risk assessment text for a sample.

    Args:
        hpi: Heavy Metal Pollution Index (formula or ML).
        hei: Heavy Metal Evaluation Index.
        cd: Contamination Degree.

    Returns:
        Tier sentence followed by the formula documentation sentence.
    """
    return f"{RISK_TEXT[get_risk_tier(hpi, hei, cd)]} {FORMULA_SENTENCE}"
