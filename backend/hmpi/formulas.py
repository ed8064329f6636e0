"""
formulas.py - Pollution Index Formula Engine
=============================================

Closed-form heavy-metal pollution indices computed from a single sample.
These always run: standalone when no model is available, and as the
validation baseline when one is.

    HPI = Σ Wi × (Ci / Si) × 100     Heavy Metal Pollution Index
    HEI = max (Ci / Si)              Heavy Metal Evaluation Index
    Cd  = Σ (Ci / Si)                Contamination Degree
    EF  = mean over non-reference metals of
          (Ci / Si) / (Bi × Cref / Sref)   Enrichment Factor (iron reference)

where Ci is the measured concentration, Si the permissible limit, Wi the
unit weight and Bi the background ratio (see config.py).

All functions are pure and deterministic.
"""

import logging
from typing import Dict, Optional

from . import config
from .exceptions import DegenerateComputationError
from .records import PollutionIndexResult, Sample, SafetyLevel
from .risk import get_risk_assessment

logger = logging.getLogger("hmpi.formulas")


def _round(value: float) -> float:
    return round(value, config.INDEX_DECIMALS)


def metal_ratios(sample: Sample) -> Dict[str, float]:
    """
    Concentration-to-standard ratio Ci / Si for every metal.

    Ratios are not rounded; only the final indices are.

    Args:
        sample: The groundwater sample.

    Returns:
        Dict metal -> ratio, in canonical metal order.
    """
    return {
        metal: concentration / config.STANDARDS[metal]
        for metal, concentration in sample.concentrations().items()
    }


def calculate_hpi(sample: Sample) -> float:
    """
    Heavy Metal Pollution Index: Σ Wi × (Ci/Si) × 100.

    Unitless and unbounded above. 100 means the weighted load equals the
    permissible limits.
    """
    ratios = metal_ratios(sample)
    hpi = 0.0
    for metal in config.METALS:
        sub_index = ratios[metal] * 100
        hpi += config.WEIGHTS[metal] * sub_index
    return _round(hpi)


def calculate_hei(sample: Sample) -> float:
    """Heavy Metal Evaluation Index: the worst single metal ratio."""
    return _round(max(metal_ratios(sample).values()))


def calculate_cd(sample: Sample) -> float:
    """Contamination Degree: unweighted sum of all metal ratios."""
    return _round(sum(metal_ratios(sample).values()))


def calculate_ef(sample: Sample) -> float:
    """
    Enrichment Factor using iron as the reference element.

    For each non-reference metal:
        ef_i = (Ci/Si) / (background_i × iron_ratio)
    and the result is the arithmetic mean of the six ef_i.

    Raises:
        DegenerateComputationError: If the iron concentration is zero, in
            which case every ef_i divides by zero.
    """
    if getattr(sample, config.REFERENCE_METAL) == 0:
        raise DegenerateComputationError(
            f"Enrichment factor is undefined for sample '{sample.sample_id}': "
            f"{config.REFERENCE_METAL} concentration is 0",
            index="ef",
        )

    ratios = metal_ratios(sample)
    reference_ratio = ratios[config.REFERENCE_METAL]
    ef_values = [
        ratios[metal] / (config.BACKGROUND_RATIOS[metal] * reference_ratio)
        for metal in config.METALS
        if metal != config.REFERENCE_METAL
    ]
    return _round(sum(ef_values) / len(ef_values))


def try_calculate_ef(sample: Sample) -> Optional[float]:
    """EF, or None when the reference metal is absent (logged as a warning)."""
    try:
        return calculate_ef(sample)
    except DegenerateComputationError as e:
        logger.warning(f"{e}; reporting EF as undefined")
        return None


def get_safety_level(hpi: float) -> SafetyLevel:
    """
    Classify an HPI value.

    Breakpoints are closed below and open above:
        hpi < 100 -> Safe
        hpi < 200 -> Moderate
        hpi < 300 -> High
        otherwise -> Critical
    """
    if hpi < config.HPI_SAFE_LIMIT:
        return SafetyLevel.SAFE
    if hpi < config.HPI_MODERATE_LIMIT:
        return SafetyLevel.MODERATE
    if hpi < config.HPI_HIGH_LIMIT:
        return SafetyLevel.HIGH
    return SafetyLevel.CRITICAL


def calculate_indices(sample: Sample) -> PollutionIndexResult:
    """
    Run the full formula engine for one sample.

    EF is reported as None if it is undefined for this sample.
    """
    hpi = calculate_hpi(sample)
    hei = calculate_hei(sample)
    cd = calculate_cd(sample)
    return PollutionIndexResult(
        sample_id=sample.sample_id,
        hpi=hpi,
        hei=hei,
        cd=cd,
        ef=try_calculate_ef(sample),
        safety_level=get_safety_level(hpi),
        risk_assessment=get_risk_assessment(hpi, hei, cd),
    )
