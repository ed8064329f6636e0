"""
summary.py - Batch Summary Statistics
======================================

Aggregates a batch of results into the figures shown above the results
table, and flattens results into a DataFrame for reporting collaborators.
"""

import logging
from typing import Dict, List, Sequence

import pandas as pd

from . import config
from .records import EnhancedResult, Sample, SafetyLevel

logger = logging.getLogger("hmpi.summary")


def high_concentration_metals(sample: Sample) -> List[str]:
    """Metals above config.HIGH_CONCENTRATION_FACTOR times their standard."""
    return [
        metal
        for metal, concentration in sample.concentrations().items()
        if concentration > config.STANDARDS[metal] * config.HIGH_CONCENTRATION_FACTOR
    ]


def results_to_frame(results: Sequence[EnhancedResult]) -> pd.DataFrame:
    """One row per result; recommendations joined into a single column."""
    rows = []
    for result in results:
        row = result.to_dict()
        row["recommendations"] = " | ".join(result.recommendations)
        rows.append(row)
    return pd.DataFrame(rows)


def summarize_results(results: Sequence[EnhancedResult]) -> Dict:
    """
    Summary of a batch of results.

    Returns:
        Dict with:
            total: Number of results.
            counts: Safety level name -> count (every level present).
            has_ml_analysis: True if any result used an ML model.
            anomalies: Number of results flagged as anomalous.
            mean_hpi / max_hpi: HPI statistics, None for an empty batch.
    """
    counts = {level.value: 0 for level in SafetyLevel}
    if not results:
        return {
            "total": 0,
            "counts": counts,
            "has_ml_analysis": False,
            "anomalies": 0,
            "mean_hpi": None,
            "max_hpi": None,
        }

    df = results_to_frame(results)
    counts.update(df["safety_level"].value_counts().to_dict())
    summary = {
        "total": len(df),
        "counts": {k: int(v) for k, v in counts.items()},
        "has_ml_analysis": bool(df["is_ml_analysis"].any()),
        "anomalies": int(df["is_anomaly"].sum()),
        "mean_hpi": float(df["hpi"].mean()),
        "max_hpi": float(df["hpi"].max()),
    }
    logger.debug(f"Batch summary: {summary}")
    return summary
