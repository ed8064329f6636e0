"""
pipeline.py - Pollution Index Orchestrator
===========================================

Per-sample entry points that combine the ML adapters with the formula
engine, plus a concurrent batch entry point.

Per-sample state machine (calculate_enhanced):

    TRY_ENHANCED --(hpi & level)--> DONE   is_ml_analysis=True, enhanced fields set
         |
         v
    TRY_STANDARD --(hpi & level)--> DONE   is_ml_analysis=True, enhanced fields defaulted
         |
         v
    FORMULA_ONLY -----------------> DONE   is_ml_analysis=False

In every terminal state HEI, Cd and EF come from the formula engine; the
models only ever supply the HPI and the safety level. The risk narrative
and the recommendations are always built from the final values.

Samples are independent: a batch runs them on a thread pool and the
only shared objects are the immutable model registries.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from . import config
from .enhanced import EnhancedMLAdapter
from .formulas import calculate_cd, calculate_hei, calculate_hpi, get_safety_level, try_calculate_ef
from .inference import MLPredictionAdapter
from .recommendations import generate_recommendations
from .records import EnhancedResult, Sample, SafetyLevel
from .registry import ModelRegistry, load_enhanced_models, load_standard_models
from .risk import get_risk_assessment

logger = logging.getLogger("hmpi.pipeline")

# State constants
TRY_ENHANCED = "TRY_ENHANCED"
TRY_STANDARD = "TRY_STANDARD"
FORMULA_ONLY = "FORMULA_ONLY"
DONE = "DONE"


class PollutionIndexCalculator:
    """
    Orchestrates enhanced ML -> standard ML -> formula fallback.

    Usage:
        calculator = PollutionIndexCalculator(
            standard_models=load_standard_models(),
            enhanced_models=load_enhanced_models(),
        )
        result = calculator.calculate_enhanced(sample)
        results = calculator.calculate_batch(samples)

    Both registries are optional; without them every result is formula-only.
    """

    def __init__(self,
                 standard_models: Optional[ModelRegistry] = None,
                 enhanced_models: Optional[ModelRegistry] = None,
                 max_workers: int = None):
        self.standard_adapter = MLPredictionAdapter(standard_models)
        self.enhanced_adapter = EnhancedMLAdapter(enhanced_models)
        self.max_workers = max_workers or config.BATCH_MAX_WORKERS or None

    def _build_result(self, sample: Sample, hpi: float, safety_level: SafetyLevel,
                      is_ml_analysis: bool, is_anomaly: bool = False,
                      anomaly_score: float = 0.0, ensemble_hpi: float = None,
                      confidence: float = None) -> EnhancedResult:
        hei = calculate_hei(sample)
        cd = calculate_cd(sample)
        recommendations = generate_recommendations(
            sample, hpi, safety_level, is_anomaly, ensemble_hpi)
        return EnhancedResult(
            sample_id=sample.sample_id,
            hpi=hpi,
            hei=hei,
            cd=cd,
            ef=try_calculate_ef(sample),
            safety_level=safety_level,
            risk_assessment=get_risk_assessment(hpi, hei, cd),
            is_ml_analysis=is_ml_analysis,
            is_anomaly=is_anomaly,
            anomaly_score=anomaly_score,
            ensemble_hpi=ensemble_hpi,
            confidence=confidence,
            recommendations=tuple(recommendations),
        )

    def _try_standard(self, sample: Sample) -> Optional[EnhancedResult]:
        prediction = self.standard_adapter.predict(sample)
        if not prediction.available:
            return None
        return self._build_result(sample, prediction.hpi, prediction.safety_level,
                                  is_ml_analysis=True)

    def _formula_only(self, sample: Sample) -> EnhancedResult:
        hpi = calculate_hpi(sample)
        return self._build_result(sample, hpi, get_safety_level(hpi),
                                  is_ml_analysis=False)

    def calculate(self, sample: Sample) -> EnhancedResult:
        """
        Standard chain: standard ML, else formulas.

        Args:
            sample: A structurally valid sample.

        Returns:
            A fully populated result; enhanced fields stay at their defaults.
        """
        state = TRY_STANDARD
        result = self._try_standard(sample)
        if result is None:
            state = FORMULA_ONLY
            result = self._formula_only(sample)
        logger.debug(f"Sample '{sample.sample_id}' resolved in {state} -> {DONE}")
        return result

    def calculate_enhanced(self, sample: Sample) -> EnhancedResult:
        """
        Full chain: enhanced ML, else standard ML, else formulas.

        Args:
            sample: A structurally valid sample.

        Returns:
            A fully populated result. Never raises for a valid sample.
        """
        state = TRY_ENHANCED
        prediction = self.enhanced_adapter.predict_enhanced(sample)
        if prediction.available:
            result = self._build_result(
                sample, prediction.hpi, prediction.safety_level,
                is_ml_analysis=True,
                is_anomaly=prediction.is_anomaly,
                anomaly_score=prediction.anomaly_score,
                ensemble_hpi=prediction.ensemble_hpi,
                confidence=prediction.confidence,
            )
        else:
            state = TRY_STANDARD
            result = self._try_standard(sample)
            if result is None:
                state = FORMULA_ONLY
                result = self._formula_only(sample)

        logger.debug(f"Sample '{sample.sample_id}' resolved in {state} -> {DONE} "
                     f"(hpi={result.hpi:.2f}, level={result.safety_level.value})")
        return result

    def calculate_batch(self, samples: Iterable[Sample],
                        enhanced: bool = True) -> List[EnhancedResult]:
        """
        Calculate every sample concurrently.

        Args:
            samples: Samples to analyse.
            enhanced: Use the full enhanced chain (default) or the standard one.

        Returns:
            Results in the same order as ``samples``.
        """
        samples = list(samples)
        if not samples:
            return []

        calculate_one = self.calculate_enhanced if enhanced else self.calculate
        executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                      thread_name_prefix="hmpi-batch")
        try:
            futures = [executor.submit(calculate_one, sample) for sample in samples]
            results = [future.result() for future in futures]
        finally:
            # Drops tasks that have not started if collection was interrupted
            executor.shutdown(wait=False, cancel_futures=True)

        n_ml = sum(1 for r in results if r.is_ml_analysis)
        logger.info(f"Batch of {len(results)} samples calculated "
                    f"({n_ml} ML, {len(results) - n_ml} formula-only)")
        return results


def create_calculator(model_dir: str = None, max_workers: int = None) -> PollutionIndexCalculator:
    """
    Load both model sets from disk and build a calculator.

    Missing or broken artifacts are logged by the provider; the calculator
    then falls back to the formula engine.
    """
    return PollutionIndexCalculator(
        standard_models=load_standard_models(model_dir),
        enhanced_models=load_enhanced_models(model_dir),
        max_workers=max_workers,
    )
