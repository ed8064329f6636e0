"""
records.py - Data Model for Samples and Results
================================================

Plain, immutable records passed between the formula engine, the ML
adapters and the orchestrator:

    Sample              - one groundwater measurement (7 metals, ppm)
    PollutionIndexResult - formula engine output for one sample
    EnhancedResult      - PollutionIndexResult + ML / anomaly / ensemble fields
    MLPrediction        - ML adapter output (hpi + safety level, or unavailable)
    AnomalyResult       - anomaly detector output
    EnhancedPrediction  - combined enhanced adapter output

Records are created fresh for every calculation and never mutated.
"""

import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from . import config
from .exceptions import InputError


class SafetyLevel(str, Enum):
    """Step classification of the HPI, ordered by increasing severity."""
    SAFE = "Safe"
    MODERATE = "Moderate"
    HIGH = "High"
    CRITICAL = "Critical"

    @classmethod
    def from_index(cls, index: int) -> Optional["SafetyLevel"]:
        """Map a classifier class index (0-3) to a level, None if out of range."""
        levels = list(cls)
        if 0 <= index < len(levels):
            return levels[index]
        return None

    @property
    def rank(self) -> int:
        return list(SafetyLevel).index(self)


@dataclass(frozen=True)
class Sample:
    """
    One groundwater measurement.

    Attributes:
        sample_id: Free-text display / report key (not required unique).
        lead .. zinc: Concentrations in ppm.
        latitude, longitude: Sampling location in decimal degrees.
        id: Internal key, unique within a batch.
    """
    sample_id: str
    lead: float
    arsenic: float
    cadmium: float
    chromium: float
    copper: float
    iron: float
    zinc: float
    latitude: float = 0.0
    longitude: float = 0.0
    id: str = ""

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> "Sample":
        """
        Build a Sample from a plain record (e.g. a parsed JSON body).

        Accepts either ``sample_id`` or ``sampleId`` as the display key.

        Raises:
            InputError: If a concentration is missing, non-numeric or not finite.
        """
        concentrations = {}
        for metal in config.METALS:
            if metal not in record or record[metal] is None:
                raise InputError(f"Sample is missing concentration field '{metal}'",
                                 field=metal)
            concentrations[metal] = _to_float(record[metal], metal)

        sample_id = record.get("sample_id", record.get("sampleId", ""))
        return cls(
            sample_id=str(sample_id),
            latitude=_to_float(record.get("latitude", 0.0), "latitude"),
            longitude=_to_float(record.get("longitude", 0.0), "longitude"),
            id=str(record.get("id", "")),
            **concentrations,
        )

    def concentrations(self) -> Dict[str, float]:
        """Metal -> concentration, in canonical metal order."""
        return {metal: getattr(self, metal) for metal in config.METALS}

    def to_vector(self) -> List[float]:
        """Concentrations as the 7-element model feature vector."""
        return [float(getattr(self, metal)) for metal in config.METALS]


def _to_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise InputError(f"Field '{field}' must be numeric, got a boolean", field=field)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InputError(f"Field '{field}' must be numeric, got {value!r}",
                         field=field) from None
    if not math.isfinite(number):
        raise InputError(f"Field '{field}' must be finite, got {value!r}", field=field)
    return number


@dataclass(frozen=True)
class PollutionIndexResult:
    """Formula engine output for one sample. ``ef`` is None when undefined."""
    sample_id: str
    hpi: float
    hei: float
    cd: float
    ef: Optional[float]
    safety_level: SafetyLevel
    risk_assessment: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["safety_level"] = self.safety_level.value
        return data


@dataclass(frozen=True)
class EnhancedResult(PollutionIndexResult):
    """Orchestrator output: formula indices plus the ML-derived fields."""
    is_ml_analysis: bool = False
    is_anomaly: bool = False
    anomaly_score: float = 0.0
    ensemble_hpi: Optional[float] = None
    confidence: Optional[float] = None
    recommendations: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["recommendations"] = list(self.recommendations)
        return data


@dataclass(frozen=True)
class MLPrediction:
    """
    Output of the ML prediction adapter.

    Both fields are None when the models could not produce a prediction;
    ``reason`` then says why. Callers defer to the formula engine.
    """
    hpi: Optional[float]
    safety_level: Optional[SafetyLevel]
    reason: Optional[str] = None

    @classmethod
    def unavailable(cls, reason: str) -> "MLPrediction":
        return cls(hpi=None, safety_level=None, reason=reason)

    @property
    def available(self) -> bool:
        return self.hpi is not None and self.safety_level is not None


@dataclass(frozen=True)
class AnomalyResult:
    is_anomaly: bool = False
    anomaly_score: float = 0.0


@dataclass(frozen=True)
class EnhancedPrediction:
    """Output of the enhanced adapter. Each group degrades independently."""
    hpi: Optional[float] = None
    safety_level: Optional[SafetyLevel] = None
    is_anomaly: bool = False
    anomaly_score: float = 0.0
    ensemble_hpi: Optional[float] = None
    confidence: Optional[float] = None
    reason: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.hpi is not None and self.safety_level is not None
