"""
Shared fixtures: sample builders and stub model handles.
"""

import pytest

from backend.hmpi import config
from backend.hmpi.model import ModelHandle
from backend.hmpi.preprocessing import PreprocessingParams
from backend.hmpi.records import Sample
from backend.hmpi.registry import ModelRegistry


class StubModel(ModelHandle):
    """ModelHandle returning a fixed output, or raising a fixed error."""

    def __init__(self, output=None, error=None):
        self.output = list(output or [])
        self.error = error
        self.calls = 0
        self.disposed = False

    def predict(self, vector):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.output)

    def dispose(self):
        self.disposed = True


def make_sample(sample_id="S-1", **concentrations):
    """Sample with every metal at 0 unless overridden."""
    values = {metal: 0.0 for metal in config.METALS}
    values.update(concentrations)
    return Sample(sample_id=sample_id, **values)


def at_standard(sample_id="S-STD", factor=1.0, **overrides):
    """Sample with every metal at ``factor`` times its standard."""
    values = {metal: config.STANDARDS[metal] * factor for metal in config.METALS}
    values.update(overrides)
    return Sample(sample_id=sample_id, **values)


IDENTITY_PARAMS = PreprocessingParams(
    feature_means=[0.0] * len(config.METALS),
    feature_stds=[1.0] * len(config.METALS),
)


def probabilities_for(index):
    """Classifier output with the highest probability at ``index``."""
    proba = [0.1] * config.N_SAFETY_CLASSES
    proba[index] = 0.7
    return proba


def make_registry(hpi=150.0, level_index=1, anomaly_score=None, ensemble=(),
                  **overrides):
    """
    Registry of stub handles.

    anomaly_score None leaves the detector out; ensemble entries may be
    plain outputs or ready-made handles.
    """
    fields = dict(
        regression=StubModel([hpi]),
        classifier=StubModel(probabilities_for(level_index)),
        anomaly=StubModel([anomaly_score]) if anomaly_score is not None else None,
        ensemble=tuple(v if isinstance(v, ModelHandle) else StubModel([v])
                       for v in ensemble),
        preprocessing=IDENTITY_PARAMS,
    )
    fields.update(overrides)
    return ModelRegistry(**fields)


@pytest.fixture
def scenario_a():
    """Iron exactly at its standard, every other metal at zero."""
    return make_sample("A", iron=0.3)


@pytest.fixture
def scenario_b():
    """Lead at 5x its standard, every other metal at its standard."""
    return at_standard("B", lead=0.05)


@pytest.fixture
def scenario_c():
    """Every metal at 3x its standard."""
    return at_standard("C", factor=3.0)
