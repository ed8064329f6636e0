"""
Tests for the model registry, the artifact loaders and training.
"""

import os

import pytest

from backend.hmpi import config
from backend.hmpi.enhanced import EnhancedMLAdapter
from backend.hmpi.inference import MLPredictionAdapter
from backend.hmpi.pipeline import PollutionIndexCalculator
from backend.hmpi.registry import ModelRegistry, load_enhanced_models, load_standard_models
from backend.hmpi.train import generate_synthetic_samples, label_samples, train_models

from conftest import StubModel, at_standard, make_registry


@pytest.fixture(scope="module")
def trained_dir(tmp_path_factory):
    """Train every artifact once on a small synthetic batch."""
    model_dir = tmp_path_factory.mktemp("models")
    mp = pytest.MonkeyPatch()
    mp.setattr(config, "N_ESTIMATORS", 10)
    try:
        assert train_models(generate_synthetic_samples(300), model_dir=str(model_dir))
    finally:
        mp.undo()
    return str(model_dir)


class TestModelRegistry:
    """Test the registry value."""

    def test_empty_registry_has_no_primary_models(self):
        assert not ModelRegistry.empty().has_primary_models
        assert not ModelRegistry.unsupported().supported

    def test_unsupported_overrides_loaded_models(self):
        registry = make_registry(supported=False)
        assert not registry.has_primary_models

    def test_dispose_releases_every_handle(self):
        members = (StubModel([1.0]), StubModel([2.0]))
        registry = make_registry(anomaly_score=0.1, ensemble=members)
        registry.dispose()
        assert all(handle.disposed for handle in registry.handles())
        assert len(list(registry.handles())) == 5

    def test_status(self):
        status = make_registry(ensemble=(1.0, 2.0)).status()
        assert status["regression"] and status["classifier"]
        assert status["anomaly"] is False
        assert status["ensemble_members"] == 2


class TestLoaders:
    """Test loading artifacts from disk."""

    def test_missing_directory_returns_none(self, tmp_path):
        assert load_standard_models(str(tmp_path)) is None
        assert load_enhanced_models(str(tmp_path)) is None

    def test_loads_trained_artifacts(self, trained_dir):
        standard = load_standard_models(trained_dir)
        enhanced = load_enhanced_models(trained_dir)
        assert standard.has_primary_models
        assert enhanced.has_primary_models
        assert enhanced.anomaly is not None
        assert len(enhanced.ensemble) == len(config.ENSEMBLE_MODEL_FILES)

    def test_optional_members_may_be_missing(self, trained_dir, tmp_path):
        for filename in (config.REGRESSION_MODEL_FILE, config.CLASSIFIER_MODEL_FILE,
                         config.PREPROCESSING_PARAMS_FILE, config.ENSEMBLE_MODEL_FILES[0]):
            with open(os.path.join(trained_dir, filename), "rb") as src:
                with open(tmp_path / filename, "wb") as dst:
                    dst.write(src.read())
        registry = load_enhanced_models(str(tmp_path))
        assert registry.has_primary_models
        assert registry.anomaly is None
        assert len(registry.ensemble) == 1


class TestTrainedModels:
    """End-to-end use of trained artifacts through the adapters."""

    def test_standard_prediction(self, trained_dir):
        prediction = MLPredictionAdapter(load_standard_models(trained_dir)).predict(
            at_standard(factor=1.0))
        assert prediction.available
        assert prediction.hpi > 0

    def test_enhanced_prediction(self, trained_dir):
        prediction = EnhancedMLAdapter(load_enhanced_models(trained_dir)).predict_enhanced(
            at_standard(factor=1.0))
        assert prediction.available
        assert 0.0 <= prediction.anomaly_score <= 1.0
        assert prediction.ensemble_hpi is not None
        assert 0.0 < prediction.confidence <= 1.0

    def test_calculator_uses_models(self, trained_dir):
        calculator = PollutionIndexCalculator(
            standard_models=load_standard_models(trained_dir),
            enhanced_models=load_enhanced_models(trained_dir))
        result = calculator.calculate_enhanced(at_standard(factor=2.0))
        assert result.is_ml_analysis is True
        assert result.recommendations


class TestTraining:
    """Test training inputs and labels."""

    def test_labels_come_from_formula_engine(self):
        df = label_samples(generate_synthetic_samples(20, random_state=3))
        assert set(df["safety_class"]).issubset({0, 1, 2, 3})
        assert (df["hpi"] >= 0).all()

    def test_synthetic_samples_respect_ingestion_limits(self):
        df = generate_synthetic_samples(100)
        for metal in config.METALS:
            assert df[metal].between(0.0, config.MAX_CONCENTRATION_PPM).all()

    def test_too_few_samples(self, tmp_path):
        assert train_models(generate_synthetic_samples(10), model_dir=str(tmp_path)) is False

    def test_missing_columns(self, tmp_path):
        df = generate_synthetic_samples(100).drop(columns=["zinc"])
        assert train_models(df, model_dir=str(tmp_path)) is False
