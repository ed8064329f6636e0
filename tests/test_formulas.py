"""
Tests for the pollution index formula engine.
"""

import pytest

from backend.hmpi import config
from backend.hmpi.exceptions import DegenerateComputationError
from backend.hmpi.formulas import (
    calculate_cd, calculate_ef, calculate_hei, calculate_hpi, calculate_indices,
    get_safety_level, metal_ratios, try_calculate_ef,
)
from backend.hmpi.records import SafetyLevel

from conftest import at_standard, make_sample


class TestStandardsTable:
    """Test the static standards configuration."""

    def test_weights_sum_to_one(self):
        assert sum(config.WEIGHTS.values()) == pytest.approx(1.0)

    def test_every_metal_has_standard_weight_and_background(self):
        for metal in config.METALS:
            assert config.STANDARDS[metal] > 0
            assert metal in config.WEIGHTS
            assert metal in config.BACKGROUND_RATIOS


class TestScenarios:
    """Reference samples with hand-computed indices."""

    def test_iron_at_standard_only(self, scenario_a):
        """Only iron contributes: 0.10 × (0.3/0.3) × 100 = 10."""
        assert calculate_hpi(scenario_a) == 10.0
        assert calculate_hei(scenario_a) == 1.0
        assert calculate_cd(scenario_a) == 1.0
        assert get_safety_level(calculate_hpi(scenario_a)) == SafetyLevel.SAFE

    def test_lead_five_times_standard(self, scenario_b):
        """0.2 × 500 + 0.8 × 100 = 180."""
        hpi = calculate_hpi(scenario_b)
        assert hpi == 180.0
        assert get_safety_level(hpi) == SafetyLevel.MODERATE
        assert calculate_hei(scenario_b) == 5.0

    def test_all_metals_triple_standard(self, scenario_c):
        assert calculate_hei(scenario_c) == 3.0
        assert calculate_cd(scenario_c) == 21.0
        assert calculate_hpi(scenario_c) == 300.0
        assert get_safety_level(calculate_hpi(scenario_c)) == SafetyLevel.CRITICAL


class TestIndexProperties:
    """Determinism and monotonicity of the indices."""

    def test_repeated_calls_are_identical(self):
        sample = make_sample(lead=0.013, arsenic=0.007, cadmium=0.0041, chromium=0.061,
                             copper=1.7, iron=0.42, zinc=2.9)
        first = (calculate_hpi(sample), calculate_hei(sample),
                 calculate_cd(sample), calculate_ef(sample))
        second = (calculate_hpi(sample), calculate_hei(sample),
                  calculate_cd(sample), calculate_ef(sample))
        assert first == second

    @pytest.mark.parametrize("metal", config.METALS)
    def test_increasing_a_concentration_never_decreases_indices(self, metal):
        previous = None
        for step in range(12):
            sample = at_standard(**{metal: config.STANDARDS[metal] * step * 0.5})
            current = (calculate_hpi(sample), calculate_hei(sample), calculate_cd(sample))
            if previous is not None:
                assert all(c >= p for c, p in zip(current, previous))
            previous = current

    def test_ratios_follow_metal_order(self):
        ratios = metal_ratios(at_standard(factor=2.0))
        assert list(ratios) == list(config.METALS)
        assert all(r == pytest.approx(2.0) for r in ratios.values())


class TestEnrichmentFactor:
    """Test EF with iron as the reference element."""

    def test_all_at_standard(self):
        """Every ratio is 1, so EF = mean(1 / background_i) over non-iron metals."""
        expected = sum(1 / config.BACKGROUND_RATIOS[m]
                       for m in config.METALS if m != "iron") / 6
        assert calculate_ef(at_standard()) == pytest.approx(expected)

    def test_scales_inversely_with_iron(self):
        base = calculate_ef(at_standard())
        doubled_iron = calculate_ef(at_standard(iron=0.6))
        assert doubled_iron == pytest.approx(base / 2)

    def test_zero_iron_is_degenerate(self):
        with pytest.raises(DegenerateComputationError) as exc_info:
            calculate_ef(at_standard(iron=0.0))
        assert exc_info.value.index == "ef"

    def test_try_calculate_ef_reports_none(self):
        assert try_calculate_ef(at_standard(iron=0.0)) is None
        assert try_calculate_ef(at_standard()) is not None

    @pytest.mark.parametrize("iron", [1e-10, 2e-9])
    def test_trace_iron_is_not_degenerate(self, iron):
        """Only an iron concentration of exactly 0 is degenerate."""
        iron_ratio = iron / config.STANDARDS["iron"]
        expected = sum(1 / (config.BACKGROUND_RATIOS[m] * iron_ratio)
                       for m in config.METALS if m != "iron") / 6
        assert try_calculate_ef(at_standard(iron=iron)) is not None
        assert calculate_ef(at_standard(iron=iron)) == pytest.approx(expected, rel=1e-9)


class TestSafetyLevel:
    """Test the HPI step classification."""

    @pytest.mark.parametrize("hpi,expected", [
        (0.0, SafetyLevel.SAFE),
        (99.999, SafetyLevel.SAFE),
        (100.0, SafetyLevel.MODERATE),
        (199.9, SafetyLevel.MODERATE),
        (200.0, SafetyLevel.HIGH),
        (299.9, SafetyLevel.HIGH),
        (300.0, SafetyLevel.CRITICAL),
        (1e6, SafetyLevel.CRITICAL),
    ])
    def test_breakpoints(self, hpi, expected):
        assert get_safety_level(hpi) == expected

    def test_non_decreasing_step_function(self):
        ranks = [get_safety_level(h * 2.5).rank for h in range(200)]
        assert ranks == sorted(ranks)
        assert set(ranks) == {0, 1, 2, 3}


class TestCalculateIndices:
    """Test the combined formula-engine result."""

    def test_populates_every_field(self, scenario_b):
        result = calculate_indices(scenario_b)
        assert result.sample_id == "B"
        assert result.hpi == 180.0
        assert result.safety_level == SafetyLevel.MODERATE
        assert result.ef is not None
        assert "HPI Formula" in result.risk_assessment

    def test_zero_iron_still_returns_result(self):
        result = calculate_indices(make_sample(lead=0.02))
        assert result.ef is None
        assert result.hpi == 40.0
