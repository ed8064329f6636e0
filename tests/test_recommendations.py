"""
Tests for the rule-based recommendation engine.
"""

from backend.hmpi.recommendations import (
    ANOMALY_ADVICE, DISCREPANCY_ADVICE, ENSEMBLE_ADVICE, SAFETY_ADVICE,
    generate_recommendations, metal_advice,
)
from backend.hmpi.records import SafetyLevel

from conftest import make_sample


class TestRules:
    """Each rule in isolation."""

    def test_safe_sample_gets_single_advice(self, scenario_a):
        recs = generate_recommendations(scenario_a, 10.0, SafetyLevel.SAFE)
        assert recs == list(SAFETY_ADVICE[SafetyLevel.SAFE])

    def test_critical_advice_has_three_entries(self, scenario_a):
        recs = generate_recommendations(scenario_a, 10.0, SafetyLevel.CRITICAL)
        assert len(recs) == 3
        assert recs[0].startswith("Immediate action required")

    def test_discrepancy_above_fifty(self, scenario_a):
        """Formula HPI of scenario A is 10."""
        assert DISCREPANCY_ADVICE in generate_recommendations(scenario_a, 60.5, None)
        assert DISCREPANCY_ADVICE not in generate_recommendations(scenario_a, 60.0, None)

    def test_anomaly_flag(self, scenario_a):
        recs = generate_recommendations(scenario_a, 10.0, None, is_anomaly=True)
        assert recs == [ANOMALY_ADVICE]

    def test_ensemble_disagreement_above_thirty(self, scenario_a):
        assert ENSEMBLE_ADVICE in generate_recommendations(
            scenario_a, 10.0, None, ensemble_hpi=40.5)
        assert ENSEMBLE_ADVICE not in generate_recommendations(
            scenario_a, 10.0, None, ensemble_hpi=40.0)
        assert ENSEMBLE_ADVICE not in generate_recommendations(
            scenario_a, 10.0, None, ensemble_hpi=None)

    def test_metal_action_limits(self):
        sample = make_sample(lead=0.016, arsenic=0.010, cadmium=0.0051,
                             chromium=0.2, copper=9.0, iron=0.3)
        recs = generate_recommendations(sample, 1000.0, None)
        metal_recs = [r for r in recs if r.startswith("Elevated")]
        assert metal_recs == [metal_advice("lead"), metal_advice("cadmium"),
                              metal_advice("chromium")]


class TestRuleOrder:
    """Rules accumulate in a fixed order."""

    def test_every_rule_fires_in_order(self):
        sample = make_sample(lead=0.02, iron=0.3)
        recs = generate_recommendations(sample, 250.0, SafetyLevel.HIGH,
                                        is_anomaly=True, ensemble_hpi=150.0)
        assert recs == [
            DISCREPANCY_ADVICE,
            *SAFETY_ADVICE[SafetyLevel.HIGH],
            ANOMALY_ADVICE,
            ENSEMBLE_ADVICE,
            metal_advice("lead"),
        ]
