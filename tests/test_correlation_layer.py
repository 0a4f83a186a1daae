"""
Tests for label correlations, trigger bundles and QoL patterns.
"""
from datetime import datetime, timedelta

import pytest

from engine_config import EngineConfig
from patterns.correlation_layer import (
    correlation_direction,
    correlation_strength,
    label_correlations,
    qol_patterns,
    trigger_bundles,
)

CFG = EngineConfig()
START = datetime(2024, 2, 1, 9)


def _at(i):
    return START + timedelta(hours=6 * i)


# ─── Buckets ──────────────────────────────────────────────────


class TestStrengthAndDirection:

    @pytest.mark.parametrize("delta,expected", [
        (0.0, "none"), (0.29, "none"), (-0.5, "weak"),
        (1.0, "moderate"), (-1.5, "strong"), (3.0, "strong"),
    ])
    def test_strength(self, delta, expected):
        assert correlation_strength(delta) == expected

    def test_direction(self):
        assert correlation_direction(1.0) == "increases"
        assert correlation_direction(-1.0) == "decreases"
        assert correlation_direction(0.2) == "neutral"


# ─── Label correlations ───────────────────────────────────────


class TestLabelCorrelations:

    def _a_and_b(self, make_entry):
        # overall mean 5: A (+3, n=5), B (-1, n=20), one untagged 10
        entries = [make_entry(_at(i), 8, triggers={"A"}) for i in range(5)]
        entries += [make_entry(_at(5 + i), 4, triggers={"B"}) for i in range(20)]
        entries.append(make_entry(_at(25), 10))
        return entries

    def test_magnitude_beats_frequency(self, make_entry):
        results = label_correlations(self._a_and_b(make_entry), 5.0, CFG)
        assert [r.label for r in results] == ["A", "B"]
        assert results[0].mean_delta == pytest.approx(3.0)
        assert results[1].mean_delta == pytest.approx(-1.0)
        assert [r.rank for r in results] == [1, 2]

    def test_abs_delta_non_increasing(self, make_entry):
        entries = self._a_and_b(make_entry)
        entries.append(make_entry(_at(40), 2, symptoms={"nausea"}, locations={"back"}))
        results = label_correlations(entries, 5.0, CFG)
        deltas = [abs(r.mean_delta) for r in results]
        assert deltas == sorted(deltas, reverse=True)

    def test_tie_broken_by_count_then_kind(self, make_entry):
        entries = [
            make_entry(_at(0), 7, triggers={"x"}, symptoms={"y"}),
            make_entry(_at(1), 7, triggers={"x"}, symptoms={"y"}),
            make_entry(_at(2), 7, locations={"z"}),
        ]
        results = label_correlations(entries, 5.0, CFG)
        assert [(r.kind, r.label) for r in results] == [
            ("symptom", "y"), ("trigger", "x"), ("location", "z"),
        ]

    def test_low_support_retained_and_flagged(self, make_entry):
        results = label_correlations([make_entry(_at(0), 9, triggers={"rare"})], 5.0, CFG)
        assert len(results) == 1
        assert results[0].low_confidence is True
        assert results[0].confidence == pytest.approx(1 / 8)

    def test_confidence_capped(self, make_entry):
        results = label_correlations(self._a_and_b(make_entry), 5.0, CFG)
        b = next(r for r in results if r.label == "B")
        assert b.confidence == 1.0
        assert b.low_confidence is False

    def test_same_label_different_kinds_kept_apart(self, make_entry):
        entry = make_entry(_at(0), 6, triggers={"walking"}, activities={"walking"})
        kinds = {r.kind for r in label_correlations([entry], 6.0, CFG)}
        assert kinds == {"trigger", "activity"}

    def test_empty(self):
        assert label_correlations([], 0.0, CFG) == []


# ─── Bundles ──────────────────────────────────────────────────


class TestTriggerBundles:

    def test_pair_needs_support(self, make_entry):
        entries = [make_entry(_at(i), 8, triggers={"stress", "weather"}) for i in range(3)]
        entries.append(make_entry(_at(3), 2, triggers={"stress", "food"}))
        bundles = trigger_bundles(entries, 6.5, CFG)
        assert len(bundles) == 1
        assert bundles[0].triggers == ("stress", "weather")
        assert bundles[0].co_occurrence == 3
        assert bundles[0].combined_delta == pytest.approx(1.5)


# ─── QoL ──────────────────────────────────────────────────────


class TestQoLPatterns:

    def test_good_sleep_lowers_pain(self, make_entry):
        entries = [make_entry(_at(i), 3, quality_of_sleep=8) for i in range(4)]
        entries += [make_entry(_at(4 + i), 7, quality_of_sleep=2) for i in range(4)]
        patterns = qol_patterns(entries, CFG)
        assert [p.metric for p in patterns] == ["sleep"]
        assert patterns[0].delta == pytest.approx(-4.0)
        assert patterns[0].evidence_count == 8
        assert patterns[0].confidence == "low"

    def test_stress_is_inverse(self, make_entry):
        entries = [make_entry(_at(i), 3, stress=1) for i in range(4)]
        entries += [make_entry(_at(4 + i), 7, stress=9) for i in range(4)]
        patterns = qol_patterns(entries, CFG)
        assert patterns[0].metric == "stress"
        assert patterns[0].delta == pytest.approx(-4.0)

    def test_too_few_readings(self, make_entry):
        entries = [make_entry(_at(i), 3, quality_of_sleep=8) for i in range(5)]
        assert qol_patterns(entries, CFG) == []
