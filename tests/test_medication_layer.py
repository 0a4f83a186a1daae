"""
Tests for medication relief and timing windows.
"""
from datetime import datetime

import pytest

from engine_config import EngineConfig
from patterns.medication_layer import (
    medication_effectiveness,
    medication_windows,
    optimal_window,
    relief_observations,
    window_for_hour,
)

CFG = EngineConfig()


def _effects(entries):
    return medication_effectiveness(relief_observations(entries), CFG)


class TestWindowForHour:

    @pytest.mark.parametrize("hour,band", [
        (0, "overnight"), (4, "overnight"), (5, "early-morning"),
        (9, "late-morning"), (12, "early-afternoon"), (16, "late-afternoon"),
        (19, "evening"), (23, "late-night"),
    ])
    def test_bands(self, hour, band):
        assert window_for_hour(hour)[0] == band


class TestMedicationEffectiveness:

    def test_single_relief(self, make_entry):
        entries = [
            make_entry(datetime(2024, 3, 1, 8), 8, medications_used=["A"]),
            make_entry(datetime(2024, 3, 1, 12), 3),
        ]
        effects = _effects(entries)
        assert len(effects) == 1
        assert effects[0].name == "A"
        assert effects[0].uses == 1
        assert effects[0].avg_reduction == pytest.approx(5.0)
        assert effects[0].effectiveness_score == 100.0

    def test_non_positive_change_not_counted(self, make_entry):
        entries = [
            make_entry(datetime(2024, 3, 1, 8), 5, medications_used=["A"]),
            make_entry(datetime(2024, 3, 1, 12), 6, medications_used=["A"]),
            make_entry(datetime(2024, 3, 1, 16), 4),
        ]
        effects = _effects(entries)
        assert effects[0].uses == 1
        assert effects[0].doses_observed == 2
        assert effects[0].avg_reduction == pytest.approx(2.0)

    def test_only_worse_is_absent(self, make_entry):
        entries = [
            make_entry(datetime(2024, 3, 1, 8), 5, medications_used=["A"]),
            make_entry(datetime(2024, 3, 1, 12), 7),
        ]
        assert _effects(entries) == []

    def test_last_entry_has_no_successor(self, make_entry):
        entries = [make_entry(datetime(2024, 3, 1, 8), 9, medications_used=["A"])]
        assert relief_observations(entries) == []

    def test_duplicate_name_in_entry_counted_once(self, make_entry):
        entries = [
            make_entry(datetime(2024, 3, 1, 8), 6, medications_used=["A", " A", "B"]),
            make_entry(datetime(2024, 3, 1, 12), 5),
        ]
        effects = {m.name: m for m in _effects(entries)}
        assert effects["A"].uses == 1
        assert set(effects) == {"A", "B"}

    def test_sorted_by_score(self, make_entry):
        entries = [
            make_entry(datetime(2024, 3, 1, 8), 6, medications_used=["mild"]),
            make_entry(datetime(2024, 3, 1, 12), 5, medications_used=["strong"]),
            make_entry(datetime(2024, 3, 1, 16), 2),
        ]
        effects = _effects(entries)
        assert [m.name for m in effects] == ["strong", "mild"]
        assert effects[1].effectiveness_score == pytest.approx(100 / 3)


class TestMedicationWindows:

    def test_best_window_first(self, make_entry):
        entries = [
            make_entry(datetime(2024, 3, 1, 7), 8, medications_used=["A"]),
            make_entry(datetime(2024, 3, 1, 10), 4, medications_used=["A"]),
            make_entry(datetime(2024, 3, 1, 20), 3, medications_used=["A"]),
            make_entry(datetime(2024, 3, 1, 22), 2),
        ]
        windows = medication_windows(relief_observations(entries), CFG)
        assert [w.id for w in windows] == ["early-morning", "late-morning", "evening"]
        best = optimal_window(windows)
        assert best.id == "early-morning"
        assert best.avg_reduction == pytest.approx(4.0)
        assert best.confidence == pytest.approx(0.25)

    def test_tie_prefers_count_then_earlier_band(self, make_entry):
        entries = [
            make_entry(datetime(2024, 3, 1, 20), 5, medications_used=["A"]),
            make_entry(datetime(2024, 3, 2, 1), 3, medications_used=["A"]),
            make_entry(datetime(2024, 3, 2, 6), 1),
        ]
        windows = medication_windows(relief_observations(entries), CFG)
        assert [w.id for w in windows] == ["overnight", "evening"]

    def test_no_observations(self):
        assert medication_windows([], CFG) == []
        assert optimal_window([]) is None
