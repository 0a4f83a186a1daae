"""
Tests for the reasoning tree: shape, depth and confidence capping.
"""
from constants import DAY_LABELS, TIME_PERIODS
from engine_config import EngineConfig
from insights.reasoning_tree import EMPTY_TREE, build_reasoning_tree, cap_tier
from schema import (
    CorrelationResult,
    MedicationEffect,
    MedicationWindowInsight,
    PeriodStat,
    Recommendation,
    WeekdayStat,
)

CFG = EngineConfig()


def _tree(entry_count=10, **overrides):
    kwargs = dict(
        entry_count=entry_count,
        mean_pain=5.0,
        volatility=1.5,
        weekdays=[
            WeekdayStat(iso_day=d, label=label, count=4 if d in (1, 5) else 0,
                        mean_pain={1: 7.0, 5: 4.0}.get(d, 0.0))
            for d, label in DAY_LABELS.items()
        ],
        periods=[PeriodStat(period=key, count=2, mean_pain=5.0) for key, _, _ in TIME_PERIODS],
        correlations=[],
        risk_score=55,
        bad_days=2,
        good_days=3,
        predicted_flare=None,
        optimal_window=None,
        medication_effects=[],
        top_locations=[],
        recommendations=[],
        cfg=CFG,
    )
    kwargs.update(overrides)
    return build_reasoning_tree(**kwargs)


class TestCapTier:

    def test_cap(self):
        assert cap_tier("high", "low") == "low"
        assert cap_tier("low", "high") == "low"
        assert cap_tier("medium", "medium") == "medium"


class TestShape:

    def test_empty_state(self):
        tree = _tree(entry_count=0)
        assert tree is EMPTY_TREE
        assert tree.title == "No evidence yet"
        assert tree.children == ()

    def test_root_with_three_branches(self):
        tree = _tree()
        assert tree.id == "root"
        assert [c.id for c in tree.children] == ["patterns", "risk", "clinical"]
        assert tree.depth() <= 3
        assert "10 entries" in tree.insight

    def test_pattern_leaves_are_toughest_days(self):
        patterns = _tree().children[0]
        assert [leaf.id for leaf in patterns.children] == ["day-1", "day-5"]
        assert patterns.insight.startswith("Detected 2/7 day patterns and 8 ")
        assert patterns.evidence == "Need more trigger tagging"

    def test_trigger_evidence(self):
        corr = CorrelationResult(
            label="weather", kind="trigger", occurrence_count=6, mean_delta=1.8, rank=1,
            confidence=0.75, low_confidence=False, strength="strong", direction="increases",
        )
        patterns = _tree(correlations=[corr]).children[0]
        assert patterns.evidence == "weather shifts pain by +1.8"
        assert "Monday" in patterns.suggested_action

    def test_risk_leaves(self):
        window = MedicationWindowInsight(id="evening", label="7 PM - 11 PM", start_hour=19,
                                         end_hour=23, count=4, avg_reduction=1.0,
                                         confidence=1.0)
        effect = MedicationEffect(name="A", uses=3, doses_observed=3,
                                  avg_reduction=2.0, effectiveness_score=66.7)
        risk = _tree(optimal_window=window, medication_effects=[effect]).children[1]
        assert [leaf.id for leaf in risk.children] == ["med-window", "med-effectiveness"]

    def test_clinical_leaves_from_recommendations(self):
        recs = [
            Recommendation(title=f"r{i}", detail="d", category="routine", emphasis="high")
            for i in range(3)
        ]
        clinical = _tree(recommendations=recs).children[2]
        assert [leaf.title for leaf in clinical.children] == ["r0", "r1"]
        assert [leaf.id for leaf in clinical.children] == ["rec-1", "rec-2"]


class TestConfidence:

    def test_coverage_tiers(self):
        assert _tree(entry_count=10).confidence == "low"
        assert _tree(entry_count=25).confidence == "medium"
        assert _tree(entry_count=60).confidence == "high"

    def test_leaves_capped_at_coverage(self):
        effect = MedicationEffect(name="A", uses=5, doses_observed=5,
                                  avg_reduction=2.0, effectiveness_score=66.7)
        risk = _tree(entry_count=10, medication_effects=[effect]).children[1]
        assert risk.children[0].confidence == "low"
        risk = _tree(entry_count=60, medication_effects=[effect]).children[1]
        assert risk.children[0].confidence == "high"
