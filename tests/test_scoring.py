"""Tests for the automated-generation probability."""

import pytest

from impact_cli.detectors.scoring import (
    AutomationScorer,
    CommitSignals,
    band_for,
    bloat_signal,
    write_only_signal,
)
from impact_cli.detectors.text import MessageDetector


@pytest.fixture
def scorer():
    return AutomationScorer()


class TestProbability:
    def test_every_signal_clamps_to_one(self, scorer):
        # bloat 0.5 + write-only 0.3 + wide 0.2
        assert scorer.probability(lines_added=2500, lines_deleted=10, files_changed=25) == 1.0

    def test_small_balanced_commit(self, scorer):
        assert scorer.probability(lines_added=50, lines_deleted=50, files_changed=2) == 0.0

    def test_large_write_only(self, scorer):
        assert scorer.probability(lines_added=600, lines_deleted=0, files_changed=3) == 0.5

    def test_wide_change_only(self, scorer):
        assert scorer.probability(lines_added=40, lines_deleted=40, files_changed=21) == 0.2

    def test_write_only_threshold(self, scorer):
        assert scorer.probability(lines_added=101, lines_deleted=5, files_changed=1) == 0.3
        assert scorer.probability(lines_added=100, lines_deleted=0, files_changed=1) == 0.0
        assert scorer.probability(lines_added=200, lines_deleted=10, files_changed=1) == 0.0

    def test_root_commit_scores_zero(self, scorer):
        assert scorer.probability(lines_added=5000, lines_deleted=0, files_changed=300, is_root=True) == 0.0

    def test_message_never_moves_the_score(self, scorer):
        plain = scorer.probability(lines_added=600, lines_deleted=0, files_changed=3, message="Implement parser")
        generic = scorer.probability(lines_added=600, lines_deleted=0, files_changed=3, message="wip")
        assert plain == generic

    def test_result_is_rounded(self, scorer):
        score = scorer.probability(lines_added=700, lines_deleted=1, files_changed=30)
        assert score == round(score, 2)
        assert 0.0 <= score <= 1.0


class TestSignals:
    def test_bloat_tiers_are_exclusive(self):
        assert bloat_signal(CommitSignals(2001, 0, 1))["score"] == 0.5
        assert bloat_signal(CommitSignals(501, 0, 1))["score"] == 0.2
        assert bloat_signal(CommitSignals(500, 0, 1))["score"] == 0.0

    def test_write_only_reason(self):
        res = write_only_signal(CommitSignals(300, 1, 1))
        assert res["score"] == 0.3
        assert "300 added" in res["reason"]

    def test_compute_reports_contributions(self, scorer):
        res = scorer.compute(CommitSignals(2500, 10, 25, message="update"))
        assert res["signals"] == {"bloat": 0.5, "write_only": 0.3, "wide_change": 0.2, "generic_message": 0.0}
        assert res["band"] == "Likely Automated"
        assert any("Generic" in r for r in res["reasons"])

    def test_custom_signal_set(self):
        scorer = AutomationScorer(signals=[("always", lambda c: {"score": 0.4, "reason": "x"})])
        assert scorer.probability(1, 1, 1) == 0.4


class TestBands:
    @pytest.mark.parametrize("score,band", [
        (0.0, "Likely Human"),
        (0.19, "Likely Human"),
        (0.2, "Mixed / Uncertain"),
        (0.49, "Mixed / Uncertain"),
        (0.5, "Likely Automated"),
        (1.0, "Likely Automated"),
    ])
    def test_band(self, score, band):
        assert band_for(score) == band


class TestMessageDetector:
    def test_generic_and_short(self):
        res = MessageDetector().analyze("fix")
        assert res["score"] == 0.0
        assert "short" in res["reason"]
        assert "fix" in res["reason"]

    def test_descriptive_message(self):
        assert MessageDetector().analyze("Add retry budget to the diff reader")["reason"] == ""

    def test_only_first_line_considered(self):
        res = MessageDetector().analyze("Introduce range analysis\n\nwip cleanup")
        assert res["reason"] == ""

    def test_none_message(self):
        assert MessageDetector().analyze(None)["score"] == 0.0
