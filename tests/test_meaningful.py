"""Tests for bucket classification, the meaningful-change score and structural warnings."""

import pytest

from impact_cli.config import (
    CONFIG_DATA,
    DOCUMENTATION,
    GENERATED,
    LOCKFILES,
    MINIFIED,
    OTHER,
    SOURCE_CODE,
    TESTS,
    BucketRule,
    WarningPolicy,
)
from impact_cli.detectors.meaningful import MeaningfulTally, classify_bucket, meaningful_change_score
from impact_cli.detectors.structural import structural_warnings
from impact_cli.models import CategoryMetrics, ChangeKind, FileChange


def change(path, insertions, whitespace=0, ignored=False):
    return FileChange(
        path=path,
        insertions=insertions,
        deletions=0,
        category="",
        kind=ChangeKind.MODIFY,
        whitespace_insertions=whitespace,
        ignored=ignored,
    )


class TestClassifyBucket:
    @pytest.mark.parametrize("path,bucket", [
        ("src/service.py", SOURCE_CODE),
        ("lib/util.rb", SOURCE_CODE),
        ("cmd/main.go", SOURCE_CODE),
        ("tests/test_service.py", TESTS),
        ("src/test/java/FooTest.java", TESTS),
        ("web/__tests__/app.js", TESTS),
        ("pkg/server_test.go", TESTS),
        ("dist/bundle.js", GENERATED),
        ("frontend/yarn.lock", LOCKFILES),
        ("package-lock.json", LOCKFILES),
        ("static/app.min.js", MINIFIED),
        ("README.md", DOCUMENTATION),
        ("docs/index.html", DOCUMENTATION),
        ("settings.yaml", CONFIG_DATA),
        ("LICENSE", OTHER),
    ])
    def test_default_rules(self, path, bucket):
        assert classify_bucket(path) == bucket

    def test_match_is_case_insensitive(self):
        assert classify_bucket("SRC/Main.PY") == SOURCE_CODE

    def test_first_rule_wins(self):
        rules = (BucketRule("A", ("*.py",)), BucketRule("B", ("src/*",)))
        assert classify_bucket("src/x.py", rules) == "A"

    def test_custom_rules_fall_back_to_other(self):
        assert classify_bucket("x.py", (BucketRule("Docs", ("*.md",)),)) == OTHER


class TestMeaningfulChangeScore:
    def test_all_source(self):
        assert meaningful_change_score(100, 100, 0) == pytest.approx(70.0)

    def test_all_tests(self):
        assert meaningful_change_score(100, 0, 100) == pytest.approx(30.0)

    def test_mixed(self):
        # 0.7 * 0.5 + 0.3 * 0.5
        assert meaningful_change_score(100, 50, 50) == pytest.approx(50.0)

    def test_nothing_meaningful_scores_full(self):
        assert meaningful_change_score(0, 0, 0) == 100.0
        assert meaningful_change_score(10, 0, 0, whitespace_insertions=10) == 100.0

    def test_whitespace_removed_from_denominator(self):
        assert meaningful_change_score(100, 50, 0, whitespace_insertions=50) == pytest.approx(70.0)

    def test_clamped(self):
        assert meaningful_change_score(10, 100, 100) == 100.0
        assert meaningful_change_score(10, -50, 0) == 0.0


class TestMeaningfulTally:
    def test_buckets_drive_shares(self):
        tally = MeaningfulTally()
        tally.add(change("src/a.py", 60), SOURCE_CODE)
        tally.add(change("tests/test_a.py", 20), TESTS)
        tally.add(change("README.md", 20), DOCUMENTATION)
        assert tally.score() == pytest.approx(100 * (0.7 * 0.6 + 0.3 * 0.2))

    def test_ignored_files_excluded(self):
        tally = MeaningfulTally()
        tally.add(change("src/a.py", 10), SOURCE_CODE)
        tally.add(change("yarn.lock", 1000, ignored=True), LOCKFILES)
        assert tally.score() == pytest.approx(70.0)

    def test_whitespace_lines_discounted(self):
        tally = MeaningfulTally()
        tally.add(change("src/a.py", 20, whitespace=10), SOURCE_CODE)
        tally.add(change("notes.txt", 10), OTHER)
        assert tally.score() == pytest.approx(100 * 0.7 * 0.5)

    def test_empty_tally(self):
        assert MeaningfulTally().score() == 100.0


def metrics(insertions, files=1):
    return CategoryMetrics(file_count=files, insertions=insertions, deletions=0)


class TestStructuralWarnings:
    def test_clean_range(self):
        buckets = {SOURCE_CODE: metrics(200), TESTS: metrics(50)}
        assert structural_warnings(buckets, 250, {"a": 100, "b": 100, "c": 50}) == []

    def test_huge_change_minimal_source(self):
        buckets = {SOURCE_CODE: metrics(50), DOCUMENTATION: metrics(1950)}
        warnings = structural_warnings(buckets, 2000, {})
        assert any("minimal source" in w for w in warnings)

    def test_untested_source(self):
        warnings = structural_warnings({SOURCE_CODE: metrics(600)}, 600, {})
        assert any("without accompanying test" in w for w in warnings)

    def test_generated_majority(self):
        buckets = {SOURCE_CODE: metrics(10), LOCKFILES: metrics(500), MINIFIED: metrics(300)}
        warnings = structural_warnings(buckets, 810, {})
        assert any("generated artifacts" in w for w in warnings)

    def test_dominant_commit(self):
        warnings = structural_warnings({SOURCE_CODE: metrics(10)}, 10, {"abc1234": 900, "def5678": 50, "0123456": 50})
        assert "Commit abc1234 accounts for 90% of all churn in the range." in warnings

    def test_dominance_needs_enough_commits(self):
        assert structural_warnings({}, 0, {"abc1234": 900, "def5678": 50}) == []

    def test_policy_thresholds(self):
        policy = WarningPolicy(untested_source_insertions=10)
        warnings = structural_warnings({SOURCE_CODE: metrics(20)}, 20, {}, policy)
        assert len(warnings) == 1
