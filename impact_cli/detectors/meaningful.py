"""
Meaningful-Change Score
───────────────────────
  score = 100 × (0.70 × source share + 0.30 × test share)

Shares are fractions of the *meaningful* insertions: whitespace-only
edits and ignored-extension files are excluded before dividing. Which
paths count as source or tests is decided by the bucket rules in
configuration, not here.
"""

from fnmatch import fnmatchcase
from typing import Sequence

from impact_cli.config import DEFAULT_BUCKETS, OTHER, SOURCE_CODE, TESTS, BucketRule
from impact_cli.models import FileChange

SOURCE_WEIGHT = 0.70
TEST_WEIGHT = 0.30


def classify_bucket(path: str, rules: Sequence[BucketRule] = DEFAULT_BUCKETS) -> str:
    lowered = path.lower()
    for rule in rules:
        if any(fnmatchcase(lowered, pattern) for pattern in rule.patterns):
            return rule.name
    return OTHER


def meaningful_change_score(total_insertions: int, source_insertions: int, test_insertions: int,
                            whitespace_insertions: int = 0) -> float:
    """Weighted source/test share of meaningful insertions, clamped to [0, 100].

    ``source_insertions`` and ``test_insertions`` are expected to exclude
    whitespace-only lines already; ``whitespace_insertions`` is removed
    from the total. Nothing meaningful inserted scores 100.
    """
    meaningful = total_insertions - whitespace_insertions
    if meaningful <= 0:
        return 100.0
    score = 100.0 * (SOURCE_WEIGHT * source_insertions / meaningful
                     + TEST_WEIGHT * test_insertions / meaningful)
    return max(0.0, min(100.0, score))


class MeaningfulTally:
    """Running inputs of the meaningful-change score."""

    def __init__(self):
        self.total_insertions = 0
        self.whitespace_insertions = 0
        self.source_insertions = 0
        self.test_insertions = 0

    def add(self, change: FileChange, bucket: str) -> None:
        if change.ignored:
            return
        self.total_insertions += change.insertions
        self.whitespace_insertions += change.whitespace_insertions
        meaningful = change.insertions - change.whitespace_insertions
        if bucket == SOURCE_CODE:
            self.source_insertions += meaningful
        elif bucket == TESTS:
            self.test_insertions += meaningful

    def score(self) -> float:
        return meaningful_change_score(
            self.total_insertions,
            self.source_insertions,
            self.test_insertions,
            self.whitespace_insertions,
        )
