"""
Structural warnings for a commit range
──────────────────────────────────────
Flags ranges whose churn is dominated by something other than source
changes: minimal source share in a huge change, untested source work,
generated/lockfile/minified bulk, or a single commit owning most of the
churn. Thresholds come from ``WarningPolicy``.
"""

from typing import Dict, List, Mapping

from impact_cli.config import (
    DEFAULT_WARNING_POLICY,
    GENERATED,
    LOCKFILES,
    MINIFIED,
    SOURCE_CODE,
    TESTS,
    WarningPolicy,
)
from impact_cli.models import CategoryMetrics

_EMPTY = CategoryMetrics()


def structural_warnings(
    buckets: Mapping[str, CategoryMetrics],
    total_insertions: int,
    commit_churn: Dict[str, int],
    policy: WarningPolicy = DEFAULT_WARNING_POLICY,
) -> List[str]:
    warnings = []
    src = buckets.get(SOURCE_CODE, _EMPTY)
    test = buckets.get(TESTS, _EMPTY)

    if total_insertions > policy.huge_change_insertions and \
            src.insertions < total_insertions * policy.minimal_source_share:
        warnings.append("Huge LOC change but minimal source code changes detected.")

    if src.insertions > policy.untested_source_insertions and test.insertions == 0:
        warnings.append("Significant source code changes without accompanying test changes.")

    non_meaningful = sum(buckets.get(b, _EMPTY).insertions for b in (GENERATED, LOCKFILES, MINIFIED))
    if total_insertions > 0 and non_meaningful / total_insertions > policy.generated_majority_share:
        warnings.append("Majority of changes appear to be generated artifacts, lockfiles, or minified code.")

    total_churn = sum(commit_churn.values())
    if len(commit_churn) >= policy.dominant_commit_min_commits and \
            total_churn >= policy.dominant_commit_min_churn:
        # Ties resolve to the first commit seen (newest)
        top_id = max(commit_churn, key=commit_churn.get)
        share = commit_churn[top_id] / total_churn
        if share > policy.dominant_commit_share:
            warnings.append(
                f"Commit {top_id} accounts for {share:.0%} of all churn in the range."
            )

    return warnings
