"""Meaningful-change analysis over a commit range."""

from dataclasses import replace
from typing import Dict, List, Optional, Sequence

import git

from impact_cli.aggregator import ErrorPolicy, rank_file_changes
from impact_cli.classifier import DiffClassifier
from impact_cli.config import (
    DEFAULT_BUCKETS,
    DEFAULT_WARNING_POLICY,
    OTHER,
    SOURCE_CODE,
    BucketRule,
    WarningPolicy,
)
from impact_cli.detectors.meaningful import MeaningfulTally, classify_bucket
from impact_cli.detectors.structural import structural_warnings
from impact_cli.exceptions import DiffComputationError, InvalidRevisionError
from impact_cli.git_client import RepositoryReader, first_parent, is_merge
from impact_cli.logging_config import get_logger
from impact_cli.models import CategoryMetrics, FileChange, MeaningfulChangeAnalysis

logger = get_logger(__name__)


def commits_in_range(reader: RepositoryReader, newest: str = "HEAD", oldest: Optional[str] = None,
                     limit: int = 0) -> List[git.Commit]:
    """Commits of ``oldest..newest`` with both ends included, newest first.

    Without ``oldest`` the range is the latest ``limit`` commits reachable
    from ``newest`` (everything when ``limit`` is 0). An explicit range is
    never capped; ``oldest`` must be an ancestor of ``newest``.
    """
    if oldest is None:
        return list(reader.iter_commits(newest, max_count=limit))

    first = reader.commit(oldest)
    last = reader.commit(newest)
    if not reader.is_ancestor(first, last):
        raise InvalidRevisionError(f"{oldest}..{newest}", f"{oldest} is not an ancestor of {newest}")
    commits = list(reader.iter_commits(f"{first.hexsha}..{last.hexsha}"))
    commits.append(first)
    return commits


def range_label(commits: Sequence[git.Commit]) -> str:
    if not commits:
        return ""
    newest = commits[0].hexsha[:7]
    oldest = commits[-1].hexsha[:7]
    if len(commits) == 1:
        return newest
    return f"{oldest}..{newest}"


def _add(metrics: CategoryMetrics, change: FileChange) -> CategoryMetrics:
    return CategoryMetrics(
        file_count=metrics.file_count + 1,
        insertions=metrics.insertions + change.insertions,
        deletions=metrics.deletions + change.deletions,
    )


def build_summary(label: str, insertions: int, deletions: int,
                  buckets: Dict[str, CategoryMetrics], warnings: List[str]) -> str:
    src = buckets.get(SOURCE_CODE, CategoryMetrics())
    text = (
        f"Analysis for range {label}: {insertions} insertions, {deletions} deletions. "
        f"Source code accounts for {src.insertions} lines across {src.file_count} files. "
    )
    if warnings:
        text += "Notable issues: " + "; ".join(warnings)
    else:
        text += "Changes appear generally meaningful."
    return text


class MeaningfulChangeAnalyzer:
    def __init__(
        self,
        classifier: Optional[DiffClassifier] = None,
        buckets: Sequence[BucketRule] = DEFAULT_BUCKETS,
        policy: WarningPolicy = DEFAULT_WARNING_POLICY,
        top_k: int = 20,
        error_policy: ErrorPolicy = ErrorPolicy.SKIP,
    ):
        self.classifier = classifier or DiffClassifier()
        self.buckets = tuple(buckets)
        self.policy = policy
        self.top_k = top_k
        self.error_policy = ErrorPolicy(error_policy)

    def analyze(self, commits: Sequence[git.Commit], label: Optional[str] = None) -> MeaningfulChangeAnalysis:
        """Analyze ``commits`` (newest first). Merge commits are skipped."""
        label = label if label is not None else range_label(commits)
        files: Dict[str, FileChange] = {}
        commit_churn: Dict[str, int] = {}
        total_ins = total_del = 0
        ws_churn = 0
        analyzed = 0

        for commit in commits:
            short_id = commit.hexsha[:7]
            if is_merge(commit):
                logger.debug("Skipping merge commit %s", short_id)
                continue
            try:
                result = self.classifier.classify(commit, first_parent(commit))
            except DiffComputationError as e:
                if self.error_policy is ErrorPolicy.ABORT:
                    raise
                logger.warning("Skipping commit %s: %s", short_id, e)
                continue

            analyzed += 1
            churn = 0
            for change in result.changes:
                total_ins += change.insertions
                total_del += change.deletions
                ws_churn += change.whitespace_insertions + change.whitespace_deletions
                churn += change.total_change

                seen = files.get(change.path)
                if seen is None:
                    files[change.path] = replace(change, diff_text=None)
                else:
                    # Keep the newest kind/category, sum the line counts
                    files[change.path] = replace(
                        seen,
                        insertions=seen.insertions + change.insertions,
                        deletions=seen.deletions + change.deletions,
                        whitespace_insertions=seen.whitespace_insertions + change.whitespace_insertions,
                        whitespace_deletions=seen.whitespace_deletions + change.whitespace_deletions,
                    )
            commit_churn[short_id] = churn

        categories: Dict[str, CategoryMetrics] = {}
        bucket_metrics: Dict[str, CategoryMetrics] = {rule.name: CategoryMetrics() for rule in self.buckets}
        bucket_metrics.setdefault(OTHER, CategoryMetrics())
        tally = MeaningfulTally()

        for change in files.values():
            if change.category and not change.ignored:
                categories[change.category] = _add(categories.get(change.category, CategoryMetrics()), change)
            bucket = classify_bucket(change.path, self.buckets)
            bucket_metrics[bucket] = _add(bucket_metrics[bucket], change)
            tally.add(change, bucket)

        warnings = structural_warnings(bucket_metrics, total_ins, commit_churn, self.policy)
        if analyzed == 0:
            warnings.append("No analyzable commits in range.")

        return MeaningfulChangeAnalysis(
            commit_range=label,
            total_insertions=total_ins,
            total_deletions=total_del,
            whitespace_churn=ws_churn,
            top_changed_files=rank_file_changes(files.values(), self.top_k),
            category_breakdown=dict(sorted(categories.items())),
            bucket_breakdown=bucket_metrics,
            warnings=warnings,
            summary=build_summary(label, total_ins, total_del, bucket_metrics, warnings),
            meaningful_change_score=tally.score(),
            commit_count=analyzed,
        )
