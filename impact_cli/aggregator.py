"""Fold a commit stream into per-contributor statistics.

One pass over the commit iterator builds a ``canonical name -> builder``
map that lives only for the duration of ``aggregate()``. A commit's
contribution is applied only after its diff was classified successfully,
so a failed commit leaves every accumulator untouched.

Merge commits count toward ``commit_count`` and ``merge_count`` but never
toward line totals: their first-parent diff repeats lines already
attributed to the merged branch.
"""

import threading
from dataclasses import replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import git

from impact_cli.classifier import DiffClassifier
from impact_cli.config import DEFAULT_BUCKETS, DOCUMENTATION, GENERATED, MINIFIED, TESTS, BucketRule
from impact_cli.detectors.meaningful import MeaningfulTally, classify_bucket
from impact_cli.detectors.scoring import AutomationScorer, CommitSignals
from impact_cli.exceptions import DiffComputationError
from impact_cli.git_client import first_parent, is_merge
from impact_cli.identity import resolve_identity
from impact_cli.logging_config import get_logger
from impact_cli.models import (
    AggregationResult,
    ChangeKind,
    CommitInfo,
    ContributorStats,
    DiffResult,
    FileChange,
    RepositorySummary,
)

logger = get_logger(__name__)

UNKNOWN_GENDER = "unknown"
OTHERS = "Others"


class ErrorPolicy(str, Enum):
    SKIP = "skip"
    ABORT = "abort"


def top_level_directory(path: str) -> str:
    return path.split("/", 1)[0] if "/" in path else "."


def rank_file_changes(changes: Iterable[FileChange], limit: int) -> List[FileChange]:
    """Most impactful changes first; equal totals ordered by path."""
    ranked = sorted(changes, key=lambda c: (-c.total_change, c.path))
    return ranked[:limit] if limit >= 0 else ranked


class ContributorBuilder:
    """Mutable accumulator for one canonical identity during a single pass."""

    def __init__(self, name: str, email: str):
        self.name = name
        self.email = email
        self.emails: List[str] = [email]
        self.commit_count = 0
        self.merge_count = 0
        self.lines_added = 0
        self.lines_deleted = 0
        self.language_breakdown: Dict[str, int] = {}
        self.directory_breakdown: Dict[str, int] = {}
        self.total_probability = 0.0
        self.files_added = 0
        self.files_edited = 0
        self.files_deleted = 0
        self.touched_tests = False
        self.generated_artifacts = 0
        self.documentation_lines = 0
        self.meaningful = MeaningfulTally()
        self.file_changes: List[FileChange] = []

    def apply(self, email: str, result: DiffResult, merge: bool, probability: float,
              buckets: Sequence[BucketRule]) -> None:
        if email not in self.emails:
            self.emails.append(email)
        self.commit_count += 1
        if merge:
            self.merge_count += 1
        else:
            self.lines_added += result.lines_added
            self.lines_deleted += result.lines_deleted

        self.files_added += result.files_added
        self.files_edited += result.files_edited
        self.files_deleted += result.files_deleted
        for category, count in result.category_counts.items():
            self.language_breakdown[category] = self.language_breakdown.get(category, 0) + count

        for change in result.changes:
            directory = top_level_directory(change.path)
            self.directory_breakdown[directory] = self.directory_breakdown.get(directory, 0) + 1
            bucket = classify_bucket(change.path, buckets)
            if bucket == TESTS:
                self.touched_tests = True
            elif bucket in (GENERATED, MINIFIED):
                self.generated_artifacts += 1
            if merge:
                continue
            if bucket == DOCUMENTATION:
                self.documentation_lines += change.insertions
            self.meaningful.add(change, bucket)
            self.file_changes.append(change)

        self.total_probability += probability

    def build(self, genders: Mapping[str, str]) -> ContributorStats:
        gender = UNKNOWN_GENDER
        for key in self.emails + [self.name]:
            if key in genders:
                gender = genders[key]
                break
        return ContributorStats(
            name=self.name,
            email=self.email,
            gender=gender,
            commit_count=self.commit_count,
            merge_count=self.merge_count,
            lines_added=self.lines_added,
            lines_deleted=self.lines_deleted,
            language_breakdown=dict(self.language_breakdown),
            average_automation_probability=self.total_probability / self.commit_count,
            files_added=self.files_added,
            files_edited=self.files_edited,
            files_deleted=self.files_deleted,
            meaningful_change_score=self.meaningful.score(),
            touched_tests=self.touched_tests,
            generated_artifacts_pushed=self.generated_artifacts,
            documentation_lines_added=self.documentation_lines,
            directory_breakdown=dict(self.directory_breakdown),
        )


class CreatorTracker:
    """Remember which identity introduced each path, following renames."""

    def __init__(self):
        self.creators: Dict[str, str] = {}
        self.renamed_from: Dict[str, str] = {}

    def observe(self, identity: str, result: DiffResult) -> None:
        for change in result.changes:
            if change.kind is ChangeKind.ADD:
                # Commits arrive newest first, so the last sighting is the oldest addition
                self.creators[change.path] = identity
            elif change.kind in (ChangeKind.RENAME, ChangeKind.COPY) and change.old_path:
                self.renamed_from.setdefault(change.path, change.old_path)

    def creator_of(self, path: str) -> Optional[str]:
        seen = set()
        while path not in self.creators and path in self.renamed_from and path not in seen:
            seen.add(path)
            path = self.renamed_from[path]
        return self.creators.get(path)


class ContributorAggregator:
    def __init__(
        self,
        classifier: Optional[DiffClassifier] = None,
        aliases: Optional[Mapping[str, str]] = None,
        genders: Optional[Mapping[str, str]] = None,
        buckets: Sequence[BucketRule] = DEFAULT_BUCKETS,
        scorer: Optional[AutomationScorer] = None,
        error_policy: ErrorPolicy = ErrorPolicy.SKIP,
        top_files: int = 10,
        branch_label: str = "",
    ):
        self.classifier = classifier or DiffClassifier()
        self.aliases = dict(aliases or {})
        self.genders = dict(genders or {})
        self.buckets = tuple(buckets)
        self.scorer = scorer or AutomationScorer()
        self.error_policy = ErrorPolicy(error_policy)
        self.top_files = top_files
        self.branch_label = branch_label

    def aggregate(self, commits: Iterable[git.Commit],
                  cancel_event: Optional[threading.Event] = None) -> AggregationResult:
        builders: Dict[str, ContributorBuilder] = {}
        creators = CreatorTracker()
        infos: List[CommitInfo] = []
        skipped: Dict[str, str] = {}
        visited = 0
        cancelled = False

        for commit in commits:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                logger.warning("Analysis cancelled after %d commits; returning partial results", visited)
                break

            short_id = commit.hexsha[:7]
            try:
                result = self.classifier.classify(commit, first_parent(commit))
            except DiffComputationError as e:
                if self.error_policy is ErrorPolicy.ABORT:
                    raise
                logger.warning("Skipping commit %s: %s", short_id, e)
                skipped[short_id] = str(e)
                continue
            visited += 1

            email = commit.author.email or ""
            identity = resolve_identity(email, commit.author.name or "", self.aliases)
            merge = is_merge(commit)
            delta_added = 0 if merge else result.lines_added
            delta_deleted = 0 if merge else result.lines_deleted
            probability = self.scorer.probability(
                lines_added=delta_added,
                lines_deleted=delta_deleted,
                files_changed=result.files_changed,
                message=commit.summary,
                is_root=not commit.parents,
            )

            builder = builders.get(identity)
            if builder is None:
                builder = builders[identity] = ContributorBuilder(identity, email)
            builder.apply(email, result, merge, probability, self.buckets)
            if not merge:
                creators.observe(identity, result)

            infos.append(CommitInfo(
                id=short_id,
                sha=commit.hexsha,
                author=identity,
                email=email,
                message=commit.summary,
                timestamp=commit.authored_datetime,
                is_merge=merge,
                branch=self.branch_label,
                language_breakdown=dict(result.category_counts),
                automation_probability=probability,
                files_added=result.files_added,
                files_edited=result.files_edited,
                files_deleted=result.files_deleted,
                lines_added=delta_added,
                lines_deleted=delta_deleted,
            ))
            logger.debug("%s by %s: +%d/-%d, p=%.2f", short_id, identity, delta_added, delta_deleted, probability)

        ordered = sorted(builders.values(), key=lambda b: -b.commit_count)
        contributors = {b.name: b.build(self.genders) for b in ordered}
        top_files = {
            b.name: [
                replace(change, creator=creators.creator_of(change.path))
                for change in rank_file_changes(b.file_changes, self.top_files)
            ]
            for b in ordered
        }

        return AggregationResult(
            contributors=contributors,
            commits=infos,
            top_files=top_files,
            skipped=skipped,
            cancelled=cancelled,
            commits_visited=visited,
        )


def top_contributors(stats: Mapping[str, ContributorStats], limit: int) -> List[ContributorStats]:
    """Keep the first ``limit`` contributors and roll the rest into one "Others" entry."""
    ordered = list(stats.values())
    if len(ordered) <= limit:
        return ordered

    top = ordered[:limit]
    others = ordered[limit:]

    languages: Dict[str, int] = {}
    directories: Dict[str, int] = {}
    for s in others:
        for k, v in s.language_breakdown.items():
            languages[k] = languages.get(k, 0) + v
        for k, v in s.directory_breakdown.items():
            directories[k] = directories.get(k, 0) + v

    top.append(ContributorStats(
        name=OTHERS,
        email="",
        gender=UNKNOWN_GENDER,
        commit_count=sum(s.commit_count for s in others),
        merge_count=sum(s.merge_count for s in others),
        lines_added=sum(s.lines_added for s in others),
        lines_deleted=sum(s.lines_deleted for s in others),
        language_breakdown=languages,
        average_automation_probability=sum(s.average_automation_probability for s in others) / len(others),
        files_added=sum(s.files_added for s in others),
        files_edited=sum(s.files_edited for s in others),
        files_deleted=sum(s.files_deleted for s in others),
        meaningful_change_score=sum(s.meaningful_change_score for s in others) / len(others),
        touched_tests=any(s.touched_tests for s in others),
        generated_artifacts_pushed=sum(s.generated_artifacts_pushed for s in others),
        documentation_lines_added=sum(s.documentation_lines_added for s in others),
        directory_breakdown=directories,
    ))
    return top


def summarize_repository(result: AggregationResult, repo_name: str) -> RepositorySummary:
    stats = list(result.contributors.values())
    languages: Dict[str, int] = {}
    for s in stats:
        for k, v in s.language_breakdown.items():
            languages[k] = languages.get(k, 0) + v

    primary = ""
    if languages:
        # Highest touch count; ties go to the language seen first
        primary = max(languages, key=languages.get)

    average = sum(s.meaningful_change_score for s in stats) / len(stats) if stats else 0.0
    return RepositorySummary(
        repo_name=repo_name,
        total_contributors=len(stats),
        total_commits=sum(s.commit_count for s in stats),
        total_lines_added=sum(s.lines_added for s in stats),
        total_lines_deleted=sum(s.lines_deleted for s in stats),
        average_meaningful_score=average,
        primary_language=primary,
        language_breakdown=languages,
    )
