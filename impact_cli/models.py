"""Value objects produced by the history analysis engine."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple


class ChangeKind(str, Enum):
    ADD = "ADD"
    MODIFY = "MODIFY"
    DELETE = "DELETE"
    RENAME = "RENAME"
    COPY = "COPY"


@dataclass(frozen=True)
class Edit:
    """A contiguous edit region: old lines [begin_a, end_a) became new lines [begin_b, end_b)."""

    begin_a: int
    end_a: int
    begin_b: int
    end_b: int
    removed: Tuple[str, ...] = ()
    added: Tuple[str, ...] = ()

    @property
    def insertions(self) -> int:
        return self.end_b - self.begin_b

    @property
    def deletions(self) -> int:
        return self.end_a - self.begin_a


@dataclass(frozen=True)
class FileChange:
    path: str
    insertions: int
    deletions: int
    category: str
    kind: ChangeKind
    old_path: Optional[str] = None
    whitespace_insertions: int = 0
    whitespace_deletions: int = 0
    ignored: bool = False  # matched an ignored-extension suffix
    diff_text: Optional[str] = None
    creator: Optional[str] = None

    @property
    def total_change(self) -> int:
        return self.insertions + self.deletions


@dataclass(frozen=True)
class DiffResult:
    changes: Tuple[FileChange, ...]
    files_added: int = 0
    files_edited: int = 0
    files_deleted: int = 0
    lines_added: int = 0
    lines_deleted: int = 0
    category_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def files_changed(self) -> int:
        return len(self.changes)


@dataclass(frozen=True)
class CommitInfo:
    id: str  # short hash
    sha: str
    author: str  # canonical identity
    email: str
    message: str
    timestamp: datetime
    is_merge: bool
    branch: str
    language_breakdown: Dict[str, int]
    automation_probability: float
    files_added: int
    files_edited: int
    files_deleted: int
    lines_added: int
    lines_deleted: int


@dataclass(frozen=True)
class ContributorStats:
    name: str
    email: str
    gender: str
    commit_count: int
    merge_count: int
    lines_added: int
    lines_deleted: int
    language_breakdown: Dict[str, int]
    average_automation_probability: float
    files_added: int
    files_edited: int
    files_deleted: int
    meaningful_change_score: float
    touched_tests: bool = False
    generated_artifacts_pushed: int = 0
    documentation_lines_added: int = 0
    directory_breakdown: Dict[str, int] = field(default_factory=dict)

    @property
    def total_impact(self) -> int:
        return self.lines_added + self.lines_deleted


@dataclass(frozen=True)
class CategoryMetrics:
    file_count: int = 0
    insertions: int = 0
    deletions: int = 0


@dataclass(frozen=True)
class MeaningfulChangeAnalysis:
    commit_range: str
    total_insertions: int
    total_deletions: int
    whitespace_churn: int  # insertions + deletions that only touch whitespace
    top_changed_files: List[FileChange]
    category_breakdown: Dict[str, CategoryMetrics]
    bucket_breakdown: Dict[str, CategoryMetrics]
    warnings: List[str]
    summary: str
    meaningful_change_score: float
    commit_count: int = 0


@dataclass(frozen=True)
class AggregationResult:
    contributors: Dict[str, ContributorStats]
    commits: List[CommitInfo]
    top_files: Dict[str, List[FileChange]]
    skipped: Dict[str, str] = field(default_factory=dict)
    cancelled: bool = False
    commits_visited: int = 0  # applied commits only; skipped ones appear in skipped


@dataclass(frozen=True)
class RepositorySummary:
    repo_name: str
    total_contributors: int
    total_commits: int
    total_lines_added: int
    total_lines_deleted: int
    average_meaningful_score: float
    primary_language: str
    language_breakdown: Dict[str, int]


def to_jsonable(value):
    """Convert a result value (or list/dict of them) into plain JSON-ready data."""
    if hasattr(value, "__dataclass_fields__"):
        return to_jsonable(asdict(value))
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value
