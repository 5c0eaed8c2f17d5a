"""
Per-commit diff classification
───────────────────────────────
Computes the first-parent diff of a commit (against the empty tree for the
root commit), derives a category for every changed path from its
extension and accounts inserted/deleted lines per contiguous edit region.

Line accounting is range based, not content based: a reformatted line
counts as one deletion plus one insertion. Whitespace-only edit regions
are reported separately so scorers can discount them.
"""

import re
from typing import Iterable, List, Optional, Sequence, Tuple

import git
from git import NULL_TREE

from impact_cli.exceptions import DiffComputationError
from impact_cli.logging_config import get_logger
from impact_cli.models import ChangeKind, DiffResult, Edit, FileChange

logger = get_logger(__name__)

_HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def path_category(path: str) -> str:
    """Lower-cased text after the last dot, or "" when there is no dot after position 0."""
    dot = path.rfind(".")
    if dot <= 0:
        return ""
    return path[dot + 1:].lower()


def is_ignored_extension(path: str, ignored_suffixes: Iterable[str]) -> bool:
    """Case-insensitive suffix match against the whole path (``yarn.lock``, ``.md``, ...)."""
    lowered = path.lower()
    return any(suffix and lowered.endswith(suffix.lower()) for suffix in ignored_suffixes)


def is_ignored_folder(path: str, ignored_folders: Iterable[str]) -> bool:
    """True when any leading directory of ``path`` matches an ignored folder.

    A bare folder name (``node_modules``) matches at any depth; an entry
    with a slash (``docs/generated``) must match the path prefix.
    """
    parts = path.split("/")[:-1]
    for folder in ignored_folders:
        folder = folder.strip("/")
        if not folder:
            continue
        if "/" in folder:
            if path.startswith(folder + "/"):
                return True
        elif folder in parts:
            return True
    return False


def _range_start(start: str, count: Optional[str]) -> int:
    # Hunk headers are 1-based; an empty range names the line before it.
    n = 1 if count is None else int(count)
    begin = int(start)
    return begin if n == 0 else begin - 1


def parse_edits(patch: str) -> List[Edit]:
    """Split unified-diff hunks into contiguous edit regions."""
    edits: List[Edit] = []
    removed: List[str] = []
    added: List[str] = []
    old_line = new_line = 0
    begin_a = begin_b = 0
    in_hunk = False

    def flush():
        if removed or added:
            edits.append(Edit(
                begin_a, begin_a + len(removed),
                begin_b, begin_b + len(added),
                tuple(removed), tuple(added),
            ))
            removed.clear()
            added.clear()

    # Only "\n" ends a diff line; a bare "\r" or form feed is line content
    for line in patch.split("\n"):
        if line.endswith("\r"):
            line = line[:-1]
        if not line:
            continue
        header = _HUNK_HEADER.match(line)
        if header:
            flush()
            old_line = _range_start(header.group(1), header.group(2))
            new_line = _range_start(header.group(3), header.group(4))
            in_hunk = True
            continue
        if not in_hunk or line.startswith("\\"):
            continue
        if line.startswith("-"):
            if not removed and not added:
                begin_a, begin_b = old_line, new_line
            removed.append(line[1:])
            old_line += 1
        elif line.startswith("+"):
            if not removed and not added:
                begin_a, begin_b = old_line, new_line
            added.append(line[1:])
            new_line += 1
        else:
            flush()
            old_line += 1
            new_line += 1
    flush()
    return edits


def is_whitespace_only(edit: Edit) -> bool:
    """An edit whose lines differ from their counterparts only in surrounding whitespace."""
    if len(edit.removed) == len(edit.added):
        if all(old.strip() == new.strip() for old, new in zip(edit.removed, edit.added)):
            return True
    return all(not line.strip() for line in edit.removed + edit.added)


def count_lines(edits: Sequence[Edit]) -> Tuple[int, int]:
    added = deleted = 0
    for edit in edits:
        added += edit.end_b - edit.begin_b
        deleted += edit.end_a - edit.begin_a
    return added, deleted


def whitespace_lines(edits: Sequence[Edit]) -> Tuple[int, int]:
    added = deleted = 0
    for edit in edits:
        if is_whitespace_only(edit):
            added += edit.insertions
            deleted += edit.deletions
    return added, deleted


def change_kind(diff: git.Diff) -> ChangeKind:
    if diff.new_file:
        return ChangeKind.ADD
    if diff.deleted_file:
        return ChangeKind.DELETE
    if diff.renamed_file:
        return ChangeKind.RENAME
    if getattr(diff, "copied_file", False):
        return ChangeKind.COPY
    return ChangeKind.MODIFY


class DiffClassifier:
    """Classify the first-parent diff of a commit into FileChange values."""

    def __init__(self, ignored_extensions: Iterable[str] = (), ignored_folders: Iterable[str] = (),
                 include_diff_text: bool = False, count_renames_as_edits: bool = False):
        self.ignored_extensions = tuple(ignored_extensions)
        self.ignored_folders = tuple(ignored_folders)
        self.include_diff_text = include_diff_text
        self.count_renames_as_edits = count_renames_as_edits

    def _diff_index(self, commit: git.Commit, parent: Optional[git.Commit]):
        if parent is None:
            return commit.diff(NULL_TREE, create_patch=True)
        return parent.diff(commit, create_patch=True)

    def classify(self, commit: git.Commit, parent: Optional[git.Commit] = None) -> DiffResult:
        commit_id = commit.hexsha[:7]
        try:
            diffs = list(self._diff_index(commit, parent))
        except (git.exc.GitCommandError, ValueError, OSError) as e:
            raise DiffComputationError(commit_id, str(e)) from e

        changes: List[FileChange] = []
        categories = {}
        files_added = files_edited = files_deleted = 0
        lines_added = lines_deleted = 0

        for d in diffs:
            path = d.b_path or d.a_path
            if not path:
                continue
            if is_ignored_folder(path, self.ignored_folders):
                logger.debug("%s: skipping %s (ignored folder)", commit_id, path)
                continue

            try:
                raw = d.diff or b""
                patch = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
            except (ValueError, OSError) as e:
                raise DiffComputationError(commit_id, str(e), path=path) from e

            edits = parse_edits(patch)
            added, deleted = count_lines(edits)
            ws_added, ws_deleted = whitespace_lines(edits)
            category = path_category(path)
            ignored = is_ignored_extension(path, self.ignored_extensions)
            kind = change_kind(d)

            if category and not ignored:
                categories[category] = categories.get(category, 0) + 1

            if kind is ChangeKind.ADD:
                files_added += 1
            elif kind is ChangeKind.MODIFY:
                files_edited += 1
            elif kind is ChangeKind.DELETE:
                files_deleted += 1
            elif kind in (ChangeKind.RENAME, ChangeKind.COPY):
                # Renames and copies are neither additions nor edits unless configured
                if self.count_renames_as_edits:
                    files_edited += 1

            lines_added += added
            lines_deleted += deleted
            changes.append(FileChange(
                path=path,
                insertions=added,
                deletions=deleted,
                category=category,
                kind=kind,
                old_path=d.a_path if d.a_path != path else None,
                whitespace_insertions=ws_added,
                whitespace_deletions=ws_deleted,
                ignored=ignored,
                diff_text=patch if self.include_diff_text else None,
            ))

        return DiffResult(
            changes=tuple(changes),
            files_added=files_added,
            files_edited=files_edited,
            files_deleted=files_deleted,
            lines_added=lines_added,
            lines_deleted=lines_deleted,
            category_counts=categories,
        )
