from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import git

from impact_cli.exceptions import InvalidRevisionError, RepositoryNotFoundError
from impact_cli.logging_config import get_logger

logger = get_logger(__name__)


class RepositoryReader:
    """Read-only view over a local git repository."""

    def __init__(self, repo: git.Repo):
        self.repo = repo

    @property
    def name(self) -> str:
        root = self.repo.working_tree_dir or self.repo.git_dir
        return Path(root).resolve().name

    def iter_commits(self, rev: str = "HEAD", max_count: int = 0, all_refs: bool = False) -> Iterator[git.Commit]:
        """Yield commits newest first. ``max_count=0`` walks the whole history."""
        kwargs = {}
        if max_count > 0:
            kwargs["max_count"] = max_count
        try:
            if all_refs:
                commits = self.repo.iter_commits(all=True, **kwargs)
            else:
                commits = self.repo.iter_commits(rev, **kwargs)
            yield from commits
        except ValueError:
            # No commits on the reference yet (fresh repository)
            logger.info("No commits found for %s", "all refs" if all_refs else rev)
            return
        except git.exc.GitCommandError as e:
            if self._is_empty():
                logger.info("Repository has no commits")
                return
            raise InvalidRevisionError(rev, str(e)) from e

    def root_commit(self, rev: str = "HEAD", all_refs: bool = False) -> Optional[git.Commit]:
        """Return the oldest parentless commit reachable from ``rev``, or None."""
        root = None
        try:
            if all_refs:
                roots = self.repo.iter_commits(all=True, max_parents=0)
            else:
                roots = self.repo.iter_commits(rev, max_parents=0)
            for commit in roots:
                root = commit
        except ValueError:
            return None
        except git.exc.GitCommandError as e:
            if self._is_empty():
                return None
            raise InvalidRevisionError(rev, str(e)) from e
        return root

    def commit(self, rev: str) -> git.Commit:
        try:
            return self.repo.commit(rev)
        except (git.exc.BadName, ValueError) as e:
            raise InvalidRevisionError(rev, str(e)) from e

    def is_ancestor(self, ancestor: git.Commit, commit: git.Commit) -> bool:
        """True when ``ancestor`` is reachable from ``commit`` (a commit is its own ancestor)."""
        try:
            return self.repo.is_ancestor(ancestor, commit)
        except git.exc.GitCommandError as e:
            raise InvalidRevisionError(ancestor.hexsha[:7], str(e)) from e

    def _is_empty(self) -> bool:
        try:
            self.repo.head.commit
        except ValueError:
            return True
        return False


def first_parent(commit: git.Commit) -> Optional[git.Commit]:
    """Return the first parent, or None for a root commit."""
    if not commit.parents:
        return None
    return commit.parents[0]


def is_merge(commit: git.Commit) -> bool:
    return len(commit.parents) > 1


@contextmanager
def open_repository(path: str = "."):
    """Open the repository at ``path`` and release it on exit."""
    try:
        repo = git.Repo(path)
    except git.exc.NoSuchPathError:
        raise RepositoryNotFoundError(str(path), "path does not exist")
    except git.exc.InvalidGitRepositoryError:
        raise RepositoryNotFoundError(str(path), "not a git repository")
    logger.debug("Opened repository at %s", path)
    try:
        yield RepositoryReader(repo)
    finally:
        repo.close()
