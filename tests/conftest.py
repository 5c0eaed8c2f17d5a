"""Shared fixtures: throwaway git repositories built with GitPython."""

from pathlib import Path

import git
import pytest

ADA = ("Ada", "ada@work.com")
ADA_HOME = ("ada", "ada@home.com")
BOB = ("Bob", "bob@work.com")
CAROL = ("Carol", "carol@work.com")


def lines(n, prefix="line"):
    """``n`` distinct lines of text, newline terminated."""
    return "".join(f"{prefix} {i}\n" for i in range(n))


class RepoBuilder:
    """Write files and commit them with fixed authors and monotonically increasing dates."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.repo = git.Repo.init(self.path)
        self._clock = 1_700_000_000

    def commit(self, message, files=None, delete=(), author=ADA, parents=None, head=True):
        for rel, content in (files or {}).items():
            target = self.path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            self.repo.index.add([str(target)])
        if delete:
            self.repo.index.remove([str(self.path / rel) for rel in delete], working_tree=True)

        self._clock += 60
        actor = git.Actor(*author)
        date = f"{self._clock} +0000"
        return self.repo.index.commit(
            message,
            parent_commits=parents,
            head=head,
            author=actor,
            committer=actor,
            author_date=date,
            commit_date=date,
        )

    def reset_index(self, commit):
        """Point the index (not HEAD or the working tree) at ``commit``'s tree."""
        self.repo.index.reset(commit=commit, head=False)

    def close(self):
        self.repo.close()


@pytest.fixture
def builder(tmp_path):
    b = RepoBuilder(tmp_path / "repo")
    yield b
    b.close()


@pytest.fixture
def ada_repo(builder):
    """Three commits: Ada adds code, Ada (home address) edits it, Bob adds a lockfile."""
    c1 = builder.commit("Add service", {"src/a.py": lines(10), "src/b.py": lines(5)}, author=ADA)
    c2 = builder.commit(
        "Rework service entry point",
        {"src/a.py": lines(7) + "changed 7\nchanged 8\nchanged 9\n"},
        author=ADA_HOME,
    )
    c3 = builder.commit("Bump dependencies", {"yarn.lock": lines(40, "dep")}, author=BOB)
    return builder, (c1, c2, c3)
