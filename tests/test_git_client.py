"""Tests for repository access."""

import pytest

from impact_cli.exceptions import InvalidRevisionError, RepositoryNotFoundError
from impact_cli.git_client import first_parent, is_merge, open_repository

from .conftest import lines


class TestOpenRepository:
    def test_missing_path(self, tmp_path):
        with pytest.raises(RepositoryNotFoundError) as exc:
            with open_repository(str(tmp_path / "nowhere")):
                pass
        assert exc.value.details["reason"] == "path does not exist"

    def test_not_a_repository(self, tmp_path):
        with pytest.raises(RepositoryNotFoundError) as exc:
            with open_repository(str(tmp_path)):
                pass
        assert exc.value.details["reason"] == "not a git repository"

    def test_name_is_directory_name(self, builder):
        builder.commit("init", {"a.py": "x\n"})
        with open_repository(str(builder.path)) as reader:
            assert reader.name == "repo"


class TestIterCommits:
    def test_newest_first(self, ada_repo):
        builder, (c1, c2, c3) = ada_repo
        with open_repository(str(builder.path)) as reader:
            assert [c.hexsha for c in reader.iter_commits()] == [c3.hexsha, c2.hexsha, c1.hexsha]

    def test_cap(self, ada_repo):
        builder, (c1, c2, c3) = ada_repo
        with open_repository(str(builder.path)) as reader:
            assert [c.hexsha for c in reader.iter_commits(max_count=2)] == [c3.hexsha, c2.hexsha]

    def test_zero_means_whole_history(self, ada_repo):
        builder, _ = ada_repo
        with open_repository(str(builder.path)) as reader:
            assert len(list(reader.iter_commits(max_count=0))) == 3

    def test_empty_repository_yields_nothing(self, builder):
        with open_repository(str(builder.path)) as reader:
            assert list(reader.iter_commits()) == []
            assert reader.root_commit() is None

    def test_all_refs_includes_side_branches(self, builder):
        c1 = builder.commit("init", {"a.py": "x\n"})
        side = builder.commit("side work", {"b.py": "y\n"}, parents=[c1], head=False)
        builder.repo.create_head("side", side)
        builder.reset_index(c1)
        builder.commit("main work", {"c.py": "z\n"})
        with open_repository(str(builder.path)) as reader:
            assert len(list(reader.iter_commits())) == 2
            shas = {c.hexsha for c in reader.iter_commits(all_refs=True)}
        assert side.hexsha in shas
        assert len(shas) == 3

    def test_unknown_revision(self, ada_repo):
        builder, _ = ada_repo
        with open_repository(str(builder.path)) as reader:
            with pytest.raises(InvalidRevisionError):
                list(reader.iter_commits("no-such-branch"))
            with pytest.raises(InvalidRevisionError):
                reader.commit("no-such-branch")


class TestCommitHelpers:
    def test_root_commit(self, ada_repo):
        builder, (c1, _, _) = ada_repo
        with open_repository(str(builder.path)) as reader:
            root = reader.root_commit()
        assert root.hexsha == c1.hexsha
        assert first_parent(root) is None

    def test_first_parent_and_merge(self, builder):
        c1 = builder.commit("init", {"a.py": lines(2)})
        c2 = builder.commit("more", {"b.py": lines(2)})
        merge = builder.commit("Merge", parents=[c2, c1])
        assert first_parent(c2).hexsha == c1.hexsha
        assert first_parent(merge).hexsha == c2.hexsha
        assert is_merge(merge)
        assert not is_merge(c2)
