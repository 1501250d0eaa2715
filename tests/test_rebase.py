"""Tests for replaying commits onto another branch."""

import itertools

import pytest

from objgit import init_repository
from objgit.errors import EmptyBranch, NoCommonAncestor, UnknownBranch
from objgit.rebase import RebaseResult


def fixed_clock():
    counter = itertools.count()
    return lambda: f"2030-01-01T00:00:{next(counter):02d}.000000+00:00"


@pytest.fixture
def repo():
    r = init_repository(author="tester")
    r.add("base.txt", b"base")
    r.commit("base")
    return r


def diverge(repo, own_commits=3, target_commits=2):
    """Give main extra commits and feature its own commits, HEAD on feature."""
    repo.create_branch("feature")
    for i in range(target_commits):
        repo.add("main.txt", f"main {i}".encode())
        repo.commit(f"main {i}")
    repo.switch_branch("feature")
    originals = []
    for i in range(own_commits):
        repo.add(f"f{i}.txt", f"feature {i}".encode())
        originals.append(repo.commit(f"feature {i}", author=f"author{i}"))
    return originals


class TestRebase:
    def test_onto_self_is_no_op(self, repo):
        head = repo.head_commit()
        result = repo.rebase("main")
        assert result == RebaseResult(performed=False, new_commit=None)
        assert not result
        assert repo.head_commit() == head

    def test_replays_each_commit(self, repo):
        originals = diverge(repo, own_commits=3)
        target_tip = repo.refs.read("main")

        result = repo.rebase("main", clock=fixed_clock())

        assert result.performed
        assert len(result.replayed) == 3
        assert [old for old, _ in result.replayed] == originals
        new_hashes = [new for _, new in result.replayed]
        assert set(new_hashes).isdisjoint(originals)
        assert result.new_commit == new_hashes[-1]
        assert repo.refs.read("feature") == new_hashes[-1]

        parent = target_tip
        for (old, new) in result.replayed:
            replayed = repo.objects.get_commit(new)
            original = repo.objects.get_commit(old)
            assert replayed.parent == parent
            assert replayed.tree == original.tree
            assert replayed.message == original.message
            assert replayed.author == original.author
            parent = new

    def test_fresh_timestamps(self, repo):
        diverge(repo, own_commits=2)
        result = repo.rebase("main", clock=fixed_clock())
        stamps = [repo.objects.get_commit(new).timestamp for _, new in result.replayed]
        assert stamps == [
            "2030-01-01T00:00:00.000000+00:00",
            "2030-01-01T00:00:01.000000+00:00",
        ]

    def test_target_ref_unchanged(self, repo):
        diverge(repo)
        target_tip = repo.refs.read("main")
        repo.rebase("main")
        assert repo.refs.read("main") == target_tip

    def test_originals_remain_stored(self, repo):
        originals = diverge(repo)
        repo.rebase("main")
        for old in originals:
            assert repo.objects.get_commit(old).message.startswith("feature")

    def test_behind_target_replays_nothing(self, repo):
        repo.create_branch("feature")
        repo.add("main.txt", b"ahead")
        repo.commit("ahead")
        repo.switch_branch("feature")
        before = repo.head_commit()
        assert not repo.rebase("main")
        assert repo.head_commit() == before

    def test_history_is_linear_after(self, repo):
        diverge(repo, own_commits=2, target_commits=2)
        result = repo.rebase("main")
        messages = [c.message for _, c in repo.log(result.new_commit)]
        assert messages == ["feature 1", "feature 0", "main 1", "main 0", "base"]


class TestRebaseErrors:
    def test_unknown_target(self, repo):
        with pytest.raises(UnknownBranch):
            repo.rebase("nope")

    def test_empty_target(self, repo):
        repo.refs.create("empty")
        with pytest.raises(EmptyBranch):
            repo.rebase("empty")

    def test_unrelated(self, repo):
        repo.refs.create("orphan")
        repo.switch_branch("orphan")
        repo.add("x", b"x")
        tip = repo.commit("orphan root")
        with pytest.raises(NoCommonAncestor):
            repo.rebase("main")
        assert repo.head_commit() == tip
