"""Tests for branches, tags and HEAD."""

import pytest

from objgit.errors import (
    AlreadyExists,
    IsActiveBranch,
    NotFound,
    NotInitialized,
    UnknownBranch,
    UnknownTag,
)
from objgit.kv.memory import Memory
from objgit.refs import RefStore, check_ref_name


@pytest.fixture
def refs():
    r = RefStore(Memory())
    r.create("main")
    r.set_current_branch("main")
    return r


class TestBranches:
    def test_new_branch_is_empty(self, refs):
        assert refs.read("main") == ""

    def test_write_then_read(self, refs):
        refs.write("main", "a" * 40)
        assert refs.read("main") == "a" * 40

    def test_read_unknown(self, refs):
        with pytest.raises(UnknownBranch) as exc_info:
            refs.read("nope")
        assert exc_info.value.name == "nope"

    def test_write_does_not_create(self, refs):
        with pytest.raises(UnknownBranch):
            refs.write("nope", "a" * 40)
        assert not refs.exists("nope")

    def test_create_at_commit(self, refs):
        refs.create("feature", "b" * 40)
        assert refs.read("feature") == "b" * 40

    def test_create_existing(self, refs):
        refs.write("main", "a" * 40)
        with pytest.raises(AlreadyExists):
            refs.create("main", "b" * 40)
        assert refs.read("main") == "a" * 40

    def test_delete(self, refs):
        refs.create("feature")
        refs.delete("feature")
        assert not refs.exists("feature")

    def test_delete_unknown(self, refs):
        with pytest.raises(UnknownBranch):
            refs.delete("nope")

    def test_delete_active(self, refs):
        with pytest.raises(IsActiveBranch):
            refs.delete("main")
        assert refs.exists("main")

    def test_list_is_sorted(self, refs):
        refs.create("zeta")
        refs.create("alpha")
        assert refs.list_branches() == ["alpha", "main", "zeta"]

    def test_stored_as_text(self):
        store = Memory()
        refs = RefStore(store)
        refs.create("main", "c" * 40)
        assert store.get("refs/heads/main") == b"c" * 40


class TestHead:
    def test_current_branch(self, refs):
        assert refs.get_current_branch() == "main"

    def test_switch(self, refs):
        refs.create("feature")
        refs.set_current_branch("feature")
        assert refs.get_current_branch() == "feature"

    def test_switch_unknown(self, refs):
        with pytest.raises(UnknownBranch):
            refs.set_current_branch("nope")
        assert refs.get_current_branch() == "main"

    def test_missing_head(self):
        with pytest.raises(NotInitialized):
            RefStore(Memory()).get_current_branch()

    def test_head_names_branch(self):
        store = Memory()
        refs = RefStore(store)
        refs.create("dev")
        refs.set_current_branch("dev")
        assert store.get("HEAD") == b"dev"


class TestTags:
    def test_create_and_read(self, refs):
        refs.create_tag("v1", "a" * 40)
        assert refs.tag_exists("v1")
        assert refs.read_tag("v1") == "a" * 40

    def test_tags_are_separate_from_branches(self, refs):
        refs.create_tag("main", "a" * 40)
        assert refs.read("main") == ""
        assert refs.read_tag("main") == "a" * 40

    def test_duplicate_tag(self, refs):
        refs.create_tag("v1", "a" * 40)
        with pytest.raises(AlreadyExists) as exc_info:
            refs.create_tag("v1", "b" * 40)
        assert exc_info.value.what == "Tag"

    def test_unknown_tag(self, refs):
        with pytest.raises(UnknownTag):
            refs.read_tag("v9")
        with pytest.raises(UnknownTag):
            refs.delete_tag("v9")

    def test_delete_and_list(self, refs):
        refs.create_tag("v2", "a" * 40)
        refs.create_tag("v1", "a" * 40)
        assert refs.list_tags() == ["v1", "v2"]
        refs.delete_tag("v1")
        assert refs.list_tags() == ["v2"]


class TestCommitCheck:
    @pytest.fixture
    def checked(self):
        known = {"a" * 40}
        r = RefStore(Memory(), commit_exists=known.__contains__)
        r.create("main")
        r.set_current_branch("main")
        return r

    def test_known_commit_accepted(self, checked):
        checked.write("main", "a" * 40)
        checked.create("dev", "a" * 40)
        checked.create_tag("v1", "a" * 40)
        assert checked.read("dev") == "a" * 40

    def test_unknown_commit_rejected(self, checked):
        with pytest.raises(NotFound):
            checked.write("main", "b" * 40)
        with pytest.raises(NotFound):
            checked.create("dev", "b" * 40)
        with pytest.raises(NotFound):
            checked.create_tag("v1", "b" * 40)
        assert checked.read("main") == ""
        assert not checked.exists("dev")
        assert not checked.tag_exists("v1")

    def test_empty_target_always_allowed(self, checked):
        checked.create("dev")
        assert checked.read("dev") == ""

    def test_unchecked_by_default(self, refs):
        refs.write("main", "b" * 40)
        assert refs.read("main") == "b" * 40


class TestRefNames:
    @pytest.mark.parametrize("name", ["main", "feature-1", "v1.0", "release_2"])
    def test_valid(self, name):
        assert check_ref_name(name) == name

    @pytest.mark.parametrize(
        "name", ["", ".", "..", ".hidden", "-x", "a/b", "a\\b", "with space", "tab\there"]
    )
    def test_invalid(self, name):
        with pytest.raises(ValueError):
            check_ref_name(name)

    def test_invalid_name_rejected_on_create(self, refs):
        with pytest.raises(ValueError):
            refs.create("../HEAD")
