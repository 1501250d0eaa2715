"""Branches, tags and HEAD."""

import logging
from typing import Callable

from .errors import (
    AlreadyExists,
    IsActiveBranch,
    NotFound,
    NotInitialized,
    UnknownBranch,
    UnknownTag,
)
from .kv.base import KVStore
from .objects import COMMIT

logger = logging.getLogger(__name__)

BRANCH_REF = "refs/heads/%s"
TAG_REF = "refs/tags/%s"
HEAD = "HEAD"


def check_ref_name(name: str) -> str:
    """Validate a branch or tag name and return it unchanged."""
    if not isinstance(name, str) or not name:
        raise ValueError(f"Invalid ref name: {name!r}")
    if name in (".", "..") or name.startswith(".") or name.startswith("-"):
        raise ValueError(f"Invalid ref name: {name!r}")
    if "/" in name or "\\" in name or any(c.isspace() or ord(c) < 32 for c in name):
        raise ValueError(f"Invalid ref name: {name!r}")
    return name


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8").strip()


class RefStore:
    """Named mutable pointers kept in a ``KVStore``.

    A branch ref holds a commit hash, or an empty value before the
    first commit. HEAD holds the name of the active branch; there is
    no detached state.

    Args:
        store: Backend holding the refs.
        commit_exists: Optional predicate applied to every non-empty
            hash before a branch or tag is pointed at it. Without it,
            callers are responsible for only writing stored commits.
    """

    def __init__(
        self,
        store: KVStore,
        *,
        commit_exists: Callable[[str], bool] | None = None,
    ) -> None:
        self.store = store
        self.commit_exists = commit_exists

    def _check_target(self, commit_hash: str) -> None:
        if commit_hash and self.commit_exists and not self.commit_exists(commit_hash):
            raise NotFound(commit_hash, COMMIT)

    # -- Branches --

    def exists(self, branch: str) -> bool:
        return BRANCH_REF % check_ref_name(branch) in self.store

    def read(self, branch: str) -> str:
        """Commit hash a branch points at ("" before its first commit)."""
        raw = self.store.get(BRANCH_REF % check_ref_name(branch))
        if raw is None:
            raise UnknownBranch(branch)
        return _decode(raw)

    def write(self, branch: str, commit_hash: str) -> None:
        """Move an existing branch to ``commit_hash``."""
        if not self.exists(branch):
            raise UnknownBranch(branch)
        self._check_target(commit_hash)
        self.store.set(BRANCH_REF % branch, commit_hash.encode("utf-8"))
        logger.debug("Moved %s to %s", branch, commit_hash or "<empty>")

    def create(self, branch: str, commit_hash: str = "") -> None:
        key = BRANCH_REF % check_ref_name(branch)
        self._check_target(commit_hash)
        if not self.store.cas(key, commit_hash.encode("utf-8"), expected=None):
            raise AlreadyExists(branch)
        logger.debug("Created branch %s at %s", branch, commit_hash or "<empty>")

    def delete(self, branch: str) -> None:
        if not self.exists(branch):
            raise UnknownBranch(branch)
        if branch == self.get_current_branch():
            raise IsActiveBranch(branch)
        self.store.remove(BRANCH_REF % branch)
        logger.debug("Deleted branch %s", branch)

    def list_branches(self) -> list[str]:
        prefix = BRANCH_REF % ""
        return sorted(key[len(prefix):] for key in self.store.keys(prefix))

    # -- HEAD --

    def get_current_branch(self) -> str:
        raw = self.store.get(HEAD)
        if raw is None:
            raise NotInitialized(HEAD)
        return _decode(raw)

    def set_current_branch(self, branch: str) -> None:
        if not self.exists(branch):
            raise UnknownBranch(branch)
        self.store.set(HEAD, branch.encode("utf-8"))
        logger.debug("HEAD now names %s", branch)

    # -- Tags --

    def create_tag(self, tag: str, commit_hash: str) -> None:
        key = TAG_REF % check_ref_name(tag)
        self._check_target(commit_hash)
        if not self.store.cas(key, commit_hash.encode("utf-8"), expected=None):
            raise AlreadyExists(tag, what="Tag")
        logger.debug("Created tag %s at %s", tag, commit_hash)

    def tag_exists(self, tag: str) -> bool:
        return TAG_REF % check_ref_name(tag) in self.store

    def read_tag(self, tag: str) -> str:
        raw = self.store.get(TAG_REF % check_ref_name(tag))
        if raw is None:
            raise UnknownTag(tag)
        return _decode(raw)

    def delete_tag(self, tag: str) -> None:
        key = TAG_REF % check_ref_name(tag)
        if key not in self.store:
            raise UnknownTag(tag)
        self.store.remove(key)

    def list_tags(self) -> list[str]:
        prefix = TAG_REF % ""
        return sorted(key[len(prefix):] for key in self.store.keys(prefix))
