"""objgit error types."""

from __future__ import annotations

from typing import Iterable


class ObjgitError(Exception):
    """Base class for every error raised by objgit."""


class NotInitialized(ObjgitError):
    """Raised when no repository exists where one was expected."""

    def __init__(self, location: str) -> None:
        self.location = location
        super().__init__(f"Not an objgit repository: {location}")


class NotFound(ObjgitError, KeyError):
    """Raised when an object hash is not present under the requested kind.

    Attributes:
        object_hash: The hash that was looked up.
        kind: The object kind (``"blob"``, ``"tree"`` or ``"commit"``).
    """

    def __init__(self, object_hash: str, kind: str) -> None:
        self.object_hash = object_hash
        self.kind = kind
        super().__init__(f"No {kind} object {object_hash}")

    def __str__(self) -> str:
        return self.args[0]


class UnknownBranch(ObjgitError):
    """Raised when a branch name does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Branch '{name}' does not exist")


class UnknownTag(ObjgitError):
    """Raised when a tag name does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tag '{name}' does not exist")


class AlreadyExists(ObjgitError):
    """Raised when creating a branch, tag or repository that already exists."""

    def __init__(self, name: str, what: str = "Branch") -> None:
        self.name = name
        self.what = what
        super().__init__(f"{what} '{name}' already exists")


class IsActiveBranch(ObjgitError):
    """Raised when deleting the branch HEAD currently names."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Cannot delete the active branch '{name}'")


class EmptyBranch(ObjgitError):
    """Raised when a merge or rebase source has no commits."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Branch '{name}' has no commits")


class NoCommonAncestor(ObjgitError):
    """Raised when two commits share no history."""

    def __init__(self, commit_a: str, commit_b: str) -> None:
        self.commit_a = commit_a
        self.commit_b = commit_b
        super().__init__(
            f"No common ancestor between {commit_a or '<empty>'} "
            f"and {commit_b or '<empty>'}"
        )


class MergeConflict(ObjgitError):
    """Raised when a three-way merge finds paths changed on both sides.

    This is an expected outcome rather than a crash: nothing has been
    written when it is raised, and the caller decides how to proceed.

    Attributes:
        conflicting_paths: Every path that could not be auto-merged.
    """

    def __init__(self, conflicting_paths: Iterable[str]) -> None:
        self.conflicting_paths = frozenset(conflicting_paths)
        paths_str = ", ".join(sorted(self.conflicting_paths))
        super().__init__(f"Merge conflict on paths: {paths_str}")


class Corrupt(ObjgitError):
    """Raised when a stored object cannot be parsed or fails verification."""

    def __init__(self, object_hash: str | None, reason: str) -> None:
        self.object_hash = object_hash
        self.reason = reason
        where = f" {object_hash}" if object_hash else ""
        super().__init__(f"Corrupt object{where}: {reason}")


class IOFailure(ObjgitError):
    """Raised when the storage backend fails to read or write."""

    def __init__(self, key: str, error: OSError) -> None:
        self.key = key
        self.error = error
        super().__init__(f"I/O failure on {key}: {error}")
