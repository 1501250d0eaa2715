"""Three-way conflict detection and branch merging."""

import logging
from dataclasses import dataclass
from typing import Mapping, Union

from .errors import EmptyBranch, MergeConflict, NoCommonAncestor
from .graph import History
from .object_store import ObjectStore
from .objects import Tree
from .refs import RefStore

logger = logging.getLogger(__name__)

PathMap = Union[Tree, Mapping[str, str]]


@dataclass(frozen=True)
class MergeResult:
    """Result of a merge operation."""

    merged: bool
    commit: str | None
    strategy: str  # "no_op", "fast_forward", "three_way"
    previous: str | None = None

    def __bool__(self) -> bool:
        return self.merged


def _entries(tree: PathMap) -> Mapping[str, str]:
    return tree.entries if isinstance(tree, Tree) else tree


def _resolve(
    old: str | None, ours: str | None, theirs: str | None
) -> tuple[bool, str | None]:
    """Pick the surviving blob for one path: ``(conflicted, blob_hash)``.

    ``None`` stands for "absent on that side", so deletions resolve
    the same way edits do.
    """
    if ours == theirs:
        return False, ours
    if old == ours:
        return False, theirs
    if old == theirs:
        return False, ours
    return True, None


def detect_conflicts(
    ancestor: PathMap, current: PathMap, source: PathMap
) -> set[str]:
    """Paths changed differently on both sides since ``ancestor``."""
    old, ours, theirs = _entries(ancestor), _entries(current), _entries(source)
    conflicts: set[str] = set()
    for path in set(old) | set(ours) | set(theirs):
        conflicted, _ = _resolve(old.get(path), ours.get(path), theirs.get(path))
        if conflicted:
            conflicts.add(path)
    return conflicts


def merged_entries(
    ancestor: PathMap, current: PathMap, source: PathMap
) -> dict[str, str]:
    """The path mapping a conflict-free three-way merge would produce.

    Raises:
        MergeConflict: With every conflicting path.
    """
    old, ours, theirs = _entries(ancestor), _entries(current), _entries(source)
    merged: dict[str, str] = {}
    conflicts: set[str] = set()
    for path in set(old) | set(ours) | set(theirs):
        conflicted, blob_hash = _resolve(
            old.get(path), ours.get(path), theirs.get(path)
        )
        if conflicted:
            conflicts.add(path)
        elif blob_hash is not None:
            merged[path] = blob_hash
    if conflicts:
        raise MergeConflict(conflicts)
    return merged


def merge(
    objects: ObjectStore,
    refs: RefStore,
    current_branch: str,
    source_branch: str,
) -> MergeResult:
    """Merge ``source_branch`` into ``current_branch``.

    On success the current branch ref is moved to the source tip; no
    merge commit is created. On conflict nothing is written.

    Raises:
        UnknownBranch: If either branch does not exist.
        EmptyBranch: If the source branch has no commits.
        NoCommonAncestor: If the two branches share no history.
        MergeConflict: With the full set of conflicting paths.
    """
    current_tip = refs.read(current_branch)
    source_tip = refs.read(source_branch)
    if not source_tip:
        raise EmptyBranch(source_branch)

    history = History(objects)
    ancestor = history.common_ancestor(current_tip, source_tip)
    if ancestor is None:
        raise NoCommonAncestor(current_tip, source_tip)

    # Source already contained in current: nothing can conflict.
    if ancestor == source_tip:
        logger.info("%s is already up to date with %s", current_branch, source_branch)
        return MergeResult(
            merged=True, commit=current_tip, strategy="no_op", previous=current_tip
        )

    conflicts = detect_conflicts(
        objects.commit_tree(ancestor),
        objects.commit_tree(current_tip),
        objects.commit_tree(source_tip),
    )
    if conflicts:
        logger.info(
            "Merge of %s into %s stopped on %d conflicting path(s)",
            source_branch,
            current_branch,
            len(conflicts),
        )
        raise MergeConflict(conflicts)

    strategy = "fast_forward" if ancestor == current_tip else "three_way"
    refs.write(current_branch, source_tip)
    logger.info(
        "Merged %s into %s (%s): %s -> %s",
        source_branch,
        current_branch,
        strategy,
        current_tip,
        source_tip,
    )
    return MergeResult(
        merged=True, commit=source_tip, strategy=strategy, previous=current_tip
    )
