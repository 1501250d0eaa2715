"""Replay a branch's own commits onto another branch."""

import logging
from dataclasses import dataclass
from typing import Callable

from .errors import EmptyBranch, NoCommonAncestor
from .graph import History
from .object_store import ObjectStore
from .objects import Commit, utc_now
from .refs import RefStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RebaseResult:
    """Result of a rebase operation."""

    performed: bool
    new_commit: str | None
    replayed: tuple[tuple[str, str], ...] = ()

    def __bool__(self) -> bool:
        return self.performed


def rebase(
    objects: ObjectStore,
    refs: RefStore,
    current_branch: str,
    target_branch: str,
    *,
    clock: Callable[[], str] = utc_now,
) -> RebaseResult:
    """Replay commits unique to ``current_branch`` on top of ``target_branch``.

    Each replayed commit keeps its tree, message and author and gets a
    fresh timestamp and a new parent, hence a new hash. The branch ref
    is written once, after every replayed commit has been stored, so a
    failure part-way leaves the branch untouched and the operation can
    simply be retried.

    Returns:
        A RebaseResult; ``performed`` is False when there was nothing
        to replay.

    Raises:
        UnknownBranch: If either branch does not exist.
        EmptyBranch: If the target branch has no commits.
        NoCommonAncestor: If the two branches share no history.
    """
    target_tip = refs.read(target_branch)
    current_tip = refs.read(current_branch)
    if not target_tip:
        raise EmptyBranch(target_branch)

    history = History(objects)
    ancestor = history.common_ancestor(current_tip, target_tip)
    if ancestor is None:
        raise NoCommonAncestor(current_tip, target_tip)

    to_replay = history.commits_between(ancestor, current_tip)
    if not to_replay:
        logger.info("Nothing to rebase on %s", current_branch)
        return RebaseResult(performed=False, new_commit=None)

    new_parent = target_tip
    replayed: list[tuple[str, str]] = []
    for old_hash in to_replay:
        original = objects.get_commit(old_hash)
        new_hash = objects.put(
            Commit(
                tree=original.tree,
                parent=new_parent,
                message=original.message,
                timestamp=clock(),
                author=original.author,
            )
        )
        logger.debug("Replayed %s as %s", old_hash, new_hash)
        replayed.append((old_hash, new_hash))
        new_parent = new_hash

    refs.write(current_branch, new_parent)
    logger.info(
        "Rebased %d commit(s) of %s onto %s",
        len(replayed),
        current_branch,
        target_branch,
    )
    return RebaseResult(
        performed=True, new_commit=new_parent, replayed=tuple(replayed)
    )
