"""Repository: objects, refs and the index behind one interface."""

from __future__ import annotations

import logging
from typing import Callable

from .config import CONFIG_KEY, Config
from .diff import FileDiff, diff_trees
from .errors import AlreadyExists, EmptyBranch, NotFound, NotInitialized
from .graph import History
from .index import Index
from .kv.base import KVStore
from .merge import MergeResult, merge
from .object_store import ObjectStore
from .objects import Blob, Commit, Tree, utc_now
from .rebase import RebaseResult, rebase
from .refs import HEAD, RefStore, check_ref_name

logger = logging.getLogger(__name__)


class Repository:
    """A version-controlled repository over a ``KVStore``.

    Provides:
    - ``add()`` / ``remove()`` / ``commit()`` to record snapshots
    - branch and tag management, ``switch_branch()``
    - ``merge()`` / ``rebase()`` to combine histories
    - ``diff()`` / ``log()`` / ``ancestors()`` to inspect them

    Use ``init_repository()`` / ``open_repository()`` rather than
    constructing one directly.
    """

    def __init__(
        self,
        store: KVStore,
        *,
        config: Config | None = None,
        root: str | None = None,
    ) -> None:
        if HEAD not in store:
            raise NotInitialized(root or "<store>")
        self.store = store
        self.root = root
        self.config = config or Config()
        self.objects = ObjectStore(store, cache_size=self.config.cache_size)
        self.refs = RefStore(
            store, commit_exists=lambda h: self.objects.exists(h, Commit.kind)
        )
        self.index = Index(store)
        self.history = History(self.objects)

    @classmethod
    def initialize(
        cls,
        store: KVStore,
        *,
        config: Config | None = None,
        root: str | None = None,
    ) -> Repository:
        """Create the refs, index and config records in an empty store.

        Raises:
            AlreadyExists: If the store already holds a repository.
        """
        config = config or Config()
        if HEAD in store:
            raise AlreadyExists(root or "<store>", what="Repository")
        refs = RefStore(store)
        refs.create(config.default_branch)
        refs.set_current_branch(config.default_branch)
        Index(store).clear()
        store.set(CONFIG_KEY, config.to_bytes())
        logger.info("Initialized repository at %s", root or "<memory>")
        return cls(store, config=config, root=root)

    # -- HEAD --

    def current_branch(self) -> str:
        return self.refs.get_current_branch()

    def head_commit(self) -> str | None:
        """Tip of the active branch, or None before the first commit."""
        return self.refs.read(self.current_branch()) or None

    def head_tree(self) -> Tree:
        head = self.head_commit()
        return self.objects.commit_tree(head) if head else Tree()

    # -- Staging --

    def add(self, path: str, content: bytes, *, binary: bool | None = None) -> str:
        """Store ``content`` as a blob and stage it at ``path``."""
        blob_hash = self.objects.put(Blob.from_content(content, binary))
        self.index.stage(path, blob_hash)
        return blob_hash

    def remove(self, path: str) -> bool:
        """Stage the deletion of ``path``.

        Returns False if the path is neither committed nor staged.
        """
        if path in self.head_tree():
            self.index.mark_deleted(path)
            return True
        return self.index.unstage(path)

    def stash(self) -> str | None:
        return self.index.stash_push()

    def stash_pop(self) -> str | None:
        return self.index.stash_pop()

    def stash_list(self) -> list[str]:
        return self.index.stash_list()

    # -- Commit --

    def commit(
        self,
        message: str,
        *,
        author: str | None = None,
        timestamp: str | None = None,
    ) -> str | None:
        """Record the staged changes on the active branch.

        Returns:
            The new commit hash, or None if nothing was staged.
        """
        staged = self.index.entries()
        if not staged:
            return None
        branch = self.current_branch()
        parent = self.refs.read(branch) or None
        base = self.objects.commit_tree(parent) if parent else Tree()
        tree = base.with_changes(
            {p: h for p, h in staged.items() if h is not None},
            {p for p, h in staged.items() if h is None},
        )
        tree_hash = self.objects.put(tree)
        commit_hash = self.objects.put(
            Commit(
                tree=tree_hash,
                parent=parent,
                message=message,
                timestamp=timestamp or utc_now(),
                author=author or self.config.author,
            )
        )
        self.refs.write(branch, commit_hash)
        self.index.clear()
        logger.info("[%s %s] %s", branch, commit_hash[:10], message)
        return commit_hash

    # -- Branches and tags --

    def create_branch(self, name: str, start: str | None = None) -> str:
        """Create a branch at ``start`` (default: the active branch's tip)."""
        commit_hash = self.resolve(start) if start else self.head_commit() or ""
        self.refs.create(name, commit_hash)
        return commit_hash

    def delete_branch(self, name: str) -> None:
        self.refs.delete(name)

    def list_branches(self) -> list[str]:
        return self.refs.list_branches()

    def switch_branch(self, name: str) -> None:
        self.refs.set_current_branch(name)

    def create_tag(self, name: str, commit: str | None = None) -> str:
        """Tag ``commit`` (default: the active branch's tip)."""
        if commit is None:
            commit_hash = self.head_commit()
            if commit_hash is None:
                raise EmptyBranch(self.current_branch())
        else:
            commit_hash = self.resolve(commit)
        self.refs.create_tag(name, commit_hash)
        return commit_hash

    def delete_tag(self, name: str) -> None:
        self.refs.delete_tag(name)

    def list_tags(self) -> list[str]:
        return self.refs.list_tags()

    def resolve(self, name: str) -> str:
        """Commit hash for a branch name, tag name or commit hash.

        Raises:
            EmptyBranch: If ``name`` is a branch with no commits.
            NotFound: If ``name`` matches nothing.
        """
        if _is_ref_name(name) and self.refs.exists(name):
            commit_hash = self.refs.read(name)
            if not commit_hash:
                raise EmptyBranch(name)
            return commit_hash
        if _is_ref_name(name) and self.refs.tag_exists(name):
            return self.refs.read_tag(name)
        if self.objects.exists(name, Commit.kind):
            return name
        raise NotFound(name, Commit.kind)

    # -- History operations --

    def merge(self, source: str) -> MergeResult:
        """Merge branch ``source`` into the active branch."""
        return merge(self.objects, self.refs, self.current_branch(), source)

    def rebase(self, target: str, *, clock: Callable[[], str] = utc_now) -> RebaseResult:
        """Replay the active branch's own commits onto branch ``target``."""
        return rebase(
            self.objects, self.refs, self.current_branch(), target, clock=clock
        )

    def diff(self, commit_a: str, commit_b: str) -> list[FileDiff]:
        """Differences going from ``commit_a`` to ``commit_b``."""
        tree_a = self.objects.commit_tree(self.resolve(commit_a))
        tree_b = self.objects.commit_tree(self.resolve(commit_b))
        return diff_trees(self.objects, tree_a, tree_b)

    def log(self, start: str | None = None) -> list[tuple[str, Commit]]:
        """Commits from ``start`` (default: HEAD) back to the root."""
        commit_hash = self.resolve(start) if start else self.head_commit()
        return list(self.history.log(commit_hash))

    def ancestors(self, start: str | None = None) -> list[str]:
        """Breadth-first ancestors of ``start`` (default: HEAD), itself included."""
        if start is None:
            return self.history.ancestors(self.head_commit())
        if _is_ref_name(start) and self.refs.exists(start):
            return self.history.ancestors(self.refs.read(start))
        return self.history.ancestors(self.resolve(start))

    def read_file(self, commit: str, path: str) -> bytes:
        """Content of ``path`` as of ``commit``."""
        blob_hash = self.objects.commit_tree(self.resolve(commit)).get(path)
        if blob_hash is None:
            raise NotFound(path, "file")
        return self.objects.get_blob(blob_hash).content


def _is_ref_name(name: str) -> bool:
    try:
        check_ref_name(name)
    except ValueError:
        return False
    return True
