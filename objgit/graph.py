"""Ancestor walks over the commit graph."""

from collections import deque
from typing import Iterator

from .object_store import ObjectStore
from .objects import Commit


class History:
    """Read-only queries over the parent links of stored commits.

    Every walk keeps a visited set, so a malformed parent chain that
    loops back on itself terminates instead of spinning forever.
    """

    def __init__(self, objects: ObjectStore) -> None:
        self.objects = objects

    def parent(self, commit_hash: str) -> str | None:
        return self.objects.get_commit(commit_hash).parent

    def ancestors(self, commit_hash: str | None) -> list[str]:
        """All commits reachable from ``commit_hash``, itself included.

        Returned in breadth-first order without duplicates. An empty
        hash (a branch with no commits) has no ancestors.

        Raises:
            NotFound: If a commit on the chain is missing.
        """
        if not commit_hash:
            return []
        visited: dict[str, None] = {}
        queue: deque[str] = deque([commit_hash])
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited[current] = None
            parent = self.parent(current)
            if parent is not None and parent not in visited:
                queue.append(parent)
        return list(visited)

    def common_ancestor(self, commit_a: str | None, commit_b: str | None) -> str | None:
        """First ancestor of ``commit_a`` (in walk order) shared with ``commit_b``.

        This is *a* common ancestor, not necessarily the lowest one in
        histories with several merge points.
        """
        ancestors_b = set(self.ancestors(commit_b))
        if not ancestors_b:
            return None
        for candidate in self.ancestors(commit_a):
            if candidate in ancestors_b:
                return candidate
        return None

    def is_ancestor(self, maybe_ancestor: str, commit_hash: str) -> bool:
        return maybe_ancestor in self.ancestors(commit_hash)

    def commits_between(self, ancestor: str, tip: str) -> list[str]:
        """Commits after ``ancestor`` up to ``tip``, oldest first.

        ``ancestor`` is excluded. Returns an empty list when ``tip``
        cannot reach ``ancestor``.
        """
        collected: list[str] = []
        seen: set[str] = set()
        current: str | None = tip
        while current and current not in seen:
            if current == ancestor:
                collected.reverse()
                return collected
            seen.add(current)
            collected.append(current)
            current = self.parent(current)
        return []

    def log(self, commit_hash: str | None) -> Iterator[tuple[str, Commit]]:
        """Yield ``(hash, commit)`` from ``commit_hash`` back to the root."""
        seen: set[str] = set()
        current = commit_hash
        while current and current not in seen:
            seen.add(current)
            commit = self.objects.get_commit(current)
            yield current, commit
            current = commit.parent
