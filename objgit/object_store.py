"""Content-addressed storage for blobs, trees and commits."""

import logging
from typing import cast

from .cache import CacheInfo, LRUCache
from .errors import Corrupt, NotFound
from .kv.base import KVStore
from .objects import BLOB, COMMIT, KINDS, TREE, Blob, Commit, GitObject, Tree, parse

logger = logging.getLogger(__name__)

OBJECT_KEY = "objects/%s/%s/%s/%s"

DEFAULT_CACHE_SIZE = 1000


def object_key(kind: str, object_hash: str) -> str:
    """Backend key for an object, sharded by the first two hash bytes."""
    return OBJECT_KEY % (kind, object_hash[:2], object_hash[2:4], object_hash)


def _valid_hash(object_hash: str) -> bool:
    return (
        isinstance(object_hash, str)
        and len(object_hash) >= 4
        and all(c in "0123456789abcdef" for c in object_hash)
    )


class ObjectStore:
    """Write-once object storage over a ``KVStore``.

    Objects are stored under their content hash, partitioned by kind.
    A per-kind LRU cache sits in front of ``get``; a cache hit never
    reaches the backend.
    """

    def __init__(
        self, store: KVStore, *, cache_size: int = DEFAULT_CACHE_SIZE
    ) -> None:
        self.store = store
        self._caches: dict[str, LRUCache[str, GitObject]] = {
            kind: LRUCache(cache_size) for kind in KINDS
        }

    def put(self, obj: GitObject) -> str:
        """Store an object and return its hash.

        An object already present under the same hash is not rewritten,
        and only what was actually written enters the cache.
        """
        object_hash = obj.hash
        key = object_key(obj.kind, object_hash)
        if key in self.store:
            return object_hash
        self.store.set(key, obj.serialize())
        logger.debug("Wrote %s %s", obj.kind, object_hash)
        self._caches[obj.kind].put(object_hash, obj)
        return object_hash

    def get(self, object_hash: str, kind: str) -> GitObject:
        """Load an object by hash.

        Raises:
            NotFound: If no object of ``kind`` has this hash.
            Corrupt: If the stored bytes fail to parse or do not
                hash back to ``object_hash``.
        """
        if kind not in self._caches:
            raise ValueError(f"Unknown object kind: {kind!r}")
        cache = self._caches[kind]
        cached = cache.get(object_hash)
        if cached is not None:
            return cached
        if not _valid_hash(object_hash):
            raise NotFound(object_hash, kind)
        raw = self.store.get(object_key(kind, object_hash))
        if raw is None:
            raise NotFound(object_hash, kind)
        obj = parse(kind, raw, object_hash)
        if obj.hash != object_hash:
            raise Corrupt(object_hash, f"content hashes to {obj.hash}")
        cache.put(object_hash, obj)
        return obj

    def exists(self, object_hash: str, kind: str) -> bool:
        if object_hash in self._caches[kind]:
            return True
        return _valid_hash(object_hash) and object_key(kind, object_hash) in self.store

    def get_blob(self, object_hash: str) -> Blob:
        return cast(Blob, self.get(object_hash, BLOB))

    def get_tree(self, object_hash: str) -> Tree:
        return cast(Tree, self.get(object_hash, TREE))

    def get_commit(self, object_hash: str) -> Commit:
        return cast(Commit, self.get(object_hash, COMMIT))

    def commit_tree(self, commit_hash: str) -> Tree:
        """The tree a commit points at."""
        return self.get_tree(self.get_commit(commit_hash).tree)

    def cache_info(self, kind: str) -> CacheInfo:
        return self._caches[kind].info()

    def clear_cache(self) -> None:
        for cache in self._caches.values():
            cache.clear()
