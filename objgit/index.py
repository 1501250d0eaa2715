"""Staged-file mapping handed from staging to commit, and the stash."""

import json
import logging
import time
from typing import Mapping

from .errors import Corrupt
from .kv.base import KVStore
from .objects import digest

logger = logging.getLogger(__name__)

INDEX_KEY = "index"
STASH_KEY = "stash/%s"


def _to_bytes(entries: Mapping[str, str | None]) -> bytes:
    return json.dumps(dict(entries), sort_keys=True, separators=(",", ":")).encode()


def _from_bytes(raw: bytes, key: str) -> dict[str, str | None]:
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise Corrupt(key, f"malformed staged mapping ({e})") from e
    if not isinstance(data, dict) or not all(
        isinstance(v, (str, type(None))) for v in data.values()
    ):
        raise Corrupt(key, "staged mapping must map paths to hashes or null")
    return data


class Index:
    """Persistent ``path -> blob hash`` mapping of staged changes.

    A ``None`` value is a tombstone: the path is deleted by the next
    commit. An empty index means there is nothing to commit.
    """

    def __init__(self, store: KVStore) -> None:
        self.store = store

    def entries(self) -> dict[str, str | None]:
        raw = self.store.get(INDEX_KEY)
        if raw is None:
            return {}
        return _from_bytes(raw, INDEX_KEY)

    def _save(self, entries: Mapping[str, str | None]) -> None:
        self.store.set(INDEX_KEY, _to_bytes(entries))

    def stage(self, path: str, blob_hash: str) -> None:
        """Stage ``path`` at ``blob_hash`` for the next commit."""
        entries = self.entries()
        entries[path] = blob_hash
        self._save(entries)

    def mark_deleted(self, path: str) -> None:
        """Stage the removal of ``path``."""
        entries = self.entries()
        entries[path] = None
        self._save(entries)

    def unstage(self, path: str) -> bool:
        """Drop any staged change for ``path``. Returns True if one existed."""
        entries = self.entries()
        if path not in entries:
            return False
        del entries[path]
        self._save(entries)
        return True

    def updates(self) -> dict[str, str]:
        return {p: h for p, h in self.entries().items() if h is not None}

    def removals(self) -> set[str]:
        return {p for p, h in self.entries().items() if h is None}

    def is_empty(self) -> bool:
        return not self.entries()

    def clear(self) -> None:
        self._save({})

    # -- Stash --

    def stash_push(self) -> str | None:
        """Move the staged mapping onto the stash. Returns the stash id."""
        entries = self.entries()
        if not entries:
            return None
        payload = _to_bytes(entries)
        stamp = time.time_ns()
        existing = self.stash_list()
        if existing:
            # Ids must sort in push order even on a coarse clock.
            stamp = max(stamp, int(existing[-1].split("-", 1)[0]) + 1)
        stash_id = f"{stamp:020d}-{digest(payload)[:8]}"
        self.store.set(STASH_KEY % stash_id, payload)
        self.clear()
        logger.debug("Stashed %d staged path(s) as %s", len(entries), stash_id)
        return stash_id

    def stash_list(self) -> list[str]:
        """Stash ids, oldest first."""
        prefix = STASH_KEY % ""
        return sorted(key[len(prefix):] for key in self.store.keys(prefix))

    def stash_pop(self) -> str | None:
        """Apply the most recent stash over the index and drop it."""
        stashes = self.stash_list()
        if not stashes:
            return None
        stash_id = stashes[-1]
        key = STASH_KEY % stash_id
        raw = self.store.get(key)
        if raw is None:
            return None
        entries = self.entries()
        entries.update(_from_bytes(raw, key))
        self._save(entries)
        self.store.remove(key)
        logger.debug("Applied stash %s", stash_id)
        return stash_id
