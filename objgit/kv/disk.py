"""Single-file backend using diskcache."""

from typing import Iterable, Mapping, cast

from ..errors import IOFailure
from .base import KVStore, check_key


class Disk(KVStore):
    """Backend stored in one diskcache database (SQLite + mmap).

    Size limits and eviction are disabled: objects must never be
    dropped behind the repository's back.
    """

    def __init__(self, directory: str) -> None:
        from diskcache import Cache as DiskCache

        self.directory = directory
        self.store = DiskCache(
            directory, size_limit=0, eviction_policy="none"
        )

    def get(self, key: str) -> bytes | None:
        try:
            return cast(bytes | None, self.store.get(key, retry=True))
        except OSError as e:
            raise IOFailure(key, e) from e

    def set(self, key: str, value: bytes) -> None:
        check_key(key)
        if not isinstance(value, bytes):
            raise TypeError(f"Expected bytes, got {type(value).__name__}")
        try:
            self.store.set(key, value, retry=True)
        except OSError as e:
            raise IOFailure(key, e) from e

    def get_many(self, *args: str) -> Mapping[str, bytes]:
        return {k: v for k in args if (v := self.get(k)) is not None}

    def set_many(self, **kwargs: bytes) -> None:
        for key, value in kwargs.items():
            check_key(key)
            if not isinstance(value, bytes):
                raise TypeError(f"Expected bytes for {key}, got {type(value).__name__}")
        with self.store.transact(retry=True):
            for key, value in kwargs.items():
                self.store[key] = value

    def items(self) -> Iterable[tuple[str, bytes]]:
        for key in list(self.store.iterkeys()):
            value = self.store.get(key)
            if value is not None:
                yield str(key), cast(bytes, value)

    def keys(self, prefix: str = "") -> Iterable[str]:
        for key in list(self.store.iterkeys()):
            if str(key).startswith(prefix):
                yield str(key)

    def __contains__(self, key: str) -> bool:
        return key in self.store

    def remove(self, key: str) -> None:
        self.store.delete(key, retry=True)

    def remove_many(self, *keys: str) -> None:
        with self.store.transact(retry=True):
            for key in keys:
                self.store.delete(key, retry=False)

    def cas(self, key: str, value: bytes, expected: bytes | None) -> bool:
        check_key(key)
        if not isinstance(value, bytes):
            raise TypeError(f"Expected bytes, got {type(value).__name__}")
        with self.store.transact(retry=True):
            current = cast(bytes | None, self.store.get(key))
            if current == expected:
                self.store[key] = value
                return True
            return False

    def clear(self) -> None:
        self.store.clear(retry=True)

    def close(self) -> None:
        self.store.close()
