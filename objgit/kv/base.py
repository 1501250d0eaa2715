"""Abstract byte-oriented backend for objects, refs and the index."""

from abc import ABC, abstractmethod
from typing import Iterable, Mapping


def check_key(key: str) -> str:
    """Validate a backend key and return it unchanged.

    Keys are ``/``-separated relative paths such as ``refs/heads/main``.
    Empty segments, ``.`` and ``..`` are rejected so that file-backed
    stores can never escape their root.
    """
    if not isinstance(key, str) or not key:
        raise ValueError(f"Invalid key: {key!r}")
    if key.startswith("/") or "\\" in key or "\0" in key:
        raise ValueError(f"Invalid key: {key!r}")
    for part in key.split("/"):
        if part in ("", ".", ".."):
            raise ValueError(f"Invalid key: {key!r}")
    return key


class KVStore(ABC):
    """Key-value backend operating on bytes only.

    Serialization of objects and refs is handled at higher layers
    (``ObjectStore``, ``RefStore``, ``Index``). A single ``set`` must
    be atomic: a concurrent reader sees either the old or the new
    value, never a partial one.
    """

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        """Get bytes value for key, or None if not found."""

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        """Set bytes value for key."""

    @abstractmethod
    def get_many(self, *args: str) -> Mapping[str, bytes]:
        """Get multiple keys, returning only keys that exist."""

    @abstractmethod
    def set_many(self, **kwargs: bytes) -> None:
        """Set multiple key-value pairs."""

    @abstractmethod
    def items(self) -> Iterable[tuple[str, bytes]]:
        """Iterate over all key-value pairs."""

    @abstractmethod
    def keys(self, prefix: str = "") -> Iterable[str]:
        """Iterate over all keys starting with ``prefix``."""

    @abstractmethod
    def __contains__(self, key: str) -> bool:
        """Check if key exists in store."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key if present."""

    @abstractmethod
    def remove_many(self, *keys: str) -> None:
        """Remove multiple keys."""

    @abstractmethod
    def cas(self, key: str, value: bytes, expected: bytes | None) -> bool:
        """Atomic compare-and-swap.

        Set value only if current value equals expected.
        None means "key must not exist".

        Returns True if swap succeeded, False otherwise.
        """

    @abstractmethod
    def clear(self) -> None:
        """Remove all items from the store."""
