"""Blob, Tree and Commit records and their canonical encoding."""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Iterator, Mapping, Union

from .errors import Corrupt

BLOB = "blob"
TREE = "tree"
COMMIT = "commit"
KINDS = (BLOB, TREE, COMMIT)

FORMAT_VERSION = 1


def _to_bytes(obj: Any) -> bytes:
    """Encode a JSON-safe object to its canonical bytes.

    Keys are sorted and separators are compact, so equal objects always
    encode to identical bytes.
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def _from_bytes(raw: bytes) -> Any:
    """Decode canonical bytes to a Python object."""
    return json.loads(raw.decode("utf-8"))


def digest(data: bytes) -> str:
    """Content hash used for every object kind (40 hex chars)."""
    return hashlib.sha1(data).hexdigest()


def looks_binary(content: bytes) -> bool:
    """Whether content should be treated as binary (contains a NUL byte)."""
    return b"\0" in content


def split_lines(content: bytes) -> list[str]:
    """Split text content on ``\\n`` only.

    A trailing ``\\r`` is dropped from each line and trailing empty
    lines are discarded, so ``b"a\\n"`` and ``b"a"`` give the same list.
    Other Unicode line separators stay inside their line.
    """
    lines = [
        line[:-1] if line.endswith("\r") else line
        for line in content.decode("utf-8", errors="replace").split("\n")
    ]
    while lines and not lines[-1]:
        lines.pop()
    return lines


def utc_now() -> str:
    """Current time as an ISO-8601 UTC timestamp string."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


@dataclass(frozen=True)
class Blob:
    """Immutable file content.

    ``binary`` records whether the content came from a binary file; it
    does not take part in the hash, which covers the raw bytes only.
    """

    kind: ClassVar[str] = BLOB

    content: bytes
    binary: bool = False

    @classmethod
    def from_content(cls, content: bytes, binary: bool | None = None) -> Blob:
        if binary is None:
            binary = looks_binary(content)
        return cls(content=content, binary=binary)

    @property
    def hash(self) -> str:
        return digest(self.content)

    def serialize(self) -> bytes:
        return _to_bytes(
            {
                "kind": BLOB,
                "v": FORMAT_VERSION,
                "binary": self.binary,
                "content": base64.b64encode(self.content).decode("ascii"),
            }
        )

    def lines(self) -> list[str]:
        """Content decoded as UTF-8 and split on ``\\n``."""
        return split_lines(self.content)


@dataclass(frozen=True)
class Tree:
    """Immutable snapshot mapping repository paths to blob hashes."""

    kind: ClassVar[str] = TREE

    entries: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        entries = dict(self.entries)
        for path, blob_hash in entries.items():
            if not isinstance(path, str) or not path:
                raise ValueError(f"Invalid tree path: {path!r}")
            if not isinstance(blob_hash, str) or not blob_hash:
                raise ValueError(f"Invalid blob hash for {path!r}: {blob_hash!r}")
        object.__setattr__(self, "entries", entries)

    @property
    def hash(self) -> str:
        return digest(self.serialize())

    def serialize(self) -> bytes:
        return _to_bytes(
            {"kind": TREE, "v": FORMAT_VERSION, "entries": dict(self.entries)}
        )

    def get(self, path: str) -> str | None:
        return self.entries.get(path)

    def paths(self) -> set[str]:
        return set(self.entries)

    def __contains__(self, path: object) -> bool:
        return path in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.entries))

    def __len__(self) -> int:
        return len(self.entries)

    def with_changes(
        self,
        updates: Mapping[str, str] | None = None,
        removals: set[str] | None = None,
    ) -> Tree:
        """Return a new tree with ``removals`` dropped and ``updates`` applied."""
        entries = {
            path: blob_hash
            for path, blob_hash in self.entries.items()
            if not removals or path not in removals
        }
        if updates:
            entries.update(updates)
        return Tree(entries)


@dataclass(frozen=True)
class Commit:
    """Immutable history record: a tree, an optional parent and metadata."""

    kind: ClassVar[str] = COMMIT

    tree: str
    parent: str | None
    message: str
    timestamp: str
    author: str

    @property
    def hash(self) -> str:
        return digest(self.serialize())

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def serialize(self) -> bytes:
        return _to_bytes(
            {
                "kind": COMMIT,
                "v": FORMAT_VERSION,
                "tree": self.tree,
                "parent": self.parent,
                "message": self.message,
                "timestamp": self.timestamp,
                "author": self.author,
            }
        )


GitObject = Union[Blob, Tree, Commit]


def _field(data: dict, name: str, expected: type | tuple[type, ...]) -> Any:
    if name not in data:
        raise KeyError(f"missing field {name!r}")
    value = data[name]
    if not isinstance(value, expected):
        raise TypeError(f"field {name!r} has type {type(value).__name__}")
    return value


def _parse_blob(data: dict) -> Blob:
    encoded = _field(data, "content", str)
    content = base64.b64decode(encoded.encode("ascii"), validate=True)
    return Blob(content=content, binary=_field(data, "binary", bool))


def _parse_tree(data: dict) -> Tree:
    entries = _field(data, "entries", dict)
    return Tree(entries)


def _parse_commit(data: dict) -> Commit:
    return Commit(
        tree=_field(data, "tree", str),
        parent=_field(data, "parent", (str, type(None))),
        message=_field(data, "message", str),
        timestamp=_field(data, "timestamp", str),
        author=_field(data, "author", str),
    )


_PARSERS = {BLOB: _parse_blob, TREE: _parse_tree, COMMIT: _parse_commit}


def parse(kind: str, raw: bytes, object_hash: str | None = None) -> GitObject:
    """Rebuild an object of ``kind`` from its serialized bytes.

    Raises:
        Corrupt: If the bytes are not a valid encoding of ``kind``.
    """
    if kind not in _PARSERS:
        raise ValueError(f"Unknown object kind: {kind!r}")
    try:
        data = _from_bytes(raw)
    except ValueError as e:
        raise Corrupt(object_hash, f"malformed encoding ({e})") from e
    if not isinstance(data, dict):
        raise Corrupt(object_hash, "expected a JSON object")
    found = data.get("kind")
    if found != kind:
        raise Corrupt(object_hash, f"expected {kind}, found {found!r}")
    if data.get("v") != FORMAT_VERSION:
        raise Corrupt(object_hash, f"unsupported format version {data.get('v')!r}")
    try:
        return _PARSERS[kind](data)
    except (KeyError, TypeError, ValueError, binascii.Error) as e:
        raise Corrupt(object_hash, str(e)) from e
