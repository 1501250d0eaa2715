"""One-file-per-key backend on the local filesystem."""

import os
import shutil
import tempfile
import threading
from typing import Iterable, Mapping

from ..errors import IOFailure
from .base import KVStore, check_key

TMP_PREFIX = ".tmp-"


class Files(KVStore):
    """Backend mapping each key to a file under ``root``.

    ``refs/heads/main`` lives at ``<root>/refs/heads/main``. Every write
    goes to a temporary file in the destination directory and is then
    moved into place with ``os.replace``, so readers never see a torn
    value. ``cas`` is serialized per instance; there is no
    inter-process locking.
    """

    def __init__(self, root: str, *, fsync: bool = False) -> None:
        self.root = os.path.abspath(root)
        self.fsync = fsync
        self._lock = threading.Lock()
        os.makedirs(self.root, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.root, *check_key(key).split("/"))

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            with open(path, "rb") as f:
                return f.read()
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            return None
        except OSError as e:
            raise IOFailure(key, e) from e

    def set(self, key: str, value: bytes) -> None:
        if not isinstance(value, bytes):
            raise TypeError(f"Expected bytes, got {type(value).__name__}")
        self._write(key, value)

    def _write(self, key: str, value: bytes) -> None:
        path = self._path(key)
        directory = os.path.dirname(path)
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=TMP_PREFIX, dir=directory)
            with os.fdopen(fd, "wb") as f:
                f.write(value)
                if self.fsync:
                    f.flush()
                    os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise IOFailure(key, e) from e

    def get_many(self, *args: str) -> Mapping[str, bytes]:
        return {k: v for k in args if (v := self.get(k)) is not None}

    def set_many(self, **kwargs: bytes) -> None:
        for key, value in kwargs.items():
            check_key(key)
            if not isinstance(value, bytes):
                raise TypeError(f"Expected bytes for {key}, got {type(value).__name__}")
        for key, value in kwargs.items():
            self._write(key, value)

    def items(self) -> Iterable[tuple[str, bytes]]:
        for key in self.keys():
            value = self.get(key)
            if value is not None:
                yield key, value

    def keys(self, prefix: str = "") -> Iterable[str]:
        result = []
        start = self.root
        if "/" in prefix:
            start = os.path.join(self.root, *prefix.rsplit("/", 1)[0].split("/"))
        for dirpath, dirnames, filenames in os.walk(start):
            dirnames.sort()
            rel_dir = os.path.relpath(dirpath, self.root)
            for name in sorted(filenames):
                if name.startswith(TMP_PREFIX):
                    continue
                rel = name if rel_dir == "." else os.path.join(rel_dir, name)
                key = rel.replace(os.sep, "/")
                if key.startswith(prefix):
                    result.append(key)
        return result

    def __contains__(self, key: str) -> bool:
        return os.path.isfile(self._path(key))

    def remove(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass
        except OSError as e:
            raise IOFailure(key, e) from e

    def remove_many(self, *keys: str) -> None:
        for key in keys:
            self.remove(key)

    def cas(self, key: str, value: bytes, expected: bytes | None) -> bool:
        if not isinstance(value, bytes):
            raise TypeError(f"Expected bytes, got {type(value).__name__}")
        with self._lock:
            current = self.get(key)
            if current == expected:
                self._write(key, value)
                return True
            return False

    def clear(self) -> None:
        for entry in os.listdir(self.root):
            path = os.path.join(self.root, entry)
            if os.path.isdir(path):
                shutil.rmtree(path)
            else:
                os.remove(path)
