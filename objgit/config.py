"""Repository settings."""

import getpass
import json
from dataclasses import dataclass, field, replace
from typing import Any

from .errors import Corrupt
from .object_store import DEFAULT_CACHE_SIZE

CONFIG_KEY = "config"
DEFAULT_BRANCH = "main"
DEFAULT_REPO_DIR = ".objgit"
UNKNOWN_AUTHOR = "Unknown Author"

# Settings that are written into the repository at init time.
PERSISTED = ("default_branch", "author")


def default_author() -> str:
    """Login name of the current user, or a placeholder."""
    try:
        name = getpass.getuser()
    except (KeyError, OSError, ImportError):
        return UNKNOWN_AUTHOR
    return name or UNKNOWN_AUTHOR


@dataclass(frozen=True)
class Config:
    """Settings for a ``Repository``.

    Args:
        cache_size: Capacity of each per-kind object cache.
        default_branch: Branch HEAD names after init.
        author: Author recorded on commits when none is given.
        repo_dir: Name of the private directory inside a working tree.
    """

    cache_size: int = DEFAULT_CACHE_SIZE
    default_branch: str = DEFAULT_BRANCH
    author: str = field(default_factory=default_author)
    repo_dir: str = DEFAULT_REPO_DIR

    def to_bytes(self) -> bytes:
        data = {name: getattr(self, name) for name in PERSISTED}
        return json.dumps(data, sort_keys=True, separators=(",", ":")).encode()

    def merged_with(self, raw: bytes | None, **overrides: Any) -> "Config":
        """Apply stored settings, then any non-None ``overrides``."""
        updates: dict[str, Any] = {}
        if raw is not None:
            try:
                stored = json.loads(raw)
            except ValueError as e:
                raise Corrupt(CONFIG_KEY, f"malformed config ({e})") from e
            if not isinstance(stored, dict):
                raise Corrupt(CONFIG_KEY, "config must be a JSON object")
            updates.update(
                {k: v for k, v in stored.items() if k in PERSISTED and isinstance(v, str)}
            )
        updates.update({k: v for k, v in overrides.items() if v is not None})
        return replace(self, **updates)
