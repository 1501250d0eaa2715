"""Factory functions for opening, creating and cloning repositories."""

import logging
import os
import shutil
from typing import Literal

from .config import CONFIG_KEY, DEFAULT_REPO_DIR, Config
from .errors import AlreadyExists, IOFailure, NotInitialized
from .kv.base import KVStore
from .object_store import DEFAULT_CACHE_SIZE
from .refs import HEAD
from .repository import Repository

logger = logging.getLogger(__name__)

Storage = Literal["files", "disk", "memory"]


def _backend(storage: Storage, location: str | None) -> KVStore:
    if storage == "memory":
        from .kv.memory import Memory

        return Memory()
    if location is None:
        raise ValueError(f"path is required when storage={storage!r}")
    if storage == "files":
        from .kv.files import Files

        return Files(location)
    if storage == "disk":
        from .kv.disk import Disk

        return Disk(location)
    raise ValueError(f"Unknown storage: {storage!r}")


def init_repository(
    path: str | None = None,
    *,
    storage: Storage | None = None,
    cache_size: int = DEFAULT_CACHE_SIZE,
    default_branch: str | None = None,
    author: str | None = None,
    repo_dir: str = DEFAULT_REPO_DIR,
) -> Repository:
    """Create a new repository.

    Args:
        path: Working-tree directory. The repository lives in
            ``<path>/<repo_dir>``. Omit for an in-memory repository.
        storage: ``"files"`` (default with a path) for one file per
            object and ref, ``"disk"`` for a single diskcache database,
            or ``"memory"`` (default without a path).
        cache_size: Capacity of each per-kind object cache.
        default_branch: Branch HEAD names after init (default ``"main"``).
        author: Default commit author (default: the login name).
        repo_dir: Name of the private repository directory.

    Returns:
        The new ``Repository``.

    Raises:
        AlreadyExists: If ``path`` already holds a repository.
    """
    if storage is None:
        storage = "memory" if path is None else "files"
    location = os.path.join(path, repo_dir) if path is not None else None
    if location is not None and os.path.isdir(location) and os.listdir(location):
        raise AlreadyExists(path, what="Repository")
    config = Config(cache_size=cache_size, repo_dir=repo_dir).merged_with(
        None, default_branch=default_branch, author=author
    )
    return Repository.initialize(
        _backend(storage, location), config=config, root=path
    )


def open_repository(
    path: str,
    *,
    storage: Storage = "files",
    cache_size: int = DEFAULT_CACHE_SIZE,
    author: str | None = None,
    repo_dir: str = DEFAULT_REPO_DIR,
) -> Repository:
    """Open an existing repository under ``path``.

    Settings recorded at init time are read back; an explicit
    ``author`` overrides the stored one.

    Raises:
        NotInitialized: If ``path`` holds no repository.
    """
    location = os.path.join(path, repo_dir)
    if not os.path.isdir(location):
        raise NotInitialized(path)
    backend = _backend(storage, location)
    if HEAD not in backend:
        raise NotInitialized(path)
    config = Config(cache_size=cache_size, repo_dir=repo_dir).merged_with(
        backend.get(CONFIG_KEY), author=author
    )
    return Repository(backend, config=config, root=path)


def clone(
    source: str,
    destination: str,
    *,
    storage: Storage = "files",
    repo_dir: str = DEFAULT_REPO_DIR,
) -> Repository:
    """Copy a repository and its working tree to ``destination``.

    The working tree is copied without the private repository
    directory, which is then copied byte for byte.

    Raises:
        NotInitialized: If ``source`` holds no repository.
        AlreadyExists: If ``destination`` already holds one.
        IOFailure: If copying fails.
    """
    source_repo = os.path.join(source, repo_dir)
    destination_repo = os.path.join(destination, repo_dir)
    if not os.path.isdir(source_repo):
        raise NotInitialized(source)
    if os.path.exists(destination_repo):
        raise AlreadyExists(destination, what="Repository")

    source_root = os.path.abspath(source)

    def skip_repo_dir(directory: str, names: list[str]) -> list[str]:
        if os.path.abspath(directory) == source_root and repo_dir in names:
            return [repo_dir]
        return []

    try:
        shutil.copytree(source, destination, ignore=skip_repo_dir, dirs_exist_ok=True)
        shutil.copytree(source_repo, destination_repo)
    except OSError as e:
        raise IOFailure(destination, e) from e
    logger.info("Cloned %s into %s", source, destination)
    return open_repository(destination, storage=storage, repo_dir=repo_dir)
