"""objgit: a local content-addressed version-control engine."""

from .cache import LRUCache
from .config import Config
from .diff import DiffStatus, FileDiff, LineEdit, diff_lines, diff_trees, render_patch
from .errors import (
    AlreadyExists,
    Corrupt,
    EmptyBranch,
    IOFailure,
    IsActiveBranch,
    MergeConflict,
    NoCommonAncestor,
    NotFound,
    NotInitialized,
    ObjgitError,
    UnknownBranch,
    UnknownTag,
)
from .graph import History
from .index import Index
from .kv.base import KVStore
from .merge import MergeResult, detect_conflicts, merge, merged_entries
from .object_store import ObjectStore
from .objects import Blob, Commit, Tree, parse
from .rebase import RebaseResult, rebase
from .refs import RefStore
from .repository import Repository
from .store import clone, init_repository, open_repository

__all__ = [
    "AlreadyExists",
    "Blob",
    "Commit",
    "Config",
    "Corrupt",
    "DiffStatus",
    "EmptyBranch",
    "FileDiff",
    "History",
    "IOFailure",
    "Index",
    "IsActiveBranch",
    "KVStore",
    "LRUCache",
    "LineEdit",
    "MergeConflict",
    "MergeResult",
    "NoCommonAncestor",
    "NotFound",
    "NotInitialized",
    "ObjectStore",
    "ObjgitError",
    "RebaseResult",
    "RefStore",
    "Repository",
    "Tree",
    "UnknownBranch",
    "UnknownTag",
    "clone",
    "detect_conflicts",
    "diff_lines",
    "diff_trees",
    "init_repository",
    "merge",
    "merged_entries",
    "open_repository",
    "parse",
    "rebase",
    "render_patch",
]
