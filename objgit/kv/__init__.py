"""Storage backends."""

from .base import KVStore
from .disk import Disk
from .files import Files
from .memory import Memory

__all__ = ["Disk", "Files", "KVStore", "Memory"]
