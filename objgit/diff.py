"""Tree-to-tree and blob-to-blob comparison."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .object_store import ObjectStore
from .objects import Tree, looks_binary, split_lines

BINARY_DIFFERS = "binary content differs"


class DiffStatus(str, Enum):
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"


@dataclass(frozen=True)
class LineEdit:
    """One line removed (``-``) or added (``+``) at a 0-based position."""

    op: str
    line_no: int
    text: str

    def render(self) -> str:
        return f"{self.op} {self.text}"


@dataclass(frozen=True)
class FileDiff:
    """Difference for a single path between two trees."""

    path: str
    status: DiffStatus
    edits: tuple[LineEdit, ...] = ()
    binary: bool = False

    def summary(self) -> str:
        if self.status is DiffStatus.ADDED:
            return f"File added: {self.path}"
        if self.status is DiffStatus.DELETED:
            return f"File deleted: {self.path}"
        if self.binary:
            return f"{self.path}: {BINARY_DIFFERS}"
        return f"Differences in {self.path}:"

    def render(self) -> str:
        lines = [self.summary()]
        lines.extend(edit.render() for edit in self.edits)
        return "\n".join(lines)


def _compare(old_lines: list[str], new_lines: list[str]) -> list[LineEdit]:
    edits: list[LineEdit] = []
    for i in range(max(len(old_lines), len(new_lines))):
        old_line = old_lines[i] if i < len(old_lines) else None
        new_line = new_lines[i] if i < len(new_lines) else None
        if old_line == new_line:
            continue
        if old_line is not None:
            edits.append(LineEdit("-", i, old_line))
        if new_line is not None:
            edits.append(LineEdit("+", i, new_line))
    return edits


def diff_lines(old: bytes, new: bytes) -> list[LineEdit]:
    """Positional line comparison of two text contents.

    Lines are compared index by index; where they differ the old line
    (if any) is removed and the new line (if any) added. Insertions
    therefore show up as every following line changing. This is not a
    minimal edit script.
    """
    return _compare(split_lines(old), split_lines(new))


def diff_blobs(objects: ObjectStore, path: str, old_hash: str, new_hash: str) -> FileDiff:
    old = objects.get_blob(old_hash)
    new = objects.get_blob(new_hash)
    if looks_binary(old.content) or looks_binary(new.content):
        return FileDiff(path, DiffStatus.MODIFIED, binary=True)
    return FileDiff(
        path, DiffStatus.MODIFIED, edits=tuple(_compare(old.lines(), new.lines()))
    )


def diff_trees(objects: ObjectStore, tree_a: Tree, tree_b: Tree) -> list[FileDiff]:
    """Per-path differences going from ``tree_a`` to ``tree_b``, sorted by path.

    Identical trees give an empty list.
    """
    result: list[FileDiff] = []
    for path in sorted(tree_a.paths() | tree_b.paths()):
        blob_a = tree_a.get(path)
        blob_b = tree_b.get(path)
        if blob_a == blob_b:
            continue
        if blob_a is None:
            result.append(FileDiff(path, DiffStatus.ADDED))
        elif blob_b is None:
            result.append(FileDiff(path, DiffStatus.DELETED))
        else:
            result.append(diff_blobs(objects, path, blob_a, blob_b))
    return result


def render_patch(diffs: Iterable[FileDiff]) -> str:
    """Human-readable form of a diff, one block per path."""
    return "\n\n".join(d.render() for d in diffs)
