"""
Namespace Tree

In-memory tree over the folder and file records. Each node holds its own
name and the index of its parent, so renaming or moving a subtree is a
relink of one node: descendant paths are derived from the tree and never
rewritten one by one.

The flat ``path -> record`` mappings kept by the record store are a
derived index of this tree (:meth:`NamespaceTree.to_mappings`).

Nodes without a record are implicit folders. They appear when a record
refers to a parent folder that has no record of its own and are never
written back to the store.

Author: Elxa Corporation
Version: 2.0.0
"""

import copy
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from .path_resolver import PathResolver, ROOT
from .records import FileRecord, FolderRecord


Record = Union[FolderRecord, FileRecord]


@dataclass
class Node:
    """A folder or file in the namespace tree."""
    name: str
    parent: Optional[int]
    is_folder: bool
    record: Optional[Record] = None
    folders: dict[str, int] = field(default_factory=dict)
    files: dict[str, int] = field(default_factory=dict)


class NamespaceTree:
    """
    Arena of namespace nodes.

    Node indices are stable for the lifetime of a node; freed slots are
    reused by later inserts.
    """

    ROOT_INDEX = 0

    def __init__(self):
        self._nodes: list[Optional[Node]] = [Node(name='', parent=None, is_folder=True)]
        self._free: list[int] = []

    def __len__(self) -> int:
        return sum(1 for n in self._nodes if n is not None and n.record is not None)

    @classmethod
    def from_mappings(
        cls,
        folders: dict[str, FolderRecord],
        files: dict[str, FileRecord]
    ) -> 'NamespaceTree':
        """Build a tree from the flat mappings kept by the record store."""
        tree = cls()
        for path in sorted(folders, key=PathResolver.depth):
            if PathResolver.normalize(path) == ROOT:
                continue
            parent, name = PathResolver.split(path)
            tree.insert_folder(parent, name, folders[path])
        for path, record in files.items():
            parent, name = PathResolver.split(path)
            if not name:
                continue
            tree.insert_file(parent, name, record)
        return tree

    def to_mappings(self) -> tuple[dict[str, FolderRecord], dict[str, FileRecord]]:
        """Derive the flat ``path -> record`` mappings, keyed by full path."""
        folders: dict[str, FolderRecord] = {}
        files: dict[str, FileRecord] = {}
        stack = [(self.ROOT_INDEX, ROOT)]
        while stack:
            index, path = stack.pop()
            node = self._nodes[index]
            for name, child in node.folders.items():
                child_path = PathResolver.join(path, name)
                child_node = self._nodes[child]
                if child_node.record is not None:
                    folders[child_path] = self._materialize(child_node, path)
                stack.append((child, child_path))
            for name, child in node.files.items():
                files[PathResolver.join(path, name)] = self._materialize(self._nodes[child], path)
        return folders, files

    # ---------------------------------------------------------------
    # Lookup
    # ---------------------------------------------------------------

    def node(self, index: int) -> Node:
        return self._nodes[index]

    def find_folder(self, path: str) -> Optional[int]:
        """Index of the folder node at ``path`` (implicit folders included)."""
        index = self.ROOT_INDEX
        for part in PathResolver.components(path):
            index = self._nodes[index].folders.get(part)
            if index is None:
                return None
        return index

    def lookup_folder(self, path: str) -> Optional[int]:
        """Index of the folder at ``path`` if it has a record."""
        index = self.find_folder(path)
        if index is None or self._nodes[index].record is None:
            return None
        return index

    def lookup_file(self, path: str) -> Optional[int]:
        """Index of the file at ``path``."""
        parent, name = PathResolver.split(path)
        if not name:
            return None
        parent_index = self.find_folder(parent)
        if parent_index is None:
            return None
        return self._nodes[parent_index].files.get(name)

    def path_of(self, index: int) -> str:
        """Full path of a node."""
        parts = []
        node = self._nodes[index]
        while node.parent is not None:
            parts.append(node.name)
            node = self._nodes[node.parent]
        return ROOT + '/'.join(reversed(parts))

    def record(self, index: int) -> Record:
        """Copy of the record of a node with its name and path filled in."""
        node = self._nodes[index]
        return self._materialize(node, self.path_of(node.parent))

    def stored_record(self, index: int) -> Record:
        """The record object held by a node, for in-place updates."""
        return self._nodes[index].record

    def children(self, index: int) -> tuple[list[int], list[int]]:
        """Folder and file child indices of a folder node."""
        node = self._nodes[index]
        return list(node.folders.values()), list(node.files.values())

    def iter_subtree(self, index: int) -> Iterator[int]:
        """Pre-order walk of a subtree, starting with ``index`` itself."""
        stack = [index]
        while stack:
            current = stack.pop()
            yield current
            node = self._nodes[current]
            if node.is_folder:
                stack.extend(reversed(list(node.files.values())))
                stack.extend(reversed(list(node.folders.values())))

    # ---------------------------------------------------------------
    # Mutation
    # ---------------------------------------------------------------

    def ensure_folder(self, path: str) -> int:
        """Index of the folder node at ``path``, creating implicit folders."""
        index = self.ROOT_INDEX
        for part in PathResolver.components(path):
            node = self._nodes[index]
            child = node.folders.get(part)
            if child is None:
                child = self._alloc(Node(name=part, parent=index, is_folder=True))
                node.folders[part] = child
            index = child
        return index

    def insert_folder(self, parent_path: str, name: str, record: FolderRecord) -> int:
        """Insert or replace the folder record ``name`` below ``parent_path``."""
        parent_index = self.ensure_folder(parent_path)
        parent = self._nodes[parent_index]
        index = parent.folders.get(name)
        if index is None:
            index = self._alloc(Node(name=name, parent=parent_index, is_folder=True))
            parent.folders[name] = index
        self._nodes[index].record = record
        return index

    def insert_file(self, parent_path: str, name: str, record: FileRecord) -> int:
        """Insert or replace the file record ``name`` below ``parent_path``."""
        parent_index = self.ensure_folder(parent_path)
        parent = self._nodes[parent_index]
        index = parent.files.get(name)
        if index is None:
            index = self._alloc(Node(name=name, parent=parent_index, is_folder=False))
            parent.files[name] = index
        self._nodes[index].record = record
        return index

    def relink(self, index: int, new_parent_path: str, new_name: str) -> None:
        """
        Move a node below ``new_parent_path`` under ``new_name``.

        An implicit folder already occupying the destination is merged
        into the moved folder; callers check :meth:`merge_conflict` first.
        """
        node = self._nodes[index]
        old_parent = self._nodes[node.parent]
        siblings = old_parent.folders if node.is_folder else old_parent.files
        del siblings[node.name]

        parent_index = self.ensure_folder(new_parent_path)
        parent = self._nodes[parent_index]
        targets = parent.folders if node.is_folder else parent.files

        occupant = targets.get(new_name)
        if occupant is not None and occupant != index:
            self._merge_into(occupant, index)

        node.name = new_name
        node.parent = parent_index
        targets[new_name] = index

    def remove(self, index: int) -> int:
        """Remove a node and its subtree; returns the number of records removed."""
        node = self._nodes[index]
        parent = self._nodes[node.parent]
        siblings = parent.folders if node.is_folder else parent.files
        del siblings[node.name]

        removed = 0
        for current in list(self.iter_subtree(index)):
            if self._nodes[current].record is not None:
                removed += 1
            self._nodes[current] = None
            self._free.append(current)
        return removed

    def merge_conflict(self, source: int, target: int) -> Optional[str]:
        """
        Path below implicit folder ``source`` that cannot be merged into
        folder ``target``, or None when the merge keeps every record.

        Two files with one name conflict, as do two folders with one name
        that both have a record.
        """
        src = self._nodes[source]
        dst = self._nodes[target]
        for name, child in src.files.items():
            if name in dst.files:
                return self.path_of(child)
        for name, child in src.folders.items():
            other = dst.folders.get(name)
            if other is None or child == target:
                continue
            if self._nodes[child].record is not None and self._nodes[other].record is not None:
                return self.path_of(child)
            conflict = self.merge_conflict(child, other)
            if conflict is not None:
                return conflict
        return None

    def _merge_into(self, source: int, target: int) -> None:
        """Move the children of implicit folder ``source`` onto ``target``."""
        src = self._nodes[source]
        dst = self._nodes[target]
        for name, child in src.folders.items():
            other = dst.folders.get(name)
            if other is None:
                self._nodes[child].parent = target
                dst.folders[name] = child
                continue
            if self._nodes[other].record is None:
                self._nodes[other].record = self._nodes[child].record
            self._merge_into(child, other)
        for name, child in src.files.items():
            self._nodes[child].parent = target
            dst.files[name] = child
        self._nodes[source] = None
        self._free.append(source)

    def _alloc(self, node: Node) -> int:
        if self._free:
            index = self._free.pop()
            self._nodes[index] = node
            return index
        self._nodes.append(node)
        return len(self._nodes) - 1

    @staticmethod
    def _materialize(node: Node, parent_path: str) -> Record:
        record = copy.deepcopy(node.record)
        record.name = node.name
        record.path = parent_path
        return record
