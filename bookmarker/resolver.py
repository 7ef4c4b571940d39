"""Ancestor-path resolution over the flat ``moz_bookmarks`` parent table.

Every row points at its parent by id; the top of the tree is a synthetic
root whose own parent is ``ROOT_PARENT``. Walking is pointer chasing through
an id -> Node map, bounded so a cycle surfaces as a DataIntegrityError.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from .errors import DataIntegrityError

ROOT_PARENT = 0
MAX_DEPTH = 256

TYPE_BOOKMARK = 1
TYPE_FOLDER = 2


@dataclass(frozen=True)
class Node:
    id: int
    parent: int
    title: Optional[str] = None
    type: int = TYPE_FOLDER


def index_nodes(nodes: Iterable[Node]) -> Dict[int, Node]:
    return {n.id: n for n in nodes}


def ancestors(parent_id: int, nodes: Dict[int, Node], *, max_depth: int = MAX_DEPTH) -> Iterator[Node]:
    """Yield the folders above a leaf, innermost first.

    The walk starts at the leaf's parent and stops below the synthetic root
    (the node whose parent is ``ROOT_PARENT``), which is never yielded. A
    dangling parent id ends the walk quietly.
    """
    current = parent_id
    hops = 0
    while current != ROOT_PARENT:
        node = nodes.get(current)
        if node is None or node.parent == ROOT_PARENT:
            return
        hops += 1
        if hops > max_depth:
            raise DataIntegrityError(
                f"folder chain above node {parent_id} exceeds {max_depth} levels (cycle or corrupt parent id)"
            )
        yield node
        current = node.parent


def resolve_path(parent_id: int, nodes: Dict[int, Node], *, max_depth: int = MAX_DEPTH) -> List[str]:
    """Return the named folders above a leaf, outermost first.

    Untitled folders contribute nothing, not an empty segment.
    """
    parts = [n.title for n in ancestors(parent_id, nodes, max_depth=max_depth) if n.title]
    parts.reverse()
    return parts


def descends_from(parent_id: int, ancestor_id: int, nodes: Dict[int, Node], *, max_depth: int = MAX_DEPTH) -> bool:
    return any(n.id == ancestor_id for n in ancestors(parent_id, nodes, max_depth=max_depth))
