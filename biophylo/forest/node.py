"""
Tree nodes.

A node is linked into its tree through three references: a weak reference to its parent,
a strong reference to its first daughter and a strong reference to its next sister. The
child direction owns the structure; nothing points strongly upward.

Mutations (``set_parent``, ``set_child``, ``insert_child``, ``collapse``,
``set_root_below``) are the only guarded operations: they refuse to create cycles and,
inside a tree, refuse to leave a second parentless node. Queries and metrics assume a
well-formed tree.
"""

from __future__ import annotations

import logging
import weakref
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

from biophylo.constants import ObjectType, looks_like_number, to_number
from biophylo.core.entity import Entity
from biophylo.core.listable import ListableElement
from biophylo.exceptions import (
    BadArgumentsError,
    InvalidNumberError,
    StructureError,
    TypeMismatchError,
)
from biophylo.taxa.linker import TaxonLinker

logger = logging.getLogger(__name__)

Number = Union[int, float]


def add_lengths(first: Optional[Number], second: Optional[Number]) -> Optional[Number]:
    """Sum of two branch lengths where an absent length counts as 0 (None if both absent)."""
    if first is None and second is None:
        return None
    return (first or 0) + (second or 0)


class Node(TaxonLinker, ListableElement, Entity):
    """A node of a rooted, ordered, possibly multifurcating tree."""

    _type = ObjectType.NODE
    _container = ObjectType.TREE

    ACCESSORS = (
        "get_branch_length",
        "get_parent",
        "get_children",
        "get_ancestors",
        "get_descendants",
        "get_terminals",
        "get_internals",
        "calc_path_to_root",
        "calc_nodes_to_root",
        "calc_max_path_to_tips",
        "calc_min_path_to_tips",
        "calc_max_nodes_to_tips",
        "calc_min_nodes_to_tips",
        "is_terminal",
        "is_internal",
        "is_root",
    )

    def __init__(self, **options: Any) -> None:
        self._parent: Optional["weakref.ReferenceType[Node]"] = None
        self._first_daughter: Optional[Node] = None
        self._next_sister: Optional[Node] = None
        self._branch_length: Optional[Number] = None
        super().__init__(**options)

    # ===================================================================
    # 1. LOW-LEVEL LINKING (unguarded)
    # ===================================================================

    def _unlink(self) -> None:
        """Detach from the parent's daughter chain; the subtree below stays intact."""
        parent = self.get_parent()
        if parent is None:
            return
        if parent._first_daughter is self:
            parent._first_daughter = self._next_sister
        else:
            previous = self.get_previous_sister()
            if previous is not None:
                previous._next_sister = self._next_sister
        self._next_sister = None
        self._parent = None

    def _insert_into(self, parent: "Node", index: Optional[int] = None) -> None:
        """Link as daughter number ``index`` of ``parent`` (appended when None)."""
        self._parent = weakref.ref(parent)
        if index is None or index < 0:
            last = parent.get_last_daughter()
            if last is None:
                parent._first_daughter = self
            else:
                last._next_sister = self
            return
        if index == 0 or parent._first_daughter is None:
            self._next_sister = parent._first_daughter
            parent._first_daughter = self
            return
        previous = parent._first_daughter
        for _ in range(index - 1):
            if previous._next_sister is None:
                break
            previous = previous._next_sister
        self._next_sister = previous._next_sister
        previous._next_sister = self

    def _check_new_parent(self, parent: "Node") -> None:
        if getattr(parent, "_type", None) != ObjectType.NODE:
            raise TypeMismatchError(f"{parent!r} is not a node")
        if parent is self or parent.is_descendant_of(self):
            StructureError.raise_cycle(self, parent)

    def _leave_tree_for(self, parent: "Node") -> None:
        # The subtree leaves its old tree unless it stays inside it
        old = self.get_tree()
        if old is None or parent.get_tree() is old:
            return
        for member in list(self.traverse()):
            if member.get_container() is old:
                old._discard(member)

    def _join_tree_of(self, parent: "Node") -> None:
        tree = parent.get_tree()
        if tree is not None and self.get_tree() is not tree:
            tree.insert(self)

    def _clone_detached(self, memo: Dict[Any, Any]) -> Tuple[str, ...]:
        # Sisters belong to the parent: copy them only when the parent is copied too
        parent = self.get_parent()
        tree = self.get_tree()
        if parent is not None and (id(parent) in memo or (tree is not None and id(tree) in memo)):
            return ()
        return ("_next_sister",)

    # ===================================================================
    # 2. RELATIONS
    # ===================================================================

    def set_parent(self, parent: Optional["Node"]) -> Self:
        """
        Append this node (with its subtree) as the last daughter of ``parent``.

        ``None`` detaches the node, which is refused inside a tree because the node would
        become a second root.
        """
        if parent is None:
            tree = self.get_tree()
            if tree is not None and self.get_parent() is not None:
                StructureError.raise_second_root(self, tree)
            self._unlink()
            return self
        self._check_new_parent(parent)
        self._leave_tree_for(parent)
        self._unlink()
        self._insert_into(parent)
        self._join_tree_of(parent)
        logger.debug(f"Node {self.get_id()} now below {parent.get_id()}")
        return self

    def get_parent(self) -> Optional["Node"]:
        if self._parent is None:
            return None
        return self._parent()

    def set_child(self, child: "Node") -> Self:
        """Append ``child`` after the last daughter."""
        if getattr(child, "_type", None) != ObjectType.NODE:
            raise TypeMismatchError(f"{child!r} is not a node")
        child.set_parent(self)
        return self

    def insert_child(self, index: int, child: "Node") -> Self:
        """Insert ``child`` as daughter number ``index`` (0-based)."""
        if getattr(child, "_type", None) != ObjectType.NODE:
            raise TypeMismatchError(f"{child!r} is not a node")
        child._check_new_parent(self)
        child._leave_tree_for(self)
        child._unlink()
        child._insert_into(self, index)
        child._join_tree_of(self)
        return self

    def get_first_daughter(self) -> Optional["Node"]:
        return self._first_daughter

    def get_last_daughter(self) -> Optional["Node"]:
        child = self._first_daughter
        if child is None:
            return None
        while child._next_sister is not None:
            child = child._next_sister
        return child

    def get_next_sister(self) -> Optional["Node"]:
        return self._next_sister

    def get_previous_sister(self) -> Optional["Node"]:
        parent = self.get_parent()
        if parent is None:
            return None
        previous = None
        for child in parent.iter_children():
            if child is self:
                return previous
            previous = child
        return None

    def iter_children(self) -> Iterator["Node"]:
        child = self._first_daughter
        while child is not None:
            yield child
            child = child._next_sister

    def get_children(self) -> List["Node"]:
        return list(self.iter_children())

    @property
    def children(self) -> List["Node"]:
        return self.get_children()

    @property
    def parent(self) -> Optional["Node"]:
        return self.get_parent()

    def get_sisters(self) -> List["Node"]:
        """All daughters of this node's parent, this node included."""
        parent = self.get_parent()
        if parent is None:
            return [self]
        return parent.get_children()

    def get_ancestors(self) -> List["Node"]:
        """Parent, grandparent, ... up to the root."""
        ancestors: List[Node] = []
        node = self.get_parent()
        while node is not None:
            ancestors.append(node)
            node = node.get_parent()
        return ancestors

    def get_root(self) -> "Node":
        node = self
        while node.get_parent() is not None:
            node = node.get_parent()
        return node

    def get_tree(self) -> Optional[Any]:
        container = self.get_container()
        if container is not None and container._type == ObjectType.TREE:
            return container
        return None

    def traverse(self) -> Iterator["Node"]:
        """Pre-order walk of the subtree rooted here, using an explicit stack."""
        stack: List[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.get_children()))

    def get_descendants(self) -> List["Node"]:
        """All nodes below this one, in level order."""
        descendants: List[Node] = []
        level = self.get_children()
        while level:
            descendants.extend(level)
            level = [child for node in level for child in node.iter_children()]
        return descendants

    def get_terminals(self) -> List["Node"]:
        """Tips of the subtree rooted here, left to right (a tip returns itself)."""
        return [node for node in self.traverse() if node._first_daughter is None]

    @property
    def leaves(self) -> List["Node"]:
        return self.get_terminals()

    def get_internals(self) -> List["Node"]:
        """Internal nodes of the subtree rooted here, in pre-order."""
        return [node for node in self.traverse() if node._first_daughter is not None]

    def get_mrca(self, other: "Node") -> Optional["Node"]:
        """Most recent common ancestor of this node and ``other`` (either may be it)."""
        lineage = {id(self)}
        lineage.update(id(node) for node in self.get_ancestors())
        node: Optional[Node] = other
        while node is not None:
            if id(node) in lineage:
                return node
            node = node.get_parent()
        return None

    def get_leftmost_terminal(self) -> "Node":
        node = self
        while node._first_daughter is not None:
            node = node._first_daughter
        return node

    def get_rightmost_terminal(self) -> "Node":
        node = self
        while node._first_daughter is not None:
            node = node.get_last_daughter()
        return node

    def is_root(self) -> bool:
        return self.get_parent() is None

    def is_terminal(self) -> bool:
        return self._first_daughter is None

    def is_internal(self) -> bool:
        return self._first_daughter is not None

    def is_descendant_of(self, ancestor: "Node") -> bool:
        node = self.get_parent()
        while node is not None:
            if node is ancestor:
                return True
            node = node.get_parent()
        return False

    def is_ancestor_of(self, node: "Node") -> bool:
        return node.is_descendant_of(self)

    def is_sister_of(self, node: "Node") -> bool:
        parent = self.get_parent()
        return node is not self and parent is not None and node.get_parent() is parent

    def is_outgroup_of(self, nodes: Sequence["Node"]) -> bool:
        """True if no common ancestor of any pair in ``nodes`` is an ancestor of this node."""
        for i, first in enumerate(nodes):
            for second in nodes[i + 1 :]:
                mrca = first.get_mrca(second)
                if mrca is not None and mrca.is_ancestor_of(self):
                    return False
        return True

    # ===================================================================
    # 3. BRANCH LENGTH AND METRICS
    # ===================================================================

    def set_branch_length(self, length: Any) -> Self:
        if length is None:
            self._branch_length = None
            return self
        if not looks_like_number(length):
            raise InvalidNumberError(f"Branch length {length!r} is not a number")
        self._branch_length = to_number(length)
        return self

    def get_branch_length(self) -> Optional[Number]:
        return self._branch_length

    def calc_path_to_root(self) -> Number:
        """Sum of branch lengths from this node up to and including the root; absent lengths count as 0."""
        path: Number = 0
        node: Optional[Node] = self
        while node is not None:
            path += node._branch_length or 0
            node = node.get_parent()
        return path

    def calc_nodes_to_root(self) -> int:
        """Number of edges between this node and the root."""
        return len(self.get_ancestors())

    def _tip_distances(self) -> Iterator[Tuple[Number, int]]:
        # (path length, edge count) from this node to each tip below it
        stack: List[Tuple[Node, Number, int]] = [(self, 0, 0)]
        while stack:
            node, length, edges = stack.pop()
            if node._first_daughter is None:
                yield length, edges
                continue
            for child in node.iter_children():
                stack.append((child, length + (child._branch_length or 0), edges + 1))

    def calc_max_path_to_tips(self) -> Number:
        return max(length for length, _ in self._tip_distances())

    def calc_min_path_to_tips(self) -> Number:
        return min(length for length, _ in self._tip_distances())

    def calc_max_nodes_to_tips(self) -> int:
        return max(edges for _, edges in self._tip_distances())

    def calc_min_nodes_to_tips(self) -> int:
        return min(edges for _, edges in self._tip_distances())

    def calc_patristic_distance(self, other: "Node") -> Number:
        """Sum of branch lengths on the path between this node and ``other``."""
        mrca = self.get_mrca(other)
        if mrca is None:
            raise BadArgumentsError(f"{self!r} and {other!r} are not in the same tree")
        distance: Number = 0
        for start in (self, other):
            node = start
            while node is not mrca:
                distance += node._branch_length or 0
                node = node.get_parent()
        return distance

    # ===================================================================
    # 4. RESTRUCTURING
    # ===================================================================

    def collapse(self) -> Self:
        """
        Remove this node, handing its daughters to its parent at its position.

        Daughters inherit this node's branch length on top of their own, so root-to-tip
        paths are unchanged.
        """
        parent = self.get_parent()
        if parent is None:
            raise StructureError(f"Cannot collapse the root node {self.get_name()!r}")
        index = parent.get_children().index(self)
        children = self.get_children()
        for child in children:
            child._unlink()
            child._branch_length = add_lengths(child._branch_length, self._branch_length)
        self._unlink()
        for offset, child in enumerate(children):
            child._insert_into(parent, index + offset)
        tree = self.get_tree()
        if tree is not None:
            tree._discard(self)
        logger.debug(f"Collapsed node {self.get_id()} into {parent.get_id()}")
        return self

    def set_root_below(self) -> "Node":
        """
        Re-root the tree on the branch above this node.

        A new root is placed halfway along that branch; edges on the path to the old root
        are reversed, each keeping its length. An old root left with a single daughter is
        spliced out. Returns the new root.
        """
        path = [self] + self.get_ancestors()
        if len(path) == 1:
            return self
        if len(path) == 2 and path[1]._first_daughter is self and self._next_sister is None:
            return path[1]
        lengths = [node._branch_length for node in path]
        old_root = path[-1]
        tree = old_root.get_tree()
        for node in path[:-1]:
            node._unlink()
        for i in range(1, len(path) - 1):
            path[i + 1]._insert_into(path[i])
            path[i + 1]._branch_length = lengths[i]
        new_root = Node()
        half = lengths[0] / 2 if lengths[0] is not None else None
        for node in (self, path[1]):
            node._insert_into(new_root)
            node._branch_length = half
        old_root_children = old_root.get_children()
        if len(old_root_children) <= 1:
            old_parent = old_root.get_parent()
            index = old_parent.get_children().index(old_root)
            old_root._unlink()
            if old_root_children:
                child = old_root_children[0]
                child._unlink()
                child._branch_length = add_lengths(child._branch_length, old_root._branch_length)
                child._insert_into(old_parent, index)
            if tree is not None:
                tree._discard(old_root)
        if tree is not None:
            tree._adopt(new_root)
        logger.debug(f"Re-rooted below node {self.get_id()}")
        return new_root

    # ===================================================================
    # 5. OUTPUT
    # ===================================================================

    def to_newick(
        self,
        nodelabels: bool = True,
        tipnames: str = "name",
        translate: Optional[Dict[str, Any]] = None,
        blformat: Optional[str] = None,
        nhxkeys: Optional[Sequence[str]] = None,
        nhxstyle: str = "nhx",
    ) -> str:
        """
        Newick string of the subtree rooted here, terminated by ``;``.

        Args:
            nodelabels: Write internal node names.
            tipnames: ``"name"`` uses node names, ``"taxon"`` the linked taxon's name.
            translate: Mapping from tip label to the token written instead (Nexus TRANSLATE).
            blformat: printf-style format for branch lengths, e.g. ``"%.4f"``.
            nhxkeys: Generic annotation keys written as NHX comments.
            nhxstyle: ``"nhx"`` for ``[&&NHX:k=v]`` or ``"mesquite"`` for ``[%k=v]``.
        """
        if tipnames not in ("name", "taxon"):
            raise BadArgumentsError(f"tipnames must be 'name' or 'taxon', got {tipnames!r}")
        if nhxstyle not in ("nhx", "mesquite"):
            raise BadArgumentsError(f"nhxstyle must be 'nhx' or 'mesquite', got {nhxstyle!r}")
        options = (nodelabels, tipnames, translate or {}, blformat, tuple(nhxkeys or ()), nhxstyle)
        return self._to_newick(*options) + ";"

    def _label(self, tipnames: str) -> str:
        if tipnames == "taxon" and self._first_daughter is None:
            taxon = self.get_taxon()
            if taxon is not None and taxon.get_name() is not None:
                return taxon.get_name()
        return self.get_name() or ""

    def _to_newick(
        self,
        nodelabels: bool,
        tipnames: str,
        translate: Dict[str, Any],
        blformat: Optional[str],
        nhxkeys: Tuple[str, ...],
        nhxstyle: str,
    ) -> str:
        children = self.get_children()
        if children:
            inner = ",".join(
                child._to_newick(nodelabels, tipnames, translate, blformat, nhxkeys, nhxstyle)
                for child in children
            )
            text = f"({inner})" + ((self.get_name() or "") if nodelabels else "")
        else:
            label = self._label(tipnames)
            text = str(translate.get(label, label))
        if self._branch_length is not None:
            length = blformat % self._branch_length if blformat else str(self._branch_length)
            text += f":{length}"
        pairs = [(key, self._generic[key]) for key in nhxkeys if key in self._generic]
        if pairs:
            if nhxstyle == "nhx":
                text += "[&&NHX:" + ":".join(f"{k}={v}" for k, v in pairs) + "]"
            else:
                text += "[%" + " ".join(f"{k}={v}" for k, v in pairs) + "]"
        return text

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self._branch_length is not None:
            data["branch_length"] = self._branch_length
        taxon = self.get_taxon()
        if taxon is not None:
            data["taxon"] = taxon.get_id()
        children = self.get_children()
        if children:
            data["children"] = [child.to_dict() for child in children]
        return data
