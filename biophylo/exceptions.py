"""
Error taxonomy used across the biophylo package.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

if TYPE_CHECKING:
    from biophylo.forest.node import Node
    from biophylo.forest.tree import Tree


class PhyloError(Exception):
    """Base exception for all biophylo errors."""

    pass


class InvalidNameError(PhyloError, ValueError):
    """Raised when a name contains structural punctuation (one of ``;,:()``)."""

    pass


class InvalidNumberError(PhyloError, ValueError):
    """Raised when a numeric field is assigned something that is not a number."""

    pass


class BadArgumentsError(PhyloError, ValueError):
    """Raised for malformed option sets or missing required arguments."""

    pass


class OddHashError(BadArgumentsError):
    """Raised when a flat key/value option list has an odd number of items."""

    pass


class OutOfBoundsError(BadArgumentsError, IndexError):
    """Raised when an index or level lies outside the permitted range."""

    pass


class InvalidDataError(BadArgumentsError):
    """Raised when character data is rejected by its datatype."""

    pass


class BadFormatError(BadArgumentsError):
    """Raised for unknown datatype kinds, unknown file formats or malformed input text."""

    pass


class TypeMismatchError(PhyloError, TypeError):
    """Raised when an entity of the wrong kind is inserted, linked or cross-referenced."""

    pass


class UnknownOperationError(PhyloError, AttributeError):
    """Raised when a named operation is not available on an entity kind."""

    pass


class AbstractMethodError(PhyloError, NotImplementedError):
    """Raised when an abstract operation is called on a base type."""

    pass


class StructureError(PhyloError):
    """Raised when a mutation would break the tree invariants."""

    @staticmethod
    def raise_cycle(node: Node, parent: Node) -> NoReturn:
        """
        Raises a StructureError for an attempt to attach a node below itself.

        Args:
            node: The node being re-parented
            parent: The requested new parent, which lies in ``node``'s subtree

        Raises:
            StructureError: Always raised with detailed error information
        """
        from biophylo.logger.debug import phylo_logger

        message = (
            f"Cannot make node {parent.get_name()!r} (id {parent.get_id()}) the parent of "
            f"{node.get_name()!r} (id {node.get_id()}): the new parent is in the node's "
            f"own subtree, which would create a cycle."
        )
        if not phylo_logger.disabled:
            phylo_logger.error(message)
        raise StructureError(message)

    @staticmethod
    def raise_second_root(node: Node, tree: Tree) -> NoReturn:
        """
        Raises a StructureError for a mutation that leaves a tree with two parentless nodes.

        Args:
            node: The node that would become a second root
            tree: The tree that already has a root

        Raises:
            StructureError: Always raised with detailed error information
        """
        from biophylo.logger.debug import phylo_logger

        root = tree.get_root()
        root_name = root.get_name() if root is not None else None
        message = (
            f"Node {node.get_name()!r} (id {node.get_id()}) would become a second root of "
            f"tree {tree.get_name()!r}; the current root is "
            f"{root_name!r}."
        )
        if not phylo_logger.disabled:
            phylo_logger.error(message)
        raise StructureError(message)
