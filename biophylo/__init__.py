"""Core biophylo package: taxa, character matrices and trees sharing one identity space."""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Forest",
    "Node",
    "Tree",
    "Taxa",
    "Taxon",
    "Matrix",
    "Datum",
    "parse",
    "unparse",
]


def __getattr__(name):
    if name in {"Forest", "Node", "Tree"}:
        from .forest import Forest, Node, Tree

        return locals()[name]
    if name in {"Taxa", "Taxon"}:
        from .taxa import Taxa, Taxon

        return locals()[name]
    if name in {"Matrix", "Datum"}:
        from .matrices import Datum, Matrix

        return locals()[name]
    if name in {"parse", "unparse"}:
        from .io import parse, unparse

        return locals()[name]
    raise AttributeError(name)
