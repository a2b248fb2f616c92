from biophylo.forest.forest import Forest
from biophylo.forest.node import Node
from biophylo.forest.tree import Tree

__all__ = ["Forest", "Node", "Tree"]
