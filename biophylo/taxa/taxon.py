from __future__ import annotations

from typing import Any, List

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

from biophylo.constants import ObjectType
from biophylo.core.entity import Entity
from biophylo.core.listable import ListableElement
from biophylo.core.mediator import get_mediator
from biophylo.exceptions import TypeMismatchError


class Taxon(ListableElement, Entity):
    """An operational taxonomic unit; nodes and matrix rows point at it through the mediator."""

    _type = ObjectType.TAXON
    _container = ObjectType.TAXA

    ACCESSORS = ("get_data", "get_nodes")

    def set_data(self, datum: Any) -> Self:
        if getattr(datum, "_type", None) != ObjectType.DATUM:
            raise TypeMismatchError(f"{datum!r} is not a datum")
        datum.set_taxon(self)
        return self

    def set_nodes(self, node: Any) -> Self:
        if getattr(node, "_type", None) != ObjectType.NODE:
            raise TypeMismatchError(f"{node!r} is not a node")
        node.set_taxon(self)
        return self

    def unset_datum(self, datum: Any) -> Self:
        get_mediator().remove_link(one=self, many=datum)
        return self

    def unset_node(self, node: Any) -> Self:
        get_mediator().remove_link(one=self, many=node)
        return self

    def get_data(self) -> List[Any]:
        return get_mediator().get_link(self, type=ObjectType.DATUM)

    def get_nodes(self) -> List[Any]:
        return get_mediator().get_link(self, type=ObjectType.NODE)
