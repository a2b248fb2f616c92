"""
Taxon-link mediator.

Keeps the links between a taxa block (or a single taxon) and the objects that refer to
it (forests, trees, matrices, nodes, data) outside of the objects themselves. A dependent
can find "its" taxa block without holding a strong reference to it, and a taxa block can
enumerate its dependents without owning them.

Relation sets are keyed by the id of the "one" side and map dependent ids to the
dependent's ``ObjectType``. A reverse index maps each dependent id to the single "one"
it is linked to.
"""

from __future__ import annotations

import logging
import weakref
from typing import Any, Dict, List, Optional, Union

from biophylo.constants import ObjectType
from biophylo.exceptions import BadArgumentsError

logger = logging.getLogger(__name__)


def _id_of(entity: Union[int, Any]) -> int:
    if isinstance(entity, int):
        return entity
    return entity.get_id()


class TaxaMediator:
    """Relationship table between taxa blocks/taxa and their dependents."""

    def __init__(self) -> None:
        self._objects: "weakref.WeakValueDictionary[int, Any]" = (
            weakref.WeakValueDictionary()
        )
        self._relationships: Dict[int, Dict[int, ObjectType]] = {}
        self._reverse: Dict[int, int] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(self, entity: Any) -> None:
        self._objects[entity.get_id()] = entity

    def unregister(self, entity: Union[int, Any]) -> None:
        """Forget an entity together with its own relation set and its reverse entry."""
        entity_id = _id_of(entity)
        dependents = self._relationships.pop(entity_id, None)
        if dependents:
            for many_id in dependents:
                if self._reverse.get(many_id) == entity_id:
                    del self._reverse[many_id]
        self._drop_reverse(entity_id)
        self._objects.pop(entity_id, None)

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------
    def set_link(self, one: Any, many: Any) -> None:
        """Link ``many`` to ``one``, superseding whatever ``many`` was linked to before."""
        one_id, many_id = one.get_id(), many.get_id()
        self._drop_reverse(many_id)
        self._relationships.setdefault(one_id, {})[many_id] = many._type
        self._reverse[many_id] = one_id
        # Objects created before a reset_mediator() are re-registered lazily
        self._objects.setdefault(one_id, one)
        self._objects.setdefault(many_id, many)
        logger.debug(f"Linked {many._type.name} {many_id} to {one._type.name} {one_id}")

    def get_link(
        self, source: Any, type: Optional[ObjectType] = None
    ) -> Union[Any, List[Any], None]:
        """
        Query links.

        Args:
            source: The entity to look up.
            type: When given, return every dependent of this kind linked to ``source``
                (in link order). When omitted, return the single object ``source`` is
                linked to, or None.
        """
        source_id = _id_of(source)
        if type is not None:
            found: List[Any] = []
            for many_id, many_type in self._relationships.get(source_id, {}).items():
                if many_type != type:
                    continue
                obj = self._objects.get(many_id)
                if obj is not None:
                    found.append(obj)
            return found
        one_id = self._reverse.get(source_id)
        if one_id is None:
            return None
        return self._objects.get(one_id)

    def remove_link(self, one: Optional[Any] = None, many: Optional[Any] = None) -> None:
        """Remove the forward entry ``one -> many``, or ``many``'s reverse entry if ``one`` is omitted."""
        if many is None:
            raise BadArgumentsError("remove_link() needs the dependent ('many') side")
        many_id = _id_of(many)
        if one is None:
            self._drop_reverse(many_id)
            return
        one_id = _id_of(one)
        relation = self._relationships.get(one_id)
        if relation is not None and many_id in relation:
            del relation[many_id]
            if self._reverse.get(many_id) == one_id:
                del self._reverse[many_id]
            logger.debug(f"Unlinked {many_id} from {one_id}")

    def _drop_reverse(self, many_id: int) -> None:
        one_id = self._reverse.pop(many_id, None)
        if one_id is None:
            return
        relation = self._relationships.get(one_id)
        if relation is not None:
            relation.pop(many_id, None)
        logger.debug(f"Unlinked {many_id} from {one_id}")

    def count_links(self) -> int:
        return len(self._reverse)


_mediator: Optional[TaxaMediator] = None


def get_mediator() -> TaxaMediator:
    """Return the process-wide mediator, creating it on first use."""
    global _mediator
    if _mediator is None:
        _mediator = TaxaMediator()
    return _mediator


def reset_mediator() -> TaxaMediator:
    """Replace the process-wide mediator with an empty one."""
    global _mediator
    _mediator = TaxaMediator()
    logger.debug("Taxa mediator reset")
    return _mediator
