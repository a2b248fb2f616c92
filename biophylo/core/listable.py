"""
Ordered containers of entities: taxa blocks, matrices, trees and forests.

A container accepts an element when the element's ``_container`` tag equals the
container's ``_type`` tag. Elements keep a weak reference back to the container they
were inserted into.
"""

from __future__ import annotations

import logging
import operator
import re
import weakref
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Iterator,
    List,
    Optional,
    Pattern,
    Tuple,
    Union,
)

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

from biophylo.constants import ObjectType
from biophylo.core.entity import Entity
from biophylo.exceptions import (
    BadArgumentsError,
    OutOfBoundsError,
    TypeMismatchError,
)

logger = logging.getLogger(__name__)

COMPARATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "lt": operator.lt,
    "le": operator.le,
    "gt": operator.gt,
    "ge": operator.ge,
    "eq": operator.eq,
}


class ListableElement:
    """Trait for entities that live inside a Listable container."""

    ACCESSORS: ClassVar[Tuple[str, ...]] = ("get_container",)

    _container_ref: Optional["weakref.ReferenceType[Any]"] = None

    def _set_container(self, container: Optional["Listable"]) -> None:
        self._container_ref = weakref.ref(container) if container is not None else None

    def get_container(self) -> Optional["Listable"]:
        if self._container_ref is None:
            return None
        return self._container_ref()


class Listable(Entity):
    """Insertion-ordered collection of entities of one kind."""

    ACCESSORS = ("get_entities", "last_index")
    # Class of the elements, used to check accessor names on an empty container
    ELEMENT: ClassVar[Optional[type]] = None

    def __init__(self, **options: Any) -> None:
        self._entities: List[Any] = []
        self._index = 0
        super().__init__(**options)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def can_contain(self, entity: Any) -> bool:
        return getattr(entity, "_container", None) == self._type and self._type != ObjectType.NONE

    def _check_insertable(self, entity: Any) -> None:
        if not self.can_contain(entity):
            raise TypeMismatchError(
                f"{type(self).__name__} cannot contain {type(entity).__name__} objects"
            )

    def insert(self, *entities: Any) -> Self:
        """Append entities; fails with TypeMismatchError for the wrong kind."""
        for entity in entities:
            self._check_insertable(entity)
            self._entities.append(entity)
            if isinstance(entity, ListableElement):
                entity._set_container(self)
            logger.debug(f"Inserted {entity!r} into {self!r}")
        return self

    def insert_at_index(self, entity: Any, index: int) -> Self:
        self._check_insertable(entity)
        if not -len(self._entities) - 1 <= index <= len(self._entities):
            raise OutOfBoundsError(f"Index {index} out of range for {self!r}")
        self._entities.insert(index, entity)
        if isinstance(entity, ListableElement):
            entity._set_container(self)
        return self

    def delete(self, entity: Any) -> Self:
        """Remove ``entity`` from the container (it is not disposed)."""
        try:
            self._entities.remove(entity)
        except ValueError:
            raise BadArgumentsError(f"{entity!r} is not in {self!r}") from None
        if isinstance(entity, ListableElement) and entity.get_container() is self:
            entity._set_container(None)
        return self

    def clear(self) -> Self:
        for entity in list(self._entities):
            self.delete(entity)
        self._index = 0
        return self

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------
    def get_entities(self) -> List[Any]:
        return list(self._entities)

    def contains(self, entity: Any) -> bool:
        return any(element is entity for element in self._entities)

    def get_by_index(self, index: int) -> Any:
        try:
            return self._entities[index]
        except IndexError:
            raise OutOfBoundsError(
                f"Index {index} out of range for {self!r} with {len(self._entities)} elements"
            ) from None

    def get_index_of(self, entity: Any) -> Optional[int]:
        for index, element in enumerate(self._entities):
            if element is entity:
                return index
        return None

    def last_index(self) -> int:
        return len(self._entities) - 1

    def first(self) -> Optional[Any]:
        self._index = 0
        return self._entities[0] if self._entities else None

    def last(self) -> Optional[Any]:
        self._index = max(len(self._entities) - 1, 0)
        return self._entities[-1] if self._entities else None

    def current(self) -> Optional[Any]:
        if 0 <= self._index < len(self._entities):
            return self._entities[self._index]
        return None

    def next(self) -> Optional[Any]:
        """Advance the cursor; returns None (and resets) past the end."""
        if self._index + 1 < len(self._entities):
            self._index += 1
            return self._entities[self._index]
        self._index = 0
        return None

    def previous(self) -> Optional[Any]:
        if 0 < self._index < len(self._entities):
            self._index -= 1
            return self._entities[self._index]
        self._index = 0
        return None

    def current_index(self) -> int:
        return self._index

    def get_by_name(self, name: str) -> Optional[Any]:
        for entity in self._entities:
            if entity.get_name() == name:
                return entity
        return None

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------
    def _accessor_values(self, accessor: str) -> Iterator[Tuple[Any, Any]]:
        resolved: Dict[type, Callable[[Any], Any]] = {}
        if self.ELEMENT is not None:
            resolved[self.ELEMENT] = self.ELEMENT.resolve_accessor(accessor)
        for entity in self._entities:
            kind = type(entity)
            if kind not in resolved:
                resolved[kind] = kind.resolve_accessor(accessor)
            yield entity, resolved[kind](entity)

    def get_by_value(self, accessor: str, comparator: str, threshold: Any) -> List[Any]:
        """
        Elements whose ``accessor`` value compares true against ``threshold``.

        Args:
            accessor: Name of a readable operation, e.g. ``"get_score"``.
            comparator: One of ``lt``, ``le``, ``gt``, ``ge``, ``eq``.
            threshold: Value to compare with.

        Elements for which the accessor returns None are skipped.
        """
        compare = COMPARATORS.get(comparator)
        if compare is None:
            raise BadArgumentsError(
                f"Unknown comparator {comparator!r}; expected one of {sorted(COMPARATORS)}"
            )
        return [
            entity
            for entity, value in self._accessor_values(accessor)
            if value is not None and compare(value, threshold)
        ]

    def get_by_regex(self, accessor: str, pattern: Union[str, Pattern[str]]) -> List[Any]:
        """Elements whose ``accessor`` value matches ``pattern`` (``re.search`` semantics)."""
        if pattern is None:
            raise BadArgumentsError("get_by_regex() needs a pattern")
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        return [
            entity
            for entity, value in self._accessor_values(accessor)
            if value is not None and regex.search(str(value))
        ]

    def visit(self, function: Callable[[Any], Any]) -> Self:
        for entity in list(self._entities):
            function(entity)
        return self

    # ------------------------------------------------------------------
    # Taxon links
    # ------------------------------------------------------------------
    def cross_reference(self, taxa: Any) -> Self:
        """Link every element to the taxon of ``taxa`` that carries the same name."""
        if getattr(taxa, "_type", None) != ObjectType.TAXA:
            raise TypeMismatchError(f"{taxa!r} is not a taxa block")
        set_taxa = getattr(self, "set_taxa", None)
        if set_taxa is not None:
            set_taxa(taxa)
        by_name: Dict[Optional[str], Any] = {}
        for taxon in taxa:
            by_name.setdefault(taxon.get_name(), taxon)
        for entity in self._entities:
            if not (hasattr(entity, "get_name") and hasattr(entity, "set_taxon")):
                raise TypeMismatchError(
                    f"{type(entity).__name__} elements cannot be linked to taxa"
                )
            taxon = by_name.get(entity.get_name())
            if taxon is not None:
                entity.set_taxon(taxon)
        return self

    # ------------------------------------------------------------------
    # Python protocol
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._entities))

    def __getitem__(self, index: int) -> Any:
        return self.get_by_index(index)

    def __contains__(self, entity: object) -> bool:
        return self.contains(entity)

    def __bool__(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["entities"] = [entity.to_dict() for entity in self._entities]
        return data
