"""Trait for objects whose content is validated by a Datatype (rows and matrices)."""

from __future__ import annotations

from typing import Any, ClassVar, Optional, Tuple

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

from biophylo.exceptions import AbstractMethodError, TypeMismatchError
from biophylo.matrices.datatype import Datatype, Lookup, create


def make_type_object(kind: Any) -> Datatype:
    """Accept a Datatype, a kind name, or ``(kind, *args)``."""
    if isinstance(kind, Datatype):
        return kind
    if isinstance(kind, (list, tuple)):
        return create(kind[0], *kind[1:])
    return create(kind)


class TypeSafeData:
    ACCESSORS: ClassVar[Tuple[str, ...]] = ("get_type", "get_missing", "get_gap")

    _type_object: Datatype

    def set_type(self, kind: Any, *args: Any, **options: Any) -> Self:
        """Switch to a new datatype; content that does not fit raises InvalidDataError."""
        if args or options:
            type_object = create(kind, *args, **options)
        else:
            type_object = make_type_object(kind)
        self.validate(type_object)
        self._adopt_type_object(type_object)
        return self

    def set_type_object(self, type_object: Datatype) -> Self:
        if not isinstance(type_object, Datatype):
            raise TypeMismatchError(f"{type_object!r} is not a datatype")
        self.validate(type_object)
        self._adopt_type_object(type_object)
        return self

    def _adopt_type_object(self, type_object: Datatype) -> None:
        self._type_object = type_object

    def get_type_object(self) -> Datatype:
        return self._type_object

    def get_type(self) -> str:
        return self._type_object.get_type()

    def set_missing(self, missing: str) -> Self:
        self._type_object.set_missing(missing)
        return self

    def get_missing(self) -> Optional[str]:
        return self._type_object.get_missing()

    def set_gap(self, gap: str) -> Self:
        self._type_object.set_gap(gap)
        return self

    def get_gap(self) -> Optional[str]:
        return self._type_object.get_gap()

    def set_lookup(self, lookup: Lookup) -> Self:
        self._type_object.set_lookup(lookup)
        return self

    def get_lookup(self) -> Optional[Lookup]:
        return self._type_object.get_lookup()

    def validate(self, type_object: Optional[Datatype] = None) -> Self:
        raise AbstractMethodError(f"{type(self).__name__} does not implement validate()")
