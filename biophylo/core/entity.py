"""
Entity base shared by every domain object.

The base is composed from small capability traits rather than one deep hierarchy:

* ``Identifiable`` - unique id, registry/mediator lifecycle, ``dispose()``
* ``Named`` - name (punctuation checked) and free-text description
* ``Scored`` - optional numeric score
* ``Annotated`` - generic key/value annotations
* ``Cloneable`` - deep copy of forward-owned structure with fresh ids

Readable operations that may be invoked by name (``get("get_score")``) are listed in an
``ACCESSORS`` tuple on each class; the tuples are merged along the MRO into a table of
direct callables when the class is created.
"""

from __future__ import annotations

import copy
import logging
import weakref
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, TypeVar, Union

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

from biophylo.constants import NAME_PUNCTUATION, ObjectType, looks_like_number, to_number
from biophylo.core.mediator import get_mediator
from biophylo.core.registry import get_registry
from biophylo.exceptions import (
    BadArgumentsError,
    InvalidNameError,
    InvalidNumberError,
    OddHashError,
    UnknownOperationError,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Entity")

_PENDING = "_biophylo_pending"


def _teardown(entity_id: int) -> None:
    get_registry().unregister(entity_id)
    get_mediator().unregister(entity_id)


def normalise_options(options: Dict[str, Any]) -> Dict[str, Any]:
    """Strip the leading dash of ``-name`` style option keys."""
    return {key.lstrip("-"): value for key, value in options.items()}


# ===================================================================
# 1. CAPABILITY TRAITS
# ===================================================================


class Identifiable:
    _type: ClassVar[ObjectType] = ObjectType.NONE
    _container: ClassVar[ObjectType] = ObjectType.NONE

    ACCESSORS: ClassVar[Tuple[str, ...]] = ("get_id",)

    _id: int
    _finalizer: weakref.finalize

    def _init_identity(self) -> None:
        registry = get_registry()
        self._id = registry.issue_id()
        registry.register(self._id, self)
        get_mediator().register(self)
        self._finalizer = weakref.finalize(self, _teardown, self._id)
        self._finalizer.atexit = False

    def get_id(self) -> int:
        return self._id

    def dispose(self) -> None:
        """Unregister from the identity registry and the mediator. Safe to call twice."""
        self._finalizer()

    def is_disposed(self) -> bool:
        return not self._finalizer.alive

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()


class Named:
    ACCESSORS: ClassVar[Tuple[str, ...]] = ("get_name", "get_desc")

    _name: Optional[str] = None
    _desc: Optional[str] = None

    def set_name(self, name: Optional[str]) -> Self:
        """Set the name; fails with InvalidNameError if it contains one of ``;,:()``."""
        if name is None:
            self._name = None
            return self
        name = str(name)
        if NAME_PUNCTUATION.search(name):
            raise InvalidNameError(
                f"Name {name!r} contains structural punctuation (one of ';,:()')"
            )
        self._name = name
        return self

    def get_name(self) -> Optional[str]:
        return self._name

    def set_desc(self, desc: Optional[str]) -> Self:
        self._desc = None if desc is None else str(desc)
        return self

    def get_desc(self) -> Optional[str]:
        return self._desc


class Scored:
    ACCESSORS: ClassVar[Tuple[str, ...]] = ("get_score",)

    _score: Optional[Union[int, float]] = None

    def set_score(self, score: Any) -> Self:
        if score is None:
            self._score = None
            return self
        if not looks_like_number(score):
            raise InvalidNumberError(f"Score {score!r} is not a number")
        self._score = to_number(score)
        return self

    def get_score(self) -> Optional[Union[int, float]]:
        return self._score


class Annotated:
    ACCESSORS: ClassVar[Tuple[str, ...]] = ("get_generic",)

    _generic: Dict[str, Any]

    def set_generic(self, key: Union[str, Dict[str, Any], None] = None, value: Any = None) -> Self:
        """
        Store one annotation, or replace the whole mapping.

        ``set_generic({"x": 1})`` replaces every annotation, ``set_generic()`` clears them
        and ``set_generic("x", 1)`` stores a single value.
        """
        if key is None:
            self._generic = {}
        elif isinstance(key, dict):
            self._generic = dict(key)
        else:
            self._generic[str(key)] = value
        return self

    def get_generic(self, key: Optional[str] = None) -> Any:
        if key is None:
            return self._generic
        return self._generic.get(key)


class Cloneable:
    def _clone_detached(self, memo: Dict[Any, Any]) -> Tuple[str, ...]:
        """Attributes left empty in a copy (strong references this entity does not own)."""
        return ()

    def clone(self: E) -> E:
        """
        Deep copy of the structure this entity owns.

        Children, elements, characters and annotations are copied; parent/container
        back-references point into the copy when their target was copied too and are
        cleared otherwise. Every copied entity gets a fresh id and keeps the taxon/taxa
        link of its source.
        """
        memo: Dict[Any, Any] = {_PENDING: []}
        duplicate = copy.deepcopy(self, memo)
        for new, key, target in memo[_PENDING]:
            if key is None:
                get_mediator().set_link(memo.get(id(target), target), new)
                continue
            copied = memo.get(id(target))
            new.__dict__[key] = weakref.ref(copied) if copied is not None else None
        return duplicate

    def __deepcopy__(self, memo: Dict[Any, Any]) -> Any:
        cls = self.__class__
        new = cls.__new__(cls)
        memo[id(self)] = new
        pending: Optional[List[Any]] = memo.get(_PENDING)
        detached = self._clone_detached(memo)
        for key, value in self.__dict__.items():
            if key in ("_id", "_finalizer"):
                continue
            if key in detached:
                new.__dict__[key] = None
                continue
            if isinstance(value, weakref.ReferenceType):
                target = value()
                if pending is not None and target is not None:
                    new.__dict__[key] = None
                    pending.append((new, key, target))
                else:
                    copied = memo.get(id(target)) if target is not None else None
                    new.__dict__[key] = weakref.ref(copied) if copied is not None else None
                continue
            new.__dict__[key] = copy.deepcopy(value, memo)
        new._init_identity()
        one = get_mediator().get_link(self)
        if one is not None:
            if pending is not None:
                pending.append((new, None, one))
            else:
                get_mediator().set_link(one, new)
        logger.debug(f"Cloned {cls.__name__} {self.get_id()} as {new.get_id()}")
        return new


# ===================================================================
# 2. ENTITY BASE
# ===================================================================


def _build_accessor_table(cls: type) -> Dict[str, Callable[[Any], Any]]:
    table: Dict[str, Callable[[Any], Any]] = {}
    for klass in reversed(cls.__mro__):
        for name in klass.__dict__.get("ACCESSORS", ()):
            table[name] = getattr(cls, name)
    return table


class Entity(Identifiable, Named, Scored, Annotated, Cloneable):
    """
    Common base: id, name, description, score and generic annotations.

    Constructors take keyword options; each option ``foo`` is applied through the
    ``set_foo`` method, so ``Node(name="A", branch_length=0.5)`` is the same as creating
    the node and calling both setters. Dash-style keys (``**{"-name": "A"}``) are accepted.
    """

    _accessor_table: ClassVar[Dict[str, Callable[[Any], Any]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._accessor_table = _build_accessor_table(cls)

    def __init__(self, **options: Any) -> None:
        self._name = None
        self._desc = None
        self._score = None
        self._generic = {}
        self._init_identity()
        try:
            self._apply_options(normalise_options(options))
        except Exception:
            # no half-built entity stays registered
            self.dispose()
            raise

    @classmethod
    def from_options(cls, *pairs: Any) -> Self:
        """Build from a flat ``key, value, key, value`` list."""
        if len(pairs) % 2:
            raise OddHashError(
                f"Odd number of items in option list for {cls.__name__}: {pairs!r}"
            )
        return cls(**dict(zip(pairs[::2], pairs[1::2])))

    def _apply_options(self, options: Dict[str, Any]) -> None:
        for key, value in options.items():
            setter = getattr(self, f"set_{key}", None)
            if setter is None or not callable(setter):
                raise BadArgumentsError(
                    f"Unknown option {key!r} for {type(self).__name__}"
                )
            setter(value)

    # ------------------------------------------------------------------
    # Named-operation dispatch
    # ------------------------------------------------------------------
    @classmethod
    def resolve_accessor(cls, name: str) -> Callable[[Any], Any]:
        """Return the readable operation ``name`` of this kind as a plain callable."""
        try:
            return cls._accessor_table[name]
        except KeyError:
            raise UnknownOperationError(
                f"{cls.__name__} has no readable operation {name!r}"
            ) from None

    def get(self, name: str) -> Any:
        """Invoke the readable operation ``name`` on this entity."""
        return self.resolve_accessor(name)(self)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self._id, "type": self._type.name.lower()}
        if self._name is not None:
            data["name"] = self._name
        if self._desc is not None:
            data["desc"] = self._desc
        if self._score is not None:
            data["score"] = self._score
        if self._generic:
            data["generic"] = dict(self._generic)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id}, name={self._name!r})"


Entity._accessor_table = _build_accessor_table(Entity)
