from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

from biophylo.constants import ObjectType, looks_like_number, to_number
from biophylo.core.entity import Entity, normalise_options
from biophylo.core.listable import ListableElement
from biophylo.exceptions import (
    BadArgumentsError,
    InvalidDataError,
    InvalidNumberError,
    OutOfBoundsError,
)
from biophylo.matrices.datatype import Datatype
from biophylo.matrices.typesafedata import TypeSafeData, make_type_object
from biophylo.taxa.linker import TaxonLinker

logger = logging.getLogger(__name__)


class Datum(TypeSafeData, TaxonLinker, ListableElement, Entity):
    """One matrix row: a character sequence, usually linked to a taxon."""

    _type = ObjectType.DATUM
    _container = ObjectType.MATRIX

    ACCESSORS = ("get_char", "get_char_string", "get_length", "get_position", "get_weight")

    def __init__(self, **options: Any) -> None:
        options = normalise_options(options)
        kind = options.pop("type_object", None) or options.pop("type", None) or "standard"
        self._type_object = make_type_object(kind)
        self._chars: List[Any] = []
        self._position = 1
        self._weight: Optional[Union[int, float]] = None
        self._annotations: Dict[int, Dict[str, Any]] = {}
        super().__init__(**options)

    # ------------------------------------------------------------------
    # Characters
    # ------------------------------------------------------------------
    def set_char(self, chars: Union[str, List[Any]]) -> Self:
        """Replace the row content; a string is split by the datatype."""
        if isinstance(chars, str):
            symbols = self._type_object.split(chars)
        else:
            symbols = list(chars)
        if not self._type_object.is_valid(_Positioned(symbols, self._position)):
            raise InvalidDataError(
                f"Characters {chars!r} are not valid {self.get_type()} data"
            )
        self._chars = symbols
        self._annotations = {}
        return self

    def get_char(self) -> List[Any]:
        return list(self._chars)

    def get_char_string(self) -> str:
        return self._type_object.join(self._chars)

    def get_length(self) -> int:
        return len(self._chars)

    def reverse(self) -> Self:
        last = len(self._chars) - 1
        self._chars.reverse()
        self._annotations = {last - i: note for i, note in self._annotations.items()}
        return self

    # ------------------------------------------------------------------
    # Row metadata
    # ------------------------------------------------------------------
    def set_position(self, position: int) -> Self:
        """1-based column of the first character."""
        if isinstance(position, bool) or not isinstance(position, int) or position < 1:
            raise InvalidNumberError(f"Position must be a positive integer, got {position!r}")
        self._position = position
        return self

    def get_position(self) -> int:
        return self._position

    def set_weight(self, weight: Any) -> Self:
        if weight is not None and not looks_like_number(weight):
            raise InvalidNumberError(f"Weight {weight!r} is not a number")
        self._weight = None if weight is None else to_number(weight)
        return self

    def get_weight(self) -> Optional[Union[int, float]]:
        return self._weight

    def set_annotation(self, index: int, **values: Any) -> Self:
        """Attach key/value annotations to the character at 0-based ``index``."""
        if not values:
            raise BadArgumentsError("set_annotation() needs at least one key=value pair")
        if not 0 <= index < len(self._chars):
            raise OutOfBoundsError(
                f"Character index {index} out of range for a row of {len(self._chars)}"
            )
        self._annotations.setdefault(index, {}).update(values)
        return self

    def get_annotation(self, index: Optional[int] = None, key: Optional[str] = None) -> Any:
        if index is None:
            return [self._annotations.get(i, {}) for i in range(len(self._chars))]
        if not 0 <= index < len(self._chars):
            raise OutOfBoundsError(
                f"Character index {index} out of range for a row of {len(self._chars)}"
            )
        notes = self._annotations.get(index, {})
        return notes if key is None else notes.get(key)

    def get_label(self) -> Optional[str]:
        """Name of the linked taxon, falling back to the row's own name."""
        taxon = self.get_taxon()
        if taxon is not None and taxon.get_name() is not None:
            return taxon.get_name()
        return self.get_name()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(self, type_object: Optional[Datatype] = None) -> Self:
        type_object = type_object or self._type_object
        if not type_object.is_valid(self):
            raise InvalidDataError(
                f"Row {self.get_label()!r} is not valid {type_object.get_type()} data"
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["datatype"] = self.get_type()
        data["char"] = self.get_char()
        if self._position != 1:
            data["position"] = self._position
        if self._weight is not None:
            data["weight"] = self._weight
        return data


class _Positioned:
    """Symbols plus the 1-based column they start at, for range-aware validation."""

    def __init__(self, chars: List[Any], position: int) -> None:
        self._chars = chars
        self._position = position

    def get_char(self) -> List[Any]:
        return self._chars

    def get_position(self) -> int:
        return self._position
