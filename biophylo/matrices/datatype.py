"""
Character datatypes: alphabets and validation rules for matrix cells.

Every variant maps a symbol (including ambiguity codes) to the tuple of unambiguous states
it stands for, and knows its missing-data and gap symbols. ``Continuous`` has no alphabet
and accepts numbers; ``Mixed`` partitions the columns of a row into contiguous ranges that
are each validated by their own datatype.

Use :func:`create` to build a datatype from its kind name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Sequence, Tuple, Union

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

from biophylo.constants import looks_like_number
from biophylo.core.entity import Entity, normalise_options
from biophylo.exceptions import (
    BadArgumentsError,
    BadFormatError,
    OddHashError,
    OutOfBoundsError,
)

logger = logging.getLogger(__name__)

Lookup = Dict[str, Tuple[str, ...]]


# ===================================================================
# 1. SYMBOL TABLES
# ===================================================================


def _iupac(base4: str) -> Lookup:
    a, c, g, t = "A", "C", "G", base4
    every = (a, c, g, t)
    return {
        a: (a,),
        c: (c,),
        g: (g,),
        t: (t,),
        "M": (a, c),
        "R": (a, g),
        "W": (a, t),
        "S": (c, g),
        "Y": (c, t),
        "K": (g, t),
        "V": (a, c, g),
        "H": (a, c, t),
        "D": (a, g, t),
        "B": (c, g, t),
        "X": every,
        "N": every,
    }


DNA_LOOKUP: Lookup = _iupac("T")
RNA_LOOKUP: Lookup = _iupac("U")
NUCLEOTIDE_LOOKUP: Lookup = {**DNA_LOOKUP, "U": ("U",)}

_AMINO_ACIDS = "ARNDCQEGHILKMFPSTWYV"
PROTEIN_LOOKUP: Lookup = {aa: (aa,) for aa in _AMINO_ACIDS}
PROTEIN_LOOKUP.update(
    {
        "B": ("D", "N"),
        "Z": ("E", "Q"),
        "X": tuple(_AMINO_ACIDS),
        "*": ("*",),
    }
)

STANDARD_LOOKUP: Lookup = {str(i): (str(i),) for i in range(10)}
RESTRICTION_LOOKUP: Lookup = {"0": ("0",), "1": ("1",)}


def _copy_lookup(lookup: Optional[Lookup]) -> Optional[Lookup]:
    if lookup is None:
        return None
    return {str(symbol): tuple(states) for symbol, states in lookup.items()}


# ===================================================================
# 2. BASE DATATYPE
# ===================================================================


class Datatype(Entity):
    """Base datatype with a fixed alphabet."""

    KIND: ClassVar[str] = "datatype"
    LOOKUP: ClassVar[Optional[Lookup]] = None
    MISSING: ClassVar[Optional[str]] = "?"
    GAP: ClassVar[Optional[str]] = "-"

    ACCESSORS = ("get_type", "get_lookup", "get_missing", "get_gap")

    def __init__(self, **options: Any) -> None:
        self._lookup: Optional[Lookup] = _copy_lookup(self.LOOKUP)
        self._missing: Optional[str] = self.MISSING
        self._gap: Optional[str] = self.GAP
        super().__init__(**options)

    def get_type(self) -> str:
        return self.KIND

    # ------------------------------------------------------------------
    # Alphabet
    # ------------------------------------------------------------------
    def set_lookup(self, lookup: Lookup) -> Self:
        if not isinstance(lookup, dict):
            raise BadArgumentsError(f"Lookup table must be a mapping, got {lookup!r}")
        self._lookup = _copy_lookup(lookup)
        return self

    def get_lookup(self) -> Optional[Lookup]:
        return self._lookup

    def set_missing(self, missing: Optional[str]) -> Self:
        if missing is not None and missing == self._gap:
            raise BadArgumentsError(
                f"Missing symbol {missing!r} is already used as the gap symbol"
            )
        self._missing = missing
        return self

    def get_missing(self) -> Optional[str]:
        return self._missing

    def set_gap(self, gap: Optional[str]) -> Self:
        if gap is not None and gap == self._missing:
            raise BadArgumentsError(
                f"Gap symbol {gap!r} is already used as the missing symbol"
            )
        self._gap = gap
        return self

    def get_gap(self) -> Optional[str]:
        return self._gap

    def get_states_for_symbol(self, symbol: str) -> Optional[Tuple[str, ...]]:
        if self._lookup is None:
            return None
        states = self._lookup.get(symbol)
        if states is None:
            states = self._lookup.get(symbol.upper())
        return states

    def get_symbol_for_states(self, states: Iterable[str]) -> Optional[str]:
        """Symbol whose state set equals ``states`` (first match in lookup order)."""
        if self._lookup is None:
            return None
        wanted = set(states)
        for symbol, symbol_states in self._lookup.items():
            if set(symbol_states) == wanted:
                return symbol
        return None

    def get_ids_for_states(self) -> Dict[str, int]:
        """Sequential ids (from 1) for every symbol of the alphabet, in lookup order."""
        if self._lookup is None:
            return {}
        return {symbol: index for index, symbol in enumerate(self._lookup, 1)}

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def _chars_of(self, data: Any) -> List[Any]:
        if data is None:
            return []
        if hasattr(data, "get_char"):
            return list(data.get_char())
        if isinstance(data, str):
            return self.split(data)
        if isinstance(data, (list, tuple)):
            return list(data)
        return [data]

    def _is_valid_symbol(self, symbol: Any) -> bool:
        symbol = str(symbol)
        if symbol == self._missing or symbol == self._gap:
            return True
        return self.get_states_for_symbol(symbol) is not None

    def is_valid(self, data: Any) -> bool:
        """
        True if every character of ``data`` belongs to the alphabet.

        ``data`` may be a single symbol, a string of symbols, a sequence of symbols or a
        datum-like object with ``get_char()``. Empty input is valid.
        """
        for symbol in self._chars_of(data):
            if not self._is_valid_symbol(symbol):
                logger.debug(f"{symbol!r} is not a valid {self.get_type()} symbol")
                return False
        return True

    def is_same(self, other: Any) -> bool:
        """Structural equality: same kind, same missing/gap symbols, same alphabet."""
        if other is self:
            return True
        if not isinstance(other, Datatype):
            return False
        if other.get_id() == self.get_id():
            return True
        if self.get_type() != other.get_type():
            return False
        if self._missing != other.get_missing() or self._gap != other.get_gap():
            return False
        mine, theirs = self.get_lookup(), other.get_lookup()
        if mine is None or theirs is None:
            return mine is None and theirs is None
        if set(mine) != set(theirs):
            return False
        return all(set(mine[symbol]) == set(theirs[symbol]) for symbol in mine)

    # ------------------------------------------------------------------
    # Row <-> symbols
    # ------------------------------------------------------------------
    def split(self, string: str) -> List[str]:
        """One symbol per non-whitespace character."""
        return [char for char in string if not char.isspace()]

    def join(self, symbols: Sequence[Any]) -> str:
        return "".join(str(symbol) for symbol in symbols)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {"datatype": self.get_type(), "missing": self._missing, "gap": self._gap}
        )
        return data


# ===================================================================
# 3. FIXED ALPHABETS
# ===================================================================


class Dna(Datatype):
    KIND = "dna"
    LOOKUP = DNA_LOOKUP


class Rna(Datatype):
    KIND = "rna"
    LOOKUP = RNA_LOOKUP


class Nucleotide(Datatype):
    """Generic nucleotide data: accepts both T and U."""

    KIND = "nucleotide"
    LOOKUP = NUCLEOTIDE_LOOKUP


class Protein(Datatype):
    KIND = "protein"
    LOOKUP = PROTEIN_LOOKUP


class Standard(Datatype):
    KIND = "standard"
    LOOKUP = STANDARD_LOOKUP


class Restriction(Datatype):
    KIND = "restriction"
    LOOKUP = RESTRICTION_LOOKUP


class Custom(Datatype):
    """User-supplied alphabet; a ``lookup`` option is required."""

    KIND = "custom"

    def __init__(self, **options: Any) -> None:
        if normalise_options(options).get("lookup") is None:
            raise BadArgumentsError("Custom datatype needs a 'lookup' table")
        super().__init__(**options)


# ===================================================================
# 4. CONTINUOUS
# ===================================================================


class Continuous(Datatype):
    """Free-form numeric characters, whitespace separated. No alphabet and no gap."""

    KIND = "continuous"
    GAP = None

    def set_lookup(self, lookup: Any) -> Self:
        logger.warning("Continuous data has no discrete alphabet; lookup table ignored")
        return self

    def get_lookup(self) -> None:
        return None

    def _is_valid_symbol(self, symbol: Any) -> bool:
        if symbol == self._missing:
            return True
        return looks_like_number(symbol)

    def split(self, string: str) -> List[str]:
        return string.split()

    def join(self, symbols: Sequence[Any]) -> str:
        return " ".join(str(symbol) for symbol in symbols)


# ===================================================================
# 5. MIXED
# ===================================================================


@dataclass(frozen=True)
class DatatypeRange:
    """Columns ``start`` (inclusive) to ``stop`` (exclusive), 0-based."""

    start: int
    stop: int
    datatype: Datatype

    def __contains__(self, column: object) -> bool:
        return isinstance(column, int) and self.start <= column < self.stop


def _range_pairs(ranges: Sequence[Any]) -> List[Tuple[Any, Any]]:
    if all(isinstance(item, (list, tuple)) and len(item) == 2 for item in ranges):
        return [tuple(item) for item in ranges]
    if len(ranges) % 2:
        raise OddHashError(f"Mixed datatype ranges must come in pairs: {list(ranges)!r}")
    return list(zip(ranges[::2], ranges[1::2]))


class Mixed(Datatype):
    """
    Partitioned datatype: contiguous column ranges, each with its own datatype.

    Built from ``(kind, length)`` pairs, or ``(kind, {"length": n, "args": {...}})`` where
    ``args`` are options for the sub-datatype. Ranges are laid out from column 0 upward;
    columns past the last range are governed by the last range's datatype.
    """

    KIND = "mixed"
    ACCESSORS = ("get_ranges", "get_length")

    def __init__(self, ranges: Optional[Sequence[Any]] = None, **options: Any) -> None:
        if not isinstance(ranges, (list, tuple)) or not ranges:
            raise BadArgumentsError(
                f"Mixed datatype needs a non-empty sequence of (type, length) pairs, got {ranges!r}"
            )
        self._ranges: List[DatatypeRange] = self._build_ranges(ranges)
        super().__init__(**options)

    @staticmethod
    def _build_ranges(ranges: Sequence[Any]) -> List[DatatypeRange]:
        built: List[DatatypeRange] = []
        start = 0
        for kind, config in _range_pairs(ranges):
            args: Dict[str, Any] = {}
            if isinstance(config, dict):
                config = normalise_options(config)
                length = config.get("length")
                args = normalise_options(config.get("args") or {})
            else:
                length = config
            if isinstance(length, bool) or not isinstance(length, int) or length < 1:
                raise BadArgumentsError(
                    f"Length of a mixed range must be a positive integer, got {length!r}"
                )
            datatype = kind if isinstance(kind, Datatype) else create(kind, **args)
            if isinstance(datatype, Mixed):
                raise BadArgumentsError("Mixed datatypes cannot be nested")
            built.append(DatatypeRange(start, start + length, datatype))
            start += length
        return built

    def get_ranges(self) -> List[DatatypeRange]:
        return list(self._ranges)

    def get_length(self) -> int:
        return self._ranges[-1].stop

    def get_datatype_at(self, column: int) -> Datatype:
        """Datatype governing 0-based ``column``."""
        if column < 0:
            raise OutOfBoundsError(f"Column {column} is negative")
        for datatype_range in self._ranges:
            if column in datatype_range:
                return datatype_range.datatype
        return self._ranges[-1].datatype

    def get_subset(self, columns: Sequence[int]) -> "Mixed":
        """
        Copy governing only ``columns`` (0-based), laid out from column 0 in the given order.

        Neighbouring columns with the same sub-datatype share one range.
        """
        subset = self.clone()
        ranges: List[DatatypeRange] = []
        for column in columns:
            datatype = subset.get_datatype_at(column)
            if ranges and ranges[-1].datatype is datatype:
                last = ranges.pop()
                ranges.append(DatatypeRange(last.start, last.stop + 1, datatype))
            else:
                start = ranges[-1].stop if ranges else 0
                ranges.append(DatatypeRange(start, start + 1, datatype))
        if ranges:
            subset._ranges = ranges
        return subset

    def get_type(self) -> str:
        parts: List[str] = []
        first = self._ranges[0]
        start, current = first.start, first.datatype
        stop = first.stop
        for datatype_range in self._ranges[1:]:
            if datatype_range.datatype is not current:
                parts.append(f"{current.get_type()}:{start + 1}-{stop}")
                start, current = datatype_range.start, datatype_range.datatype
            stop = datatype_range.stop
        parts.append(f"{current.get_type()}:{start + 1}-{stop}")
        return f"mixed({', '.join(parts)})"

    def set_lookup(self, lookup: Any) -> Self:
        logger.warning("Mixed data has one alphabet per range; set lookups on the range datatypes")
        return self

    def get_lookup(self) -> None:
        return None

    def _has_continuous(self) -> bool:
        return any(isinstance(r.datatype, Continuous) for r in self._ranges)

    def split(self, string: str) -> List[str]:
        if self._has_continuous():
            return string.split()
        return super().split(string)

    def join(self, symbols: Sequence[Any]) -> str:
        if self._has_continuous():
            return " ".join(str(symbol) for symbol in symbols)
        return super().join(symbols)

    def is_valid(self, data: Any, start: Optional[int] = None) -> bool:
        """
        Validate each column against the datatype of its range.

        The first character sits at column ``start`` (0-based); when omitted it is taken
        from a datum's 1-based ``get_position()``, else column 0.
        """
        if start is None:
            start = data.get_position() - 1 if hasattr(data, "get_position") else 0
        for column, symbol in enumerate(self._chars_of(data), start):
            if symbol == self._missing or symbol == self._gap:
                continue
            datatype = self.get_datatype_at(column)
            if not datatype._is_valid_symbol(symbol):
                logger.debug(
                    f"{symbol!r} at column {column} is not a valid {datatype.get_type()} symbol"
                )
                return False
        return True

    def is_same(self, other: Any) -> bool:
        if other is self:
            return True
        if not isinstance(other, Mixed):
            return False
        if other.get_id() == self.get_id():
            return True
        if self._missing != other.get_missing() or self._gap != other.get_gap():
            return False
        theirs = other.get_ranges()
        if len(theirs) != len(self._ranges):
            return False
        return all(
            (a.start, a.stop) == (b.start, b.stop) and a.datatype.is_same(b.datatype)
            for a, b in zip(self._ranges, theirs)
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["ranges"] = [
            {"start": r.start, "stop": r.stop, "datatype": r.datatype.get_type()}
            for r in self._ranges
        ]
        return data


# ===================================================================
# 6. FACTORY
# ===================================================================

DATATYPES: Dict[str, type] = {
    cls.KIND: cls
    for cls in (Dna, Rna, Nucleotide, Protein, Standard, Restriction, Custom, Continuous, Mixed)
}


def create(kind: Union[str, Datatype], *args: Any, **options: Any) -> Datatype:
    """
    Build a datatype from its kind name (case-insensitive).

    ``create("dna")``, ``create("custom", lookup={...})``,
    ``create("mixed", ["dna", 4, "standard", 3])``.
    """
    if isinstance(kind, Datatype):
        return kind
    key = str(kind).lower()
    cls = DATATYPES.get(key)
    if cls is None:
        raise BadFormatError(
            f"Unknown datatype {kind!r}; expected one of {sorted(DATATYPES)}"
        )
    if key == "nucleotide":
        logger.warning("'nucleotide' accepts both T and U; use 'dna' or 'rna' to be strict")
    if cls is Mixed:
        ranges = args[0] if len(args) == 1 else list(args) or None
        return Mixed(ranges, **options)
    if args:
        raise BadArgumentsError(f"{cls.__name__} takes options only, got {args!r}")
    return cls(**options)
