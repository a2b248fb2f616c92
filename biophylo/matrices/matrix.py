"""
Character matrices: ordered rows of data sharing one datatype.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

import numpy as np
import pandas as pd

from biophylo.constants import ObjectType
from biophylo.core.entity import normalise_options
from biophylo.core.listable import Listable
from biophylo.exceptions import (
    BadFormatError,
    InvalidDataError,
    OutOfBoundsError,
    TypeMismatchError,
)
from biophylo.matrices.datatype import Continuous, Datatype, Mixed
from biophylo.matrices.datum import Datum
from biophylo.matrices.typesafedata import TypeSafeData, make_type_object
from biophylo.taxa.linker import TaxaLinker

logger = logging.getLogger(__name__)


class Matrix(TypeSafeData, TaxaLinker, Listable):
    """A character matrix; every row shares the matrix's datatype object."""

    _type = ObjectType.MATRIX
    ELEMENT = Datum

    ACCESSORS = ("get_ntax", "get_nchar", "get_charlabels")

    def __init__(self, **options: Any) -> None:
        options = normalise_options(options)
        kind = options.pop("type_object", None) or options.pop("type", None) or "standard"
        self._type_object = make_type_object(kind)
        self._charlabels: List[str] = []
        super().__init__(**options)

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------
    def insert(self, *data: Any) -> Self:
        """Append rows; each must be valid under the matrix datatype and then shares it."""
        for datum in data:
            self._check_insertable(datum)
            if not self._type_object.is_valid(datum):
                raise InvalidDataError(
                    f"Row {datum.get_label()!r} is not valid {self.get_type()} data"
                )
            datum._adopt_type_object(self._type_object)
            super().insert(datum)
        if self.get_taxa() is not None:
            self.check_taxa()
        return self

    def _adopt_type_object(self, type_object: Datatype) -> None:
        self._type_object = type_object
        for datum in self:
            datum._adopt_type_object(type_object)

    def validate(self, type_object: Optional[Datatype] = None) -> Self:
        for datum in self:
            datum.validate(type_object or self._type_object)
        return self

    def set_missing(self, missing: str) -> Self:
        if not isinstance(missing, str) or len(missing) != 1:
            raise BadFormatError(f"Missing symbol must be a single character, got {missing!r}")
        return super().set_missing(missing)

    def set_gap(self, gap: str) -> Self:
        if not isinstance(gap, str) or len(gap) != 1:
            raise BadFormatError(f"Gap symbol must be a single character, got {gap!r}")
        return super().set_gap(gap)

    # ------------------------------------------------------------------
    # Dimensions and labels
    # ------------------------------------------------------------------
    def get_ntax(self) -> int:
        return len(self)

    def get_nchar(self) -> int:
        return max((datum.get_position() - 1 + datum.get_length() for datum in self), default=0)

    def set_charlabels(self, labels: Sequence[str]) -> Self:
        if isinstance(labels, str):
            raise TypeMismatchError("Character labels must be a sequence of strings")
        self._charlabels = [str(label) for label in labels]
        return self

    def get_charlabels(self) -> List[str]:
        return list(self._charlabels)

    def get_row_labels(self) -> List[Optional[str]]:
        return [datum.get_label() for datum in self]

    # ------------------------------------------------------------------
    # Sub-matrices
    # ------------------------------------------------------------------
    def get_cols(self, indices: Iterable[int]) -> "Matrix":
        """
        New matrix holding the given 0-based character indices of every row, in that order.

        A mixed datatype is narrowed to the ranges of the selected columns. Raises
        OutOfBoundsError for an index outside any row.
        """
        columns = list(indices)
        for i in columns:
            if isinstance(i, bool) or not isinstance(i, (int, np.integer)):
                raise OutOfBoundsError(f"Column index must be an integer, got {i!r}")
        for datum in self:
            length = datum.get_length()
            for i in columns:
                if not 0 <= i < length:
                    raise OutOfBoundsError(
                        f"Column {i} is outside row {datum.get_label()!r} of length {length}"
                    )
        if isinstance(self._type_object, Mixed):
            offset = self._entities[0].get_position() - 1 if self._entities else 0
            type_object = self._type_object.get_subset([i + offset for i in columns])
        else:
            type_object = self._type_object.clone()
        subset = Matrix(name=self.get_name(), type_object=type_object)
        for datum in self:
            chars = datum.get_char()
            row = Datum(
                name=datum.get_name(),
                type_object=subset.get_type_object(),
                char=[chars[i] for i in columns],
            )
            taxon = datum.get_taxon()
            if taxon is not None:
                row.set_taxon(taxon)
            subset.insert(row)
        if self._charlabels:
            subset.set_charlabels(
                [self._charlabels[i] for i in columns if i < len(self._charlabels)]
            )
        taxa = self.get_taxa()
        if taxa is not None:
            subset.set_taxa(taxa)
        return subset

    def get_rows(self, names: Iterable[str]) -> "Matrix":
        """New matrix holding copies of the rows with the given labels."""
        wanted = set(names)
        subset = Matrix(name=self.get_name(), type_object=self._type_object.clone())
        for datum in self:
            if datum.get_label() in wanted:
                subset.insert(datum.clone())
        subset.set_charlabels(self._charlabels)
        taxa = self.get_taxa()
        if taxa is not None:
            subset.set_taxa(taxa)
        return subset

    def get_chars_for_taxon(self, taxon: Any) -> List[Datum]:
        return [datum for datum in self if datum.get_taxon() is taxon]

    # ------------------------------------------------------------------
    # Taxa
    # ------------------------------------------------------------------
    def check_taxa(self) -> Self:
        self._reconcile_taxon_links(self)
        return self

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def to_nexus(self) -> str:
        datatype = self.get_type().upper().replace(" ", "")
        fields = [f"DATATYPE={datatype}"]
        if self.get_missing() is not None:
            fields.append(f"MISSING={self.get_missing()}")
        if self.get_gap() is not None:
            fields.append(f"GAP={self.get_gap()}")
        lines = [
            "BEGIN DATA;",
            f"\tDIMENSIONS NTAX={self.get_ntax()} NCHAR={self.get_nchar()};",
            f"\tFORMAT {' '.join(fields)};",
        ]
        if self._charlabels:
            lines.append(f"\tCHARLABELS {' '.join(self._charlabels)};")
        lines.append("\tMATRIX")
        width = max((len(str(label)) for label in self.get_row_labels()), default=0)
        for datum in self:
            lines.append(f"\t\t{str(datum.get_label()).ljust(width)} {datum.get_char_string()}")
        lines.extend(["\t;", "END;"])
        return "\n".join(lines) + "\n"

    def to_array(self) -> np.ndarray:
        """Rows x columns array; float with NaN for missing continuous data, else symbols."""
        nrow, ncol = self.get_ntax(), self.get_nchar()
        missing = self.get_missing()
        if isinstance(self._type_object, Continuous):
            array = np.full((nrow, ncol), np.nan, dtype=float)
            for i, datum in enumerate(self):
                offset = datum.get_position() - 1
                for j, value in enumerate(datum.get_char()):
                    if value != missing:
                        array[i, offset + j] = float(value)
            return array
        array = np.full((nrow, ncol), missing, dtype=object)
        for i, datum in enumerate(self):
            offset = datum.get_position() - 1
            for j, symbol in enumerate(datum.get_char()):
                array[i, offset + j] = symbol
        return array

    def to_dataframe(self) -> pd.DataFrame:
        ncol = self.get_nchar()
        columns: List[Any] = (
            list(self._charlabels)
            if len(self._charlabels) == ncol
            else list(range(1, ncol + 1))
        )
        return pd.DataFrame(self.to_array(), index=self.get_row_labels(), columns=columns)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["datatype"] = self.get_type()
        if self._charlabels:
            data["charlabels"] = list(self._charlabels)
        return data
