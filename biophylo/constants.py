"""Kind tags, symbol tables and small predicates shared by the whole package."""

import re
from enum import IntEnum
from typing import Any


class ObjectType(IntEnum):
    """Type constant carried by each entity kind.

    Containers accept an element when ``element._container == container._type``.
    """

    NONE = 1
    NODE = 2
    TREE = 3
    FOREST = 4
    TAXON = 5
    TAXA = 6
    DATUM = 7
    MATRIX = 8


# Characters that would break Newick/Nexus tokenisation when used in names
NAME_PUNCTUATION = re.compile(r"[;,:()]")

_NUMBER = re.compile(
    r"^\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?\s*$|^\s*[-+]?(?:inf|nan)\s*$",
    re.IGNORECASE,
)


def looks_like_number(value: Any) -> bool:
    """True for ints/floats (not bools) and strings that spell a decimal number."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if hasattr(value, "__float__") and not isinstance(value, (str, bytes)):
        return True
    if isinstance(value, str):
        return bool(_NUMBER.match(value))
    return False


def to_number(value: Any) -> Any:
    """Return ints and floats unchanged; numeric strings become int or float."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        return float(text)
