"""
Identity registry: process-wide unique ids and a non-owning id -> entity table.

Ids come from a monotonically increasing counter and are never handed out twice during
the life of the process, not even after :func:`reset_registry`. The table holds weak
references only; an entity that has been garbage collected or disposed is simply absent.
"""

from __future__ import annotations

import itertools
import logging
import weakref
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)

# Shared by every registry instance so that a reset can never reissue an id
_ID_COUNTER = itertools.count(1)


class IdentityRegistry:
    """Weak lookup table from integer id to live entity."""

    def __init__(self) -> None:
        self._objects: "weakref.WeakValueDictionary[int, Any]" = (
            weakref.WeakValueDictionary()
        )

    def issue_id(self) -> int:
        new_id = next(_ID_COUNTER)
        logger.debug(f"Issued id {new_id}")
        return new_id

    def register(self, entity_id: int, entity: Any) -> None:
        """Store a non-owning reference to ``entity`` under ``entity_id``."""
        self._objects[entity_id] = entity

    def lookup(self, entity_id: int) -> Optional[Any]:
        """Return the live entity for ``entity_id`` or None; absent ids are not an error."""
        return self._objects.get(entity_id)

    def unregister(self, entity_id: int) -> None:
        self._objects.pop(entity_id, None)
        logger.debug(f"Unregistered id {entity_id}")

    def clear(self) -> None:
        self._objects.clear()

    def ids(self) -> Iterator[int]:
        return iter(list(self._objects.keys()))

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._objects

    def __len__(self) -> int:
        return len(self._objects)


_registry: Optional[IdentityRegistry] = None


def get_registry() -> IdentityRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _registry
    if _registry is None:
        _registry = IdentityRegistry()
    return _registry


def reset_registry() -> IdentityRegistry:
    """Replace the process-wide registry with an empty one (the id counter keeps running)."""
    global _registry
    _registry = IdentityRegistry()
    logger.debug("Identity registry reset")
    return _registry
