"""Traits for objects that link to a taxon (nodes, data) or a taxa block (forests, trees, matrices)."""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Iterable, Optional, Tuple

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

from biophylo.constants import ObjectType
from biophylo.core.mediator import get_mediator
from biophylo.exceptions import AbstractMethodError, TypeMismatchError

logger = logging.getLogger(__name__)


class TaxonLinker:
    ACCESSORS: ClassVar[Tuple[str, ...]] = ("get_taxon",)

    def set_taxon(self, taxon: Optional[Any]) -> Self:
        """Link to ``taxon`` (None unlinks). The taxon must belong to the container's taxa block."""
        if taxon is None:
            return self.unset_taxon()
        if getattr(taxon, "_type", None) != ObjectType.TAXON:
            raise TypeMismatchError(f"{taxon!r} is not a taxon")
        container = self.get_container() if hasattr(self, "get_container") else None
        taxa = container.get_taxa() if container is not None and hasattr(container, "get_taxa") else None
        taxon_block = taxon.get_container()
        if taxa is not None and taxon_block is not None and taxon_block is not taxa:
            raise TypeMismatchError(
                f"Attempt to link {self!r} to taxon {taxon.get_name()!r} from a different taxa block"
            )
        get_mediator().set_link(one=taxon, many=self)
        return self

    def get_taxon(self) -> Optional[Any]:
        return get_mediator().get_link(self)

    def unset_taxon(self) -> Self:
        get_mediator().remove_link(many=self)
        return self


class TaxaLinker:
    ACCESSORS: ClassVar[Tuple[str, ...]] = ("get_taxa",)

    def set_taxa(self, taxa: Optional[Any]) -> Self:
        """Link to a taxa block (None unlinks) and reconcile element links with it."""
        if taxa is None:
            return self.unset_taxa()
        if getattr(taxa, "_type", None) != ObjectType.TAXA:
            raise TypeMismatchError(f"{taxa!r} is not a taxa block")
        get_mediator().set_link(one=taxa, many=self)
        self.check_taxa()
        return self

    def get_taxa(self) -> Optional[Any]:
        return get_mediator().get_link(self)

    def unset_taxa(self) -> Self:
        get_mediator().remove_link(many=self)
        return self

    def check_taxa(self) -> Self:
        """Make element links consistent with the linked taxa block."""
        raise AbstractMethodError(f"{type(self).__name__} does not implement check_taxa()")

    def _reconcile_taxon_links(self, elements: Iterable[Any]) -> None:
        # Keep links into the block, follow names into it, drop the rest
        taxa = self.get_taxa()
        if taxa is None:
            return
        for element in elements:
            taxon = element.get_taxon()
            if taxon is None or taxa.contains(taxon):
                continue
            replacement = taxa.get_by_name(taxon.get_name())
            if replacement is not None:
                get_mediator().set_link(one=replacement, many=element)
            else:
                logger.warning(
                    f"Taxon {taxon.get_name()!r} of {element!r} is not in {taxa!r}; unlinking"
                )
                element.unset_taxon()
