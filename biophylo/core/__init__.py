from biophylo.core.entity import Entity, normalise_options
from biophylo.core.listable import Listable, ListableElement
from biophylo.core.mediator import TaxaMediator, get_mediator, reset_mediator
from biophylo.core.registry import IdentityRegistry, get_registry, reset_registry

__all__ = [
    "Entity",
    "IdentityRegistry",
    "Listable",
    "ListableElement",
    "TaxaMediator",
    "get_mediator",
    "get_registry",
    "normalise_options",
    "reset_mediator",
    "reset_registry",
]
