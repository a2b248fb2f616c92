from biophylo.taxa.linker import TaxaLinker, TaxonLinker
from biophylo.taxa.taxa import Taxa
from biophylo.taxa.taxon import Taxon

__all__ = ["Taxa", "Taxon", "TaxaLinker", "TaxonLinker"]
