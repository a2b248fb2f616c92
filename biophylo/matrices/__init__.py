from biophylo.matrices.datatype import (
    Continuous,
    Custom,
    Datatype,
    DatatypeRange,
    Dna,
    Mixed,
    Nucleotide,
    Protein,
    Restriction,
    Rna,
    Standard,
    create,
)
from biophylo.matrices.datum import Datum
from biophylo.matrices.matrix import Matrix
from biophylo.matrices.typesafedata import TypeSafeData

__all__ = [
    "Continuous",
    "Custom",
    "Datatype",
    "DatatypeRange",
    "Datum",
    "Dna",
    "Matrix",
    "Mixed",
    "Nucleotide",
    "Protein",
    "Restriction",
    "Rna",
    "Standard",
    "TypeSafeData",
    "create",
]
