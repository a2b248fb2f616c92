import pytest

from biophylo.exceptions import (
    BadArgumentsError,
    OutOfBoundsError,
    TypeMismatchError,
    UnknownOperationError,
)
from biophylo.forest.node import Node
from biophylo.matrices.datum import Datum
from biophylo.matrices.matrix import Matrix
from biophylo.taxa.taxa import Taxa
from biophylo.taxa.taxon import Taxon


def build_taxa(*names):
    taxa = Taxa(name="block")
    for name in names:
        taxa.insert(Taxon(name=name))
    return taxa


def test_insert_keeps_order_and_sets_container():
    taxa = build_taxa("A", "B", "C")
    assert taxa.get_taxon_names() == ["A", "B", "C"]
    assert len(taxa) == 3
    assert all(taxon.get_container() is taxa for taxon in taxa)


def test_insert_wrong_kind():
    with pytest.raises(TypeMismatchError):
        Taxa().insert(Node())


def test_insert_at_index_and_bounds():
    taxa = build_taxa("A", "C")
    taxa.insert_at_index(Taxon(name="B"), 1)
    assert taxa.get_taxon_names() == ["A", "B", "C"]
    with pytest.raises(OutOfBoundsError):
        taxa.insert_at_index(Taxon(name="Z"), 10)


def test_delete_and_clear():
    taxa = build_taxa("A", "B")
    b = taxa.get_by_name("B")
    taxa.delete(b)
    assert taxa.get_taxon_names() == ["A"]
    assert b.get_container() is None
    with pytest.raises(BadArgumentsError):
        taxa.delete(b)
    taxa.clear()
    assert len(taxa) == 0


def test_index_access():
    taxa = build_taxa("A", "B")
    assert taxa.get_by_index(1).get_name() == "B"
    assert taxa[-1].get_name() == "B"
    assert taxa.get_index_of(taxa[0]) == 0
    assert taxa.get_index_of(Taxon()) is None
    assert taxa.last_index() == 1
    with pytest.raises(OutOfBoundsError):
        taxa.get_by_index(5)


def test_cursor_iteration():
    taxa = build_taxa("A", "B", "C")
    assert taxa.first().get_name() == "A"
    assert taxa.next().get_name() == "B"
    assert taxa.current().get_name() == "B"
    assert taxa.current_index() == 1
    assert taxa.previous().get_name() == "A"
    assert taxa.last().get_name() == "C"
    assert taxa.next() is None, "Cursor should run off the end"
    assert taxa.current_index() == 0


def test_empty_listable():
    taxa = Taxa()
    assert taxa.first() is None
    assert taxa.last() is None
    assert taxa.current() is None
    assert bool(taxa) is True, "Empty containers are still truthy objects"
    assert list(taxa) == []


def test_contains_is_identity_based():
    taxa = build_taxa("A")
    other = Taxon(name="A")
    assert taxa[0] in taxa
    assert other not in taxa


def test_get_by_value():
    taxa = build_taxa("A", "B", "C", "D")
    for taxon, score in zip(taxa, [1, 5, 10, None]):
        taxon.set_score(score)
    assert [t.get_name() for t in taxa.get_by_value("get_score", "gt", 4)] == ["B", "C"]
    assert [t.get_name() for t in taxa.get_by_value("get_score", "le", 5)] == ["A", "B"]
    assert [t.get_name() for t in taxa.get_by_value("get_score", "eq", 10)] == ["C"]
    with pytest.raises(BadArgumentsError):
        taxa.get_by_value("get_score", "ne", 1)


def test_get_by_regex():
    taxa = build_taxa("Homo_sapiens", "Homo_erectus", "Pan_paniscus")
    found = taxa.get_by_regex("get_name", r"^Homo")
    assert [t.get_name() for t in found] == ["Homo_sapiens", "Homo_erectus"]


@pytest.mark.parametrize("container", [Taxa, Matrix], ids=["taxa", "matrix"])
def test_unknown_accessor_on_empty_container(container):
    empty = container()
    with pytest.raises(UnknownOperationError):
        empty.get_by_value("get_nothing", "gt", 1)
    with pytest.raises(UnknownOperationError):
        empty.get_by_regex("get_nothing", "x")
    assert empty.get_by_value("get_name", "eq", "A") == []


def test_visit():
    taxa = build_taxa("A", "B")
    seen = []
    taxa.visit(lambda taxon: seen.append(taxon.get_name()))
    assert seen == ["A", "B"]


def test_cross_reference_links_by_name():
    taxa = build_taxa("A", "B")
    matrix = Matrix(type="dna")
    for name in ["A", "B", "C"]:
        matrix.insert(Datum(name=name, type="dna", char="ACGT"))
    matrix.cross_reference(taxa)
    assert matrix.get_taxa() is taxa
    assert matrix[0].get_taxon() is taxa[0]
    assert matrix[1].get_taxon() is taxa[1]
    assert matrix[2].get_taxon() is None


def test_cross_reference_needs_taxa_block():
    with pytest.raises(TypeMismatchError):
        Matrix().cross_reference(Taxon())
    with pytest.raises(TypeMismatchError):
        build_taxa("X").cross_reference(build_taxa("A"))


def test_to_dict_lists_elements():
    data = build_taxa("A", "B").to_dict()
    assert data["type"] == "taxa"
    assert [entity["name"] for entity in data["entities"]] == ["A", "B"]
