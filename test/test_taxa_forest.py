import logging

import pytest

from biophylo.exceptions import AbstractMethodError, TypeMismatchError
from biophylo.forest.forest import Forest
from biophylo.forest.node import Node
from biophylo.matrices.datum import Datum
from biophylo.matrices.matrix import Matrix
from biophylo.parser.newick_parser import parse_newick
from biophylo.taxa.linker import TaxaLinker
from biophylo.taxa.taxa import Taxa
from biophylo.taxa.taxon import Taxon


def build_forest(*newicks):
    forest = Forest(name="forest")
    for newick in newicks:
        forest.insert(*parse_newick(newick))
    return forest


def build_taxa(*names):
    taxa = Taxa()
    for name in names:
        taxa.insert(Taxon(name=name))
    return taxa


def test_taxon_links_to_nodes_and_data():
    taxon = Taxon(name="A")
    node = Node(name="A")
    datum = Datum(name="A", type="dna", char="ACGT")
    taxon.set_nodes(node)
    taxon.set_data(datum)
    assert taxon.get_nodes() == [node]
    assert taxon.get_data() == [datum]
    taxon.unset_node(node)
    taxon.unset_datum(datum)
    assert taxon.get_nodes() == [] and taxon.get_data() == []
    assert node.get_taxon() is None
    with pytest.raises(TypeMismatchError):
        taxon.set_nodes(datum)
    with pytest.raises(TypeMismatchError):
        taxon.set_data(node)
    with pytest.raises(TypeMismatchError):
        node.set_taxon(build_taxa("A"))


def test_taxa_block_links():
    taxa = build_taxa("A", "B")
    forest, matrix = Forest(), Matrix()
    taxa.set_forest(forest)
    taxa.set_matrix(matrix)
    assert taxa.get_forests() == [forest]
    assert taxa.get_matrices() == [matrix]
    assert forest.get_taxa() is taxa
    taxa.unset_forest(forest)
    assert forest.get_taxa() is None
    taxa.unset_matrix(matrix)
    assert taxa.get_matrices() == []
    with pytest.raises(TypeMismatchError):
        taxa.set_tree(forest)
    with pytest.raises(TypeMismatchError):
        forest.set_taxa(Taxon())


def test_taxa_queries_and_merge():
    first, second = build_taxa("A", "B"), build_taxa("B", "C")
    assert first.get_ntax() == 2
    merged = first.merge_by_name(second)
    assert merged.get_taxon_names() == ["A", "B", "C"]
    assert merged[0] is not first[0], "Merge should copy taxa"
    with pytest.raises(TypeMismatchError):
        first.merge_by_name(Forest())


def test_taxa_to_nexus():
    assert build_taxa("A", "B").to_nexus() == (
        "BEGIN TAXA;\n"
        "\tDIMENSIONS NTAX=2;\n"
        "\tTAXLABELS\n"
        "\t\tA\n"
        "\t\tB\n"
        "\t;\n"
        "END;\n"
    )


def test_node_taxon_must_come_from_the_tree_block():
    forest = build_forest("(A,B);")
    taxa = forest.make_taxa()
    tree = forest[0]
    assert tree.get_taxa() is taxa
    other = build_taxa("A")
    with pytest.raises(TypeMismatchError):
        tree.get_by_name("A").set_taxon(other[0])
    tree.get_by_name("A").set_taxon(taxa[1])
    assert tree.get_by_name("A").get_taxon() is taxa[1]


def test_make_taxa_links_every_tip():
    forest = build_forest("((A,B),C);", "((A,C),D);")
    taxa = forest.make_taxa()
    assert taxa.get_name() == "Untitled_taxa_block"
    assert taxa.get_taxon_names() == ["A", "B", "C", "D"]
    assert forest.get_taxa() is taxa
    assert taxa.get_forests() == [forest]
    assert len(taxa.get_trees()) == 2
    for tree in forest:
        for tip in tree.get_terminals():
            assert tip.get_taxon() is taxa.get_by_name(tip.get_name())
    assert len(taxa.get_by_name("A").get_nodes()) == 2


def test_forest_insert_links_new_trees_to_its_block():
    forest = build_forest("(A,B);")
    taxa = forest.make_taxa()
    forest.insert(*parse_newick("(B,A);"))
    assert forest.get_ntrees() == 2
    assert forest[1].get_taxa() is taxa


def test_forest_check_taxa_drops_foreign_links(caplog):
    forest = build_forest("(A,B);")
    stray = Taxon(name="Z")
    forest[0].get_by_name("B").set_taxon(stray)
    with caplog.at_level(logging.WARNING):
        forest.set_taxa(build_taxa("A", "B"))
    assert forest[0].get_by_name("B").get_taxon() is None
    assert any("'Z'" in record.getMessage() for record in caplog.records)


def test_forest_cross_reference_type_check():
    with pytest.raises(TypeMismatchError):
        build_forest("(A,B);").cross_reference(Taxon())


def test_forest_output():
    forest = build_forest("((A,B),C);", "(A,(B,C));")
    assert forest.to_newick() == "((A,B),C);\n(A,(B,C));\n"
    forest[1].set_name("second")
    assert forest.to_nexus() == (
        "BEGIN TREES;\n"
        "\tTREE tree_1 = [&R] ((A,B),C);\n"
        "\tTREE second = [&R] (A,(B,C));\n"
        "END;\n"
    )


def test_taxa_linker_check_taxa_is_abstract():
    class Holder(TaxaLinker):
        pass

    with pytest.raises(AbstractMethodError):
        Holder().check_taxa()
