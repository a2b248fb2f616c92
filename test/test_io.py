import io
import json
import xml.etree.ElementTree as ET

import pytest

from biophylo.exceptions import BadArgumentsError, BadFormatError, TypeMismatchError
from biophylo.forest.forest import Forest
from biophylo.io import parse, read_newick, unparse, write_json, write_newick
from biophylo.matrices.matrix import Matrix
from biophylo.parser.newick_parser import parse_newick
from biophylo.taxa.taxa import Taxa
from biophylo.taxa.taxon import Taxon
from biophylo.unparsers import unparse_json, unparse_mrp, unparse_pagel

NEWICK = "((A:1,B:2)X:1,C:3)R;"


def build_taxa(*names):
    taxa = Taxa()
    for name in names:
        taxa.insert(Taxon(name=name))
    return taxa


def mrp_rows(text):
    rows = {}
    for line in text.splitlines():
        if line.startswith(" " * 8):
            name, chars = line.split()
            rows[name] = chars
    return rows


# ===================================================================
# Reading
# ===================================================================


def test_parse_newick_string():
    forest = parse("newick", string="(A,B);\n((A,B),C);")
    assert isinstance(forest, Forest)
    assert forest.get_ntrees() == 2
    assert forest[1].to_newick() == "((A,B),C);"


def test_parse_newick_forest_options():
    forest = parse("newick", string="(A,B);", name="my_forest")
    assert forest.get_name() == "my_forest"


def test_parse_newick_file_path_and_handle(tmp_path):
    path = tmp_path / "trees.nwk"
    path.write_text(NEWICK + "\n")

    from_path = parse("newick", file=str(path))
    from_handle = parse("newick", file=io.StringIO(NEWICK))
    assert from_path[0].to_newick() == NEWICK
    assert from_handle[0].to_newick() == NEWICK
    assert read_newick(str(path))[0].to_newick() == NEWICK


def test_parse_format_name_is_case_insensitive():
    assert parse("Newick", string="(A,B);").get_ntrees() == 1


def test_parse_unknown_format():
    with pytest.raises(BadFormatError):
        parse("phylip", string="2 4")


def test_parse_needs_input():
    with pytest.raises(BadArgumentsError):
        parse("newick")


def test_parse_table_into_taxa_block():
    taxa = build_taxa("A")
    matrix = parse("table", string="A\tACGT\nB\tACGA\n", type="dna", taxa=taxa)
    assert isinstance(matrix, Matrix)
    assert matrix.get_type() == "dna"
    assert matrix.get_ntax() == 2
    assert matrix.get_nchar() == 4
    assert taxa.get_taxon_names() == ["A", "B"], "Missing row names should be added"
    assert matrix.get_taxa() is taxa
    assert [datum.get_taxon() for datum in matrix] == list(taxa)


def test_parse_table_with_field_separator():
    matrix = parse("table", string="A,0,1,1\nB,1,0,?\n", fieldsep=",")
    assert matrix.get_type() == "standard"
    assert matrix[0].get_char() == ["0", "1", "1"]
    assert matrix[1].get_char_string() == "10?"
    assert matrix.get_taxa() is None


def test_parse_table_rejects_foreign_taxa_argument():
    with pytest.raises(TypeMismatchError):
        parse("table", string="A\tACGT\n", type="dna", taxa=Forest())


def test_parse_taxlist():
    taxa = parse("taxlist", string="Homo sapiens\n\n  Pan troglodytes \n")
    assert isinstance(taxa, Taxa)
    assert taxa.get_taxon_names() == ["Homo sapiens", "Pan troglodytes"]


# ===================================================================
# Writing
# ===================================================================


def test_unparse_newick():
    forest = parse("newick", string="(A,B);((A,B),C);")
    assert unparse("newick", forest) == "(A,B);\n((A,B),C);\n"
    assert unparse("newick", forest[0]) == "(A,B);"
    assert unparse("newick", forest[1].get_root(), nodelabels=False) == "((A,B),C);"


def test_unparse_newick_rejects_taxa():
    with pytest.raises(TypeMismatchError):
        unparse("newick", build_taxa("A"))


def test_unparse_unknown_format():
    with pytest.raises(BadFormatError):
        unparse("svg", Forest())


def test_unparse_nexus_forest():
    forest = parse("newick", string="((A,B),C);")
    text = unparse("nexus", forest)
    assert text.startswith("#NEXUS\nBEGIN TAXA;\n\tDIMENSIONS NTAX=3;\n")
    assert text.endswith("BEGIN TREES;\n\tTREE tree_1 = [&R] ((A,B),C);\nEND;\n")


def test_unparse_nexus_taxa_with_matrix():
    taxa = build_taxa("A", "B")
    matrix = parse("table", string="A\tACGT\nB\tACGA\n", type="dna", taxa=taxa)
    text = unparse("nexus", taxa)
    assert text.index("BEGIN TAXA;") < text.index("BEGIN DATA;")
    assert "\t\tA ACGT\n" in text
    assert matrix.get_taxa() is taxa


def test_unparse_nexus_single_tree():
    tree = parse_newick("(A,B);")[0]
    assert unparse("nexus", tree) == "#NEXUS\nBEGIN TREES;\n\tTREE tree_1 = [&R] (A,B);\nEND;\n"


def test_unparse_mrp():
    forest = parse("newick", string="((A,B),C);\n((A,C),D);")
    text = unparse_mrp(forest)
    assert "DIMENSIONS NTAX=5 NCHAR=4;" in text
    assert mrp_rows(text) == {
        "mrp_outgroup": "0000",
        "A": "1111",
        "B": "11??",
        "C": "1011",
        "D": "??10",
    }


def test_unparse_mrp_needs_forest():
    with pytest.raises(TypeMismatchError):
        unparse_mrp(parse_newick("(A,B);")[0])


def test_unparse_pagel():
    tree = parse_newick(NEWICK)[0]
    lines = unparse("pagel", tree).splitlines()
    assert lines == [
        "3 0",
        "X,R,1.000000",
        "A,X,1.000000",
        "B,X,2.000000",
        "C,R,3.000000",
    ]


def test_unparse_pagel_resolves_a_copy():
    tree = parse_newick("(A,B,C,D)R;")[0]
    text = unparse_pagel(tree, seed=3)
    assert any(line.startswith("Rr1,") for line in text.splitlines()), text
    assert text.splitlines()[0] == "4 0"
    assert tree.to_newick() == "(A,B,C,D)R;", "The input tree should be left unchanged"


def test_unparse_table():
    matrix = parse("table", string="A\tACGT\nB\tACGA\n", type="dna")
    rows = [line.split() for line in unparse("table", matrix).splitlines()]
    assert rows == [["A", "A", "C", "G", "T"], ["B", "A", "C", "G", "A"]]


def test_unparse_nexml():
    forest = parse("newick", string="((A,B),C);")
    taxa = forest.make_taxa()
    matrix = parse("table", string="A\tACGT\nB\tACGA\nC\tACCA\n", type="dna", taxa=taxa)
    text = unparse("nexml", taxa)
    assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>\n')

    root = ET.fromstring(text.encode("utf-8"))
    assert root.tag == "{http://www.nexml.org/1.0}nexml"
    otus = root.findall("otus")
    assert len(otus) == 1
    assert [otu.get("label") for otu in otus[0].findall("otu")] == ["A", "B", "C"]

    characters = root.findall("characters")
    assert len(characters) == 1
    assert [seq.text for seq in characters[0].iter("seq")] == ["ACGT", "ACGA", "ACCA"]

    trees = root.findall("trees")
    assert len(trees) == 1
    nodes = trees[0].find("tree").findall("node")
    assert len(nodes) == 5
    assert sum(1 for node in nodes if node.get("root") == "true") == 1
    assert sum(1 for node in nodes if node.get("otu")) == 3
    assert len(trees[0].find("tree").findall("edge")) == 4
    assert matrix.get_ntax() == 3


def test_unparse_nexml_tree_outside_forest():
    taxa = build_taxa("A", "B")
    tree = parse_newick("(A:1,B:2):0.5;")[0]
    tree.cross_reference(taxa)
    root = ET.fromstring(unparse("nexml", tree, indent=False).encode("utf-8"))
    element = root.find("trees").find("tree")
    assert element is not None, "A tree outside any forest should still be written"
    assert element.find("rootedge").get("length") == "0.5"
    assert sorted(edge.get("length") for edge in element.findall("edge")) == ["1", "2"]


def test_unparse_json(tmp_path):
    tree = parse_newick("(A:1,B:2)R;")[0]
    data = json.loads(unparse_json(tree))
    assert data["type"] == "tree"
    assert data["root"]["name"] == "R"
    assert [child["branch_length"] for child in data["root"]["children"]] == [1, 2]

    path = tmp_path / "tree.json"
    write_json(tree, str(path), indent=2)
    assert json.loads(path.read_text()) == data


def test_write_newick(tmp_path):
    forest = parse("newick", string=NEWICK)
    path = tmp_path / "out.nwk"
    write_newick(forest, str(path))
    assert path.read_text() == NEWICK + "\n"
    assert read_newick(str(path))[0].to_newick() == NEWICK
