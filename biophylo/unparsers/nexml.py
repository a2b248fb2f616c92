"""
NeXML writer.

The document holds one ``otus`` element for the taxa block, then one ``characters``
element per linked matrix and one ``trees`` element per linked forest (trees linked
outside any forest share one more). Objects other than a taxa block are written through
the taxa block they link to (a forest without one gets a block made from its tip names).
"""

import logging
import xml.etree.ElementTree as ET
from typing import Any, Optional

from biophylo.constants import ObjectType
from biophylo.exceptions import TypeMismatchError

logger = logging.getLogger(__name__)

NEXML_NS = "http://www.nexml.org/1.0"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
GENERATOR = "biophylo.unparsers.nexml"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def _xml_id(entity: Any) -> str:
    return f"{entity._type.name.lower()}{entity.get_id()}"


def _labelled(parent: Optional[ET.Element], tag: str, entity: Any, **attrs: str) -> ET.Element:
    attrib = {"id": _xml_id(entity)}
    if entity.get_name() is not None:
        attrib["label"] = entity.get_name()
    attrib.update(attrs)
    if parent is None:
        return ET.Element(tag, attrib)
    return ET.SubElement(parent, tag, attrib)


def _taxa_of(phylo: Any) -> Any:
    kind = getattr(phylo, "_type", None)
    if kind == ObjectType.TAXA:
        return phylo
    if kind in (ObjectType.FOREST, ObjectType.MATRIX, ObjectType.TREE):
        taxa = phylo.get_taxa()
        if taxa is not None:
            return taxa
        if kind == ObjectType.FOREST:
            return phylo.make_taxa()
    raise TypeMismatchError(f"{phylo!r} is not a taxa block and doesn't link to one")


def otus_element(taxa: Any) -> ET.Element:
    otus = _labelled(None, "otus", taxa)
    for taxon in taxa:
        _labelled(otus, "otu", taxon)
    return otus


def characters_element(matrix: Any, taxa: Any) -> ET.Element:
    cells = "Continuous" if matrix.get_type() == "continuous" else "Standard"
    characters = _labelled(
        None, "characters", matrix, otus=_xml_id(taxa), **{"xsi:type": f"nex:{cells}Cells"}
    )
    block = ET.SubElement(characters, "matrix")
    for datum in matrix:
        attrs = {}
        taxon = datum.get_taxon()
        if taxon is not None:
            attrs["otu"] = _xml_id(taxon)
        row = _labelled(block, "row", datum, **attrs)
        ET.SubElement(row, "seq").text = datum.get_char_string()
    return characters


def tree_element(parent: ET.Element, tree: Any) -> ET.Element:
    element = _labelled(parent, "tree", tree, **{"xsi:type": "nex:FloatTree"})
    root = tree.get_root()
    if root is None:
        return element
    nodes = list(root.traverse())
    for node in nodes:
        attrs = {}
        taxon = node.get_taxon()
        if taxon is not None:
            attrs["otu"] = _xml_id(taxon)
        if node is root:
            attrs["root"] = "true"
        _labelled(element, "node", node, **attrs)
    for node in nodes:
        length = node.get_branch_length()
        parent_node = node.get_parent()
        if parent_node is None:
            if length is not None:
                ET.SubElement(
                    element,
                    "rootedge",
                    {"id": f"edge{node.get_id()}", "target": _xml_id(node), "length": str(length)},
                )
            continue
        attrs = {"id": f"edge{node.get_id()}", "source": _xml_id(parent_node), "target": _xml_id(node)}
        if length is not None:
            attrs["length"] = str(length)
        ET.SubElement(element, "edge", attrs)
    return element


def trees_element(forest: Any, taxa: Any) -> ET.Element:
    trees = _labelled(None, "trees", forest, otus=_xml_id(taxa))
    for tree in forest:
        tree_element(trees, tree)
    return trees


def unparse_nexml(phylo: Any, **options: Any) -> str:
    taxa = _taxa_of(phylo)
    root = ET.Element(
        "nex:nexml",
        {
            "xmlns:nex": NEXML_NS,
            "version": "1.0",
            "generator": GENERATOR,
            "xmlns:xsi": XSI_NS,
            "xsi:schemaLocation": f"{NEXML_NS} {NEXML_NS}/nexml.xsd",
        },
    )
    root.append(otus_element(taxa))
    for matrix in taxa.get_matrices():
        root.append(characters_element(matrix, taxa))
    for forest in taxa.get_forests():
        root.append(trees_element(forest, taxa))
    loose = [tree for tree in taxa.get_trees() if tree.get_container() is None]
    if loose:
        trees = ET.SubElement(root, "trees", {"id": f"trees{taxa.get_id()}", "otus": _xml_id(taxa)})
        for tree in loose:
            tree_element(trees, tree)
    if options.get("indent", True):
        ET.indent(root)
    logger.debug(f"Wrote NeXML for {taxa!r}")
    return XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"
