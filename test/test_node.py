import pytest

from biophylo.exceptions import (
    BadArgumentsError,
    InvalidNumberError,
    StructureError,
    TypeMismatchError,
)
from biophylo.forest.node import Node, add_lengths
from biophylo.forest.tree import Tree
from biophylo.parser.newick_parser import parse_newick
from biophylo.taxa.taxon import Taxon


def build_tree(newick):
    return parse_newick(newick)[0]


def by_name(tree, name):
    return tree.get_by_name(name)


def create_star(root_name, leaf_names):
    """
    Create a star-like subtree:
        Root
       / | \\
      L1 L2 L3 ...
    """
    root = Node(name=root_name)
    for leaf in leaf_names:
        root.set_child(Node(name=leaf))
    return root


def names(nodes):
    return [node.get_name() for node in nodes]


# ===================================================================
# Relations
# ===================================================================


def test_children_are_ordered():
    root = create_star("R", ["A", "B", "C"])
    assert names(root.get_children()) == ["A", "B", "C"]
    assert root.get_first_daughter().get_name() == "A"
    assert root.get_last_daughter().get_name() == "C"
    b = root.get_children()[1]
    assert b.get_next_sister().get_name() == "C"
    assert b.get_previous_sister().get_name() == "A"
    assert root.get_first_daughter().get_previous_sister() is None
    assert root.get_last_daughter().get_next_sister() is None
    assert names(b.get_sisters()) == ["A", "B", "C"]
    assert b.get_parent() is root
    assert b.parent is root
    assert names(root.children) == ["A", "B", "C"]


def test_insert_child_at_index():
    root = create_star("R", ["A", "C"])
    root.insert_child(1, Node(name="B"))
    root.insert_child(0, Node(name="first"))
    assert names(root.get_children()) == ["first", "A", "B", "C"]


def test_set_parent_moves_subtree():
    root = create_star("R", ["A", "B"])
    other = Node(name="X")
    a = root.get_first_daughter()
    a.set_child(Node(name="A1"))
    a.set_parent(other)
    assert names(root.get_children()) == ["B"]
    assert other.get_first_daughter() is a
    assert names(a.get_children()) == ["A1"]


def test_set_child_rejects_non_nodes():
    with pytest.raises(TypeMismatchError):
        Node().set_child(Taxon())
    with pytest.raises(TypeMismatchError):
        Node().set_parent(Taxon())


def test_cycles_are_refused():
    a, b, c = Node(name="a"), Node(name="b"), Node(name="c")
    a.set_child(b)
    b.set_child(c)
    with pytest.raises(StructureError):
        c.set_child(a)
    with pytest.raises(StructureError):
        a.set_parent(a)
    with pytest.raises(StructureError):
        c.insert_child(0, a)
    assert a.get_parent() is None, "A refused mutation changed the tree"
    assert names(a.get_descendants()) == ["b", "c"]


def test_detaching_inside_a_tree_is_refused():
    tree = build_tree("((A,B)C,D)E;")
    with pytest.raises(StructureError):
        by_name(tree, "C").set_parent(None)
    loose = create_star("R", ["A"])
    leaf = loose.get_first_daughter()
    leaf.set_parent(None)
    assert leaf.get_parent() is None
    assert loose.is_terminal()


def test_attaching_to_a_tree_node_joins_the_tree():
    tree = build_tree("(A,B)R;")
    subtree = create_star("X", ["X1", "X2"])
    by_name(tree, "A").set_child(subtree)
    assert subtree.get_tree() is tree
    assert tree.contains(by_name(tree, "X1"))
    assert tree.calc_number_of_nodes() == 6


def test_moving_a_subtree_to_another_tree():
    source = build_tree("((A,B)C,D)R;")
    target = build_tree("(E,F)S;")
    c, a = by_name(source, "C"), by_name(source, "A")
    c.set_parent(target.get_root())

    assert names(source) == ["R", "D"]
    assert source.calc_number_of_terminals() == 1
    assert source.to_newick() == "(D)R;"
    assert c.get_tree() is target
    assert a.get_tree() is target
    assert names(target.get_terminals()) == ["E", "F", "A", "B"]


def test_moving_a_subtree_to_a_detached_node():
    tree = build_tree("((A,B)C,D)R;")
    c = by_name(tree, "C")
    holder = Node(name="X")
    c.set_parent(holder)

    assert names(tree.get_terminals()) == ["D"]
    assert c.get_tree() is None
    assert by_name(tree, "A") is None
    assert names(holder.get_terminals()) == ["A", "B"]


def test_insert_child_from_another_tree():
    source = build_tree("((A,B)C,D)R;")
    target = build_tree("(E,F)S;")
    c = by_name(source, "C")
    target.get_root().insert_child(0, c)

    assert names(source) == ["R", "D"]
    assert target.to_newick() == "((A,B)C,E,F)S;"
    assert all(node.get_tree() is target for node in c.traverse())


def test_moving_within_a_tree_keeps_membership():
    tree = build_tree("((A,B)C,D)R;")
    by_name(tree, "A").set_parent(by_name(tree, "D"))
    assert tree.calc_number_of_nodes() == 5
    assert by_name(tree, "A").get_tree() is tree


def test_ancestors_root_and_descendants():
    tree = build_tree("((A,B)C,(D,E)F)G;")
    a = by_name(tree, "A")
    assert names(a.get_ancestors()) == ["C", "G"]
    assert a.get_root().get_name() == "G"
    root = tree.get_root()
    assert names(root.get_descendants()) == ["C", "F", "A", "B", "D", "E"]
    assert names(root.traverse()) == ["G", "C", "A", "B", "F", "D", "E"]
    assert names(root.get_terminals()) == ["A", "B", "D", "E"]
    assert names(root.get_internals()) == ["G", "C", "F"]
    assert names(a.get_terminals()) == ["A"], "A tip is its own terminal"
    assert names(root.leaves) == ["A", "B", "D", "E"]
    assert root.get_leftmost_terminal().get_name() == "A"
    assert root.get_rightmost_terminal().get_name() == "E"


def test_mrca():
    tree = build_tree("((A,B)C,(D,E)F)G;")
    a, b, d = by_name(tree, "A"), by_name(tree, "B"), by_name(tree, "D")
    assert a.get_mrca(b).get_name() == "C"
    assert a.get_mrca(d).get_name() == "G"
    assert a.get_mrca(by_name(tree, "C")).get_name() == "C"
    assert a.get_mrca(Node()) is None


def test_predicates():
    tree = build_tree("((A,B)C,(D,E)F)G;")
    a, b, c, d, e = (by_name(tree, name) for name in "ABCDE")
    g = tree.get_root()
    assert g.is_root() and not a.is_root()
    assert a.is_terminal() and not a.is_internal()
    assert c.is_internal()
    assert a.is_descendant_of(g) and not g.is_descendant_of(a)
    assert g.is_ancestor_of(a) and not a.is_ancestor_of(a)
    assert a.is_sister_of(b) and not a.is_sister_of(a) and not a.is_sister_of(d)
    assert d.is_outgroup_of([a, b])
    assert not d.is_outgroup_of([a, e])


def test_branch_lengths():
    node = Node(branch_length="0.25")
    assert node.get_branch_length() == 0.25
    node.set_branch_length(None)
    assert node.get_branch_length() is None
    with pytest.raises(InvalidNumberError):
        node.set_branch_length("long")
    assert add_lengths(None, None) is None
    assert add_lengths(1, None) == 1
    assert add_lengths(1, 2) == 3


def test_path_metrics():
    tree = build_tree("((A:1,B:2)C:3,D:4)E:0.5;")
    a, b, d = by_name(tree, "A"), by_name(tree, "B"), by_name(tree, "D")
    root = tree.get_root()
    assert a.calc_path_to_root() == 4.5
    assert a.calc_nodes_to_root() == 2
    assert root.calc_nodes_to_root() == 0
    assert root.calc_max_path_to_tips() == 5
    assert root.calc_min_path_to_tips() == 4
    assert root.calc_max_nodes_to_tips() == 2
    assert root.calc_min_nodes_to_tips() == 1
    assert a.calc_patristic_distance(b) == 3
    assert a.calc_patristic_distance(d) == 8
    assert a.calc_patristic_distance(a) == 0
    with pytest.raises(BadArgumentsError):
        a.calc_patristic_distance(Node())


def test_missing_tip_length_counts_as_zero():
    tree = build_tree("(A:1,(B:1,C:1):1):0;")
    root = tree.get_root()
    assert tree.calc_number_of_terminals() == 3
    assert root.calc_max_path_to_tips() == 2
    assert root.calc_min_path_to_tips() == 1, "The shortest path runs through A"

    by_name(tree, "A").set_branch_length(None)
    assert root.calc_min_path_to_tips() == 0
    assert root.calc_max_path_to_tips() == 2
    assert by_name(tree, "A").calc_path_to_root() == 0


def test_collapse_hands_daughters_to_parent():
    tree = build_tree("((A:1,B:2)C:3,D:4)E;")
    by_name(tree, "C").collapse()
    root = tree.get_root()
    assert names(root.get_children()) == ["A", "B", "D"]
    assert by_name(tree, "A").get_branch_length() == 4
    assert by_name(tree, "B").get_branch_length() == 5
    assert by_name(tree, "C") is None, "Collapsed node is still in the tree"
    with pytest.raises(StructureError):
        root.collapse()


def test_set_root_below():
    tree = build_tree("((A:1,B:2)C:3,D:4)E;")
    new_root = by_name(tree, "A").set_root_below()
    assert tree.get_root() is new_root
    assert tree.to_newick() == "(A:0.5,(B:2,D:7)C:0.5);"
    assert by_name(tree, "E") is None, "Unbranched old root should be spliced out"
    assert tree.calc_number_of_terminals() == 3


def test_set_root_below_on_root_or_only_child():
    tree = build_tree("((A,B)C)R;")
    root = tree.get_root()
    assert root.set_root_below() is root
    assert by_name(tree, "C").set_root_below() is root
    assert tree.to_newick() == "((A,B)C)R;"


def test_to_newick_options():
    tree = build_tree("((A:1,B:2)C:3,D:4)E:0.5;")
    root = tree.get_root()
    assert root.to_newick() == "((A:1,B:2)C:3,D:4)E:0.5;"
    assert root.to_newick(nodelabels=False) == "((A:1,B:2):3,D:4):0.5;"
    assert root.to_newick(blformat="%.2f") == "((A:1.00,B:2.00)C:3.00,D:4.00)E:0.50;"
    assert root.to_newick(translate={"A": 1}) == "((1:1,B:2)C:3,D:4)E:0.5;"
    by_name(tree, "A").set_generic("support", 90)
    assert by_name(tree, "C").to_newick(nhxkeys=["support"]) == "(A:1[&&NHX:support=90],B:2)C:3;"
    assert (
        by_name(tree, "A").to_newick(nhxkeys=["support"], nhxstyle="mesquite")
        == "A:1[%support=90];"
    )
    with pytest.raises(BadArgumentsError):
        root.to_newick(tipnames="label")
    with pytest.raises(BadArgumentsError):
        root.to_newick(nhxstyle="xml")


def test_to_newick_with_taxon_names():
    tree = build_tree("(a,b);")
    tip = by_name(tree, "a")
    tip.set_taxon(Taxon(name="Homo_sapiens"))
    assert tree.to_newick(tipnames="taxon") == "(Homo_sapiens,b);"


def test_clone_subtree_is_detached():
    tree = build_tree("((A,B)C,D)E;")
    c = by_name(tree, "C")
    copy = c.clone()
    assert copy.get_parent() is None
    assert copy.get_tree() is None
    assert copy.get_next_sister() is None, "Clone dragged along its sister"
    assert names(copy.get_children()) == ["A", "B"]
    assert all(child.get_parent() is copy for child in copy.get_children())
    assert names(c.get_children()) == ["A", "B"]
    assert c.get_parent() is tree.get_root()


def test_node_to_dict():
    tree = build_tree("(A:1,B)R;")
    data = tree.get_root().to_dict()
    assert data["name"] == "R"
    assert [child["name"] for child in data["children"]] == ["A", "B"]
    assert data["children"][0]["branch_length"] == 1
    assert "children" not in data["children"][1]


def test_node_is_in_its_tree_only():
    tree = build_tree("(A,B)R;")
    assert isinstance(tree, Tree)
    assert tree.contains(by_name(tree, "A"))
    assert not tree.contains(Node(name="A"))
