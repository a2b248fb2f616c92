"""
Trees: a Listable of nodes with whole-tree queries, statistics and transformations.

Inserting a node inserts its whole subtree. Insertion refuses a parentless node when the
tree already has a root that the node is not an ancestor of.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

try:
    from typing import Self
except ImportError:
    from typing_extensions import Self

import numpy as np

from biophylo.constants import ObjectType, looks_like_number, to_number
from biophylo.core.entity import Entity
from biophylo.core.listable import Listable, ListableElement
from biophylo.exceptions import (
    BadArgumentsError,
    InvalidNumberError,
    OutOfBoundsError,
    StructureError,
)
from biophylo.forest.node import Node, Number, add_lengths
from biophylo.taxa.linker import TaxaLinker

logger = logging.getLogger(__name__)


class Tree(TaxaLinker, ListableElement, Listable):
    """A rooted tree; its elements are the nodes."""

    _type = ObjectType.TREE
    ELEMENT = Node
    _container = ObjectType.FOREST

    ACCESSORS = (
        "get_root",
        "get_terminals",
        "get_internals",
        "calc_tree_length",
        "calc_tree_height",
        "calc_number_of_nodes",
        "calc_number_of_terminals",
        "calc_number_of_internals",
        "calc_imbalance",
        "calc_i2",
        "calc_resolution",
        "is_binary",
        "is_ultrametric",
    )

    # ===================================================================
    # 1. MEMBERSHIP
    # ===================================================================

    def contains(self, entity: Any) -> bool:
        return isinstance(entity, Node) and entity.get_container() is self

    def _adopt(self, node: Node) -> None:
        Listable.insert(self, node)

    def _discard(self, node: Node) -> None:
        Listable.delete(self, node)

    def insert(self, *nodes: Any) -> Self:
        """Insert nodes together with every descendant not yet in this tree."""
        for node in nodes:
            self._check_insertable(node)
            if node.get_parent() is None:
                root = self.get_root()
                if root is not None and root is not node and not node.is_ancestor_of(root):
                    StructureError.raise_second_root(node, self)
            for member in node.traverse():
                if not self.contains(member):
                    self._adopt(member)
        return self

    def delete(self, node: Any) -> Self:
        """
        Remove one node. Its daughters take its place under its parent; a root may only be
        removed when it has at most one daughter, which then becomes the root.
        """
        if not self.contains(node):
            raise BadArgumentsError(f"{node!r} is not in {self!r}")
        if node.get_parent() is not None:
            node.collapse()
            return self
        children = node.get_children()
        if len(children) > 1:
            StructureError.raise_second_root(children[1], self)
        for child in children:
            child._unlink()
        self._discard(node)
        return self

    def check_taxa(self) -> Self:
        self._reconcile_taxon_links(self)
        return self

    # ===================================================================
    # 2. QUERIES
    # ===================================================================

    def get_root(self) -> Optional[Node]:
        for node in self._entities:
            if node.get_parent() is None:
                return node
        return None

    def get_terminals(self) -> List[Node]:
        return [node for node in self._entities if node.is_terminal()]

    def get_internals(self) -> List[Node]:
        return [node for node in self._entities if node.is_internal()]

    def get_tallest_tip(self) -> Optional[Node]:
        tallest, height = None, None
        for tip in self.get_terminals():
            path = tip.calc_path_to_root()
            if height is None or path > height:
                tallest, height = tip, path
        return tallest

    def get_mrca(self, nodes: Sequence[Node]) -> Optional[Node]:
        if not nodes:
            return None
        mrca: Optional[Node] = nodes[0]
        for node in nodes[1:]:
            if mrca is None:
                break
            mrca = mrca.get_mrca(node)
        return mrca

    def is_binary(self) -> bool:
        return all(len(node.get_children()) == 2 for node in self.get_internals())

    def is_ultrametric(self, margin: float = 0.0) -> bool:
        """True if all root-to-tip paths agree within relative tolerance ``margin``."""
        paths = [tip.calc_path_to_root() for tip in self.get_terminals()]
        if not paths:
            return True
        return math.isclose(min(paths), max(paths), rel_tol=margin or 1e-9, abs_tol=1e-12)

    def is_monophyletic(self, nodes: Sequence[Node], outgroup: Node) -> bool:
        return outgroup.is_outgroup_of(nodes)

    def is_clade(self, tips: Sequence[Node]) -> bool:
        """True if ``tips`` are exactly the terminals below their common ancestor."""
        mrca = self.get_mrca(tips)
        if mrca is None:
            return False
        return {id(tip) for tip in mrca.get_terminals()} == {id(tip) for tip in tips}

    # ===================================================================
    # 3. STATISTICS
    # ===================================================================

    def calc_tree_length(self) -> Number:
        return sum(node.get_branch_length() or 0 for node in self._entities)

    def calc_tree_height(self) -> float:
        """Mean root-to-tip path length."""
        return self.calc_total_paths() / self.calc_number_of_terminals()

    def calc_number_of_nodes(self) -> int:
        return len(self._entities)

    def calc_number_of_terminals(self) -> int:
        return len(self.get_terminals())

    def calc_number_of_internals(self) -> int:
        return len(self.get_internals())

    def calc_total_paths(self) -> Number:
        return sum(tip.calc_path_to_root() for tip in self.get_terminals())

    def calc_redundancy(self) -> float:
        length = self.calc_tree_length()
        height = self.calc_tree_height()
        ntax = self.calc_number_of_terminals()
        return 1 - ((length - height) / ((height * ntax) - height))

    def _require_binary(self, statistic: str) -> None:
        if not self.is_binary():
            raise StructureError(f"{statistic} is only defined for binary trees")

    def _require_ultrametric(self, statistic: str) -> None:
        if not self.is_ultrametric(0.01):
            raise StructureError(f"{statistic} is only meaningful for ultrametric trees")

    def _daughter_tip_counts(self) -> Iterable[Tuple[int, int]]:
        for node in self.get_internals():
            first, last = node.get_first_daughter(), node.get_last_daughter()
            yield len(first.get_terminals()), len(last.get_terminals())

    def _max_colless(self) -> int:
        ntips = self.calc_number_of_terminals()
        return (ntips - 1) * (ntips - 2) // 2

    def calc_imbalance(self) -> float:
        """Colless' imbalance, normalised by its maximum for this number of tips."""
        self._require_binary("Colless' imbalance")
        total = sum(abs(left - right) for left, right in self._daughter_tip_counts())
        return total / self._max_colless()

    def calc_i2(self) -> float:
        self._require_binary("I2 imbalance")
        total = 0.0
        for left, right in self._daughter_tip_counts():
            if left + right - 2:
                total += abs(left - right) / abs(left + right - 2)
        return total / self._max_colless()

    def calc_gamma(self) -> float:
        """Pybus and Harvey's gamma statistic for an ultrametric binary tree."""
        self._require_binary("Gamma")
        self._require_ultrametric("Gamma")
        ntips = self.calc_number_of_terminals()
        if ntips < 3:
            raise StructureError("Gamma needs at least three tips")
        root_path = self.get_root().calc_path_to_root()
        times = sorted(node.calc_path_to_root() - root_path for node in self.get_internals())
        times.append(max(tip.calc_path_to_root() for tip in self.get_terminals()) - root_path)
        intervals = np.diff(np.asarray(times, dtype=float))
        lineages = np.arange(2, ntips + 1)
        weighted = lineages * intervals
        total = weighted.sum()
        mean_cumulative = np.cumsum(weighted)[:-1].sum() / (ntips - 2)
        return float((mean_cumulative - total / 2) / (total * math.sqrt(1 / (12 * (ntips - 2)))))

    def calc_fiala_stemminess(self) -> float:
        internals = [node for node in self.get_internals() if node.get_parent() is not None]
        total = 0.0
        for node in internals:
            stem = node.get_branch_length() or 0
            subtree = stem + sum(n.get_branch_length() or 0 for n in node.get_descendants())
            if subtree:
                total += stem / subtree
        return total / (self.calc_number_of_internals() - 1)

    def calc_rohlf_stemminess(self) -> float:
        self._require_ultrametric("Rohlf stemminess")
        total = 0.0
        for node in self.get_internals():
            parent = node.get_parent()
            if parent is None:
                continue
            height = parent.calc_min_path_to_tips()
            if height:
                total += (node.get_branch_length() or 0) / height
        if not total:
            raise StructureError("Rohlf stemminess is undefined when all branches have length zero")
        return total / (self.calc_number_of_internals() - 1)

    def calc_resolution(self) -> float:
        return self.calc_number_of_internals() / (self.calc_number_of_terminals() - 1)

    def calc_branching_times(self) -> List[Tuple[Node, Number]]:
        """Internal nodes with their distance from the root, earliest first."""
        self._require_ultrametric("Branching times")
        times = [(node, node.calc_path_to_root()) for node in self.get_internals()]
        return sorted(times, key=lambda pair: pair[1])

    def calc_ltt(self) -> List[Tuple[Node, Number, int]]:
        """Lineage-through-time table: (node, branching time, lineages after it)."""
        lineages = 1
        table: List[Tuple[Node, Number, int]] = []
        for node, time in self.calc_branching_times():
            lineages += len(node.get_children()) - 1
            table.append((node, time, lineages))
        return table

    def _clades(self) -> Set[FrozenSet[Optional[str]]]:
        return {
            frozenset(tip.get_name() for tip in node.get_terminals())
            for node in self.get_internals()
        }

    def calc_symdiff(self, other: "Tree") -> int:
        """Number of clades (by tip names) present in only one of the two trees."""
        return len(self._clades() ^ other._clades())

    def calc_fp(self) -> Dict[Optional[str], float]:
        """Fair proportion: each branch length shared equally among the tips below it."""
        below = {id(node): len(node.get_terminals()) for node in self._entities}
        scores: Dict[Optional[str], float] = {}
        for tip in self.get_terminals():
            score, node = 0.0, tip
            while node is not None:
                score += (node.get_branch_length() or 0) / below[id(node)]
                node = node.get_parent()
            scores[tip.get_name()] = score
        return scores

    def calc_es(self) -> Dict[Optional[str], float]:
        """Equal splits: branch lengths divided at every split on the way to the root."""
        scores: Dict[Optional[str], float] = {}
        for tip in self.get_terminals():
            score, divisor, node = 0.0, 1, tip
            while node is not None:
                divisor *= len(node.get_children()) or 1
                score += (node.get_branch_length() or 0) / divisor
                node = node.get_parent()
            scores[tip.get_name()] = score
        return scores

    def calc_pe(self) -> Dict[Optional[str], Optional[Number]]:
        """Pendant edge length of every tip."""
        return {tip.get_name(): tip.get_branch_length() for tip in self.get_terminals()}

    def calc_patristic_matrix(self) -> np.ndarray:
        """Tip-to-tip path lengths, rows and columns in ``get_terminals()`` order."""
        tips = self.get_terminals()
        matrix = np.zeros((len(tips), len(tips)), dtype=float)
        for i, first in enumerate(tips):
            for j in range(i + 1, len(tips)):
                matrix[i, j] = matrix[j, i] = first.calc_patristic_distance(tips[j])
        return matrix

    # ===================================================================
    # 4. TRANSFORMATIONS
    # ===================================================================

    def ultrametricize(self) -> Self:
        """Stretch tip branches so that every tip is as far from the root as the tallest one."""
        tips = self.get_terminals()
        tallest = max((tip.calc_path_to_root() for tip in tips), default=0)
        for tip in tips:
            tip.set_branch_length((tip.get_branch_length() or 0) + tallest - tip.calc_path_to_root())
        return self

    def scale(self, height: Any) -> Self:
        """Multiply all branch lengths so that the mean root-to-tip path equals ``height``."""
        if not looks_like_number(height):
            raise InvalidNumberError(f"Target height {height!r} is not a number")
        current = self.calc_tree_height()
        if not current:
            raise StructureError("Cannot scale a tree whose height is zero")
        factor = to_number(height) / current
        for node in self._entities:
            if node.get_branch_length():
                node.set_branch_length(node.get_branch_length() * factor)
        return self

    def negative_to_zero(self) -> Self:
        for node in self._entities:
            length = node.get_branch_length()
            if length is not None and length < 0:
                node.set_branch_length(0.0)
        return self

    def exponentiate(self, power: Any) -> Self:
        if not looks_like_number(power):
            raise InvalidNumberError(f"Power {power!r} is not a number")
        power = to_number(power)
        for node in self._entities:
            if node.get_branch_length() is not None:
                node.set_branch_length(node.get_branch_length() ** power)
        return self

    def log_transform(self, base: Any = math.e) -> Self:
        if not looks_like_number(base) or to_number(base) <= 0 or to_number(base) == 1:
            raise InvalidNumberError(f"Base {base!r} is not a valid logarithm base")
        base = to_number(base)
        for node in self._entities:
            length = node.get_branch_length()
            if length is None:
                continue
            if length <= 0:
                raise OutOfBoundsError(
                    f"Cannot log-transform branch length {length!r} of {node!r}"
                )
            node.set_branch_length(math.log(length) / math.log(base))
        return self

    def remove_unbranched_internals(self) -> Self:
        for node in list(self._entities):
            if len(node.get_children()) != 1:
                continue
            self.delete(node)
        return self

    def prune_tips(self, names: Iterable[str]) -> Self:
        """Remove the named tips; parents left with one daughter are spliced out."""
        for name in names:
            tip = next((n for n in self.get_terminals() if n.get_name() == name), None)
            if tip is None:
                if self.get_by_name(name) is not None:
                    raise BadArgumentsError(f"{name!r} is an internal node; only tips can be pruned")
                continue
            self._prune(tip)
        return self

    def _prune(self, tip: Node) -> None:
        parent = tip.get_parent()
        tip._unlink()
        self._discard(tip)
        while parent is not None:
            remaining = parent.get_children()
            grandparent = parent.get_parent()
            if not remaining:
                # the parent has become an empty tip: prune it as well
                parent._unlink()
                self._discard(parent)
                parent = grandparent
                continue
            if len(remaining) == 1:
                self.delete(parent)
            break

    def keep_tips(self, names: Iterable[str]) -> Self:
        keep = set(names)
        prune = [tip.get_name() for tip in self.get_terminals() if tip.get_name() not in keep]
        return self.prune_tips(prune)

    def resolve(self, seed: Optional[int] = None, rng: Optional[random.Random] = None) -> Self:
        """
        Break every polytomy into a random cascade of bifurcations.

        Two daughters are drawn at a time and joined under a new node with branch length 0,
        named after the polytomy plus ``r1``, ``r2``, ... The outcome only depends on
        ``seed`` (or the state of ``rng``).
        """
        rng = rng or random.Random(seed)
        for node in list(self._entities):
            counter = 1
            children = node.get_children()
            while len(children) > 2:
                first, second = sorted(rng.sample(range(len(children)), 2))
                joined = Node(name=f"{node.get_name() or ''}r{counter}", branch_length=0.0)
                counter += 1
                node.insert_child(first, joined)
                joined.set_child(children[first])
                joined.set_child(children[second])
                children = node.get_children()
            if counter > 1:
                logger.debug(f"Resolved node {node.get_id()} into {counter - 1} new nodes")
        return self

    # ===================================================================
    # 5. OUTPUT
    # ===================================================================

    def to_newick(self, **options: Any) -> str:
        root = self.get_root()
        if root is None:
            return ";"
        return root.to_newick(**options)

    def to_dict(self) -> Dict[str, Any]:
        data = Entity.to_dict(self)
        root = self.get_root()
        if root is not None:
            data["root"] = root.to_dict()
        return data
