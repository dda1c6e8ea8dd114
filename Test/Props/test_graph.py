import unittest

import numpy as np
import scipy.sparse as sp

from crnkit.core import Reaction, ReactionNetwork
from crnkit.exceptions import InvalidIncidenceError
from crnkit.Props.deficiency import subnetworks
from crnkit.Props.graph import (
    incidence_graph,
    incidence_graph_from_matrix,
    is_reversible,
    is_terminal,
    is_weakly_reversible,
    linkage_classes,
    strong_linkage_classes,
    terminal_linkage_classes,
)
from crnkit.Props.matrices import incidence_matrix


def build_sir() -> ReactionNetwork:
    return ReactionNetwork(
        reactions=[
            Reaction({"S": 1, "I": 1}, {"I": 2}, rate="b"),
            Reaction({"I": 1}, {"R": 1}, rate="n"),
        ],
        name="SIR",
    )


def build_cycle() -> ReactionNetwork:
    """A --> B --> C --> A."""
    return ReactionNetwork(
        reactions=[
            Reaction({"A": 1}, {"B": 1}, rate="k1"),
            Reaction({"B": 1}, {"C": 1}, rate="k2"),
            Reaction({"C": 1}, {"A": 1}, rate="k3"),
        ]
    )


def with_reverses(rn: ReactionNetwork) -> ReactionNetwork:
    reactions = []
    for j, rx in enumerate(rn.reactions):
        reactions.append(rx)
        reactions.append(rx.reversed(rate=f"kr{j}"))
    return ReactionNetwork(reactions=reactions, species=rn.species)


class TestIncidenceGraph(unittest.TestCase):
    def test_sir_graph(self) -> None:
        G = incidence_graph(build_sir())
        self.assertEqual(sorted(G.nodes()), [0, 1, 2, 3])
        self.assertEqual(
            sorted(G.edges(keys=True, data="reaction")), [(0, 1, 0, 0), (2, 3, 1, 1)]
        )

    def test_from_dense_and_sparse_matrix(self) -> None:
        B = incidence_matrix(build_cycle())
        G_dense = incidence_graph_from_matrix(B)
        G_sparse = incidence_graph_from_matrix(sp.csr_matrix(B))
        self.assertEqual(sorted(G_dense.edges(keys=True)), sorted(G_sparse.edges(keys=True)))

    def test_parallel_edges_are_kept(self) -> None:
        rn = ReactionNetwork(
            reactions=[
                Reaction({"A": 1}, {"B": 1}, rate="k1"),
                Reaction({"A": 1}, {"B": 1}, rate="k2"),
            ]
        )
        self.assertEqual(incidence_graph(rn).number_of_edges(), 2)

    def test_invalid_matrices(self) -> None:
        with self.assertRaises(InvalidIncidenceError):
            incidence_graph_from_matrix(np.array([[-1], [-1]]))
        with self.assertRaises(InvalidIncidenceError):
            incidence_graph_from_matrix(np.array([[-1], [2]]))
        with self.assertRaises(InvalidIncidenceError):
            incidence_graph_from_matrix(sp.csr_matrix(np.array([[-1], [0]])))


class TestLinkageClasses(unittest.TestCase):
    def test_sir_classes(self) -> None:
        rn = build_sir()
        self.assertEqual(linkage_classes(rn), [[0, 1], [2, 3]])
        self.assertEqual(strong_linkage_classes(rn), [[0], [1], [2], [3]])
        self.assertEqual(terminal_linkage_classes(rn), [[1], [3]])

    def test_cycle_classes(self) -> None:
        rn = build_cycle()
        self.assertEqual(linkage_classes(rn), [[0, 1, 2]])
        self.assertEqual(strong_linkage_classes(rn), [[0, 1, 2]])
        self.assertEqual(terminal_linkage_classes(rn), [[0, 1, 2]])

    def test_is_terminal(self) -> None:
        rn = build_sir()
        self.assertFalse(is_terminal([0], rn))
        self.assertTrue(is_terminal([1], rn))
        self.assertTrue(is_terminal([0, 1], rn))


class TestReversibility(unittest.TestCase):
    def test_sir_is_not_reversible(self) -> None:
        rn = build_sir()
        self.assertFalse(is_reversible(rn))
        self.assertFalse(is_weakly_reversible(rn))

    def test_adding_reverses_makes_reversible(self) -> None:
        rn = with_reverses(build_sir())
        self.assertTrue(is_reversible(rn))
        self.assertTrue(is_weakly_reversible(rn))

    def test_cycle_is_weakly_but_not_fully_reversible(self) -> None:
        rn = build_cycle()
        self.assertFalse(is_reversible(rn))
        self.assertTrue(is_weakly_reversible(rn))

    def test_parallel_reactions_do_not_matter(self) -> None:
        rn = ReactionNetwork(
            reactions=[
                Reaction({"A": 1}, {"B": 1}, rate="k1"),
                Reaction({"A": 1}, {"B": 1}, rate="k2"),
                Reaction({"B": 1}, {"A": 1}, rate="k3"),
            ]
        )
        self.assertTrue(is_reversible(rn))

    def test_weak_reversibility_from_subnetworks(self) -> None:
        for rn, expected in ((build_sir(), False), (build_cycle(), True)):
            with self.subTest(expected=expected):
                self.assertEqual(
                    is_weakly_reversible(rn, subnetworks(rn)), expected
                )


if __name__ == "__main__":
    unittest.main()
