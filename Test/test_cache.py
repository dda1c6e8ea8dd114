import unittest

import numpy as np

from crnkit.cache import (
    CONSERVATION_DATA,
    CONSERVATION_MATRIX,
    DEFICIENCY,
    INCIDENCE_GRAPH,
    INCIDENCE_MATRIX,
    LINKAGE_CLASSES,
    NetworkProperties,
    clear_network_properties,
    get_network_properties,
)
from crnkit.core import Reaction, ReactionNetwork
from crnkit.Props.conservation import conservation_laws, conserved_equations
from crnkit.Props.deficiency import deficiency
from crnkit.Props.graph import incidence_graph, is_reversible, linkage_classes
from crnkit.Props.matrices import incidence_matrix


def build_reversible_pair() -> ReactionNetwork:
    return ReactionNetwork(
        reactions=[
            Reaction({"A": 1}, {"B": 1}, rate="k1"),
            Reaction({"B": 1}, {"A": 1}, rate="k2"),
        ]
    )


class TestNetworkProperties(unittest.TestCase):
    def setUp(self) -> None:
        self.props = NetworkProperties()
        self.calls = 0

    def _factory(self) -> int:
        self.calls += 1
        return 42

    def test_get_or_compute_runs_factory_once(self) -> None:
        self.assertEqual(self.props.get_or_compute("x", self._factory), 42)
        self.assertEqual(self.props.get_or_compute("x", self._factory), 42)
        self.assertEqual(self.calls, 1)
        self.assertEqual(self.props.compute_counts[("x", None)], 1)

    def test_sparse_and_dense_slots_are_distinct(self) -> None:
        self.props.get_or_compute("m", lambda: "dense", sparse=False)
        self.props.get_or_compute("m", lambda: "sparse", sparse=True)
        self.assertEqual(self.props.get("m", sparse=False), "dense")
        self.assertEqual(self.props.get("m", sparse=True), "sparse")
        self.assertFalse(self.props.contains("m"))
        self.assertEqual(len(self.props), 2)

    def test_set_and_contains(self) -> None:
        self.assertFalse(self.props.contains("y"))
        self.assertIsNone(self.props.get("y"))
        self.props.set("y", [1, 2])
        self.assertTrue(self.props.contains("y"))
        self.assertEqual(self.props.get("y"), [1, 2])

    def test_invalidate_drops_every_variant(self) -> None:
        self.props.get_or_compute("m", self._factory, sparse=False)
        self.props.get_or_compute("m", self._factory, sparse=True)
        self.props.get_or_compute("other", self._factory)
        self.props.invalidate("m")
        self.assertFalse(self.props.contains("m", sparse=False))
        self.assertFalse(self.props.contains("m", sparse=True))
        self.assertTrue(self.props.contains("other"))

        self.props.get_or_compute("m", self._factory, sparse=False)
        self.assertEqual(self.props.compute_counts[("m", False)], 2)

    def test_reset(self) -> None:
        self.props.get_or_compute("x", self._factory)
        self.props.reset()
        self.assertEqual(len(self.props), 0)
        self.assertIn("empty", repr(self.props))

    def test_repr_lists_slots(self) -> None:
        self.props.set("m", 1, sparse=True)
        self.props.set("g", 2)
        text = repr(self.props)
        self.assertIn("m[sparse]", text)
        self.assertIn("g", text)


class TestNetworkSideTable(unittest.TestCase):
    def test_same_properties_object_per_network(self) -> None:
        rn = build_reversible_pair()
        self.assertIs(get_network_properties(rn), get_network_properties(rn))
        self.assertIsNot(
            get_network_properties(rn), get_network_properties(build_reversible_pair())
        )

    def test_accessors_are_idempotent(self) -> None:
        rn = build_reversible_pair()
        B1 = incidence_matrix(rn)
        B2 = incidence_matrix(rn)
        self.assertIs(B1, B2)
        lc1 = linkage_classes(rn)
        lc2 = linkage_classes(rn)
        self.assertIs(lc1, lc2)

        props = get_network_properties(rn)
        self.assertEqual(props.compute_counts[(INCIDENCE_MATRIX, False)], 1)
        self.assertEqual(props.compute_counts[(LINKAGE_CLASSES, None)], 1)

    def test_graph_and_conservation_are_built_once(self) -> None:
        rn = build_reversible_pair()
        G1 = incidence_graph(rn)
        G2 = incidence_graph(rn)
        self.assertIs(G1, G2)
        N1 = conservation_laws(rn)
        N2 = conservation_laws(rn)
        self.assertIs(N1, N2)
        np.testing.assert_array_equal(N1, [[1, 1]])
        self.assertEqual(conserved_equations(rn), conserved_equations(rn))
        self.assertEqual(deficiency(rn), 0)
        self.assertEqual(deficiency(rn), 0)
        self.assertTrue(is_reversible(rn))
        self.assertTrue(is_reversible(rn))

        props = get_network_properties(rn)
        self.assertEqual(props.compute_counts[(INCIDENCE_GRAPH, None)], 1)
        self.assertEqual(props.compute_counts[(CONSERVATION_DATA, None)], 1)
        self.assertEqual(props.compute_counts[(CONSERVATION_MATRIX, None)], 1)
        self.assertEqual(props.compute_counts[(DEFICIENCY, None)], 1)

    def test_clear_forces_recomputation(self) -> None:
        rn = build_reversible_pair()
        B1 = incidence_matrix(rn)
        clear_network_properties(rn)
        self.assertEqual(len(get_network_properties(rn)), 0)
        B2 = incidence_matrix(rn)
        self.assertIsNot(B1, B2)
        np.testing.assert_array_equal(B1, B2)


if __name__ == "__main__":
    unittest.main()
