import unittest

from crnkit import NetworkReport, analyze_network
from crnkit.cache import INCIDENCE_MATRIX, get_network_properties
from crnkit.core import Reaction, ReactionNetwork


def build_sir() -> ReactionNetwork:
    return ReactionNetwork(
        reactions=[
            Reaction({"S": 1, "I": 1}, {"I": 2}, rate="b"),
            Reaction({"I": 1}, {"R": 1}, rate="n"),
        ],
        name="SIR",
    )


def build_pair() -> ReactionNetwork:
    return ReactionNetwork(
        reactions=[
            Reaction({"A": 1}, {"B": 1}, rate="k1"),
            Reaction({"B": 1}, {"A": 1}, rate="k2"),
        ],
        name="pair",
    )


class TestAnalyzeNetwork(unittest.TestCase):
    def test_sir_report(self) -> None:
        report = analyze_network(build_sir())
        self.assertIsInstance(report, NetworkReport)
        self.assertEqual(report.n_species, 3)
        self.assertEqual(report.n_reactions, 2)
        self.assertEqual(report.n_complexes, 4)
        self.assertEqual(report.stoich_rank, 2)
        self.assertEqual(report.deficiency, 0)
        self.assertEqual(report.linkage_classes, [[0, 1], [2, 3]])
        self.assertEqual(report.terminal_linkage_classes, [[1], [3]])
        self.assertEqual(report.linkage_deficiencies, [0, 0])
        self.assertEqual(report.n_conservation_laws, 1)
        self.assertFalse(report.reversible)
        self.assertFalse(report.weakly_reversible)
        self.assertFalse(report.deficiency_zero_applicable)

    def test_summary_text(self) -> None:
        text = analyze_network(build_pair()).summary
        self.assertIn("Reaction network 'pair'", text)
        self.assertIn("deficiency δ = 0", text)
        self.assertIn("Deficiency Zero Theorem (Feinberg, 1977) applies", text)

        text = analyze_network(build_sir()).summary
        self.assertIn("structural hypotheses not satisfied", text)

    def test_sparse_report_matches_dense(self) -> None:
        rn = build_sir()
        sparse_report = analyze_network(rn, sparse=True)
        self.assertTrue(get_network_properties(rn).contains(INCIDENCE_MATRIX, sparse=True))
        dense_report = analyze_network(build_sir())
        self.assertEqual(sparse_report.as_dict(), dense_report.as_dict())


if __name__ == "__main__":
    unittest.main()
