import unittest

from crnkit.core import Reaction, ReactionNetwork, Species, require_flat
from crnkit.exceptions import CRNError, UnsupportedSubsystemError
from crnkit.Props.complexes import reaction_complex_map


def build_sir() -> ReactionNetwork:
    """S + I --> 2I (b), I --> R (n)."""
    return ReactionNetwork(
        reactions=[
            Reaction({"S": 1, "I": 1}, {"I": 2}, rate="b"),
            Reaction({"I": 1}, {"R": 1}, rate="n"),
        ],
        name="SIR",
    )


class TestSpecies(unittest.TestCase):
    def test_defaults(self) -> None:
        sp = Species("A")
        self.assertFalse(sp.constant)
        self.assertEqual(str(sp), "A")
        self.assertEqual(sp, Species("A"))
        self.assertNotEqual(sp, Species("A", constant=True))


class TestReaction(unittest.TestCase):
    def test_sides_are_normalized(self) -> None:
        rx = Reaction([("A", 1), ("A", 2), "B"], {"C": 1})
        self.assertEqual(rx.substrates, ((Species("A"), 3), (Species("B"), 1)))
        self.assertEqual(rx.products, ((Species("C"), 1),))

    def test_empty_side(self) -> None:
        rx = Reaction(None, {"A": 1}, rate="k")
        self.assertEqual(rx.substrates, ())
        self.assertEqual(rx.species_names, ["A"])

    def test_invalid_coefficients(self) -> None:
        with self.assertRaises(ValueError):
            Reaction({"A": 0}, {"B": 1})
        with self.assertRaises(ValueError):
            Reaction({"A": -1}, {"B": 1})
        with self.assertRaises(ValueError):
            Reaction({"A": 1.5}, {"B": 1})

    def test_rate_parameters(self) -> None:
        self.assertEqual(Reaction({"A": 1}, {"B": 1}, rate="k").rate_parameters, ("k",))
        self.assertEqual(Reaction({"A": 1}, {"B": 1}, rate=2.0).rate_parameters, ())
        rx = Reaction({"A": 1}, {"B": 1}, rate=object(), rate_parameters=["k1", "k2"])
        self.assertEqual(rx.rate_parameters, ("k1", "k2"))

    def test_net_stoichiometry(self) -> None:
        rx = Reaction({"A": 2, "B": 1}, {"A": 1, "C": 1})
        self.assertEqual(rx.net_stoichiometry(), {"A": -1, "B": -1, "C": 1})
        self.assertEqual(rx.net_stoichiometry(exclude=["B"]), {"A": -1, "C": 1})

    def test_reversed(self) -> None:
        rx = Reaction({"A": 1, "B": 1}, {"C": 1}, rate="kf")
        back = rx.reversed(rate="kb")
        self.assertEqual(back.substrates, rx.products)
        self.assertEqual(back.products, rx.substrates)
        self.assertEqual(back.rate_parameters, ("kb",))

    def test_repr(self) -> None:
        rx = Reaction({"S": 1, "I": 1}, {"I": 2}, rate="b")
        self.assertEqual(repr(rx), "'b', S + I --> 2I")
        self.assertIn("∅", repr(Reaction({"A": 1}, None, rate="d")))


class TestReactionNetwork(unittest.TestCase):
    def test_collects_species_and_parameters(self) -> None:
        rn = build_sir()
        self.assertEqual(rn.species_names, ["S", "I", "R"])
        self.assertEqual(rn.parameters, ("b", "n"))
        self.assertEqual(rn.species_index, {"S": 0, "I": 1, "R": 2})
        self.assertEqual((rn.n_species, rn.n_reactions, rn.n_parameters), (3, 2, 2))
        self.assertTrue(rn.is_flat)

    def test_explicit_species_order_and_constant_flags(self) -> None:
        rn = ReactionNetwork(
            reactions=[Reaction({"A": 1, "B": 1}, {"C": 1}, rate="k")],
            species=["C", Species("A", constant=True), "B"],
        )
        self.assertEqual(rn.species_names, ["C", "A", "B"])
        self.assertEqual(rn.constant_species, ["A"])

    def test_validation_errors(self) -> None:
        rx = Reaction({"A": 1}, {"B": 1}, rate="k")
        with self.assertRaises(ValueError):
            ReactionNetwork(reactions=[rx], species=["A"])
        with self.assertRaises(ValueError):
            ReactionNetwork(reactions=[rx], species=["A", "B", "A"])
        with self.assertRaises(ValueError):
            ReactionNetwork(reactions=[rx], parameters=["q"])
        with self.assertRaises(ValueError):
            ReactionNetwork(reactions=[rx], parameters=["k", "k"])
        with self.assertRaises(TypeError):
            ReactionNetwork(reactions=["A --> B"])

    def test_conflicting_constant_flags(self) -> None:
        with self.assertRaises(ValueError):
            ReactionNetwork(
                reactions=[
                    Reaction([Species("A", constant=True)], {"B": 1}),
                    Reaction({"A": 1}, {"B": 1}),
                ]
            )

    def test_from_reaction_dicts(self) -> None:
        rn = ReactionNetwork.from_reaction_dicts(
            ["S", "I", "R"],
            [({"S": 1, "I": 1}, {"I": 2}, "b"), ({"I": 1}, {"R": 1}, "n")],
            name="SIR",
        )
        self.assertEqual(rn.name, "SIR")
        self.assertEqual(rn.parameters, ("b", "n"))
        self.assertEqual(rn.reactions[0].products, ((Species("I"), 2),))

    def test_identity_semantics(self) -> None:
        a, b = build_sir(), build_sir()
        self.assertNotEqual(a, b)
        self.assertEqual(len({a, b, a}), 2)


class TestRequireFlat(unittest.TestCase):
    def test_composed_network_rejected(self) -> None:
        sub = build_sir()
        composed = ReactionNetwork(
            reactions=list(sub.reactions), name="outer", systems=(sub,)
        )
        self.assertFalse(composed.is_flat)
        with self.assertRaises(UnsupportedSubsystemError):
            require_flat(composed, "test")
        with self.assertRaises(CRNError):
            reaction_complex_map(composed)

    def test_flat_network_accepted(self) -> None:
        self.assertIsNone(require_flat(build_sir(), "test"))


if __name__ == "__main__":
    unittest.main()
