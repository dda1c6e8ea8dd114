"""Reaction complexes: canonical reaction sides and the complex -> reaction map."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from ..cache import COMPLEX_MAP, get_network_properties
from ..core import ReactionNetwork, Species, require_flat
from ..exceptions import EmptyNetworkError, InvalidIncidenceError

SUBSTRATE = -1
PRODUCT = 1


@dataclass(frozen=True)
class ReactionComplex:
    """
    Canonical form of one reaction side.

    ``elements`` is a tuple of ``(species_index, coefficient)`` pairs sorted by
    species index, with constant species removed. Complexes compare and hash
    by value; the empty complex is the zero (∅) state.

    :param elements: Sorted ``(species_index, coefficient)`` pairs.
    :type elements: Tuple[Tuple[int, int], ...]
    """

    elements: Tuple[Tuple[int, int], ...] = ()

    @property
    def species_ids(self) -> List[int]:
        return [i for i, _ in self.elements]

    @property
    def stoichiometry(self) -> List[int]:
        return [c for _, c in self.elements]

    @property
    def is_empty(self) -> bool:
        return not self.elements

    def to_dict(self) -> Dict[int, int]:
        return dict(self.elements)

    def label(self, species_names: Sequence[str]) -> str:
        """
        Human-readable form, e.g. ``"S + I"``, ``"2I"`` or ``"∅"``.

        :param species_names: Ordered species names of the owning network.
        """
        if not self.elements:
            return "∅"
        return " + ".join(
            f"{c}{species_names[i]}" if c != 1 else species_names[i]
            for i, c in self.elements
        )

    def __len__(self) -> int:
        return len(self.elements)

    def __iter__(self):
        return iter(self.elements)


def make_complex(ids: Iterable[int], stoich: Iterable[int]) -> ReactionComplex:
    """
    Build the canonical complex from parallel index/coefficient lists.

    Repeated indices are merged and the pairs sorted by species index, so the
    result is independent of input order.
    """
    merged: Dict[int, int] = {}
    for i, c in zip(ids, stoich):
        merged[int(i)] = merged.get(int(i), 0) + int(c)
    return ReactionComplex(tuple(sorted((i, c) for i, c in merged.items() if c)))


def filter_constant_species(
    side: Sequence[Tuple[Species, int]], network: ReactionNetwork
) -> Tuple[List[int], List[int]]:
    """
    Map a reaction side to species indices and coefficients, dropping
    constant species.

    :param side: ``((species, coeff), ...)`` as stored on a reaction.
    :param network: Owning network (authoritative for ``constant`` flags).
    :returns: ``(ids, stoich)``.
    """
    ids: List[int] = []
    stoich: List[int] = []
    for sp, coeff in side:
        idx = network.species_index[sp.name]
        if network.species[idx].constant:
            continue
        ids.append(idx)
        stoich.append(coeff)
    return ids, stoich


def _build_complex_map(
    network: ReactionNetwork,
) -> Dict[ReactionComplex, List[Tuple[int, int]]]:
    complex_map: Dict[ReactionComplex, List[Tuple[int, int]]] = {}
    for j, rx in enumerate(network.reactions):
        sub = make_complex(*filter_constant_species(rx.substrates, network))
        prod = make_complex(*filter_constant_species(rx.products, network))
        if sub == prod:
            # a column with -1 and +1 in the same cell cannot be represented
            raise InvalidIncidenceError(
                f"Reaction {j} ({rx!r}) has identical substrate and product complexes."
            )
        complex_map.setdefault(sub, []).append((j, SUBSTRATE))
        complex_map.setdefault(prod, []).append((j, PRODUCT))
    return complex_map


def reaction_complex_map(
    network: ReactionNetwork,
) -> Dict[ReactionComplex, List[Tuple[int, int]]]:
    """
    Map every reaction complex of ``network`` to the reactions it occurs in.

    Each complex maps to ``(reaction_index, role)`` pairs where role ``-1``
    marks a substrate and ``+1`` a product. Constant species are ignored, so
    with constant ``A`` the reaction ``A + B --> C`` has complexes ``B`` and
    ``C``, and ``A --> B`` is treated as ``∅ --> B``. Keys keep insertion
    order, which fixes the complex order of every derived matrix.

    :raises UnsupportedSubsystemError: for composed networks.
    :raises EmptyNetworkError: when the network has no reactions.
    :raises InvalidIncidenceError: when a reaction's two sides reduce to the
        same complex.
    """
    require_flat(network, "reaction_complex_map")
    if network.n_reactions == 0:
        raise EmptyNetworkError(
            "There must be at least one reaction to find reaction complexes."
        )
    props = get_network_properties(network)
    return props.get_or_compute(COMPLEX_MAP, lambda: _build_complex_map(network))


def complex_labels(network: ReactionNetwork) -> List[str]:
    """Readable labels of the complexes, in matrix order."""
    names = network.species_names
    return [rc.label(names) for rc in reaction_complex_map(network)]
