"""Deficiency, linkage-class decomposition and Feinberg-style structural checks."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Sequence, Tuple

from ..cache import DEFICIENCY, SUBNETWORKS, get_network_properties
from ..core import Reaction, ReactionNetwork, Species, require_flat
from .complexes import reaction_complex_map
from .conservation import stoichiometric_rank
from .graph import incidence_graph, is_reversible, is_weakly_reversible, linkage_classes

LOGGER = logging.getLogger(__name__)


def deficiency(network: ReactionNetwork) -> int:
    """
    Deficiency :math:`\\delta = n - \\ell - s` of a reaction network, with
    ``n`` complexes, :math:`\\ell` linkage classes and stoichiometric rank
    ``s``.

    For ``S + I --> 2I, I --> R``: 4 complexes, 2 linkage classes, rank 2,
    so :math:`\\delta = 0`.
    """
    props = get_network_properties(network)

    def build() -> int:
        s = stoichiometric_rank(network)
        n = incidence_graph(network).number_of_nodes()
        ell = len(linkage_classes(network))
        return n - ell - s

    return props.get_or_compute(DEFICIENCY, build)


def subnetwork_mapping(
    linkage_class: Sequence[int], network: ReactionNetwork
) -> Tuple[List[Reaction], List[Species], List[str]]:
    """
    Reactions, non-constant species and parameters of one linkage class.

    :param linkage_class: Complex indices of the class.
    :param network: Owning network.
    :returns: ``(reactions, species, parameters)``, each in network order.
    """
    entries = list(reaction_complex_map(network).values())
    rx_ids = sorted({j for k in linkage_class for j, _ in entries[k]})
    reactions = [network.reactions[j] for j in rx_ids]

    used = {sp.name for rx in reactions for sp, _ in rx.substrates + rx.products}
    species = [sp for sp in network.species if sp.name in used and not sp.constant]

    rx_params = {p for rx in reactions for p in rx.rate_parameters}
    parameters = [p for p in network.parameters if p in rx_params]
    return reactions, species, parameters


def subnetworks(network: ReactionNetwork) -> List[ReactionNetwork]:
    """
    One independent network per linkage class, named ``"<name>_<i>"``.

    Constant species used by a class's reactions are declared on the
    subnetwork as well (they take no part in its complexes).
    """
    require_flat(network, "subnetworks")
    props = get_network_properties(network)

    def build() -> List[ReactionNetwork]:
        out: List[ReactionNetwork] = []
        for i, lc in enumerate(linkage_classes(network)):
            rxs, species, params = subnetwork_mapping(lc, network)
            used = {sp.name for rx in rxs for sp, _ in rx.substrates + rx.products}
            keep = {sp.name for sp in species} | {
                sp.name for sp in network.species if sp.constant and sp.name in used
            }
            out.append(
                ReactionNetwork(
                    reactions=rxs,
                    species=[sp for sp in network.species if sp.name in keep],
                    parameters=params,
                    name=f"{network.name}_{i + 1}",
                )
            )
        return out

    return props.get_or_compute(SUBNETWORKS, build)


def linkage_deficiencies(network: ReactionNetwork) -> List[int]:
    """
    Deficiency of every linkage class,
    :math:`\\delta_\\ell = n_\\ell - 1 - s_\\ell`.
    """
    lcs = linkage_classes(network)
    subnets = subnetworks(network)
    return [len(lc) - 1 - stoichiometric_rank(sub) for lc, sub in zip(lcs, subnets)]


def is_deficiency_zero_applicable(network: ReactionNetwork) -> bool:
    """
    Whether the structural hypotheses of the Deficiency Zero Theorem hold
    (weakly reversible and :math:`\\delta = 0`); if so, every mass-action
    system on the network is complex balanced.
    """
    return deficiency(network) == 0 and is_weakly_reversible(network)


@dataclass
class DeficiencySummary:
    """Container for computed deficiency summary quantities.

    :param n_species: number of species.
    :param n_reactions: number of reactions.
    :param n_complexes: number of distinct complexes.
    :param n_linkage_classes: number of linkage classes.
    :param stoich_rank: stoichiometric rank.
    :param deficiency: network deficiency.
    :param linkage_deficiencies: per linkage class deficiencies.
    :param reversible: whether every reaction has its reverse.
    :param weakly_reversible: whether every linkage class is strongly connected.
    """

    n_species: int
    n_reactions: int
    n_complexes: int
    n_linkage_classes: int
    stoich_rank: int
    deficiency: int
    linkage_deficiencies: List[int]
    reversible: bool
    weakly_reversible: bool

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def summarize_deficiency(network: ReactionNetwork) -> DeficiencySummary:
    """Compute every deficiency-related quantity of ``network`` at once."""
    summary = DeficiencySummary(
        n_species=network.n_species,
        n_reactions=network.n_reactions,
        n_complexes=incidence_graph(network).number_of_nodes(),
        n_linkage_classes=len(linkage_classes(network)),
        stoich_rank=stoichiometric_rank(network),
        deficiency=deficiency(network),
        linkage_deficiencies=linkage_deficiencies(network),
        reversible=is_reversible(network),
        weakly_reversible=is_weakly_reversible(network),
    )
    if sum(summary.linkage_deficiencies) != summary.deficiency:
        LOGGER.debug(
            "%r: linkage deficiencies sum to %d, network deficiency is %d",
            network.name,
            sum(summary.linkage_deficiencies),
            summary.deficiency,
        )
    return summary
