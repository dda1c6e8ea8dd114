from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from .core import ReactionNetwork
from .Props.conservation import conservation_laws, stoichiometric_rank
from .Props.deficiency import (
    deficiency,
    is_deficiency_zero_applicable,
    linkage_deficiencies,
)
from .Props.graph import (
    is_reversible,
    is_weakly_reversible,
    linkage_classes,
    strong_linkage_classes,
    terminal_linkage_classes,
)
from .Props.matrices import reaction_complexes

LOGGER = logging.getLogger(__name__)


@dataclass
class NetworkReport:
    """
    Aggregated structural analysis of one reaction network.

    Includes:

    - Counts of species, reactions and complexes.
    - Stoichiometric rank, deficiency and the per-linkage-class deficiencies.
    - Linkage, strong linkage and terminal linkage classes.
    - Reversibility flags and the Deficiency Zero Theorem verdict.
    - The number of independent conservation laws.
    """

    name: str
    n_species: int
    n_reactions: int
    n_complexes: int
    stoich_rank: int
    deficiency: int
    linkage_classes: List[List[int]] = field(default_factory=list)
    strong_linkage_classes: List[List[int]] = field(default_factory=list)
    terminal_linkage_classes: List[List[int]] = field(default_factory=list)
    linkage_deficiencies: List[int] = field(default_factory=list)
    reversible: bool = False
    weakly_reversible: bool = False
    n_conservation_laws: int = 0
    deficiency_zero_applicable: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def summary(self) -> str:
        lines: List[str] = [
            f"Reaction network {self.name!r}: "
            f"{self.n_species} species, {self.n_reactions} reactions.",
            f"  Stoichiometric rank: s = {self.stoich_rank}, "
            f"deficiency δ = {self.deficiency}.",
            f"  Complexes: {self.n_complexes}; "
            f"linkage classes: {len(self.linkage_classes)}; "
            f"terminal linkage classes: {len(self.terminal_linkage_classes)}.",
            f"  Reversible: {self.reversible}; "
            f"weakly reversible: {self.weakly_reversible}.",
            f"  Linkage-class deficiencies δ_ℓ: {self.linkage_deficiencies} "
            f"(sum = {sum(self.linkage_deficiencies)}).",
            f"  Conservation laws: {self.n_conservation_laws}.",
        ]
        if self.deficiency_zero_applicable:
            lines.append(
                "Deficiency Zero Theorem (Feinberg, 1977) applies: every "
                "mass-action system on this network is complex balanced."
            )
        else:
            lines.append("Deficiency Zero Theorem: structural hypotheses not satisfied.")
        return "\n".join(lines)


def analyze_network(network: ReactionNetwork, *, sparse: bool = False) -> NetworkReport:
    """
    Compute every structural property of ``network`` and collect them.

    All intermediate results land in the network's property cache, so later
    calls to the individual functions are free.

    :param network: Flat reaction network with at least one reaction.
    :param sparse: Build the incidence matrix in sparse form first.
    :returns: Aggregated report.

    .. code-block:: python

        report = analyze_network(rn)
        print(report.summary)
    """
    complexes, _ = reaction_complexes(network, sparse=sparse)
    report = NetworkReport(
        name=network.name,
        n_species=network.n_species,
        n_reactions=network.n_reactions,
        n_complexes=len(complexes),
        stoich_rank=stoichiometric_rank(network),
        deficiency=deficiency(network),
        linkage_classes=linkage_classes(network),
        strong_linkage_classes=strong_linkage_classes(network),
        terminal_linkage_classes=terminal_linkage_classes(network),
        linkage_deficiencies=linkage_deficiencies(network),
        reversible=is_reversible(network),
        weakly_reversible=is_weakly_reversible(network),
        n_conservation_laws=int(conservation_laws(network).shape[0]),
        deficiency_zero_applicable=is_deficiency_zero_applicable(network),
    )
    LOGGER.debug("analysed %r: deficiency %d", network.name, report.deficiency)
    return report
