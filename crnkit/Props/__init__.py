"""
Structural properties of reaction networks.

Submodules
----------
- :mod:`~crnkit.Props.complexes` -- reaction complexes and the complex map
- :mod:`~crnkit.Props.matrices` -- incidence and stoichiometry matrices
- :mod:`~crnkit.Props.graph` -- incidence graph, linkage classes, reversibility
- :mod:`~crnkit.Props.deficiency` -- deficiency and linkage-class subnetworks
- :mod:`~crnkit.Props.conservation` -- conservation laws
- :mod:`~crnkit.Props.balance` -- complex balance (Matrix-Tree theorem)
"""

from __future__ import annotations

from typing import List

from .balance import (
    complex_weights,
    is_complex_balanced,
    kinetic_matrix,
    matrix_tree,
    rate_matrix,
    reaction_rates,
)
from .complexes import ReactionComplex, complex_labels, make_complex, reaction_complex_map
from .conservation import (
    ConservedConstant,
    ConservedEquation,
    conservation_law_constants,
    conservation_laws,
    conservation_laws_from_matrix,
    conserved_constant_values,
    conserved_equations,
    conserved_quantities,
    dependent_species,
    independent_species,
    stoichiometric_rank,
)
from .deficiency import (
    DeficiencySummary,
    deficiency,
    is_deficiency_zero_applicable,
    linkage_deficiencies,
    subnetworks,
    summarize_deficiency,
)
from .graph import (
    incidence_graph,
    incidence_graph_from_matrix,
    is_reversible,
    is_weakly_reversible,
    linkage_classes,
    strong_linkage_classes,
    terminal_linkage_classes,
)
from .matrices import (
    complex_outgoing_matrix,
    complex_stoich_matrix,
    incidence_matrix,
    net_stoich_matrix,
    product_stoich_matrix,
    reaction_complexes,
    substrate_stoich_matrix,
)

__all__: List[str] = [
    "ReactionComplex",
    "make_complex",
    "reaction_complex_map",
    "complex_labels",
    "reaction_complexes",
    "incidence_matrix",
    "complex_stoich_matrix",
    "complex_outgoing_matrix",
    "substrate_stoich_matrix",
    "product_stoich_matrix",
    "net_stoich_matrix",
    "incidence_graph",
    "incidence_graph_from_matrix",
    "linkage_classes",
    "strong_linkage_classes",
    "terminal_linkage_classes",
    "is_reversible",
    "is_weakly_reversible",
    "deficiency",
    "subnetworks",
    "linkage_deficiencies",
    "is_deficiency_zero_applicable",
    "DeficiencySummary",
    "summarize_deficiency",
    "conservation_laws_from_matrix",
    "conservation_laws",
    "conserved_equations",
    "conservation_law_constants",
    "ConservedEquation",
    "ConservedConstant",
    "stoichiometric_rank",
    "independent_species",
    "dependent_species",
    "conserved_quantities",
    "conserved_constant_values",
    "reaction_rates",
    "kinetic_matrix",
    "rate_matrix",
    "matrix_tree",
    "complex_weights",
    "is_complex_balanced",
]
