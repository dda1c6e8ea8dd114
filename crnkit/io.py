from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .core import Reaction, ReactionNetwork, Species
from .Props.complexes import complex_labels, reaction_complex_map
from .Props.conservation import conservation_laws
from .Props.matrices import (
    complex_stoich_matrix,
    incidence_matrix,
    net_stoich_matrix,
    to_dense,
)

# Tokens that denote the empty complex (no species)
_EMPTY_COMPLEX_TOKENS = {"0", "Ø", "ø", "∅"}
_TERM = re.compile(r"(\d*)\s*\*?\s*([A-Za-z_][\w\[\]()]*)")


# ---------------------------------------------------------------------------
# Matrices -> DataFrames
# ---------------------------------------------------------------------------


def matrix_to_frame(
    M: Any,
    index: Optional[Sequence[str]] = None,
    columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Wrap a dense or sparse matrix in a labelled :class:`pandas.DataFrame`.

    :param M: ``numpy.ndarray`` or ``scipy.sparse`` matrix.
    :param index: Row labels.
    :param columns: Column labels.
    :returns: Dense DataFrame.
    """
    return pd.DataFrame(to_dense(M), index=index, columns=columns)


def _reaction_labels(network: ReactionNetwork) -> List[str]:
    return [rx.name or f"R{j + 1}" for j, rx in enumerate(network.reactions)]


def incidence_frame(network: ReactionNetwork) -> pd.DataFrame:
    """Incidence matrix with complex labels as rows and reactions as columns."""
    return matrix_to_frame(
        incidence_matrix(network), complex_labels(network), _reaction_labels(network)
    )


def complex_stoich_frame(network: ReactionNetwork) -> pd.DataFrame:
    """Complex stoichiometry matrix, species x complex labels."""
    return matrix_to_frame(
        complex_stoich_matrix(network), network.species_names, complex_labels(network)
    )


def net_stoich_frame(network: ReactionNetwork) -> pd.DataFrame:
    """Net stoichiometry matrix, species x reactions."""
    return matrix_to_frame(
        net_stoich_matrix(network), network.species_names, _reaction_labels(network)
    )


def conservation_laws_frame(network: ReactionNetwork) -> pd.DataFrame:
    """Conservation laws, one row per law (``Γ[1]``, ``Γ[2]``, ...)."""
    N = conservation_laws(network)
    index = [f"Γ[{i + 1}]" for i in range(N.shape[0])]
    return matrix_to_frame(N, index, network.species_names)


def complexes_frame(network: ReactionNetwork) -> pd.DataFrame:
    """One row per complex: its label and ``{species: coeff}`` composition."""
    names = network.species_names
    rows = []
    for k, (rc, entries) in enumerate(reaction_complex_map(network).items()):
        rows.append(
            {
                "complex": k,
                "label": rc.label(names),
                "composition": {names[i]: c for i, c in rc.elements},
                "reactions": [j for j, _ in entries],
            }
        )
    return pd.DataFrame(rows, columns=["complex", "label", "composition", "reactions"])


def species_frame(network: ReactionNetwork) -> pd.DataFrame:
    """One row per species with its index and ``constant`` flag."""
    return pd.DataFrame(
        {
            "index": range(network.n_species),
            "name": network.species_names,
            "constant": [sp.constant for sp in network.species],
        }
    )


# ---------------------------------------------------------------------------
# DataFrame -> network
# ---------------------------------------------------------------------------


def _parse_side(side: str) -> Dict[str, int]:
    """
    Parse a reaction side like ``"2A + B"`` into ``{name: coeff}``.

    Special handling:

    * If the trimmed side is one of ``{"0", "Ø", "ø", "∅"}``, an empty
      mapping is returned, representing the zero complex.

    :param side: String representation of reactants or products.
    :type side: str
    :returns: Mapping from species name to stoichiometric coefficient.
    :rtype: Dict[str, int]
    :raises ValueError: if a term is not an optional integer followed by a name.
    """
    side = side.strip()
    if not side or side in _EMPTY_COMPLEX_TOKENS:
        return {}

    mapping: Dict[str, int] = {}
    for term in (t.strip() for t in side.split("+")):
        if not term:
            continue
        # Allow forms: "A", "2A", "2 A", "2 * A"
        match = _TERM.fullmatch(term)
        if match is None:
            raise ValueError(f"Cannot parse reaction term {term!r}")
        coeff_str, name = match.groups()
        coeff = int(coeff_str) if coeff_str else 1
        mapping[name] = mapping.get(name, 0) + coeff
    return mapping


def _cell(row: pd.Series, column: str) -> Any:
    """Value of an optional column, ``None`` when absent or empty."""
    if column not in row.index:
        return None
    value = row[column]
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return None
    return value


def network_from_table(
    df: pd.DataFrame,
    *,
    constant_species: Sequence[str] = (),
    name: str = "rn",
) -> ReactionNetwork:
    """
    Build a :class:`ReactionNetwork` from a pandas table of reactions.

    Expected columns (minimal):

    * ``reactants`` -- string, e.g. ``"A + 2B"``
    * ``products`` -- string, e.g. ``"C"``
    * ``rate`` -- optional parameter name or number
    * ``reversible`` -- optional bool, default False; a reversible row adds
      the backward reaction with rate ``rate_reverse``

    Empty ``rate`` or ``rate_reverse`` cells (``None`` or NaN) give reactions
    without a rate.

    Species are indexed in order of first appearance.

    :param df: Reaction table.
    :type df: pandas.DataFrame
    :param constant_species: Names of species to mark constant.
    :param name: Network name.
    :returns: Constructed network.
    :rtype: ReactionNetwork
    """
    if "reactants" not in df.columns or "products" not in df.columns:
        raise ValueError("DataFrame must contain 'reactants' and 'products' columns.")

    constant = set(constant_species)
    species: Dict[str, Species] = {}
    reactions: List[Reaction] = []

    def side(text: Any) -> List[Any]:
        parsed = _parse_side(str(text))
        for sp_name in parsed:
            species.setdefault(sp_name, Species(sp_name, constant=sp_name in constant))
        return [(species[n], c) for n, c in parsed.items()]

    for _, row in df.iterrows():
        subs = side(row["reactants"])
        prods = side(row["products"])
        rate = _cell(row, "rate")
        reactions.append(Reaction(substrates=subs, products=prods, rate=rate))
        if "reversible" in df.columns and bool(row["reversible"]):
            back = _cell(row, "rate_reverse")
            reactions.append(Reaction(substrates=prods, products=subs, rate=back))

    return ReactionNetwork(reactions=reactions, species=list(species.values()), name=name)
