from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from math import gcd
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..cache import CONSERVATION_DATA, CONSERVATION_MATRIX, get_network_properties
from ..core import ReactionNetwork
from ..exceptions import ConservationOverflowError, DegenerateConservationLawError
from .matrices import net_stoich_matrix, to_dense

LOGGER = logging.getLogger(__name__)

CONSERVED_CONSTANT_SYMBOL = "Γ"
DEFAULT_DTYPE = np.int64


# ---------------------------------------------------------------------------
# Exact integer left nullspace
# ---------------------------------------------------------------------------


def _lcm(a: int, b: int) -> int:
    """
    Least common multiple of two integers.

    :param a: First integer.
    :type a: int
    :param b: Second integer.
    :type b: int
    :returns: :math:`\\mathrm{lcm}(a, b)`.
    :rtype: int
    """
    return abs(a // gcd(a, b) * b) if a and b else abs(a or b)


def _to_minimal_integer(vec: Sequence[Fraction]) -> List[int]:
    """Scale a rational vector to the primitive integer vector with the same direction."""
    den = 1
    for f in vec:
        den = _lcm(den, f.denominator)
    ints = [int(f * den) for f in vec]
    g = 0
    for v in ints:
        g = gcd(g, abs(v))
    if g > 1:
        ints = [v // g for v in ints]
    return ints


def _rref(rows: List[List[Fraction]], n_cols: int) -> Tuple[List[List[Fraction]], List[int]]:
    """Reduced row echelon form (in place) and the pivot columns, left to right."""
    pivots: List[int] = []
    r = 0
    n_rows = len(rows)
    for c in range(n_cols):
        if r == n_rows:
            break
        p = next((i for i in range(r, n_rows) if rows[i][c] != 0), None)
        if p is None:
            continue
        rows[r], rows[p] = rows[p], rows[r]
        lead = rows[r][c]
        rows[r] = [x / lead for x in rows[r]]
        for i in range(n_rows):
            if i != r and rows[i][c] != 0:
                f = rows[i][c]
                rows[i] = [x - f * y for x, y in zip(rows[i], rows[r])]
        pivots.append(c)
        r += 1
    return rows, pivots


def integer_left_nullspace(S: Any) -> Tuple[List[List[int]], List[int]]:
    """
    Exact integer basis of the left nullspace of ``S`` (all ``m`` with
    :math:`m^\\top S = 0`).

    Works with Python integers and :class:`fractions.Fraction`, so no
    precision is lost. The species (columns of :math:`S^\\top`) are split
    into the pivot columns of the reduced row echelon form (independent
    species) and the free columns (dependent species). One law is returned
    per free column, in free-column order; its own coefficient is positive
    and the law is reduced to a primitive integer vector.

    :param S: Species x reactions matrix (dense or sparse).
    :returns: ``(laws, col_order)`` where ``col_order`` lists the independent
        species indices followed by the dependent ones.
    """
    dense = to_dense(S)
    n_species, n_reactions = dense.shape
    rows = [
        [Fraction(int(dense[i, j])) for i in range(n_species)]
        for j in range(n_reactions)
    ]
    rref, pivots = _rref(rows, n_species)
    pivot_set = set(pivots)
    free = [c for c in range(n_species) if c not in pivot_set]

    laws: List[List[int]] = []
    for f in free:
        vec = [Fraction(0)] * n_species
        vec[f] = Fraction(1)
        for k, p in enumerate(pivots):
            vec[p] = -rref[k][f]
        laws.append(_to_minimal_integer(vec))
    return laws, pivots + free


def conservation_laws_from_matrix(
    S: Any,
    *,
    dtype: Any = DEFAULT_DTYPE,
    col_order: Optional[List[int]] = None,
) -> np.ndarray:
    """
    Conservation-law matrix :math:`N` of a net stoichiometry matrix.

    Rows of :math:`N` are independent conservation laws
    (:math:`N S = 0`). A law whose coefficients are all non-positive is
    negated. The exact result is converted to ``dtype`` and verified in that
    dtype; use ``dtype=object`` for unbounded integers.

    :param S: Species x reactions net stoichiometry matrix.
    :param dtype: Integer dtype of the result.
    :param col_order: Optional list that is filled (in place) with the
        independent-then-dependent species order.
    :returns: Array of shape ``(nullity, n_species)``.
    :raises ConservationOverflowError: if the conversion overflows or the
        post-check :math:`N S = 0` fails in ``dtype``.
    """
    laws, order = integer_left_nullspace(S)
    if col_order is not None:
        col_order[:] = order

    for row in laws:
        if all(v <= 0 for v in row):
            row[:] = [-v for v in row]

    dense = to_dense(S)
    n_species = dense.shape[0]
    try:
        N = np.array(laws, dtype=dtype).reshape(len(laws), n_species)
        residual = N @ dense.astype(dtype)
    except OverflowError as exc:
        raise ConservationOverflowError(
            "Calculation of the conservation law matrix overflowed; use a larger "
            "integer type (dtype=object) for the net stoichiometry matrix."
        ) from exc

    if np.any(residual != 0):
        raise ConservationOverflowError(
            "Calculation of the conservation law matrix was inaccurate, likely due to "
            "numerical overflow. Please use a larger integer type (dtype=object) for "
            "the net stoichiometry matrix."
        )
    return N


# ---------------------------------------------------------------------------
# Linear relations derived from the laws
# ---------------------------------------------------------------------------


Terms = Tuple[Tuple[str, Fraction], ...]


def _format_sum(lead: str, terms: Terms, sign: int) -> str:
    out = lead
    for name, coef in terms:
        c = sign * coef
        mag = abs(c)
        body = name if mag == 1 else f"{mag}*{name}"
        out += f" + {body}" if c > 0 else f" - {body}"
    return out


def _weighted_sum(terms: Terms, state: Mapping[str, float]) -> float:
    return sum(float(coef) * state[name] for name, coef in terms)


@dataclass(frozen=True)
class ConservedEquation:
    """
    A dependent species written through its conservation law:
    ``dependent = constant - sum(coef * species)``.

    :param dependent: Name of the eliminated species.
    :param constant: Name of the conserved-constant placeholder (``Γ[i]``).
    :param terms: ``(independent species, coefficient)`` pairs, coefficients
        normalised by the dependent species' own coefficient.
    """

    dependent: str
    constant: str
    terms: Terms

    def evaluate(self, state: Mapping[str, float], constant_value: float) -> float:
        return constant_value - _weighted_sum(self.terms, state)

    def __str__(self) -> str:
        return f"{self.dependent} = {_format_sum(self.constant, self.terms, -1)}"


@dataclass(frozen=True)
class ConservedConstant:
    """
    Definition of a conserved constant:
    ``constant = dependent + sum(coef * species)``.
    """

    constant: str
    dependent: str
    terms: Terms

    def evaluate(self, state: Mapping[str, float]) -> float:
        return state[self.dependent] + _weighted_sum(self.terms, state)

    def __str__(self) -> str:
        return f"{self.constant} = {_format_sum(self.dependent, self.terms, 1)}"


@dataclass(frozen=True)
class ConservationData:
    """Everything derived from one conservation-law computation."""

    laws: Tuple[Tuple[int, ...], ...]
    col_order: Tuple[int, ...]
    rank: int
    nullity: int
    independent: Tuple[int, ...]
    dependent: Tuple[int, ...]
    equations: Tuple[ConservedEquation, ...]
    constants: Tuple[ConservedConstant, ...]


def _conservation_relations(
    laws: Sequence[Sequence[int]],
    col_order: Sequence[int],
    species_names: Sequence[str],
) -> Tuple[List[ConservedEquation], List[ConservedConstant]]:
    nullity = len(laws)
    rank = len(species_names) - nullity
    indep = list(col_order[:rank])
    dep = list(col_order[rank:])

    equations: List[ConservedEquation] = []
    constants: List[ConservedConstant] = []
    for i, d in enumerate(dep):
        scale = laws[i][d]
        if scale == 0:
            raise DegenerateConservationLawError(
                f"Conservation law {i + 1} has a zero coefficient for its dependent "
                f"species {species_names[d]!r}."
            )
        terms: Terms = tuple(
            (species_names[j], Fraction(laws[i][j], scale))
            for j in indep
            if laws[i][j] != 0
        )
        constant = f"{CONSERVED_CONSTANT_SYMBOL}[{i + 1}]"
        equations.append(ConservedEquation(species_names[d], constant, terms))
        constants.append(ConservedConstant(constant, species_names[d], terms))
    return equations, constants


def _conservation_data(network: ReactionNetwork) -> ConservationData:
    props = get_network_properties(network)

    def build() -> ConservationData:
        S = net_stoich_matrix(network)
        col_order: List[int] = []
        N = conservation_laws_from_matrix(S, dtype=object, col_order=col_order)
        laws = [[int(v) for v in row] for row in N]
        nullity = len(laws)
        rank = network.n_species - nullity
        equations, constants = _conservation_relations(
            laws, col_order, network.species_names
        )
        LOGGER.debug(
            "%r: %d conservation law(s), stoichiometric rank %d",
            network.name,
            nullity,
            rank,
        )
        return ConservationData(
            laws=tuple(tuple(r) for r in laws),
            col_order=tuple(col_order),
            rank=rank,
            nullity=nullity,
            independent=tuple(col_order[:rank]),
            dependent=tuple(col_order[rank:]),
            equations=tuple(equations),
            constants=tuple(constants),
        )

    return props.get_or_compute(CONSERVATION_DATA, build)


def conservation_laws(
    network: ReactionNetwork, *, dtype: Any = DEFAULT_DTYPE
) -> np.ndarray:
    """
    Return the conservation-law matrix of ``network`` (one law per row).

    The default-dtype matrix is cached; other dtypes are derived from the
    cached exact laws and re-verified.

    .. code-block:: python

        # k, A + B --> C ; k2, C --> A + B
        conservation_laws(rn)
        # array([[-1,  1,  0],
        #        [ 1,  0,  1]])
    """
    data = _conservation_data(network)

    def convert() -> np.ndarray:
        try:
            N = np.array(data.laws, dtype=dtype).reshape(data.nullity, network.n_species)
        except OverflowError as exc:
            raise ConservationOverflowError(
                "Conservation law coefficients do not fit in the requested dtype; "
                "use dtype=object."
            ) from exc
        S = to_dense(net_stoich_matrix(network)).astype(dtype)
        if np.any(N @ S != 0):
            raise ConservationOverflowError(
                "Calculation of the conservation law matrix was inaccurate, likely due "
                "to numerical overflow. Please use a larger integer type (dtype=object)."
            )
        return N

    if np.dtype(dtype) != np.dtype(DEFAULT_DTYPE):
        return convert()
    return get_network_properties(network).get_or_compute(CONSERVATION_MATRIX, convert)


def conserved_equations(network: ReactionNetwork) -> List[ConservedEquation]:
    """
    Dependent species written in terms of the independent species and the
    conservation constants.

    For ``A + B <--> C`` this gives ``B = Γ[1] + A`` and ``C = Γ[2] - A``.
    """
    return list(_conservation_data(network).equations)


def conservation_law_constants(network: ReactionNetwork) -> List[ConservedConstant]:
    """
    Conservation constants written in terms of the species.

    For ``A + B <--> C`` this gives ``Γ[1] = B - A`` and ``Γ[2] = C + A``.
    """
    return list(_conservation_data(network).constants)


def stoichiometric_rank(network: ReactionNetwork) -> int:
    """Rank of the net stoichiometry matrix (species count minus nullity)."""
    return _conservation_data(network).rank


def independent_species(network: ReactionNetwork) -> List[str]:
    names = network.species_names
    return [names[i] for i in _conservation_data(network).independent]


def dependent_species(network: ReactionNetwork) -> List[str]:
    names = network.species_names
    return [names[i] for i in _conservation_data(network).dependent]


def conserved_quantities(state: Any, laws: Any) -> np.ndarray:
    """Conserved quantities :math:`N u` of ``state`` under ``laws``."""
    return np.asarray(laws) @ np.asarray(state)


def conserved_constant_values(
    network: ReactionNetwork,
    state: Union[Mapping[str, float], Sequence[float]],
) -> Dict[str, float]:
    """
    Evaluate every conservation constant ``Γ[i]`` at ``state``.

    :param network: Reaction network.
    :param state: Species amounts, as a name -> value mapping or a sequence in
        species order.
    :returns: Mapping ``Γ[i]`` -> value.
    """
    if not isinstance(state, Mapping):
        values = list(state)
        if len(values) != network.n_species:
            raise ValueError(
                f"Expected {network.n_species} species values, got {len(values)}"
            )
        state = dict(zip(network.species_names, values))
    return {c.constant: c.evaluate(state) for c in conservation_law_constants(network)}
