"""Complex balance of mass-action networks via the Matrix-Tree theorem.

Follows the constructive test of van der Schaft, Rao & Jayawardhana (2015):
the per-complex weights :math:`\\rho` are spanning in-tree sums of the
weighted incidence graph, and a mass-action system is complex balanced iff
:math:`\\rho > 0` and :math:`B^\\top \\ln \\rho` lies in the image of
:math:`S^\\top`.
"""

from __future__ import annotations

import itertools
import logging
from math import comb
from numbers import Real
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

import networkx as nx
import numpy as np

from ..core import ReactionNetwork
from ..exceptions import NonMassActionError, ParameterCountError, UnknownParameterError
from .complexes import SUBSTRATE, reaction_complex_map
from .graph import incidence_graph
from .matrices import incidence_matrix, net_stoich_matrix, to_dense

LOGGER = logging.getLogger(__name__)

# candidate edge subsets above which spanning-tree enumeration logs a warning
ENUMERATION_WARNING_THRESHOLD = 100_000

MATRIX_TREE_METHODS = ("enumerate", "kirchhoff")

ParameterMap = Union[Mapping[str, float], Sequence[Tuple[str, float]]]


# ---------------------------------------------------------------------------
# Rates
# ---------------------------------------------------------------------------


def _as_parameter_dict(parameter_map: Any) -> Dict[str, float]:
    if isinstance(parameter_map, Mapping):
        return {str(k): v for k, v in parameter_map.items()}
    if isinstance(parameter_map, (list, tuple)) and all(
        isinstance(p, tuple) and len(p) == 2 for p in parameter_map
    ):
        return {str(k): v for k, v in parameter_map}
    raise TypeError(
        "Parameter map must be a dictionary, or a list/tuple of (name, value) pairs."
    )


def _checked_parameter_dict(
    network: ReactionNetwork, parameter_map: ParameterMap
) -> Dict[str, float]:
    pmap = _as_parameter_dict(parameter_map)
    if len(pmap) != network.n_parameters:
        raise ParameterCountError(
            f"Incorrect number of parameters specified: expected {network.n_parameters}, "
            f"got {len(pmap)}."
        )
    missing = [p for p in network.parameters if p not in pmap]
    if missing:
        raise UnknownParameterError(f"No value given for parameters {missing}")
    return pmap


def reaction_rates(network: ReactionNetwork, parameter_map: ParameterMap) -> np.ndarray:
    """
    Substitute parameter values into every reaction rate.

    A string rate is looked up in ``parameter_map``, a numeric rate is used
    as is and a callable rate is called with the parameter dictionary.

    :param network: Reaction network.
    :param parameter_map: One value per declared parameter.
    :returns: Float array of length ``n_reactions``.
    :raises ParameterCountError: if the map size differs from the number of
        declared parameters.
    :raises UnknownParameterError: if a declared parameter has no value.
    """
    pmap = _checked_parameter_dict(network, parameter_map)
    rates = np.zeros(network.n_reactions, dtype=float)
    for j, rx in enumerate(network.reactions):
        if isinstance(rx.rate, str):
            rates[j] = float(pmap[rx.rate])
        elif isinstance(rx.rate, Real):
            rates[j] = float(rx.rate)
        elif callable(rx.rate):
            rates[j] = float(rx.rate(pmap))
        else:
            raise TypeError(f"Cannot evaluate the rate of reaction {j}: {rx.rate!r}")
    return rates


def _as_rates(network: ReactionNetwork, rates_or_map: Any) -> np.ndarray:
    # an empty list or tuple is an empty parameter map, not an empty rate vector
    if isinstance(rates_or_map, Mapping) or (
        isinstance(rates_or_map, (list, tuple))
        and (not rates_or_map or isinstance(rates_or_map[0], tuple))
    ):
        return reaction_rates(network, rates_or_map)
    rates = np.asarray(rates_or_map, dtype=float)
    if rates.shape != (network.n_reactions,):
        raise ValueError(
            f"Expected {network.n_reactions} reaction rates, got shape {rates.shape}"
        )
    return rates


def kinetic_matrix(network: ReactionNetwork, rates: Any) -> np.ndarray:
    """
    Reactions x complexes kinetic matrix :math:`K` with
    :math:`K_{rc}` the rate of reaction ``r`` if complex ``c`` is its
    substrate, else 0.
    """
    rates = _as_rates(network, rates)
    complex_map = reaction_complex_map(network)
    K = np.zeros((network.n_reactions, len(complex_map)), dtype=float)
    for c, entries in enumerate(complex_map.values()):
        for r, role in entries:
            if role == SUBSTRATE:
                K[r, c] = rates[r]
    return K


def rate_matrix(network: ReactionNetwork, rates: Any) -> np.ndarray:
    """
    Complexes x complexes matrix :math:`R` with :math:`R_{ij}` the rate
    constant of the reaction from complex ``i`` to complex ``j``.

    Rates of parallel reactions between the same pair of complexes add up.

    :param network: Reaction network.
    :param rates: Reaction rates in reaction order, or a parameter map
        (see :func:`reaction_rates`).
    """
    K = kinetic_matrix(network, rates)
    B = to_dense(incidence_matrix(network))
    n = B.shape[0]
    R = np.zeros((n, n), dtype=float)
    for r in range(network.n_reactions):
        s = int(np.flatnonzero(B[:, r] == -1)[0])
        p = int(np.flatnonzero(B[:, r] == 1)[0])
        R[s, p] += K[r, s]
    return R


# ---------------------------------------------------------------------------
# Matrix-Tree theorem
# ---------------------------------------------------------------------------


def _enumerated_tree_weights(
    n: int, edges: List[Tuple[int, int]], W: np.ndarray
) -> np.ndarray:
    """In-tree weight sums by brute-force enumeration of spanning trees."""
    if n == 1:
        return np.ones(1)
    undirected = sorted({(min(u, v), max(u, v)) for u, v in edges if u != v})
    n_candidates = comb(len(undirected), n - 1)
    if n_candidates > ENUMERATION_WARNING_THRESHOLD:
        LOGGER.warning(
            "Enumerating %d candidate edge subsets for a %d-complex component; "
            "consider method='kirchhoff'.",
            n_candidates,
            n,
        )

    trees: List[nx.Graph] = []
    for subset in itertools.combinations(undirected, n - 1):
        T = nx.Graph()
        T.add_nodes_from(range(n))
        T.add_edges_from(subset)
        if nx.is_tree(T):
            trees.append(T)

    rho = np.zeros(n)
    for v in range(n):
        total = 0.0
        for T in trees:
            # orient every tree edge towards the root v
            w = 1.0
            for parent, child in nx.bfs_edges(T, v):
                w *= W[child, parent]
            total += w
        rho[v] = total
    return rho


def _kirchhoff_tree_weights(n: int, W: np.ndarray) -> np.ndarray:
    """In-tree weight sums as minors of the out-degree Laplacian."""
    if n == 1:
        return np.ones(1)
    W = W.copy()
    np.fill_diagonal(W, 0.0)
    L = np.diag(W.sum(axis=1)) - W
    rho = np.zeros(n)
    for v in range(n):
        minor = np.delete(np.delete(L, v, axis=0), v, axis=1)
        rho[v] = np.linalg.det(minor)
    return rho


def matrix_tree(graph: nx.DiGraph, weights: Any, *, method: str = "enumerate") -> np.ndarray:
    """
    Per-node sums, over all spanning in-trees rooted at the node, of the
    product of edge weights.

    Weakly connected components are solved independently and their results
    placed back at their nodes' positions.

    :param graph: Directed (multi)graph whose nodes are ``0..n-1``.
    :param weights: ``n x n`` matrix; ``weights[i, j]`` weights edge ``i -> j``.
    :param method: ``"enumerate"`` lists all spanning trees (cost is
        combinatorial in the number of edges); ``"kirchhoff"`` uses
        determinants of the reduced Laplacian (polynomial, same result up to
        floating point).
    :returns: Array :math:`\\rho` of length ``n``.
    """
    if method not in MATRIX_TREE_METHODS:
        raise ValueError(f"method must be one of {MATRIX_TREE_METHODS}, got {method!r}")
    W = np.asarray(to_dense(weights), dtype=float)
    n = graph.number_of_nodes()
    if W.shape != (n, n):
        raise ValueError(f"Size of weight matrix is incorrect: {W.shape} for {n} nodes")

    rho = np.zeros(n)
    for comp in nx.weakly_connected_components(graph):
        idx = sorted(comp)
        remap = {node: k for k, node in enumerate(idx)}
        sub_w = W[np.ix_(idx, idx)]
        if method == "kirchhoff":
            local = _kirchhoff_tree_weights(len(idx), sub_w)
        else:
            edges = [(remap[u], remap[v]) for u, v in graph.subgraph(idx).edges()]
            local = _enumerated_tree_weights(len(idx), edges, sub_w)
        rho[idx] = local
    return rho


# ---------------------------------------------------------------------------
# Complex balance
# ---------------------------------------------------------------------------


def complex_weights(
    network: ReactionNetwork,
    parameter_map: ParameterMap,
    *,
    method: str = "enumerate",
) -> np.ndarray:
    """Matrix-Tree weights :math:`\\rho` of every complex for the given parameters."""
    rates = reaction_rates(network, parameter_map)
    return matrix_tree(incidence_graph(network), rate_matrix(network, rates), method=method)


def is_complex_balanced(
    network: ReactionNetwork,
    parameter_map: ParameterMap,
    *,
    method: str = "enumerate",
) -> bool:
    """
    Whether the mass-action system with the given parameters admits
    complex-balanced equilibria.

    :param network: Mass-action reaction network.
    :param parameter_map: One value per declared parameter, as a mapping or a
        list/tuple of ``(name, value)`` pairs.
    :param method: Matrix-Tree method, see :func:`matrix_tree`.
    :raises ParameterCountError: on a parameter map of the wrong size.
    :raises NonMassActionError: if any reaction is not mass action; checked
        before any rate is evaluated.
    """
    pmap = _checked_parameter_dict(network, parameter_map)
    if not all(rx.mass_action for rx in network.reactions):
        raise NonMassActionError(
            "The network has reactions that are not mass action. Testing for complex "
            "balance is only supported for pure mass-action networks."
        )
    rates = reaction_rates(network, pmap)

    D = to_dense(incidence_matrix(network)).astype(float)
    S = to_dense(net_stoich_matrix(network)).astype(float)
    rho = matrix_tree(incidence_graph(network), rate_matrix(network, rates), method=method)
    LOGGER.debug("%r: complex weights %s", network.name, rho)

    if not np.all(rho > 0):
        return False
    img = D.T @ np.log(rho)
    St = S.T
    return bool(
        np.linalg.matrix_rank(St) == np.linalg.matrix_rank(np.column_stack([St, img]))
    )
