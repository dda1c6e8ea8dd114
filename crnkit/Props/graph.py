from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence, Set, Tuple

import networkx as nx
import numpy as np
import scipy.sparse as sp

from ..cache import (
    INCIDENCE_GRAPH,
    INCIDENCE_MATRIX,
    LINKAGE_CLASSES,
    STRONG_LINKAGE_CLASSES,
    TERMINAL_LINKAGE_CLASSES,
    get_network_properties,
)
from ..core import ReactionNetwork
from ..exceptions import InvalidIncidenceError
from .matrices import incidence_matrix

LOGGER = logging.getLogger(__name__)


def _column_endpoints(rows: np.ndarray, vals: np.ndarray, j: int) -> Tuple[int, int]:
    src = rows[vals == -1]
    dst = rows[vals == 1]
    if len(src) != 1 or len(dst) != 1:
        raise InvalidIncidenceError(
            f"Column {j} of the incidence matrix must contain exactly one -1 and one +1 "
            f"(found {len(src)} and {len(dst)})."
        )
    return int(src[0]), int(dst[0])


def incidence_graph_from_matrix(B: Any) -> nx.MultiDiGraph:
    """
    Build the incidence graph from a dense or sparse incidence matrix.

    One node per complex (row index) and one edge per reaction (column
    index, stored as edge key and ``reaction`` attribute) from the substrate
    complex to the product complex. Parallel edges are kept.

    :param B: Complexes x reactions incidence matrix.
    :type B: numpy.ndarray | scipy.sparse.spmatrix
    :returns: Directed multigraph over complex indices.
    :rtype: networkx.MultiDiGraph
    :raises InvalidIncidenceError: if an entry lies outside ``{-1, 0, 1}``
        or a column lacks exactly one substrate and one product.
    """
    n_complexes, n_reactions = B.shape
    G = nx.MultiDiGraph()
    G.add_nodes_from(range(n_complexes))

    if sp.issparse(B):
        csc = sp.csc_matrix(B)
        if not np.isin(csc.data, (-1, 0, 1)).all():
            raise InvalidIncidenceError("Incidence matrix entries must lie in {-1, 0, 1}.")
        for j in range(n_reactions):
            lo, hi = csc.indptr[j], csc.indptr[j + 1]
            u, v = _column_endpoints(csc.indices[lo:hi], csc.data[lo:hi], j)
            G.add_edge(u, v, key=j, reaction=j)
    else:
        arr = np.asarray(B)
        if not np.isin(arr, (-1, 0, 1)).all():
            raise InvalidIncidenceError("Incidence matrix entries must lie in {-1, 0, 1}.")
        rows = np.arange(n_complexes)
        for j in range(n_reactions):
            u, v = _column_endpoints(rows, arr[:, j], j)
            G.add_edge(u, v, key=j, reaction=j)
    return G


def incidence_graph(network: ReactionNetwork) -> nx.MultiDiGraph:
    """
    Return the (cached) incidence graph of ``network``.

    Built from whichever incidence matrix is already cached, preferring the
    dense one; computes the dense matrix when neither exists.
    """
    props = get_network_properties(network)

    def build() -> nx.MultiDiGraph:
        if props.contains(INCIDENCE_MATRIX, sparse=True) and not props.contains(
            INCIDENCE_MATRIX, sparse=False
        ):
            B = props.get(INCIDENCE_MATRIX, sparse=True)
        else:
            B = incidence_matrix(network)
        LOGGER.debug(
            "building incidence graph of %r: %d complexes, %d reactions",
            network.name,
            B.shape[0],
            B.shape[1],
        )
        return incidence_graph_from_matrix(B)

    return props.get_or_compute(INCIDENCE_GRAPH, build)


def _sorted_classes(components: Iterable[Set[int]]) -> List[List[int]]:
    classes = [sorted(c) for c in components]
    classes.sort(key=lambda c: c[0])
    return classes


def linkage_classes(network: ReactionNetwork) -> List[List[int]]:
    """
    Weakly connected components of the incidence graph.

    For ``S + I --> 2I, I --> R`` this gives ``[[0, 1], [2, 3]]``.

    :returns: Sorted lists of complex indices, ordered by smallest index.
    """
    props = get_network_properties(network)
    return props.get_or_compute(
        LINKAGE_CLASSES,
        lambda: _sorted_classes(nx.weakly_connected_components(incidence_graph(network))),
    )


def strong_linkage_classes(network: ReactionNetwork) -> List[List[int]]:
    """Strongly connected components of the incidence graph."""
    props = get_network_properties(network)
    return props.get_or_compute(
        STRONG_LINKAGE_CLASSES,
        lambda: _sorted_classes(
            nx.strongly_connected_components(incidence_graph(network))
        ),
    )


def is_terminal(linkage_class: Sequence[int], network: ReactionNetwork) -> bool:
    """
    Whether every reaction leaving a complex of ``linkage_class`` produces a
    complex that is also in the class.
    """
    members = set(linkage_class)
    G = incidence_graph(network)
    for u, v in G.out_edges(members):
        if v not in members:
            return False
    return True


def terminal_linkage_classes(network: ReactionNetwork) -> List[List[int]]:
    """Strong linkage classes that no reaction leaves."""
    props = get_network_properties(network)
    return props.get_or_compute(
        TERMINAL_LINKAGE_CLASSES,
        lambda: [
            slc for slc in strong_linkage_classes(network) if is_terminal(slc, network)
        ],
    )


def is_reversible(network: ReactionNetwork) -> bool:
    """
    Whether every reaction ``u --> v`` has a reaction ``v --> u``.

    Compares the incidence graph's edge set with that of its reversal, so the
    number of parallel reactions does not matter.
    """
    edges = set(incidence_graph(network).edges())
    return edges == {(v, u) for u, v in edges}


def is_weakly_reversible(
    network: ReactionNetwork,
    subnetworks: Optional[Sequence[ReactionNetwork]] = None,
) -> bool:
    """
    Whether every linkage class is strongly connected.

    :param network: Reaction network.
    :param subnetworks: Optional per-linkage-class subnetworks (see
        :func:`crnkit.Props.deficiency.subnetworks`); when given, each
        subnetwork's own incidence graph is tested.
    """
    if subnetworks is not None:
        return all(nx.is_strongly_connected(incidence_graph(s)) for s in subnetworks)
    G = incidence_graph(network)
    return all(
        nx.is_strongly_connected(G.subgraph(lc)) for lc in linkage_classes(network)
    )
