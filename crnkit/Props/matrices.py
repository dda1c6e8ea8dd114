from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
import scipy.sparse as sp

from ..cache import (
    COMPLEXES,
    COMPLEX_OUTGOING_MATRIX,
    COMPLEX_STOICH_MATRIX,
    INCIDENCE_MATRIX,
    NET_STOICH_MATRIX,
    PRODUCT_STOICH_MATRIX,
    SUBSTRATE_STOICH_MATRIX,
    get_network_properties,
)
from ..core import ReactionNetwork, require_flat
from .complexes import ReactionComplex, reaction_complex_map

INT_DTYPE = np.int64

ComplexMap = Dict[ReactionComplex, List[Tuple[int, int]]]


# ---------------------------------------------------------------------------
# Builders: dense (numpy) and sparse (scipy CSR) share one contract
# ---------------------------------------------------------------------------


class MatrixBuilder(ABC):
    """
    Capability interface for building the structural matrices.

    Implementations must return value-equivalent matrices; only the storage
    differs. Pick one with :func:`get_builder`.
    """

    sparse: bool = False

    @abstractmethod
    def _assemble(
        self, rows: List[int], cols: List[int], vals: List[int], shape: Tuple[int, int]
    ) -> Any:
        raise NotImplementedError

    @abstractmethod
    def build_outgoing(self, incidence: Any) -> Any:
        """
        Return :math:`\\Delta`, the incidence matrix with every ``+1`` zeroed.

        :param incidence: Incidence matrix of the matching representation.
        """
        raise NotImplementedError

    def build_incidence(self, complex_map: ComplexMap, n_reactions: int) -> Any:
        """
        Build the complexes x reactions incidence matrix :math:`B`.

        .. math::

            B_{ij} = -1 \\text{ (substrate)},\\; +1 \\text{ (product)},\\; 0 \\text{ otherwise.}

        :param complex_map: Output of :func:`reaction_complex_map`.
        :param n_reactions: Number of reactions (columns).
        """
        rows: List[int] = []
        cols: List[int] = []
        vals: List[int] = []
        for i, entries in enumerate(complex_map.values()):
            for j, role in entries:
                rows.append(i)
                cols.append(j)
                vals.append(role)
        return self._assemble(rows, cols, vals, (len(complex_map), n_reactions))

    def build_complex_stoichiometry(
        self, complexes: Sequence[ReactionComplex], n_species: int
    ) -> Any:
        """
        Build the species x complexes matrix :math:`Z`; column ``k`` holds the
        coefficients of complex ``k``.
        """
        rows: List[int] = []
        cols: List[int] = []
        vals: List[int] = []
        for k, rc in enumerate(complexes):
            for i, c in rc.elements:
                rows.append(i)
                cols.append(k)
                vals.append(c)
        return self._assemble(rows, cols, vals, (n_species, len(complexes)))

    def build_species_reaction(self, network: ReactionNetwork, side: str) -> Any:
        """
        Build the species x reactions substrate (``side="substrates"``) or
        product (``side="products"``) stoichiometry matrix. Rows of constant
        species are zero.
        """
        if side not in ("substrates", "products"):
            raise ValueError(f"side must be 'substrates' or 'products', got {side!r}")
        rows: List[int] = []
        cols: List[int] = []
        vals: List[int] = []
        for j, rx in enumerate(network.reactions):
            for s, c in getattr(rx, side):
                i = network.species_index[s.name]
                if network.species[i].constant:
                    continue
                rows.append(i)
                cols.append(j)
                vals.append(c)
        return self._assemble(rows, cols, vals, (network.n_species, network.n_reactions))


class DenseBuilder(MatrixBuilder):
    """Builds ``numpy.ndarray`` integer matrices."""

    sparse = False

    def _assemble(self, rows, cols, vals, shape):
        M = np.zeros(shape, dtype=INT_DTYPE)
        for i, j, v in zip(rows, cols, vals):
            M[i, j] += v
        return M

    def build_outgoing(self, incidence):
        return np.where(incidence == 1, 0, incidence).astype(INT_DTYPE)


class SparseBuilder(MatrixBuilder):
    """Builds ``scipy.sparse.csr_matrix`` integer matrices."""

    sparse = True

    def _assemble(self, rows, cols, vals, shape):
        # duplicate (i, j) entries are summed by the COO -> CSR conversion
        M = sp.coo_matrix(
            (
                np.asarray(vals, dtype=INT_DTYPE),
                (np.asarray(rows, dtype=np.intp), np.asarray(cols, dtype=np.intp)),
            ),
            shape=shape,
        ).tocsr()
        M.eliminate_zeros()
        return M

    def build_outgoing(self, incidence):
        coo = sp.coo_matrix(incidence)
        keep = coo.data != 1
        return self._assemble(
            coo.row[keep].tolist(),
            coo.col[keep].tolist(),
            coo.data[keep].tolist(),
            coo.shape,
        )


_BUILDERS = {False: DenseBuilder(), True: SparseBuilder()}


def get_builder(sparse: bool = False) -> MatrixBuilder:
    """Return the dense or sparse :class:`MatrixBuilder`."""
    return _BUILDERS[bool(sparse)]


def to_dense(M: Any) -> np.ndarray:
    """Densify a sparse matrix; dense arrays are returned unchanged."""
    if sp.issparse(M):
        return M.toarray()
    return np.asarray(M)


# ---------------------------------------------------------------------------
# Cached network-level accessors
# ---------------------------------------------------------------------------


def reaction_complexes(
    network: ReactionNetwork, *, sparse: bool = False
) -> Tuple[List[ReactionComplex], Any]:
    """
    Return the reaction complexes and the complex incidence matrix.

    The empty complex denotes ∅ (from reactions like ``∅ --> A``). The
    incidence matrix is cached per representation; requesting the opposite
    sparsity builds (and caches) a separate matrix.

    :param network: Flat reaction network with at least one reaction.
    :param sparse: Return a ``scipy.sparse`` CSR incidence matrix.
    :returns: ``(complexes, B)``.
    """
    require_flat(network, "reaction_complexes")
    complex_map = reaction_complex_map(network)
    props = get_network_properties(network)
    complexes = props.get_or_compute(COMPLEXES, lambda: list(complex_map))
    B = props.get_or_compute(
        INCIDENCE_MATRIX,
        lambda: get_builder(sparse).build_incidence(complex_map, network.n_reactions),
        sparse=bool(sparse),
    )
    return complexes, B


def incidence_matrix(network: ReactionNetwork, *, sparse: bool = False) -> Any:
    """Complexes x reactions incidence matrix, see :func:`reaction_complexes`."""
    return reaction_complexes(network, sparse=sparse)[1]


def complex_stoich_matrix(network: ReactionNetwork, *, sparse: bool = False) -> Any:
    """
    Species x complexes matrix whose ``k``-th column lists the coefficients of
    the ``k``-th complex.
    """
    require_flat(network, "complex_stoich_matrix")
    complexes = reaction_complexes(network, sparse=sparse)[0]
    props = get_network_properties(network)
    return props.get_or_compute(
        COMPLEX_STOICH_MATRIX,
        lambda: get_builder(sparse).build_complex_stoichiometry(
            complexes, network.n_species
        ),
        sparse=bool(sparse),
    )


def complex_outgoing_matrix(network: ReactionNetwork, *, sparse: bool = False) -> Any:
    """
    Complexes x reactions matrix :math:`\\Delta` identifying substrate complexes:
    :math:`\\Delta_{ij} = 0` if :math:`B_{ij} = 1`, else :math:`B_{ij}`.
    """
    require_flat(network, "complex_outgoing_matrix")
    B = incidence_matrix(network, sparse=sparse)
    props = get_network_properties(network)
    return props.get_or_compute(
        COMPLEX_OUTGOING_MATRIX,
        lambda: get_builder(sparse).build_outgoing(B),
        sparse=bool(sparse),
    )


def substrate_stoich_matrix(network: ReactionNetwork, *, sparse: bool = False) -> Any:
    """Species x reactions matrix of substrate coefficients."""
    require_flat(network, "substrate_stoich_matrix")
    props = get_network_properties(network)
    return props.get_or_compute(
        SUBSTRATE_STOICH_MATRIX,
        lambda: get_builder(sparse).build_species_reaction(network, "substrates"),
        sparse=bool(sparse),
    )


def product_stoich_matrix(network: ReactionNetwork, *, sparse: bool = False) -> Any:
    """Species x reactions matrix of product coefficients."""
    require_flat(network, "product_stoich_matrix")
    props = get_network_properties(network)
    return props.get_or_compute(
        PRODUCT_STOICH_MATRIX,
        lambda: get_builder(sparse).build_species_reaction(network, "products"),
        sparse=bool(sparse),
    )


def net_stoich_matrix(network: ReactionNetwork, *, sparse: bool = False) -> Any:
    """
    Species x reactions net stoichiometry matrix :math:`S = S^+ - S^-`
    (equivalently :math:`Z B`). Constant species have zero rows.

    Unlike the complex-based matrices this is defined for networks without
    reactions (an empty ``n_species x 0`` matrix).
    """
    require_flat(network, "net_stoich_matrix")
    props = get_network_properties(network)

    def build() -> Any:
        S = product_stoich_matrix(network, sparse=sparse) - substrate_stoich_matrix(
            network, sparse=sparse
        )
        if sparse:
            S = sp.csr_matrix(S)
            S.eliminate_zeros()
        return S

    return props.get_or_compute(NET_STOICH_MATRIX, build, sparse=bool(sparse))
