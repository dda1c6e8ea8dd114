"""Per-network property cache.

Derived structural properties (complexes, matrices, graphs, conservation
laws, ...) are computed lazily and stored in a :class:`NetworkProperties`
side-table keyed by network identity. Contract:

- every slot is computed at most once and then reused;
- sparse and dense variants of the same property live in distinct slots
  ``(name, sparse)`` and are never unified;
- nothing is invalidated automatically (networks are immutable); call
  :meth:`NetworkProperties.invalidate` or :meth:`NetworkProperties.reset`
  to force recomputation.

The cache is not thread-safe.
"""

from __future__ import annotations

import logging
import weakref
from collections import Counter
from typing import Any, Callable, Dict, Optional, Tuple

from .core import ReactionNetwork

LOGGER = logging.getLogger(__name__)

# slot names
COMPLEX_MAP = "complex_map"
COMPLEXES = "complexes"
INCIDENCE_MATRIX = "incidence_matrix"
COMPLEX_STOICH_MATRIX = "complex_stoich_matrix"
COMPLEX_OUTGOING_MATRIX = "complex_outgoing_matrix"
SUBSTRATE_STOICH_MATRIX = "substrate_stoich_matrix"
PRODUCT_STOICH_MATRIX = "product_stoich_matrix"
NET_STOICH_MATRIX = "net_stoich_matrix"
INCIDENCE_GRAPH = "incidence_graph"
LINKAGE_CLASSES = "linkage_classes"
STRONG_LINKAGE_CLASSES = "strong_linkage_classes"
TERMINAL_LINKAGE_CLASSES = "terminal_linkage_classes"
SUBNETWORKS = "subnetworks"
CONSERVATION_MATRIX = "conservation_matrix"
CONSERVATION_DATA = "conservation_data"
DEFICIENCY = "deficiency"

_MISSING = object()

SlotKey = Tuple[str, Optional[bool]]


class NetworkProperties:
    """
    Explicit optional-value store for the derived properties of one network.

    :example:

    .. code-block:: python

        props = get_network_properties(rn)
        B = props.get_or_compute("incidence_matrix", build, sparse=False)
        props.compute_counts[("incidence_matrix", False)]  # -> 1
    """

    def __init__(self) -> None:
        self._values: Dict[SlotKey, Any] = {}
        self.compute_counts: Counter = Counter()

    def contains(self, name: str, sparse: Optional[bool] = None) -> bool:
        return (name, sparse) in self._values

    def get(self, name: str, sparse: Optional[bool] = None, default: Any = None) -> Any:
        return self._values.get((name, sparse), default)

    def set(self, name: str, value: Any, sparse: Optional[bool] = None) -> None:
        self._values[(name, sparse)] = value

    def get_or_compute(
        self,
        name: str,
        factory: Callable[[], Any],
        sparse: Optional[bool] = None,
    ) -> Any:
        """
        Return the cached slot value, computing and storing it on first use.

        :param name: Property name.
        :param factory: Zero-argument callable producing the value.
        :param sparse: Representation flag; ``None`` for representation
            independent properties.
        :returns: Cached value.
        """
        key = (name, sparse)
        value = self._values.get(key, _MISSING)
        if value is _MISSING:
            LOGGER.debug("computing %s (sparse=%s)", name, sparse)
            value = factory()
            self._values[key] = value
            self.compute_counts[key] += 1
        return value

    def invalidate(self, *names: str) -> None:
        """Drop every variant (sparse and dense) of the named properties."""
        drop = set(names)
        for key in [k for k in self._values if k[0] in drop]:
            del self._values[key]

    def reset(self) -> None:
        """Drop all cached values (rebuild counters are kept)."""
        self._values.clear()

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        slots = ", ".join(
            name if sparse is None else f"{name}[{'sparse' if sparse else 'dense'}]"
            for name, sparse in self._values
        )
        return f"<NetworkProperties {slots or 'empty'}>"


_PROPERTIES: "weakref.WeakKeyDictionary[ReactionNetwork, NetworkProperties]" = (
    weakref.WeakKeyDictionary()
)


def get_network_properties(network: ReactionNetwork) -> NetworkProperties:
    """Return (creating if needed) the property cache of ``network``."""
    props = _PROPERTIES.get(network)
    if props is None:
        props = NetworkProperties()
        _PROPERTIES[network] = props
    return props


def clear_network_properties(network: ReactionNetwork) -> None:
    """Forget every cached property of ``network``."""
    _PROPERTIES.pop(network, None)
