"""
Public API for :mod:`crnkit`.

Structural analysis of chemical reaction networks: reaction complexes,
incidence and stoichiometry matrices, linkage classes, deficiency,
conservation laws and complex balance.

Re-exported classes
-------------------
- :class:`~crnkit.core.Species`
- :class:`~crnkit.core.Reaction`
- :class:`~crnkit.core.ReactionNetwork`
- :class:`~crnkit.cache.NetworkProperties`
- :class:`~crnkit.analysis.NetworkReport`
"""

from __future__ import annotations

from typing import List

from .analysis import NetworkReport, analyze_network
from .cache import NetworkProperties, clear_network_properties, get_network_properties
from .core import Reaction, ReactionNetwork, Species
from .exceptions import (
    ConservationOverflowError,
    CRNError,
    DegenerateConservationLawError,
    EmptyNetworkError,
    InvalidIncidenceError,
    NonMassActionError,
    ParameterCountError,
    UnknownParameterError,
    UnsupportedSubsystemError,
)
from .Props import *  # noqa: F401,F403
from .Props import __all__ as _props_all
from .version import __version__

__all__: List[str] = [
    "Species",
    "Reaction",
    "ReactionNetwork",
    "NetworkProperties",
    "get_network_properties",
    "clear_network_properties",
    "NetworkReport",
    "analyze_network",
    "CRNError",
    "EmptyNetworkError",
    "UnsupportedSubsystemError",
    "InvalidIncidenceError",
    "ConservationOverflowError",
    "DegenerateConservationLawError",
    "NonMassActionError",
    "ParameterCountError",
    "UnknownParameterError",
    "__version__",
] + list(_props_all)
