from __future__ import annotations


class CRNError(RuntimeError):
    """Base class for all crnkit-specific errors."""


class EmptyNetworkError(CRNError):
    """Raised when reaction complexes are requested for a network without reactions."""


class UnsupportedSubsystemError(CRNError):
    """Raised when a hierarchical (composed) network is passed where a flat one is required."""


class InvalidIncidenceError(CRNError):
    """Raised when an incidence matrix (or the reaction producing it) is malformed."""


class ConservationOverflowError(CRNError):
    """Raised when the conservation-law post-check ``N @ S == 0`` fails."""


class DegenerateConservationLawError(CRNError):
    """Raised when a conservation law has a zero coefficient for its own dependent species."""


class NonMassActionError(CRNError):
    """Raised when complex balance is requested for non mass-action kinetics."""


class ParameterCountError(CRNError, ValueError):
    """Raised when a parameter map does not match the network's parameter count."""


class UnknownParameterError(CRNError, KeyError):
    """Raised when a parameter map lacks a value for a declared parameter."""
