from __future__ import annotations

import operator
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .exceptions import UnsupportedSubsystemError


@dataclass(frozen=True)
class Species:
    """
    A single chemical species in a reaction network.

    :param name: Human-readable identifier (e.g. 'A', 'ATP').
    :type name: str
    :param constant: Whether the species is buffered (boundary) and thus
        excluded from complexes and stoichiometric bookkeeping.
    :type constant: bool
    """

    name: str
    constant: bool = False

    def __str__(self) -> str:
        return self.name


SpeciesLike = Union[str, Species]
SideLike = Union[Mapping[SpeciesLike, int], Iterable[Any]]


def _as_species(obj: SpeciesLike) -> Species:
    if isinstance(obj, Species):
        return obj
    if isinstance(obj, str):
        return Species(obj)
    raise TypeError(f"Expected a species name or Species, got {type(obj).__name__}")


def _normalize_side(side: Optional[SideLike]) -> Tuple[Tuple[Species, int], ...]:
    """
    Normalise one reaction side into ``((species, coeff), ...)``.

    Accepts a mapping ``{species: coeff}``, a sequence of ``(species, coeff)``
    pairs or a sequence of bare species (coefficient 1). Repeated species are
    merged by summing their coefficients; first-appearance order is kept.
    """
    if side is None:
        return ()
    if isinstance(side, Mapping):
        items: Iterable[Any] = side.items()
    elif isinstance(side, (str, Species)):
        items = [(side, 1)]
    else:
        items = side

    merged: Dict[str, int] = {}
    objects: Dict[str, Species] = {}
    for item in items:
        if isinstance(item, (str, Species)):
            sp, coeff = item, 1
        else:
            sp, coeff = item
        sp = _as_species(sp)
        try:
            coeff = operator.index(coeff)
        except TypeError:
            raise ValueError(
                f"Stoichiometric coefficient of {sp.name!r} must be an integer, got {coeff!r}"
            ) from None
        if coeff <= 0:
            raise ValueError(
                f"Stoichiometric coefficient of {sp.name!r} must be positive, got {coeff}"
            )
        objects.setdefault(sp.name, sp)
        merged[sp.name] = merged.get(sp.name, 0) + coeff
    return tuple((objects[name], c) for name, c in merged.items())


@dataclass(frozen=True)
class Reaction:
    """
    A single reaction: substrates are converted into products at some rate.

    The rate is opaque to the structural analysis; only ``mass_action`` is
    consulted (complex balance is restricted to mass-action kinetics).

    :param substrates: Mapping species -> coefficient, or a sequence of
        ``(species, coeff)`` pairs / bare species.
    :type substrates: SideLike
    :param products: Same format as ``substrates``.
    :type products: SideLike
    :param rate: Parameter name, numeric constant or any opaque rate object.
    :type rate: Any
    :param mass_action: Whether the rate is a mass-action rate constant.
    :type mass_action: bool
    :param rate_parameters: Parameter names the rate refers to. Defaults to
        ``(rate,)`` when ``rate`` is a string.
    :type rate_parameters: Sequence[str]
    :param name: Optional label.
    :type name: Optional[str]
    """

    substrates: SideLike = ()
    products: SideLike = ()
    rate: Any = None
    mass_action: bool = True
    rate_parameters: Sequence[str] = ()
    name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "substrates", _normalize_side(self.substrates))
        object.__setattr__(self, "products", _normalize_side(self.products))
        params = tuple(self.rate_parameters)
        if not params and isinstance(self.rate, str):
            params = (self.rate,)
        object.__setattr__(self, "rate_parameters", params)

    @property
    def species_names(self) -> List[str]:
        """Names of all species taking part, substrates first."""
        seen: Dict[str, None] = {}
        for sp, _ in self.substrates + self.products:
            seen.setdefault(sp.name, None)
        return list(seen)

    def net_stoichiometry(self, exclude: Iterable[str] = ()) -> Dict[str, int]:
        """
        Return the non-zero net change ``product - substrate`` per species.

        :param exclude: Species names to ignore (typically constant species).
        :returns: Mapping species name -> net coefficient.
        """
        skip = set(exclude)
        net: Dict[str, int] = {}
        for sp, c in self.substrates:
            if sp.name not in skip:
                net[sp.name] = net.get(sp.name, 0) - c
        for sp, c in self.products:
            if sp.name not in skip:
                net[sp.name] = net.get(sp.name, 0) + c
        return {k: v for k, v in net.items() if v != 0}

    def reversed(self, rate: Any = None, name: Optional[str] = None) -> "Reaction":
        """Return the backward reaction (products -> substrates)."""
        return Reaction(
            substrates=self.products,
            products=self.substrates,
            rate=rate,
            mass_action=self.mass_action,
            name=name,
        )

    def __repr__(self) -> str:
        def fmt(side: Tuple[Tuple[Species, int], ...]) -> str:
            return (
                " + ".join(f"{c}{sp.name}" if c != 1 else sp.name for sp, c in side)
                or "∅"
            )

        return f"{self.rate!r}, {fmt(self.substrates)} --> {fmt(self.products)}"


@dataclass(frozen=True, eq=False)
class ReactionNetwork:
    """
    Immutable reaction network: species, reactions and parameters.

    Networks compare and hash by identity, which keys the property cache
    (:mod:`crnkit.cache`).

    :param reactions: Ordered reactions.
    :type reactions: Sequence[Reaction]
    :param species: Ordered species. Collected from the reactions (first
        appearance) when omitted; when given it is authoritative for the
        ``constant`` flags.
    :type species: Optional[Sequence[SpeciesLike]]
    :param parameters: Ordered parameter names. Collected from the reaction
        rates (first appearance) when omitted.
    :type parameters: Optional[Sequence[str]]
    :param name: Network name, used to name subnetworks.
    :type name: str
    :param systems: Composed sub-systems. Structural analysis requires a flat
        network; flattening is left to the caller.
    :type systems: Sequence[ReactionNetwork]
    """

    reactions: Sequence[Reaction]
    species: Optional[Sequence[SpeciesLike]] = None
    parameters: Optional[Sequence[str]] = None
    name: str = "rn"
    systems: Sequence["ReactionNetwork"] = ()
    species_index: Dict[str, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        reactions = tuple(self.reactions)
        for rx in reactions:
            if not isinstance(rx, Reaction):
                raise TypeError(f"Expected Reaction, got {type(rx).__name__}")

        if self.species is None:
            collected: Dict[str, Species] = {}
            for rx in reactions:
                for sp, _ in rx.substrates + rx.products:
                    known = collected.setdefault(sp.name, sp)
                    if known.constant != sp.constant:
                        raise ValueError(
                            f"Species {sp.name!r} is declared both constant and non-constant"
                        )
            species = tuple(collected.values())
        else:
            species = tuple(_as_species(s) for s in self.species)

        index: Dict[str, int] = {}
        for i, sp in enumerate(species):
            if sp.name in index:
                raise ValueError(f"Duplicate species {sp.name!r}")
            index[sp.name] = i
        for j, rx in enumerate(reactions):
            for sp, _ in rx.substrates + rx.products:
                if sp.name not in index:
                    raise ValueError(
                        f"Reaction {j} refers to undeclared species {sp.name!r}"
                    )

        if self.parameters is None:
            params: Dict[str, None] = {}
            for rx in reactions:
                for p in rx.rate_parameters:
                    params.setdefault(p, None)
            parameters = tuple(params)
        else:
            parameters = tuple(self.parameters)
            declared = set(parameters)
            if len(declared) != len(parameters):
                raise ValueError("Duplicate parameter names")
            for j, rx in enumerate(reactions):
                missing = [p for p in rx.rate_parameters if p not in declared]
                if missing:
                    raise ValueError(
                        f"Reaction {j} uses undeclared parameters {missing}"
                    )

        object.__setattr__(self, "reactions", reactions)
        object.__setattr__(self, "species", species)
        object.__setattr__(self, "parameters", parameters)
        object.__setattr__(self, "systems", tuple(self.systems))
        object.__setattr__(self, "species_index", index)

    # ------------------------------------------------------------------
    # convenience constructors / helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_reaction_dicts(
        cls,
        species: Sequence[SpeciesLike],
        reactions: Sequence[Tuple[Any, ...]],
        *,
        name: str = "rn",
    ) -> "ReactionNetwork":
        """
        Build a network from species and ``(substrates, products, rate)`` tuples.

        :param species: Ordered species (names or :class:`Species`).
        :type species: Sequence[SpeciesLike]
        :param reactions: Tuples ``(substrates, products)`` or
            ``(substrates, products, rate)`` with sides keyed by species name.
        :type reactions: Sequence[Tuple]
        :returns: ReactionNetwork instance.
        :rtype: ReactionNetwork

        .. code-block:: python

            rn = ReactionNetwork.from_reaction_dicts(
                ["S", "I", "R"],
                [({"S": 1, "I": 1}, {"I": 2}, "b"), ({"I": 1}, {"R": 1}, "n")],
                name="SIR",
            )
        """
        rx_objs: List[Reaction] = []
        for rx in reactions:
            if len(rx) == 3:
                subs, prods, rate = rx
            else:
                subs, prods = rx
                rate = None
            rx_objs.append(Reaction(substrates=subs, products=prods, rate=rate))
        return cls(reactions=rx_objs, species=species, name=name)

    @property
    def n_species(self) -> int:
        return len(self.species)

    @property
    def n_reactions(self) -> int:
        return len(self.reactions)

    @property
    def n_parameters(self) -> int:
        return len(self.parameters)

    @property
    def species_names(self) -> List[str]:
        return [sp.name for sp in self.species]

    @property
    def constant_species(self) -> List[str]:
        return [sp.name for sp in self.species if sp.constant]

    @property
    def is_flat(self) -> bool:
        return not self.systems

    def __repr__(self) -> str:
        return (
            f"ReactionNetwork(name={self.name!r}, n_species={self.n_species}, "
            f"n_reactions={self.n_reactions})"
        )


def require_flat(network: ReactionNetwork, operation: str) -> None:
    """
    Raise :class:`UnsupportedSubsystemError` unless ``network`` is flat.

    :param network: Network to check.
    :param operation: Name of the requesting operation (for the message).
    """
    if not network.is_flat:
        raise UnsupportedSubsystemError(
            f"{operation} does not currently support subsystems; flatten the network first."
        )
